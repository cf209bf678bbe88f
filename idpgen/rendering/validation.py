"""Post-render validation of YAML output."""

from __future__ import annotations

import re
from pathlib import Path

import yaml

from ..core.errors import OutputValidationError

_DOCUMENT_SEPARATOR = re.compile(r"^---[ \t]*$", re.MULTILINE)


def split_documents(content: str) -> list[str]:
    """Split multi-document YAML on bare ``---`` lines, dropping empty documents."""
    return [doc for doc in _DOCUMENT_SEPARATOR.split(content) if doc.strip()]


def validate_yaml(content: str, file_path: Path) -> None:
    """Ensure every document of rendered YAML parses.

    Raises:
        OutputValidationError: naming the file and, for multi-document
            content, the 1-based index of the failing document
    """
    documents = split_documents(content)

    for index, document in enumerate(documents, start=1):
        try:
            yaml.safe_load(document)
        except yaml.YAMLError as e:
            doc_info = f" (document {index})" if len(documents) > 1 else ""
            raise OutputValidationError(
                file_path,
                f"YAML validation failed for '{file_path}'{doc_info}: {e}\n"
                "\n"
                "The generated YAML has invalid syntax. This usually means:\n"
                "- A variable substitution resulted in invalid YAML structure\n"
                "- Missing or incorrect indentation\n"
                "- Unquoted special characters\n"
                "\n"
                "Please check your template and variable values.",
                document_index=index if len(documents) > 1 else None,
            ) from e
