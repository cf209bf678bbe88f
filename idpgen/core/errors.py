"""Typed errors raised by the generation pipeline."""

from __future__ import annotations

from pathlib import Path


class IdpgenError(Exception):
    """Base class for every error raised by idpgen."""


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class DiscoveryError(IdpgenError):
    """Raised when the template directory cannot be enumerated."""


class TemplateDirNotFoundError(DiscoveryError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Template directory not found: {path}")


class TemplateDirNotADirectoryError(DiscoveryError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Path is not a directory: {path}")


class DiscoveryPermissionError(DiscoveryError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Permission denied: {path}")


class WalkError(DiscoveryError):
    """Any non-permission failure while walking the template tree."""


class DiscoveryPathError(DiscoveryError):
    """A discovered file could not be expressed relative to the template root."""


class NoTemplatesFoundError(DiscoveryError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"No template files found in '{path}'. "
            "Expected files with extensions: .tf, .yaml, .yml, .json"
        )


# ---------------------------------------------------------------------------
# Context building
# ---------------------------------------------------------------------------


class ContextError(IdpgenError):
    """Raised while building or merging the variable store."""


class VariableFileError(ContextError):
    """The variables file could not be read or has an unsupported extension."""


class VariableParseError(ContextError):
    """The variables file is not well-formed JSON/YAML."""


class VariableSchemaError(ContextError):
    """The variables file does not hold a mapping at its root."""


class RecordError(ContextError):
    """A blueprint/stack record could not be loaded or validated."""


class StoreFrozenError(ContextError):
    """Raised on insert into a store that has been frozen for rendering."""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderError(IdpgenError):
    """Base class for template processing failures."""


class TemplateSyntaxError(RenderError):
    """A template could not be parsed; carries the offending line."""

    def __init__(self, line: int, message: str, source_line: str = "") -> None:
        self.line = line
        self.message = message
        self.source_line = source_line
        super().__init__(f"Template syntax error at line {line}: {message}")


class VariableNotFoundError(RenderError):
    """A template referenced a name that is not available in the store."""

    def __init__(
        self, variable: str, suggestion: str, suggestions: list[str] | None = None
    ) -> None:
        self.variable = variable
        self.suggestion = suggestion
        self.suggestions = list(suggestions or [])
        super().__init__(f"Variable '{variable}' not found.\n\n{suggestion}")


class ProcessingError(RenderError):
    """Generic template processing failure."""


class OutputValidationError(ProcessingError):
    """Rendered output is not well-formed for its file kind."""

    def __init__(
        self, file: Path, message: str, document_index: int | None = None
    ) -> None:
        self.file = file
        self.document_index = document_index
        super().__init__(message)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


class OutputWriteError(IdpgenError):
    """Creating directories, writing, chmod or renaming an output file failed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(message)
