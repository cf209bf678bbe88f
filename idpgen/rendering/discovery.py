"""Template file discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..core.errors import (
    DiscoveryPathError,
    DiscoveryPermissionError,
    TemplateDirNotADirectoryError,
    TemplateDirNotFoundError,
    WalkError,
)
from ..core.models import TemplateFile, TemplateKind

logger = logging.getLogger(__name__)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _raise_walk_error(error: OSError) -> None:
    if isinstance(error, PermissionError):
        raise DiscoveryPermissionError(error.filename or "unknown path") from error
    raise WalkError(f"Error walking directory: {error}") from error


def discover_templates(template_dir: Path) -> list[TemplateFile]:
    """Recursively find template files under ``template_dir``.

    Files are classified by extension (.tf, .yaml/.yml, .json); anything
    else is skipped. Hidden files and directories are pruned, the root
    itself excepted. Symlinks are not followed.

    Args:
        template_dir: Root directory of the template tree

    Returns:
        Discovered files in sorted walk order
    """
    if not template_dir.exists():
        raise TemplateDirNotFoundError(template_dir)
    if not template_dir.is_dir():
        raise TemplateDirNotADirectoryError(template_dir)

    root = template_dir.absolute()
    templates: list[TemplateFile] = []

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames[:] = sorted(d for d in dirnames if not _is_hidden(d))

        for filename in sorted(filenames):
            if _is_hidden(filename):
                continue

            path = Path(dirpath) / filename
            if path.is_symlink() or not path.is_file():
                continue

            kind = TemplateKind.from_extension(path.suffix) if path.suffix else None
            if kind is None:
                logger.debug(f"Skipping non-template file: {path}")
                continue

            try:
                relative_path = path.relative_to(root)
            except ValueError as e:
                raise DiscoveryPathError(str(e)) from e

            templates.append(
                TemplateFile(path=path, relative_path=relative_path, kind=kind)
            )

    logger.debug(f"Discovered {len(templates)} template file(s) in {template_dir}")
    return templates
