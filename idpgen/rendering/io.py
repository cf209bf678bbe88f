"""File I/O operations for rendering."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from ..core.errors import OutputWriteError
from ..core.models import ProcessedFile

logger = logging.getLogger(__name__)

SUPPORTS_CHMOD = os.name == "posix"


def ensure_parent(path: Path) -> None:
    """Ensure parent directories exist for the given path.

    Args:
        path: Path whose parent directories should be created
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(
            path.parent, f"Failed to create directory {path.parent}: {e}"
        ) from e


def atomic_write_text(path: Path, text: str, mode: int = 0o600) -> None:
    """Write text to a file atomically using a temporary sibling file.

    The temporary file gets ``mode`` before it is renamed onto ``path``, so
    the target never exists with looser permissions.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    except OSError as e:
        raise OutputWriteError(path, f"Failed to write {path}: {e}") from e

    try:
        tmp = os.fdopen(fd, "w", encoding="utf-8")
    except OSError as e:
        os.close(fd)
        os.remove(tmp_name)
        raise OutputWriteError(path, f"Failed to write {path}: {e}") from e

    try:
        with tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        if SUPPORTS_CHMOD:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except OSError as e:
        raise OutputWriteError(path, f"Failed to write {path}: {e}") from e
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


def _target_path(output_dir: Path, relative_path: Path) -> Path:
    target = output_dir / relative_path
    root = output_dir.resolve()
    resolved = target.resolve()
    if resolved != root and root not in resolved.parents:
        raise OutputWriteError(
            target, f"Refusing to write outside the output directory: {relative_path}"
        )
    return target


def write_processed_files(
    files: Iterable[ProcessedFile], output_dir: Path, mode: int = 0o600
) -> list[Path]:
    """Write processed files under ``output_dir``, mirroring their relative paths.

    Args:
        files: Rendered files to write
        output_dir: Output root directory
        mode: File permissions applied to each written file

    Returns:
        Written file paths
    """
    written: list[Path] = []

    for processed in files:
        target = _target_path(output_dir, processed.relative_path)

        if target.exists():
            logger.warning(f"Overwriting existing file: {target}")

        atomic_write_text(target, processed.content, mode=mode)
        logger.debug(f"Wrote {processed.path_str} → {target}")
        written.append(target)

    return written
