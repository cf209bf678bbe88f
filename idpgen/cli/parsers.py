"""CLI argument parsers and validators."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def require_path(value: Optional[Path], option: str, env_var: str) -> Path:
    """Return ``value`` or fail with a hint about the option and env variable."""
    if value is None:
        raise typer.BadParameter(f"Missing {option} (or set {env_var})")
    return value
