from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IDP_", case_sensitive=False)

    template_dir: Optional[Path] = None
    output_dir: Path = Path("./output")
    variables_file: Optional[Path] = None
    file_mode: str = "0600"
