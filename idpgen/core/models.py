"""Domain models for records, template files and generation configuration."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Records supplied by the IDP API
# ---------------------------------------------------------------------------


class ResourceType(BaseModel):
    id: UUID
    name: str
    category: str


class CloudProvider(BaseModel):
    id: UUID
    name: str
    display_name: str


class BlueprintResource(BaseModel):
    """A resource entry of a blueprint."""

    id: UUID
    name: str
    description: Optional[str] = None
    resource_type: ResourceType
    cloud_provider: CloudProvider
    configuration: dict[str, Any] = Field(
        default_factory=dict, description="Free-form resource configuration"
    )
    cloud_specific_properties: dict[str, Any] = Field(
        default_factory=dict, description="Provider specific property values"
    )


class Blueprint(BaseModel):
    """A blueprint record as returned by the IDP API."""

    id: UUID
    name: str
    description: Optional[str] = None
    resources: list[BlueprintResource] = Field(default_factory=list)
    supported_cloud_providers: list[CloudProvider] = Field(default_factory=list)


class StackResource(BaseModel):
    """A resource entry of a stack."""

    id: UUID
    name: str
    description: Optional[str] = None
    resource_type: ResourceType
    cloud_provider: CloudProvider
    configuration: dict[str, Any] = Field(default_factory=dict)


class Stack(BaseModel):
    """A stack record as returned by the IDP API."""

    id: UUID
    name: str
    description: Optional[str] = None
    cloud_name: str
    stack_type: str
    stack_resources: list[StackResource] = Field(default_factory=list)
    blueprint: Optional[Blueprint] = None


class DataSource(str, Enum):
    """Which kind of record drives template generation."""

    BLUEPRINT = "blueprint"
    STACK = "stack"


# ---------------------------------------------------------------------------
# Template files
# ---------------------------------------------------------------------------


class TemplateKind(str, Enum):
    """Template classification by file extension."""

    TERRAFORM = "terraform"
    YAML = "yaml"
    JSON = "json"

    @classmethod
    def from_extension(cls, extension: str) -> Optional["TemplateKind"]:
        """Map an extension (with or without the leading dot) to a kind."""
        return _EXTENSIONS.get(extension.lower().lstrip("."))


_EXTENSIONS: dict[str, TemplateKind] = {
    "tf": TemplateKind.TERRAFORM,
    "yaml": TemplateKind.YAML,
    "yml": TemplateKind.YAML,
    "json": TemplateKind.JSON,
}


class TemplateFile(BaseModel):
    """A discovered template file."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute template file path")
    relative_path: Path = Field(..., description="Path relative to the template root")
    kind: TemplateKind


class ProcessedFile(BaseModel):
    """A rendered template ready to be written under the output root."""

    model_config = ConfigDict(frozen=True)

    relative_path: Path
    content: str

    @property
    def path_str(self) -> str:
        return self.relative_path.as_posix()


class GenerateConfig(BaseModel):
    """Configuration for one generation run."""

    template_dir: Path = Field(..., description="Template root directory")
    output_dir: Path = Field(default_factory=lambda: Path("output"))
    variables_file: Optional[Path] = Field(
        default=None, description="JSON/YAML override document"
    )
    file_mode: int = Field(default=0o600, description="File permissions (octal)")
