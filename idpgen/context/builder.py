"""Build the variable store from blueprint/stack records and override files."""

from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from ..core.errors import (
    RecordError,
    VariableFileError,
    VariableParseError,
    VariableSchemaError,
)
from ..core.models import Blueprint, BlueprintResource, DataSource, Stack, StackResource
from .store import VariableStore

logger = logging.getLogger(__name__)

DomainObject = Union[Blueprint, Stack]


def _normalize(value: Any) -> Any:
    """Coerce parsed document values into plain JSON-compatible values."""
    if isinstance(value, dict):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def load_document(path: Path, purpose: str = "variables") -> Any:
    """Read a JSON or YAML document, choosing the parser by file extension."""
    extension = path.suffix.lower().lstrip(".")
    if extension not in ("json", "yaml", "yml"):
        raise VariableFileError(
            f"Unsupported file extension '{extension}' for {purpose} file '{path}'. "
            "Use .json, .yaml, or .yml"
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise VariableFileError(
            f"Failed to read {purpose} file '{path}': {e}"
        ) from e

    if extension == "json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise VariableParseError(f"Failed to parse JSON from '{path}': {e}") from e
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise VariableParseError(f"Failed to parse YAML from '{path}': {e}") from e

    return _normalize(data)


def flatten_into(
    store: VariableStore, prefix: str, value: Any, *, warn_on_override: bool = False
) -> None:
    """Insert ``value`` at ``prefix`` and, for composites, every nested path.

    Objects extend the prefix with ``.key``, arrays with ``[index]``.
    """
    if warn_on_override and prefix in store:
        logger.warning(f"Custom variable '{prefix}' overrides existing value")
    store.insert(prefix, value)

    if isinstance(value, dict):
        children = ((f"{prefix}.{key}", item) for key, item in value.items())
    elif isinstance(value, list):
        children = ((f"{prefix}[{index}]", item) for index, item in enumerate(value))
    else:
        return

    for child_path, child in children:
        flatten_into(store, child_path, child, warn_on_override=warn_on_override)


def _resource_entry(resource: Union[BlueprintResource, StackResource]) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": str(resource.id), "name": resource.name}
    if resource.description is not None:
        entry["description"] = resource.description
    entry["resource_type"] = {
        "id": str(resource.resource_type.id),
        "name": resource.resource_type.name,
        "category": resource.resource_type.category,
    }
    entry["cloud_provider"] = {
        "id": str(resource.cloud_provider.id),
        "name": resource.cloud_provider.name,
        "display_name": resource.cloud_provider.display_name,
    }
    entry["configuration"] = _normalize(resource.configuration)
    if isinstance(resource, BlueprintResource):
        entry["cloud_specific_properties"] = _normalize(
            resource.cloud_specific_properties
        )
    return entry


def _insert_metadata(store: VariableStore, root: str, fields: dict[str, Any]) -> None:
    for name, value in fields.items():
        if value is not None:
            store.insert(f"{root}.{name}", value)


def _blueprint_metadata(blueprint: Blueprint) -> dict[str, Any]:
    return {
        "id": str(blueprint.id),
        "name": blueprint.name,
        "description": blueprint.description,
    }


def from_blueprint(blueprint: Blueprint) -> VariableStore:
    """Build a store exposing ``blueprint.*``, ``resources`` and
    ``supported_cloud_providers``."""
    store = VariableStore()
    _insert_metadata(store, "blueprint", _blueprint_metadata(blueprint))

    flatten_into(
        store, "resources", [_resource_entry(r) for r in blueprint.resources]
    )
    flatten_into(
        store,
        "supported_cloud_providers",
        [
            {"id": str(cp.id), "name": cp.name, "display_name": cp.display_name}
            for cp in blueprint.supported_cloud_providers
        ],
    )
    return store


def from_stack(stack: Stack) -> VariableStore:
    """Build a store exposing ``stack.*``, ``stack_resources`` and, when the
    stack embeds one, ``blueprint.*``."""
    store = VariableStore()
    _insert_metadata(
        store,
        "stack",
        {
            "id": str(stack.id),
            "name": stack.name,
            "description": stack.description,
            "cloud_name": stack.cloud_name,
            "stack_type": stack.stack_type,
        },
    )

    flatten_into(
        store, "stack_resources", [_resource_entry(r) for r in stack.stack_resources]
    )

    if stack.blueprint is not None:
        _insert_metadata(store, "blueprint", _blueprint_metadata(stack.blueprint))
    return store


def from_domain_object(obj: DomainObject) -> VariableStore:
    """Build a variable store from a blueprint or stack record."""
    if isinstance(obj, Blueprint):
        store = from_blueprint(obj)
    elif isinstance(obj, Stack):
        store = from_stack(obj)
    else:
        raise TypeError(f"Unsupported domain object: {type(obj).__name__}")

    logger.debug(f"Variable context built with {len(store)} variables")
    return store


def merge_overrides(store: VariableStore, file_path: Path) -> None:
    """Merge a JSON/YAML override document into ``store``.

    Override values always win; each replaced path is reported with a
    warning.

    Raises:
        VariableFileError: file unreadable or extension unsupported
        VariableParseError: document is malformed
        VariableSchemaError: document root is not a mapping
    """
    data = load_document(file_path)
    if not isinstance(data, dict):
        raise VariableSchemaError(
            f"Variables file '{file_path}' must contain a JSON/YAML object at the root"
        )

    for key, value in data.items():
        flatten_into(store, key, value, warn_on_override=True)

    logger.debug(f"Merged {len(data)} top-level custom variable(s) from {file_path}")


def load_record(path: Path, source: DataSource) -> DomainObject:
    """Load a blueprint or stack record from a JSON/YAML file."""
    data = load_document(path, purpose=source.value)
    model = Blueprint if source is DataSource.BLUEPRINT else Stack
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RecordError(f"Invalid {source.value} record in '{path}':\n{e}") from e
