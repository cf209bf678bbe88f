"""Shared pytest fixtures for the idpgen test suite.

Provides reusable fixtures for:
- Sample blueprint and stack records (raw dicts and parsed models)
- Variable stores built from those records
- Template trees on disk
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from idpgen.context.builder import from_domain_object
from idpgen.context.store import VariableStore
from idpgen.core.models import Blueprint, Stack


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

AWS = {
    "id": "6f1c2d9e-0b7a-4c1e-9f59-3a2b1c0d9e8f",
    "name": "aws",
    "display_name": "Amazon Web Services",
}
AZURE = {
    "id": "0a8e7c1d-5b4f-4e3a-9c2d-1f0e9d8c7b6a",
    "name": "azure",
    "display_name": "Microsoft Azure",
}


@pytest.fixture
def blueprint_data() -> dict[str, Any]:
    """Raw blueprint record as the API returns it."""
    return {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "name": "web-app",
        "description": "Web application blueprint",
        "resources": [
            {
                "id": "11111111-1111-4111-8111-111111111111",
                "name": "db",
                "description": "Primary database",
                "resource_type": {
                    "id": "22222222-2222-4222-8222-222222222222",
                    "name": "Relational Database Server",
                    "category": "SharedInfrastructure",
                },
                "cloud_provider": AWS,
                "configuration": {
                    "instance_class": "db.t3.micro",
                    "storage": {"size_gb": 20, "encrypted": True},
                },
                "cloud_specific_properties": {"engine": "postgres"},
            },
            {
                "id": "33333333-3333-4333-8333-333333333333",
                "name": "cache",
                "resource_type": {
                    "id": "44444444-4444-4444-8444-444444444444",
                    "name": "Cache",
                    "category": "SharedInfrastructure",
                },
                "cloud_provider": AWS,
                "configuration": {"nodes": 2},
                "cloud_specific_properties": {},
            },
        ],
        "supported_cloud_providers": [AWS, AZURE],
    }


@pytest.fixture
def blueprint(blueprint_data: dict[str, Any]) -> Blueprint:
    return Blueprint.model_validate(blueprint_data)


@pytest.fixture
def stack_data(blueprint_data: dict[str, Any]) -> dict[str, Any]:
    """Raw stack record embedding the sample blueprint."""
    return {
        "id": "99999999-9999-4999-8999-999999999999",
        "name": "orders-api",
        "description": "Orders service",
        "cloud_name": "aws",
        "stack_type": "RESTFUL_API",
        "stack_resources": [
            {
                "id": "55555555-5555-4555-8555-555555555555",
                "name": "orders-queue",
                "resource_type": {
                    "id": "66666666-6666-4666-8666-666666666666",
                    "name": "Queue",
                    "category": "NonSharedInfrastructure",
                },
                "cloud_provider": AWS,
                "configuration": {"fifo": True, "retention": 345600},
            }
        ],
        "blueprint": blueprint_data,
    }


@pytest.fixture
def stack(stack_data: dict[str, Any]) -> Stack:
    return Stack.model_validate(stack_data)


@pytest.fixture
def blueprint_store(blueprint: Blueprint) -> VariableStore:
    return from_domain_object(blueprint)


@pytest.fixture
def blueprint_file(tmp_path: Path, blueprint_data: dict[str, Any]) -> Path:
    path = tmp_path / "blueprint.json"
    path.write_text(json.dumps(blueprint_data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> content) under ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A small mixed Terraform/Kubernetes template tree."""
    return write_tree(
        tmp_path / "templates",
        {
            "main.tf": (
                'resource "aws_db_instance" "{{ resources[0].name }}" {\n'
                '  engine         = "{{ resources[0].cloud_specific_properties.engine }}"\n'
                '  instance_class = "{{ resources[0].configuration.instance_class }}"\n'
                "}\n"
            ),
            "k8s/deployment.yaml": (
                "apiVersion: apps/v1\n"
                "kind: Deployment\n"
                "metadata:\n"
                "  name: {{ blueprint.name }}\n"
                "---\n"
                "apiVersion: v1\n"
                "kind: ConfigMap\n"
                "metadata:\n"
                "  name: {{ blueprint.name }}-config\n"
                "data:\n"
                "{% for r in resources %}\n"
                "  {{ r.name }}: \"{{ r.resource_type.name }}\"\n"
                "{% endfor %}\n"
            ),
            "README.md": "not a template",
            ".hidden/secret.tf": "ignored",
        },
    )


@pytest.fixture
def make_tree(tmp_path: Path):
    """Factory creating a template tree under ``tmp_path/<name>``."""

    def _make(files: dict[str, str], name: str = "tree") -> Path:
        return write_tree(tmp_path / name, files)

    return _make
