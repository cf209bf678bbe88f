"""Human-readable output for the CLI."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from ..context.store import VariableStore

_ROOT_PATTERN = re.compile(r"^[^.\[]+")
_ELEMENT_DISPLAY_LIMIT = 3


def root_key(path: str) -> str:
    """``resources[0].name`` -> ``resources``; ``blueprint.name`` -> ``blueprint``."""
    match = _ROOT_PATTERN.match(path)
    return match.group(0) if match else path


def value_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def value_sample(value: Any) -> str:
    """Short display form; long strings are truncated."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value[:47]}..."' if len(value) > 50 else f'"{value}"'
    if isinstance(value, list):
        return f"[{len(value)} element(s)]"
    if isinstance(value, dict):
        suffix = "y" if len(value) == 1 else "ies"
        return f"{{ {len(value)} propert{suffix} }}"
    return str(value)


def _child_properties(prefix: str, variables: dict[str, Any]) -> list[str]:
    names = set()
    for key in variables:
        if key.startswith(f"{prefix}."):
            names.add(root_key(key[len(prefix) + 1 :]))
    return sorted(names)


def _element_indices(prefix: str, variables: dict[str, Any]) -> list[int]:
    pattern = re.compile(rf"^{re.escape(prefix)}\[(\d+)\]")
    indices = set()
    for key in variables:
        match = pattern.match(key)
        if match:
            indices.add(int(match.group(1)))
    return sorted(indices)


def _format_properties(prefix: str, variables: dict[str, Any], indent: int) -> list[str]:
    pad = "  " * indent
    lines = []
    for prop in _child_properties(prefix, variables):
        key = f"{prefix}.{prop}"
        if key in variables:
            value = variables[key]
            lines.append(f"{pad}{prop}: {value_type(value)} = {value_sample(value)}")
    return lines


def _format_group(root: str, variables: dict[str, Any]) -> list[str]:
    lines = [f"{root}:"]

    if root not in variables:
        for key, value in variables.items():
            if root_key(key) == root:
                lines.append(f"  {key}: {value_type(value)} = {value_sample(value)}")
        return lines

    value = variables[root]
    lines.append(f"  Type: {value_type(value)}")
    if isinstance(value, dict):
        lines.append("  Structure: Object with properties")
        lines.extend(_format_properties(root, variables, 2))
    elif isinstance(value, list):
        lines.append(f"  Structure: Array with {len(value)} element(s)")
        indices = _element_indices(root, variables)
        for index in indices[:_ELEMENT_DISPLAY_LIMIT]:
            element_key = f"{root}[{index}]"
            if element_key not in variables:
                continue
            element = variables[element_key]
            lines.append(f"    [{index}]: {value_type(element)}")
            if isinstance(element, dict):
                lines.extend(_format_properties(element_key, variables, 3))
        if len(indices) > _ELEMENT_DISPLAY_LIMIT:
            lines.append(
                f"    ... and {len(indices) - _ELEMENT_DISPLAY_LIMIT} more element(s)"
            )
    else:
        lines.append(f"  Value: {value_sample(value)}")
    return lines


def format_variables(store: VariableStore, source_name: str) -> str:
    """Render the variable space grouped by root key."""
    variables = dict(store.list_all())
    lines = [
        f"{source_name} Variables",
        "=" * 80,
        "",
        "Available variables for use in templates:",
        "",
    ]

    if not variables:
        lines.append("No variables available.")
    else:
        roots = sorted({root_key(key) for key in variables})
        for root in roots:
            lines.extend(_format_group(root, variables))
            lines.append("")

    lines.extend(
        [
            "=" * 80,
            "",
            "Usage Examples:",
            "  {{ variable_name }}                     - Simple variable substitution",
            "  {{ object.property }}                   - Nested property access",
            "  {{ array[0].property }}                 - Array element access",
            '  {{ default(variable, "value") }}        - Default value if undefined',
            "  {% for item in array %}...{% endfor %}  - Iterate a list",
        ]
    )
    return "\n".join(lines)


def next_steps_guidance(written_files: list[Path], template_dir: Path) -> str:
    """Suggest follow-up commands for the kinds of files that were generated."""
    suffixes = {path.suffix.lower() for path in written_files}
    has_terraform = ".tf" in suffixes
    has_kubernetes = bool(suffixes & {".yaml", ".yml"})
    has_json = ".json" in suffixes
    output_dir = written_files[0].parent if written_files else Path(".")

    lines = ["Next steps:"]

    if has_terraform:
        lines.extend(
            [
                "",
                "For Terraform/OpenTofu:",
                "  1. Review the generated files to ensure they match your requirements",
                "  2. Initialize Terraform:",
                f"     cd {output_dir}",
                "     terraform init",
                "  3. Validate the configuration:",
                "     terraform validate",
                "  4. Plan the infrastructure changes:",
                "     terraform plan",
                "  5. Apply the changes (when ready):",
                "     terraform apply",
            ]
        )

    if has_kubernetes:
        lines.extend(
            [
                "",
                "For Kubernetes:",
                "  1. Review the generated manifests to ensure they match your requirements",
                "  2. Validate the manifests:",
                f"     kubectl apply --dry-run=client -f {output_dir}",
                "  3. Apply the manifests to your cluster:",
                f"     kubectl apply -f {output_dir}",
                "  4. Verify the deployment:",
                "     kubectl get all",
            ]
        )

    if has_json and not has_terraform and not has_kubernetes:
        lines.extend(
            [
                "",
                "For JSON configuration files:",
                "  1. Review the generated files to ensure they match your requirements",
                "  2. Validate the JSON syntax:",
                f"     jq . {written_files[0]} > /dev/null",
                "  3. Use the configuration files with your infrastructure tools",
            ]
        )

    lines.extend(
        [
            "",
            "General tips:",
            "  - Use version control (git) to track changes to generated files",
            "  - Review all generated files before applying to production",
            "  - Use the 'list-variables' command to see available template variables",
            "  - Regenerate files by running the same command with updated templates "
            f"in {template_dir}",
        ]
    )
    return "\n".join(lines)
