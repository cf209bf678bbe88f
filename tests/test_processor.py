"""Unit tests for the template processor (idpgen.rendering.engine)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from idpgen.context.builder import merge_overrides
from idpgen.context.store import VariableStore
from idpgen.core.errors import (
    OutputValidationError,
    ProcessingError,
    RenderError,
    TemplateSyntaxError,
    VariableNotFoundError,
)
from idpgen.core.models import TemplateFile, TemplateKind
from idpgen.rendering.discovery import discover_templates
from idpgen.rendering.engine import TemplateProcessor, render_template


@pytest.fixture
def processor(blueprint_store: VariableStore) -> TemplateProcessor:
    return TemplateProcessor(blueprint_store)


def _template(root: Path, name: str) -> TemplateFile:
    (template,) = [t for t in discover_templates(root) if t.relative_path.name == name]
    return template


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------


class TestSubstitution:
    @pytest.mark.unit
    def test_dotted_index_access(self, processor):
        rendered = processor.render(
            "{{resources.0.name}}:{{resources.0.cloud_specific_properties.engine}}"
        )
        assert rendered == "db:postgres"

    @pytest.mark.unit
    def test_bracket_index_access(self, processor):
        assert processor.render("{{ resources[1].cloud_provider.name }}") == "aws"

    @pytest.mark.unit
    def test_flat_metadata_keys(self, processor):
        assert processor.render("{{ blueprint.name }} ({{ blueprint.description }})") == (
            "web-app (Web application blueprint)"
        )

    @pytest.mark.unit
    def test_missing_values_render_empty(self, processor):
        rendered = processor.render(
            "[{{ missing }}][{{ missing.deep.path }}][{{ resources[7].name }}]"
            "[{{ blueprint.nope }}]"
        )
        assert rendered == "[][][][]"

    @pytest.mark.unit
    def test_scalar_formatting(self, processor):
        assert processor.render("{{ resources[0].configuration.storage.size_gb }}") == "20"
        assert processor.render("{{ resources[0].configuration.storage.encrypted }}") == "true"

    @pytest.mark.unit
    def test_composites_render_as_json(self, processor):
        assert processor.render("{{ resources[1].configuration }}") == '{"nodes":2}'

    @pytest.mark.unit
    def test_null_renders_empty(self):
        store = VariableStore()
        store.insert("optional", None)
        assert render_template("<{{ optional }}>", store) == "<>"

    @pytest.mark.unit
    def test_namespace_renders_empty(self, processor):
        assert processor.render("[{{ blueprint }}]") == "[]"

    @pytest.mark.unit
    def test_lookup_by_path(self, processor):
        assert processor.render('{{ lookup("resources[0].name") }}') == "db"

    @pytest.mark.unit
    def test_plain_text_passes_through(self, processor):
        text = 'resource "null_resource" "x" {}\n'
        assert processor.render(text) == text

    @pytest.mark.unit
    def test_rendering_is_deterministic(self, processor):
        template = "{% for r in resources %}{{ r.name }}={{ r.configuration }}\n{% endfor %}"
        assert processor.render(template) == processor.render(template)

    @pytest.mark.unit
    def test_store_is_frozen(self, blueprint_store):
        TemplateProcessor(blueprint_store)
        assert blueprint_store.frozen


# ---------------------------------------------------------------------------
# Store resolution
# ---------------------------------------------------------------------------


def _with_overrides(store: VariableStore, tmp_path: Path, overrides: dict) -> TemplateProcessor:
    variables = tmp_path / "overrides.json"
    variables.write_text(json.dumps(overrides), encoding="utf-8")
    merge_overrides(store, variables)
    return TemplateProcessor(store)


class TestStoreResolution:
    @pytest.mark.unit
    def test_nested_override_keeps_sibling_paths(self, blueprint_store, tmp_path: Path):
        processor = _with_overrides(blueprint_store, tmp_path, {"blueprint": {"owner": "team-a"}})
        assert processor.render("{{ blueprint.name }}|{{ blueprint.owner }}") == "web-app|team-a"
        assert blueprint_store.get("blueprint.name") == "web-app"

    @pytest.mark.unit
    def test_flat_override_wins_over_enclosing_object(self, blueprint_store, tmp_path: Path):
        processor = _with_overrides(blueprint_store, tmp_path, {"resources[0].name": "renamed"})
        assert blueprint_store.get("resources[0].name") == "renamed"
        assert processor.render("{{ resources[0].name }}") == "renamed"
        assert processor.render("{{ resources.0.name }}") == "renamed"
        assert processor.render("{% for r in resources %}{{ r.name }} {% endfor %}") == (
            "renamed cache "
        )

    @pytest.mark.unit
    def test_rendering_agrees_with_get(self, blueprint_store, tmp_path: Path):
        processor = _with_overrides(
            blueprint_store,
            tmp_path,
            {"resources[1].configuration.nodes": 5, "blueprint.description": "custom"},
        )
        for path in ("resources[1].configuration.nodes", "blueprint.description"):
            expected = blueprint_store.get(path)
            assert processor.render(f"{{{{ {path} }}}}") == str(expected)

    @pytest.mark.unit
    @pytest.mark.parametrize("key", ["values", "items", "keys", "get", "copy", "update", "pop"])
    def test_keys_shadowing_dict_methods(self, key):
        store = VariableStore()
        store.insert("config", {key: "v"})
        store.insert(f"config.{key}", "v")
        assert render_template(f"{{{{ config.{key} }}}}", store) == "v"

    @pytest.mark.unit
    def test_dict_methods_without_matching_keys(self):
        store = VariableStore()
        store.insert("tags", {"env": "prod", "team": "core"})
        template = "{% for k, v in tags.items() %}{{ k }}={{ v }};{% endfor %}"
        assert render_template(template, store) == "env=prod;team=core;"

    @pytest.mark.unit
    def test_negative_index_and_length(self, processor):
        assert processor.render("{{ resources[-1].name }}") == "cache"
        assert processor.render("{{ resources | length }}") == "2"
        assert processor.render("{{ resources | map(attribute='name') | join(',') }}") == "db,cache"

    @pytest.mark.unit
    def test_lookup_returns_navigable_values(self, processor):
        assert processor.render('{{ lookup("resources[0]").cloud_provider.name }}') == "aws"
        assert processor.render('[{{ lookup("nope") }}]') == "[]"

    @pytest.mark.unit
    def test_namespace_is_empty_for_helpers(self, processor):
        rendered = processor.render("[{{ uppercase(blueprint) }}][{{ blueprint | default('x') }}]")
        assert rendered == "[][x]"

    @pytest.mark.unit
    def test_composites_through_helpers(self, processor):
        assert processor.render("{{ uppercase(resources[1].configuration) }}") == '{"NODES":2}'


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------


class TestControlFlow:
    @pytest.mark.unit
    def test_conditional(self, processor):
        template = "{% if blueprint.description %}yes{% else %}no{% endif %}"
        assert processor.render(template) == "yes"

    @pytest.mark.unit
    def test_conditional_on_missing_value(self, processor):
        assert processor.render("{% if nothing %}x{% else %}y{% endif %}") == "y"

    @pytest.mark.unit
    def test_iteration_with_index(self, processor):
        template = "{% for r in resources %}{{ loop.index0 }}:{{ r.name }} {% endfor %}"
        assert processor.render(template) == "0:db 1:cache "

    @pytest.mark.unit
    def test_iteration_over_missing_value(self, processor):
        assert processor.render("{% for x in nothing %}{{ x }}{% endfor %}done") == "done"

    @pytest.mark.unit
    def test_block_lines_are_trimmed(self, processor):
        template = (
            "providers:\n"
            "{% for p in supported_cloud_providers %}\n"
            "  - {{ p.name }}\n"
            "{% endfor %}\n"
        )
        assert processor.render(template) == "providers:\n  - aws\n  - azure\n"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "template,expected",
        [
            ("{{ uppercase(blueprint.name) }}", "WEB-APP"),
            ("{{ lowercase('MiXeD') }}", "mixed"),
            ("{{ capitalize('hello World') }}", "Hello World"),
            ("{{ trim('  padded  ') }}", "padded"),
            ("{{ replace(blueprint.name, '-', '_') }}", "web_app"),
            ("{{ default(missing, 'fallback') }}", "fallback"),
            ("{{ default('', 'fallback') }}", "fallback"),
            ("{{ default(blueprint.name, 'fallback') }}", "web-app"),
        ],
    )
    def test_helper_calls(self, processor, template, expected):
        assert processor.render(template) == expected

    @pytest.mark.unit
    def test_helpers_nest(self, processor):
        assert processor.render("{{ uppercase(replace(blueprint.name, '-', '_')) }}") == "WEB_APP"

    @pytest.mark.unit
    def test_helpers_as_filters(self, processor):
        assert processor.render("{{ blueprint.name | replace('-', '_') | uppercase }}") == "WEB_APP"
        assert processor.render("{{ missing | default('n/a') }}") == "n/a"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.unit
    def test_syntax_error_reports_line(self, processor):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            processor.render("ok\n{{ a b }}\nok\n")
        error = exc_info.value
        assert error.line == 2
        assert error.source_line == "{{ a b }}"
        assert str(error).startswith("Template syntax error at line 2:")

    @pytest.mark.unit
    def test_unbalanced_block(self, processor):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            processor.render("a\nb\n{% endif %}\n")
        assert exc_info.value.line == 3

    @pytest.mark.unit
    def test_unknown_helper(self, processor):
        with pytest.raises(VariableNotFoundError) as exc_info:
            processor.render("{{ missing.deep() }}")
        assert exc_info.value.variable == "missing.deep"

    @pytest.mark.unit
    def test_undefined_in_arithmetic_suggests_similar(self, processor):
        with pytest.raises(VariableNotFoundError) as exc_info:
            processor.render("{{ blueprint_nme + 1 }}")
        error = exc_info.value
        assert error.variable == "blueprint_nme"
        assert "blueprint.name" in error.suggestions
        assert error.suggestions == sorted(error.suggestions)
        assert "Did you mean" in str(error)

    @pytest.mark.unit
    def test_generic_failure(self, processor):
        with pytest.raises(ProcessingError) as exc_info:
            processor.render("{{ blueprint.name + 1 }}")
        assert not isinstance(exc_info.value, VariableNotFoundError)
        assert "Template processing failed" in str(exc_info.value)
        assert "Troubleshooting tips" in str(exc_info.value)

    @pytest.mark.unit
    def test_all_errors_are_render_errors(self, processor):
        for template in ("{{ a b }}", "{{ nohelper() }}", "{{ blueprint.name + 1 }}"):
            with pytest.raises(RenderError):
                processor.render(template)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestProcessFile:
    @pytest.mark.unit
    def test_renders_terraform(self, processor, template_dir: Path):
        processed = processor.process_file(_template(template_dir, "main.tf"))
        assert processed.relative_path == Path("main.tf")
        assert 'resource "aws_db_instance" "db" {' in processed.content
        assert 'engine         = "postgres"' in processed.content

    @pytest.mark.unit
    def test_renders_multi_document_yaml(self, processor, template_dir: Path):
        processed = processor.process_file(_template(template_dir, "deployment.yaml"))
        assert "name: web-app-config" in processed.content
        assert '  db: "Relational Database Server"\n' in processed.content
        assert '  cache: "Cache"\n' in processed.content

    @pytest.mark.unit
    def test_invalid_yaml_output(self, processor, make_tree):
        root = make_tree({"bad.yaml": "key: {{ blueprint.name }}: bad\n"})
        with pytest.raises(OutputValidationError) as exc_info:
            processor.process_file(_template(root, "bad.yaml"))
        error = exc_info.value
        assert error.file == Path("bad.yaml")
        assert error.document_index is None
        assert "YAML validation failed for 'bad.yaml'" in str(error)

    @pytest.mark.unit
    def test_invalid_yaml_names_document(self, processor, make_tree):
        root = make_tree({"multi.yml": "a: 1\n---\nkey: {{ blueprint.name }}: bad\n"})
        with pytest.raises(OutputValidationError) as exc_info:
            processor.process_file(_template(root, "multi.yml"))
        assert exc_info.value.document_index == 2
        assert "(document 2)" in str(exc_info.value)

    @pytest.mark.unit
    def test_empty_yaml_output_is_valid(self, processor, make_tree):
        root = make_tree({"empty.yaml": "{% if false %}a: 1{% endif %}"})
        processed = processor.process_file(_template(root, "empty.yaml"))
        assert processed.content.strip() == ""

    @pytest.mark.unit
    def test_non_yaml_output_is_not_validated(self, processor, make_tree):
        root = make_tree({"notes.tf": "key: value: bad\n"})
        processed = processor.process_file(_template(root, "notes.tf"))
        assert processed.content == "key: value: bad\n"

    @pytest.mark.unit
    def test_unreadable_template(self, processor, tmp_path: Path):
        template = TemplateFile(
            path=tmp_path / "gone.tf",
            relative_path=Path("gone.tf"),
            kind=TemplateKind.TERRAFORM,
        )
        with pytest.raises(ProcessingError, match="Failed to read template file"):
            processor.process_file(template)

    @pytest.mark.unit
    def test_process_all_stops_at_first_failure(self, processor, make_tree):
        root = make_tree({"a.tf": "{{ blueprint.name }}", "b.tf": "{{ a b }}"})
        with pytest.raises(TemplateSyntaxError):
            processor.process_all(discover_templates(root))
