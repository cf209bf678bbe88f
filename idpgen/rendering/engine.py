"""Template rendering engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterator, Optional

import jinja2
from jinja2 import ChainableUndefined, Environment

from ..context.store import Field, Index, Segment, VariableStore, format_path, parse_path
from ..core.errors import (
    ProcessingError,
    RenderError,
    TemplateSyntaxError,
    VariableNotFoundError,
)
from ..core.models import ProcessedFile, TemplateFile, TemplateKind
from .diagnostics import suggest_similar_variables
from .helpers import HELPERS, StoreProxy, to_text
from .validation import validate_yaml

logger = logging.getLogger(__name__)

SYNTAX_GUIDANCE = (
    "Common template syntax issues:\n"
    "- Unclosed braces: {{ variable (missing closing }})\n"
    "- Invalid helper call: {{ helper(arg1, arg2) }}\n"
    "- Mismatched blocks: {% if %} without {% endif %}, {% for %} without {% endfor %}"
)

GENERIC_GUIDANCE = (
    "Troubleshooting tips:\n"
    "- Verify all {{ variable }} placeholders have corresponding values\n"
    "- Check that nested access paths are correct (e.g., {{ blueprint.name }})\n"
    "- Ensure array indices are valid (e.g., {{ resources[0].name }})\n"
    "- Use the 'list-variables' command to see available variables"
)


class UnresolvedReferenceError(jinja2.UndefinedError):
    """An undefined value was used in a way that needs a real value."""

    def __init__(self, message: Optional[str], variable_name: Optional[str]) -> None:
        super().__init__(message)
        self.variable_name = variable_name


class PermissiveUndefined(ChainableUndefined):
    """Renders as an empty string and tolerates attribute chains.

    Calling it (an unknown helper) or using it in arithmetic raises
    :class:`UnresolvedReferenceError` carrying the unresolved name.
    """

    __slots__ = ()

    def _child(self, name: str) -> "PermissiveUndefined":
        base = self._undefined_name
        return type(self)(name=f"{base}.{name}" if base else name)

    def __getattr__(self, name: str) -> Any:
        if name[:2] == "__":
            raise AttributeError(name)
        return self._child(name)

    def __getitem__(self, key: Any) -> "PermissiveUndefined":
        if isinstance(key, int):
            base = self._undefined_name or ""
            return type(self)(name=f"{base}[{key}]")
        return self._child(str(key))

    def _raise_unresolved(self, *args: Any, **kwargs: Any) -> Any:
        raise UnresolvedReferenceError(self._undefined_message, self._undefined_name)

    __call__ = _raise_unresolved
    __add__ = __radd__ = __sub__ = __rsub__ = _raise_unresolved
    __mul__ = __rmul__ = __truediv__ = __rtruediv__ = _raise_unresolved
    __floordiv__ = __rfloordiv__ = __mod__ = __rmod__ = _raise_unresolved
    __pow__ = __rpow__ = __pos__ = __neg__ = _raise_unresolved
    __lt__ = __le__ = __gt__ = __ge__ = _raise_unresolved


_MISSING = object()


class StoreNode(StoreProxy):
    """A composite value, or a prefix with stored descendants, at ``segments``.

    Every attribute or index step builds the child path and resolves it
    through the store again, so flat keys (overrides included) take
    precedence over the contents of the enclosing object.
    """

    __slots__ = ("_view", "segments", "_value")

    MAPPING_METHODS = frozenset({"items", "keys", "values"})

    def __init__(
        self, view: "StoreView", segments: tuple[Segment, ...], value: Any = _MISSING
    ) -> None:
        self._view = view
        self.segments = segments
        self._value = value

    @property
    def path(self) -> str:
        return format_path(self.segments)

    @property
    def is_namespace(self) -> bool:
        return self._value is _MISSING

    def unwrap(self) -> Any:
        return None if self.is_namespace else self._value

    def _segment(self, key: Any) -> Optional[Segment]:
        if isinstance(key, int) and not isinstance(key, bool):
            if isinstance(self._value, list) and key < 0:
                key += len(self._value)
            return Index(key) if key >= 0 else None
        if isinstance(self._value, list) and isinstance(key, str) and key.isdigit():
            return Index(int(key))
        return Field(str(key))

    def child_path(self, key: Any) -> str:
        if isinstance(key, int) and not isinstance(key, bool):
            return f"{self.path}[{key}]"
        return f"{self.path}.{key}"

    def child(self, key: Any) -> Any:
        """Resolve ``key`` below this node; KeyError on a miss."""
        segment = self._segment(key)
        if segment is None:
            raise KeyError(key)
        return self._view.lookup(self.segments + (segment,))

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, slice):
            return [self.child(index) for index in range(len(self))[key]]
        return self.child(key)

    def __iter__(self) -> Iterator[Any]:
        if isinstance(self._value, list):
            return (self.child(index) for index in range(len(self._value)))
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._value) if isinstance(self._value, (dict, list)) else 0

    def __bool__(self) -> bool:
        return self.is_namespace or bool(self._value)

    def __contains__(self, item: Any) -> bool:
        return isinstance(self._value, (dict, list)) and item in self._value

    def keys(self) -> list[str]:
        return list(self._value) if isinstance(self._value, dict) else []

    def values(self) -> list[Any]:
        return [self.child(key) for key in self.keys()]

    def items(self) -> list[tuple[str, Any]]:
        return [(key, self.child(key)) for key in self.keys()]

    def __str__(self) -> str:
        return to_text(self)

    def __repr__(self) -> str:
        return f"<StoreNode {self.path}>"


class StoreView:
    """Exposes a frozen store as the root template context."""

    def __init__(self, store: VariableStore) -> None:
        self.store = store
        self.namespaces: set[str] = set()
        roots: set[str] = set()

        for path in store.paths():
            segments = parse_path(path)
            if segments is None:
                continue
            roots.add(segments[0].name)  # type: ignore[union-attr]
            for end in range(1, len(segments)):
                self.namespaces.add(format_path(segments[:end]))

        self.context: dict[str, Any] = {}
        for root in sorted(roots):
            try:
                self.context[root] = self.lookup((Field(root),))
            except KeyError:
                continue

    def lookup(self, segments: tuple[Segment, ...]) -> Any:
        """Resolve ``segments``, wrapping composites and namespaces in a StoreNode."""
        try:
            value = self.store.resolve_segments(segments)
        except KeyError:
            if format_path(segments) in self.namespaces:
                return StoreNode(self, segments)
            raise
        if isinstance(value, (dict, list)):
            return StoreNode(self, segments, value)
        return value

    def lookup_path(self, path: str) -> Any:
        """``lookup()`` template global: any raw store path, None on a miss."""
        segments = parse_path(path)
        try:
            if segments is None:
                return self.store.resolve(path)
            return self.lookup(segments)
        except KeyError:
            return None


class StoreEnvironment(Environment):
    """Environment whose attribute lookup prefers data over Python attributes.

    ``config.values`` must resolve the ``values`` key, not ``dict.values``.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, StoreNode):
            return self._step(obj, attribute, allow_methods=True)
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (TypeError, LookupError):
                pass
        return super().getattr(obj, attribute)

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, StoreNode) and not isinstance(argument, slice):
            return self._step(obj, argument, allow_methods=False)
        return super().getitem(obj, argument)

    def _step(self, node: StoreNode, key: Any, allow_methods: bool) -> Any:
        try:
            return node.child(key)
        except KeyError:
            if allow_methods and key in StoreNode.MAPPING_METHODS:
                return getattr(node, key)
            return self.undefined(obj=node, name=node.child_path(key))


def _finalize(value: Any) -> Any:
    if value is None or isinstance(value, (StoreProxy, bool, dict, list)):
        return to_text(value)
    return value


def create_environment(view: StoreView) -> Environment:
    """Create the Jinja2 environment used for infrastructure templates."""
    env = StoreEnvironment(
        undefined=PermissiveUndefined,
        finalize=_finalize,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.globals.update(HELPERS)
    env.filters.update(HELPERS)
    env.globals["lookup"] = view.lookup_path
    return env


def _template_line(template_content: str, line_num: int) -> str:
    lines = template_content.splitlines()
    if 1 <= line_num <= len(lines):
        return lines[line_num - 1]
    return "<line not found>"


class TemplateProcessor:
    """Renders templates against a variable store.

    The store is frozen on construction; it must not change while files are
    being rendered.
    """

    def __init__(self, store: VariableStore) -> None:
        store.freeze()
        self.store = store
        self._view = StoreView(store)
        self._env = create_environment(self._view)

    def render(self, template_content: str) -> str:
        """Render a template string.

        Unresolved variables render as empty strings.

        Raises:
            TemplateSyntaxError: the template does not parse
            VariableNotFoundError: an unresolved name was called or used in
                an expression that needs a value
            ProcessingError: any other rendering failure
        """
        try:
            template = self._env.from_string(template_content)
            return template.render(self._view.context)
        except (jinja2.TemplateError, TypeError, ValueError, ArithmeticError) as e:
            raise self._enhance_error(e, template_content) from e

    def _enhance_error(self, error: Exception, template_content: str) -> RenderError:
        """Classify a raw rendering error using its structured attributes."""
        message = getattr(error, "message", None) or str(error)

        line_num = getattr(error, "lineno", None)
        if line_num:
            return TemplateSyntaxError(
                line=line_num,
                message=(
                    f"{message}\n\n{SYNTAX_GUIDANCE}\n\n"
                    f"Template line {line_num}:\n"
                    f"{_template_line(template_content, line_num)}"
                ),
                source_line=_template_line(template_content, line_num),
            )

        variable = getattr(error, "variable_name", None)
        if variable:
            suggestion, suggestions = suggest_similar_variables(
                variable, self.store.paths()
            )
            return VariableNotFoundError(variable, suggestion, suggestions)

        return ProcessingError(
            f"Template processing failed: {message}\n\n{GENERIC_GUIDANCE}"
        )

    def process_file(self, template_file: TemplateFile) -> ProcessedFile:
        """Read, render and (for YAML) validate one template file."""
        logger.debug(f"Rendering template: {template_file.relative_path}")

        try:
            template_content = template_file.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ProcessingError(
                f"Failed to read template file '{template_file.path}': {e}"
            ) from e

        content = self.render(template_content)

        if template_file.kind is TemplateKind.YAML:
            validate_yaml(content, template_file.relative_path)

        return ProcessedFile(relative_path=template_file.relative_path, content=content)

    def process_all(self, template_files: list[TemplateFile]) -> list[ProcessedFile]:
        """Process files in order, stopping at the first failure."""
        return [self.process_file(template_file) for template_file in template_files]


def render_template(template_content: str, store: VariableStore) -> str:
    """Render a single template string against ``store``."""
    return TemplateProcessor(store).render(template_content)
