"""Template helper registry.

Helpers are pure functions over already-resolved arguments that return a
string. They are exposed to templates both as functions
(``{{ uppercase(resources[0].name) }}``) and as filters
(``{{ resources[0].name | uppercase }}``), so they compose by nesting.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from jinja2 import Undefined

Helper = Callable[..., str]

HELPERS: dict[str, Helper] = {}


def helper(name: str) -> Callable[[Helper], Helper]:
    """Register a helper under ``name``."""

    def decorator(func: Helper) -> Helper:
        HELPERS[name] = func
        return func

    return decorator


class StoreProxy:
    """Template-side handle on a store path.

    ``unwrap`` returns the plain stored value, or None for a path that only
    has stored descendants.
    """

    __slots__ = ()

    def unwrap(self) -> Any:
        raise NotImplementedError


def is_absent(value: Any) -> bool:
    if isinstance(value, StoreProxy):
        value = value.unwrap()
    return value is None or isinstance(value, Undefined)


def to_text(value: Any) -> str:
    """Render a store value as template text."""
    if isinstance(value, StoreProxy):
        value = value.unwrap()
    if is_absent(value):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


@helper("default")
def default(value: Any, fallback: Any) -> str:
    """``value`` unless it is absent or an empty string."""
    if is_absent(value) or value == "":
        return to_text(fallback)
    return to_text(value)


@helper("uppercase")
def uppercase(text: Any) -> str:
    return to_text(text).upper()


@helper("lowercase")
def lowercase(text: Any) -> str:
    return to_text(text).lower()


@helper("capitalize")
def capitalize(text: Any) -> str:
    """Uppercase the first character, leaving the rest untouched."""
    value = to_text(text)
    return value[:1].upper() + value[1:]


@helper("trim")
def trim(text: Any) -> str:
    return to_text(text).strip()


@helper("replace")
def replace(text: Any, old: Any, new: Any) -> str:
    return to_text(text).replace(to_text(old), to_text(new))
