"""Path-addressable variable store.

Variables live in a flat mapping keyed by path strings such as
``blueprint.name`` or ``resources[0].cloud_provider.name``. Composite values
are stored alongside each of their leaves (dual indexing), so a template can
address either the whole subtree or any leaf directly.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

from ..core.errors import StoreFrozenError

_PART_PATTERN = re.compile(r"^(?P<name>[^\[\]]+)(?P<indexes>(?:\[\d+\])*)$")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


@dataclass(frozen=True)
class Field:
    name: str


@dataclass(frozen=True)
class Index:
    position: int


Segment = Union[Field, Index]


def parse_path(path: str) -> Optional[tuple[Segment, ...]]:
    """Parse ``a.b[0].c`` into ``(Field(a), Field(b), Index(0), Field(c))``.

    Returns None for malformed paths (empty parts, unbalanced or non-numeric
    brackets) so lookups can treat them as misses.
    """
    if not path:
        return None

    segments: list[Segment] = []
    for part in path.split("."):
        match = _PART_PATTERN.match(part)
        if not match:
            return None
        segments.append(Field(match.group("name")))
        segments.extend(
            Index(int(raw)) for raw in _INDEX_PATTERN.findall(match.group("indexes"))
        )
    return tuple(segments)


def format_path(segments: tuple[Segment, ...]) -> str:
    """Inverse of :func:`parse_path`."""
    parts: list[str] = []
    for segment in segments:
        if isinstance(segment, Index):
            parts.append(f"[{segment.position}]")
        elif parts:
            parts.append(f".{segment.name}")
        else:
            parts.append(segment.name)
    return "".join(parts)


def _step(current: Any, segment: Segment) -> Any:
    """Navigate one segment into a composite value, raising KeyError on a miss."""
    if isinstance(segment, Index):
        if isinstance(current, list) and segment.position < len(current):
            return current[segment.position]
        raise KeyError(segment.position)

    if isinstance(current, dict):
        return current[segment.name]
    # ``resources.0.name`` style access into lists
    if isinstance(current, list) and segment.name.isdigit():
        return _step(current, Index(int(segment.name)))
    raise KeyError(segment.name)


class VariableStore:
    """Flat path -> value mapping with structural navigation."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._frozen = False

    def insert(self, path: str, value: Any) -> None:
        """Insert or overwrite ``path``."""
        if self._frozen:
            raise StoreFrozenError(f"Cannot insert '{path}': variable store is frozen")
        self._values[path] = copy.deepcopy(value)

    def resolve(self, path: str) -> Any:
        """Return the value at ``path`` or raise KeyError.

        Tries the exact key first, then navigates from the longest stored
        ancestor of the parsed path.
        """
        if path in self._values:
            return self._values[path]

        segments = parse_path(path)
        if segments is None:
            raise KeyError(path)
        return self.resolve_segments(segments)

    def resolve_segments(self, segments: tuple[Segment, ...]) -> Any:
        for split in range(len(segments), 0, -1):
            key = format_path(segments[:split])
            if key not in self._values:
                continue
            current = self._values[key]
            for segment in segments[split:]:
                current = _step(current, segment)
            return current
        raise KeyError(format_path(segments))

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at ``path``; ``default`` when it cannot be resolved."""
        try:
            return self.resolve(path)
        except KeyError:
            return default

    def list_all(self) -> list[tuple[str, Any]]:
        """All (path, value) pairs sorted by path."""
        return sorted(self._values.items(), key=lambda item: item[0])

    def paths(self) -> list[str]:
        return [path for path, _ in self.list_all()]

    def freeze(self) -> None:
        """Make the store read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, path: object) -> bool:
        return path in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths())
