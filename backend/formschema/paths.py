"""Field paths.

A FieldPath is an ordered tuple of segments: field names, concrete list
indices, or the INDEX placeholder standing for "every element". Rendering
to text happens only at the edges (rule keys, error payloads).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, Union


class _IndexPlaceholder:
    __slots__ = ()

    def __repr__(self) -> str:
        return "INDEX"

    def __reduce__(self):
        return "INDEX"


INDEX = _IndexPlaceholder()

Segment = Union[str, int, _IndexPlaceholder]

_DELIMITERS = frozenset('.[]"')


def _render_name(name: str, first: bool) -> str:
    if not name or any(ch in _DELIMITERS for ch in name):
        return f"[{json.dumps(name)}]"
    return name if first else f".{name}"


@dataclass(frozen=True, slots=True)
class FieldPath:
    segments: tuple[Segment, ...] = ()

    @classmethod
    def root(cls) -> FieldPath:
        return cls(())

    @classmethod
    def of(cls, *segments: Segment) -> FieldPath:
        return cls(tuple(segments))

    @property
    def is_root(self) -> bool:
        return not self.segments

    def child(self, name: str) -> FieldPath:
        return FieldPath((*self.segments, name))

    def item(self) -> FieldPath:
        """Path of every element of the array at this path."""
        return FieldPath((*self.segments, INDEX))

    def at(self, index: int) -> FieldPath:
        """Path of one concrete element."""
        return FieldPath((*self.segments, index))

    def extend(self, segments: Iterable[Segment]) -> FieldPath:
        return FieldPath((*self.segments, *segments))

    @property
    def label(self) -> str:
        """Last named segment, used in human-readable messages."""
        for segment in reversed(self.segments):
            if isinstance(segment, str):
                return segment
        return "value"

    def template(self) -> FieldPath:
        """Replace concrete indices with the INDEX placeholder."""
        return FieldPath(tuple(INDEX if isinstance(s, int) else s for s in self.segments))

    def matches(self, concrete: FieldPath) -> bool:
        """True if `concrete` is an instance of this (possibly templated) path."""
        if len(concrete.segments) != len(self.segments):
            return False
        for pattern, segment in zip(self.segments, concrete.segments):
            if pattern is INDEX:
                if not isinstance(segment, int):
                    return False
            elif pattern != segment:
                return False
        return True

    def __str__(self) -> str:
        if not self.segments:
            return "$"
        parts = []
        for position, segment in enumerate(self.segments):
            if segment is INDEX:
                parts.append("[]")
            elif isinstance(segment, int):
                parts.append(f"[{segment}]")
            else:
                parts.append(_render_name(segment, position == 0))
        return "".join(parts)
