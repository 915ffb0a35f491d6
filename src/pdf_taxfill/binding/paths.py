"""
Path Resolver
==============
Dot-notation lookups into arbitrary nested data documents.

Grammar::

    taxpayer.firstName          key lookups
    income.w2[0].wages          literal index into a list
    income.w2.0.wages           same, dotted form
    income.w2[*].wages          wildcard: map the rest over every element
    dependents[*]               wildcard without remainder: the list itself

Only one ``[*]`` per path is supported; :func:`parse_path` rejects more.
Resolution never raises for missing or mistyped branches, it returns the
caller's default instead.

Example::

    from pdf_taxfill.binding.paths import parse_path, resolve

    path = parse_path("income.w2[*].wages")
    resolve({"income": {"w2": [{"wages": 1}, {"wages": 2}]}}, path)  # [1, 2]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

# A data document is one of these, recursively.
JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]

WILDCARD = "[*]"

_SEGMENT_RE = re.compile(r"^(?P<key>[^\[\]]*)(?P<brackets>(\[(\d+|\*)\])*)$")
_BRACKET_RE = re.compile(r"\[(\d+|\*)\]")


class PathSyntaxError(ValueError):
    """Raised when a binding path cannot be compiled."""


@dataclass(frozen=True)
class Key:
    """Mapping lookup (also indexes lists when the key is all digits)."""
    name: str


@dataclass(frozen=True)
class Index:
    """Literal list position from ``name[n]``."""
    position: int


@dataclass(frozen=True)
class Wildcard:
    """``[*]`` marker."""


Step = Union[Key, Index, Wildcard]


@dataclass(frozen=True)
class FieldPath:
    """
    A compiled binding path.

    ``prefix`` holds the steps before the wildcard (or the whole path when
    there is none); ``remainder`` the steps mapped over each element.
    """
    source: str
    prefix: tuple[Step, ...]
    remainder: tuple[Step, ...] = ()
    has_wildcard: bool = False

    def __bool__(self) -> bool:
        return bool(self.prefix) or self.has_wildcard

    def __str__(self) -> str:
        return self.source


def parse_path(text: str) -> FieldPath:
    """Compile a dot-notation path string."""
    if text.count(WILDCARD) > 1:
        raise PathSyntaxError(f"Only one '[*]' wildcard is supported per path: {text!r}")

    steps: list[Step] = []
    for segment in text.split(".") if text else []:
        match = _SEGMENT_RE.match(segment)
        if match is None:
            raise PathSyntaxError(f"Malformed path segment {segment!r} in {text!r}")
        if match.group("key"):
            steps.append(Key(match.group("key")))
        for token in _BRACKET_RE.findall(match.group("brackets")):
            steps.append(Wildcard() if token == "*" else Index(int(token)))

    for i, step in enumerate(steps):
        if isinstance(step, Wildcard):
            return FieldPath(
                source=text,
                prefix=tuple(steps[:i]),
                remainder=tuple(steps[i + 1:]),
                has_wildcard=True,
            )
    return FieldPath(source=text, prefix=tuple(steps))


def resolve(data: JsonValue, path: FieldPath | str | None, default: Any = None) -> Any:
    """
    Return the value at ``path`` in ``data`` or ``default``.

    Absent segments, None intermediates, out-of-range indexes and container
    mismatches all short-circuit to ``default``. The data document is never
    modified; wildcard results are new lists.
    """
    if isinstance(path, str):
        path = parse_path(path)
    if not path:
        return default

    if not path.has_wildcard:
        return _walk(data, path.prefix, default)

    sequence = _walk(data, path.prefix, None)
    if not isinstance(sequence, list):
        return default
    if not path.remainder:
        return list(sequence)
    return [_walk(item, path.remainder, None) for item in sequence]


def _walk(value: JsonValue, steps: tuple[Step, ...], default: Any) -> Any:
    for step in steps:
        if value is None:
            return default
        value = _step(value, step)
    return default if value is None else value


def _step(value: JsonValue, step: Step) -> JsonValue:
    if isinstance(value, dict):
        if isinstance(step, Key):
            return value.get(step.name)
        if isinstance(step, Index):
            return value.get(str(step.position))
        return None
    if isinstance(value, list):
        if isinstance(step, Index):
            position = step.position
        elif isinstance(step, Key) and step.name.isdecimal():
            position = int(step.name)
        else:
            return None
        return value[position] if position < len(value) else None
    # Scalars (bool, int, float, str) have no children.
    return None
