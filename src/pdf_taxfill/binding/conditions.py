"""
Condition Evaluator
====================
Decides whether a field is active for a data document.

Grammar: ``<path> <operator> <literal>`` where the operator is one of
``===``, ``==``, ``!==``, ``!=``. Strict and loose forms share the same
strict-equality semantics. Literals are ``true``, ``false``, ``null``, a
decimal number, or any other token taken as a bare string.

Conditions are compiled once (:func:`parse_condition`) and evaluated per
render. A condition that does not match the grammar is always true, so a
field is never silently dropped because of a typo in its condition.
Compound expressions (``&&``, ``||``) are unsupported and also compile to
an always-true condition, flagged so callers can report it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .paths import FieldPath, JsonValue, PathSyntaxError, parse_path, resolve

_EXPRESSION_RE = re.compile(r"^(.+?)\s*(===|!==|==|!=)\s*(.+)$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_COMPOUND_TOKENS = ("&&", "||")


class Operator(str, Enum):
    EQUAL = "=="
    NOT_EQUAL = "!="

    @classmethod
    def from_token(cls, token: str) -> "Operator":
        return cls.EQUAL if token in ("===", "==") else cls.NOT_EQUAL


@dataclass(frozen=True)
class PathOperand:
    path: FieldPath


@dataclass(frozen=True)
class LiteralOperand:
    value: JsonValue


@dataclass(frozen=True)
class Condition:
    """
    A compiled condition.

    ``left`` is None for conditions that always hold (malformed or
    unsupported source text); ``unsupported`` carries the reason for the
    latter.
    """
    source: str
    left: PathOperand | None = None
    operator: Operator = Operator.EQUAL
    right: LiteralOperand | None = None
    unsupported: str | None = None

    @property
    def always_true(self) -> bool:
        return self.left is None

    def evaluate(self, data: JsonValue) -> bool:
        if self.left is None or self.right is None:
            return True
        actual = resolve(data, self.left.path)
        equal = strict_equals(actual, self.right.value)
        return equal if self.operator is Operator.EQUAL else not equal


def parse_condition(text: str | None) -> Condition | None:
    """Compile a condition expression. Empty input means no condition."""
    if text is None or not text.strip():
        return None

    if any(token in text for token in _COMPOUND_TOKENS):
        return Condition(
            source=text,
            unsupported="compound boolean expressions are not supported",
        )

    match = _EXPRESSION_RE.match(text.strip())
    if match is None:
        return Condition(source=text)

    path_text, operator, literal = match.groups()
    try:
        path = parse_path(path_text.strip())
    except PathSyntaxError as exc:
        return Condition(source=text, unsupported=str(exc))

    return Condition(
        source=text,
        left=PathOperand(path),
        operator=Operator.from_token(operator),
        right=LiteralOperand(parse_literal(literal.strip())),
    )


def parse_literal(token: str) -> JsonValue:
    if token == "true":
        return True
    if token == "false":
        return False
    if token == "null":
        return None
    if _NUMBER_RE.match(token):
        return float(token)
    return token


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion: ``True`` never equals ``1``, ``"1"`` never equals ``1``."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def evaluate_condition(condition: Condition | str | None, data: JsonValue) -> bool:
    """Evaluate a compiled or raw condition; no condition means active."""
    if isinstance(condition, str):
        condition = parse_condition(condition)
    if condition is None:
        return True
    return condition.evaluate(data)
