"""Parser for URI templates as described in RFC 6570.

Each ``parse_*`` function takes the text to parse and returns a tuple of
``(remaining_text, value)``. On failure a :class:`ParseError` is raised.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum
from typing import Union

_DIGITS = frozenset(string.digits)
_HEX_DIGITS = frozenset(string.hexdigits)
_VARCHARS = frozenset(string.ascii_letters + string.digits + "_.")
_MAX_PREFIX = 0xFFFF


class ParseError(ValueError):
    """Raised when input does not match the URI template grammar."""


class Operator(Enum):
    """The operator at the start of an expression."""

    SIMPLE = ""
    RESERVED = "+"
    FRAGMENT = "#"
    LABEL = "."
    PATH_SEGMENT = "/"
    PATH_PARAMETER = ";"
    QUERY_EXPANSION = "?"
    QUERY_CONTINUATION = "&"


_OPERATOR_BY_PREFIX = {op.value: op for op in Operator if op.value}


@dataclass(frozen=True, order=True)
class Modifier:
    """A variable modifier: a prefix length, an explode marker, or neither."""

    prefix: int | None = None
    explode: bool = False


@dataclass(frozen=True, order=True)
class VarSpec:
    """A variable name with its modifier."""

    var_name: str
    modifier: Modifier = Modifier()


@dataclass(frozen=True)
class Expression:
    """A braced expression: an operator and one or more variables."""

    operator: Operator
    var_spec_list: tuple[VarSpec, ...]


@dataclass(frozen=True, order=True)
class Literal:
    """Literal text between expressions."""

    text: str


AstNode = Union[Literal, Expression]


def _leading(text: str, allowed: frozenset[str]) -> int:
    """Return how many leading characters of ``text`` are in ``allowed``."""
    count = 0
    for char in text:
        if char not in allowed:
            break
        count += 1
    return count


def parse_operator(text: str) -> tuple[str, Operator]:
    """Parse an optional operator character, defaulting to ``Operator.SIMPLE``."""
    if text and text[0] in _OPERATOR_BY_PREFIX:
        return text[1:], _OPERATOR_BY_PREFIX[text[0]]
    return text, Operator.SIMPLE


def _parse_prefix(text: str) -> tuple[str, Modifier]:
    if not text.startswith(":"):
        raise ParseError(f"expected ':' at {text!r}")
    count = _leading(text[1:], _DIGITS)
    if count == 0:
        raise ParseError(f"expected digits after ':' at {text!r}")
    value = int(text[1 : 1 + count])
    if value > _MAX_PREFIX:
        raise ParseError(f"prefix length {value} is out of range")
    return text[1 + count :], Modifier(prefix=value)


def parse_modifier(text: str) -> tuple[str, Modifier]:
    """Parse an optional ``:N`` prefix or ``*`` explode modifier."""
    try:
        return _parse_prefix(text)
    except ParseError:
        pass
    if text.startswith("*"):
        return text[1:], Modifier(explode=True)
    return text, Modifier()


def parse_percent_encoded(text: str) -> tuple[str, str]:
    """Parse a ``%`` followed by exactly two hexadecimal digits."""
    if not text.startswith("%"):
        raise ParseError(f"expected '%' at {text!r}")
    if _leading(text[1:3], _HEX_DIGITS) != 2:
        raise ParseError(f"expected two hex digits after '%' at {text!r}")
    return text[3:], text[:3]


def parse_varchar(text: str) -> tuple[str, str]:
    """Parse a run of plain variable characters, or one percent-encoded byte."""
    count = _leading(text, _VARCHARS)
    if count:
        return text[count:], text[:count]
    return parse_percent_encoded(text)


def parse_var_name(text: str) -> tuple[str, str]:
    """Parse a variable name made of one or more varchars."""
    rest = text
    while True:
        try:
            rest, _ = parse_varchar(rest)
        except ParseError:
            break
    consumed = len(text) - len(rest)
    if consumed == 0:
        raise ParseError(f"expected a variable name at {text!r}")
    return rest, text[:consumed]


def parse_var_spec(text: str) -> tuple[str, VarSpec]:
    """Parse a variable name followed by an optional modifier."""
    rest, name = parse_var_name(text)
    rest, modifier = parse_modifier(rest)
    return rest, VarSpec(name, modifier)


def parse_expression(text: str) -> tuple[str, Expression]:
    """Parse a braced expression such as ``{+foo,bar:3}``."""
    if not text.startswith("{"):
        raise ParseError(f"expected '{{' at {text!r}")
    rest, operator = parse_operator(text[1:])
    rest, first = parse_var_spec(rest)
    specs = [first]
    while rest.startswith(","):
        try:
            after, spec = parse_var_spec(rest[1:])
        except ParseError:
            break
        specs.append(spec)
        rest = after
    if not rest.startswith("}"):
        raise ParseError(f"expected '}}' at {rest!r}")
    return rest[1:], Expression(operator, tuple(specs))


def parse_node(text: str) -> tuple[str, AstNode]:
    """Parse either a literal run of text or an expression."""
    if text and text[0] != "{":
        end = text.find("{")
        if end == -1:
            end = len(text)
        return text[end:], Literal(text[:end])
    return parse_expression(text)


def ast_nodes(text: str) -> list[AstNode]:
    """Parse a whole template into its nodes, raising ParseError if any input is left."""
    nodes: list[AstNode] = []
    rest = text
    while rest:
        try:
            rest, node = parse_node(rest)
        except ParseError as exc:
            offset = len(text) - len(rest)
            raise ParseError(f"invalid URI template {text!r} at offset {offset}") from exc
        nodes.append(node)
    return nodes