"""Recognise `require(...)` path expressions in Luau source."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .lexer import NAME, STRING, Token, string_value

# Instance methods that index a child by name, e.g. `script:WaitForChild("Foo")`.
_CHILD_METHODS = frozenset({"WaitForChild", "FindFirstChild", "GetService"})


def parse_require(tokens: Sequence[Token], index: int) -> Optional[Tuple[List[str], int]]:
    """Decompose `require(<path>)` starting at ``tokens[index]``.

    Returns the path components and the index just past the closing paren.
    Only instance paths built from `.Name`, `["Name"]` and child-lookup method
    calls are understood; anything else yields None.
    """
    count = len(tokens)
    if (
        index + 2 >= count
        or not tokens[index].is_name("require")
        or not tokens[index + 1].is_symbol("(")
        or tokens[index + 2].kind != NAME
    ):
        return None

    components = [tokens[index + 2].value]
    cursor = index + 3
    while cursor < count:
        token = tokens[cursor]
        if token.is_symbol(")"):
            return components, cursor + 1
        if token.is_symbol(".") and _kind_at(tokens, cursor + 1) == NAME:
            components.append(tokens[cursor + 1].value)
            cursor += 2
        elif (
            token.is_symbol("[")
            and _kind_at(tokens, cursor + 1) == STRING
            and cursor + 2 < count
            and tokens[cursor + 2].is_symbol("]")
        ):
            components.append(string_value(tokens[cursor + 1].value))
            cursor += 3
        elif (
            token.is_symbol(":")
            and cursor + 4 < count
            and tokens[cursor + 1].is_name(*_CHILD_METHODS)
            and tokens[cursor + 2].is_symbol("(")
            and tokens[cursor + 3].kind == STRING
            and tokens[cursor + 4].is_symbol(")")
        ):
            components.append(string_value(tokens[cursor + 3].value))
            cursor += 5
        else:
            return None
    return None


def find_require_bindings(tokens: Sequence[Token]) -> Dict[str, List[str]]:
    """Map locals bound as `local Name = require(<path>)` to their require paths."""
    bindings: Dict[str, List[str]] = {}
    for index, token in enumerate(tokens):
        if not token.is_name("local") or index + 3 >= len(tokens):
            continue
        name, equals = tokens[index + 1], tokens[index + 2]
        if name.kind != NAME or not equals.is_symbol("="):
            continue
        parsed = parse_require(tokens, index + 3)
        if parsed is not None:
            bindings.setdefault(name.value, parsed[0])
    return bindings


def find_forwarding_require(tokens: Sequence[Token]) -> Optional[List[str]]:
    """Return the path of a trailing `return require(<path>)`, if the module ends with one."""
    end = len(tokens)
    if end and tokens[end - 1].is_symbol(";"):
        end -= 1
    for index in range(end - 1, -1, -1):
        if tokens[index].is_name("return"):
            parsed = parse_require(tokens, index + 1)
            if parsed is not None and parsed[1] == end:
                return parsed[0]
            return None
    return None


def _kind_at(tokens: Sequence[Token], index: int) -> Optional[str]:
    return tokens[index].kind if index < len(tokens) else None


__all__ = ["find_forwarding_require", "find_require_bindings", "parse_require"]
