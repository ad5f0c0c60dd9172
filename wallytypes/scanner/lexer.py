"""Lightweight Luau tokenizer.

Only as much of the language as the declaration and require scanners need is
recognised: names, numbers, quoted/interpolated/long strings, and punctuation.
Comments are dropped. Malformed input never raises; an unterminated string or
long bracket simply runs to the end of its line or of the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple

NAME = "name"
NUMBER = "number"
STRING = "string"
SYMBOL = "symbol"

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F_]+|0[bB][01_]+|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?"
)
_LONG_BRACKET_RE = re.compile(r"\[(=*)\[")

# Longest first so that `...` wins over `..`.
_MULTI_CHAR_SYMBOLS = ("...", "..", "->", "::", "==", "~=", "//")


@dataclass(frozen=True)
class Token:
    """A lexical token with its byte span in the source text."""

    kind: str
    value: str
    start: int
    end: int
    line: int
    column: int
    newline_before: bool = False

    def is_name(self, *values: str) -> bool:
        return self.kind == NAME and (not values or self.value in values)

    def is_symbol(self, *values: str) -> bool:
        return self.kind == SYMBOL and self.value in values


def tokenize(source: str) -> List[Token]:
    """Split Luau source into tokens, skipping whitespace and comments."""
    tokens: List[Token] = []
    length = len(source)
    pos = 0
    line = 1
    line_start = 0
    newline_pending = True

    while pos < length:
        char = source[pos]
        if char == "\n":
            line += 1
            line_start = pos + 1
            newline_pending = True
            pos += 1
            continue
        if char in " \t\r\f\v":
            pos += 1
            continue

        if source.startswith("--", pos):
            end = _comment_end(source, pos)
        else:
            kind, end = _scan_token(source, pos)
            tokens.append(
                Token(
                    kind=kind,
                    value=source[pos:end],
                    start=pos,
                    end=end,
                    line=line,
                    column=pos - line_start,
                    newline_before=newline_pending,
                )
            )
            newline_pending = False

        # Long comments and long strings may span several lines.
        newlines = source.count("\n", pos, end)
        if newlines:
            line += newlines
            line_start = source.rfind("\n", pos, end) + 1
            newline_pending = True
        pos = end

    return tokens


def string_value(literal: str) -> str:
    """Return the contents of a string token without its delimiters."""
    match = _LONG_BRACKET_RE.match(literal)
    if match:
        inner = literal[match.end():]
        closing = f"]{match.group(1)}]"
        if inner.endswith(closing):
            inner = inner[: -len(closing)]
        return inner
    if literal[:1] in {'"', "'", "`"}:
        quote = literal[0]
        inner = literal[1:]
        if inner.endswith(quote) and len(literal) > 1:
            inner = inner[:-1]
        return inner
    return literal


def _comment_end(source: str, pos: int) -> int:
    match = _LONG_BRACKET_RE.match(source, pos + 2)
    if match:
        closing = f"]{match.group(1)}]"
        index = source.find(closing, match.end())
        return len(source) if index == -1 else index + len(closing)
    index = source.find("\n", pos)
    return len(source) if index == -1 else index


def _scan_token(source: str, pos: int) -> Tuple[str, int]:
    char = source[pos]

    match = _NAME_RE.match(source, pos)
    if match:
        return NAME, match.end()

    if char.isdigit() or (char == "." and source[pos + 1 : pos + 2].isdigit()):
        match = _NUMBER_RE.match(source, pos)
        if match:
            return NUMBER, match.end()

    if char in {'"', "'", "`"}:
        return STRING, _quoted_string_end(source, pos, char)

    if char == "[":
        match = _LONG_BRACKET_RE.match(source, pos)
        if match:
            closing = f"]{match.group(1)}]"
            index = source.find(closing, match.end())
            return STRING, len(source) if index == -1 else index + len(closing)

    for symbol in _MULTI_CHAR_SYMBOLS:
        if source.startswith(symbol, pos):
            return SYMBOL, pos + len(symbol)
    return SYMBOL, pos + 1


def _quoted_string_end(source: str, pos: int, quote: str) -> int:
    index = pos + 1
    length = len(source)
    while index < length:
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index + 1
        if char == "\n":
            return index
        index += 1
    return length


__all__ = ["NAME", "NUMBER", "STRING", "SYMBOL", "Token", "string_value", "tokenize"]
