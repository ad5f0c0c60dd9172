"""Scanner for exported Luau type declarations.

This is a lexical scanner rather than a parser. A declaration's extent is
found by bracket balancing and by recognising where a complete type can no
longer continue; declarations with unbalanced brackets are captured up to the
next line that starts a statement at column zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .lexer import NAME, NUMBER, STRING, SYMBOL, Token, tokenize

_OPENERS = {"(": ")", "{": "}", "[": "]", "<": ">"}
_MATCHING_OPENER = {closer: opener for opener, closer in _OPENERS.items()}

# Tokens at column zero that end an unbalanced declaration.
_STATEMENT_STARTERS = frozenset({"export", "local", "function", "return", "type"})

_BLOCK_OPENERS = frozenset({"function", "do", "repeat", "if"})
_BLOCK_CLOSERS = frozenset({"end", "until"})

# An `if` following one of these is an if-expression, which has no `end`.
_EXPRESSION_PREFIXES = frozenset(
    {
        "=", "(", "{", "[", ",", "return", "and", "or", "not", "..", "+", "-",
        "*", "/", "//", "%", "^", "==", "~=", "<", ">", "::",
    }
)


@dataclass(frozen=True)
class TypeReference:
    """Definition of the form `Module.Member<args>` pointing at another module's type."""

    module: str
    member: str
    arguments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TypeDeclaration:
    """An `export type` statement located in a source text."""

    name: str
    text: str
    start: int
    end: int
    parameters: Tuple[str, ...] = ()
    is_function: bool = False
    terminated: bool = True
    reference: Optional[TypeReference] = None


def scan_exported_types(
    source: str, tokens: Optional[Sequence[Token]] = None
) -> List[TypeDeclaration]:
    """Return every `export type` declaration in source order."""
    if tokens is None:
        tokens = tokenize(source)

    declarations: List[TypeDeclaration] = []
    index = 0
    while index < len(tokens) - 1:
        token = tokens[index]
        if (
            token.is_name("export")
            and tokens[index + 1].is_name("type")
            and not (index > 0 and tokens[index - 1].is_symbol(".", ":"))
        ):
            scanned = _scan_declaration(source, tokens, index)
            if scanned is not None:
                declaration, next_index = scanned
                declarations.append(declaration)
                index = next_index
                continue
        index += 1
    return declarations


def _scan_declaration(
    source: str, tokens: Sequence[Token], index: int
) -> Optional[Tuple[TypeDeclaration, int]]:
    count = len(tokens)
    cursor = index + 2
    is_function = False
    if (
        cursor + 1 < count
        and tokens[cursor].is_name("function")
        and tokens[cursor + 1].kind == NAME
    ):
        is_function = True
        cursor += 1
    if cursor >= count or tokens[cursor].kind != NAME:
        return None
    name = tokens[cursor].value

    parameters: Tuple[str, ...] = ()
    reference: Optional[TypeReference] = None
    if is_function:
        last, terminated = _scan_function_body(tokens, cursor - 1)
    else:
        cursor += 1
        terminated = True
        if cursor < count and tokens[cursor].is_symbol("<"):
            closing = _matching_angle(tokens, cursor)
            if closing is None:
                last = _statement_boundary(tokens, cursor)
                return _build(source, tokens, index, last, name, (), False, False, None), last + 1
            parameters = _parameter_names(source, tokens, cursor + 1, closing)
            cursor = closing + 1

        if cursor < count and tokens[cursor].is_symbol("="):
            last, terminated = _scan_type_body(tokens, cursor + 1)
            if last <= cursor:
                last, terminated = cursor, False
            else:
                reference = _match_reference(source, tokens, cursor + 1, last)
        else:
            last, terminated = cursor - 1, False

    declaration = _build(
        source, tokens, index, last, name, parameters, is_function, terminated, reference
    )
    return declaration, last + 1


def _build(
    source: str,
    tokens: Sequence[Token],
    first: int,
    last: int,
    name: str,
    parameters: Tuple[str, ...],
    is_function: bool,
    terminated: bool,
    reference: Optional[TypeReference],
) -> TypeDeclaration:
    start = tokens[first].start
    end = tokens[last].end
    return TypeDeclaration(
        name=name,
        text=source[start:end],
        start=start,
        end=end,
        parameters=parameters,
        is_function=is_function,
        terminated=terminated,
        reference=reference,
    )


def _scan_type_body(tokens: Sequence[Token], index: int) -> Tuple[int, bool]:
    """Return the index of the last token of a type definition and whether it closed cleanly."""
    stack: List[str] = []
    expect_operand = True
    last = index - 1
    cursor = index

    while cursor < len(tokens):
        token = tokens[cursor]

        if stack:
            if _starts_statement(token):
                return last, False
            if token.kind == SYMBOL:
                if token.value in _OPENERS:
                    stack.append(token.value)
                elif token.value in _MATCHING_OPENER:
                    _close(stack, token.value)
                    if not stack:
                        expect_operand = False
            last = cursor
            cursor += 1
            continue

        if expect_operand:
            if token.kind == SYMBOL and token.value in _OPENERS:
                stack.append(token.value)
            elif token.is_symbol("|", "&", "..."):
                pass
            elif token.kind in (NAME, STRING, NUMBER):
                expect_operand = False
            else:
                return last, True
            last = cursor
            cursor += 1
            continue

        if token.kind != SYMBOL:
            return last, True
        if token.value in ("|", "&", "->", "."):
            expect_operand = True
        elif token.value == "?":
            pass
        elif token.value == "<" or (token.value == "(" and not token.newline_before):
            stack.append(token.value)
        else:
            return last, True
        last = cursor
        cursor += 1

    return last, not stack and not expect_operand


def _scan_function_body(tokens: Sequence[Token], index: int) -> Tuple[int, bool]:
    """Balance block keywords from the `function` token at ``index``."""
    depth = 0
    last = index
    for cursor in range(index, len(tokens)):
        token = tokens[cursor]
        if depth > 0 and _starts_statement(token) and token.value != "function":
            return last, False
        if token.kind == NAME:
            if token.value in _BLOCK_OPENERS and not _is_if_expression(tokens, cursor):
                depth += 1
            elif token.value in _BLOCK_CLOSERS:
                depth -= 1
        last = cursor
        if depth == 0:
            return last, True
    return last, False


def _is_if_expression(tokens: Sequence[Token], index: int) -> bool:
    if not tokens[index].is_name("if") or index == 0:
        return False
    return tokens[index - 1].value in _EXPRESSION_PREFIXES


def _starts_statement(token: Token) -> bool:
    return (
        token.newline_before
        and token.column == 0
        and token.is_name(*_STATEMENT_STARTERS)
    )


def _close(stack: List[str], closer: str) -> None:
    opener = _MATCHING_OPENER[closer]
    if closer == ">":
        # A stray `>` (comparison inside typeof) does not close anything.
        if stack and stack[-1] == "<":
            stack.pop()
        return
    if opener in stack:
        while stack:
            if stack.pop() == opener:
                break


def _matching_angle(tokens: Sequence[Token], index: int) -> Optional[int]:
    stack: List[str] = []
    for cursor in range(index, len(tokens)):
        token = tokens[cursor]
        if _starts_statement(token):
            return None
        if token.kind != SYMBOL:
            continue
        if token.value in _OPENERS:
            stack.append(token.value)
        elif token.value in _MATCHING_OPENER:
            _close(stack, token.value)
            if not stack:
                return cursor
    return None


def _statement_boundary(tokens: Sequence[Token], index: int) -> int:
    """Index of the last token before the next column-zero statement after ``index``."""
    for cursor in range(index + 1, len(tokens)):
        if _starts_statement(tokens[cursor]):
            return cursor - 1
    return len(tokens) - 1


def _split_top_level(tokens: Sequence[Token], first: int, stop: int) -> List[Tuple[int, int]]:
    """Split ``tokens[first:stop]`` on top-level commas into inclusive index ranges."""
    parts: List[Tuple[int, int]] = []
    stack: List[str] = []
    part_start = first
    for cursor in range(first, stop):
        token = tokens[cursor]
        if token.kind == SYMBOL:
            if token.value in _OPENERS:
                stack.append(token.value)
            elif token.value in _MATCHING_OPENER:
                _close(stack, token.value)
            elif token.value == "," and not stack:
                if cursor > part_start:
                    parts.append((part_start, cursor - 1))
                part_start = cursor + 1
    if stop > part_start:
        parts.append((part_start, stop - 1))
    return parts


def _normalised(source: str, tokens: Sequence[Token], first: int, last: int) -> str:
    return "".join(source[tokens[first].start : tokens[last].end].split())


def _parameter_names(
    source: str, tokens: Sequence[Token], first: int, stop: int
) -> Tuple[str, ...]:
    names: List[str] = []
    for part_first, part_last in _split_top_level(tokens, first, stop):
        end = part_last
        for cursor in range(part_first, part_last + 1):
            if tokens[cursor].is_symbol("="):
                end = cursor - 1
                break
        if end >= part_first:
            names.append(_normalised(source, tokens, part_first, end))
    return tuple(names)


def _match_reference(
    source: str, tokens: Sequence[Token], first: int, last: int
) -> Optional[TypeReference]:
    if last - first < 2:
        return None
    module, dot, member = tokens[first], tokens[first + 1], tokens[first + 2]
    if module.kind != NAME or not dot.is_symbol(".") or member.kind != NAME:
        return None
    if last == first + 2:
        return TypeReference(module=module.value, member=member.value)
    if not tokens[first + 3].is_symbol("<") or _matching_angle(tokens, first + 3) != last:
        return None
    arguments = tuple(
        _normalised(source, tokens, part_first, part_last)
        for part_first, part_last in _split_top_level(tokens, first + 4, last)
    )
    return TypeReference(module=module.value, member=member.value, arguments=arguments)


__all__ = ["TypeDeclaration", "TypeReference", "scan_exported_types"]
