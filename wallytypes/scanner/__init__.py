"""Lexical scanning of Luau sources for type declarations and requires."""

from __future__ import annotations

from .declarations import TypeDeclaration, TypeReference, scan_exported_types
from .lexer import Token, tokenize
from .requires import find_forwarding_require, find_require_bindings, parse_require

__all__ = [
    "Token",
    "TypeDeclaration",
    "TypeReference",
    "find_forwarding_require",
    "find_require_bindings",
    "parse_require",
    "scan_exported_types",
    "tokenize",
]
