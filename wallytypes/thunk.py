"""Idempotent merging of exported types into package thunks."""

from __future__ import annotations

import re
from typing import Iterable, List, Set

from .constants import DEFAULT_THUNK_MARKER
from .models import ExportedType, ThunkDocument
from .scanner import scan_exported_types, tokenize


class ThunkPatcher:
    """Inserts type declarations into a thunk's header, leaving its body untouched.

    The body starts at the generator's marker line when present; otherwise at
    the first statement that is not an `export type` declaration.
    """

    def __init__(self, marker: str | None = DEFAULT_THUNK_MARKER) -> None:
        self._marker = re.compile(marker, re.MULTILINE) if marker else None

    def split(self, text: str) -> ThunkDocument:
        """Split ``text`` into header and body regions."""
        if self._marker is not None:
            match = self._marker.search(text)
            if match is not None:
                offset = text.rfind("\n", 0, match.start()) + 1
                return ThunkDocument(header=text[: offset], body=text[offset:])

        tokens = tokenize(text)
        spans = [(decl.start, decl.end) for decl in scan_exported_types(text, tokens)]
        for token in tokens:
            if any(start <= token.start < end for start, end in spans):
                continue
            offset = text.rfind("\n", 0, token.start) + 1
            return ThunkDocument(header=text[:offset], body=text[offset:])
        return ThunkDocument(header=text, body="")

    def existing_names(self, text: str) -> Set[str]:
        return {declaration.name for declaration in scan_exported_types(text)}

    def patch(self, existing: str, extracted: Iterable[ExportedType]) -> str:
        """Return ``existing`` with every missing declaration added to its header.

        Names already exported anywhere in the thunk count as present, so a
        thunk that declares its types in the body is not given duplicates.
        """
        document = self.split(existing)
        present = self.existing_names(existing)

        missing: List[ExportedType] = []
        for exported in extracted:
            if exported.name in present:
                continue
            present.add(exported.name)
            missing.append(exported)
        if not missing:
            return existing

        newline = "\r\n" if "\r\n" in existing else "\n"
        block = newline.join(_with_newlines(exported.text, newline) for exported in missing)
        if document.header.strip():
            header = f"{document.header.rstrip()}{newline}{block}{newline}{newline}"
        else:
            header = f"{block}{newline}{newline}"
        return ThunkDocument(header=header, body=document.body).text


def _with_newlines(text: str, newline: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", newline)


def patch(existing: str, extracted: Iterable[ExportedType]) -> str:
    """Patch with the default marker; see :meth:`ThunkPatcher.patch`."""
    return ThunkPatcher().patch(existing, extracted)


__all__ = ["ThunkPatcher", "patch"]
