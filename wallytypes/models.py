"""Core data models shared across wallytypes components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .constants import LUAU_SUFFIXES


@dataclass(eq=False)
class SourceNode:
    """One entry of the sourcemap tree. Children are owned and ordered."""

    name: str
    class_name: str
    file_paths: List[Path] = field(default_factory=list)
    children: List["SourceNode"] = field(default_factory=list)

    @property
    def primary_path(self) -> Optional[Path]:
        """Return the script file backing this node, if any."""
        for path in self.file_paths:
            if path.suffix in LUAU_SUFFIXES:
                return path
        return self.file_paths[0] if self.file_paths else None

    def find_child(self, name: str) -> Optional["SourceNode"]:
        for child in self.children:
            if child.name == name:
                return child
        return None


@dataclass
class PackageEntry:
    """An installed package discovered under a packages root."""

    name: str
    path: Path
    thunk_path: Path
    entry: Optional[SourceNode] = None


class Provenance(str, Enum):
    DIRECT = "direct"
    REEXPORTED = "reexported"


@dataclass(frozen=True)
class ExportedType:
    """A single extracted `export type` declaration."""

    name: str
    text: str
    provenance: Provenance = Provenance.DIRECT
    depth: int = 0
    source: Optional[Path] = None


@dataclass
class ThunkDocument:
    """A thunk split into the patchable header and the generator-owned body."""

    header: str
    body: str

    @property
    def text(self) -> str:
        return f"{self.header}{self.body}"


class OutcomeStatus(str, Enum):
    PATCHED = "patched"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PackageOutcome:
    """Result of processing one package."""

    name: str
    status: OutcomeStatus
    detail: str = ""
    diff: str = ""


@dataclass
class RunReport:
    """Summary of a patching run over one packages root."""

    outcomes: List[PackageOutcome] = field(default_factory=list)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def patched(self) -> int:
        return self._count(OutcomeStatus.PATCHED)

    @property
    def unchanged(self) -> int:
        return self._count(OutcomeStatus.UNCHANGED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> List[Tuple[str, str]]:
        return [
            (outcome.name, outcome.detail)
            for outcome in self.outcomes
            if outcome.status is OutcomeStatus.FAILED
        ]
