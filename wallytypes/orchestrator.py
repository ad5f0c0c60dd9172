"""Pipeline orchestration: resolve, extract, patch, and write every package."""

from __future__ import annotations

import difflib
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import WallyTypesConfig
from .constants import DEFAULT_MAX_DEPTH
from .errors import SourceUnreadable, ThunkUnwritable
from .extractor import SourceReader, TypeExtractor
from .logging import get_logger
from .models import OutcomeStatus, PackageEntry, PackageOutcome, RunReport
from .packages import discover_packages
from .resolver import PackageResolver
from .sourcemap import SourcemapTree, load_sourcemap
from .stores import ThunkStore
from .thunk import ThunkPatcher

SourcemapInput = Union[SourcemapTree, str, Path]


class Orchestrator:
    """Drives the per-package pipeline over a packages folder.

    Packages are independent, so they run on a thread pool sharing the parsed
    sourcemap read-only. One failing package never stops the others.
    """

    def __init__(
        self,
        resolver: PackageResolver | None = None,
        patcher: ThunkPatcher | None = None,
        store: ThunkStore | None = None,
        reader: SourceReader | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        workers: Optional[int] = None,
        exclude: Sequence[str] = (),
    ) -> None:
        self.resolver = resolver or PackageResolver()
        self.patcher = patcher or ThunkPatcher()
        self.store = store or ThunkStore()
        self.reader = reader
        self.max_depth = max_depth
        self.workers = workers
        self.exclude = list(exclude)
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(cls, config: WallyTypesConfig) -> "Orchestrator":
        return cls(
            resolver=PackageResolver(mount_path=config.mount_path),
            patcher=ThunkPatcher(marker=config.thunk_marker),
            max_depth=config.max_depth,
            workers=config.workers,
            exclude=config.exclude,
        )

    def run(
        self,
        packages_root: Union[str, Path],
        sourcemap: SourcemapInput,
        *,
        dry_run: bool = False,
    ) -> RunReport:
        """Patch every package under ``packages_root`` and report per-package outcomes.

        Raises MalformedSourcemap when ``sourcemap`` is a path that cannot be parsed.
        """
        root = Path(packages_root).expanduser().resolve()
        tree = sourcemap if isinstance(sourcemap, SourcemapTree) else load_sourcemap(Path(sourcemap))
        packages = discover_packages(root, exclude=self.exclude)
        self.logger.info("Found %d packages in %s", len(packages), root)
        if not packages:
            return RunReport()

        extractor = TypeExtractor(tree, reader=self.reader, max_depth=self.max_depth)
        with ThreadPoolExecutor(max_workers=self._worker_count(len(packages))) as executor:
            outcomes = list(
                executor.map(
                    lambda package: self._process(root, package, tree, extractor, dry_run),
                    packages,
                )
            )

        outcomes.sort(key=lambda outcome: outcome.name)
        report = RunReport(outcomes=outcomes)
        self.logger.info(
            "Finished %s: %d patched, %d unchanged, %d skipped, %d failed",
            root,
            report.patched,
            report.unchanged,
            report.skipped,
            len(report.failed),
        )
        return report

    def _process(
        self,
        root: Path,
        package: PackageEntry,
        tree: SourcemapTree,
        extractor: TypeExtractor,
        dry_run: bool,
    ) -> PackageOutcome:
        try:
            return self._process_package(root, package, tree, extractor, dry_run)
        except Exception as exc:  # pragma: no cover - defensive guard
            self._log_exception(f"Unexpected error while patching {package.name}", exc)
            return PackageOutcome(package.name, OutcomeStatus.FAILED, detail=str(exc))

    def _process_package(
        self,
        root: Path,
        package: PackageEntry,
        tree: SourcemapTree,
        extractor: TypeExtractor,
        dry_run: bool,
    ) -> PackageOutcome:
        entry = self.resolver.resolve_entry(root, package, tree)
        if entry is None:
            self.logger.info("Skipping %s: no matching sourcemap entry", package.name)
            return PackageOutcome(package.name, OutcomeStatus.SKIPPED, detail="no sourcemap entry")
        package.entry = entry
        self.logger.debug("Resolved %s to %s", package.name, tree.path_of(entry))

        try:
            exported = extractor.extract(entry)
        except SourceUnreadable as exc:
            self._log_exception(f"Failed to extract types for {package.name}", exc)
            return PackageOutcome(package.name, OutcomeStatus.FAILED, detail=str(exc))

        try:
            original = self.store.read(package.thunk_path)
        except ThunkUnwritable as exc:
            self._log_exception(f"Failed to read thunk for {package.name}", exc)
            return PackageOutcome(package.name, OutcomeStatus.FAILED, detail=str(exc))

        updated = self.patcher.patch(original, exported)
        if updated == original:
            self.logger.debug("%s is already up to date", package.name)
            return PackageOutcome(package.name, OutcomeStatus.UNCHANGED)

        added = _count_added(original, updated, self.patcher)
        if dry_run:
            diff = _unified_diff(package.thunk_path, original, updated)
            return PackageOutcome(
                package.name, OutcomeStatus.PATCHED, detail=f"{added} type(s) (dry-run)", diff=diff
            )

        try:
            self.store.write(package.thunk_path, updated)
        except ThunkUnwritable as exc:
            self._log_exception(f"Failed to write thunk for {package.name}", exc)
            return PackageOutcome(package.name, OutcomeStatus.FAILED, detail=str(exc))

        self.logger.info("Patched %s with %d type(s)", package.name, added)
        return PackageOutcome(package.name, OutcomeStatus.PATCHED, detail=f"{added} type(s)")

    def _worker_count(self, package_count: int) -> int:
        workers = self.workers or min(32, (os.cpu_count() or 1) + 4)
        return max(1, min(workers, package_count))

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


def _count_added(original: str, updated: str, patcher: ThunkPatcher) -> int:
    before = patcher.existing_names(original)
    after = patcher.existing_names(updated)
    return len(after - before)


def _unified_diff(path: Path, original: str, updated: str) -> str:
    lines: List[str] = list(
        difflib.unified_diff(
            original.splitlines(keepends=True),
            updated.splitlines(keepends=True),
            fromfile=str(path),
            tofile=str(path),
        )
    )
    return "".join(lines)


__all__ = ["Orchestrator"]
