"""Locate the sourcemap node that backs an installed package."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .constants import LUAU_SUFFIXES
from .logging import get_logger
from .models import PackageEntry, SourceNode
from .scanner import find_forwarding_require, tokenize
from .sourcemap import SourcemapTree

TextReader = Callable[[Path], Optional[str]]


def _safe_read(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


class PackageResolver:
    """Maps packages to entry modules using the sourcemap.

    Packages are expected under ``mount_path`` in the sourcemap; when no mount
    path is configured the packages folder's own name is used (``Packages``).
    """

    def __init__(
        self,
        mount_path: Optional[Sequence[str]] = None,
        read_text: TextReader | None = None,
    ) -> None:
        self.mount_path = list(mount_path) if mount_path is not None else None
        self._read_text = read_text or _safe_read
        self.logger = get_logger("resolver")

    def module_path(self, packages_root: Path, package: PackageEntry) -> List[str]:
        """Return the sourcemap path segments where ``package`` should be mounted."""
        root = Path(packages_root).resolve()
        mount = self.mount_path if self.mount_path is not None else [root.name]
        # The package itself may be a symlink out of the root; only its own name matters.
        try:
            parts = list(Path(package.path).relative_to(root).parts)
        except ValueError:
            parts = [Path(package.path).name]
        if parts:
            parts[-1] = _strip_suffix(parts[-1])
        return [*mount, *parts]

    def resolve_entry(
        self, packages_root: Path, package: PackageEntry, tree: SourcemapTree
    ) -> Optional[SourceNode]:
        """Return the package's entry node, or None when the sourcemap has no match."""
        segments = self.module_path(packages_root, package)
        node = tree.find_by_path(segments)
        if node is None:
            node = self._fallback(package, tree)
            if node is None:
                self.logger.debug(
                    "No sourcemap node for %s (looked for %s)", package.name, ".".join(segments)
                )
                return None
            self.logger.debug("Matched %s by file path at %s", package.name, tree.path_of(node))
        return self._follow_thunk(package, node, tree)

    def _fallback(self, package: PackageEntry, tree: SourcemapTree) -> Optional[SourceNode]:
        node = tree.find_by_file(package.thunk_path.resolve())
        if node is None and package.path.is_dir():
            node = tree.find_within(package.path.resolve())
        return node

    def _follow_thunk(
        self, package: PackageEntry, node: SourceNode, tree: SourcemapTree
    ) -> Optional[SourceNode]:
        """When ``node`` is the thunk itself, walk its forwarding require to the real module."""
        primary = node.primary_path
        if primary is None or primary != package.thunk_path.resolve():
            return node

        text = self._read_text(package.thunk_path)
        if text is None:
            return node
        components = find_forwarding_require(tokenize(text))
        if components is None:
            return node

        target = tree.resolve_require(node, components)
        if target is None:
            self.logger.debug(
                "Thunk for %s requires %s, which is not in the sourcemap",
                package.name,
                "/".join(components),
            )
            return None
        self.logger.debug(
            "Thunk for %s forwards to %s [%s]",
            package.name,
            tree.path_of(target),
            target.class_name,
        )
        return target


def _strip_suffix(name: str) -> str:
    for suffix in LUAU_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


__all__ = ["PackageResolver"]
