"""Extraction of exported type declarations, following re-export chains."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from .constants import DEFAULT_MAX_DEPTH
from .errors import SourceUnreadable
from .logging import get_logger
from .models import ExportedType, Provenance, SourceNode
from .scanner import (
    TypeDeclaration,
    find_forwarding_require,
    find_require_bindings,
    scan_exported_types,
    tokenize,
)
from .sourcemap import SourcemapTree

SourceReader = Callable[[SourceNode], str]


def read_node_source(node: SourceNode) -> str:
    """Default reader: load the node's primary script file."""
    path = node.primary_path
    if path is None:
        raise SourceUnreadable(f"{node.name} has no backing file in the sourcemap")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnreadable(f"Unable to read {path}: {exc}") from exc


class TypeExtractor:
    """Collects the exported types visible through a module.

    Direct declarations come first in precedence; a declaration of the form
    `export type Foo = Module.Foo` where `Module` is a required local, and a
    module ending in `return require(...)`, are followed into the required
    module. Recursion stops silently past ``max_depth`` or on a cycle.
    """

    def __init__(
        self,
        tree: SourcemapTree,
        reader: SourceReader | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.tree = tree
        self.reader = reader or read_node_source
        self.max_depth = max_depth
        self.logger = get_logger("extractor")

    def extract(self, entry: SourceNode) -> List[ExportedType]:
        """Return the name-unique exported types of ``entry`` in encounter order.

        Raises SourceUnreadable when the entry module itself cannot be read.
        """
        source = self.reader(entry)
        return self._extract_source(entry, source, 0, (id(entry),))

    def _extract_node(
        self, node: SourceNode, depth: int, chain: Tuple[int, ...]
    ) -> List[ExportedType]:
        if depth > self.max_depth:
            self.logger.debug(
                "Stopping at %s: re-export depth %d exceeds %d",
                self.tree.path_of(node),
                depth,
                self.max_depth,
            )
            return []
        if id(node) in chain:
            self.logger.debug("Stopping at %s: re-export cycle", self.tree.path_of(node))
            return []
        try:
            source = self.reader(node)
        except SourceUnreadable as exc:
            self.logger.warning("Skipping re-exports from %s: %s", self.tree.path_of(node), exc)
            return []
        return self._extract_source(node, source, depth, chain + (id(node),))

    def _extract_source(
        self, node: SourceNode, source: str, depth: int, chain: Tuple[int, ...]
    ) -> List[ExportedType]:
        tokens = tokenize(source)
        bindings = find_require_bindings(tokens)
        provenance = Provenance.DIRECT if depth == 0 else Provenance.REEXPORTED
        modules: Dict[str, List[ExportedType]] = {}

        candidates: List[ExportedType] = []
        for declaration in scan_exported_types(source, tokens):
            followed = self._follow_reference(node, declaration, bindings, depth, chain, modules)
            if followed is None:
                followed = ExportedType(
                    name=declaration.name,
                    text=declaration.text,
                    provenance=provenance,
                    depth=depth,
                    source=node.primary_path,
                )
            candidates.append(followed)

        forwarded = find_forwarding_require(tokens)
        if forwarded is not None:
            target = self.tree.resolve_require(node, forwarded)
            if target is None:
                self.logger.debug(
                    "%s forwards to %s, which is not in the sourcemap",
                    self.tree.path_of(node),
                    "/".join(forwarded),
                )
            else:
                candidates.extend(self._extract_node(target, depth + 1, chain))

        return _deduplicate(candidates)

    def _follow_reference(
        self,
        node: SourceNode,
        declaration: TypeDeclaration,
        bindings: Dict[str, List[str]],
        depth: int,
        chain: Tuple[int, ...],
        modules: Dict[str, List[ExportedType]],
    ) -> Optional[ExportedType]:
        reference = declaration.reference
        if reference is None or reference.module not in bindings:
            return None
        if reference.arguments != declaration.parameters:
            # `export type Strings = Mod.List<string>` specialises rather than re-exports.
            return None

        if reference.module not in modules:
            target = self.tree.resolve_require(node, bindings[reference.module])
            if target is None:
                self.logger.debug(
                    "%s requires %s, which is not in the sourcemap",
                    self.tree.path_of(node),
                    "/".join(bindings[reference.module]),
                )
                modules[reference.module] = []
            else:
                modules[reference.module] = self._extract_node(target, depth + 1, chain)

        for exported in modules[reference.module]:
            if exported.name == reference.member:
                if exported.name != declaration.name:
                    return _renamed(exported, declaration.name)
                return exported
        return None


def extract(
    entry: SourceNode,
    tree: SourcemapTree,
    reader: SourceReader | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[ExportedType]:
    """Convenience wrapper around :class:`TypeExtractor` for a single entry."""
    return TypeExtractor(tree, reader=reader, max_depth=max_depth).extract(entry)


def _renamed(exported: ExportedType, name: str) -> ExportedType:
    pattern = re.compile(rf"^(export\s+type\s+(?:function\s+)?){re.escape(exported.name)}\b")
    text = pattern.sub(lambda match: f"{match.group(1)}{name}", exported.text, count=1)
    return replace(exported, name=name, text=text)


def _deduplicate(candidates: List[ExportedType]) -> List[ExportedType]:
    """Keep one type per name: the shallowest, then the first encountered."""
    best: Dict[str, ExportedType] = {}
    order: List[str] = []
    for candidate in candidates:
        current = best.get(candidate.name)
        if current is None:
            best[candidate.name] = candidate
            order.append(candidate.name)
        elif candidate.depth < current.depth:
            best[candidate.name] = candidate
    return [best[name] for name in order]


__all__ = ["SourceReader", "TypeExtractor", "extract", "read_node_source"]
