"""Parsing and navigation of Rojo-style sourcemaps."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import MalformedSourcemap
from .models import SourceNode


def parse(raw: Any, base_dir: Path | None = None) -> SourceNode:
    """Build the node tree from a decoded sourcemap.

    File paths are resolved against ``base_dir`` when one is given so they can
    be compared with paths discovered on disk.
    """
    return _parse_node(raw, base_dir, "<root>")


def _parse_node(raw: Any, base_dir: Path | None, location: str) -> SourceNode:
    if not isinstance(raw, Mapping):
        raise MalformedSourcemap(f"Sourcemap node at {location} is not an object")

    name = raw.get("name")
    if not isinstance(name, str):
        raise MalformedSourcemap(f"Sourcemap node at {location} has no name")
    location = name if location == "<root>" else f"{location}.{name}"

    class_name = raw.get("className", "")
    if not isinstance(class_name, str):
        raise MalformedSourcemap(f"Sourcemap node {location} has a non-string className")

    raw_paths = raw.get("filePaths", [])
    if not isinstance(raw_paths, list) or not all(isinstance(item, str) for item in raw_paths):
        raise MalformedSourcemap(f"Sourcemap node {location} has invalid filePaths")
    file_paths = [_normalise(Path(item), base_dir) for item in raw_paths]

    raw_children = raw.get("children", [])
    if not isinstance(raw_children, list):
        raise MalformedSourcemap(f"Sourcemap node {location} has a non-list children field")
    children = [_parse_node(child, base_dir, location) for child in raw_children]

    return SourceNode(name=name, class_name=class_name, file_paths=file_paths, children=children)


def _normalise(path: Path, base_dir: Path | None) -> Path:
    if base_dir is None:
        return path
    return (base_dir / path).resolve()


def find_by_path(root: SourceNode, segments: Sequence[str]) -> Optional[SourceNode]:
    """Walk child names from ``root``; an empty path returns ``root`` itself."""
    current: Optional[SourceNode] = root
    for segment in segments:
        current = current.find_child(segment)
        if current is None:
            return None
    return current


def children(node: SourceNode) -> Tuple[SourceNode, ...]:
    return tuple(node.children)


class SourcemapTree:
    """A parsed sourcemap with parent and file-path indexes kept beside the tree."""

    def __init__(self, root: SourceNode) -> None:
        self.root = root
        self._parents: Dict[int, SourceNode] = {}
        self._by_file: Dict[Path, SourceNode] = {}
        for node in self.walk():
            for child in node.children:
                self._parents[id(child)] = node
            for path in node.file_paths:
                self._by_file.setdefault(path, node)

    def walk(self) -> Iterator[SourceNode]:
        """Yield every node in depth-first pre-order."""
        stack: List[SourceNode] = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def parent(self, node: SourceNode) -> Optional[SourceNode]:
        return self._parents.get(id(node))

    def find_by_path(self, segments: Sequence[str]) -> Optional[SourceNode]:
        return find_by_path(self.root, segments)

    def find_by_file(self, path: Path) -> Optional[SourceNode]:
        return self._by_file.get(path)

    def find_within(self, directory: Path) -> Optional[SourceNode]:
        """Return the first node with a file path inside ``directory``."""
        for node in self.walk():
            for path in node.file_paths:
                if path == directory or directory in path.parents:
                    return node
        return None

    def path_of(self, node: SourceNode) -> str:
        names = [node.name]
        current = self.parent(node)
        while current is not None:
            names.append(current.name)
            current = self.parent(current)
        return ".".join(reversed(names))

    def resolve_require(
        self, origin: SourceNode, components: Sequence[str]
    ) -> Optional[SourceNode]:
        """Follow a require path such as `script.Parent._Index.foo` from ``origin``."""
        if not components:
            return None
        head = components[0]
        if head == "script":
            current: Optional[SourceNode] = origin
        elif head == "game":
            current = self.root
        else:
            return None
        for component in components[1:]:
            if component == "Parent":
                current = self.parent(current)
            else:
                current = current.find_child(component)
            if current is None:
                return None
        return current


def load_sourcemap(path: Path, base_dir: Path | None = None) -> SourcemapTree:
    """Read a sourcemap JSON file; file paths resolve against ``base_dir`` or the file's folder."""
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MalformedSourcemap(f"Unable to read sourcemap {path}: {exc}") from exc
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedSourcemap(f"Sourcemap {path} is not valid JSON: {exc}") from exc

    base = Path(base_dir).expanduser() if base_dir is not None else path.parent
    return SourcemapTree(parse(raw, base.resolve()))


__all__ = ["SourcemapTree", "children", "find_by_path", "load_sourcemap", "parse"]
