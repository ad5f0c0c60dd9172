"""Helper utilities for constructing temporary Wally projects in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from wallytypes.sourcemap import SourcemapTree, load_sourcemap


def node(
    name: str,
    class_name: str = "ModuleScript",
    files: Optional[Sequence[str]] = None,
    children: Optional[Sequence[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build one raw sourcemap node."""
    raw: Dict[str, Any] = {"name": name, "className": class_name}
    if files:
        raw["filePaths"] = list(files)
    if children:
        raw["children"] = list(children)
    return raw


def folder(name: str, *children: Dict[str, Any]) -> Dict[str, Any]:
    return node(name, "Folder", children=children)


class ProjectBuilder:
    """Writes files and a sourcemap into a throwaway project directory."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_raw(self, relative: str, content: str) -> Path:
        """Write ``content`` byte-for-byte, without dedenting."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
        return path

    def sourcemap(self, *children: Dict[str, Any], name: str = "Project") -> Path:
        """Write sourcemap.json with a DataModel root holding ``children``."""
        path = self.root / "sourcemap.json"
        path.write_text(json.dumps(node(name, "DataModel", children=children), indent=2), encoding="utf-8")
        return path

    def tree(self) -> SourcemapTree:
        return load_sourcemap(self.root / "sourcemap.json")

    def path(self, relative: str = "") -> Path:
        return (self.root / relative).resolve() if relative else self.root.resolve()

    def read(self, relative: str) -> str:
        return (self.root / relative).read_bytes().decode("utf-8")

    def add_wally_package(
        self,
        name: str,
        source: str,
        *,
        scope: str = "scope",
        version: str = "1.0.0",
        packages: str = "Packages",
    ) -> Dict[str, Any]:
        """Lay out a package the way Wally does and return its `_Index` sourcemap node.

        The thunk `Packages/<Name>.lua` forwards into
        `Packages/_Index/<scope>_<name>@<version>/<name>/init.lua`.
        """
        folder_name = f"{scope}_{name.lower()}@{version}"
        module = name.lower()
        thunk = f'return require(script.Parent._Index["{folder_name}"]["{module}"])\n'
        self.write_raw(f"{packages}/{name}.lua", thunk)
        self.write({f"{packages}/_Index/{folder_name}/{module}/init.lua": source})
        return node(
            folder_name,
            "Folder",
            children=[
                node(
                    module,
                    files=[f"{packages}/_Index/{folder_name}/{module}/init.lua"],
                )
            ],
        )


__all__ = ["ProjectBuilder", "folder", "node"]
