"""Tests for wallytypes.sourcemap."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.project_builder import ProjectBuilder, folder, node
from wallytypes.errors import MalformedSourcemap
from wallytypes.sourcemap import SourcemapTree, children, find_by_path, load_sourcemap, parse


def _sample() -> dict:
    return node(
        "Project",
        "DataModel",
        children=[
            folder(
                "Packages",
                node("Foo", files=["Packages/Foo.lua"]),
                folder("_Index", folder("scope_foo@1.0.0", node("foo", files=["a/init.meta.json", "a/init.lua"]))),
            ),
            node("Shared", files=["src/shared/init.luau"]),
        ],
    )


def test_parse_builds_tree_in_order() -> None:
    root = parse(_sample())

    assert root.name == "Project"
    assert root.class_name == "DataModel"
    assert [child.name for child in children(root)] == ["Packages", "Shared"]
    packages = root.children[0]
    assert packages.class_name == "Folder"
    assert packages.file_paths == []
    assert [child.name for child in packages.children] == ["Foo", "_Index"]


def test_children_is_read_only_view() -> None:
    root = parse(_sample())
    view = children(root)
    assert isinstance(view, tuple)
    assert len(view) == 2


def test_primary_path_prefers_scripts() -> None:
    root = parse(_sample())
    foo = find_by_path(root, ["Packages", "_Index", "scope_foo@1.0.0", "foo"])
    assert foo is not None
    assert foo.primary_path == Path("a/init.lua")


def test_find_by_path_is_case_sensitive() -> None:
    root = parse(_sample())

    assert find_by_path(root, []) is root
    assert find_by_path(root, ["Packages", "Foo"]).name == "Foo"
    assert find_by_path(root, ["packages", "Foo"]) is None
    assert find_by_path(root, ["Packages", "Missing"]) is None


def test_parse_defaults_missing_class_name() -> None:
    root = parse({"name": "Only"})
    assert root.class_name == ""
    assert root.children == []


@pytest.mark.parametrize(
    "raw",
    [
        [],
        {"className": "Folder"},
        {"name": 3},
        {"name": "Root", "children": {"name": "x"}},
        {"name": "Root", "children": ["not-a-node"]},
        {"name": "Root", "filePaths": "src/init.lua"},
        {"name": "Root", "filePaths": [1]},
        {"name": "Root", "children": [{"className": "Folder"}]},
    ],
)
def test_parse_rejects_malformed_nodes(raw) -> None:
    with pytest.raises(MalformedSourcemap):
        parse(raw)


def test_tree_parent_index_and_require_walk() -> None:
    tree = SourcemapTree(parse(_sample()))
    foo_thunk = tree.find_by_path(["Packages", "Foo"])
    packages = tree.find_by_path(["Packages"])

    assert tree.parent(foo_thunk) is packages
    assert tree.parent(tree.root) is None
    assert tree.path_of(foo_thunk) == "Project.Packages.Foo"

    target = tree.resolve_require(
        foo_thunk, ["script", "Parent", "_Index", "scope_foo@1.0.0", "foo"]
    )
    assert target is not None and target.name == "foo"
    assert tree.resolve_require(foo_thunk, ["game", "Shared"]).name == "Shared"
    assert tree.resolve_require(foo_thunk, ["script", "Parent", "Nope"]) is None
    assert tree.resolve_require(foo_thunk, ["workspace", "Foo"]) is None
    assert tree.resolve_require(tree.root, ["script", "Parent", "Parent"]) is None


def test_tree_walk_is_preorder() -> None:
    tree = SourcemapTree(parse(_sample()))
    names = [n.name for n in tree.walk()]
    assert names == ["Project", "Packages", "Foo", "_Index", "scope_foo@1.0.0", "foo", "Shared"]


def test_load_sourcemap_resolves_paths(project: ProjectBuilder) -> None:
    project.sourcemap(folder("Packages", node("Foo", files=["Packages/Foo.lua"])))
    tree = project.tree()

    foo = tree.find_by_path(["Packages", "Foo"])
    expected = project.path() / "Packages" / "Foo.lua"
    assert foo.file_paths == [expected]
    assert tree.find_by_file(expected) is foo
    assert tree.find_within(project.path() / "Packages") is foo
    assert tree.find_within(project.path() / "src") is None


def test_load_sourcemap_honours_base_dir(project: ProjectBuilder, tmp_path: Path) -> None:
    project.sourcemap(node("Foo", files=["Foo.lua"]))
    other = tmp_path / "elsewhere"
    other.mkdir()

    tree = load_sourcemap(project.root / "sourcemap.json", base_dir=other)
    assert tree.find_by_path(["Foo"]).file_paths == [other.resolve() / "Foo.lua"]


def test_load_sourcemap_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "sourcemap.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedSourcemap):
        load_sourcemap(path)


def test_load_sourcemap_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MalformedSourcemap):
        load_sourcemap(tmp_path / "absent.json")
