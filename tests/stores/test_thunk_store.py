from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from wallytypes.errors import ThunkUnwritable
from wallytypes.stores import ThunkStore


def test_write_replaces_file_atomically(tmp_path: Path) -> None:
    thunk = tmp_path / "Foo.lua"
    thunk.write_text("return nil\n", encoding="utf-8")
    store = ThunkStore()

    store.write(thunk, "export type A = number\n\nreturn nil\n")

    assert store.read(thunk) == "export type A = number\n\nreturn nil\n"
    assert sorted(path.name for path in tmp_path.iterdir()) == ["Foo.lua"]


def test_read_preserves_line_endings(tmp_path: Path) -> None:
    thunk = tmp_path / "Foo.lua"
    thunk.write_bytes(b"-- AUTOGENERATED\r\nreturn nil\r\n")
    store = ThunkStore()

    text = store.read(thunk)
    store.write(thunk, text)

    assert text == "-- AUTOGENERATED\r\nreturn nil\r\n"
    assert thunk.read_bytes() == b"-- AUTOGENERATED\r\nreturn nil\r\n"


def test_read_missing_or_undecodable(tmp_path: Path) -> None:
    store = ThunkStore()
    with pytest.raises(ThunkUnwritable):
        store.read(tmp_path / "Missing.lua")

    binary = tmp_path / "Binary.lua"
    binary.write_bytes(b"\xff\xfe\x00")
    with pytest.raises(ThunkUnwritable):
        store.read(binary)


def test_write_into_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ThunkUnwritable):
        ThunkStore().write(tmp_path / "absent" / "Foo.lua", "return nil\n")


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_write_keeps_permissions(tmp_path: Path) -> None:
    thunk = tmp_path / "Foo.lua"
    thunk.write_text("return nil\n", encoding="utf-8")
    os.chmod(thunk, 0o640)

    ThunkStore().write(thunk, "return 1\n")

    assert stat.S_IMODE(thunk.stat().st_mode) == 0o640
