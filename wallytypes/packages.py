"""Discovery of installed packages under a packages root."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Sequence

from .constants import INDEX_DIRNAME, INIT_FILENAMES, LUAU_SUFFIXES
from .models import PackageEntry


def discover_packages(packages_root: Path, exclude: Sequence[str] = ()) -> List[PackageEntry]:
    """Return the packages directly under ``packages_root``, sorted by name.

    A directory is a package whose thunk is its init module; a loose
    `Name.lua`/`Name.luau` file (Wally's own layout) is its own thunk.
    """
    root = Path(packages_root).expanduser().resolve()
    if not root.exists():
        raise FileNotFoundError(f"Packages folder not found: {packages_root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Packages folder is not a directory: {packages_root}")

    packages: List[PackageEntry] = []
    for path in sorted(root.iterdir()):
        if path.name == INDEX_DIRNAME or path.name.startswith("."):
            continue
        if path.is_dir():
            name = path.name
            thunk_path = _init_module(path)
        elif path.suffix in LUAU_SUFFIXES:
            name = path.stem
            thunk_path = path
        else:
            continue
        if any(fnmatchcase(name, pattern) for pattern in exclude):
            continue
        packages.append(PackageEntry(name=name, path=path, thunk_path=thunk_path))

    packages.sort(key=lambda package: package.name)
    return packages


def _init_module(directory: Path) -> Path:
    for filename in INIT_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    # Missing thunks surface later as per-package failures.
    return directory / INIT_FILENAMES[0]


__all__ = ["discover_packages"]
