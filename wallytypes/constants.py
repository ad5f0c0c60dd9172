"""Shared constants for package discovery, extraction, and patching."""

CONFIG_FILENAME = ".wallytypes.yml"

# Wally keeps the real package sources in this folder next to the thunks.
INDEX_DIRNAME = "_Index"

LUAU_SUFFIXES = (".luau", ".lua")

# Preferred order when a package directory carries its own init module.
INIT_FILENAMES = ("init.luau", "init.lua")

DEFAULT_MAX_DEPTH = 8

DEFAULT_THUNK_MARKER = r"^--\s*AUTOGENERATED"
