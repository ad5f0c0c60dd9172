"""Patch Wally package thunks with the exported types of their packages."""

__version__ = "0.3.0"
