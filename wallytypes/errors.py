"""Exception hierarchy shared across wallytypes components."""

from __future__ import annotations


class WallyTypesError(RuntimeError):
    """Base class for errors raised by wallytypes."""


class MalformedSourcemap(WallyTypesError):
    """Raised when the sourcemap cannot be read or is not a well-formed tree."""


class SourceUnreadable(WallyTypesError):
    """Raised when a resolved module's source file cannot be loaded."""


class ThunkUnwritable(WallyTypesError):
    """Raised when a package thunk is missing, unreadable, or cannot be replaced."""


class ConfigError(WallyTypesError):
    """Raised when the configuration file cannot be parsed."""


__all__ = [
    "ConfigError",
    "MalformedSourcemap",
    "SourceUnreadable",
    "ThunkUnwritable",
    "WallyTypesError",
]
