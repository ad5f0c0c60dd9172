"""Persistent stores used by wallytypes."""

from .thunk_store import ThunkStore

__all__ = ["ThunkStore"]
