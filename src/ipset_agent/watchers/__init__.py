"""Watcher implementations used by the ipset refresh agent."""

from .file import FileEntryWatcher  # noqa: F401

__all__ = ["FileEntryWatcher"]
