"""File-based set entry watcher."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event, Thread
from typing import Iterable, List, Optional

from ipset_agent.events import SetRefresh
from ipset_agent.registry import SetRegistry

LOG = logging.getLogger(__name__)


def _normalise(lines: Iterable[str]) -> List[str]:
    entries = []
    for line in lines:
        entry = line.split("#", 1)[0].strip()
        if entry:
            entries.append(entry)
    return list(dict.fromkeys(entries))


def parse_entries(text: str) -> List[str]:
    """Parse an entry file: one entry per line, ``#`` starts a comment."""

    return _normalise(text.splitlines())


class FileEntryWatcher(Thread):
    """Poll an entry file and publish refresh events for one set."""

    def __init__(
        self,
        registry: SetRegistry,
        set_name: str,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True, name=f"watch-{set_name}")
        self._registry = registry
        self._set_name = set_name
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._entries: Optional[List[str]] = None

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher for set %s encountered an error", self._set_name)
            self._stop_event.wait(self._interval)

    def poll(self) -> bool:
        """Refresh the set if the file changed; return whether it did."""

        if not self._path.exists():
            LOG.debug("entry file %s does not exist yet", self._path)
            return False

        try:
            text = self._path.read_text()
        except OSError as exc:
            LOG.warning("failed to read entry file %s: %s", self._path, exc)
            return False

        desired = parse_entries(text)
        if desired == self._entries:
            return False

        LOG.debug("set %s updated with %d entries", self._set_name, len(desired))
        self._registry.handle(SetRefresh(self._set_name, desired))
        # Only remembered once applied, so a failed refresh is retried.
        self._entries = desired
        return True
