"""Registry dispatching refresh events to set handles."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ipset_refresh import IPSet, RefreshResult, shadow_name

from .events import SetRefresh

LOG = logging.getLogger(__name__)


class SetRegistry:
    """Map set names to handles and apply :class:`SetRefresh` events.

    Each set is expected to be fed by a single publisher; the registry does
    not serialise concurrent refreshes of the same name.
    """

    def __init__(self) -> None:
        self._sets: Dict[str, IPSet] = {}

    def register(self, ipset: IPSet) -> None:
        name = ipset.name
        if name in self._sets:
            raise ValueError(f"set '{name}' already registered")
        for other in self._sets:
            if name == shadow_name(other) or other == shadow_name(name):
                raise ValueError(
                    f"set '{name}' collides with the refresh shadow of '{other}'"
                )
        self._sets[name] = ipset

    def unregister(self, name: str) -> Optional[IPSet]:
        return self._sets.pop(name, None)

    def get(self, name: str) -> Optional[IPSet]:
        return self._sets.get(name)

    def names(self) -> List[str]:
        return list(self._sets)

    def handle(self, event: SetRefresh) -> Optional[RefreshResult]:
        if not isinstance(event, SetRefresh):
            raise TypeError(f"Unsupported event type: {type(event)!r}")
        return self._on_refresh(event)

    def _on_refresh(self, event: SetRefresh) -> Optional[RefreshResult]:
        ipset = self._sets.get(event.name)
        if ipset is None:
            LOG.debug("refresh requested for unknown set '%s'", event.name)
            return None

        result = ipset.refresh(event.entries)
        LOG.info(
            "set %s refreshed: %d applied, %d rejected",
            event.name,
            result.applied,
            len(result.failures),
        )
        return result
