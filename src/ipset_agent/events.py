"""Event primitives consumed by the set registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class SetRefresh:
    """Represents the desired membership of a set.

    Publishers always send the complete entry list; the registry replaces the
    set contents with it in one refresh.
    """

    name: str
    entries: Sequence[str]
