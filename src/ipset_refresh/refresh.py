"""Atomic bulk replacement of ipset members.

A refresh never edits the live set in place.  The new members are loaded into
a shadow set (``<name>-temp``) and the two are exchanged with ``ipset swap``,
which the kernel performs as a single step: filter rules referencing the live
name see either the complete old membership or the complete new one.

Failure handling follows the swap:

* before it (shadow creation, loading entries) nothing visible has changed.
  Entries ipset rejects are collected and the load carries on;
* the swap itself raises :class:`~ipset_refresh.exceptions.ExecutionError`
  and leaves the live set untouched.  The shadow stays behind and is reset by
  the next refresh;
* after it, failing to destroy the shadow (which now holds the old members)
  is logged and reported on the result but never raised.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Optional

from .exceptions import ExecutionError, PartialFailureWarning

if TYPE_CHECKING:  # pragma: no cover
    from .ipset import IPSet

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryFailure:
    """An entry ipset refused to load into the shadow set."""

    entry: str
    error: ExecutionError


@dataclass
class RefreshResult:
    """Report of a completed refresh."""

    set_name: str
    shadow_name: str
    applied: int = 0
    failures: List[EntryFailure] = field(default_factory=list)
    cleanup_error: Optional[ExecutionError] = None

    @property
    def failed_entries(self) -> List[str]:
        return [failure.entry for failure in self.failures]

    @property
    def ok(self) -> bool:
        return not self.failures and self.cleanup_error is None


def refresh_set(
    target: "IPSet", entries: Iterable[str], *, stacklevel: int = 1
) -> RefreshResult:
    """Replace the members of ``target`` with ``entries``.

    Emits :class:`PartialFailureWarning` when some entries were rejected; the
    returned :class:`RefreshResult` lists them as well.  The warning is
    attributed to the direct caller; raise ``stacklevel`` by one per wrapper
    frame in between.
    """

    shadow = target.shadow()
    result = RefreshResult(set_name=target.name, shadow_name=shadow.name)

    for entry in entries:
        try:
            shadow.add(entry)
        except ExecutionError as exc:
            LOG.debug("Skipping entry %r for set %s: %s", entry, target.name, exc)
            result.failures.append(EntryFailure(entry=entry, error=exc))
        else:
            result.applied += 1

    target.swap(shadow)
    LOG.info("Refreshed ipset %s with %d entries", target.name, result.applied)

    try:
        shadow.destroy()
    except ExecutionError as exc:
        LOG.warning(
            "Refresh of %s succeeded but shadow set %s was not removed: %s",
            target.name,
            shadow.name,
            exc,
        )
        result.cleanup_error = exc

    if result.failures:
        warning = PartialFailureWarning(target.name, result.failed_entries)
        # Logged every time; the warnings filter may hide repeats.
        LOG.warning("%s", warning)
        warnings.warn(warning, stacklevel=stacklevel + 1)

    return result
