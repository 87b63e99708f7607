"""Control-plane helpers for Linux hash ipsets.

The package drives the ``ipset`` utility as a subprocess to create, edit and
atomically refresh named sets that packet filter rules reference by name.
It never talks to the kernel directly; all state lives in the ipset engine.

The main entry point is :class:`ipset_refresh.ipset.IPSet`:

* constructing a handle creates the set (re-using an existing one of the
  same name) and flushes it;
* ``add``/``remove``/``test`` edit or query single members idempotently;
* ``refresh`` swaps in a complete new membership through a shadow set so
  rules never observe the set missing or half loaded.

Commands run through a :class:`~ipset_refresh.runner.CommandRunner`, which
tests replace with an in-memory fake.  Concurrent writers to the same set name
from different processes are not coordinated.
"""

from .config import AddressFamily, SetParameters  # noqa: F401
from .exceptions import (  # noqa: F401
    ExecutionError,
    IpsetRefreshError,
    PartialFailureWarning,
    ToolUnavailableError,
    ValidationError,
)
from .ipset import IPSet, shadow_name, swap_sets  # noqa: F401
from .refresh import EntryFailure, RefreshResult  # noqa: F401
from .runner import CommandResult, CommandRunner, IpsetRunner  # noqa: F401

__all__ = [
    "AddressFamily",
    "CommandResult",
    "CommandRunner",
    "EntryFailure",
    "ExecutionError",
    "IPSet",
    "IpsetRefreshError",
    "IpsetRunner",
    "PartialFailureWarning",
    "RefreshResult",
    "SetParameters",
    "ToolUnavailableError",
    "ValidationError",
    "shadow_name",
    "swap_sets",
]
