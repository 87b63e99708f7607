"""Handles for named hash ipsets.

An :class:`IPSet` owns the binding between a set name and the kernel set
maintained by ``ipset``.  Creating a handle creates (or re-uses) the kernel
set and leaves it empty; the single-entry helpers are idempotent so callers
can replay them freely.  Bulk replacement lives in :mod:`.refresh`.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .config import SetParameters, resolve_parameters, validate_set_type
from .exceptions import ExecutionError, ValidationError
from .refresh import RefreshResult, refresh_set
from .runner import CommandResult, CommandRunner, default_runner

LOG = logging.getLogger(__name__)

SHADOW_SUFFIX = "-temp"

# Printed by ipset for ``test`` misses ("10.0.0.1 is NOT in set blocklist.").
# ipset 6.x and newer exit with status 1, older releases exit with 0, so the
# phrase is checked before the exit status.
NOT_MEMBER_MARKER = "is NOT in set"


def shadow_name(name: str) -> str:
    """Return the name of the staging set used when refreshing ``name``."""

    return f"{name}{SHADOW_SUFFIX}"


def swap_sets(first: str, second: str, runner: Optional[CommandRunner] = None) -> None:
    """Atomically exchange the members of two existing sets of the same type."""

    runner = runner or default_runner()
    result = runner.run(["swap", first, second])
    if not result.ok:
        raise ExecutionError(
            "swap", f"{first} <-> {second}", result.returncode, result.output
        )
    LOG.info("Swapped ipset %s with %s", first, second)


class IPSet:
    """A named ``hash:*`` set managed through the ipset utility.

    Parameters
    ----------
    name:
        Set name in the ipset namespace.  The name returned by
        :func:`shadow_name` for this set is used as the staging copy by
        :meth:`refresh`; binding a handle to it is allowed, but callers must
        not keep entries there across a refresh.
    set_type:
        Any ``hash:*`` type understood by ipset, e.g. ``hash:ip`` or
        ``hash:net,port``.
    params:
        Creation parameters; ``None`` selects all defaults.
    runner:
        Command runner to use.  Defaults to the process-wide ipset binary.
    create:
        When false the handle binds to an already existing set and issues no
        command at construction time.
    """

    def __init__(
        self,
        name: str,
        set_type: str,
        params: Optional[SetParameters] = None,
        *,
        runner: Optional[CommandRunner] = None,
        create: bool = True,
    ) -> None:
        if not name:
            raise ValidationError("set name must not be empty")
        self._set_type = validate_set_type(set_type)
        self._params = resolve_parameters(params)
        self._name = name
        self._runner = runner or default_runner()

        if create:
            self._create()

    def __repr__(self) -> str:
        return f"IPSet(name={self._name!r}, set_type={self._set_type!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def set_type(self) -> str:
        return self._set_type

    @property
    def params(self) -> SetParameters:
        return self._params

    @property
    def runner(self) -> CommandRunner:
        return self._runner

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _create(self) -> None:
        self.ensure()
        # -exist keeps a stale set of the same name; start from zero members.
        self.flush()
        LOG.info("Created ipset %s (%s)", self._name, self._set_type)

    def ensure(self) -> None:
        """Create the set if it is missing, keeping any current members."""

        self._execute(
            "create",
            [self._name, self._set_type, *self._params.create_args(), "-exist"],
        )

    def flush(self) -> None:
        self._execute("flush", [self._name])

    def destroy(self) -> None:
        """Remove the set.  It must no longer be referenced by any rule."""

        self._execute("destroy", [self._name])
        LOG.info("Destroyed ipset %s", self._name)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------
    def add(self, entry: str, timeout: Optional[int] = None) -> None:
        """Add ``entry``; already present entries are not an error.

        ``timeout`` overrides the set default expiry for this entry, ``0``
        meaning never expire.  ``None`` keeps the set default.
        """

        args = [self._name, entry]
        if timeout is not None:
            if timeout < 0:
                raise ValidationError(f"timeout must not be negative: {timeout}")
            args.extend(["timeout", str(timeout)])
        args.append("-exist")
        self._execute("add", args, entry=entry)

    def remove(self, entry: str) -> None:
        self._execute("del", [self._name, entry, "-exist"], entry=entry)

    def test(self, entry: str) -> bool:
        """Return whether ``entry`` is a member of the set."""

        result = self._runner.run(["test", self._name, entry])
        if NOT_MEMBER_MARKER in result.output:
            return False
        if result.ok:
            return True
        raise ExecutionError(
            "test", self._name, result.returncode, result.output, entry=entry
        )

    # ------------------------------------------------------------------
    # Bulk replacement
    # ------------------------------------------------------------------
    def shadow(self) -> "IPSet":
        """Create (or reset) the empty staging twin of this set."""

        return IPSet(
            shadow_name(self._name),
            self._set_type,
            self._params,
            runner=self._runner,
        )

    def swap(self, other: "IPSet") -> None:
        swap_sets(other.name, self._name, runner=self._runner)

    def refresh(self, entries: Iterable[str]) -> RefreshResult:
        """Atomically replace the members of this set with ``entries``.

        See :func:`ipset_refresh.refresh.refresh_set` for the failure
        semantics.
        """

        return refresh_set(self, entries, stacklevel=2)

    def _execute(
        self, operation: str, args: list[str], entry: Optional[str] = None
    ) -> CommandResult:
        result = self._runner.run([operation, *args])
        if not result.ok:
            raise ExecutionError(
                operation, self._name, result.returncode, result.output, entry=entry
            )
        return result
