"""Error taxonomy for ipset operations."""

from __future__ import annotations

from typing import Optional, Sequence


class IpsetRefreshError(Exception):
    """Base class for every error raised by this package."""

    @property
    def message_sentence(self) -> str:
        message = str(self)
        return message[0].upper() + message[1:] + "."


class ToolUnavailableError(IpsetRefreshError):
    """The ``ipset`` executable could not be located."""


class ValidationError(IpsetRefreshError, ValueError):
    """Caller supplied a set type or parameter we refuse to send to ipset."""


class ExecutionError(IpsetRefreshError):
    """``ipset`` ran but reported a failure.

    Attributes
    ----------
    operation:
        The ipset verb that failed (``create``, ``add``, ``swap`` ...).
    set_name:
        The set the command targeted.  For ``swap`` both names are joined
        with ``" <-> "``.
    entry:
        The membership entry involved, if any.
    returncode:
        Exit status of the process.
    output:
        Combined stdout/stderr as printed by ipset.
    """

    def __init__(
        self,
        operation: str,
        set_name: str,
        returncode: int,
        output: str,
        entry: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.set_name = set_name
        self.entry = entry
        self.returncode = returncode
        self.output = output.strip()
        super().__init__(self._format())

    def _format(self) -> str:
        target = f"set {self.set_name}"
        if self.entry is not None:
            target = f"entry {self.entry!r} in {target}"
        return (
            f"ipset {self.operation} failed for {target} "
            f"(exit status {self.returncode}): {self.output or '<no output>'}"
        )

    @property
    def set_missing(self) -> bool:
        """True when ipset reported that the target set does not exist."""

        return "does not exist" in self.output


class PartialFailureWarning(UserWarning):
    """Some entries could not be loaded during a refresh.

    The refresh itself completed and the set was swapped; ``failed_entries``
    lists what was left out.
    """

    def __init__(self, set_name: str, failed_entries: Sequence[str]) -> None:
        self.set_name = set_name
        self.failed_entries = list(failed_entries)
        super().__init__(
            f"{len(self.failed_entries)} entries could not be added to set "
            f"{set_name}: {', '.join(repr(e) for e in self.failed_entries)}"
        )
