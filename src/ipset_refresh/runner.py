"""Process boundary between set handles and the ``ipset`` executable.

Every command goes through :meth:`CommandRunner.run`, which returns the exit
status together with the combined output.  Handles never spawn processes
themselves, so tests can swap the real executable for an in-memory fake.
"""

from __future__ import annotations

import functools
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .exceptions import ToolUnavailableError

LOG = logging.getLogger(__name__)

IPSET_COMMAND = "ipset"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one ipset invocation."""

    args: Tuple[str, ...]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(ABC):
    """Executes ipset sub-commands such as ``("flush", "blocklist")``."""

    @abstractmethod
    def run(self, args: Sequence[str]) -> CommandResult:
        """Run ``ipset <args>`` and block until it exits."""


class IpsetRunner(CommandRunner):
    """Run commands against a concrete ipset binary."""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def run(self, args: Sequence[str]) -> CommandResult:
        cmd = [self._path, *args]
        LOG.debug("Executing: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, check=False, text=True, capture_output=True)
        except OSError as exc:
            raise ToolUnavailableError(
                f"failed to execute {self._path}: {exc}"
            ) from exc

        output = "".join(part for part in (proc.stdout, proc.stderr) if part)
        if proc.returncode != 0:
            LOG.debug(
                "ipset %s exited with %s: %s", args[0], proc.returncode, output.strip()
            )
        return CommandResult(args=tuple(args), returncode=proc.returncode, output=output)


@functools.lru_cache(maxsize=None)
def _lookup_ipset() -> Optional[str]:
    path = shutil.which(IPSET_COMMAND)
    if path is None:
        LOG.error("ipset utility not found in PATH")
    else:
        LOG.debug("Using ipset binary at %s", path)
    return path


def find_ipset() -> str:
    """Return the ipset path, looking it up on first use only.

    A failed lookup is remembered too: once ipset is known to be missing
    every call raises :class:`ToolUnavailableError` without probing again.
    """

    path = _lookup_ipset()
    if path is None:
        raise ToolUnavailableError("ipset utility not found")
    return path


def default_runner() -> IpsetRunner:
    return IpsetRunner(find_ipset())
