import ipaddress
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence, Set, Tuple

import pytest

from ipset_refresh.runner import CommandResult, CommandRunner


PREFIX = "ipset v7.15: "
MISSING = PREFIX + "The set with the given name does not exist\n"


@dataclass
class FakeSet:
    type: str
    options: Tuple[str, ...]
    members: Set[str] = field(default_factory=set)


class FakeIpset(CommandRunner):
    """In-memory stand-in for the ipset binary.

    ``failures`` forces an operation (optionally for one set name) to fail,
    and every callable in ``observers`` runs after each command.
    """

    def __init__(self) -> None:
        self.sets: Dict[str, FakeSet] = {}
        self.calls: List[Tuple[str, ...]] = []
        self.failures: Dict[Tuple[str, str], CommandResult] = {}
        self.observers: List[Callable[["FakeIpset"], None]] = []

    def members(self, name: str) -> Set[str]:
        return set(self.sets[name].members)

    def fail(self, operation: str, name: str = "*", output: str = "boom") -> None:
        self.failures[(operation, name)] = CommandResult(
            args=(operation, name), returncode=1, output=PREFIX + output + "\n"
        )

    def run(self, args: Sequence[str]) -> CommandResult:
        args = tuple(args)
        self.calls.append(args)
        try:
            return self._dispatch(args)
        finally:
            for observer in self.observers:
                observer(self)

    def _dispatch(self, args: Tuple[str, ...]) -> CommandResult:
        operation, name = args[0], args[1]
        forced = self.failures.get((operation, name)) or self.failures.get(
            (operation, "*")
        )
        if forced is not None:
            return CommandResult(args, forced.returncode, forced.output)
        handler = getattr(self, f"_do_{operation}")
        returncode, output = handler(*args[1:])
        return CommandResult(args, returncode, output)

    def _do_create(self, name, set_type, *options):
        exist = "-exist" in options
        options = tuple(o for o in options if o != "-exist")
        current = self.sets.get(name)
        if current is None:
            self.sets[name] = FakeSet(type=set_type, options=options)
            return 0, ""
        if exist and current.type == set_type and current.options == options:
            return 0, ""
        return 1, PREFIX + "Set cannot be created: set with the same name already exists\n"

    def _do_flush(self, name):
        if name not in self.sets:
            return 1, MISSING
        self.sets[name].members.clear()
        return 0, ""

    def _do_destroy(self, name):
        if self.sets.pop(name, None) is None:
            return 1, MISSING
        return 0, ""

    def _do_swap(self, first, second):
        if first not in self.sets or second not in self.sets:
            return 1, MISSING
        if self.sets[first].type != self.sets[second].type:
            return 1, PREFIX + "The sets cannot be swapped: their type does not match\n"
        self.sets[first], self.sets[second] = self.sets[second], self.sets[first]
        return 0, ""

    def _check_entry(self, name, entry):
        if name not in self.sets:
            return 1, MISSING
        try:
            ipaddress.ip_network(entry, strict=False)
        except ValueError:
            return 1, PREFIX + f"Syntax error: cannot parse {entry}: resolving to IPv4 address failed\n"
        return None

    def _do_add(self, name, entry, *options):
        error = self._check_entry(name, entry)
        if error:
            return error
        if entry in self.sets[name].members and "-exist" not in options:
            return 1, PREFIX + "Element cannot be added to the set: it's already added\n"
        self.sets[name].members.add(entry)
        return 0, ""

    def _do_del(self, name, entry, *options):
        error = self._check_entry(name, entry)
        if error:
            return error
        if entry not in self.sets[name].members and "-exist" not in options:
            return 1, PREFIX + "Element cannot be deleted from the set: it's not added\n"
        self.sets[name].members.discard(entry)
        return 0, ""

    def _do_test(self, name, entry):
        error = self._check_entry(name, entry)
        if error:
            return error
        if entry in self.sets[name].members:
            return 0, f"{entry} is in set {name}.\n"
        return 1, PREFIX + f"{entry} is NOT in set {name}.\n"


@pytest.fixture
def fake_ipset() -> FakeIpset:
    return FakeIpset()
