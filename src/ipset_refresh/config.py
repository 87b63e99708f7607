"""Creation parameters for hash-based ipsets.

The dataclasses here describe how a set is created.  They are value types:
callers fill in what they care about and :meth:`SetParameters.resolved`
completes the rest with the same defaults ``ipset`` itself ships with, so a
bare ``SetParameters()`` is always a valid request.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .exceptions import ValidationError


DEFAULT_HASH_SIZE = 1024
DEFAULT_MAX_ELEMENTS = 65536
HASH_TYPE_PREFIX = "hash:"


class AddressFamily(str, Enum):
    """Address families accepted by hash sets."""

    INET = "inet"
    INET6 = "inet6"


@dataclass(frozen=True)
class SetParameters:
    """Parameters passed to ``ipset create``.

    Attributes
    ----------
    family:
        Address family of the set members.  Defaults to IPv4.
    hash_size:
        Initial hash table size.  ``0`` selects :data:`DEFAULT_HASH_SIZE`.
    max_elements:
        Maximum number of members.  ``0`` selects
        :data:`DEFAULT_MAX_ELEMENTS`.
    timeout:
        Default member expiry in seconds.  ``0`` means members never expire
        unless an explicit timeout is given when adding them.
    """

    family: Union[AddressFamily, str] = AddressFamily.INET
    hash_size: int = 0
    max_elements: int = 0
    timeout: int = 0

    def resolved(self) -> "SetParameters":
        """Return a validated copy with defaults filled in."""

        for field_name in ("hash_size", "max_elements", "timeout"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(
                    f"{field_name} must be an integer, got {value!r}"
                )
            if value < 0:
                raise ValidationError(f"{field_name} must not be negative: {value}")

        return replace(
            self,
            family=_coerce_family(self.family),
            hash_size=self.hash_size or DEFAULT_HASH_SIZE,
            max_elements=self.max_elements or DEFAULT_MAX_ELEMENTS,
        )

    def create_args(self) -> list[str]:
        """Render the ``ipset create`` option tail for these parameters."""

        family = _coerce_family(self.family)
        return [
            "family",
            family.value,
            "hashsize",
            str(self.hash_size),
            "maxelem",
            str(self.max_elements),
            "timeout",
            str(self.timeout),
        ]


def _coerce_family(value: Union[AddressFamily, str, None]) -> AddressFamily:
    if value is None or value == "":
        return AddressFamily.INET
    if isinstance(value, AddressFamily):
        return value
    try:
        return AddressFamily(str(value).lower())
    except ValueError:
        raise ValidationError(f"Unsupported address family '{value}'") from None


def validate_set_type(set_type: str) -> str:
    """Reject anything outside the ``hash:*`` family of set types."""

    if not isinstance(set_type, str) or not set_type.startswith(HASH_TYPE_PREFIX):
        raise ValidationError(f"not a hash type: {set_type!r}")
    if set_type == HASH_TYPE_PREFIX:
        raise ValidationError(f"hash type is missing its dimensions: {set_type!r}")
    return set_type


def resolve_parameters(params: Optional[SetParameters]) -> SetParameters:
    return (params or SetParameters()).resolved()
