"""YAML configuration loader for the ipset refresh agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from ipset_refresh import SetParameters, shadow_name
from ipset_refresh.config import validate_set_type

DEFAULT_INTERVAL = 60.0


@dataclass
class SetConfig:
    name: str
    type: str
    source: Path
    params: SetParameters = field(default_factory=SetParameters)
    interval: float = DEFAULT_INTERVAL


@dataclass
class AgentConfig:
    sets: Sequence[SetConfig] = field(default_factory=list)
    ipset_path: Optional[str] = None


def _parse_params(entry: dict) -> SetParameters:
    params = SetParameters(
        family=str(entry.get("family", "inet")),
        hash_size=int(entry.get("hashsize", 0)),
        max_elements=int(entry.get("maxelem", 0)),
        timeout=int(entry.get("timeout", 0)),
    )
    return params.resolved()


def _parse_set(entry: dict) -> SetConfig:
    if not isinstance(entry, dict):
        raise ValueError("each set definition must be a mapping")
    for key in ("name", "type", "source"):
        if key not in entry:
            raise ValueError(f"set definition missing '{key}'")

    interval = float(entry.get("interval", DEFAULT_INTERVAL))
    if interval <= 0:
        raise ValueError(f"set '{entry['name']}' interval must be positive")

    return SetConfig(
        name=str(entry["name"]),
        type=validate_set_type(str(entry["type"])),
        source=Path(entry["source"]),
        params=_parse_params(entry),
        interval=interval,
    )


def _check_names(sets: Iterable[SetConfig]) -> None:
    names = [s.name for s in sets]
    seen = set()
    for name in names:
        if name in seen:
            raise ValueError(f"set '{name}' defined more than once")
        seen.add(name)
    for name in names:
        if shadow_name(name) in seen:
            raise ValueError(
                f"set '{shadow_name(name)}' is reserved for refreshing '{name}'"
            )


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    sets_section = data.get("sets", [])
    if not isinstance(sets_section, list):
        raise ValueError("'sets' section must be a list")
    sets: List[SetConfig] = [_parse_set(entry) for entry in sets_section]
    _check_names(sets)

    ipset_path = data.get("ipset_path")
    return AgentConfig(
        sets=sets,
        ipset_path=str(ipset_path) if ipset_path else None,
    )
