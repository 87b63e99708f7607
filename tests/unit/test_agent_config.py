from pathlib import Path

import pytest

from ipset_agent.config import DEFAULT_INTERVAL, load_config
from ipset_refresh import AddressFamily


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
ipset_path: /usr/sbin/ipset
sets:
  - name: blocklist
    type: hash:net
    family: inet6
    hashsize: 4096
    maxelem: 131072
    timeout: 3600
    source: /etc/ipset-refresh/blocklist.txt
    interval: 30
  - name: allowlist
    type: hash:ip
    source: /etc/ipset-refresh/allowlist.txt
"""
    )

    cfg = load_config(config_path)

    assert cfg.ipset_path == "/usr/sbin/ipset"
    assert len(cfg.sets) == 2
    blocklist = cfg.sets[0]
    assert blocklist.name == "blocklist"
    assert blocklist.type == "hash:net"
    assert blocklist.source == Path("/etc/ipset-refresh/blocklist.txt")
    assert blocklist.interval == pytest.approx(30.0)
    assert blocklist.params.family is AddressFamily.INET6
    assert blocklist.params.hash_size == 4096
    assert blocklist.params.max_elements == 131072
    assert blocklist.params.timeout == 3600

    allowlist = cfg.sets[1]
    assert allowlist.interval == pytest.approx(DEFAULT_INTERVAL)
    assert allowlist.params.hash_size == 1024
    assert allowlist.params.max_elements == 65536


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "agent.yaml"
    path.write_text(text)
    return path


def test_missing_ipset_path_uses_discovery(tmp_path: Path):
    cfg = load_config(write(tmp_path, "sets: []\n"))

    assert cfg.ipset_path is None
    assert list(cfg.sets) == []


@pytest.mark.parametrize(
    "text, message",
    [
        ("- not a mapping\n", "must be a mapping"),
        ("sets: {}\n", "must be a list"),
        ("sets:\n  - name: a\n    type: hash:ip\n", "missing 'source'"),
        ("sets:\n  - name: a\n    type: bitmap:ip\n    source: a.txt\n", "not a hash type"),
        ("sets:\n  - name: a\n    type: hash:ip\n    source: a.txt\n    interval: 0\n", "positive"),
        ("sets:\n  - name: a\n    type: hash:ip\n    source: a.txt\n    maxelem: -1\n", "max_elements"),
    ],
)
def test_invalid_config(tmp_path: Path, text: str, message: str):
    with pytest.raises(ValueError, match=message):
        load_config(write(tmp_path, text))


def test_duplicate_names_rejected(tmp_path: Path):
    text = """
sets:
  - {name: a, type: "hash:ip", source: a.txt}
  - {name: a, type: "hash:ip", source: b.txt}
"""
    with pytest.raises(ValueError, match="more than once"):
        load_config(write(tmp_path, text))


def test_shadow_name_collision_rejected(tmp_path: Path):
    text = """
sets:
  - {name: a, type: "hash:ip", source: a.txt}
  - {name: a-temp, type: "hash:ip", source: b.txt}
"""
    with pytest.raises(ValueError, match="reserved"):
        load_config(write(tmp_path, text))
