"""ipset refresh agent runtime helpers."""

from .config import AgentConfig, load_config  # noqa: F401
from .events import SetRefresh  # noqa: F401
from .registry import SetRegistry  # noqa: F401

__all__ = [
    "AgentConfig",
    "SetRefresh",
    "SetRegistry",
    "load_config",
]
