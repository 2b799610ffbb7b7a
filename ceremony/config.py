"""
Configuration - Environment-driven settings for the ceremony engine.

All values are read once at import time. Components receive a
CeremonyConfig instance instead of reading the environment themselves,
so tests can build one with explicit values.
"""

from __future__ import annotations
from dataclasses import dataclass
import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# Node
NODE_URL = os.getenv("CEREMONY_NODE_URL", "http://localhost:9009")

# Deployment
CEREMONY_ENV = os.getenv("CEREMONY_ENV", "development")
ALLOWED_ORIGINS = os.getenv("CEREMONY_ALLOWED_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("CEREMONY_LOG_LEVEL", "INFO")

# Ceremony timings (milliseconds)
EXTRA_FLIPS_DELAY_MS = int(os.getenv("CEREMONY_EXTRA_FLIPS_DELAY_MS", "35000"))
FETCH_INTERVAL_MS = int(os.getenv("CEREMONY_FETCH_INTERVAL_MS", "1000"))
EPOCH_POLL_MS = int(os.getenv("CEREMONY_EPOCH_POLL_MS", "1000"))
TIMING_POLL_MS = int(os.getenv("CEREMONY_TIMING_POLL_MS", "60000"))
TICK_MS = 1000

# Seconds subtracted from the phase so the client moves on before the node does
GAP = 10

# Local store
PERSIST_ANSWERS = _env_bool("CEREMONY_PERSIST_ANSWERS")
STORE_PATH = os.getenv("CEREMONY_STORE_PATH", None)


@dataclass
class CeremonyConfig:
    """Settings bundle injected into the session and its collaborators."""
    node_url: str = NODE_URL
    extra_flips_delay_ms: int = EXTRA_FLIPS_DELAY_MS
    fetch_interval_ms: int = FETCH_INTERVAL_MS
    epoch_poll_ms: int = EPOCH_POLL_MS
    timing_poll_ms: int = TIMING_POLL_MS
    tick_ms: int = TICK_MS
    gap: int = GAP
    persist_answers: bool = PERSIST_ANSWERS
    store_path: str | None = STORE_PATH

    @classmethod
    def from_env(cls) -> CeremonyConfig:
        """Build a config from the module-level environment values."""
        return cls()
