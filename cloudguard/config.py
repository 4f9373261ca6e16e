from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    """
    Runtime knobs, read from CLOUDGUARD_* environment variables.

    seed_path     JSONL file loaded into the store at startup (optional)
    persist_path  JSONL snapshot rewritten after every mutation (optional)
    api_url       base URL the polling client and CLI talk to
    """
    seed_path: Optional[str] = None
    persist_path: Optional[str] = None
    log_level: str = "INFO"
    api_url: str = "http://localhost:3000"
    refresh_interval: float = 3.0
    http_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            seed_path=os.getenv("CLOUDGUARD_SEED_PATH") or None,
            persist_path=os.getenv("CLOUDGUARD_PERSIST_PATH") or None,
            log_level=os.getenv("CLOUDGUARD_LOG_LEVEL", "INFO"),
            api_url=os.getenv("CLOUDGUARD_API_URL", "http://localhost:3000"),
            refresh_interval=_env_float("CLOUDGUARD_REFRESH_INTERVAL", 3.0),
            http_timeout=_env_float("CLOUDGUARD_HTTP_TIMEOUT", 5.0),
        )
