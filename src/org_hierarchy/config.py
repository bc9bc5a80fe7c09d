from __future__ import annotations

import os
from dataclasses import dataclass


def _s(name: str, default: str) -> str:
    return os.getenv(name, default)


def _b(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class HierarchyConfig:
    default_backend: str = "graph"
    record_timings: bool = False
    log_level: str = "WARNING"
    log_json: bool = True

    # Optional JSON seed file; the bundled sample dataset is used when empty
    seed_path: str = ""

    @classmethod
    def from_env(cls) -> HierarchyConfig:
        return cls(
            default_backend=_s("HIERARCHY_DEFAULT_BACKEND", "graph").lower(),
            record_timings=_b("HIERARCHY_RECORD_TIMINGS", False),
            log_level=_s("HIERARCHY_LOG_LEVEL", "WARNING").upper(),
            log_json=_b("HIERARCHY_LOG_JSON", True),
            seed_path=_s("HIERARCHY_SEED_PATH", ""),
        )
