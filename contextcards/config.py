"""
Loader configuration.

Values come from the environment and can be overridden by CLI flags.
Behavioural constants (schemes, hints, supported specs, fallback cards) are
not configurable and live next to the code that uses them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_DB_PATH = "cards.db"
DEFAULT_HOST_PACKAGE = "com.example.settings"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class LoaderConfig:
    db_path: str = DEFAULT_DB_PATH
    host_package: str = DEFAULT_HOST_PACKAGE
    host_version: Optional[int] = None
    providers_path: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> LoaderConfig:
        version = os.getenv("CONTEXTCARDS_HOST_VERSION")
        return cls(
            db_path=os.getenv("CONTEXTCARDS_DB_PATH", DEFAULT_DB_PATH),
            host_package=os.getenv("CONTEXTCARDS_HOST_PACKAGE", DEFAULT_HOST_PACKAGE),
            host_version=int(version) if version else None,
            providers_path=os.getenv("CONTEXTCARDS_PROVIDERS") or None,
            log_level=os.getenv("CONTEXTCARDS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
