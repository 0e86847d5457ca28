from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StoreConfig:
    studies_root: Path


def get_store_config() -> StoreConfig:
    root = os.getenv("STUDIES_ROOT", "./study_store")
    return StoreConfig(studies_root=Path(root).resolve())


@dataclass(frozen=True)
class APIConfig:
    api_key: str | None = None
    rate_limit_n: int = 5
    rate_limit_window_sec: float = 1.0


def get_api_config() -> APIConfig:
    return APIConfig(
        api_key=os.getenv("API_KEY") or None,
        rate_limit_n=int(os.getenv("RATE_LIMIT_N", "5")),
        rate_limit_window_sec=float(os.getenv("RATE_LIMIT_WINDOW_SEC", "1.0")),
    )
