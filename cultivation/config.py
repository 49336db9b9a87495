"""Engine configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import SAVE_KEY


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(slots=True)
class EngineConfig:
    balance_path: Optional[Path] = None
    save_key: str = SAVE_KEY
    frame_interval: float = 0.05
    autosave_seconds: float = 30.0
    data_root: Optional[Path] = None
    confirm_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        balance = os.getenv("CULTIVATION_BALANCE_PATH")
        data_root = os.getenv("CULTIVATION_DATA_ROOT") or os.getenv("CULTIVATION_STORAGE_ROOT")
        save_key = os.getenv("CULTIVATION_SAVE_KEY", SAVE_KEY).strip() or SAVE_KEY

        frame_interval = _float_env("CULTIVATION_FRAME_INTERVAL", 0.05)
        if not 0.01 <= frame_interval <= 1.0:
            frame_interval = min(1.0, max(0.01, frame_interval))
        autosave_seconds = max(1.0, _float_env("CULTIVATION_AUTOSAVE_SECONDS", 30.0))

        confirm_timeout: Optional[float] = _float_env("CULTIVATION_CONFIRM_TIMEOUT", 0.0)
        if confirm_timeout is not None and confirm_timeout <= 0:
            confirm_timeout = None

        return cls(
            balance_path=Path(balance).expanduser() if balance else None,
            save_key=save_key,
            frame_interval=frame_interval,
            autosave_seconds=autosave_seconds,
            data_root=Path(data_root).expanduser().resolve() if data_root else None,
            confirm_timeout=confirm_timeout,
        )


__all__ = ["EngineConfig"]
