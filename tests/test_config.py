from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.config import EngineConfig
from cultivation.constants import SAVE_KEY


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CULTIVATION_BALANCE_PATH",
        "CULTIVATION_SAVE_KEY",
        "CULTIVATION_FRAME_INTERVAL",
        "CULTIVATION_AUTOSAVE_SECONDS",
        "CULTIVATION_DATA_ROOT",
        "CULTIVATION_STORAGE_ROOT",
        "CULTIVATION_CONFIRM_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    config = EngineConfig.from_env()

    assert config.balance_path is None
    assert config.save_key == SAVE_KEY
    assert config.frame_interval == 0.05
    assert config.autosave_seconds == 30
    assert config.data_root is None
    assert config.confirm_timeout is None


def test_values_are_clamped(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CULTIVATION_FRAME_INTERVAL", "5")
    monkeypatch.setenv("CULTIVATION_AUTOSAVE_SECONDS", "0")
    monkeypatch.setenv("CULTIVATION_SAVE_KEY", "  ")
    monkeypatch.setenv("CULTIVATION_DATA_ROOT", str(tmp_path))
    monkeypatch.setenv("CULTIVATION_BALANCE_PATH", str(tmp_path / "balance.json"))

    config = EngineConfig.from_env()

    assert config.frame_interval == 1.0
    assert config.autosave_seconds == 1.0
    assert config.save_key == SAVE_KEY
    assert config.data_root == tmp_path.resolve()
    assert config.balance_path == tmp_path / "balance.json"


def test_unparseable_numbers_use_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CULTIVATION_FRAME_INTERVAL", "fast")
    monkeypatch.setenv("CULTIVATION_CONFIRM_TIMEOUT", "45")

    config = EngineConfig.from_env()

    assert config.frame_interval == 0.05
    assert config.confirm_timeout == 45.0
