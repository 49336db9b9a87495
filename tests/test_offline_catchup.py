from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.constants import QI_CAP
from cultivation.game import CultivationGame
from cultivation.models.state import SessionSnapshot
from cultivation.reincarnation import Phase
from cultivation.storage import MemoryBlobStore


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[str] = []

    def publish(self, event, snapshot) -> None:
        self.events.append(event)


@pytest.fixture
def game() -> CultivationGame:
    game = CultivationGame(store=MemoryBlobStore(), events=RecordingSink(), clock=lambda: 10_000.0)
    state = game.state
    state.realm_index = 1
    state.qps_base = 8.0
    game.lifespan.on_realm_advance(state)
    return game


def test_offline_gain_ignores_speed_but_ages_with_it(game: CultivationGame) -> None:
    game.offline.snapshot(game.state, 9_900.0)

    result = game.apply_offline_catchup(100, 2.0)

    assert result.qi_gained == pytest.approx(1000.0)
    assert result.years_passed == pytest.approx(20.0)
    assert not result.died
    assert game.state.qi == pytest.approx(1000.0)
    assert game.state.age == pytest.approx(20.0)
    assert game.state.reinc.lifetime_qi == pytest.approx(1000.0)
    assert game.state.session is None
    assert "offline" in game.events.events


def test_offline_gap_is_capped(game: CultivationGame) -> None:
    result = game.apply_offline_catchup(100 * 3600, 0.25)

    assert result.capped_seconds == 16 * 3600
    assert result.qi_gained == pytest.approx(10.0 * 16 * 3600)


def test_offline_death_enters_the_acknowledgement_wait(game: CultivationGame) -> None:
    game.state.age = 99.0

    result = game.apply_offline_catchup(100, 1.0)

    assert result.died
    assert game.state.age == pytest.approx(100.0)
    assert game.state.is_dead
    assert game.reincarnation.phase is Phase.WAITING_FOR_ACK
    assert "death" in game.events.events


def test_resume_uses_the_session_snapshot_once(game: CultivationGame) -> None:
    game.state.session = SessionSnapshot(last_ts=9_000.0, last_speed=1.0, last_realm_index=1, last_qi=0.0)

    first = asyncio.run(game.resume())
    second = asyncio.run(game.resume())

    assert first.capped_seconds == 1000
    assert first.qi_gained == pytest.approx(10_000.0)
    assert second.capped_seconds == 0
    assert game.state.session is None


def test_paused_session_gives_nothing(game: CultivationGame) -> None:
    game.state.session = SessionSnapshot(last_ts=0.0, last_speed=0.0)

    result = asyncio.run(game.resume())

    assert result.qi_gained == 0
    assert game.state.qi == 0
    assert game.state.session is None


def test_sub_second_gap_is_ignored(game: CultivationGame) -> None:
    result = game.apply_offline_catchup(0.6, 1.0)

    assert result.qi_gained == 0
    assert game.state.age == 0


def test_result_reports_the_years_actually_aged(game: CultivationGame) -> None:
    game.state.age = 99.0

    result = game.apply_offline_catchup(100, 1.0)

    assert result.died
    assert result.years_passed == pytest.approx(1.0)


def test_result_reports_the_qi_actually_added(game: CultivationGame) -> None:
    game.state.qps_base = 1e299
    assert game.resources.qps(game.state) * 100 > QI_CAP

    result = game.apply_offline_catchup(100, 1.0)

    assert game.state.qi == QI_CAP
    assert result.qi_gained == QI_CAP
    assert game.state.reinc.lifetime_qi == QI_CAP
