from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.clock import BreakthroughResult
from cultivation.game import CultivationGame
from cultivation.models.realms import Cycle
from cultivation.storage import MemoryBlobStore


@pytest.fixture
def game() -> CultivationGame:
    return CultivationGame(store=MemoryBlobStore(), clock=lambda: 1000.0)


def _enter_qi_refining(game: CultivationGame, qps_base: float = 8.0) -> None:
    state = game.state
    state.realm_index = 1
    state.qps_base = qps_base
    game.lifespan.on_realm_advance(state)


def test_time_speed_changes_aging_but_not_qi(game: CultivationGame) -> None:
    _enter_qi_refining(game)
    fast = game.state.clone()

    game.progression.tick(game.state, 1.0, 1.0)
    game.progression.tick(fast, 1.0, 4.0)

    assert game.state.qi == pytest.approx(10.0)
    assert fast.qi == pytest.approx(10.0)
    assert game.state.age == pytest.approx(0.1)
    assert fast.age == pytest.approx(0.4)
    assert fast.reinc.lifetime_qi == pytest.approx(10.0)


def test_paused_tick_does_nothing(game: CultivationGame) -> None:
    _enter_qi_refining(game)

    assert game.tick(5.0, 0.0) is None
    game.set_time_speed(0.0)
    game.tick(5.0)

    assert game.state.qi == 0
    assert game.state.age == 0


def test_non_finite_frames_are_ignored(game: CultivationGame) -> None:
    _enter_qi_refining(game)

    game.tick(float("nan"), 1.0)
    game.tick(float("inf"), 1.0)
    game.tick(-3.0, 1.0)

    assert game.state.qi == 0
    assert game.state.age == 0


def test_click_adds_qpc_and_counts(game: CultivationGame) -> None:
    assert game.click() == pytest.approx(1.0)
    assert game.state.qi == pytest.approx(1.0)
    assert game.state.stats.total_clicks == 1

    game.set_time_speed(0.0)
    assert game.click() == 0
    assert game.state.stats.total_clicks == 1


def test_breakthrough_advances_stage_then_realm(game: CultivationGame) -> None:
    state = game.state
    assert game.breakthrough() is BreakthroughResult.INSUFFICIENT_QI

    state.qi = 10
    assert game.breakthrough() is BreakthroughResult.STAGE_ADVANCED
    assert state.stage == 2
    assert state.qi == 0

    state.stage = 10
    state.age = 30.0
    state.qi = 100
    assert game.breakthrough() is BreakthroughResult.REALM_ADVANCED
    assert state.realm_index == 1
    assert state.stage == 1
    assert state.qpc_base == pytest.approx(3.5)
    assert state.qps_base == pytest.approx(1.0)
    assert state.age == 0
    assert state.lifespan.max == pytest.approx(100.0)


def test_realm_advance_unlocks_speeds(game: CultivationGame) -> None:
    _enter_qi_refining(game)
    state = game.state
    state.stage = 10
    state.qi = game.progression.requirement(state)

    assert 2.0 not in game.speeds.available_speeds(state)
    assert game.breakthrough() is BreakthroughResult.REALM_ADVANCED

    assert 2.0 in game.speeds.available_speeds(state)
    assert any(notice.title == "Time Flows Differently" for notice in game.pending_notices)


def test_gate_forces_mandatory_reincarnation(game: CultivationGame) -> None:
    state = game.state
    state.realm_index = game.ladder.gate_index
    state.stage = 10
    state.qi = game.progression.requirement(state)

    assert game.breakthrough() is BreakthroughResult.MANDATORY_REINCARNATION

    assert state.realm_index == 0
    assert state.stage == 1
    assert state.reinc.times == 1
    assert state.reinc.karma == pytest.approx(20.0)
    assert state.reinc.lifetime_qi == 0
    assert state.flags.unlocked_beyond_spirit
    assert state.flags.has_completed_mandatory_st10
    assert state.flags.can_manual_reincarnate
    assert not state.lifecycle.is_reincarnating
    assert not state.time_speed.paused


def test_gate_opens_after_the_mandatory_reincarnation(game: CultivationGame) -> None:
    state = game.state
    state.flags.unlocked_beyond_spirit = True
    state.realm_index = game.ladder.gate_index
    state.stage = 10
    state.qi = game.progression.requirement(state)

    assert game.breakthrough() is BreakthroughResult.REALM_ADVANCED
    assert state.realm_index == game.ladder.gate_index + 1
    assert state.current_cycle is Cycle.SPIRIT


def test_final_realm_ascends(game: CultivationGame) -> None:
    state = game.state
    state.flags.unlocked_beyond_spirit = True
    state.flags.has_completed_mandatory_st10 = True
    state.realm_index = game.ladder.last_index
    state.current_cycle = Cycle.SPIRIT
    state.stage = 10
    state.qi = game.progression.requirement(state)

    assert game.breakthrough() is BreakthroughResult.ASCENDED
    assert state.realm_index == 0
    assert state.reinc.times == 1
    assert state.current_cycle is Cycle.MORTAL
    assert state.flags.unlocked_beyond_spirit


def test_unavailable_speed_falls_back_to_normal(game: CultivationGame) -> None:
    assert game.set_time_speed(8.0) == 1.0
    assert game.set_time_speed(0.5) == 0.5
    assert not game.state.time_speed.paused

    assert game.set_time_speed(0.0) == 0.0
    assert game.state.time_speed.paused


def test_sanitize_resets_unknown_speed(game: CultivationGame) -> None:
    game.state.time_speed.current = 3.0
    game.state.time_speed.paused = True

    game.speeds.sanitize(game.state)

    assert game.state.time_speed.current == 1.0
    assert not game.state.time_speed.paused
