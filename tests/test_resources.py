from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.balance import BalanceConfig
from cultivation.models.realms import Cycle
from cultivation.models.state import CultivationState, RankRecord, TechniqueRecord
from cultivation.resources import ResourceEngine


@pytest.fixture
def engine() -> ResourceEngine:
    return ResourceEngine(BalanceConfig.defaults())


def test_idle_accrual_is_locked_in_the_mortal_realm(engine: ResourceEngine) -> None:
    state = CultivationState.fresh(qpc_base=1.0, qps_base=5.0)

    assert engine.qps(state) == 0
    assert engine.qpc(state) == pytest.approx(1.0)


def test_cycle_position_scales_production(engine: ResourceEngine) -> None:
    state = CultivationState.fresh(qpc_base=1.0, qps_base=8.0)
    state.realm_index = 1

    assert engine.qps(state) == pytest.approx(10.0)

    state.realm_index = 6
    state.current_cycle = Cycle.SPIRIT
    assert engine.qps(state) == pytest.approx(8.0)


def test_flat_ranks_add_to_the_base(engine: ResourceEngine) -> None:
    state = CultivationState.fresh(qpc_base=4.0, qps_base=0.0)
    before = engine.qpc(state)

    state.skills["meridian_flow"] = RankRecord(total=3, per_realm={0: 3})

    assert engine.qpc(state) > before


def test_percent_bonus_is_capped(engine: ResourceEngine) -> None:
    state = CultivationState.fresh(qpc_base=1.0, qps_base=10.0)
    state.realm_index = 4
    state.reinc.karma = 1e6
    base = engine.qps(state)

    state.skills["lotus_meditation"] = RankRecord(total=10_000, per_realm={4: 10_000})

    assert base < engine.qps(state) <= base * 3.0


def test_techniques_multiply_production(engine: ResourceEngine) -> None:
    state = CultivationState.fresh(qpc_base=2.0, qps_base=2.0)
    state.realm_index = 7
    state.current_cycle = Cycle.SPIRIT
    base = engine.qps(state)

    state.skills["celestial_resonance"] = TechniqueRecord()

    assert engine.qps(state) == pytest.approx(base * 1.12)


def test_offline_multiplier_is_bounded(engine: ResourceEngine) -> None:
    state = CultivationState.fresh(qpc_base=1.0, qps_base=1.0)
    assert engine.offline_multiplier(state) == 1.0

    state.reinc.karma = 1e9
    state.realm_index = 9
    state.current_cycle = Cycle.SPIRIT
    state.skills["closed_door"] = RankRecord(total=30, per_realm={9: 30})

    assert 1.0 < engine.offline_multiplier(state) <= 2.0
