from __future__ import annotations

import sys
from pathlib import Path

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.balance import BalanceConfig
from cultivation.models.state import CultivationState
from cultivation.resources import ResourceEngine
from cultivation.simulation import find_best_purchase, production_per_second, simulate
from cultivation.skills import SkillLedger


def test_short_simulation_leaves_the_mortal_realm() -> None:
    result = simulate(hours=0.05, click_rate=5, dt=0.5)

    assert not result.finished
    assert result.time_hours == 0.05
    assert result.realm != "Mortal Realm"
    assert result.timeline
    assert result.timeline[-1].realm_index >= 1


def test_best_purchase_respects_unlocks_and_budget() -> None:
    balance = BalanceConfig.defaults()
    ledger = SkillLedger(balance)
    resources = ResourceEngine(balance, ledger)

    mortal = CultivationState.fresh(qpc_base=1, qps_base=0)
    assert find_best_purchase(ledger, resources, mortal, 3.0) is None

    cultivator = CultivationState.fresh(qpc_base=2, qps_base=8)
    cultivator.realm_index = 1
    cultivator.qi = 1e4
    pick = find_best_purchase(ledger, resources, cultivator, 3.0)

    assert pick is not None
    assert pick.cost <= 1e4
    assert pick.gain > 0
    assert cultivator.qi == 1e4


def test_production_counts_clicks() -> None:
    balance = BalanceConfig.defaults()
    ledger = SkillLedger(balance)
    resources = ResourceEngine(balance, ledger)
    state = CultivationState.fresh(qpc_base=1, qps_base=0)

    assert production_per_second(resources, state, 4.0) == resources.qpc(state) * 4.0
