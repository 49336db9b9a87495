"""Headless balance playtest.

Runs the real production, cost and breakthrough components against a bot
that clicks at a fixed rate and buys whichever skill adds the most
production per Qi spent. Aging is left out so a run measures pure pacing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from .balance import BalanceConfig
from .clock import BreakthroughResult, ProgressionClock, TimeSpeedControl
from .clock import _add_lifetime_qi
from .lifespan import LifespanController
from .models.realms import DEFAULT_LADDER, RealmLadder
from .models.state import CultivationState
from .reincarnation import ReincarnationStateMachine
from .resources import ResourceEngine
from .skills import SkillLedger
from .stages import StageCostModel
from .utils import safe_add_qi

log = logging.getLogger(__name__)

# Guards against a balance where breakthroughs never stop succeeding.
MAX_BREAKTHROUGHS_PER_STEP = 1000


@dataclass(slots=True)
class TimelinePoint:
    hours: float
    realm_index: int
    stage: int
    qi: float
    reincarnations: int


@dataclass(slots=True)
class SimulationResult:
    finished: bool
    time_hours: float
    realm: str
    stage: int
    reincarnations: int
    karma: float
    purchases: dict[str, int] = field(default_factory=dict)
    timeline: list[TimelinePoint] = field(default_factory=list)


@dataclass(slots=True)
class PurchasePick:
    skill_id: str
    value_per_cost: float
    cost: float
    gain: float


class _Components:
    def __init__(self, balance: BalanceConfig, ladder: RealmLadder) -> None:
        self.ledger = SkillLedger(balance)
        self.resources = ResourceEngine(balance, self.ledger)
        lifespan = LifespanController(balance)
        self.clock = ProgressionClock(
            balance,
            self.resources,
            lifespan,
            ReincarnationStateMachine(balance, lifespan, ladder, clock=lambda: 0.0),
            StageCostModel(balance.stage_requirement, len(ladder)),
            TimeSpeedControl(balance),
            ladder,
        )


def production_per_second(resources: ResourceEngine, state: CultivationState, click_rate: float) -> float:
    return resources.qps(state) + resources.qpc(state) * click_rate


def find_best_purchase(
    ledger: SkillLedger,
    resources: ResourceEngine,
    state: CultivationState,
    click_rate: float,
) -> Optional[PurchasePick]:
    """Return the affordable single purchase with the best gain per Qi."""

    base = production_per_second(resources, state, click_rate)
    best: Optional[PurchasePick] = None
    for skill in ledger.balance.skills:
        if not ledger.is_unlocked(state, skill.id):
            continue
        if skill.is_technique and ledger.is_technique_purchased(state, skill.id):
            continue
        if not skill.is_technique and ledger.is_at_rank_cap(state, skill.id):
            continue
        cost = ledger.cost(state, skill.id)
        if not math.isfinite(cost) or cost <= 0 or state.qi < cost:
            continue
        trial = state.clone()
        if not ledger.purchase(trial, skill.id, 1):
            continue
        gain = production_per_second(resources, trial, click_rate) - base
        value = gain / cost
        if best is None or value > best.value_per_cost:
            best = PurchasePick(skill_id=skill.id, value_per_cost=value, cost=cost, gain=gain)
    return best


def simulate(
    balance: BalanceConfig | None = None,
    *,
    hours: float = 10.0,
    click_rate: float = 3.0,
    dt: float = 0.1,
    buy_every: float = 0.25,
    sample_every: float = 60.0,
    ladder: RealmLadder = DEFAULT_LADDER,
) -> SimulationResult:
    balance = balance or BalanceConfig.defaults(len(ladder))
    parts = _Components(balance, ladder)
    progression = balance.progression
    state = CultivationState.fresh(
        qpc_base=progression.qpc_base_start, qps_base=progression.qps_base_start
    )

    max_seconds = hours * 3600
    elapsed = 0.0
    buy_timer = 0.0
    sample_timer = sample_every
    purchases: dict[str, int] = {}
    timeline: list[TimelinePoint] = []

    def sample() -> None:
        timeline.append(
            TimelinePoint(
                hours=elapsed / 3600,
                realm_index=state.realm_index,
                stage=state.stage,
                qi=state.qi,
                reincarnations=state.reinc.times,
            )
        )

    def result(finished: bool) -> SimulationResult:
        sample()
        return SimulationResult(
            finished=finished,
            time_hours=elapsed / 3600 if finished else hours,
            realm=ladder.name_of(state.realm_index),
            stage=state.stage,
            reincarnations=state.reinc.times,
            karma=state.reinc.karma,
            purchases=purchases,
            timeline=timeline,
        )

    while elapsed < max_seconds:
        gain = production_per_second(parts.resources, state, click_rate) * dt
        _add_lifetime_qi(state, safe_add_qi(state, gain))

        for _ in range(MAX_BREAKTHROUGHS_PER_STEP):
            outcome = parts.clock.breakthrough(state)
            if outcome is BreakthroughResult.ASCENDED:
                log.info("Ascended after %.2f hours", elapsed / 3600)
                return result(True)
            if outcome is BreakthroughResult.INSUFFICIENT_QI:
                break

        buy_timer += dt
        if buy_timer >= buy_every and state.realm_index > 0:
            buy_timer = 0.0
            pick = find_best_purchase(parts.ledger, parts.resources, state, click_rate)
            if pick is not None and parts.ledger.purchase(state, pick.skill_id, 1):
                purchases[pick.skill_id] = purchases.get(pick.skill_id, 0) + 1

        sample_timer += dt
        if sample_timer >= sample_every:
            sample_timer = 0.0
            sample()
        elapsed += dt

    return result(False)


__all__ = [
    "PurchasePick",
    "SimulationResult",
    "TimelinePoint",
    "find_best_purchase",
    "production_per_second",
    "simulate",
]
