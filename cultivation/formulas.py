"""Pure scaling curves shared by the progression components."""

from __future__ import annotations

import math

from .balance import CycleConfig
from .models.realms import Cycle
from .utils import clamp

SKILL_BASE_CAP = 1e150
SPIRIT_SKILL_BOOST = 5.0


def karma_qi_mult(karma: float) -> float:
    return 1 + 1.2 * (1 - math.exp(-0.04 * max(0.0, karma)))


def karma_life_mult(karma: float) -> float:
    return 1 + 1.5 * (1 - math.exp(-0.03 * max(0.0, karma)))


def karma_stage_mult(karma: float) -> float:
    """Divisor applied to stage requirements; bounded in ``[1, 1.6)``."""

    return 1 + 0.6 * (1 - math.exp(-0.03 * max(0.0, karma)))


def cycle_power_mult(cycles: CycleConfig, realm_index: int) -> float:
    """Linear bonus per realm position inside the current cycle.

    The bonus restarts at each cycle boundary instead of compounding.
    """

    cycle = cycles.cycle_of(realm_index)
    if cycle is None:
        return 1.0
    definition = cycles.definition(cycle)
    return 1 + definition.realm_bonus * cycles.position_in(realm_index)


def skill_realm_scale(realm_index: int) -> float:
    return min(4.0, max(1.0, 1 + 3 * (1 - math.exp(-0.6 * realm_index))))


def skill_karma_boost(karma: float) -> float:
    return clamp(1 + math.log10(max(1.0, karma) + 1) * 0.3, 1.0, 3.5)


def skill_cycle_boost(cycle: Cycle) -> float:
    return SPIRIT_SKILL_BOOST if cycle is Cycle.SPIRIT else 1.0


def effective_skill_base(base: float, realm_index: int, karma: float, cycle: Cycle) -> float:
    if base <= 0:
        return 0.0
    result = base * skill_realm_scale(realm_index) * skill_karma_boost(karma) * skill_cycle_boost(cycle)
    if not math.isfinite(result):
        return 0.0
    return min(result, SKILL_BASE_CAP)


def min_tier_pct(realm_index: int) -> float:
    return min(0.01, 0.00015 + 0.001 * (1 - math.exp(-0.35 * realm_index)))


def max_tier_pct(realm_index: int) -> float:
    return min(0.06, 0.02 + 0.05 * (1 - math.exp(-0.25 * realm_index)))


__all__ = [
    "cycle_power_mult",
    "effective_skill_base",
    "karma_life_mult",
    "karma_qi_mult",
    "karma_stage_mult",
    "max_tier_pct",
    "min_tier_pct",
    "skill_cycle_boost",
    "skill_karma_boost",
    "skill_realm_scale",
]
