"""Skill catalog lookups, log-space bulk costs and purchases."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .balance import BalanceConfig, SkillDefinition
from .constants import LOG_MAX, QI_CAP
from .models.realms import Cycle
from .models.state import CultivationState, RankRecord, TechniqueRecord
from .utils import safe_num

log = logging.getLogger(__name__)

LN_TOLERANCE = 1e-12


def _whole(quantity: float) -> int:
    return max(0, math.floor(safe_num(quantity, 0.0)))


def ln_total_cost(skill: SkillDefinition, level: int, quantity: int) -> float:
    """Natural log of the cost of ``quantity`` ranks starting at ``level``.

    Uses the geometric series ``c0 * (r**q - 1) / (r - 1)`` evaluated in log
    space so that large quantities never overflow.
    """

    if quantity <= 0:
        return -math.inf
    ln_scale = math.log(skill.cost_scale)
    ln_first = math.log(skill.cost) + level * ln_scale
    if abs(skill.cost_scale - 1) < 1e-4:
        return math.log(quantity) + ln_first
    exponent = quantity * ln_scale
    ln_numerator = exponent if exponent > 30 else math.log(math.expm1(exponent))
    return ln_first + ln_numerator - math.log(skill.cost_scale - 1)


@dataclass(slots=True)
class PurchasePreview:
    cost: float
    affordable: int
    can_afford: bool


class SkillLedger:
    """Realm-scoped skill ranks and one-time techniques."""

    def __init__(self, balance: BalanceConfig) -> None:
        self.balance = balance

    def skill(self, skill_id: str) -> SkillDefinition | None:
        return self.balance.skill(skill_id)

    def ranks_in_realm(self, state: CultivationState, skill_id: str) -> int:
        record = state.skills.get(skill_id)
        if isinstance(record, RankRecord):
            return record.ranks_in(state.realm_index)
        return 0

    def is_technique_purchased(self, state: CultivationState, skill_id: str) -> bool:
        return isinstance(state.skills.get(skill_id), TechniqueRecord)

    def is_at_rank_cap(self, state: CultivationState, skill_id: str) -> bool:
        skill = self.skill(skill_id)
        if skill is None:
            return True
        if skill.is_technique:
            return self.is_technique_purchased(state, skill_id)
        return self.ranks_in_realm(state, skill_id) >= skill.ranks_per_realm

    def is_unlocked(self, state: CultivationState, skill_id: str) -> bool:
        skill = self.skill(skill_id)
        if skill is None:
            return False
        if skill.unlock_at_cycle is None:
            return True
        if skill.unlock_at_cycle is Cycle.SPIRIT:
            return state.current_cycle is Cycle.SPIRIT
        return True

    def cost(self, state: CultivationState, skill_id: str) -> float:
        """Cost of the next rank, or the fixed cost of a technique."""

        skill = self.skill(skill_id)
        if skill is None:
            return math.inf
        if skill.is_technique:
            return skill.cost
        ranks = self.ranks_in_realm(state, skill_id)
        try:
            return float(math.floor(skill.cost * skill.cost_scale ** ranks))
        except OverflowError:
            return QI_CAP

    def bulk_cost(self, state: CultivationState, skill_id: str, quantity: int) -> float:
        """Total cost of ``quantity`` ranks; always finite and non-negative."""

        quantity = _whole(quantity)
        if quantity <= 0:
            return 0.0
        skill = self.skill(skill_id)
        if skill is None:
            return QI_CAP
        if skill.is_technique:
            return skill.cost
        current = self.ranks_in_realm(state, skill_id)
        actual = min(quantity, skill.ranks_per_realm - current)
        if actual <= 0:
            return QI_CAP
        ln_cost = ln_total_cost(skill, current, actual)
        if not math.isfinite(ln_cost) or ln_cost > LOG_MAX:
            return QI_CAP
        cost = math.exp(ln_cost)
        if not math.isfinite(cost):
            return QI_CAP
        # exp(log(x)) can land a hair below an integral x.
        return float(max(0, math.floor(cost * (1 + LN_TOLERANCE))))

    def max_affordable(
        self, state: CultivationState, skill_id: str, quantity: int, budget: float
    ) -> int:
        """Largest rank count up to ``quantity`` whose exact cost fits ``budget``."""

        quantity = _whole(quantity)
        budget = safe_num(budget, 0.0)
        if budget <= 0 or quantity <= 0:
            return 0
        skill = self.skill(skill_id)
        if skill is None:
            return 0
        if skill.is_technique:
            return 1 if budget >= skill.cost else 0

        current = self.ranks_in_realm(state, skill_id)
        high = min(quantity, skill.ranks_per_realm - current)
        if high <= 0:
            return 0
        ln_budget = math.log(max(1.0, budget))
        low = 0
        while low < high:
            middle = math.ceil((low + high) / 2)
            ln_cost = ln_total_cost(skill, current, middle)
            if not math.isfinite(ln_cost) or ln_cost > LOG_MAX or ln_cost > ln_budget + LN_TOLERANCE:
                high = middle - 1
            else:
                low = middle
        # The log-space search can overshoot by the tolerance.
        while low > 0 and self.bulk_cost(state, skill_id, low) > budget:
            low -= 1
        return low

    def preview(self, state: CultivationState, skill_id: str, quantity: int) -> PurchasePreview:
        cost = self.bulk_cost(state, skill_id, quantity)
        affordable = self.max_affordable(state, skill_id, quantity, state.qi)
        return PurchasePreview(cost=cost, affordable=affordable, can_afford=affordable >= quantity)

    def purchase(self, state: CultivationState, skill_id: str, quantity: int = 1) -> bool:
        """Buy up to ``quantity`` ranks, or the technique, all or nothing."""

        if state.lifecycle.is_reincarnating or state.is_dead:
            return False
        skill = self.skill(skill_id)
        if skill is None:
            return False

        if skill.is_technique:
            if self.is_technique_purchased(state, skill_id):
                return False
            if not self.is_unlocked(state, skill_id):
                return False
            if state.qi < skill.cost:
                return False
            state.qi = safe_num(state.qi - skill.cost)
            state.skills[skill_id] = TechniqueRecord()
            state.stats.total_purchases += 1
            log.debug("Purchased technique %s", skill_id)
            return True

        requested = max(1, math.floor(safe_num(quantity, 1)))
        budget = state.qi
        affordable = self.max_affordable(state, skill_id, requested, budget)
        if affordable <= 0:
            return False
        cost = self.bulk_cost(state, skill_id, affordable)
        if not math.isfinite(cost) or cost > budget:
            return False

        state.qi = safe_num(state.qi - cost)
        record = state.skills.get(skill_id)
        if not isinstance(record, RankRecord):
            record = RankRecord()
            state.skills[skill_id] = record
        record.add(state.realm_index, affordable)
        state.stats.total_purchases += affordable
        if affordable < requested:
            log.debug("Bought %d/%d ranks of %s for %.0f", affordable, requested, skill_id, cost)
        return True


__all__ = ["PurchasePreview", "SkillLedger", "ln_total_cost"]
