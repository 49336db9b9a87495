"""Instantaneous Qi production rates.

Every function here is a pure function of the cultivation state. None of
them looks at the time speed or the character's age, so changing the speed
can never change the production rate.
"""

from __future__ import annotations

import math

from .balance import BalanceConfig, SkillDefinition, SkillEffect
from .constants import QI_CAP
from .formulas import (
    cycle_power_mult,
    effective_skill_base,
    karma_qi_mult,
    max_tier_pct,
    min_tier_pct,
)
from .models.state import CultivationState
from .skills import SkillLedger

PERCENT_CAP = 2.0
OFFLINE_PERCENT_CAP = 1.0
DEFAULT_CAP_PCT = {"qpc": 0.12, "qps": 0.12, "offline": 0.08}


class ResourceEngine:
    def __init__(self, balance: BalanceConfig, ledger: SkillLedger | None = None) -> None:
        self.balance = balance
        self.ledger = ledger or SkillLedger(balance)

    def _effective_base(self, state: CultivationState, skill: SkillDefinition) -> float:
        return effective_skill_base(
            skill.base, state.realm_index, state.reinc.karma, state.current_cycle
        )

    def _percent_bonus(self, state: CultivationState, skill: SkillDefinition, ranks: int, ceiling: float) -> float:
        pct = max(min_tier_pct(state.realm_index), min(max_tier_pct(state.realm_index), skill.base))
        cap_pct = skill.cap_pct_per_realm
        if cap_pct is None:
            cap_pct = DEFAULT_CAP_PCT[skill.effect.target]
        scaled_cap = min(cap_pct * math.sqrt(self._effective_base(state, skill)), ceiling)
        return min(ranks * pct, scaled_cap)

    def _rate(self, state: CultivationState, target: str) -> float:
        if target == "qpc":
            add = state.qpc_base
            per_rank = self.balance.realm_baselines.qpc_flat_per_rank
            own_mult = state.qpc_mult
        else:
            add = state.qps_base
            per_rank = self.balance.realm_baselines.qps_flat_per_rank
            own_mult = state.qps_mult
        baseline = add * per_rank
        mult = 1.0

        for skill in self.balance.skills:
            if skill.effect.target != target:
                continue
            if skill.is_technique:
                if self.ledger.is_technique_purchased(state, skill.id):
                    mult *= 1 + skill.value
                continue
            ranks = self.ledger.ranks_in_realm(state, skill.id)
            if ranks <= 0:
                continue
            if skill.effect.is_percent:
                mult *= 1 + self._percent_bonus(state, skill, ranks, PERCENT_CAP)
            else:
                add += ranks * baseline * self._effective_base(state, skill)

        out = (
            add
            * mult
            * own_mult
            * karma_qi_mult(state.reinc.karma)
            * cycle_power_mult(self.balance.cycles, state.realm_index)
        )
        return out if math.isfinite(out) else QI_CAP

    def qpc(self, state: CultivationState) -> float:
        """Qi gained per click."""

        return self._rate(state, "qpc")

    def qps(self, state: CultivationState) -> float:
        """Qi gained per second; idle accrual is locked in the first realm."""

        if state.realm_index == 0:
            return 0.0
        return self._rate(state, "qps")

    def offline_multiplier(self, state: CultivationState) -> float:
        total = 0.0
        for skill in self.balance.skills:
            if skill.effect is not SkillEffect.OFFLINE_PERCENT:
                continue
            ranks = self.ledger.ranks_in_realm(state, skill.id)
            if ranks > 0:
                total += self._percent_bonus(state, skill, ranks, OFFLINE_PERCENT_CAP)
        return 1.0 + min(total, OFFLINE_PERCENT_CAP)


__all__ = ["ResourceEngine"]
