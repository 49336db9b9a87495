"""Aging, maximum lifespan and the one-shot death latch."""

from __future__ import annotations

import logging
import math
from typing import Optional

from .balance import BalanceConfig
from .formulas import karma_life_mult
from .models.state import CultivationState, Lifespan

log = logging.getLogger(__name__)

FALLBACK_LIFESPAN = 100.0


class LifespanController:
    """Owns ``age``, ``lifespan`` and ``flags.lifespan_handled``.

    The controller is fed a time delta that is already scaled by the current
    time speed; it never reads the speed itself.
    """

    def __init__(self, balance: BalanceConfig) -> None:
        self.balance = balance

    @property
    def years_per_second(self) -> float:
        return self.balance.lifespan.years_per_second

    def max_lifespan(self, state: CultivationState, realm_index: int | None = None) -> Optional[float]:
        index = state.realm_index if realm_index is None else realm_index
        configured = self.balance.lifespan.configured_for(index)
        if configured is None:
            return None
        base = configured or self.balance.lifespan.configured_for(0) or FALLBACK_LIFESPAN
        return float(math.floor(base * karma_life_mult(state.reinc.karma)))

    def is_immortal(self, state: CultivationState) -> bool:
        return self.max_lifespan(state) is None

    def tick(self, state: CultivationState, scaled_dt: float) -> bool:
        """Advance age by ``scaled_dt`` seconds of game time.

        Returns ``True`` only on the call that trips the death latch.
        """

        if state.time_speed.paused or state.lifespan is None or state.is_dead:
            return False
        maximum = self.max_lifespan(state)
        if maximum is None:
            return False
        if state.lifecycle.is_reincarnating:
            return False
        dt = max(0.0, scaled_dt) if math.isfinite(scaled_dt) else 0.0
        if dt == 0:
            return False

        if not math.isfinite(state.age):
            state.age = 0.0
        new_age = state.age + dt * self.years_per_second
        if not math.isfinite(new_age):
            log.warning("Age update produced a non-finite value; keeping %.2f", state.age)
            return False

        state.age = max(0.0, min(new_age, maximum))
        if state.lifespan.max is not None:
            state.lifespan.current = max(0.0, state.lifespan.max - state.age)

        return self._trip_latch(state, maximum)

    def check_gate(self, state: CultivationState) -> bool:
        """Secondary death check after any time advancement."""

        maximum = self.max_lifespan(state)
        if maximum is None:
            return False
        if state.flags.lifespan_handled or state.lifecycle.is_reincarnating:
            return False
        return self._trip_latch(state, maximum)

    def _trip_latch(self, state: CultivationState, maximum: float) -> bool:
        if state.age >= maximum and not state.flags.lifespan_handled:
            state.flags.lifespan_handled = True
            log.info("Lifespan exhausted at %.1f years", state.age)
            return True
        return False

    def on_realm_advance(self, state: CultivationState) -> None:
        maximum = self.max_lifespan(state)
        if maximum is None:
            state.lifespan = Lifespan(current=None, max=None)
        else:
            state.lifespan = Lifespan(current=maximum, max=maximum)
        state.age = 0.0
        state.flags.lifespan_handled = False

    def refresh_for_realm(self, state: CultivationState) -> None:
        maximum = self.max_lifespan(state)
        if maximum is None:
            state.lifespan = Lifespan(current=None, max=None)
            state.age = 0.0
            return
        current = state.lifespan.current if state.lifespan is not None else None
        if current is None or not math.isfinite(current):
            state.lifespan = Lifespan(current=maximum, max=maximum)
        else:
            state.lifespan = Lifespan(current=min(current, maximum), max=maximum)

    def reset_for_new_life(self, state: CultivationState) -> None:
        state.age = 0.0
        state.is_dead = False
        state.flags.lifespan_handled = False
        maximum = self.max_lifespan(state, 0)
        if maximum is None:
            state.lifespan = Lifespan(current=None, max=None)
        else:
            state.lifespan = Lifespan(current=maximum, max=maximum)

    def advance_offline(self, state: CultivationState, years: float) -> bool:
        """Age by ``years`` at once; returns whether the age reached the maximum."""

        maximum = self.max_lifespan(state)
        if maximum is None or years <= 0 or not math.isfinite(years):
            return False
        state.age = max(0.0, min(state.age + years, maximum))
        if state.lifespan.max is not None:
            state.lifespan.current = max(0.0, state.lifespan.max - state.age)
        return state.age >= maximum


__all__ = ["LifespanController"]
