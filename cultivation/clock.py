"""Frame ticking, breakthroughs, time speed and offline catchup.

Qi accrues on the unscaled wall-clock delta while aging uses the delta
multiplied by the time speed. Changing the speed therefore changes how fast
the character ages but never how fast Qi is gathered.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .balance import BalanceConfig
from .constants import BASE_SPEEDS, DEFAULT_SPEED, QI_CAP, STAGES_PER_REALM
from .lifespan import LifespanController
from .models.realms import DEFAULT_LADDER, Cycle, RealmLadder
from .models.state import CultivationState, SessionSnapshot, normalize_speeds
from .reincarnation import ReincarnationMode, ReincarnationOutcome, ReincarnationStateMachine
from .resources import ResourceEngine
from .stages import StageCostModel
from .utils import safe_add_qi, safe_num

log = logging.getLogger(__name__)


class BreakthroughResult(str, Enum):
    INSUFFICIENT_QI = "insufficient_qi"
    REJECTED = "rejected"
    STAGE_ADVANCED = "stage_advanced"
    REALM_ADVANCED = "realm_advanced"
    MANDATORY_REINCARNATION = "mandatory_reincarnation"
    ASCENDED = "ascended"


def _add_lifetime_qi(state: CultivationState, amount: float) -> None:
    state.reinc.lifetime_qi = min(QI_CAP, safe_num(state.reinc.lifetime_qi + amount, 0.0))


class TimeSpeedControl:
    def __init__(self, balance: BalanceConfig) -> None:
        self.balance = balance

    def available_speeds(self, state: CultivationState) -> list[float]:
        return normalize_speeds(list(state.meta.unlocked_speeds) + list(BASE_SPEEDS))

    def unlock_for_realm(self, state: CultivationState) -> list[float]:
        """Record every speed unlocked at the current realm; return the new ones."""

        known = set(state.meta.unlocked_speeds)
        unlocked = [
            speed
            for speed in self.balance.time_speed.unlocked_at(state.realm_index)
            if speed not in known
        ]
        if unlocked:
            state.meta.unlocked_speeds = normalize_speeds(list(known) + unlocked)
            log.info("Unlocked time speeds: %s", ", ".join(f"{speed:g}x" for speed in unlocked))
        return unlocked

    def set_speed(self, state: CultivationState, speed: float) -> float:
        """Apply ``speed``; anything unavailable falls back to normal speed."""

        if state.is_dead or state.lifecycle.is_reincarnating:
            return state.time_speed.current
        requested = safe_num(speed, DEFAULT_SPEED)
        if requested not in self.available_speeds(state):
            log.debug("Speed %r is not unlocked; using %sx", speed, DEFAULT_SPEED)
            requested = DEFAULT_SPEED
        state.time_speed.current = requested
        state.time_speed.paused = requested == 0
        return requested

    def sanitize(self, state: CultivationState) -> None:
        """Force a loaded speed back to a known value."""

        if state.time_speed.current not in self.available_speeds(state):
            state.time_speed.current = DEFAULT_SPEED
            state.time_speed.paused = False


class ProgressionClock:
    def __init__(
        self,
        balance: BalanceConfig,
        resources: ResourceEngine,
        lifespan: LifespanController,
        reincarnation: ReincarnationStateMachine,
        stages: StageCostModel,
        speeds: TimeSpeedControl,
        ladder: RealmLadder = DEFAULT_LADDER,
    ) -> None:
        self.balance = balance
        self.resources = resources
        self.lifespan = lifespan
        self.reincarnation = reincarnation
        self.stages = stages
        self.speeds = speeds
        self.ladder = ladder
        self.last_outcome: Optional[ReincarnationOutcome] = None

    def _inert(self, state: CultivationState) -> bool:
        return state.lifecycle.is_reincarnating or state.is_dead or self.reincarnation.is_busy

    def tick(
        self, state: CultivationState, raw_dt: float, speed: float | None = None
    ) -> Optional[ReincarnationOutcome]:
        """Advance one frame; returns the pending death when this frame kills."""

        if speed is None:
            speed = state.time_speed.effective
        if speed <= 0 or self._inert(state):
            return None
        if not math.isfinite(raw_dt) or raw_dt <= 0:
            return None

        gain = self.resources.qps(state) * raw_dt
        _add_lifetime_qi(state, safe_add_qi(state, gain))

        died = self.lifespan.tick(state, raw_dt * speed)
        if not died:
            died = self.lifespan.check_gate(state)
        if died or self._death_overdue(state):
            return self.reincarnation.begin_death(state)
        return None

    def _death_overdue(self, state: CultivationState) -> bool:
        # A latch restored from a save without the matching death.
        if not state.flags.lifespan_handled or state.is_dead:
            return False
        maximum = self.lifespan.max_lifespan(state)
        return maximum is not None and state.age >= maximum

    def click(self, state: CultivationState) -> float:
        if state.time_speed.paused or self._inert(state):
            return 0.0
        gained = safe_add_qi(state, self.resources.qpc(state))
        _add_lifetime_qi(state, gained)
        state.stats.total_clicks += 1
        return gained

    def requirement(self, state: CultivationState) -> int:
        return self.stages.requirement(state.realm_index, state.stage, state.reinc.karma)

    def breakthrough(self, state: CultivationState) -> BreakthroughResult:
        self.last_outcome = None
        if self._inert(state):
            return BreakthroughResult.REJECTED
        required = self.requirement(state)
        if state.qi < required:
            return BreakthroughResult.INSUFFICIENT_QI
        state.qi = safe_num(state.qi - required)

        if state.stage < STAGES_PER_REALM:
            state.stage += 1
            return BreakthroughResult.STAGE_ADVANCED

        if self.reincarnation.is_mandatory_due(state):
            self.last_outcome = self.reincarnation.reincarnate(state, ReincarnationMode.MANDATORY)
            return BreakthroughResult.MANDATORY_REINCARNATION

        if self._at_cycle_end(state):
            self.last_outcome = self.reincarnation.reincarnate(
                state, ReincarnationMode.VOLUNTARY, ascension=True
            )
            return BreakthroughResult.ASCENDED

        self._advance_realm(state)
        return BreakthroughResult.REALM_ADVANCED

    def _at_cycle_end(self, state: CultivationState) -> bool:
        if state.realm_index >= self.ladder.last_index:
            return True
        return state.current_cycle is Cycle.SPIRIT and state.realm_index == self.balance.cycles.spirit_end

    def _advance_realm(self, state: CultivationState) -> None:
        progression = self.balance.progression
        state.realm_index += 1
        state.stage = 1
        state.qpc_base += progression.qpc_base_add
        state.qps_base += progression.qps_base_add
        if state.realm_index == self.ladder.first_cultivation_index:
            state.qps_base = progression.first_realm_qps_base

        self.lifespan.on_realm_advance(state)
        cycle = self.balance.cycles.cycle_of(state.realm_index)
        if cycle is not None and cycle is not state.current_cycle:
            log.info("Entered the %s", cycle.display_name)
            state.current_cycle = cycle
        self.speeds.unlock_for_realm(state)
        log.info("Advanced to %s", self.ladder.name_of(state.realm_index))


@dataclass(slots=True)
class OfflineResult:
    qi_gained: float = 0.0
    years_passed: float = 0.0
    died: bool = False
    capped_seconds: float = 0.0


class OfflineCatchup:
    """Replays the accrual/aging split once over the time spent away."""

    def __init__(
        self,
        balance: BalanceConfig,
        resources: ResourceEngine,
        lifespan: LifespanController,
    ) -> None:
        self.balance = balance
        self.resources = resources
        self.lifespan = lifespan

    def snapshot(self, state: CultivationState, now: float) -> SessionSnapshot:
        state.session = SessionSnapshot(
            last_ts=now,
            last_speed=state.time_speed.effective,
            last_realm_index=state.realm_index,
            last_qi=state.qi,
        )
        return state.session

    def apply(self, state: CultivationState, gap_seconds: float, last_speed: float) -> OfflineResult:
        try:
            if state.is_dead or state.lifecycle.is_reincarnating:
                return OfflineResult()
            speed = safe_num(last_speed, 0.0)
            elapsed = math.floor(safe_num(gap_seconds, 0.0))
            if speed <= 0 or elapsed < 1:
                return OfflineResult()

            capped = min(elapsed, self.balance.offline.cap_seconds)
            qi = self.resources.qps(state) * capped * self.resources.offline_multiplier(state)
            gained = safe_add_qi(state, qi)
            bonus = max(1.0, self.balance.reincarnation.offline_karma_bonus)
            _add_lifetime_qi(state, gained * bonus)

            years = capped * speed * self.lifespan.years_per_second
            age_before = state.age
            died = self.lifespan.advance_offline(state, years)
            if not self.lifespan.is_immortal(state):
                # Aging stops at the maximum lifespan.
                years = max(0.0, state.age - age_before)
            if died:
                died = self.lifespan.check_gate(state) or state.flags.lifespan_handled
            log.info(
                "Offline for %ss (capped %ss): +%.0f qi, %.2f years", elapsed, capped, gained, years
            )
            return OfflineResult(qi_gained=gained, years_passed=years, died=died, capped_seconds=capped)
        finally:
            state.session = None

    def resume(self, state: CultivationState, now: float) -> OfflineResult:
        session = state.session
        if session is None or session.last_speed <= 0:
            state.session = None
            return OfflineResult()
        return self.apply(state, now - session.last_ts, session.last_speed)


__all__ = [
    "BreakthroughResult",
    "OfflineCatchup",
    "OfflineResult",
    "ProgressionClock",
    "TimeSpeedControl",
]
