"""Death, voluntary and mandatory reincarnation as one guarded state machine."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Optional

from .balance import BalanceConfig
from .lifespan import LifespanController
from .models.realms import DEFAULT_LADDER, Cycle, RealmLadder
from .models.state import CultivationState, LifeRun, TimeSpeed
from .utils import safe_num

log = logging.getLogger(__name__)

# Sections that survive every reset untouched.
_CARRIED = frozenset(
    {
        "reinc",
        "flags",
        "meta",
        "stats",
        "lifecycle",
        "version",
        "schema_version",
        "migrated_to_mortal_realm",
        "migrated_to_rank_system",
        "last_save",
    }
)


class ReincarnationError(ValueError):
    """Raised when a reset is requested through the wrong transition."""


class Phase(str, Enum):
    ALIVE = "alive"
    WAITING_FOR_ACK = "waiting_for_ack"
    RESETTING = "resetting"


class ReincarnationMode(str, Enum):
    VOLUNTARY = "voluntary"
    MANDATORY = "mandatory"
    DEATH = "death"


@dataclass(slots=True)
class ReincarnationOutcome:
    mode: ReincarnationMode
    karma_gained: float
    total_karma: float
    age: float
    realm_index: int
    stage: int


class ReincarnationStateMachine:
    """``ALIVE -> (WAITING_FOR_ACK) -> RESETTING -> ALIVE``.

    ``lifecycle.is_reincarnating`` is set on entry and cleared only once the
    reset is complete. Callers never touch it directly.
    """

    def __init__(
        self,
        balance: BalanceConfig,
        lifespan: LifespanController,
        ladder: RealmLadder = DEFAULT_LADDER,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.balance = balance
        self.lifespan = lifespan
        self.ladder = ladder
        self.clock = clock
        self.phase = Phase.ALIVE
        self.pending: Optional[ReincarnationOutcome] = None

    # ------------------------------------------------------------------
    # Karma
    # ------------------------------------------------------------------
    def karma_gain(self, state: CultivationState) -> float:
        config = self.balance.reincarnation
        lifetime_qi = safe_num(state.reinc.lifetime_qi, 0.0)
        base = math.floor(math.sqrt(max(0.0, lifetime_qi) / config.lifetime_qi_divisor))
        realm_bonus = state.realm_index * config.realm_karma_factor
        multiplier = 2 if state.current_cycle is Cycle.SPIRIT else 1
        return float(max(config.min_karma, (base + realm_bonus) * multiplier))

    def death_karma(self, state: CultivationState) -> float:
        config = self.balance.reincarnation
        return float(max(config.min_karma, math.floor(self.karma_gain(state) * config.death_penalty)))

    # ------------------------------------------------------------------
    # Entry conditions
    # ------------------------------------------------------------------
    def can_reincarnate(self, state: CultivationState) -> bool:
        if not state.flags.has_completed_mandatory_st10:
            return False
        gate = self.ladder.gate_index
        return state.realm_index > gate or (state.realm_index == gate and state.stage >= 1)

    def is_mandatory_due(self, state: CultivationState) -> bool:
        return (
            state.realm_index == self.ladder.gate_index
            and state.stage == 10
            and not state.flags.unlocked_beyond_spirit
        )

    @property
    def is_busy(self) -> bool:
        return self.phase is not Phase.ALIVE

    def restore(self, state: CultivationState) -> Optional[ReincarnationOutcome]:
        """Re-enter the acknowledgement wait for a state saved mid-death."""

        if not state.is_dead:
            self.phase = Phase.ALIVE
            self.pending = None
            if state.lifecycle.is_reincarnating:
                log.warning("Clearing stale reincarnation guard on a living state")
                state.lifecycle.is_reincarnating = False
            return None
        state.lifecycle.is_reincarnating = True
        state.time_speed.current = 0.0
        state.time_speed.paused = True
        self.pending = self._outcome(state, ReincarnationMode.DEATH, self.death_karma(state))
        self.phase = Phase.WAITING_FOR_ACK
        return self.pending

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def reincarnate(
        self,
        state: CultivationState,
        mode: ReincarnationMode = ReincarnationMode.VOLUNTARY,
        *,
        ascension: bool = False,
    ) -> Optional[ReincarnationOutcome]:
        """Synchronous voluntary or mandatory reset; ``None`` when refused.

        ``ascension`` marks the voluntary reset performed at the end of the
        final cycle, which needs no eligibility check.
        """

        if mode is ReincarnationMode.DEATH:
            raise ReincarnationError("Death reincarnation goes through begin_death/acknowledge")
        if self.is_busy or state.lifecycle.is_reincarnating or state.is_dead:
            return None
        if mode is ReincarnationMode.VOLUNTARY and not ascension and not self.can_reincarnate(state):
            return None
        if mode is ReincarnationMode.MANDATORY and not self.is_mandatory_due(state):
            return None

        state.lifecycle.is_reincarnating = True
        state.lifecycle.last_reincarnate_at = self.clock()
        self.phase = Phase.RESETTING

        gain = self.karma_gain(state)
        outcome = self._outcome(state, mode, gain)
        was_at_gate = state.realm_index == self.ladder.gate_index and state.stage == 10

        self._reset(state, gain, times_increment=1)
        if mode is ReincarnationMode.MANDATORY and was_at_gate:
            state.flags.has_completed_mandatory_st10 = True
            state.flags.has_unlocked_spirit_cycle = True
            state.flags.can_manual_reincarnate = True
            state.flags.unlocked_beyond_spirit = True
        self._finish(state)
        log.info("Reincarnated (%s): +%.0f karma, total %.0f", mode.value, gain, state.reinc.karma)
        return outcome

    def begin_death(self, state: CultivationState) -> Optional[ReincarnationOutcome]:
        """Freeze the run and wait for the player to acknowledge the death."""

        if self.is_busy or state.is_dead or state.lifecycle.is_reincarnating:
            return None
        state.is_dead = True
        state.lifecycle.is_reincarnating = True
        state.lifecycle.last_death_at = self.clock()
        state.time_speed.current = 0.0
        state.time_speed.paused = True

        self.pending = self._outcome(state, ReincarnationMode.DEATH, self.death_karma(state))
        self.phase = Phase.WAITING_FOR_ACK
        log.info("Death at %.1f years; awaiting acknowledgement", state.age)
        return self.pending

    def acknowledge(self, state: CultivationState) -> Optional[ReincarnationOutcome]:
        """Single resume transition out of ``WAITING_FOR_ACK``."""

        if self.phase is not Phase.WAITING_FOR_ACK or self.pending is None:
            return None
        outcome = self.pending
        self.phase = Phase.RESETTING
        self._reset(state, outcome.karma_gained, times_increment=1)
        state.stats.deaths += 1
        self._finish(state)
        self.pending = None
        log.info("Reborn after death: +%.0f karma, total %.0f", outcome.karma_gained, state.reinc.karma)
        return outcome

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _outcome(
        self, state: CultivationState, mode: ReincarnationMode, gain: float
    ) -> ReincarnationOutcome:
        return ReincarnationOutcome(
            mode=mode,
            karma_gained=gain,
            total_karma=state.reinc.karma + gain,
            age=state.age,
            realm_index=state.realm_index,
            stage=state.stage,
        )

    def _reset(self, state: CultivationState, karma_gain: float, *, times_increment: int) -> None:
        progression = self.balance.progression
        fresh = CultivationState.fresh(
            qpc_base=progression.qpc_base_start, qps_base=progression.qps_base_start
        )
        for item in fields(CultivationState):
            if item.name not in _CARRIED:
                setattr(state, item.name, getattr(fresh, item.name))

        state.reinc.karma = safe_num(state.reinc.karma + karma_gain)
        state.reinc.times += times_increment
        state.reinc.lifetime_qi = 0.0
        state.realm_index = 0
        state.stage = 1
        state.current_cycle = self.balance.cycles.cycle_of(0) or Cycle.MORTAL
        state.life = LifeRun(is_clean_run=True)
        state.session = None
        self.lifespan.reset_for_new_life(state)
        self.lifespan.refresh_for_realm(state)

    def _finish(self, state: CultivationState) -> None:
        state.time_speed = TimeSpeed(current=1.0, paused=True)
        state.lifecycle.is_reincarnating = False
        state.time_speed.paused = False
        self.phase = Phase.ALIVE


__all__ = [
    "Phase",
    "ReincarnationError",
    "ReincarnationMode",
    "ReincarnationOutcome",
    "ReincarnationStateMachine",
]
