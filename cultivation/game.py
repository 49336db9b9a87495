"""Facade owning the cultivation state and the frame driver.

Everything the components do synchronously is exposed through plain methods.
Only the pieces that talk to the player or to storage are coroutines:
saving, loading, importing, offline catchup and the death acknowledgement.
Notices produced by synchronous calls are queued and delivered by
:meth:`CultivationGame.flush_notices`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from .balance import BalanceConfig, load_balance
from .clock import BreakthroughResult, OfflineCatchup, OfflineResult, ProgressionClock, TimeSpeedControl
from .config import EngineConfig
from .lifespan import LifespanController
from .models.realms import DEFAULT_LADDER, RealmLadder
from .models.state import CultivationState
from .notifications import (
    EventSink,
    LoggingNotificationChannel,
    Notice,
    NoticeKind,
    NotificationChannel,
    NullEventSink,
    ProgressSnapshot,
    death_notice,
    error_notice,
    offline_notice,
    reincarnation_notice,
    speed_unlock_notice,
)
from .reincarnation import Phase, ReincarnationMode, ReincarnationOutcome, ReincarnationStateMachine
from .resources import ResourceEngine
from .skills import SkillLedger
from .stages import StageCostModel
from .storage import LOAD_ERRORS, BlobStore, FileBlobStore, SaveManager, export_text

log = logging.getLogger(__name__)


class CultivationGame:
    def __init__(
        self,
        balance: BalanceConfig | None = None,
        *,
        config: EngineConfig | None = None,
        store: BlobStore | None = None,
        channel: NotificationChannel | None = None,
        events: EventSink | None = None,
        ladder: RealmLadder = DEFAULT_LADDER,
        clock: Callable[[], float] = time.time,
        state: CultivationState | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.ladder = ladder
        self.balance = balance or load_balance(self.config.balance_path, len(ladder))
        self.clock = clock
        self.channel: NotificationChannel = channel or LoggingNotificationChannel()
        self.events: EventSink = events or NullEventSink()

        if store is None:
            root = self.config.data_root / "saves" if self.config.data_root else None
            store = FileBlobStore(root)
        self.saves = SaveManager(store, balance=self.balance, ladder=ladder, key=self.config.save_key)

        self.ledger = SkillLedger(self.balance)
        self.resources = ResourceEngine(self.balance, self.ledger)
        self.lifespan = LifespanController(self.balance)
        self.stages = StageCostModel(self.balance.stage_requirement, len(ladder))
        self.speeds = TimeSpeedControl(self.balance)
        self.reincarnation = ReincarnationStateMachine(self.balance, self.lifespan, ladder, clock)
        self.progression = ProgressionClock(
            self.balance,
            self.resources,
            self.lifespan,
            self.reincarnation,
            self.stages,
            self.speeds,
            ladder,
        )
        self.offline = OfflineCatchup(self.balance, self.resources, self.lifespan)

        self._notices: list[Notice] = []
        self.state = state if state is not None else self.new_state()
        self._adopt(self.state)

    @classmethod
    def from_env(
        cls,
        *,
        store: BlobStore | None = None,
        channel: NotificationChannel | None = None,
        events: EventSink | None = None,
    ) -> "CultivationGame":
        return cls(config=EngineConfig.from_env(), store=store, channel=channel, events=events)

    def new_state(self) -> CultivationState:
        progression = self.balance.progression
        state = CultivationState.fresh(
            qpc_base=progression.qpc_base_start, qps_base=progression.qps_base_start
        )
        self.lifespan.reset_for_new_life(state)
        return state

    def _adopt(self, state: CultivationState) -> Optional[ReincarnationOutcome]:
        self.state = state
        self.lifespan.refresh_for_realm(state)
        self.speeds.sanitize(state)
        self.speeds.unlock_for_realm(state)
        return self.reincarnation.restore(state)

    # ------------------------------------------------------------------
    # Events and notices
    # ------------------------------------------------------------------
    def snapshot(self) -> ProgressSnapshot:
        state = self.state
        return ProgressSnapshot(
            qi=state.qi,
            qpc=self.resources.qpc(state),
            qps=self.resources.qps(state),
            realm_index=state.realm_index,
            realm_name=self.ladder.name_of(state.realm_index),
            stage=state.stage,
            requirement=self.progression.requirement(state),
            karma=state.reinc.karma,
            reincarnations=state.reinc.times,
            deaths=state.stats.deaths,
            age=state.age,
            max_lifespan=self.lifespan.max_lifespan(state),
            is_dead=state.is_dead,
            speed=state.time_speed.current,
            paused=state.time_speed.paused,
            cycle=state.current_cycle.value,
            total_clicks=state.stats.total_clicks,
            total_purchases=state.stats.total_purchases,
            unlocked_speeds=tuple(self.speeds.available_speeds(state)),
        )

    def _publish(self, event: str) -> None:
        try:
            self.events.publish(event, self.snapshot())
        except Exception:
            log.exception("Event sink failed on %r", event)

    def _queue(self, notice: Notice) -> None:
        self._notices.append(notice)

    @property
    def pending_notices(self) -> tuple[Notice, ...]:
        return tuple(self._notices)

    async def _notify(self, notice: Notice) -> None:
        try:
            await self.channel.notify(notice)
        except Exception:
            log.exception("Notification channel failed on %r", notice.title)

    async def flush_notices(self) -> None:
        while self._notices:
            await self._notify(self._notices.pop(0))

    # ------------------------------------------------------------------
    # Synchronous operations
    # ------------------------------------------------------------------
    def tick(self, raw_dt: float, speed: float | None = None) -> Optional[ReincarnationOutcome]:
        outcome = self.progression.tick(self.state, raw_dt, speed)
        if outcome is not None:
            self._publish("death")
        return outcome

    def click(self) -> float:
        gained = self.progression.click(self.state)
        if gained > 0:
            self._publish("click")
        return gained

    def purchase(self, skill_id: str, quantity: int = 1) -> bool:
        bought = self.ledger.purchase(self.state, skill_id, quantity)
        if bought:
            self._publish("purchase")
        return bought

    def breakthrough(self) -> BreakthroughResult:
        known = set(self.state.meta.unlocked_speeds)
        result = self.progression.breakthrough(self.state)

        if result in (BreakthroughResult.STAGE_ADVANCED, BreakthroughResult.REALM_ADVANCED):
            self._publish("breakthrough")
        if result is BreakthroughResult.REALM_ADVANCED:
            unlocked = [speed for speed in self.state.meta.unlocked_speeds if speed not in known]
            if unlocked:
                self._publish("speed_unlocked")
                self._queue(speed_unlock_notice(unlocked))
        elif result in (BreakthroughResult.MANDATORY_REINCARNATION, BreakthroughResult.ASCENDED):
            outcome = self.progression.last_outcome
            if outcome is not None:
                self._publish("reincarnation")
                self._queue(reincarnation_notice(outcome))
        return result

    def set_time_speed(self, speed: float) -> float:
        return self.speeds.set_speed(self.state, speed)

    def reincarnate(self) -> Optional[ReincarnationOutcome]:
        """Voluntary reincarnation; ``None`` when the state is not eligible."""

        outcome = self.reincarnation.reincarnate(self.state, ReincarnationMode.VOLUNTARY)
        if outcome is not None:
            self._publish("reincarnation")
            self._queue(reincarnation_notice(outcome))
        return outcome

    def export_save(self) -> str:
        return export_text(self.state)

    def apply_offline_catchup(self, gap_seconds: float, last_speed: float) -> OfflineResult:
        return self._after_offline(self.offline.apply(self.state, gap_seconds, last_speed))

    def _after_offline(self, result: OfflineResult) -> OfflineResult:
        if result.capped_seconds <= 0:
            return result
        self._publish("offline")
        self._queue(offline_notice(result))
        if result.died and self.reincarnation.begin_death(self.state) is not None:
            self._publish("death")
        return result

    # ------------------------------------------------------------------
    # Asynchronous operations
    # ------------------------------------------------------------------
    async def request_reincarnation(self) -> Optional[ReincarnationOutcome]:
        """Ask the player to confirm before reincarnating voluntarily."""

        if self.reincarnation.is_busy or not self.reincarnation.can_reincarnate(self.state):
            return None
        karma = self.reincarnation.karma_gain(self.state)
        confirmed = await self.channel.confirm(
            Notice(
                kind=NoticeKind.REINCARNATION,
                title="Reincarnate?",
                body="You will return to the Mortal realm. Karma and unlocks are preserved.",
                fields=[("Karma to Gain", f"{karma:,.0f}")],
                confirm_label="Reincarnate",
            )
        )
        if not confirmed:
            return None
        self.state.life.is_clean_run = False
        outcome = self.reincarnate()
        await self.flush_notices()
        return outcome

    async def resolve_pending_death(self) -> Optional[ReincarnationOutcome]:
        """Wait for the death acknowledgement, then rebirth the character."""

        pending = self.reincarnation.pending
        if self.reincarnation.phase is not Phase.WAITING_FOR_ACK or pending is None:
            return None
        try:
            confirmed = await self.channel.confirm(death_notice(pending))
        except Exception:
            log.exception("Death confirmation failed; the run stays paused")
            return None
        if not confirmed:
            return None
        outcome = self.reincarnation.acknowledge(self.state)
        if outcome is not None:
            self._publish("reincarnation")
        return outcome

    async def save(self) -> bool:
        try:
            await self.saves.save(self.state, now=self.clock())
        except OSError:
            log.exception("Failed to write save %r", self.saves.key)
            return False
        return True

    async def load(self) -> bool:
        """Replace the current state with the stored save, if there is one."""

        try:
            state = await self.saves.load()
        except LOAD_ERRORS as exc:
            log.warning("Stored save could not be loaded: %s", exc)
            await self._notify(error_notice("Save Could Not Be Loaded", str(exc)))
            return False
        except OSError:
            log.exception("Failed to read save %r", self.saves.key)
            return False
        if state is None:
            return False
        self._adopt(state)
        return True

    async def import_save(self, text: str) -> bool:
        if self.reincarnation.is_busy or self.state.lifecycle.is_reincarnating:
            await self._notify(
                error_notice("Import Rejected", "Finish the current transition before importing.")
            )
            return False
        try:
            state = self.saves.import_text(text)
        except LOAD_ERRORS as exc:
            log.warning("Rejected save import: %s", exc)
            await self._notify(error_notice("Import Failed", str(exc)))
            return False
        self._adopt(state)
        self._publish("import")
        await self.save()
        return True

    async def reset(self) -> None:
        """Wipe the stored save and start over from a fresh state."""

        await self.saves.clear()
        self._notices.clear()
        self._adopt(self.new_state())

    async def resume(self, now: float | None = None) -> OfflineResult:
        result = self.offline.resume(self.state, self.clock() if now is None else now)
        self._after_offline(result)
        await self.flush_notices()
        return result

    async def run(self, frames: int | None = None, *, catch_up: bool = True) -> None:
        """Drive the game until ``frames`` frames ran or the task is cancelled."""

        if catch_up and self.state.session is not None:
            await self.resume()

        interval = self.config.frame_interval
        last_frame = last_save = time.monotonic()
        count = 0
        try:
            while frames is None or count < frames:
                await asyncio.sleep(interval)
                now = time.monotonic()
                self.tick(now - last_frame)
                last_frame = now
                await self.flush_notices()

                if self.reincarnation.phase is Phase.WAITING_FOR_ACK:
                    if await self.resolve_pending_death() is None:
                        log.info("Death left unacknowledged; stopping the driver")
                        break
                    await self.flush_notices()
                    last_frame = time.monotonic()

                if now - last_save >= self.config.autosave_seconds:
                    await self.save()
                    last_save = now
                count += 1
        finally:
            self.offline.snapshot(self.state, self.clock())
            await self.save()


__all__ = ["CultivationGame"]
