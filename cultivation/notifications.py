"""Notification and event interfaces consumed by the progression core."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Sequence, runtime_checkable

from .clock import OfflineResult
from .reincarnation import ReincarnationMode, ReincarnationOutcome
from .utils import format_number, format_years

log = logging.getLogger(__name__)


class NoticeKind(str, Enum):
    INFO = "info"
    DEATH = "death"
    REINCARNATION = "reincarnation"
    OFFLINE = "offline"
    UNLOCK = "unlock"
    ERROR = "error"


@dataclass(slots=True)
class Notice:
    kind: NoticeKind
    title: str
    body: str
    fields: list[tuple[str, str]] = field(default_factory=list)
    confirm_label: str = "Continue"


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Read-only view of the state handed to consumers."""

    qi: float
    qpc: float
    qps: float
    realm_index: int
    realm_name: str
    stage: int
    requirement: int
    karma: float
    reincarnations: int
    deaths: int
    age: float
    max_lifespan: Optional[float]
    is_dead: bool
    speed: float
    paused: bool
    cycle: str
    total_clicks: int
    total_purchases: int
    unlocked_speeds: tuple[float, ...] = ()


@runtime_checkable
class NotificationChannel(Protocol):
    async def notify(self, notice: Notice) -> None:
        """Fire-and-forget message."""

    async def confirm(self, notice: Notice) -> bool:
        """Suspend until the player answers; ``True`` to proceed."""


@runtime_checkable
class EventSink(Protocol):
    def publish(self, event: str, snapshot: ProgressSnapshot) -> None:
        ...


class LoggingNotificationChannel:
    """Channel for headless runs: logs notices and acknowledges immediately."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.log = logger or log

    async def notify(self, notice: Notice) -> None:
        self.log.info("[%s] %s: %s", notice.kind.value, notice.title, notice.body)

    async def confirm(self, notice: Notice) -> bool:
        await self.notify(notice)
        return True


class NullEventSink:
    def publish(self, event: str, snapshot: ProgressSnapshot) -> None:
        return None


def death_notice(outcome: ReincarnationOutcome) -> Notice:
    return Notice(
        kind=NoticeKind.DEATH,
        title="Your Candle Has Burned Out",
        body=f"Your mortal body has withered after {format_years(outcome.age)}.",
        fields=[
            ("Karma Gained", f"{format_number(outcome.karma_gained)} (death penalty applied)"),
            ("Total Karma", format_number(outcome.total_karma)),
        ],
        confirm_label="Begin Again",
    )


def reincarnation_notice(outcome: ReincarnationOutcome) -> Notice:
    if outcome.mode is ReincarnationMode.MANDATORY:
        title = "Transcendence Achieved"
        body = (
            "You have broken the shackles of mortality. Voluntary reincarnation is now "
            "available from Spirit Transformation onward."
        )
    else:
        title = "Reincarnation Complete"
        body = "The wheel of reincarnation turns, and you begin anew with greater wisdom."
    return Notice(
        kind=NoticeKind.REINCARNATION,
        title=title,
        body=body,
        fields=[
            ("Karma Gained", format_number(outcome.karma_gained)),
            ("Total Karma", format_number(outcome.total_karma)),
        ],
    )


def offline_notice(result: OfflineResult) -> Notice:
    hours = result.capped_seconds / 3600
    return Notice(
        kind=NoticeKind.OFFLINE,
        title="Closed-Door Cultivation",
        body=f"While you were away ({hours:.1f}h counted) your cultivation continued.",
        fields=[
            ("Qi Gathered", format_number(result.qi_gained)),
            ("Years Passed", format_years(result.years_passed)),
        ],
    )


def speed_unlock_notice(speeds: Sequence[float]) -> Notice:
    listed = ", ".join(f"{speed:g}x" for speed in speeds)
    return Notice(
        kind=NoticeKind.UNLOCK,
        title="Time Flows Differently",
        body=f"New time speeds unlocked: {listed}.",
    )


def error_notice(title: str, message: str) -> Notice:
    return Notice(kind=NoticeKind.ERROR, title=title, body=message)


__all__ = [
    "EventSink",
    "LoggingNotificationChannel",
    "Notice",
    "NoticeKind",
    "NotificationChannel",
    "NullEventSink",
    "ProgressSnapshot",
    "death_notice",
    "error_notice",
    "offline_notice",
    "reincarnation_notice",
    "speed_unlock_notice",
]
