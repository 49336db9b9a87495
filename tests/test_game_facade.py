from __future__ import annotations

import asyncio
import base64
import json
import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.config import EngineConfig
from cultivation.game import CultivationGame
from cultivation.notifications import Notice, NoticeKind
from cultivation.reincarnation import Phase
from cultivation.storage import MemoryBlobStore


class RecordingChannel:
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.notified: list[Notice] = []
        self.confirmed: list[Notice] = []

    async def notify(self, notice: Notice) -> None:
        self.notified.append(notice)

    async def confirm(self, notice: Notice) -> bool:
        self.confirmed.append(notice)
        return self.answer


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, int]] = []

    def publish(self, event, snapshot) -> None:
        self.events.append((event, snapshot.realm_index))


def _encode(payload: dict) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf8")).decode("ascii")


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def game(channel: RecordingChannel) -> CultivationGame:
    return CultivationGame(
        store=MemoryBlobStore(),
        channel=channel,
        events=RecordingSink(),
        config=EngineConfig(frame_interval=0.01, autosave_seconds=1.0),
        clock=lambda: 2_000.0,
    )


def test_export_and_import_round_trip(game: CultivationGame) -> None:
    state = game.state
    state.realm_index = 3
    state.stage = 6
    state.qi = 12345.0
    state.reinc.karma = 42.0
    text = game.export_save()

    other = CultivationGame(store=MemoryBlobStore(), channel=RecordingChannel())
    assert asyncio.run(other.import_save(text))

    assert other.state.realm_index == 3
    assert other.state.stage == 6
    assert other.state.qi == pytest.approx(12345.0)
    assert other.state.reinc.karma == pytest.approx(42.0)


def test_corrupt_import_leaves_state_untouched(game: CultivationGame, channel: RecordingChannel) -> None:
    game.state.qi = 77.0
    before = game.state

    assert not asyncio.run(game.import_save("definitely not a save"))
    assert not asyncio.run(game.import_save(_encode({"qi": "lots"})))
    assert not asyncio.run(game.import_save(base64.b64encode(b"[1, 2, 3]").decode("ascii")))

    assert game.state is before
    assert game.state.qi == 77.0
    assert len(channel.notified) == 3
    assert all(notice.kind is NoticeKind.ERROR for notice in channel.notified)


def test_import_with_unknown_speed_falls_back(game: CultivationGame) -> None:
    payload = {
        "qi": 10,
        "realmIndex": 1,
        "stage": 2,
        "schemaVersion": 3,
        "timeSpeed": {"current": 3, "paused": True},
    }

    assert asyncio.run(game.import_save(_encode(payload)))

    assert game.state.time_speed.current == 1.0
    assert not game.state.time_speed.paused
    assert ("import", 1) in game.events.events


def test_import_is_rejected_while_a_death_is_pending(game: CultivationGame, channel: RecordingChannel) -> None:
    game.state.age = 49.99
    game.tick(1.0, 1.0)
    text = CultivationGame(store=MemoryBlobStore()).export_save()

    assert not asyncio.run(game.import_save(text))
    assert game.state.is_dead
    assert channel.notified[-1].title == "Import Rejected"


def test_save_and_load_round_trip(game: CultivationGame) -> None:
    game.state.realm_index = 2
    game.state.qi = 900.0
    assert asyncio.run(game.save())
    assert game.state.last_save == 2_000.0

    restored = CultivationGame(store=game.saves.store, channel=RecordingChannel())
    assert asyncio.run(restored.load())

    assert restored.state.realm_index == 2
    assert restored.state.qi == pytest.approx(900.0)


def test_load_without_a_save_keeps_fresh_state(game: CultivationGame) -> None:
    assert not asyncio.run(game.load())
    assert game.state.realm_index == 0


def test_loading_a_dead_save_resumes_the_death(game: CultivationGame) -> None:
    game.state.age = 49.99
    game.tick(1.0, 1.0)
    asyncio.run(game.save())

    restored = CultivationGame(store=game.saves.store, channel=RecordingChannel())
    assert asyncio.run(restored.load())

    assert restored.reincarnation.phase is Phase.WAITING_FOR_ACK
    outcome = asyncio.run(restored.resolve_pending_death())
    assert outcome is not None
    assert restored.state.stats.deaths == 1


def test_events_are_published_for_actions(game: CultivationGame) -> None:
    game.click()
    game.state.qi = float(game.progression.requirement(game.state))
    game.breakthrough()

    names = [name for name, _ in game.events.events]
    assert names == ["click", "breakthrough"]


def test_run_drives_frames_and_records_a_session(game: CultivationGame) -> None:
    game.state.realm_index = 1
    game.state.qps_base = 100.0
    game.lifespan.on_realm_advance(game.state)

    asyncio.run(game.run(frames=3))

    assert game.state.qi > 0
    assert game.state.session is not None
    assert game.state.session.last_ts == 2_000.0
    assert asyncio.run(game.saves.store.get(game.saves.key)) is not None


def test_run_resolves_deaths_through_the_channel(game: CultivationGame, channel: RecordingChannel) -> None:
    game.state.age = 50.0
    game.set_time_speed(1.0)

    asyncio.run(game.run(frames=2))

    assert channel.confirmed
    assert channel.confirmed[0].kind is NoticeKind.DEATH
    assert game.state.stats.deaths == 1
    assert not game.state.is_dead


def test_declined_reincarnation_request_changes_nothing(game: CultivationGame, channel: RecordingChannel) -> None:
    state = game.state
    state.flags.has_completed_mandatory_st10 = True
    state.realm_index = 7
    channel.answer = False

    assert asyncio.run(game.request_reincarnation()) is None
    assert state.realm_index == 7

    channel.answer = True
    outcome = asyncio.run(game.request_reincarnation())
    assert outcome is not None
    assert state.realm_index == 0
    assert any(notice.kind is NoticeKind.REINCARNATION for notice in channel.notified)


def test_reset_clears_the_stored_save(game: CultivationGame) -> None:
    game.state.realm_index = 4
    asyncio.run(game.save())

    asyncio.run(game.reset())

    assert game.state.realm_index == 0
    assert asyncio.run(game.saves.store.get(game.saves.key)) is None


@pytest.mark.parametrize("version", ["1e400", "-1e400", "1" + "0" * 400, "NaN"])
def test_import_rejects_out_of_range_schema_versions(
    game: CultivationGame, channel: RecordingChannel, version: str
) -> None:
    before = game.state
    text = base64.b64encode(f'{{"qi": 5, "schemaVersion": {version}}}'.encode("utf8")).decode("ascii")

    assert not asyncio.run(game.import_save(text))

    assert game.state is before
    assert channel.notified[-1].kind is NoticeKind.ERROR
    assert channel.notified[-1].title == "Import Failed"


def test_load_rejects_infinite_schema_version(channel: RecordingChannel) -> None:
    store = MemoryBlobStore({"xianxiaIdleSaveV1": '{"qi": 5, "schemaVersion": 1e400}'})
    game = CultivationGame(store=store, channel=channel)

    assert not asyncio.run(game.load())

    assert game.state.qi == 0
    assert channel.notified[-1].kind is NoticeKind.ERROR


def test_huge_integers_in_a_save_are_coerced(game: CultivationGame) -> None:
    huge = "9" * 400
    text = base64.b64encode(
        f'{{"qi": {huge}, "realmIndex": {huge}, "schemaVersion": 3}}'.encode("utf8")
    ).decode("ascii")

    assert asyncio.run(game.import_save(text))

    assert game.state.realm_index == 0
    assert game.state.qi == 0
