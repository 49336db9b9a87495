from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.balance import BalanceConfig
from cultivation.constants import SAVE_SCHEMA_VERSION
from cultivation.models._validation import ModelValidationError
from cultivation.models.realms import DEFAULT_LADDER
from cultivation.models.state import RankRecord, TechniqueRecord
from cultivation.storage import (
    MemoryBlobStore,
    MigrationContext,
    MissingMigrationError,
    SaveManager,
    SaveMigrator,
)


@pytest.fixture
def manager() -> SaveManager:
    return SaveManager(MemoryBlobStore(), balance=BalanceConfig.defaults())


def test_legacy_save_is_fully_migrated(manager: SaveManager) -> None:
    legacy = {
        "qi": 50,
        "realmIndex": 2,
        "stage": 3,
        "qpcBase": 6,
        "qpsBase": 3,
        "skills": {"breath_control": 4, "void_convergence": True, "forgotten_art": 3},
        "ageYears": 12,
        "timeSpeed": {"current": 2, "paused": False},
    }

    state = manager.restore(legacy)

    assert state.realm_index == 3
    assert state.stage == 3
    assert state.age == pytest.approx(12.0)
    assert state.lifespan.max == pytest.approx(500.0)
    assert state.schema_version == SAVE_SCHEMA_VERSION
    assert state.migrated_to_mortal_realm
    assert state.migrated_to_rank_system

    breath = state.skills["breath_control"]
    assert isinstance(breath, RankRecord)
    assert breath.total == 4
    assert breath.per_realm == {3: 4}
    assert isinstance(state.skills["void_convergence"], TechniqueRecord)
    assert "forgotten_art" not in state.skills

    assert state.meta.unlocked_speeds[:4] == [0.0, 0.25, 0.5, 1.0]
    assert state.reinc.times == 0
    assert not state.is_dead


def test_fresh_legacy_save_is_not_shifted(manager: SaveManager) -> None:
    state = manager.restore({"qi": 5, "realmIndex": 0, "stage": 1})

    assert state.realm_index == 0
    assert state.lifespan.max == pytest.approx(50.0)


def test_shift_is_clamped_to_the_final_realm(manager: SaveManager) -> None:
    state = manager.restore({"realmIndex": DEFAULT_LADDER.last_index, "stage": 4})

    assert state.realm_index == DEFAULT_LADDER.last_index
    assert state.lifespan.max is None


def test_flagged_save_keeps_its_realm(manager: SaveManager) -> None:
    state = manager.restore(
        {"realmIndex": 4, "stage": 2, "migratedToMortalRealm": True, "migratedToRankSystem": True}
    )

    assert state.realm_index == 4


def test_age_is_derived_from_remaining_lifespan(manager: SaveManager) -> None:
    state = manager.restore(
        {
            "realmIndex": 1,
            "stage": 1,
            "migratedToMortalRealm": True,
            "lifespan": {"current": 70, "max": 100},
        }
    )

    assert state.age == pytest.approx(30.0)


def test_current_saves_skip_the_chain(manager: SaveManager) -> None:
    payload = {
        "realmIndex": 2,
        "stage": 5,
        "schemaVersion": SAVE_SCHEMA_VERSION,
        "skills": {"breath_control": {"total": 2, "perRealm": {"2": 2}}},
    }

    state = manager.restore(payload)

    assert state.realm_index == 2
    assert state.skills["breath_control"].ranks_in(2) == 2


def test_structurally_broken_saves_are_rejected(manager: SaveManager) -> None:
    with pytest.raises(ModelValidationError):
        manager.restore({"qi": "plenty", "skills": ["breath_control"]})


def test_meta_section_is_validated(manager: SaveManager) -> None:
    with pytest.raises(ModelValidationError) as excinfo:
        manager.restore({"qi": 1, "meta": {"unlockedSpeeds": [1, "warp"]}})

    assert "unlockedSpeeds" in str(excinfo.value)


def test_missing_migration_is_reported(tmp_path: Path) -> None:
    migrator = SaveMigrator(balance=BalanceConfig.defaults(), migrations_base=tmp_path)

    with pytest.raises(MissingMigrationError):
        migrator.migrate({"schemaVersion": 0})


def test_rank_migration_is_idempotent() -> None:
    migration = importlib.import_module("cultivation.migrations.saves.0003_rank_system")
    payload = {
        "realmIndex": 2,
        "skills": {"meridian_flow": 7, "lotus_meditation": 0},
    }
    context = MigrationContext(payload=payload, ladder=DEFAULT_LADDER, balance=BalanceConfig.defaults())

    migration.apply(context)
    converted = dict(payload["skills"])
    migration.apply(context)

    assert converted == {"meridian_flow": {"total": 7, "perRealm": {"2": 7}}}
    assert payload["skills"] == converted
    assert payload["migratedToRankSystem"] is True
    assert context.applied
