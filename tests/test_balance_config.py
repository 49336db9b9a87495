from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from cultivation.balance import BalanceConfig, ReincarnationConfig, SkillEffect, load_balance
from cultivation.constants import BASE_SPEEDS
from cultivation.models.realms import DEFAULT_LADDER


def test_defaults_need_no_corrections() -> None:
    config = BalanceConfig.defaults()

    assert config.diagnostics == ()
    assert config.stage_requirement.realm_base == 80
    assert config.lifespan.realm_max_lifespan[-1] is None
    assert len(config.lifespan.realm_max_lifespan) == len(DEFAULT_LADDER)


def test_invalid_numbers_use_named_fallbacks() -> None:
    config = BalanceConfig.validate(
        {"stageRequirement": {"realmBase": -5, "stageScale": "steep"}}
    )

    assert config.stage_requirement.realm_base == 100
    assert config.stage_requirement.stage_scale == 1.45
    assert config.stage_requirement.realm_base_scale == 5
    assert len(config.diagnostics) == 3
    assert any("realmBase:" in message for message in config.diagnostics)
    assert "stageRequirement.realmBaseScale: missing, using default 5" in config.diagnostics


def test_missing_sections_are_silent() -> None:
    config = BalanceConfig.validate({"offline": {}})

    assert config.offline.cap_hours == 16
    assert config.diagnostics == ()


def test_missing_fields_in_a_provided_table_are_reported() -> None:
    config = BalanceConfig.validate({"reincarnation": {"minKarma": 4}})

    assert config.reincarnation.min_karma == 4
    assert config.reincarnation.death_penalty == ReincarnationConfig().death_penalty
    missing = [message for message in config.diagnostics if "missing" in message]
    assert len(missing) == len(config.diagnostics) == 5
    assert any(message.startswith("reincarnation.deathPenalty") for message in missing)


def test_lifespan_table_is_padded_and_final_realm_made_immortal() -> None:
    config = BalanceConfig.validate(
        {"lifespan": {"realmMaxLifespan": [50, 100], "yearsPerSecond": 5}}
    )

    entries = config.lifespan.realm_max_lifespan
    assert len(entries) == len(DEFAULT_LADDER)
    assert entries[:2] == (50.0, 100.0)
    assert entries[-1] is None
    assert config.lifespan.years_per_second == 0.1
    assert len(config.diagnostics) == 3


def test_time_speed_table_always_contains_base_speeds() -> None:
    config = BalanceConfig.validate(
        {"timeSpeed": {"speeds": [2, 4, -1], "unlockRealmIndex": [1, 3, 0]}}
    )

    assert set(BASE_SPEEDS) <= set(config.time_speed.speeds)
    assert -1 not in config.time_speed.speeds
    assert config.time_speed.unlocked_at(1) == [0.0, 0.25, 0.5, 1.0, 2.0]


def test_unknown_skill_requires_a_valid_effect() -> None:
    config = BalanceConfig.validate(
        {
            "skills": {
                "mystery": {"cost": 10},
                "iron_body": {"effect": "qpc_flat", "cost": 30, "costScale": 0.5},
            }
        }
    )

    assert config.skill("mystery") is None
    iron_body = config.skill("iron_body")
    assert iron_body is not None
    assert iron_body.effect is SkillEffect.QPC_FLAT
    assert iron_body.cost_scale == 1.3
    assert config.skill("breath_control") is not None


def test_sanitised_config_is_immutable() -> None:
    config = BalanceConfig.defaults()

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.offline = None  # type: ignore[misc]


def test_load_balance_reads_json_and_toml(tmp_path: Path) -> None:
    json_path = tmp_path / "balance.json"
    json_path.write_text(json.dumps({"offline": {"capHours": 8}}), encoding="utf-8")
    toml_path = tmp_path / "balance.toml"
    toml_path.write_text("[offline]\ncapHours = 4\n", encoding="utf-8")

    assert load_balance(json_path).offline.cap_hours == 8
    assert load_balance(toml_path).offline.cap_hours == 4


def test_load_balance_falls_back_on_missing_or_broken_documents(tmp_path: Path) -> None:
    missing = load_balance(tmp_path / "absent.json")
    assert missing == BalanceConfig.defaults()

    broken_path = tmp_path / "broken.json"
    broken_path.write_text("{not json", encoding="utf-8")
    broken = load_balance(broken_path)

    assert broken == BalanceConfig.defaults()
    assert len(broken.diagnostics) == 1
