"""Balance document loading and per-field sanitisation."""

from __future__ import annotations

import json
import logging
import math
import tomllib
from dataclasses import dataclass, field, replace
from enum import Enum
from numbers import Real
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .constants import BASE_SPEEDS
from .models.realms import DEFAULT_LADDER, Cycle

log = logging.getLogger(__name__)

MAX_SAFE_START = 1e15
MAX_SAFE_REWARD = 1e6


class SkillEffect(str, Enum):
    QPC_FLAT = "qpc_flat"
    QPC_PERCENT = "qpc_percent"
    QPS_FLAT = "qps_flat"
    QPS_PERCENT = "qps_percent"
    OFFLINE_PERCENT = "offline_percent"
    QPC_TECHNIQUE = "qpc_technique"
    QPS_TECHNIQUE = "qps_technique"

    @classmethod
    def from_value(cls, value: "SkillEffect | str | None") -> "SkillEffect | None":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None

    @property
    def is_technique(self) -> bool:
        return self in (SkillEffect.QPC_TECHNIQUE, SkillEffect.QPS_TECHNIQUE)

    @property
    def is_percent(self) -> bool:
        return self in (
            SkillEffect.QPC_PERCENT,
            SkillEffect.QPS_PERCENT,
            SkillEffect.OFFLINE_PERCENT,
        )

    @property
    def target(self) -> str:
        """Return ``"qpc"``, ``"qps"`` or ``"offline"``."""

        return self.value.split("_", 1)[0]


@dataclass(frozen=True, slots=True)
class SkillDefinition:
    id: str
    name: str
    effect: SkillEffect
    base: float = 1.0
    cost: float = 50.0
    cost_scale: float = 1.3
    ranks_per_realm: int = 25
    one_time: bool = False
    value: float = 0.0
    cap_pct_per_realm: Optional[float] = None
    unlock_at_cycle: Optional[Cycle] = None
    description: str = ""

    @property
    def is_technique(self) -> bool:
        return self.one_time or self.effect.is_technique


@dataclass(frozen=True, slots=True)
class StageRequirementConfig:
    realm_base: float = 80.0
    realm_base_scale: float = 5.0
    stage_scale: float = 1.42


@dataclass(frozen=True, slots=True)
class LifespanConfig:
    realm_max_lifespan: tuple[Optional[float], ...] = (
        50, 100, 200, 500, 1000, 3000, 10000, 50000, 100000, 500000, None,
    )
    years_per_second: float = 0.1

    def configured_for(self, realm_index: int) -> Optional[float]:
        if not self.realm_max_lifespan:
            return 100.0
        index = max(0, min(len(self.realm_max_lifespan) - 1, realm_index))
        return self.realm_max_lifespan[index]


@dataclass(frozen=True, slots=True)
class TimeSpeedConfig:
    speeds: tuple[float, ...] = (0.0, 0.25, 0.5, 1.0, 2.0, 4.0, 6.0, 8.0, 10.0)
    unlock_realm_index: tuple[int, ...] = (0, 0, 0, 0, 2, 4, 6, 8, 10)

    def unlocked_at(self, realm_index: int) -> list[float]:
        return [
            speed
            for speed, unlock in zip(self.speeds, self.unlock_realm_index)
            if unlock <= realm_index
        ]


@dataclass(frozen=True, slots=True)
class ReincarnationConfig:
    karma_per_unit: float = 0.12
    lifetime_qi_divisor: float = 5000.0
    realm_karma_factor: float = 4.0
    min_karma: float = 3.0
    death_penalty: float = 0.5
    offline_karma_bonus: float = 1.0


@dataclass(frozen=True, slots=True)
class ProgressionConfig:
    qpc_base_start: float = 1.0
    qps_base_start: float = 0.0
    qpc_base_add: float = 2.5
    qps_base_add: float = 1.8
    first_realm_qps_base: float = 1.0


@dataclass(frozen=True, slots=True)
class OfflineConfig:
    cap_hours: float = 16.0

    @property
    def cap_seconds(self) -> float:
        return self.cap_hours * 3600.0


@dataclass(frozen=True, slots=True)
class CycleDefinition:
    realms: tuple[int, ...]
    realm_bonus: float


@dataclass(frozen=True, slots=True)
class CycleConfig:
    mortal: CycleDefinition = CycleDefinition(tuple(range(0, 6)), 0.25)
    spirit: CycleDefinition = CycleDefinition(tuple(range(6, 11)), 0.5)

    def definition(self, cycle: Cycle) -> CycleDefinition:
        return self.spirit if cycle is Cycle.SPIRIT else self.mortal

    def cycle_of(self, realm_index: int) -> Optional[Cycle]:
        if realm_index in self.mortal.realms:
            return Cycle.MORTAL
        if realm_index in self.spirit.realms:
            return Cycle.SPIRIT
        return None

    def position_in(self, realm_index: int) -> int:
        cycle = self.cycle_of(realm_index) or Cycle.MORTAL
        realms = self.definition(cycle).realms
        if realm_index not in realms:
            return 0
        return realms.index(realm_index)

    @property
    def spirit_end(self) -> int:
        return self.spirit.realms[-1] if self.spirit.realms else -1


@dataclass(frozen=True, slots=True)
class RealmBaselines:
    qpc_flat_per_rank: float = 0.25
    qps_flat_per_rank: float = 0.15


DEFAULT_SKILLS: tuple[SkillDefinition, ...] = (
    SkillDefinition(
        "breath_control", "Breath Control", SkillEffect.QPS_FLAT,
        base=1.20, cost=20, cost_scale=1.22, ranks_per_realm=50,
        description="Steady breathing draws ambient Qi every second.",
    ),
    SkillDefinition(
        "meridian_flow", "Meridian Flow", SkillEffect.QPC_FLAT,
        base=2.00, cost=45, cost_scale=1.26, ranks_per_realm=50,
        description="Opened meridians strengthen every focused breath.",
    ),
    SkillDefinition(
        "lotus_meditation", "Lotus Meditation", SkillEffect.QPS_PERCENT,
        base=0.25, cost=140, cost_scale=1.35, ranks_per_realm=40, cap_pct_per_realm=0.12,
        description="Multiplies passive Qi gathering.",
    ),
    SkillDefinition(
        "dantian_temps", "Dantian Tempering", SkillEffect.QPC_PERCENT,
        base=0.18, cost=110, cost_scale=1.33, ranks_per_realm=40, cap_pct_per_realm=0.12,
        description="Multiplies Qi gained per click.",
    ),
    SkillDefinition(
        "closed_door", "Closed-Door Cultivation", SkillEffect.OFFLINE_PERCENT,
        base=0.35, cost=150, cost_scale=1.38, ranks_per_realm=30, cap_pct_per_realm=0.08,
        description="Improves Qi gathered while away.",
    ),
    SkillDefinition(
        "celestial_resonance", "Celestial Resonance", SkillEffect.QPS_TECHNIQUE,
        base=0.0, cost=5e6, cost_scale=1.3, ranks_per_realm=1, one_time=True,
        value=0.12, unlock_at_cycle=Cycle.SPIRIT,
        description="One-time technique: +12% Qi per second.",
    ),
    SkillDefinition(
        "void_convergence", "Void Convergence", SkillEffect.QPC_TECHNIQUE,
        base=0.0, cost=5e6, cost_scale=1.3, ranks_per_realm=1, one_time=True,
        value=0.12, unlock_at_cycle=Cycle.SPIRIT,
        description="One-time technique: +12% Qi per click.",
    ),
)


@dataclass(frozen=True, slots=True)
class BalanceConfig:
    """Sanitised, immutable balance tuning."""

    skills: tuple[SkillDefinition, ...] = DEFAULT_SKILLS
    stage_requirement: StageRequirementConfig = StageRequirementConfig()
    lifespan: LifespanConfig = LifespanConfig()
    time_speed: TimeSpeedConfig = TimeSpeedConfig()
    reincarnation: ReincarnationConfig = ReincarnationConfig()
    progression: ProgressionConfig = ProgressionConfig()
    offline: OfflineConfig = OfflineConfig()
    cycles: CycleConfig = CycleConfig()
    realm_baselines: RealmBaselines = RealmBaselines()
    diagnostics: tuple[str, ...] = field(default=(), compare=False)

    def skill(self, skill_id: str) -> SkillDefinition | None:
        for skill in self.skills:
            if skill.id == skill_id:
                return skill
        return None

    @property
    def skill_ids(self) -> tuple[str, ...]:
        return tuple(skill.id for skill in self.skills)

    @classmethod
    def defaults(cls, realm_count: int = len(DEFAULT_LADDER)) -> "BalanceConfig":
        return cls.validate({}, realm_count)

    @classmethod
    def validate(
        cls, raw: Mapping[str, Any] | None, realm_count: int = len(DEFAULT_LADDER)
    ) -> "BalanceConfig":
        """Return a sanitised config built from ``raw``.

        Missing fields take their built-in value silently. Fields that are
        present but malformed are replaced by a named fallback and produce one
        diagnostic each. This never raises.
        """

        sanitizer = _Sanitizer(raw if isinstance(raw, Mapping) else {}, max(1, int(realm_count)))
        return sanitizer.build()


def _finite(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _positive(value: float) -> bool:
    return value > 0


def _non_negative(value: float) -> bool:
    return value >= 0


def _above_one(value: float) -> bool:
    return value > 1


def _at_least_one(value: float) -> bool:
    return value >= 1


def _unit_interval(value: float) -> bool:
    return 0 < value <= 1


class _Sanitizer:
    def __init__(self, raw: Mapping[str, Any], realm_count: int) -> None:
        self.raw = raw
        self.realm_count = realm_count
        self.diagnostics: list[str] = []

    def warn(self, message: str) -> None:
        log.warning("Balance config: %s", message)
        self.diagnostics.append(message)

    def note(self, message: str) -> None:
        log.info("Balance config: %s", message)
        self.diagnostics.append(message)

    def section(self, key: str) -> Mapping[str, Any]:
        value = self.raw.get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            self.warn(f"{key}: expected a table, using defaults")
            return {}
        return value

    def number(
        self,
        table: Mapping[str, Any],
        path: str,
        key: str,
        default: float,
        fallback: float,
        valid: Callable[[float], bool],
    ) -> float:
        if key not in table:
            if table:
                self.note(f"{path}.{key}: missing, using default {default:g}")
            return float(default)
        value = table[key]
        if not _finite(value) or not valid(float(value)):
            self.warn(f"{path}.{key}: invalid value {value!r}, resetting to {fallback}")
            return float(fallback)
        return float(value)

    def build(self) -> BalanceConfig:
        return BalanceConfig(
            skills=self.skills(),
            stage_requirement=self.stage_requirement(),
            lifespan=self.lifespan(),
            time_speed=self.time_speed(),
            reincarnation=self.reincarnation(),
            progression=self.progression(),
            offline=self.offline(),
            cycles=self.cycles(),
            realm_baselines=self.realm_baselines(),
            diagnostics=tuple(self.diagnostics),
        )

    def stage_requirement(self) -> StageRequirementConfig:
        table = self.section("stageRequirement")
        default = StageRequirementConfig()
        return StageRequirementConfig(
            realm_base=self.number(table, "stageRequirement", "realmBase", default.realm_base, 100, _positive),
            realm_base_scale=self.number(
                table, "stageRequirement", "realmBaseScale", default.realm_base_scale, 15, _positive
            ),
            stage_scale=self.number(
                table, "stageRequirement", "stageScale", default.stage_scale, 1.45, _above_one
            ),
        )

    def lifespan(self) -> LifespanConfig:
        table = self.section("lifespan")
        default = LifespanConfig()

        entries: list[Optional[float]] = []
        raw_entries = table.get("realmMaxLifespan", list(default.realm_max_lifespan))
        if not isinstance(raw_entries, (list, tuple)):
            self.warn("lifespan.realmMaxLifespan: expected a list, using defaults")
            raw_entries = list(default.realm_max_lifespan)
        for position, value in enumerate(raw_entries):
            if value is None:
                entries.append(None)
            elif _finite(value) and value > 0:
                entries.append(float(value))
            else:
                self.warn(f"lifespan.realmMaxLifespan[{position}]: invalid value {value!r}, using 100")
                entries.append(100.0)

        if len(entries) > self.realm_count:
            self.warn(
                f"lifespan.realmMaxLifespan: {len(entries)} entries for {self.realm_count} realms, truncating"
            )
            entries = entries[: self.realm_count]
        elif len(entries) < self.realm_count:
            self.warn(
                f"lifespan.realmMaxLifespan: {len(entries)} entries for {self.realm_count} realms, padding"
            )
            padding = entries[-1] if entries else 100.0
            entries.extend([padding] * (self.realm_count - len(entries)))
        if entries[-1] is not None:
            self.warn("lifespan.realmMaxLifespan: final realm must be immortal, setting it to null")
            entries[-1] = None

        years = table.get("yearsPerSecond", default.years_per_second)
        if not _finite(years):
            self.warn(f"lifespan.yearsPerSecond: invalid value {years!r}, resetting to 0.5")
            years = 0.5
        years = float(years)
        if years < 0.005:
            self.warn(f"lifespan.yearsPerSecond: {years} too low, clamping to 0.005")
            years = 0.005
        elif years > 0.1:
            self.warn(f"lifespan.yearsPerSecond: {years} too high, clamping to 0.1")
            years = 0.1

        return LifespanConfig(realm_max_lifespan=tuple(entries), years_per_second=years)

    def time_speed(self) -> TimeSpeedConfig:
        table = self.section("timeSpeed")
        default = TimeSpeedConfig()
        speeds = table.get("speeds", list(default.speeds))
        unlocks = table.get("unlockRealmIndex", list(default.unlock_realm_index))
        if not isinstance(speeds, (list, tuple)):
            self.warn("timeSpeed.speeds: expected a list, using defaults")
            speeds = list(default.speeds)
        if not isinstance(unlocks, (list, tuple)):
            self.warn("timeSpeed.unlockRealmIndex: expected a list, using defaults")
            unlocks = list(default.unlock_realm_index)
        if len(speeds) != len(unlocks):
            self.warn(
                f"timeSpeed: lengths mismatched (speeds={len(speeds)}, unlocks={len(unlocks)}), truncating"
            )
            shortest = min(len(speeds), len(unlocks))
            speeds, unlocks = list(speeds)[:shortest], list(unlocks)[:shortest]

        pairs: dict[float, int] = {}
        for speed, unlock in zip(speeds, unlocks):
            if not _finite(speed) or speed < 0:
                self.warn(f"timeSpeed.speeds: dropping invalid speed {speed!r}")
                continue
            unlock_at = int(unlock) if _finite(unlock) and unlock >= 0 else 0
            pairs.setdefault(float(speed), unlock_at)
        for base_speed in BASE_SPEEDS:
            if base_speed not in pairs:
                self.warn(f"timeSpeed: base speed {base_speed}x missing, adding it")
                pairs[base_speed] = 0

        ordered = sorted(pairs.items())
        return TimeSpeedConfig(
            speeds=tuple(speed for speed, _ in ordered),
            unlock_realm_index=tuple(unlock for _, unlock in ordered),
        )

    def reincarnation(self) -> ReincarnationConfig:
        table = self.section("reincarnation")
        default = ReincarnationConfig()
        path = "reincarnation"
        return ReincarnationConfig(
            karma_per_unit=self.number(
                table, path, "karmaPerUnit", default.karma_per_unit, 0.1, _non_negative
            ),
            lifetime_qi_divisor=self.number(
                table, path, "lifetimeQiDivisor", default.lifetime_qi_divisor, 10000, _positive
            ),
            realm_karma_factor=self.number(
                table, path, "realmKarmaFactor", default.realm_karma_factor, 5, _non_negative
            ),
            min_karma=self.number(table, path, "minKarma", default.min_karma, 3, _at_least_one),
            death_penalty=self.number(
                table, path, "deathPenalty", default.death_penalty, 0.5, _unit_interval
            ),
            offline_karma_bonus=self.number(
                table, path, "offlineKarmaBonus", default.offline_karma_bonus, 1.0, _non_negative
            ),
        )

    def progression(self) -> ProgressionConfig:
        table = self.section("progression")
        default = ProgressionConfig()
        rewards = table.get("realmAdvanceReward") or {}
        if not isinstance(rewards, Mapping):
            self.warn("progression.realmAdvanceReward: expected a table, using defaults")
            rewards = {}

        def start(key: str, fallback: float) -> float:
            value = self.number(table, "progression", key, getattr(default, _snake(key)), fallback, _non_negative)
            if value > MAX_SAFE_START:
                self.warn(f"progression.{key}: {value} too large, resetting to {fallback}")
                return float(fallback)
            return value

        def reward(key: str, invalid: float, oversized: float) -> float:
            value = self.number(
                rewards, "progression.realmAdvanceReward", key, getattr(default, _snake(key)), invalid,
                _non_negative,
            )
            if value > MAX_SAFE_REWARD:
                self.warn(f"progression.realmAdvanceReward.{key}: {value} too large, resetting to {oversized}")
                return float(oversized)
            return value

        return ProgressionConfig(
            qpc_base_start=start("qpcBaseStart", 1),
            qps_base_start=start("qpsBaseStart", 0),
            qpc_base_add=reward("qpcBaseAdd", 1.5, 2.5),
            qps_base_add=reward("qpsBaseAdd", 0.9, 1.8),
            first_realm_qps_base=self.number(
                table, "progression", "firstRealmQpsBase", default.first_realm_qps_base, 1.0,
                _non_negative,
            ),
        )

    def offline(self) -> OfflineConfig:
        table = self.section("offline")
        return OfflineConfig(
            cap_hours=self.number(
                table, "offline", "capHours", OfflineConfig().cap_hours, 12, _positive
            )
        )

    def cycles(self) -> CycleConfig:
        table = self.section("cycleDefinitions")
        default = CycleConfig()
        midpoint = math.ceil(self.realm_count / 2)
        rebuilt = {
            "mortal": tuple(range(0, midpoint)),
            "spirit": tuple(range(midpoint, self.realm_count)),
        }
        defaults = {"mortal": default.mortal, "spirit": default.spirit}

        result: dict[str, CycleDefinition] = {}
        for cycle_id in ("mortal", "spirit"):
            base = defaults[cycle_id]
            entry = table.get(cycle_id)
            if entry is None:
                realms = tuple(index for index in base.realms if index < self.realm_count)
                result[cycle_id] = CycleDefinition(realms or rebuilt[cycle_id], base.realm_bonus)
                continue
            if not isinstance(entry, Mapping):
                self.warn(f"cycleDefinitions.{cycle_id}: expected a table, using defaults")
                entry = {}

            raw_realms = entry.get("realms", list(base.realms))
            if not isinstance(raw_realms, (list, tuple)):
                raw_realms = []
            realms = tuple(
                int(index)
                for index in raw_realms
                if _finite(index) and float(index).is_integer() and 0 <= index < self.realm_count
            )
            if len(realms) != len(raw_realms):
                self.warn(f"cycleDefinitions.{cycle_id}: removed invalid realm indices")
            if not realms:
                self.warn(f"cycleDefinitions.{cycle_id}: no valid realms, rebuilding from defaults")
                realms = rebuilt[cycle_id]

            bonus = entry.get("realmBonus", base.realm_bonus)
            if not _finite(bonus):
                self.warn(f"cycleDefinitions.{cycle_id}: invalid realmBonus {bonus!r}, setting to 0")
                bonus = 0.0
            result[cycle_id] = CycleDefinition(realms, float(bonus))

        return CycleConfig(mortal=result["mortal"], spirit=result["spirit"])

    def realm_baselines(self) -> RealmBaselines:
        table = self.section("realmBaselines")
        default = RealmBaselines()
        return RealmBaselines(
            qpc_flat_per_rank=self.number(
                table, "realmBaselines", "qpcFlatPerRank", default.qpc_flat_per_rank, 0.25, _non_negative
            ),
            qps_flat_per_rank=self.number(
                table, "realmBaselines", "qpsFlatPerRank", default.qps_flat_per_rank, 0.15, _non_negative
            ),
        )

    def skills(self) -> tuple[SkillDefinition, ...]:
        table = self.section("skills")
        defaults = {skill.id: skill for skill in DEFAULT_SKILLS}
        ordered_ids: list[str] = list(defaults)
        ordered_ids.extend(skill_id for skill_id in table if skill_id not in defaults)

        skills: list[SkillDefinition] = []
        for skill_id in ordered_ids:
            base = defaults.get(skill_id)
            entry = table.get(skill_id)
            if entry is None:
                if base is not None:
                    skills.append(base)
                continue
            if not isinstance(entry, Mapping):
                self.warn(f"skills.{skill_id}: expected a table, skipping")
                if base is not None:
                    skills.append(base)
                continue
            skill = self.skill(skill_id, entry, base)
            if skill is not None:
                skills.append(skill)
        return tuple(skills)

    def skill(
        self, skill_id: str, entry: Mapping[str, Any], base: SkillDefinition | None
    ) -> SkillDefinition | None:
        path = f"skills.{skill_id}"
        effect = SkillEffect.from_value(entry.get("effect")) if "effect" in entry else None
        if effect is None:
            if base is None:
                self.warn(f"{path}: unknown skill without a valid effect, skipping")
                return None
            if "effect" in entry:
                self.warn(f"{path}.effect: unknown effect {entry.get('effect')!r}, keeping {base.effect.value}")
            effect = base.effect
        template = base or SkillDefinition(skill_id, skill_id.replace("_", " ").title(), effect)

        one_time = bool(entry.get("oneTime", template.one_time))
        cap = entry.get("capPctPerRealm", template.cap_pct_per_realm)
        if cap is not None and (not _finite(cap) or cap < 0):
            self.warn(f"{path}.capPctPerRealm: invalid value {cap!r}, using the default cap")
            cap = None

        unlock = entry.get("unlockAtCycle", template.unlock_at_cycle)
        unlock_cycle = Cycle.from_value(unlock) if unlock else None

        ranks = entry.get("ranksPerRealm", template.ranks_per_realm)
        if not _finite(ranks) or ranks < 1:
            self.warn(f"{path}.ranksPerRealm: invalid value {ranks!r}, resetting to 25")
            ranks = 25

        return SkillDefinition(
            id=skill_id,
            name=str(entry.get("name") or template.name),
            effect=effect,
            base=self.number(entry, path, "base", template.base, 1, _non_negative),
            cost=self.number(entry, path, "cost", template.cost, 50, _positive),
            cost_scale=self.number(entry, path, "costScale", template.cost_scale, 1.3, _above_one),
            ranks_per_realm=int(ranks),
            one_time=one_time or effect.is_technique,
            value=self.number(entry, path, "value", template.value, 0.0, _non_negative),
            cap_pct_per_realm=float(cap) if cap is not None else None,
            unlock_at_cycle=unlock_cycle,
            description=str(entry.get("description") or template.description),
        )


def _snake(name: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in name)


def _read_document(path: Path) -> Mapping[str, Any]:
    if path.suffix.lower() == ".toml":
        with path.open("rb") as handle:
            return tomllib.load(handle)
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_balance(
    path: str | Path | None = None, realm_count: int = len(DEFAULT_LADDER)
) -> BalanceConfig:
    """Load and sanitise a balance document, falling back to the defaults."""

    if path is None:
        return BalanceConfig.defaults(realm_count)
    file_path = Path(path)
    if not file_path.exists():
        log.info("Balance document %s not found; using defaults", file_path)
        return BalanceConfig.defaults(realm_count)
    try:
        raw = _read_document(file_path)
    except (OSError, ValueError, tomllib.TOMLDecodeError) as exc:
        log.warning("Could not read balance document %s: %s", file_path, exc)
        config = BalanceConfig.defaults(realm_count)
        return _with_diagnostic(config, f"{file_path.name}: unreadable document ({exc})")
    if not isinstance(raw, Mapping):
        log.warning("Balance document %s is not a table; using defaults", file_path)
        config = BalanceConfig.defaults(realm_count)
        return _with_diagnostic(config, f"{file_path.name}: top level must be a table")
    config = BalanceConfig.validate(raw, realm_count)
    log.info("Loaded balance document %s (%d fixes)", file_path, len(config.diagnostics))
    return config


def _with_diagnostic(config: BalanceConfig, message: str) -> BalanceConfig:
    return replace(config, diagnostics=config.diagnostics + (message,))


__all__ = [
    "BalanceConfig",
    "CycleConfig",
    "CycleDefinition",
    "DEFAULT_SKILLS",
    "LifespanConfig",
    "OfflineConfig",
    "ProgressionConfig",
    "RealmBaselines",
    "ReincarnationConfig",
    "SkillDefinition",
    "SkillEffect",
    "StageRequirementConfig",
    "TimeSpeedConfig",
    "load_balance",
]
