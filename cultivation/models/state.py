"""Mutable cultivation state and its persisted representation."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from ..constants import BASE_SPEEDS, DEFAULT_SPEED, QI_CAP, SAVE_SCHEMA_VERSION, STAGES_PER_REALM, VERSION
from ..utils import safe_num
from ._validation import FieldSpec, MappingSpec, ModelValidator, SequenceSpec, is_number, is_numeric_text
from .realms import Cycle


def _coerce_int(
    value: Any, default: int, *, minimum: int | None = None, maximum: int | None = None
) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        number = float(default)
    if not math.isfinite(number):
        number = float(default)
    result = int(number)
    if minimum is not None:
        result = max(minimum, result)
    if maximum is not None:
        result = min(maximum, result)
    return result


def _coerce_float(
    value: Any,
    default: float,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    result = safe_num(value, default)
    if minimum is not None:
        result = max(minimum, result)
    if maximum is not None:
        result = min(maximum, result)
    return result


def _coerce_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no", ""}:
            return False
        return default
    return bool(value)


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


@dataclass(slots=True)
class RankRecord:
    """Realm-scoped ranks of a repeatable skill."""

    total: int = 0
    per_realm: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned: dict[int, int] = {}
        raw = self.per_realm if isinstance(self.per_realm, Mapping) else {}
        for key, value in raw.items():
            try:
                realm = int(key)
            except (TypeError, ValueError):
                continue
            if realm < 0:
                continue
            ranks = _coerce_int(value, 0, minimum=0)
            if ranks:
                cleaned[realm] = ranks
        self.per_realm = cleaned
        self.total = max(_coerce_int(self.total, 0, minimum=0), sum(cleaned.values()))

    def ranks_in(self, realm_index: int) -> int:
        return self.per_realm.get(int(realm_index), 0)

    def add(self, realm_index: int, count: int) -> None:
        realm = int(realm_index)
        self.per_realm[realm] = self.per_realm.get(realm, 0) + count
        self.total += count

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "perRealm": {str(realm): ranks for realm, ranks in sorted(self.per_realm.items())},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RankRecord":
        return cls(total=data.get("total", 0), per_realm=data.get("perRealm") or {})


@dataclass(slots=True)
class TechniqueRecord:
    """A one-time technique; once purchased it is never downgraded."""

    purchased_one_time: bool = True

    def __post_init__(self) -> None:
        self.purchased_one_time = True

    def to_dict(self) -> dict[str, Any]:
        return {"purchasedOneTime": True, "total": 1, "perRealm": {}}


SkillRecord = Union[RankRecord, TechniqueRecord]


def skill_record_from_value(value: Any) -> SkillRecord | None:
    if isinstance(value, (RankRecord, TechniqueRecord)):
        return value
    if not isinstance(value, Mapping):
        return None
    if value.get("purchasedOneTime"):
        return TechniqueRecord()
    return RankRecord.from_dict(value)


@dataclass(slots=True)
class Reincarnation:
    times: int = 0
    karma: float = 0.0
    lifetime_qi: float = 0.0

    def __post_init__(self) -> None:
        self.times = _coerce_int(self.times, 0, minimum=0)
        self.karma = _coerce_float(self.karma, 0.0, minimum=0.0)
        self.lifetime_qi = _coerce_float(self.lifetime_qi, 0.0, minimum=0.0, maximum=QI_CAP)

    def to_dict(self) -> dict[str, Any]:
        return {"times": self.times, "karma": self.karma, "lifetimeQi": self.lifetime_qi}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Reincarnation":
        return cls(
            times=data.get("times", 0),
            karma=data.get("karma", 0.0),
            lifetime_qi=data.get("lifetimeQi", 0.0),
        )


@dataclass(slots=True)
class Lifespan:
    """Remaining and maximum lifespan in years; ``None`` means immortal."""

    current: Optional[float] = None
    max: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max is not None:
            self.max = _coerce_float(self.max, 100.0, minimum=0.0)
        if self.current is not None:
            self.current = _coerce_float(self.current, 100.0, minimum=0.0)

    @property
    def is_immortal(self) -> bool:
        return self.max is None

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "max": self.max}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Lifespan":
        return cls(current=data.get("current"), max=data.get("max"))


@dataclass(slots=True)
class TimeSpeed:
    current: float = DEFAULT_SPEED
    paused: bool = False

    def __post_init__(self) -> None:
        self.current = _coerce_float(self.current, DEFAULT_SPEED, minimum=0.0)
        self.paused = _coerce_bool(self.paused)

    @property
    def effective(self) -> float:
        return 0.0 if self.paused else self.current

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "paused": self.paused}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimeSpeed":
        return cls(current=data.get("current", DEFAULT_SPEED), paused=data.get("paused", False))


@dataclass(slots=True)
class Flags:
    unlocked_beyond_spirit: bool = False
    has_unlocked_spirit_cycle: bool = False
    has_completed_mandatory_st10: bool = False
    can_manual_reincarnate: bool = False
    lifespan_handled: bool = False

    _KEYS: ClassVar[dict[str, str]] = {
        "unlocked_beyond_spirit": "unlockedBeyondSpirit",
        "has_unlocked_spirit_cycle": "hasUnlockedSpiritCycle",
        "has_completed_mandatory_st10": "hasCompletedMandatoryST10",
        "can_manual_reincarnate": "canManualReincarnate",
        "lifespan_handled": "lifespanHandled",
    }

    def __post_init__(self) -> None:
        for name in self._KEYS:
            setattr(self, name, _coerce_bool(getattr(self, name)))

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, name) for name, key in self._KEYS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Flags":
        return cls(**{name: data.get(key, False) for name, key in cls._KEYS.items()})


@dataclass(slots=True)
class Lifecycle:
    """Reentrancy guard and timestamps of the last life transitions."""

    is_reincarnating: bool = False
    last_death_at: float = 0.0
    last_reincarnate_at: float = 0.0

    def __post_init__(self) -> None:
        self.is_reincarnating = _coerce_bool(self.is_reincarnating)
        self.last_death_at = _coerce_float(self.last_death_at, 0.0, minimum=0.0)
        self.last_reincarnate_at = _coerce_float(self.last_reincarnate_at, 0.0, minimum=0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isReincarnating": self.is_reincarnating,
            "lastDeathAt": self.last_death_at,
            "lastReincarnateAt": self.last_reincarnate_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Lifecycle":
        return cls(
            is_reincarnating=data.get("isReincarnating", False),
            last_death_at=data.get("lastDeathAt", 0.0),
            last_reincarnate_at=data.get("lastReincarnateAt", 0.0),
        )


def normalize_speeds(values: Any) -> list[float]:
    """Return a sorted, de-duplicated speed list that includes the base speeds."""

    speeds: set[float] = set(BASE_SPEEDS)
    if isinstance(values, (list, tuple, set, frozenset)):
        for value in values:
            speed = safe_num(value, -1.0)
            if speed >= 0:
                speeds.add(speed)
    return sorted(speeds)


@dataclass(slots=True)
class Meta:
    """Permanent unlocks that survive every reset."""

    unlocked_speeds: List[float] = field(default_factory=lambda: list(BASE_SPEEDS))

    def __post_init__(self) -> None:
        self.unlocked_speeds = normalize_speeds(self.unlocked_speeds)

    def to_dict(self) -> dict[str, Any]:
        return {"unlockedSpeeds": list(self.unlocked_speeds)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Meta":
        return cls(unlocked_speeds=data.get("unlockedSpeeds") or [])


@dataclass(slots=True)
class Stats:
    deaths: int = 0
    total_clicks: int = 0
    total_purchases: int = 0

    def __post_init__(self) -> None:
        self.deaths = _coerce_int(self.deaths, 0, minimum=0)
        self.total_clicks = _coerce_int(self.total_clicks, 0, minimum=0)
        self.total_purchases = _coerce_int(self.total_purchases, 0, minimum=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deaths": self.deaths,
            "totalClicks": self.total_clicks,
            "totalPurchases": self.total_purchases,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Stats":
        return cls(
            deaths=data.get("deaths", 0),
            total_clicks=data.get("totalClicks", 0),
            total_purchases=data.get("totalPurchases", 0),
        )


@dataclass(slots=True)
class LifeRun:
    is_clean_run: bool = True

    def __post_init__(self) -> None:
        self.is_clean_run = _coerce_bool(self.is_clean_run, True)

    def to_dict(self) -> dict[str, Any]:
        return {"isCleanRun": self.is_clean_run}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LifeRun":
        return cls(is_clean_run=data.get("isCleanRun", True))


@dataclass(slots=True)
class SessionSnapshot:
    """Marker written when the player leaves; consumed once on resume."""

    last_ts: float = 0.0
    last_speed: float = 0.0
    last_realm_index: int = 0
    last_qi: float = 0.0

    def __post_init__(self) -> None:
        self.last_ts = _coerce_float(self.last_ts, 0.0, minimum=0.0)
        self.last_speed = _coerce_float(self.last_speed, 0.0, minimum=0.0)
        self.last_realm_index = _coerce_int(self.last_realm_index, 0, minimum=0)
        self.last_qi = _coerce_float(self.last_qi, 0.0, minimum=0.0, maximum=QI_CAP)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastTs": self.last_ts,
            "lastSpeed": self.last_speed,
            "lastRealmIndex": self.last_realm_index,
            "lastQi": self.last_qi,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionSnapshot":
        return cls(
            last_ts=data.get("lastTs", 0.0),
            last_speed=data.get("lastSpeed", 0.0),
            last_realm_index=data.get("lastRealmIndex", 0),
            last_qi=data.get("lastQi", 0.0),
        )


@dataclass(slots=True)
class CultivationState:
    """Single mutable root of a cultivation run."""

    qi: float = 0.0
    realm_index: int = 0
    stage: int = 1
    qpc_base: float = 1.0
    qps_base: float = 0.0
    qpc_mult: float = 1.0
    qps_mult: float = 1.0
    skills: Dict[str, SkillRecord] = field(default_factory=dict)
    reinc: Reincarnation = field(default_factory=Reincarnation)
    lifespan: Lifespan = field(default_factory=Lifespan)
    age: float = 0.0
    is_dead: bool = False
    time_speed: TimeSpeed = field(default_factory=TimeSpeed)
    current_cycle: Cycle = Cycle.MORTAL
    flags: Flags = field(default_factory=Flags)
    lifecycle: Lifecycle = field(default_factory=Lifecycle)
    meta: Meta = field(default_factory=Meta)
    stats: Stats = field(default_factory=Stats)
    life: LifeRun = field(default_factory=LifeRun)
    session: Optional[SessionSnapshot] = None
    version: str = VERSION
    schema_version: int = SAVE_SCHEMA_VERSION
    migrated_to_mortal_realm: bool = True
    migrated_to_rank_system: bool = True
    last_save: float = 0.0

    validator: ClassVar[type[ModelValidator]]

    def __post_init__(self) -> None:
        self.qi = _coerce_float(self.qi, 0.0, minimum=0.0, maximum=QI_CAP)
        self.realm_index = _coerce_int(self.realm_index, 0, minimum=0)
        self.stage = _coerce_int(self.stage, 1, minimum=1, maximum=STAGES_PER_REALM)
        self.qpc_base = _coerce_float(self.qpc_base, 1.0, minimum=0.0)
        self.qps_base = _coerce_float(self.qps_base, 0.0, minimum=0.0)
        self.qpc_mult = _coerce_float(self.qpc_mult, 1.0, minimum=0.0)
        self.qps_mult = _coerce_float(self.qps_mult, 1.0, minimum=0.0)

        skills: dict[str, SkillRecord] = {}
        raw_skills = self.skills if isinstance(self.skills, Mapping) else {}
        for skill_id, value in raw_skills.items():
            record = skill_record_from_value(value)
            if record is not None:
                skills[str(skill_id)] = record
        self.skills = skills

        if isinstance(self.reinc, Mapping):
            self.reinc = Reincarnation.from_dict(self.reinc)
        if isinstance(self.lifespan, Mapping):
            self.lifespan = Lifespan.from_dict(self.lifespan)
        if isinstance(self.time_speed, Mapping):
            self.time_speed = TimeSpeed.from_dict(self.time_speed)
        if isinstance(self.flags, Mapping):
            self.flags = Flags.from_dict(self.flags)
        if isinstance(self.lifecycle, Mapping):
            self.lifecycle = Lifecycle.from_dict(self.lifecycle)
        if isinstance(self.meta, Mapping):
            self.meta = Meta.from_dict(self.meta)
        if isinstance(self.stats, Mapping):
            self.stats = Stats.from_dict(self.stats)
        if isinstance(self.life, Mapping):
            self.life = LifeRun.from_dict(self.life)
        if isinstance(self.session, Mapping):
            self.session = SessionSnapshot.from_dict(self.session)

        self.age = _coerce_float(self.age, 0.0, minimum=0.0)
        self.is_dead = _coerce_bool(self.is_dead)
        self.current_cycle = Cycle.from_value(self.current_cycle)
        self.version = str(self.version or VERSION)
        self.schema_version = _coerce_int(self.schema_version, SAVE_SCHEMA_VERSION, minimum=0)
        self.migrated_to_mortal_realm = _coerce_bool(self.migrated_to_mortal_realm, True)
        self.migrated_to_rank_system = _coerce_bool(self.migrated_to_rank_system, True)
        self.last_save = _coerce_float(self.last_save, 0.0, minimum=0.0)

    @classmethod
    def fresh(cls, *, qpc_base: float, qps_base: float) -> "CultivationState":
        """Return the default state a brand new (or reset) run starts from."""

        return cls(qpc_base=qpc_base, qps_base=qps_base)

    def clone(self) -> "CultivationState":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "qi": self.qi,
            "realmIndex": self.realm_index,
            "stage": self.stage,
            "qpcBase": self.qpc_base,
            "qpsBase": self.qps_base,
            "qpcMult": self.qpc_mult,
            "qpsMult": self.qps_mult,
            "skills": {skill_id: record.to_dict() for skill_id, record in self.skills.items()},
            "reinc": self.reinc.to_dict(),
            "lifespan": self.lifespan.to_dict(),
            "age": self.age,
            "isDead": self.is_dead,
            "timeSpeed": self.time_speed.to_dict(),
            "currentCycle": self.current_cycle.value,
            "flags": self.flags.to_dict(),
            "lifecycle": self.lifecycle.to_dict(),
            "meta": self.meta.to_dict(),
            "stats": self.stats.to_dict(),
            "life": self.life.to_dict(),
            "session": self.session.to_dict() if self.session is not None else None,
            "version": self.version,
            "schemaVersion": self.schema_version,
            "migratedToMortalRealm": self.migrated_to_mortal_realm,
            "migratedToRankSystem": self.migrated_to_rank_system,
            "lastSave": self.last_save,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CultivationState":
        session = data.get("session")
        return cls(
            qi=data.get("qi", 0.0),
            realm_index=data.get("realmIndex", 0),
            stage=data.get("stage", 1),
            qpc_base=data.get("qpcBase", 1.0),
            qps_base=data.get("qpsBase", 0.0),
            qpc_mult=data.get("qpcMult", 1.0),
            qps_mult=data.get("qpsMult", 1.0),
            skills=dict(_section(data, "skills")),
            reinc=Reincarnation.from_dict(_section(data, "reinc")),
            lifespan=Lifespan.from_dict(_section(data, "lifespan")),
            age=data.get("age", 0.0),
            is_dead=data.get("isDead", False),
            time_speed=TimeSpeed.from_dict(_section(data, "timeSpeed")),
            current_cycle=data.get("currentCycle", Cycle.MORTAL.value),
            flags=Flags.from_dict(_section(data, "flags")),
            lifecycle=Lifecycle.from_dict(_section(data, "lifecycle")),
            meta=Meta.from_dict(_section(data, "meta")),
            stats=Stats.from_dict(_section(data, "stats")),
            life=LifeRun.from_dict(_section(data, "life")),
            session=SessionSnapshot.from_dict(session) if isinstance(session, Mapping) else None,
            version=data.get("version", VERSION),
            schema_version=data.get("schemaVersion", SAVE_SCHEMA_VERSION),
            migrated_to_mortal_realm=data.get("migratedToMortalRealm", True),
            migrated_to_rank_system=data.get("migratedToRankSystem", True),
            last_save=data.get("lastSave", 0.0),
        )


_SECTION = MappingSpec(str, Any)


class MetaValidator(ModelValidator):
    model = Meta
    fields = {
        "unlockedSpeeds": FieldSpec(SequenceSpec(is_number), "sequence of speeds", allow_none=True),
    }


class CultivationStateValidator(ModelValidator):
    model = CultivationState
    fields = {
        "qi": FieldSpec(is_numeric_text, "number"),
        "realmIndex": FieldSpec(is_numeric_text, "realm index"),
        "stage": FieldSpec(is_numeric_text, "stage number"),
        "qpcBase": FieldSpec(is_numeric_text, "number"),
        "qpsBase": FieldSpec(is_numeric_text, "number"),
        "skills": FieldSpec(_SECTION, "mapping of skill ids", allow_none=True),
        "reinc": FieldSpec(_SECTION, "reincarnation table", allow_none=True),
        "lifespan": FieldSpec(_SECTION, "lifespan table", allow_none=True),
        "age": FieldSpec(is_numeric_text, "number", allow_none=True),
        "ageYears": FieldSpec(is_numeric_text, "number", allow_none=True),
        "timeSpeed": FieldSpec(_SECTION, "time speed table", allow_none=True),
        "flags": FieldSpec(_SECTION, "flag table", allow_none=True),
        "lifecycle": FieldSpec(_SECTION, "lifecycle table", allow_none=True),
        "meta": FieldSpec(_SECTION, "meta table", allow_none=True),
        "stats": FieldSpec(_SECTION, "stats table", allow_none=True),
        "session": FieldSpec(_SECTION, "session table", allow_none=True),
        "version": FieldSpec(str, "version string", allow_none=True),
    }

    @classmethod
    def validate(cls, data: Any) -> dict[str, Any]:
        normalized = super().validate(data)
        if normalized.get("meta") is not None:
            normalized["meta"] = MetaValidator.validate(normalized["meta"])
        return normalized


CultivationState.validator = CultivationStateValidator


__all__ = [
    "CultivationState",
    "CultivationStateValidator",
    "Flags",
    "LifeRun",
    "Lifecycle",
    "Lifespan",
    "Meta",
    "MetaValidator",
    "RankRecord",
    "Reincarnation",
    "SessionSnapshot",
    "SkillRecord",
    "Stats",
    "TechniqueRecord",
    "TimeSpeed",
    "normalize_speeds",
    "skill_record_from_value",
]
