"""Static realm ladder and cultivation cycles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Sequence


class Cycle(str, Enum):
    """Named groupings of contiguous realms."""

    MORTAL = "mortal"
    SPIRIT = "spirit"

    @property
    def display_name(self) -> str:
        return f"{self.value.title()} Cycle"

    @classmethod
    def from_value(cls, value: "Cycle | str | None", *, default: "Cycle | None" = None) -> "Cycle":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return default if default is not None else cls.MORTAL


@dataclass(frozen=True, slots=True)
class Realm:
    id: str
    name: str


DEFAULT_REALMS: tuple[Realm, ...] = (
    Realm("mortal_realm", "Mortal Realm"),
    Realm("qi_refining", "Qi Refining"),
    Realm("foundation_establishment", "Foundation Establishment"),
    Realm("golden_core", "Golden Core"),
    Realm("nascent_soul", "Nascent Soul"),
    Realm("spirit_transformation", "Spirit Transformation"),
    Realm("void_refining", "Ascension"),
    Realm("body_integration", "Profound Immortal"),
    Realm("mahayana", "Immortal Vulnerable"),
    Realm("tribulation_transcendence", "Immortal Emperor"),
    Realm("true_immortal", "God Realm"),
)

# Realm whose stage 10 holds the one-time mandatory reincarnation gate.
GATE_REALM_ID = "spirit_transformation"
FIRST_CULTIVATION_REALM_ID = "qi_refining"


class RealmLadder:
    """Ordered realm definitions with id to index lookup.

    Every realm-dependent rule resolves positions through :meth:`index_of`
    rather than hard-coded numbers so the ladder can be extended without
    off-by-one drift.
    """

    def __init__(self, realms: Sequence[Realm] = DEFAULT_REALMS) -> None:
        if not realms:
            raise ValueError("A realm ladder needs at least one realm")
        self._realms: tuple[Realm, ...] = tuple(realms)
        self._index: Mapping[str, int] = MappingProxyType(
            {realm.id: position for position, realm in enumerate(self._realms)}
        )

    def __len__(self) -> int:
        return len(self._realms)

    def __iter__(self) -> Iterator[Realm]:
        return iter(self._realms)

    @property
    def realms(self) -> tuple[Realm, ...]:
        return self._realms

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(realm.id for realm in self._realms)

    @property
    def last_index(self) -> int:
        return len(self._realms) - 1

    @property
    def gate_index(self) -> int:
        return self.index_of(GATE_REALM_ID)

    @property
    def first_cultivation_index(self) -> int:
        return self.index_of(FIRST_CULTIVATION_REALM_ID)

    def index_of(self, realm_id: str) -> int:
        """Return the index of ``realm_id`` or ``-1`` when it is unknown."""

        return self._index.get(realm_id, -1)

    def by_index(self, index: int) -> Realm | None:
        if 0 <= index < len(self._realms):
            return self._realms[index]
        return None

    def by_id(self, realm_id: str) -> Realm | None:
        index = self.index_of(realm_id)
        return self.by_index(index) if index >= 0 else None

    def clamp_index(self, index: int) -> int:
        return max(0, min(self.last_index, int(index)))

    def name_of(self, index: int) -> str:
        realm = self.by_index(index)
        return realm.name if realm is not None else "Unknown Realm"


DEFAULT_LADDER = RealmLadder()


__all__ = [
    "Cycle",
    "Realm",
    "RealmLadder",
    "DEFAULT_REALMS",
    "DEFAULT_LADDER",
    "GATE_REALM_ID",
    "FIRST_CULTIVATION_REALM_ID",
]
