"""Convert flat skill levels into realm-scoped rank records."""

from __future__ import annotations

import math
from typing import Any, Mapping


FROM_VERSION = 2
TO_VERSION = 3
DESCRIPTION = "Move skills to per-realm ranks and one-time techniques"


def _level(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return int(number) if math.isfinite(number) and number > 0 else 0


def _convert(value: Any, is_technique: bool, realm_index: int) -> dict[str, Any] | None:
    if isinstance(value, Mapping):
        return dict(value)
    if is_technique:
        if value:
            return {"purchasedOneTime": True, "total": 1, "perRealm": {}}
        return None
    level = _level(value)
    if level <= 0:
        return None
    return {"total": level, "perRealm": {str(realm_index): level}}


def apply(context) -> None:  # type: ignore[override]
    payload = context.payload
    skills = payload.get("skills")
    if not isinstance(skills, Mapping):
        payload["skills"] = {}
        payload["migratedToRankSystem"] = True
        return
    if payload.get("migratedToRankSystem"):
        return

    kinds = context.skill_kinds()
    try:
        realm_index = int(float(payload.get("realmIndex", 0)))
    except (TypeError, ValueError, OverflowError):
        realm_index = 0

    converted: dict[str, Any] = {}
    dropped: list[str] = []
    for skill_id, value in skills.items():
        if skill_id not in kinds:
            dropped.append(str(skill_id))
            continue
        record = _convert(value, kinds[skill_id], realm_index)
        if record is not None:
            converted[skill_id] = record

    payload["skills"] = converted
    payload["migratedToRankSystem"] = True
    context.log(f"converted {len(converted)} skill(s) to ranks")
    if dropped:
        context.log(f"dropped unknown skills: {', '.join(sorted(dropped))}")
