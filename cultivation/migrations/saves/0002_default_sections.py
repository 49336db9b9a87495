"""Fill in the sections introduced by the lifespan and reincarnation update."""

from __future__ import annotations

import math
from typing import Any, MutableMapping

from cultivation.constants import BASE_SPEEDS


FROM_VERSION = 1
TO_VERSION = 2
DESCRIPTION = "Add lifespan, reincarnation, time speed, flag and stat sections"


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _table(payload: MutableMapping[str, Any], key: str) -> MutableMapping[str, Any]:
    value = payload.get(key)
    if not isinstance(value, MutableMapping):
        value = {}
        payload[key] = value
    return value


def apply(context) -> None:  # type: ignore[override]
    payload = context.payload
    added: list[str] = []

    if not isinstance(payload.get("reinc"), MutableMapping):
        payload["reinc"] = {"times": 0, "karma": 0, "lifetimeQi": 0}
        added.append("reinc")

    realm_index = int(_number(payload.get("realmIndex")) or 0)
    if not isinstance(payload.get("lifespan"), MutableMapping):
        configured = context.configured_lifespan(realm_index)
        if configured is None:
            payload["lifespan"] = {"current": None, "max": None}
        else:
            maximum = configured or 100
            payload["lifespan"] = {"current": maximum, "max": maximum}
        added.append("lifespan")

    if not isinstance(payload.get("timeSpeed"), MutableMapping):
        payload["timeSpeed"] = {"current": 1, "paused": False}
        added.append("timeSpeed")

    flags = _table(payload, "flags")
    flags.setdefault("lifespanHandled", bool(payload.pop("lifespanHandled", False)))

    _table(payload, "lifecycle").setdefault("isReincarnating", False)

    stats = _table(payload, "stats")
    for key in ("deaths", "totalClicks", "totalPurchases"):
        stats.setdefault(key, 0)

    meta = _table(payload, "meta")
    speeds = meta.get("unlockedSpeeds")
    known = [speed for speed in speeds if _number(speed) is not None] if isinstance(speeds, list) else []
    meta["unlockedSpeeds"] = sorted({*(float(speed) for speed in known), *BASE_SPEEDS})

    payload.setdefault("isDead", False)
    _table(payload, "life").setdefault("isCleanRun", True)

    if _number(payload.get("age")) is None:
        age = _number(payload.get("ageYears"))
        if age is None:
            lifespan = payload["lifespan"]
            maximum = _number(lifespan.get("max"))
            current = _number(lifespan.get("current"))
            age = max(0.0, maximum - current) if maximum is not None and current is not None else 0.0
        payload["age"] = age
        added.append("age")
    payload.pop("ageYears", None)

    if added:
        context.log(f"added default sections: {', '.join(added)}")
