"""Shift saves from before the Mortal realm was added to the ladder."""

from __future__ import annotations


FROM_VERSION = 0
TO_VERSION = 1
DESCRIPTION = "Insert the Mortal realm below Qi Refining"


def _as_int(value, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def apply(context) -> None:  # type: ignore[override]
    payload = context.payload
    if payload.get("migratedToMortalRealm"):
        return

    realm_index = _as_int(payload.get("realmIndex"), 0)
    stage = _as_int(payload.get("stage"), 1)
    if realm_index > 0 or stage > 1:
        shifted = min(realm_index + 1, context.realm_count - 1)
        payload["realmIndex"] = shifted
        context.log(f"shifted realm {realm_index} -> {shifted} for the Mortal realm")
    payload["migratedToMortalRealm"] = True
