"""Shared constants used across the progression core."""

from __future__ import annotations

# Application version written into every save blob.
VERSION = "1.2.0"

# Blob key used when the configuration does not override it.
SAVE_KEY = "xianxiaIdleSaveV1"

# Current save schema. Each migration module advances the schema by one step.
SAVE_SCHEMA_VERSION = 3

# Upper bound for every Qi quantity; costs that would exceed it are treated as
# unaffordable rather than overflowing.
QI_CAP = 1e300

# Natural log ceiling for bulk purchase math (ln(1e300) ~= 690.8).
LOG_MAX = 690.0

# Stage 1 of a realm must cost at least this much more than stage 10 of the
# previous realm.
CROSS_REALM_JUMP = 1.25

STAGES_PER_REALM = 10

# Speeds that stay selectable no matter what the balance document says.
BASE_SPEEDS: tuple[float, ...] = (0.0, 0.25, 0.5, 1.0)

DEFAULT_SPEED = 1.0
