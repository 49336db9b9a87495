"""Qi requirements for breaking through each realm stage."""

from __future__ import annotations

import logging
import math

from .balance import StageRequirementConfig
from .constants import CROSS_REALM_JUMP, STAGES_PER_REALM
from .formulas import karma_stage_mult

log = logging.getLogger(__name__)


class StageCostModel:
    """Monotonic cost curve across every realm and stage.

    ``effective_realm_scale`` is never below ``stage_scale ** 9`` so stage 10
    of a realm can not be cheaper than stage 1 of the next. The cross-realm
    floor on stage 1 repeats that guarantee after the karma discount.
    """

    def __init__(self, config: StageRequirementConfig, realm_count: int) -> None:
        self.config = config
        self.realm_count = max(1, int(realm_count))
        try:
            minimum_scale = config.stage_scale ** (STAGES_PER_REALM - 1)
        except OverflowError:
            minimum_scale = math.inf
        self.effective_realm_scale = max(config.realm_base_scale, minimum_scale)
        if config.realm_base_scale < minimum_scale:
            log.debug(
                "realmBaseScale %.2f below stageScale^9 (%.2f); using the latter",
                config.realm_base_scale,
                minimum_scale,
            )

    def base_cost(self, realm_index: int, stage: int) -> int:
        if realm_index <= 0:
            return stage * 10
        try:
            realm_base = self.config.realm_base * self.effective_realm_scale ** realm_index
            return math.floor(realm_base * self.config.stage_scale ** (stage - 1))
        except OverflowError:
            return math.floor(1e300)

    def discounted(self, realm_index: int, stage: int, karma: float) -> int:
        return math.floor(self.base_cost(realm_index, stage) / karma_stage_mult(karma))

    def requirement(self, realm_index: int, stage: int, karma: float = 0.0) -> int:
        """Return the Qi needed to break through ``stage`` of ``realm_index``."""

        required = self.discounted(realm_index, stage, karma)
        if realm_index > 0 and stage == 1:
            previous = self.discounted(realm_index - 1, STAGES_PER_REALM, karma)
            required = max(required, math.floor(previous * CROSS_REALM_JUMP))
        return required

    def check_monotonic(self, karma: float = 0.0) -> list[str]:
        """Return every ordering violation of the cost curve."""

        violations: list[str] = []
        previous: tuple[int, int, int] | None = None
        for realm_index in range(self.realm_count):
            for stage in range(1, STAGES_PER_REALM + 1):
                cost = self.requirement(realm_index, stage, karma)
                if previous is not None and cost <= previous[2]:
                    violations.append(
                        f"realm {realm_index} stage {stage} costs {cost}, "
                        f"not above realm {previous[0]} stage {previous[1]} ({previous[2]})"
                    )
                previous = (realm_index, stage, cost)
        for violation in violations:
            log.warning("Stage cost curve: %s", violation)
        return violations


__all__ = ["StageCostModel"]
