"""
Tier Controller
===============
Composes Stage Runners into three escalating validation profiles.

    tier1 (instant)   typecheck, lint
    tier2 (fast)      tier1 + prebuild, unit-tests
    tier3 (thorough)  tier2 + e2e

Escalation Rule:
    Stages run sequentially, cheapest level first. All stages of a level
    run; if any of them failed, no stage of a higher level is executed.
    The result keeps the requested tier in ``tier`` and the deepest level
    that actually ran in ``executed_tier``.

Budget:
    Each tier has a wall-clock budget. A stage receives the smaller of
    its own timeout and what remains of the budget, never less than
    MIN_STAGE_TIMEOUT.
"""
import logging
import time
from typing import Optional

from quality_gate.core.config import MIN_STAGE_TIMEOUT, TIER_BUDGETS
from quality_gate.core.constants import TIER_ORDER, TIER_STAGES
from quality_gate.core.output_formatter import format_tier_result
from quality_gate.executor.stage_runners import StageRunner, build_default_stages
from quality_gate.models.diagnostic import RawDiagnostic
from quality_gate.models.validation_result import StageResult, TierResult
from quality_gate.parser.error_categorizer import is_auto_fixable

logger = logging.getLogger(__name__)


class TierController:
    """
    Runs validation tiers and remembers the last result per tier.

    Usage:
        controller = TierController()
        result = await controller.run_tier(project_path, "tier2")
    """

    def __init__(self, stages: Optional[dict[str, StageRunner]] = None,
                 budgets: Optional[dict[str, int]] = None) -> None:
        self.stages = stages if stages is not None else build_default_stages()
        self.budgets = budgets if budgets is not None else dict(TIER_BUDGETS)
        self.last_results: dict[str, TierResult] = {}

    async def run_tier(self, project_path: str, tier: str) -> TierResult:
        """
        Run ``tier`` with escalation from tier1.

        Parameters
        ----------
        project_path : str
            Generated project root.
        tier : str
            "tier1", "tier2" or "tier3".

        Returns
        -------
        TierResult
            Aggregated over the stages that actually ran.
        """
        if tier not in TIER_ORDER:
            raise ValueError(f"Unknown tier '{tier}' (expected one of {TIER_ORDER})")

        start = time.monotonic()
        budget = self.budgets.get(tier, TIER_BUDGETS[tier])
        levels = TIER_ORDER[: TIER_ORDER.index(tier) + 1]
        results: dict[str, StageResult] = {}
        executed = levels[0]

        for level in levels:
            executed = level
            for stage_name in TIER_STAGES[level]:
                runner = self.stages.get(stage_name)
                if runner is None:
                    logger.warning("No runner configured for stage '%s' – skipping", stage_name)
                    continue
                remaining = budget - (time.monotonic() - start)
                stage_timeout = max(min(runner.command.timeout_seconds, remaining), MIN_STAGE_TIMEOUT)
                results[stage_name] = await runner.run(project_path, timeout=stage_timeout)

            if not all(results[s].passed for s in TIER_STAGES[level] if s in results):
                if level != tier:
                    logger.info("%s failed – not escalating to %s", level, tier)
                break

        result = TierResult.from_stages(
            tier=tier,
            executed_tier=executed,
            stages=results,
            duration_seconds=time.monotonic() - start,
        )
        self.last_results[tier] = result
        logger.info(format_tier_result(result))
        return result

    async def run_tier1(self, project_path: str) -> TierResult:
        return await self.run_tier(project_path, "tier1")

    async def run_tier2(self, project_path: str) -> TierResult:
        return await self.run_tier(project_path, "tier2")

    async def run_tier3(self, project_path: str) -> TierResult:
        return await self.run_tier(project_path, "tier3")

    def get_validation_summary(self) -> dict[str, dict]:
        """Last result per tier: ``{tier: {passed, error_count, warning_count, duration}}``."""
        return {
            tier: {
                "passed": result.passed,
                "executed_tier": result.executed_tier,
                "error_count": len(result.errors),
                "warning_count": len(result.warnings),
                "duration": result.duration_seconds,
            }
            for tier, result in self.last_results.items()
        }

    @staticmethod
    def auto_fixable_errors(result: TierResult) -> list[RawDiagnostic]:
        """Errors of ``result`` that some fix pattern recognizes."""
        return [e for e in result.errors if is_auto_fixable(e)]
