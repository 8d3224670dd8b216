"""Progress notification interface for an assessment run."""

from __future__ import annotations

from typing import Optional

from valueassess.models.enums import StageId
from valueassess.models.result import AssessmentResult


class AssessmentListener:
    """Receives progress from the orchestrator.

    Every hook is a no-op by default; subclasses override what they need.
    """

    async def on_step_started(self, stage_id: StageId) -> None:
        return None

    async def on_step_completed(
        self,
        stage_id: StageId,
        success: bool,
        error: Optional[BaseException] = None,
    ) -> None:
        return None

    async def on_partial_result(self, snapshot: AssessmentResult) -> None:
        return None
