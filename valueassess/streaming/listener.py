"""StreamingListener forwards orchestrator progress to SSE subscribers."""

from __future__ import annotations

from typing import Any, Optional

from valueassess.hooks.progress_hooks import get_progress_message
from valueassess.models.enums import StageId
from valueassess.models.result import AssessmentResult, assessment_result_to_dict
from valueassess.orchestrator.listener import AssessmentListener

from .events import PipelineEventType, SSEEvent
from .manager import StreamManager


class StreamingListener(AssessmentListener):
    """Turns listener callbacks into sequenced SSE events for one assessment."""

    def __init__(self, stream_manager: StreamManager, assessment_id: str) -> None:
        self._stream_manager = stream_manager
        self._assessment_id = assessment_id
        self._seq = 0

    async def emit(self, event_type: PipelineEventType, data: dict[str, Any]) -> None:
        self._seq += 1
        await self._stream_manager.emit(
            self._assessment_id,
            SSEEvent(
                event_type=event_type,
                data={"assessment_id": self._assessment_id, **data},
                sequence_id=self._seq,
            ),
        )

    async def on_step_started(self, stage_id: StageId) -> None:
        await self.emit(PipelineEventType.STEP_STARTED, {
            "stage_id": stage_id.value,
            "message": get_progress_message(stage_id.value),
        })

    async def on_step_completed(
        self,
        stage_id: StageId,
        success: bool,
        error: Optional[BaseException] = None,
    ) -> None:
        await self.emit(PipelineEventType.STEP_COMPLETED, {
            "stage_id": stage_id.value,
            "success": success,
            "error": str(error) if error is not None else None,
        })

    async def on_partial_result(self, snapshot: AssessmentResult) -> None:
        await self.emit(PipelineEventType.PARTIAL_RESULT, {
            "result": assessment_result_to_dict(snapshot),
        })
