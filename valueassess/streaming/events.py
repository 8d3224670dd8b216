"""SSE event types and serialization for an assessment run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class PipelineEventType(str, Enum):
    """All event types emitted during an assessment run."""

    # Pipeline lifecycle
    PIPELINE_STARTED = "pipeline_started"
    PIPELINE_COMPLETED = "pipeline_completed"
    PIPELINE_ERROR = "pipeline_error"

    # Stage progress
    STEP_STARTED = "step_started"
    STEP_COMPLETED = "step_completed"

    # Progressive snapshots
    PARTIAL_RESULT = "partial_result"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineEventType.PIPELINE_COMPLETED, PipelineEventType.PIPELINE_ERROR)


@dataclass
class SSEEvent:
    """One progress event of an assessment run.

    ``data`` already carries the ``assessment_id`` (merged in by the streaming
    listener) plus the event fields: ``stage_id``/``message`` for step events,
    ``result`` for partial and completed snapshots, ``error``/``error_type`` for
    failures. ``sequence_id`` is the per-assessment counter used for replay.
    """

    event_type: PipelineEventType
    data: dict[str, Any]
    sequence_id: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def to_sse_string(self) -> str:
        """Render as `event:` / `data:` / `id:` lines; the data line adds a timestamp."""
        data_json = json.dumps({**self.data, "timestamp": self.timestamp.isoformat()}, default=str)
        return f"event: {self.event_type.value}\ndata: {data_json}\nid: {self.sequence_id}\n\n"
