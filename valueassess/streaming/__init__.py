from .events import PipelineEventType, SSEEvent
from .manager import StreamManager

__all__ = ["PipelineEventType", "SSEEvent", "StreamManager"]
