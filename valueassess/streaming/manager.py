"""StreamManager: per-assessment event buffering and SSE subscriber management."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import AsyncGenerator

from .events import SSEEvent


class StreamManager:
    """Manages SSE event distribution for active assessments.

    Each assessment_id has:
    - A list of subscriber queues (asyncio.Queue instances)
    - A buffer of all emitted events for replay on (re)connect
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[asyncio.Queue[SSEEvent]]] = defaultdict(list)
        self._buffers: dict[str, list[SSEEvent]] = defaultdict(list)

    async def subscribe(self, assessment_id: str) -> asyncio.Queue[SSEEvent]:
        """Create and return a new subscriber queue for an assessment."""
        queue: asyncio.Queue[SSEEvent] = asyncio.Queue()
        self._subscribers[assessment_id].append(queue)
        return queue

    async def unsubscribe(self, assessment_id: str, queue: asyncio.Queue[SSEEvent]) -> None:
        """Remove a subscriber queue from an assessment."""
        subs = self._subscribers.get(assessment_id, [])
        if queue in subs:
            subs.remove(queue)

    async def emit(self, assessment_id: str, event: SSEEvent) -> None:
        """Broadcast an event to all subscribers and buffer it for replay."""
        self._buffers[assessment_id].append(event)
        for queue in self._subscribers[assessment_id]:
            await queue.put(event)

    def buffered(self, assessment_id: str) -> list[SSEEvent]:
        return list(self._buffers.get(assessment_id, []))

    async def event_generator(
        self, assessment_id: str, last_event_id: int | None = None
    ) -> AsyncGenerator[str, None]:
        """Async generator yielding SSE strings for an assessment.

        Buffered events with sequence_id > last_event_id (all of them when no
        id is given) are replayed before switching to live events. The stream
        ends after a pipeline_completed or pipeline_error event.
        """
        queue = await self.subscribe(assessment_id)
        last_seen = last_event_id if last_event_id is not None else 0
        try:
            # SSE comment as connection heartbeat (ignored by browsers)
            yield ": connected\n\n"

            for event in self.buffered(assessment_id):
                if event.sequence_id > last_seen:
                    last_seen = event.sequence_id
                    yield event.to_sse_string()
                if event.event_type.is_terminal:
                    return

            while True:
                event = await queue.get()
                # Already delivered during replay
                if event.sequence_id <= last_seen:
                    continue
                last_seen = event.sequence_id
                yield event.to_sse_string()
                if event.event_type.is_terminal:
                    return
        finally:
            await self.unsubscribe(assessment_id, queue)
