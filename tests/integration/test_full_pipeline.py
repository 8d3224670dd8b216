"""Integration tests for the full assessment pipeline -- end-to-end with scripted LLM calls."""

import pytest

from valueassess.errors import TransportError
from valueassess.models.enums import StageId
from valueassess.models.result import assessment_result_to_dict
from valueassess.orchestrator import AssessmentOrchestrator
from valueassess.streaming.events import PipelineEventType
from valueassess.streaming.listener import StreamingListener
from valueassess.streaming.manager import StreamManager

from tests.conftest import ScriptedTransport

ECOBIKE = {
    "name": "EcoBike 3000",
    "description": "Electric bike with a recycled aluminium frame",
    "known_alternatives": "Petrol scooters, public transit passes",
    "documents": [{"filename": "datasheet.txt", "text": "Range 120km. Frame 92% recycled aluminium."}],
}


@pytest.mark.integration
class TestFullPipeline:
    """End-to-end pipeline tests with a scripted transport."""

    @pytest.mark.asyncio
    async def test_happy_path_result_dict(self, settings):
        """assess_product() on a healthy transport returns a complete openai_multi_call result."""
        orchestrator = AssessmentOrchestrator(settings=settings, transport=ScriptedTransport())
        payload = assessment_result_to_dict(await orchestrator.assess_product(ECOBIKE))

        assert payload["_source"] == "openai_multi_call"
        assert payload["complete"] is True
        assert payload["productSummary"]["title"] == "EcoBike 3000"
        assert len(payload["stageHistory"]) == 13
        fleet = payload["segments"][0]
        assert fleet["executiveSummary"]["recommendedPrice"] == 9800
        assert fleet["executiveSummary"]["confidenceLevel"] == 80
        stats = payload["crossSegmentSummary"]["summaryStats"]
        assert stats["spread"] == 0
        assert stats["averageRecommendedPrice"] == 9800

    @pytest.mark.asyncio
    async def test_all_llm_calls_failing(self, settings):
        """Every call erroring still yields a usable, degraded assessment."""
        transport = ScriptedTransport({stage: TransportError("500 Internal Server Error") for stage in StageId})
        orchestrator = AssessmentOrchestrator(settings=settings, transport=transport)
        payload = assessment_result_to_dict(await orchestrator.assess_product(ECOBIKE))

        assert payload["_source"] == "fallback"
        assert len(payload["segments"]) >= 1
        for segment in payload["segments"]:
            assert segment["executiveSummary"]["recommendedPrice"] >= 0
        assert payload["crossSegmentSummary"]["summaryStats"]["spread"] >= 0

    @pytest.mark.asyncio
    async def test_streaming_listener_sees_every_stage(self, settings):
        """Events flow through StreamManager in order with increasing sequence ids."""
        manager = StreamManager()
        listener = StreamingListener(manager, "assessment-1")
        orchestrator = AssessmentOrchestrator(settings=settings, transport=ScriptedTransport())

        await orchestrator.assess_product(ECOBIKE, listener)

        events = manager.buffered("assessment-1")
        started = [e.data["stage_id"] for e in events if e.event_type == PipelineEventType.STEP_STARTED]
        assert started == [stage.value for stage in StageId]
        partials = [e for e in events if e.event_type == PipelineEventType.PARTIAL_RESULT]
        assert len(partials) == 13
        assert partials[-1].data["result"]["complete"] is False
        assert [e.sequence_id for e in events] == list(range(1, len(events) + 1))
