"""Shared fixtures for the valueassess test suite."""

from __future__ import annotations

import json
from typing import Any, Callable, Optional, Union

import pytest

from valueassess.config.settings import Settings
from valueassess.models.enums import StageId
from valueassess.models.product import ProductInput
from valueassess.providers.base import LLMTransport

# Prompt headers, used to tell which stage a prompt belongs to.
STAGE_MARKERS: dict[StageId, str] = {
    StageId.SEGMENTATION: "STEP 0 –",
    StageId.NBA_ANALYSIS: "STEP 1 –",
    StageId.NBA_VALUE: "STEP 1B –",
    StageId.VALUE_DIFFERENTIATORS: "STEP 2 –",
    StageId.WILLINGNESS_TO_PAY: "STEP 3 –",
    StageId.CUSTOMER_COMMUNICATION: "STEP 4 –",
    StageId.COMPANY_GUIDANCE: "STEP 5 –",
}


def stage_of(prompt: str) -> Optional[StageId]:
    for stage, marker in STAGE_MARKERS.items():
        if prompt.startswith(marker):
            return stage
    return None


SEGMENTATION_RESPONSE = {
    "segmentationApproach": "Split by commute profile and budget",
    "keyObservations": ["Fleet buyers care about uptime"],
    "segments": [
        {
            "id": "fleet",
            "name": "Fleet Operators",
            "description": "Delivery companies running bike fleets",
            "primaryNeeds": ["Uptime", "Low maintenance"],
            "buyingCriteria": ["TCO"],
            "pricingSensitivity": "low",
            "representativeShare": "30%",
            "valueDriversFocus": ["Maintenance savings"],
            "riskFactors": ["Long procurement"],
        },
        {
            "id": "commuters",
            "name": "Budget Commuters",
            "description": "Price-driven individual riders",
            "primaryNeeds": ["Low price"],
            "buyingCriteria": ["Upfront cost"],
            "pricingSensitivity": "High (very budget constrained)",
            "representativeShare": "70%",
            "valueDriversFocus": ["Incentives"],
            "riskFactors": ["Price premium"],
        },
    ],
}

NBA_ANALYSIS_RESPONSE = {
    "searchMethodology": "Marketplace scan",
    "identifiedAlternatives": [
        {"name": "Steel E-Bike", "estimatedPrice": 1800, "priceRange": "medium"},
        {"name": "Import E-Bike", "estimatedPrice": "$1,200", "priceRange": "low"},
    ],
    "marketPositioning": "Premium",
    "confidenceLevel": "High",
}

NBA_VALUE_RESPONSE = {
    "nbaValue": 1500,
    "valuationMethodology": "Average of alternatives",
    "justification": "Two comparable alternatives",
    "assumptions": ["Prices stable"],
    "confidenceLevel": "High",
}

DIFFERENTIATORS_RESPONSE = {
    "differentiators": [
        {"name": "TCO Advantage", "value": 4000},
        {"name": "Incentives", "value": 3000},
        {"name": "Lifetime", "value": 2000},
    ],
    "totalDifferentiatorValue": 9000,
}

WILLINGNESS_RESPONSE = {
    "calculation": "NBA plus differentiators",
    "nbaValue": 1500,
    "differentiatorValue": 9000,
    "totalWillingnessToPay": 10500,
    "priceRecommendation": {
        "recommendedPrice": 9800,
        "floorPrice": 8800,
        "stretchPrice": 11000,
        "confidence": "Medium",
        "rationale": "Room below WTP",
    },
}

COMMUNICATION_RESPONSE = {
    "communicationStrategy": "Lead with TCO",
    "storytellingThemes": ["Uptime pays"],
}

GUIDANCE_RESPONSE = {
    "valueDriverStrengths": [{"driver": "Service network", "strengthLevel": "high"}],
    "valueDriverWeaknesses": [],
}

VALID_RESPONSES: dict[StageId, Any] = {
    StageId.SEGMENTATION: SEGMENTATION_RESPONSE,
    StageId.NBA_ANALYSIS: NBA_ANALYSIS_RESPONSE,
    StageId.NBA_VALUE: NBA_VALUE_RESPONSE,
    StageId.VALUE_DIFFERENTIATORS: DIFFERENTIATORS_RESPONSE,
    StageId.WILLINGNESS_TO_PAY: WILLINGNESS_RESPONSE,
    StageId.CUSTOMER_COMMUNICATION: COMMUNICATION_RESPONSE,
    StageId.COMPANY_GUIDANCE: GUIDANCE_RESPONSE,
}

Response = Union[dict, str, BaseException, Callable[[str], Any]]


class ScriptedTransport(LLMTransport):
    """In-memory transport answering each stage with a canned response.

    A response may be a dict (sent as fenced JSON), raw text, an exception
    instance (raised), or a callable taking the prompt and returning any of
    those.
    """

    def __init__(
        self,
        responses: Optional[dict[StageId, Response]] = None,
        healthy: bool = True,
    ) -> None:
        self.responses: dict[StageId, Response] = {**VALID_RESPONSES, **(responses or {})}
        self.healthy = healthy
        self.calls: list[tuple[Optional[StageId], str]] = []
        self.health_checks = 0

    async def complete(self, prompt: str) -> str:
        stage = stage_of(prompt)
        self.calls.append((stage, prompt))
        response = self.responses[stage]
        if callable(response) and not isinstance(response, BaseException):
            response = response(prompt)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return f"```json\n{json.dumps(response)}\n```"
        return response

    async def health_check(self) -> bool:
        self.health_checks += 1
        return self.healthy

    def stages_called(self) -> list[Optional[StageId]]:
        return [stage for stage, _ in self.calls]


class RecordingListener:
    """AssessmentListener stand-in that records every callback in order."""

    def __init__(self) -> None:
        self.events: list[tuple] = []
        self.partials: list = []

    async def on_step_started(self, stage_id):
        self.events.append(("started", stage_id))

    async def on_step_completed(self, stage_id, success, error=None):
        self.events.append(("completed", stage_id, success, error))

    async def on_partial_result(self, snapshot):
        self.events.append(("partial",))
        self.partials.append(snapshot)

    def completed(self) -> list[tuple]:
        return [e for e in self.events if e[0] == "completed"]


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, openai_api_key="test-key", request_timeout=1.0)


@pytest.fixture
def no_fallback_settings() -> Settings:
    return Settings(_env_file=None, openai_api_key="test-key", request_timeout=1.0, use_fallback=False)


@pytest.fixture
def ecobike() -> ProductInput:
    return ProductInput(name="EcoBike 3000", description="electric bike with recycled frame")


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
