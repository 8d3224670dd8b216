"""Schemas for every stage output.

LLM output is free-form JSON, so each model keeps unknown keys (``extra="allow"``)
and coerces the fields downstream stages depend on. Fallback generators build
their output through the same models, which keeps real and synthetic data in the
same shape.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from valueassess.engine.numbers import coerce_number
from valueassess.models.enums import StageId


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, int, float)):
        return [str(value)]
    if isinstance(value, (list, tuple)):
        return [_as_text(item) for item in value if item is not None]
    raise ValueError(f"expected a list of strings, got {type(value).__name__}")


def _required_number(value: Any) -> float:
    number = coerce_number(value)
    if number is None:
        raise ValueError(f"expected a finite number, got {value!r}")
    return number


def _number_or_zero(value: Any) -> float:
    number = coerce_number(value)
    return 0.0 if number is None else number


Text = Annotated[str, BeforeValidator(_as_text)]
StrList = Annotated[list[str], BeforeValidator(_as_str_list)]
Money = Annotated[float, BeforeValidator(_required_number)]
LenientMoney = Annotated[float, BeforeValidator(_number_or_zero)]
OptionalMoney = Annotated[Optional[float], BeforeValidator(coerce_number)]
Confidence = Optional[Union[float, str]]


class StageModel(BaseModel):
    """Base for stage payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-shaped dict using the LLM's camelCase field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

class SegmentProfile(StageModel):
    id: Optional[Text] = None
    name: Optional[Text] = None
    description: Text = ""
    primary_needs: StrList = Field(default_factory=list)
    buying_criteria: StrList = Field(default_factory=list)
    pricing_sensitivity: Optional[Text] = None
    representative_share: Optional[Text] = None
    value_drivers_focus: StrList = Field(default_factory=list)
    risk_factors: StrList = Field(default_factory=list)


class SegmentationOutput(StageModel):
    segmentation_approach: Text = ""
    key_observations: StrList = Field(default_factory=list)
    segments: list[SegmentProfile] = Field(default_factory=list)

    @field_validator("segments", mode="before")
    @classmethod
    def segments_must_be_list(cls, v: Any) -> Any:
        if v is None:
            return []
        return v


# ---------------------------------------------------------------------------
# NBA analysis and valuation
# ---------------------------------------------------------------------------

class Alternative(StageModel):
    name: Text = "Alternative"
    reasoning: Text = ""
    estimated_price: OptionalMoney = None
    price_range: Text = ""
    key_differences: StrList = Field(default_factory=list)
    market_share: Text = ""
    proof_points: Optional[Any] = None


class NbaAnalysis(StageModel):
    search_methodology: Text = ""
    identified_alternatives: list[Alternative]
    market_positioning: Text = ""
    confidence_level: Confidence = None

    def price_points(self) -> list[float]:
        return [
            alt.estimated_price
            for alt in self.identified_alternatives
            if alt.estimated_price is not None and alt.estimated_price > 0
        ]


class NbaValuation(StageModel):
    nba_value: Money
    valuation_methodology: Text = ""
    justification: Text = ""
    assumptions: StrList = Field(default_factory=list)
    confidence_level: Confidence = None


# ---------------------------------------------------------------------------
# Value differentiators
# ---------------------------------------------------------------------------

class Differentiator(StageModel):
    name: Text = "Differentiator"
    value: LenientMoney = 0.0
    calculation: Optional[Union[dict[str, Any], str]] = None
    economic_rationale: Text = ""
    evidence: Text = ""


class ValueDifferentiators(StageModel):
    differentiators: list[Differentiator]
    total_differentiator_value: OptionalMoney = None

    @property
    def differentiator_sum(self) -> float:
        return sum(item.value for item in self.differentiators)

    def total_disagrees(self, tolerance: float = 1.0) -> bool:
        """True when the declared total drifts from the itemized sum."""
        if self.total_differentiator_value is None:
            return False
        return abs(self.total_differentiator_value - self.differentiator_sum) > tolerance


# ---------------------------------------------------------------------------
# Willingness to pay
# ---------------------------------------------------------------------------

class PriceRecommendation(StageModel):
    recommended_price: OptionalMoney = None
    floor_price: OptionalMoney = None
    stretch_price: OptionalMoney = None
    confidence: Confidence = None
    rationale: Text = ""


class CustomerSegmentWtp(StageModel):
    segment: Text = "Segment"
    willingness_to_pay: OptionalMoney = None
    reasoning: Text = ""


class WillingnessToPay(StageModel):
    calculation: Text = ""
    nba_value: OptionalMoney = None
    differentiator_value: OptionalMoney = None
    total_willingness_to_pay: OptionalMoney = None
    price_recommendation: Optional[PriceRecommendation] = None
    customer_segments: list[CustomerSegmentWtp] = Field(default_factory=list)
    sensitivity_analysis: list[Any] = Field(default_factory=list)
    confidence_level: Confidence = None

    @field_validator("price_recommendation", mode="before")
    @classmethod
    def bare_price(cls, v: Any) -> Any:
        # Some responses collapse the block to a single number.
        if isinstance(v, (int, float, str)) and not isinstance(v, bool):
            return {"recommendedPrice": v}
        return v


# ---------------------------------------------------------------------------
# Customer communication
# ---------------------------------------------------------------------------

class ActionableStep(StageModel):
    step: Text = ""
    description: Text = ""
    implementation: Text = ""


class Guidance(StageModel):
    message: Text = ""
    tools: StrList = Field(default_factory=list)
    objectives: Text = ""
    actionable_steps: list[ActionableStep] = Field(default_factory=list)


class CustomerCommunication(StageModel):
    communication_strategy: Text
    tco_guidance: Optional[Guidance] = None
    incentive_guidance: Optional[Guidance] = None
    lifetime_guidance: Optional[Guidance] = None
    storytelling_themes: StrList = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Company guidance
# ---------------------------------------------------------------------------

class Opportunity(StageModel):
    opportunity: Text = ""
    improvement: Text = ""
    action: Text = ""
    expected_impact: Text = ""


class DriverStrength(StageModel):
    driver: Text = ""
    current_strength: Text = ""
    strength_level: Text = ""
    evidence: Text = ""
    enhancement_opportunities: list[Opportunity] = Field(default_factory=list)


class DriverWeakness(StageModel):
    driver: Text = ""
    current_weakness: Text = ""
    weakness_level: Text = ""
    root_cause: Text = ""
    improvement_plan: list[Opportunity] = Field(default_factory=list)


class CompetitivePositioning(StageModel):
    current_position: Text = ""
    positioning_gaps: Text = ""
    positioning_opportunities: list[Opportunity] = Field(default_factory=list)


class CompanyGuidance(StageModel):
    value_driver_strengths: list[DriverStrength] = Field(default_factory=list)
    value_driver_weaknesses: list[DriverWeakness] = Field(default_factory=list)
    competitive_positioning: Optional[CompetitivePositioning] = None


StageOutput = Union[
    NbaAnalysis,
    NbaValuation,
    ValueDifferentiators,
    WillingnessToPay,
    CustomerCommunication,
    CompanyGuidance,
]

STAGE_SCHEMAS: dict[StageId, type[StageModel]] = {
    StageId.SEGMENTATION: SegmentationOutput,
    StageId.NBA_ANALYSIS: NbaAnalysis,
    StageId.NBA_VALUE: NbaValuation,
    StageId.VALUE_DIFFERENTIATORS: ValueDifferentiators,
    StageId.WILLINGNESS_TO_PAY: WillingnessToPay,
    StageId.CUSTOMER_COMMUNICATION: CustomerCommunication,
    StageId.COMPANY_GUIDANCE: CompanyGuidance,
}
