"""Synthetic stage outputs used when an LLM call fails.

Every generator derives its figures from whatever real or synthetic upstream
output is already recorded for the segment, so a partially degraded run stays
internally coherent. Randomness comes from an injected source; pass a seeded
``random.Random`` for reproducible output.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Protocol, TypeVar

from valueassess.engine.numbers import format_currency, round_half_up
from valueassess.models.enums import PricingSensitivity, StageId
from valueassess.models.product import ProductInput
from valueassess.models.segment import Segment, StageContext
from valueassess.models.stages import (
    CompanyGuidance,
    CustomerCommunication,
    NbaAnalysis,
    NbaValuation,
    SegmentationOutput,
    StageModel,
    ValueDifferentiators,
    WillingnessToPay,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=StageModel)


class RandomSource(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


# Pricing-sensitivity multipliers applied to synthetic price points.
_PRICE_FACTOR = {
    PricingSensitivity.LOW: 1.15,
    PricingSensitivity.MEDIUM: 1.0,
    PricingSensitivity.HIGH: 0.85,
}

_WTP_ADJUSTMENT = {
    PricingSensitivity.LOW: 1.08,
    PricingSensitivity.MEDIUM: 1.0,
    PricingSensitivity.HIGH: 0.9,
}

_RECOMMENDED_RATIO = {
    PricingSensitivity.LOW: 0.95,
    PricingSensitivity.MEDIUM: 0.92,
    PricingSensitivity.HIGH: 0.88,
}

_QUALITATIVE_CONFIDENCE = {
    PricingSensitivity.LOW: "High",
    PricingSensitivity.MEDIUM: "Medium-High",
    PricingSensitivity.HIGH: "Medium",
}


def _typed(output: Optional[StageModel], cls: type[M]) -> Optional[M]:
    return output if isinstance(output, cls) else None


def _sensitivity(segment: Optional[Segment]) -> PricingSensitivity:
    return segment.pricing_sensitivity if segment is not None else PricingSensitivity.MEDIUM


def _segment_name(segment: Optional[Segment], default: str = "this segment") -> str:
    return segment.name if segment is not None else default


class FallbackGenerator:
    """One generator per stage, each ``(product, context) -> stage output``."""

    def __init__(self, rng: Optional[RandomSource] = None) -> None:
        self._rng: RandomSource = rng or random.Random()

    def _between(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def generate(self, stage: StageId, product: ProductInput, context: StageContext) -> StageModel:
        generators: dict[StageId, Callable[[ProductInput, StageContext], StageModel]] = {
            StageId.SEGMENTATION: self.segmentation,
            StageId.NBA_ANALYSIS: self.nba_analysis,
            StageId.NBA_VALUE: self.nba_value,
            StageId.VALUE_DIFFERENTIATORS: self.value_differentiators,
            StageId.WILLINGNESS_TO_PAY: self.willingness_to_pay,
            StageId.CUSTOMER_COMMUNICATION: self.customer_communication,
            StageId.COMPANY_GUIDANCE: self.company_guidance,
        }
        output = generators[stage](product, context)
        logger.info(f"Generated fallback output for {stage.value}")
        return output

    # ------------------------------------------------------------------
    # Segmentation
    # ------------------------------------------------------------------

    def segmentation(self, product: ProductInput, context: StageContext) -> SegmentationOutput:
        segments = [
            {
                "id": "eco-leaders",
                "name": "Eco Leaders",
                "description": (
                    "Sustainability-first buyers with mandates to aggressively reduce "
                    f"emissions, for whom {product.name} supports visible climate commitments."
                ),
                "primaryNeeds": [
                    "Verified sustainability impact",
                    "Innovation leadership and brand differentiation",
                    "Partnership on reporting and compliance",
                ],
                "buyingCriteria": [
                    "Documented emissions reduction",
                    "Proven ROI within 24-36 months",
                    "Enterprise-grade support and integration",
                ],
                "pricingSensitivity": "low",
                "representativeShare": "25%",
                "valueDriversFocus": [
                    "Carbon reduction monetisation",
                    "Brand leadership halo effects",
                    "Access to incentives and credits",
                ],
                "riskFactors": [
                    "Requires robust measurement and verification capabilities",
                    "Long procurement cycles with extensive stakeholder reviews",
                ],
            },
            {
                "id": "roi-optimisers",
                "name": "ROI-Focused Operators",
                "description": (
                    "Operational leaders balancing sustainability goals with strict payback thresholds."
                ),
                "primaryNeeds": [
                    "Clear total cost of ownership savings",
                    "Minimal disruption to operations",
                    "Proof of stable performance",
                ],
                "buyingCriteria": [
                    "Payback in under 3 years",
                    "Demonstrated maintenance savings",
                    "Training and enablement support",
                ],
                "pricingSensitivity": "medium",
                "representativeShare": "40%",
                "valueDriversFocus": [
                    "Operating expense reductions",
                    "Uptime and reliability improvements",
                    "Maintenance simplification",
                ],
                "riskFactors": [
                    "Need quantifiable business case data",
                    "Sceptical of untested sustainability claims",
                ],
            },
            {
                "id": "cost-pragmatists",
                "name": "Cost-Conscious Pragmatists",
                "description": (
                    "Budget-driven buyers open to sustainability upgrades when economics are compelling."
                ),
                "primaryNeeds": [
                    "Competitive upfront price",
                    "Financing or incentive support",
                    "Assurance of long-term durability",
                ],
                "buyingCriteria": [
                    "Low capital requirement",
                    "Bundled incentives and financing",
                    "Peer proof points",
                ],
                "pricingSensitivity": "high",
                "representativeShare": "35%",
                "valueDriversFocus": [
                    "Subsidies and rebates",
                    "Maintenance avoidance",
                    "Extended warranty coverage",
                ],
                "riskFactors": [
                    "High sensitivity to initial price premium",
                    "Need references from similar budget profiles",
                ],
            },
        ]

        return SegmentationOutput.model_validate({
            "segmentationApproach": (
                "Heuristic segmentation based on sustainability maturity, budget posture, "
                "and decision criteria observed across similar product launches."
            ),
            "keyObservations": [
                "Willingness to pay increases with sustainability mandates and access to incentives.",
                "Operational ROI remains critical for mainstream segments even when sustainability is valued.",
                "Budget-sensitive buyers still convert when lifetime savings and financing support are explicit.",
            ],
            "segments": segments,
        })

    # ------------------------------------------------------------------
    # NBA analysis and valuation
    # ------------------------------------------------------------------

    def nba_analysis(self, product: ProductInput, context: StageContext) -> NbaAnalysis:
        segment = context.segment
        name = _segment_name(segment, "General Market")
        factor = _PRICE_FACTOR[_sensitivity(segment)]
        primary_price = round_half_up(self._between(1400, 2300) * factor)
        challenger_price = round_half_up(self._between(1000, 1800) * factor * 0.95)

        return NbaAnalysis.model_validate({
            "searchMethodology": (
                f"Secondary research focused on offerings shortlisted by {name}, combining "
                "analyst reports, marketplace pricing, and peer case studies."
            ),
            "identifiedAlternatives": [
                {
                    "name": "Established OEM Alternative",
                    "reasoning": f"{name} often shortlist long-standing OEMs with nationwide service coverage.",
                    "estimatedPrice": primary_price,
                    "priceRange": "high" if factor > 1 else "medium",
                    "keyDifferences": [
                        "Lower sustainability performance",
                        "Higher energy consumption",
                        "Shorter warranty coverage",
                    ],
                    "marketShare": "Market leader with approximately 55% share across mainstream buyers",
                    "proofPoints": {
                        "priceSources": [
                            {
                                "source": "Industry pricing index",
                                "url": "https://example.com/pricing-index",
                                "price": format_currency(primary_price),
                                "reliability": "Aggregated benchmark data for comparable configurations",
                            }
                        ],
                        "segmentSpecificNotes": [
                            f"{name} values the predictable maintenance network despite weaker "
                            "sustainability credentials.",
                        ],
                    },
                },
                {
                    "name": "Budget Import Option",
                    "reasoning": f"{name} consider lower-priced imports to test premium positioning.",
                    "estimatedPrice": challenger_price,
                    "priceRange": "low" if factor < 1 else "medium",
                    "keyDifferences": [
                        "Limited sustainability certifications",
                        "Minimal after-sales support",
                        "Shorter expected lifetime",
                    ],
                    "marketShare": "Challenger brand growing share with budget-focused customers",
                    "proofPoints": {
                        "priceSources": [
                            {
                                "source": "Public marketplace listings",
                                "url": "https://example.com/marketplace",
                                "price": format_currency(challenger_price),
                                "reliability": "Validated across multiple sellers within the past quarter",
                            }
                        ],
                        "segmentSpecificNotes": [
                            f"{name} recognises the upfront savings but raises concerns about downtime risk.",
                        ],
                    },
                },
            ],
            "marketPositioning": (
                f"{name} view {product.name} as the premium option that offsets a higher upfront "
                "price with verifiable lifetime value."
            ),
            "confidenceLevel": "medium",
        })

    def nba_value(self, product: ProductInput, context: StageContext) -> NbaValuation:
        segment = context.segment
        analysis = _typed(context.output(StageId.NBA_ANALYSIS), NbaAnalysis)
        if analysis is None:
            analysis = self.nba_analysis(product, context)

        prices = analysis.price_points()
        if prices:
            base_average = sum(prices) / len(prices)
        else:
            base_average = self._between(1800, 2600)

        sensitivity = _sensitivity(segment)
        factor = _PRICE_FACTOR[sensitivity]
        nba_value = round_half_up(base_average * factor)
        if factor > 1:
            confidence = "high"
        elif factor < 1:
            confidence = "medium"
        else:
            confidence = "medium-high"

        segment_label = _segment_name(segment, "the target segment")
        return NbaValuation.model_validate({
            "nbaValue": nba_value,
            "valuationMethodology": (
                f"Weighted average of verified NBA price points adjusted for {segment_label} "
                "purchasing patterns."
            ),
            "justification": (
                "Benchmark accounts for typical option mix, service packages, and volume "
                "discounts observed in similar deals."
            ),
            "assumptions": [
                "Reference prices remain valid for the current budgeting cycle.",
                f"{_segment_name(segment, 'The segment')} generally negotiates 5-8% off list prices based on volume.",
            ],
            "confidenceLevel": confidence,
        })

    # ------------------------------------------------------------------
    # Value differentiators
    # ------------------------------------------------------------------

    def value_differentiators(self, product: ProductInput, context: StageContext) -> ValueDifferentiators:
        segment = context.segment
        name = _segment_name(segment)
        sensitivity = _sensitivity(segment)
        factor = _PRICE_FACTOR[sensitivity]

        valuation = _typed(context.output(StageId.NBA_VALUE), NbaValuation)
        if valuation is not None and valuation.nba_value > 0:
            nba_value = valuation.nba_value
        else:
            nba_value = self._between(1800, 2600)

        tco = round_half_up(max(1500.0, nba_value * 0.24) * factor + self._between(400, 900))
        incentives_base = 1800 if sensitivity is PricingSensitivity.LOW else 1300
        incentives = round_half_up(incentives_base * factor + self._between(200, 600))
        lifetime_base = 1400 if sensitivity is PricingSensitivity.HIGH else 1900
        lifetime = round_half_up(lifetime_base * factor + self._between(300, 700))

        differentiators = [
            {
                "name": "Total Cost of Ownership (TCO) Advantage",
                "value": tco,
                "calculation": {
                    "methodology": "Compare 10-year operating, maintenance, and downtime costs versus NBA set.",
                    "substeps": [
                        {
                            "step": "Energy savings",
                            "calculation": "Annual kWh reduction × utility rate × 10 years",
                            "assumptions": "Higher efficiency vs. legacy alternatives",
                        },
                        {
                            "step": "Maintenance avoidance",
                            "calculation": "Reduced technician visits × labour rate × contract duration",
                            "assumptions": "Predictive maintenance and modular components",
                        },
                        {
                            "step": "Downtime avoided",
                            "calculation": "Hours avoided × productivity cost",
                            "assumptions": "Higher reliability from sustainable design",
                        },
                    ],
                    "totalCalculation": "Sum of energy, maintenance, and downtime savings",
                },
                "economicRationale": f"{name} unlocks compounding OPEX benefits while protecting uptime.",
                "evidence": "Benchmark case studies and internal service logs for sustainable fleets.",
            },
            {
                "name": "Incentives & Credits Capture",
                "value": incentives,
                "calculation": {
                    "methodology": "Aggregate tax credits, grants, and carbon monetisation unique to the product.",
                    "substeps": [
                        {
                            "step": "Federal/State incentives",
                            "calculation": "Eligible tax credit value × adoption likelihood",
                            "assumptions": "Current policy outlook and product eligibility",
                        },
                        {
                            "step": "Utility rebates",
                            "calculation": "Local incentive amount × coverage rate",
                            "assumptions": "Average rebate utilisation for similar customers",
                        },
                        {
                            "step": "Carbon monetisation",
                            "calculation": "Annual emissions reduction × carbon price × product lifetime",
                            "assumptions": "Regional carbon pricing scenarios",
                        },
                    ],
                    "totalCalculation": "Sum of all accessible incentive pools",
                },
                "economicRationale": f"{name} can offset upfront premiums by maximising incentive capture.",
                "evidence": "Government programme databases and sustainability finance benchmarks.",
            },
            {
                "name": "Extended Lifetime Value",
                "value": lifetime,
                "calculation": {
                    "methodology": "Quantify the economic benefit of longer product lifespan and warranty coverage.",
                    "substeps": [
                        {
                            "step": "Warranty extension impact",
                            "calculation": "Additional warranty years × equivalent replacement cost",
                            "assumptions": "OEM-backed warranty and reliability data",
                        },
                        {
                            "step": "Residual value protection",
                            "calculation": "Higher resale value × fleet replacement cadence",
                            "assumptions": "Improved asset care from sustainable design",
                        },
                        {
                            "step": "Productivity gains",
                            "calculation": "Reduced downtime × revenue per hour",
                            "assumptions": "Stabilised operations vs. NBA alternatives",
                        },
                    ],
                    "totalCalculation": "Warranty value + residual protection + productivity gains",
                },
                "economicRationale": f"{name} benefit from predictable asset performance and lifecycle savings.",
                "evidence": "Internal reliability testing and customer case studies.",
            },
        ]

        return ValueDifferentiators.model_validate({
            "differentiators": differentiators,
            "totalDifferentiatorValue": tco + incentives + lifetime,
        })

    # ------------------------------------------------------------------
    # Willingness to pay
    # ------------------------------------------------------------------

    def willingness_to_pay(self, product: ProductInput, context: StageContext) -> WillingnessToPay:
        segment = context.segment
        name = _segment_name(segment)
        sensitivity = _sensitivity(segment)

        valuation = _typed(context.output(StageId.NBA_VALUE), NbaValuation)
        differentiators = _typed(context.output(StageId.VALUE_DIFFERENTIATORS), ValueDifferentiators)

        if valuation is not None:
            nba_value = max(0.0, valuation.nba_value)
        else:
            nba_value = float(round_half_up(self._between(1800, 2600)))
        if differentiators is not None:
            differentiator_value = max(0.0, differentiators.differentiator_sum)
        else:
            differentiator_value = float(round_half_up(self._between(4200, 6800)))

        total = round_half_up((nba_value + differentiator_value) * _WTP_ADJUSTMENT[sensitivity])
        recommended = round_half_up(total * _RECOMMENDED_RATIO[sensitivity])
        floor_price = round_half_up(recommended * 0.9)
        stretch = round_half_up(recommended * (1.22 if sensitivity is PricingSensitivity.LOW else 1.15))

        return WillingnessToPay.model_validate({
            "calculation": (
                "NBA baseline plus quantified differentiators, adjusted by segment pricing "
                "sensitivity and adoption risk."
            ),
            "nbaValue": round_half_up(nba_value),
            "differentiatorValue": round_half_up(differentiator_value),
            "totalWillingnessToPay": total,
            "priceRecommendation": {
                "recommendedPrice": recommended,
                "floorPrice": floor_price,
                "stretchPrice": stretch,
                "confidence": _QUALITATIVE_CONFIDENCE[sensitivity],
                "rationale": (
                    f"{name} can justify a premium when value realisation and incentive access "
                    "are clearly documented."
                ),
            },
            "sensitivityAnalysis": [
                {
                    "factor": "Availability of incentives and subsidies",
                    "impact": "Reduced incentive availability decreases willingness to pay by 8-12%.",
                },
                {
                    "factor": "Implementation complexity",
                    "impact": (
                        "Higher perceived deployment effort requires additional ROI proof points "
                        "to maintain premium pricing."
                    ),
                },
            ],
        })

    # ------------------------------------------------------------------
    # Narratives
    # ------------------------------------------------------------------

    def customer_communication(self, product: ProductInput, context: StageContext) -> CustomerCommunication:
        segment = context.segment
        name = _segment_name(segment)
        valuation = _typed(context.output(StageId.NBA_VALUE), NbaValuation)
        differentiators = _typed(context.output(StageId.VALUE_DIFFERENTIATORS), ValueDifferentiators)
        willingness = _typed(context.output(StageId.WILLINGNESS_TO_PAY), WillingnessToPay)

        baseline = (
            format_currency(valuation.nba_value)
            if valuation is not None and valuation.nba_value > 0
            else "the NBA benchmark price"
        )
        savings = (
            format_currency(differentiators.differentiator_sum)
            if differentiators is not None and differentiators.differentiator_sum > 0
            else "the quantified differentiator value"
        )
        recommended = None
        if willingness is not None and willingness.price_recommendation is not None:
            if willingness.price_recommendation.recommended_price:
                recommended = format_currency(willingness.price_recommendation.recommended_price)

        strategy = (
            f"Show {name} how {product.name} outperforms {baseline} by translating quantified "
            f"savings ({savings}) into clear payback stories"
        )
        if recommended:
            strategy += f" and anchor the commercial conversation around a recommended price of {recommended}"
        strategy += "."

        return CustomerCommunication.model_validate({
            "communicationStrategy": strategy,
            "tcoGuidance": {
                "message": f"Use interactive TCO tools to reveal lifetime savings versus {baseline}.",
                "tools": [
                    "Segment-specific TCO calculator",
                    "Custom ROI case deck",
                    "Operational benchmarking sheet",
                ],
                "objectives": "Demonstrate a fast, dependable payback window tailored to their usage profile.",
                "actionableSteps": [
                    {
                        "step": "Configure segment persona calculator",
                        "description": (
                            f"Pre-load {name} assumptions (usage, costs, incentives) to accelerate workshops."
                        ),
                        "implementation": "Collaborate with finance and sustainability teams to validate inputs.",
                    }
                ],
            },
            "incentiveGuidance": {
                "message": "Package the incentive capture process into a guided journey.",
                "tools": [
                    "Incentive eligibility checklist",
                    "Application playbook",
                    "Funding timeline tracker",
                ],
                "objectives": "De-risk the administrative burden and accelerate incentive access.",
                "actionableSteps": [
                    {
                        "step": "Launch incentive concierge",
                        "description": "Provide white-glove support to gather documentation and submit applications.",
                        "implementation": "Align legal and finance resources to streamline compliance reviews.",
                    }
                ],
            },
            "lifetimeGuidance": {
                "message": "Highlight durability, uptime, and warranty protections that safeguard operations.",
                "tools": ["Warranty comparison sheet", "Reliability benchmark", "Lifecycle service plan"],
                "objectives": "Assure stakeholders that premium pricing protects long-term performance.",
                "actionableSteps": [
                    {
                        "step": "Bundle lifecycle assurance kit",
                        "description": "Offer optional service packages tying uptime guarantees to measurable KPIs.",
                        "implementation": "Coordinate product, service, and customer success teams on delivery model.",
                    }
                ],
            },
            "storytellingThemes": [
                f"{name} captures measurable ROI and risk mitigation with the sustainable option.",
                "Incentive enablement removes friction and offsets upfront investment.",
                "Long-term reliability and warranty support reduce operational surprises.",
            ],
        })

    def company_guidance(self, product: ProductInput, context: StageContext) -> CompanyGuidance:
        segment = context.segment
        name = _segment_name(segment)
        differentiators = _typed(context.output(StageId.VALUE_DIFFERENTIATORS), ValueDifferentiators)
        willingness = _typed(context.output(StageId.WILLINGNESS_TO_PAY), WillingnessToPay)

        differentiator_value = differentiators.differentiator_sum if differentiators is not None else 0.0
        if willingness is not None and willingness.total_willingness_to_pay is not None:
            wtp = willingness.total_willingness_to_pay
        else:
            wtp = differentiator_value

        return CompanyGuidance.model_validate({
            "valueDriverStrengths": [
                {
                    "driver": "Quantified ROI Storytelling",
                    "currentStrength": "Commercial teams already leverage TCO calculators and success stories.",
                    "strengthLevel": "medium",
                    "evidence": "Existing case studies and ROI templates referenced in recent deals.",
                    "enhancementOpportunities": [
                        {
                            "opportunity": "Segment-persona proof packs",
                            "action": f"Create tailored ROI and incentive artefacts for {name}.",
                            "expectedImpact": (
                                f"Protect {format_currency(differentiator_value)} in value creation by "
                                "aligning with segment priorities."
                            ),
                        }
                    ],
                }
            ],
            "valueDriverWeaknesses": [
                {
                    "driver": "Incentive Execution",
                    "currentWeakness": "Fragmented ownership of incentive research and application support.",
                    "weaknessLevel": "high",
                    "rootCause": "Limited dedicated resources for sustainability financing programmes.",
                    "improvementPlan": [
                        {
                            "improvement": "Build incentive desk capability",
                            "action": "Centralise programme intelligence and create repeatable workflows.",
                            "expectedImpact": (
                                f"Accelerate capture of the {format_currency(differentiator_value)} upside "
                                "quantified in differentiators."
                            ),
                        }
                    ],
                }
            ],
            "competitivePositioning": {
                "currentPosition": (
                    f"{product.name} is perceived as a high-quality sustainable option but not always "
                    f"linked to {name} business outcomes."
                ),
                "positioningGaps": "Messaging does not consistently quantify economics or incentive enablement.",
                "positioningOpportunities": [
                    {
                        "opportunity": "Value-based messaging cadence",
                        "action": f"Embed {name} persona stories across marketing, sales, and customer success motions.",
                        "expectedImpact": (
                            f"Align go-to-market with the {format_currency(wtp)} willingness-to-pay "
                            "benchmark to defend premium pricing."
                        ),
                    }
                ],
            },
        })
