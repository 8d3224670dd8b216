"""Prompt templates for the seven assessment stages.

Each builder is a pure function of its ``StageContext``: the product projection,
the segment profile (for per-segment stages) and the outputs already recorded
for that segment. Upstream context is serialized as JSON and truncated per block
to keep request size bounded.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

from valueassess.models.enums import StageId
from valueassess.models.segment import StageContext
from valueassess.models.stages import StageModel

TRUNCATION_SUFFIX = "... (truncated)"

_JSON_ONLY = "Return ONLY valid JSON, with no commentary before or after it."


def format_context_block(label: str, data: Any, max_length: int = 2000) -> str:
    """Serialize one context block, truncating it to ``max_length`` characters."""
    if data is None or data == "" or data == {}:
        return f"{label}: None available."

    if isinstance(data, StageModel):
        data = data.to_payload()

    if isinstance(data, str):
        serialized = data
    else:
        try:
            serialized = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            serialized = str(data)

    if len(serialized) > max_length:
        serialized = f"{serialized[:max_length]}{TRUNCATION_SUFFIX}"

    return f"{label}:\n{serialized}"


def _product_block(context: StageContext, max_length: int = 1200, full: bool = False) -> str:
    snapshot = context.base_info.snapshot()
    if not full:
        snapshot = {
            "name": snapshot["name"],
            "description": snapshot["description"],
            "additionalInfo": snapshot["additionalInfo"],
        }
    return format_context_block("PRODUCT_INPUT", snapshot, max_length)


def _segment_block(context: StageContext, max_length: int = 1200) -> str:
    profile = context.segment.to_payload() if context.segment is not None else None
    return format_context_block("SEGMENT_PROFILE", profile, max_length)


def _segment_name(context: StageContext) -> str:
    return context.segment.name if context.segment is not None else "the general market"


def _upstream(context: StageContext, stage: StageId) -> Optional[StageModel]:
    return context.output(stage)


# ---------------------------------------------------------------------------
# Stage templates
# ---------------------------------------------------------------------------

def segmentation_prompt(context: StageContext) -> str:
    return f"""STEP 0 – CUSTOMER SEGMENTATION

Identify the distinct customer segments that would evaluate this sustainable product. Segment on sustainability maturity, budget posture, buying criteria, and sensitivity to price premiums. Return between two and four segments that are meaningfully different in how they value the product.

{_product_block(context, 2000, full=True)}

Return strictly valid JSON with this structure:
{{
  "segmentationApproach": "How the segments were derived",
  "keyObservations": ["observation list"],
  "segments": [
    {{
      "id": "short-slug",
      "name": "Segment name",
      "description": "Who these customers are",
      "primaryNeeds": ["need list"],
      "buyingCriteria": ["criteria list"],
      "pricingSensitivity": "low / medium / high",
      "representativeShare": "Share of addressable market, e.g. 30%",
      "valueDriversFocus": ["value driver list"],
      "riskFactors": ["risk list"]
    }}
  ]
}}

{_JSON_ONLY}"""


def nba_analysis_prompt(context: StageContext) -> str:
    return f"""STEP 1 – NEXT BEST ALTERNATIVES (NBA) ANALYSIS

Use the product information below to identify the most relevant next best alternatives that {_segment_name(context)} would consider, including sourcing evidence and realistic pricing. Focus on real-world competitors, traditional substitutes, and price/performance adjacencies. Do not calculate an aggregate NBA value in this step.

{_product_block(context, 2000, full=True)}

{_segment_block(context)}

Return strictly valid JSON with this structure:
{{
  "searchMethodology": "How you researched alternatives",
  "identifiedAlternatives": [
    {{
      "name": "Alternative name",
      "reasoning": "Why this segment considers this alternative",
      "estimatedPrice": 0,
      "priceRange": "low/medium/high",
      "keyDifferences": ["difference list"],
      "marketShare": "Market position overview",
      "proofPoints": {{
        "priceSources": [
          {{
            "source": "Source name",
            "url": "https://example.com",
            "price": "$1,140",
            "reliability": "Reason source is credible"
          }}
        ]
      }}
    }}
  ],
  "marketPositioning": "Summary of positioning vs alternatives",
  "confidenceLevel": "High / Medium / Low"
}}

{_JSON_ONLY}"""


def nba_value_prompt(context: StageContext) -> str:
    return f"""STEP 1B – NBA VALUE ESTIMATION

Derive a representative NBA value for {_segment_name(context)} using the alternatives identified in the previous step. Reference specific alternative prices, weighting logic, and any relevant assumptions. This step should produce a single monetary value and clearly explain how it was calculated.

{_product_block(context)}

{_segment_block(context, 1000)}

NBA ANALYSIS CONTEXT:
{format_context_block("NBA_ANALYSIS_RESULT", _upstream(context, StageId.NBA_ANALYSIS), 2200)}

Return strictly valid JSON with this structure:
{{
  "nbaValue": 0,
  "valuationMethodology": "How you calculated the representative NBA value",
  "justification": "Narrative summary referencing alternative data and assumptions",
  "assumptions": ["Key assumption list"],
  "confidenceLevel": "High / Medium / Low"
}}

{_JSON_ONLY}"""


def value_differentiators_prompt(context: StageContext) -> str:
    return f"""STEP 2 – VALUE DIFFERENTIATORS

Using the NBA analysis and NBA value estimation you just created, calculate the incremental economic value of the sustainable product versus those alternatives for {_segment_name(context)}. Ground every calculation in the NBA pricing, positioning data, and consolidated NBA value figure. The totalDifferentiatorValue must equal the sum of the differentiator values.

{_product_block(context)}

{_segment_block(context, 1000)}

NBA ANALYSIS CONTEXT:
{format_context_block("NBA_ANALYSIS_RESULT", _upstream(context, StageId.NBA_ANALYSIS), 2200)}

NBA VALUE CONTEXT:
{format_context_block("NBA_VALUE_RESULT", _upstream(context, StageId.NBA_VALUE), 1600)}

Return strictly valid JSON with this structure:
{{
  "differentiators": [
    {{
      "name": "Value driver name",
      "value": 0,
      "calculation": {{
        "methodology": "How the value was calculated",
        "substeps": [
          {{
            "step": "Sub-step label",
            "calculation": "Equation used",
            "assumptions": "Key assumptions"
          }}
        ],
        "totalCalculation": "Summary of the calculation"
      }},
      "economicRationale": "Why customers value this differentiator",
      "evidence": "Supporting data or references"
    }}
  ],
  "totalDifferentiatorValue": 0
}}

{_JSON_ONLY}"""


def willingness_to_pay_prompt(context: StageContext) -> str:
    return f"""STEP 3 – CUSTOMER WILLINGNESS TO PAY

Estimate the willingness to pay of {_segment_name(context)} using the NBA baseline, the consolidated NBA value, and the quantified differentiator value calculated in the prior step. Adjust for the segment's pricing sensitivity and recommend a price.

{_segment_block(context, 1000)}

NBA ANALYSIS CONTEXT:
{format_context_block("NBA_ANALYSIS_RESULT", _upstream(context, StageId.NBA_ANALYSIS), 1800)}

NBA VALUE CONTEXT:
{format_context_block("NBA_VALUE_RESULT", _upstream(context, StageId.NBA_VALUE), 1600)}

VALUE DIFFERENTIATOR CONTEXT:
{format_context_block("VALUE_DIFFERENTIATORS", _upstream(context, StageId.VALUE_DIFFERENTIATORS), 2200)}

Return strictly valid JSON:
{{
  "calculation": "How willingness to pay was derived",
  "nbaValue": 0,
  "differentiatorValue": 0,
  "totalWillingnessToPay": 0,
  "priceRecommendation": {{
    "recommendedPrice": 0,
    "floorPrice": 0,
    "stretchPrice": 0,
    "confidence": "High / Medium / Low",
    "rationale": "Why this price fits the segment"
  }},
  "sensitivityAnalysis": [
    {{
      "factor": "Factor name",
      "impact": "How it moves willingness to pay"
    }}
  ]
}}

{_JSON_ONLY}"""


def customer_communication_prompt(context: StageContext) -> str:
    return f"""STEP 4 – CUSTOMER COMMUNICATION PLAN

Design the communication strategy for {_segment_name(context)} using the quantified NBA, NBA value estimate, differentiator, and willingness-to-pay outputs. Emphasize how to translate the numbers into customer-facing messaging and tools.

{_segment_block(context, 1000)}

NBA ANALYSIS CONTEXT:
{format_context_block("NBA_ANALYSIS_RESULT", _upstream(context, StageId.NBA_ANALYSIS), 1600)}

NBA VALUE CONTEXT:
{format_context_block("NBA_VALUE_RESULT", _upstream(context, StageId.NBA_VALUE), 1400)}

VALUE DIFFERENTIATOR CONTEXT:
{format_context_block("VALUE_DIFFERENTIATORS", _upstream(context, StageId.VALUE_DIFFERENTIATORS), 1800)}

WILLINGNESS TO PAY CONTEXT:
{format_context_block("WILLINGNESS_TO_PAY", _upstream(context, StageId.WILLINGNESS_TO_PAY), 1600)}

Return strictly valid JSON in this format:
{{
  "communicationStrategy": "High-level approach",
  "tcoGuidance": {{
    "message": "Message to convey",
    "tools": ["tool list"],
    "objectives": "Objectives summary",
    "actionableSteps": [
      {{
        "step": "Action name",
        "description": "Action description",
        "implementation": "How to implement"
      }}
    ]
  }},
  "incentiveGuidance": {{ "message": "", "tools": [], "objectives": "", "actionableSteps": [] }},
  "lifetimeGuidance": {{ "message": "", "tools": [], "objectives": "", "actionableSteps": [] }},
  "storytellingThemes": ["theme list"]
}}

{_JSON_ONLY}"""


def company_guidance_prompt(context: StageContext) -> str:
    return f"""STEP 5 – COMPANY ENABLEMENT GUIDANCE

Assess organisational strengths, weaknesses, and next steps required to deliver the quantified value to {_segment_name(context)}. Anchor recommendations in the NBA findings, differentiator insights, willingness-to-pay outcomes, and communication plan.

{_segment_block(context, 800)}

NBA ANALYSIS CONTEXT:
{format_context_block("NBA_ANALYSIS_RESULT", _upstream(context, StageId.NBA_ANALYSIS), 1400)}

NBA VALUE CONTEXT:
{format_context_block("NBA_VALUE_RESULT", _upstream(context, StageId.NBA_VALUE), 1200)}

VALUE DIFFERENTIATOR CONTEXT:
{format_context_block("VALUE_DIFFERENTIATORS", _upstream(context, StageId.VALUE_DIFFERENTIATORS), 1600)}

WILLINGNESS TO PAY CONTEXT:
{format_context_block("WILLINGNESS_TO_PAY", _upstream(context, StageId.WILLINGNESS_TO_PAY), 1400)}

COMMUNICATION PLAN CONTEXT:
{format_context_block("COMMUNICATION_PLAN", _upstream(context, StageId.CUSTOMER_COMMUNICATION), 1400)}

Return strictly valid JSON:
{{
  "valueDriverStrengths": [
    {{
      "driver": "Capability name",
      "currentStrength": "Current performance summary",
      "strengthLevel": "low/medium/high",
      "evidence": "Supporting evidence",
      "enhancementOpportunities": [
        {{
          "opportunity": "Opportunity name",
          "action": "Recommended action",
          "expectedImpact": "Expected impact"
        }}
      ]
    }}
  ],
  "valueDriverWeaknesses": [
    {{
      "driver": "Capability name",
      "currentWeakness": "Weakness summary",
      "weaknessLevel": "low/medium/high",
      "rootCause": "Underlying cause",
      "improvementPlan": [
        {{
          "improvement": "Improvement name",
          "action": "Action to take",
          "expectedImpact": "Impact description"
        }}
      ]
    }}
  ],
  "competitivePositioning": {{
    "currentPosition": "Current market position",
    "positioningGaps": "Where positioning falls short",
    "positioningOpportunities": [
      {{
        "opportunity": "Opportunity name",
        "action": "Recommended action",
        "expectedImpact": "Impact description"
      }}
    ]
  }}
}}

{_JSON_ONLY}"""


PROMPT_BUILDERS: dict[StageId, Callable[[StageContext], str]] = {
    StageId.SEGMENTATION: segmentation_prompt,
    StageId.NBA_ANALYSIS: nba_analysis_prompt,
    StageId.NBA_VALUE: nba_value_prompt,
    StageId.VALUE_DIFFERENTIATORS: value_differentiators_prompt,
    StageId.WILLINGNESS_TO_PAY: willingness_to_pay_prompt,
    StageId.CUSTOMER_COMMUNICATION: customer_communication_prompt,
    StageId.COMPANY_GUIDANCE: company_guidance_prompt,
}


def build_prompt(stage: StageId, context: StageContext) -> str:
    """Build the instruction text for ``stage``."""
    return PROMPT_BUILDERS[stage](context)
