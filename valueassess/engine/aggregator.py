"""Aggregator.

Turns per-segment stage outputs into the final (or partial) AssessmentResult:
derived metrics, executive summaries and the cross-segment price comparison.
Every monetary figure surfaced here is floored at zero.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Union

from valueassess.engine.numbers import format_currency, money, round_half_up
from valueassess.models.enums import AssessmentSource, StageId
from valueassess.models.product import ProductInput
from valueassess.models.result import (
    AssessmentResult,
    CrossSegmentSummary,
    ExecutiveSummary,
    ProductSummary,
    SegmentationSummary,
    SegmentMetrics,
    SegmentPricePoint,
    SegmentResult,
    StageStatus,
    SummaryStats,
    TotalValue,
)
from valueassess.models.segment import Segment, SegmentState
from valueassess.models.stages import (
    NbaValuation,
    PriceRecommendation,
    SegmentationOutput,
    StageModel,
    ValueDifferentiators,
    WillingnessToPay,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 85

# Checked in order; "Medium-High" therefore scores as high.
_CONFIDENCE_BANDS = (
    ("high", 90),
    ("medium", 80),
    ("low", 65),
)

RECONCILIATION_TOLERANCE = 1.0


def confidence_to_score(value: Union[float, int, str, None]) -> int:
    """Map a qualitative or numeric confidence to a 0-100 score."""
    if value is None or isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return DEFAULT_CONFIDENCE
        return round_half_up(min(100.0, max(0.0, float(value))))

    text = str(value).strip().lower()
    for needle, score in _CONFIDENCE_BANDS:
        if needle in text:
            return score
    return DEFAULT_CONFIDENCE


def build_cross_segment_summary(price_points: list[SegmentPricePoint]) -> CrossSegmentSummary:
    """Rank segments by recommended price and compute spread and mean."""
    if not price_points:
        return CrossSegmentSummary(segments=[], summary_stats=None)

    ranked = sorted(price_points, key=lambda p: p.recommended_price, reverse=True)
    highest = ranked[0]
    lowest = ranked[-1]
    spread = highest.recommended_price - lowest.recommended_price if len(ranked) > 1 else 0
    average = sum(p.recommended_price for p in price_points) / len(price_points)

    return CrossSegmentSummary(
        segments=list(price_points),
        summary_stats=SummaryStats(
            highest=highest,
            lowest=lowest,
            spread=max(0, spread),
            average_recommended_price=money(average),
        ),
    )


def _typed(output: Optional[StageModel], cls: type) -> Optional[StageModel]:
    return output if isinstance(output, cls) else None


class Aggregator:
    """Stateless composer of assessment results."""

    def compose_result(
        self,
        product: ProductInput,
        segmentation: Optional[SegmentationOutput],
        states: Iterable[SegmentState],
        history: Optional[list[StageStatus]] = None,
        complete: bool = True,
    ) -> AssessmentResult:
        """Build an AssessmentResult from the current segment states.

        Works on partially-populated states as well: stages that have not run
        yet contribute zero to the derived metrics.
        """
        history = list(history or [])
        states = list(states)
        segments = [self._compose_segment(state) for state in states]

        price_points = [
            SegmentPricePoint(
                id=segment.id,
                name=segment.name,
                recommended_price=segment.executive_summary.recommended_price,
                total_willingness_to_pay=segment.executive_summary.metrics.total_willingness_to_pay,
                confidence=segment.executive_summary.confidence_level,
            )
            for segment in segments
        ]

        degraded = any(status.used_fallback for status in history)
        fallback_only = bool(history) and all(status.used_fallback for status in history)
        source = AssessmentSource.FALLBACK if degraded else AssessmentSource.OPENAI_MULTI_CALL

        return AssessmentResult(
            product_summary=self._product_summary(product, fallback_only),
            segmentation=SegmentationSummary(
                raw=segmentation,
                segments=[state.profile for state in states],
            ),
            segments=segments,
            cross_segment_summary=build_cross_segment_summary(price_points),
            source=source,
            stage_history=history,
            complete=complete,
        )

    def _product_summary(self, product: ProductInput, fallback_only: bool = False) -> ProductSummary:
        description = product.description
        if fallback_only or not description:
            description = (
                f"A sustainable {product.name} positioned to deliver measurable ROI "
                "and emissions impact."
            )
        return ProductSummary(
            title=product.name,
            description=description,
            sustainability_highlights=[
                "Reduced environmental footprint vs. incumbent alternatives",
                "Lower operating cost profile through energy and maintenance savings",
                "Extended lifetime backed by durable design and support",
            ],
        )

    def _compose_segment(self, state: SegmentState) -> SegmentResult:
        results = dict(state.results)
        warnings: list[str] = []

        valuation = _typed(state.get(StageId.NBA_VALUE), NbaValuation)
        differentiators = _typed(state.get(StageId.VALUE_DIFFERENTIATORS), ValueDifferentiators)
        willingness = _typed(state.get(StageId.WILLINGNESS_TO_PAY), WillingnessToPay)

        nba_value = valuation.nba_value if valuation is not None else 0.0

        differentiator_value = 0.0
        if differentiators is not None:
            differentiator_value = differentiators.differentiator_sum
            if differentiators.total_disagrees(RECONCILIATION_TOLERANCE):
                declared = differentiators.total_differentiator_value
                logger.warning(
                    f"Segment {state.id}: declared differentiator total {declared} "
                    f"disagrees with itemized sum {differentiator_value}; using the sum"
                )
                warnings.append(
                    f"Declared differentiator total {format_currency(declared)} replaced by "
                    f"itemized sum {format_currency(differentiator_value)}."
                )
                results[StageId.VALUE_DIFFERENTIATORS.result_key] = differentiators.model_copy(
                    update={"total_differentiator_value": differentiator_value}
                )

        if willingness is not None and willingness.total_willingness_to_pay is not None:
            total_wtp = willingness.total_willingness_to_pay
        else:
            total_wtp = nba_value + differentiator_value

        recommendation = willingness.price_recommendation if willingness is not None else None
        if recommendation is not None and recommendation.recommended_price is not None:
            recommended = recommendation.recommended_price
        else:
            recommended = total_wtp

        confidence = self._confidence(recommendation, willingness, valuation)

        metrics = SegmentMetrics(
            nba_value=money(nba_value),
            differentiator_value=money(differentiator_value),
            total_willingness_to_pay=money(total_wtp),
        )
        profile = state.profile

        return SegmentResult(
            id=state.id,
            name=profile.name,
            index=state.index,
            profile=profile,
            results=results,
            total_value=TotalValue(
                total_value_to_customer=metrics.total_willingness_to_pay,
                value_without_nba=(
                    "Total value calculated from NBA analysis and segment-specific differentiators."
                ),
                calculation_method=(
                    "NBA benchmark plus quantified economic differentiators adjusted for "
                    "segment sensitivity."
                ),
            ),
            executive_summary=ExecutiveSummary(
                key_findings=self._key_findings(profile, metrics),
                recommended_price=money(recommended),
                confidence_level=confidence,
                next_steps=[
                    "Align commercial assets to segment-specific ROI narratives.",
                    "Stand up an incentive enablement pod to streamline customer onboarding.",
                    "Instrument post-sale value tracking to reinforce renewal pricing.",
                ],
                metrics=metrics,
            ),
            warnings=warnings,
        )

    def _confidence(
        self,
        recommendation: Optional[PriceRecommendation],
        willingness: Optional[WillingnessToPay],
        valuation: Optional[NbaValuation],
    ) -> int:
        candidates = (
            recommendation.confidence if recommendation is not None else None,
            willingness.confidence_level if willingness is not None else None,
            valuation.confidence_level if valuation is not None else None,
        )
        for candidate in candidates:
            if candidate is not None and candidate != "":
                return confidence_to_score(candidate)
        return DEFAULT_CONFIDENCE

    def _key_findings(self, profile: Segment, metrics: SegmentMetrics) -> list[str]:
        return [
            f"{profile.name} face an NBA benchmark near {format_currency(metrics.nba_value)}, "
            f"but quantified differentiators unlock {format_currency(metrics.differentiator_value)} "
            "in additional value.",
            f"{profile.name} can support premium pricing when incentive enablement and ROI "
            "calculators are front-loaded in the sales cycle.",
            "Operational readiness and incentive execution remain the biggest levers to "
            "accelerate adoption.",
        ]
