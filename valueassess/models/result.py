"""Immutable assessment result structures and their JSON projection."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from valueassess.models.enums import AssessmentSource, StageId
from valueassess.models.segment import Segment
from valueassess.models.stages import SegmentationOutput, StageModel


@dataclass(frozen=True)
class ProductSummary:
    title: str
    description: str
    sustainability_highlights: list[str]


@dataclass(frozen=True)
class SegmentMetrics:
    """Derived monetary figures for one segment, all floored at zero."""

    nba_value: int
    differentiator_value: int
    total_willingness_to_pay: int


@dataclass(frozen=True)
class ExecutiveSummary:
    key_findings: list[str]
    recommended_price: int
    confidence_level: int
    next_steps: list[str]
    metrics: SegmentMetrics


@dataclass(frozen=True)
class TotalValue:
    total_value_to_customer: int
    value_without_nba: str
    calculation_method: str


@dataclass(frozen=True)
class SegmentResult:
    """Fully-resolved output for one customer segment."""

    id: str
    name: str
    index: int
    profile: Segment
    results: dict[str, StageModel]
    total_value: TotalValue
    executive_summary: ExecutiveSummary
    warnings: list[str] = field(default_factory=list)

    def output(self, stage: StageId) -> Optional[StageModel]:
        return self.results.get(stage.result_key)


@dataclass(frozen=True)
class SegmentPricePoint:
    id: str
    name: str
    recommended_price: int
    total_willingness_to_pay: int
    confidence: int


@dataclass(frozen=True)
class SummaryStats:
    highest: SegmentPricePoint
    lowest: SegmentPricePoint
    spread: int
    average_recommended_price: int


@dataclass(frozen=True)
class CrossSegmentSummary:
    segments: list[SegmentPricePoint]
    summary_stats: Optional[SummaryStats] = None


@dataclass(frozen=True)
class StageStatus:
    """Outcome of one stage call (segmentation, or one segment-stage)."""

    stage_id: StageId
    segment_id: Optional[str]
    success: bool
    used_fallback: bool = False
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


@dataclass(frozen=True)
class SegmentationSummary:
    raw: Optional[SegmentationOutput]
    segments: list[Segment]


@dataclass(frozen=True)
class AssessmentResult:
    """Top-level snapshot returned to the caller (or emitted as a partial)."""

    product_summary: ProductSummary
    segmentation: SegmentationSummary
    segments: list[SegmentResult]
    cross_segment_summary: CrossSegmentSummary
    source: AssessmentSource
    stage_history: list[StageStatus] = field(default_factory=list)
    complete: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @property
    def degraded(self) -> bool:
        return self.source is AssessmentSource.FALLBACK


# ---------------------------------------------------------------------------
# JSON projection
# ---------------------------------------------------------------------------

def _price_point_to_dict(point: SegmentPricePoint) -> dict[str, Any]:
    return {
        "id": point.id,
        "name": point.name,
        "recommendedPrice": point.recommended_price,
        "totalWillingnessToPay": point.total_willingness_to_pay,
        "confidence": point.confidence,
    }


def _segment_result_to_dict(segment: SegmentResult) -> dict[str, Any]:
    summary = segment.executive_summary
    return {
        "id": segment.id,
        "name": segment.name,
        "index": segment.index,
        "profile": segment.profile.to_payload(),
        "results": {key: output.to_payload() for key, output in segment.results.items()},
        "totalValue": {
            "totalValueToCustomer": segment.total_value.total_value_to_customer,
            "valueWithoutNBA": segment.total_value.value_without_nba,
            "calculationMethod": segment.total_value.calculation_method,
        },
        "executiveSummary": {
            "keyFindings": list(summary.key_findings),
            "recommendedPrice": summary.recommended_price,
            "confidenceLevel": summary.confidence_level,
            "nextSteps": list(summary.next_steps),
            "metrics": {
                "nbaValue": summary.metrics.nba_value,
                "differentiatorValue": summary.metrics.differentiator_value,
                "totalWillingnessToPay": summary.metrics.total_willingness_to_pay,
            },
        },
        "warnings": list(segment.warnings),
    }


def assessment_result_to_dict(result: AssessmentResult) -> dict[str, Any]:
    """Convert an AssessmentResult to a JSON-serializable dict."""
    stats = result.cross_segment_summary.summary_stats
    summary_stats = None
    if stats is not None:
        summary_stats = {
            "highest": _price_point_to_dict(stats.highest),
            "lowest": _price_point_to_dict(stats.lowest),
            "spread": stats.spread,
            "averageRecommendedPrice": stats.average_recommended_price,
        }

    raw_segmentation = result.segmentation.raw
    return {
        "productSummary": {
            "title": result.product_summary.title,
            "description": result.product_summary.description,
            "sustainabilityHighlights": list(result.product_summary.sustainability_highlights),
        },
        "segmentation": {
            "raw": raw_segmentation.to_payload() if raw_segmentation is not None else None,
            "segments": [segment.to_payload() for segment in result.segmentation.segments],
        },
        "segments": [_segment_result_to_dict(segment) for segment in result.segments],
        "crossSegmentSummary": {
            "segments": [_price_point_to_dict(p) for p in result.cross_segment_summary.segments],
            "summaryStats": summary_stats,
        },
        "stageHistory": [
            {
                "stageId": status.stage_id.value,
                "segmentId": status.segment_id,
                "success": status.success,
                "usedFallback": status.used_fallback,
                "error": status.error,
                "timestamp": status.timestamp.isoformat(),
            }
            for status in result.stage_history
        ],
        "complete": result.complete,
        "_source": result.source.value,
        "_timestamp": result.timestamp.isoformat(),
    }
