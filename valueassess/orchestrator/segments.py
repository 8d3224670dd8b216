"""Normalization of segmentation output into uniquely-identified segments."""

from __future__ import annotations

import re
from typing import Optional

from valueassess.models.enums import PricingSensitivity
from valueassess.models.segment import Segment
from valueassess.models.stages import SegmentationOutput, SegmentProfile

DEFAULT_SEGMENT_NAME = "General Market"


def slugify(value: Optional[str], fallback: str = "segment", index: int = 0) -> str:
    """Slug of ``value`` suffixed with the 1-based ordinal.

    The ordinal suffix makes ids unique within a run even when names repeat.
    """
    base = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return f"{base or fallback or 'segment'}-{index + 1}"


def default_segment_profile() -> SegmentProfile:
    return SegmentProfile(
        id="general-market",
        name=DEFAULT_SEGMENT_NAME,
        description="Broad market of buyers evaluating the product against its mainstream alternatives.",
        primary_needs=["Clear economic value", "Reliable performance"],
        buying_criteria=["Competitive total cost of ownership", "Proven sustainability benefits"],
        pricing_sensitivity="medium",
        representative_share="100%",
        value_drivers_focus=["Operating cost savings", "Sustainability impact"],
        risk_factors=["Limited differentiation from incumbent offers"],
    )


def to_segment(profile: SegmentProfile, index: int) -> Segment:
    segment_id = slugify(profile.id or profile.name, "segment", index)
    return Segment(
        id=segment_id,
        name=profile.name or f"Segment {index + 1}",
        description=profile.description,
        primary_needs=tuple(profile.primary_needs),
        buying_criteria=tuple(profile.buying_criteria),
        pricing_sensitivity=PricingSensitivity.parse(profile.pricing_sensitivity),
        representative_share=profile.representative_share or "",
        value_drivers_focus=tuple(profile.value_drivers_focus),
        risk_factors=tuple(profile.risk_factors),
    )


def normalize_segments(output: Optional[SegmentationOutput]) -> list[Segment]:
    """Segments for the run; a single default segment when none were produced."""
    profiles = list(output.segments) if output is not None else []
    if not profiles:
        profiles = [default_segment_profile()]
    return [to_segment(profile, index) for index, profile in enumerate(profiles)]
