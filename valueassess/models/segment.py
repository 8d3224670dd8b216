"""Customer segments and the per-run accumulator for their stage outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from valueassess.models.enums import PricingSensitivity, StageId
from valueassess.models.product import BaseProductInfo
from valueassess.models.stages import StageModel


@dataclass(frozen=True)
class Segment:
    """Read-only profile referenced by every stage run for the segment."""

    id: str
    name: str
    description: str = ""
    primary_needs: tuple[str, ...] = ()
    buying_criteria: tuple[str, ...] = ()
    pricing_sensitivity: PricingSensitivity = PricingSensitivity.MEDIUM
    representative_share: str = ""
    value_drivers_focus: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "primaryNeeds": list(self.primary_needs),
            "buyingCriteria": list(self.buying_criteria),
            "pricingSensitivity": self.pricing_sensitivity.value,
            "representativeShare": self.representative_share,
            "valueDriversFocus": list(self.value_drivers_focus),
            "riskFactors": list(self.risk_factors),
        }


@dataclass
class SegmentState:
    """Mutable accumulator owned by the orchestrator for one run.

    Results are written once per stage, in stage order, and never replaced.
    """

    id: str
    index: int
    profile: Segment
    results: dict[str, StageModel] = field(default_factory=dict)

    def record(self, stage: StageId, output: StageModel) -> None:
        key = stage.result_key
        if key in self.results:
            raise ValueError(f"Stage '{stage.value}' already recorded for segment '{self.id}'")
        self.results[key] = output

    def get(self, stage: StageId) -> Optional[StageModel]:
        return self.results.get(stage.result_key)

    def snapshot(self) -> SegmentState:
        """Shallow copy safe to hand to the aggregator; outputs are immutable."""
        return SegmentState(
            id=self.id,
            index=self.index,
            profile=self.profile,
            results=dict(self.results),
        )


@dataclass(frozen=True)
class StageContext:
    """Everything a prompt builder or fallback generator may read for one stage."""

    base_info: BaseProductInfo
    segment: Optional[Segment] = None
    results: Mapping[str, StageModel] = field(default_factory=dict)

    def output(self, stage: StageId) -> Optional[StageModel]:
        return self.results.get(stage.result_key)
