"""Fixed stage topology of an assessment run."""

from __future__ import annotations

from dataclasses import dataclass

from valueassess.models.enums import SEGMENT_STAGE_ORDER, StageId


@dataclass(frozen=True)
class StageDefinition:
    id: StageId
    label: str

    @property
    def result_key(self) -> str:
        return self.id.result_key


SEGMENTATION_STAGE = StageDefinition(StageId.SEGMENTATION, "Customer Segmentation")

_LABELS: dict[StageId, str] = {
    StageId.NBA_ANALYSIS: "NBA Analysis",
    StageId.NBA_VALUE: "NBA Value Estimation",
    StageId.VALUE_DIFFERENTIATORS: "Value Differentiators",
    StageId.WILLINGNESS_TO_PAY: "Willingness to Pay",
    StageId.CUSTOMER_COMMUNICATION: "Customer Communication",
    StageId.COMPANY_GUIDANCE: "Company Guidance",
}

# Per-segment stages, in execution order. Each stage's prompt reads the
# outputs of every stage before it.
SEGMENT_STAGES: tuple[StageDefinition, ...] = tuple(
    StageDefinition(stage, _LABELS[stage]) for stage in SEGMENT_STAGE_ORDER
)
