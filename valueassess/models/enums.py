from enum import Enum


class StageId(str, Enum):
    SEGMENTATION = "segmentation"
    NBA_ANALYSIS = "nba-analysis"
    NBA_VALUE = "nba-value"
    VALUE_DIFFERENTIATORS = "value-differentiators"
    WILLINGNESS_TO_PAY = "willingness-to-pay"
    CUSTOMER_COMMUNICATION = "customer-communication"
    COMPANY_GUIDANCE = "company-guidance"

    @property
    def result_key(self) -> str:
        """Key under which the stage output is stored in a segment's results."""
        return self.value.replace("-", "_")


# Per-segment stages in their fixed execution order.
SEGMENT_STAGE_ORDER: tuple[StageId, ...] = (
    StageId.NBA_ANALYSIS,
    StageId.NBA_VALUE,
    StageId.VALUE_DIFFERENTIATORS,
    StageId.WILLINGNESS_TO_PAY,
    StageId.CUSTOMER_COMMUNICATION,
    StageId.COMPANY_GUIDANCE,
)


class PricingSensitivity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: object) -> "PricingSensitivity":
        """Tolerant parse of free text such as "High (budget constrained)"."""
        text = str(value or "").strip().lower()
        if not text:
            return cls.MEDIUM
        if text in (member.value for member in cls):
            return cls(text)
        # "high" wins when both appear, e.g. "highly sensitive, low budget"
        if "high" in text:
            return cls.HIGH
        if "low" in text:
            return cls.LOW
        return cls.MEDIUM


class AssessmentSource(str, Enum):
    OPENAI_MULTI_CALL = "openai_multi_call"
    FALLBACK = "fallback"
