"""Maps stage ids to human-readable progress messages for SSE streaming."""

from __future__ import annotations

# Stage id -> user-facing progress message
_STAGE_MESSAGES: dict[str, str] = {
    "segmentation": "Identifying customer segments...",
    "nba-analysis": "Researching next best alternatives...",
    "nba-value": "Estimating NBA price baselines...",
    "value-differentiators": "Quantifying value differentiators...",
    "willingness-to-pay": "Deriving willingness to pay...",
    "customer-communication": "Drafting customer communication guidance...",
    "company-guidance": "Preparing company guidance...",
}

_DEFAULT_MESSAGE = "Processing..."


def get_progress_message(stage_id: str) -> str:
    """Return a human-readable progress message for a given stage id.

    Unknown stages get a generic "Processing..." message.
    """
    return _STAGE_MESSAGES.get(stage_id, _DEFAULT_MESSAGE)
