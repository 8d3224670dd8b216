"""Audit hooks record the outcome of every stage call."""

from __future__ import annotations

import logging
from typing import Optional

from valueassess.models.enums import StageId
from valueassess.models.result import StageStatus

logger = logging.getLogger(__name__)


def log_stage_call(
    stage_id: StageId,
    segment_id: Optional[str] = None,
    error: Optional[BaseException] = None,
    used_fallback: bool = False,
) -> StageStatus:
    """Record one stage invocation in the audit log.

    Returns the status entry for the run's stage history.
    """
    entry = StageStatus(
        stage_id=stage_id,
        segment_id=segment_id,
        success=error is None,
        used_fallback=used_fallback,
        error=str(error) if error is not None else None,
    )
    where = stage_id.value if segment_id is None else f"{stage_id.value}/{segment_id}"
    if error is None:
        logger.info("Stage call audit: %s succeeded", where)
    else:
        logger.info(
            "Stage call audit: %s failed (fallback=%s): %s", where, used_fallback, error
        )
    return entry
