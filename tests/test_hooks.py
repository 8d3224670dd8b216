"""Tests for progress and audit hooks."""

from valueassess.errors import ParseError
from valueassess.hooks.audit_hooks import log_stage_call
from valueassess.hooks.progress_hooks import get_progress_message
from valueassess.models.enums import StageId


class TestProgressHooks:
    def test_stage_maps_to_human_message(self):
        """Known stage id returns the correct human-readable message."""
        assert get_progress_message("segmentation") == "Identifying customer segments..."

    def test_every_stage_has_a_message(self):
        for stage in StageId:
            assert get_progress_message(stage.value) != "Processing..."

    def test_unknown_stage_gets_generic_message(self):
        """Unknown stage id returns the generic 'Processing...' message."""
        assert get_progress_message("some_random_stage") == "Processing..."


class TestAuditHooks:
    def test_success_entry(self):
        entry = log_stage_call(StageId.SEGMENTATION)
        assert entry.success
        assert not entry.used_fallback
        assert entry.error is None
        assert entry.segment_id is None

    def test_fallback_entry_keeps_tagged_error(self):
        error = ParseError("truncated").tag("nba-value", "fleet-1")
        entry = log_stage_call(StageId.NBA_VALUE, "fleet-1", error=error, used_fallback=True)
        assert not entry.success
        assert entry.used_fallback
        assert entry.error == "[nba-value/fleet-1] truncated"
