"""Tests for the response parser -- JSON extraction and stage validation."""

import pytest

from valueassess.errors import ParseError, ShapeError, StageError
from valueassess.models.enums import StageId
from valueassess.models.stages import NbaValuation, SegmentationOutput, ValueDifferentiators
from valueassess.parsing import parse_json, parse_stage_response, validate_stage_output


class TestParseJson:
    def test_extracts_object_from_fenced_prose(self):
        """Fences and chatter around the object are ignored."""
        assert parse_json('Sure! ```json\n{"a":1}\n```') == {"a": 1}

    @pytest.mark.parametrize("raw", [
        '{"a": {"b": [1, 2]}}',
        'Here you go:\n{"a": {"b": [1, 2]}}\nLet me know if you need more.',
        '```\n{"a": {"b": [1, 2]}}\n```',
        '```JSON {"a": {"b": [1, 2]}} ```',
    ])
    def test_same_object_regardless_of_wrapping(self, raw):
        assert parse_json(raw) == {"a": {"b": [1, 2]}}

    def test_braces_inside_strings_do_not_count(self):
        assert parse_json('{"note": "use } and { freely"}') == {"note": "use } and { freely"}

    def test_unclosed_object_raises(self):
        """Truncated output is rejected, never partially returned."""
        with pytest.raises(ParseError):
            parse_json('{"a": {"b": 1')

    def test_unbalanced_braces_raise(self):
        with pytest.raises(ParseError, match="braces not balanced"):
            parse_json('{"a": {"b": 1}')

    def test_truncated_nested_object_raises(self):
        with pytest.raises(ParseError):
            parse_json('{"a": {"b": 1}, "c": {"d": 2}')

    def test_no_object_raises(self):
        with pytest.raises(ParseError):
            parse_json("I cannot help with that.")

    def test_closing_before_opening_raises(self):
        with pytest.raises(ParseError):
            parse_json("} nothing here {")

    def test_non_text_input_raises(self):
        with pytest.raises(ParseError):
            parse_json({"a": 1})

    def test_invalid_json_is_not_repaired(self):
        with pytest.raises(ParseError):
            parse_json('{"a": 1,}')

    def test_parse_error_is_recoverable_stage_error(self):
        assert issubclass(ParseError, StageError)


class TestValidateStageOutput:
    def test_money_strings_are_coerced(self):
        output = validate_stage_output(StageId.NBA_VALUE, {"nbaValue": "$1,140"})
        assert isinstance(output, NbaValuation)
        assert output.nba_value == 1140.0

    def test_missing_required_field_raises_shape_error(self):
        with pytest.raises(ShapeError, match="nbaValue"):
            validate_stage_output(StageId.NBA_VALUE, {"valuationMethodology": "guess"})

    def test_boolean_money_is_rejected(self):
        with pytest.raises(ShapeError):
            validate_stage_output(StageId.NBA_VALUE, {"nbaValue": True})

    def test_missing_differentiators_raises_shape_error(self):
        with pytest.raises(ShapeError):
            validate_stage_output(StageId.VALUE_DIFFERENTIATORS, {"totalDifferentiatorValue": 10})

    def test_non_object_raises_shape_error(self):
        with pytest.raises(ShapeError):
            validate_stage_output(StageId.COMPANY_GUIDANCE, ["not", "an", "object"])

    def test_segments_default_to_empty_list(self):
        output = validate_stage_output(StageId.SEGMENTATION, {"segmentationApproach": "none"})
        assert isinstance(output, SegmentationOutput)
        assert output.segments == []

    def test_segments_must_be_a_list(self):
        with pytest.raises(ShapeError):
            validate_stage_output(StageId.SEGMENTATION, {"segments": "three of them"})

    def test_unknown_keys_are_kept(self):
        output = validate_stage_output(StageId.NBA_VALUE, {"nbaValue": 10, "extraNote": "kept"})
        assert output.to_payload()["extraNote"] == "kept"

    def test_parse_stage_response_end_to_end(self):
        raw = '```json\n{"differentiators": [{"name": "TCO", "value": "2.5k"}]}\n```'
        output = parse_stage_response(StageId.VALUE_DIFFERENTIATORS, raw)
        assert isinstance(output, ValueDifferentiators)
        assert output.differentiator_sum == 2500.0
