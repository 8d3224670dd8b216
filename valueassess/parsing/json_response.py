"""Extract and validate the JSON object embedded in an LLM response."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from valueassess.errors import ParseError, ShapeError
from valueassess.models.enums import StageId
from valueassess.models.stages import STAGE_SCHEMAS, StageModel

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*")


def _brace_balance(text: str) -> int:
    """Count of ``{`` minus ``}`` outside of JSON string literals."""
    depth = 0
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
    return depth


def parse_json(raw_text: Any) -> dict[str, Any]:
    """Return the JSON object wrapped in ``raw_text``.

    Code fences and surrounding prose are dropped. Truncated or otherwise
    malformed JSON raises ``ParseError``; no repair is attempted.
    """
    if not isinstance(raw_text, str):
        raise ParseError(f"LLM response must be text, got {type(raw_text).__name__}")

    cleaned = _FENCE_RE.sub("", raw_text).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ParseError("LLM response did not contain a JSON object")

    candidate = cleaned[start : end + 1]
    balance = _brace_balance(candidate)
    if balance != 0:
        raise ParseError(f"Incomplete JSON response - braces not balanced ({balance:+d})")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in LLM response: {e.msg} at position {e.pos}") from e

    if not isinstance(parsed, dict):
        raise ParseError("LLM response JSON is not an object")
    return parsed


def validate_stage_output(stage: StageId, data: Any) -> StageModel:
    """Validate parsed JSON against the schema for ``stage``."""
    if not isinstance(data, dict):
        raise ShapeError(f"{stage.value} output must be a JSON object")

    schema = STAGE_SCHEMAS[stage]
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors()[:5])
        raise ShapeError(f"{stage.value} output has invalid or missing fields: {fields}") from e


def parse_stage_response(stage: StageId, raw_text: Any) -> StageModel:
    """Parse an LLM response and validate it for ``stage``."""
    return validate_stage_output(stage, parse_json(raw_text))
