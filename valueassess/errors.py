"""Error taxonomy for an assessment run.

Fatal errors (bad input, missing credentials, failed connectivity probe) abort
the run before any stage executes. ``StageError`` subclasses are recoverable:
the orchestrator replaces the failed stage with fallback output when fallback
is enabled, and re-raises them otherwise.
"""

from __future__ import annotations

from typing import Optional


class AssessmentError(Exception):
    """Base class for every error raised by the assessment pipeline."""

    def __init__(
        self,
        message: str,
        *,
        stage_id: Optional[str] = None,
        segment_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage_id = stage_id
        self.segment_id = segment_id

    def tag(self, stage_id: str, segment_id: Optional[str] = None) -> "AssessmentError":
        """Attach the stage (and segment) the error occurred in."""
        self.stage_id = stage_id
        self.segment_id = segment_id
        return self

    def __str__(self) -> str:
        if self.stage_id is None:
            return self.message
        where = self.stage_id if self.segment_id is None else f"{self.stage_id}/{self.segment_id}"
        return f"[{where}] {self.message}"


class InputValidationError(AssessmentError):
    """Product input is missing its name or description."""


class ConfigurationError(AssessmentError):
    """No API credential is configured."""


class ConnectivityError(AssessmentError):
    """The preflight connectivity probe failed."""


class StageError(AssessmentError):
    """A single LLM-backed stage failed; eligible for fallback substitution."""


class TransportError(StageError):
    """HTTP or network failure while calling the LLM."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class LLMTimeoutError(StageError):
    """The LLM call exceeded the configured request timeout."""


class ParseError(StageError):
    """The LLM response did not contain a complete JSON object."""


class ShapeError(StageError):
    """Parsed JSON is missing fields the downstream stages require."""
