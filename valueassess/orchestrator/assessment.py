"""AssessmentOrchestrator sequences the stage pipeline for every segment.

Segmentation runs once, then each of the six per-segment stages runs over all
segments before the next stage starts. A stage's prompt reads every earlier
output recorded for the same segment, so stage N for a segment never starts
before stage N-1 for that segment has been written (real or fallback).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from valueassess.config.settings import Settings
from valueassess.engine.aggregator import Aggregator
from valueassess.errors import (
    ConfigurationError,
    ConnectivityError,
    InputValidationError,
    LLMTimeoutError,
    StageError,
)
from valueassess.fallback.generators import FallbackGenerator
from valueassess.hooks.audit_hooks import log_stage_call
from valueassess.models.product import BaseProductInfo, ProductInput
from valueassess.models.result import AssessmentResult, StageStatus
from valueassess.models.segment import SegmentState, StageContext
from valueassess.models.stages import SegmentationOutput, StageModel
from valueassess.parsing import parse_stage_response
from valueassess.prompts.builder import build_prompt
from valueassess.providers.base import LLMTransport
from valueassess.providers.openai_provider import OpenAIChatProvider

from .listener import AssessmentListener
from .segments import normalize_segments
from .stages import SEGMENT_STAGES, SEGMENTATION_STAGE, StageDefinition

logger = logging.getLogger(__name__)


class AssessmentOrchestrator:
    """Runs one product assessment end to end.

    Configuration is passed in explicitly; the transport defaults to an
    OpenAI-compatible provider built from the same settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[LLMTransport] = None,
        fallback: Optional[FallbackGenerator] = None,
        aggregator: Optional[Aggregator] = None,
    ) -> None:
        self._settings = settings or Settings()
        self._transport = transport
        self._fallback = fallback or FallbackGenerator()
        self._aggregator = aggregator or Aggregator()

    async def assess_product(
        self,
        product: Union[ProductInput, dict[str, Any]],
        listener: Optional[AssessmentListener] = None,
    ) -> AssessmentResult:
        """Assess a product and return the final result.

        Raises InputValidationError, ConfigurationError or ConnectivityError
        before any stage runs. With fallback disabled, the first StageError is
        re-raised tagged with its stage and segment.
        """
        if not isinstance(product, ProductInput):
            product = ProductInput.model_validate(product)
        listener = listener or AssessmentListener()

        self._validate(product)
        if not self._settings.openai_api_key:
            raise ConfigurationError("Missing OpenAI API key. Set OPENAI_API_KEY to a valid key.")

        owns_transport = self._transport is None
        transport = self._transport or OpenAIChatProvider(self._settings)
        try:
            if self._settings.verify_connectivity:
                await self._ensure_connectivity(transport)
            return await self._run(product, transport, listener)
        finally:
            if owns_transport:
                await transport.aclose()

    def _validate(self, product: ProductInput) -> None:
        missing = [name for name in ("name", "description") if not getattr(product, name)]
        if missing:
            raise InputValidationError(f"Product {' and '.join(missing)} required")

    async def _ensure_connectivity(self, transport: LLMTransport) -> None:
        try:
            healthy = await asyncio.wait_for(
                transport.health_check(), timeout=self._settings.request_timeout
            )
        except asyncio.TimeoutError:
            healthy = False
        except StageError as e:
            logger.error(f"Connectivity probe raised: {e}")
            healthy = False
        if not healthy:
            raise ConnectivityError("OpenAI API connectivity check failed.")

    async def _run(
        self,
        product: ProductInput,
        transport: LLMTransport,
        listener: AssessmentListener,
    ) -> AssessmentResult:
        base_info = BaseProductInfo.from_product(product, self._settings.document_excerpt_chars)
        history: list[StageStatus] = []
        partial_lock = asyncio.Lock()

        logger.info(f"Starting assessment for {product.name}")

        # Segmentation
        await listener.on_step_started(SEGMENTATION_STAGE.id)
        try:
            output, error = await self._run_stage(
                SEGMENTATION_STAGE, product, StageContext(base_info=base_info), None, transport, history
            )
        except StageError as e:
            await listener.on_step_completed(SEGMENTATION_STAGE.id, False, e)
            raise
        await listener.on_step_completed(SEGMENTATION_STAGE.id, error is None, error)

        segmentation = output if isinstance(output, SegmentationOutput) else None
        states = [
            SegmentState(id=segment.id, index=index, profile=segment)
            for index, segment in enumerate(normalize_segments(segmentation))
        ]
        logger.info(f"Assessing {len(states)} segment(s): {[s.id for s in states]}")

        async def emit_partial() -> None:
            async with partial_lock:
                snapshot = self._aggregator.compose_result(
                    product,
                    segmentation,
                    [state.snapshot() for state in states],
                    list(history),
                    complete=False,
                )
                await listener.on_partial_result(snapshot)

        await emit_partial()

        for stage in SEGMENT_STAGES:
            await listener.on_step_started(stage.id)
            errors: list[StageError] = []

            async def run_segment(state: SegmentState) -> None:
                context = StageContext(
                    base_info=base_info,
                    segment=state.profile,
                    results=dict(state.results),
                )
                stage_output, stage_error = await self._run_stage(
                    stage, product, context, state.id, transport, history
                )
                state.record(stage.id, stage_output)
                if stage_error is not None:
                    errors.append(stage_error)
                await emit_partial()

            try:
                await self._run_segments(run_segment, states)
            except StageError as e:
                await listener.on_step_completed(stage.id, False, e)
                raise

            last_error = errors[-1] if errors else None
            await listener.on_step_completed(stage.id, last_error is None, last_error)

        result = self._aggregator.compose_result(
            product, segmentation, states, history, complete=True
        )
        logger.info(
            f"Assessment for {product.name} complete: {len(result.segments)} segment(s), "
            f"source={result.source.value}"
        )
        return result

    async def _run_segments(
        self,
        run_segment: Callable[[SegmentState], Awaitable[None]],
        states: list[SegmentState],
    ) -> None:
        concurrency = self._settings.segment_concurrency
        if concurrency <= 1 or len(states) <= 1:
            for state in states:
                await run_segment(state)
            return

        semaphore = asyncio.Semaphore(concurrency)

        async def guarded(state: SegmentState) -> None:
            async with semaphore:
                await run_segment(state)

        tasks = [asyncio.ensure_future(guarded(state)) for state in states]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Retrieve every outcome so no sibling failure goes unobserved.
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_stage(
        self,
        stage: StageDefinition,
        product: ProductInput,
        context: StageContext,
        segment_id: Optional[str],
        transport: LLMTransport,
        history: list[StageStatus],
    ) -> tuple[StageModel, Optional[StageError]]:
        """Run one stage call, substituting fallback output on failure.

        Returns the output and the error that forced a fallback, if any.
        """
        where = stage.id.value if segment_id is None else f"{stage.id.value}/{segment_id}"
        logger.info(f"{stage.label} started ({where})")
        try:
            prompt = build_prompt(stage.id, context)
            raw = await self._call(transport, prompt)
            output = parse_stage_response(stage.id, raw)
        except StageError as e:
            e.tag(stage.id.value, segment_id)
            logger.error(f"{stage.label} failed ({where}): {e.message}")
            if not self._settings.use_fallback:
                history.append(log_stage_call(stage.id, segment_id, error=e))
                raise
            logger.warning(f"Falling back to generated data for {stage.label} ({where})")
            output = self._fallback.generate(stage.id, product, context)
            history.append(log_stage_call(stage.id, segment_id, error=e, used_fallback=True))
            return output, e

        history.append(log_stage_call(stage.id, segment_id))
        logger.info(f"{stage.label} completed ({where})")
        return output, None

    async def _call(self, transport: LLMTransport, prompt: str) -> str:
        timeout = self._settings.request_timeout
        try:
            return await asyncio.wait_for(transport.complete(prompt), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(f"LLM call exceeded {timeout}s timeout") from e
