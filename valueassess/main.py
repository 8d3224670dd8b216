"""FastAPI application for product value assessment: REST endpoints and SSE streaming."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from valueassess.config.settings import Settings
from valueassess.models.product import DocumentText, ProductInput
from valueassess.models.result import assessment_result_to_dict
from valueassess.orchestrator import AssessmentOrchestrator
from valueassess.streaming import StreamManager
from valueassess.streaming.events import PipelineEventType
from valueassess.streaming.listener import StreamingListener

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = Settings()

app = FastAPI(title="Value Assessment API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Singleton stream manager
stream_manager = StreamManager()

# In-memory assessment store
_assessments: dict[str, dict] = {}


class CreateAssessmentRequest(BaseModel):
    name: str
    description: str
    known_alternatives: str = ""
    additional_info: str = ""
    documents: list[DocumentText] = Field(default_factory=list)


class CreateAssessmentResponse(BaseModel):
    assessment_id: str
    status: str


def build_orchestrator() -> AssessmentOrchestrator:
    return AssessmentOrchestrator(settings=settings)


async def run_assessment(assessment_id: str, product: ProductInput) -> None:
    """Background task: run the assessment and emit SSE events."""
    listener = StreamingListener(stream_manager, assessment_id)
    await listener.emit(PipelineEventType.PIPELINE_STARTED, {"product_name": product.name})
    try:
        result = await build_orchestrator().assess_product(product, listener)
    except Exception as e:
        logger.exception(f"Assessment {assessment_id} failed")
        _assessments[assessment_id]["status"] = "error"
        _assessments[assessment_id]["error"] = str(e)
        await listener.emit(PipelineEventType.PIPELINE_ERROR, {
            "error": str(e),
            "error_type": type(e).__name__,
            "stage_id": getattr(e, "stage_id", None),
            "segment_id": getattr(e, "segment_id", None),
        })
        return

    payload = assessment_result_to_dict(result)
    _assessments[assessment_id]["status"] = "completed"
    _assessments[assessment_id]["result"] = payload
    await listener.emit(PipelineEventType.PIPELINE_COMPLETED, {"result": payload})


@app.post("/api/assessments", response_model=CreateAssessmentResponse)
async def create_assessment(body: CreateAssessmentRequest, background_tasks: BackgroundTasks):
    """Register a new assessment and start the pipeline."""
    assessment_id = str(uuid4())
    product = ProductInput(
        name=body.name,
        description=body.description,
        known_alternatives=body.known_alternatives,
        additional_info=body.additional_info,
        documents=body.documents,
    )
    _assessments[assessment_id] = {
        "assessment_id": assessment_id,
        "status": "started",
        "product_name": product.name,
        "result": None,
    }

    # Start pipeline in background so the SSE stream can pick up events
    background_tasks.add_task(run_assessment, assessment_id, product)

    return CreateAssessmentResponse(assessment_id=assessment_id, status="started")


@app.get("/api/assessments/{assessment_id}/stream")
async def stream_assessment(assessment_id: str, request: Request):
    """SSE endpoint that streams assessment progress events."""
    last_event_id: Optional[int] = None
    raw = request.headers.get("Last-Event-ID") or request.headers.get("last-event-id")
    if raw is not None:
        try:
            last_event_id = int(raw)
        except ValueError:
            pass

    generator = stream_manager.event_generator(assessment_id, last_event_id=last_event_id)
    return StreamingResponse(generator, media_type="text/event-stream")


@app.get("/api/assessments/{assessment_id}")
async def get_assessment(assessment_id: str):
    """Return assessment status and result (polling fallback)."""
    assessment = _assessments.get(assessment_id)
    if assessment is None:
        return {"error": "Assessment not found"}
    return assessment


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}
