"""
FastAPI Application Module

HTTP surface of the recruitment assistant. Each conversation walks the
candidate through a fixed question script; this module only forwards user
actions to the conversation controller and renders its snapshots.

Key Features:
- Conversation lifecycle: start, answer, pick options, leave
- Resume upload checks (type and size)
- Per-client rate limiting and per-conversation serialization
- Structured logging, Prometheus metrics and OpenTelemetry tracing
"""

import asyncio
from contextlib import asynccontextmanager
from typing import List
from uuid import UUID

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CollectorRegistry, Counter, generate_latest
from pydantic import BaseModel
from structlog import get_logger

from ..config import load_settings
from ..domain.models import ConversationMessage, ConversationSnapshot, Outcome, Turn
from ..repositories.memory import InMemoryRepository
from ..services.controller import ConversationController
from ..services.pacing import TypingPacer
from ..services.projection import project_messages
from ..services.resume import MAX_RESUME_BYTES, READ_CHUNK_BYTES, check_resume_size, check_resume_type
from .conversation_guard import ConversationGuard, get_conversation_guard
from .rate_limiter import RateLimiter, RateLimitExceeded, client_key

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

REQUESTS = Counter("requests_total", "Total requests", registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total unexpected errors", registry=CUSTOM_REGISTRY)
TURNS = Counter("turns_total", "Controller operations by outcome", ["outcome"], registry=CUSTOM_REGISTRY)
RESUMES = Counter("resume_uploads_total", "Resume uploads by result", ["result"], registry=CUSTOM_REGISTRY)

logger = get_logger()

settings = load_settings()


class AnswerCreate(BaseModel):
    """Typed answer for the current question"""
    text: str


class OptionSelect(BaseModel):
    """Option chosen for the current question"""
    option: str


class ResumeReceipt(BaseModel):
    filename: str
    content_type: str
    size: int


# Core service instances
repository = InMemoryRepository()
pacer = TypingPacer(delay=settings.typing_delay)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Starts and stops background housekeeping"""
    await app.state.rate_limiter.start()
    expiry = asyncio.create_task(expire_idle_conversations(settings.idle_timeout))
    logger.info("application_startup_complete")

    yield

    expiry.cancel()
    try:
        await expiry
    except asyncio.CancelledError:
        pass
    await app.state.rate_limiter.stop()
    logger.info("application_shutdown_complete")


def get_repository() -> InMemoryRepository:
    """Returns the conversation store"""
    return repository


def get_pacer() -> TypingPacer:
    return pacer


async def expire_idle_conversations(idle_timeout: float) -> None:
    """Periodically drop conversations nobody has touched for `idle_timeout` seconds"""
    guard = get_conversation_guard()
    while True:
        await asyncio.sleep(max(1.0, idle_timeout / 4))
        for conversation_id in await repository.expire_idle(idle_timeout):
            guard.forget(conversation_id)


app = FastAPI(
    title="Recruitment Assistant Chat API",
    description="Guided recruitment questionnaire presented as a chat",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.rate_limiter = RateLimiter(rate_limit=settings.rate_limit, time_window=settings.rate_window)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set up request tracing
FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Tracks requests and enforces rate limits"""
    REQUESTS.inc()
    logger.info("request_started", method=request.method, path=request.url.path)
    try:
        request.app.state.rate_limiter.check_rate_limit(client_key(request))
    except RateLimitExceeded as e:
        return JSONResponse(status_code=429, content={"detail": str(e)})
    try:
        return await call_next(request)
    except Exception as e:
        ERRORS.inc()
        logger.error("request_failed", path=request.url.path, error=str(e))
        raise


async def load_conversation(
    conversation_id: UUID,
    repository: InMemoryRepository = Depends(get_repository),
) -> ConversationController:
    conversation = await repository.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


async def run_turn(
    conversation: ConversationController,
    operation,
    value: str,
    guard: ConversationGuard,
    pacer: TypingPacer,
) -> Turn:
    """Apply one user action under the conversation's guard, then pace the reply."""

    async def apply() -> Turn:
        return operation(value)

    try:
        turn = await guard.run(conversation.id, apply)
    except TimeoutError:
        raise HTTPException(status_code=408, detail="Request timeout")
    except Exception as e:
        ERRORS.inc()
        logger.error("turn_failed", conversation_id=str(conversation.id), error=str(e))
        raise HTTPException(status_code=500, detail="Failed to process answer")

    TURNS.labels(outcome=turn.outcome.value).inc()
    if turn.outcome == Outcome.COMPLETED:
        logger.info("questionnaire_completed", conversation_id=str(conversation.id))
    turn.emitted = await pacer.deliver(turn.emitted)
    return turn


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/conversations", response_model=ConversationSnapshot)
async def create_conversation(
    repository: InMemoryRepository = Depends(get_repository),
    pacer: TypingPacer = Depends(get_pacer),
) -> ConversationSnapshot:
    """Starts a new questionnaire conversation"""
    try:
        conversation = await repository.create_conversation()
    except Exception as e:
        logger.error("create_conversation_error", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create conversation")
    await pacer.deliver(conversation.messages)
    return conversation.snapshot()


@app.get("/conversations", response_model=List[ConversationSnapshot])
async def list_conversations(
    limit: int = Query(100, ge=0),
    offset: int = Query(0, ge=0),
    repository: InMemoryRepository = Depends(get_repository),
) -> List[ConversationSnapshot]:
    """Gets paginated conversation snapshots, newest first"""
    conversations = await repository.list_conversations(limit=limit, offset=offset)
    return [c.snapshot() for c in conversations]


@app.get("/conversations/{conversation_id}", response_model=ConversationSnapshot)
async def get_conversation(
    conversation: ConversationController = Depends(load_conversation),
) -> ConversationSnapshot:
    return conversation.snapshot()


@app.get("/conversations/{conversation_id}/messages", response_model=List[ConversationMessage])
async def get_messages(
    conversation: ConversationController = Depends(load_conversation),
) -> List[ConversationMessage]:
    """Gets the message log in display order"""
    return project_messages(conversation.messages)


@app.post("/conversations/{conversation_id}/answers", response_model=Turn)
async def submit_answer(
    answer: AnswerCreate,
    conversation: ConversationController = Depends(load_conversation),
    guard: ConversationGuard = Depends(get_conversation_guard),
    pacer: TypingPacer = Depends(get_pacer),
) -> Turn:
    """Submits a typed answer for the current question"""
    return await run_turn(conversation, conversation.submit_free_text, answer.text, guard, pacer)


@app.post("/conversations/{conversation_id}/options", response_model=Turn)
async def select_option(
    selection: OptionSelect,
    conversation: ConversationController = Depends(load_conversation),
    guard: ConversationGuard = Depends(get_conversation_guard),
    pacer: TypingPacer = Depends(get_pacer),
) -> Turn:
    """Picks one of the current question's options"""
    return await run_turn(conversation, conversation.select_option, selection.option, guard, pacer)


@app.delete("/conversations/{conversation_id}", status_code=204)
async def leave_conversation(
    conversation_id: UUID,
    repository: InMemoryRepository = Depends(get_repository),
    guard: ConversationGuard = Depends(get_conversation_guard),
) -> Response:
    """Leaves the conversation; its answers are discarded"""
    if not await repository.discard_conversation(conversation_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    guard.forget(conversation_id)
    return Response(status_code=204)


@app.post("/resumes", response_model=ResumeReceipt)
async def upload_resume(file: UploadFile = File(...)) -> ResumeReceipt:
    """Checks an uploaded resume. The file content is not kept."""
    filename = file.filename or ""
    error = check_resume_type(filename, file.content_type)
    if error is None:
        # Never buffer more than one byte past the limit.
        total = 0
        while total <= MAX_RESUME_BYTES:
            chunk = await file.read(min(READ_CHUNK_BYTES, MAX_RESUME_BYTES + 1 - total))
            if not chunk:
                break
            total += len(chunk)
        error = check_resume_size(filename, total)
    if error is not None:
        RESUMES.labels(result="rejected").inc()
        raise HTTPException(status_code=422, detail=error)

    RESUMES.labels(result="accepted").inc()
    logger.info("resume_accepted", filename=filename, size=total)
    return ResumeReceipt(filename=filename, content_type=file.content_type or "", size=total)


@app.get("/metrics")
async def metrics():
    """Provides Prometheus metrics for system monitoring"""
    return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")
