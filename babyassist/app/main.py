from __future__ import annotations

"""FastAPI application entrypoint for the parenting assistant."""

import logging
import uuid
from dataclasses import asdict
from datetime import date

from fastapi import FastAPI, HTTPException, Request

from babyassist.app.dependencies import (
    get_children,
    get_messages,
    get_pipeline,
    get_proactive_messenger,
    get_retriever,
)
from babyassist.app.metrics import (
    metrics_middleware,
    metrics_response,
    record_chat_turn,
    record_proactive,
)
from babyassist.app.schemas import (
    ChatMessageItem,
    ChatRequest,
    ChatResponse,
    ChildCreateRequest,
    ChildResponse,
    ProactiveResponse,
    RetrievedDocument,
    RetrieveRequest,
    RetrieveResponse,
    SourceItem,
    WelcomeResponse,
)
from babyassist.app.settings import settings
from babyassist.rag.answerer import welcome_message
from babyassist.store.models import ChatMessageRecord, ChildRecord

logger = logging.getLogger(__name__)

app = FastAPI(title="Baby Assistant", version="0.1.0")


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


def _require_child(child_id: str) -> ChildRecord:
    child = get_children().get(child_id)
    if child is None:
        raise HTTPException(status_code=404, detail="Child not found")
    return child


def _child_response(child: ChildRecord) -> ChildResponse:
    return ChildResponse(**asdict(child), age_months=child.context().age_in_months(date.today()))


def _message_item(message: ChatMessageRecord) -> ChatMessageItem:
    return ChatMessageItem(**asdict(message))


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/children", response_model=ChildResponse, status_code=201)
async def create_child(request: ChildCreateRequest) -> ChildResponse:
    child = get_children().create(
        name=request.name.strip(),
        birthday=request.birthday.isoformat(),
        created_by=settings.default_owner,
        gender=request.gender,
        photo_url=request.photo_url,
    )
    return _child_response(child)


@app.get("/children", response_model=list[ChildResponse])
async def list_children() -> list[ChildResponse]:
    """List children for the default owner, newest first."""
    return [_child_response(child) for child in get_children().filter(settings.default_owner)]


@app.get("/children/{child_id}", response_model=ChildResponse)
async def get_child(child_id: str) -> ChildResponse:
    return _child_response(_require_child(child_id))


@app.delete("/children/{child_id}", status_code=204)
async def delete_child(child_id: str) -> None:
    if not get_children().delete(child_id):
        raise HTTPException(status_code=404, detail="Child not found")


@app.post("/retrieve", response_model=RetrieveResponse)
async def retrieve(request: RetrieveRequest) -> RetrieveResponse:
    """Return ranked reference documents for a query."""
    child = _require_child(request.child_id).context() if request.child_id else None
    results = get_retriever().retrieve_scored(request.query, child, request.limit)
    return RetrieveResponse(
        documents=[
            RetrievedDocument(
                id=item.document.doc_id,
                title=item.document.title,
                url=item.document.url,
                category=item.document.category,
                age_range=item.document.age_range,
                score=item.score,
            )
            for item in results
        ]
    )


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, http_request: Request) -> ChatResponse:
    """Answer one chat turn; follow-up questions are posted back as new turns."""
    if request.child_id:
        _require_child(request.child_id)
    pipeline = get_pipeline()
    turn = await pipeline.ask(request.message.strip(), child_id=request.child_id)
    outcome = "degraded" if turn.degraded else ("answered" if turn.sources else "no_documents")
    record_chat_turn(pipeline.composer.name, outcome)
    logger.info(
        "chat_response",
        extra={
            "request_id": getattr(http_request.state, "request_id", None),
            "outcome": outcome,
        },
    )
    return ChatResponse(
        answer=turn.answer,
        follow_up_questions=turn.follow_up_questions,
        sources=[SourceItem(**asdict(source)) for source in turn.sources],
        message_id=turn.message.id,
        composer=pipeline.composer.name,
        degraded=turn.degraded,
    )


@app.get("/chat/{child_id}/messages", response_model=list[ChatMessageItem])
async def chat_history(child_id: str) -> list[ChatMessageItem]:
    _require_child(child_id)
    return [_message_item(message) for message in get_messages().filter(child_id=child_id)]


@app.get("/chat/{child_id}/welcome", response_model=WelcomeResponse)
async def chat_welcome(child_id: str) -> WelcomeResponse:
    child = _require_child(child_id)
    return WelcomeResponse(message=welcome_message(child.context()))


@app.post("/children/{child_id}/proactive", response_model=ProactiveResponse)
async def run_proactive(child_id: str) -> ProactiveResponse:
    """Create any milestone, weekly or celebration messages due today."""
    child = _require_child(child_id)
    created = await get_proactive_messenger().run(child)
    record_proactive([message.message_kind for message in created])
    return ProactiveResponse(created=[_message_item(message) for message in created])
