from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ChildCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    birthday: date
    gender: str | None = None
    photo_url: str | None = None


class ChildResponse(BaseModel):
    id: str
    name: str
    birthday: str
    created_by: str
    created_date: datetime
    gender: str | None = None
    photo_url: str | None = None
    last_milestone_check: str | None = None
    age_months: int | None = None


class SourceItem(BaseModel):
    title: str
    url: str
    excerpt: str
    category: str


class RetrieveRequest(BaseModel):
    query: str
    child_id: str | None = None
    limit: int | None = Field(default=None, ge=1, le=20)


class RetrievedDocument(BaseModel):
    id: str
    title: str
    url: str
    category: str
    age_range: str | None = None
    score: int


class RetrieveResponse(BaseModel):
    documents: list[RetrievedDocument]


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    child_id: str | None = None


class ChatResponse(BaseModel):
    answer: str
    follow_up_questions: list[str]
    sources: list[SourceItem]
    message_id: str
    composer: str
    degraded: bool = False


class ChatMessageItem(BaseModel):
    id: str
    child_id: str | None
    sender_role: Literal["user", "assistant"]
    content: str
    timestamp: datetime
    message_kind: str
    sources: list[dict[str, Any]] = Field(default_factory=list)


class WelcomeResponse(BaseModel):
    message: str


class ProactiveResponse(BaseModel):
    created: list[ChatMessageItem]
