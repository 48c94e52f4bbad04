from __future__ import annotations

"""Child and chat message records plus the repository interfaces."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from babyassist.rag.types import ChildContext

SENDER_ROLES = ("user", "assistant")
MESSAGE_KINDS = ("chat", "welcome", "milestone_update", "weekly_check", "celebration")


class StoreError(RuntimeError):
    """Raised when record persistence fails."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ChildRecord:
    """Tracked child."""
    id: str
    name: str
    birthday: str
    created_by: str
    created_date: datetime
    gender: str | None = None
    photo_url: str | None = None
    last_milestone_check: str | None = None

    def context(self) -> ChildContext:
        return ChildContext.from_record(self.name, self.birthday)


@dataclass(frozen=True)
class ChatMessageRecord:
    """Single message in a child's chat history."""
    id: str
    child_id: str | None
    sender_role: str
    content: str
    timestamp: datetime
    message_kind: str = "chat"
    sources: list[dict[str, Any]] = field(default_factory=list)


class ChildRepository:
    """Base class for child storage."""
    def create(
        self,
        name: str,
        birthday: str,
        created_by: str,
        gender: str | None = None,
        photo_url: str | None = None,
    ) -> ChildRecord:
        raise NotImplementedError

    def get(self, child_id: str) -> ChildRecord | None:
        raise NotImplementedError

    def filter(self, created_by: str | None = None) -> list[ChildRecord]:
        """Return children, newest first."""
        raise NotImplementedError

    def update(self, child_id: str, **changes: Any) -> ChildRecord | None:
        raise NotImplementedError

    def delete(self, child_id: str) -> bool:
        raise NotImplementedError


class ChatMessageRepository:
    """Base class for append-only chat message storage."""
    def create(
        self,
        child_id: str | None,
        sender_role: str,
        content: str,
        message_kind: str = "chat",
        sources: list[dict[str, Any]] | None = None,
        timestamp: datetime | None = None,
    ) -> ChatMessageRecord:
        raise NotImplementedError

    def get(self, message_id: str) -> ChatMessageRecord | None:
        raise NotImplementedError

    def filter(
        self,
        child_id: str | None = None,
        message_kind: str | None = None,
        newest_first: bool = False,
    ) -> list[ChatMessageRecord]:
        raise NotImplementedError

    def delete(self, message_id: str) -> bool:
        raise NotImplementedError
