from __future__ import annotations

"""In-memory repositories for children and chat messages."""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any

from babyassist.store.models import (
    ChatMessageRecord,
    ChatMessageRepository,
    ChildRecord,
    ChildRepository,
    new_id,
    utcnow,
)

logger = logging.getLogger(__name__)

CHILD_UPDATABLE_FIELDS = frozenset(
    {"name", "birthday", "gender", "photo_url", "last_milestone_check"}
)


class InMemoryChildRepository(ChildRepository):
    """Child storage held in process memory."""
    def __init__(self) -> None:
        self._children: dict[str, ChildRecord] = {}
        self._lock = threading.Lock()

    def create(
        self,
        name: str,
        birthday: str,
        created_by: str,
        gender: str | None = None,
        photo_url: str | None = None,
    ) -> ChildRecord:
        child = ChildRecord(
            id=new_id("child"),
            name=name,
            birthday=birthday,
            created_by=created_by,
            created_date=utcnow(),
            gender=gender,
            photo_url=photo_url,
        )
        with self._lock:
            self._children[child.id] = child
        logger.info("child_created", extra={"child_id": child.id})
        return child

    def get(self, child_id: str) -> ChildRecord | None:
        return self._children.get(child_id)

    def filter(self, created_by: str | None = None) -> list[ChildRecord]:
        with self._lock:
            children = list(self._children.values())
        if created_by:
            children = [child for child in children if child.created_by == created_by]
        return sorted(children, key=lambda child: child.created_date, reverse=True)

    def update(self, child_id: str, **changes: Any) -> ChildRecord | None:
        unknown = set(changes) - CHILD_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported child fields: {sorted(unknown)}")
        with self._lock:
            child = self._children.get(child_id)
            if child is None:
                return None
            updated = replace(child, **changes)
            self._children[child_id] = updated
        return updated

    def delete(self, child_id: str) -> bool:
        with self._lock:
            return self._children.pop(child_id, None) is not None


class InMemoryChatMessageRepository(ChatMessageRepository):
    """Append-only chat history held in process memory."""
    def __init__(self) -> None:
        self._messages: list[ChatMessageRecord] = []
        self._lock = threading.Lock()

    def create(
        self,
        child_id: str | None,
        sender_role: str,
        content: str,
        message_kind: str = "chat",
        sources: list[dict[str, Any]] | None = None,
        timestamp: datetime | None = None,
    ) -> ChatMessageRecord:
        message = ChatMessageRecord(
            id=new_id("msg"),
            child_id=child_id,
            sender_role=sender_role,
            content=content,
            timestamp=timestamp or utcnow(),
            message_kind=message_kind,
            sources=list(sources or []),
        )
        with self._lock:
            self._messages.append(message)
        return message

    def get(self, message_id: str) -> ChatMessageRecord | None:
        return next((msg for msg in self._messages if msg.id == message_id), None)

    def filter(
        self,
        child_id: str | None = None,
        message_kind: str | None = None,
        newest_first: bool = False,
    ) -> list[ChatMessageRecord]:
        with self._lock:
            messages = list(self._messages)
        if child_id:
            messages = [msg for msg in messages if msg.child_id == child_id]
        if message_kind:
            messages = [msg for msg in messages if msg.message_kind == message_kind]
        if newest_first:
            messages.sort(key=lambda msg: msg.timestamp, reverse=True)
        return messages

    def delete(self, message_id: str) -> bool:
        with self._lock:
            for idx, msg in enumerate(self._messages):
                if msg.id == message_id:
                    del self._messages[idx]
                    return True
        return False
