from __future__ import annotations

"""SQL persistence for children and chat messages."""

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from babyassist.store.memory import CHILD_UPDATABLE_FIELDS
from babyassist.store.models import (
    ChatMessageRecord,
    ChatMessageRepository,
    ChildRecord,
    ChildRepository,
    StoreError,
    new_id,
    utcnow,
)


def _aware(value: datetime) -> datetime:
    """SQLite drops tzinfo; treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLStore(ChildRepository):
    """Store children in a SQL database and expose a message repository."""
    def __init__(self, connection_uri: str) -> None:
        """Initialize the store and ensure tables exist."""
        try:
            from sqlalchemy import (
                Column,
                DateTime,
                MetaData,
                String,
                Table,
                Text,
                create_engine,
            )
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise StoreError("sqlalchemy is required to use the SQL store") from exc

        self._engine = create_engine(connection_uri)
        self._metadata = MetaData()
        self._children = Table(
            "children",
            self._metadata,
            Column("id", String(64), primary_key=True),
            Column("name", String(255), nullable=False),
            Column("birthday", String(32), nullable=False),
            Column("created_by", String(255), nullable=False),
            Column("created_date", DateTime(timezone=True), nullable=False),
            Column("gender", String(32), nullable=True),
            Column("photo_url", Text, nullable=True),
            Column("last_milestone_check", String(32), nullable=True),
        )
        self._messages = Table(
            "chat_messages",
            self._metadata,
            Column("id", String(64), primary_key=True),
            Column("child_id", String(64), nullable=True, index=True),
            Column("sender_role", String(16), nullable=False),
            Column("content", Text, nullable=False),
            Column("timestamp", DateTime(timezone=True), nullable=False),
            Column("message_kind", String(32), nullable=False),
            Column("sources", Text, nullable=True),
        )
        self._metadata.create_all(self._engine)
        self.messages = SQLChatMessageRepository(self._engine, self._messages)

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
        with self._engine.begin() as conn:
            conn.execute(self._children.insert().values(**child.__dict__))
        return child

    def get(self, child_id: str) -> ChildRecord | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                self._children.select().where(self._children.c.id == child_id)
            ).mappings().first()
        return self._to_child(row) if row else None

    def filter(self, created_by: str | None = None) -> list[ChildRecord]:
        query = self._children.select().order_by(self._children.c.created_date.desc())
        if created_by:
            query = query.where(self._children.c.created_by == created_by)
        with self._engine.connect() as conn:
            rows = conn.execute(query).mappings().all()
        return [self._to_child(row) for row in rows]

    def update(self, child_id: str, **changes: Any) -> ChildRecord | None:
        unknown = set(changes) - CHILD_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported child fields: {sorted(unknown)}")
        child = self.get(child_id)
        if child is None:
            return None
        if changes:
            with self._engine.begin() as conn:
                conn.execute(
                    self._children.update()
                    .where(self._children.c.id == child_id)
                    .values(**changes)
                )
        return replace(child, **changes)

    def delete(self, child_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(
                self._children.delete().where(self._children.c.id == child_id)
            )
        return result.rowcount > 0

    @staticmethod
    def _to_child(row: Any) -> ChildRecord:
        return ChildRecord(
            id=row["id"],
            name=row["name"],
            birthday=row["birthday"],
            created_by=row["created_by"],
            created_date=_aware(row["created_date"]),
            gender=row["gender"],
            photo_url=row["photo_url"],
            last_milestone_check=row["last_milestone_check"],
        )


class SQLChatMessageRepository(ChatMessageRepository):
    """Chat history stored in the ``chat_messages`` table."""
    def __init__(self, engine: Any, table: Any) -> None:
        self._engine = engine
        self._table = table

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
        payload = {
            **message.__dict__,
            "sources": json.dumps(message.sources, ensure_ascii=True, default=str),
        }
        with self._engine.begin() as conn:
            conn.execute(self._table.insert().values(**payload))
        return message

    def get(self, message_id: str) -> ChatMessageRecord | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                self._table.select().where(self._table.c.id == message_id)
            ).mappings().first()
        return self._to_message(row) if row else None

    def filter(
        self,
        child_id: str | None = None,
        message_kind: str | None = None,
        newest_first: bool = False,
    ) -> list[ChatMessageRecord]:
        query = self._table.select()
        if child_id:
            query = query.where(self._table.c.child_id == child_id)
        if message_kind:
            query = query.where(self._table.c.message_kind == message_kind)
        if newest_first:
            query = query.order_by(self._table.c.timestamp.desc())
        else:
            query = query.order_by(self._table.c.timestamp.asc())
        with self._engine.connect() as conn:
            rows = conn.execute(query).mappings().all()
        return [self._to_message(row) for row in rows]

    def delete(self, message_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(self._table.delete().where(self._table.c.id == message_id))
        return result.rowcount > 0

    @staticmethod
    def _to_message(row: Any) -> ChatMessageRecord:
        sources = json.loads(row["sources"]) if row["sources"] else []
        return ChatMessageRecord(
            id=row["id"],
            child_id=row["child_id"],
            sender_role=row["sender_role"],
            content=row["content"],
            timestamp=_aware(row["timestamp"]),
            message_kind=row["message_kind"],
            sources=sources,
        )
