from __future__ import annotations

"""Child and chat message repository tests."""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from babyassist.store.memory import InMemoryChatMessageRepository, InMemoryChildRepository
from babyassist.store.sql import SQLStore


@pytest.fixture(params=["memory", "sql"])
def repositories(request, tmp_path):
    if request.param == "memory":
        return InMemoryChildRepository(), InMemoryChatMessageRepository()
    store = SQLStore(f"sqlite:///{tmp_path / 'baby.db'}")
    return store, store.messages


def test_child_lifecycle(repositories) -> None:
    children, _ = repositories
    first = children.create(name="Emma", birthday="2024-01-15", created_by="a@example.com")
    second = children.create(name="Leo", birthday="2023-06-01", created_by="a@example.com", gender="male")
    children.create(name="Ava", birthday="2022-02-02", created_by="b@example.com")

    assert children.get(first.id).name == "Emma"
    assert {child.id for child in children.filter("a@example.com")} == {first.id, second.id}

    updated = children.update(first.id, last_milestone_check="2024-07-01")
    assert updated.last_milestone_check == "2024-07-01"
    assert children.get(first.id).last_milestone_check == "2024-07-01"
    assert children.get(first.id).context().name == "Emma"

    assert children.delete(first.id) is True
    assert children.get(first.id) is None
    assert children.delete(first.id) is False
    assert children.update("child-missing", name="X") is None


def test_child_update_rejects_unknown_fields(repositories) -> None:
    children, _ = repositories
    child = children.create(name="Emma", birthday="2024-01-15", created_by="a@example.com")

    with pytest.raises(ValueError):
        children.update(child.id, created_by="someone-else")


def test_message_filtering(repositories) -> None:
    _, messages = repositories
    base = datetime(2024, 7, 1, tzinfo=timezone.utc)
    first = messages.create("child-1", "user", "hello", timestamp=base)
    second = messages.create(
        "child-1",
        "assistant",
        "hi there",
        sources=[{"title": "Safe Sleep", "url": "https://example.org/sleep"}],
        timestamp=base + timedelta(minutes=1),
    )
    messages.create("child-1", "assistant", "weekly", message_kind="weekly_check", timestamp=base + timedelta(minutes=2))
    messages.create("child-2", "user", "other child", timestamp=base)

    chat = messages.filter(child_id="child-1", message_kind="chat")
    assert [msg.id for msg in chat] == [first.id, second.id]
    newest = messages.filter(child_id="child-1", newest_first=True)
    assert newest[0].message_kind == "weekly_check"
    assert messages.get(second.id).sources == [{"title": "Safe Sleep", "url": "https://example.org/sleep"}]
    assert messages.get(second.id).timestamp == base + timedelta(minutes=1)

    assert messages.delete(first.id) is True
    assert messages.get(first.id) is None


def test_sql_store_persists_rows(tmp_path) -> None:
    db_path = tmp_path / "baby.db"
    store = SQLStore(f"sqlite:///{db_path}")
    child = store.create(name="Emma", birthday="2024-01-15", created_by="a@example.com")
    store.messages.create(child.id, "user", "hello")

    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute("SELECT name, birthday FROM children WHERE id = ?", (child.id,)).fetchone()
        count = conn.execute("SELECT COUNT(*) FROM chat_messages").fetchone()[0]
    finally:
        conn.close()
    assert row == ("Emma", "2024-01-15")
    assert count == 1
