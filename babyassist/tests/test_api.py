from __future__ import annotations

import os
from datetime import date, timedelta

import httpx
import pytest

os.environ["BABY_COMPOSER"] = "rule"
os.environ["BABY_RETRIEVAL_LIMIT"] = "3"
os.environ["BABY_METRICS_ENABLED"] = "true"
os.environ.pop("BABY_DATABASE_URI", None)
os.environ.pop("BABY_CORPUS_PATH", None)

from babyassist.app.dependencies import reset_pipeline_cache
from babyassist.app.main import app
from babyassist.rag.answerer import NO_DOCUMENTS_MESSAGE

pytestmark = pytest.mark.anyio


def get_client() -> httpx.AsyncClient:
    reset_pipeline_cache()
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


async def create_child(client: httpx.AsyncClient, name: str = "Emma", birthday: date | None = None) -> dict:
    birthday = birthday or date.today() - timedelta(days=200)
    response = await client.post("/children", json={"name": name, "birthday": birthday.isoformat()})
    assert response.status_code == 201
    return response.json()


async def test_health_endpoint() -> None:
    async with get_client() as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


async def test_child_lifecycle() -> None:
    async with get_client() as client:
        child = await create_child(client, name="  Leo  ")
        listed = await client.get("/children")
        fetched = await client.get(f"/children/{child['id']}")
        deleted = await client.delete(f"/children/{child['id']}")
        missing = await client.get(f"/children/{child['id']}")

    assert child["name"] == "Leo"
    assert child["age_months"] >= 6
    assert [item["id"] for item in listed.json()] == [child["id"]]
    assert fetched.json()["created_by"] == "parent@example.com"
    assert deleted.status_code == 204
    assert missing.status_code == 404


async def test_create_child_rejects_invalid_birthday() -> None:
    async with get_client() as client:
        response = await client.post("/children", json={"name": "Emma", "birthday": "not-a-date"})
    assert response.status_code == 422


async def test_chat_with_child_answers_and_records_history() -> None:
    async with get_client() as client:
        child = await create_child(client)
        response = await client.post(
            "/chat",
            json={"message": "How can I help my baby sleep better?", "child_id": child["id"]},
        )
        history = await client.get(f"/chat/{child['id']}/messages")

    assert response.status_code == 200
    payload = response.json()
    assert "Emma" in payload["answer"]
    assert len(payload["follow_up_questions"]) == 3
    assert payload["sources"][0]["url"] == "https://rednose.org.au/section/safe-sleeping"
    assert payload["composer"] == "rule"
    assert payload["degraded"] is False

    messages = history.json()
    assert [item["sender_role"] for item in messages] == ["user", "assistant"]
    assert messages[1]["id"] == payload["message_id"]
    assert messages[1]["sources"][0]["title"] == payload["sources"][0]["title"]


async def test_chat_without_matches_returns_apology() -> None:
    async with get_client() as client:
        response = await client.post("/chat", json={"message": "xyzzy unrelated nonsense"})

    payload = response.json()
    assert payload["answer"] == NO_DOCUMENTS_MESSAGE
    assert payload["follow_up_questions"] == []
    assert payload["sources"] == []


async def test_chat_unknown_child_returns_404() -> None:
    async with get_client() as client:
        response = await client.post("/chat", json={"message": "sleep", "child_id": "child-missing"})
    assert response.status_code == 404


async def test_welcome_message_uses_child_name() -> None:
    async with get_client() as client:
        child = await create_child(client, name="Mia")
        response = await client.get(f"/chat/{child['id']}/welcome")

    assert response.status_code == 200
    assert "Mia's development" in response.json()["message"]


async def test_retrieve_returns_scored_documents() -> None:
    async with get_client() as client:
        response = await client.post("/retrieve", json={"query": "safe sleep cot mattress", "limit": 2})

    documents = response.json()["documents"]
    assert len(documents) <= 2
    assert documents[0]["id"] == "safe-sleep"
    assert documents[0]["score"] >= 3


async def test_proactive_messages_created_once() -> None:
    async with get_client() as client:
        child = await create_child(client, birthday=date.today() - timedelta(days=60))
        first = await client.post(f"/children/{child['id']}/proactive")
        second = await client.post(f"/children/{child['id']}/proactive")

    kinds = [item["message_kind"] for item in first.json()["created"]]
    assert "weekly_check" in kinds
    assert second.json()["created"] == []


async def test_metrics_endpoint() -> None:
    async with get_client() as client:
        await client.get("/health")
        response = await client.get("/metrics")

    assert response.status_code == 200
    assert "babyassist_http_requests_total" in response.text
