from __future__ import annotations

"""Chat pipeline tests covering retrieval, composition and history."""

from datetime import date

import pytest

from babyassist.rag.answerer import DEGRADED_MESSAGE, NO_DOCUMENTS_MESSAGE, RuleBasedComposer
from babyassist.rag.corpus import DocumentCorpus
from babyassist.rag.llm import GenerativeComposer, LLMError, TextGenerator
from babyassist.rag.pipeline import ChatPipeline
from babyassist.rag.retriever import DocumentRetriever
from babyassist.store.memory import InMemoryChatMessageRepository, InMemoryChildRepository

pytestmark = pytest.mark.anyio


class FailingGenerator(TextGenerator):
    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        raise LLMError("offline")


def build_pipeline(documents, composer=None) -> ChatPipeline:
    return ChatPipeline(
        retriever=DocumentRetriever(corpus=DocumentCorpus(documents), clock=lambda: date(2024, 7, 15)),
        composer=composer or RuleBasedComposer(),
        children=InMemoryChildRepository(),
        messages=InMemoryChatMessageRepository(),
    )


async def test_ask_answers_and_records_history(sample_documents) -> None:
    pipeline = build_pipeline(sample_documents)
    child = pipeline.children.create(name="Emma", birthday="2023-12-01", created_by="parent@example.com")

    turn = await pipeline.ask("How can I help my baby sleep better?", child_id=child.id)

    assert "Emma" in turn.answer
    assert len(turn.follow_up_questions) == 3
    assert turn.sources[0].title == "Safe Sleep"
    history = pipeline.messages.filter(child_id=child.id)
    assert [msg.sender_role for msg in history] == ["user", "assistant"]
    assert history[1].id == turn.message.id
    assert history[1].sources[0]["url"] == "https://example.org/sleep"


async def test_ask_without_matches_returns_apology(sample_documents) -> None:
    pipeline = build_pipeline(sample_documents)

    turn = await pipeline.ask("xyzzy unrelated nonsense")

    assert turn.answer == NO_DOCUMENTS_MESSAGE
    assert turn.follow_up_questions == []
    assert turn.sources == []


async def test_ask_uses_age_fallback_for_known_child(sample_documents) -> None:
    pipeline = build_pipeline(sample_documents)
    child = pipeline.children.create(name="Leo", birthday="2023-11-02", created_by="parent@example.com")

    turn = await pipeline.ask("xyzzy", child_id=child.id)

    assert [source.title for source in turn.sources] == ["Development 6-9 Months"]


async def test_unknown_child_is_treated_as_no_context(sample_documents) -> None:
    pipeline = build_pipeline(sample_documents)

    turn = await pipeline.ask("feeding", child_id="child-missing")

    assert "your child" in turn.answer


async def test_generation_failure_yields_degraded_turn(sample_documents) -> None:
    pipeline = build_pipeline(sample_documents, GenerativeComposer(generator=FailingGenerator()))

    turn = await pipeline.ask("sleep")

    assert turn.answer == DEGRADED_MESSAGE
    assert turn.degraded is True
    assert turn.sources == []
