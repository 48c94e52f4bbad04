from __future__ import annotations

"""Rule-based composer and welcome message tests."""

from datetime import date

import pytest

from babyassist.rag.answerer import (
    NO_DOCUMENTS_MESSAGE,
    RuleBasedComposer,
    classify_topic,
    welcome_message,
)
from babyassist.rag.parser import parse_answer
from babyassist.rag.types import ChildContext, Document

pytestmark = pytest.mark.anyio


async def test_empty_documents_returns_apology(sample_documents) -> None:
    response = await RuleBasedComposer().compose("xyzzy unrelated nonsense", None, [])

    assert response.raw_text == NO_DOCUMENTS_MESSAGE
    assert response.sources == ()


async def test_sleep_question_uses_sleep_template_with_name(sample_documents) -> None:
    child = ChildContext(name="Emma", birthday=date(2024, 1, 1))

    response = await RuleBasedComposer().compose(
        "How can I help my baby sleep better?", child, sample_documents[3:4]
    )

    assert "bedtime routine helps Emma settle" in response.raw_text
    parsed = parse_answer(response.raw_text)
    assert parsed.answer_body.startswith("A calm")
    assert parsed.follow_up_questions == [
        "How much sleep does Emma need?",
        "What bedtime routine works best?",
        "How do I handle night waking?",
    ]


async def test_missing_child_uses_generic_reference(sample_documents) -> None:
    response = await RuleBasedComposer().compose("feeding tips", None, sample_documents)

    assert "Feed your child on demand" in response.raw_text


async def test_unnamed_child_uses_generic_reference(sample_documents) -> None:
    child = ChildContext.from_record("  ", "2024-01-01")

    response = await RuleBasedComposer().compose("is my baby safe", child, sample_documents)

    assert "Keep your child safe" in response.raw_text


async def test_unmatched_topic_uses_generic_template(sample_documents) -> None:
    response = await RuleBasedComposer().compose("tell me something", None, sample_documents)

    assert response.raw_text.startswith("Answer: Here is some guidance")


async def test_sources_follow_document_order() -> None:
    documents = [
        Document(doc_id="b", title="B", content="x" * 200, url="https://example.org/b", category="health"),
        Document(doc_id="a", title="A", content="short", url="https://example.org/a", category="sleep"),
    ]

    response = await RuleBasedComposer().compose("doctor", None, documents)

    assert [source.title for source in response.sources] == ["B", "A"]
    assert response.sources[0].excerpt == "x" * 150 + "..."
    assert response.sources[1].excerpt == "short..."
    assert response.sources[1].url == "https://example.org/a"


@pytest.mark.parametrize(
    ("query", "topic"),
    [
        ("What milestones come next?", "development"),
        ("Milestones and sleep", "development"),
        ("bedtime battles", "sleep"),
        ("Is she eating enough?", "feeding"),
        ("Is the cot safe?", "safety"),
        ("He seems sick", "health"),
        ("random chat", None),
    ],
)
def test_classify_topic_priority(query, topic) -> None:
    assert classify_topic(query) == topic


def test_welcome_message_personalised() -> None:
    assert "Mia's development" in welcome_message(ChildContext(name="Mia"))
    assert welcome_message(None).startswith("Hello! I'm your AI parenting assistant.")
