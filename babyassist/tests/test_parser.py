from __future__ import annotations

"""Answer and follow-up question parsing tests."""

from babyassist.rag.parser import normalize_text, parse_answer


def test_parse_answer_with_follow_ups() -> None:
    parsed = parse_answer(
        "Answer: Feed on demand.\n\nFollow-up questions:\n• How often?\n• What about at night?"
    )

    assert parsed.answer_body == "Feed on demand."
    assert parsed.follow_up_questions == ["How often?", "What about at night?"]


def test_parse_plain_text() -> None:
    parsed = parse_answer("Just a plain sentence.")

    assert parsed.answer_body == "Just a plain sentence."
    assert parsed.follow_up_questions == []


def test_parse_repairs_mis_encoded_bullets() -> None:
    parsed = parse_answer("Answer: Try a routine.\nFollow-up questions:\nâ€¢ When?\nâ€¢ How long?")

    assert parsed.follow_up_questions == ["When?", "How long?"]


def test_parse_discards_empty_fragments() -> None:
    parsed = parse_answer("Answer: Yes.\nFollow-up questions:\n•\n•   \n• Next one?\n")

    assert parsed.follow_up_questions == ["Next one?"]


def test_parse_without_answer_label() -> None:
    parsed = parse_answer("  Rest well.  Follow-up questions: • Why?")

    assert parsed.answer_body == "Rest well."
    assert parsed.follow_up_questions == ["Why?"]


def test_parse_splits_only_on_first_marker() -> None:
    parsed = parse_answer("Answer: A\nFollow-up questions:\n• B\nFollow-up questions: • C")

    assert parsed.answer_body == "A"
    assert parsed.follow_up_questions == ["B\nFollow-up questions:", "C"]


def test_parse_keeps_section_whole_without_bullet() -> None:
    parsed = parse_answer("Answer: Ok.\nFollow-up questions:\n1. How often?\n2. When?\n")

    assert parsed.answer_body == "Ok."
    assert parsed.follow_up_questions == ["1. How often?\n2. When?"]


def test_parse_with_custom_bullet() -> None:
    parsed = parse_answer("Answer: Ok.\nFollow-up questions:\n* One?\n* Two?", bullet="*")

    assert parsed.follow_up_questions == ["One?", "Two?"]


def test_parse_is_total_for_odd_input() -> None:
    assert parse_answer("").answer_body == ""
    assert parse_answer(None).follow_up_questions == []
    assert parse_answer("Follow-up questions:").answer_body == ""


def test_normalize_text_composes_unicode() -> None:
    assert normalize_text("cafe\u0301") == "caf\u00e9"
