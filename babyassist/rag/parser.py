from __future__ import annotations

"""Split composed answers into an answer body and follow-up questions."""

import unicodedata

from babyassist.rag.types import ParsedAnswer

ANSWER_LABEL = "Answer:"
FOLLOW_UP_MARKER = "Follow-up questions:"
DEFAULT_BULLET = "•"

# UTF-8 bullet bytes decoded as cp1252/latin-1.
_MOJIBAKE = {
    "â€¢": DEFAULT_BULLET,
    "â\u0080¢": DEFAULT_BULLET,
}


def normalize_text(text: str) -> str:
    """Repair mis-encoded bullets and apply NFC normalization."""
    for broken, fixed in _MOJIBAKE.items():
        text = text.replace(broken, fixed)
    return unicodedata.normalize("NFC", text)


def parse_answer(raw_text: str | None, bullet: str = DEFAULT_BULLET) -> ParsedAnswer:
    """Parse ``Answer: ... Follow-up questions: • q1 • q2`` text.

    Never raises; text without the follow-up marker is returned whole.
    """
    if not isinstance(raw_text, str):
        return ParsedAnswer(answer_body="", follow_up_questions=[])
    text = normalize_text(raw_text)
    bullet = normalize_text(bullet or DEFAULT_BULLET)
    if FOLLOW_UP_MARKER not in text:
        return ParsedAnswer(answer_body=text.strip(), follow_up_questions=[])

    head, tail = text.split(FOLLOW_UP_MARKER, 1)
    body = head.strip()
    if body.startswith(ANSWER_LABEL):
        body = body[len(ANSWER_LABEL):].strip()
    return ParsedAnswer(answer_body=body, follow_up_questions=_split_questions(tail, bullet))


def _split_questions(section: str, bullet: str) -> list[str]:
    return [fragment.strip() for fragment in section.split(bullet) if fragment.strip()]
