from __future__ import annotations

"""Core data types for documents, child context and composed answers."""

from dataclasses import dataclass, field
from datetime import date, datetime


CATEGORIES = frozenset({"development", "sleep", "feeding", "safety", "language", "health"})


@dataclass(frozen=True)
class Document:
    """Reference document in the corpus."""
    doc_id: str
    title: str
    content: str
    url: str
    category: str
    age_range: str | None = None


@dataclass(frozen=True)
class ScoredDocument:
    """Document with its keyword relevance score."""
    document: Document
    score: int


@dataclass(frozen=True)
class ChildContext:
    """Read-only view of the child a question is about."""
    name: str | None = None
    birthday: date | None = None

    @classmethod
    def from_record(cls, name: str | None, birthday: str | date | None) -> "ChildContext":
        """Build a context from raw values, treating a bad birthday as unknown."""
        return cls(name=(name or "").strip() or None, birthday=parse_date(birthday))

    def age_in_months(self, today: date | None = None) -> int | None:
        """Return whole calendar months since birth, or None when unknown."""
        if self.birthday is None:
            return None
        today = today or date.today()
        months = (today.year * 12 + today.month) - (self.birthday.year * 12 + self.birthday.month)
        return max(0, months)

    def display_name(self) -> str:
        return self.name or "your child"


def parse_date(value: str | date | None) -> date | None:
    """Parse an ISO-8601 date (or datetime) string; return None when unusable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class SourceRef:
    """Source reference rendered under an answer."""
    title: str
    url: str
    excerpt: str
    category: str


@dataclass(frozen=True)
class ComposedResponse:
    """Text produced for a query together with its sources."""
    raw_text: str
    sources: tuple[SourceRef, ...] = ()
    degraded: bool = False


@dataclass(frozen=True)
class ParsedAnswer:
    """Answer body and suggested follow-up questions."""
    answer_body: str
    follow_up_questions: list[str] = field(default_factory=list)
