from __future__ import annotations

"""Citation helpers for attaching sources to answers."""

from typing import Iterable

from babyassist.rag.types import Document, SourceRef

EXCERPT_CHARS = 150


def build_excerpt(content: str, max_chars: int = EXCERPT_CHARS) -> str:
    """Return the first characters of a document followed by an ellipsis."""
    return content[:max_chars] + "..."


def build_sources(documents: Iterable[Document]) -> tuple[SourceRef, ...]:
    """Build source references in the order of the given documents."""
    return tuple(
        SourceRef(
            title=doc.title,
            url=doc.url,
            excerpt=build_excerpt(doc.content),
            category=doc.category,
        )
        for doc in documents
    )
