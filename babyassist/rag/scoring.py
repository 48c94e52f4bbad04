from __future__ import annotations

"""Keyword relevance scoring between a query and a document."""

from babyassist.rag.types import Document


def query_tokens(query: str) -> list[str]:
    """Return distinct lower-cased whitespace tokens in order of appearance."""
    seen: set[str] = set()
    tokens: list[str] = []
    for token in query.lower().split():
        if token in seen:
            continue
        seen.add(token)
        tokens.append(token)
    return tokens


def score(query: str, document: Document) -> int:
    """Count distinct query tokens contained in the document title and content."""
    haystack = f"{document.title} {document.content}".lower()
    return sum(1 for token in query_tokens(query) if token in haystack)
