from __future__ import annotations

"""Keyword retrieval over the corpus with an age-aware fallback."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from babyassist.rag.corpus import DocumentCorpus
from babyassist.rag.scoring import score
from babyassist.rag.types import ChildContext, Document, ScoredDocument

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r"(\d+)\s*-\s*(\d+)\s*months?", re.IGNORECASE)
_OPEN_RANGE_RE = re.compile(r"(\d+)\s*\+\s*months?", re.IGNORECASE)

FALLBACK_CATEGORY = "development"


def is_age_relevant(age_range: str | None, age_months: int) -> bool:
    """Return True when a document age range applies to a child's age."""
    if age_range is None or not str(age_range).strip():
        return True
    age_range = str(age_range)
    match = _RANGE_RE.search(age_range)
    if match:
        return int(match.group(1)) <= age_months <= int(match.group(2))
    match = _OPEN_RANGE_RE.search(age_range)
    if match:
        return age_months >= int(match.group(1))
    return False


@dataclass
class DocumentRetriever:
    corpus: DocumentCorpus
    scorer: Callable[[str, Document], int] = score
    default_limit: int = 3
    clock: Callable[[], date] = field(default=date.today)

    def score_documents(self, query: str) -> list[ScoredDocument]:
        """Score every document and keep candidates, best first."""
        scored = [ScoredDocument(document=doc, score=self.scorer(query, doc)) for doc in self.corpus]
        candidates = [item for item in scored if item.score > 0]
        # sorted() is stable, so ties keep corpus order.
        return sorted(candidates, key=lambda item: item.score, reverse=True)

    def retrieve_scored(
        self,
        query: str,
        child: ChildContext | None = None,
        limit: int | None = None,
    ) -> list[ScoredDocument]:
        """Return ranked documents with scores; fallback documents score 0."""
        if limit is None:
            limit = self.default_limit
        if limit <= 0:
            return []
        ranked = self.score_documents(query)
        if ranked:
            results = ranked[:limit]
            fallback = False
        else:
            results = [
                ScoredDocument(document=doc, score=0)
                for doc in self.age_fallback(child)[:limit]
            ]
            fallback = True
        logger.info(
            "retrieval_complete",
            extra={
                "results": len(results),
                "query_length": len(query),
                "fallback": fallback,
            },
        )
        return results

    def retrieve(
        self,
        query: str,
        child: ChildContext | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        return [item.document for item in self.retrieve_scored(query, child, limit)]

    def age_fallback(self, child: ChildContext | None) -> list[Document]:
        """Development documents matching the child's age, in corpus order."""
        if child is None:
            return []
        age = child.age_in_months(self.clock())
        if age is None:
            return []
        return [
            doc
            for doc in self.corpus
            if doc.category == FALLBACK_CATEGORY and is_age_relevant(doc.age_range, age)
        ]
