from __future__ import annotations

"""Reference document corpus for parenting questions."""

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator

from babyassist.rag.types import CATEGORIES, Document

logger = logging.getLogger(__name__)


class CorpusError(ValueError):
    """Raised when corpus documents are invalid."""
    pass


DEFAULT_DOCUMENTS: tuple[Document, ...] = (
    Document(
        doc_id="development-0-3",
        title="Baby Development 0-3 Months",
        url="https://www.qld.gov.au/health/condition/child-health/babies-and-toddlers/how-your-baby-develops-from-0-to-3-months",
        category="development",
        age_range="0-3 months",
        content=(
            "In the first three months your baby starts to lift their head during tummy time, "
            "follows faces with their eyes and begins to smile back at you. Crying is the main "
            "way they communicate, and cooing sounds usually appear by the end of this stage. "
            "Hold, talk and sing to your baby often to support bonding and early development."
        ),
    ),
    Document(
        doc_id="development-3-6",
        title="Baby Development 3-6 Months",
        url="https://www.qld.gov.au/health/condition/child-health/babies-and-toddlers/how-your-baby-develops-3-6-months",
        category="development",
        age_range="3-6 months",
        content=(
            "Between three and six months babies roll from tummy to back, reach for toys and "
            "bring objects to their mouth. They laugh, babble and respond to their own name. "
            "Give plenty of floor play and offer toys just out of reach to encourage movement."
        ),
    ),
    Document(
        doc_id="development-6-9",
        title="Baby Development 6-9 Months",
        url="https://www.qld.gov.au/health/condition/child-health/babies-and-toddlers/how-your-baby-develops-6-9-months",
        category="development",
        age_range="6-9 months",
        content=(
            "From six to nine months most babies learn to sit without support, pass toys from "
            "hand to hand and may start to crawl. Stranger awareness is common. Babbling turns "
            "into repeated sounds like mama and dada, and games such as peekaboo become fun."
        ),
    ),
    Document(
        doc_id="development-9-12",
        title="Baby Development 9-12 Months",
        url="https://www.qld.gov.au/health/condition/child-health/babies-and-toddlers/how-your-baby-develops-9-12-months",
        category="development",
        age_range="9-12 months",
        content=(
            "Between nine and twelve months babies pull up to stand, cruise along furniture and "
            "may take first steps. They point, wave and understand simple words like no. "
            "Finger foods help practise the pincer grasp used to pick up small pieces."
        ),
    ),
    Document(
        doc_id="safe-sleep",
        title="Safe Sleeping for Babies",
        url="https://rednose.org.au/section/safe-sleeping",
        category="sleep",
        age_range="0+ months",
        content=(
            "Always put your baby on their back to sleep, with the face and head uncovered. "
            "Use a firm, flat mattress in a safe cot with no pillows, bumpers or soft toys. "
            "Keep baby smoke free before and after birth, and share a room with your baby for "
            "the first six to twelve months. A calm bedtime routine helps babies settle."
        ),
    ),
    Document(
        doc_id="teething",
        title="Teething Guide",
        url="https://www.qld.gov.au/health/condition/child-health/babies-and-toddlers/teething",
        category="health",
        age_range="3+ months",
        content=(
            "Teething usually starts around six months, although first teeth can appear "
            "earlier or later. Signs include drooling, red cheeks and chewing on hands. "
            "A cold teething ring can soothe sore gums. See a doctor if your baby has a high "
            "fever, because teething does not cause serious illness."
        ),
    ),
    Document(
        doc_id="breastfeeding",
        title="Breastfeeding Support",
        url="https://www.health.nsw.gov.au/kidsfamilies/MCFhealth/child/Pages/breastfeeding.aspx",
        category="feeding",
        age_range="0+ months",
        content=(
            "Breastfeed on demand, watching for early feeding cues such as rooting and sucking "
            "on hands. Newborns usually feed eight to twelve times in 24 hours. Good "
            "attachment prevents sore nipples. Ask a child health nurse or lactation "
            "consultant for help if feeding is painful or your baby is not gaining weight."
        ),
    ),
    Document(
        doc_id="starting-solids",
        title="Starting Solid Foods",
        url="https://www.health.nsw.gov.au/kidsfamilies/MCFhealth/child/Pages/starting-solids.aspx",
        category="feeding",
        age_range="6+ months",
        content=(
            "Around six months babies are ready for solid food when they can sit with support "
            "and show interest in eating. Start with iron rich foods like meat, tofu or iron "
            "fortified cereal, then offer a variety of textures. Keep breastmilk or formula as "
            "the main drink in the first year."
        ),
    ),
    Document(
        doc_id="home-safety",
        title="Home Safety for Crawling Babies",
        url="https://www.kidsafe.com.au/home-safety",
        category="safety",
        age_range="6+ months",
        content=(
            "Once babies crawl, block stairs with safety gates, anchor heavy furniture to the "
            "wall and cover power points. Keep medicines, cleaning products and button "
            "batteries locked away. Always supervise bath time and never leave a baby alone "
            "on a change table."
        ),
    ),
    Document(
        doc_id="talking-with-baby",
        title="Talking with Your Baby",
        url="https://raisingchildren.net.au/babies/development/language-development/language-development-0-12-months",
        category="language",
        age_range="0+ months",
        content=(
            "Babies learn language by listening to you. Talk about what you are doing, read "
            "picture books together and copy the sounds your baby makes. Most babies say "
            "their first word around twelve months, and understanding comes before speaking."
        ),
    ),
    Document(
        doc_id="immunisation",
        title="Immunization Schedule",
        url="https://www.health.gov.au/topics/immunisation/when-to-get-vaccinated/immunisation-for-infants-and-children",
        category="health",
        age_range="0+ months",
        content=(
            "Free vaccines are given at birth, six weeks, four months, six months, twelve "
            "months and eighteen months. Keeping to the schedule protects your baby from "
            "serious diseases such as whooping cough and measles. Mild fever or soreness "
            "after a vaccine is common and passes quickly."
        ),
    ),
)


class DocumentCorpus:
    """Immutable, ordered collection of reference documents."""

    def __init__(self, documents: Iterable[Document]) -> None:
        docs = tuple(documents)
        seen: set[str] = set()
        for doc in docs:
            if doc.doc_id in seen:
                raise CorpusError(f"Duplicate document id: {doc.doc_id}")
            seen.add(doc.doc_id)
            if doc.category not in CATEGORIES:
                logger.warning(
                    "corpus_unknown_category",
                    extra={"doc_id": doc.doc_id, "category": doc.category},
                )
        self._documents = docs

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    def get(self, doc_id: str) -> Document | None:
        return next((doc for doc in self._documents if doc.doc_id == doc_id), None)

    def by_category(self, category: str, age_range: str | None = None) -> list[Document]:
        """Return documents of a category, optionally with an exact age range."""
        wanted = category.strip().lower()
        return [
            doc
            for doc in self._documents
            if doc.category == wanted and (age_range is None or doc.age_range == age_range)
        ]


def default_corpus() -> DocumentCorpus:
    return DocumentCorpus(DEFAULT_DOCUMENTS)


def load_corpus(path: str | Path) -> DocumentCorpus:
    """Load a corpus from a JSON array of document objects."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CorpusError(f"Unable to read corpus file {path}: {exc}") from exc
    if not isinstance(raw, list):
        raise CorpusError("Corpus file must contain a JSON array")
    documents: list[Document] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise CorpusError(f"Corpus entry {idx} is not an object")
        age_range = item.get("age_range", item.get("ageRange"))
        if age_range is not None and not isinstance(age_range, str):
            raise CorpusError(f"Corpus entry {idx} has a non-text age_range")
        try:
            documents.append(
                Document(
                    doc_id=str(item.get("id") or item["doc_id"]),
                    title=str(item["title"]),
                    content=str(item.get("content", "")),
                    url=str(item["url"]),
                    category=str(item["category"]).strip().lower(),
                    age_range=age_range or None,
                )
            )
        except KeyError as exc:
            raise CorpusError(f"Corpus entry {idx} is missing {exc}") from exc
    logger.info("corpus_loaded", extra={"path": str(path), "documents": len(documents)})
    return DocumentCorpus(documents)
