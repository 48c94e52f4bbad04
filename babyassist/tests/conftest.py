from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from datetime import date
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["BABY_COMPOSER"] = "rule"
os.environ.pop("BABY_DATABASE_URI", None)
os.environ.pop("BABY_CORPUS_PATH", None)
os.environ.pop("OPENAI_API_KEY", None)
os.environ.setdefault("BABY_METRICS_ENABLED", "true")

from babyassist.rag.types import Document  # noqa: E402


@pytest.fixture
def sample_documents() -> list[Document]:
    return [
        Document(
            doc_id="dev-0-3",
            title="Development 0-3 Months",
            content="Newborns lift their head and smile.",
            url="https://example.org/dev-0-3",
            category="development",
            age_range="0-3 months",
        ),
        Document(
            doc_id="dev-6-9",
            title="Development 6-9 Months",
            content="Sitting up and crawling begin.",
            url="https://example.org/dev-6-9",
            category="development",
            age_range="6-9 months",
        ),
        Document(
            doc_id="dev-9-plus",
            title="Development Nine Plus",
            content="Standing and first steps.",
            url="https://example.org/dev-9-plus",
            category="development",
            age_range="9+ months",
        ),
        Document(
            doc_id="sleep",
            title="Safe Sleep",
            content="Put baby on their back to sleep in a cot.",
            url="https://example.org/sleep",
            category="sleep",
            age_range="0+ months",
        ),
        Document(
            doc_id="feeding",
            title="Feeding Basics",
            content="Feed on demand and watch for hunger cues.",
            url="https://example.org/feeding",
            category="feeding",
        ),
    ]


@pytest.fixture
def today() -> date:
    return date(2024, 7, 15)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
