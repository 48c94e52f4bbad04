from __future__ import annotations

"""Response composers and the rule-based answer templates."""

import logging
from dataclasses import dataclass
from typing import Sequence

from babyassist.rag.citations import build_sources
from babyassist.rag.types import ChildContext, ComposedResponse, Document

logger = logging.getLogger(__name__)


NO_DOCUMENTS_MESSAGE = (
    "I couldn't find specific guidance on that in my parenting resources. "
    "Try asking about milestones, sleep, feeding, safety or health, "
    "or check with your child health nurse or doctor."
)

DEGRADED_MESSAGE = (
    "I'm having trouble accessing my knowledge base right now. "
    "Please try again in a moment."
)

# Checked in order; the first group with a keyword in the query wins.
TOPIC_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("development", ("milestone", "development")),
    ("sleep", ("sleep", "bedtime")),
    ("feeding", ("feed", "food", "eating")),
    ("safety", ("safe", "safety")),
    ("health", ("doctor", "health", "sick")),
)

TOPIC_TEMPLATES: dict[str, str] = {
    "development": (
        "Answer: Every child develops at their own pace, and {name} will reach milestones "
        "in their own time. Plenty of floor play, talking and reading together support "
        "{name}'s development, and the resources below describe what to expect at this age.\n\n"
        "Follow-up questions:\n"
        "• What milestones should {name} reach next?\n"
        "• How can I encourage {name} to crawl or walk?\n"
        "• When should I talk to a doctor about delays?"
    ),
    "sleep": (
        "Answer: A calm, consistent bedtime routine helps {name} settle, and {name} should "
        "always sleep on their back in a safe cot with no pillows or soft toys. Dim lights "
        "and quiet wind-down time before bed signal that sleep is coming.\n\n"
        "Follow-up questions:\n"
        "• How much sleep does {name} need?\n"
        "• What bedtime routine works best?\n"
        "• How do I handle night waking?"
    ),
    "feeding": (
        "Answer: Feed {name} on demand and watch for hunger cues such as rooting or sucking "
        "on hands. Around six months, {name} can start iron-rich solid foods alongside "
        "breastmilk or formula.\n\n"
        "Follow-up questions:\n"
        "• How often should {name} feed?\n"
        "• Which first foods are best?\n"
        "• How do I know if {name} is getting enough?"
    ),
    "safety": (
        "Answer: Keep {name} safe by supervising closely, using safety gates and keeping "
        "medicines and small objects out of reach. Check each room from {name}'s height "
        "as they become more mobile.\n\n"
        "Follow-up questions:\n"
        "• How do I childproof my home?\n"
        "• What are the safest sleep practices?\n"
        "• Which toys are safe for {name}'s age?"
    ),
    "health": (
        "Answer: Trust your instincts about {name}'s health and see a doctor promptly for a "
        "high fever, breathing difficulty or fewer wet nappies. Keeping up with the "
        "immunisation schedule protects {name} from serious illness.\n\n"
        "Follow-up questions:\n"
        "• When is a fever a concern?\n"
        "• When are {name}'s next vaccinations due?\n"
        "• How can I soothe teething pain?"
    ),
}

GENERIC_TEMPLATE = (
    "Answer: Here is some guidance from trusted parenting resources that may help with "
    "{name}. Every child is different, so check the sources below and ask your child "
    "health nurse if you have concerns.\n\n"
    "Follow-up questions:\n"
    "• What milestones should {name} be reaching?\n"
    "• How can I support {name}'s sleep?\n"
    "• What should {name} be eating at this age?"
)


def classify_topic(query: str) -> str | None:
    """Return the first topic whose keywords appear in the query."""
    lowered = query.lower()
    for topic, keywords in TOPIC_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return topic
    return None


def welcome_message(child: ChildContext | None) -> str:
    """Return the greeting shown when a chat session opens."""
    if child is None or not child.name:
        return (
            "Hello! I'm your AI parenting assistant. Ask me anything about child "
            "development, sleep, feeding, or safety. I'll keep answers concise and "
            "suggest helpful follow-up questions."
        )
    return (
        f"Hi! I'm here to help with {child.name}'s development. Ask me about milestones, "
        "sleep, feeding, or safety. I'll give you focused answers and suggest what to ask next."
    )


class ResponseComposer:
    """Base class for response composers."""
    name = "base"

    async def compose(
        self,
        query: str,
        child: ChildContext | None,
        documents: Sequence[Document],
    ) -> ComposedResponse:
        """Return a composed response for the query and retrieved documents."""
        raise NotImplementedError


@dataclass(frozen=True)
class RuleBasedComposer(ResponseComposer):
    """Compose answers from topic templates without any external call."""
    name = "rule"

    async def compose(
        self,
        query: str,
        child: ChildContext | None,
        documents: Sequence[Document],
    ) -> ComposedResponse:
        """Fill the matching topic template with the child's name."""
        if not documents:
            return ComposedResponse(raw_text=NO_DOCUMENTS_MESSAGE, sources=())
        topic = classify_topic(query)
        template = TOPIC_TEMPLATES.get(topic, GENERIC_TEMPLATE) if topic else GENERIC_TEMPLATE
        name = child.display_name() if child else "your child"
        logger.debug("rule_composer_topic", extra={"topic": topic or "generic"})
        return ComposedResponse(
            raw_text=template.format(name=name),
            sources=build_sources(documents),
        )
