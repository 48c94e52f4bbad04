from __future__ import annotations

"""Proactive milestone, weekly check-in and celebration messages."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from babyassist.rag.llm import TextGenerator, build_system_prompt
from babyassist.rag.parser import DEFAULT_BULLET
from babyassist.rag.types import ChildContext, parse_date
from babyassist.store.models import (
    ChatMessageRecord,
    ChatMessageRepository,
    ChildRecord,
    ChildRepository,
)

logger = logging.getLogger(__name__)

MILESTONE_UPDATE = "milestone_update"
WEEKLY_CHECK = "weekly_check"
CELEBRATION = "celebration"

MILESTONE_INTERVAL_INFANT_DAYS = 14
MILESTONE_INTERVAL_TODDLER_DAYS = 30
WEEKLY_CHECK_MAX_MONTHS = 6


@dataclass(frozen=True)
class ChildAge:
    months: int
    weeks: int
    days: int


def child_age(birthday: date, today: date) -> ChildAge:
    months = ChildContext(birthday=birthday).age_in_months(today) or 0
    days = max(0, (today - birthday).days)
    return ChildAge(months=months, weeks=days // 7, days=days)


def start_of_week(today: date) -> date:
    """Return the Sunday on or before ``today``."""
    return today - timedelta(days=(today.weekday() + 1) % 7)


def _message_date(message: ChatMessageRecord) -> date:
    stamp = message.timestamp
    if stamp.tzinfo is not None:
        stamp = stamp.astimezone(timezone.utc)
    return stamp.date()


def milestone_update_due(child: ChildRecord, age: ChildAge, today: date) -> bool:
    last_check = parse_date(child.last_milestone_check) or child.created_date.date()
    interval = (
        MILESTONE_INTERVAL_INFANT_DAYS if age.months < 12 else MILESTONE_INTERVAL_TODDLER_DAYS
    )
    return (today - last_check).days >= interval


def weekly_check_due(age: ChildAge, sent: list[ChatMessageRecord], today: date) -> bool:
    if age.months >= WEEKLY_CHECK_MAX_MONTHS or age.weeks <= 0:
        return False
    week_start = start_of_week(today)
    return not any(_message_date(msg) >= week_start for msg in sent)


def celebration_due(
    birthday: date, age: ChildAge, sent: list[ChatMessageRecord], today: date
) -> bool:
    if today.day != birthday.day or age.months <= 0:
        return False
    return not any(
        (stamp.year, stamp.month) == (today.year, today.month)
        for stamp in (_message_date(msg) for msg in sent)
    )


def due_message_kinds(
    child: ChildRecord, messages: ChatMessageRepository, today: date
) -> list[str]:
    """Return the proactive message kinds due for a child today."""
    birthday = parse_date(child.birthday)
    if birthday is None:
        return []
    age = child_age(birthday, today)
    kinds: list[str] = []
    if milestone_update_due(child, age, today):
        kinds.append(MILESTONE_UPDATE)
    if weekly_check_due(age, messages.filter(child_id=child.id, message_kind=WEEKLY_CHECK), today):
        kinds.append(WEEKLY_CHECK)
    if celebration_due(
        birthday, age, messages.filter(child_id=child.id, message_kind=CELEBRATION), today
    ):
        kinds.append(CELEBRATION)
    return kinds


def build_proactive_prompt(kind: str, name: str, age: ChildAge, bullet: str = DEFAULT_BULLET) -> str:
    if kind == MILESTONE_UPDATE:
        return (
            f"Generate a brief, encouraging milestone update for {name} who is "
            f"{age.months} months ({age.days} days) old.\n\n"
            "Include:\n- 2-3 specific milestones they might be reaching soon\n"
            "- One practical tip for parents\n- Brief encouragement\n- Helpful references\n\n"
            "Keep it warm and concise (3-4 sentences), with references and links at the end.\n\n"
            "Format as:\n[Brief milestone info and tip]\n\n"
            f"**References:**\n{bullet} [Resource with link]\n{bullet} [Another resource with link]\n\n"
            "**Remember:** Every child develops at their own pace."
        )
    if kind == WEEKLY_CHECK:
        return (
            f"Generate a brief weekly check-in for {name} who is {age.weeks} weeks old.\n\n"
            "Include:\n- What's happening this week developmentally\n"
            "- One simple activity or tip\n- Brief encouragement for parents\n"
            "- Reference with link\n\n"
            "Keep it very short (2-3 sentences) and supportive.\n\n"
            "Format as:\n[Brief weekly insight and tip]\n\n"
            f"**References:**\n{bullet} [Helpful resource with link]\n\n"
            "**Remember:** You're doing great!"
        )
    if kind == CELEBRATION:
        return (
            f"Generate a celebration message for {name}'s {age.months}-month birthday!\n\n"
            "Include:\n- Celebration of how much they've grown\n"
            "- Highlight 1-2 major milestones they've likely achieved\n"
            "- Brief encouragement for parents\n- Reference with link\n\n"
            "Keep it joyful and brief (2-3 sentences).\n\n"
            "Format as:\n🎉 [Celebration message]\n\n"
            f"**References:**\n{bullet} [Development resource with link]\n\n"
            "**Remember:** Celebrate every milestone!"
        )
    raise ValueError(f"Unknown proactive message kind: {kind}")


def template_message(kind: str, name: str, age: ChildAge) -> str:
    """Fixed text used when no generator is available."""
    if kind == MILESTONE_UPDATE:
        return (
            f"{name} is {age.months} months old! Over the coming weeks, watch for new skills "
            "and keep offering plenty of play, talk and cuddles.\n\n"
            "**Remember:** Every child develops at their own pace."
        )
    if kind == WEEKLY_CHECK:
        return (
            f"{name} is {age.weeks} weeks old this week. Try some extra tummy time and chat "
            "to your baby during nappy changes.\n\n"
            "**Remember:** You're doing great!"
        )
    if kind == CELEBRATION:
        return (
            f"🎉 Happy {age.months}-month birthday, {name}! Look how much you've grown.\n\n"
            "**Remember:** Celebrate every milestone!"
        )
    raise ValueError(f"Unknown proactive message kind: {kind}")


@dataclass
class ProactiveMessenger:
    """Create the proactive messages that are due for a child."""
    children: ChildRepository
    messages: ChatMessageRepository
    generator: TextGenerator | None = None
    timeout: float = 30.0
    bullet: str = DEFAULT_BULLET
    clock: Callable[[], date] = field(default=date.today)

    async def run(self, child: ChildRecord) -> list[ChatMessageRecord]:
        """Generate and store every due message; failures fall back to templates."""
        today = self.clock()
        birthday = parse_date(child.birthday)
        if birthday is None:
            logger.info("proactive_skipped", extra={"child_id": child.id, "reason": "no_birthday"})
            return []
        age = child_age(birthday, today)
        created: list[ChatMessageRecord] = []
        for kind in due_message_kinds(child, self.messages, today):
            content = await self._generate(kind, child, age, today)
            stamp = datetime.combine(today, datetime.now(timezone.utc).time(), tzinfo=timezone.utc)
            created.append(
                self.messages.create(
                    child_id=child.id,
                    sender_role="assistant",
                    content=content,
                    message_kind=kind,
                    timestamp=stamp,
                )
            )
            if kind == MILESTONE_UPDATE:
                self.children.update(child.id, last_milestone_check=today.isoformat())
        logger.info(
            "proactive_complete",
            extra={"child_id": child.id, "kinds": [msg.message_kind for msg in created]},
        )
        return created

    async def _generate(self, kind: str, child: ChildRecord, age: ChildAge, today: date) -> str:
        if self.generator is None:
            return template_message(kind, child.name, age)
        prompt = build_proactive_prompt(kind, child.name, age, bullet=self.bullet)
        try:
            content = await asyncio.wait_for(
                self.generator.generate(prompt, system_prompt=build_system_prompt(child.context(), today)),
                timeout=self.timeout,
            )
        except Exception as exc:
            logger.warning(
                "proactive_generation_failed",
                extra={"child_id": child.id, "kind": kind, "detail": type(exc).__name__},
            )
            return template_message(kind, child.name, age)
        if not isinstance(content, str) or not content.strip():
            return template_message(kind, child.name, age)
        return content.strip()
