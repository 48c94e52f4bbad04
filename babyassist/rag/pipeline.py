from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from babyassist.rag.answerer import ResponseComposer
from babyassist.rag.parser import DEFAULT_BULLET, parse_answer
from babyassist.rag.retriever import DocumentRetriever
from babyassist.rag.types import ChildContext, SourceRef
from babyassist.store.models import ChatMessageRecord, ChatMessageRepository, ChildRepository

logger = logging.getLogger(__name__)


@dataclass
class ChatTurn:
    answer: str
    follow_up_questions: list[str]
    sources: list[SourceRef]
    message: ChatMessageRecord
    degraded: bool = False


@dataclass
class ChatPipeline:
    """One chat turn: retrieve, compose, parse and record the exchange."""
    retriever: DocumentRetriever
    composer: ResponseComposer
    children: ChildRepository
    messages: ChatMessageRepository
    retrieval_limit: int = 3
    bullet: str = DEFAULT_BULLET

    def child_context(self, child_id: str | None) -> ChildContext | None:
        if not child_id:
            return None
        child = self.children.get(child_id)
        return child.context() if child else None

    async def ask(self, query: str, child_id: str | None = None) -> ChatTurn:
        """Answer a question, storing both the user and assistant messages."""
        child = self.child_context(child_id)
        self.messages.create(child_id=child_id, sender_role="user", content=query)
        documents = self.retriever.retrieve(query, child, self.retrieval_limit)
        composed = await self.composer.compose(query, child, documents)
        parsed = parse_answer(composed.raw_text, bullet=self.bullet)
        sources = list(composed.sources)
        message = self.messages.create(
            child_id=child_id,
            sender_role="assistant",
            content=composed.raw_text,
            message_kind="chat",
            sources=[asdict(source) for source in sources],
        )
        logger.info(
            "chat_turn_complete",
            extra={
                "child_id": child_id,
                "documents": len(documents),
                "follow_ups": len(parsed.follow_up_questions),
                "composer": self.composer.name,
                "degraded": composed.degraded,
            },
        )
        return ChatTurn(
            answer=parsed.answer_body,
            follow_up_questions=parsed.follow_up_questions,
            sources=sources,
            message=message,
            degraded=composed.degraded,
        )
