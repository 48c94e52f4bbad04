from __future__ import annotations

from functools import lru_cache

from babyassist.app.settings import settings
from babyassist.rag.answerer import ResponseComposer, RuleBasedComposer
from babyassist.rag.corpus import DocumentCorpus, default_corpus, load_corpus
from babyassist.rag.llm import GenerativeComposer, TextGenerator, build_text_generator
from babyassist.rag.pipeline import ChatPipeline
from babyassist.rag.proactive import ProactiveMessenger
from babyassist.rag.retriever import DocumentRetriever
from babyassist.store.memory import InMemoryChatMessageRepository, InMemoryChildRepository
from babyassist.store.models import ChatMessageRepository, ChildRepository
from babyassist.store.sql import SQLStore


@lru_cache
def get_corpus() -> DocumentCorpus:
    if settings.corpus_path:
        return load_corpus(settings.corpus_path)
    return default_corpus()


@lru_cache
def get_repositories() -> tuple[ChildRepository, ChatMessageRepository]:
    uri = settings.database_uri
    if uri:
        store = SQLStore(uri)
        return store, store.messages
    return InMemoryChildRepository(), InMemoryChatMessageRepository()


def get_children() -> ChildRepository:
    return get_repositories()[0]


def get_messages() -> ChatMessageRepository:
    return get_repositories()[1]


@lru_cache
def get_retriever() -> DocumentRetriever:
    return DocumentRetriever(corpus=get_corpus(), default_limit=settings.retrieval_limit)


@lru_cache
def get_text_generator() -> TextGenerator:
    return build_text_generator(
        settings.llm_provider,
        api_key_openai=settings.openai_api_key,
        api_key_gemini=settings.gemini_api_key,
        openai_base_url=settings.openai_base_url,
        openai_model=settings.openai_chat_model,
        gemini_model=settings.gemini_chat_model,
        ollama_base_url=settings.ollama_base_url,
        ollama_model=settings.ollama_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout,
    )


def build_composer(mode: str) -> ResponseComposer:
    if mode == "llm":
        return GenerativeComposer(
            generator=get_text_generator(),
            timeout=settings.llm_timeout,
            bullet=settings.follow_up_bullet,
        )
    return RuleBasedComposer()


@lru_cache
def get_pipeline() -> ChatPipeline:
    children, messages = get_repositories()
    return ChatPipeline(
        retriever=get_retriever(),
        composer=build_composer(settings.composer),
        children=children,
        messages=messages,
        retrieval_limit=settings.retrieval_limit,
        bullet=settings.follow_up_bullet,
    )


@lru_cache
def get_proactive_messenger() -> ProactiveMessenger:
    children, messages = get_repositories()
    generator = get_text_generator() if settings.composer == "llm" else None
    return ProactiveMessenger(
        children=children,
        messages=messages,
        generator=generator,
        timeout=settings.llm_timeout,
        bullet=settings.follow_up_bullet,
    )


def reset_pipeline_cache() -> None:
    for cached in (
        get_corpus,
        get_repositories,
        get_retriever,
        get_text_generator,
        get_pipeline,
        get_proactive_messenger,
    ):
        cached.cache_clear()
