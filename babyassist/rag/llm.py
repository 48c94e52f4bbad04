from __future__ import annotations

"""Text generators and the generative response composer."""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Sequence
import asyncio
import logging

import httpx

from babyassist.rag.answerer import DEGRADED_MESSAGE, NO_DOCUMENTS_MESSAGE, ResponseComposer
from babyassist.rag.citations import build_sources
from babyassist.rag.parser import DEFAULT_BULLET
from babyassist.rag.types import ChildContext, ComposedResponse, Document


class LLMError(RuntimeError):
    """Raised when LLM requests fail or responses are invalid."""
    pass


logger = logging.getLogger(__name__)


_SYSTEM_PROMPT = (
    "You are a knowledgeable and caring parenting assistant. Your role is to provide "
    "helpful, evidence-based advice about child development, parenting, and family life. "
    "Always be supportive, encouraging, and practical in your responses."
)

_GUIDELINES = (
    "Important guidelines:\n"
    "- Provide practical, actionable advice\n"
    "- Be encouraging and supportive\n"
    "- Mention when professional help might be needed\n"
    "- Keep responses concise but helpful\n"
    "- Use a warm, friendly tone"
)


def build_system_prompt(child: ChildContext | None, today: date | None = None) -> str:
    """Return the system prompt, personalised when a child is known."""
    prompt = _SYSTEM_PROMPT
    if child is not None and child.name:
        prompt += f"\n\nYou are currently helping with a child named {child.name}"
        age = child.age_in_months(today)
        if age is not None:
            prompt += f" who is {age} months old"
        prompt += (
            ".\n\nWhen providing advice, consider the child's age and development stage. "
            "Focus on age-appropriate suggestions and milestones."
        )
    return f"{prompt}\n\n{_GUIDELINES}"


def describe_child(child: ChildContext | None, today: date | None = None) -> str:
    """Describe the child for inclusion in prompts."""
    if child is None:
        return "No specific child information provided"
    age = child.age_in_months(today)
    if age is None:
        return f"{child.display_name()} (age unknown)"
    return f"{child.display_name()} is {age} months old"


def build_context_block(documents: Sequence[Document]) -> str:
    """Format retrieved document metadata for the prompt."""
    blocks = []
    for doc in documents:
        blocks.append(
            f"Source: {doc.title}\n"
            f"URL: {doc.url}\n"
            f"Age Range: {doc.age_range or 'all ages'}\n"
            f"Category: {doc.category}"
        )
    return "\n\n".join(blocks)


def build_answer_prompt(
    query: str,
    child: ChildContext | None,
    documents: Sequence[Document],
    bullet: str = DEFAULT_BULLET,
    today: date | None = None,
) -> str:
    """Build the user prompt asking for an answer and follow-up questions."""
    return (
        "Based on the following authoritative parenting resources, please answer this "
        f"question: \"{query}\"\n\n"
        f"Context about the child: {describe_child(child, today)}\n\n"
        f"Relevant resources:\n{build_context_block(documents)}\n\n"
        "IMPORTANT: Provide a CONCISE, focused answer (2-3 sentences maximum). "
        "Include 2-3 relevant follow-up questions that the parent might want to ask next. "
        "Format your response as:\n\n"
        "Answer: [brief, focused response]\n\n"
        "Follow-up questions:\n"
        f"{bullet} [question 1]\n"
        f"{bullet} [question 2]\n"
        f"{bullet} [question 3]\n\n"
        "Keep it short and actionable."
    )


class TextGenerator:
    """Base class for text generation backends."""
    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Return generated text for the prompt."""
        raise NotImplementedError


def _messages(prompt: str, system_prompt: str | None) -> list[dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


@dataclass(frozen=True)
class OpenAIGenerator(TextGenerator):
    """Generator backed by OpenAI chat completions."""
    api_key: str
    base_url: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    transport: httpx.AsyncBaseTransport | None = None

    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Generate text using OpenAI chat completions."""
        payload = {
            "model": self.model,
            "messages": _messages(prompt, system_prompt),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMError(str(exc)) from exc

        choices = data.get("choices") or []
        if not choices:
            raise LLMError("Invalid OpenAI response")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            raise LLMError("Invalid OpenAI response content")
        return content


@dataclass(frozen=True)
class OllamaGenerator(TextGenerator):
    """Generator backed by the Ollama chat API."""
    base_url: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    transport: httpx.AsyncBaseTransport | None = None

    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Generate text using Ollama."""
        payload = {
            "model": self.model,
            "messages": _messages(prompt, system_prompt),
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/api/chat", json=payload)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LLMError(str(exc)) from exc

        message = data.get("message") or {}
        content = message.get("content")
        if not isinstance(content, str):
            raise LLMError("Invalid LLM response")
        return content


@dataclass(frozen=True)
class GeminiGenerator(TextGenerator):
    """Generator backed by Gemini generative models."""
    api_key: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float

    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Generate text using Gemini."""
        try:
            import google.generativeai as genai
        except ImportError as exc:
            raise LLMError("google-generativeai is required for GeminiGenerator") from exc

        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt

        def _run() -> str:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model)
            response = model.generate_content(
                full_prompt,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_tokens,
                },
            )
            return getattr(response, "text", "") or ""

        try:
            return await asyncio.wait_for(asyncio.to_thread(_run), timeout=self.timeout)
        except Exception as exc:
            raise LLMError(str(exc)) from exc


@dataclass(frozen=True)
class GenerativeComposer(ResponseComposer):
    """Compose answers by prompting an external text generator.

    Any generator failure, timeout or empty body degrades to a fixed message
    with no sources; ``compose`` never raises.
    """
    generator: TextGenerator
    timeout: float = 30.0
    bullet: str = DEFAULT_BULLET
    clock: Callable[[], date] = field(default=date.today)
    name = "llm"

    async def compose(
        self,
        query: str,
        child: ChildContext | None,
        documents: Sequence[Document],
    ) -> ComposedResponse:
        """Prompt the generator with the query, child and retrieved resources."""
        if not documents:
            return ComposedResponse(raw_text=NO_DOCUMENTS_MESSAGE, sources=())
        today = self.clock()
        prompt = build_answer_prompt(query, child, documents, bullet=self.bullet, today=today)
        system_prompt = build_system_prompt(child, today)
        try:
            content = await asyncio.wait_for(
                self.generator.generate(prompt, system_prompt=system_prompt),
                timeout=self.timeout,
            )
            if not isinstance(content, str) or not content.strip():
                raise LLMError("Empty LLM response")
        except Exception as exc:
            logger.warning(
                "llm_generation_failed",
                extra={
                    "generator": type(self.generator).__name__,
                    "detail": type(exc).__name__,
                },
            )
            return ComposedResponse(raw_text=DEGRADED_MESSAGE, sources=(), degraded=True)
        return ComposedResponse(raw_text=content.strip(), sources=build_sources(documents))


def build_text_generator(
    provider: str,
    *,
    api_key_openai: str | None,
    api_key_gemini: str | None,
    openai_base_url: str,
    openai_model: str | None,
    gemini_model: str | None,
    ollama_base_url: str,
    ollama_model: str,
    temperature: float,
    max_tokens: int,
    timeout: float,
) -> TextGenerator:
    """Factory for text generators based on provider."""
    normalized = provider.strip().lower()
    if normalized in {"", "openai"}:
        if not api_key_openai:
            raise LLMError("OPENAI_API_KEY is required for OpenAI provider")
        if not openai_model:
            raise LLMError("OPENAI_CHAT_MODEL is required for OpenAI provider")
        return OpenAIGenerator(
            api_key=api_key_openai,
            base_url=openai_base_url.rstrip("/"),
            model=openai_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
    if normalized in {"gemini", "google"}:
        if not api_key_gemini:
            raise LLMError("GEMINI_API_KEY is required for Gemini provider")
        if not gemini_model:
            raise LLMError("GEMINI_CHAT_MODEL is required for Gemini provider")
        return GeminiGenerator(
            api_key=api_key_gemini,
            model=gemini_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
    if normalized == "ollama":
        return OllamaGenerator(
            base_url=ollama_base_url.rstrip("/"),
            model=ollama_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
    raise LLMError(f"Unsupported LLM provider: {provider}")
