from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    composer_raw: str = os.getenv("BABY_COMPOSER", "rule")
    retrieval_limit: int = int(os.getenv("BABY_RETRIEVAL_LIMIT", "3"))
    llm_provider: str = os.getenv("BABY_LLM_PROVIDER", "openai")
    llm_temperature: float = float(os.getenv("BABY_LLM_TEMPERATURE", "0.7"))
    llm_max_tokens: int = int(os.getenv("BABY_LLM_MAX_TOKENS", "500"))
    llm_timeout: float = float(os.getenv("BABY_LLM_TIMEOUT", "30"))
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_chat_model: str | None = os.getenv("OPENAI_CHAT_MODEL", "gpt-3.5-turbo")
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3")
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_chat_model: str | None = os.getenv("GEMINI_CHAT_MODEL")
    follow_up_bullet: str = os.getenv("BABY_FOLLOW_UP_BULLET", "•")
    corpus_path: str | None = os.getenv("BABY_CORPUS_PATH")
    database_uri_raw: str | None = os.getenv("BABY_DATABASE_URI")
    default_owner: str = os.getenv("BABY_DEFAULT_OWNER", "parent@example.com")
    log_level: str = os.getenv("BABY_LOG_LEVEL", "INFO")
    metrics_enabled: bool = os.getenv("BABY_METRICS_ENABLED", "true").lower() in {"1", "true", "yes"}

    @property
    def composer(self) -> str:
        return os.getenv("BABY_COMPOSER", self.composer_raw).strip().lower()

    @property
    def database_uri(self) -> str | None:
        return os.getenv("BABY_DATABASE_URI", self.database_uri_raw or "") or None


settings = Settings()
