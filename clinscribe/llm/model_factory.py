from abc import ABC, abstractmethod
from typing import Any

from clinscribe.config.logger import get_logger
from clinscribe.config.settings import settings

_logger = get_logger(__name__)

_AUTO_ORDER = ("openai", "ollama")


class BaseModelProvider(ABC):
    """Abstract provider contract for chat model creation."""

    name: str = "base"

    @abstractmethod
    def is_available(self, agent_key: str, model: str) -> bool:
        """Whether this provider can serve the given pipeline/model."""

    @abstractmethod
    def create(
        self,
        agent_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Any:
        """Create provider-specific langchain chat model instance."""


class OpenAIProvider(BaseModelProvider):
    """OpenAI-compatible chat completions (Groq by default)."""

    name = "openai"

    def is_available(self, agent_key: str, model: str) -> bool:
        return settings.has_openai_like_creds(agent_key)

    def create(
        self,
        agent_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Any:
        from langchain_openai import ChatOpenAI

        kwargs: dict[str, Any] = {
            "model": model,
            "api_key": settings.get_agent_api_key(agent_key),
            "base_url": settings.get_agent_base_url(agent_key, provider_hint=self.name),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": settings.TEXT_TOP_P,
            # exactly one outbound call per request
            "max_retries": 0,
        }
        return ChatOpenAI(**kwargs)


class OllamaProvider(BaseModelProvider):
    name = "ollama"

    def _base_url(self, agent_key: str) -> str:
        return settings.get_agent_base_url(agent_key, provider_hint=self.name)

    def is_available(self, agent_key: str, model: str) -> bool:
        # Local fallback; reachability shows up on the first call.
        return True

    def create(
        self,
        agent_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Any:
        from langchain_ollama import ChatOllama

        kwargs: dict[str, Any] = {
            "model": model,
            "base_url": self._base_url(agent_key),
            "temperature": temperature,
            "num_predict": max_tokens,
            "top_p": settings.TEXT_TOP_P,
        }
        return ChatOllama(**kwargs)


class ModelFactory:
    """Provider registry + resolution strategy."""

    def __init__(self) -> None:
        self.providers: dict[str, BaseModelProvider] = {
            OpenAIProvider.name: OpenAIProvider(),
            OllamaProvider.name: OllamaProvider(),
        }

    def _resolve_provider(
        self,
        agent_key: str,
        model: str,
        explicit_provider: str,
    ) -> BaseModelProvider:
        provider_name = (explicit_provider or "").strip().lower()
        if provider_name and provider_name != "auto":
            provider = self.providers.get(provider_name)
            if provider is None:
                raise ValueError(f"Unknown provider: {provider_name}")
            return provider

        # Auto strategy: hosted endpoint when credentials exist, else local Ollama.
        for name in _AUTO_ORDER:
            provider = self.providers[name]
            if provider.is_available(agent_key, model):
                return provider
        return self.providers[OllamaProvider.name]

    def create_chat_model(
        self,
        agent_key: str,
        default_model: str,
        temperature: float,
        max_tokens: int,
    ) -> Any:
        model = settings.get_agent_model(agent_key, default_model)
        explicit_provider = settings.get_agent_provider(agent_key)
        provider = self._resolve_provider(
            agent_key=agent_key,
            model=model,
            explicit_provider=explicit_provider,
        )
        _logger.debug(
            "[model_factory] agent=%s provider=%s model=%s temperature=%s max_tokens=%s",
            agent_key,
            provider.name,
            model,
            temperature,
            max_tokens,
        )
        return provider.create(
            agent_key=agent_key,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )


_FACTORY = ModelFactory()


def get_chat_model(
    agent_key: str,
    default_model: str = "",
    temperature: float = 0.5,
    max_tokens: int = 1024,
) -> Any | None:
    try:
        return _FACTORY.create_chat_model(
            agent_key=agent_key,
            default_model=default_model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as exc:
        _logger.warning("[model_factory] failed to build chat model for %s: %s", agent_key, exc)
        return None
