"""Hosted chat-completion client.

One call to :func:`generate_text` makes exactly one request to the configured
provider. Nothing is retried here; transport and API errors are logged and
re-raised for the caller to handle.
"""

from typing import Callable, Iterable, Literal, Mapping, Optional, Union

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel

from clinscribe.config.logger import get_logger
from clinscribe.llm.model_factory import get_chat_model

_logger = get_logger(__name__)

Role = Literal["user", "assistant", "system"]


class Message(BaseModel):
    role: Role = "user"
    content: str = ""


MessageLike = Union[Message, Mapping[str, str]]


class TextGenerationUnavailable(RuntimeError):
    """No chat model could be built for the requested pipeline."""


def _convert_messages(messages: Iterable[MessageLike]) -> list[BaseMessage]:
    langchain_messages: list[BaseMessage] = []
    for msg in messages:
        if isinstance(msg, Message):
            role, content = msg.role, msg.content
        else:
            role = msg.get("role", "user")
            content = msg.get("content", "")
        if role == "system":
            langchain_messages.append(SystemMessage(content=content))
        elif role == "assistant":
            langchain_messages.append(AIMessage(content=content))
        else:
            langchain_messages.append(HumanMessage(content=content))
    return langchain_messages


def build_messages(
    messages: Iterable[MessageLike], system_prompt: Optional[str] = None
) -> list[BaseMessage]:
    full_messages: list[BaseMessage] = []
    if system_prompt:
        full_messages.append(SystemMessage(content=system_prompt))
    full_messages.extend(_convert_messages(messages))
    return full_messages


def _resolve_llm(agent_key: str, temperature: float, max_tokens: int):
    llm = get_chat_model(agent_key, temperature=temperature, max_tokens=max_tokens)
    if llm is None:
        raise TextGenerationUnavailable(
            f"Text generation unavailable for '{agent_key}'. "
            "Please check provider/model env config."
        )
    return llm


async def generate_text(
    messages: Iterable[MessageLike],
    system_prompt: Optional[str] = None,
    temperature: float = 0.5,
    max_tokens: int = 1024,
    agent_key: str = "CHAT",
) -> str:
    """Return the first completion's text, or ``""`` when the model sends none."""
    full_messages = build_messages(messages, system_prompt)
    try:
        llm = _resolve_llm(agent_key, temperature, max_tokens)
        response = await llm.ainvoke(full_messages)
    except Exception:
        _logger.exception("[text_generation] %s completion failed", agent_key)
        raise
    content = response.content
    return content if isinstance(content, str) else ""


async def stream_text(
    messages: Iterable[MessageLike],
    system_prompt: Optional[str],
    temperature: float = 0.5,
    max_tokens: int = 1024,
    on_chunk: Optional[Callable[[str], None]] = None,
    agent_key: str = "CHAT",
) -> None:
    full_messages = build_messages(messages, system_prompt)
    try:
        llm = _resolve_llm(agent_key, temperature, max_tokens)
        async for chunk in llm.astream(full_messages):
            content = chunk.content
            if content and isinstance(content, str) and on_chunk is not None:
                on_chunk(content)
    except Exception:
        _logger.exception("[text_generation] %s stream failed", agent_key)
        raise
