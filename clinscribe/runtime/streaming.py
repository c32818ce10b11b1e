import asyncio
import json
from typing import Any, AsyncIterator, Iterable, Optional

from clinscribe.config.logger import get_logger
from clinscribe.llm.text_generation import MessageLike, stream_text

_logger = get_logger(__name__)

_DONE = object()


def to_sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


async def stream_text_events(
    messages: Iterable[MessageLike],
    system_prompt: Optional[str] = None,
    temperature: float = 0.5,
    max_tokens: int = 1024,
    agent_key: str = "CHAT",
) -> AsyncIterator[str]:
    """Relay ``stream_text`` chunks as SSE frames, in the order the model emits them.

    Emits one ``chunk`` event per piece, then ``done`` (or ``error``).
    """
    queue: asyncio.Queue = asyncio.Queue()

    async def _produce() -> None:
        try:
            await stream_text(
                list(messages),
                system_prompt,
                temperature,
                max_tokens,
                on_chunk=queue.put_nowait,
                agent_key=agent_key,
            )
        except Exception as exc:
            queue.put_nowait(exc)
        finally:
            queue.put_nowait(_DONE)

    producer = asyncio.create_task(_produce())
    try:
        while True:
            item = await queue.get()
            if item is _DONE:
                yield to_sse("done", {})
                break
            if isinstance(item, Exception):
                message = str(item).strip() or item.__class__.__name__
                yield to_sse("error", {"message": message})
                await queue.get()
                break
            yield to_sse("chunk", {"content": item})
    finally:
        if not producer.done():
            _logger.info("[stream] client went away, cancelling producer")
            producer.cancel()
