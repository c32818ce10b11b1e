"""LLM module."""

from clinscribe.llm.text_generation import (
    Message,
    TextGenerationUnavailable,
    generate_text,
    stream_text,
)

__all__ = ["Message", "TextGenerationUnavailable", "generate_text", "stream_text"]
