import asyncio
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk

import clinscribe.llm.text_generation as text_generation
from clinscribe.config.settings import settings
from clinscribe.utils.db import init_db


class FakeChatModel:
    """Stands in for a langchain chat model; records every message list it receives."""

    def __init__(self):
        self.reply = ""
        self.chunks: list[str] = []
        self.error: Exception | None = None
        self.calls: list = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)

    async def astream(self, messages):
        self.calls.append(messages)
        for chunk in self.chunks:
            yield AIMessageChunk(content=chunk)
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_model(monkeypatch):
    model = FakeChatModel()
    model.factory = MagicMock(return_value=model)
    monkeypatch.setattr(text_generation, "get_chat_model", model.factory)
    return model


@pytest.fixture
def tmp_db(tmp_path, monkeypatch):
    db_path = tmp_path / "clinscribe.db"
    monkeypatch.setattr(settings, "DB_PATH", str(db_path))
    asyncio.run(init_db())
    return db_path
