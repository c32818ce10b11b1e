"""Service logging.

Everything logs under the uvicorn error logger so API and pipeline lines share
one stream. A rotating debug file in ``LOG_DIR`` keeps the full prompt/response
stage logs that the console shows truncated.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from clinscribe.config.settings import settings

_BASE_LOGGER_NAME = "uvicorn.error"
_FILE_HANDLER_MARK = "_clinscribe_debug_file"
_configured = False


def _parse_level(level_name: str) -> int | None:
    level = getattr(logging, (level_name or "").strip().upper(), None)
    return level if isinstance(level, int) else None


def _level_setting(base_logger: logging.Logger, key: str, fallback: int) -> int:
    raw = getattr(settings, key)
    level = _parse_level(raw)
    if level is None:
        base_logger.warning(
            "[logger] Invalid %s '%s', fallback to %s", key, raw, logging.getLevelName(fallback)
        )
        return fallback
    return level


def _has_file_handler(base_logger: logging.Logger) -> bool:
    return any(getattr(h, _FILE_HANDLER_MARK, False) for h in base_logger.handlers)


def _build_file_handler(base_logger: logging.Logger) -> logging.Handler:
    backup_count = settings.LOG_FILE_BACKUP_COUNT
    if backup_count < 0:
        base_logger.warning("[logger] Invalid LOG_FILE_BACKUP_COUNT '%s', fallback to 7", backup_count)
        backup_count = 7

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_dir / settings.LOG_FILE_NAME),
        when=settings.LOG_FILE_WHEN,
        interval=settings.LOG_FILE_INTERVAL,
        backupCount=backup_count,
        encoding=settings.LOG_FILE_ENCODING,
    )
    handler.setLevel(_level_setting(base_logger, "LOG_FILE_LEVEL", logging.DEBUG))
    handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
    setattr(handler, _FILE_HANDLER_MARK, True)
    return handler


def configure_logging() -> None:
    """Attach console and debug-file handlers once per process."""
    global _configured
    if _configured:
        return

    base_logger = logging.getLogger(_BASE_LOGGER_NAME)
    if not base_logger.handlers:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        base_logger.addHandler(console)
        base_logger.propagate = False
    base_logger.setLevel(_level_setting(base_logger, "LOG_LEVEL", logging.INFO))

    if not _has_file_handler(base_logger):
        try:
            base_logger.addHandler(_build_file_handler(base_logger))
        except OSError as exc:
            base_logger.warning(
                "[logger] Failed to configure debug file logging at '%s': %s",
                settings.LOG_DIR,
                exc,
            )

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    configure_logging()
    base_logger = logging.getLogger(_BASE_LOGGER_NAME)
    return base_logger.getChild(name) if name else base_logger


def _as_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    try:
        if isinstance(content, BaseModel):
            return json.dumps(content.model_dump(mode="json", by_alias=True), ensure_ascii=False)
        if isinstance(content, (dict, list)):
            return json.dumps(content, ensure_ascii=False)
    except (TypeError, ValueError):
        pass
    return str(content)


def truncate_for_log(text: str, limit: int | None = None) -> str:
    limit = settings.AGENT_LOG_TRUNCATE if limit is None else limit
    if len(text) <= limit:
        return text
    return f"{text[:limit]} ...[truncated {len(text) - limit} chars]"


def log_stage(logger: logging.Logger, stage: str, content: Any, limit: int | None = None) -> None:
    """Log a pipeline stage output: prompt context, raw model reply, parsed result.

    Long outputs are cut at INFO and repeated in full at DEBUG.
    """
    text = _as_text(content)
    if not text:
        logger.info("[%s] output: [EMPTY]", stage)
        return
    logger.info("[%s] output:\n%s", stage, truncate_for_log(text, limit))
    if len(text) > (settings.AGENT_LOG_TRUNCATE if limit is None else limit):
        logger.debug("[%s] full output:\n%s", stage, text)
