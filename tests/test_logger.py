from unittest.mock import MagicMock

from clinscribe.config.logger import get_logger, log_stage, truncate_for_log
from clinscribe.models.risk import default_risk_assessment


def test_truncate_for_log():
    assert truncate_for_log("abcdef", 10) == "abcdef"
    assert truncate_for_log("abcdef", 3) == "abc ...[truncated 3 chars]"


def test_log_stage_short_text():
    logger = MagicMock()

    log_stage(logger, "risk.response", "ok")

    logger.info.assert_called_once_with("[%s] output:\n%s", "risk.response", "ok")
    logger.debug.assert_not_called()


def test_log_stage_long_text_is_repeated_at_debug():
    logger = MagicMock()

    log_stage(logger, "risk.context", "x" * 20, limit=5)

    logger.info.assert_called_once_with(
        "[%s] output:\n%s", "risk.context", "xxxxx ...[truncated 15 chars]"
    )
    logger.debug.assert_called_once_with("[%s] full output:\n%s", "risk.context", "x" * 20)


def test_log_stage_models_use_wire_names():
    logger = MagicMock()

    log_stage(logger, "risk.result", default_risk_assessment(), limit=10_000)

    assert '"riskLevel": "low"' in logger.info.call_args.args[2]


def test_log_stage_empty():
    logger = MagicMock()

    log_stage(logger, "extract.response", "")

    logger.info.assert_called_once_with("[%s] output: [EMPTY]", "extract.response")


def test_child_loggers_share_base():
    assert get_logger("logger_test").parent is get_logger()
