import logging

import structlog

from calloutbot.logging import get_logger, redact_text, redact_token_processor, setup_logging


class TestRedaction:
    def test_redacts_bot_token_in_url(self) -> None:
        text = redact_text("https://api.telegram.org/bot123456789:ABCdefGHI_jkl/sendMessage")
        assert "123456789" not in text
        assert "bot[REDACTED]" in text

    def test_redacts_bare_token(self) -> None:
        text = redact_text("Token is 123456789:ABCDEFGHIJ_klmnop")
        assert "[REDACTED_TOKEN]" in text

    def test_redacts_bearer(self) -> None:
        assert redact_text("Authorization: Bearer abc.def") == "Authorization: Bearer [REDACTED]"

    def test_processor_covers_every_string_value(self) -> None:
        event_dict = {
            "event": "telegram.network_error",
            "error": "failed for bot123:secret-token",
            "status": 500,
        }
        result = redact_token_processor(None, "error", event_dict)
        assert result["event"] == "telegram.network_error"
        assert result["error"] == "failed for bot[REDACTED]"
        assert result["status"] == 500


def test_setup_logging_levels() -> None:
    setup_logging(debug=True)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging(debug=False)
    assert logging.getLogger().level == logging.INFO
    structlog.reset_defaults()


def test_get_logger_accepts_keywords() -> None:
    logger = get_logger(__name__)
    logger.info("test.event", value=1)
