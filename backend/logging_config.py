import logging
import logging.config
from typing import Dict

from backend.config import settings
from backend.services.error_classifier import redact_secret


class SecretRedactingFilter(logging.Filter):
    """Strips the API key from log messages and formatted tracebacks."""

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self._secret = settings.api_key

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if self._secret and self._secret in message:
            record.msg = redact_secret(message, self._secret)
            record.args = ()
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact_secret(record.exc_text, self._secret)
        return True


LOGGING_CONFIG: Dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "redact_secrets": {
            "()": SecretRedactingFilter,
        }
    },
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "filters": ["redact_secrets"],
            "level": "INFO",
        }
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
}


def configure_logging() -> None:
    logging.config.dictConfig(LOGGING_CONFIG)
