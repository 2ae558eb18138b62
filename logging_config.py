import logging
import logging.config
import re


class RedactingFilter(logging.Filter):
    """Masks the password field of logged signaling frames."""

    SENSITIVE_PATTERNS = [
        re.compile(r'("password"\s*:\s*)"(?:[^"\\]|\\.)*"'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        for pat in self.SENSITIVE_PATTERNS:
            msg = pat.sub(r"\1***", msg)
        record.msg = msg
        record.args = ()
        return True


def setup_logging(log_level: str = "INFO", log_file: str = None) -> None:
    """
    Configure console logging and, when log_file is given, a rotating file handler.

    Safe to call more than once; the last call wins.
    """
    level = (log_level or "INFO").upper()

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "filters": ["redact"],
            "level": level,
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "default",
            "filters": ["redact"],
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "level": level,
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact": {"()": RedactingFilter},
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
                "datefmt": "%d-%m-%Y %H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
    })


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
