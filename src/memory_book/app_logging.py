"""Logging configuration helpers."""

import logging

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends values passed via ``extra=`` as key=value pairs."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        message = super().formatMessage(record)
        context = sorted(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if not context:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in context)
        return f"{message} {pairs}"


def configure_logging(level: str = "INFO") -> None:
    """Configure the memory_book logger with a single stream handler."""
    logger = logging.getLogger("memory_book")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
