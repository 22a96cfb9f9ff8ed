"""Logging configuration helpers."""

import logging

# Keys passed through ``extra=`` by the services and adapters.
CONTEXT_KEYS = (
    "gallery_id",
    "photo_id",
    "request_id",
    "event",
    "webhook_type",
    "from_status",
    "status",
    "decision",
    "selected_count",
    "attempt",
    "step",
    "code",
    "guard",
    "path",
)


class ContextFormatter(logging.Formatter):
    """Appends workflow context from ``extra=`` to each line."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        message = super().formatMessage(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        return f"{message} [{context}]" if context else message


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the gallery_workflow logger with a single stream handler."""
    logger = logging.getLogger("gallery_workflow")
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
