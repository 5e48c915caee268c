"""Log output for the bucketacl client and CLI.

ACL exchanges are logged with request context (operation, bucket, key,
status, request id, duration) attached as record extras. Both formatters
render that context: ``JSONFormatter`` as top-level fields,
``ContextFormatter`` as a ``key=value`` suffix on the text line.
"""

import json
import logging
import sys
from datetime import datetime, timezone

CONTEXT_FIELDS = ("operation", "bucket", "key", "status", "request_id", "duration_ms")

# httpx logs every request at INFO; keep it quiet unless debugging
_TRANSPORT_LOGGERS = ("httpx", "httpcore")


def record_context(record: logging.LogRecord) -> dict[str, object]:
    """Return the request context attached to ``record``, skipping unset fields."""
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            context[name] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message and context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextFormatter(logging.Formatter):
    """Human-readable lines with the request context appended in brackets."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        suffix = " ".join(f"{k}={v}" for k, v in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{suffix}]{sep}{tail}"


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        fmt: 'json' for JSONFormatter, anything else for ContextFormatter.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ContextFormatter())
    root.addHandler(handler)

    transport_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)
