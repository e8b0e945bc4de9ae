import json
import logging

# Attributes callers attach with ``extra=`` that end up in the JSON line
_EXTRA_FIELDS = (
    "account_id",
    "match_id",
    "username",
    "attempt",
    "error_code",
    "request_path",
    "response_time",
)


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def configure_logging(level: str) -> None:
    """Route every logger through a single JSON stream handler."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level, logging.INFO))
