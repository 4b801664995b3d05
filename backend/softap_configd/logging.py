import json
import logging
import os
import sys
import time
from typing import Any, Dict, Iterable, Optional, TextIO

from softap_configd.config import ENV_LOG_LEVEL

STRUCTURED_FIELDS = ("correlation_id", "op", "path", "field", "rule", "kind", "state", "pre_shared_key")
# Accepted as extras so call sites can't leak them by accident; always masked.
SECRET_FIELDS = frozenset({"pre_shared_key"})
_MASK = "********"


class JsonFormatter(logging.Formatter):
    def __init__(self, fields: Iterable[str] = STRUCTURED_FIELDS):
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in self.fields:
            if not hasattr(record, k):
                continue
            value = getattr(record, k)
            payload[k] = _MASK if (k in SECRET_FIELDS and value) else value

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, separators=(",", ":"), default=str)


def resolve_level(level: Optional[str] = None) -> int:
    name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolve_level(level))

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
