"""JSON logging for Studio Manager.

Every line carries the request id and the resolved principal (``user:<id>``
or ``jwt:<id>``) when logged inside a request. Domain modules pass structured
fields through ``extra={"extra_data": {...}}``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var
from .config import settings

# ``request.completed`` already covers what uvicorn's access log prints.
QUIET_LOGGERS = ("uvicorn.access", "multipart.multipart")


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for key, var in (("request_id", request_id_ctx_var), ("principal", principal_ctx_var)):
            value = var.get()
            if value:
                payload[key] = value
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel((level or settings.LOG_LEVEL or "INFO").upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
