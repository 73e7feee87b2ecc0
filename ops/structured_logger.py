from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from config.settings import settings
from utils.request_context import get_request_id


class JsonFormatter(logging.Formatter):
    def __init__(self, service: str = ""):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time_unix": time.time(),
            "revision": os.getenv("K_REVISION") or "",
            "service": os.getenv("K_SERVICE") or self.service,
        }
        rid = get_request_id()
        if rid:
            payload["request_id"] = rid
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            # Structured fields never replace the envelope (severity, message, ...).
            for k, v in record.extra.items():
                payload.setdefault(k, v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None, service: Optional[str] = None) -> None:
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(service=service or settings.SERVICE_NAME))

    # Prevent accidental secret leakage: HTTP clients can log full URLs (incl. account SIDs) at INFO/DEBUG
    for noisy in ("httpx", "httpcore", "urllib3", "twilio.http_client"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    root.handlers[:] = [handler]
