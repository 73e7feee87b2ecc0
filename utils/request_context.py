from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Mapping

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def set_request_id(rid: str) -> None:
    _request_id_var.set(rid or "")


def get_request_id() -> str:
    return _request_id_var.get() or ""


def clear_request_id() -> None:
    _request_id_var.set("")


def request_id_from_headers(headers: Mapping[str, str]) -> str:
    """
    Pick a request id for correlation, in order of preference:
    - explicit X-Request-Id from the caller
    - the trace id from X-Cloud-Trace-Context ("TRACE_ID/SPAN_ID;o=1")
    - a fresh uuid4
    """
    rid = (headers.get("x-request-id") or "").strip()
    if rid:
        return rid
    trace = (headers.get("x-cloud-trace-context") or "").strip()
    if trace:
        trace_id = trace.split("/", 1)[0].strip()
        if trace_id:
            return trace_id
    return str(uuid.uuid4())
