from __future__ import annotations

from typing import Any, Dict

from sos.models import RejectCode

# Firebase callable protocol: canonical error status -> HTTP status.
_HTTP_STATUS = {
    "INVALID_ARGUMENT": 400,
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "INTERNAL": 500,
}


class CallableError(Exception):
    def __init__(self, status: str, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    @classmethod
    def from_reject(cls, code: RejectCode, message: str) -> "CallableError":
        return cls(code.name, message)

    @classmethod
    def from_http_status(cls, status_code: int, message: str) -> "CallableError":
        for status, code in _HTTP_STATUS.items():
            if code == status_code:
                return cls(status, message)
        return cls("INTERNAL" if status_code >= 500 else "INVALID_ARGUMENT", message)

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self.status, 500)

    def to_body(self) -> Dict[str, Any]:
        return {"error": {"status": self.status, "message": self.message}}
