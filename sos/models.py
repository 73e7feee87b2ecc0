from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


def _as_text(v: Any) -> str:
    # Falsy values (None, False, 0, "") read as blank, so `message: 0` is missing, not "0".
    if not v:
        return ""
    return str(v)


class Contact(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phone: str = ""

    @field_validator("phone", mode="before")
    @classmethod
    def _coerce_phone(cls, v: Any) -> str:
        return _as_text(v)


class SOSRequest(BaseModel):
    """
    Payload of a sendSOS call. Lenient on purpose: shape problems surface as
    an empty message or missing contacts, which the relay rejects as
    invalid-argument instead of a schema error.
    """

    model_config = ConfigDict(extra="ignore")

    message: str = ""
    contacts: Optional[List[Contact]] = None

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_message(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("contacts", mode="before")
    @classmethod
    def _coerce_contacts(cls, v: Any) -> Optional[List[Dict[str, Any]]]:
        if not isinstance(v, list):
            return None
        return [c if isinstance(c, dict) else {} for c in v]

    @classmethod
    def from_payload(cls, data: Any) -> "SOSRequest":
        return cls.model_validate(data if isinstance(data, dict) else {})


@dataclass(frozen=True)
class CallerIdentity:
    uid: str
    claims: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SendResult:
    to: str
    sid: str


class RejectCode(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"


@dataclass(frozen=True)
class Rejected:
    code: RejectCode
    message: str


@dataclass(frozen=True)
class Delivered:
    results: List[SendResult]

    def to_payload(self) -> Dict[str, Any]:
        return {"ok": True, "results": [{"to": r.to, "sid": r.sid} for r in self.results]}


@dataclass(frozen=True)
class ProviderFailed:
    error: str

    def to_payload(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.error}


RelayOutcome = Union[Delivered, ProviderFailed, Rejected]
