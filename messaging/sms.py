from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from twilio.rest import Client

from config.settings import Settings, settings as default_settings
from utils.redact import dest_hint

log = logging.getLogger("sos.sms")


class GatewayConfigError(RuntimeError):
    pass


class SmsGateway(Protocol):
    sender_number: str

    def send(self, to: str, body: str) -> str:
        """Send one SMS from sender_number and return the provider message id."""
        ...


@dataclass(frozen=True)
class TwilioCredentials:
    account_sid: str
    auth_token: str
    sender_number: str
    source: str  # env | config_store | mixed


class TwilioSmsGateway:
    def __init__(self, client: Client, sender_number: str, credentials_source: str = ""):
        self.client = client
        self.sender_number = sender_number
        self.credentials_source = credentials_source

    @classmethod
    def from_credentials(cls, creds: TwilioCredentials) -> "TwilioSmsGateway":
        return cls(Client(creds.account_sid, creds.auth_token), creds.sender_number, creds.source)

    def send(self, to: str, body: str) -> str:
        msg = self.client.messages.create(to=to, from_=self.sender_number, body=body)
        return str(msg.sid)


# Config store document fields, keyed by the Settings attribute they back.
_STORE_FIELDS = {
    "TWILIO_SID": "sid",
    "TWILIO_TOKEN": "token",
    "TWILIO_NUMBER": "number",
}


def resolve_twilio_credentials(
    cfg: Optional[Settings] = None,
    load_store: Optional[Callable[[], Dict[str, Any]]] = None,
) -> TwilioCredentials:
    """
    Environment first, config store second, per field.

    The store is only read when the environment leaves something unset, so a
    fully env-configured deployment never touches Firestore at startup.
    """
    cfg = cfg or default_settings
    values = {name: str(getattr(cfg, name) or "").strip() for name in _STORE_FIELDS}
    from_env = {name for name, v in values.items() if v}

    if len(from_env) < len(values):
        if load_store is None:
            load_store = _load_store_doc(cfg)
        doc = load_store() or {}
        for name, key in _STORE_FIELDS.items():
            if not values[name]:
                values[name] = str(doc.get(key) or "").strip()

    missing = [name for name, v in values.items() if not v]
    if missing:
        raise GatewayConfigError(f"Twilio credentials are not configured: {', '.join(missing)}")

    if len(from_env) == len(values):
        source = "env"
    elif not from_env:
        source = "config_store"
    else:
        source = "mixed"

    return TwilioCredentials(
        account_sid=values["TWILIO_SID"],
        auth_token=values["TWILIO_TOKEN"],
        sender_number=values["TWILIO_NUMBER"],
        source=source,
    )


def _load_store_doc(cfg: Settings) -> Callable[[], Dict[str, Any]]:
    def load() -> Dict[str, Any]:
        from repos.runtime_config_repo import RuntimeConfigRepository

        return RuntimeConfigRepository(collection=cfg.RUNTIME_CONFIG_COLLECTION).get(cfg.TWILIO_CONFIG_DOC)

    return load


def build_sms_gateway(
    cfg: Optional[Settings] = None,
    load_store: Optional[Callable[[], Dict[str, Any]]] = None,
) -> TwilioSmsGateway:
    creds = resolve_twilio_credentials(cfg, load_store=load_store)
    gateway = TwilioSmsGateway.from_credentials(creds)
    log.info(
        "sms_gateway_ready",
        extra={"extra": {"event": "sms_gateway_ready", "source": creds.source, "sender": dest_hint(creds.sender_number)}},
    )
    return gateway
