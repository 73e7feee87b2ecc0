from __future__ import annotations

import logging
from typing import Any, List, Optional

from messaging.sms import SmsGateway
from ops.metrics import Timer
from sos.models import (
    CallerIdentity,
    Delivered,
    ProviderFailed,
    RejectCode,
    Rejected,
    RelayOutcome,
    SOSRequest,
    SendResult,
)
from utils.redact import dest_hint

log = logging.getLogger("sos.relay")

MAX_RECIPIENTS = 3
SEND_FAILED = "send failed"


def provider_error_message(exc: BaseException) -> str:
    # TwilioRestException carries the human-readable text in .msg; str() adds URI/status noise.
    msg = getattr(exc, "msg", None) or str(exc)
    return str(msg).strip() or SEND_FAILED


def _reject(code: RejectCode, message: str, uid: str = "") -> Rejected:
    log.info(
        "sos_request_rejected",
        extra={"extra": {"event": "sos_request_rejected", "code": code.value, "user_id": uid}},
    )
    return Rejected(code=code, message=message)


def relay_sos(caller: Optional[CallerIdentity], payload: Any, gateway: SmsGateway) -> RelayOutcome:
    """
    Forward an SOS message to at most MAX_RECIPIENTS contacts.

    Validation happens before any send. Sends are sequential; the first
    gateway error aborts the batch and the whole call reports ok=False,
    dropping results of sends that already went out.
    """
    if caller is None:
        return _reject(RejectCode.UNAUTHENTICATED, "Sign in required.")

    req = payload if isinstance(payload, SOSRequest) else SOSRequest.from_payload(payload)
    message = req.message.strip()
    if not message or not req.contacts:
        return _reject(RejectCode.INVALID_ARGUMENT, "contacts and message are required", caller.uid)

    # Guardrail for trial accounts: extra contacts are dropped silently.
    limited = req.contacts[:MAX_RECIPIENTS]

    results: List[SendResult] = []
    to = ""
    timer = Timer()
    try:
        for contact in limited:
            to = contact.phone.strip()
            if not to:
                continue
            log.info(
                "sos_send_attempt",
                extra={"extra": {"event": "sos_send_attempt", "channel": "sms", "dest": dest_hint(to), "user_id": caller.uid}},
            )
            sid = gateway.send(to=to, body=message)
            results.append(SendResult(to=to, sid=sid))
            log.info(
                "sos_send_result",
                extra={"extra": {"event": "sos_send_result", "channel": "sms", "dest": dest_hint(to), "sid": sid}},
            )
    except Exception as e:
        # Provider error text and tracebacks echo the full "To" number; log codes and the masked hint only.
        log.error(
            "sos_send_exception",
            extra={
                "extra": {
                    "event": "sos_send_exception",
                    "channel": "sms",
                    "dest": dest_hint(to),
                    "user_id": caller.uid,
                    "error_type": type(e).__name__,
                    "provider_code": getattr(e, "code", None),
                    "provider_status": getattr(e, "status", None),
                    "sent_before_failure": len(results),
                    "latency_ms": timer.ms(),
                }
            },
        )
        return ProviderFailed(error=provider_error_message(e))

    log.info(
        "sos_relay_complete",
        extra={
            "extra": {
                "event": "sos_relay_complete",
                "user_id": caller.uid,
                "requested": len(req.contacts),
                "selected": len(limited),
                "sent": len(results),
                "latency_ms": timer.ms(),
            }
        },
    )
    return Delivered(results=results)
