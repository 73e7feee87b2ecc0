from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from app.callable import CallableError
from messaging.sms import SmsGateway
from security.firebase_auth import get_caller_identity
from sos.models import CallerIdentity, Rejected
from sos.relay import relay_sos

router = APIRouter()


class CallableBody(BaseModel):
    data: Any = None


def get_sms_gateway(request: Request) -> SmsGateway:
    gateway = getattr(request.app.state, "sms_gateway", None)
    if gateway is None:
        # Lifespan did not run (or failed); never send without a configured gateway.
        raise CallableError("INTERNAL", "INTERNAL")
    return gateway


@router.post("/sendSOS")
def send_sos(
    body: CallableBody,
    caller: Optional[CallerIdentity] = Depends(get_caller_identity),
    gateway: SmsGateway = Depends(get_sms_gateway),
) -> Dict[str, Any]:
    outcome = relay_sos(caller, body.data, gateway)
    if isinstance(outcome, Rejected):
        raise CallableError.from_reject(outcome.code, outcome.message)
    # Provider failures are a normal payload with ok=False, not a protocol error.
    return {"result": outcome.to_payload()}
