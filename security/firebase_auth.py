from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from config.settings import settings
from sos.models import CallerIdentity

log = logging.getLogger("sos.firebase_auth")


def bearer_token(request: Request) -> str:
    h = request.headers.get("authorization", "").strip()
    parts = h.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def verify_firebase_token(token: str, project_id: Optional[str] = None) -> Dict[str, Any]:
    audience = project_id if project_id is not None else settings.FIREBASE_PROJECT_ID
    if not audience:
        # Fail closed: without a project id any Firebase project's tokens would pass.
        raise ValueError("firebase_project_id_not_configured")
    claims = id_token.verify_firebase_token(token, google_requests.Request(), audience=audience)
    if not claims:
        raise ValueError("empty_claims")
    return claims


def get_caller_identity(request: Request) -> Optional[CallerIdentity]:
    """
    Caller identity for a callable request, or None when the caller is not
    signed in. A present but unverifiable token also yields None; the relay
    then rejects the call as unauthenticated.
    """
    if not request.headers.get("authorization"):
        return None

    token = bearer_token(request)
    if not token:
        log.warning("firebase_token_rejected", extra={"extra": {"event": "firebase_token_rejected", "reason": "invalid_auth_header"}})
        return None

    try:
        claims = verify_firebase_token(token)
    except Exception as e:
        log.warning(
            "firebase_token_rejected",
            extra={"extra": {"event": "firebase_token_rejected", "error_type": type(e).__name__, "error": str(e)}},
        )
        return None

    uid = str(claims.get("user_id") or claims.get("sub") or "")
    if not uid:
        log.warning("firebase_token_rejected", extra={"extra": {"event": "firebase_token_rejected", "reason": "missing_uid"}})
        return None
    return CallerIdentity(uid=uid, claims=claims)
