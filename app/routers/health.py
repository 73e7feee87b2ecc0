from __future__ import annotations

import os
import time
from typing import Any, Dict

from fastapi import APIRouter, Request

from config.settings import settings

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    rev = os.getenv("K_REVISION") or ""
    svc = os.getenv("K_SERVICE") or settings.SERVICE_NAME

    gateway = getattr(request.app.state, "sms_gateway", None)

    return {
        "ok": gateway is not None,
        "service": settings.SERVICE_NAME,
        "cloudrun_service": svc,
        "revision": rev,
        "environment": settings.ENVIRONMENT,
        "sms_gateway_ready": gateway is not None,
        "credentials_source": getattr(gateway, "credentials_source", "") if gateway is not None else "",
        "time_unix": time.time(),
    }
