from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from sos.models import CallerIdentity


class FakeGateway:
    sender_number = "+15550009999"
    credentials_source = "env"

    def __init__(self, fail_on: Optional[int] = None, error: Optional[Exception] = None):
        self.fail_on = fail_on
        self.error = error or RuntimeError("boom")
        self.calls: List[Tuple[str, str]] = []

    def send(self, to: str, body: str) -> str:
        self.calls.append((to, body))
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise self.error
        return f"SM{len(self.calls):04d}"


@pytest.fixture
def caller():
    return CallerIdentity(uid="user-1", claims={"sub": "user-1"})


@pytest.fixture
def gateway_factory():
    return FakeGateway


@pytest.fixture
def gateway(gateway_factory):
    return gateway_factory()
