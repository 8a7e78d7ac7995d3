"""
AccessGate Test Configuration
=============================

Pytest fixtures for store-free unit tests.
"""

import uuid

import pytest
from starlette.requests import Request

from accessgate.api.db.models import Account, AccessStatus, Role


@pytest.fixture
def make_account():
    """Build an unsaved account in a given state."""

    def _make(status: AccessStatus = AccessStatus.PENDING, role: Role = Role.USER) -> Account:
        return Account(
            id=uuid.uuid4(),
            name="Unit Test",
            email=f"{uuid.uuid4().hex[:8]}@example.com",
            password_hash="x",
            role=role.value,
            access_status=status.value,
        )

    return _make


@pytest.fixture
def make_request():
    """Build a bare ASGI request with the given headers and client address."""

    def _make(headers: dict = None, client: tuple = ("198.51.100.20", 5000)) -> Request:
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [
                (k.lower().encode(), v.encode()) for k, v in (headers or {}).items()
            ],
            "client": client,
        }
        return Request(scope)

    return _make
