"""
Shared fixtures: a canonical request and a factory for real httpx responses.
"""

from decimal import Decimal

import httpx
import pytest

from domain.models.exchange import CurrencyRequest


@pytest.fixture
def usd_eur_request():
    return CurrencyRequest("USD", "EUR", Decimal("100"))


@pytest.fixture
def make_response():
    """Build an httpx.Response bound to a request so status helpers work."""

    def _make(status_code=200, *, json=None, text=None, url="http://test.local/endpoint"):
        kwargs = {}
        if json is not None:
            kwargs["json"] = json
        if text is not None:
            kwargs["text"] = text
        return httpx.Response(status_code, request=httpx.Request("POST", url), **kwargs)

    return _make
