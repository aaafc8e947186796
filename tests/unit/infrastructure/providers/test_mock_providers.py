import time
from decimal import Decimal

import pytest

from domain.models.enums import FailureCategory
from infrastructure.providers import ExchangeRateProvider
from infrastructure.providers.mock import (
    MockFailureProvider,
    MockProviderSettings,
    MockSuccessProvider,
    MockTimeoutProvider,
    mock_exchange_rate,
)


def test_mock_providers_satisfy_provider_contract():
    assert isinstance(MockSuccessProvider(), ExchangeRateProvider)
    assert isinstance(MockTimeoutProvider(), ExchangeRateProvider)
    assert isinstance(MockFailureProvider(), ExchangeRateProvider)


def test_mock_exchange_rate_is_deterministic():
    first = mock_exchange_rate("USD", "EUR", "MockAPI1")

    assert first == mock_exchange_rate("USD", "EUR", "MockAPI1")
    assert Decimal("0.85") <= first < Decimal("0.95")


@pytest.mark.asyncio
async def test_success_provider_returns_offer(usd_eur_request):
    provider = MockSuccessProvider(MockProviderSettings.success("Mock", delay_seconds=0, fixed_rate=Decimal("0.9")))

    offer = await provider.get_offer(usd_eur_request)

    assert offer.is_successful
    assert offer.provider_name == "Mock"
    assert offer.exchange_rate == Decimal("0.9")
    assert offer.converted_amount == Decimal("90.0")


@pytest.mark.asyncio
async def test_success_provider_respects_caller_timeout(usd_eur_request):
    provider = MockSuccessProvider(MockProviderSettings.success("Slow", delay_seconds=5))

    offer = await provider.get_offer(usd_eur_request, timeout=0.05)

    assert offer.error_category == FailureCategory.TIMEOUT


@pytest.mark.asyncio
async def test_timeout_provider_returns_timeout_offer(usd_eur_request):
    provider = MockTimeoutProvider()

    start = time.perf_counter()
    offer = await provider.get_offer(usd_eur_request, timeout=0.05)

    assert time.perf_counter() - start < 1
    assert not offer.is_successful
    assert offer.error_category == FailureCategory.TIMEOUT
    assert await provider.health_check(timeout=0.01) is False


@pytest.mark.asyncio
async def test_failure_provider_returns_configured_failure(usd_eur_request):
    provider = MockFailureProvider(
        MockProviderSettings.failure(
            "Broken", error_message="Upstream rejected pair", failure_category=FailureCategory.REJECTED
        )
    )

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_message == "Upstream rejected pair"
    assert offer.error_category == FailureCategory.REJECTED
    assert await provider.health_check() is False


@pytest.mark.asyncio
async def test_health_check_of_success_provider():
    assert await MockSuccessProvider(MockProviderSettings.success(delay_seconds=0)).health_check() is True
    assert await MockSuccessProvider(MockProviderSettings.success(enabled=False)).health_check() is False
