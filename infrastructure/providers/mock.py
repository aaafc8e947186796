"""
In-process providers used for local runs (USE_MOCK_PROVIDERS=true) and tests.

They honour the same contract as the HTTP adapters: get_offer() always
returns an Offer, even when the configured behaviour is to fail or hang.
"""
import asyncio
import logging
import time
import zlib
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest, Offer

logger = logging.getLogger(__name__)

BASE_RATES: dict[tuple[str, str], tuple[Decimal, Decimal]] = {
    # (source, target): (base rate, step per seed unit)
    ("USD", "EUR"): (Decimal("0.85"), Decimal("0.0001")),
    ("USD", "GBP"): (Decimal("0.75"), Decimal("0.0001")),
    ("USD", "DOP"): (Decimal("55.50"), Decimal("0.01")),
    ("EUR", "USD"): (Decimal("1.18"), Decimal("0.0001")),
    ("EUR", "GBP"): (Decimal("0.88"), Decimal("0.0001")),
    ("GBP", "USD"): (Decimal("1.33"), Decimal("0.0001")),
    ("GBP", "EUR"): (Decimal("1.14"), Decimal("0.0001")),
    ("DOP", "USD"): (Decimal("0.018"), Decimal("0.000001")),
}
DEFAULT_RATE = (Decimal("1.0"), Decimal("0.0001"))


def mock_exchange_rate(source: str, target: str, provider_name: str = "") -> Decimal:
    """Deterministic, realistic-looking rate for a pair (stable across processes)."""
    seed = zlib.crc32(f"{provider_name}{source}{target}".encode()) % 1000
    base, step = BASE_RATES.get((source, target), DEFAULT_RATE)
    return base + seed * step


@dataclass(frozen=True)
class MockProviderSettings:
    name: str
    enabled: bool = True
    delay_seconds: float = 0.0
    timeout_seconds: float = 3.0
    error_message: str | None = None
    failure_category: FailureCategory = FailureCategory.UNEXPECTED
    fixed_rate: Decimal | None = None

    @classmethod
    def success(cls, name: str = "MockSuccess", delay_seconds: float = 0.1, **kwargs) -> "MockProviderSettings":
        return cls(name=name, delay_seconds=delay_seconds, **kwargs)

    @classmethod
    def timeout(cls, name: str = "MockTimeout", delay_seconds: float = 30.0, **kwargs) -> "MockProviderSettings":
        return cls(name=name, delay_seconds=delay_seconds, **kwargs)

    @classmethod
    def failure(
        cls, name: str = "MockFailure", error_message: str = "Simulated provider failure", **kwargs
    ) -> "MockProviderSettings":
        return cls(name=name, error_message=error_message, **kwargs)


class _MockProvider:
    def __init__(self, settings: MockProviderSettings):
        self.settings = settings

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def is_available(self) -> bool:
        return self.settings.enabled

    @property
    def timeout(self) -> float:
        return self.settings.timeout_seconds

    async def _delay(self, seconds: float, timeout: float | None) -> None:
        if seconds <= 0:
            return
        async with asyncio.timeout(timeout):
            await asyncio.sleep(seconds)

    async def close(self) -> None:
        return None

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name})>"


class MockSuccessProvider(_MockProvider):
    def __init__(self, settings: MockProviderSettings | None = None):
        super().__init__(settings or MockProviderSettings.success())

    async def get_offer(self, request: CurrencyRequest, timeout: float | None = None) -> Offer:
        start_time = time.perf_counter()
        try:
            await self._delay(self.settings.delay_seconds, timeout)
        except TimeoutError:
            return Offer.failed(
                self.name,
                FailureCategory.TIMEOUT.label,
                FailureCategory.TIMEOUT,
                timedelta(seconds=time.perf_counter() - start_time),
            )

        rate = self.settings.fixed_rate or mock_exchange_rate(
            request.source_currency, request.target_currency, self.name
        )
        offer = Offer.successful(
            self.name,
            request.amount * rate,
            rate,
            timedelta(seconds=time.perf_counter() - start_time),
        )
        logger.debug(f"{self.name}: returned mock offer {offer}")
        return offer

    async def health_check(self, timeout: float | None = None) -> bool:
        if not self.is_available:
            return False
        try:
            await self._delay(min(self.settings.delay_seconds, 0.1), timeout)
        except TimeoutError:
            return False
        return True


class MockTimeoutProvider(_MockProvider):
    """Never answers in time; only a caller-side timeout ends the call."""

    def __init__(self, settings: MockProviderSettings | None = None):
        super().__init__(settings or MockProviderSettings.timeout())

    async def get_offer(self, request: CurrencyRequest, timeout: float | None = None) -> Offer:
        start_time = time.perf_counter()
        try:
            await self._delay(self.settings.delay_seconds, timeout)
        except TimeoutError:
            logger.info(f"{self.name}: mock request timed out as expected")
            return Offer.failed(
                self.name,
                FailureCategory.TIMEOUT.label,
                FailureCategory.TIMEOUT,
                timedelta(seconds=time.perf_counter() - start_time),
            )

        logger.warning(f"{self.name}: unexpectedly completed without timeout")
        return Offer.failed(
            self.name,
            "Mock timeout provider completed without timing out",
            FailureCategory.UNEXPECTED,
            timedelta(seconds=time.perf_counter() - start_time),
        )

    async def health_check(self, timeout: float | None = None) -> bool:
        if not self.is_available:
            return False
        try:
            await self._delay(self.settings.delay_seconds, timeout)
        except TimeoutError:
            pass
        return False


class MockFailureProvider(_MockProvider):
    def __init__(self, settings: MockProviderSettings | None = None):
        super().__init__(settings or MockProviderSettings.failure())

    async def get_offer(self, request: CurrencyRequest, timeout: float | None = None) -> Offer:
        start_time = time.perf_counter()
        category = self.settings.failure_category
        message = self.settings.error_message or "Simulated provider failure"
        try:
            await self._delay(self.settings.delay_seconds, timeout)
        except TimeoutError:
            category, message = FailureCategory.TIMEOUT, FailureCategory.TIMEOUT.label

        return Offer.failed(self.name, message, category, timedelta(seconds=time.perf_counter() - start_time))

    async def health_check(self, timeout: float | None = None) -> bool:
        if not self.is_available:
            return False
        try:
            await self._delay(min(self.settings.delay_seconds, 0.5), timeout)
        except TimeoutError:
            pass
        return False
