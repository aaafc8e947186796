import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Iterable
from datetime import UTC, datetime, timedelta

from domain.exceptions.exchange import NoProvidersAvailableError
from domain.models.enums import FailureCategory
from domain.models.exchange import ComparisonResult, CurrencyRequest, Offer, ProviderInfo
from infrastructure.providers.base import ExchangeRateProvider

logger = logging.getLogger(__name__)


class RequestCancelled(Exception):
    """The caller's cancel event fired while a provider call was in flight."""


def _elapsed(start_time: float) -> timedelta:
    return timedelta(seconds=time.perf_counter() - start_time)


class ExchangeRateComparisonService:
    """
    Fans a conversion request out to every available provider and picks the best offer.

    Each provider call runs as its own task with its own timeout, capped by the
    caller's overall deadline. Whatever happens inside one call (error, timeout,
    cancellation) is turned into a failed Offer for that provider, so the other
    providers' results are never lost.
    """

    def __init__(
        self,
        providers: Iterable[ExchangeRateProvider],
        *,
        fail_fast_on_no_providers: bool = False,
        health_check_timeout: float = 5.0,
        enable_performance_logging: bool = True,
    ):
        self.providers = list(providers)
        names = [p.name for p in self.providers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Provider names must be unique, duplicated: {', '.join(duplicates)}")
        self.fail_fast_on_no_providers = fail_fast_on_no_providers
        self.health_check_timeout = health_check_timeout
        self.enable_performance_logging = enable_performance_logging

    async def compare(
        self,
        request: CurrencyRequest,
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ComparisonResult:
        """
        Get offers from all available providers and return the comparison result.

        Args:
            request: Validated conversion request
            timeout: Overall deadline in seconds; no provider gets more than what is left of it
            cancel_event: Setting it cancels the run; in-flight providers resolve to failed offers

        Returns:
            COMPLETED result (possibly without a best offer) unless the run itself
            was cancelled or broke down, in which case FAILED.

        Raises:
            NoProvidersAvailableError: no provider is enabled and fail-fast is configured
        """
        start_time = time.perf_counter()
        correlation_id = uuid.uuid4().hex[:8]
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        logger.info(f"[{correlation_id}] Starting exchange rate comparison for {request}")

        available = self._get_available_providers()
        if not available:
            logger.warning(f"[{correlation_id}] No exchange rate providers are available")
            if self.fail_fast_on_no_providers:
                raise NoProvidersAvailableError()
            return ComparisonResult.completed(request, [], _elapsed(start_time))

        if (cancel_event is not None and cancel_event.is_set()) or (deadline is not None and loop.time() >= deadline):
            logger.warning(f"[{correlation_id}] Comparison cancelled before any provider was queried")
            return ComparisonResult.failed(request, _elapsed(start_time))

        try:
            offers = await asyncio.gather(
                *(
                    self._get_offer_guarded(provider, request, deadline, cancel_event, correlation_id)
                    for provider in available
                )
            )

            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    f"[{correlation_id}] Comparison was cancelled after {_elapsed(start_time).total_seconds() * 1000:.0f}ms"
                )
                return ComparisonResult.failed(request, _elapsed(start_time), offers)

            result = ComparisonResult.completed(request, offers, _elapsed(start_time))
        except Exception:
            logger.exception(
                f"[{correlation_id}] Failed to complete exchange rate comparison after "
                f"{_elapsed(start_time).total_seconds() * 1000:.0f}ms"
            )
            return ComparisonResult.failed(request, _elapsed(start_time))

        self._log_completion_summary(result, correlation_id)
        return result

    async def check_providers_health(self, timeout: float | None = None) -> dict[str, bool]:
        """Run every provider's health check concurrently; a slow or broken one just reports False."""
        budget = timeout if timeout is not None else self.health_check_timeout
        logger.debug(f"Checking health status of {len(self.providers)} providers")

        results = await asyncio.gather(*(self._check_health_guarded(p, budget) for p in self.providers))
        health = {provider.name: is_healthy for provider, is_healthy in zip(self.providers, results, strict=True)}

        healthy = sum(1 for ok in health.values() if ok)
        logger.info(
            f"Health check completed for {len(health)} providers. "
            f"Healthy: {healthy}, Unhealthy: {len(health) - healthy}"
        )
        return health

    def get_providers_info(self) -> list[ProviderInfo]:
        checked_at = datetime.now(UTC)
        return [
            ProviderInfo(
                name=provider.name,
                is_available=provider.is_available,
                description=f"Exchange rate provider: {provider.name}",
                checked_at=checked_at,
            )
            for provider in self.providers
        ]

    def _get_available_providers(self) -> list[ExchangeRateProvider]:
        available = [p for p in self.providers if p.is_available]
        logger.info(
            f"Found {len(self.providers)} providers, {len(available)} available: "
            f"{', '.join(p.name for p in available)}"
        )
        return available

    @staticmethod
    def _provider_budget(provider: ExchangeRateProvider, deadline: float | None) -> float:
        budget = provider.timeout
        if deadline is not None:
            budget = max(0.0, min(budget, deadline - asyncio.get_running_loop().time()))
        return budget

    async def _get_offer_guarded(
        self,
        provider: ExchangeRateProvider,
        request: CurrencyRequest,
        deadline: float | None,
        cancel_event: asyncio.Event | None,
        correlation_id: str,
    ) -> Offer:
        start_time = time.perf_counter()
        budget = self._provider_budget(provider, deadline)
        logger.debug(f"[{correlation_id}] Requesting offer from {provider.name} (timeout: {budget:g}s)")

        try:
            async with asyncio.timeout(budget):
                offer = await self._race_cancellation(provider.get_offer(request, budget), cancel_event)
            if not isinstance(offer, Offer):
                offer = Offer.failed(
                    provider.name,
                    FailureCategory.UNEXPECTED.describe("provider returned no offer"),
                    FailureCategory.UNEXPECTED,
                    _elapsed(start_time),
                )
        except TimeoutError:
            offer = Offer.failed(
                provider.name,
                f"{FailureCategory.TIMEOUT.label} after {budget:g}s",
                FailureCategory.TIMEOUT,
                _elapsed(start_time),
            )
        except RequestCancelled:
            offer = Offer.failed(
                provider.name,
                FailureCategory.CANCELLED.label,
                FailureCategory.CANCELLED,
                _elapsed(start_time),
            )
        except Exception as e:
            logger.exception(f"[{correlation_id}] Error getting offer from provider: {provider.name}")
            offer = Offer.failed(
                provider.name,
                FailureCategory.UNEXPECTED.describe(str(e) or e.__class__.__name__),
                FailureCategory.UNEXPECTED,
                _elapsed(start_time),
            )

        self._log_provider_result(provider.name, offer, _elapsed(start_time), correlation_id)
        return offer

    @staticmethod
    async def _race_cancellation(call: Awaitable[Offer], cancel_event: asyncio.Event | None) -> Offer:
        if cancel_event is None:
            return await call

        offer_task = asyncio.ensure_future(call)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({offer_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            offer_task.cancel()
            cancel_task.cancel()
            # let the cut-off provider call unwind before the result is assembled
            await asyncio.gather(offer_task, cancel_task, return_exceptions=True)

        if offer_task in done:
            return offer_task.result()
        raise RequestCancelled()

    async def _check_health_guarded(self, provider: ExchangeRateProvider, budget: float) -> bool:
        try:
            async with asyncio.timeout(budget):
                is_healthy = await provider.health_check(budget)
        except TimeoutError:
            logger.warning(f"Health check timed out for provider: {provider.name}")
            return False
        except Exception:
            logger.warning(f"Health check failed for provider: {provider.name}", exc_info=True)
            return False

        logger.debug(f"Provider {provider.name} health check: {'Healthy' if is_healthy else 'Unhealthy'}")
        return bool(is_healthy)

    def _log_provider_result(self, provider_name: str, offer: Offer, duration: timedelta, correlation_id: str):
        duration_ms = duration.total_seconds() * 1000
        if offer.is_successful:
            if self.enable_performance_logging:
                logger.info(
                    f"[{correlation_id}] {provider_name}: {offer.converted_amount:.2f} "
                    f"(Rate: {offer.exchange_rate:.4f}) in {duration_ms:.0f}ms"
                )
            else:
                logger.info(f"[{correlation_id}] {provider_name}: {offer.converted_amount:.2f}")
        else:
            logger.warning(
                f"[{correlation_id}] {provider_name}: Failed - {offer.error_message} in {duration_ms:.0f}ms"
            )

    def _log_completion_summary(self, result: ComparisonResult, correlation_id: str):
        summary = {
            'correlation_id': correlation_id,
            'status': result.status,
            'best_provider': result.best_offer.provider_name if result.best_offer else None,
            'best_amount': result.best_offer.converted_amount if result.best_offer else None,
            'successful_offers': result.successful_offers_count,
            'failed_offers': result.failed_offers_count,
            'processing_ms': round(result.processing_duration.total_seconds() * 1000, 1),
            'savings': result.calculate_savings(),
        }

        if result.best_offer is not None:
            logger.info(
                f"[{correlation_id}] Comparison completed. Best offer: {result.best_offer} | "
                f"Results: {summary['successful_offers']} ok / {summary['failed_offers']} failed | "
                f"Savings: {summary['savings']:.2f} | Processing time: {summary['processing_ms']}ms",
                extra={'extra_data': summary},
            )
        else:
            logger.warning(
                f"[{correlation_id}] Comparison completed with no successful offers. "
                f"Results: 0 ok / {summary['failed_offers']} failed | Processing time: {summary['processing_ms']}ms",
                extra={'extra_data': summary},
            )
