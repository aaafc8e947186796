import json
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, runtime_checkable

import httpx

from config.settings import ProviderSettings
from domain.exceptions.exchange import ProviderError
from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest, Offer

USER_AGENT = "ExchangeRateComparison/1.0"


@runtime_checkable
class ExchangeRateProvider(Protocol):
    """Contract every provider adapter (and test double) implements."""

    @property
    def name(self) -> str: ...

    @property
    def is_available(self) -> bool: ...

    @property
    def timeout(self) -> float: ...

    async def get_offer(self, request: CurrencyRequest, timeout: float | None = None) -> Offer:
        """Always returns an Offer; failures come back as failed offers, never as exceptions."""
        ...

    async def health_check(self, timeout: float | None = None) -> bool: ...

    async def close(self) -> None: ...


_DECIMAL_TOKEN = re.compile(r'"\\u0000(\d+)\\u0000"')


def dumps_json(payload: Any) -> str:
    """json.dumps that writes Decimal values as exact JSON numbers instead of going through float."""
    numbers: list[str] = []

    def _default(o):
        if isinstance(o, Decimal):
            if not o.is_finite():
                raise ValueError(f"Out of range Decimal value is not JSON compliant: {o}")
            numbers.append(format(o, "f"))
            return f"\x00{len(numbers) - 1}\x00"
        raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")

    body = json.dumps(payload, default=_default)
    return _DECIMAL_TOKEN.sub(lambda m: numbers[int(m.group(1))], body)


def parse_positive_decimal(value: Any, field_name: str) -> Decimal:
    """Turn a payload value into a Decimal, classifying what is wrong with it."""
    if value is None or value == "":
        raise ProviderError(f"missing '{field_name}'", FailureCategory.MALFORMED_RESPONSE)
    if isinstance(value, bool):
        raise ProviderError(f"'{field_name}' is not a number: {value!r}", FailureCategory.MALFORMED_RESPONSE)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ProviderError(
            f"'{field_name}' is not a number: {value!r}", FailureCategory.MALFORMED_RESPONSE
        ) from e
    if not number.is_finite():
        raise ProviderError(f"'{field_name}' is not a number: {value!r}", FailureCategory.MALFORMED_RESPONSE)
    if number <= 0:
        raise ProviderError(f"non-positive '{field_name}': {number}", FailureCategory.REJECTED)
    return number


class HTTPExchangeRateProvider(ABC):
    """
    Common HTTP handling for the wire-format adapters.

    Subclasses only build the request body and parse the response. Everything
    that can go wrong on the way (timeouts, connection errors, bad status codes,
    unparsable payloads) is converted here into a failed Offer.
    """

    content_type = "application/json"
    # When True the body is handed to the parser even on non-2xx responses
    inspect_error_responses = False

    def __init__(self, settings: ProviderSettings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout_seconds),
            headers={"User-Agent": USER_AGENT},
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        self.logger = logging.getLogger(f"provider.{settings.name}")

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def is_available(self) -> bool:
        return self.settings.enabled

    @property
    def timeout(self) -> float:
        return self.settings.timeout_seconds

    @abstractmethod
    def _build_request_body(self, request: CurrencyRequest) -> str:
        """Serialize the request into this provider's wire format."""

    @abstractmethod
    def _parse_response(self, response: httpx.Response, request: CurrencyRequest) -> tuple[Decimal, Decimal]:
        """Return (converted_amount, exchange_rate) or raise ProviderError."""

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": self.content_type, "Accept": self.content_type}
        if self.settings.api_key:
            headers["X-API-Key"] = self.settings.api_key
        return headers

    def _effective_timeout(self, timeout: float | None) -> float:
        return self.timeout if timeout is None else min(self.timeout, timeout)

    @staticmethod
    def _read_json(response: httpx.Response) -> Any:
        try:
            return response.json(parse_float=Decimal)
        except ValueError as e:
            raise ProviderError(f"invalid JSON body ({e})", FailureCategory.MALFORMED_RESPONSE) from e

    @staticmethod
    def _status_error(response: httpx.Response) -> ProviderError:
        return ProviderError(f"HTTP {response.status_code} {response.reason_phrase}", FailureCategory.TRANSPORT)

    def _failed(self, category: FailureCategory, detail: str | None, start_time: float) -> Offer:
        return Offer.failed(
            self.name,
            category.describe(detail),
            category,
            timedelta(seconds=time.perf_counter() - start_time),
        )

    async def get_offer(self, request: CurrencyRequest, timeout: float | None = None) -> Offer:
        if not self.is_available:
            self.logger.warning(f"{self.name} provider is disabled")
            return Offer.failed(self.name, "Provider is disabled", FailureCategory.UNEXPECTED)

        start_time = time.perf_counter()
        body = self._build_request_body(request)
        self.logger.debug(f"{self.name}: POST {self.settings.full_url} for {request}: {body}")

        try:
            response = await self._client.post(
                self.settings.full_url,
                content=body,
                headers=self._headers(),
                timeout=self._effective_timeout(timeout),
            )
            if not response.is_success and not self.inspect_error_responses:
                raise self._status_error(response)

            converted_amount, exchange_rate = self._parse_response(response, request)
            offer = Offer.successful(
                self.name,
                converted_amount,
                exchange_rate,
                timedelta(seconds=time.perf_counter() - start_time),
            )

        except ProviderError as e:
            offer = self._failed(e.category, str(e), start_time)
        except httpx.TimeoutException:
            offer = self._failed(FailureCategory.TIMEOUT, None, start_time)
        except httpx.RequestError as e:
            offer = self._failed(FailureCategory.TRANSPORT, f"request failed: {e.__class__.__name__}", start_time)
        except Exception as e:
            self.logger.exception(f"{self.name}: unexpected error while getting offer")
            offer = self._failed(FailureCategory.UNEXPECTED, str(e) or e.__class__.__name__, start_time)

        duration_ms = offer.response_duration.total_seconds() * 1000
        if offer.is_successful:
            self.logger.info(
                f"{self.name}: rate {offer.exchange_rate:.4f}, amount {offer.converted_amount:.2f} in {duration_ms:.0f}ms"
            )
        else:
            self.logger.warning(f"{self.name}: {offer.error_message} after {duration_ms:.0f}ms")
        return offer

    async def health_check(self, timeout: float | None = None) -> bool:
        if not self.is_available:
            return False

        try:
            response = await self._client.get(self.settings.health_url, timeout=self._effective_timeout(timeout))
            self.logger.debug(f"{self.name}: health check returned HTTP {response.status_code}")
            return response.is_success
        except Exception as e:
            self.logger.warning(f"{self.name}: health check failed: {e.__class__.__name__}")
            return False

    async def close(self) -> None:
        """Cleanly close the HTTP client."""
        await self._client.aclose()

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name})>"
