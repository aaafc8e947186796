from decimal import Decimal

import httpx

from config.settings import NestedJsonProviderSettings, ProviderSettings
from domain.exceptions.exchange import ProviderError
from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest

from .base import HTTPExchangeRateProvider, dumps_json, parse_positive_decimal


class NestedJsonExchangeRateProvider(HTTPExchangeRateProvider):
    """
    Nested JSON provider:
    {exchange: {sourceCurrency, targetCurrency, quantity}} -> {statusCode, message, data: {total}}

    This API reports errors inside the payload, so a 200 HTTP response can still
    carry a failure. The embedded statusCode is what decides.
    """

    inspect_error_responses = True

    def __init__(self, settings: ProviderSettings | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(settings or NestedJsonProviderSettings(), client)

    def _build_request_body(self, request: CurrencyRequest) -> str:
        return dumps_json(
            {
                "exchange": {
                    "sourceCurrency": request.source_currency,
                    "targetCurrency": request.target_currency,
                    "quantity": request.amount,
                }
            }
        )

    def _parse_response(self, response: httpx.Response, request: CurrencyRequest) -> tuple[Decimal, Decimal]:
        try:
            data = self._read_json(response)
        except ProviderError:
            # Without a readable body a bad HTTP status is all we have to go on
            if not response.is_success:
                raise self._status_error(response) from None
            raise

        if not isinstance(data, dict):
            if not response.is_success:
                raise self._status_error(response)
            raise ProviderError("expected a JSON object", FailureCategory.MALFORMED_RESPONSE)

        status_code = data.get("statusCode")
        if status_code is None:
            if not response.is_success:
                raise self._status_error(response)
            raise ProviderError("missing 'statusCode'", FailureCategory.MALFORMED_RESPONSE)
        try:
            status_code = int(status_code)
        except (TypeError, ValueError) as e:
            raise ProviderError(
                f"'statusCode' is not an integer: {status_code!r}", FailureCategory.MALFORMED_RESPONSE
            ) from e

        if status_code != 200:
            message = data.get("message") or f"API returned status code: {status_code}"
            raise ProviderError(message, FailureCategory.REJECTED)

        payload = data.get("data")
        if not isinstance(payload, dict):
            raise ProviderError("missing 'data'", FailureCategory.MALFORMED_RESPONSE)

        total = parse_positive_decimal(payload.get("total"), "total")
        return total, total / request.amount
