from decimal import Decimal

import httpx

from config.settings import JsonProviderSettings, ProviderSettings
from domain.exceptions.exchange import ProviderError
from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest

from .base import HTTPExchangeRateProvider, dumps_json, parse_positive_decimal


class JsonExchangeRateProvider(HTTPExchangeRateProvider):
    """Flat JSON provider: {from, to, value} -> {rate}"""

    def __init__(self, settings: ProviderSettings | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(settings or JsonProviderSettings(), client)

    def _build_request_body(self, request: CurrencyRequest) -> str:
        return dumps_json(
            {
                "from": request.source_currency,
                "to": request.target_currency,
                "value": request.amount,
            }
        )

    def _parse_response(self, response: httpx.Response, request: CurrencyRequest) -> tuple[Decimal, Decimal]:
        data = self._read_json(response)
        if not isinstance(data, dict):
            raise ProviderError("expected a JSON object", FailureCategory.MALFORMED_RESPONSE)

        rate = parse_positive_decimal(data.get("rate"), "rate")
        return request.amount * rate, rate
