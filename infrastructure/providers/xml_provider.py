import xml.etree.ElementTree as ET
from decimal import ROUND_HALF_UP, Decimal

import httpx

from config.settings import ProviderSettings, XmlProviderSettings
from domain.exceptions.exchange import ProviderError
from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest

from .base import HTTPExchangeRateProvider, parse_positive_decimal

TWO_PLACES = Decimal("0.01")


def format_amount(amount: Decimal) -> str:
    """Two fractional digits, '.' separator, no grouping."""
    return f"{amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP):f}"


class XmlExchangeRateProvider(HTTPExchangeRateProvider):
    """XML provider: <XML><From/><To/><Amount/></XML> -> <XML><Result/></XML>"""

    content_type = "application/xml"

    def __init__(self, settings: ProviderSettings | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(settings or XmlProviderSettings(), client)

    def _build_request_body(self, request: CurrencyRequest) -> str:
        root = ET.Element("XML")
        ET.SubElement(root, "From").text = request.source_currency
        ET.SubElement(root, "To").text = request.target_currency
        ET.SubElement(root, "Amount").text = format_amount(request.amount)
        return ET.tostring(root, encoding="unicode")

    def _parse_response(self, response: httpx.Response, request: CurrencyRequest) -> tuple[Decimal, Decimal]:
        try:
            root = ET.fromstring(response.text)
        except ET.ParseError as e:
            raise ProviderError(f"invalid XML body ({e})", FailureCategory.MALFORMED_RESPONSE) from e

        result = root.find("Result")
        if result is None:
            raise ProviderError("missing Result element", FailureCategory.MALFORMED_RESPONSE)
        if not result.text or not result.text.strip():
            raise ProviderError("empty Result element", FailureCategory.MALFORMED_RESPONSE)

        converted_amount = parse_positive_decimal(result.text, "Result")
        return converted_amount, converted_amount / request.amount
