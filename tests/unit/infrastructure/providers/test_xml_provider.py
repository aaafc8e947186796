import xml.etree.ElementTree as ET
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest

from config.settings import XmlProviderSettings
from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest
from infrastructure.providers.xml_provider import XmlExchangeRateProvider, format_amount


@pytest.fixture
def mock_client():
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def provider(mock_client):
    return XmlExchangeRateProvider(XmlProviderSettings(), client=mock_client)


def test_format_amount():
    assert format_amount(Decimal("100")) == "100.00"
    assert format_amount(Decimal("1234567.125")) == "1234567.13"
    assert format_amount(Decimal("0.5")) == "0.50"


@pytest.mark.asyncio
async def test_get_offer_success(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, text="<XML><Result>85.50</Result></XML>")

    offer = await provider.get_offer(usd_eur_request)

    assert offer.is_successful
    assert offer.provider_name == "API2"
    assert offer.converted_amount == Decimal("85.50")
    assert offer.exchange_rate == Decimal("0.855")


@pytest.mark.asyncio
async def test_get_offer_sends_xml_body(provider, mock_client, make_response):
    mock_client.post.return_value = make_response(200, text="<XML><Result>1</Result></XML>")
    request = CurrencyRequest("GBP", "USD", Decimal("12.345"))

    await provider.get_offer(request)

    call_args = mock_client.post.call_args
    assert call_args[0][0] == "http://localhost:5002/convert"
    assert call_args[1]["headers"]["Content-Type"] == "application/xml"
    root = ET.fromstring(call_args[1]["content"])
    assert root.tag == "XML"
    assert root.findtext("From") == "GBP"
    assert root.findtext("To") == "USD"
    assert root.findtext("Amount") == "12.35"


@pytest.mark.asyncio
async def test_get_offer_result_with_whitespace(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, text="<XML>\n  <Result> 90 </Result>\n</XML>")

    offer = await provider.get_offer(usd_eur_request)

    assert offer.converted_amount == Decimal("90")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "<XML><Result>85.50</XML>",
        "<XML><Other>1</Other></XML>",
        "<XML><Result></Result></XML>",
        "<XML><Result>eighty</Result></XML>",
        "",
    ],
)
async def test_get_offer_malformed_xml(provider, mock_client, make_response, usd_eur_request, body):
    mock_client.post.return_value = make_response(200, text=body)

    offer = await provider.get_offer(usd_eur_request)

    assert not offer.is_successful
    assert offer.error_category == FailureCategory.MALFORMED_RESPONSE
    assert offer.error_message.startswith("Malformed response:")


@pytest.mark.asyncio
async def test_get_offer_non_positive_result(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, text="<XML><Result>0</Result></XML>")

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.REJECTED


@pytest.mark.asyncio
async def test_get_offer_http_error_status(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(500, text="<XML><Result>85.50</Result></XML>")

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.TRANSPORT
    assert offer.error_message == "Transport error: HTTP 500 Internal Server Error"


@pytest.mark.asyncio
async def test_get_offer_timeout(provider, mock_client, usd_eur_request):
    mock_client.post.side_effect = httpx.ConnectTimeout("timed out")

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.TIMEOUT
