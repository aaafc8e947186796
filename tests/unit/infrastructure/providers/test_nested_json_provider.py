import json
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest

from config.settings import NestedJsonProviderSettings
from domain.models.enums import FailureCategory
from domain.models.exchange import CurrencyRequest
from infrastructure.providers.nested_json_provider import NestedJsonExchangeRateProvider


@pytest.fixture
def mock_client():
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def provider(mock_client):
    return NestedJsonExchangeRateProvider(NestedJsonProviderSettings(), client=mock_client)


@pytest.mark.asyncio
async def test_get_offer_success(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(
        200, json={"statusCode": 200, "message": "OK", "data": {"total": 86.25}}
    )

    offer = await provider.get_offer(usd_eur_request)

    assert offer.is_successful
    assert offer.provider_name == "API3"
    assert offer.converted_amount == Decimal("86.25")
    assert offer.exchange_rate == Decimal("0.8625")


@pytest.mark.asyncio
async def test_get_offer_sends_nested_body(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, json={"statusCode": 200, "data": {"total": 1}})

    await provider.get_offer(usd_eur_request)

    call_args = mock_client.post.call_args
    assert call_args[0][0] == "http://localhost:5003/currency-exchange"
    assert json.loads(call_args[1]["content"]) == {
        "exchange": {"sourceCurrency": "USD", "targetCurrency": "EUR", "quantity": 100.0}
    }


@pytest.mark.asyncio
async def test_get_offer_sends_exact_quantity(provider, mock_client, make_response):
    amount = Decimal("123456789.123456789")
    mock_client.post.return_value = make_response(
        200, json={"statusCode": 200, "data": {"total": "246913578.246913578"}}
    )

    offer = await provider.get_offer(CurrencyRequest("USD", "EUR", amount))

    sent = json.loads(mock_client.post.call_args[1]["content"], parse_float=Decimal)
    assert sent["exchange"]["quantity"] == amount
    assert offer.exchange_rate == Decimal("2")


@pytest.mark.asyncio
async def test_embedded_error_status_on_http_200(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(
        200, json={"statusCode": 503, "message": "Service temporarily unavailable", "data": None}
    )

    offer = await provider.get_offer(usd_eur_request)

    assert not offer.is_successful
    assert offer.error_category == FailureCategory.REJECTED
    assert offer.error_message == "Rejected by provider: Service temporarily unavailable"


@pytest.mark.asyncio
async def test_embedded_error_without_message(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, json={"statusCode": 400})

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_message == "Rejected by provider: API returned status code: 400"


@pytest.mark.asyncio
async def test_error_body_on_http_error_is_inspected(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(
        400, json={"statusCode": 400, "message": "Unsupported currency pair"}
    )

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.REJECTED
    assert "Unsupported currency pair" in offer.error_message


@pytest.mark.asyncio
async def test_http_error_without_readable_body(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(502, text="<html>Bad gateway</html>")

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.TRANSPORT
    assert offer.error_message == "Transport error: HTTP 502 Bad Gateway"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"data": {"total": 1}},
        {"statusCode": "two hundred", "data": {"total": 1}},
        {"statusCode": 200},
        {"statusCode": 200, "data": {}},
        {"statusCode": 200, "data": {"total": "n/a"}},
        ["statusCode", 200],
    ],
)
async def test_malformed_payload(provider, mock_client, make_response, usd_eur_request, payload):
    mock_client.post.return_value = make_response(200, json=payload)

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.MALFORMED_RESPONSE


@pytest.mark.asyncio
async def test_status_code_as_string(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, json={"statusCode": "200", "data": {"total": "50"}})

    offer = await provider.get_offer(usd_eur_request)

    assert offer.is_successful
    assert offer.converted_amount == Decimal("50")


@pytest.mark.asyncio
async def test_non_positive_total(provider, mock_client, make_response, usd_eur_request):
    mock_client.post.return_value = make_response(200, json={"statusCode": 200, "data": {"total": -1}})

    offer = await provider.get_offer(usd_eur_request)

    assert offer.error_category == FailureCategory.REJECTED
