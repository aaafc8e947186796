import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_comparison_service
from api.schemas import (
	CompareRequest,
	ComparisonResponse,
	ProviderHealthResponse,
	ProviderInfoResponse,
	ProvidersInfoResponse,
)
from application.services import ExchangeRateComparisonService
from config.settings import Settings, get_settings
from domain.models.enums import ProcessStatus
from domain.models.exchange import CurrencyRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api/exchange-rates', tags=['exchange-rates'])


@router.post(
	'/compare',
	response_model=ComparisonResponse,
	status_code=status.HTTP_200_OK,
	summary='Compare offers from all providers and return the best one',
)
async def compare_exchange_rates(
	body: CompareRequest,
	response: Response,
	service: Annotated[ExchangeRateComparisonService, Depends(get_comparison_service)],
	settings: Annotated[Settings, Depends(get_settings)],
) -> ComparisonResponse:
	request = CurrencyRequest.create(
		body.source_currency, body.target_currency, body.amount, max_amount=settings.MAX_AMOUNT
	)
	timeout = body.timeout_seconds or settings.REQUEST_TIMEOUT_SECONDS

	result = await service.compare(request, timeout=timeout)

	if result.status == ProcessStatus.FAILED:
		logger.error(f'Exchange rate comparison failed for {request}')
		response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

	return ComparisonResponse.from_domain(result, body.include_provider_details)


@router.get(
	'/providers/health',
	response_model=ProviderHealthResponse,
	status_code=status.HTTP_200_OK,
	summary='Check the health of every registered provider',
)
async def get_providers_health(
	service: Annotated[ExchangeRateComparisonService, Depends(get_comparison_service)],
) -> ProviderHealthResponse:
	health = await service.check_providers_health()
	return ProviderHealthResponse.from_health_map(health, datetime.now(UTC))


@router.get(
	'/providers',
	response_model=ProvidersInfoResponse,
	status_code=status.HTTP_200_OK,
	summary='List registered providers',
)
async def get_providers_info(
	service: Annotated[ExchangeRateComparisonService, Depends(get_comparison_service)],
) -> ProvidersInfoResponse:
	providers = [ProviderInfoResponse.from_domain(info) for info in service.get_providers_info()]
	return ProvidersInfoResponse(
		total_providers=len(providers),
		available_providers=sum(1 for p in providers if p.is_available),
		providers=providers,
	)
