from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from domain.models.enums import FailureCategory, ProcessStatus
from domain.models.exchange import ComparisonResult, CurrencyRequest, Offer, ProviderInfo


def _milliseconds(seconds: float) -> float:
	return round(seconds * 1000, 2)


class OfferResponse(BaseModel):
	provider_name: str
	converted_amount: Decimal
	exchange_rate: Decimal
	is_successful: bool
	error_message: str | None = None
	error_category: FailureCategory | None = None
	response_time: datetime
	response_duration_ms: float

	@classmethod
	def from_domain(cls, offer: Offer) -> 'OfferResponse':
		return cls(
			provider_name=offer.provider_name,
			converted_amount=offer.converted_amount,
			exchange_rate=offer.exchange_rate,
			is_successful=offer.is_successful,
			error_message=offer.error_message,
			error_category=offer.error_category,
			response_time=offer.response_time,
			response_duration_ms=_milliseconds(offer.response_duration.total_seconds()),
		)


class ComparisonInput(BaseModel):
	source_currency: str
	target_currency: str
	amount: Decimal

	@classmethod
	def from_domain(cls, request: CurrencyRequest) -> 'ComparisonInput':
		return cls(
			source_currency=request.source_currency,
			target_currency=request.target_currency,
			amount=request.amount,
		)


class ComparisonResponse(BaseModel):
	status: ProcessStatus = Field(..., description='Completed or Failed')
	input: ComparisonInput
	best_offer: OfferResponse | None = Field(None, description='Highest converted amount, if any')
	all_offers: list[OfferResponse] = Field(default_factory=list, description='Offers in dispatch order')
	successful_offers_count: int
	failed_offers_count: int
	savings: Decimal = Field(..., description='Best minus worst successful converted amount')
	savings_percentage: Decimal
	processed_at: datetime
	processing_duration_ms: float

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'status': 'Completed',
				'input': {'source_currency': 'USD', 'target_currency': 'EUR', 'amount': '1000'},
				'best_offer': {
					'provider_name': 'API2',
					'converted_amount': '852.40',
					'exchange_rate': '0.8524',
					'is_successful': True,
					'error_message': None,
					'error_category': None,
					'response_time': '2025-09-27T10:30:00Z',
					'response_duration_ms': 84.2,
				},
				'all_offers': [],
				'successful_offers_count': 2,
				'failed_offers_count': 1,
				'savings': '2.40',
				'savings_percentage': '0.28',
				'processed_at': '2025-09-27T10:30:00Z',
				'processing_duration_ms': 3004.7,
			}
		}
	)

	@classmethod
	def from_domain(cls, result: ComparisonResult, include_provider_details: bool = True) -> 'ComparisonResponse':
		return cls(
			status=result.status,
			input=ComparisonInput.from_domain(result.input),
			best_offer=OfferResponse.from_domain(result.best_offer) if result.best_offer else None,
			all_offers=[OfferResponse.from_domain(o) for o in result.all_offers] if include_provider_details else [],
			successful_offers_count=result.successful_offers_count,
			failed_offers_count=result.failed_offers_count,
			savings=result.calculate_savings(),
			savings_percentage=result.calculate_savings_percentage(),
			processed_at=result.processed_at,
			processing_duration_ms=_milliseconds(result.processing_duration.total_seconds()),
		)


class ProviderHealthInfo(BaseModel):
	name: str
	is_healthy: bool
	status: str = Field(..., description='Healthy or Unhealthy')


class ProviderHealthResponse(BaseModel):
	checked_at: datetime
	total_providers: int
	healthy_providers: int
	unhealthy_providers: int
	providers: list[ProviderHealthInfo]

	@classmethod
	def from_health_map(cls, health: dict[str, bool], checked_at: datetime) -> 'ProviderHealthResponse':
		providers = [
			ProviderHealthInfo(name=name, is_healthy=ok, status='Healthy' if ok else 'Unhealthy')
			for name, ok in health.items()
		]
		healthy = sum(1 for p in providers if p.is_healthy)
		return cls(
			checked_at=checked_at,
			total_providers=len(providers),
			healthy_providers=healthy,
			unhealthy_providers=len(providers) - healthy,
			providers=providers,
		)


class ProviderInfoResponse(BaseModel):
	name: str
	is_available: bool
	description: str | None = None
	checked_at: datetime

	@classmethod
	def from_domain(cls, info: ProviderInfo) -> 'ProviderInfoResponse':
		return cls(
			name=info.name,
			is_available=info.is_available,
			description=info.description,
			checked_at=info.checked_at,
		)


class ProvidersInfoResponse(BaseModel):
	total_providers: int
	available_providers: int
	providers: list[ProviderInfoResponse]

	model_config = ConfigDict(
		json_schema_extra={
			'examples': [
				{
					'total_providers': 1,
					'available_providers': 1,
					'providers': [
						{
							'name': 'API1',
							'is_available': True,
							'description': 'Exchange rate provider: API1',
							'checked_at': '2025-09-27T10:30:00Z',
						}
					],
				}
			]
		}
	)
