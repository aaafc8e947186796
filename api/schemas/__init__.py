from .requests import CompareRequest
from .responses import (
	ComparisonInput,
	ComparisonResponse,
	OfferResponse,
	ProviderHealthInfo,
	ProviderHealthResponse,
	ProviderInfoResponse,
	ProvidersInfoResponse,
)

__all__ = [
	'CompareRequest',
	'ComparisonInput',
	'ComparisonResponse',
	'OfferResponse',
	'ProviderHealthInfo',
	'ProviderHealthResponse',
	'ProviderInfoResponse',
	'ProvidersInfoResponse',
]
