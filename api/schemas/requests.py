from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompareRequest(BaseModel):
	source_currency: str = Field(..., pattern=r'^[A-Z]{3}$', description='ISO 4217 source currency code')
	target_currency: str = Field(..., pattern=r'^[A-Z]{3}$', description='ISO 4217 target currency code')
	amount: Decimal = Field(..., gt=0, description='Amount to convert')
	timeout_seconds: float | None = Field(
		default=None, ge=1, le=30, description='Overall deadline for this comparison'
	)
	include_provider_details: bool = Field(default=True, description='Include every provider offer')

	@field_validator('source_currency', 'target_currency', mode='before')
	@classmethod
	def uppercase_currency(cls, v):
		if isinstance(v, str):
			return v.strip().upper()
		return v

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'source_currency': 'USD',
				'target_currency': 'EUR',
				'amount': 1000.00,
				'timeout_seconds': 10,
				'include_provider_details': True,
			}
		}
	)
