from decimal import Decimal
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseModel):
	name: str
	base_url: str = Field(min_length=1)
	endpoint: str = Field(min_length=1)
	api_key: str | None = None
	enabled: bool = True
	timeout_seconds: float = Field(default=3, gt=0)

	@property
	def full_url(self) -> str:
		return f'{self.base_url.rstrip("/")}/{self.endpoint.lstrip("/")}'

	@property
	def health_url(self) -> str:
		return f'{self.base_url.rstrip("/")}/health'


# Per-provider defaults live on the model so that a partial override such as
# JSON_PROVIDER__ENABLED=false keeps the remaining fields.
class JsonProviderSettings(ProviderSettings):
	name: str = 'API1'
	base_url: str = 'http://localhost:5001'
	endpoint: str = '/exchange'


class XmlProviderSettings(ProviderSettings):
	name: str = 'API2'
	base_url: str = 'http://localhost:5002'
	endpoint: str = '/convert'


class NestedJsonProviderSettings(ProviderSettings):
	name: str = 'API3'
	base_url: str = 'http://localhost:5003'
	endpoint: str = '/currency-exchange'


class Settings(BaseSettings):
	# Application
	APP_NAME: str = 'Exchange Rate Comparison API'
	DEBUG: bool = False
	LOG_LEVEL: str = 'INFO'
	LOG_JSON: bool = False
	HOST: str = '0.0.0.0'
	PORT: int = 8000

	# Orchestration
	REQUEST_TIMEOUT_SECONDS: float = Field(default=10, gt=0)
	HEALTH_CHECK_TIMEOUT_SECONDS: float = Field(default=5, gt=0)
	FAIL_FAST_ON_NO_PROVIDERS: bool = False
	ENABLE_PERFORMANCE_LOGGING: bool = True
	MAX_AMOUNT: Decimal = Field(default=Decimal('1000000000'), gt=0)

	# Providers
	USE_MOCK_PROVIDERS: bool = False
	JSON_PROVIDER: JsonProviderSettings = Field(default_factory=JsonProviderSettings)
	XML_PROVIDER: XmlProviderSettings = Field(default_factory=XmlProviderSettings)
	NESTED_JSON_PROVIDER: NestedJsonProviderSettings = Field(default_factory=NestedJsonProviderSettings)

	model_config = SettingsConfigDict(
		env_file='.env', env_nested_delimiter='__', case_sensitive=False, extra='ignore'
	)


@lru_cache
def get_settings() -> Settings:
	return Settings()
