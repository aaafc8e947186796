import logging

from application.services import ExchangeRateComparisonService
from config.settings import Settings, get_settings
from infrastructure.providers import (
	ExchangeRateProvider,
	JsonExchangeRateProvider,
	MockProviderSettings,
	MockSuccessProvider,
	NestedJsonExchangeRateProvider,
	XmlExchangeRateProvider,
)

logger = logging.getLogger(__name__)

class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	providers: list[ExchangeRateProvider] | None = None
	comparison_service: ExchangeRateComparisonService | None = None

deps = AppDependencies()

def build_providers(settings: Settings) -> list[ExchangeRateProvider]:
	if settings.USE_MOCK_PROVIDERS:
		logger.warning('USE_MOCK_PROVIDERS is enabled, no real provider will be called')
		return [
			MockSuccessProvider(MockProviderSettings.success('MockAPI1', delay_seconds=0.1)),
			MockSuccessProvider(MockProviderSettings.success('MockAPI2', delay_seconds=0.2)),
			MockSuccessProvider(MockProviderSettings.success('MockAPI3', delay_seconds=0.3)),
		]

	return [
		JsonExchangeRateProvider(settings.JSON_PROVIDER),
		XmlExchangeRateProvider(settings.XML_PROVIDER),
		NestedJsonExchangeRateProvider(settings.NESTED_JSON_PROVIDER),
	]

def init_dependencies(settings: Settings | None = None) -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = settings or get_settings()

	deps.providers = build_providers(settings)
	deps.comparison_service = ExchangeRateComparisonService(
		deps.providers,
		fail_fast_on_no_providers=settings.FAIL_FAST_ON_NO_PROVIDERS,
		health_check_timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS,
		enable_performance_logging=settings.ENABLE_PERFORMANCE_LOGGING,
	)

	enabled = [p.name for p in deps.providers if p.is_available]
	logger.info(f'Dependencies initialized. Providers: {len(deps.providers)} registered, enabled: {enabled}')

async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.providers:
		for provider in deps.providers:
			await provider.close()

	deps.providers = None
	deps.comparison_service = None
	logger.info('Cleanup complete')


def get_comparison_service() -> ExchangeRateComparisonService:
	if deps.comparison_service is None:
		raise RuntimeError('Comparison service not initialized')
	return deps.comparison_service
