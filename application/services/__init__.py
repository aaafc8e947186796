from .comparison_service import ExchangeRateComparisonService

__all__ = ['ExchangeRateComparisonService']
