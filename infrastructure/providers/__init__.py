from .base import ExchangeRateProvider, HTTPExchangeRateProvider
from .json_provider import JsonExchangeRateProvider
from .mock import MockFailureProvider, MockProviderSettings, MockSuccessProvider, MockTimeoutProvider
from .nested_json_provider import NestedJsonExchangeRateProvider
from .xml_provider import XmlExchangeRateProvider

__all__ = [
    'ExchangeRateProvider',
    'HTTPExchangeRateProvider',
    'JsonExchangeRateProvider',
    'XmlExchangeRateProvider',
    'NestedJsonExchangeRateProvider',
    'MockProviderSettings',
    'MockSuccessProvider',
    'MockTimeoutProvider',
    'MockFailureProvider',
]
