from domain.models.enums import FailureCategory


class ExchangeRateException(Exception):
    error_code = "EXCHANGE_RATE_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code


class InvalidRequestError(ExchangeRateException):
    """Raised when a conversion request breaks its own invariants."""

    error_code = "INVALID_REQUEST"

    @classmethod
    def invalid_currency(cls, code: str) -> "InvalidRequestError":
        return cls(
            f"Invalid currency code '{code}'. Must be a 3-letter ISO 4217 code.",
            error_code="INVALID_CURRENCY",
        )

    @classmethod
    def invalid_amount(cls, amount) -> "InvalidRequestError":
        return cls(
            f"Invalid amount '{amount}'. Amount must be greater than zero.",
            error_code="INVALID_AMOUNT",
        )

    @classmethod
    def amount_too_large(cls, amount, ceiling) -> "InvalidRequestError":
        return cls(
            f"Invalid amount '{amount}'. Amount must not exceed {ceiling}.",
            error_code="INVALID_AMOUNT",
        )

    @classmethod
    def same_currencies(cls, code: str) -> "InvalidRequestError":
        return cls(
            f"Source and target currencies cannot be the same: '{code}'.",
            error_code="SAME_CURRENCIES",
        )


class ProviderError(ExchangeRateException):
    """Failure inside a single provider adapter. Never leaves the adapter."""

    error_code = "PROVIDER_ERROR"

    def __init__(self, message: str, category: FailureCategory):
        super().__init__(message)
        self.category = category


class NoProvidersAvailableError(ExchangeRateException):
    error_code = "NO_PROVIDERS"

    def __init__(self, message: str = "No exchange rate providers are currently available."):
        super().__init__(message)


class InvalidOfferError(ExchangeRateException):
    error_code = "INVALID_OFFER"


class InvalidResultError(ExchangeRateException):
    error_code = "INVALID_RESULT"
