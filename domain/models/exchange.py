from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable

from domain.exceptions.exchange import InvalidOfferError, InvalidRequestError, InvalidResultError
from domain.models.enums import FailureCategory, ProcessStatus

ZERO = Decimal("0")


def _is_currency_code(code) -> bool:
    return isinstance(code, str) and len(code) == 3 and code.isalpha() and code.isupper()


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidRequestError.invalid_amount(value) from e


@dataclass(frozen=True)
class CurrencyRequest:
    source_currency: str
    target_currency: str
    amount: Decimal

    def __post_init__(self):
        if not _is_currency_code(self.source_currency):
            raise InvalidRequestError.invalid_currency(self.source_currency)
        if not _is_currency_code(self.target_currency):
            raise InvalidRequestError.invalid_currency(self.target_currency)
        if self.source_currency == self.target_currency:
            raise InvalidRequestError.same_currencies(self.source_currency)

        amount = _to_decimal(self.amount)
        if not amount.is_finite() or amount <= 0:
            raise InvalidRequestError.invalid_amount(self.amount)
        object.__setattr__(self, "amount", amount)

    @classmethod
    def create(
        cls,
        source_currency: str,
        target_currency: str,
        amount,
        max_amount: Decimal | None = None,
    ) -> "CurrencyRequest":
        """Normalize raw boundary input (case, whitespace, numeric type) and validate it."""
        source = source_currency.strip().upper() if isinstance(source_currency, str) else source_currency
        target = target_currency.strip().upper() if isinstance(target_currency, str) else target_currency
        request = cls(source, target, _to_decimal(amount))

        if max_amount is not None and request.amount > max_amount:
            raise InvalidRequestError.amount_too_large(request.amount, max_amount)
        return request

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.source_currency} -> {self.target_currency}"


@dataclass(frozen=True)
class Offer:
    """Normalized outcome of one provider attempt, successful or not."""

    provider_name: str
    converted_amount: Decimal
    exchange_rate: Decimal
    is_successful: bool
    error_message: str | None = None
    error_category: FailureCategory | None = None
    response_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    response_duration: timedelta = timedelta(0)

    def __post_init__(self):
        if not self.provider_name or not self.provider_name.strip():
            raise InvalidOfferError("Provider name cannot be empty")

        if self.is_successful:
            if self.converted_amount < 0:
                raise InvalidOfferError("Converted amount cannot be negative for successful offers")
            if self.exchange_rate <= 0:
                raise InvalidOfferError("Exchange rate must be positive for successful offers")
            if self.error_message is not None or self.error_category is not None:
                raise InvalidOfferError("Successful offers cannot carry an error")
        else:
            if not self.error_message or not self.error_message.strip():
                raise InvalidOfferError("Error message cannot be empty for failed offers")
            if self.converted_amount != 0 or self.exchange_rate != 0:
                raise InvalidOfferError("Failed offers must have zero amount and rate")

    @classmethod
    def successful(
        cls,
        provider_name: str,
        converted_amount: Decimal,
        exchange_rate: Decimal,
        response_duration: timedelta = timedelta(0),
    ) -> "Offer":
        return cls(
            provider_name=provider_name,
            converted_amount=converted_amount,
            exchange_rate=exchange_rate,
            is_successful=True,
            response_duration=response_duration,
        )

    @classmethod
    def failed(
        cls,
        provider_name: str,
        error_message: str,
        category: FailureCategory = FailureCategory.UNEXPECTED,
        response_duration: timedelta = timedelta(0),
    ) -> "Offer":
        return cls(
            provider_name=provider_name,
            converted_amount=ZERO,
            exchange_rate=ZERO,
            is_successful=False,
            error_message=error_message,
            error_category=category,
            response_duration=response_duration,
        )

    def is_better_than(self, other: "Offer | None") -> bool:
        if other is None or not other.is_successful:
            return self.is_successful
        if not self.is_successful:
            return False
        return self.converted_amount > other.converted_amount

    def __str__(self) -> str:
        if self.is_successful:
            return f"{self.provider_name}: {self.converted_amount:.2f} (Rate: {self.exchange_rate:.4f})"
        return f"{self.provider_name}: Failed - {self.error_message}"


def select_best_offer(offers: Iterable[Offer]) -> Offer | None:
    """Strict maximum by converted amount; the first offer wins a tie."""
    best = None
    for offer in offers:
        if offer.is_better_than(best):
            best = offer
    return best


@dataclass(frozen=True)
class ComparisonResult:
    status: ProcessStatus
    input: CurrencyRequest
    best_offer: Offer | None
    all_offers: tuple[Offer, ...]
    processed_at: datetime
    processing_duration: timedelta

    def __post_init__(self):
        object.__setattr__(self, "all_offers", tuple(self.all_offers))

        best = self.best_offer
        if self.status == ProcessStatus.COMPLETED and self.has_valid_offers and best is None:
            raise InvalidResultError("Best offer cannot be null when there are successful offers")
        if best is None:
            return
        if not best.is_successful:
            raise InvalidResultError("Best offer must be successful")
        if best not in self.all_offers:
            raise InvalidResultError("Best offer must be included in the all offers list")
        if any(o.is_successful and o.converted_amount > best.converted_amount for o in self.all_offers):
            raise InvalidResultError("Best offer is not actually the best among successful offers")

    @classmethod
    def completed(
        cls,
        input: CurrencyRequest,
        offers: Iterable[Offer],
        processing_duration: timedelta,
    ) -> "ComparisonResult":
        offers = tuple(offers)
        return cls(
            status=ProcessStatus.COMPLETED,
            input=input,
            best_offer=select_best_offer(offers),
            all_offers=offers,
            processed_at=datetime.now(UTC),
            processing_duration=processing_duration,
        )

    @classmethod
    def failed(
        cls,
        input: CurrencyRequest,
        processing_duration: timedelta,
        partial_offers: Iterable[Offer] = (),
    ) -> "ComparisonResult":
        return cls(
            status=ProcessStatus.FAILED,
            input=input,
            best_offer=None,
            all_offers=tuple(partial_offers),
            processed_at=datetime.now(UTC),
            processing_duration=processing_duration,
        )

    @property
    def has_valid_offers(self) -> bool:
        return any(o.is_successful for o in self.all_offers)

    @property
    def successful_offers(self) -> list[Offer]:
        # sorted() is stable, so equal amounts keep dispatch order
        return sorted(
            (o for o in self.all_offers if o.is_successful),
            key=lambda o: o.converted_amount,
            reverse=True,
        )

    @property
    def failed_offers(self) -> list[Offer]:
        return sorted((o for o in self.all_offers if not o.is_successful), key=lambda o: o.provider_name)

    @property
    def successful_offers_count(self) -> int:
        return sum(1 for o in self.all_offers if o.is_successful)

    @property
    def failed_offers_count(self) -> int:
        return sum(1 for o in self.all_offers if not o.is_successful)

    def calculate_savings(self) -> Decimal:
        successful = self.successful_offers
        if len(successful) < 2:
            return ZERO
        return successful[0].converted_amount - successful[-1].converted_amount

    def calculate_savings_percentage(self) -> Decimal:
        successful = self.successful_offers
        if len(successful) < 2:
            return ZERO
        worst = successful[-1].converted_amount
        if worst <= 0:
            return ZERO
        return (successful[0].converted_amount - worst) / worst * 100

    def __str__(self) -> str:
        if self.status == ProcessStatus.FAILED:
            return f"Failed after {self.processing_duration.total_seconds() * 1000:.0f}ms"
        if self.best_offer is not None:
            return (
                f"Best: {self.best_offer.provider_name} ({self.best_offer.converted_amount:.2f}) "
                f"from {len(self.all_offers)} providers"
            )
        return f"No successful offers from {len(self.all_offers)} providers"


@dataclass(frozen=True)
class ProviderInfo:
    name: str
    is_available: bool
    description: str | None
    checked_at: datetime
