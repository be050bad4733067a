"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from marketplace.domain.exceptions import ValidationError

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal so commission and payout arithmetic is exact and
    reproducible.
    """

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if not self.amount.is_finite():
            raise ValidationError(f"Money amount must be finite, got {self.amount}")
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < Decimal("0"):
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def fraction(self, rate: Rate) -> Money:
        """Return ``rate`` of this amount, rounded half-up to cents."""
        return Money(
            (self.amount * rate.value).quantize(CENT, rounding=ROUND_HALF_UP),
            self.currency,
        )

    def rounded(self) -> Money:
        return Money(self.amount.quantize(CENT, rounding=ROUND_HALF_UP), self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"${self.amount:.2f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero() -> Money:
        return Money(Decimal("0.00"))


@dataclass(frozen=True)
class Rate:
    """A fraction in [0, 1], e.g. the platform commission rate."""

    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            raise ValidationError(
                f"Rate must be a Decimal, got {type(self.value).__name__}"
            )
        if not self.value.is_finite() or not Decimal("0") <= self.value <= Decimal("1"):
            raise ValidationError(f"Rate must be between 0 and 1, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)

    @staticmethod
    def of(value: str | float | int | Decimal) -> Rate:
        try:
            return Rate(Decimal(str(value)))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid rate: {value!r}") from exc


DEFAULT_COMMISSION_RATE = Rate(Decimal("0.05"))


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"

    @staticmethod
    def parse(raw: str | PaymentMethod) -> PaymentMethod:
        if isinstance(raw, PaymentMethod):
            return raw
        try:
            return PaymentMethod(raw)
        except ValueError as exc:
            raise ValidationError(f"Unsupported payment method: {raw!r}") from exc


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

    @staticmethod
    def parse(raw: str | PaymentStatus) -> PaymentStatus:
        if isinstance(raw, PaymentStatus):
            return raw
        try:
            return PaymentStatus(raw)
        except ValueError as exc:
            raise ValidationError(f"Unsupported payment status: {raw!r}") from exc


@dataclass(frozen=True)
class ShippingAddress:
    """Snapshot of where an order ships to.

    Copied into the order at checkout; later edits to the buyer's
    address book never touch it.
    """

    country: str
    province: str = ""
    canton: str = ""
    district: str = ""
    mailbox: str = ""
    postal_code: str = ""
    alias: str = ""
    notes: str = ""

    def __post_init__(self) -> None:
        if not self.country or not self.country.strip():
            raise ValidationError("Shipping address requires a country")

    def to_dict(self) -> dict[str, str]:
        return {
            "alias": self.alias,
            "country": self.country,
            "province": self.province,
            "canton": self.canton,
            "district": self.district,
            "mailbox": self.mailbox,
            "postal_code": self.postal_code,
            "notes": self.notes,
        }

    @staticmethod
    def from_dict(raw: dict) -> ShippingAddress:
        return ShippingAddress(
            country=raw.get("country", ""),
            province=raw.get("province", ""),
            canton=raw.get("canton", ""),
            district=raw.get("district", ""),
            mailbox=raw.get("mailbox", ""),
            postal_code=raw.get("postal_code", ""),
            alias=raw.get("alias", ""),
            notes=raw.get("notes", ""),
        )
