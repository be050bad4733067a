"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import (
    Money,
    PaymentMethod,
    PaymentStatus,
    Quantity,
    Rate,
    ShippingAddress,
)


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "USD"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_of_factory_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("twelve")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValidationError, match="finite"):
            Money(Decimal("NaN"))

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError, match="must be a Decimal"):
            Money(10.5)  # type: ignore[arg-type]

    def test_addition(self):
        assert Money.of("10") + Money.of("5.50") == Money.of("15.50")

    def test_subtraction_going_negative_rejected(self):
        with pytest.raises(ValidationError, match="negative amount"):
            Money.of("5") - Money.of("10")

    def test_multiplication_by_int(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")

    def test_multiplication_by_float_rejected(self):
        with pytest.raises(TypeError):
            Money.of("7.50") * 1.5  # type: ignore[operator]

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "USD") + Money(Decimal("5"), "EUR")

    def test_str_formatting(self):
        assert str(Money.of("15")) == "$15.00"
        assert str(Money.of("9.5")) == "$9.50"

    def test_comparison_operators(self):
        assert Money.of("5") < Money.of("10")
        assert Money.of("10") >= Money.of("10")


class TestMoneyFraction:

    def test_five_percent_of_two_hundred(self):
        assert Money.of("200").fraction(Rate.of("0.05")) == Money.of("10.00")

    def test_rounds_half_up_to_cents(self):
        # 0.05 * 0.10 = 0.005 -> 0.01
        assert Money.of("0.10").fraction(Rate.of("0.05")) == Money.of("0.01")

    def test_rounds_down_below_half(self):
        # 0.05 * 0.09 = 0.0045 -> 0.00
        assert Money.of("0.09").fraction(Rate.of("0.05")) == Money.of("0.00")

    def test_zero_rate(self):
        assert Money.of("99.99").fraction(Rate.of("0")) == Money.zero()


# ── Rate ─────────────────────────────────────────────────────────────────────


class TestRate:

    def test_bounds_inclusive(self):
        assert Rate.of("0").value == Decimal("0")
        assert Rate.of("1").value == Decimal("1")

    @pytest.mark.parametrize("raw", ["-0.01", "1.01"])
    def test_out_of_range_rejected(self, raw):
        with pytest.raises(ValidationError, match="between 0 and 1"):
            Rate.of(raw)


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Quantity(0)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)


# ── Enums and address ────────────────────────────────────────────────────────


class TestPaymentEnums:

    def test_parse_method(self):
        assert PaymentMethod.parse("paypal") == PaymentMethod.PAYPAL

    def test_unknown_method_rejected(self):
        with pytest.raises(ValidationError, match="Unsupported payment method"):
            PaymentMethod.parse("barter")

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError, match="Unsupported payment status"):
            PaymentStatus.parse("lost")


class TestShippingAddress:

    def test_country_required(self):
        with pytest.raises(ValidationError, match="country"):
            ShippingAddress(country="  ")

    def test_dict_round_trip_keeps_fields(self):
        address = ShippingAddress(country="CR", province="San José", postal_code="10101")
        assert ShippingAddress.from_dict(address.to_dict()) == address
