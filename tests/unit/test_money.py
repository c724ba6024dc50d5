"""Tests for the dual-currency amount and order number value objects."""
from datetime import date
from decimal import Decimal

import pytest

from bakery.domain.value_objects import DualAmount, OrderNumber


class TestDualAmount:
    """DualAmount arithmetic and conversion."""

    def test_from_eur_converts_with_rate(self):
        amount = DualAmount.from_eur("20.00", 1800)

        assert amount.eur == Decimal("20.00")
        assert amount.syp == Decimal("36000.00")

    def test_from_eur_rounds_half_up_to_cents(self):
        amount = DualAmount.from_eur("0.125", 1)

        assert amount.eur == Decimal("0.13")

    def test_float_input_keeps_printed_value(self):
        amount = DualAmount(eur=0.1, syp=0.2)

        assert amount.eur == Decimal("0.1")
        assert amount.syp == Decimal("0.2")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            DualAmount(eur=Decimal("-1"), syp=Decimal("0"))

    def test_multiply_scales_both_sides(self):
        amount = DualAmount.from_eur("12.00", 1800) * 3

        assert amount.eur == Decimal("36.00")
        assert amount.syp == Decimal("64800.00")
        assert 3 * DualAmount.from_eur("12.00", 1800) == amount

    def test_add(self):
        total = DualAmount.from_eur("1.50", 1800) + DualAmount.from_eur("2.50", 1800)

        assert total.eur == Decimal("4.00")
        assert total.syp == Decimal("7200.00")

    def test_minus_or_zero_floors_each_side(self):
        small = DualAmount(eur=Decimal("5"), syp=Decimal("9000"))
        large = DualAmount(eur=Decimal("8"), syp=Decimal("14400"))

        assert large.minus_or_zero(small) == DualAmount(eur=Decimal("3"), syp=Decimal("5400"))
        assert small.minus_or_zero(large).is_zero()

    def test_str(self):
        assert str(DualAmount.from_eur("1", 1800)) == "1.00 EUR / 1800.00 SYP"


class TestOrderNumber:
    """OrderNumber formats and validation."""

    def test_generate_test_uses_timestamp(self):
        number = OrderNumber.generate_test(timestamp_ms=1733050000000)

        assert number.value == "TEST-1733050000000"
        assert str(number) == "TEST-1733050000000"

    def test_generate_test_defaults_to_now(self):
        number = OrderNumber.generate_test()

        assert number.value.startswith("TEST-")
        assert number.value[len("TEST-"):].isdigit()

    def test_for_sequence(self):
        number = OrderNumber.for_sequence(date(2024, 12, 1), 7)

        assert number.value == "ORD-20241201-0007"

    def test_for_sequence_starts_at_one(self):
        with pytest.raises(ValueError):
            OrderNumber.for_sequence(date(2024, 12, 1), 0)

    @pytest.mark.parametrize("value", ["", "   ", "X" * 51])
    def test_invalid_values_rejected(self, value):
        with pytest.raises(ValueError):
            OrderNumber(value)
