"""Tests for the pure discount arithmetic."""

from decimal import Decimal

import pytest

from app.models.coupon import DiscountType
from app.services.discount_calculator import DiscountResult, calculate_discount


class TestPercentageDiscount:
    def test_uncapped(self):
        result = calculate_discount(DiscountType.PERCENTAGE, Decimal("10"), Decimal("150.00"))
        assert result == DiscountResult(Decimal("15.00"), Decimal("135.00"))

    def test_capped_at_max_discount(self):
        """SAVE10 storefront example: 10% of 15000 capped at 1000."""
        result = calculate_discount(
            DiscountType.PERCENTAGE,
            Decimal("10"),
            Decimal("15000"),
            max_discount=Decimal("1000"),
        )
        assert result.discount_amount == Decimal("1000")
        assert result.final_amount == Decimal("14000")

    def test_cap_above_discount_has_no_effect(self):
        result = calculate_discount(
            DiscountType.PERCENTAGE, Decimal("10"), Decimal("100"), max_discount=Decimal("50")
        )
        assert result.discount_amount == Decimal("10.00")

    def test_zero_cap_means_no_discount(self):
        result = calculate_discount(
            DiscountType.PERCENTAGE, Decimal("10"), Decimal("100"), max_discount=Decimal("0")
        )
        assert result.discount_amount == Decimal("0")
        assert result.final_amount == Decimal("100")

    def test_rounds_to_cents(self):
        result = calculate_discount(DiscountType.PERCENTAGE, Decimal("15"), Decimal("33.33"))
        assert result.discount_amount == Decimal("5.00")
        assert result.final_amount == Decimal("28.33")

    @pytest.mark.parametrize(
        "amount,cap",
        [("99.99", "5"), ("1000", "20"), ("0.01", "0.01"), ("12345.67", "100")],
    )
    def test_never_exceeds_cap(self, amount, cap):
        result = calculate_discount(
            "percentage", Decimal("50"), Decimal(amount), max_discount=Decimal(cap)
        )
        assert result.discount_amount <= Decimal(cap)

    def test_full_percentage_leaves_zero(self):
        result = calculate_discount(DiscountType.PERCENTAGE, Decimal("100"), Decimal("42.50"))
        assert result.final_amount == Decimal("0")


class TestFixedDiscount:
    @pytest.mark.parametrize(
        "value,amount",
        [("20", "100"), ("20", "20"), ("50", "19.99"), ("0.50", "0.01")],
    )
    def test_discount_is_min_of_value_and_amount(self, value, amount):
        result = calculate_discount(DiscountType.FIXED, Decimal(value), Decimal(amount))
        assert result.discount_amount == min(Decimal(value), Decimal(amount))
        assert result.final_amount >= 0

    def test_ignores_max_discount(self):
        result = calculate_discount(
            DiscountType.FIXED, Decimal("30"), Decimal("100"), max_discount=Decimal("10")
        )
        assert result.discount_amount == Decimal("30")
        assert result.final_amount == Decimal("70")


class TestInvalidInput:
    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount_raises(self, amount):
        with pytest.raises(ValueError, match="must be positive"):
            calculate_discount(DiscountType.FIXED, Decimal("5"), Decimal(amount))

    def test_unknown_discount_type_raises(self):
        with pytest.raises(ValueError):
            calculate_discount("bogus", Decimal("5"), Decimal("10"))
