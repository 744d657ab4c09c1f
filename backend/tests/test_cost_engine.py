"""Tests for the costing engine (pure functions, no database)."""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from foodyflow.core.errors import InvalidQuantity, UnknownProduct
from foodyflow.services import cost_engine


def _product(price, waste="0"):
    return SimpleNamespace(price_per_unit=Decimal(price), waste_percent=Decimal(waste))


def _line(product_id, quantity, adj="0"):
    return SimpleNamespace(
        product_id=product_id,
        quantity=Decimal(quantity),
        weight_adjustment_percent=Decimal(adj),
    )


@pytest.fixture
def snapshot():
    return {
        1: _product("1.20"),  # flour
        2: _product("2.00", waste="20"),  # tomatoes
        3: _product("8.50"),  # mozzarella
    }


class TestIngredientCost:
    def test_quantity_times_price(self, snapshot):
        assert cost_engine.ingredient_cost(_line(1, "0.5"), snapshot) == Decimal("0.60")

    def test_waste_is_ignored(self, snapshot):
        assert cost_engine.ingredient_cost(_line(2, "1"), snapshot) == Decimal("2.00")

    def test_zero_quantity_rejected(self, snapshot):
        with pytest.raises(InvalidQuantity):
            cost_engine.ingredient_cost(_line(1, "0"), snapshot)

    def test_negative_quantity_rejected(self, snapshot):
        with pytest.raises(InvalidQuantity):
            cost_engine.ingredient_cost(_line(1, "-1"), snapshot)

    def test_unknown_product(self, snapshot):
        with pytest.raises(UnknownProduct) as exc:
            cost_engine.ingredient_cost(_line(99, "1"), snapshot)
        assert exc.value.product_id == 99


class TestTotalCost:
    def test_empty_is_zero(self, snapshot):
        assert cost_engine.total_cost([], snapshot) == Decimal("0")

    def test_sum_of_lines(self, snapshot):
        lines = [_line(1, "0.25"), _line(3, "0.125"), _line(2, "0.1")]
        # 0.30 + 1.0625 + 0.20
        assert cost_engine.total_cost(lines, snapshot) == Decimal("1.5625")

    def test_bad_line_fails_whole_sum(self, snapshot):
        lines = [_line(1, "1"), _line(99, "1")]
        with pytest.raises(UnknownProduct):
            cost_engine.total_cost(lines, snapshot)

    def test_validation_happens_before_any_cost(self, snapshot):
        # Unknown product first, bad quantity second: the first failing line wins
        lines = [_line(99, "1"), _line(1, "0")]
        with pytest.raises(UnknownProduct):
            cost_engine.total_cost(lines, snapshot)


class TestFoodCostAndPrices:
    def test_food_cost_percent(self):
        assert cost_engine.food_cost_percent(Decimal("0.60"), Decimal("12.00")) == Decimal("5.0")

    def test_food_cost_percent_zero_selling_price(self):
        assert cost_engine.food_cost_percent(Decimal("3.40"), Decimal("0")) == Decimal("0")

    def test_net_price(self):
        assert cost_engine.net_price(Decimal("11.00"), Decimal("0.10")) == Decimal("9.90")

    def test_net_price_not_clamped(self):
        assert cost_engine.net_price(Decimal("10"), Decimal("1.5")) == Decimal("-5.0")

    def test_margin(self):
        assert cost_engine.margin(Decimal("12.00"), Decimal("3.25")) == Decimal("8.75")


class TestRealCost:
    def test_effective_price(self):
        assert cost_engine.effective_price(Decimal("2.00"), Decimal("20")) == Decimal("2.5")

    def test_effective_price_no_waste(self):
        assert cost_engine.effective_price(Decimal("1.20"), Decimal("0")) == Decimal("1.20")

    def test_effective_price_total_waste_rejected(self):
        with pytest.raises(InvalidQuantity):
            cost_engine.effective_price(Decimal("2.00"), Decimal("100"))

    def test_yield_adjusted(self):
        assert cost_engine.yield_adjusted(Decimal("10"), Decimal("25")) == Decimal("8")
        assert cost_engine.yield_adjusted(Decimal("10"), Decimal("-50")) == Decimal("20")

    def test_yield_adjusted_minus_hundred_rejected(self):
        with pytest.raises(InvalidQuantity):
            cost_engine.yield_adjusted(Decimal("10"), Decimal("-100"))

    def test_real_ingredient_cost(self, snapshot):
        # 2.00 / 0.8 = 2.50 per kg; 2 kg = 5.00; +25% weight -> 4.00
        line = _line(2, "2", adj="25")
        assert cost_engine.real_ingredient_cost(line, snapshot) == Decimal("4")

    def test_real_total_cost_with_recipe_adjustment(self, snapshot):
        lines = [_line(1, "1"), _line(2, "1")]
        # 1.20 + 2.50 = 3.70; recipe loses half its weight -> 7.40
        assert cost_engine.real_total_cost(lines, snapshot, Decimal("-50")) == Decimal("7.40")

    def test_suggested_price_default_target(self):
        assert cost_engine.suggested_price(Decimal("3.00")) == Decimal("10")

    @pytest.mark.parametrize("target", ["0", "100", "-5", "150"])
    def test_suggested_price_target_out_of_range(self, target):
        with pytest.raises(InvalidQuantity):
            cost_engine.suggested_price(Decimal("3.00"), Decimal(target))
