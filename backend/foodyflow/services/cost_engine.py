"""
Costing engine: pure functions from ingredient lines to costs.

Nothing here touches the database. Callers pass a catalog snapshot, a
mapping of product id to anything exposing ``price_per_unit`` and
``waste_percent`` (normally ``Product`` rows from ``ProductCatalog.snapshot``).

Usage:
    catalog = ProductCatalog(db).snapshot(line.product_id for line in lines)
    total = total_cost(lines, catalog)
    pct = food_cost_percent(total, dish.selling_price)
"""

from decimal import Decimal
from typing import Any, Mapping, Sequence

from foodyflow.core.errors import InvalidQuantity, UnknownProduct

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_TARGET_FOOD_COST_PERCENT = Decimal("30")

# Quantization applied when derived values are persisted.
COST_QUANT = Decimal("0.0001")
PERCENT_QUANT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    return Decimal(str(value))


def _adjustment(line: Any) -> Decimal:
    return to_decimal(getattr(line, "weight_adjustment_percent", None))


def _product_for(line: Any, catalog: Mapping[int, Any]) -> Any:
    product = catalog.get(line.product_id)
    if product is None:
        raise UnknownProduct(line.product_id)
    return product


def _validate(line: Any, catalog: Mapping[int, Any]) -> Any:
    if to_decimal(line.quantity) <= ZERO:
        raise InvalidQuantity(
            f"Ingredient quantity must be greater than zero (product {line.product_id})"
        )
    return _product_for(line, catalog)


# =============================================================================
# Standard cost
# =============================================================================


def ingredient_cost(line: Any, catalog: Mapping[int, Any]) -> Decimal:
    """quantity x price per unit. Waste is not applied here."""
    product = _validate(line, catalog)
    return to_decimal(line.quantity) * to_decimal(product.price_per_unit)


def total_cost(lines: Sequence[Any], catalog: Mapping[int, Any]) -> Decimal:
    """Sum of ingredient costs in line order.

    Every line is validated before anything is summed, so a bad line fails
    the whole computation.
    """
    for line in lines:
        _validate(line, catalog)
    total = ZERO
    for line in lines:
        total += ingredient_cost(line, catalog)
    return total


def food_cost_percent(total: Any, selling_price: Any) -> Decimal:
    selling_price = to_decimal(selling_price)
    if selling_price <= ZERO:
        return ZERO
    return to_decimal(total) / selling_price * HUNDRED


def net_price(selling_price: Any, rate: Any) -> Decimal:
    """Selling price net of tax. Not clamped."""
    return to_decimal(selling_price) * (Decimal("1") - to_decimal(rate))


def margin(selling_price: Any, total: Any) -> Decimal:
    return to_decimal(selling_price) - to_decimal(total)


# =============================================================================
# Real (waste and yield adjusted) cost
# =============================================================================


def effective_price(price: Any, waste_percent: Any) -> Decimal:
    """Price per usable unit once ``waste_percent`` of the product is discarded."""
    waste = to_decimal(waste_percent)
    if waste < ZERO or waste >= HUNDRED:
        raise InvalidQuantity(f"Waste percent must be in [0, 100), got {waste}")
    return to_decimal(price) / (Decimal("1") - waste / HUNDRED)


def yield_adjusted(cost: Any, weight_adjustment_percent: Any) -> Decimal:
    """Cost per unit of output after a weight change during processing.

    +50 means the preparation gains half its weight (cost spread over more
    output); -20 means it loses a fifth.
    """
    adj = to_decimal(weight_adjustment_percent)
    if adj <= -HUNDRED:
        raise InvalidQuantity(f"Weight adjustment must be greater than -100, got {adj}")
    return to_decimal(cost) / (Decimal("1") + adj / HUNDRED)


def real_ingredient_cost(line: Any, catalog: Mapping[int, Any]) -> Decimal:
    product = _validate(line, catalog)
    cost = effective_price(product.price_per_unit, product.waste_percent) * to_decimal(line.quantity)
    return yield_adjusted(cost, _adjustment(line))


def real_total_cost(
    lines: Sequence[Any],
    catalog: Mapping[int, Any],
    recipe_adjustment: Any = ZERO,
) -> Decimal:
    for line in lines:
        _validate(line, catalog)
    total = ZERO
    for line in lines:
        total += real_ingredient_cost(line, catalog)
    return yield_adjusted(total, recipe_adjustment)


def suggested_price(
    real_cost: Any, target_percent: Any = DEFAULT_TARGET_FOOD_COST_PERCENT
) -> Decimal:
    """Selling price at which ``real_cost`` is ``target_percent`` of the price."""
    target = to_decimal(target_percent)
    if target <= ZERO or target >= HUNDRED:
        raise InvalidQuantity(f"Target food cost must be in (0, 100), got {target}")
    return to_decimal(real_cost) / (target / HUNDRED)


def quantize_cost(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(COST_QUANT)


def quantize_percent(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(PERCENT_QUANT)
