"""
Order composition and totals.

A line's total is the menu's unit price for its meal type times the quantity,
and an order's grand total is the sum of its lines. Everything here is pure so
the order form, the JSON quote endpoint and the tests share one implementation.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Mapping, Sequence

from models import Prices


class MealType(str, Enum):
    FULL = "full"
    HALF = "half"
    RICE_ONLY = "riceOnly"

    @property
    def label(self) -> str:
        return {"full": "Full", "half": "Half", "riceOnly": "Rice Only"}[self.value]

    @property
    def requires_sabji(self) -> bool:
        return self is not MealType.RICE_ONLY


class OrderValidationError(ValueError):
    pass


@dataclass(frozen=True)
class LineRequest:
    meal_type: MealType
    quantity: int = 1
    sabji: str | None = None


@dataclass(frozen=True)
class PricedLine:
    meal_type: MealType
    sabji: str | None
    quantity: int
    price_per_unit: float
    total_price: float


@dataclass(frozen=True)
class OrderQuote:
    lines: list[PricedLine]
    grand_total: float


def parse_meal_type(value) -> MealType:
    try:
        return MealType(value)
    except (TypeError, ValueError):
        raise OrderValidationError(f"Unknown meal type: {value}") from None


def unit_price(prices: Prices | Mapping[str, float], meal_type: MealType) -> float:
    if isinstance(prices, Prices):
        price = prices.for_meal(meal_type.value)
    elif isinstance(prices, Mapping):
        price = prices[meal_type.value]
    else:
        raise OrderValidationError("Prices must be an object")
    try:
        price = float(price)
    except (TypeError, ValueError):
        raise OrderValidationError(f"Invalid price for {meal_type.label}") from None
    if not price > 0:
        raise OrderValidationError(f"Price for {meal_type.label} must be greater than 0")
    return price


def line_total(prices, meal_type, quantity: int) -> float:
    meal_type = parse_meal_type(meal_type)
    if quantity < 1:
        raise OrderValidationError("Quantity must be at least 1")
    return unit_price(prices, meal_type) * quantity


def validate_line(line: LineRequest, sabjis: Sequence[str] | None = None) -> None:
    if line.quantity < 1:
        raise OrderValidationError("Quantity must be at least 1")
    if line.meal_type.requires_sabji:
        if not line.sabji:
            raise OrderValidationError("Please select a sabji for all items")
        if sabjis is not None and line.sabji not in sabjis:
            raise OrderValidationError(f"Invalid sabji: {line.sabji}")
    elif line.sabji:
        raise OrderValidationError("Rice Only items cannot have a sabji")


def quote_order(prices, lines: Iterable[LineRequest], sabjis: Sequence[str] | None = None) -> OrderQuote:
    lines = list(lines)
    if not lines:
        raise OrderValidationError("Please add at least one item to your order")

    priced = []
    for line in lines:
        validate_line(line, sabjis)
        price = unit_price(prices, line.meal_type)
        priced.append(
            PricedLine(
                meal_type=line.meal_type,
                sabji=line.sabji,
                quantity=line.quantity,
                price_per_unit=price,
                total_price=price * line.quantity,
            )
        )

    return OrderQuote(lines=priced, grand_total=sum(p.total_price for p in priced))


def normalize_line(line: LineRequest, sabjis: Sequence[str]) -> LineRequest:
    """Keep a line consistent with its meal type while the customer edits it."""
    if not line.meal_type.requires_sabji:
        return replace(line, sabji=None)
    if not line.sabji and sabjis:
        return replace(line, sabji=sabjis[0])
    return line


def order_payload(lines: Iterable[LineRequest]) -> list[dict]:
    payload = []
    for line in lines:
        item = {"mealType": line.meal_type.value, "quantity": line.quantity}
        if line.meal_type.requires_sabji and line.sabji:
            item["sabji"] = line.sabji
        payload.append(item)
    return payload


def whole_quantity(value) -> int:
    """A quantity from JSON or a form: an int, an integral float or a digit string; never a bool."""
    if isinstance(value, bool):
        raise OrderValidationError("Quantity must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise OrderValidationError("Quantity must be a whole number")
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise OrderValidationError("Quantity must be a whole number")


def lines_from_dicts(items) -> list[LineRequest]:
    """Build line requests from wire-shaped dicts (``mealType``, ``quantity``, ``sabji``)."""
    if not isinstance(items, list):
        raise OrderValidationError("Items must be a list")

    lines = []
    for item in items:
        if not isinstance(item, Mapping):
            raise OrderValidationError("Each item must be an object")
        sabji = item.get("sabji")
        if sabji is not None and not isinstance(sabji, str):
            raise OrderValidationError("Sabji must be text")
        lines.append(
            LineRequest(
                meal_type=parse_meal_type(item.get("mealType")),
                quantity=whole_quantity(item.get("quantity", 1)),
                sabji=sabji or None,
            )
        )
    return lines


def _parse_price(value: str) -> float:
    v = (value or "").strip().replace("₹", "").replace(",", ".")
    return float(v)


def parse_prices(full: str, half: str, rice_only: str) -> Prices:
    if not (full or "").strip() or not (half or "").strip() or not (rice_only or "").strip():
        raise OrderValidationError("Please fill in all prices")
    try:
        values = [_parse_price(full), _parse_price(half), _parse_price(rice_only)]
    except ValueError:
        raise OrderValidationError("Please enter valid prices") from None
    if not all(math.isfinite(v) for v in values):
        raise OrderValidationError("Please enter valid prices")
    if any(v <= 0 for v in values):
        raise OrderValidationError("Prices must be greater than 0")
    return Prices(full=values[0], half=values[1], riceOnly=values[2])
