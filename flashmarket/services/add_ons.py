# flashmarket/services/add_ons.py
"""
Price transforms for optional line extras.

Every function takes a CartLine and returns a new one; inputs are never
mutated. Prices are rounded to cents after each step.

To change the add-on set of a line, rebuild it from base_price with
rebuild_add_ons() instead of toggling single extras: the warranty is a
percentage of the price it is applied to, so stacking and unstacking
extras in arbitrary order would drift.
"""
from typing import Iterable

from flashmarket.core.config import Settings, get_settings
from flashmarket.models.cart import ADD_ON_ORDER, AddOn, AddOnType, CartLine

DEFAULT_EXPEDITED_COST = 5.0
DEFAULT_WARRANTY_PERCENT = 10.0
DEFAULT_GIFT_WRAP_COST = 2.0


def _with_add_on(item: CartLine, price: float, add_on: AddOn) -> CartLine:
    return item.model_copy(
        update={
            "price": round(price, 2),
            "add_ons": [a.model_copy() for a in item.add_ons] + [add_on],
        }
    )


def apply_expedited(item: CartLine, cost: float = DEFAULT_EXPEDITED_COST) -> CartLine:
    return _with_add_on(item, item.price + cost, AddOn(type=AddOnType.EXPEDITED, value=cost))


def apply_extended_warranty(item: CartLine, percent: float = DEFAULT_WARRANTY_PERCENT) -> CartLine:
    increment = item.price * (percent / 100)
    return _with_add_on(item, item.price + increment, AddOn(type=AddOnType.WARRANTY, value=percent))


def apply_gift_wrap(item: CartLine, cost: float = DEFAULT_GIFT_WRAP_COST) -> CartLine:
    return _with_add_on(item, item.price + cost, AddOn(type=AddOnType.GIFT_WRAP, value=cost))


def clear_add_ons(item: CartLine) -> CartLine:
    """Back to base_price (when known) with no extras."""
    update: dict = {"add_ons": []}
    if item.base_price is not None:
        update["price"] = item.base_price
    return item.model_copy(update=update)


def ensure_base_price(item: CartLine) -> CartLine:
    """Anchor base_price to the current price if it was never set."""
    if item.base_price is None:
        return item.model_copy(update={"base_price": item.price})
    return item


_APPLIERS = {
    AddOnType.EXPEDITED: apply_expedited,
    AddOnType.WARRANTY: apply_extended_warranty,
    AddOnType.GIFT_WRAP: apply_gift_wrap,
}


def default_add_on(add_on_type: AddOnType, settings: Settings | None = None) -> AddOn:
    """
    AddOn carrying the configured default fee / percentage.
    """
    settings = settings or get_settings()
    values = {
        AddOnType.EXPEDITED: settings.EXPEDITED_COST,
        AddOnType.WARRANTY: settings.WARRANTY_PERCENT,
        AddOnType.GIFT_WRAP: settings.GIFT_WRAP_COST,
    }
    return AddOn(type=add_on_type, value=values[add_on_type])


def rebuild_add_ons(item: CartLine, add_ons: Iterable[AddOn]) -> CartLine:
    """
    Recompute a line's price from base_price with exactly the given extras.

    Extras are applied in the fixed order expedited -> warranty -> gift wrap,
    whatever order they are passed in; a type listed twice counts once
    (first occurrence wins).
    """
    wanted: dict[AddOnType, AddOn] = {}
    for add_on in add_ons:
        wanted.setdefault(add_on.type, add_on)

    rebuilt = clear_add_ons(ensure_base_price(item))
    for add_on_type in ADD_ON_ORDER:
        if add_on_type in wanted:
            rebuilt = _APPLIERS[add_on_type](rebuilt, wanted[add_on_type].value)
    return rebuilt
