"""JSON shapes of the HTTP API (camelCase, as the storefront expects)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from blindbox_kernel.domain.values import (
    BackpackEntry,
    CheckoutLine,
    CollectibleItem,
    ProductListing,
)
from blindbox_kernel.exceptions import InvalidCheckoutError, ValidationError


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def item_to_json(item: CollectibleItem) -> dict[str, Any]:
    return {"id": item.item_id, "name": item.name, "type": item.tier.value}


def listing_to_json(listing: ProductListing) -> dict[str, Any]:
    product = listing.product
    return {
        "id": product.product_id,
        "name": product.name,
        "price": float(product.price),
        "img": product.image,
        "items": [item_to_json(item) for item in product.items],
        "stocks": product.stocks.as_dict(),
        "totalStock": listing.total_stock,
    }


def entry_to_json(entry: BackpackEntry) -> dict[str, Any]:
    return {
        "_id": str(entry.entry_id),
        "productId": entry.product_id,
        "productName": entry.product_name,
        "status": entry.state.value,
        "itemId": entry.item_id,
        "itemName": entry.item_name,
        "rarity": entry.rarity.value,
        "createdAt": _iso(entry.created_at),
        "openedAt": _iso(entry.opened_at),
        "openedRarity": entry.opened_rarity.value if entry.opened_rarity else None,
    }


def parse_int(value: Any, field: str) -> int:
    """Accept ints and integer strings ("5", "-3"); reject everything else."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            pass
    raise ValidationError(f"{field} must be an integer")


def parse_checkout_lines(body: Any) -> list[CheckoutLine]:
    items = body.get("items") if isinstance(body, dict) else None
    if not isinstance(items, list) or not items:
        raise InvalidCheckoutError("No items provided")
    lines = []
    for raw in items:
        if not isinstance(raw, dict) or "id" not in raw:
            raise InvalidCheckoutError("Each item needs a product id")
        quantity = raw.get("quantity")
        lines.append(CheckoutLine(
            product_id=parse_int(raw["id"], "id"),
            quantity=1 if quantity is None else parse_int(quantity, "quantity"),
        ))
    return lines
