"""
Price Resolver - Picks the unit price to charge for one cart line.

Resolution order:
1. Manual override entered by the cashier
2. Member price for the selected member
3. Bulk tier (harga grosir) with the largest min_qty the quantity reaches
4. Product base price
"""
from typing import Optional

from .errors import InvalidQuantity
from .models import (
    SOURCE_BASE,
    SOURCE_BULK,
    SOURCE_MANUAL,
    SOURCE_MEMBER,
    BulkTier,
    PriceResolution,
    Product,
    is_general_public,
)


def find_bulk_tier(product: Product, quantity: int) -> Optional[BulkTier]:
    """Return the qualifying tier with the highest threshold (not the cheapest)."""
    qualifying = [bt for bt in product.bulk_tiers if bt.min_qty <= quantity]
    if not qualifying:
        return None
    return max(qualifying, key=lambda bt: bt.min_qty)


def resolve_price_with_trace(
    product: Product,
    member_id: Optional[int],
    quantity: int,
    manual_price: Optional[float] = None,
) -> PriceResolution:
    """
    Resolve the effective unit price with a trace of the decision.

    Args:
        product: Product snapshot carrying base price and tiers
        member_id: Selected member id; None or 0 means general public
        quantity: Line quantity, must be at least 1
        manual_price: Operator override, wins over everything when set

    Returns:
        PriceResolution with unit_price, source and trace
    """
    if quantity < 1:
        raise InvalidQuantity(f"Quantity must be at least 1, got {quantity}")

    if manual_price is not None:
        resolution = PriceResolution(unit_price=manual_price, source=SOURCE_MANUAL)
        resolution.add_trace("Manual Override", "Using price entered by cashier", f"{manual_price:,.0f}")
        return resolution

    resolution = PriceResolution(unit_price=product.price, source=SOURCE_BASE)

    if is_general_public(member_id):
        resolution.add_trace("Member Lookup", "General public, no member price")
    else:
        entry = product.member_price_for(member_id)
        if entry is not None:
            resolution.unit_price = entry.price
            resolution.source = SOURCE_MEMBER
            resolution.add_trace("Member Price", f"Member {member_id} price", f"{entry.price:,.0f}")
            return resolution
        resolution.add_trace("Member Lookup", f"No price for member {member_id}")

    tier = find_bulk_tier(product, quantity)
    if tier is not None:
        resolution.unit_price = tier.price
        resolution.source = SOURCE_BULK
        resolution.add_trace("Bulk Tier", f"Quantity {quantity} ≥ {tier.min_qty}", f"{tier.price:,.0f}")
        return resolution

    resolution.add_trace("Base Price", "No tier applies, using base price", f"{product.price:,.0f}")
    return resolution


def resolve_price(
    product: Product,
    member_id: Optional[int],
    quantity: int,
    manual_price: Optional[float] = None,
) -> float:
    """Resolve the effective unit price."""
    return resolve_price_with_trace(product, member_id, quantity, manual_price).unit_price
