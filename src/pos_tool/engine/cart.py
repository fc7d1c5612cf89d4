"""
Cart Aggregator - The line items of one checkout session.

Every mutation re-resolves the affected line prices, then publishes a new
CartSnapshot (lines plus totals) in a single assignment. Readers therefore
see the cart either before or after a mutation, never halfway. Mutations are
serialised by a lock; a rejected mutation changes nothing.
"""
import logging
import math
import threading
from dataclasses import replace
from typing import Callable, Optional

from .errors import EmptyCartError, InvalidPrice, InvalidQuantity, LineNotFound
from .models import GENERAL_PUBLIC_ID, CartSnapshot, LineItem, Product
from .price_resolver import resolve_price_with_trace

logger = logging.getLogger(__name__)


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(f"Quantity must be a whole number, got {quantity!r}")
    if quantity < 1:
        raise InvalidQuantity(
            f"Quantity must be at least 1, got {quantity}; remove the product instead"
        )
    return quantity


def _check_price(price) -> float:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise InvalidPrice(f"Price must be a number, got {price!r}")
    if not math.isfinite(price):
        raise InvalidPrice(f"Price must be a finite number, got {price}")
    if price < 0:
        raise InvalidPrice(f"Price must not be negative, got {price}")
    return float(price)


class Cart:
    """
    Ordered collection of line items, unique by product id.

    The selected member is part of the cart state and is passed in
    explicitly through change_member().
    """

    def __init__(self, member_id: Optional[int] = GENERAL_PUBLIC_ID):
        self._lock = threading.RLock()
        self._snapshot = CartSnapshot(
            member_id=member_id or GENERAL_PUBLIC_ID,
            lines=(),
            grand_total=0.0,
            item_count=0,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def member_id(self) -> int:
        return self._snapshot.member_id

    def snapshot(self) -> CartSnapshot:
        """Return the current state; it never changes after being returned."""
        return self._snapshot

    def lines(self) -> tuple[LineItem, ...]:
        return self._snapshot.lines

    def get_line(self, product_id: int) -> Optional[LineItem]:
        for line in self._snapshot.lines:
            if line.product_id == product_id:
                return line
        return None

    def grand_total(self) -> float:
        return self._snapshot.grand_total

    def item_count(self) -> int:
        return self._snapshot.item_count

    def is_empty(self) -> bool:
        return not self._snapshot.lines

    def __len__(self) -> int:
        return len(self._snapshot.lines)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_product(self, product: Product) -> LineItem:
        """Add one unit of product, creating its line if needed."""
        with self._lock:
            state = self._snapshot
            existing = self._find(state.lines, product.id)
            if existing is None:
                resolution = resolve_price_with_trace(product, state.member_id, 1)
                line = LineItem(
                    product_id=product.id,
                    name=product.name,
                    unit=product.unit,
                    quantity=1,
                    unit_price=resolution.unit_price,
                    product=product,
                    price_source=resolution.source,
                )
                lines = state.lines + (line,)
                logger.debug("Added product %s at %s (%s)", product.id, line.unit_price, line.price_source)
            else:
                idx, current = existing
                line = self._reprice(replace(current, quantity=current.quantity + 1), state.member_id)
                lines = self._swap(state.lines, idx, line)
                logger.debug("Incremented product %s to %s", product.id, line.quantity)
            self._publish(state.member_id, lines)
            return line

    def change_quantity(self, product_id: int, quantity: int) -> LineItem:
        """Set a line's quantity; a quantity of zero must be a removal."""
        quantity = _check_quantity(quantity)
        with self._lock:
            state = self._snapshot
            idx, current = self._require(state.lines, product_id)
            line = self._reprice(replace(current, quantity=quantity), state.member_id)
            self._publish(state.member_id, self._swap(state.lines, idx, line))
            logger.debug("Quantity of product %s set to %s", product_id, quantity)
            return line

    def set_manual_price(self, product_id: int, price: Optional[float]) -> LineItem:
        """
        Pin a line to an operator-entered unit price.

        Passing None clears the override and re-resolves the price from the
        current quantity and member.
        """
        if price is not None:
            price = _check_price(price)
        with self._lock:
            state = self._snapshot
            idx, current = self._require(state.lines, product_id)
            line = self._reprice(replace(current, manual_price=price), state.member_id)
            self._publish(state.member_id, self._swap(state.lines, idx, line))
            if price is None:
                logger.debug("Manual price cleared for product %s", product_id)
            else:
                logger.debug("Manual price %s set for product %s", price, product_id)
            return line

    def change_member(self, member_id: Optional[int]) -> CartSnapshot:
        """Select a member and re-resolve every line without a manual price."""
        member_id = member_id or GENERAL_PUBLIC_ID
        with self._lock:
            state = self._snapshot
            lines = tuple(
                line if line.has_override else self._reprice(line, member_id)
                for line in state.lines
            )
            self._publish(member_id, lines)
            logger.debug("Member changed to %s, %d line(s) in cart", member_id, len(lines))
            return self._snapshot

    def remove_product(self, product_id: int) -> CartSnapshot:
        """Delete a line. Removing an absent product is a no-op."""
        with self._lock:
            state = self._snapshot
            lines = tuple(line for line in state.lines if line.product_id != product_id)
            if len(lines) != len(state.lines):
                self._publish(state.member_id, lines)
                logger.debug("Removed product %s", product_id)
            return self._snapshot

    def clear(self) -> None:
        """Empty the cart, keeping the selected member."""
        with self._lock:
            self._publish(self._snapshot.member_id, ())
            logger.debug("Cart cleared")

    def checkout(self, record: Callable[[CartSnapshot], int]) -> int:
        """
        Hand the current snapshot to record() and drop the lines it sold.

        The lock is held from snapshot to clear, so no other writer can slip
        in between. Lines changed or added by record() itself stay in the
        cart. If record() raises, the cart is left as it was.
        """
        with self._lock:
            sold = self._snapshot
            if not sold.lines:
                raise EmptyCartError("Cannot check out an empty cart")
            result = record(sold)
            current = self._snapshot
            if current is sold:
                remaining = ()
            else:
                remaining = tuple(line for line in current.lines if line not in sold.lines)
                logger.warning(
                    "Cart changed during checkout; %d line(s) kept for a later sale", len(remaining)
                )
            self._publish(current.member_id, remaining)
            logger.debug("Checked out %d line(s)", len(sold.lines))
            return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _find(lines: tuple[LineItem, ...], product_id: int) -> Optional[tuple[int, LineItem]]:
        for idx, line in enumerate(lines):
            if line.product_id == product_id:
                return idx, line
        return None

    def _require(self, lines: tuple[LineItem, ...], product_id: int) -> tuple[int, LineItem]:
        found = self._find(lines, product_id)
        if found is None:
            raise LineNotFound(f"Product {product_id} is not in the cart")
        return found

    @staticmethod
    def _swap(lines: tuple[LineItem, ...], idx: int, line: LineItem) -> tuple[LineItem, ...]:
        return lines[:idx] + (line,) + lines[idx + 1:]

    @staticmethod
    def _reprice(line: LineItem, member_id: int) -> LineItem:
        resolution = resolve_price_with_trace(line.product, member_id, line.quantity, line.manual_price)
        return replace(line, unit_price=resolution.unit_price, price_source=resolution.source)

    def _publish(self, member_id: int, lines: tuple[LineItem, ...]) -> None:
        self._snapshot = CartSnapshot(
            member_id=member_id,
            lines=lines,
            grand_total=sum(line.subtotal for line in lines),
            item_count=sum(line.quantity for line in lines),
        )
