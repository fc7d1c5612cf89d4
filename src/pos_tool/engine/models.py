"""
Data models for the cart pricing engine.

Uses frozen dataclasses so that every product, line item and cart snapshot is
an immutable value: the cart swaps whole values on mutation instead of editing
fields in place.
"""
from dataclasses import dataclass, field
from typing import Optional


GENERAL_PUBLIC_ID = 0

# Price sources, highest precedence first
SOURCE_MANUAL = "Manual"
SOURCE_MEMBER = "Member"
SOURCE_BULK = "Bulk"
SOURCE_BASE = "Base"


def is_general_public(member_id: Optional[int]) -> bool:
    """True for the sentinel "general public" selection (no member tier)."""
    return member_id is None or int(member_id) == GENERAL_PUBLIC_ID


@dataclass(frozen=True)
class MemberPrice:
    """A member-specific negotiated unit price."""
    member_id: int
    price: float

    def to_dict(self) -> dict:
        return {"member_id": self.member_id, "harga": self.price}

    @classmethod
    def from_dict(cls, data: dict) -> 'MemberPrice':
        return cls(member_id=int(data["member_id"]), price=float(data["harga"]))


@dataclass(frozen=True)
class BulkTier:
    """A volume price (harga grosir) that applies from min_qty upwards."""
    min_qty: int
    price: float

    def to_dict(self) -> dict:
        return {"min_qty": self.min_qty, "harga": self.price}

    @classmethod
    def from_dict(cls, data: dict) -> 'BulkTier':
        return cls(min_qty=int(data["min_qty"]), price=float(data["harga"]))


@dataclass(frozen=True)
class Product:
    """
    A catalog item as seen by the pricing engine.

    Tier collections are tuples, so a Product held by a cart line is a
    snapshot that later catalog edits cannot reach.
    """
    id: int
    name: str
    unit: str
    price: float
    cost: float = 0.0
    barcode: str = ""
    expired: str = ""
    note: str = ""
    member_prices: tuple[MemberPrice, ...] = ()
    bulk_tiers: tuple[BulkTier, ...] = ()

    def member_price_for(self, member_id: Optional[int]) -> Optional[MemberPrice]:
        """Return the member price entry for member_id, if any."""
        if is_general_public(member_id):
            return None
        for entry in self.member_prices:
            if entry.member_id == int(member_id):
                return entry
        return None

    def to_dict(self) -> dict:
        """Convert to the wire/CSV field names used by the catalog."""
        return {
            "id": self.id,
            "name": self.name,
            "satuan": self.unit,
            "modal": self.cost,
            "harga": self.price,
            "barcode": self.barcode,
            "expired": self.expired,
            "note": self.note,
            "member_prices": [mp.to_dict() for mp in self.member_prices],
            "harga_grosir": [bt.to_dict() for bt in self.bulk_tiers],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Product':
        """Create a Product from catalog field names."""
        return cls(
            id=int(data.get("id") or 0),
            name=str(data.get("name") or ""),
            unit=str(data.get("satuan") or ""),
            price=float(data.get("harga") or 0),
            cost=float(data.get("modal") or 0),
            barcode=str(data.get("barcode") or ""),
            expired=str(data.get("expired") or ""),
            note=str(data.get("note") or ""),
            member_prices=tuple(
                MemberPrice.from_dict(mp) for mp in (data.get("member_prices") or [])
            ),
            bulk_tiers=tuple(
                BulkTier.from_dict(bt) for bt in (data.get("harga_grosir") or [])
            ),
        )


@dataclass(frozen=True)
class Member:
    """A registered customer."""
    id: int
    name: str
    address: str = ""
    phone: str = ""
    note: str = ""
    date_added: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "note": self.note,
            "date_added": self.date_added,
        }


GENERAL_PUBLIC = Member(id=GENERAL_PUBLIC_ID, name="Umum")


@dataclass
class TraceStep:
    """A single step in the price resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceResolution:
    """Result of resolving one line's unit price."""
    unit_price: float
    source: str
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass(frozen=True)
class LineItem:
    """
    One product in the active cart.

    name and unit are display copies taken when the line was created;
    product is the pricing snapshot (base price plus both tier collections).
    """
    product_id: int
    name: str
    unit: str
    quantity: int
    unit_price: float
    product: Product
    price_source: str = SOURCE_BASE
    manual_price: Optional[float] = None

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price

    @property
    def has_override(self) -> bool:
        return self.manual_price is not None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "satuan": self.unit,
            "quantity": self.quantity,
            "harga": self.unit_price,
            "original_harga": self.product.price,
            "manual_harga": self.manual_price,
            "source": self.price_source,
            "subtotal": self.subtotal,
        }


@dataclass(frozen=True)
class SaleLine:
    """One line of a sales submission."""
    product_id: int
    price: float
    quantity: int

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "harga": self.price, "quantity": self.quantity}


@dataclass(frozen=True)
class SaleSubmission:
    """Payload handed to the sales-recording side when a cart is checked out."""
    member_id: int
    total: float
    lines: tuple[SaleLine, ...]
    kasir_id: int = 1

    def to_dict(self) -> dict:
        return {
            "kasir_id": self.kasir_id,
            "member_id": self.member_id,
            "total": self.total,
            "products": [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable view of a cart at one instant."""
    member_id: int
    lines: tuple[LineItem, ...]
    grand_total: float
    item_count: int

    def to_submission(self, kasir_id: int = 1) -> SaleSubmission:
        return SaleSubmission(
            member_id=self.member_id,
            total=self.grand_total,
            lines=tuple(
                SaleLine(product_id=line.product_id, price=line.unit_price, quantity=line.quantity)
                for line in self.lines
            ),
            kasir_id=kasir_id,
        )

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "total": self.grand_total,
            "total_items": self.item_count,
            "products": [line.to_dict() for line in self.lines],
        }
