"""
Sales Service - Records checked-out carts and serves the sales history.

Each sale is one row in sales.csv plus one row per product in sale_lines.csv.
"""
import csv
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..engine.cart import Cart
from ..engine.errors import NotFoundError, ValidationError
from ..engine.models import CartSnapshot, SaleSubmission
from .member_service import MemberService

logger = logging.getLogger(__name__)


@dataclass
class SaleRecordLine:
    """A stored sale line."""
    product_id: int
    price: float
    quantity: int

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass
class Sale:
    """A recorded transaction, as shown on receipts and in the history."""
    id: int
    kasir_id: int
    member_id: int
    member_name: str
    total: float
    date_added: str
    lines: list[SaleRecordLine] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kasir_id": self.kasir_id,
            "member_id": self.member_id,
            "member_name": self.member_name,
            "total": self.total,
            "date_added": self.date_added,
            "products": [
                {
                    "product_id": line.product_id,
                    "harga": line.price,
                    "quantity": line.quantity,
                    "subtotal": line.subtotal,
                }
                for line in self.lines
            ],
        }


class SalesService:
    """Service for recording and reading sales."""

    SALE_COLUMNS = ['id', 'kasir_id', 'member_id', 'member_name', 'total', 'date_added']
    LINE_COLUMNS = ['sale_id', 'product_id', 'harga', 'quantity']

    def __init__(self, sales_csv: Path, sale_lines_csv: Path):
        self.sales_csv = Path(sales_csv)
        self.sale_lines_csv = Path(sale_lines_csv)

    def record_sale(self, submission: SaleSubmission, member_name: str = "") -> int:
        """
        Store a submitted sale and issue its transaction id.

        Raises ValidationError when the submission is inconsistent; nothing
        is written in that case.
        """
        self._validate(submission)

        sale_id = self._next_id()
        self._append(self.sales_csv, self.SALE_COLUMNS, [{
            'id': sale_id,
            'kasir_id': submission.kasir_id,
            'member_id': submission.member_id,
            'member_name': member_name,
            'total': submission.total,
            'date_added': datetime.now().isoformat(timespec='seconds'),
        }])
        self._append(self.sale_lines_csv, self.LINE_COLUMNS, [
            {
                'sale_id': sale_id,
                'product_id': line.product_id,
                'harga': line.price,
                'quantity': line.quantity,
            }
            for line in submission.lines
        ])

        logger.info(
            "Recorded sale %s: %d line(s), total %s, member %s",
            sale_id, len(submission.lines), submission.total, submission.member_id
        )
        return sale_id

    def list_sales(self) -> list[Sale]:
        """List all sales, newest first, with their lines."""
        lines_by_sale: dict[int, list[SaleRecordLine]] = {}
        for row in self._read(self.sale_lines_csv):
            lines_by_sale.setdefault(int(row['sale_id']), []).append(SaleRecordLine(
                product_id=int(row['product_id']),
                price=float(row['harga']),
                quantity=int(row['quantity']),
            ))

        sales = [
            Sale(
                id=int(row['id']),
                kasir_id=int(row['kasir_id'] or 0),
                member_id=int(row['member_id'] or 0),
                member_name=row.get('member_name', ''),
                total=float(row['total']),
                date_added=row.get('date_added', ''),
                lines=lines_by_sale.get(int(row['id']), []),
            )
            for row in self._read(self.sales_csv)
        ]
        sales.sort(key=lambda s: s.id, reverse=True)
        return sales

    def get_sale(self, sale_id: int) -> Sale:
        """Get a single sale (receipt data) by ID."""
        for sale in self.list_sales():
            if sale.id == sale_id:
                return sale
        raise NotFoundError(f"Sale {sale_id} not found")

    def export_csv(self) -> str:
        """Export the sales history (headers only) as CSV text."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=self.SALE_COLUMNS)
        writer.writeheader()
        for sale in self.list_sales():
            writer.writerow({col: getattr(sale, col) for col in self.SALE_COLUMNS})
        return buffer.getvalue()

    def _validate(self, submission: SaleSubmission):
        errors = {}
        if not submission.lines:
            errors["products"] = "A sale needs at least one product"
        for idx, line in enumerate(submission.lines):
            if line.quantity < 1:
                errors[f"products_{idx}_quantity"] = "Quantity must be at least 1"
            if not math.isfinite(line.price):
                errors[f"products_{idx}_harga"] = "Harga must be a number"
            elif line.price < 0:
                errors[f"products_{idx}_harga"] = "Harga must be a positive number"
        expected = sum(line.subtotal for line in submission.lines)
        if not math.isfinite(submission.total):
            errors["total"] = "Total must be a number"
        elif not abs(expected - submission.total) < 0.01:
            errors["total"] = f"Total {submission.total} does not match line sum {expected}"
        if errors:
            logger.warning("Rejected sale submission: %s", errors)
            raise ValidationError("Invalid sale", errors=errors)

    def _next_id(self) -> int:
        return max((int(row['id']) for row in self._read(self.sales_csv)), default=0) + 1

    @staticmethod
    def _read(path: Path) -> list[dict]:
        if not path.exists():
            return []
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return [row for row in csv.DictReader(f) if any(row.values())]

    @staticmethod
    def _append(path: Path, columns: list[str], rows: list[dict]):
        path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not path.exists() or path.stat().st_size == 0
        with open(path, 'a', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            if write_header:
                writer.writeheader()
            writer.writerows(rows)


def submit_cart(
    cart: Cart,
    sales: SalesService,
    members: Optional[MemberService] = None,
    kasir_id: int = 1,
) -> int:
    """
    Check out a cart: record its snapshot, then clear the sold lines.

    The cart is only cleared once the sale has been recorded; if recording
    fails the cart is left as it was.
    """
    def record(snapshot: CartSnapshot) -> int:
        member_name = ""
        if members is not None:
            member_name = members.get_member(snapshot.member_id).name
        return sales.record_sale(snapshot.to_submission(kasir_id), member_name=member_name)

    return cart.checkout(record)
