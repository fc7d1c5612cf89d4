"""
Catalog Service - CRUD, search and CSV import/export for products.

Products are stored one per row in products.csv; the two tier collections are
kept as JSON arrays in the member_prices and harga_grosir columns.
"""
import io
import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Collection, Optional

import pandas as pd

from ..engine.errors import NotFoundError, ValidationError
from ..engine.models import Product
from ..engine.tier_validator import validate_tiers
from .member_service import MemberService

logger = logging.getLogger(__name__)


@dataclass
class ProductValidation:
    """Result of product form validation."""
    errors: dict[str, str] = field(default_factory=dict)
    duplicate_member_indexes: list[int] = field(default_factory=list)
    duplicate_bulk_indexes: list[int] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_error(self, message: str = "Invalid product") -> ValidationError:
        return ValidationError(
            message,
            errors=self.errors,
            duplicate_member_indexes=self.duplicate_member_indexes,
            duplicate_bulk_indexes=self.duplicate_bulk_indexes,
        )


@dataclass
class ImportReport:
    """Outcome of a bulk product import."""
    created: int = 0
    updated: int = 0
    errors: dict[int, dict[str, str]] = field(default_factory=dict)

    @property
    def imported(self) -> int:
        return self.created + self.updated


def _parse_tiers(value: Any) -> list:
    """Tier columns arrive as JSON text (CSV) or as lists (API)."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.strip()
        return json.loads(value) if value else []
    return list(value)


def _row_to_product(row: dict) -> Product:
    data = dict(row)
    data["member_prices"] = _parse_tiers(row.get("member_prices"))
    data["harga_grosir"] = _parse_tiers(row.get("harga_grosir"))
    return Product.from_dict(data)


class CatalogService:
    """Service for managing the product catalog."""

    CSV_COLUMNS = [
        'id', 'name', 'satuan', 'modal', 'harga', 'barcode', 'expired', 'note',
        'member_prices', 'harga_grosir'
    ]

    def __init__(self, products_csv: Path, members: Optional[MemberService] = None):
        self.products_csv = Path(products_csv)
        self.members = members

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _load_frame(self) -> pd.DataFrame:
        if not self.products_csv.exists():
            return pd.DataFrame(columns=self.CSV_COLUMNS)
        df = pd.read_csv(self.products_csv, dtype=str, keep_default_na=False)
        for col in self.CSV_COLUMNS:
            if col not in df.columns:
                df[col] = ''
        return df[self.CSV_COLUMNS]

    def _to_csv_row(self, product: Product) -> dict:
        data = product.to_dict()
        data["member_prices"] = json.dumps(data["member_prices"])
        data["harga_grosir"] = json.dumps(data["harga_grosir"])
        return data

    def _write_products(self, products: list[Product]):
        self.products_csv.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame([self._to_csv_row(p) for p in products], columns=self.CSV_COLUMNS)
        df.to_csv(self.products_csv, index=False)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self) -> list[Product]:
        """List all products in catalog order."""
        df = self._load_frame()
        return [_row_to_product(row) for row in df.to_dict(orient="records")]

    def get_product(self, product_id: int) -> Product:
        """Get a single product by ID."""
        for product in self.list_products():
            if product.id == product_id:
                return product
        raise NotFoundError(f"Product {product_id} not found")

    def search_products(self, term: Optional[str] = None, limit: int = 200) -> list[Product]:
        """Case-insensitive search on id, name and barcode."""
        df = self._load_frame()
        if term:
            term = term.strip()
            mask = (
                df['id'].str.contains(term, case=False, na=False, regex=False) |
                df['name'].str.contains(term, case=False, na=False, regex=False) |
                df['barcode'].str.contains(term, case=False, na=False, regex=False)
            )
            df = df[mask]
        df = df.head(limit)
        return [_row_to_product(row) for row in df.to_dict(orient="records")]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def known_member_ids(self) -> Optional[set[int]]:
        """Ids member prices may point at, or None when members are not checked."""
        if self.members is None:
            return None
        return {m.id for m in self.members.list_members(include_general=False)}

    def validate_product(
        self, product: Product, member_ids: Optional[Collection[int]] = None
    ) -> ProductValidation:
        """Validate a product definition before saving."""
        if member_ids is None:
            member_ids = self.known_member_ids()
        result = ProductValidation()

        if not product.name.strip():
            result.errors["name"] = "Name is required"
        if not product.unit.strip():
            result.errors["satuan"] = "Satuan is required"
        if not product.barcode.strip():
            result.errors["barcode"] = "Barcode is required"
        if product.cost < 0:
            result.errors["modal"] = "Modal must be a positive number"
        if product.price < 0:
            result.errors["harga"] = "Harga must be a positive number"

        tiers = validate_tiers(product.member_prices, product.bulk_tiers, member_ids)
        result.errors.update(tiers.errors)
        result.duplicate_member_indexes = tiers.duplicate_member_indexes
        result.duplicate_bulk_indexes = tiers.duplicate_bulk_indexes
        return result

    def _ensure_valid(self, product: Product):
        validation = self.validate_product(product)
        if not validation.valid:
            logger.warning("Rejected product %s: %s", product.id, validation.errors)
            raise validation.to_error()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_product(self, product: Product) -> Product:
        """Create a new product; id 0 means assign the next free id."""
        self._ensure_valid(product)

        products = self.list_products()
        if not product.id:
            product = replace(product, id=self._next_id(products))
        elif any(p.id == product.id for p in products):
            raise ValidationError(
                f"Product with ID '{product.id}' already exists",
                errors={"id": "ID already exists"},
            )

        products.append(product)
        self._write_products(products)
        logger.info("Created product %s (%s)", product.id, product.name)
        return product

    def update_product(self, product: Product) -> Product:
        """Replace an existing product definition."""
        self._ensure_valid(product)

        products = self.list_products()
        for i, existing in enumerate(products):
            if existing.id == product.id:
                products[i] = product
                break
        else:
            raise NotFoundError(f"Product {product.id} not found")

        self._write_products(products)
        logger.info("Updated product %s", product.id)
        return product

    def delete_product(self, product_id: int) -> bool:
        """Delete a product."""
        products = self.list_products()
        remaining = [p for p in products if p.id != product_id]
        if len(remaining) == len(products):
            raise NotFoundError(f"Product {product_id} not found")

        self._write_products(remaining)
        logger.info("Deleted product %s", product_id)
        return True

    def import_rows(self, rows: list[dict]) -> ImportReport:
        """
        Bulk import product rows (e.g. parsed from an exported CSV).

        Rows with an existing id replace that product, rows without one are
        appended. Invalid rows are skipped and reported by row index.
        """
        report = ImportReport()
        products = self.list_products()
        by_id = {p.id: i for i, p in enumerate(products)}
        member_ids = self.known_member_ids()

        for idx, row in enumerate(rows):
            try:
                product = _row_to_product(row)
            except (KeyError, TypeError, ValueError) as e:
                report.errors[idx] = {"row": f"Unreadable row: {e}"}
                continue

            validation = self.validate_product(product, member_ids)
            if not validation.valid:
                report.errors[idx] = validation.errors
                continue

            if product.id and product.id in by_id:
                products[by_id[product.id]] = product
                report.updated += 1
            else:
                if not product.id:
                    product = replace(product, id=self._next_id(products))
                by_id[product.id] = len(products)
                products.append(product)
                report.created += 1

        if report.imported:
            self._write_products(products)
        logger.info(
            "Imported products: %d created, %d updated, %d rejected",
            report.created, report.updated, len(report.errors)
        )
        return report

    def export_csv(self) -> str:
        """Export the catalog as CSV text."""
        buffer = io.StringIO()
        self._load_frame().to_csv(buffer, index=False)
        return buffer.getvalue()

    @staticmethod
    def _next_id(products: list[Product]) -> int:
        return max((p.id for p in products), default=0) + 1
