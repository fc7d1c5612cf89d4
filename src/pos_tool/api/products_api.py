"""
Products API - FastAPI router for catalog management.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from typing import Any, Optional

from ..engine.models import Product
from .state import AppState, get_state

router = APIRouter(prefix="/api/products", tags=["products"])


# Pydantic models for API
class MemberPriceModel(BaseModel):
    member_id: int
    member_name: Optional[str] = None
    harga: float


class BulkTierModel(BaseModel):
    min_qty: int
    harga: float


class ProductModel(BaseModel):
    """Request/response model for a product."""
    id: int = 0
    name: str
    satuan: str
    modal: float = 0
    harga: float
    barcode: str = ""
    expired: str = ""
    note: str = ""
    member_prices: list[MemberPriceModel] = []
    harga_grosir: list[BulkTierModel] = []

    def to_product(self) -> Product:
        return Product.from_dict(self.model_dump())


class ProductValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: dict[str, str]
    duplicate_member_indexes: list[int]
    duplicate_bulk_indexes: list[int]


class ImportResponse(BaseModel):
    created: int
    updated: int
    errors: dict[int, dict[str, str]]


# Endpoints

@router.get("", response_model=list[ProductModel])
async def list_products(search: Optional[str] = None, state: AppState = Depends(get_state)):
    """List products, optionally filtered by a search term."""
    if search:
        products = state.catalog.search_products(search)
    else:
        products = state.catalog.list_products()
    return [p.to_dict() for p in products]


@router.get("/export", response_class=PlainTextResponse)
async def export_products(state: AppState = Depends(get_state)):
    """Export the catalog as CSV."""
    return PlainTextResponse(
        state.catalog.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=products.csv"},
    )


@router.get("/{product_id}", response_model=ProductModel)
async def get_product(product_id: int, state: AppState = Depends(get_state)):
    """Get a single product by ID."""
    return state.catalog.get_product(product_id).to_dict()


@router.post("", response_model=ProductModel)
async def create_product(product_data: ProductModel, state: AppState = Depends(get_state)):
    """Create a new product."""
    created = state.catalog.create_product(product_data.to_product())
    return created.to_dict()


@router.patch("", response_model=ProductModel)
async def update_product(product_data: ProductModel, state: AppState = Depends(get_state)):
    """Update an existing product (identified by the id in the body)."""
    updated = state.catalog.update_product(product_data.to_product())
    return updated.to_dict()


@router.delete("/{product_id}")
async def delete_product(product_id: int, state: AppState = Depends(get_state)):
    """Delete a product."""
    state.catalog.delete_product(product_id)
    return {"success": True, "message": f"Product '{product_id}' deleted"}


@router.post("/validate", response_model=ProductValidationResponse)
async def validate_product(product_data: ProductModel, state: AppState = Depends(get_state)):
    """Validate a product without saving."""
    result = state.catalog.validate_product(product_data.to_product())
    return ProductValidationResponse(
        valid=result.valid,
        errors=result.errors,
        duplicate_member_indexes=result.duplicate_member_indexes,
        duplicate_bulk_indexes=result.duplicate_bulk_indexes,
    )


@router.post("/import", response_model=ImportResponse)
async def import_products(rows: list[dict[str, Any]], state: AppState = Depends(get_state)):
    """Bulk import rows parsed from a catalog CSV."""
    report = state.catalog.import_rows(rows)
    return ImportResponse(created=report.created, updated=report.updated, errors=report.errors)
