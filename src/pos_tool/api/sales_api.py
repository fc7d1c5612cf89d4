"""
Sales API - FastAPI router for recording and browsing sales.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..engine.models import SaleLine, SaleSubmission
from .state import AppState, get_state

router = APIRouter(prefix="/api/sales", tags=["sales"])


class SaleLineModel(BaseModel):
    product_id: int
    harga: float
    quantity: int


class SaleSubmissionModel(BaseModel):
    """Request model matching the cashier's receipt submission."""
    kasir_id: int = 1
    member_id: int = 0
    total: float
    products: list[SaleLineModel]


@router.get("")
async def list_sales(state: AppState = Depends(get_state)):
    """List all sales, newest first."""
    return [sale.to_dict() for sale in state.sales.list_sales()]


@router.get("/export", response_class=PlainTextResponse)
async def export_sales(state: AppState = Depends(get_state)):
    return PlainTextResponse(
        state.sales.export_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=sales.csv"},
    )


@router.get("/{sale_id}")
async def get_sale(sale_id: int, state: AppState = Depends(get_state)):
    """Get one sale with its lines (receipt data)."""
    return state.sales.get_sale(sale_id).to_dict()


@router.post("")
async def create_sale(data: SaleSubmissionModel, state: AppState = Depends(get_state)):
    """Record a sale submitted directly; returns the new transaction id."""
    submission = SaleSubmission(
        member_id=data.member_id,
        total=data.total,
        lines=tuple(
            SaleLine(product_id=p.product_id, price=p.harga, quantity=p.quantity)
            for p in data.products
        ),
        kasir_id=data.kasir_id,
    )
    member_name = state.members.get_member(data.member_id).name
    return state.sales.record_sale(submission, member_name=member_name)
