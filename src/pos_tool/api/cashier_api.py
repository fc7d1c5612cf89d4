"""
Cashier API - FastAPI router driving one cart per cashier session.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Optional

from ..engine.cart import Cart
from ..services.sales_service import submit_cart
from .state import AppState, get_state

router = APIRouter(prefix="/api/cashier/sessions", tags=["cashier"])


class OpenSessionRequest(BaseModel):
    member_id: int = 0


class AddItemRequest(BaseModel):
    product_id: int


class QuantityRequest(BaseModel):
    quantity: int


class PriceRequest(BaseModel):
    """harga of null clears the manual price."""
    harga: Optional[float] = None


class MemberRequest(BaseModel):
    member_id: int = 0


class CheckoutRequest(BaseModel):
    kasir_id: Optional[int] = None


def _session_view(session_id: str, cart: Cart) -> dict:
    view = cart.snapshot().to_dict()
    view["session_id"] = session_id
    return view


@router.post("")
async def open_session(body: OpenSessionRequest, state: AppState = Depends(get_state)):
    """Open a cashier session with an empty cart."""
    state.members.get_member(body.member_id)
    session_id, cart = state.sessions.open(member_id=body.member_id)
    return _session_view(session_id, cart)


@router.get("/{session_id}")
async def get_session(session_id: str, state: AppState = Depends(get_state)):
    return _session_view(session_id, state.sessions.get(session_id))


@router.delete("/{session_id}")
async def abandon_session(session_id: str, state: AppState = Depends(get_state)):
    """Abandon a session; its cart is discarded."""
    state.sessions.close(session_id)
    return {"success": True, "message": f"Session '{session_id}' closed"}


@router.post("/{session_id}/items")
async def add_item(session_id: str, body: AddItemRequest, state: AppState = Depends(get_state)):
    """Scan/select a product: adds it or bumps its quantity by one."""
    cart = state.sessions.get(session_id)
    cart.add_product(state.catalog.get_product(body.product_id))
    return _session_view(session_id, cart)


@router.patch("/{session_id}/items/{product_id}")
async def change_quantity(
    session_id: str, product_id: int, body: QuantityRequest, state: AppState = Depends(get_state)
):
    cart = state.sessions.get(session_id)
    cart.change_quantity(product_id, body.quantity)
    return _session_view(session_id, cart)


@router.put("/{session_id}/items/{product_id}/price")
async def set_price(
    session_id: str, product_id: int, body: PriceRequest, state: AppState = Depends(get_state)
):
    cart = state.sessions.get(session_id)
    cart.set_manual_price(product_id, body.harga)
    return _session_view(session_id, cart)


@router.delete("/{session_id}/items/{product_id}")
async def remove_item(session_id: str, product_id: int, state: AppState = Depends(get_state)):
    cart = state.sessions.get(session_id)
    cart.remove_product(product_id)
    return _session_view(session_id, cart)


@router.put("/{session_id}/member")
async def change_member(session_id: str, body: MemberRequest, state: AppState = Depends(get_state)):
    cart = state.sessions.get(session_id)
    state.members.get_member(body.member_id)
    cart.change_member(body.member_id)
    return _session_view(session_id, cart)


@router.post("/{session_id}/checkout")
async def checkout(session_id: str, body: CheckoutRequest, state: AppState = Depends(get_state)):
    """Record the cart as a sale and empty it."""
    cart = state.sessions.get(session_id)
    kasir_id = body.kasir_id
    if kasir_id is None:
        kasir_id = state.settings.default_kasir_id
    sale_id = submit_cart(cart, state.sales, members=state.members, kasir_id=kasir_id)
    return {"sale_id": sale_id, **_session_view(session_id, cart)}
