"""
Members API - FastAPI router for the member registry.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..engine.models import Member
from .state import AppState, get_state

router = APIRouter(prefix="/api/members", tags=["members"])


class MemberModel(BaseModel):
    """Request/response model for a member."""
    id: int = 0
    name: str
    address: str = ""
    phone: str = ""
    note: str = ""
    date_added: str = ""


@router.get("", response_model=list[MemberModel])
async def list_members(include_general: bool = True, state: AppState = Depends(get_state)):
    """List members; the general-public entry (id 0) is listed first."""
    return [m.to_dict() for m in state.members.list_members(include_general=include_general)]


@router.get("/{member_id}", response_model=MemberModel)
async def get_member(member_id: int, state: AppState = Depends(get_state)):
    return state.members.get_member(member_id).to_dict()


@router.post("", response_model=MemberModel)
async def create_member(member_data: MemberModel, state: AppState = Depends(get_state)):
    created = state.members.create_member(Member(**member_data.model_dump()))
    return created.to_dict()


@router.patch("", response_model=MemberModel)
async def update_member(member_data: MemberModel, state: AppState = Depends(get_state)):
    updated = state.members.update_member(Member(**member_data.model_dump()))
    return updated.to_dict()


@router.delete("/{member_id}")
async def delete_member(member_id: int, state: AppState = Depends(get_state)):
    state.members.delete_member(member_id)
    return {"success": True, "message": f"Member '{member_id}' deleted"}
