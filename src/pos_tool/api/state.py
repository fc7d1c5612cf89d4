"""
Shared API state - services and the open cashier sessions.
"""
import logging
import threading
import uuid
from dataclasses import dataclass, field

from fastapi import Request

from ..config.settings import Settings
from ..engine.cart import Cart
from ..engine.errors import NotFoundError
from ..services.catalog_service import CatalogService
from ..services.member_service import MemberService
from ..services.sales_service import SalesService

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Carts of the cashier sessions currently open, keyed by session id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._carts: dict[str, Cart] = {}

    def open(self, member_id: int = 0) -> tuple[str, Cart]:
        session_id = uuid.uuid4().hex
        cart = Cart(member_id=member_id)
        with self._lock:
            self._carts[session_id] = cart
        logger.info("Opened cashier session %s", session_id)
        return session_id, cart

    def get(self, session_id: str) -> Cart:
        with self._lock:
            cart = self._carts.get(session_id)
        if cart is None:
            raise NotFoundError(f"Cashier session '{session_id}' not found")
        return cart

    def close(self, session_id: str):
        with self._lock:
            cart = self._carts.pop(session_id, None)
        if cart is None:
            raise NotFoundError(f"Cashier session '{session_id}' not found")
        logger.info("Closed cashier session %s (%d line(s) abandoned)", session_id, len(cart))

    def __len__(self) -> int:
        return len(self._carts)


@dataclass
class AppState:
    settings: Settings
    catalog: CatalogService
    members: MemberService
    sales: SalesService
    sessions: SessionRegistry = field(default_factory=SessionRegistry)

    @classmethod
    def from_settings(cls, settings: Settings) -> 'AppState':
        members = MemberService(settings.members_csv)
        return cls(
            settings=settings,
            catalog=CatalogService(settings.products_csv, members=members),
            members=members,
            sales=SalesService(settings.sales_csv, settings.sale_lines_csv),
        )


def get_state(request: Request) -> AppState:
    """FastAPI dependency returning the state of the running app."""
    return request.app.state.pos
