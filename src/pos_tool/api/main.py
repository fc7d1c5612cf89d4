from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional

from pos_tool import __version__
from pos_tool.config.settings import Settings, get_settings
from pos_tool.engine.errors import (
    EmptyCartError,
    InvalidPrice,
    InvalidQuantity,
    LineNotFound,
    NotFoundError,
    ValidationError,
)
from pos_tool.logging_config import configure_logging
from pos_tool.api.state import AppState, get_state
from pos_tool.api.products_api import router as products_router
from pos_tool.api.members_api import router as members_router
from pos_tool.api.sales_api import router as sales_router
from pos_tool.api.cashier_api import router as cashier_router


def _register_error_handlers(app: FastAPI):
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": exc.to_dict()})

    @app.exception_handler(InvalidQuantity)
    @app.exception_handler(InvalidPrice)
    @app.exception_handler(EmptyCartError)
    async def rejected_input(request: Request, exc: Exception):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    @app.exception_handler(LineNotFound)
    async def not_found(request: Request, exc: Exception):
        return JSONResponse(status_code=404, content={"detail": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around services rooted at settings.data_dir."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="POS Tool API",
        description="Backend API for the cashier, catalog, members and sales",
        version=__version__
    )
    app.state.pos = AppState.from_settings(settings)

    # Enable CORS for frontend development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(products_router)
    app.include_router(members_router)
    app.include_router(sales_router)
    app.include_router(cashier_router)

    @app.get("/")
    async def root():
        return {"status": "online", "message": "POS Tool API Active"}

    @app.get("/system/status")
    async def get_status(state: AppState = Depends(get_state)):
        return {
            "engine_active": True,
            "currency": state.settings.currency,
            "products_count": len(state.catalog.list_products()),
            "members_count": len(state.members.list_members(include_general=False)),
            "open_sessions": len(state.sessions),
        }

    return app


app = create_app()
