from __future__ import annotations

from app.api.routes.contact import build_contact_router
from app.api.routes.health import router as health_router

__all__ = ["build_contact_router", "health_router"]
