from __future__ import annotations

from fastapi import APIRouter, Request

from app.schemas.contact import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.

    Returns:
        HealthResponse: status "ok" and the number of configured routes.
    """

    return HealthResponse(status="ok", routes=len(request.app.state.route_table))
