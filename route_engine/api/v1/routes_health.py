# route_engine/api/v1/routes_health.py
from fastapi import APIRouter, Depends

from route_engine.api.v1.routes_routing import get_controller
from route_engine.core.config import settings
from route_engine.services.route_session import RouteSessionController

router = APIRouter(
    prefix="/health",
    tags=["health"],
)


@router.get("/", summary="Health check")
async def health_check(controller: RouteSessionController = Depends(get_controller)):
    """
    Simple health check endpoint to verify that the API is running and
    whether the routing provider is configured.
    """
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "provider_configured": bool(controller.client and controller.client.has_credentials),
        "route_state": controller.state.value,
    }
