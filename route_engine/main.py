# route_engine/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from route_engine.api.v1 import routes_health, routes_routing
from route_engine.core.config import settings
from route_engine.core.errors import (
    InfeasibleRouteError,
    PreconditionError,
    RouteBusyError,
    RoutePlanningError,
)
from route_engine.core.logger import logger
from route_engine.core.logging_config import setup_logging

ERROR_STATUS = {
    PreconditionError: 400,
    RouteBusyError: 409,
    InfeasibleRouteError: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    routes_routing.ors_client.close()


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        lifespan=lifespan,
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Plans time-budgeted walking routes through heritage sites.",
    )

    # Routers
    app.include_router(routes_health.router, prefix="", tags=["health"])
    app.include_router(routes_routing.router, prefix="", tags=["routing"])

    @app.exception_handler(RoutePlanningError)
    async def route_planning_error_handler(request: Request, exc: RoutePlanningError) -> JSONResponse:
        status_code = ERROR_STATUS.get(type(exc), 500)
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    return app


app = create_app()
