# route_engine/api/v1/routes_routing.py
from fastapi import APIRouter, Depends, Response, status

from route_engine.models.routing import (
    ActiveRouteResponse,
    DisplayMode,
    PlanRequest,
    ReducedRouteRequest,
    RouteRequest,
    RouteResult,
)
from route_engine.services.ors_client import OpenRouteServiceClient
from route_engine.services.render import LayerStore, RouteContext
from route_engine.services.route_session import RouteSessionController

router = APIRouter(
    prefix="/route",
    tags=["routing"],
)

# Single shared instances
layer_store = LayerStore()
ors_client = OpenRouteServiceClient()
route_controller = RouteSessionController(
    client=ors_client,
    context=RouteContext(render_target=layer_store),
)


def get_controller() -> RouteSessionController:
    return route_controller


def _context(
    controller: RouteSessionController,
    locale: str,
    display_mode: DisplayMode,
) -> RouteContext:
    render_target = controller.default_context.render_target if controller.default_context else layer_store
    return RouteContext(render_target=render_target, locale=locale, display_mode=display_mode)


# Plain `def` endpoints: planning blocks on provider calls and runs in the threadpool.


@router.post(
    "/",
    response_model=RouteResult,
    summary="Plan and render a walking route through the given nodes",
)
def create_route(
    request: RouteRequest,
    controller: RouteSessionController = Depends(get_controller),
) -> RouteResult:
    """
    Order the nodes, resolve walkable geometry and check the time budget.

    A route that does not fit the budget comes back with
    `status = budget_exceeded` and a `proposed_reduced_count`; accept it
    through POST /route/reduced.
    """
    return controller.create_route(
        request.origin,
        request.nodes,
        available_minutes=request.available_minutes,
        skip_check=request.skip_check,
        context=_context(controller, request.locale, request.display_mode),
    )


@router.post(
    "/reduced",
    response_model=RouteResult,
    summary="Create the shorter route proposed after a budget overflow",
)
def create_reduced_route(
    request: ReducedRouteRequest,
    controller: RouteSessionController = Depends(get_controller),
) -> RouteResult:
    return controller.create_reduced_route(
        request.origin,
        request.nodes,
        request.reduced_count,
        available_minutes=request.available_minutes,
        context=_context(controller, request.locale, request.display_mode),
    )


@router.post(
    "/plan",
    response_model=RouteResult,
    summary="Pick undiscovered nodes from a catalog and route through them",
)
def plan_route(
    request: PlanRequest,
    controller: RouteSessionController = Depends(get_controller),
) -> RouteResult:
    return controller.plan_route(
        request.origin,
        request.catalog,
        request.count,
        categories=request.categories,
        discovered_ids=request.discovered_ids,
        available_minutes=request.available_minutes,
        context=_context(controller, request.locale, request.display_mode),
    )


@router.get(
    "/",
    response_model=ActiveRouteResponse,
    summary="Current route state and the live route, if any",
)
def get_active_route(
    controller: RouteSessionController = Depends(get_controller),
) -> ActiveRouteResponse:
    session = controller.active_session
    return ActiveRouteResponse(
        state=controller.state,
        route=session.result if session else None,
    )


@router.delete(
    "/",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear the live route",
)
def clear_route(
    controller: RouteSessionController = Depends(get_controller),
) -> Response:
    controller.clear_route()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
