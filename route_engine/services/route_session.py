# route_engine/services/route_session.py

import threading
from dataclasses import dataclass, field
from time import perf_counter
from typing import Iterable, List, Optional, Sequence

from route_engine.core.config import settings
from route_engine.core.errors import (
    InfeasibleRouteError,
    PreconditionError,
    RouteBusyError,
)
from route_engine.core.logger import logger
from route_engine.models.routing import (
    BudgetCheck,
    Coordinate,
    Node,
    RouteGeometry,
    RouteNotice,
    RouteResult,
    RouteState,
    RouteStatus,
    RouteTier,
)
from route_engine.services import budget
from route_engine.services.candidate_selector import select_cluster
from route_engine.services.geometry_resolver import GeometryResolver
from route_engine.services.ors_client import OpenRouteServiceClient
from route_engine.services.render import (
    RenderTarget,
    RouteContext,
    marker_style,
    path_style,
)
from route_engine.services.sequence_optimizer import SequenceOptimizer


@dataclass
class ActiveRouteSession:
    """
    The one route currently drawn on the render target: the result that
    produced it and the handles of everything that was drawn for it.
    """
    result: RouteResult
    render_target: RenderTarget
    path_handle: Optional[str] = None
    marker_handles: List[str] = field(default_factory=list)

    def destroy(self) -> None:
        """
        Remove every drawn layer from the render target.

        Every handle is attempted even if one removal fails; the first
        failure is re-raised afterwards.
        """
        handles = ([self.path_handle] if self.path_handle else []) + self.marker_handles
        self.path_handle = None
        self.marker_handles = []

        first_error: Optional[Exception] = None
        for handle in handles:
            try:
                self.render_target.remove(handle)
            except Exception as exc:
                logger.error(f"Failed to remove route layer {handle}: {exc}")
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error


class RouteSessionController:
    """
    Orchestrates route planning and owns the single live route.

    create_route: clear -> preconditions -> cap -> order -> resolve ->
    budget check -> render. Only this class touches the render target.

    Calls are serialized: a create_route issued while another one is still
    planning is rejected with RouteBusyError, so at most one route is ever
    visible.
    """

    def __init__(
        self,
        client: Optional[OpenRouteServiceClient] = None,
        optimizer: Optional[SequenceOptimizer] = None,
        resolver: Optional[GeometryResolver] = None,
        context: Optional[RouteContext] = None,
        max_nodes: Optional[int] = None,
        require_credentials: Optional[bool] = None,
    ) -> None:
        self.client = client
        self.optimizer = optimizer or SequenceOptimizer(client=client)
        self.resolver = resolver or GeometryResolver(client=client)
        self.default_context = context
        self.max_nodes = settings.MAX_ROUTE_NODES if max_nodes is None else max_nodes
        self.require_credentials = (
            settings.REQUIRE_PROVIDER_CREDENTIALS
            if require_credentials is None
            else require_credentials
        )

        self._lock = threading.Lock()
        self._session: Optional[ActiveRouteSession] = None
        self._state = RouteState.IDLE

    # ------------------------------------------------------------------ #
    # Read accessors
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> RouteState:
        return self._state

    @property
    def active_session(self) -> Optional[ActiveRouteSession]:
        return self._session

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def create_route(
        self,
        origin: Optional[Coordinate],
        nodes: Sequence[Node],
        available_minutes: Optional[int] = None,
        skip_check: bool = False,
        context: Optional[RouteContext] = None,
    ) -> RouteResult:
        """
        Plan and render a walking route from `origin` through `nodes`.

        Returns a RouteResult with status `rendered`, or `budget_exceeded`
        (nothing rendered, proposed_reduced_count set) when the route does
        not fit `available_minutes`.

        Raises PreconditionError (before any network call),
        InfeasibleRouteError when no smaller route can fit the budget, and
        RouteBusyError when another call is still planning.
        """
        if not self._lock.acquire(blocking=False):
            raise RouteBusyError("Another route is still being planned; try again shortly.")

        try:
            self._clear_session()
            self._state = RouteState.PLANNING
            try:
                result = self._plan(origin, nodes, available_minutes, skip_check, context)
            except Exception:
                self._state = RouteState.FAILED
                raise
            return result
        finally:
            self._lock.release()

    def create_reduced_route(
        self,
        origin: Optional[Coordinate],
        nodes: Sequence[Node],
        reduced_count: int,
        available_minutes: Optional[int] = None,
        context: Optional[RouteContext] = None,
    ) -> RouteResult:
        """
        Caller-approved retry after a budget_exceeded result: keep a compact
        cluster of `reduced_count` nodes and plan again without the budget
        check, so negotiation cannot loop.
        """
        if origin is None:
            raise PreconditionError("Location required: origin is missing.")
        if reduced_count < 1:
            raise PreconditionError("reduced_count must be at least 1.")

        reduced = select_cluster(origin, nodes, reduced_count)
        logger.info(f"Retrying with {len(reduced)} of {len(nodes)} nodes (budget check skipped)")
        return self.create_route(
            origin,
            reduced,
            available_minutes=available_minutes,
            skip_check=True,
            context=context,
        )

    def plan_route(
        self,
        origin: Optional[Coordinate],
        catalog: Sequence[Node],
        count: int,
        categories: Optional[Iterable[str]] = None,
        discovered_ids: Iterable[str] = (),
        available_minutes: Optional[int] = None,
        context: Optional[RouteContext] = None,
    ) -> RouteResult:
        """
        "Plan your route": route through `count` undiscovered nodes of the
        selected categories, chosen as a compact cluster around the origin.
        """
        if origin is None:
            raise PreconditionError("Location required: origin is missing.")

        discovered = set(discovered_ids)
        pool = [n for n in catalog if n.id not in discovered]
        if not pool:
            raise PreconditionError("All locations have already been discovered.")

        if categories:
            wanted = set(categories)
            pool = [n for n in pool if n.category in wanted]
            if not pool:
                raise PreconditionError("No undiscovered locations match the selected categories.")

        selected = select_cluster(origin, pool, count)
        logger.info(
            f"Planning {len(selected)} of {len(pool)} candidate nodes "
            f"(categories={sorted(categories) if categories else 'all'})"
        )
        return self.create_route(
            origin,
            selected,
            available_minutes=available_minutes,
            context=context,
        )

    def clear_route(self) -> None:
        """
        Remove the live route, if any. Idempotent and legal in any state.
        Waits for an in-flight create_route to finish first.
        """
        with self._lock:
            try:
                self._clear_session()
            finally:
                self._state = RouteState.IDLE

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _plan(
        self,
        origin: Optional[Coordinate],
        nodes: Sequence[Node],
        available_minutes: Optional[int],
        skip_check: bool,
        context: Optional[RouteContext],
    ) -> RouteResult:
        t0 = perf_counter()
        context = context or self.default_context
        self._check_preconditions(origin, nodes, context)

        notices: List[RouteNotice] = []
        limited = list(nodes[: self.max_nodes])
        if len(nodes) > self.max_nodes:
            notices.append(
                RouteNotice(
                    code="nodes_truncated",
                    detail=f"Showing a route to the first {self.max_nodes} of {len(nodes)} locations.",
                )
            )
            logger.info(f"Capped {len(nodes)} nodes to {self.max_nodes}")

        logger.info(
            f"Planning route from ({origin.lat:.6f}, {origin.lon:.6f}) through "
            f"{len(limited)} nodes, budget={available_minutes}, skip_check={skip_check}"
        )

        ordered = self.optimizer.order_with_strategy(origin, limited)
        waypoints = [origin] + [n.coordinate for n in ordered.nodes]
        geometry = self.resolver.resolve(waypoints, locale=context.locale)

        # The resolver may have re-ordered the stops (fallback tiers)
        ordered_nodes = [ordered.nodes[i - 1] for i in geometry.waypoint_order[1:]]

        if geometry.tier == RouteTier.STRAIGHT_LINE:
            notices.append(
                RouteNotice(
                    code="approximate_path",
                    detail="Walking directions unavailable; showing straight-line approximation.",
                )
            )

        check = budget.validate(geometry, len(ordered_nodes), available_minutes, skip_check)

        if check.exceeded:
            return self._budget_exceeded(geometry, ordered_nodes, check, available_minutes, notices)

        if check.soft_warning:
            notices.append(
                RouteNotice(
                    code="slightly_over_budget",
                    detail="Route slightly exceeds your time budget but within tolerance.",
                )
            )

        result = RouteResult(
            success=True,
            status=RouteStatus.RENDERED,
            geometry=geometry,
            ordered_nodes=ordered_nodes,
            total_time_minutes=check.total_minutes,
            time_exceeded=False,
            soft_warning=check.soft_warning,
            available_time_minutes=available_minutes,
            optimizer=ordered.strategy,
            notices=notices,
        )
        self._session = self._render(result, context)
        self._state = RouteState.RENDERED

        logger.info(
            f"Route rendered: {len(ordered_nodes)} stops, {check.total_minutes} min total "
            f"(walk {check.walk_minutes} + visit {check.visit_minutes}), tier={geometry.tier.value}, "
            f"optimizer={ordered.strategy}, planned in {(perf_counter() - t0) * 1000.0:.2f} ms"
        )
        return result

    def _check_preconditions(
        self,
        origin: Optional[Coordinate],
        nodes: Sequence[Node],
        context: Optional[RouteContext],
    ) -> None:
        if origin is None:
            raise PreconditionError("Location required: origin is missing.")
        if not nodes:
            raise PreconditionError("At least one location is required to create a route.")
        if context is None:
            raise PreconditionError("No render target available for the route.")
        if self.require_credentials and not (self.client and self.client.has_credentials):
            raise PreconditionError("Routing provider API key is missing (set ORS_API_KEY).")

    def _budget_exceeded(
        self,
        geometry: RouteGeometry,
        ordered_nodes: List[Node],
        check: BudgetCheck,
        available_minutes: int,
        notices: List[RouteNotice],
    ) -> RouteResult:
        reduced = budget.negotiate(available_minutes, len(ordered_nodes))
        if reduced is None:
            logger.warning(
                f"Route infeasible: {check.total_minutes} min needed, {available_minutes} min available"
            )
            raise InfeasibleRouteError(available_minutes, check.total_minutes)

        self._state = RouteState.BUDGET_EXCEEDED
        logger.info(
            f"Route exceeds budget: {check.total_minutes} min > {available_minutes} min "
            f"(+{check.tolerance_minutes} tolerance); proposing {reduced} nodes"
        )
        return RouteResult(
            success=False,
            status=RouteStatus.BUDGET_EXCEEDED,
            geometry=geometry,
            ordered_nodes=ordered_nodes,
            total_time_minutes=check.total_minutes,
            time_exceeded=True,
            available_time_minutes=available_minutes,
            proposed_reduced_count=reduced,
            notices=notices,
        )

    def _render(self, result: RouteResult, context: RouteContext) -> ActiveRouteSession:
        geometry = result.geometry
        session = ActiveRouteSession(result=result, render_target=context.render_target)
        target = context.render_target
        try:
            session.path_handle = target.draw_path(
                geometry.polyline,
                path_style(geometry.tier, context.display_mode),
            )
            for marker in geometry.markers:
                session.marker_handles.append(
                    target.add_marker(
                        marker.coordinate,
                        marker.index,
                        marker_style(marker.index, context.display_mode),
                    )
                )
        except Exception:
            # leave nothing half-drawn behind
            session.destroy()
            raise
        return session

    def _clear_session(self) -> None:
        if self._session is None:
            return
        logger.info("Clearing active route")
        try:
            self._session.destroy()
        finally:
            self._session = None
