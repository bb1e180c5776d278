# route_engine/models/routing.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """
    Simple latitude/longitude coordinate (WGS84 degrees).

    Frozen so it can be compared, hashed and shared between the optimizer,
    the resolver and the rendered session without defensive copies.
    """
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)

    def to_lon_lat(self) -> List[float]:
        """[lon, lat] pair, the order OpenRouteService and GeoJSON expect."""
        return [self.lon, self.lat]


class Node(BaseModel):
    """
    A visitable point of interest, as handed over by the node catalog.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    coordinate: Coordinate
    category: Optional[str] = None


class RouteTier(str, Enum):
    """Routing fidelity tier that produced a RouteGeometry."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    STRAIGHT_LINE = "straight_line"


class RouteMarker(BaseModel):
    """
    Marker label for one waypoint: 0 is the origin, 1..n the stops in
    visiting order.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    coordinate: Coordinate


class RouteGeometry(BaseModel):
    """
    Walkable path for an ordered waypoint chain.

    waypoint_order holds indexes into the chain passed to the resolver, in
    the order this tier actually walks them (always starting with 0, the
    origin). For the straight-line tier duration_s is an estimate derived
    from distance_m and the assumed walking speed.
    """
    model_config = ConfigDict(frozen=True)

    polyline: List[Coordinate]
    distance_m: float
    duration_s: float
    tier: RouteTier
    waypoint_order: List[int]
    markers: List[RouteMarker]


class BudgetCheck(BaseModel):
    """Outcome of comparing a route's projected time with the time budget."""
    model_config = ConfigDict(frozen=True)

    ok: bool
    total_minutes: int
    walk_minutes: int
    visit_minutes: int
    exceeded: bool = False
    soft_warning: bool = False
    tolerance_minutes: Optional[int] = None


class RouteStatus(str, Enum):
    RENDERED = "rendered"
    BUDGET_EXCEEDED = "budget_exceeded"


class RouteNotice(BaseModel):
    """Informational notice for the caller (not an error)."""
    model_config = ConfigDict(frozen=True)

    code: str
    detail: str


class RouteResult(BaseModel):
    """
    Outward-facing result of one planning attempt. Never mutated; the next
    attempt produces a new one.
    """
    model_config = ConfigDict(frozen=True)

    success: bool
    status: RouteStatus
    geometry: Optional[RouteGeometry] = None
    ordered_nodes: List[Node] = Field(default_factory=list)
    total_time_minutes: int = 0
    time_exceeded: bool = False
    soft_warning: bool = False
    available_time_minutes: Optional[int] = None
    proposed_reduced_count: Optional[int] = None
    optimizer: Optional[str] = None
    notices: List[RouteNotice] = Field(default_factory=list)


# ---------------------------------------------------------------------- #
# HTTP payloads
# ---------------------------------------------------------------------- #


class DisplayMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class RouteRequest(BaseModel):
    """
    Request body for POST /route/.
    """
    origin: Coordinate
    nodes: List[Node]
    available_minutes: Optional[int] = Field(default=None, gt=0)
    skip_check: bool = False
    locale: str = "en"
    display_mode: DisplayMode = DisplayMode.LIGHT


class ReducedRouteRequest(RouteRequest):
    """
    Request body for POST /route/reduced: the caller accepted the shorter
    route proposed in a budget_exceeded result.
    """
    reduced_count: int = Field(gt=0)


class PlanRequest(BaseModel):
    """
    Request body for POST /route/plan: pick `count` undiscovered nodes of
    the selected categories from the catalog and route through them.
    """
    origin: Coordinate
    catalog: List[Node]
    count: int = Field(gt=0)
    categories: Optional[List[str]] = None
    discovered_ids: List[str] = Field(default_factory=list)
    available_minutes: Optional[int] = Field(default=None, gt=0)
    locale: str = "en"
    display_mode: DisplayMode = DisplayMode.LIGHT


class RouteState(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    RENDERED = "rendered"
    FAILED = "failed"
    BUDGET_EXCEEDED = "budget_exceeded"


class ActiveRouteResponse(BaseModel):
    """
    Response for GET /route/.
    """
    state: RouteState
    route: Optional[RouteResult] = None
