# route_engine/services/render.py
import itertools
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from route_engine.core.logger import logger
from route_engine.models.routing import Coordinate, DisplayMode, RouteTier


@dataclass(frozen=True)
class PathStyle:
    color: str
    weight: int = 6
    opacity: float = 0.8
    dash_array: Optional[str] = None


@dataclass(frozen=True)
class MarkerStyle:
    color: str
    size: int
    is_origin: bool = False


class RenderTarget(Protocol):
    """
    Display layer the controller draws the active route on (a map widget in
    the app, an in-memory store in the API and the tests).

    Handles returned by draw_path/add_marker are opaque to the controller
    and only passed back to remove().
    """

    def draw_path(self, points: Sequence[Coordinate], style: PathStyle) -> str: ...

    def add_marker(self, point: Coordinate, label: int, style: MarkerStyle) -> str: ...

    def remove(self, handle: str) -> None: ...


@dataclass(frozen=True)
class RouteContext:
    """
    Everything the controller needs from the calling UI, passed explicitly
    per call.
    """
    render_target: RenderTarget
    locale: str = "en"
    display_mode: DisplayMode = DisplayMode.LIGHT


# Heritage palette; dark mode swaps to lighter tones for contrast
_PATH_COLORS = {
    DisplayMode.LIGHT: "#6f4e35",
    DisplayMode.DARK: "#c9a27e",
}
_ORIGIN_COLOR = "#3b82f6"
_STOP_COLORS = {
    DisplayMode.LIGHT: "#8b6441",
    DisplayMode.DARK: "#d4b48c",
}


def path_style(tier: RouteTier, display_mode: DisplayMode) -> PathStyle:
    """Straight-line routes are drawn dashed so they read as approximate."""
    dash = "10, 10" if tier == RouteTier.STRAIGHT_LINE else None
    return PathStyle(color=_PATH_COLORS[display_mode], dash_array=dash)


def marker_style(label: int, display_mode: DisplayMode) -> MarkerStyle:
    if label == 0:
        return MarkerStyle(color=_ORIGIN_COLOR, size=20, is_origin=True)
    return MarkerStyle(color=_STOP_COLORS[display_mode], size=16)


@dataclass
class Layer:
    handle: str
    kind: str
    points: List[Coordinate]
    label: Optional[int] = None
    style: object = None


@dataclass
class LayerStore:
    """
    In-memory RenderTarget: keeps drawn layers in a dict so they can be
    inspected (GET /route/, tests) and removed by handle.
    """
    layers: Dict[str, Layer] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=itertools.count, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def draw_path(self, points: Sequence[Coordinate], style: PathStyle) -> str:
        return self._add("path", list(points), None, style)

    def add_marker(self, point: Coordinate, label: int, style: MarkerStyle) -> str:
        return self._add("marker", [point], label, style)

    def remove(self, handle: str) -> None:
        with self._lock:
            if self.layers.pop(handle, None) is None:
                logger.warning(f"Tried to remove unknown layer {handle}")

    def paths(self) -> List[Layer]:
        return [layer for layer in self._snapshot() if layer.kind == "path"]

    def markers(self) -> List[Layer]:
        return [layer for layer in self._snapshot() if layer.kind == "marker"]

    def _snapshot(self) -> List[Layer]:
        with self._lock:
            return list(self.layers.values())

    def _add(self, kind: str, points: List[Coordinate], label: Optional[int], style: object) -> str:
        with self._lock:
            handle = f"{kind}-{next(self._ids)}"
            self.layers[handle] = Layer(handle=handle, kind=kind, points=points, label=label, style=style)
        return handle
