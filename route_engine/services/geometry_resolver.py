# route_engine/services/geometry_resolver.py

from time import perf_counter
from typing import List, Optional, Sequence

from route_engine.core.config import settings
from route_engine.core.errors import ProviderUnavailable
from route_engine.core.logger import logger
from route_engine.models.routing import (
    Coordinate,
    RouteGeometry,
    RouteMarker,
    RouteTier,
)
from route_engine.services.geo import nearest_neighbor_order, path_length
from route_engine.services.ors_client import OpenRouteServiceClient


class GeometryResolver:
    """
    Turns an ordered waypoint chain (origin first) into a walkable path.

    Tiers, each tried only when the previous one failed:
    1. primary:        directions provider with the chain as given
    2. fallback:       chain re-ordered nearest-neighbour from the origin,
                       same provider; skipped when the order is unchanged
    3. straight_line:  straight segments through the re-ordered chain,
                       duration estimated from the walking speed

    The straight-line tier cannot fail, so `resolve` always returns a
    geometry with a non-empty polyline.
    """

    def __init__(
        self,
        client: Optional[OpenRouteServiceClient] = None,
        walking_speed_mps: Optional[float] = None,
    ) -> None:
        self.client = client
        self.walking_speed_mps = (
            settings.WALKING_SPEED_MPS if walking_speed_mps is None else walking_speed_mps
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve(self, waypoints: Sequence[Coordinate], locale: str = "en") -> RouteGeometry:
        if not waypoints:
            raise ValueError("waypoint chain must contain at least the origin")

        t0 = perf_counter()
        chain_order = list(range(len(waypoints)))
        greedy = self._greedy_order(waypoints)

        if len(waypoints) > 1 and self._network_available():
            geometry = self._try_directions(waypoints, chain_order, RouteTier.PRIMARY, locale)
            # an unchanged order would repeat the failed primary request
            if geometry is None and greedy != chain_order:
                geometry = self._try_directions(waypoints, greedy, RouteTier.FALLBACK, locale)
            if geometry is not None:
                self._log_resolved(geometry, t0)
                return geometry

        geometry = self._straight_line(waypoints, greedy)
        self._log_resolved(geometry, t0)
        return geometry

    # ------------------------------------------------------------------ #
    # Tiers
    # ------------------------------------------------------------------ #

    def _try_directions(
        self,
        waypoints: Sequence[Coordinate],
        order: List[int],
        tier: RouteTier,
        locale: str,
    ) -> Optional[RouteGeometry]:
        chain = [waypoints[i] for i in order]
        try:
            directions = self.client.walking_directions(_collapse_repeats(chain), locale=locale)
        except ProviderUnavailable as exc:
            logger.warning(f"Directions tier '{tier.value}' failed: {exc}")
            return None

        distance_m = directions.distance_m
        if distance_m is None:
            distance_m = path_length(directions.polyline)
        duration_s = directions.duration_s
        if duration_s is None:
            duration_s = self._estimate_duration(distance_m)

        return RouteGeometry(
            polyline=directions.polyline,
            distance_m=distance_m,
            duration_s=duration_s,
            tier=tier,
            waypoint_order=order,
            markers=_markers(waypoints, order),
        )

    def _straight_line(self, waypoints: Sequence[Coordinate], order: List[int]) -> RouteGeometry:
        chain = [waypoints[i] for i in order]
        distance_m = path_length(chain)
        return RouteGeometry(
            polyline=chain,
            distance_m=distance_m,
            duration_s=self._estimate_duration(distance_m),
            tier=RouteTier.STRAIGHT_LINE,
            waypoint_order=order,
            markers=_markers(waypoints, order),
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _network_available(self) -> bool:
        return self.client is not None and self.client.has_credentials

    def _greedy_order(self, waypoints: Sequence[Coordinate]) -> List[int]:
        """
        Origin stays first; the rest is re-ordered nearest-neighbour.
        """
        rest = nearest_neighbor_order(waypoints[0], waypoints[1:], key=lambda c: c)
        return [0] + [i + 1 for i, _ in rest]

    def _estimate_duration(self, distance_m: float) -> float:
        if distance_m <= 0 or self.walking_speed_mps <= 0:
            return 0.0
        return distance_m / self.walking_speed_mps

    @staticmethod
    def _log_resolved(geometry: RouteGeometry, t0: float) -> None:
        logger.info(
            f"Geometry resolved on tier '{geometry.tier.value}': "
            f"{len(geometry.polyline)} points, distance={geometry.distance_m:.1f} m, "
            f"duration={geometry.duration_s:.1f} s in {(perf_counter() - t0) * 1000.0:.2f} ms"
        )


def _markers(waypoints: Sequence[Coordinate], order: List[int]) -> List[RouteMarker]:
    return [
        RouteMarker(index=position, coordinate=waypoints[i])
        for position, i in enumerate(order)
    ]


def _collapse_repeats(chain: Sequence[Coordinate]) -> List[Coordinate]:
    """Drop consecutive duplicate points."""
    collapsed: List[Coordinate] = []
    for point in chain:
        if not collapsed or collapsed[-1] != point:
            collapsed.append(point)
    return collapsed
