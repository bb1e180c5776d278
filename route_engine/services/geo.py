# route_engine/services/geo.py
import math
from typing import Callable, List, Sequence, Tuple, TypeVar

from route_engine.models.routing import Coordinate

EARTH_RADIUS_M = 6_371_000.0

T = TypeVar("T")


def distance(a: Coordinate, b: Coordinate) -> float:
    """
    Compute great-circle distance between two points (lat/lon in degrees), in metres.
    """
    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_length(points: Sequence[Coordinate]) -> float:
    """
    Sum of haversine distances between consecutive points.
    """
    return sum(distance(a, b) for a, b in zip(points[:-1], points[1:]))


def nearest_neighbor_order(
    start: Coordinate,
    items: Sequence[T],
    key: Callable[[T], Coordinate],
) -> List[Tuple[int, T]]:
    """
    Greedy nearest-neighbour walk over `items` starting at `start`.

    Returns (original_index, item) pairs in visiting order. Ties go to the
    item that comes first in the input, so the result is deterministic.
    """
    remaining = list(enumerate(items))
    ordered: List[Tuple[int, T]] = []
    current = start

    while remaining:
        best_pos = 0
        best_dist = float("inf")
        for pos, (_, item) in enumerate(remaining):
            d = distance(current, key(item))
            # strict '<' keeps the first-encountered item on ties
            if d < best_dist:
                best_dist = d
                best_pos = pos

        picked = remaining.pop(best_pos)
        ordered.append(picked)
        current = key(picked[1])

    return ordered
