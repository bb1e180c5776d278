# route_engine/services/candidate_selector.py
from typing import List, Sequence

from route_engine.models.routing import Coordinate, Node
from route_engine.services.geo import distance


def select_cluster(origin: Coordinate, pool: Sequence[Node], count: int) -> List[Node]:
    """
    Pick `count` nodes forming a compact walkable cluster.

    Starting at the origin, repeatedly take the unselected node closest to
    the *last selected* node (not to the origin), so the selection chains
    outwards instead of forming a star around the walker.

    If the pool already fits, it is returned unchanged.
    """
    if count <= 0 or not pool:
        return []

    if len(pool) <= count:
        return list(pool)

    remaining = list(pool)
    selected: List[Node] = []
    current = origin

    for _ in range(count):
        best_idx = min(
            range(len(remaining)),
            key=lambda i: distance(current, remaining[i].coordinate),
        )
        node = remaining.pop(best_idx)
        selected.append(node)
        current = node.coordinate

    return selected
