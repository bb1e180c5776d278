# route_engine/services/sequence_optimizer.py

from dataclasses import dataclass
from time import perf_counter
from typing import List, Optional, Sequence

from route_engine.core.config import settings
from route_engine.core.errors import ProviderUnavailable
from route_engine.core.logger import logger
from route_engine.models.routing import Coordinate, Node
from route_engine.services.geo import nearest_neighbor_order
from route_engine.services.ors_client import OpenRouteServiceClient

STRATEGY_OPTIMIZER = "optimizer"
STRATEGY_GREEDY = "greedy"


@dataclass(frozen=True)
class OrderedNodes:
    nodes: List[Node]
    strategy: str


def greedy_order(origin: Coordinate, nodes: Sequence[Node]) -> List[Node]:
    """
    Nearest-neighbour visiting order starting at the origin.
    """
    return [node for _, node in nearest_neighbor_order(origin, nodes, key=lambda n: n.coordinate)]


class SequenceOptimizer:
    """
    Orders a node set into a visiting sequence.

    - 4 or more nodes: ask the optimization oracle, fall back to the greedy
      nearest-neighbour pass if it is unavailable or returns garbage
    - fewer nodes: greedy pass only, the oracle is never called

    The greedy pass is local and cannot fail, so neither can `order`.
    """

    def __init__(
        self,
        client: Optional[OpenRouteServiceClient] = None,
        min_oracle_nodes: Optional[int] = None,
        service_minutes: Optional[int] = None,
    ) -> None:
        self.client = client
        self.min_oracle_nodes = (
            settings.OPTIMIZER_MIN_NODES if min_oracle_nodes is None else min_oracle_nodes
        )
        self.service_minutes = (
            settings.VISIT_MINUTES_PER_STOP if service_minutes is None else service_minutes
        )

    def order(self, origin: Coordinate, nodes: Sequence[Node]) -> List[Node]:
        return self.order_with_strategy(origin, nodes).nodes

    def order_with_strategy(self, origin: Coordinate, nodes: Sequence[Node]) -> OrderedNodes:
        """
        Same as `order`, but also reports which strategy produced the order.
        """
        if (
            len(nodes) >= self.min_oracle_nodes
            and self.client is not None
            and self.client.has_credentials
        ):
            ordered = self._order_with_oracle(origin, nodes)
            if ordered is not None:
                return OrderedNodes(nodes=ordered, strategy=STRATEGY_OPTIMIZER)

        t0 = perf_counter()
        ordered = greedy_order(origin, nodes)
        logger.info(
            f"Greedy order for {len(nodes)} nodes in {(perf_counter() - t0) * 1000.0:.2f} ms: "
            f"{[n.title for n in ordered]}"
        )
        return OrderedNodes(nodes=ordered, strategy=STRATEGY_GREEDY)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _order_with_oracle(self, origin: Coordinate, nodes: Sequence[Node]) -> Optional[List[Node]]:
        try:
            indexes = self.client.optimize_order(
                origin,
                [n.coordinate for n in nodes],
                service_s=self.service_minutes * 60,
            )
        except ProviderUnavailable as exc:
            logger.warning(f"Optimization oracle unavailable, using nearest neighbour: {exc}")
            return None

        ordered = [nodes[i] for i in indexes]
        logger.info(f"Optimized order: {[n.title for n in ordered]}")
        return ordered
