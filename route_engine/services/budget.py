# route_engine/services/budget.py
import math
from typing import Optional

from route_engine.core.config import settings
from route_engine.models.routing import BudgetCheck, RouteGeometry


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate(
    geometry: RouteGeometry,
    node_count: int,
    available_minutes: Optional[int] = None,
    skip_check: bool = False,
) -> BudgetCheck:
    """
    Compare the projected route time (walking + dwell at every stop) with
    the caller's time budget.

    - no budget, or skip_check: always ok
    - over budget by more than the tolerance (strictly): exceeded
    - over budget but within the tolerance (inclusive): ok with soft warning
    """
    walk_minutes = _round_half_up(geometry.duration_s / 60.0)
    visit_minutes = node_count * settings.VISIT_MINUTES_PER_STOP
    total_minutes = walk_minutes + visit_minutes

    if available_minutes is None or skip_check:
        return BudgetCheck(
            ok=True,
            total_minutes=total_minutes,
            walk_minutes=walk_minutes,
            visit_minutes=visit_minutes,
        )

    # round first: 35 * 0.2 == 7.000000000000001 in binary floating point
    tolerance = math.ceil(round(available_minutes * settings.BUDGET_TOLERANCE_RATIO, 9))
    overflow = total_minutes - available_minutes

    exceeded = overflow > tolerance
    return BudgetCheck(
        ok=not exceeded,
        total_minutes=total_minutes,
        walk_minutes=walk_minutes,
        visit_minutes=visit_minutes,
        exceeded=exceeded,
        soft_warning=0 < overflow <= tolerance,
        tolerance_minutes=tolerance,
    )


def negotiate(available_minutes: int, node_count: int) -> Optional[int]:
    """
    Propose a smaller node count for a route that blew the budget.

    Assumes every stop costs NEGOTIATION_MINUTES_PER_STOP (dwell plus an
    average inter-stop walk). Returns None when not even one node fits.
    """
    max_possible = max(1, available_minutes // settings.NEGOTIATION_MINUTES_PER_STOP)
    reduced = min(max_possible, node_count - 1)
    if reduced < 1:
        return None
    return reduced
