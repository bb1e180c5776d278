# route_engine/core/errors.py
from typing import Optional


class RoutePlanningError(Exception):
    """
    Base class for all route planning errors.

    `code` is a stable machine-readable identifier used by the HTTP layer.
    """

    code: str = "route_planning_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class PreconditionError(RoutePlanningError):
    """Missing origin, nodes or provider credentials. Raised before any network call."""

    code = "precondition_failed"


class ProviderUnavailable(RoutePlanningError):
    """
    The optimization oracle or the directions provider could not be used.

    Never surfaced to callers: the optimizer and the geometry resolver catch
    it and move on to the next tier.
    """

    code = "provider_unavailable"

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class InfeasibleRouteError(RoutePlanningError):
    """No node count fits the time budget."""

    code = "route_infeasible"

    def __init__(self, available_minutes: int, minimum_minutes: int) -> None:
        super().__init__(
            f"Cannot create a route within {available_minutes} minutes; "
            f"the shortest route needs {minimum_minutes} minutes."
        )
        self.available_minutes = available_minutes
        self.minimum_minutes = minimum_minutes

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["available_minutes"] = self.available_minutes
        data["minimum_minutes"] = self.minimum_minutes
        return data


class RouteBusyError(RoutePlanningError):
    """Another create_route call is still planning."""

    code = "route_busy"
