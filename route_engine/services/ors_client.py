# route_engine/services/ors_client.py
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence

import httpx

from route_engine.core.config import settings
from route_engine.core.errors import ProviderUnavailable
from route_engine.core.logger import logger
from route_engine.models.routing import Coordinate

WALKING_PROFILE = "foot-walking"
OPTIMIZATION_PATH = "/optimization"
DIRECTIONS_PATH = f"/v2/directions/{WALKING_PROFILE}/geojson"

OPTIMIZER = "optimization"
DIRECTIONS = "directions"


@dataclass(frozen=True)
class Directions:
    """
    Walking directions as returned by the provider.

    distance_m / duration_s are None when the response carried no summary.
    """
    polyline: List[Coordinate]
    distance_m: Optional[float]
    duration_s: Optional[float]


def _format_ors_error(resp: httpx.Response) -> str:
    """Best-effort decode of OpenRouteService JSON error payloads."""
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            code = err.get("code")
            message = err.get("message")
            if code is not None and message:
                return f"HTTP {resp.status_code} ({code}): {message}"
            if message:
                return f"HTTP {resp.status_code}: {message}"
        elif isinstance(err, str) and err:
            return f"HTTP {resp.status_code}: {err}"

    body = (resp.text or "").strip().replace("\n", " ")
    if len(body) > 240:
        body = body[:240] + "..."
    if body:
        return f"HTTP {resp.status_code}: {body}"
    return f"HTTP {resp.status_code}"


class OpenRouteServiceClient:
    """
    Thin synchronous wrapper around the two OpenRouteService endpoints the
    planner needs:

    - the optimization endpoint (VROOM) used as sequencing oracle
    - walking directions as GeoJSON

    Every failure (transport error, non-2xx, malformed or empty payload)
    is raised as ProviderUnavailable. There is no retry: callers treat a
    failed call as a failed tier.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = settings.ORS_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.ORS_BASE_URL).rstrip("/")
        timeout = settings.PROVIDER_TIMEOUT_S if timeout_s is None else timeout_s

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=5.0),
            transport=transport,
            headers={
                "accept": "application/json, application/geo+json",
                "content-type": "application/json",
            },
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def optimize_order(
        self,
        origin: Coordinate,
        stops: Sequence[Coordinate],
        service_s: int = 600,
    ) -> List[int]:
        """
        Ask the optimization oracle for a visiting order.

        One pedestrian vehicle starts and ends at the origin; every stop is a
        job with a fixed service duration. Returns 0-based indexes into
        `stops` in visiting order. A response that does not visit every stop
        exactly once is treated as malformed.
        """
        jobs = [
            {
                "id": i + 1,
                "service": service_s,
                "location": stop.to_lon_lat(),
            }
            for i, stop in enumerate(stops)
        ]
        vehicle = {
            "id": 1,
            "profile": WALKING_PROFILE,
            "start": origin.to_lon_lat(),
            "end": origin.to_lon_lat(),
        }
        body = {"jobs": jobs, "vehicles": [vehicle]}

        data = self._post(OPTIMIZER, OPTIMIZATION_PATH, body)

        routes = data.get("routes")
        if not isinstance(routes, list) or not routes:
            raise ProviderUnavailable(OPTIMIZER, "no optimized route in response")

        steps = routes[0].get("steps") if isinstance(routes[0], dict) else None
        if not isinstance(steps, list):
            raise ProviderUnavailable(OPTIMIZER, "route has no steps")

        order: List[int] = []
        for step in steps:
            if not isinstance(step, dict) or step.get("type") != "job":
                continue
            job_id = step.get("job", step.get("id"))
            if not isinstance(job_id, int) or not 1 <= job_id <= len(stops):
                raise ProviderUnavailable(OPTIMIZER, f"unknown job id {job_id!r}")
            order.append(job_id - 1)

        if sorted(order) != list(range(len(stops))):
            raise ProviderUnavailable(
                OPTIMIZER,
                f"route visits {len(set(order))} of {len(stops)} jobs",
            )

        return order

    def walking_directions(
        self,
        waypoints: Sequence[Coordinate],
        locale: str = "en",
    ) -> Directions:
        """
        Walking directions through `waypoints` in the given order, shortest
        path preference, no turn-by-turn instructions.
        """
        if len(waypoints) < 2:
            raise ProviderUnavailable(DIRECTIONS, "at least two waypoints are required")

        body = {
            "coordinates": [wp.to_lon_lat() for wp in waypoints],
            "preference": "shortest",
            "instructions": False,
            "language": locale,
        }

        data = self._post(DIRECTIONS, DIRECTIONS_PATH, body)

        features = data.get("features")
        if not isinstance(features, list) or not features:
            raise ProviderUnavailable(DIRECTIONS, "no route features in response")

        feature = features[0]
        geometry = feature.get("geometry") if isinstance(feature, dict) else None
        raw_coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if not raw_coords:
            raise ProviderUnavailable(DIRECTIONS, "route feature has no geometry")

        try:
            # GeoJSON positions are [lon, lat(, elevation)]
            polyline = [Coordinate(lat=float(c[1]), lon=float(c[0])) for c in raw_coords]
        except (TypeError, ValueError, IndexError) as exc:
            raise ProviderUnavailable(DIRECTIONS, f"invalid geometry: {exc}") from exc

        properties = feature.get("properties")
        summary = properties.get("summary") if isinstance(properties, dict) else None
        if not isinstance(summary, dict):
            summary = {}
        return Directions(
            polyline=polyline,
            distance_m=_as_float(summary.get("distance")),
            duration_s=_as_float(summary.get("duration")),
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _post(self, provider: str, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise ProviderUnavailable(provider, "no API key configured")

        t0 = perf_counter()
        try:
            resp = self._client.post(path, json=body, headers={"Authorization": self.api_key})
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(provider, f"request failed: {exc}") from exc

        logger.info(
            f"{provider} request answered {resp.status_code} in "
            f"{(perf_counter() - t0) * 1000.0:.2f} ms"
        )

        if resp.is_error:
            raise ProviderUnavailable(provider, _format_ors_error(resp), resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderUnavailable(provider, "response is not valid JSON") from exc

        if not isinstance(data, dict):
            raise ProviderUnavailable(provider, "unexpected response payload")
        return data


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
