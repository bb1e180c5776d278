# tests/conftest.py
import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

# Add the project root directory to sys.path so that "import route_engine" works
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from route_engine.models.routing import Coordinate, Node  # noqa: E402
from route_engine.services.ors_client import (  # noqa: E402
    DIRECTIONS_PATH,
    OPTIMIZATION_PATH,
    OpenRouteServiceClient,
)
from route_engine.services.render import LayerStore, RouteContext  # noqa: E402
from route_engine.services.route_session import RouteSessionController  # noqa: E402

# Piața Victoriei, Timișoara
ORIGIN = Coordinate(lat=45.7489, lon=21.2087)


def make_node(node_id: str, lat: float, lon: float, category: Optional[str] = None) -> Node:
    return Node(
        id=node_id,
        title=f"Site {node_id}",
        coordinate=Coordinate(lat=lat, lon=lon),
        category=category,
    )


def nodes_east_of_origin(offsets: List[float]) -> List[Node]:
    """
    Nodes on the origin's parallel, `offsets` degrees of longitude east,
    named n1..nN in input order.
    """
    return [
        make_node(f"n{i + 1}", ORIGIN.lat, ORIGIN.lon + off)
        for i, off in enumerate(offsets)
    ]


class FakeOpenRouteService:
    """
    Programmable stand-in for the OpenRouteService endpoints.

    - optimization: answers with the jobs in reverse order unless
      `optimization_reply` is set to a (status, payload) pair
    - directions: pops replies from `directions_replies`; when the queue is
      empty it echoes the requested coordinates with a summary of
      `directions_distance` / `directions_duration`
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.optimization_reply: Optional[Tuple[int, Any]] = None
        self.directions_replies: List[Tuple[int, Any]] = []
        self.directions_distance = 1234.5
        self.directions_duration = 900.0
        self.fail_transport = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append((request.url.path, body))

        if self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.path == OPTIMIZATION_PATH:
            if self.optimization_reply is not None:
                status, payload = self.optimization_reply
                return httpx.Response(status, json=payload)
            return httpx.Response(200, json=self._reverse_jobs(body))

        if request.url.path == DIRECTIONS_PATH:
            if self.directions_replies:
                status, payload = self.directions_replies.pop(0)
                return httpx.Response(status, json=payload)
            return httpx.Response(200, json=self._echo_directions(body))

        return httpx.Response(404, json={"error": "not found"})

    def calls_to(self, path: str) -> List[Dict[str, Any]]:
        return [body for p, body in self.calls if p == path]

    @staticmethod
    def _reverse_jobs(body: Dict[str, Any]) -> Dict[str, Any]:
        jobs = body["jobs"]
        steps = [{"type": "start", "location": body["vehicles"][0]["start"]}]
        for job in reversed(jobs):
            steps.append({"type": "job", "job": job["id"], "location": job["location"]})
        steps.append({"type": "end", "location": body["vehicles"][0]["end"]})
        return {"code": 0, "routes": [{"vehicle": 1, "steps": steps}]}

    def _echo_directions(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "LineString", "coordinates": body["coordinates"]},
                    "properties": {
                        "summary": {
                            "distance": self.directions_distance,
                            "duration": self.directions_duration,
                        }
                    },
                }
            ],
        }


@pytest.fixture
def provider() -> FakeOpenRouteService:
    return FakeOpenRouteService()


@pytest.fixture
def ors_client(provider):
    client = OpenRouteServiceClient(
        api_key="test-key",
        base_url="https://ors.test",
        transport=httpx.MockTransport(provider.handler),
    )
    yield client
    client.close()


@pytest.fixture
def keyless_client(provider):
    client = OpenRouteServiceClient(
        api_key="",
        base_url="https://ors.test",
        transport=httpx.MockTransport(provider.handler),
    )
    yield client
    client.close()


@pytest.fixture
def layer_store() -> LayerStore:
    return LayerStore()


@pytest.fixture
def controller(ors_client, layer_store) -> RouteSessionController:
    return RouteSessionController(
        client=ors_client,
        context=RouteContext(render_target=layer_store),
        require_credentials=True,
    )
