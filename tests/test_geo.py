# tests/test_geo.py
import math

from conftest import ORIGIN

from route_engine.models.routing import Coordinate
from route_engine.services.geo import distance, nearest_neighbor_order, path_length


def test_distance_same_point_is_zero():
    assert distance(ORIGIN, ORIGIN) == 0.0


def test_distance_one_degree_of_latitude():
    a = Coordinate(lat=0.0, lon=0.0)
    b = Coordinate(lat=1.0, lon=0.0)
    expected = 6_371_000.0 * math.pi / 180.0
    assert math.isclose(distance(a, b), expected, rel_tol=1e-9)


def test_distance_is_symmetric():
    a = Coordinate(lat=45.7489, lon=21.2087)
    b = Coordinate(lat=45.7537, lon=21.2257)
    assert math.isclose(distance(a, b), distance(b, a))


def test_path_length_sums_legs():
    a = Coordinate(lat=0.0, lon=0.0)
    b = Coordinate(lat=0.0, lon=0.01)
    c = Coordinate(lat=0.01, lon=0.01)
    assert math.isclose(path_length([a, b, c]), distance(a, b) + distance(b, c))
    assert path_length([a]) == 0.0
    assert path_length([]) == 0.0


def test_nearest_neighbor_order_breaks_ties_by_input_order():
    start = Coordinate(lat=0.0, lon=0.0)
    east = Coordinate(lat=0.0, lon=0.01)
    west = Coordinate(lat=0.0, lon=-0.01)

    ordered = nearest_neighbor_order(start, [west, east], key=lambda c: c)

    assert [i for i, _ in ordered] == [0, 1]
