# tests/test_render.py
from conftest import ORIGIN

from route_engine.models.routing import DisplayMode, RouteTier
from route_engine.services.render import LayerStore, marker_style, path_style


def test_listed_layers_are_a_snapshot():
    store = LayerStore()
    path = store.draw_path([ORIGIN], path_style(RouteTier.PRIMARY, DisplayMode.LIGHT))
    store.add_marker(ORIGIN, 0, marker_style(0, DisplayMode.LIGHT))

    paths = store.paths()
    markers = store.markers()
    store.remove(path)

    assert [layer.handle for layer in paths] == [path]
    assert len(markers) == 1
    assert store.paths() == []


def test_remove_unknown_handle_is_harmless():
    store = LayerStore()
    store.remove("path-99")
    assert store.layers == {}


def test_straight_line_paths_are_dashed():
    assert path_style(RouteTier.STRAIGHT_LINE, DisplayMode.DARK).dash_array == "10, 10"
    assert path_style(RouteTier.FALLBACK, DisplayMode.DARK).dash_array is None
