"""
Shared fixtures for the blueways test suite.

Networks are built as plain GeoJSON dicts (the on-disk shape) and validated
into RouteNetwork, so tests exercise the same path as real files.
"""

import pytest

from blueways.models.network_models import RouteNetwork, WaterwayFeature


def access_point(name, lon, lat, river="Drakes Creek", **extra):
    props = {"type": "Access Point", "name": name, "river": river}
    props.update(extra)
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": props,
    }


def route(route_name, coords, river="Drakes Creek", **extra):
    props = {"type": "Route", "route_name": route_name, "river": river, "distance_miles": 4.2}
    props.update(extra)
    return {
        "type": "Feature",
        "geometry": {"type": "LineString", "coordinates": [list(c) for c in coords]},
        "properties": props,
    }


def network_doc(*features, **extra):
    doc = {"type": "FeatureCollection", "features": list(features)}
    doc.update(extra)
    return doc


def route_coords(network, route_name):
    for f in network.route_features():
        if f.properties["route_name"] == route_name:
            return [tuple(c) for c in f.geometry.coordinates]
    raise KeyError(route_name)


@pytest.fixture
def abc_doc():
    """A=(0,0), B=(1,1), C=(2,2); 'A to B' stored backwards."""
    return network_doc(
        access_point("A", 0.0, 0.0),
        access_point("B", 1.0, 1.0),
        access_point("C", 2.0, 2.0),
        route("A to B", [(1.0, 1.0), (0.0, 0.0)]),
        route("B to C", [(1.0, 1.0), (2.0, 2.0)]),
    )


@pytest.fixture
def abc_network(abc_doc):
    return RouteNetwork.model_validate(abc_doc)


# Jones Creek runs west -> east along lat 36.90, split into two fragments
# that share the vertex at -86.48.
JONES_WEST = [(-86.50, 36.90), (-86.49, 36.90), (-86.48, 36.90)]
JONES_EAST = [(-86.48, 36.90), (-86.47, 36.90), (-86.46, 36.90)]


@pytest.fixture
def jones_features():
    return [
        WaterwayFeature(osm_id=1, name="Jones Creek", waterway="stream", coordinates=JONES_WEST),
        WaterwayFeature(osm_id=2, name="Jones Creek", waterway="stream", coordinates=JONES_EAST),
        WaterwayFeature(osm_id=3, name="Barren River", waterway="river", coordinates=[(-86.40, 36.95), (-86.38, 36.96)]),
        WaterwayFeature(osm_id=4, name=None, waterway="stream", coordinates=[(-86.45, 36.91), (-86.44, 36.92)]),
    ]


@pytest.fixture
def jones_doc():
    return network_doc(
        access_point("Mill Ramp", -86.495, 36.901, river="Jones Creek"),
        access_point("Iron Bridge", -86.465, 36.901, river="Jones Creek"),
        route("Mill Ramp to Iron Bridge", [(-86.495, 36.901), (-86.465, 36.901)], river="Jones Creek"),
    )


class FakeSource:
    """Stands in for OverpassSource.fetch."""

    def __init__(self, features=None, error=None):
        self.features = features or []
        self.error = error
        self.calls = []

    def fetch(self, bbox):
        self.calls.append(bbox)
        if self.error is not None:
            raise self.error
        return list(self.features)


def assert_coords_close(actual, expected, abs_tol=1e-9):
    assert len(actual) == len(expected), f"{actual} != {expected}"
    for (a_lon, a_lat), (e_lon, e_lat) in zip(actual, expected):
        assert a_lon == pytest.approx(e_lon, abs=abs_tol)
        assert a_lat == pytest.approx(e_lat, abs=abs_tol)
