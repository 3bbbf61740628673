# path: blueways-api/blueways/errors.py

from __future__ import annotations


class BluewaysError(Exception):
    pass


class RouteError(BluewaysError, ValueError):
    """Failure confined to a single route; the route is left untouched."""


class ParseError(RouteError):
    pass


class ResolutionError(RouteError):
    pass


class GeometryError(RouteError):
    pass


class DistanceGuardError(GeometryError):
    def __init__(self, distance_km: float, max_distance_km: float):
        self.distance_km = distance_km
        self.max_distance_km = max_distance_km
        super().__init__(
            f"Point is {distance_km * 1000:.0f}m from waterway (max: {max_distance_km * 1000:.0f}m)"
        )


class AcquisitionError(BluewaysError, RuntimeError):
    """Every waterway source endpoint failed."""
