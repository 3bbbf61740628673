# path: blueways-api/blueways/utils/geo.py

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple, Dict, Union
import logging
import math

from shapely.errors import GEOSException
from shapely.geometry import LineString, MultiLineString, Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge, substring

from blueways.errors import DistanceGuardError, GeometryError

logger = logging.getLogger(__name__)

Coord = Tuple[float, float]  # (lon, lat)
LineLike = Union[BaseGeometry, Sequence[Sequence[float]]]

METERS_PER_DEGREE = 111_320.0
METERS_PER_MILE = 1609.344


def bbox_wgs84(points_lonlat: Iterable[Sequence[float]], buffer_deg: float = 0.0) -> Dict[str, float]:
    pts = list(points_lonlat)
    if not pts:
        raise ValueError("Cannot compute a bounding box of zero points")
    lons = [p[0] for p in pts]
    lats = [p[1] for p in pts]
    return {
        "min_lat": min(lats) - buffer_deg,
        "min_lon": min(lons) - buffer_deg,
        "max_lat": max(lats) + buffer_deg,
        "max_lon": max(lons) + buffer_deg,
    }


def distance_m(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Equirectangular approximation, in meters.

    Fine at county scale; not valid near the poles or over ~100 km.
    """
    a_lon, a_lat = a[0], a[1]
    b_lon, b_lat = b[0], b[1]
    dx = (a_lon - b_lon) * math.cos(math.radians((a_lat + b_lat) / 2)) * METERS_PER_DEGREE
    dy = (a_lat - b_lat) * METERS_PER_DEGREE
    return math.hypot(dx, dy)


def haversine_m(a_lon: float, a_lat: float, b_lon: float, b_lat: float) -> float:
    r = 6371000.0
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lon - a_lon)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * r * math.asin(math.sqrt(s))


def polyline_length_m(points_lonlat: Sequence[Sequence[float]]) -> float:
    total = 0.0
    for i in range(1, len(points_lonlat)):
        a_lon, a_lat = points_lonlat[i - 1][0], points_lonlat[i - 1][1]
        b_lon, b_lat = points_lonlat[i][0], points_lonlat[i][1]
        total += haversine_m(a_lon, a_lat, b_lon, b_lat)
    return total


def _as_line(line: LineLike) -> BaseGeometry:
    if isinstance(line, BaseGeometry):
        return line
    try:
        return LineString([(c[0], c[1]) for c in line])
    except (ValueError, GEOSException) as e:
        raise GeometryError(f"Invalid line geometry: {e}") from e


def nearest_point_on_line(point: Sequence[float], line: LineLike, max_distance_km: float = 1.0) -> Coord:
    """
    Closest point on ``line`` to ``point``.

    Raises DistanceGuardError when that point is more than ``max_distance_km``
    away, so endpoints never snap onto an unrelated waterway.
    """
    geom = _as_line(line)
    if geom.is_empty:
        raise GeometryError("Cannot project onto an empty line")

    # Projection happens in degree space; the guard is measured on the sphere.
    pt = Point(point[0], point[1])
    snapped = geom.interpolate(geom.project(pt))
    dist_km = haversine_m(point[0], point[1], snapped.x, snapped.y) / 1000.0
    logger.debug("Projected (%.6f, %.6f) onto line at %.1fm", point[0], point[1], dist_km * 1000)
    if dist_km > max_distance_km:
        raise DistanceGuardError(dist_km, max_distance_km)
    return (snapped.x, snapped.y)


def slice_between(line: LineLike, point_a: Sequence[float], point_b: Sequence[float]) -> List[Coord]:
    """
    Coordinates of ``line`` between the projections of ``point_a`` and
    ``point_b``, in the line's own direction.
    """
    geom = _as_line(line)
    if not isinstance(geom, LineString):
        raise GeometryError(f"Cannot slice a {geom.geom_type}")
    if geom.is_empty:
        raise GeometryError("Cannot slice an empty line")

    start = geom.project(Point(point_a[0], point_a[1]))
    end = geom.project(Point(point_b[0], point_b[1]))
    lo, hi = sorted((start, end))

    part = substring(geom, lo, hi)
    coords = [(c[0], c[1]) for c in part.coords]
    if len(coords) < 2:
        raise GeometryError("Sliced path has fewer than 2 coordinates")
    return coords


def merge_lines(lines: Sequence[Sequence[Sequence[float]]]) -> Optional[BaseGeometry]:
    """
    Merge line fragments into one line.

    Coordinates are concatenated in order and exact repeats dropped, keeping
    the first occurrence. If that line can't be built, fall back to a
    linemerge of the fragments (which may stay a MultiLineString).
    """
    if not lines:
        return None

    try:
        if len(lines) == 1:
            return LineString([(c[0], c[1]) for c in lines[0]])

        seen = set()
        unique: List[Coord] = []
        for coords in lines:
            for c in coords:
                key = (c[0], c[1])
                if key not in seen:
                    seen.add(key)
                    unique.append(key)
        return LineString(unique)
    except (ValueError, GEOSException) as e:
        logger.warning("Could not merge segments: %s", e)

    parts = [[(c[0], c[1]) for c in coords] for coords in lines if len(coords) >= 2]
    if not parts:
        return None
    return linemerge(MultiLineString(parts))
