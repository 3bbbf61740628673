# path: blueways-api/blueways/services/endpoint_reconciler.py

from __future__ import annotations

from typing import List, NamedTuple, Optional, Tuple
import logging

from pydantic import ValidationError

from blueways.config import ROUTE_SEPARATOR, Settings
from blueways.errors import ParseError, RouteError
from blueways.models.network_models import (
    AlignmentSummary,
    Coordinate,
    Route,
    RouteNetwork,
    set_line_endpoints,
)
from blueways.services.catalog import AccessPointCatalog
from blueways.utils.geo import distance_m

logger = logging.getLogger(__name__)


class AlignedRoute(NamedTuple):
    coordinates: List[Coordinate]
    reversed: bool
    start_snap_m: float
    end_snap_m: float


def parse_route_name(route_name: str, separator: str = ROUTE_SEPARATOR) -> Tuple[str, str]:
    """'A to B to C' -> ('A', 'B to C')"""
    parts = (route_name or "").split(separator)
    if len(parts) < 2:
        raise ParseError(f'Cannot parse route name {route_name!r} (expected "A{separator}B" format)')
    return parts[0].strip(), separator.join(parts[1:]).strip()


def align_route(route: Route, catalog: AccessPointCatalog, separator: str = ROUTE_SEPARATOR) -> AlignedRoute:
    from_name, to_name = parse_route_name(route.route_name, separator)
    from_point = catalog.resolve(from_name)
    to_point = catalog.resolve(to_name)
    logger.debug("Matched %r -> %r, %r -> %r", from_name, from_point.name, to_name, to_point.name)

    coords = list(route.coordinates)
    start, end = coords[0], coords[-1]
    start_to_from = distance_m(start, from_point.coordinate)
    start_to_to = distance_m(start, to_point.coordinate)
    end_to_from = distance_m(end, from_point.coordinate)
    end_to_to = distance_m(end, to_point.coordinate)

    # Only a fully swapped route is reversed.
    needs_reverse = start_to_to < start_to_from and end_to_from < end_to_to
    if needs_reverse:
        logger.info("Reversing %r: start is %.0fm from TO (should be FROM)", route.route_name, start_to_to)
        coords.reverse()

    start_snap_m = distance_m(coords[0], from_point.coordinate)
    end_snap_m = distance_m(coords[-1], to_point.coordinate)
    coords[0] = from_point.coordinate
    coords[-1] = to_point.coordinate

    return AlignedRoute(coords, needs_reverse, start_snap_m, end_snap_m)


def align_routes(
    network: RouteNetwork,
    catalog: Optional[AccessPointCatalog] = None,
    settings: Optional[Settings] = None,
) -> Tuple[RouteNetwork, AlignmentSummary]:
    """
    Reverse swapped routes and snap every route's endpoints onto the access
    points named in its ``route_name``.

    Returns a new network; ``network`` is not modified. Routes that can't be
    parsed or resolved are counted as errored and copied over unchanged.
    """
    settings = settings or Settings()
    out = network.model_copy(deep=True)
    if catalog is None:
        catalog = AccessPointCatalog.from_network(
            out, label=settings.access_point_type, qualifier=settings.private_qualifier
        )

    routes = out.route_features(settings.route_type)
    logger.info("Aligning %d routes", len(routes))

    fixed = reversed_count = errored = 0
    for feature in routes:
        name = feature.properties.get("route_name")
        try:
            route = Route.from_feature(feature)
            aligned = align_route(route, catalog, settings.route_separator)
        except (RouteError, ValidationError) as e:
            logger.warning("Skipping %r: %s", name, e)
            errored += 1
            continue

        set_line_endpoints(feature, aligned.coordinates[0], aligned.coordinates[-1], reverse=aligned.reversed)
        fixed += 1
        if aligned.reversed:
            reversed_count += 1
        logger.info(
            "Aligned %r: snapped start %.1fm, end %.1fm",
            name, aligned.start_snap_m, aligned.end_snap_m,
        )

    summary = AlignmentSummary(fixed=fixed, reversed=reversed_count, errored=errored)
    logger.info(
        "Alignment summary: fixed=%d reversed=%d errored=%d",
        summary.fixed, summary.reversed, summary.errored,
    )
    return out, summary
