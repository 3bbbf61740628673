# path: blueways-api/blueways/services/route_tracer.py

from __future__ import annotations

from typing import List, Optional, Tuple
import logging

from pydantic import ValidationError

from blueways.config import MAX_SNAP_DISTANCE_KM, Settings
from blueways.errors import RouteError
from blueways.models.network_models import (
    Coordinate,
    Route,
    RouteNetwork,
    TracingSummary,
    set_line_coordinates,
)
from blueways.services.waterway_matcher import WaterwayIndex
from blueways.utils.geo import (
    METERS_PER_MILE,
    nearest_point_on_line,
    polyline_length_m,
    slice_between,
)

logger = logging.getLogger(__name__)


def trace_route(route: Route, index: WaterwayIndex, max_distance_km: float = MAX_SNAP_DISTANCE_KM) -> List[Coordinate]:
    """Path along the route's waterway between its two stored endpoints."""
    waterway = index.merged(route.river)
    start = nearest_point_on_line(route.coordinates[0], waterway, max_distance_km)
    end = nearest_point_on_line(route.coordinates[-1], waterway, max_distance_km)
    return slice_between(waterway, start, end)


def trace_routes(
    network: RouteNetwork,
    index: WaterwayIndex,
    settings: Optional[Settings] = None,
) -> Tuple[RouteNetwork, TracingSummary]:
    """
    Replace every two-point route with the matching stretch of its waterway.

    Returns a new network; ``network`` is not modified. Routes with more than
    two coordinates are already traced and are skipped.
    """
    settings = settings or Settings()
    out = network.model_copy(deep=True)
    routes = out.route_features(settings.route_type)
    logger.info("Processing %d routes", len(routes))

    updated = skipped = failed = 0
    for feature in routes:
        name = feature.properties.get("route_name")
        try:
            route = Route.from_feature(feature)
            if route.is_traced:
                logger.info("Skipping %r (already traced)", name)
                skipped += 1
                continue
            path = trace_route(route, index, settings.max_snap_distance_km)
        except (RouteError, ValidationError) as e:
            logger.warning("Could not trace %r: %s", name, e)
            failed += 1
            continue

        set_line_coordinates(feature, path)
        updated += 1
        traced_mi = polyline_length_m(path) / METERS_PER_MILE
        if route.distance_miles is not None:
            logger.info(
                "Updated %r with %d points (%.1f mi traced, %.1f mi listed)",
                name, len(path), traced_mi, route.distance_miles,
            )
        else:
            logger.info("Updated %r with %d points (%.1f mi traced)", name, len(path), traced_mi)

    summary = TracingSummary(updated=updated, skipped=skipped, failed=failed)
    logger.info(
        "Tracing summary: updated=%d skipped=%d failed=%d",
        summary.updated, summary.skipped, summary.failed,
    )
    return out, summary
