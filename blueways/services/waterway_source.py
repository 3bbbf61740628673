# path: blueways-api/blueways/services/waterway_source.py

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging
import time

import requests

from blueways.config import (
    BBOX_BUFFER_DEG,
    OVERPASS_ENDPOINTS,
    REQUEST_TIMEOUT_S,
    RETRY_BACKOFF_S,
    WATERWAY_TYPES,
    Settings,
)
from blueways.errors import AcquisitionError
from blueways.models.network_models import AccessPoint, WaterwayFeature
from blueways.utils.geo import bbox_wgs84

logger = logging.getLogger(__name__)


def waterway_bbox(access_points: Iterable[AccessPoint], buffer_deg: float = BBOX_BUFFER_DEG) -> Dict[str, float]:
    coords = [p.coordinate for p in access_points]
    if not coords:
        raise AcquisitionError("No access points to derive a waterway search area from")
    return bbox_wgs84(coords, buffer_deg)


def build_waterway_query(bbox: Dict[str, float], waterway_types: Sequence[str] = WATERWAY_TYPES) -> str:
    # Overpass bboxes are (south, west, north, east)
    area = f'{bbox["min_lat"]},{bbox["min_lon"]},{bbox["max_lat"]},{bbox["max_lon"]}'
    types = "|".join(waterway_types)
    return "\n".join([
        "[out:json][timeout:90];",
        "(",
        f'  way["waterway"~"{types}"]({area});',
        ");",
        "out body;",
        ">;",
        "out skel qt;",
    ])


def overpass_to_features(payload: Dict[str, Any]) -> List[WaterwayFeature]:
    """Turn an Overpass ``out body; >; out skel`` response into line features."""
    elements = payload.get("elements", [])
    nodes = {
        e["id"]: (e["lon"], e["lat"])
        for e in elements
        if e.get("type") == "node" and "lon" in e and "lat" in e
    }

    features: List[WaterwayFeature] = []
    for e in elements:
        if e.get("type") != "way":
            continue
        refs = e.get("nodes", [])
        coords = [nodes[r] for r in refs if r in nodes]
        if len(coords) != len(refs) or len(coords) < 2:
            logger.debug("Dropping way %s: %d/%d nodes resolved", e.get("id"), len(coords), len(refs))
            continue
        tags = e.get("tags", {})
        features.append(
            WaterwayFeature(
                osm_id=e.get("id"),
                name=tags.get("name"),
                waterway=tags.get("waterway"),
                coordinates=coords,
            )
        )
    return features


class OverpassSource:
    """
    Queries Overpass mirrors in order until one answers.

    Any HTTP or network failure moves on to the next endpoint after a fixed
    pause; when the list is exhausted the whole fetch fails.
    """

    def __init__(
        self,
        endpoints: Sequence[str] = OVERPASS_ENDPOINTS,
        timeout_s: float = REQUEST_TIMEOUT_S,
        backoff_s: float = RETRY_BACKOFF_S,
        waterway_types: Sequence[str] = WATERWAY_TYPES,
        session: Optional[requests.Session] = None,
    ):
        if not endpoints:
            raise ValueError("At least one Overpass endpoint is required")
        self.endpoints = list(endpoints)
        self.timeout_s = timeout_s
        self.backoff_s = backoff_s
        self.waterway_types = list(waterway_types)
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "OverpassSource":
        return cls(
            endpoints=settings.overpass_endpoints,
            timeout_s=settings.request_timeout_s,
            backoff_s=settings.retry_backoff_s,
            waterway_types=settings.waterway_types,
            session=session,
        )

    def fetch(self, bbox: Dict[str, float]) -> List[WaterwayFeature]:
        query = build_waterway_query(bbox, self.waterway_types)
        logger.info(
            "Querying Overpass for waterways in bbox [%.4f, %.4f, %.4f, %.4f]",
            bbox["min_lon"], bbox["min_lat"], bbox["max_lon"], bbox["max_lat"],
        )

        last_exc: Optional[Exception] = None
        for i, url in enumerate(self.endpoints, start=1):
            logger.info("Trying server %d/%d: %s", i, len(self.endpoints), url)
            try:
                resp = self.session.post(
                    url,
                    data=query.encode("utf-8"),
                    headers={"Content-Type": "text/plain"},
                    timeout=self.timeout_s,
                )
                resp.raise_for_status()
                payload = resp.json()
                if not isinstance(payload, dict):
                    raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
            except (requests.RequestException, ValueError) as e:
                last_exc = e
                logger.warning("Server %s failed: %s", url, e)
                if i < len(self.endpoints):
                    logger.info("Waiting %.0f seconds before trying next server", self.backoff_s)
                    time.sleep(self.backoff_s)
                continue

            logger.info("Received %d OSM elements", len(payload.get("elements", [])))
            features = overpass_to_features(payload)
            logger.info("Converted to %d waterway lines", len(features))
            return features

        raise AcquisitionError(f"All Overpass servers failed. Last error: {last_exc}")
