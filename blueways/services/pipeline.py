# path: blueways-api/blueways/services/pipeline.py

from __future__ import annotations

from typing import Optional, Tuple
import logging

from blueways.config import Settings
from blueways.models.network_models import AlignmentSummary, RouteNetwork, TracingSummary
from blueways.services.catalog import AccessPointCatalog
from blueways.services.endpoint_reconciler import align_routes
from blueways.services.network_store import NetworkStore
from blueways.services.route_tracer import trace_routes
from blueways.services.waterway_matcher import WaterwayIndex
from blueways.services.waterway_source import OverpassSource, waterway_bbox

logger = logging.getLogger(__name__)


def align_network(network: RouteNetwork, settings: Settings) -> Tuple[RouteNetwork, AlignmentSummary]:
    catalog = AccessPointCatalog.from_network(
        network, label=settings.access_point_type, qualifier=settings.private_qualifier
    )
    return align_routes(network, catalog, settings)


def trace_network(
    network: RouteNetwork,
    settings: Settings,
    source: Optional[OverpassSource] = None,
) -> Tuple[RouteNetwork, TracingSummary]:
    """Fetch waterways around the network's access points and trace its routes.

    An AcquisitionError propagates before anything in ``network`` is touched.
    """
    source = source or OverpassSource.from_settings(settings)
    bbox = waterway_bbox(network.access_points(settings.access_point_type), settings.bbox_buffer_deg)
    features = source.fetch(bbox)
    index = WaterwayIndex.from_features(features, settings.generic_waterway_tokens)
    return trace_routes(network, index, settings)


def run_alignment(store: NetworkStore, settings: Settings, backup: bool = True) -> AlignmentSummary:
    network = store.load()
    if backup:
        store.backup()
    aligned, summary = align_network(network, settings)
    _persist(store, aligned, summary.changed)
    return summary


def run_tracing(
    store: NetworkStore,
    settings: Settings,
    source: Optional[OverpassSource] = None,
    backup: bool = True,
) -> TracingSummary:
    network = store.load()
    if backup:
        store.backup()
    traced, summary = trace_network(network, settings, source)
    _persist(store, traced, summary.changed)
    return summary


def _persist(store: NetworkStore, network: RouteNetwork, changed: int) -> None:
    if changed > 0:
        store.save(network)
    else:
        logger.warning("No routes were updated. Original file unchanged.")
