# path: blueways-api/blueways/services/catalog.py

from __future__ import annotations

from typing import Iterable, Iterator, Tuple
import logging

from blueways.config import ACCESS_POINT_TYPE, PRIVATE_QUALIFIER
from blueways.errors import ResolutionError
from blueways.models.network_models import AccessPoint, RouteNetwork
from blueways.utils.names import find_by_name

logger = logging.getLogger(__name__)


class AccessPointCatalog:
    """Canonical access points of one network, looked up by fuzzy name."""

    def __init__(self, points: Iterable[AccessPoint], qualifier: str = PRIVATE_QUALIFIER):
        self._points: Tuple[AccessPoint, ...] = tuple(points)
        self._qualifier = qualifier

    @classmethod
    def from_network(
        cls,
        network: RouteNetwork,
        label: str = ACCESS_POINT_TYPE,
        qualifier: str = PRIVATE_QUALIFIER,
    ) -> "AccessPointCatalog":
        catalog = cls(network.access_points(label), qualifier=qualifier)
        logger.info("Found %d access points", len(catalog))
        return catalog

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[AccessPoint]:
        return iter(self._points)

    def resolve(self, name: str) -> AccessPoint:
        point = find_by_name(name, self._points, qualifier=self._qualifier)
        if point is None:
            raise ResolutionError(f'Cannot find access point for: "{name}"')
        return point
