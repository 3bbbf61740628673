# path: blueways-api/blueways/services/waterway_matcher.py

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence
import logging

from shapely.geometry.base import BaseGeometry

from blueways.config import GENERIC_WATERWAY_TOKENS
from blueways.errors import GeometryError, ResolutionError
from blueways.models.network_models import WaterwayFeature
from blueways.utils.geo import merge_lines
from blueways.utils.names import normalize_waterway_name

logger = logging.getLogger(__name__)


class WaterwayIndex:
    """Named waterway fragments grouped by normalized name, in fetch order."""

    def __init__(self, groups: Dict[str, List[WaterwayFeature]], tokens: Sequence[str] = GENERIC_WATERWAY_TOKENS):
        self.groups = groups
        self.tokens = list(tokens)

    @classmethod
    def from_features(
        cls,
        features: Iterable[WaterwayFeature],
        tokens: Sequence[str] = GENERIC_WATERWAY_TOKENS,
    ) -> "WaterwayIndex":
        groups: Dict[str, List[WaterwayFeature]] = {}
        for feature in features:
            key = normalize_waterway_name(feature.name, tokens)
            if not key:
                continue
            groups.setdefault(key, []).append(feature)

        logger.info("Found %d named waterways", len(groups))
        for key, members in groups.items():
            logger.debug('  "%s": %d segments', key, len(members))
        return cls(groups, tokens)

    def __len__(self) -> int:
        return len(self.groups)

    def match(self, river: Optional[str]) -> List[WaterwayFeature]:
        key = normalize_waterway_name(river, self.tokens)
        if not key:
            raise ResolutionError(f"No usable river name: {river!r}")

        if key in self.groups:
            return self.groups[key]
        for name, members in self.groups.items():
            if key in name or name in key:
                logger.debug("River %r matched waterway %r by substring", river, name)
                return members
        raise ResolutionError(f"No matching waterway found for river {river!r}")

    def merged(self, river: Optional[str]) -> BaseGeometry:
        segments = self.match(river)
        merged = merge_lines([s.coordinates for s in segments])
        if merged is None or merged.is_empty:
            raise GeometryError(f"Could not merge {len(segments)} waterway segments for {river!r}")
        return merged
