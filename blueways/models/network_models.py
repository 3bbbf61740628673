# path: blueways-api/blueways/models/network_models.py

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from blueways.config import ACCESS_POINT_TYPE, ROUTE_TYPE

logger = logging.getLogger(__name__)


Coordinate = Tuple[float, float]  # (lon, lat)


def _validate_lonlat(lon: float, lat: float) -> None:
    if not (-180.0 <= lon <= 180.0):
        raise ValueError(f"lon out of range [-180,180]: {lon}")
    if not (-90.0 <= lat <= 90.0):
        raise ValueError(f"lat out of range [-90,90]: {lat}")


def _position_2d(value: Any) -> Any:
    # GeoJSON positions may carry elevation; only lon/lat are modelled.
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return tuple(value[:2])
    return value


# --- GeoJSON document -------------------------------------------------------
# Every level keeps unknown keys so a rewrite never drops data it didn't touch.


class Geometry(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    coordinates: Any = None


class Feature(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "Feature"
    geometry: Optional[Geometry] = None
    properties: Dict[str, Any] = Field(default_factory=dict)

    @property
    def geometry_type(self) -> Optional[str]:
        return self.geometry.type if self.geometry is not None else None

    @property
    def kind(self) -> Optional[str]:
        return self.properties.get("type")


class RouteNetwork(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "FeatureCollection"
    features: List[Feature] = Field(default_factory=list)

    def access_point_features(self, label: str = ACCESS_POINT_TYPE) -> List[Feature]:
        return [f for f in self.features if f.geometry_type == "Point" and f.kind == label]

    def route_features(self, label: str = ROUTE_TYPE) -> List[Feature]:
        return [f for f in self.features if f.geometry_type == "LineString" and f.kind == label]

    def access_points(self, label: str = ACCESS_POINT_TYPE) -> List["AccessPoint"]:
        points: List[AccessPoint] = []
        for f in self.access_point_features(label):
            if not f.properties.get("name"):
                continue
            try:
                points.append(AccessPoint.from_feature(f))
            except ValidationError as e:
                logger.warning("Skipping access point %r: %s", f.properties.get("name"), e)
        return points

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


# --- Typed views ------------------------------------------------------------


class AccessPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    river: Optional[str] = None
    coordinate: Coordinate
    warning: Optional[str] = None

    @field_validator("coordinate", mode="before")
    @classmethod
    def drop_elevation(cls, value: Any):
        return _position_2d(value)

    @field_validator("coordinate")
    @classmethod
    def validate_coordinate(cls, coord: Coordinate):
        _validate_lonlat(*coord)
        return coord

    @classmethod
    def from_feature(cls, feature: Feature) -> "AccessPoint":
        props = feature.properties
        return cls(
            name=props["name"],
            river=props.get("river"),
            coordinate=feature.geometry.coordinates,
            warning=props.get("warning"),
        )


class Route(BaseModel):
    route_name: str
    river: Optional[str] = None
    coordinates: List[Coordinate]
    distance_miles: Optional[float] = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def drop_elevation(cls, value: Any):
        if isinstance(value, (list, tuple)):
            return [_position_2d(c) for c in value]
        return value

    @field_validator("coordinates")
    @classmethod
    def validate_coords(cls, coords: List[Coordinate]):
        if len(coords) < 2:
            raise ValueError("LineString must contain at least 2 coordinates")
        for lon, lat in coords:
            _validate_lonlat(lon, lat)
        return coords

    @property
    def is_traced(self) -> bool:
        return len(self.coordinates) > 2

    @classmethod
    def from_feature(cls, feature: Feature) -> "Route":
        props = feature.properties
        miles = props.get("distance_miles")
        return cls(
            route_name=props.get("route_name") or "",
            river=props.get("river"),
            coordinates=feature.geometry.coordinates or [],
            distance_miles=miles if isinstance(miles, (int, float)) else None,
        )


def set_line_coordinates(feature: Feature, coords: List[Coordinate]) -> None:
    feature.geometry.coordinates = [[lon, lat] for lon, lat in coords]


def set_line_endpoints(feature: Feature, start: Coordinate, end: Coordinate, reverse: bool = False) -> None:
    """Replace only the first and last vertex; interior vertices are kept as stored."""
    coords = list(feature.geometry.coordinates)
    if reverse:
        coords.reverse()
    coords[0] = [start[0], start[1]]
    coords[-1] = [end[0], end[1]]
    feature.geometry.coordinates = coords


# --- Ephemeral waterway data ------------------------------------------------


class WaterwayFeature(BaseModel):
    osm_id: Optional[int] = None
    name: Optional[str] = None
    waterway: Optional[str] = None
    coordinates: List[Coordinate]


# --- Run summaries ----------------------------------------------------------


class AlignmentSummary(BaseModel):
    fixed: int = Field(default=0, ge=0)
    reversed: int = Field(default=0, ge=0)
    errored: int = Field(default=0, ge=0)

    @property
    def changed(self) -> int:
        return self.fixed


class TracingSummary(BaseModel):
    updated: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

    @property
    def changed(self) -> int:
        return self.updated
