"""
Module interfaces and utility functions for the Sargassum Drift Visualization Engine.

This module defines the interfaces between the engine and its external
collaborators and provides utility functions for common operations such as:
- Great-circle distances
- Meter/degree offsets
- Data validation
- GeoJSON conversion

The engine only decides what geometry and style to draw; a rendering
surface decides how. Likewise the engine never talks to the network
directly, only to a prediction data source.
"""

from typing import Protocol, Dict, List, Tuple, Any, Optional, Callable, Sequence
import math

import numpy as np


# Earth's mean radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Meters per degree of latitude used for local offsets
METERS_PER_DEGREE = 111000.0

LatLon = Tuple[float, float]


# Protocol classes for module interfaces
class PredictionSourceInterface(Protocol):
    """Interface for prediction data sources."""

    def get_data(self, **kwargs) -> Any:
        """
        Fetch the raw prediction payload.

        Returns:
            ApiResponse wrapping a payload of the form
            {'predictedCoordinates': [...], 'iterationsCount': int}
        """
        ...


class RenderingSurfaceInterface(Protocol):
    """
    Interface for a 2-D map canvas.

    Every draw call takes geographic coordinates as (latitude, longitude)
    tuples, a style dictionary and an optional hover tooltip.
    """

    def clear(self) -> None:
        """Remove every primitive drawn so far."""
        ...

    def polyline(self, points: Sequence[LatLon], style: Dict[str, Any],
                 tooltip: Optional[Dict[str, Any]] = None) -> None:
        ...

    def circle_marker(self, point: LatLon, radius_px: float, style: Dict[str, Any],
                      tooltip: Optional[Dict[str, Any]] = None) -> None:
        ...

    def circle(self, point: LatLon, radius_m: float, style: Dict[str, Any],
               tooltip: Optional[Dict[str, Any]] = None) -> None:
        ...

    def polygon(self, points: Sequence[LatLon], style: Dict[str, Any],
                tooltip: Optional[Dict[str, Any]] = None) -> None:
        ...

    def label_marker(self, point: LatLon, html: str) -> None:
        ...

    def fit_bounds(self, south_west: LatLon, north_east: LatLon, padding_px: int = 0) -> None:
        """Recenter the viewport on a bounding box."""
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class SchedulerInterface(Protocol):
    """
    Interface for the timer used by the animation controller.

    ``asyncio`` event loops satisfy this protocol through ``loop.call_later``.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


def make_tooltip(content: str, direction: str = 'top', permanent: bool = False,
                 offset: Optional[Tuple[int, int]] = None) -> Dict[str, Any]:
    """
    Build a hover tooltip description.

    Args:
        content: HTML content of the tooltip
        direction: Placement relative to the primitive
        permanent: Whether the tooltip is always shown
        offset: Optional (x, y) pixel offset

    Returns:
        Tooltip dictionary understood by rendering surfaces
    """
    tooltip = {
        'content': content,
        'direction': direction,
        'permanent': permanent
    }
    if offset is not None:
        tooltip['offset'] = list(offset)
    return tooltip


# Utility functions for distances and offsets
def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on the Earth.

    NaN inputs produce a NaN result.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distances_km(lat: float, lon: float,
                           lats: Sequence[float], lons: Sequence[float]) -> np.ndarray:
    """
    Vectorized great-circle distances from one point to many points.

    Args:
        lat: Latitude of the origin in degrees
        lon: Longitude of the origin in degrees
        lats: Latitudes of the targets in degrees
        lons: Longitudes of the targets in degrees

    Returns:
        Array of distances in kilometers, one per target
    """
    lat_rad = np.radians(lat)
    lats_rad = np.radians(np.asarray(lats, dtype=float))
    dlat = lats_rad - lat_rad
    dlon = np.radians(np.asarray(lons, dtype=float) - lon)

    a = np.sin(dlat / 2) ** 2 + np.cos(lat_rad) * np.cos(lats_rad) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def offset_to_degrees(north_m, east_m, ref_lat: float,
                      meters_per_degree: float = METERS_PER_DEGREE):
    """
    Convert a local metric offset to a degree offset.

    Uses a flat approximation: a fixed number of meters per degree of
    latitude, with longitude scaled by cos(latitude). Accepts scalars
    or numpy arrays.

    Args:
        north_m: Northward offset in meters
        east_m: Eastward offset in meters
        ref_lat: Reference latitude in degrees
        meters_per_degree: Meters per degree of latitude

    Returns:
        Tuple of (dlat, dlon) in degrees
    """
    dlat = north_m / meters_per_degree
    dlon = east_m / (meters_per_degree * math.cos(math.radians(ref_lat)))
    return dlat, dlon


def bounding_box(points: Sequence[LatLon]) -> Optional[Tuple[LatLon, LatLon]]:
    """
    Get the ((min_lat, min_lon), (max_lat, max_lon)) box of some points.

    Returns:
        Bounding box, or None when there are no points
    """
    if not points:
        return None
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    return (min(lats), min(lons)), (max(lats), max(lons))


# Utility functions for data validation
def validate_in_range(value: float, min_value: float, max_value: float, name: str) -> None:
    """
    Validate that a value is within the specified range.

    Raises:
        ValueError: If the value is outside the allowed range
    """
    if not (min_value <= value <= max_value):
        raise ValueError(f"{name} must be between {min_value} and {max_value}, got {value}")


def validate_non_negative(value: float, name: str) -> None:
    """
    Validate that a value is non-negative.

    Raises:
        ValueError: If the value is negative
    """
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_latitude(lat: float) -> None:
    validate_in_range(lat, -90, 90, "Latitude")


def validate_longitude(lon: float) -> None:
    validate_in_range(lon, -180, 180, "Longitude")


def clamp(value: float, min_value: float, max_value: float) -> float:
    """Clamp a value to [min_value, max_value]."""
    return max(min_value, min(max_value, value))


# Data conversion utilities
def dict_to_geojson_point(lat: float, lon: float, properties: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Convert a latitude and longitude to a GeoJSON Point feature.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        properties: Properties to include in the feature

    Returns:
        GeoJSON Point feature
    """
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [lon, lat]
        },
        "properties": properties or {}
    }


def dict_to_geojson_linestring(points: List[LatLon], properties: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Convert a list of points to a GeoJSON LineString feature.

    Args:
        points: List of (latitude, longitude) tuples
        properties: Properties to include in the feature

    Returns:
        GeoJSON LineString feature
    """
    # GeoJSON uses [longitude, latitude] order for coordinates
    coordinates = [[lon, lat] for lat, lon in points]

    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": coordinates
        },
        "properties": properties or {}
    }
