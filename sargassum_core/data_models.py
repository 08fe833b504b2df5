"""
Data models for the Sargassum Drift Visualization Engine.

This module contains the data models used throughout the engine:
- GeoPoint: A geographic coordinate
- TrajectoryPoint / Trajectory: The predicted drift path
- ConcentrationSample: A trajectory point annotated with biomass area
- TrajectoryStep: One animation step pairing a point with its sample
- CoastalSite / AffectedSite / SiteRisk: Coastal registry and risk output
- DerivedStatistics: Aggregated risk statistics
- AnimationState: Position of the animation controller
- FieldParticle: One rendered particle of a density field
- PredictedCoordinate / PredictionResponse: Raw upstream payload

These models provide validation, serialization, and utility methods
for working with drift data.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Tuple, Optional, Any
import json
import unicodedata

from .interfaces import validate_in_range, validate_latitude, validate_longitude, validate_non_negative


VALID_INTENSITIES = ('low', 'medium', 'high')
VALID_RISK_TIERS = ('high', 'medium', 'low')
PREDICTION_LOCATION = 'sargassum-prediction'


@dataclass(frozen=True)
class GeoPoint:
    """
    A geographic coordinate.

    Attributes:
        latitude: Latitude in degrees, between -90 and 90
        longitude: Longitude in degrees, between -180 and 180
    """

    latitude: float
    longitude: float

    def __post_init__(self):
        """Validate the coordinate after initialization."""
        self._validate()

    def _validate(self):
        validate_latitude(self.latitude)
        validate_longitude(self.longitude)

    @property
    def position(self) -> Tuple[float, float]:
        """Get the (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrajectoryPoint(GeoPoint):
    """A point of a predicted drift path, tagged with its site."""

    location: str = PREDICTION_LOCATION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrajectoryPoint':
        return cls(
            latitude=float(data['latitude']),
            longitude=float(data['longitude']),
            location=data.get('location', PREDICTION_LOCATION)
        )


@dataclass(frozen=True)
class ConcentrationSample(GeoPoint):
    """
    A trajectory point annotated with a biomass-area measurement.

    Attributes:
        area_km2: Biomass area in square kilometers (missing upstream values are 0)
        density: Derived density, 0-100
        intensity: Derived intensity ('low', 'medium' or 'high')
        location: Site tag shared with the matching trajectory point
    """

    area_km2: float = 0.0
    density: int = 0
    intensity: str = 'low'
    location: str = PREDICTION_LOCATION

    def _validate(self):
        super()._validate()
        validate_non_negative(self.area_km2, "Area")
        validate_in_range(self.density, 0, 100, "Density")
        if self.intensity not in VALID_INTENSITIES:
            raise ValueError(
                f"Intensity must be one of {VALID_INTENSITIES}, got {self.intensity}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConcentrationSample':
        return cls(
            latitude=float(data['latitude']),
            longitude=float(data['longitude']),
            area_km2=float(data.get('area_km2') or 0.0),
            density=int(data.get('density', 0)),
            intensity=data.get('intensity', 'low'),
            location=data.get('location', PREDICTION_LOCATION)
        )


@dataclass
class Trajectory:
    """
    A predicted drift path for one site tag.

    Attributes:
        location: Site tag of the trajectory
        points: Chronologically ordered points, index 0 is the earliest
            (open ocean) and the last index is the terminal point
    """

    location: str
    points: List[TrajectoryPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def coordinates(self) -> List[Tuple[float, float]]:
        """Get the (latitude, longitude) pairs of the path."""
        return [p.position for p in self.points]

    def bounds(self) -> Optional[Tuple[Tuple[float, float], Tuple[float, float]]]:
        """Get ((min_lat, min_lon), (max_lat, max_lon)) or None if empty."""
        if not self.points:
            return None
        lats = [p.latitude for p in self.points]
        lons = [p.longitude for p in self.points]
        return ((min(lats), min(lons)), (max(lats), max(lons)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'location': self.location,
            'points': [p.to_dict() for p in self.points]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Trajectory':
        return cls(
            location=data['location'],
            points=[TrajectoryPoint.from_dict(p) for p in data.get('points', [])]
        )


@dataclass(frozen=True)
class TrajectoryStep:
    """
    One animation step: a trajectory point and its concentration sample.

    Keeping both in one record means filtering can never shift one
    sequence relative to the other.

    Attributes:
        index: Position of the step in the full (unfiltered) sequence
        point: Trajectory point of the step
        sample: Concentration sample measured at the same position
    """

    index: int
    point: TrajectoryPoint
    sample: ConcentrationSample

    @property
    def location(self) -> str:
        return self.point.location


@dataclass(frozen=True)
class CoastalSite:
    """
    A named coastal location of the registry.

    Attributes:
        name: Display name of the site
        region: State or region the site belongs to
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """

    name: str
    region: str
    latitude: float
    longitude: float

    @property
    def slug(self) -> str:
        """Lower-case ASCII identifier, e.g. 'playa-del-carmen'."""
        ascii_name = unicodedata.normalize('NFKD', self.name).encode('ascii', 'ignore').decode()
        cleaned = ''.join(c if c.isalnum() else ' ' for c in ascii_name.lower())
        return '-'.join(cleaned.split())

    @property
    def display_name(self) -> str:
        return f"{self.name}, {self.region}"

    def to_dict(self) -> Dict[str, Any]:
        site_dict = asdict(self)
        site_dict['slug'] = self.slug
        return site_dict


@dataclass(frozen=True)
class AffectedSite:
    """A coastal site inside an impact radius and its distance to the center."""

    site: CoastalSite
    distance_km: float

    def label(self) -> str:
        return f"{self.site.display_name} ({self.distance_km:.1f} km)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'site': self.site.to_dict(),
            'distance_km': self.distance_km
        }


@dataclass(frozen=True)
class SiteRisk:
    """
    Risk assessment of one coastal site.

    Attributes:
        name: Site name
        region: Site region
        distance_km: Distance from the terminal point
        biomass_share_km2: Share of the terminal biomass attributed to the site
        density: Display density, clamped to the configured range
        risk_tier: 'high', 'medium' or 'low'
    """

    name: str
    region: str
    distance_km: float
    biomass_share_km2: float
    density: int
    risk_tier: str

    def __post_init__(self):
        if self.risk_tier not in VALID_RISK_TIERS:
            raise ValueError(f"Risk tier must be one of {VALID_RISK_TIERS}, got {self.risk_tier}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DerivedStatistics:
    """
    Aggregated risk statistics for one loaded concentration sequence.

    Attributes:
        total_biomass_km2: Sum of all sample areas
        high_risk_site_count: Sites within the nearby radius of the terminal point
        top_affected_sites: Nearest sites with their risk tier
        monitored_site_count: Number of sites in the registry
    """

    total_biomass_km2: float = 0.0
    high_risk_site_count: int = 0
    top_affected_sites: List[SiteRisk] = field(default_factory=list)
    monitored_site_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_biomass_km2': self.total_biomass_km2,
            'high_risk_site_count': self.high_risk_site_count,
            'top_affected_sites': [s.to_dict() for s in self.top_affected_sites],
            'monitored_site_count': self.monitored_site_count
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DerivedStatistics':
        return cls(
            total_biomass_km2=data.get('total_biomass_km2', 0.0),
            high_risk_site_count=data.get('high_risk_site_count', 0),
            top_affected_sites=[SiteRisk(**s) for s in data.get('top_affected_sites', [])],
            monitored_site_count=data.get('monitored_site_count', 0)
        )


@dataclass
class AnimationState:
    """
    Position of the animation controller.

    Attributes:
        current_step: Index of the current step
        total_steps: Number of concentration samples loaded
        is_animating: Whether the play loop is running
    """

    current_step: int = 0
    total_steps: int = 0
    is_animating: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.total_steps > 0 and self.current_step == self.total_steps - 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FieldParticle:
    """
    One rendered particle of a density field.

    Attributes:
        latitude: Latitude of the particle
        longitude: Longitude of the particle
        radius_px: Rendered radius in pixels
        fill_color: Fill color
        border_color: Border color
        fill_opacity: Fill opacity, 0-1
        layer: Layer index (0 is the densest layer)
        micro: Whether this is a micro-particle attached to a layer-0 particle
    """

    latitude: float
    longitude: float
    radius_px: float
    fill_color: str
    border_color: str
    fill_opacity: float
    layer: int = 0
    micro: bool = False

    @property
    def position(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class PredictedCoordinate:
    """One raw predicted coordinate as returned by the prediction service."""

    latitude: float
    longitude: float
    biomass_area: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PredictedCoordinate':
        # Older payloads name the area field 'sargassumBiomass'
        area = data.get('biomassArea', data.get('sargassumBiomass'))
        return cls(
            latitude=float(data['latitude']),
            longitude=float(data['longitude']),
            biomass_area=None if area is None else float(area)
        )


@dataclass
class PredictionResponse:
    """
    Raw prediction payload in upstream order.

    Attributes:
        predicted_coordinates: Coordinates as returned (latest iteration first)
        iterations_count: Number of prediction iterations
    """

    predicted_coordinates: List[PredictedCoordinate] = field(default_factory=list)
    iterations_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PredictionResponse':
        return cls(
            predicted_coordinates=[
                PredictedCoordinate.from_dict(c) for c in data.get('predictedCoordinates', [])
            ],
            iterations_count=int(data.get('iterationsCount', 0))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'predictedCoordinates': [
                {
                    'latitude': c.latitude,
                    'longitude': c.longitude,
                    'biomassArea': c.biomass_area
                }
                for c in self.predicted_coordinates
            ],
            'iterationsCount': self.iterations_count
        }
