"""
Proximity and impact engine for the Sargassum Drift Visualization Engine.

Given the terminal point of a trajectory and a radius, finds the
registered coastal sites that lie within range, nearest first.
"""

import logging
from typing import List, Optional

import numpy as np

from . import config
from .coastal_sites import CoastalSiteRegistry, get_registry
from .data_models import AffectedSite, ConcentrationSample, GeoPoint
from .density import spread_radius_meters
from .interfaces import haversine_distances_km

logger = logging.getLogger(__name__)


def site_distances(center: GeoPoint, registry: Optional[CoastalSiteRegistry] = None) -> List[AffectedSite]:
    """
    Compute the distance from a point to every registered site.

    Args:
        center: Reference point
        registry: Site registry (shared default if None)

    Returns:
        One entry per site, ordered by ascending distance
    """
    if registry is None:
        registry = get_registry()
    if len(registry) == 0:
        return []

    lats, lons = registry.coordinates()
    distances = haversine_distances_km(center.latitude, center.longitude, lats, lons)

    # Stable sort keeps registry order for equidistant sites
    order = np.argsort(distances, kind='stable')
    return [AffectedSite(site=registry.sites[i], distance_km=float(distances[i])) for i in order]


def affected_sites(center: GeoPoint, radius_km: float,
                   registry: Optional[CoastalSiteRegistry] = None) -> List[AffectedSite]:
    """
    Find the registered sites within a radius of a point.

    An empty result is valid and means open ocean.

    Args:
        center: Center of the impact zone
        radius_km: Impact radius in kilometers
        registry: Site registry (shared default if None)

    Returns:
        Sites with distance <= radius_km, ordered by ascending distance
    """
    in_range = [a for a in site_distances(center, registry) if a.distance_km <= radius_km]
    logger.debug(
        f"{len(in_range)} coastal sites within {radius_km:.1f} km of "
        f"({center.latitude:.4f}, {center.longitude:.4f})"
    )
    return in_range


def impact_radius_meters(sample: ConcentrationSample) -> float:
    """Radius of the impact zone drawn around a terminal sample."""
    return config.IMPACT_CONFIG['radius_multiplier'] * spread_radius_meters(sample.area_km2)


def terminal_impact(sample: ConcentrationSample,
                    registry: Optional[CoastalSiteRegistry] = None) -> List[AffectedSite]:
    """
    Find the sites threatened by a terminal sample.

    Args:
        sample: Terminal concentration sample
        registry: Site registry (shared default if None)

    Returns:
        Affected sites within the sample's impact radius
    """
    radius_km = impact_radius_meters(sample) / 1000
    sites = affected_sites(sample, radius_km, registry)
    if sites:
        logger.info(f"Coastal impact: {', '.join(a.label() for a in sites)}")
    else:
        logger.info("Coastal impact: open ocean")
    return sites
