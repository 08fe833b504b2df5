"""
Coastal site registry for the Sargassum Drift Visualization Engine.

The registry is static reference data: named coastal locations of the
Yucatán and Quintana Roo coastline. It is built once and never mutated.
"""

import logging
from typing import Dict, List, Iterator, Optional, Tuple

from .data_models import CoastalSite

logger = logging.getLogger(__name__)

YUCATAN = 'Yucatán'
QUINTANA_ROO = 'Quintana Roo'

COASTAL_SITES: Tuple[CoastalSite, ...] = (
    # Yucatán
    CoastalSite('Progreso', YUCATAN, 21.2817, -89.6650),
    CoastalSite('Telchac Puerto', YUCATAN, 21.3383, -89.2667),
    CoastalSite('Dzilam de Bravo', YUCATAN, 21.3833, -88.9000),
    CoastalSite('San Felipe', YUCATAN, 21.5667, -88.2500),
    CoastalSite('Río Lagartos', YUCATAN, 21.6000, -88.1500),
    CoastalSite('Las Coloradas', YUCATAN, 21.5667, -87.9667),

    # Quintana Roo (north)
    CoastalSite('Holbox', QUINTANA_ROO, 21.5211, -87.3764),
    CoastalSite('Chiquilá', QUINTANA_ROO, 21.4250, -87.3333),
    CoastalSite('Cancún', QUINTANA_ROO, 21.1619, -86.8515),
    CoastalSite('Puerto Morelos', QUINTANA_ROO, 20.8508, -86.8739),
    CoastalSite('Playa del Carmen', QUINTANA_ROO, 20.6296, -87.0739),
    CoastalSite('Puerto Aventuras', QUINTANA_ROO, 20.5000, -87.2333),
    CoastalSite('Akumal', QUINTANA_ROO, 20.3953, -87.3153),
    CoastalSite('Tulum', QUINTANA_ROO, 20.2114, -87.4654),

    # Quintana Roo (south)
    CoastalSite("Sian Ka'an", QUINTANA_ROO, 19.8667, -87.5333),
    CoastalSite('Mahahual', QUINTANA_ROO, 18.7097, -87.7089),
    CoastalSite('Xcalak', QUINTANA_ROO, 18.2667, -87.8333),
    CoastalSite('Chetumal', QUINTANA_ROO, 18.5001, -88.2962),
)

# Selectable localities: slug -> (latitude, longitude, half-width in degrees)
FILTER_ZONES: Dict[str, Tuple[float, float, float]] = {
    'progreso': (21.2817, -89.6650, 0.3),
    'telchac': (21.3383, -89.2667, 0.3),
    'dzilam': (21.3833, -88.9000, 0.3),
    'san-felipe': (21.5667, -88.2500, 0.3),
    'rio-lagartos': (21.6000, -88.1500, 0.3),
    'cancun': (21.1619, -86.8515, 0.4),
    'puerto-morelos': (20.8508, -86.8739, 0.3),
    'playa-del-carmen': (20.6296, -87.0739, 0.3),
    'akumal': (20.3953, -87.3153, 0.3),
    'tulum': (20.2114, -87.4654, 0.4),
    'mahahual': (18.7097, -87.7089, 0.3),
    'xcalak': (18.2667, -87.8333, 0.3),
}


def in_filter_zone(slug: str, latitude: float, longitude: float) -> bool:
    """
    Check whether a coordinate lies inside a locality's filter box.

    Args:
        slug: Filter zone identifier
        latitude: Latitude of the coordinate
        longitude: Longitude of the coordinate

    Returns:
        True if the zone exists and contains the coordinate
    """
    zone = FILTER_ZONES.get(slug)
    if zone is None:
        return False
    zone_lat, zone_lon, half_width = zone
    return abs(latitude - zone_lat) <= half_width and abs(longitude - zone_lon) <= half_width


class CoastalSiteRegistry:
    """Read-only collection of coastal sites."""

    def __init__(self, sites: Optional[Tuple[CoastalSite, ...]] = None):
        self._sites = tuple(COASTAL_SITES if sites is None else sites)
        self._by_slug = {site.slug: site for site in self._sites}

    def __len__(self) -> int:
        return len(self._sites)

    def __iter__(self) -> Iterator[CoastalSite]:
        return iter(self._sites)

    @property
    def sites(self) -> Tuple[CoastalSite, ...]:
        return self._sites

    def get(self, name_or_slug: str) -> Optional[CoastalSite]:
        """Look a site up by display name or slug."""
        for site in self._sites:
            if site.name == name_or_slug:
                return site
        return self._by_slug.get(name_or_slug)

    def by_region(self, region: str) -> List[CoastalSite]:
        return [site for site in self._sites if site.region == region]

    def regions(self) -> List[str]:
        seen = []
        for site in self._sites:
            if site.region not in seen:
                seen.append(site.region)
        return seen

    def coordinates(self) -> Tuple[List[float], List[float]]:
        """Get the latitudes and longitudes of every site, in registry order."""
        return [s.latitude for s in self._sites], [s.longitude for s in self._sites]


_default_registry = None


def get_registry() -> CoastalSiteRegistry:
    """Get the shared default registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = CoastalSiteRegistry()
        logger.debug(f"Coastal registry loaded with {len(_default_registry)} sites")
    return _default_registry
