"""
Risk statistics for the Sargassum Drift Visualization Engine.

Summarizes a loaded concentration sequence:
- Total biomass over all samples
- Number of coastal sites near the terminal point
- The nearest sites, each with a biomass share, density and risk tier

Risk is scored by distance from the single terminal sample only; the
shape of the rest of the trajectory does not contribute.
"""

import logging
import math
from typing import Dict, Any, Optional, Sequence

from . import config
from .coastal_sites import CoastalSiteRegistry, get_registry
from .data_models import ConcentrationSample, DerivedStatistics, SiteRisk
from .impact import site_distances
from .interfaces import clamp

logger = logging.getLogger(__name__)


def risk_tier(distance_km: float, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Get the risk tier of a site from its distance to the terminal point.

    Args:
        distance_km: Distance in kilometers
        params: Statistics configuration (defaults from config)

    Returns:
        'high' below the high-risk distance, 'medium' below the
        medium-risk distance, 'low' otherwise
    """
    params = params or config.STATISTICS_CONFIG
    if distance_km < params['high_risk_km']:
        return 'high'
    if distance_km < params['medium_risk_km']:
        return 'medium'
    return 'low'


def biomass_share(terminal_area_km2: float, distance_km: float,
                  params: Optional[Dict[str, Any]] = None) -> float:
    """Share of the terminal biomass attributed to a site, falling off linearly with distance."""
    params = params or config.STATISTICS_CONFIG
    share = max(0.0, terminal_area_km2) * (1 - distance_km / params['share_falloff_km'])
    return max(0.0, share)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for non-negative values, as map labels display them."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def site_density(distance_km: float, params: Optional[Dict[str, Any]] = None) -> float:
    params = params or config.STATISTICS_CONFIG
    return clamp(100 - distance_km, params['density_min'], params['density_max'])


class StatisticsAggregator:
    """
    Aggregator of risk statistics over a concentration sequence.

    Args:
        registry: Coastal site registry (shared default if None)
        statistics_params: Overrides for the statistics configuration
    """

    def __init__(self, registry: Optional[CoastalSiteRegistry] = None,
                 statistics_params: Optional[Dict[str, Any]] = None):
        self.registry = registry if registry is not None else get_registry()
        self.params = config.STATISTICS_CONFIG.copy()
        if statistics_params:
            self.params.update(statistics_params)

    def compute(self, samples: Sequence[ConcentrationSample]) -> DerivedStatistics:
        """
        Compute the statistics of a full concentration sequence.

        Args:
            samples: Chronologically ordered samples; the last one is terminal

        Returns:
            DerivedStatistics; all fields zero/empty for an empty sequence
        """
        if not samples:
            logger.info("No concentration samples available, statistics left empty")
            return DerivedStatistics()

        total_biomass = sum(s.area_km2 for s in samples)
        terminal = samples[-1]

        distances = site_distances(terminal, self.registry)
        nearby = [d for d in distances if d.distance_km <= self.params['nearby_radius_km']]

        top_sites = [self._assess(entry.site, entry.distance_km, terminal)
                     for entry in distances[:self.params['top_sites']]]

        stats = DerivedStatistics(
            total_biomass_km2=total_biomass,
            high_risk_site_count=len(nearby),
            top_affected_sites=top_sites,
            monitored_site_count=len(self.registry)
        )

        logger.info(
            f"Statistics: {total_biomass:.2f} km2 total biomass, "
            f"{stats.high_risk_site_count} sites within {self.params['nearby_radius_km']} km "
            f"of ({terminal.latitude:.4f}, {terminal.longitude:.4f})"
        )
        for site in top_sites:
            logger.debug(f"  {site.name}: {site.distance_km:.1f} km, risk {site.risk_tier}")

        return stats

    def _assess(self, site, distance_km: float, terminal: ConcentrationSample) -> SiteRisk:
        return SiteRisk(
            name=site.name,
            region=site.region,
            distance_km=distance_km,
            biomass_share_km2=round_half_up(biomass_share(terminal.area_km2, distance_km, self.params), 2),
            density=int(round_half_up(site_density(distance_km, self.params))),
            risk_tier=risk_tier(distance_km, self.params)
        )
