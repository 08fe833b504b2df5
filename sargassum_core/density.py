"""
Density field generator for the Sargassum Drift Visualization Engine.

This module converts a concentration sample into rendering hints:
- Particle count and spread radius from the biomass area
- Fill color from the density
- A randomized two-layer point cloud around the sample coordinate

The generated field is a visual sample, not a measurement: every call
draws fresh positions from the random generator it is given. Pass a
seeded ``numpy.random.Generator`` for repeatable output; tests should
only rely on bounds (counts, radii, sizes), never on coordinates.
"""

import logging
from typing import Dict, Any, List, Optional, Tuple

import numpy as np

from . import config
from .data_models import ConcentrationSample, FieldParticle
from .interfaces import offset_to_degrees

logger = logging.getLogger(__name__)

# Point sizes in pixels: layer L particles span (2 - L) * [6, 12)
BASE_SIZE_MIN_PX = 6.0
BASE_SIZE_SPAN_PX = 6.0
MICRO_SIZE_MIN_PX = 2.0
MICRO_SIZE_SPAN_PX = 3.0
MICRO_DISTANCE_FACTOR = 0.4


def _step_lookup(area_km2: float, table: Dict[str, Any]) -> int:
    if area_km2 == 0:
        return table['zero']
    for upper_bound, value in table['thresholds']:
        if area_km2 < upper_bound:
            return value
    return table['max']


def particle_count(area_km2: float) -> int:
    """
    Get the number of particles drawn for a biomass area.

    Args:
        area_km2: Biomass area in square kilometers

    Returns:
        Particle count of the densest layer
    """
    return _step_lookup(area_km2, config.DENSITY_FIELD_CONFIG['particle_counts'])


def spread_radius_meters(area_km2: float) -> int:
    """
    Get the radius around the sample over which particles are spread.

    Args:
        area_km2: Biomass area in square kilometers

    Returns:
        Spread radius in meters
    """
    return _step_lookup(area_km2, config.DENSITY_FIELD_CONFIG['spread_radii_m'])


def color_for_density(density: float) -> str:
    """Get the palette color for a density, darkest at 80 and above."""
    for upper_bound, color in config.DENSITY_FIELD_CONFIG['palette']:
        if density < upper_bound:
            return color
    return config.DENSITY_FIELD_CONFIG['palette_max']


def darker_color(color: str, amount: int = 30) -> str:
    """
    Darken a '#rrggbb' color by subtracting a fixed amount per channel.

    Args:
        color: Hex color string
        amount: Value subtracted from each channel (clamped at 0)

    Returns:
        Darkened hex color string
    """
    hex_value = color.lstrip('#')
    channels = [max(0, int(hex_value[i:i + 2], 16) - amount) for i in (0, 2, 4)]
    return '#' + ''.join(f'{c:02x}' for c in channels)


def density_for_area(area_km2: float) -> Tuple[int, str]:
    """
    Derive the (density, intensity) pair of a biomass area.

    Args:
        area_km2: Biomass area in square kilometers

    Returns:
        Tuple of (density 0-100, intensity label)
    """
    if area_km2 == 0:
        return 0, 'low'
    if area_km2 < 15:
        return 30, 'low'
    if area_km2 < 25:
        return 50, 'low'
    if area_km2 < 30:
        return 65, 'medium'
    if area_km2 < 35:
        return 80, 'medium'
    return 95, 'high'


def intensity_label(intensity: Optional[str]) -> str:
    """Human readable label of an intensity."""
    return {
        'high': 'High',
        'medium': 'Medium',
        'low': 'Low',
    }.get(intensity, 'Unknown')


class DensityFieldGenerator:
    """
    Generator of randomized particle clouds for concentration samples.

    Args:
        rng: Random generator or seed; a fresh unseeded generator if None
        field_config: Overrides for the density field configuration
    """

    def __init__(self, rng=None, field_config: Optional[Dict[str, Any]] = None):
        if isinstance(rng, np.random.Generator):
            self.rng = rng
        else:
            self.rng = np.random.default_rng(rng)

        self.params = config.DENSITY_FIELD_CONFIG.copy()
        if field_config:
            self.params.update(field_config)

    def generate_field(self, sample: ConcentrationSample,
                       count: Optional[int] = None,
                       spread_radius_m: Optional[float] = None) -> List[FieldParticle]:
        """
        Generate the particle cloud of a sample.

        Layer L holds ``count // (L + 1)`` particles at a random angle and a
        random distance up to ``spread_radius_m * (1 - shrink * L)`` from the
        sample. A fraction of layer-0 particles carry a few micro-particles
        clustered next to them.

        Args:
            sample: Concentration sample to render
            count: Particles in layer 0 (derived from the area if None)
            spread_radius_m: Spread radius in meters (derived from the area if None)

        Returns:
            List of particles; empty for samples without biomass
        """
        if not sample.area_km2:
            return []

        if count is None:
            count = particle_count(sample.area_km2)
        if spread_radius_m is None:
            spread_radius_m = spread_radius_meters(sample.area_km2)

        color = color_for_density(sample.density)
        border = darker_color(color)
        meters_per_degree = self.params['meters_per_degree']

        particles = []
        for layer in range(self.params['layers']):
            n = count // (layer + 1)
            if n == 0:
                continue
            max_distance = spread_radius_m * (1 - layer * self.params['layer_radius_shrink'])

            angles = self.rng.random(n) * 2 * np.pi
            distances = self.rng.random(n) * max_distance
            dlat, dlon = offset_to_degrees(
                distances * np.cos(angles), distances * np.sin(angles),
                sample.latitude, meters_per_degree
            )
            lats = sample.latitude + dlat
            lons = sample.longitude + dlon
            sizes = (2 - layer) * (self.rng.random(n) * BASE_SIZE_SPAN_PX + BASE_SIZE_MIN_PX)
            opacities = 0.5 + self.rng.random(n) * 0.3

            for i in range(n):
                particles.append(FieldParticle(
                    latitude=float(lats[i]),
                    longitude=float(lons[i]),
                    radius_px=float(sizes[i]),
                    fill_color=color,
                    border_color=border,
                    fill_opacity=float(opacities[i]),
                    layer=layer
                ))

            if layer == 0:
                particles.extend(self._micro_particles(lats, lons, sizes, sample.latitude, color))

        logger.debug(
            f"Generated {len(particles)} particles for {sample.area_km2} km2 "
            f"(radius {spread_radius_m} m)"
        )
        return particles

    def _micro_particles(self, lats: np.ndarray, lons: np.ndarray, sizes: np.ndarray,
                         ref_lat: float, color: str) -> List[FieldParticle]:
        """Attach micro-particles to a random subset of layer-0 particles."""
        per_particle = self.params['micro_particles_per_particle']
        chosen = np.nonzero(
            self.rng.random(len(lats)) < self.params['micro_particle_probability']
        )[0]

        micro = []
        for i in chosen:
            angles = self.rng.random(per_particle) * 2 * np.pi
            # Offset uses the parent's pixel size as a distance in meters
            distance = sizes[i] * MICRO_DISTANCE_FACTOR
            dlat, dlon = offset_to_degrees(
                distance * np.cos(angles), distance * np.sin(angles),
                ref_lat, self.params['meters_per_degree']
            )
            radii = self.rng.random(per_particle) * MICRO_SIZE_SPAN_PX + MICRO_SIZE_MIN_PX
            opacities = 0.4 + self.rng.random(per_particle) * 0.2
            for j in range(per_particle):
                micro.append(FieldParticle(
                    latitude=float(lats[i] + dlat[j]),
                    longitude=float(lons[i] + dlon[j]),
                    radius_px=float(radii[j]),
                    fill_color=color,
                    border_color=color,
                    fill_opacity=float(opacities[j]),
                    layer=0,
                    micro=True
                ))
        return micro
