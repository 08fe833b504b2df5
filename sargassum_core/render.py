"""
Frame rendering for the Sargassum Drift Visualization Engine.

This module decides what geometry to draw for one animation step:
- Dashed polylines for every visible trajectory
- The density field, background circle and tooltip of each visible sample
- The coastal impact zone around the terminal sample

Drawing itself is delegated to a rendering surface. GeoJSONSurface is a
surface that records every primitive as a GeoJSON feature, for export
and for the REST API.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Tuple

import geojson

from . import config
from .coastal_sites import CoastalSiteRegistry
from .data_models import AffectedSite, ConcentrationSample, Trajectory, TrajectoryStep
from .density import (
    DensityFieldGenerator, color_for_density, intensity_label, particle_count,
    spread_radius_meters
)
from .impact import impact_radius_meters, terminal_impact
from .interfaces import LatLon, RenderingSurfaceInterface, make_tooltip

logger = logging.getLogger(__name__)

TRAJECTORY_STYLE = {
    'color': '#000000',
    'weight': 3,
    'opacity': 0.3,
    'dash_array': '10, 10',
    'class_name': 'sargassum-trajectory-line',
}

IMPACT_ZONE_STYLE = {
    'fill_color': '#ef4444',
    'color': '#dc2626',
    'weight': 4,
    'fill_opacity': 0.2,
    'opacity': 1,
    'dash_array': '15, 10',
    'class_name': 'coastal-impact-zone',
}

ARRIVAL_MARKER_STYLE = {
    'fill_color': '#ef4444',
    'color': '#ffffff',
    'weight': 5,
    'fill_opacity': 1,
    'class_name': 'arrival-marker pulsating',
}

AFFECTED_SITE_STYLE = {
    'fill_color': '#dc2626',
    'color': '#ffffff',
    'weight': 4,
    'fill_opacity': 1,
    'class_name': 'affected-coast-marker pulsating',
}

CONNECTION_STYLE = {
    'color': '#dc2626',
    'weight': 4,
    'opacity': 0.8,
    'dash_array': '10, 10',
    'class_name': 'impact-connection-line',
}

ARROW_STYLE = {
    'color': '#dc2626',
    'fill_color': '#dc2626',
    'fill_opacity': 1,
    'weight': 2,
}


@dataclass
class FrameSummary:
    """
    What was drawn for one animation step.

    Attributes:
        step: Current step index
        total_steps: Number of steps loaded
        trajectories: Number of trajectory polylines drawn
        samples_drawn: Number of samples whose density field was drawn
        particles: Number of particles drawn (micro-particles included)
        impact_drawn: Whether the coastal impact zone was drawn
        affected_sites: Sites inside the impact zone (terminal step only)
    """

    step: int
    total_steps: int
    trajectories: int = 0
    samples_drawn: int = 0
    particles: int = 0
    impact_drawn: bool = False
    affected_sites: List[AffectedSite] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': self.step,
            'total_steps': self.total_steps,
            'trajectories': self.trajectories,
            'samples_drawn': self.samples_drawn,
            'particles': self.particles,
            'impact_drawn': self.impact_drawn,
            'affected_sites': [a.to_dict() for a in self.affected_sites]
        }


def concentration_tooltip(sample: ConcentrationSample) -> str:
    return (
        '<div class="text-xs">'
        '<strong>Sargassum concentration</strong><br>'
        f'<span class="font-semibold">Area: {sample.area_km2} km²</span><br>'
        f'Density: {sample.density}%<br>'
        f'Level: <span class="font-semibold">{intensity_label(sample.intensity)}</span>'
        '</div>'
    )


def impact_tooltip(sample: ConcentrationSample, radius_m: float, sites: Sequence[AffectedSite]) -> str:
    if sites:
        items = ''.join(f'<li class="text-xs">• {a.label()}</li>' for a in sites)
    else:
        items = '<li class="text-xs text-gray-500">• Open ocean</li>'
    return (
        '<div class="text-xs">'
        '<strong class="text-red-600">⚠️ COASTAL ARRIVAL</strong><br>'
        f'<span class="font-semibold">Impact area: {sample.area_km2} km²</span><br>'
        f'<span class="font-semibold">Impact radius: {radius_m / 1000:.1f} km</span><br><br>'
        '<strong>Potentially affected coasts:</strong>'
        f'<ul class="mt-1 ml-2">{items}</ul>'
        '</div>'
    )


def arrow_head(origin: LatLon, tip: LatLon, size_deg: float) -> List[LatLon]:
    """
    Triangle pointing from origin to tip, in degrees.

    Returns:
        [tip, left corner, right corner]
    """
    angle = math.atan2(tip[0] - origin[0], tip[1] - origin[1])
    left = (tip[0] - size_deg * math.sin(angle - math.pi / 6),
            tip[1] - size_deg * math.cos(angle - math.pi / 6))
    right = (tip[0] - size_deg * math.sin(angle + math.pi / 6),
             tip[1] - size_deg * math.cos(angle + math.pi / 6))
    return [tip, left, right]


class FrameRenderer:
    """
    Renderer of animation frames onto a rendering surface.

    Args:
        surface: Rendering surface receiving the draw calls
        registry: Coastal site registry used for the impact zone
        generator: Density field generator (unseeded if None)
        impact_params: Overrides for the impact configuration
    """

    def __init__(self, surface: RenderingSurfaceInterface,
                 registry: Optional[CoastalSiteRegistry] = None,
                 generator: Optional[DensityFieldGenerator] = None,
                 impact_params: Optional[Dict[str, Any]] = None):
        self.surface = surface
        self.registry = registry
        self.generator = generator or DensityFieldGenerator()
        self.impact_params = config.IMPACT_CONFIG.copy()
        if impact_params:
            self.impact_params.update(impact_params)

    def render(self, trajectories: Sequence[Trajectory], steps: Sequence[TrajectoryStep],
               current_step: int, total_steps: int) -> FrameSummary:
        """
        Redraw the frame of a step.

        Trajectory polylines are always drawn in full. Density fields are
        drawn for every step with index <= current_step; the impact zone
        only when the current step is the terminal one.

        Args:
            trajectories: Trajectories to draw (already filtered)
            steps: Step records to draw (already filtered)
            current_step: Current step index
            total_steps: Number of steps in the full sequence

        Returns:
            FrameSummary of what was drawn
        """
        self.surface.clear()
        summary = FrameSummary(step=current_step, total_steps=total_steps)

        for trajectory in trajectories:
            if not trajectory.points:
                continue
            self.surface.polyline(trajectory.coordinates(), dict(TRAJECTORY_STYLE))
            summary.trajectories += 1

        is_terminal_step = total_steps > 0 and current_step == total_steps - 1
        for step in steps:
            if step.index > current_step:
                continue
            sample = step.sample
            if not sample.area_km2:
                logger.debug(f"Skipping step {step.index}: no biomass")
                continue

            if is_terminal_step and step.index == total_steps - 1:
                summary.affected_sites = self.draw_impact_zone(sample)
                summary.impact_drawn = True

            summary.particles += self.draw_sample(sample)
            summary.samples_drawn += 1

        logger.debug(
            f"Frame {current_step + 1}/{total_steps}: {summary.samples_drawn} samples, "
            f"{summary.particles} particles"
        )
        return summary

    def draw_sample(self, sample: ConcentrationSample) -> int:
        """
        Draw the density field of one sample.

        Returns:
            Number of particles drawn
        """
        count = particle_count(sample.area_km2)
        radius_m = spread_radius_meters(sample.area_km2)
        color = color_for_density(sample.density)

        particles = self.generator.generate_field(sample, count, radius_m)
        for p in particles:
            style = {
                'fill_color': p.fill_color,
                'color': p.border_color,
                'weight': 0 if p.micro else 0.8,
                'fill_opacity': p.fill_opacity,
                'class_name': 'sargassum-micro-particle' if p.micro else 'sargassum-particle',
            }
            self.surface.circle_marker(p.position, p.radius_px, style)

        field_params = self.generator.params
        self.surface.circle(sample.position, radius_m * field_params['background_radius_factor'], {
            'fill_color': color,
            'color': 'transparent',
            'weight': 0,
            'fill_opacity': field_params['background_opacity'],
            'class_name': 'sargassum-background',
        })

        self.surface.circle_marker(sample.position, radius_m / 10, {
            'fill_color': 'transparent',
            'color': 'transparent',
            'weight': 0,
            'fill_opacity': 0,
        }, tooltip=make_tooltip(concentration_tooltip(sample)))

        return len(particles)

    def draw_impact_zone(self, sample: ConcentrationSample) -> List[AffectedSite]:
        """
        Draw the coastal impact zone of a terminal sample.

        Returns:
            Sites inside the impact zone, nearest first
        """
        radius_m = impact_radius_meters(sample)
        sites = terminal_impact(sample, self.registry)

        logger.info(
            f"Coastal impact zone at ({sample.latitude}, {sample.longitude}), "
            f"radius {radius_m / 1000:.1f} km, {len(sites)} sites affected"
        )

        self.surface.circle(sample.position, radius_m, dict(IMPACT_ZONE_STYLE),
                            tooltip=make_tooltip(impact_tooltip(sample, radius_m, sites)))
        self.surface.circle_marker(
            sample.position, self.impact_params['arrival_marker_radius_px'],
            dict(ARRIVAL_MARKER_STYLE),
            tooltip=make_tooltip('🏖️ COASTAL ARRIVAL', permanent=True, offset=(0, -25))
        )

        if self.impact_params['draw_site_markers']:
            self.draw_site_markers(sample.position, sites)

        return sites

    def draw_site_markers(self, origin: LatLon, sites: Sequence[AffectedSite]) -> None:
        """Mark every affected site and connect it to the impact point with an arrow."""
        for affected in sites:
            site = affected.site
            site_position = (site.latitude, site.longitude)

            tooltip = (
                '<div class="text-xs">'
                '<strong class="text-red-600">⚠️ AFFECTED COAST</strong><br>'
                f'<span class="font-semibold">{site.name}</span><br>'
                f'<span class="text-gray-600">{site.region}</span><br>'
                f'<span class="text-red-600">Distance: {affected.distance_km:.1f} km</span>'
                '</div>'
            )
            self.surface.circle_marker(site_position, 15, dict(AFFECTED_SITE_STYLE),
                                       tooltip=make_tooltip(tooltip))
            self.surface.label_marker(site_position, f'<div class="coast-label">⚠️ {site.name}</div>')
            self.surface.polyline([origin, site_position], dict(CONNECTION_STYLE))
            self.surface.polygon(
                arrow_head(origin, site_position, self.impact_params['arrow_size_deg']),
                dict(ARROW_STYLE)
            )


def _lonlat(point: LatLon) -> Tuple[float, float]:
    return (point[1], point[0])


class GeoJSONSurface:
    """
    Rendering surface recording primitives as GeoJSON features.

    Circles become Points with a 'radius_m' property, circle markers
    Points with a 'radius_px' property; styles and tooltips are kept in
    the feature properties.
    """

    def __init__(self):
        self.features: List[geojson.Feature] = []
        self.viewport: Optional[Dict[str, Any]] = None
        self.clear_count = 0

    def _add(self, geometry, primitive: str, style: Dict[str, Any],
             tooltip: Optional[Dict[str, Any]] = None, **extra) -> None:
        properties = {'primitive': primitive, 'style': style}
        properties.update(extra)
        if tooltip is not None:
            properties['tooltip'] = tooltip
        self.features.append(geojson.Feature(geometry=geometry, properties=properties))

    def clear(self) -> None:
        self.features = []
        self.clear_count += 1

    def polyline(self, points, style, tooltip=None) -> None:
        self._add(geojson.LineString([_lonlat(p) for p in points]), 'polyline', style, tooltip)

    def circle_marker(self, point, radius_px, style, tooltip=None) -> None:
        self._add(geojson.Point(_lonlat(point)), 'circle_marker', style, tooltip,
                  radius_px=radius_px)

    def circle(self, point, radius_m, style, tooltip=None) -> None:
        self._add(geojson.Point(_lonlat(point)), 'circle', style, tooltip, radius_m=radius_m)

    def polygon(self, points, style, tooltip=None) -> None:
        ring = [_lonlat(p) for p in points]
        if ring and ring[0] != ring[-1]:
            ring.append(ring[0])
        self._add(geojson.Polygon([ring]), 'polygon', style, tooltip)

    def label_marker(self, point, html) -> None:
        self._add(geojson.Point(_lonlat(point)), 'label', {}, html=html)

    def fit_bounds(self, south_west, north_east, padding_px=0) -> None:
        self.viewport = {
            'south_west': list(south_west),
            'north_east': list(north_east),
            'padding_px': padding_px
        }

    def primitives(self, kind: str) -> List[geojson.Feature]:
        """Get the recorded features of one primitive kind."""
        return [f for f in self.features if f['properties']['primitive'] == kind]

    def to_feature_collection(self, **properties) -> geojson.FeatureCollection:
        collection = geojson.FeatureCollection(list(self.features))
        if self.viewport is not None:
            properties.setdefault('viewport', self.viewport)
        if properties:
            collection['properties'] = properties
        return collection
