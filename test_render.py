#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for frame rendering and the GeoJSON rendering surface of the
Sargassum Drift Visualization Engine.
"""

import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import geojson

# Add parent directory to path to import sargassum_core modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '.')))

from sargassum_core import impact, render
from sargassum_core.adapter import build_steps
from sargassum_core.coastal_sites import CoastalSiteRegistry
from sargassum_core.data_models import ConcentrationSample, Trajectory, TrajectoryPoint
from sargassum_core.density import DensityFieldGenerator, spread_radius_meters


def make_sequence(areas, start=(21.6, -86.2), end=(21.1619, -86.8515)):
    """Build aligned trajectories and samples moving from start to end."""
    n = len(areas)
    points, samples = [], []
    for i, area in enumerate(areas):
        t = i / max(n - 1, 1)
        lat = start[0] + (end[0] - start[0]) * t
        lon = start[1] + (end[1] - start[1]) * t
        points.append(TrajectoryPoint(lat, lon))
        samples.append(ConcentrationSample(lat, lon, area_km2=area, density=30))
    return [Trajectory(location=points[0].location, points=points)], samples


class TestFrameRenderer(unittest.TestCase):
    """Test cases for the frame renderer."""

    def setUp(self):
        self.surface = render.GeoJSONSurface()
        self.renderer = render.FrameRenderer(self.surface, generator=DensityFieldGenerator(rng=3))
        self.trajectories, self.samples = make_sequence([10, 0, 12, 14])
        self.steps = build_steps(self.trajectories, self.samples)

    def test_first_step(self):
        summary = self.renderer.render(self.trajectories, self.steps, 0, 4)

        self.assertEqual(self.surface.clear_count, 1)
        self.assertEqual(summary.trajectories, 1)
        self.assertEqual(summary.samples_drawn, 1)
        self.assertFalse(summary.impact_drawn)
        self.assertEqual(len(self.surface.primitives('polyline')), 1)
        self.assertEqual(len(self.surface.primitives('circle')), 1)

        polyline = self.surface.primitives('polyline')[0]
        self.assertEqual(polyline['properties']['style']['dash_array'], '10, 10')
        self.assertEqual(len(polyline['geometry']['coordinates']), 4)

    def test_zero_area_sample_skipped(self):
        summary = self.renderer.render(self.trajectories, self.steps, 2, 4)
        self.assertEqual(summary.samples_drawn, 2)
        self.assertEqual(len(self.surface.primitives('circle')), 2)

    def test_terminal_step_draws_impact_zone(self):
        summary = self.renderer.render(self.trajectories, self.steps, 3, 4)

        self.assertTrue(summary.impact_drawn)
        self.assertEqual(summary.samples_drawn, 3)
        self.assertEqual(summary.affected_sites[0].site.name, 'Cancún')

        radii = [f['properties']['radius_m'] for f in self.surface.primitives('circle')]
        self.assertIn(10 * spread_radius_meters(14), radii)

        arrival = [f for f in self.surface.primitives('circle_marker')
                   if f['properties'].get('tooltip', {}).get('permanent')]
        self.assertEqual(len(arrival), 1)
        self.assertEqual(arrival[0]['properties']['tooltip']['offset'], [0, -25])

    def test_impact_zone_uses_terminal_impact(self):
        with patch('sargassum_core.render.terminal_impact', wraps=impact.terminal_impact) as spy:
            summary = self.renderer.render(self.trajectories, self.steps, 3, 4)

        spy.assert_called_once_with(self.samples[-1], self.renderer.registry)
        self.assertEqual(summary.affected_sites, impact.terminal_impact(self.samples[-1]))

    def test_each_render_clears(self):
        self.renderer.render(self.trajectories, self.steps, 3, 4)
        first = len(self.surface.features)
        self.renderer.render(self.trajectories, self.steps, 0, 4)
        self.assertLess(len(self.surface.features), first)
        self.assertEqual(self.surface.clear_count, 2)

    def test_site_markers(self):
        renderer = render.FrameRenderer(self.surface, generator=DensityFieldGenerator(rng=3),
                                        impact_params={'draw_site_markers': True})
        summary = renderer.render(self.trajectories, self.steps, 3, 4)

        sites = len(summary.affected_sites)
        self.assertGreater(sites, 0)
        self.assertEqual(len(self.surface.primitives('label')), sites)
        self.assertEqual(len(self.surface.primitives('polygon')), sites)
        # Trajectory plus one connection line per site
        self.assertEqual(len(self.surface.primitives('polyline')), 1 + sites)

    def test_open_ocean_impact(self):
        renderer = render.FrameRenderer(self.surface, registry=CoastalSiteRegistry(()),
                                        generator=DensityFieldGenerator(rng=3))
        summary = renderer.render(self.trajectories, self.steps, 3, 4)
        self.assertTrue(summary.impact_drawn)
        self.assertEqual(summary.affected_sites, [])

    def test_draw_sample_calls(self):
        surface = MagicMock()
        renderer = render.FrameRenderer(surface, generator=DensityFieldGenerator(rng=5))
        drawn = renderer.draw_sample(self.samples[0])

        surface.circle.assert_called_once()
        # Particles plus the invisible tooltip anchor
        self.assertEqual(surface.circle_marker.call_count, drawn + 1)
        tooltip = surface.circle_marker.call_args.kwargs['tooltip']
        self.assertIn('Area: 10 km²', tooltip['content'])

    def test_summary_to_dict(self):
        summary = self.renderer.render(self.trajectories, self.steps, 3, 4)
        data = summary.to_dict()
        self.assertEqual(data['step'], 3)
        self.assertTrue(data['impact_drawn'])
        self.assertEqual(len(data['affected_sites']), len(summary.affected_sites))


class TestTooltipsAndShapes(unittest.TestCase):
    """Test cases for tooltip text and helper geometry."""

    def test_concentration_tooltip(self):
        sample = ConcentrationSample(21.0, -86.0, area_km2=20, density=50, intensity='low')
        text = render.concentration_tooltip(sample)
        self.assertIn('Area: 20 km²', text)
        self.assertIn('Density: 50%', text)
        self.assertIn('Low', text)

    def test_impact_tooltip_open_ocean(self):
        sample = ConcentrationSample(23.5, -85.0, area_km2=40)
        text = render.impact_tooltip(sample, 40000, [])
        self.assertIn('Open ocean', text)
        self.assertIn('Impact radius: 40.0 km', text)

    def test_arrow_head(self):
        triangle = render.arrow_head((21.0, -87.0), (21.5, -87.0), 0.015)
        self.assertEqual(len(triangle), 3)
        self.assertEqual(triangle[0], (21.5, -87.0))
        # Both corners sit behind the tip
        self.assertTrue(all(corner[0] < 21.5 for corner in triangle[1:]))


class TestGeoJSONSurface(unittest.TestCase):
    """Test cases for the recording surface."""

    def test_primitives_as_features(self):
        surface = render.GeoJSONSurface()
        surface.circle((21.0, -87.0), 500, {'color': 'red'})
        surface.polygon([(21.0, -87.0), (21.1, -87.0), (21.0, -86.9)], {})
        surface.fit_bounds((20.0, -88.0), (22.0, -86.0), 50)

        circle = surface.primitives('circle')[0]
        self.assertEqual(list(circle['geometry']['coordinates']), [-87.0, 21.0])
        self.assertEqual(circle['properties']['radius_m'], 500)

        ring = surface.primitives('polygon')[0]['geometry']['coordinates'][0]
        self.assertEqual(ring[0], ring[-1])

        collection = surface.to_feature_collection(step=0)
        self.assertIsInstance(collection, geojson.FeatureCollection)
        self.assertTrue(collection.is_valid)
        self.assertEqual(collection['properties']['viewport']['padding_px'], 50)
        self.assertEqual(collection['properties']['step'], 0)


if __name__ == '__main__':
    unittest.main()
