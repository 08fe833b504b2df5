#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for the statistics aggregator of the Sargassum Drift Visualization
Engine.
"""

import os
import sys
import json
import unittest

# Add parent directory to path to import sargassum_core modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '.')))

from sargassum_core import risk_stats
from sargassum_core.coastal_sites import CoastalSiteRegistry
from sargassum_core.data_models import CoastalSite, ConcentrationSample, DerivedStatistics


def sample(lat, lon, area):
    return ConcentrationSample(lat, lon, area_km2=area)


# Sites due north of (20.0, -87.0); one degree of latitude is ~111.2 km
TEST_REGISTRY = CoastalSiteRegistry((
    CoastalSite('Far', 'Test', 21.0, -87.0),
    CoastalSite('Middle', 'Test', 20.5, -87.0),
    CoastalSite('Near', 'Test', 20.25, -87.0),
    CoastalSite('Close', 'Test', 20.3, -87.0),
    CoastalSite('Origin', 'Test', 20.0, -87.0),
))


class TestRiskRules(unittest.TestCase):
    """Test cases for the per-site risk rules."""

    def test_risk_tier_boundaries(self):
        self.assertEqual(risk_stats.risk_tier(0), 'high')
        self.assertEqual(risk_stats.risk_tier(29.9), 'high')
        self.assertEqual(risk_stats.risk_tier(30), 'medium')
        self.assertEqual(risk_stats.risk_tier(59.9), 'medium')
        self.assertEqual(risk_stats.risk_tier(60), 'low')

    def test_biomass_share(self):
        self.assertEqual(risk_stats.biomass_share(100, 0), 100)
        self.assertAlmostEqual(risk_stats.biomass_share(100, 50), 75)
        self.assertEqual(risk_stats.biomass_share(100, 250), 0)
        self.assertEqual(risk_stats.biomass_share(-5, 10), 0)

    def test_round_half_up(self):
        self.assertEqual(risk_stats.round_half_up(62.5), 63)
        self.assertEqual(risk_stats.round_half_up(61.5), 62)
        self.assertEqual(risk_stats.round_half_up(62.4), 62)
        self.assertEqual(risk_stats.round_half_up(0.125, 2), 0.13)

    def test_displayed_values_round_halves_up(self):
        aggregator = risk_stats.StatisticsAggregator(TEST_REGISTRY)
        site = TEST_REGISTRY.get('Origin')
        risk = aggregator._assess(site, 37.5, sample(20.0, -87.0, 10))

        self.assertEqual(risk.density, 63)
        self.assertIsInstance(risk.density, int)
        # 10 * (1 - 37.5 / 200) = 8.125
        self.assertEqual(risk.biomass_share_km2, 8.13)

    def test_site_density_clamped(self):
        self.assertEqual(risk_stats.site_density(0), 95)
        self.assertEqual(risk_stats.site_density(40), 60)
        self.assertEqual(risk_stats.site_density(150), 30)


class TestStatisticsAggregator(unittest.TestCase):
    """Test cases for aggregated statistics."""

    def test_total_biomass_is_sum_of_areas(self):
        samples = [sample(21.0, -86.0, 10), sample(21.1, -86.5, 20), sample(21.1619, -86.8515, 30)]
        stats = risk_stats.StatisticsAggregator().compute(samples)
        self.assertEqual(stats.total_biomass_km2, 60)

    def test_terminal_at_cancun(self):
        samples = [sample(21.0, -86.0, 10), sample(21.1, -86.5, 20), sample(21.1619, -86.8515, 30)]
        stats = risk_stats.StatisticsAggregator().compute(samples)

        top = stats.top_affected_sites[0]
        self.assertEqual(top.name, 'Cancún')
        self.assertAlmostEqual(top.distance_km, 0.0)
        self.assertEqual(top.risk_tier, 'high')
        self.assertEqual(top.density, 95)
        self.assertEqual(top.biomass_share_km2, 30.0)
        self.assertEqual(len(stats.top_affected_sites), 4)
        self.assertEqual(stats.monitored_site_count, 18)
        self.assertGreaterEqual(stats.high_risk_site_count, 2)

    def test_controlled_registry(self):
        aggregator = risk_stats.StatisticsAggregator(TEST_REGISTRY)
        stats = aggregator.compute([sample(21.5, -86.0, 5), sample(20.0, -87.0, 30)])

        self.assertEqual(stats.high_risk_site_count, 4)
        self.assertEqual(stats.monitored_site_count, 5)
        self.assertEqual([s.name for s in stats.top_affected_sites], ['Origin', 'Near', 'Close', 'Middle'])
        self.assertEqual([s.risk_tier for s in stats.top_affected_sites], ['high', 'high', 'medium', 'medium'])

        near = stats.top_affected_sites[1]
        self.assertAlmostEqual(near.distance_km, 27.8, places=1)
        self.assertAlmostEqual(near.biomass_share_km2, 25.83, places=2)
        self.assertEqual(near.density, 72)

    def test_top_sites_override(self):
        aggregator = risk_stats.StatisticsAggregator(TEST_REGISTRY, {'top_sites': 5})
        stats = aggregator.compute([sample(20.0, -87.0, 30)])

        far = stats.top_affected_sites[-1]
        self.assertEqual(far.name, 'Far')
        self.assertEqual(far.risk_tier, 'low')
        self.assertEqual(far.density, 30)
        self.assertAlmostEqual(far.biomass_share_km2, 13.32, places=2)

    def test_small_registry(self):
        registry = CoastalSiteRegistry((CoastalSite('Only', 'Test', 20.0, -87.0),))
        stats = risk_stats.StatisticsAggregator(registry).compute([sample(20.0, -87.0, 1)])
        self.assertEqual(len(stats.top_affected_sites), 1)

    def test_zero_terminal_area(self):
        stats = risk_stats.StatisticsAggregator(TEST_REGISTRY).compute([sample(20.0, -87.0, 0)])
        self.assertEqual(stats.total_biomass_km2, 0)
        self.assertTrue(all(s.biomass_share_km2 == 0 for s in stats.top_affected_sites))

    def test_empty_samples(self):
        stats = risk_stats.StatisticsAggregator().compute([])
        self.assertEqual(stats, DerivedStatistics())
        self.assertEqual(stats.top_affected_sites, [])

    def test_serialization(self):
        stats = risk_stats.StatisticsAggregator(TEST_REGISTRY).compute([sample(20.0, -87.0, 30)])
        restored = DerivedStatistics.from_dict(json.loads(stats.to_json()))
        self.assertEqual(restored, stats)


if __name__ == '__main__':
    unittest.main()
