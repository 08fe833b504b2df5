#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Test script for the Flask API server of the Sargassum Drift Visualization
Engine.

This script tests the functionality of the API server, including:
- Health and data endpoints
- Frame rendering with query parameters
- Reloading the prediction
- Error responses
"""

import os
import sys
import unittest
from unittest.mock import MagicMock

# Add parent directory to path to import sargassum_core modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '.')))

from sargassum_core import server, __version__
from sargassum_core.fetch_data import ApiResponse, SargassumService
from sargassum_core.main import SessionManager


PAYLOAD = {
    'predictedCoordinates': [
        {'latitude': 21.1619, 'longitude': -86.8515, 'biomassArea': 30.0},
        {'latitude': 21.3, 'longitude': -86.6, 'biomassArea': 20.0},
        {'latitude': 21.5, 'longitude': -86.3, 'biomassArea': 10.0},
    ],
    'iterationsCount': 3
}


class TestAPIServer(unittest.TestCase):
    """Test cases for the Flask API server."""

    def setUp(self):
        """Set up test environment."""
        server.app.config['TESTING'] = True
        self.client = server.app.test_client()

        self.prediction_client = MagicMock()
        self.prediction_client.get_data.return_value = ApiResponse.success_response(PAYLOAD)
        self.install_session(self.prediction_client)

    def install_session(self, prediction_client):
        session = SessionManager(service=SargassumService(prediction_client), seed=0)
        session.load()
        server.reset_session(session)
        return session

    def tearDown(self):
        server.reset_session(None)

    def test_health_check(self):
        response = self.client.get('/api/v1/health')
        self.assertEqual(response.status_code, 200)

        data = response.get_json()
        self.assertEqual(data['status'], 'ok')
        self.assertEqual(data['version'], __version__)
        self.assertEqual(data['total_steps'], 3)
        self.assertEqual(data['session']['status'], 'loaded')

    def test_predictions(self):
        data = self.client.get('/api/v1/predictions').get_json()

        self.assertNotIn('frame', data)
        self.assertEqual(len(data['trajectories']), 1)
        self.assertEqual(len(data['samples']), 3)
        # Earliest (open ocean) sample first
        self.assertEqual(data['samples'][0]['latitude'], 21.5)

    def test_statistics(self):
        data = self.client.get('/api/v1/statistics').get_json()

        self.assertEqual(data['total_biomass_km2'], 60.0)
        self.assertEqual(data['monitored_site_count'], 18)
        self.assertEqual(data['top_affected_sites'][0]['name'], 'Cancún')

    def test_frame(self):
        response = self.client.get('/api/v1/frame', query_string={'step': 2, 'seed': 5})
        self.assertEqual(response.status_code, 200)

        data = response.get_json()
        self.assertEqual(data['type'], 'FeatureCollection')
        self.assertEqual(data['properties']['step'], 2)
        self.assertTrue(data['properties']['frame']['impact_drawn'])
        self.assertGreater(len(data['features']), 0)

    def test_frame_with_site(self):
        data = self.client.get('/api/v1/frame', query_string={'step': 2, 'site': 'cancun'}).get_json()
        self.assertEqual(data['properties']['site_filter'], 'cancun')

    def test_frame_bad_parameters(self):
        response = self.client.get('/api/v1/frame', query_string={'step': 'last'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('step', response.get_json()['error'])

        response = self.client.get('/api/v1/frame', query_string={'seed': '1.5'})
        self.assertEqual(response.status_code, 400)

    def test_frame_without_data(self):
        empty = MagicMock()
        empty.get_data.return_value = ApiResponse.success_response(
            {'predictedCoordinates': [], 'iterationsCount': 0})
        self.install_session(empty)

        response = self.client.get('/api/v1/frame')
        self.assertEqual(response.status_code, 404)

    def test_sites(self):
        data = self.client.get('/api/v1/sites').get_json()
        self.assertEqual(data['count'], 18)
        self.assertIn('cancun', data['filter_zones'])
        self.assertIn('slug', data['sites'][0])

        data = self.client.get('/api/v1/sites', query_string={'region': 'Yucatán'}).get_json()
        self.assertEqual(data['count'], 6)

    def test_reload(self):
        response = self.client.post('/api/v1/reload')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['total_steps'], 3)
        self.assertEqual(self.prediction_client.get_data.call_count, 2)

    def test_reload_requires_post(self):
        response = self.client.get('/api/v1/reload')
        self.assertEqual(response.status_code, 405)

    def test_not_found(self):
        response = self.client.get('/api/v1/unknown')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'Not found')


if __name__ == '__main__':
    unittest.main()
