#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for the prediction clients and the sargassum service of the Sargassum
Drift Visualization Engine.

The network is never touched: requests are mocked.
"""

import os
import sys
import json
import shutil
import tempfile
import unittest
from unittest.mock import patch, MagicMock

import requests

# Add parent directory to path to import sargassum_core modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '.')))

from sargassum_core import config
from sargassum_core.adapter import FALLBACK_LOCATION
from sargassum_core.fetch_data import (
    ApiResponse, PredictionApiClient, SargassumService, StaticPredictionClient
)


PAYLOAD = {
    'predictedCoordinates': [
        {'latitude': 21.2, 'longitude': -86.8, 'biomassArea': 40.0},
        {'latitude': 21.6, 'longitude': -86.0, 'biomassArea': 12.5},
    ],
    'iterationsCount': 2
}


def mock_response(status_code=200, payload=None, reason='OK'):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.json.return_value = payload
    return response


class TestPredictionApiClient(unittest.TestCase):
    """Test cases for the HTTP prediction client."""

    def test_successful_request(self):
        client = PredictionApiClient()
        with patch.object(client.session, 'get', return_value=mock_response(payload=PAYLOAD)) as get:
            response = client.get_data()

        self.assertTrue(response.success)
        self.assertEqual(response.data, PAYLOAD)
        self.assertEqual(response.source, 'prediction_api')

        source_config = config.DATA_SOURCES['prediction']
        get.assert_called_once_with(
            source_config['url'],
            params={'iterations': 15},
            headers=source_config['headers'],
            timeout=source_config['timeout_seconds']
        )

    def test_http_error(self):
        client = PredictionApiClient()
        with patch.object(client.session, 'get',
                          return_value=mock_response(503, {'error': 'Service unavailable'})):
            response = client.get_data(iterations=5)

        self.assertFalse(response.success)
        self.assertEqual(response.error, 'Service unavailable')

    def test_http_error_without_body(self):
        client = PredictionApiClient()
        failing = mock_response(500, reason='Internal Server Error')
        failing.json.side_effect = ValueError('no json')
        with patch.object(client.session, 'get', return_value=failing):
            response = client.get_data()

        self.assertFalse(response.success)
        self.assertIn('500', response.error)

    def test_network_error(self):
        client = PredictionApiClient()
        with patch.object(client.session, 'get', side_effect=requests.ConnectionError('offline')):
            response = client.get_data()

        self.assertFalse(response.success)
        self.assertIn('offline', response.error)


class TestStaticPredictionClient(unittest.TestCase):
    """Test cases for the local file client."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp(prefix="sargassum_fetch_test_")

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_reads_file(self):
        path = os.path.join(self.test_dir, 'prediction.json')
        with open(path, 'w') as f:
            json.dump(PAYLOAD, f)

        response = StaticPredictionClient(path).get_data()
        self.assertTrue(response.success)
        self.assertEqual(response.data, PAYLOAD)

    def test_missing_file(self):
        response = StaticPredictionClient(os.path.join(self.test_dir, 'missing.json')).get_data()
        self.assertFalse(response.success)
        self.assertEqual(response.source, 'static_file')


class TestApiResponse(unittest.TestCase):
    """Test cases for the response wrapper."""

    def test_round_trip(self):
        response = ApiResponse.success_response({'a': 1}, source='test')
        restored = ApiResponse.from_dict(response.to_dict())
        self.assertTrue(restored.success)
        self.assertEqual(restored.data, {'a': 1})
        self.assertEqual(restored.timestamp, response.timestamp)


class TestSargassumService(unittest.TestCase):
    """Test cases for the service layer."""

    def test_single_fetch_per_load(self):
        client = MagicMock()
        client.get_data.return_value = ApiResponse.success_response(PAYLOAD)
        service = SargassumService(client)

        trajectories = service.get_trajectories()
        samples = service.get_concentration_points()

        client.get_data.assert_called_once()
        self.assertEqual(len(trajectories[0].points), 2)
        self.assertEqual(samples[0].area_km2, 12.5)
        self.assertIsNone(service.last_error)

    def test_reset_fetches_again(self):
        client = MagicMock()
        client.get_data.return_value = ApiResponse.success_response(PAYLOAD)
        service = SargassumService(client)

        service.get_trajectories()
        service.reset()
        service.get_trajectories()
        self.assertEqual(client.get_data.call_count, 2)

    def test_fallback_on_source_failure(self):
        client = MagicMock()
        client.get_data.return_value = ApiResponse.error_response('timeout')
        service = SargassumService(client)

        trajectories = service.get_trajectories()
        samples = service.get_concentration_points()

        self.assertEqual(len(trajectories[0].points), 5)
        self.assertEqual(len(samples), 5)
        self.assertEqual(trajectories[0].location, FALLBACK_LOCATION)
        self.assertEqual(service.last_error, 'timeout')

    def test_failed_load_is_not_retried(self):
        client = MagicMock()
        client.get_data.side_effect = [
            ApiResponse.error_response('timeout'),
            ApiResponse.success_response(PAYLOAD),
        ]
        service = SargassumService(client)

        trajectories = service.get_trajectories()
        samples = service.get_concentration_points()

        client.get_data.assert_called_once()
        self.assertEqual(trajectories[0].location, FALLBACK_LOCATION)
        self.assertEqual(len(samples), 5)
        self.assertTrue(all(s.location == FALLBACK_LOCATION for s in samples))
        self.assertEqual([p.position for p in trajectories[0].points],
                         [s.position for s in samples])
        self.assertEqual(service.last_error, 'timeout')

        # The next load after a reset asks the source again
        service.reset()
        self.assertEqual(len(service.get_concentration_points()), 2)
        self.assertIsNone(service.last_error)
        self.assertEqual(client.get_data.call_count, 2)

    def test_fallback_on_malformed_payload(self):
        client = MagicMock()
        client.get_data.return_value = ApiResponse.success_response({'predictedCoordinates': 7})
        service = SargassumService(client)

        self.assertEqual(len(service.get_concentration_points()), 5)
        self.assertIsNotNone(service.last_error)

    def test_trajectory_points_and_live_concentration(self):
        client = MagicMock()
        client.get_data.return_value = ApiResponse.success_response(PAYLOAD)
        service = SargassumService(client)

        self.assertEqual([p.position for p in service.get_trajectory_points()],
                         [(21.6, -86.0), (21.2, -86.8)])
        self.assertEqual(service.get_current_concentration(), [])

    @patch.dict(config.DATA_SOURCES['prediction'], {'static_file': 'prediction.json'})
    def test_default_client_uses_static_file(self):
        service = SargassumService()
        self.assertIsInstance(service.client, StaticPredictionClient)


if __name__ == '__main__':
    unittest.main()
