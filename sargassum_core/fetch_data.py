"""
Data acquisition module for the Sargassum Drift Visualization Engine.

This module handles fetching the drift prediction:
- Prediction payloads from the sargassum prediction API
- Prediction payloads from a local JSON file for offline runs

The service layer turns payloads into trajectories and concentration
samples. Failures are never raised to the caller: they are logged and
replaced with a fixed fallback data set. There is no automatic retry.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple

import requests

from . import config
from .adapter import adapt_prediction
from .data_models import ConcentrationSample, Trajectory, TrajectoryPoint
from .interfaces import PredictionSourceInterface
from .validation import validate_prediction_payload

# Set up logging
logger = logging.getLogger(__name__)


class ApiResponse:
    """Class to standardize responses across different data sources."""

    def __init__(self,
                 success: bool,
                 data: Dict[str, Any] = None,
                 error: str = None,
                 source: str = None,
                 timestamp: datetime = None):
        """
        Initialize an API response.

        Args:
            success: Whether the request was successful
            data: The data returned by the source
            error: Error message if the request failed
            source: Source of the data
            timestamp: Timestamp of the data
        """
        self.success = success
        self.data = data or {}
        self.error = error
        self.source = source
        self.timestamp = timestamp or datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert the response to a dictionary."""
        return {
            'success': self.success,
            'data': self.data,
            'error': self.error,
            'source': self.source,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApiResponse':
        """Create an ApiResponse from a dictionary."""
        data = dict(data)
        if 'timestamp' in data and isinstance(data['timestamp'], str):
            data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        return cls(**data)

    @classmethod
    def success_response(cls, data: Dict[str, Any], source: str = None) -> 'ApiResponse':
        """Create a successful API response."""
        return cls(success=True, data=data, source=source)

    @classmethod
    def error_response(cls, error: str, source: str = None) -> 'ApiResponse':
        """Create an error API response."""
        return cls(success=False, error=error, source=source)


class ApiClient(ABC):
    """Base class for API clients."""

    def __init__(self, base_url: Optional[str] = None, headers: Optional[Dict[str, str]] = None,
                 timeout: Optional[float] = None):
        """
        Initialize the API client.

        Args:
            base_url: Base URL for API requests
            headers: Headers sent with every request
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.headers = headers or {}
        self.timeout = timeout
        self.session = requests.Session()

    @abstractmethod
    def get_data(self, **kwargs) -> ApiResponse:
        """Get data from the API."""
        pass

    def validate_response(self, response: requests.Response) -> bool:
        """
        Validate the API response.

        Args:
            response: Response from the API

        Returns:
            True if the response is valid, False otherwise
        """
        return response.status_code == 200

    def handle_error(self, response: requests.Response) -> str:
        """
        Handle API error responses.

        Args:
            response: Response from the API

        Returns:
            Error message
        """
        try:
            error_data = response.json()
            if isinstance(error_data, dict) and 'error' in error_data:
                return error_data['error']
            else:
                return f"API error: {response.status_code} - {response.reason}"
        except ValueError:
            return f"API error: {response.status_code} - {response.reason}"

    def make_request(self, url: str, params: Dict[str, Any] = None) -> requests.Response:
        """
        Make an HTTP GET request.

        Args:
            url: URL to request
            params: Query parameters

        Returns:
            Response from the API
        """
        return self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)


class PredictionApiClient(ApiClient):
    """API client for the sargassum drift prediction service."""

    def __init__(self, base_url: Optional[str] = None):
        """Initialize the prediction API client."""
        source_config = config.DATA_SOURCES['prediction']
        super().__init__(
            base_url=base_url or source_config['url'],
            headers=source_config['headers'],
            timeout=source_config['timeout_seconds']
        )

    def get_data(self, iterations: Optional[int] = None, **kwargs) -> ApiResponse:
        """
        Get a drift prediction.

        Args:
            iterations: Number of prediction iterations

        Returns:
            ApiResponse with the prediction payload
        """
        if iterations is None:
            iterations = config.DATA_SOURCES['prediction']['iterations']
        params = {'iterations': iterations}

        logger.info(f"Requesting prediction from {self.base_url} ({iterations} iterations)")
        try:
            response = self.make_request(self.base_url, params=params)

            if self.validate_response(response):
                data = response.json()
                logger.info(
                    f"Prediction received: {len(data.get('predictedCoordinates', []))} coordinates, "
                    f"{data.get('iterationsCount')} iterations"
                )
                return ApiResponse.success_response(data, source='prediction_api')

            error_message = self.handle_error(response)
            logger.error(f"Prediction API error: {error_message}")
            return ApiResponse.error_response(error_message, source='prediction_api')

        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching prediction: {e}")
            return ApiResponse.error_response(str(e), source='prediction_api')


class StaticPredictionClient(ApiClient):
    """Client reading a prediction payload from a local JSON file."""

    def __init__(self, filepath: str):
        super().__init__()
        self.filepath = Path(filepath)

    def get_data(self, **kwargs) -> ApiResponse:
        """
        Read the prediction payload.

        Returns:
            ApiResponse with the payload, or an error response if the file
            is missing or unreadable
        """
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            logger.info(f"Prediction loaded from {self.filepath}")
            return ApiResponse.success_response(data, source='static_file')
        except (OSError, ValueError) as e:
            logger.error(f"Error reading prediction file {self.filepath}: {e}")
            return ApiResponse.error_response(str(e), source='static_file')


class SargassumService:
    """
    Service producing trajectories and concentration samples.

    ``get_trajectories`` fetches and adapts the prediction;
    ``get_concentration_points`` reuses the result of that call, so one load
    issues a single upstream request and both sequences come from the same
    payload. When the source fails, both fall back together until ``reset``
    is called.
    """

    def __init__(self, client: Optional[PredictionSourceInterface] = None):
        """
        Initialize the service.

        Args:
            client: Prediction source (PredictionApiClient if None)
        """
        if client is None:
            static_file = config.DATA_SOURCES['prediction'].get('static_file')
            client = StaticPredictionClient(static_file) if static_file else PredictionApiClient()
        self.client = client
        self._adapted: Optional[Tuple[List[Trajectory], List[ConcentrationSample]]] = None
        self.last_error: Optional[str] = None

    def reset(self) -> None:
        """Drop the cached prediction so the next call fetches again."""
        self._adapted = None

    def _fetch_payload(self) -> Optional[Dict[str, Any]]:
        response = self.client.get_data()
        if not response.success:
            self.last_error = response.error
            logger.error(f"Prediction source failed: {response.error}")
            return None

        errors = validate_prediction_payload(response.data)
        if errors:
            self.last_error = f"Invalid prediction payload: {'; '.join(errors[:5])}"
            logger.error(self.last_error)
            return None

        self.last_error = None
        return response.data

    def _load(self) -> Tuple[List[Trajectory], List[ConcentrationSample]]:
        if self._adapted is None:
            self._adapted = adapt_prediction(self._fetch_payload())
        return self._adapted

    def get_trajectories(self) -> List[Trajectory]:
        """
        Get the predicted trajectories.

        Returns:
            Trajectories, or the fallback trajectory if the source failed
        """
        return list(self._load()[0])

    def get_concentration_points(self) -> List[ConcentrationSample]:
        """
        Get the concentration samples of the prediction.

        Returns:
            Samples, or the fallback samples if the source failed
        """
        return list(self._load()[1])

    def get_trajectory_points(self) -> List[TrajectoryPoint]:
        """Get the points of every trajectory as one flat list."""
        return [p for t in self.get_trajectories() for p in t.points]

    def get_current_concentration(self) -> List[TrajectoryPoint]:
        """Get live coastal concentration points (none are published)."""
        return []
