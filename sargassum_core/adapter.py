"""
Data-shape adapter for the Sargassum Drift Visualization Engine.

Turns the raw prediction payload into the engine's ordered records:
- One Trajectory holding the predicted path
- The index-aligned ConcentrationSample sequence
- Combined TrajectoryStep records for the animation controller

The prediction service is assumed to return its iterations latest first
(not confirmed by the provider). The adapter
reverses the list so that index 0 is the earliest (open ocean) point and
the last index is the terminal (coastal) point.
"""

import logging
from typing import Dict, Any, List, Optional, Sequence, Tuple, Union

from .data_models import (
    ConcentrationSample, PredictionResponse, Trajectory, TrajectoryPoint,
    TrajectoryStep, PREDICTION_LOCATION
)
from .density import density_for_area
from .validation import validate_alignment, validate_prediction_payload

logger = logging.getLogger(__name__)

FALLBACK_LOCATION = 'progreso-mock'

# Fixed data set used whenever the prediction service cannot be reached
FALLBACK_SAMPLES: Tuple[Dict[str, Any], ...] = (
    {'latitude': 21.544, 'longitude': -89.386, 'area_km2': 500, 'density': 30, 'intensity': 'low'},
    {'latitude': 21.537, 'longitude': -89.305, 'area_km2': 800, 'density': 45, 'intensity': 'medium'},
    {'latitude': 21.552, 'longitude': -89.236, 'area_km2': 1200, 'density': 60, 'intensity': 'medium'},
    {'latitude': 21.576, 'longitude': -89.164, 'area_km2': 1800, 'density': 75, 'intensity': 'high'},
    {'latitude': 21.603, 'longitude': -89.097, 'area_km2': 2500, 'density': 90, 'intensity': 'high'},
)


class PayloadError(ValueError):
    """Raised when a prediction payload cannot be adapted."""


def fallback_trajectories() -> List[Trajectory]:
    """Get the fixed fallback trajectory (5 points)."""
    return [Trajectory(
        location=FALLBACK_LOCATION,
        points=[
            TrajectoryPoint(s['latitude'], s['longitude'], location=FALLBACK_LOCATION)
            for s in FALLBACK_SAMPLES
        ]
    )]


def fallback_concentrations() -> List[ConcentrationSample]:
    """Get the fixed fallback concentration samples (5 samples)."""
    return [
        ConcentrationSample.from_dict(dict(s, location=FALLBACK_LOCATION))
        for s in FALLBACK_SAMPLES
    ]


def _as_response(payload: Union[PredictionResponse, Dict[str, Any]]) -> PredictionResponse:
    if isinstance(payload, PredictionResponse):
        return payload

    errors = validate_prediction_payload(payload)
    if errors:
        raise PayloadError(f"Invalid prediction payload: {'; '.join(errors[:5])}")
    return PredictionResponse.from_dict(payload)


def _normalized_area(area: Optional[float]) -> float:
    if area is None:
        return 0.0
    if area < 0:
        logger.warning(f"Negative biomass area {area} normalized to 0")
        return 0.0
    return area


def to_trajectories(payload: Union[PredictionResponse, Dict[str, Any]],
                    location: str = PREDICTION_LOCATION) -> List[Trajectory]:
    """
    Build the trajectory of a prediction payload.

    Args:
        payload: PredictionResponse or its decoded JSON form
        location: Site tag given to every point

    Returns:
        A single trajectory with points ordered earliest to terminal

    Raises:
        PayloadError: If the payload is malformed
    """
    response = _as_response(payload)
    coordinates = list(reversed(response.predicted_coordinates))

    points = [TrajectoryPoint(c.latitude, c.longitude, location=location) for c in coordinates]

    if points:
        logger.debug(
            f"Trajectory reversed: first point (ocean) {points[0].position}, "
            f"last point (coast) {points[-1].position}"
        )
    logger.info(f"{len(points)} trajectory points from {response.iterations_count} iterations")

    return [Trajectory(location=location, points=points)]


def to_concentrations(payload: Union[PredictionResponse, Dict[str, Any]],
                      location: str = PREDICTION_LOCATION) -> List[ConcentrationSample]:
    """
    Build the concentration samples of a prediction payload.

    Samples are index-aligned with the points of ``to_trajectories`` for
    the same payload. Null biomass areas become 0.

    Args:
        payload: PredictionResponse or its decoded JSON form
        location: Site tag given to every sample

    Returns:
        Samples ordered earliest to terminal

    Raises:
        PayloadError: If the payload is malformed
    """
    response = _as_response(payload)
    coordinates = list(reversed(response.predicted_coordinates))

    samples = []
    for coord in coordinates:
        area = _normalized_area(coord.biomass_area)
        density, intensity = density_for_area(area)
        samples.append(ConcentrationSample(
            latitude=coord.latitude,
            longitude=coord.longitude,
            area_km2=area,
            density=density,
            intensity=intensity,
            location=location
        ))

    logger.info(f"{len(samples)} concentration samples processed")
    logger.debug(f"Biomass range (km2): {[s.area_km2 for s in samples]}")
    return samples


def adapt_prediction(payload: Union[PredictionResponse, Dict[str, Any], None]
                     ) -> Tuple[List[Trajectory], List[ConcentrationSample]]:
    """
    Adapt a prediction payload, substituting the fallback data on failure.

    Args:
        payload: Decoded payload, PredictionResponse, or None when the
            data source failed

    Returns:
        Tuple of (trajectories, samples)
    """
    if payload is None:
        logger.warning("No prediction payload, using fallback data")
        return fallback_trajectories(), fallback_concentrations()

    try:
        return to_trajectories(payload), to_concentrations(payload)
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Error adapting prediction payload: {e}")
        logger.warning("Using fallback data")
        return fallback_trajectories(), fallback_concentrations()


def build_steps(trajectories: Sequence[Trajectory],
                samples: Sequence[ConcentrationSample]) -> List[TrajectoryStep]:
    """
    Pair trajectory points with their concentration samples.

    Points are taken from all trajectories in order. When the two sequences
    disagree in length, only the common prefix is paired.

    Args:
        trajectories: Trajectories produced by the adapter
        samples: Concentration samples produced by the adapter

    Returns:
        One combined record per step, indexed in full-sequence order
    """
    errors = validate_alignment(trajectories, samples)
    for error in errors:
        logger.warning(f"Alignment: {error}")

    points = [p for t in trajectories for p in t.points]
    return [
        TrajectoryStep(index=i, point=point, sample=sample)
        for i, (point, sample) in enumerate(zip(points, samples))
    ]


def split_steps(steps: Sequence[TrajectoryStep]) -> Tuple[List[Trajectory], List[ConcentrationSample]]:
    """
    Split combined records back into trajectories and samples.

    Steps sharing a site tag form one trajectory, in order of first
    appearance.

    Args:
        steps: Combined step records, in order

    Returns:
        Tuple of (trajectories, samples)
    """
    trajectories: List[Trajectory] = []
    by_location: Dict[str, Trajectory] = {}
    for step in steps:
        trajectory = by_location.get(step.location)
        if trajectory is None:
            trajectory = Trajectory(location=step.location)
            by_location[step.location] = trajectory
            trajectories.append(trajectory)
        trajectory.points.append(step.point)

    return trajectories, [step.sample for step in steps]
