"""
Validation utilities for the Sargassum Drift Visualization Engine.

This module provides validation functions for checking the integrity of
prediction payloads and of the sequences derived from them. Each function
returns a list of error messages; an empty list means the input is valid.
"""

from typing import List, Tuple, Any, Sequence
import json
import math
import os

from .data_models import ConcentrationSample, Trajectory


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_prediction_payload(payload: Any) -> List[str]:
    """
    Validate a raw prediction payload.

    Expected shape: {'predictedCoordinates': [{'latitude', 'longitude',
    'biomassArea'}, ...], 'iterationsCount': int}. A missing or null
    biomass area is allowed.

    Args:
        payload: Decoded JSON payload

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not isinstance(payload, dict):
        return [f"Payload must be an object, got {type(payload).__name__}"]

    coordinates = payload.get('predictedCoordinates')
    if not isinstance(coordinates, list):
        errors.append("Payload missing required list: predictedCoordinates")
        coordinates = []

    iterations = payload.get('iterationsCount')
    if iterations is not None and not _is_number(iterations):
        errors.append(f"iterationsCount must be a number, got {iterations!r}")

    for i, coord in enumerate(coordinates):
        if not isinstance(coord, dict):
            errors.append(f"Coordinate {i} must be an object")
            continue

        lat = coord.get('latitude')
        lon = coord.get('longitude')
        if not _is_number(lat) or math.isnan(lat):
            errors.append(f"Coordinate {i} has an invalid latitude: {lat!r}")
        elif not (-90 <= lat <= 90):
            errors.append(f"Coordinate {i} latitude must be between -90 and 90, got {lat}")
        if not _is_number(lon) or math.isnan(lon):
            errors.append(f"Coordinate {i} has an invalid longitude: {lon!r}")
        elif not (-180 <= lon <= 180):
            errors.append(f"Coordinate {i} longitude must be between -180 and 180, got {lon}")

        area = coord.get('biomassArea', coord.get('sargassumBiomass'))
        if area is not None and not _is_number(area):
            errors.append(f"Coordinate {i} has an invalid biomass area: {area!r}")

    return errors


def validate_alignment(trajectories: Sequence[Trajectory],
                       samples: Sequence[ConcentrationSample]) -> List[str]:
    """
    Validate that trajectory points and concentration samples line up.

    Points of all trajectories, in order, must match the samples index by
    index: same coordinate and same site tag.

    Args:
        trajectories: Trajectories produced by the adapter
        samples: Concentration samples produced by the adapter

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    points = [p for t in trajectories for p in t.points]

    if len(points) != len(samples):
        errors.append(
            f"Trajectory has {len(points)} points but there are {len(samples)} samples"
        )

    for i, (point, sample) in enumerate(zip(points, samples)):
        if point.position != sample.position:
            errors.append(f"Step {i}: point {point.position} does not match sample {sample.position}")
        if point.location != sample.location:
            errors.append(f"Step {i}: location '{point.location}' does not match '{sample.location}'")

    return errors


def validate_json_file(filepath: str) -> Tuple[bool, List[str]]:
    """
    Validate that a file exists and contains a valid prediction payload.

    Args:
        filepath: Path to the JSON file

    Returns:
        Tuple of (is_valid, error_messages)
    """
    if not os.path.exists(filepath):
        return False, [f"File does not exist: {filepath}"]

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        return False, [f"Invalid JSON format: {e}"]
    except OSError as e:
        return False, [f"Error reading file: {e}"]

    errors = validate_prediction_payload(payload)
    return len(errors) == 0, errors
