"""Geofence checks for attendance redemption."""

import math
from enum import Enum
from typing import Optional

from config import GEOFENCE_RADIUS_METERS
from schemas.roll_call import Coordinates

# Mean Earth radius in metres
EARTH_RADIUS_METERS = 6371000.0


class GeofenceStatus(str, Enum):
    OK = "ok"
    MISSING_COORDINATES = "missing_coordinates"
    OUT_OF_RANGE = "out_of_range"


def haversine_distance(origin: Coordinates, target: Coordinates) -> float:
    """Great-circle distance between two points.

    Args:
        origin: First point.
        target: Second point.

    Returns:
        Distance in metres.
    """
    phi1 = math.radians(origin.latitude)
    phi2 = math.radians(target.latitude)
    dphi = math.radians(target.latitude - origin.latitude)
    dlambda = math.radians(target.longitude - origin.longitude)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def validate_geofence(
    geofence: Optional[Coordinates],
    coordinates: Optional[Coordinates],
    radius_meters: float = GEOFENCE_RADIUS_METERS,
) -> GeofenceStatus:
    """Check submitted coordinates against a code's geofence.

    Codes issued without a location accept any (or no) coordinates. The
    radius is inclusive: a student exactly ``radius_meters`` away passes.

    Args:
        geofence: Center point stored with the code, if any.
        coordinates: Location submitted by the student, if any.
        radius_meters: Maximum allowed distance.

    Returns:
        GeofenceStatus describing the result.
    """
    if geofence is None:
        return GeofenceStatus.OK
    if coordinates is None:
        return GeofenceStatus.MISSING_COORDINATES
    if haversine_distance(geofence, coordinates) > radius_meters:
        return GeofenceStatus.OUT_OF_RANGE
    return GeofenceStatus.OK
