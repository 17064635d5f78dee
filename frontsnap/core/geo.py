"""Spherical geodesy helpers: distance, initial bearing and destination point."""

import math

from frontsnap.models import Coordinate

EARTH_RADIUS_M = 6371000.0


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle (haversine) distance in meters."""
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def bearing_degrees(origin: Coordinate, target: Coordinate) -> float:
    """Initial great-circle bearing from origin to target, in [0, 360).

    Identical points yield 0.
    """
    phi1, phi2 = math.radians(origin.latitude), math.radians(target.latitude)
    dlambda = math.radians(target.longitude - origin.longitude)
    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def destination_point(origin: Coordinate, bearing: float, distance: float) -> Coordinate:
    """Point reached by travelling ``distance`` meters from origin on an initial ``bearing``."""
    delta = distance / EARTH_RADIUS_M
    theta = math.radians(bearing)
    phi1 = math.radians(origin.latitude)
    lambda1 = math.radians(origin.longitude)

    phi2 = math.asin(math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    longitude = (math.degrees(lambda2) + 540) % 360 - 180
    return Coordinate(math.degrees(phi2), longitude)


def angular_difference(a: float, b: float) -> float:
    """Shortest angle between two compass headings, in [0, 180]."""
    diff = abs(a - b)
    if diff > 180:
        diff = 360 - diff
    return diff
