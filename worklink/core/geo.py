"""Geometry helpers for distance, map viewport fitting and simulated movement.

All functions are pure. Coordinates are degrees; distances are kilometers.
"""

import math
from collections.abc import Iterable
from typing import Self

from pydantic import BaseModel, model_validator

from worklink.core.config import Constants, settings
from worklink.domain.task import GeoPoint


class Bounds(BaseModel):
    """Axis-aligned latitude/longitude box."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @model_validator(mode="after")
    def validate_positive_span(self) -> Self:
        if self.max_lat <= self.min_lat or self.max_lng <= self.min_lng:
            msg = (
                f"Bounds must have a positive span, got lat {self.min_lat}..{self.max_lat} "
                f"lng {self.min_lng}..{self.max_lng}"
            )
            raise ValueError(msg)
        return self

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def width(self) -> float:
        return self.max_lng - self.min_lng


class ViewportPosition(BaseModel):
    """Marker position on the map canvas, in percent of its height and width."""

    top: float
    left: float


def distance_km(a_lat: float, a_lng: float, b_lat: float, b_lng: float) -> float:
    """Great-circle (haversine) distance between two points in kilometers."""
    to_rad = math.pi / 180
    d_lat = (b_lat - a_lat) * to_rad
    d_lng = (b_lng - a_lng) * to_rad
    h = math.sin(d_lat / 2) ** 2 + math.cos(a_lat * to_rad) * math.cos(b_lat * to_rad) * math.sin(d_lng / 2) ** 2
    return Constants.EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_between(a: GeoPoint, b: GeoPoint) -> float:
    return distance_km(a.lat, a.lng, b.lat, b.lng)


def _clamp(value: float, margin: tuple[float, float]) -> float:
    low, high = margin
    return max(low, min(high, value))


def project_to_viewport(
    point: GeoPoint,
    bounds: Bounds,
    *,
    margin: tuple[float, float] = Constants.VIEWPORT_MARGIN,
) -> ViewportPosition:
    """Map a point to percent offsets inside ``bounds``.

    Latitude is inverted because screen Y grows downward. Both offsets are clamped
    to ``margin`` so points outside the box stay at a sane position.
    """
    top = (bounds.max_lat - point.lat) / bounds.height * 100
    left = (point.lng - bounds.min_lng) / bounds.width * 100
    return ViewportPosition(top=_clamp(top, margin), left=_clamp(left, margin))


def fit_bounds(
    points: Iterable[GeoPoint],
    *,
    origin: GeoPoint,
    padding_ratio: float | None = None,
    min_delta: float | None = None,
) -> Bounds:
    """Smallest box around ``origin`` and ``points``, padded on every side.

    Each axis is expanded by ``padding_ratio`` of its span. An axis with zero span
    is expanded by ``min_delta`` instead, so the box always has a positive area.
    """
    padding_ratio = settings.map_padding_ratio if padding_ratio is None else padding_ratio
    min_delta = settings.map_min_delta_degrees if min_delta is None else min_delta

    min_lat = max_lat = origin.lat
    min_lng = max_lng = origin.lng
    for point in points:
        min_lat, max_lat = min(min_lat, point.lat), max(max_lat, point.lat)
        min_lng, max_lng = min(min_lng, point.lng), max(max_lng, point.lng)

    lat_padding = (max_lat - min_lat) * padding_ratio or min_delta
    lng_padding = (max_lng - min_lng) * padding_ratio or min_delta

    return Bounds(
        min_lat=min_lat - lat_padding,
        max_lat=max_lat + lat_padding,
        min_lng=min_lng - lng_padding,
        max_lng=max_lng + lng_padding,
    )


def interpolate_towards(
    current: GeoPoint,
    target: GeoPoint,
    fraction: float,
    *,
    epsilon_km: float | None = None,
) -> GeoPoint:
    """Move ``fraction`` of the remaining way from ``current`` to ``target``.

    Once the result is within ``epsilon_km`` of the target it snaps onto it, which
    makes the target a fixed point of repeated calls.
    """
    if not 0 < fraction <= 1:
        msg = f"fraction must be in (0, 1], got {fraction}"
        raise ValueError(msg)
    epsilon_km = settings.tracking_arrival_epsilon_km if epsilon_km is None else epsilon_km

    if distance_between(current, target) < epsilon_km:
        return target

    moved = GeoPoint(
        lat=current.lat + (target.lat - current.lat) * fraction,
        lng=current.lng + (target.lng - current.lng) * fraction,
    )
    if distance_between(moved, target) < epsilon_km:
        return target
    return moved
