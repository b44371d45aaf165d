"""
Pixel to geographic coordinate transform
"""

from typing import Iterable, List, Tuple

from .config import AGE_SETTINGS, PRECISION
from .models import CalibrationBounds, GeoStrike, PixelFrame, RawMarker


def pixel_to_latlng(
    pixel_x: float,
    pixel_y: float,
    frame: PixelFrame,
    bounds: CalibrationBounds
) -> Tuple[float, float]:
    """
    Affine map from image pixels to (lat, lng)

    The pixel origin is the top-left corner, so latitude decreases as y grows.
    No rounding is applied here.
    """
    lat = bounds.north - (pixel_y / frame.height) * (bounds.north - bounds.south)
    lng = bounds.west + (pixel_x / frame.width) * (bounds.east - bounds.west)
    return lat, lng


def round_coordinate(value: float, places: int = PRECISION) -> float:
    return round(value, places)


def age_to_minutes(age_bucket: int, minutes_per_bucket: int = AGE_SETTINGS['minutes_per_bucket']) -> int:
    return int(age_bucket) * int(minutes_per_bucket)


def to_geo_strike(
    marker: RawMarker,
    frame: PixelFrame,
    bounds: CalibrationBounds,
    minutes_per_bucket: int = AGE_SETTINGS['minutes_per_bucket'],
    places: int = PRECISION
) -> GeoStrike:
    lat, lng = pixel_to_latlng(marker.pixel_x, marker.pixel_y, frame, bounds)
    return GeoStrike(
        lat=round_coordinate(lat, places),
        lng=round_coordinate(lng, places),
        age_minutes=age_to_minutes(marker.age_bucket, minutes_per_bucket)
    )


def transform_markers(
    markers: Iterable[RawMarker],
    frame: PixelFrame,
    bounds: CalibrationBounds,
    minutes_per_bucket: int = AGE_SETTINGS['minutes_per_bucket'],
    places: int = PRECISION
) -> List[GeoStrike]:
    """Transform markers in order; bounds filtering is left to the caller"""
    return [
        to_geo_strike(marker, frame, bounds, minutes_per_bucket, places)
        for marker in markers
    ]
