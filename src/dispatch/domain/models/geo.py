from __future__ import annotations

from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field, model_validator

from src.dispatch.errors import InvalidCoordinates

MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0


class GeoPoint(BaseModel):
    """GeoJSON point. ``coordinates`` are stored as [longitude, latitude]."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2)

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    @classmethod
    def from_lat_lng(cls, latitude: float, longitude: float) -> "GeoPoint":
        return cls(coordinates=[longitude, latitude])


class LocationInput(BaseModel):
    """Location as supplied by API callers.

    Either an unlabeled ``coordinates`` pair, which goes through the
    order-swap heuristic in :func:`normalize_coordinates`, or an explicit
    ``latitude``/``longitude`` pair, which is only range-checked.
    """

    coordinates: Optional[List[float]] = Field(None, min_length=2, max_length=2)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @model_validator(mode="after")
    def _require_one_form(self) -> "LocationInput":
        explicit = self.latitude is not None and self.longitude is not None
        if self.coordinates is None and not explicit:
            raise ValueError("location requires coordinates or latitude and longitude")
        return self

    def to_point(self) -> GeoPoint:
        if self.latitude is not None and self.longitude is not None:
            _check_ranges(self.latitude, self.longitude, received=[self.latitude, self.longitude])
            return GeoPoint.from_lat_lng(self.latitude, self.longitude)
        return normalize_coordinates(self.coordinates or [])


def _in_range(latitude: float, longitude: float) -> bool:
    return -MAX_LATITUDE <= latitude <= MAX_LATITUDE and -MAX_LONGITUDE <= longitude <= MAX_LONGITUDE


def _check_ranges(latitude: float, longitude: float, *, received: Sequence[float]) -> None:
    if not _in_range(latitude, longitude):
        raise InvalidCoordinates(
            error=f"received {list(received)}; expected [latitude, longitude] or [longitude, latitude]",
        )


def normalize_coordinates(coordinates: Sequence[float]) -> GeoPoint:
    """Turn a caller-supplied coordinate pair into a stored point.

    The pair is read as (latitude, longitude). If either value is out of range
    for that reading, the caller is assumed to have sent (longitude, latitude)
    and the values are swapped. The result must then be in range.

    Pairs where both readings are in range are never swapped, so a reversed
    pair like [10, 50] (meant as lng=10, lat=50) is stored as lat=10, lng=50.
    """

    if len(coordinates) != 2:
        raise InvalidCoordinates(error="coordinates must contain exactly two numbers")

    latitude, longitude = float(coordinates[0]), float(coordinates[1])
    if abs(latitude) > MAX_LATITUDE or abs(longitude) > MAX_LONGITUDE:
        latitude, longitude = longitude, latitude

    _check_ranges(latitude, longitude, received=coordinates)
    return GeoPoint.from_lat_lng(latitude, longitude)
