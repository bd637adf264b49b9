"""Coordinate value type shared by every stage of the location pipeline."""

import math
from dataclasses import dataclass
from typing import Any

from mediamap.geo.errors import InvalidFormatError

LATITUDE_BOUNDS = (-90.0, 90.0)
LONGITUDE_BOUNDS = (-180.0, 180.0)


def is_valid_latitude(value: float) -> bool:
    return math.isfinite(value) and LATITUDE_BOUNDS[0] <= value <= LATITUDE_BOUNDS[1]


def is_valid_longitude(value: float) -> bool:
    return math.isfinite(value) and LONGITUDE_BOUNDS[0] <= value <= LONGITUDE_BOUNDS[1]


@dataclass(frozen=True)
class CoordinatePair:
    """A WGS 84 position in signed decimal degrees.

    Instances are plain values; use :meth:`validated` whenever a pair comes
    from untrusted input so that nothing out of range travels downstream.

    Attributes:
        latitude: Degrees north (negative for south), within [-90, 90].
        longitude: Degrees east (negative for west), within [-180, 180].
    """

    latitude: float
    longitude: float

    @classmethod
    def validated(cls, latitude: Any, longitude: Any) -> "CoordinatePair":
        """Build a pair, rejecting non-numeric, non-finite or out-of-range input.

        Raises:
            InvalidFormatError: If either value is unusable.
        """
        try:
            lat = float(latitude)
            lng = float(longitude)
        except (TypeError, ValueError) as exc:
            raise InvalidFormatError(
                f"Coordinates must be numeric: {latitude!r}, {longitude!r}"
            ) from exc

        if not is_valid_latitude(lat):
            raise InvalidFormatError(f"Latitude out of range: {lat}")
        if not is_valid_longitude(lng):
            raise InvalidFormatError(f"Longitude out of range: {lng}")
        return cls(latitude=lat, longitude=lng)

    @property
    def is_valid(self) -> bool:
        return is_valid_latitude(self.latitude) and is_valid_longitude(self.longitude)

    def rounded(self, precision: int) -> "CoordinatePair":
        return CoordinatePair(round(self.latitude, precision), round(self.longitude, precision))

    def format(self, precision: int = 6) -> str:
        """Render as ``"lat, lng"`` with a fixed number of decimals."""
        return f"{self.latitude:.{precision}f}, {self.longitude:.{precision}f}"

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}
