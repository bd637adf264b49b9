"""Regional hemisphere policies.

Coordinates read from OCR text, or from EXIF blocks that lost their
reference tags, often arrive as unsigned numbers. A regional policy may
decide which hemisphere such a value belongs to. This is a product
convenience for a deployment that serves one region, not a geodesy rule:
the parser and the normalizer stay region-agnostic and only the extractor
consults a policy, and only for axes without an explicit hemisphere marker.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Protocol, Tuple

from mediamap.geo.coordinates import CoordinatePair

logger = logging.getLogger(__name__)


class HemispherePolicy(Protocol):
    name: str

    def apply(
        self,
        pair: CoordinatePair,
        *,
        latitude_explicit: bool,
        longitude_explicit: bool,
    ) -> CoordinatePair:
        ...


@dataclass(frozen=True)
class NoHemisphereGuess:
    """Leave unsigned coordinates untouched."""

    name: str = "none"

    def apply(
        self,
        pair: CoordinatePair,
        *,
        latitude_explicit: bool,
        longitude_explicit: bool,
    ) -> CoordinatePair:
        return pair


@dataclass(frozen=True)
class RegionalHemisphereRule:
    """Assume a hemisphere for unsigned coordinates inside a bounding box.

    Attributes:
        name: Registry name used by the ``HEMISPHERE_POLICY`` setting.
        latitude_range: Inclusive range of the unsigned latitude.
        longitude_range: Inclusive range of the unsigned longitude.
        southern: Negate the latitude when it has no explicit marker.
        western: Negate the longitude when it has no explicit marker.
    """

    name: str
    latitude_range: Tuple[float, float]
    longitude_range: Tuple[float, float]
    southern: bool = True
    western: bool = False

    def matches(self, pair: CoordinatePair) -> bool:
        lat_lo, lat_hi = self.latitude_range
        lng_lo, lng_hi = self.longitude_range
        return lat_lo <= pair.latitude <= lat_hi and lng_lo <= pair.longitude <= lng_hi

    def apply(
        self,
        pair: CoordinatePair,
        *,
        latitude_explicit: bool,
        longitude_explicit: bool,
    ) -> CoordinatePair:
        if not self.matches(pair):
            return pair

        latitude, longitude = pair.latitude, pair.longitude
        if self.southern and not latitude_explicit:
            latitude = -latitude
        if self.western and not longitude_explicit:
            longitude = -longitude

        guessed = CoordinatePair(latitude, longitude)
        if guessed != pair:
            logger.info(
                f"Hemisphere guessed by '{self.name}' policy: "
                f"{pair.format()} -> {guessed.format()}"
            )
        return guessed


# Lat 22-35, lng 16-33 without a marker is read as southern Africa.
SOUTHERN_AFRICA = RegionalHemisphereRule(
    name="southern_africa",
    latitude_range=(22.0, 35.0),
    longitude_range=(16.0, 33.0),
    southern=True,
)

_POLICIES: Dict[str, HemispherePolicy] = {
    "none": NoHemisphereGuess(),
    SOUTHERN_AFRICA.name: SOUTHERN_AFRICA,
}


def register_policy(policy: HemispherePolicy) -> None:
    """Make a policy selectable through the ``HEMISPHERE_POLICY`` setting."""
    _POLICIES[policy.name] = policy


def get_policy(name: str) -> HemispherePolicy:
    """Look up a registered policy by name.

    Raises:
        ValueError: If no policy with that name is registered.
    """
    try:
        return _POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown hemisphere policy '{name}'. Available: {sorted(_POLICIES)}"
        ) from None
