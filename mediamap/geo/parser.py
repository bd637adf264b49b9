"""
Coordinate-String Parser
========================

Best-effort extraction of a latitude/longitude pair from loosely formatted
text: typed into the upload form, recognised by OCR, or pulled out of
embedded image metadata. There is exactly one parser; callers only choose
which template list it runs with.

Templates are tried in order and the first candidate inside global bounds
wins:

1. ``labeled_decimal``   ``lat 22.889299 lon 22.169399``, ``Lat: 13.3° Long: 75.7°``
2. ``decimal_pair``      ``13.323528, 75.771964``, ``13.32 75.77`` or ``33.92° S 18.42° E``
3. ``labeled_dms_semicolon`` / ``dms_semicolon_pair``
                         ``lat: 26; 6; 22.88 lon: 28; 10; 22.16``
4. ``dms_symbols`` / ``dms_symbols_prefixed``
                         ``26°6'22.9"S 28°10'22.2"E``
5. fallback              first two numbers in the text, swapped when the
                         first one cannot be a latitude but the second can

OCR output gets an extra set of templates (:data:`OCR_QUIRK_TEMPLATES`),
inserted before the fallback. They cover artefacts observed in Tesseract
output for Windows "Properties" screenshots, such as seconds split by a
space (``22 8802000000052620`` for ``22.8802...``). They are data, not
grammar: extend or drop them after checking real OCR samples.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Pattern, Sequence

from mediamap.geo.coordinates import CoordinatePair, is_valid_latitude, is_valid_longitude
from mediamap.geo.dms import StringLiteral, to_decimal_degrees
from mediamap.geo.errors import InvalidFormatError

logger = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE

_NUM = r"[+-]?\d+(?:\.\d+)?"
_UNSIGNED = r"\d+(?:\.\d+)?"
# A decimal that is not the degrees part of a DMS value
_DECIMAL = rf"({_NUM})(?![\d.])(?![\s,;]*\d)(?!\s*[;'\"])(?!\s*°\s*\d)"
_LAT_LABEL = r"\b(?:latitude|lat)\s*:?\s*"
_LNG_LABEL = r"\b(?:longitude|long|lon|lng)\s*:?\s*"
_DMS_SEMICOLON = rf"({_UNSIGNED})\s*;\s*({_UNSIGNED})\s*;\s*({_UNSIGNED})"
_DMS_SYMBOLS = rf"({_UNSIGNED})\s*°\s*({_UNSIGNED})\s*'\s*({_UNSIGNED})\s*(?:\"|'')?"
_NUMBER_TOKEN = re.compile(_NUM)

_LOOKALIKES = str.maketrans({
    "º": "°",
    "˚": "°",
    "′": "'",
    "’": "'",
    "‘": "'",
    "´": "'",
    "″": '"',
    "“": '"',
    "”": '"',
})


@dataclass(frozen=True)
class ParseResult:
    """A parsed pair plus how it was found.

    Attributes:
        pair: The validated coordinates.
        template: Name of the template that produced them.
        latitude_explicit: A hemisphere letter accompanied the latitude.
        longitude_explicit: A hemisphere letter accompanied the longitude.
    """

    pair: CoordinatePair
    template: str
    latitude_explicit: bool = False
    longitude_explicit: bool = False


Builder = Callable[[re.Match, str], ParseResult]


@dataclass(frozen=True)
class CoordinateTemplate:
    name: str
    pattern: Pattern
    build: Builder


def normalize_text(text: str) -> str:
    """Fold symbol look-alikes and collapse whitespace (including newlines)."""
    return re.sub(r"\s+", " ", text.translate(_LOOKALIKES)).strip()


def _result(name: str, latitude: float, longitude: float, lat_ref=None, lng_ref=None) -> ParseResult:
    return ParseResult(
        pair=CoordinatePair.validated(latitude, longitude),
        template=name,
        latitude_explicit=lat_ref is not None,
        longitude_explicit=lng_ref is not None,
    )


def _dms(groups: Sequence[str], ref: Optional[str]) -> float:
    return to_decimal_degrees([StringLiteral(g) for g in groups], ref)


def _decimal(value: str, ref: Optional[str]) -> float:
    # A hemisphere letter decides the sign on its own
    if ref:
        value = value.lstrip("+-")
    return to_decimal_degrees(StringLiteral(value), ref)


def _build_decimal_with_refs(match: re.Match, name: str) -> ParseResult:
    lat, lat_ref, lng, lng_ref = match.groups()
    return _result(name, _decimal(lat, lat_ref), _decimal(lng, lng_ref), lat_ref, lng_ref)


def _build_decimal_pair(match: re.Match, name: str) -> ParseResult:
    g = match.groups()
    lat, lat_ref, lng, lng_ref = g[0:4] if g[0] is not None else g[4:8]
    return _result(name, _decimal(lat, lat_ref), _decimal(lng, lng_ref), lat_ref, lng_ref)


def _build_dms_suffix(match: re.Match, name: str) -> ParseResult:
    g = match.groups()
    lat_ref, lng_ref = g[3], g[7]
    return _result(name, _dms(g[0:3], lat_ref), _dms(g[4:7], lng_ref), lat_ref, lng_ref)


def _build_dms_prefix(match: re.Match, name: str) -> ParseResult:
    g = match.groups()
    lat_ref, lng_ref = g[0], g[4]
    return _result(name, _dms(g[1:4], lat_ref), _dms(g[5:8], lng_ref), lat_ref, lng_ref)


def _build_dms_unreferenced(match: re.Match, name: str) -> ParseResult:
    g = match.groups()
    return _result(name, _dms(g[0:3], None), _dms(g[3:6], None))


def _build_split_seconds(match: re.Match, name: str) -> ParseResult:
    lat_d, lat_m, lat_s, lat_frac, lng_d, lng_m, lng_s, lng_frac = match.groups()
    lat_seconds = f"{lat_s}.{lat_frac}"
    lng_seconds = f"{lng_s}.{lng_frac}" if lng_frac and "." not in lng_s else lng_s
    return _result(name, _dms([lat_d, lat_m, lat_seconds], None), _dms([lng_d, lng_m, lng_seconds], None))


DEFAULT_TEMPLATES: List[CoordinateTemplate] = [
    CoordinateTemplate(
        "labeled_decimal",
        re.compile(
            rf"{_LAT_LABEL}{_DECIMAL}\s*°?\s*(?:([NS])\b)?.*?{_LNG_LABEL}{_DECIMAL}\s*°?\s*(?:([EW])\b)?",
            _FLAGS,
        ),
        _build_decimal_with_refs,
    ),
    CoordinateTemplate(
        "decimal_pair",
        re.compile(
            rf"(?<![\d.;])(?<!;\s)(?<!\d\s)({_NUM})\s*°?\s*(?:([NS])\b)?\s*,\s*"
            rf"({_NUM})(?![\d.])(?!\s*;)(?!\s*°\s*\d)\s*°?\s*(?:([EW])\b)?"
            rf"|(?<![\d.;])(?<!;\s)(?<!\d\s)([+-]?\d+\.\d+)\s*°?\s*(?:([NS])\b)?\s+"
            rf"([+-]?\d+\.\d+)(?![\d.])(?!\s*;)(?!\s*°\s*\d)\s*°?\s*(?:([EW])\b)?",
            _FLAGS,
        ),
        _build_decimal_pair,
    ),
    CoordinateTemplate(
        "labeled_dms_semicolon",
        re.compile(
            rf"{_LAT_LABEL}{_DMS_SEMICOLON}\s*(?:([NS])\b)?.*?{_LNG_LABEL}{_DMS_SEMICOLON}\s*(?:([EW])\b)?",
            _FLAGS,
        ),
        _build_dms_suffix,
    ),
    CoordinateTemplate(
        "dms_semicolon_pair",
        re.compile(
            rf"(?<![\d.]){_DMS_SEMICOLON}\s*(?:([NS])\b)?[\s,]+{_DMS_SEMICOLON}\s*(?:([EW])\b)?",
            _FLAGS,
        ),
        _build_dms_suffix,
    ),
    CoordinateTemplate(
        "dms_symbols",
        re.compile(rf"{_DMS_SYMBOLS}\s*([NS])\b[\s,;]*{_DMS_SYMBOLS}\s*([EW])\b", _FLAGS),
        _build_dms_suffix,
    ),
    CoordinateTemplate(
        "dms_symbols_prefixed",
        re.compile(rf"\b([NS])\s*{_DMS_SYMBOLS}[\s,;]*([EW])\s*{_DMS_SYMBOLS}", _FLAGS),
        _build_dms_prefix,
    ),
]

OCR_QUIRK_TEMPLATES: List[CoordinateTemplate] = [
    # "Latitude 26; 6; 22 8802000000052620 ... Longitude 28; 10, 22.1693999999988733"
    CoordinateTemplate(
        "ocr_split_seconds",
        re.compile(
            rf"{_LAT_LABEL}(\d+)[;\s,]+(\d+)[;\s,]+(\d+)\s+(\d+)(?![\d.;])"
            rf".*?{_LNG_LABEL}(\d+)[;\s,]+(\d+)[;\s,]+({_UNSIGNED})(?:\s+(\d+)(?![\d.]))?",
            _FLAGS,
        ),
        _build_split_seconds,
    ),
    # "Latitude 26 6, 22.88 ... Longitude 28; 10 22.16"
    CoordinateTemplate(
        "ocr_labeled_dms_loose",
        re.compile(
            rf"{_LAT_LABEL}(\d+)[;\s,]+(\d+)[;\s,]+({_UNSIGNED}).*?"
            rf"{_LNG_LABEL}(\d+)[;\s,]+(\d+)[;\s,]+({_UNSIGNED})",
            _FLAGS,
        ),
        _build_dms_unreferenced,
    ),
    # "26 6 22.88 28 10 22.16"
    CoordinateTemplate(
        "ocr_dms_loose_pair",
        re.compile(
            rf"(?<![\d.])(\d{{1,2}})[;\s,]+(\d{{1,2}})[;\s,]+(\d{{1,2}}(?:\.\d+)?)[^\d]+?"
            rf"(\d{{1,3}})[;\s,]+(\d{{1,2}})[;\s,]+(\d{{1,2}}(?:\.\d+)?)(?![\d.])",
        ),
        _build_dms_unreferenced,
    ),
]


def _first_two_numbers(text: str) -> Optional[ParseResult]:
    numbers = _NUMBER_TOKEN.findall(text)
    if len(numbers) < 2:
        return None

    latitude, longitude = float(numbers[0]), float(numbers[1])
    if abs(latitude) > 90 and abs(longitude) <= 90:
        latitude, longitude = longitude, latitude

    if is_valid_latitude(latitude) and is_valid_longitude(longitude):
        return ParseResult(CoordinatePair(latitude, longitude), "first_two_numbers")
    return None


class CoordinateParser:
    """Ordered-template coordinate parser.

    Args:
        templates: Templates tried in order before the fallback.
        fallback: Whether to finish with the first-two-numbers scan.
    """

    def __init__(
        self,
        templates: Iterable[CoordinateTemplate] = DEFAULT_TEMPLATES,
        fallback: bool = True,
    ) -> None:
        self.templates = list(templates)
        self.fallback = fallback

    def parse_detailed(self, text: Optional[str]) -> Optional[ParseResult]:
        """Parse text and report which template matched.

        Returns:
            The first in-bounds candidate, or None when nothing matches.
        """
        if not text or not isinstance(text, str):
            return None

        cleaned = normalize_text(text)
        if not cleaned:
            return None

        for template in self.templates:
            for match in template.pattern.finditer(cleaned):
                try:
                    result = template.build(match, template.name)
                except InvalidFormatError as exc:
                    logger.debug(f"Template '{template.name}' rejected {match.group(0)!r}: {exc}")
                    continue
                logger.debug(f"Template '{template.name}' matched {match.group(0)!r}")
                return result

        if self.fallback:
            return _first_two_numbers(cleaned)
        return None

    def parse(self, text: Optional[str]) -> Optional[CoordinatePair]:
        result = self.parse_detailed(text)
        return result.pair if result else None


default_parser = CoordinateParser()
ocr_parser = CoordinateParser(DEFAULT_TEMPLATES + OCR_QUIRK_TEMPLATES)


def parse(text: Optional[str]) -> Optional[CoordinatePair]:
    """Parse free text with the default templates.

    Example:
        >>> parse("13.323528, 75.771964")
        CoordinatePair(latitude=13.323528, longitude=75.771964)
        >>> parse("not a coordinate at all") is None
        True
    """
    return default_parser.parse(text)
