"""
DMS / Rational Normalizer
=========================

Converts degree-minute-second and rational representations into signed
decimal degrees.

GPS values reach us in several shapes:

- EXIF (via Pillow): three ``IFDRational`` values, e.g.
  ``(26/1, 6/1, 22889299/1000000)`` plus a reference tag ``'S'``
- Windows "Properties" copy/paste: ``"26; 6; 22.8892999999952629"``
- OCR or typed text: numeric strings captured by the parser
- Already decimal: ``-26.106358``

Every component is first mapped onto one of three literal types
(:class:`NumericLiteral`, :class:`RationalLiteral`, :class:`StringLiteral`),
each of which knows how to turn itself into a float. Anything that cannot be
turned into a finite number raises :class:`InvalidFormatError`; nothing is
silently coerced to zero.

    decimal = degrees + minutes / 60 + seconds / 3600

and the result is negated for an ``S`` or ``W`` reference.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from mediamap.geo.errors import InvalidFormatError

HEMISPHERES = {"N": 1.0, "S": -1.0, "E": 1.0, "W": -1.0}
_HEMISPHERE_WORDS = {"NORTH": "N", "SOUTH": "S", "EAST": "E", "WEST": "W"}
_RATIONAL_TEXT = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)\s*$")


def _finite(value: float, source: Any) -> float:
    if not math.isfinite(value):
        raise InvalidFormatError(f"Component is not a finite number: {source!r}")
    return value


@dataclass(frozen=True)
class NumericLiteral:
    """A component that is already a number."""

    value: float

    def to_float(self) -> float:
        return _finite(float(self.value), self.value)


@dataclass(frozen=True)
class RationalLiteral:
    """A ``numerator / denominator`` component, as stored in EXIF."""

    numerator: float
    denominator: float

    def to_float(self) -> float:
        if self.denominator == 0:
            raise InvalidFormatError(
                f"Rational component has a zero denominator: {self.numerator}/0"
            )
        return _finite(self.numerator / self.denominator, self)


@dataclass(frozen=True)
class StringLiteral:
    """A textual component: ``"22.889"`` or ``"22889299/1000000"``."""

    text: str

    def to_float(self) -> float:
        rational = _RATIONAL_TEXT.match(self.text)
        if rational:
            return RationalLiteral(float(rational.group(1)), float(rational.group(2))).to_float()
        try:
            value = float(self.text.strip())
        except ValueError as exc:
            raise InvalidFormatError(f"Component is not numeric: {self.text!r}") from exc
        return _finite(value, self.text)


DmsComponent = Union[NumericLiteral, RationalLiteral, StringLiteral]


def component_from_raw(raw: Any) -> DmsComponent:
    """Map a raw metadata value onto the component union.

    Handles plain numbers, numeric strings and bytes, ``(num, den)`` pairs,
    ``{"numerator": .., "denominator": ..}`` mappings and objects exposing
    ``numerator`` / ``denominator`` (Pillow's ``IFDRational``, ``Fraction``).

    Raises:
        InvalidFormatError: If the value has none of the supported shapes.
    """
    if isinstance(raw, (NumericLiteral, RationalLiteral, StringLiteral)):
        return raw
    if isinstance(raw, bool) or raw is None:
        raise InvalidFormatError(f"Unsupported DMS component: {raw!r}")
    if isinstance(raw, (int, float)):
        return NumericLiteral(raw)
    if isinstance(raw, bytes):
        return StringLiteral(raw.decode("ascii", errors="replace").strip("\x00 "))
    if isinstance(raw, str):
        return StringLiteral(raw)
    if isinstance(raw, dict) and "numerator" in raw:
        return _rational(raw.get("numerator"), raw.get("denominator", 1))
    if hasattr(raw, "numerator") and hasattr(raw, "denominator"):
        return _rational(raw.numerator, raw.denominator)
    if isinstance(raw, (tuple, list)) and len(raw) == 2:
        return _rational(raw[0], raw[1])
    raise InvalidFormatError(f"Unsupported DMS component: {raw!r}")


def _rational(numerator: Any, denominator: Any) -> RationalLiteral:
    if isinstance(numerator, bool) or isinstance(denominator, bool):
        raise InvalidFormatError(f"Unsupported rational: {numerator!r}/{denominator!r}")
    try:
        return RationalLiteral(float(numerator), float(denominator))
    except (TypeError, ValueError) as exc:
        raise InvalidFormatError(
            f"Rational parts must be numeric: {numerator!r}/{denominator!r}"
        ) from exc


def parse_hemisphere(ref: Any) -> Optional[str]:
    """Normalise a hemisphere reference to ``N``, ``S``, ``E``, ``W`` or ``None``.

    EXIF references arrive as ``'S'``, ``b'S\\x00'`` or lowercase text;
    an empty or NUL-only value means "no reference".

    Raises:
        InvalidFormatError: For a non-empty value that is not a hemisphere.
    """
    if ref is None:
        return None
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="replace")
    text = str(ref).strip("\x00 \t\r\n").upper()
    if not text:
        return None
    text = _HEMISPHERE_WORDS.get(text, text)
    if text not in HEMISPHERES:
        raise InvalidFormatError(f"Unknown hemisphere reference: {ref!r}")
    return text


def split_dms_text(text: str) -> Sequence[DmsComponent]:
    """Split ``"26; 6; 22.889"`` into string components."""
    return [StringLiteral(part) for part in text.split(";") if part.strip()]


def to_decimal_degrees(value: Any, hemisphere_ref: Any = None) -> float:
    """Convert a coordinate value to signed decimal degrees.

    Args:
        value: A single decimal number or numeric string, a
            semicolon-separated DMS string, or a sequence of at least three
            degree/minute/second components in any supported shape.
        hemisphere_ref: Optional ``N``/``S``/``E``/``W`` (any case, str or bytes).

    Returns:
        Decimal degrees, negative for ``S`` and ``W``.

    Raises:
        InvalidFormatError: For fewer than three DMS components, a component
            that is not a finite number, or an unknown hemisphere.

    Example:
        >>> round(to_decimal_degrees([26, 6, 22.889299], "S"), 6)
        -26.106358
    """
    hemisphere = parse_hemisphere(hemisphere_ref)

    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace").strip("\x00 ")

    if isinstance(value, str) and ";" in value:
        components: Optional[Sequence[Any]] = split_dms_text(value)
    elif isinstance(value, (list, tuple)):
        components = value
    else:
        components = None

    if components is None:
        decimal = component_from_raw(value).to_float()
    elif len(components) < 3:
        raise InvalidFormatError(
            f"DMS value needs degrees, minutes and seconds, got {len(components)} component(s)"
        )
    else:
        degrees, minutes, seconds = (component_from_raw(c).to_float() for c in components[:3])
        decimal = degrees + minutes / 60.0 + seconds / 3600.0

    if hemisphere is not None and HEMISPHERES[hemisphere] < 0:
        decimal = -decimal
    return _finite(decimal, value)
