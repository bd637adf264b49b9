"""
EXIF helpers built on Pillow.

Reads the GPS IFD (tag 0x8825) and the free-text fields that sometimes
carry coordinates typed in by a camera app or an editor.
"""

import io
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from PIL import ExifTags, Image, UnidentifiedImageError

from mediamap.geo.dms import parse_hemisphere, to_decimal_degrees
from mediamap.geo.errors import InvalidFormatError

logger = logging.getLogger(__name__)

_USER_COMMENT_PREFIXES = {
    b"ASCII\x00\x00\x00": "ascii",
    b"UNICODE\x00": "utf-16",
    b"\x00\x00\x00\x00\x00\x00\x00\x00": "utf-8",
}


@dataclass(frozen=True)
class GpsReading:
    """Decimal coordinates read from the GPS IFD.

    ``latitude_ref`` / ``longitude_ref`` are ``None`` when the file stored
    the magnitude without its hemisphere tag.
    """

    latitude: float
    longitude: float
    latitude_ref: Optional[str]
    longitude_ref: Optional[str]


def open_image(content: bytes) -> Image.Image:
    """Open image bytes with Pillow.

    Raises:
        InvalidFormatError: If Pillow cannot identify the payload.
    """
    try:
        image = Image.open(io.BytesIO(content))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidFormatError(f"Unreadable image: {exc}") from exc
    return image


def read_gps(image: Image.Image) -> Optional[GpsReading]:
    """Read latitude and longitude from the GPS IFD.

    Returns:
        The reading, or None when the image has no usable GPS position.

    Raises:
        InvalidFormatError: If GPS tags exist but cannot be converted.
    """
    exif = image.getexif()
    if not exif:
        return None

    gps = exif.get_ifd(ExifTags.IFD.GPSInfo)
    if not gps:
        return None

    lat_value = gps.get(ExifTags.GPS.GPSLatitude)
    lng_value = gps.get(ExifTags.GPS.GPSLongitude)
    if lat_value is None or lng_value is None:
        logger.debug("GPS IFD present without latitude/longitude tags")
        return None

    lat_ref = parse_hemisphere(gps.get(ExifTags.GPS.GPSLatitudeRef))
    lng_ref = parse_hemisphere(gps.get(ExifTags.GPS.GPSLongitudeRef))

    return GpsReading(
        latitude=to_decimal_degrees(_as_components(lat_value), lat_ref),
        longitude=to_decimal_degrees(_as_components(lng_value), lng_ref),
        latitude_ref=lat_ref,
        longitude_ref=lng_ref,
    )


def _as_components(value: Any) -> Any:
    # Pillow hands back a tuple of IFDRational; a lone rational is a decimal value
    if isinstance(value, tuple):
        return list(value)
    return value


def read_text_fields(image: Image.Image) -> List[str]:
    """Collect textual metadata that may contain a coordinate string.

    Looks at EXIF ImageDescription, UserComment and XPComment plus any text
    chunks (PNG ``tEXt``/``iTXt``) exposed through ``image.info``.
    """
    texts: List[str] = []
    exif = image.getexif()

    if exif:
        description = exif.get(ExifTags.Base.ImageDescription)
        if description:
            texts.append(_decode_text(description))

        xp_comment = exif.get(ExifTags.Base.XPComment)
        if xp_comment:
            texts.append(_decode_xp(xp_comment))

        user_comment = exif.get_ifd(ExifTags.IFD.Exif).get(ExifTags.Base.UserComment)
        if user_comment:
            texts.append(_decode_user_comment(user_comment))

    for key, value in image.info.items():
        if isinstance(value, str) and key not in ("icc_profile", "exif"):
            texts.append(f"{key} {value}")

    return [t.strip() for t in texts if t and t.strip()]


def _decode_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip("\x00")
    return str(value)


def _decode_xp(value: Any) -> str:
    # XP* tags are UTF-16LE, sometimes surfaced as a tuple of byte values
    if isinstance(value, (tuple, list)):
        value = bytes(value)
    if isinstance(value, bytes):
        return value.decode("utf-16-le", errors="replace").strip("\x00")
    return str(value)


def _decode_user_comment(value: Any) -> str:
    if not isinstance(value, bytes):
        return str(value)
    encoding = _USER_COMMENT_PREFIXES.get(value[:8])
    if encoding is None:
        return value.decode("utf-8", errors="replace").strip("\x00")
    return value[8:].decode(encoding, errors="replace").strip("\x00")
