"""
Tests for the coordinate-string parser.
"""

import pytest

from mediamap.geo.coordinates import CoordinatePair
from mediamap.geo.parser import CoordinateParser, default_parser, ocr_parser, parse

pytestmark = pytest.mark.unit


# =============================================================================
# TEMPLATES
# =============================================================================

def test_labeled_decimal():
    assert parse("lat 22.889299 lon 22.169399") == CoordinatePair(22.889299, 22.169399)


@pytest.mark.parametrize(
    "text",
    [
        "Lat: 13.323528° Long: 75.771964°",
        "latitude 13.323528 longitude 75.771964",
        "LAT:13.323528 LNG:75.771964",
    ],
)
def test_labeled_decimal_variants(text):
    pair = parse(text)
    assert pair.latitude == pytest.approx(13.323528)
    assert pair.longitude == pytest.approx(75.771964)


def test_labeled_decimal_with_hemisphere_suffix():
    result = default_parser.parse_detailed("lat 33.9249 S lon 18.4241 E")
    assert result.pair.latitude == pytest.approx(-33.9249)
    assert result.pair.longitude == pytest.approx(18.4241)
    assert result.latitude_explicit and result.longitude_explicit


def test_decimal_pair_comma():
    assert parse("13.323528, 75.771964") == CoordinatePair(13.323528, 75.771964)


def test_decimal_pair_space_needs_decimals():
    assert parse("-26.106358 28.172825") == CoordinatePair(-26.106358, 28.172825)
    assert default_parser.parse_detailed("-26.106358 28.172825").template == "decimal_pair"


@pytest.mark.parametrize(
    "text",
    [
        "26.1064 S, 28.1729 E",
        "26.1064S,28.1729E",
        "26.1064° S 28.1729° E",
    ],
)
def test_decimal_pair_with_hemisphere_letters(text):
    result = default_parser.parse_detailed(text)
    assert result.template == "decimal_pair"
    assert result.pair == CoordinatePair(-26.1064, 28.1729)
    assert result.latitude_explicit and result.longitude_explicit


def test_decimal_pair_western_hemisphere():
    assert parse("33.9249° S 18.4241° W") == CoordinatePair(-33.9249, -18.4241)
    assert parse("40.4461 N, 79.9822 W") == CoordinatePair(40.4461, -79.9822)


def test_decimal_pair_without_letters_is_not_explicit():
    result = default_parser.parse_detailed("-26.1064, 28.1729")
    assert result.pair == CoordinatePair(-26.1064, 28.1729)
    assert not result.latitude_explicit


@pytest.mark.parametrize(
    "text",
    ["lat -26.1 S lon 28 E", "lat 26.1 S lon 28 E", "-26.1 S, +28 E"],
)
def test_hemisphere_letter_decides_sign(text):
    assert parse(text) == CoordinatePair(-26.1, 28.0)


def test_labeled_semicolon_dms():
    result = default_parser.parse_detailed("lat: 26; 6; 22.889299 lon: 28; 10; 22.169399")
    assert result.template == "labeled_dms_semicolon"
    assert result.pair.latitude == pytest.approx(26.106358, abs=1e-6)
    assert result.pair.longitude == pytest.approx(28.172825, abs=1e-6)
    assert not result.latitude_explicit


def test_unlabeled_semicolon_pair():
    result = default_parser.parse_detailed("26; 6; 22.889299 S, 28; 10; 22.169399 E")
    assert result.template == "dms_semicolon_pair"
    assert result.pair.latitude == pytest.approx(-26.106358, abs=1e-6)
    assert result.latitude_explicit


def test_symbol_dms():
    pair = parse("26°6'22.9\"S 28°10'22.2\"E")
    assert pair.latitude == pytest.approx(-26.10636, abs=1e-5)
    assert pair.longitude == pytest.approx(28.17283, abs=1e-5)


def test_symbol_dms_with_lookalike_characters():
    pair = parse("26º6′22.9″S 28º10′22.2″E")
    assert pair.latitude == pytest.approx(-26.10636, abs=1e-5)


def test_symbol_dms_western_hemisphere():
    pair = parse("40°26'46\"N 79°58'56\"W")
    assert pair.latitude == pytest.approx(40.446111, abs=1e-5)
    assert pair.longitude == pytest.approx(-79.982222, abs=1e-5)


def test_multiline_text():
    assert parse("Latitude: 13.323528\nLongitude: 75.771964") == CoordinatePair(13.323528, 75.771964)


# =============================================================================
# FALLBACK AND REJECTION
# =============================================================================

def test_fallback_swaps_when_first_number_is_a_longitude():
    result = default_parser.parse_detailed("GPS 120.5 / 45.25")
    assert result.template == "first_two_numbers"
    assert result.pair == CoordinatePair(45.25, 120.5)


def test_no_coordinates():
    assert parse("not a coordinate at all") is None


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_input(text):
    assert parse(text) is None


def test_out_of_range_is_rejected():
    assert parse("lat 95.0 lon 200.0") is None


def test_fallback_can_be_disabled():
    parser = CoordinateParser(fallback=False)
    assert parser.parse("GPS 120.5 / 45.25") is None


@pytest.mark.parametrize(
    "original",
    [
        CoordinatePair(12.345678, -45.0),
        CoordinatePair(90.0, 180.0),
        CoordinatePair(-90.0, -180.0),
        CoordinatePair(90.0, -180.0),
        CoordinatePair(-90.0, 180.0),
        CoordinatePair(0.0, 0.0),
        CoordinatePair(-26.106358, -28.172825),
        CoordinatePair(-0.5, 0.5),
    ],
)
def test_round_trip_through_format(original):
    assert parse(original.format()) == original


# =============================================================================
# OCR QUIRKS
# =============================================================================

OCR_PROPERTIES_TEXT = """
GPS
Latitude 26; 6; 22 8802000000052620
Longitude 28; 10, 22.1693999999988733
Altitude 1604
"""


def test_ocr_split_seconds():
    result = ocr_parser.parse_detailed(OCR_PROPERTIES_TEXT)
    assert result.template == "ocr_split_seconds"
    assert result.pair.latitude == pytest.approx(26.106356, abs=1e-5)
    assert result.pair.longitude == pytest.approx(28.172825, abs=1e-5)


def test_ocr_loose_separators():
    result = ocr_parser.parse_detailed("Latitude 26 6, 22.88 Longitude 28; 10 22.16")
    assert result.template == "ocr_labeled_dms_loose"
    assert result.pair.latitude == pytest.approx(26.10636, abs=1e-5)


def test_quirks_not_used_for_typed_text():
    result = default_parser.parse_detailed(OCR_PROPERTIES_TEXT)
    assert result is None or not result.template.startswith("ocr_")
