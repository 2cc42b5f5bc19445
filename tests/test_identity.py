"""
Tests for VIN and license plate normalization.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from identity import clean_identifier, is_valid_vin, normalize_license_plate, normalize_vin


SAMPLE_VINS = [
    "1HGBH41JXMN109186",
    "1hgbh41jxmn109186",
    " 1HGB-H41J XMN109186 ",
    "1HGBH41JXMNI09I86",
    "1HGBH4IJXMNIO9186",
    "1HGBH41JXMN10918",
    "ABC123",
    "QQQQQQQQQQQQQQQQQ",
    "",
]


def test_clean_identifier_strips_and_uppercases():
    assert clean_identifier(" ab-c 12.3 ") == "ABC123"
    assert clean_identifier("") == ""
    assert clean_identifier(None) == ""


def test_valid_vin_passes_through():
    assert normalize_vin("1HGBH41JXMN109186") == "1HGBH41JXMN109186"
    assert normalize_vin("1hgbh41jxmn109186") == "1HGBH41JXMN109186"
    assert normalize_vin(" 1HGB-H41J XMN109186 ") == "1HGBH41JXMN109186"


def test_ocr_confused_vin_is_corrected():
    assert normalize_vin("1HGBH41JXMNI09I86") == "1HGBH41JXMN109186"


def test_chained_ocr_confusions_are_corrected():
    # O sits next to a digit, then the I before it becomes adjacent to the new 0
    assert normalize_vin("1HGBH4IJXMNIO9186") == "1HGBH41JXMN109186"


def test_short_values_are_left_alone():
    assert normalize_vin("ABCO1") == "ABCO1"
    assert normalize_vin("1HGBH41JXMN10918") == "1HGBH41JXMN10918"


def test_never_returns_invalid_seventeen_character_vin():
    for raw in SAMPLE_VINS:
        result = normalize_vin(raw)
        if len(result) == 17:
            assert is_valid_vin(result), raw


def test_normalize_vin_is_idempotent():
    for raw in SAMPLE_VINS:
        once = normalize_vin(raw)
        assert normalize_vin(once) == once, raw


def test_normalize_license_plate():
    assert normalize_license_plate("abc-123") == "ABC123"
    assert normalize_license_plate(" TRK 047 ") == "TRK047"
    assert normalize_license_plate("") == ""


def test_normalize_license_plate_is_idempotent():
    for raw in ("abc-123", "TRK 047", "7-XYZ-99", "A"):
        once = normalize_license_plate(raw)
        assert normalize_license_plate(once) == once


def test_is_valid_vin():
    assert is_valid_vin("1HGBH41JXMN109186")
    assert not is_valid_vin("1HGBH41JXMNI09186")
    assert not is_valid_vin("1HGBH41JXMN10918")
    assert not is_valid_vin("")
