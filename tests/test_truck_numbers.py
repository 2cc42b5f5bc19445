"""
Tests for truck number resolution.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from extraction.models import ExtractedVehicleRecord
from truck_numbers import (
    HIGH,
    LOW,
    MEDIUM,
    TruckNumberResult,
    display_number,
    find_duplicate_truck_numbers,
    parse_from_document_text,
    parse_from_license_plate,
    parse_truck_number,
    select_best,
    validate_truck_number,
)


def test_fleet_plates_are_high_confidence():
    for plate, expected in (
        ("TRK001", "Truck #001"),
        ("TRK-047", "Truck #047"),
        ("047TRK", "Truck #047"),
        ("FLEET12", "Truck #012"),
        ("UNIT99", "Truck #099"),
    ):
        result = parse_from_license_plate(plate)
        assert result.truck_number == expected, plate
        assert result.confidence == HIGH
        assert not result.needs_review


def test_trailing_digits_are_medium_and_need_review():
    result = parse_from_license_plate("ABC123")
    assert result.truck_number == "Truck #123"
    assert result.confidence == MEDIUM
    assert result.needs_review


def test_plate_without_number_is_low():
    result = parse_from_license_plate("XYZ")
    assert result.truck_number == ""
    assert result.confidence == LOW
    assert not result.accepted


def test_plate_wins_over_vin():
    result = parse_truck_number(vin="1HGBH41JXMN109186", license_plate="TRK047")
    assert result.truck_number == "Truck #047"
    assert result.source == "license_plate"


def test_dot_number_fallback():
    result = parse_truck_number(dot_number="1234567")
    assert result.truck_number == "Truck #567"
    assert result.confidence == MEDIUM
    assert result.source == "dot_number"


def test_vin_serial_is_low_confidence():
    result = parse_truck_number(vin="1HGBH41JXMN109186")
    assert result.truck_number == "Truck #186"
    assert result.confidence == LOW
    assert result.source == "vin_pattern"


def test_generated_unit_number():
    result = parse_truck_number(vin="1HGBH41JXMN1091AB")
    assert result.truck_number == "Unit 091"
    assert result.source == "generated"
    assert result.needs_review


def test_document_text_labels():
    results = parse_from_document_text("TRUCK #47\nVIN: 1HGBH41JXMN109186")
    assert [r.truck_number for r in results] == ["Truck #047"]
    assert results[0].confidence == HIGH


def test_vin_after_vehicle_label_is_not_a_truck_number():
    assert parse_from_document_text("VEHICLE: 1HGBH41JXMN109186") == []


def test_document_plate_label_and_duplicates():
    results = parse_from_document_text("LICENSE PLATE: TRK047\nUNIT 47")
    assert len(results) == 1
    assert results[0].source == "document_license_plate"


def test_select_best_prefers_high():
    medium = TruckNumberResult("Truck #123", MEDIUM, "license_plate", "ABC123", True)
    high = TruckNumberResult("Truck #047", HIGH, "document_text", "TRUCK 47")
    assert select_best([medium, high]) == high
    assert select_best([medium]) == medium
    assert select_best([]) is None


def test_validate_truck_number():
    assert validate_truck_number("truck 47") == (True, "Truck #047")
    assert validate_truck_number("Unit #47") == (True, "Truck #047")
    assert validate_truck_number("#5") == (True, "Truck #005")
    assert validate_truck_number("T12") == (True, "Truck #012")
    assert validate_truck_number("abc") == (False, "abc")
    assert validate_truck_number("1000") == (False, "1000")


def test_display_number():
    assert display_number("Truck #047") == "#047"
    assert display_number("") == ""


def test_find_duplicate_truck_numbers():
    vehicles = [
        ExtractedVehicleRecord(vin="1HGBH41JXMN109186", truck_number="Truck #047"),
        ExtractedVehicleRecord(vin="3HGCM82633A004352", truck_number="Truck #047"),
        ExtractedVehicleRecord(vin="1FUJGLDR5CLBP8834", truck_number="Truck #012"),
    ]
    assert find_duplicate_truck_numbers(vehicles) == {
        "Truck #047": ["1HGBH41JXMN109186", "3HGCM82633A004352"],
    }
