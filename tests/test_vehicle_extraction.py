"""
Tests for vehicle field extraction from registration and insurance text.
"""

import re
import sys
from pathlib import Path
from datetime import datetime

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from extraction.models import ExtractedVehicleRecord
from extraction.rules import FieldRule, FieldStep, RecordBuilder
from extraction.vehicle import REVIEW_NOTE, extract_vehicle_data, find_dates

REFERENCE_DATE = datetime(2025, 1, 1)

SIMPLE_REGISTRATION = (
    "VIN: 1HGBH41JXMN109186\n"
    "EXPIRES: 03/15/2025\n"
    "MAKE: FREIGHTLINER\n"
)

FULL_REGISTRATION = (
    "TEXAS DEPARTMENT OF MOTOR VEHICLES\n"
    "VEHICLE REGISTRATION\n"
    "REGISTRATION NUMBER: TX-4829301\n"
    "VIN: 3HGCM82633A004352\n"
    "LICENSE PLATE: ABC-1234\n"
    "YEAR: 2021\n"
    "MAKE: FREIGHTLINER\n"
    "MODEL: CASCADIA\n"
    "EXPIRES: 12/31/2026\n"
    "REGISTERED OWNER: ACME LOGISTICS LLC\n"
)

INSURANCE_CARD = (
    "CERTIFICATE OF LIABILITY INSURANCE\n"
    "INSURANCE COMPANY: PROGRESSIVE COMMERCIAL\n"
    "POLICY NUMBER: PGR-7781234\n"
    "VIN: 3HGCM82633A004352\n"
    "VEHICLE: 2021 FREIGHTLINER CASCADIA\n"
    "COVERAGE: $1,000,000\n"
    "EFFECTIVE: 01/01/2025\n"
    "EXPIRATION DATE: 01/01/2026\n"
)


def _assert_review_rule(record):
    invalid = any(note.startswith("Validation error") for note in record.processing_notes)
    expected = record.extraction_confidence < 0.7 or not record.vin or invalid
    assert record.needs_review == expected
    assert (REVIEW_NOTE in record.processing_notes) == expected


# ---------------------------------------------------------------------------
# Rules and builder
# ---------------------------------------------------------------------------

def test_first_accepted_match_wins():
    rule = FieldRule(re.compile(r'ID (\w+)'), accept=lambda v: v.isdigit())
    assert rule.find("ID abc ID 123 ID 456") == "123"
    assert rule.find("nothing here") is None


def test_first_matching_rule_wins():
    step = FieldStep('make', (
        FieldRule(re.compile(r'MAKE: (\w+)')),
        FieldRule(re.compile(r'(FORD)')),
    ), confidence=0.15)
    assert step.evaluate("FORD truck MAKE: MACK") == "MACK"
    assert step.evaluate("FORD truck") == "FORD"


def test_builder_audits_confidence():
    builder = RecordBuilder(ExtractedVehicleRecord())
    builder.boost('vin', 0.25).penalize('validation', 0.8)
    assert builder.confidence == pytest.approx(0.6)
    assert builder.adjustments == [("+", "vin", 0.25), ("*", "validation", 0.8)]


def test_builder_never_mutates_the_input_record():
    original = ExtractedVehicleRecord()
    builder = RecordBuilder(original)
    builder.set('vin', "1HGBH41JXMN109186", confidence=0.25, note="found")
    assert original.vin is None
    assert original.processing_notes == ()
    assert builder.build().processing_notes == ("found",)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def test_registration_scenario():
    record = extract_vehicle_data(SIMPLE_REGISTRATION, "registration", "reg.pdf", REFERENCE_DATE)
    assert record.vin == "1HGBH41JXMN109186"
    assert "03/15/2025" in record.registration_expiry
    assert record.make == "FREIGHTLINER"
    assert record.extraction_confidence >= 1.0
    assert not record.needs_review
    assert record.document_type == "registration"
    assert record.source_file_name == "reg.pdf"


def test_full_registration_fields():
    record = extract_vehicle_data(FULL_REGISTRATION, "registration", "truck_registration.pdf", REFERENCE_DATE)
    assert record.vin == "3HGCM82633A004352"
    assert record.license_plate == "ABC1234"
    assert record.year == 2021
    assert record.make == "FREIGHTLINER"
    assert record.model == "CASCADIA"
    assert record.registration_number == "TX-4829301"
    assert record.registration_state == "TX"
    assert record.registration_expiry == "12/31/2026"
    assert record.registered_owner == "ACME LOGISTICS LLC"
    assert record.policy_number is None
    assert "Warning - vin: VIN check digit validation failed. Please verify VIN is correct" in record.processing_notes
    _assert_review_rule(record)


def test_year_is_first_four_digit_year_in_text():
    text = "VIN: 1HGBH41JXMN109186\nEXPIRES: 03/15/2025\nYEAR: 2019\n"
    record = extract_vehicle_data(text, "registration", "reg.pdf", REFERENCE_DATE)
    assert record.year == 2025


def test_labelled_plate_without_digits_is_kept():
    record = extract_vehicle_data("LICENSE PLATE: TRUCKER\n", "registration", "vanity.pdf", REFERENCE_DATE)
    assert record.license_plate == "TRUCKER"
    assert "Warning - licensePlate: License plate is required" not in record.processing_notes


def test_ocr_confused_vin_in_document():
    text = "VIN: 1HGBH41JXMNI09I86\nEXPIRES: 03/15/2026\n"
    record = extract_vehicle_data(text, "registration", "scan.pdf", REFERENCE_DATE)
    assert record.vin == "1HGBH41JXMN109186"
    assert "VIN corrected for OCR errors: 1HGBH41JXMNI09I86 -> 1HGBH41JXMN109186" in record.processing_notes


def test_missing_vin_needs_review():
    record = extract_vehicle_data("LICENSE PLATE: TRK047\n", "registration", "plate.pdf", REFERENCE_DATE)
    assert record.vin is None
    assert record.license_plate == "TRK047"
    assert record.truck_number == "Truck #047"
    assert record.needs_review
    assert "Validation error - registrationExpiry: Registration Expiry is required" in record.processing_notes
    _assert_review_rule(record)


def test_validation_error_applies_penalty():
    record = extract_vehicle_data("LICENSE PLATE: TRK047\n", "registration", "plate.pdf", REFERENCE_DATE)
    # 0.5 base + 0.15 plate + 0.15 truck number, then the 0.8 penalty
    assert record.extraction_confidence == pytest.approx(0.64)


def test_unknown_documents_skip_type_specific_fields():
    text = "VIN: 1HGBH41JXMN109186\nEXPIRES: 03/15/2026\nREGISTRATION NUMBER: TX-4829301\n"
    record = extract_vehicle_data(text, "unknown", "scan.pdf", REFERENCE_DATE)
    assert record.document_type == "registration"
    assert record.registration_expiry is None
    assert record.registration_number is None


def test_unknown_documents_do_not_require_registration_expiry():
    text = "VIN: 1HGBH41JXMN109186\nEXPIRES: 03/15/2026\nMAKE: FREIGHTLINER\nPLATE: ABC1234\n"
    record = extract_vehicle_data(text, "unknown", "scan.pdf", REFERENCE_DATE)
    assert not any(note.startswith("Validation error") for note in record.processing_notes)
    # 0.5 base + 0.25 VIN + 0.15 plate + 0.2 dates + 0.1 year + 0.15 make, no penalty
    assert record.extraction_confidence == pytest.approx(1.35)
    assert not record.needs_review


def test_unsupported_type_raises():
    with pytest.raises(ValueError):
        extract_vehicle_data(SIMPLE_REGISTRATION, "cdl")


def test_empty_text_never_raises():
    record = extract_vehicle_data("", "registration")
    assert record.vin is None
    assert record.needs_review


def test_extraction_is_deterministic():
    first = extract_vehicle_data(FULL_REGISTRATION, "registration", "a.pdf", REFERENCE_DATE)
    second = extract_vehicle_data(FULL_REGISTRATION, "registration", "a.pdf", REFERENCE_DATE)
    assert first == second


def test_find_dates_puts_labeled_expiry_first():
    assert find_dates(INSURANCE_CARD)[0] == "01/01/2026"


# ---------------------------------------------------------------------------
# Insurance
# ---------------------------------------------------------------------------

def test_insurance_fields():
    record = extract_vehicle_data(INSURANCE_CARD, "insurance", "insurance_policy.pdf", REFERENCE_DATE)
    assert record.document_type == "insurance"
    assert record.vin == "3HGCM82633A004352"
    assert record.insurance_carrier == "PROGRESSIVE COMMERCIAL"
    assert record.policy_number == "PGR-7781234"
    assert record.coverage_amount == 1000000
    assert record.insurance_expiry == "01/01/2026"
    assert record.registration_expiry is None
    assert record.year == 2021
    assert record.make == "FREIGHTLINER"
    assert record.model == "CASCADIA"
    assert record.truck_number is None
    _assert_review_rule(record)


def test_insurance_without_policy_number_needs_review():
    text = "INSURANCE CARRIER: GEICO\nVIN: 1HGBH41JXMN109186\nEXPIRATION: 12/31/2026\n"
    record = extract_vehicle_data(text, "insurance", "insurance.pdf", REFERENCE_DATE)
    assert record.insurance_carrier == "GEICO"
    assert record.needs_review
    assert "Validation error - policyNumber: Insurance policy number is required" in record.processing_notes
    _assert_review_rule(record)


def test_to_dict_uses_camel_case():
    record = extract_vehicle_data(SIMPLE_REGISTRATION, "registration", "reg.pdf", REFERENCE_DATE)
    data = record.to_dict()
    assert data["vin"] == "1HGBH41JXMN109186"
    assert data["documentType"] == "registration"
    assert isinstance(data["processingNotes"], list)
    assert "extractionConfidence" in data
