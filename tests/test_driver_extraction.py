"""
Tests for driver field extraction from CDLs and DOT medical certificates.
"""

import sys
from pathlib import Path
from datetime import datetime

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from extraction.driver import (
    REVIEW_NOTE,
    extract_cdl_restrictions,
    extract_driver_data,
    extract_endorsements,
    extract_medical_restrictions,
)

REFERENCE_DATE = datetime(2025, 6, 1)

CDL_TEXT = (
    "COMMERCIAL DRIVER LICENSE\n"
    "STATE: TX\n"
    "NAME: John Smith\n"
    "CDL NUMBER: TX12345678\n"
    "CLASS: A\n"
    "DOB: 05/12/1985\n"
    "ISSUED: 01/15/2023\n"
    "EXPIRES: 01/15/2028\n"
    "ENDORSEMENTS\n"
    "H - Hazardous Materials\n"
    "N - Tank Vehicle\n"
    "RESTRICTIONS\n"
    "NONE\n"
)

MEDICAL_TEXT = (
    "MEDICAL EXAMINER'S CERTIFICATE\n"
    "DRIVER NAME: Maria Garcia\n"
    "DATE OF BIRTH: 08/22/1979\n"
    "CERTIFICATE NUMBER: MC-2024-88123\n"
    "EXAMINER NAME: Dr. Robert Chen\n"
    "NATIONAL REGISTRY NUMBER: 1234567890\n"
    "EXAM DATE: 03/01/2025\n"
    "EXPIRATION DATE: 03/01/2027\n"
    "RESTRICTIONS: Corrective lenses\n"
    "EMPLOYEE ID: EMP-1042\n"
)


def test_cdl_fields():
    record = extract_driver_data(CDL_TEXT, "cdl", "smith_cdl.pdf", REFERENCE_DATE)
    assert record.first_name == "John"
    assert record.last_name == "Smith"
    assert record.cdl_number == "TX12345678"
    assert record.cdl_class == "A"
    assert record.cdl_state == "TX"
    assert record.date_of_birth == "1985-05-12"
    assert record.cdl_issue_date == "2023-01-15"
    assert record.cdl_expiration_date == "2028-01-15"
    assert record.cdl_restrictions == ()
    assert record.medical_cert_number is None
    assert "Extracted name: John Smith" in record.processing_notes
    assert not record.needs_review


def test_cdl_endorsement_scenario():
    record = extract_driver_data(CDL_TEXT, "cdl", "smith_cdl.pdf", REFERENCE_DATE)
    assert record.cdl_endorsements == ("H", "N")
    assert record.to_dict()["cdlEndorsements"] == ["H", "N"]


def test_cdl_confidence_sums_field_deltas():
    record = extract_driver_data(CDL_TEXT, "cdl", "smith_cdl.pdf", REFERENCE_DATE)
    # name, number, class, state, issue, expiry, endorsements, date of birth
    assert record.extraction_confidence == pytest.approx(0.5 + 0.2 + 0.2 + 0.15 + 0.1 + 0.1 + 0.15 + 0.15 + 0.1)


def test_medical_certificate_fields():
    record = extract_driver_data(MEDICAL_TEXT, "medical_certificate", "garcia_medical.pdf", REFERENCE_DATE)
    assert record.full_name == "Maria Garcia"
    assert record.date_of_birth == "1979-08-22"
    assert record.medical_cert_number == "MC-2024-88123"
    assert record.examiner_name == "Dr. Robert Chen"
    assert record.examiner_national_registry == "1234567890"
    assert record.medical_issue_date == "2025-03-01"
    assert record.medical_expiration_date == "2027-03-01"
    assert record.medical_restrictions == ("Corrective lenses",)
    assert record.employee_id == "EMP-1042"
    assert record.cdl_number is None
    assert not record.needs_review


def test_missing_name_needs_review():
    text = "CDL NUMBER: TX12345678\nCLASS: A\nSTATE: TX\nEXPIRES: 01/15/2028\n"
    record = extract_driver_data(text, "cdl", "scan.pdf", REFERENCE_DATE)
    assert record.first_name is None
    assert record.needs_review
    assert REVIEW_NOTE in record.processing_notes


def test_wrong_type_raises():
    with pytest.raises(ValueError):
        extract_driver_data(CDL_TEXT, "registration")


def test_endorsement_duplicates_removed():
    text = "ENDORSEMENTS\nH - Hazardous Materials\nN - Tank Vehicle\nH - Hazardous Materials\n"
    assert extract_endorsements(text) == ("H", "N")


def test_compact_endorsements():
    assert extract_endorsements("CLASS: A  ENDORSEMENTS: T, N\n") == ("T", "N")
    assert extract_endorsements("CLASS: A\n") is None


def test_cdl_restriction_lines():
    text = "RESTRICTIONS\nL - No air brake equipped CMV\nE - No manual transmission\n"
    assert extract_cdl_restrictions(text) == ("L - No air brake equipped CMV", "E - No manual transmission")
    assert extract_cdl_restrictions("RESTRICTIONS\nNONE\n") == ()
    assert extract_cdl_restrictions("CLASS: A\n") is None


def test_medical_restrictions():
    assert extract_medical_restrictions("RESTRICTIONS: NONE\n") == ()
    assert extract_medical_restrictions("Must wear corrective lenses while driving\n") == ("corrective lenses",)
    assert extract_medical_restrictions("LIMITATIONS: Hearing aid, Corrective lenses\n") == (
        "Hearing aid", "Corrective lenses",
    )
    assert extract_medical_restrictions("no limits listed") is None
