"""
Tests for vehicle and driver record validation.
"""

import sys
from pathlib import Path
from datetime import datetime

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from extraction.models import ExtractedDriverRecord, ExtractedVehicleRecord
from validator import (
    validate_date_of_birth,
    validate_driver_record,
    validate_vehicle_record,
    validate_vin,
    vin_check_digit_valid,
)

REFERENCE_DATE = datetime(2025, 6, 1)


def _fields(issues):
    return [issue.field for issue in issues]


def _registration(**overrides):
    values = dict(
        vin="1HGBH41JXMN109186",
        license_plate="ABC1234",
        registration_state="TX",
        registration_expiry="12/31/2026",
        document_type="registration",
    )
    values.update(overrides)
    return ExtractedVehicleRecord(**values)


def _medical(**overrides):
    values = dict(
        first_name="Maria",
        last_name="Garcia",
        employee_id="EMP-1042",
        medical_cert_number="MC-2024-88123",
        medical_issue_date="2025-03-01",
        medical_expiration_date="2027-03-01",
        examiner_name="Dr. Robert Chen",
        examiner_national_registry="1234567890",
        document_type="medical_certificate",
    )
    values.update(overrides)
    return ExtractedDriverRecord(**values)


def _cdl(**overrides):
    values = dict(
        first_name="John",
        last_name="Smith",
        employee_id="EMP-2001",
        cdl_number="TX12345678",
        cdl_class="A",
        cdl_state="TX",
        cdl_expiration_date="2028-01-15",
        document_type="cdl",
    )
    values.update(overrides)
    return ExtractedDriverRecord(**values)


# ---------------------------------------------------------------------------
# VIN
# ---------------------------------------------------------------------------

def test_check_digit():
    assert vin_check_digit_valid("1HGBH41JXMN109186")
    assert not vin_check_digit_valid("3HGCM82633A004352")


def test_bad_check_digit_is_only_a_warning():
    result = validate_vin("3HGCM82633A004352")
    assert result.is_valid
    assert _fields(result.warnings) == ["vin"]


def test_vin_errors():
    assert not validate_vin("").is_valid
    assert "17 characters" in validate_vin("1HGBH41JXMN10918").errors[0].message
    assert "I, O, or Q" in validate_vin("1HGBH41JXMN1O9186").errors[0].message


# ---------------------------------------------------------------------------
# Vehicle records
# ---------------------------------------------------------------------------

def test_clean_registration_is_valid():
    result = validate_vehicle_record(_registration(), REFERENCE_DATE)
    assert result.is_valid
    assert result.warnings == []


def test_missing_registration_expiry_is_an_error():
    result = validate_vehicle_record(_registration(registration_expiry=None), REFERENCE_DATE)
    assert _fields(result.errors) == ["registrationExpiry"]


def test_unknown_document_skips_expiry_requirement():
    result = validate_vehicle_record(_registration(registration_expiry=None), REFERENCE_DATE, "unknown")
    assert result.is_valid
    assert result.errors == []


def test_past_expiry_is_a_warning():
    result = validate_vehicle_record(_registration(registration_expiry="03/15/2025"), REFERENCE_DATE)
    assert result.is_valid
    assert _fields(result.warnings) == ["registrationExpiry"]


def test_missing_vin_and_plate_are_not_errors():
    result = validate_vehicle_record(_registration(vin=None, license_plate=None), REFERENCE_DATE)
    assert result.is_valid
    assert _fields(result.warnings) == ["licensePlate"]


def test_invalid_state_is_an_error():
    result = validate_vehicle_record(_registration(registration_state="ZZ"), REFERENCE_DATE)
    assert _fields(result.errors) == ["registrationState"]


def test_unusual_year_is_a_warning():
    result = validate_vehicle_record(_registration(year=1985), REFERENCE_DATE)
    assert result.is_valid
    assert _fields(result.warnings) == ["year"]


def test_insurance_rules():
    record = ExtractedVehicleRecord(
        vin="1HGBH41JXMN109186",
        license_plate="ABC1234",
        insurance_expiry="01/01/2026",
        coverage_amount=500000,
        document_type="insurance",
    )
    result = validate_vehicle_record(record, REFERENCE_DATE)
    assert _fields(result.errors) == ["policyNumber"]
    assert _fields(result.warnings) == ["coverageAmount"]


# ---------------------------------------------------------------------------
# Driver records
# ---------------------------------------------------------------------------

def test_clean_medical_certificate_is_valid():
    result = validate_driver_record(_medical(), REFERENCE_DATE)
    assert result.is_valid
    assert result.warnings == []


def test_medical_expiry_before_issue_is_an_error():
    result = validate_driver_record(_medical(medical_expiration_date="2025-01-01"), REFERENCE_DATE)
    assert "medicalExpirationDate" in _fields(result.errors)


def test_long_medical_validity_is_a_warning():
    result = validate_driver_record(_medical(medical_expiration_date="2027-06-01"), REFERENCE_DATE)
    assert result.is_valid
    assert _fields(result.warnings) == ["medicalExpirationDate"]


def test_medical_examiner_is_required():
    result = validate_driver_record(_medical(examiner_name=None), REFERENCE_DATE)
    assert _fields(result.errors) == ["examinerName"]


def test_missing_employee_id_is_a_warning():
    result = validate_driver_record(_cdl(employee_id=None), REFERENCE_DATE)
    assert result.is_valid
    assert _fields(result.warnings) == ["employeeId"]


def test_driver_name_rules():
    result = validate_driver_record(_cdl(first_name=None, last_name="Sm1th"), REFERENCE_DATE)
    assert _fields(result.errors) == ["firstName", "lastName"]


def test_cdl_required_fields():
    result = validate_driver_record(_cdl(cdl_class=None, cdl_state="ZZ"), REFERENCE_DATE)
    assert _fields(result.errors) == ["cdlClass", "cdlState"]


def test_unknown_endorsements_are_a_warning():
    result = validate_driver_record(_cdl(cdl_endorsements=("H", "Z")), REFERENCE_DATE)
    assert result.is_valid
    assert _fields(result.warnings) == ["cdlEndorsements"]


def test_date_of_birth_ages():
    assert not validate_date_of_birth("2010-01-01", REFERENCE_DATE).is_valid
    under_21 = validate_date_of_birth("2006-01-01", REFERENCE_DATE)
    assert under_21.is_valid and len(under_21.warnings) == 1
    assert validate_date_of_birth("1985-05-12", REFERENCE_DATE).warnings == []
    assert len(validate_date_of_birth("1900-01-01", REFERENCE_DATE).warnings) == 1
