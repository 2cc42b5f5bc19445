"""
Record validation for extracted vehicle and driver documents.

Validation never raises on bad content. It returns errors (which cost the
record confidence and force review) and warnings (which are only noted).
Field names in issues use the camelCase names of the JSON contract.
"""

import re
import logging
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime

from dates import parse_date
from extraction.models import ExtractedDriverRecord, ExtractedVehicleRecord
from extraction.patterns import US_STATE_CODES, VALID_ENDORSEMENTS
from identity import VIN_PATTERN

logger = logging.getLogger(__name__)

# Minimum liability for interstate property carriers
DOT_MINIMUM_COVERAGE = 750000
MAX_MEDICAL_VALIDITY_DAYS = 730
MIN_VEHICLE_YEAR = 1990

VIN_TRANSLITERATION: Dict[str, int] = {
    **{str(d): d for d in range(10)},
    'A': 1, 'B': 2, 'C': 3, 'D': 4, 'E': 5, 'F': 6, 'G': 7, 'H': 8,
    'J': 1, 'K': 2, 'L': 3, 'M': 4, 'N': 5, 'P': 7, 'R': 9,
    'S': 2, 'T': 3, 'U': 4, 'V': 5, 'W': 6, 'X': 7, 'Y': 8, 'Z': 9,
}
VIN_WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)

NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z' .-]*$")
PLATE_FORMAT = re.compile(r'^[A-Z0-9\- ]{2,8}$', re.IGNORECASE)
CDL_NUMBER_FORMAT = re.compile(r'^[A-Z0-9\-]{8,20}$', re.IGNORECASE)
CERT_NUMBER_FORMAT = re.compile(r'^[A-Z0-9\-]{6,20}$', re.IGNORECASE)
REGISTRY_FORMAT = re.compile(r'^[A-Z0-9]{6,12}$', re.IGNORECASE)
EMPLOYEE_ID_FORMAT = re.compile(r'^[A-Z0-9\-]{3,20}$', re.IGNORECASE)


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    """Errors and warnings for one record."""
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, field_name: str, message: str, value: Any = None) -> None:
        self.errors.append(ValidationIssue(field_name, message, value))

    def warn(self, field_name: str, message: str, value: Any = None) -> None:
        self.warnings.append(ValidationIssue(field_name, message, value))

    def extend(self, other: "ValidationResult") -> "ValidationResult":
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


def vin_check_digit_valid(vin: str) -> bool:
    """Position 9 check digit (mod 11, 10 written as X)"""
    total = sum(VIN_TRANSLITERATION.get(char, 0) * weight for char, weight in zip(vin, VIN_WEIGHTS))
    remainder = total % 11
    expected = 'X' if remainder == 10 else str(remainder)
    return vin[8] == expected


def validate_vin(vin: str) -> ValidationResult:
    result = ValidationResult()
    if not vin:
        result.error('vin', 'VIN is required', vin)
        return result

    cleaned = re.sub(r'\s', '', vin).upper()
    if len(cleaned) != 17:
        result.error('vin', f'VIN must be exactly 17 characters, got {len(cleaned)}', vin)

    invalid = re.findall(r'[IOQ]', cleaned)
    if invalid:
        result.error('vin', f"VIN contains invalid characters: {', '.join(invalid)}. VINs cannot contain I, O, or Q", vin)
    elif len(cleaned) == 17 and not VIN_PATTERN.match(cleaned):
        result.error('vin', 'VIN contains invalid characters. Only letters and numbers allowed', vin)

    if len(cleaned) == 17 and VIN_PATTERN.match(cleaned) and not vin_check_digit_valid(cleaned):
        result.warn('vin', 'VIN check digit validation failed. Please verify VIN is correct', vin)

    return result


def validate_date_fields(
    values: Dict[str, Any],
    fields: List[Tuple[str, bool, str]],
    reference_date: datetime,
) -> ValidationResult:
    """
    Validate (field, required, label) date fields.

    Missing required dates and unparseable dates are errors; expiration
    dates before the reference date are warnings.
    """
    result = ValidationResult()
    for field_name, required, label in fields:
        value = values.get(field_name)
        if not value:
            if required:
                result.error(field_name, f'{label} is required', value)
            continue

        parsed = parse_date(str(value))
        if parsed is None:
            result.error(field_name, f'{label} is not a valid date', value)
            continue

        if 'expir' in field_name.lower() and parsed.replace(tzinfo=None) < reference_date:
            result.warn(field_name, f'{label} appears to be in the past', value)

    return result


def _age_in_years(birth: datetime, reference_date: datetime) -> int:
    return int((reference_date - birth).days / 365.25)


def validate_date_of_birth(dob: str, reference_date: datetime) -> ValidationResult:
    result = ValidationResult()
    birth = parse_date(dob)
    if birth is None:
        result.error('dateOfBirth', 'Date of Birth is not a valid date', dob)
        return result

    age = _age_in_years(birth.replace(tzinfo=None), reference_date)
    if age < 18:
        result.error('dateOfBirth', 'Driver must be at least 18 years old', dob)
    elif age < 21:
        result.warn('dateOfBirth', 'Driver is under 21 - interstate restrictions may apply', dob)
    if age > 100:
        result.warn('dateOfBirth', 'Age seems unusually high', dob)
    return result


def validate_vehicle_record(
    record: ExtractedVehicleRecord,
    reference_date: Optional[datetime] = None,
    document_type: Optional[str] = None,
) -> ValidationResult:
    """
    Validate a vehicle record against the rules for its document type.

    document_type is the type the document was declared as, when that differs
    from the record's own; 'unknown' documents skip the type-specific checks.
    """
    reference_date = reference_date or datetime.now()
    document_type = document_type or record.document_type
    result = ValidationResult()

    # Absence of a VIN is handled by the review rule, not as an error
    if record.vin:
        result.extend(validate_vin(record.vin))

    if not record.license_plate:
        result.warn('licensePlate', 'License plate is required')
    elif not PLATE_FORMAT.match(record.license_plate):
        result.warn('licensePlate', 'License plate format may be incorrect', record.license_plate)

    if record.registration_state and record.registration_state.upper() not in US_STATE_CODES:
        result.error('registrationState', 'Invalid US state code', record.registration_state)

    if record.year is not None:
        current_year = reference_date.year
        if record.year < MIN_VEHICLE_YEAR or record.year > current_year + 1:
            result.warn('year', f'Vehicle year {record.year} seems unusual', record.year)

    values = {
        'registrationExpiry': record.registration_expiry,
        'insuranceExpiry': record.insurance_expiry,
    }
    if document_type == 'registration':
        result.extend(validate_date_fields(values, [('registrationExpiry', True, 'Registration Expiry')], reference_date))
    elif document_type == 'insurance':
        result.extend(validate_date_fields(values, [('insuranceExpiry', True, 'Insurance Expiry')], reference_date))
        if not record.policy_number:
            result.error('policyNumber', 'Insurance policy number is required')
        if record.coverage_amount is not None:
            if record.coverage_amount <= 0:
                result.error('coverageAmount', 'Coverage amount must be a positive number', record.coverage_amount)
            elif record.coverage_amount < DOT_MINIMUM_COVERAGE:
                result.warn('coverageAmount', 'Coverage amount may be below DOT requirements', record.coverage_amount)

    logger.debug(f"[validator] {record.source_file_name}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")
    return result


def _validate_driver_identity(record: ExtractedDriverRecord, reference_date: datetime) -> ValidationResult:
    result = ValidationResult()
    for field_name, label, value in (
        ('firstName', 'First name', record.first_name),
        ('lastName', 'Last name', record.last_name),
    ):
        if not value:
            result.error(field_name, f'{label} is required')
        elif not NAME_PATTERN.match(value):
            result.error(field_name, f'{label} contains invalid characters', value)

    if not record.employee_id:
        result.warn('employeeId', 'Employee ID is required')
    elif not EMPLOYEE_ID_FORMAT.match(record.employee_id):
        result.warn('employeeId', 'Employee ID format may be non-standard', record.employee_id)

    if record.date_of_birth:
        result.extend(validate_date_of_birth(record.date_of_birth, reference_date))
    return result


def _validate_medical_certificate(record: ExtractedDriverRecord, reference_date: datetime) -> ValidationResult:
    result = ValidationResult()
    if not record.medical_cert_number:
        result.error('medicalCertNumber', 'Medical certificate number is required')
    elif not CERT_NUMBER_FORMAT.match(record.medical_cert_number):
        result.warn('medicalCertNumber', 'Medical certificate number format may be incorrect', record.medical_cert_number)

    values = {
        'medicalIssueDate': record.medical_issue_date,
        'medicalExpirationDate': record.medical_expiration_date,
    }
    dates_result = validate_date_fields(values, [
        ('medicalIssueDate', True, 'Issue Date'),
        ('medicalExpirationDate', True, 'Expiration Date'),
    ], reference_date)
    result.extend(dates_result)

    issued = parse_date(record.medical_issue_date or '')
    expires = parse_date(record.medical_expiration_date or '')
    if issued and expires:
        if expires <= issued:
            result.error('medicalExpirationDate', 'Expiration date must be after issue date', record.medical_expiration_date)
        elif (expires - issued).days > MAX_MEDICAL_VALIDITY_DAYS:
            result.warn('medicalExpirationDate', 'Medical certificate validity period seems unusually long',
                        record.medical_expiration_date)

    if not record.examiner_name:
        result.error('examinerName', 'Medical examiner name is required')

    if record.examiner_national_registry and not REGISTRY_FORMAT.match(record.examiner_national_registry):
        result.warn('examinerNationalRegistry', 'National Registry number format may be incorrect',
                    record.examiner_national_registry)
    return result


def _validate_cdl(record: ExtractedDriverRecord, reference_date: datetime) -> ValidationResult:
    result = ValidationResult()
    if not record.cdl_number:
        result.error('cdlNumber', 'CDL number is required')
    elif not CDL_NUMBER_FORMAT.match(record.cdl_number):
        result.warn('cdlNumber', 'CDL number format may be incorrect', record.cdl_number)

    if not record.cdl_class:
        result.error('cdlClass', 'CDL class is required')
    elif record.cdl_class.upper() not in ('A', 'B', 'C'):
        result.error('cdlClass', 'CDL class must be A, B, or C', record.cdl_class)

    if not record.cdl_state:
        result.error('cdlState', 'CDL issuing state is required')
    elif record.cdl_state.upper() not in US_STATE_CODES:
        result.error('cdlState', 'Invalid US state code', record.cdl_state)

    values = {
        'cdlIssueDate': record.cdl_issue_date,
        'cdlExpirationDate': record.cdl_expiration_date,
    }
    result.extend(validate_date_fields(values, [
        ('cdlIssueDate', False, 'Issue Date'),
        ('cdlExpirationDate', True, 'Expiration Date'),
    ], reference_date))

    unknown = [e for e in (record.cdl_endorsements or ()) if e.upper() not in VALID_ENDORSEMENTS]
    if unknown:
        result.warn('cdlEndorsements', f"Unknown endorsements: {', '.join(unknown)}", list(unknown))
    return result


def validate_driver_record(
    record: ExtractedDriverRecord,
    reference_date: Optional[datetime] = None,
) -> ValidationResult:
    """Validate driver identity plus the rules for the record's document type"""
    reference_date = reference_date or datetime.now()
    result = _validate_driver_identity(record, reference_date)
    if record.document_type == 'medical_certificate':
        result.extend(_validate_medical_certificate(record, reference_date))
    elif record.document_type == 'cdl':
        result.extend(_validate_cdl(record, reference_date))

    logger.debug(f"[validator] {record.source_file_name}: {len(result.errors)} error(s), {len(result.warnings)} warning(s)")
    return result
