"""
Schema validation utilities.

Validates serialized extraction and reconciliation records against the
camelCase JSON contract handed to storage and display.
"""

from typing import Any, Dict, List, Optional, Set
from enum import Enum


class FieldType(Enum):
    """Supported field types for validation."""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    LIST = "list"
    OPTIONAL_STRING = "optional_string"
    OPTIONAL_INTEGER = "optional_integer"
    OPTIONAL_DATE = "optional_date"
    OPTIONAL_LIST = "optional_list"


OPTIONAL_TYPES = {
    FieldType.OPTIONAL_STRING,
    FieldType.OPTIONAL_INTEGER,
    FieldType.OPTIONAL_DATE,
    FieldType.OPTIONAL_LIST,
}


_COMMON_FIELDS = {
    "documentType": FieldType.STRING,
    "extractionConfidence": FieldType.FLOAT,
    "sourceFileName": FieldType.STRING,
    "processingNotes": FieldType.LIST,
    "needsReview": FieldType.BOOLEAN,
}

# Registration/insurance expiry keep the raw matched text, so they are strings, not dates
VEHICLE_RECORD_SCHEMA: Dict[str, FieldType] = {
    "vin": FieldType.OPTIONAL_STRING,
    "licensePlate": FieldType.OPTIONAL_STRING,
    "year": FieldType.OPTIONAL_INTEGER,
    "make": FieldType.OPTIONAL_STRING,
    "model": FieldType.OPTIONAL_STRING,
    "truckNumber": FieldType.OPTIONAL_STRING,
    "dotNumber": FieldType.OPTIONAL_STRING,
    "registrationNumber": FieldType.OPTIONAL_STRING,
    "registrationState": FieldType.OPTIONAL_STRING,
    "registrationExpiry": FieldType.OPTIONAL_STRING,
    "registeredOwner": FieldType.OPTIONAL_STRING,
    "insuranceCarrier": FieldType.OPTIONAL_STRING,
    "policyNumber": FieldType.OPTIONAL_STRING,
    "insuranceExpiry": FieldType.OPTIONAL_STRING,
    "coverageAmount": FieldType.OPTIONAL_INTEGER,
    **_COMMON_FIELDS,
}

DRIVER_RECORD_SCHEMA: Dict[str, FieldType] = {
    "firstName": FieldType.OPTIONAL_STRING,
    "lastName": FieldType.OPTIONAL_STRING,
    "dateOfBirth": FieldType.OPTIONAL_DATE,
    "employeeId": FieldType.OPTIONAL_STRING,
    "cdlNumber": FieldType.OPTIONAL_STRING,
    "cdlState": FieldType.OPTIONAL_STRING,
    "cdlClass": FieldType.OPTIONAL_STRING,
    "cdlIssueDate": FieldType.OPTIONAL_DATE,
    "cdlExpirationDate": FieldType.OPTIONAL_DATE,
    "cdlEndorsements": FieldType.OPTIONAL_LIST,
    "cdlRestrictions": FieldType.OPTIONAL_LIST,
    "medicalCertNumber": FieldType.OPTIONAL_STRING,
    "medicalIssueDate": FieldType.OPTIONAL_DATE,
    "medicalExpirationDate": FieldType.OPTIONAL_DATE,
    "examinerName": FieldType.OPTIONAL_STRING,
    "examinerNationalRegistry": FieldType.OPTIONAL_STRING,
    "medicalRestrictions": FieldType.OPTIONAL_LIST,
    **_COMMON_FIELDS,
}

CONSOLIDATED_VEHICLE_SCHEMA: Dict[str, FieldType] = {
    "key": FieldType.STRING,
    "sourceCount": FieldType.INTEGER,
    **VEHICLE_RECORD_SCHEMA,
}


def validate_schema(
    rows: List[Dict[str, Any]],
    schema: Dict[str, FieldType],
    required_fields: Optional[Set[str]] = None,
) -> List[str]:
    """
    Validate rows against a schema definition.

    Args:
        rows: List of dictionaries to validate
        schema: Dictionary mapping field names to FieldType
        required_fields: Set of field names that must be present (default: all in schema)

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if required_fields is None:
        required_fields = set(schema.keys())

    for i, row in enumerate(rows, 1):
        for field in sorted(required_fields):
            if field not in row:
                errors.append(f"Row {i}: Missing required field '{field}'")

        for field, expected_type in schema.items():
            if field not in row:
                continue
            error = _validate_field_type(field, row[field], expected_type, i)
            if error:
                errors.append(error)

        unknown = sorted(set(row) - set(schema))
        for field in unknown:
            errors.append(f"Row {i}: Unexpected field '{field}'")

    return errors


def _validate_field_type(
    field: str,
    value: Any,
    expected_type: FieldType,
    row_num: int,
) -> Optional[str]:
    """Validate a single field value against expected type."""

    if value is None:
        if expected_type in OPTIONAL_TYPES:
            return None
        return f"Row {row_num}, field '{field}': Expected {expected_type.value}, got None"

    if expected_type in (FieldType.STRING, FieldType.OPTIONAL_STRING):
        if not isinstance(value, str):
            return f"Row {row_num}, field '{field}': Expected string, got {type(value).__name__}"

    elif expected_type in (FieldType.INTEGER, FieldType.OPTIONAL_INTEGER):
        # bool is an int subclass
        if not isinstance(value, int) or isinstance(value, bool):
            return f"Row {row_num}, field '{field}': Expected integer, got {type(value).__name__}"

    elif expected_type == FieldType.FLOAT:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return f"Row {row_num}, field '{field}': Expected float, got {type(value).__name__}"

    elif expected_type == FieldType.BOOLEAN:
        if not isinstance(value, bool):
            return f"Row {row_num}, field '{field}': Expected boolean, got {type(value).__name__}"

    elif expected_type in (FieldType.LIST, FieldType.OPTIONAL_LIST):
        if not isinstance(value, list):
            return f"Row {row_num}, field '{field}': Expected list, got {type(value).__name__}"

    # Dates should be strings in YYYY-MM-DD format
    elif expected_type in (FieldType.DATE, FieldType.OPTIONAL_DATE):
        if not isinstance(value, str):
            return f"Row {row_num}, field '{field}': Expected date string, got {type(value).__name__}"
        if len(value) != 10 or value[4] != '-' or value[7] != '-':
            return f"Row {row_num}, field '{field}': Invalid date format (expected YYYY-MM-DD), got '{value}'"

    return None
