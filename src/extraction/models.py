"""
Data models for document field extraction and reconciliation.

Records are immutable. Every change made during extraction or merging
produces a new record through ``dataclasses.replace``.
"""

from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass, field, fields, replace

VEHICLE_DOCUMENT_TYPES = ("registration", "insurance")
DRIVER_DOCUMENT_TYPES = ("medical_certificate", "cdl")
DOCUMENT_TYPES = VEHICLE_DOCUMENT_TYPES + DRIVER_DOCUMENT_TYPES + ("unknown",)


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


class _RecordMixin:
    """Shared helpers for the frozen record dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON contract"""
        return {_camel(f.name): _to_json_value(getattr(self, f.name)) for f in fields(self)}

    def with_note(self, note: str):
        return replace(self, processing_notes=self.processing_notes + (note,))


@dataclass(frozen=True)
class ExtractedVehicleRecord(_RecordMixin):
    """
    Structured fields pulled from one registration or insurance document.

    Attributes:
        vin: 17-character VIN when one was found
        license_plate: Plate with spaces and hyphens removed
        registration_expiry: Raw text of the first date found on a registration
        insurance_expiry: Raw text of the first date found on an insurance document
        coverage_amount: First dollar amount on an insurance document
        extraction_confidence: 0.5 base plus per-field deltas, times any validation penalty
        processing_notes: Ordered, append-only audit trail
    """
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    truck_number: Optional[str] = None
    dot_number: Optional[str] = None
    registration_number: Optional[str] = None
    registration_state: Optional[str] = None
    registration_expiry: Optional[str] = None
    registered_owner: Optional[str] = None
    insurance_carrier: Optional[str] = None
    policy_number: Optional[str] = None
    insurance_expiry: Optional[str] = None
    coverage_amount: Optional[int] = None
    document_type: str = "registration"
    extraction_confidence: float = 0.5
    source_file_name: str = ""
    processing_notes: Tuple[str, ...] = field(default_factory=tuple)
    needs_review: bool = False


@dataclass(frozen=True)
class ExtractedDriverRecord(_RecordMixin):
    """
    Structured fields pulled from one CDL or DOT medical certificate.

    All dates except the raw text fields are standardized to YYYY-MM-DD.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    employee_id: Optional[str] = None
    cdl_number: Optional[str] = None
    cdl_state: Optional[str] = None
    cdl_class: Optional[str] = None
    cdl_issue_date: Optional[str] = None
    cdl_expiration_date: Optional[str] = None
    cdl_endorsements: Optional[Tuple[str, ...]] = None
    cdl_restrictions: Optional[Tuple[str, ...]] = None
    medical_cert_number: Optional[str] = None
    medical_issue_date: Optional[str] = None
    medical_expiration_date: Optional[str] = None
    examiner_name: Optional[str] = None
    examiner_national_registry: Optional[str] = None
    medical_restrictions: Optional[Tuple[str, ...]] = None
    document_type: str = "cdl"
    extraction_confidence: float = 0.5
    source_file_name: str = ""
    processing_notes: Tuple[str, ...] = field(default_factory=tuple)
    needs_review: bool = False

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass(frozen=True)
class ConsolidatedVehicle:
    """
    One physical vehicle after grouping and merging.

    Attributes:
        key: Grouping key (VIN:, PLATE:, PATTERN:, VEHICLE: or FILE:)
        record: Merged vehicle fields
        source_files: Every contributing file, in processing order
    """
    key: str
    record: ExtractedVehicleRecord
    source_files: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def source_count(self) -> int:
        return len(self.source_files)

    @property
    def document_types(self) -> Tuple[str, ...]:
        return tuple(self.record.document_type.split('+'))

    def to_dict(self) -> Dict[str, Any]:
        data = {"key": self.key, "sourceCount": self.source_count}
        data.update(self.record.to_dict())
        return data
