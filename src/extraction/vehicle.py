"""
Vehicle field extraction for registration and insurance documents.

Each field is an ordered FieldStep; the first rule that matches wins and
earns the step's confidence delta. Type-specific steps run only for the
declared document type. Extraction never raises on content: fields that
are not found are simply left empty.
"""

import re
import logging
from typing import List, Optional, Tuple
from datetime import datetime

import config
from extraction import patterns as p
from extraction.models import ExtractedVehicleRecord
from extraction.rules import FieldRule, FieldStep, RecordBuilder
from identity import is_valid_vin, normalize_vin
from truck_numbers import parse_from_document_text, parse_truck_number, select_best
from validator import validate_vehicle_record

logger = logging.getLogger(__name__)

REVIEW_NOTE = "Low confidence extraction - manual review recommended"


def _upper(value: str) -> str:
    return value.strip().upper()


def _clean_plate(value: str) -> str:
    return re.sub(r'[\s-]', '', value).upper()


def _plate_ok(value: str) -> bool:
    return bool(re.fullmatch(r'[A-Z0-9]{2,8}', value))


def _has_digit(value: str) -> bool:
    return any(c.isdigit() for c in value)


def _one_line(value: str) -> str:
    return ' '.join(value.split())


def _coverage(value: str) -> int:
    return int(value.replace(',', ''))


# ---------------------------------------------------------------------------
# Field steps shared by every vehicle document
# ---------------------------------------------------------------------------

VIN_STEP = FieldStep('vin', (
    FieldRule(p.VIN_LABELED, transform=_upper, accept=is_valid_vin),
    FieldRule(p.VIN_BARE, transform=_upper, accept=lambda v: is_valid_vin(v) and _has_digit(v)),
), confidence=0.25)

# Labelled token that only becomes a VIN after OCR-confusion correction
VIN_OCR_RULE = FieldRule(p.VIN_OCR_CANDIDATE, transform=_upper,
                         accept=lambda v: is_valid_vin(normalize_vin(v)))

PLATE_STEP = FieldStep('license_plate', (
    FieldRule(p.PLATE_LABELED, transform=_clean_plate, accept=_plate_ok),
    *(FieldRule(shape, transform=_clean_plate, accept=_plate_ok) for shape in p.PLATE_SHAPES),
), confidence=0.15)

YEAR_STEP = FieldStep('year', (
    FieldRule(p.YEAR_BARE, transform=int),
), confidence=0.1)

DOT_STEP = FieldStep('dot_number', (
    FieldRule(p.DOT_NUMBER_LABELED),
    FieldRule(p.USDOT_NUMBER),
), confidence=0.1)

MAKE_STEP = FieldStep('make', (
    FieldRule(p.MAKE_LABELED, transform=p.canonical_make),
    FieldRule(p.MAKE_VOCABULARY, transform=p.canonical_make),
), confidence=0.15)

MODEL_STEP = FieldStep('model', (
    FieldRule(p.MODEL_LABELED, transform=p.canonical_model),
    FieldRule(p.MODEL_VOCABULARY, transform=p.canonical_model),
), confidence=0.1)

STATE_RULES: Tuple[FieldRule, ...] = (
    FieldRule(p.STATE_LABEL, transform=p.state_code),
    FieldRule(p.STATE_DMV_ABBREVIATION, accept=lambda v: v in p.US_STATE_CODES),
    FieldRule(p.STATE_DMV_NAME, transform=p.state_code),
    FieldRule(p.STATE_FULL_NAME, transform=p.state_code),
    FieldRule(p.STATE_ADDRESS_ABBREVIATION, accept=lambda v: v in p.US_STATE_CODES),
)

# ---------------------------------------------------------------------------
# Registration-only steps
# ---------------------------------------------------------------------------

REGISTRATION_STEPS: Tuple[FieldStep, ...] = (
    FieldStep('registration_number', (
        FieldRule(p.REGISTRATION_NUMBER_LABELED, transform=_upper),
        FieldRule(p.CERTIFICATE_NUMBER_LABELED, transform=_upper),
        FieldRule(p.REGISTRATION_NUMBER_SHAPE, transform=_clean_plate),
    )),
    FieldStep('registration_state', STATE_RULES),
    FieldStep('registered_owner', (
        FieldRule(p.OWNER_LABELED, transform=_one_line, accept=lambda v: len(v) >= 2),
        FieldRule(p.OWNER_NAME_LINE, transform=_one_line, accept=lambda v: len(v) >= 2),
    )),
)

# ---------------------------------------------------------------------------
# Insurance-only steps
# ---------------------------------------------------------------------------

INSURANCE_STEPS: Tuple[FieldStep, ...] = (
    FieldStep('insurance_carrier', (
        FieldRule(p.CARRIER_LABELED, transform=_one_line, accept=lambda v: len(v) >= 2),
        FieldRule(p.CARRIER_VOCABULARY, transform=lambda v: _one_line(v).upper()),
    )),
    FieldStep('policy_number', (
        FieldRule(p.POLICY_NUMBER_LABELED, transform=_upper, accept=lambda v: len(v) >= 4),
    )),
    FieldStep('coverage_amount', (
        FieldRule(p.COVERAGE_AMOUNT, transform=_coverage, accept=lambda v: v > 0),
    )),
)


def find_dates(text: str) -> List[str]:
    """Every date candidate in pattern order; the first one is the expiry"""
    dates: List[str] = []
    for pattern in p.VEHICLE_DATE_PATTERNS:
        for match in pattern.finditer(text):
            dates.append(match.group(1).strip())
    return dates


def _extract_vin(builder: RecordBuilder, text: str) -> None:
    if builder.apply(VIN_STEP, text):
        return

    raw = VIN_OCR_RULE.find(text)
    if raw:
        corrected = normalize_vin(raw)
        builder.set('vin', corrected, confidence=VIN_STEP.confidence,
                    note=f"VIN corrected for OCR errors: {raw} -> {corrected}")
        logger.info(f"[vehicle] OCR-corrected VIN {raw} -> {corrected}")


def _extract_dates(builder: RecordBuilder, text: str, document_type: str) -> None:
    dates = find_dates(text)
    if not dates:
        return
    # Kept as matched text; unlike driver dates these are not standardized.
    if document_type == 'registration':
        builder.set('registration_expiry', dates[0])
    elif document_type == 'insurance':
        builder.set('insurance_expiry', dates[0])
    builder.boost('dates', 0.2)
    logger.debug(f"[vehicle] Dates found: {dates}")


def _extract_truck_number(builder: RecordBuilder, text: str) -> None:
    best = select_best(parse_from_document_text(text))
    if best is not None:
        builder.set('truck_number', best.truck_number, confidence=0.15,
                    note=f"Truck number {best.truck_number} detected from {best.source}: {best.original_value}")
        return

    record = builder.record
    if not (record.vin and record.license_plate):
        return

    result = parse_truck_number(
        vin=record.vin,
        license_plate=record.license_plate,
        registration_number=record.registration_number,
    )
    if result.accepted:
        builder.set('truck_number', result.truck_number, confidence=0.1,
                    note=f"Truck number {result.truck_number} derived from {result.source}: {result.original_value}")
        if result.needs_review:
            builder.note(f"Truck number {result.truck_number} needs review")


def extract_vehicle_data(
    text: str,
    document_type: str,
    source_file_name: str = "",
    reference_date: Optional[datetime] = None,
) -> ExtractedVehicleRecord:
    """
    Extract an ExtractedVehicleRecord from raw OCR text.

    Args:
        text: OCR or vision text of one document
        document_type: 'registration', 'insurance' or 'unknown'
        source_file_name: Original upload filename
        reference_date: "Today" for expiry checks (default: now)

    Returns:
        A new immutable record. Unknown documents are typed as registration
        but get neither an expiry assignment nor type-specific fields.

    Raises:
        ValueError: document_type is not a vehicle document type
    """
    if document_type not in ('registration', 'insurance', 'unknown'):
        raise ValueError(f"Unsupported vehicle document type: {document_type!r}")

    text = text or ""
    record_type = 'insurance' if document_type == 'insurance' else 'registration'
    builder = RecordBuilder(ExtractedVehicleRecord(
        document_type=record_type,
        extraction_confidence=config.BASE_CONFIDENCE,
        source_file_name=source_file_name,
    ))

    _extract_vin(builder, text)
    builder.apply(PLATE_STEP, text)
    _extract_dates(builder, text, document_type)
    builder.apply(YEAR_STEP, text)
    builder.apply(DOT_STEP, text)
    if builder.apply(MAKE_STEP, text):
        builder.apply(MODEL_STEP, text)

    type_steps = {'registration': REGISTRATION_STEPS, 'insurance': INSURANCE_STEPS}.get(document_type, ())
    for step in type_steps:
        builder.apply(step, text)

    _extract_truck_number(builder, text)

    validation = validate_vehicle_record(builder.record, reference_date, document_type)
    for issue in validation.errors:
        builder.note(f"Validation error - {issue.field}: {issue.message}")
    if not validation.is_valid:
        builder.penalize('validation', config.VALIDATION_PENALTY)
    for issue in validation.warnings:
        builder.note(f"Warning - {issue.field}: {issue.message}")

    record = builder.record
    needs_review = (
        record.extraction_confidence < config.REVIEW_CONFIDENCE_THRESHOLD
        or not record.vin
        or not validation.is_valid
    )
    builder.set('needs_review', needs_review)
    if needs_review:
        builder.note(REVIEW_NOTE)

    record = builder.build()
    logger.debug(
        f"[vehicle] {source_file_name}: confidence={record.extraction_confidence:.2f} "
        f"adjustments={builder.adjustments} review={record.needs_review}"
    )
    return record
