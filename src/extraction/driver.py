"""
Driver field extraction for CDL licenses and DOT medical certificates.

Mirrors the vehicle path: ordered field steps, confidence deltas, then
validation and the review rule. Review is keyed on the driver's first and
last name instead of the VIN. All dates are standardized to YYYY-MM-DD.
"""

import re
import logging
from typing import List, Optional, Tuple
from datetime import datetime

import config
from dates import standardize_date
from extraction import patterns as p
from extraction.models import ExtractedDriverRecord
from extraction.rules import FieldRule, FieldStep, RecordBuilder
from validator import validate_driver_record

logger = logging.getLogger(__name__)

REVIEW_NOTE = "Low confidence extraction - manual review recommended"


def _split_name(value: str) -> Optional[Tuple[str, str]]:
    tokens = value.split()
    if len(tokens) < 2:
        return None
    return tokens[0], ' '.join(tokens[1:])


def _has_digit(value: str) -> bool:
    return any(c.isdigit() for c in value)


def _upper(value: str) -> str:
    return value.strip().upper()


def _dedupe(values: List[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return tuple(seen)


NAME_STEP = FieldStep(('first_name', 'last_name'),
                      tuple(FieldRule(rule, transform=_split_name) for rule in p.DRIVER_NAME_RULES),
                      confidence=0.2)

DATE_OF_BIRTH_STEP = FieldStep('date_of_birth', (
    FieldRule(p.DATE_OF_BIRTH, transform=standardize_date),
), confidence=0.1)

EMPLOYEE_ID_STEP = FieldStep('employee_id', (
    FieldRule(p.EMPLOYEE_ID, transform=_upper),
))

MEDICAL_STEPS: Tuple[FieldStep, ...] = (
    FieldStep('medical_cert_number', (FieldRule(p.MEDICAL_CERT_NUMBER, transform=_upper),), confidence=0.15),
    FieldStep('examiner_name', (
        FieldRule(p.EXAMINER_NAME, transform=lambda v: ' '.join(v.split())),
    ), confidence=0.1),
    FieldStep('examiner_national_registry', (FieldRule(p.EXAMINER_REGISTRY),), confidence=0.1),
    FieldStep('medical_issue_date', (FieldRule(p.ISSUE_DATE, transform=standardize_date),), confidence=0.15),
    FieldStep('medical_expiration_date', (FieldRule(p.EXPIRATION_DATE, transform=standardize_date),), confidence=0.15),
)

CDL_STEPS: Tuple[FieldStep, ...] = (
    FieldStep('cdl_number', tuple(
        FieldRule(rule, transform=_upper, accept=_has_digit) for rule in p.CDL_NUMBER_RULES
    ), confidence=0.2),
    FieldStep('cdl_class', (FieldRule(p.CDL_CLASS, transform=_upper),), confidence=0.15),
    FieldStep('cdl_state', (
        FieldRule(p.STATE_LABEL, transform=p.state_code),
        FieldRule(p.STATE_DMV_ABBREVIATION, accept=lambda v: v in p.US_STATE_CODES),
        FieldRule(p.STATE_DMV_NAME, transform=p.state_code),
    ), confidence=0.1),
    FieldStep('cdl_issue_date', (FieldRule(p.ISSUE_DATE, transform=standardize_date),), confidence=0.1),
    FieldStep('cdl_expiration_date', (FieldRule(p.EXPIRATION_DATE, transform=standardize_date),), confidence=0.15),
)


def extract_medical_restrictions(text: str) -> Optional[Tuple[str, ...]]:
    """
    Restriction values from RESTRICTIONS/LIMITATIONS lines plus known keywords.

    Returns None when nothing restriction-related is present, and an empty
    tuple when the document says NONE.
    """
    found: List[str] = []
    explicit_none = False

    for match in p.MEDICAL_RESTRICTION_LINE.finditer(text):
        value = match.group(1).strip()
        if p.NONE_VALUE.match(value):
            explicit_none = True
            continue
        found.extend(part.strip() for part in re.split(r'[,;]', value) if part.strip())

    for match in p.MEDICAL_RESTRICTION_KEYWORDS.finditer(text):
        keyword = ' '.join(match.group(1).lower().split())
        if not any(keyword in existing.lower() for existing in found):
            found.append(keyword)

    if found:
        return _dedupe(found)
    return () if explicit_none else None


def extract_endorsements(text: str) -> Optional[Tuple[str, ...]]:
    """
    CDL endorsement letters, order preserved, duplicates removed.

    A structured "ENDORSEMENTS" section of "H - Hazardous Materials" lines
    is preferred; otherwise a compact "ENDORSEMENTS: H, N" list is used.
    """
    section = p.ENDORSEMENT_SECTION.search(text)
    if section:
        letters = [
            match.group(1) for match in p.ENDORSEMENT_LINE.finditer(section.group(1))
            if match.group(1) in p.VALID_ENDORSEMENTS
        ]
        if letters:
            return _dedupe(letters)

    compact = p.ENDORSEMENT_COMPACT.search(text)
    if compact:
        letters = re.findall(r'[HNPSTXW]', compact.group(1))
        return _dedupe(letters)
    return None


def extract_cdl_restrictions(text: str) -> Optional[Tuple[str, ...]]:
    """Restrictions section as "L - description" entries; NONE yields an empty tuple"""
    section = p.RESTRICTION_SECTION.search(text)
    if not section:
        return None

    body = section.group(1)
    if p.NONE_VALUE.match(body):
        return ()

    lines = [
        f"{match.group(1)} - {' '.join(match.group(2).split())}"
        for match in p.RESTRICTION_LINE.finditer(body)
    ]
    if lines:
        return _dedupe(lines)

    inline = re.match(r'^[ \t]*:[ \t]*([^\n]+)', body)
    if inline:
        return _dedupe([part.strip() for part in inline.group(1).split(',') if part.strip()])
    return None


def _apply_collection(builder: RecordBuilder, field: str, values: Optional[Tuple[str, ...]], delta: float) -> None:
    if values is None:
        return
    builder.set(field, values)
    if values:
        builder.boost(field, delta)
    logger.debug(f"[driver] {field} = {values}")


def extract_driver_data(
    text: str,
    document_type: str,
    source_file_name: str = "",
    reference_date: Optional[datetime] = None,
) -> ExtractedDriverRecord:
    """
    Extract an ExtractedDriverRecord from raw OCR text.

    Raises:
        ValueError: document_type is not 'medical_certificate' or 'cdl'
    """
    if document_type not in ('medical_certificate', 'cdl'):
        raise ValueError(f"Unsupported driver document type: {document_type!r}")

    text = text or ""
    builder = RecordBuilder(ExtractedDriverRecord(
        document_type=document_type,
        extraction_confidence=config.BASE_CONFIDENCE,
        source_file_name=source_file_name,
    ))

    name = builder.apply(NAME_STEP, text)
    if name:
        builder.note(f"Extracted name: {' '.join(name)}")

    if document_type == 'medical_certificate':
        for step in MEDICAL_STEPS:
            builder.apply(step, text)
        _apply_collection(builder, 'medical_restrictions', extract_medical_restrictions(text), 0.1)
    else:
        for step in CDL_STEPS:
            builder.apply(step, text)
        _apply_collection(builder, 'cdl_endorsements', extract_endorsements(text), 0.15)
        _apply_collection(builder, 'cdl_restrictions', extract_cdl_restrictions(text), 0.1)

    builder.apply(DATE_OF_BIRTH_STEP, text)
    builder.apply(EMPLOYEE_ID_STEP, text)

    validation = validate_driver_record(builder.record, reference_date)
    for issue in validation.errors:
        builder.note(f"Validation error - {issue.field}: {issue.message}")
    if not validation.is_valid:
        builder.penalize('validation', config.VALIDATION_PENALTY)
    for issue in validation.warnings:
        builder.note(f"Warning - {issue.field}: {issue.message}")

    record = builder.record
    needs_review = (
        record.extraction_confidence < config.REVIEW_CONFIDENCE_THRESHOLD
        or not (record.first_name and record.last_name)
        or not validation.is_valid
    )
    builder.set('needs_review', needs_review)
    if needs_review:
        builder.note(REVIEW_NOTE)

    record = builder.build()
    logger.debug(
        f"[driver] {source_file_name}: confidence={record.extraction_confidence:.2f} "
        f"adjustments={builder.adjustments} review={record.needs_review}"
    )
    return record
