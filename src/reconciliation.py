"""
Multi-document reconciliation.

Groups per-document vehicle records by their best identity key, merges
each group field by field, then removes near-identical records that
survived grouping under different keys. Driver records get the
deduplication pass only.

Grouping keys, first applicable wins:
    VIN:<17-char VIN>  PLATE:<plate>  PATTERN:<filename token>
    VEHICLE:<MAKE>_<MODEL>_<YEAR>  FILE:<source file name>

Merging is not order-independent: when both values are valid the later
record wins, so callers should pass records in upload order.
"""

import re
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field, replace
from datetime import datetime

import config
from dates import is_plausible_date, parse_date
from extraction.models import ConsolidatedVehicle, ExtractedDriverRecord, ExtractedVehicleRecord
from identity import normalize_license_plate, normalize_vin

logger = logging.getLogger(__name__)

# Filename tokens, first match wins
FILENAME_PATTERNS: Tuple[Tuple[re.Pattern, bool], ...] = (
    (re.compile(r'(\d{3})'), False),
    (re.compile(r'([A-Z]{2,3}\d{3,4})'), False),
    (re.compile(r'MTS[-_]?(\d+)', re.IGNORECASE), False),
    # Whole match so truck_7 and truck_8 stay distinct
    (re.compile(r'(truck|vehicle)[-_]?(\d+)', re.IGNORECASE), True),
)

SOURCE_TRUST: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (('dmv', 'dot', 'official'), 20),
    (('insurance', 'policy'), 15),
    (('registration', 'reg'), 10),
)
DEFAULT_SOURCE_TRUST = 5

VEHICLE_CRITICAL_FIELDS = ('vin', 'license_plate', 'make', 'model', 'year')
DRIVER_CRITICAL_FIELDS = ('first_name', 'last_name', 'cdl_number', 'cdl_expiration_date')


# ---------------------------------------------------------------------------
# Grouping keys
# ---------------------------------------------------------------------------

def extract_filename_pattern(file_name: str) -> Optional[str]:
    """Vehicle token from a filename (truck number, plate-like run, fleet id)"""
    for pattern, whole_match in FILENAME_PATTERNS:
        match = pattern.search(file_name or '')
        if match:
            if whole_match:
                return re.sub(r'[-_]', '', match.group(0)).upper()
            return match.group(1)
    return None


def vehicle_key(
    record: ExtractedVehicleRecord,
    use_filename_patterns: Optional[bool] = None,
    use_make_model_year: Optional[bool] = None,
) -> str:
    """
    Best available identity key for a vehicle record.

    VIN and plate are normalized here so un-normalized input still groups.
    The PATTERN and VEHICLE levels follow config unless overridden; FILE is
    always available so every record gets a key.
    """
    if use_filename_patterns is None:
        use_filename_patterns = config.USE_FILENAME_PATTERN_KEYS
    if use_make_model_year is None:
        use_make_model_year = config.USE_MAKE_MODEL_YEAR_KEYS

    if record.vin:
        vin = normalize_vin(record.vin)
        if len(vin) == 17:
            return f"VIN:{vin}"
        logger.warning(f"[reconcile] Invalid VIN length ({len(vin)}): {vin} from {record.source_file_name}")

    if record.license_plate:
        plate = normalize_license_plate(record.license_plate)
        if len(plate) >= 2:
            return f"PLATE:{plate}"

    if use_filename_patterns:
        token = extract_filename_pattern(record.source_file_name)
        if token:
            return f"PATTERN:{token}"

    if use_make_model_year and record.make and record.model and record.year:
        combined = re.sub(r'\s+', '_', f"{record.make}_{record.model}_{record.year}").upper()
        return f"VEHICLE:{combined}"

    return f"FILE:{record.source_file_name}"


# ---------------------------------------------------------------------------
# Field-level merge
# ---------------------------------------------------------------------------

def select_best_value(existing: Any, incoming: Any, is_valid: Callable[[Any], bool]) -> Any:
    """
    Incoming wins when valid; else a valid existing value; else any
    non-empty incoming value; else existing.
    """
    if incoming and is_valid(incoming):
        return incoming
    if existing and is_valid(existing):
        return existing
    if incoming:
        return incoming
    return existing


def _valid_year(value: Any) -> bool:
    return isinstance(value, int) and 1990 < value <= datetime.now().year + 1


def _non_empty(value: Any) -> bool:
    return bool(str(value).strip())


MERGE_VALIDATORS: Dict[str, Callable[[Any], bool]] = {
    'vin': lambda v: len(v) == 17,
    'license_plate': lambda v: len(v) >= 2,
    'year': _valid_year,
    'make': _non_empty,
    'model': _non_empty,
    'truck_number': _non_empty,
    'dot_number': _non_empty,
    'registration_number': _non_empty,
    'registration_state': lambda v: len(v) == 2,
    'registration_expiry': is_plausible_date,
    'registered_owner': _non_empty,
    'insurance_carrier': _non_empty,
    'policy_number': _non_empty,
    'insurance_expiry': is_plausible_date,
    'coverage_amount': lambda v: v > 0,
}


def combine_document_types(existing: str, incoming: str) -> str:
    """'registration' + 'insurance' -> 'insurance+registration'"""
    if existing == incoming or not incoming:
        return existing
    if not existing:
        return incoming
    types = set(existing.split('+')) | set(incoming.split('+'))
    return '+'.join(sorted(types))


def merge_records(existing: ExtractedVehicleRecord, incoming: ExtractedVehicleRecord) -> ExtractedVehicleRecord:
    """Synthesize a new record from two records sharing a grouping key"""
    values = {
        name: select_best_value(getattr(existing, name), getattr(incoming, name), is_valid)
        for name, is_valid in MERGE_VALIDATORS.items()
    }
    notes = existing.processing_notes + incoming.processing_notes + (
        f"Merged data from {incoming.document_type} document: {incoming.source_file_name}",
    )
    return replace(
        existing,
        **values,
        document_type=combine_document_types(existing.document_type, incoming.document_type),
        source_file_name=f"{existing.source_file_name}, {incoming.source_file_name}",
        processing_notes=notes,
        extraction_confidence=max(existing.extraction_confidence, incoming.extraction_confidence),
        needs_review=existing.needs_review or incoming.needs_review,
    )


@dataclass
class GroupingResult:
    """Consolidated vehicles plus the NEW/MERGED audit trail."""
    vehicles: List[ConsolidatedVehicle] = field(default_factory=list)
    merge_log: List[str] = field(default_factory=list)
    key_log: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def new_count(self) -> int:
        return sum(1 for line in self.merge_log if line.startswith('NEW:'))

    @property
    def merged_count(self) -> int:
        return sum(1 for line in self.merge_log if line.startswith('MERGED:'))


def group_vehicle_records(
    records: Sequence[ExtractedVehicleRecord],
    use_filename_patterns: Optional[bool] = None,
    use_make_model_year: Optional[bool] = None,
) -> GroupingResult:
    """One ConsolidatedVehicle per distinct key, in order of first appearance"""
    result = GroupingResult()
    groups: Dict[str, ConsolidatedVehicle] = {}

    for record in records:
        key = vehicle_key(record, use_filename_patterns, use_make_model_year)
        result.key_log.setdefault(key, []).append(record.source_file_name)

        if key in groups:
            existing = groups[key]
            groups[key] = ConsolidatedVehicle(
                key=key,
                record=merge_records(existing.record, record),
                source_files=existing.source_files + (record.source_file_name,),
            )
            result.merge_log.append(f"MERGED: {record.source_file_name} with existing record (key: {key})")
            logger.debug(f"[reconcile] MERGED {record.source_file_name} into {key}")
        else:
            groups[key] = ConsolidatedVehicle(key=key, record=record, source_files=(record.source_file_name,))
            result.merge_log.append(f"NEW: {record.source_file_name} created new record (key: {key})")
            logger.debug(f"[reconcile] NEW {key} from {record.source_file_name}")

    result.vehicles = list(groups.values())
    logger.info(
        f"[reconcile] {len(records)} record(s) -> {len(result.vehicles)} vehicle(s): "
        f"{result.merged_count} merged, {result.new_count} new"
    )
    return result


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------

def vehicle_duplicate_keys(record: ExtractedVehicleRecord) -> List[str]:
    keys = []
    if record.vin and len(record.vin) >= 10:
        keys.append(f"VIN:{record.vin.upper()}")
    if record.registration_number and record.registration_state:
        keys.append(f"REG:{record.registration_state}:{record.registration_number}")
    if record.license_plate and record.registration_state:
        keys.append(f"PLATE:{record.registration_state}:{record.license_plate}")
    if record.policy_number:
        keys.append(f"POLICY:{record.policy_number}")
    return keys


def driver_duplicate_keys(record: ExtractedDriverRecord) -> List[str]:
    keys = []
    if record.cdl_number and record.cdl_state:
        keys.append(f"CDL:{record.cdl_state}:{record.cdl_number}")
    if record.medical_cert_number:
        keys.append(f"MED:{record.medical_cert_number}")
    if record.employee_id:
        keys.append(f"EMP:{record.employee_id}")
    if record.first_name and record.last_name and record.date_of_birth:
        keys.append(f"NAME:{record.full_name.lower()}:{record.date_of_birth}")
    return keys


def source_trust_score(file_name: str) -> int:
    lowered = (file_name or '').lower()
    for keywords, score in SOURCE_TRUST:
        if any(keyword in lowered for keyword in keywords):
            return score
    return DEFAULT_SOURCE_TRUST


def _document_date(record: Any) -> Optional[datetime]:
    if isinstance(record, ExtractedDriverRecord):
        value = record.cdl_expiration_date or record.medical_expiration_date
    else:
        value = record.registration_expiry or record.insurance_expiry
    parsed = parse_date(value) if value else None
    return parsed.replace(tzinfo=None) if parsed else None


def record_score(record: Any, reference_date: Optional[datetime] = None) -> float:
    """
    Quality score used to pick the best of a set of duplicates.

    100 x confidence, up to 50 recency points (minus 10 per year since the
    document date), up to 30 completeness points, up to 20 source trust.
    """
    reference_date = reference_date or datetime.now()
    score = record.extraction_confidence * 100

    document_date = _document_date(record)
    if document_date:
        years_old = (reference_date - document_date).days / 365
        score += min(50.0, max(0.0, 50 - years_old * 10))

    critical = DRIVER_CRITICAL_FIELDS if isinstance(record, ExtractedDriverRecord) else VEHICLE_CRITICAL_FIELDS
    present = sum(1 for name in critical if getattr(record, name))
    score += present / len(critical) * 30

    score += source_trust_score(record.source_file_name)
    return score


@dataclass(frozen=True)
class DuplicateGroup:
    key: str
    kept: str
    removed: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "kept": self.kept, "removed": list(self.removed)}


@dataclass
class DeduplicationResult:
    records: List[Any] = field(default_factory=list)
    groups: List[DuplicateGroup] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return sum(len(group.removed) for group in self.groups)


def _bucket_records(records: Sequence[Any], keys_for: Callable[[Any], List[str]]) -> Dict[str, List[int]]:
    buckets: Dict[str, List[int]] = {}
    for index, record in enumerate(records):
        keys = keys_for(record)
        for key in keys:
            if key in buckets:
                buckets[key].append(index)
                break
        else:
            if not keys:
                logger.warning(f"[reconcile] No duplicate-detection key for {record.source_file_name}")
            buckets[keys[0] if keys else f"UNKEYED:{index}"] = [index]
    return buckets


def deduplicate_records(
    items: Sequence[Any],
    keys_for: Callable[[Any], List[str]],
    reference_date: Optional[datetime] = None,
    record_of: Callable[[Any], Any] = lambda item: item,
    with_record: Callable[[Any, Any], Any] = lambda item, record: record,
) -> DeduplicationResult:
    """
    Keep the best-scoring item per duplicate bucket.

    A record joins the bucket of its first key that already exists,
    otherwise it opens a bucket under its own first key. Ties keep the
    earliest record. The kept record gains notes naming what it replaced.

    ``record_of``/``with_record`` let the same pass run over wrappers
    such as ConsolidatedVehicle.
    """
    records = [record_of(item) for item in items]
    result = DeduplicationResult()

    for key, members in _bucket_records(records, keys_for).items():
        if len(members) == 1:
            result.records.append(items[members[0]])
            continue

        ranked = sorted(members, key=lambda i: record_score(records[i], reference_date), reverse=True)
        best = records[ranked[0]]
        removed = tuple(records[i].source_file_name for i in ranked[1:])
        best = best.with_note(f"Duplicate detection: Kept this record over {len(removed)} duplicate(s) for {key}")
        best = best.with_note(f"Removed sources: {', '.join(removed)}")

        result.records.append(with_record(items[ranked[0]], best))
        result.groups.append(DuplicateGroup(key, best.source_file_name, removed))
        logger.info(f"[reconcile] Removed {len(removed)} duplicate(s) for {key}, kept {best.source_file_name}")

    return result


def deduplicate_vehicles(
    vehicles: Sequence[ConsolidatedVehicle],
    reference_date: Optional[datetime] = None,
) -> DeduplicationResult:
    """Deduplicate consolidated vehicles by their merged records"""
    return deduplicate_records(
        vehicles,
        vehicle_duplicate_keys,
        reference_date,
        record_of=lambda vehicle: vehicle.record,
        with_record=lambda vehicle, record: replace(vehicle, record=record),
    )


def deduplicate_drivers(
    records: Sequence[ExtractedDriverRecord],
    reference_date: Optional[datetime] = None,
) -> DeduplicationResult:
    return deduplicate_records(records, driver_duplicate_keys, reference_date)


# ---------------------------------------------------------------------------
# Full reconciliation run
# ---------------------------------------------------------------------------

@dataclass
class ReconciliationSummary:
    total_vehicles: int = 0
    fully_documented: int = 0
    missing_insurance: int = 0
    missing_registration: int = 0
    reconciliation_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVehicles": self.total_vehicles,
            "fullyDocumented": self.fully_documented,
            "missingInsurance": self.missing_insurance,
            "missingRegistration": self.missing_registration,
            "reconciliationScore": self.reconciliation_score,
        }


@dataclass
class ReconciliationResult:
    """
    Output of one reconciliation run.

    ``grouped`` holds every group before deduplication (each input record
    is in exactly one); ``vehicles`` is the final deduplicated list.
    """
    vehicles: List[ConsolidatedVehicle] = field(default_factory=list)
    grouped: List[ConsolidatedVehicle] = field(default_factory=list)
    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    merge_log: List[str] = field(default_factory=list)
    key_log: Dict[str, List[str]] = field(default_factory=dict)
    summary: ReconciliationSummary = field(default_factory=ReconciliationSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehicles": [vehicle.to_dict() for vehicle in self.vehicles],
            "duplicateGroups": [group.to_dict() for group in self.duplicate_groups],
            "mergeLog": list(self.merge_log),
            "keyLog": {key: list(files) for key, files in self.key_log.items()},
            "summary": self.summary.to_dict(),
        }


def summarize(vehicles: Sequence[ConsolidatedVehicle]) -> ReconciliationSummary:
    """Document coverage counts; fully documented means both registration and insurance"""
    summary = ReconciliationSummary(total_vehicles=len(vehicles))
    for vehicle in vehicles:
        types = set(vehicle.document_types)
        if {'registration', 'insurance'} <= types:
            summary.fully_documented += 1
        elif 'registration' in types:
            summary.missing_insurance += 1
        elif 'insurance' in types:
            summary.missing_registration += 1
    if vehicles:
        summary.reconciliation_score = round(summary.fully_documented / len(vehicles) * 100)
    return summary


def reconcile_vehicles(
    records: Sequence[ExtractedVehicleRecord],
    reference_date: Optional[datetime] = None,
    use_filename_patterns: Optional[bool] = None,
    use_make_model_year: Optional[bool] = None,
) -> ReconciliationResult:
    """Group, merge and deduplicate per-document vehicle records"""
    grouping = group_vehicle_records(records, use_filename_patterns, use_make_model_year)
    deduplicated = deduplicate_vehicles(grouping.vehicles, reference_date)

    result = ReconciliationResult(
        vehicles=deduplicated.records,
        grouped=grouping.vehicles,
        duplicate_groups=deduplicated.groups,
        merge_log=grouping.merge_log,
        key_log=grouping.key_log,
        summary=summarize(deduplicated.records),
    )
    logger.info(
        f"[reconcile] {result.summary.fully_documented}/{result.summary.total_vehicles} vehicles fully "
        f"documented ({result.summary.reconciliation_score}%)"
    )
    return result
