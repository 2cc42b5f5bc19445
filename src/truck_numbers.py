"""
Truck number resolution.

Infers the human-facing fleet unit number ("Truck #047") from document
text or from identifiers already extracted from a vehicle document.
Results carry a confidence tier (high, medium, low); callers only accept
results that are not low.
"""

import re
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

MAX_TRUCK_NUMBER = 999


@dataclass(frozen=True)
class TruckNumberResult:
    truck_number: str
    confidence: str
    source: str
    original_value: str
    needs_review: bool = False

    @property
    def accepted(self) -> bool:
        return bool(self.truck_number) and self.confidence != LOW


def format_truck_number(number: int) -> str:
    return f"Truck #{number:03d}"


def _in_range(digits: str) -> Optional[int]:
    number = int(digits)
    return number if 1 <= number <= MAX_TRUCK_NUMBER else None


# (pattern, confidence, needs_review) applied to a cleaned plate
PLATE_STRATEGIES: Tuple[Tuple[re.Pattern, str, bool], ...] = (
    (re.compile(r'^(?:TRK|TRUCK)(\d{1,4})'), HIGH, False),
    (re.compile(r'^(\d{1,3})(?:TRK|TRUCK)$'), HIGH, False),
    (re.compile(r'^(?:FLEET|FLT)(\d{1,4})'), HIGH, False),
    (re.compile(r'^(?:UNIT|U)(\d{1,4})$'), HIGH, False),
    (re.compile(r'^[A-Z]+(\d{2,3})$'), MEDIUM, True),
    (re.compile(r'^(\d{2,3})[A-Z]+'), MEDIUM, True),
)

# Label patterns searched in raw document text
DOCUMENT_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r'\b(?:TRUCK|UNIT|VEHICLE)[ \t]*(?:#|NO\.?|NUMBER)?[ \t]*:?[ \t]*#?[ \t]*(\d{1,3})(?![0-9A-Z])', re.IGNORECASE), HIGH),
    (re.compile(r'\bFLEET[ \t]*(?:ID|IDENTIFIER|#|NO\.?|NUMBER)?[ \t]*:?[ \t]*#?[ \t]*(\d{1,3})(?![0-9A-Z])', re.IGNORECASE), HIGH),
    (re.compile(r'\bTRK[ \t]*[-#]?[ \t]*(\d{1,3})(?![0-9A-Z])', re.IGNORECASE), HIGH),
)
DOCUMENT_PLATE_LABEL = re.compile(r'LICENSE\s+PLATE:\s*([A-Z0-9]+)', re.IGNORECASE)


def parse_from_license_plate(license_plate: str) -> TruckNumberResult:
    """Fleet plates often embed the unit: TRK001, FLEET47, UNIT99, 047TRK"""
    plate = re.sub(r'[^A-Z0-9]', '', (license_plate or '').upper())

    for pattern, confidence, needs_review in PLATE_STRATEGIES:
        match = pattern.search(plate)
        if not match:
            continue
        number = _in_range(match.group(1))
        if number is not None:
            return TruckNumberResult(format_truck_number(number), confidence, "license_plate",
                                     license_plate, needs_review)

    return TruckNumberResult("", LOW, "license_plate", license_plate or "", True)


def _parse_from_dot_number(dot_number: str) -> TruckNumberResult:
    digits = re.sub(r'\D', '', dot_number or '')
    if digits:
        number = _in_range(digits[-3:])
        if number is not None:
            return TruckNumberResult(format_truck_number(number), MEDIUM, "dot_number", dot_number, True)
    return TruckNumberResult("", LOW, "dot_number", dot_number or "", True)


def _parse_from_registration_number(registration_number: str) -> TruckNumberResult:
    cleaned = re.sub(r'[^A-Z0-9]', '', (registration_number or '').upper())
    for digits in re.findall(r'\d{2,3}', cleaned):
        number = _in_range(digits)
        if number is not None:
            return TruckNumberResult(format_truck_number(number), MEDIUM, "document_text",
                                     registration_number, True)
    return TruckNumberResult("", LOW, "document_text", registration_number or "", True)


def _parse_from_vin(vin: str) -> TruckNumberResult:
    # Serial section is the last six characters
    match = re.search(r'(\d{3})$', vin or '')
    if match:
        number = _in_range(match.group(1))
        if number is not None:
            return TruckNumberResult(format_truck_number(number), LOW, "vin_pattern", vin, True)
    return TruckNumberResult("", LOW, "vin_pattern", vin or "", True)


def _generate_from_vin(vin: str) -> TruckNumberResult:
    digits = re.sub(r'\D', '', (vin or '')[-6:])
    if digits and int(digits[-3:]) > 0:
        return TruckNumberResult(f"Unit {int(digits[-3:]):03d}", LOW, "generated", vin, True)
    return TruckNumberResult("", LOW, "generated", vin or "", True)


def parse_truck_number(
    vin: Optional[str] = None,
    license_plate: Optional[str] = None,
    registration_number: Optional[str] = None,
    dot_number: Optional[str] = None,
) -> TruckNumberResult:
    """
    Resolve a truck number from extracted identifiers.

    Strategies run in order (plate, DOT number, registration number, VIN
    serial digits) and the first result that is not low wins. When none
    qualifies, a low-confidence number generated from the VIN tail is
    returned; it always needs review.
    """
    strategies = []
    if license_plate:
        strategies.append(parse_from_license_plate(license_plate))
    if dot_number:
        strategies.append(_parse_from_dot_number(dot_number))
    if registration_number:
        strategies.append(_parse_from_registration_number(registration_number))
    if vin:
        strategies.append(_parse_from_vin(vin))

    for result in strategies:
        if result.accepted:
            logger.debug(f"[truck] {result.truck_number} from {result.source} ({result.confidence})")
            return result

    for result in strategies:
        if result.truck_number:
            return result

    return _generate_from_vin(vin or "")


def parse_from_document_text(text: str) -> List[TruckNumberResult]:
    """All truck number candidates found in raw document text, in discovery order"""
    results: List[TruckNumberResult] = []
    seen = set()

    plate_match = DOCUMENT_PLATE_LABEL.search(text or '')
    if plate_match:
        plate_result = parse_from_license_plate(plate_match.group(1))
        if plate_result.accepted:
            results.append(TruckNumberResult(plate_result.truck_number, plate_result.confidence,
                                             "document_license_plate", plate_result.original_value,
                                             plate_result.needs_review))
            seen.add(plate_result.truck_number)

    for pattern, confidence in DOCUMENT_PATTERNS:
        for match in pattern.finditer(text or ''):
            number = _in_range(match.group(1))
            if number is None:
                continue
            truck_number = format_truck_number(number)
            if truck_number in seen:
                continue
            seen.add(truck_number)
            results.append(TruckNumberResult(truck_number, confidence, "document_text", match.group(0).strip()))

    return results


def select_best(results: Iterable[TruckNumberResult]) -> Optional[TruckNumberResult]:
    """First high-confidence result, else the first one that is not low"""
    results = list(results)
    for result in results:
        if result.confidence == HIGH:
            return result
    for result in results:
        if result.accepted:
            return result
    return None


def validate_truck_number(value: str) -> Tuple[bool, str]:
    """
    Normalize user-entered truck numbers.

    Accepts "truck 47", "Unit #47", "#47", "47" and "T47". Returns
    (True, "Truck #047") or (False, original text).
    """
    cleaned = (value or '').strip()
    patterns = (
        re.compile(r'^(?:truck|unit|vehicle)\s*#?(\d{1,3})$', re.IGNORECASE),
        re.compile(r'^#?(\d{1,3})$'),
        re.compile(r'^t(\d{1,3})$', re.IGNORECASE),
    )
    for pattern in patterns:
        match = pattern.match(cleaned)
        if match:
            number = _in_range(match.group(1))
            if number is not None:
                return True, format_truck_number(number)
    return False, cleaned


def display_number(truck_number: str) -> str:
    """Short form for lists: "Truck #047" -> "#047" """
    match = re.search(r'(\d+)', truck_number or '')
    return f"#{match.group(1)}" if match else truck_number


def find_duplicate_truck_numbers(vehicles: Iterable[Any]) -> Dict[str, List[str]]:
    """Truck numbers assigned to more than one VIN"""
    by_number: Dict[str, List[str]] = {}
    for vehicle in vehicles:
        record = getattr(vehicle, "record", vehicle)
        if not record.truck_number:
            continue
        by_number.setdefault(record.truck_number, []).append(record.vin or record.source_file_name)
    return {number: vins for number, vins in by_number.items() if len(vins) > 1}
