"""
Identity normalization for VINs and license plates.

Both normalizers are idempotent: running them on their own output returns
the same string.
"""

import re
import logging

logger = logging.getLogger(__name__)

# VIN pattern: 17 characters, A-Z and 0-9, excluding I, O, Q
VIN_PATTERN = re.compile(r'^[A-HJ-NPR-Z0-9]{17}$')

VIN_LENGTH = 17
VIN_CORRECTION_RANGE = (15, 19)

# OCR confusions fixed when the letter sits next to a digit
OCR_DIGIT_CONFUSIONS = (
    ('O', '0'),
    ('I', '1'),
    ('S', '5'),
    ('G', '6'),
)

# Letters that never appear in a VIN and so can only be misread digits
ILLEGAL_VIN_LETTERS = str.maketrans({'I': '1', 'O': '0', 'Q': '0'})


def clean_identifier(raw: str) -> str:
    """Uppercase and strip everything outside [A-Z0-9]"""
    if not raw:
        return ""
    return re.sub(r'[^A-Z0-9]', '', str(raw).upper())


def is_valid_vin(value: str) -> bool:
    return bool(value) and bool(VIN_PATTERN.match(value))


def _correct_ocr_confusions(value: str) -> str:
    corrected = value
    while True:
        previous = corrected
        for letter, digit in OCR_DIGIT_CONFUSIONS:
            corrected = re.sub(rf'(?<=\d){letter}|{letter}(?=\d)', digit, corrected)
        if corrected == previous:
            break
    return corrected.translate(ILLEGAL_VIN_LETTERS)


def normalize_vin(raw: str) -> str:
    """
    Canonicalize a VIN.

    The cleaned value is returned unless it is not already a valid VIN and
    OCR-confusion correction turns it into one. Length is never changed.
    """
    cleaned = clean_identifier(raw)
    if is_valid_vin(cleaned):
        return cleaned

    low, high = VIN_CORRECTION_RANGE
    if low <= len(cleaned) <= high:
        corrected = _correct_ocr_confusions(cleaned)
        if len(corrected) == VIN_LENGTH and is_valid_vin(corrected):
            logger.debug(f"[identity] Corrected VIN {cleaned} -> {corrected}")
            return corrected
        logger.debug(f"[identity] VIN {cleaned!r} has length {len(cleaned)}, left uncorrected")

    return cleaned


def normalize_license_plate(raw: str) -> str:
    """Uppercase, strip non-alphanumerics; no length enforcement"""
    return clean_identifier(raw)
