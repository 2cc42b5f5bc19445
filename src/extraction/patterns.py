"""
Pattern tables and vocabularies for document field extraction.

Everything here is data: compiled regexes, known manufacturers, models,
carriers and state names. Extraction order lives in vehicle.py and
driver.py; this module only says what each field looks like.
"""

import re
from typing import Dict, Optional, Tuple

from dates import MONTH_NAMES

# ---------------------------------------------------------------------------
# Shared fragments
# ---------------------------------------------------------------------------

# Label separators never cross a line break
SEP = r'[ \t]*[:#]?[ \t]*'
NUMERIC_DATE = r'\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}'
MONTH_NAME_DATE = rf'(?:{MONTH_NAMES})\.?[ \t]+\d{{1,2}},?[ \t]+\d{{4}}'
ANY_DATE = rf'(?:{NUMERIC_DATE}|{MONTH_NAME_DATE}|\d{{4}}-\d{{2}}-\d{{2}})'

# Identifier token that must contain at least one digit
ID_WITH_DIGIT = r'([A-Z0-9-]*\d[A-Z0-9-]*)'

# ---------------------------------------------------------------------------
# US states
# ---------------------------------------------------------------------------

STATE_NAMES: Dict[str, str] = {
    'ALABAMA': 'AL', 'ALASKA': 'AK', 'ARIZONA': 'AZ', 'ARKANSAS': 'AR',
    'CALIFORNIA': 'CA', 'COLORADO': 'CO', 'CONNECTICUT': 'CT', 'DELAWARE': 'DE',
    'FLORIDA': 'FL', 'GEORGIA': 'GA', 'HAWAII': 'HI', 'IDAHO': 'ID',
    'ILLINOIS': 'IL', 'INDIANA': 'IN', 'IOWA': 'IA', 'KANSAS': 'KS',
    'KENTUCKY': 'KY', 'LOUISIANA': 'LA', 'MAINE': 'ME', 'MARYLAND': 'MD',
    'MASSACHUSETTS': 'MA', 'MICHIGAN': 'MI', 'MINNESOTA': 'MN', 'MISSISSIPPI': 'MS',
    'MISSOURI': 'MO', 'MONTANA': 'MT', 'NEBRASKA': 'NE', 'NEVADA': 'NV',
    'NEW HAMPSHIRE': 'NH', 'NEW JERSEY': 'NJ', 'NEW MEXICO': 'NM', 'NEW YORK': 'NY',
    'NORTH CAROLINA': 'NC', 'NORTH DAKOTA': 'ND', 'OHIO': 'OH', 'OKLAHOMA': 'OK',
    'OREGON': 'OR', 'PENNSYLVANIA': 'PA', 'RHODE ISLAND': 'RI', 'SOUTH CAROLINA': 'SC',
    'SOUTH DAKOTA': 'SD', 'TENNESSEE': 'TN', 'TEXAS': 'TX', 'UTAH': 'UT',
    'VERMONT': 'VT', 'VIRGINIA': 'VA', 'WASHINGTON': 'WA', 'WEST VIRGINIA': 'WV',
    'WISCONSIN': 'WI', 'WYOMING': 'WY', 'DISTRICT OF COLUMBIA': 'DC',
}

US_STATE_CODES = frozenset(STATE_NAMES.values())


def state_code(value: str) -> Optional[str]:
    """
    Map a state abbreviation or full name to its 2-letter code.

    Multi-word captures are tried whole, then by last word, then by first
    word, so "OF TEXAS" and "Texas ZIP" both resolve to TX.
    """
    if not value:
        return None
    words = value.upper().replace('.', '').split()
    if not words:
        return None
    candidates = [' '.join(words), words[-1], words[0]]
    for candidate in candidates:
        if candidate in US_STATE_CODES:
            return candidate
        if candidate in STATE_NAMES:
            return STATE_NAMES[candidate]
    return None


_STATE_NAME_ALTERNATION = '|'.join(
    name.replace(' ', r'[ \t]+') for name in sorted(STATE_NAMES, key=len, reverse=True)
)
_DMV = r'(?i:DEPARTMENT[ \t]+OF[ \t]+MOTOR[ \t]+VEHICLES|DMV)'

STATE_LABEL = re.compile(
    r'\b(?:ISSUING[ \t]+STATE|REGISTRATION[ \t]+STATE|STATE[ \t]+OF[ \t]+ISSUE|STATE)[ \t]*:[ \t]*'
    r'([A-Za-z]+(?:[ \t]+[A-Za-z]+){0,2})',
    re.IGNORECASE,
)
STATE_DMV_ABBREVIATION = re.compile(rf'\b([A-Z]{{2}})[ \t]+{_DMV}\b')
STATE_DMV_NAME = re.compile(rf'\b((?i:{_STATE_NAME_ALTERNATION}))[ \t]+{_DMV}\b')
STATE_FULL_NAME = re.compile(rf'\b({_STATE_NAME_ALTERNATION})\b', re.IGNORECASE)
# Bare abbreviations only count in an address line ("DALLAS, TX 75201")
STATE_ADDRESS_ABBREVIATION = re.compile(r'\b([A-Z]{2})[ \t]+\d{5}(?:-\d{4})?\b')

# ---------------------------------------------------------------------------
# Vehicle identity
# ---------------------------------------------------------------------------

_VIN_LABEL = r'(?:\bVIN|VEHICLE[ \t]+IDENTIFICATION[ \t]+(?:NUMBER|NO\.?)|V\.I\.N\.?)'

VIN_LABELED = re.compile(rf'{_VIN_LABEL}\s*[#:]?\s*([A-HJ-NPR-Z0-9]{{17}})\b', re.IGNORECASE)
VIN_BARE = re.compile(r'\b([A-HJ-NPR-Z0-9]{17})\b')
# Labelled VIN-like token that may hold OCR confusions (O/0, I/1, S/5, G/6)
VIN_OCR_CANDIDATE = re.compile(rf'{_VIN_LABEL}\s*[#:]?\s*([A-Z0-9]{{15,19}})\b', re.IGNORECASE)

PLATE_LABELED = re.compile(
    r'\b(?:LICENSE[ \t]+PLATE|LIC\.?[ \t]+PLATE|PLATE|LICENSE)'
    r'(?:[ \t]+(?:NUMBER|NO\.?|#))?[ \t]*[#:]?[ \t]*'
    r'([A-Z0-9]+(?:[- ][0-9]+)?)',
    re.IGNORECASE,
)
PLATE_SHAPES: Tuple[re.Pattern, ...] = (
    re.compile(r'\b([A-Z]{2,3}[- ]?[0-9]{3,4}[- ]?[A-Z]?)\b'),
    re.compile(r'\b([0-9]{3}[- ]?[A-Z]{3})\b'),
    re.compile(r'\b([A-Z]{3}[- ]?[0-9]{4})\b'),
    re.compile(r'\b([A-Z]{1,3}[0-9]{1,6}[A-Z]{0,2})\b'),
)

# ---------------------------------------------------------------------------
# Vehicle dates, year, DOT
# ---------------------------------------------------------------------------

_EXPIRY_LABEL = (
    r'\b(?:EXPIRATION[ \t]+DATE|EXPIRATION|EXPIRES?|EXPIR|EXP\.?|VALID[ \t]+UNTIL|'
    r'THROUGH|RENEWAL(?:[ \t]+DATE)?|DUE(?:[ \t]+DATE)?)'
)

# Collected in this order; the first date found is the expiry
VEHICLE_DATE_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf'{_EXPIRY_LABEL}{SEP}({NUMERIC_DATE})\b', re.IGNORECASE),
    re.compile(rf'{_EXPIRY_LABEL}{SEP}({MONTH_NAME_DATE})', re.IGNORECASE),
    re.compile(r'\b(\d{1,2}[/\-]\d{1,2}[/\-]\d{4})\b'),
    re.compile(rf'\b({MONTH_NAME_DATE})', re.IGNORECASE),
    re.compile(r'\b(\d{4}-\d{2}-\d{2})\b'),
)

YEAR_BARE = re.compile(r'\b((?:19|20)\d{2})\b')

DOT_NUMBER_LABELED = re.compile(
    r'\b(?:US[ \t]*)?DOT[ \t]*(?:NUMBER|NO\.?|#)[ \t]*:?[ \t]*(\d+)', re.IGNORECASE
)
USDOT_NUMBER = re.compile(r'\bUSDOT[ \t]*[#:]?[ \t]*(\d{5,8})\b', re.IGNORECASE)

# ---------------------------------------------------------------------------
# Make and model
# ---------------------------------------------------------------------------

KNOWN_MAKES: Tuple[str, ...] = (
    'FREIGHTLINER', 'PETERBILT', 'KENWORTH', 'VOLVO', 'MACK', 'INTERNATIONAL',
    'STERLING', 'WESTERN STAR', 'ISUZU', 'HINO', 'FORD', 'CHEVROLET', 'CHEVY',
    'GMC', 'DODGE', 'RAM', 'FREIGHTLNR', 'INTL', 'NAVISTAR',
)

MAKE_ALIASES: Dict[str, str] = {
    'CHEVY': 'CHEVROLET',
    'FREIGHTLNR': 'FREIGHTLINER',
    'INTL': 'INTERNATIONAL',
    'NAVISTAR': 'INTERNATIONAL',
    'KW': 'KENWORTH',
    'PETE': 'PETERBILT',
}

KNOWN_MODELS: Tuple[str, ...] = (
    'M2 106', 'M2 112', 'CASCADIA', 'COLUMBIA', 'CORONADO', 'T680', 'T880',
    'W900', 'T800', 'W990', 'VNL', 'VNR', 'VHD', 'ANTHEM', 'PINNACLE', 'GRANITE',
    'PROSTAR', 'LONESTAR', 'DURASTAR', 'WORKSTAR', 'LT625', '579', '389', '567',
    '4900', '5700XE', 'NPR', 'F-750', 'F-650', 'SILVERADO', 'SIERRA',
)

_LABEL_STOP = r'(?=[ \t]+(?:MODEL|MAKE|YEAR|VIN|BODY|COLOR|TYPE|PLATE|GVWR)\b|[ \t]*$)'

MAKE_LABELED = re.compile(
    rf'\b(?:MAKE|MFR|MANUFACTURER)[ \t]*[:#][ \t]*([A-Z][A-Z \t-]*?){_LABEL_STOP}',
    re.IGNORECASE | re.MULTILINE,
)
MAKE_VOCABULARY = re.compile(
    r'\b(' + '|'.join(m.replace(' ', r'[ \t]+') for m in KNOWN_MAKES) + r')\b',
    re.IGNORECASE,
)
MODEL_LABELED = re.compile(
    rf'\bMODEL(?![ \t]+YEAR)[ \t]*[:#][ \t]*([A-Z0-9][A-Z0-9 \t-]*?){_LABEL_STOP}',
    re.IGNORECASE | re.MULTILINE,
)
MODEL_VOCABULARY = re.compile(
    r'\b(' + '|'.join(r'[ \t]+'.join(re.escape(part) for part in m.split()) for m in KNOWN_MODELS) + r')\b',
    re.IGNORECASE,
)


def canonical_make(value: str) -> str:
    cleaned = ' '.join(value.upper().split())
    return MAKE_ALIASES.get(cleaned, cleaned)


def canonical_model(value: str) -> str:
    return ' '.join(value.upper().split())

# ---------------------------------------------------------------------------
# Registration specifics
# ---------------------------------------------------------------------------

REGISTRATION_NUMBER_LABELED = re.compile(
    rf'\bREG(?:ISTRATION)?\.?[ \t]*(?:NUMBER|NO\.?|#){SEP}{ID_WITH_DIGIT}', re.IGNORECASE
)
CERTIFICATE_NUMBER_LABELED = re.compile(
    rf'\bCERT(?:IFICATE)?\.?[ \t]*(?:NUMBER|NO\.?|#){SEP}{ID_WITH_DIGIT}', re.IGNORECASE
)
REGISTRATION_NUMBER_SHAPE = re.compile(r'\b([A-Z]{2}[- ]?\d{6,10})\b')

OWNER_LABELED = re.compile(
    r'\b(?:REGISTERED[ \t]+OWNER|REGISTERED[ \t]+TO|REGISTRANT|OWNER)(?:[ \t]+NAME)?'
    r'[ \t]*[:#]?[ \t]*([A-Z0-9][^\n]*)',
    re.IGNORECASE,
)
OWNER_NAME_LINE = re.compile(r'^[ \t]*NAME[ \t]*:[ \t]*([^\n]+)', re.IGNORECASE | re.MULTILINE)

# ---------------------------------------------------------------------------
# Insurance specifics
# ---------------------------------------------------------------------------

KNOWN_CARRIERS: Tuple[str, ...] = (
    'PROGRESSIVE', 'GEICO', 'STATE FARM', 'ALLSTATE', 'NATIONWIDE', 'LIBERTY MUTUAL',
    'TRAVELERS', 'GREAT WEST CASUALTY', 'SENTRY', 'NATIONAL INTERSTATE', 'CANAL',
    'NORTHLAND', 'ZURICH', 'HARTFORD', 'CNA', 'OLD REPUBLIC', 'BERKSHIRE HATHAWAY',
    'CAROLINA CASUALTY', 'FARMERS',
)

CARRIER_LABELED = re.compile(
    r'\b(?:INSURANCE[ \t]+COMPANY|INSURANCE[ \t]+CARRIER|CARRIER|INSURER|COMPANY)'
    r'[ \t]*:[ \t]*([^\n]+)',
    re.IGNORECASE,
)
CARRIER_VOCABULARY = re.compile(
    r'\b(' + '|'.join(c.replace(' ', r'[ \t]+') for c in KNOWN_CARRIERS) + r')\b',
    re.IGNORECASE,
)
POLICY_NUMBER_LABELED = re.compile(
    rf'\b(?:POLICY|POL\.?)(?:[ \t]+(?:NUMBER|NO\.?|#))?{SEP}{ID_WITH_DIGIT}', re.IGNORECASE
)
COVERAGE_AMOUNT = re.compile(r'\$[ \t]*(\d[\d,]*)(?:\.\d{2})?')

# ---------------------------------------------------------------------------
# Driver documents
# ---------------------------------------------------------------------------

_NAME_LABEL_STOP = r'(?!(?:DOB|DATE|BORN|ADDRESS|LICENSE|CDL|CLASS|SEX|ID|EMPLOYEE)\b)'
_PERSON_NAME = (
    rf"([A-Z][a-z'-]+(?:[ \t]+[A-Z]\.)?(?:[ \t]+{_NAME_LABEL_STOP}[A-Z][a-z'-]+){{1,2}})"
)

DRIVER_NAME_RULES: Tuple[re.Pattern, ...] = (
    re.compile(
        rf'(?:\bDRIVER[ \t]+NAME|\bPATIENT[ \t]+NAME|^[ \t]*(?:FULL[ \t]+)?NAME){SEP}{_PERSON_NAME}',
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(r'^[ \t]*([A-Z][a-z]+[ \t]+[A-Z][a-z]+)[ \t]*$', re.MULTILINE),
    re.compile(rf'(?:\bLICENSE[ \t]+HOLDER[ \t]*[#:]?|\bDRIVER[ \t]*[#:])[ \t]*{_PERSON_NAME}', re.IGNORECASE),
)

DATE_OF_BIRTH = re.compile(
    rf'\b(?:DATE[ \t]+OF[ \t]+BIRTH|BIRTH[ \t]+DATE|D\.O\.B\.?|DOB|BORN){SEP}({ANY_DATE})',
    re.IGNORECASE,
)
EMPLOYEE_ID = re.compile(
    rf'\b(?:EMPLOYEE|EMP\.?)[ \t]*(?:ID|NUMBER|NO\.?|#){SEP}{ID_WITH_DIGIT}', re.IGNORECASE
)

ISSUE_DATE = re.compile(
    r'\b(?:ISSUE[ \t]+DATE|DATE[ \t]+(?:OF[ \t]+)?(?:ISSUE|EXAM(?:INATION)?)|DATE[ \t]+ISSUED|'
    rf'ISSUED|ISS\.?|EXAM(?:INATION)?[ \t]+DATE){SEP}({ANY_DATE})',
    re.IGNORECASE,
)
EXPIRATION_DATE = re.compile(
    r'\b(?:EXPIRATION[ \t]+DATE|EXPIRATION|EXPIRY[ \t]+DATE|EXPIRY|EXPIRES|EXP\.?|VALID[ \t]+UNTIL)'
    rf'{SEP}({ANY_DATE})',
    re.IGNORECASE,
)

MEDICAL_CERT_NUMBER = re.compile(
    rf'\b(?:MEDICAL[ \t]+)?(?:CERTIFICATE|CERT\.?)[ \t]*(?:NUMBER|NO\.?|#){SEP}{ID_WITH_DIGIT}',
    re.IGNORECASE,
)
EXAMINER_NAME = re.compile(
    r"\b(?:MEDICAL[ \t]+)?EXAMINER(?:'S)?(?:[ \t]+NAME)?[ \t]*:[ \t]*([A-Za-z][^\n]*)",
    re.IGNORECASE,
)
EXAMINER_REGISTRY = re.compile(
    r'\b(?:NATIONAL[ \t]+REGISTRY|REGISTRY|NRCME)(?:[ \t]+(?:NUMBER|NO\.?|#))?[ \t]*[:#]?[ \t]*(\d{6,10})\b',
    re.IGNORECASE,
)
MEDICAL_RESTRICTION_LINE = re.compile(
    r'\b(?:RESTRICTIONS?|LIMITATIONS?)[ \t]*:[ \t]*([^\n]+)', re.IGNORECASE
)
MEDICAL_RESTRICTION_KEYWORDS = re.compile(
    r'\b(corrective[ \t]+lenses|hearing[ \t]+aids?|prosthetic(?:[ \t]+device)?)\b', re.IGNORECASE
)

CDL_NUMBER_RULES: Tuple[re.Pattern, ...] = (
    re.compile(
        r'\b(?:CDL|LICENSE|LIC\.?|DL)[ \t]*(?:NUMBER|NO\.?|#)[ \t]*[:#]?[ \t]*([A-Z0-9-]{8,})',
        re.IGNORECASE,
    ),
    re.compile(r'\bCDL[ \t]*:[ \t]*([A-Z0-9-]{8,})', re.IGNORECASE),
)
CDL_CLASS = re.compile(r'\bCLASS[ \t]*[:#]?[ \t]*([ABC])\b', re.IGNORECASE)

VALID_ENDORSEMENTS = ('H', 'N', 'P', 'S', 'T', 'X', 'W')

ENDORSEMENT_SECTION = re.compile(
    r'(?:COMMERCIAL\s+)?ENDORSEMENTS?(.*?)(?=RESTRICTIONS|MEDICAL|DRIVER RECORD|$)',
    re.IGNORECASE | re.DOTALL,
)
ENDORSEMENT_LINE = re.compile(r'^[ \t]*([A-Z])[ \t]*[-–]', re.MULTILINE)
ENDORSEMENT_COMPACT = re.compile(
    r'(?i:ENDORSEMENTS?|ENDORSE)[ \t]*[#:]?[ \t]*([HNPSTXW](?:[ \t]*[, ][ \t]*[HNPSTXW])*)\b'
)

RESTRICTION_SECTION = re.compile(
    r'RESTRICTIONS?(.*?)(?=ENDORSEMENTS|MEDICAL|DRIVER RECORD|$)',
    re.IGNORECASE | re.DOTALL,
)
RESTRICTION_LINE = re.compile(r'^[ \t]*([A-Z0-9]{1,2})[ \t]*[-–][ \t]*([^\n]+)', re.MULTILINE)
NONE_VALUE = re.compile(r'^[\s:#-]*NONE\b', re.IGNORECASE)
