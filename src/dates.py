import re
import logging
from typing import Optional
from datetime import datetime

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    r'January|February|March|April|May|June|July|August|September|October|November|December|'
    r'Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec'
)

# Two-digit years below this pivot are 20xx, the rest 19xx
TWO_DIGIT_YEAR_PIVOT = 50

# Fills the parts dateutil finds missing, instead of today's date
DATEUTIL_DEFAULT = datetime(1900, 1, 1)


def expand_year(year: int) -> int:
    """Expands a 2-digit year using the 50-year pivot"""
    if year < 100:
        return year + 2000 if year < TWO_DIGIT_YEAR_PIVOT else year + 1900
    return year


def parse_date(date_str: str) -> Optional[datetime]:
    """Comprehensive date parser that handles the date forms seen on fleet documents"""
    if not date_str or not isinstance(date_str, str):
        return None

    s = date_str.strip().rstrip('.,')

    if not s:
        return None

    # Common date patterns to try in order of specificity
    patterns = [
        # ISO formats
        (r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{3})?Z?$', '%Y-%m-%dT%H:%M:%S'),
        (r'^\d{4}-\d{1,2}-\d{1,2}$', '%Y-%m-%d'),

        # YYYY/MM/DD format
        (r'^\d{4}/\d{1,2}/\d{1,2}$', '%Y/%m/%d'),

        # MM/DD/YYYY, MM-DD-YYYY, MM.DD.YYYY (and 2-digit years)
        (r'^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2}|\d{4})$', None),  # Custom handler

        # Month name formats
        (rf'^({MONTH_NAMES})\.?\s+(\d{{1,2}}),?\s+(\d{{4}})$', 'month_first'),
        (rf'^(\d{{1,2}})\s+({MONTH_NAMES})\.?,?\s+(\d{{4}})$', 'day_first'),
    ]

    for pattern, fmt in patterns:
        match = re.match(pattern, s, re.IGNORECASE)
        if not match:
            continue
        try:
            if fmt is None:
                # US documents: first numeric group is the month
                month, day, year = (int(g) for g in match.groups())
                return datetime(expand_year(year), month, day)
            if fmt == 'month_first':
                month_name, day, year = match.groups()
                return datetime(int(year), _month_number(month_name), int(day))
            if fmt == 'day_first':
                day, month_name, year = match.groups()
                return datetime(int(year), _month_number(month_name), int(day))
            return datetime.strptime(s[:19].rstrip('Z'), fmt)
        except (ValueError, KeyError):
            continue

    # Try dateutil parsing as fallback
    try:
        from dateutil import parser
        return parser.parse(s, default=DATEUTIL_DEFAULT)
    except (ValueError, OverflowError, TypeError):
        logger.debug(f"[dates] Could not parse date: {date_str!r}")

    return None


def _month_number(name: str) -> int:
    key = name.lower().rstrip('.')[:3]
    return {
        'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
        'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
    }[key]


def standardize_date(date_str: str) -> str:
    """
    Standardize a date string to YYYY-MM-DD.

    Numeric input is read as MM/DD/YYYY (first group is the month) with
    2-digit years expanded around the 50-year pivot. Anything that cannot
    be parsed is returned unchanged.
    """
    if not date_str:
        return date_str

    cleaned = date_str.strip()
    numeric = re.match(r'^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})$', cleaned)
    if numeric:
        month, day, year = (int(g) for g in numeric.groups())
        return f"{expand_year(year):04d}-{month:02d}-{day:02d}"

    if re.match(r'^\d{4}-\d{2}-\d{2}$', cleaned):
        return cleaned

    parsed = parse_date(cleaned)
    if parsed is None:
        logger.debug(f"[dates] Leaving unparseable date as-is: {date_str!r}")
        return date_str
    return parsed.strftime('%Y-%m-%d')


def is_plausible_date(date_str: str) -> bool:
    """True when the string parses to a year strictly between 1990 and 2050"""
    parsed = parse_date(date_str) if isinstance(date_str, str) else None
    return parsed is not None and 1990 < parsed.year < 2050
