"""
Normalization Utilities

Pure functions converting raw spreadsheet cell values into typed values:
- currency text -> float ("$1,234.56" -> 1234.56)
- percentage text -> float ("87.5 %" -> 87.5)
- duration text -> minutes ("4h 48m (288 mins)" -> 288)
- MM/DD/YYYY and MM/DD/YYYY HH:MM AM|PM text -> date / datetime
- technician aliases -> canonical "First Last" names

Scalar parsers never raise. Unparsable input yields the documented fallback
(`default`, 0 unless overridden). Callers that need to tell a real zero from
a parse failure pass `default=None` and check for None.

The technician alias table and the service keyword lists are static
configuration: read-only, initialized once at import time.
"""

import math
import re
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple, TypeVar

T = TypeVar('T')

# =============================================================================
# CONSTANTS - Static lookup tables
# =============================================================================

UNKNOWN_TECHNICIAN: str = 'Unknown Technician'

# Short forms seen in the exports -> canonical technician name
TECHNICIAN_ALIASES: Mapping[str, str] = MappingProxyType({
    'Aaron M': 'Aaron McDaniel',
    'Aaron': 'Aaron McDaniel',
    'Jake H': 'Jake Harter',
    'Jake': 'Jake Harter',
    'Steven S': 'Steven Springer',
    'Steven': 'Steven Springer',
    'Colin M': 'Colin Myers',
    'Colin': 'Colin Myers',
    'Brennan E': 'Brennan Ebbesmier',
    'Brennan': 'Brennan Ebbesmier',
    'Justice B': 'Justice Burns',
    'Justice': 'Justice Burns',
    'Alex P': 'Alex P',
})

HYDRO_JETTING_KEYWORDS: Tuple[str, ...] = (
    'hydro',
    'jetting',
    'high pressure',
    'pressure wash',
)

DESCALING_KEYWORDS: Tuple[str, ...] = (
    'descal',
    'scale removal',
    'cast iron pipe descaling',
    'descaling',
)

WATER_HEATER_KEYWORDS: Tuple[str, ...] = (
    'water heater',
    'hot water',
    'heater install',
    'heater replacement',
)

# =============================================================================
# CONSTANTS - Patterns
# =============================================================================

# Leading numeric prefix, mirroring how spreadsheet tools read "12.5 USD"
_NUMBER_PREFIX = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_CURRENCY_NOISE = re.compile(r'[$,]')
_PERCENT_NOISE = re.compile(r'[%\s]')
_DURATION = re.compile(r'(\d+)h\s*(\d+)m')
_DATE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')
_DATETIME = re.compile(
    r'^(\d{1,2})/(\d{1,2})/(\d{4})'
    r'(?:\s+(\d{1,2}):(\d{2})(?:\s*([AaPp][Mm]))?)?$'
)


# =============================================================================
# NUMERIC PARSERS
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_leading_number(text: str, default: Optional[float]) -> Optional[float]:
    match = _NUMBER_PREFIX.match(text.lstrip())
    if not match:
        return default
    result = float(match.group(0))
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def parse_currency(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Parse a currency cell such as "$1,234.56" into a float.

    Strips the dollar sign and thousands separators, then reads the leading
    number. Native numbers pass through unchanged.

    Args:
        value: Raw cell value (str, number or None)
        default: Returned when the value is empty or unparsable

    Returns:
        The parsed amount, or `default`
    """
    if _is_number(value):
        return default if math.isnan(value) else float(value)
    if value is None:
        return default

    text = str(value)
    if not text:
        return default

    return _parse_leading_number(_CURRENCY_NOISE.sub('', text), default)


def parse_percentage(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Parse a percentage cell such as "87.5 %" into 87.5.

    Args:
        value: Raw cell value (str, number or None)
        default: Returned when the value is empty or unparsable

    Returns:
        The percentage as a number on the 0-100 scale, or `default`
    """
    if _is_number(value):
        return default if math.isnan(value) else float(value)
    if value is None:
        return default

    text = str(value)
    if not text:
        return default

    return _parse_leading_number(_PERCENT_NOISE.sub('', text), default)


def parse_time_to_minutes(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """
    Parse a duration cell such as "4h 48m (288 mins)" into minutes.

    The "<H>h <M>m" token may appear anywhere in the text; trailing
    annotations are ignored.

    Args:
        value: Raw cell value
        default: Returned when no duration token is found

    Returns:
        H * 60 + M, or `default`
    """
    if value is None:
        return default

    match = _DURATION.search(str(value))
    if not match:
        return default

    hours, minutes = int(match.group(1)), int(match.group(2))
    return hours * 60 + minutes


# =============================================================================
# IDENTITY AND CLASSIFICATION
# =============================================================================

def normalize_technician_name(value: Any) -> str:
    """
    Map a raw technician cell to its canonical name.

    Whitespace runs are collapsed and the result trimmed before the alias
    lookup. Missing or empty cells map to UNKNOWN_TECHNICIAN; a cell of only
    whitespace trims to "" and its record is dropped by cleaning. Unmapped
    names pass through unchanged.
    """
    if value is None or value == '':
        return UNKNOWN_TECHNICIAN

    normalized = ' '.join(str(value).split())
    return TECHNICIAN_ALIASES.get(normalized, normalized)


def contains_service_keywords(text: Optional[str], keywords: Iterable[str]) -> bool:
    """Case-insensitive check whether `text` contains any of `keywords`."""
    if not text:
        return False

    lowered = str(text).lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def get_hydro_jetting_keywords() -> Tuple[str, ...]:
    return HYDRO_JETTING_KEYWORDS


def get_descaling_keywords() -> Tuple[str, ...]:
    return DESCALING_KEYWORDS


def get_water_heater_keywords() -> Tuple[str, ...]:
    return WATER_HEATER_KEYWORDS


# =============================================================================
# DATE PARSERS
# =============================================================================

def parse_date(value: Any) -> date:
    """
    Parse a strict MM/DD/YYYY cell into a calendar date.

    Native date/datetime cells (as produced by the workbook decoder for
    date-formatted cells) are accepted and reduced to their calendar date.

    Raises:
        ValueError: If the text is not MM/DD/YYYY or names an impossible date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip() if value is not None else ''
    match = _DATE.match(text)
    if not match:
        raise ValueError(f"Invalid date '{value}': expected MM/DD/YYYY")

    month, day, year = (int(part) for part in match.groups())
    return date(year, month, day)


def parse_datetime(value: Any) -> datetime:
    """
    Parse a MM/DD/YYYY HH:MM AM|PM cell into a datetime.

    A bare MM/DD/YYYY yields midnight. Without an AM/PM marker the time is
    read as a 24-hour clock.

    Raises:
        ValueError: On malformed text or out-of-range components
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())

    text = str(value).strip() if value is not None else ''
    match = _DATETIME.match(text)
    if not match:
        raise ValueError(f"Invalid datetime '{value}': expected MM/DD/YYYY HH:MM AM|PM")

    month, day, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
    day_value = date(year, month, day)

    if match.group(4) is None:
        return datetime.combine(day_value, time())

    hour, minute = int(match.group(4)), int(match.group(5))
    period = (match.group(6) or '').upper()

    if period:
        if not 1 <= hour <= 12:
            raise ValueError(f"Invalid datetime '{value}': hour must be 1-12 with {period}")
        if period == 'PM' and hour != 12:
            hour += 12
        elif period == 'AM' and hour == 12:
            hour = 0

    # time() rejects hour > 23 / minute > 59 with ValueError
    return datetime.combine(day_value, time(hour, minute))


def _try(parser, value: Any) -> Optional[T]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return parser(value)
    except (ValueError, TypeError):
        return None


def try_parse_date(value: Any) -> Optional[date]:
    """Like parse_date, but returns None instead of raising."""
    return _try(parse_date, value)


def try_parse_datetime(value: Any) -> Optional[datetime]:
    """Like parse_datetime, but returns None instead of raising."""
    return _try(parse_datetime, value)


__all__ = [
    # Constants
    'UNKNOWN_TECHNICIAN',
    'TECHNICIAN_ALIASES',
    'HYDRO_JETTING_KEYWORDS',
    'DESCALING_KEYWORDS',
    'WATER_HEATER_KEYWORDS',
    # Numeric parsers
    'parse_currency',
    'parse_percentage',
    'parse_time_to_minutes',
    # Identity and classification
    'normalize_technician_name',
    'contains_service_keywords',
    'get_hydro_jetting_keywords',
    'get_descaling_keywords',
    'get_water_heater_keywords',
    # Date parsers
    'parse_date',
    'parse_datetime',
    'try_parse_date',
    'try_parse_datetime',
]
