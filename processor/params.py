"""Parsing of caller-supplied parameters.

Counts are parsed leniently, while required text and date ranges are
strict: anything malformed raises ``ValidationError`` instead of being
silently defaulted.
"""
import re
from datetime import MAXYEAR, MINYEAR, datetime
from typing import Optional

from processor.errors import ValidationError
from processor.models import DateRange

DEFAULT_COUNT = 10
MIN_COUNT = 1
MAX_COUNT = 50

YEAR_PATTERN = re.compile(r'^\d{4}$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
RANGE_SEPARATOR = ' to '

DATE_RANGE_HELP = (
    "Use a year ('2024'), a date ('2024-03-15') or a range "
    "('2023-01-01 to 2023-12-31')."
)


def clamp_count(count: int) -> int:
    """Clamp a result count to the accepted range."""
    return min(max(count, MIN_COUNT), MAX_COUNT)


def parse_count(value: Optional[str], default: int = DEFAULT_COUNT) -> int:
    """
    Parse an optional textual result count.

    Args:
        value: Raw count parameter, may be None or non-numeric
        default: Count used when the value is missing or not a number

    Returns:
        Count clamped to [1, 50]
    """
    if value is None:
        return clamp_count(default)

    text = str(value).strip()
    if not text:
        return clamp_count(default)

    try:
        return clamp_count(int(text))
    except ValueError:
        return clamp_count(default)


def require_text(value: Optional[str], name: str) -> str:
    """Return a stripped required parameter or raise ValidationError."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} parameter is required")
    return str(value).strip()


def parse_year(value: Optional[str]) -> int:
    """Parse a required four digit year or raise ValidationError."""
    text = require_text(value, 'year')
    if not YEAR_PATTERN.match(text):
        raise ValidationError(f"Invalid year: '{text}'. Use a four digit year such as '2024'.")
    return int(text)


def year_bounds(year: int) -> DateRange:
    """Bounds of a calendar year: Jan 1 00:00:00 to Dec 31 23:59:00."""
    if not MINYEAR <= year <= MAXYEAR:
        raise ValidationError(f"Year out of range: {year}")
    return DateRange(
        start=datetime(year, 1, 1, 0, 0, 0),
        end=datetime(year, 12, 31, 23, 59, 0),
        description=str(year),
        year=year,
    )


def parse_date_range(value: Optional[str]) -> DateRange:
    """
    Parse a textual date range.

    Accepts exactly three forms: a four digit year, a single ISO date
    (covering that whole day) or two ISO dates joined by ' to ' (the end
    date covers its whole day).

    Args:
        value: Date range text from the caller

    Returns:
        DateRange with inclusive bounds

    Raises:
        ValidationError: If the text is blank or in any other form
    """
    text = require_text(value, 'date_range')

    if YEAR_PATTERN.match(text):
        return year_bounds(int(text))

    if RANGE_SEPARATOR in text:
        parts = text.split(RANGE_SEPARATOR)
        if len(parts) != 2:
            raise ValidationError(f"Invalid date range format: '{text}'. {DATE_RANGE_HELP}")

        start_date = _parse_iso_date(parts[0].strip(), text)
        end_date = _parse_iso_date(parts[1].strip(), text)
        if end_date < start_date:
            raise ValidationError(f"Date range ends before it starts: '{text}'")

        return DateRange(
            start=start_date,
            end=_end_of_day(end_date),
            description=f"{start_date.date()} to {end_date.date()}",
        )

    if DATE_PATTERN.match(text):
        day = _parse_iso_date(text, text)
        return DateRange(
            start=day,
            end=_end_of_day(day),
            description=f"{day.date()} to {day.date()}",
        )

    raise ValidationError(f"Invalid date range format: '{text}'. {DATE_RANGE_HELP}")


def _parse_iso_date(part: str, original: str) -> datetime:
    if not DATE_PATTERN.match(part):
        raise ValidationError(f"Invalid date '{part}' in '{original}'. Use YYYY-MM-DD format.")
    try:
        return datetime.strptime(part, '%Y-%m-%d')
    except ValueError:
        raise ValidationError(f"Invalid date '{part}' in '{original}'. Use YYYY-MM-DD format.")


def _end_of_day(day: datetime) -> datetime:
    return day.replace(hour=23, minute=59, second=59)
