"""
Date normalization for extracted intake values.

Extraction output carries dates in whatever shape the source document used
("10/05/1990", "March 1985", "5th of June, 1972"). Form data stores them as
ISO-8601 (YYYY-MM-DD); documents render them as MM/DD/YYYY or long form.
"""

import re
import logging
from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser as dtparser

logger = logging.getLogger(__name__)

MISSING_DATE_TEXT = "[Date Missing]"

_NUMERIC_RE = re.compile(r'^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$')
_MONTH_YEAR_RE = re.compile(r'^([A-Za-z]+)\.?\s*,?\s*(\d{4})$')
_SLASH_RE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')

_SENTINEL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

_MONTHS = {
    'january': 1, 'jan': 1,
    'february': 2, 'feb': 2,
    'march': 3, 'mar': 3,
    'april': 4, 'apr': 4,
    'may': 5,
    'june': 6, 'jun': 6,
    'july': 7, 'jul': 7,
    'august': 8, 'aug': 8,
    'september': 9, 'sep': 9, 'sept': 9,
    'october': 10, 'oct': 10,
    'november': 11, 'nov': 11,
    'december': 12, 'dec': 12,
}


class DateNormalizer:
    """Parses heterogeneous date text into ISO form and renders it back."""

    def __init__(self, today: Optional[date] = None):
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def _in_window(self, year: int) -> bool:
        return 1900 < year < self.today.year + 5

    def _iso(self, year: int, month: int, day: int) -> Optional[str]:
        if not self._in_window(year):
            return None
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None

    def parse(self, text) -> Optional[str]:
        """
        Parse date text into YYYY-MM-DD.

        Returns None when nothing plausible can be recovered; a partial
        guess is never returned.
        """
        if not isinstance(text, str):
            return None
        value = text.strip()
        if not value:
            return None

        # (a) MM/DD/YYYY or MM-DD-YYYY
        match = _NUMERIC_RE.match(value)
        if match:
            month, day, year = (int(g) for g in match.groups())
            if month <= 12 and day <= 31:
                return self._iso(year, month, day)
            return None

        # (b) month name + year, day defaults to the 1st
        match = _MONTH_YEAR_RE.match(value)
        if match:
            month = _MONTHS.get(match.group(1).lower())
            if month:
                return self._iso(int(match.group(2)), month, 1)

        # (c) generic natural-language fallback; year, month and day must all
        # come from the text, so two different defaults have to agree.
        try:
            first, second = (dtparser.parse(value, default=default) for default in _SENTINEL_DEFAULTS)
        except (ValueError, OverflowError, dtparser.ParserError) as e:
            logger.debug(f"Unparseable date {value!r}: {e}")
            return None
        if first.tzinfo is not None:
            first = first.astimezone(timezone.utc)
            second = second.astimezone(timezone.utc)
        if first.date() != second.date():
            logger.debug(f"Incomplete date {value!r}, not filling missing parts")
            return None
        return self._iso(first.year, first.month, first.day)

    def format(self, iso_date: Optional[str]) -> str:
        """Render an ISO date as MM/DD/YYYY for documents."""
        if not iso_date:
            return ""
        value = str(iso_date).strip()
        try:
            return datetime.strptime(value, '%Y-%m-%d').strftime('%m/%d/%Y')
        except ValueError:
            pass

        match = _SLASH_RE.match(value)
        if match:
            month, day, year = (int(g) for g in match.groups())
            if year > 1900 and 1 <= month <= 12 and 1 <= day <= 31:
                return f"{month:02d}/{day:02d}/{year}"
        return value

    def format_long(self, iso_date: Optional[str]) -> str:
        """Render an ISO date as 'January 5, 1990' for narrative sentences."""
        if not iso_date:
            return MISSING_DATE_TEXT
        try:
            parsed = datetime.strptime(str(iso_date).strip(), '%Y-%m-%d')
        except ValueError:
            return str(iso_date)
        return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"

    def today_long(self) -> str:
        return self.format_long(self.today.isoformat())


DATES = DateNormalizer()
