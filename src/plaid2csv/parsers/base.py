"""Value normalization shared by the response parsers."""

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional


# Provider timestamps carry a variable number of fractional digits
_FRACTION_PATTERN = re.compile(r'\.(\d+)')


class DataTransformer:
    """Transforms raw JSON values to typed record fields"""

    DATE_FORMAT = "%Y-%m-%d"

    def normalize_date(self, value: Any) -> Optional[date]:
        """Parse a YYYY-MM-DD date; empty or null means no date.

        Raises:
            ValueError: If the value is present but not a valid date
        """
        if value is None or not str(value).strip():
            return None
        parsed = datetime.strptime(str(value).strip(), self.DATE_FORMAT).date()
        if parsed.year <= 1:
            return None
        return parsed

    def normalize_timestamp(self, value: Any) -> Optional[datetime]:
        """Parse an RFC 3339 timestamp into an aware datetime.

        Null, empty and the zero timestamp ``0001-01-01T00:00:00Z`` all mean
        "never" and return None.
        """
        if value is None or not str(value).strip():
            return None

        text = str(value).strip()
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'

        # fromisoformat only accepts up to microsecond precision
        text = _FRACTION_PATTERN.sub(
            lambda m: '.' + m.group(1)[:6].ljust(6, '0'), text, count=1
        )

        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        if parsed.year <= 1:
            return None
        return parsed

    def normalize_amount(self, value: Any, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
        """Convert a JSON number to Decimal without float rounding.

        Raises:
            ValueError: If the value cannot be read as a number
        """
        if value is None or value == '':
            return default
        if isinstance(value, Decimal):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid amount: {value!r}")
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")

    def normalize_text(self, value: Any) -> str:
        """Null-safe string conversion"""
        if value is None:
            return ""
        return str(value)

    def normalize_list(self, value: Any) -> List[str]:
        """Null-safe conversion of a JSON array of strings"""
        if not value:
            return []
        return [self.normalize_text(v) for v in value]
