"""
Date handling service for email processing.

Parses the free-text ``Date`` header of a message into an epoch timestamp
and maps receive times onto the coarse time-of-day buckets used in the
persisted analysis.

Design Considerations:
- RFC 2822 first, then ISO-8601, then common patterns, then components
- Never raises on malformed headers; callers get a success flag
- Time-of-day buckets are computed in the machine's local timezone
"""

import email.utils
import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from inbox_insights.email_processing.models import TimeOfDay

logger = logging.getLogger(__name__)

_MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12
}


class EmailDateService:
    """
    Manages date parsing and time-of-day bucketing for messages.

    Buckets: 21:00-09:59 is Morning, 10:00-14:59 Afternoon and
    15:00-20:59 Evening. Morning wraps around midnight.
    """

    DATE_FORMATS = [
        "%a, %d %b %Y %H:%M:%S %z",  # RFC 2822
        "%Y-%m-%dT%H:%M:%S%z",       # ISO format
        "%Y-%m-%d %H:%M:%S%z",       # Common variant
        "%Y-%m-%d %H:%M:%S"          # Simple format
    ]

    @staticmethod
    def time_of_day(hour: int) -> TimeOfDay:
        """
        Map a local hour (0-23) onto its time-of-day bucket.

        Raises:
            ValueError: If hour is outside 0-23
        """
        if not 0 <= hour <= 23:
            raise ValueError(f"Hour out of range: {hour}")
        if hour >= 21 or hour < 10:
            return TimeOfDay.MORNING
        if hour < 15:
            return TimeOfDay.AFTERNOON
        return TimeOfDay.EVENING

    @classmethod
    def time_of_day_for_timestamp(cls, timestamp_ms: int, tz: Optional[tzinfo] = None) -> TimeOfDay:
        """
        Bucket an epoch-millisecond timestamp by its local hour.

        Args:
            timestamp_ms: Receive time in epoch milliseconds
            tz: Timezone to evaluate the hour in (defaults to the local zone)
        """
        local = datetime.fromtimestamp(timestamp_ms / 1000, tz)
        return cls.time_of_day(local.hour)

    @classmethod
    def parse_email_date(cls, date_str: str, default_timezone: str = "UTC") -> Tuple[datetime, bool]:
        """
        Parse an email date string with multi-stage fallbacks.

        Args:
            date_str: Date string to parse
            default_timezone: Timezone applied when the string has none

        Returns:
            Tuple of (parsed datetime, success flag). On failure the current
            time is returned with the flag set to False.
        """
        if not date_str:
            logger.warning("Empty date string provided")
            return datetime.now(ZoneInfo(default_timezone)), False

        try:
            # First attempt: RFC 2822 parsing
            email_tuple = email.utils.parsedate_tz(date_str)
            if email_tuple:
                timestamp = email.utils.mktime_tz(email_tuple)
                return datetime.fromtimestamp(timestamp, timezone.utc), True

            # Second attempt: ISO-8601
            try:
                dt = datetime.fromisoformat(date_str.strip())
                if not dt.tzinfo:
                    dt = dt.replace(tzinfo=ZoneInfo(default_timezone))
                return dt, True
            except ValueError:
                pass

            for fmt in cls.DATE_FORMATS:
                try:
                    dt = datetime.strptime(date_str.strip(), fmt)
                    if not dt.tzinfo:
                        dt = dt.replace(tzinfo=ZoneInfo(default_timezone))
                    return dt, True
                except ValueError:
                    continue

            return cls._extract_date_components(date_str, default_timezone)

        except (OverflowError, ValueError) as e:
            logger.error(f"Date parsing failed for '{date_str}': {str(e)}")
            return datetime.now(ZoneInfo(default_timezone)), False

    @classmethod
    def _extract_date_components(cls, date_str: str, default_timezone: str) -> Tuple[datetime, bool]:
        """
        Extract date components from non-standard format strings.

        Args:
            date_str: Date string to parse
            default_timezone: Timezone applied to the extracted components

        Returns:
            Tuple of (datetime, success flag)
        """
        date_match = re.search(
            r"(\d{1,2})\s*(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s*(\d{4})",
            date_str,
            re.IGNORECASE
        )
        if not date_match:
            logger.debug(f"No recognizable date components in '{date_str}'")
            return datetime.now(ZoneInfo(default_timezone)), False

        time_match = re.search(r"(\d{1,2}):(\d{2})(?::(\d{2}))?", date_str)
        hour = minute = second = 0
        if time_match:
            hour = int(time_match.group(1))
            minute = int(time_match.group(2))
            second = int(time_match.group(3)) if time_match.group(3) else 0

        try:
            dt = datetime(
                int(date_match.group(3)),
                _MONTHS[date_match.group(2).lower()[:3]],
                int(date_match.group(1)),
                hour, minute, second,
                tzinfo=ZoneInfo(default_timezone)
            )
            return dt, True
        except ValueError as e:
            logger.debug(f"Invalid date components in '{date_str}': {e}")
            return datetime.now(ZoneInfo(default_timezone)), False

    @classmethod
    def to_epoch_millis(cls, date_str: str, fallback_ms: Optional[int] = None) -> int:
        """
        Convert a Date header to epoch milliseconds.

        Args:
            date_str: Raw Date header value
            fallback_ms: Value used when the header cannot be parsed
                         (defaults to the current time)
        """
        parsed, success = cls.parse_email_date(date_str)
        if success:
            return int(parsed.timestamp() * 1000)
        if fallback_ms is not None:
            return fallback_ms
        return int(datetime.now(timezone.utc).timestamp() * 1000)
