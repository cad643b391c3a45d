"""
Tests for EmailDateService: time-of-day bucketing and Date header parsing.
"""

from datetime import datetime, timezone

import pytest

from inbox_insights.email_processing.handlers.date_service import EmailDateService
from inbox_insights.email_processing.models import TimeOfDay


def expected_bucket(hour: int) -> TimeOfDay:
    if hour >= 21 or hour < 10:
        return TimeOfDay.MORNING
    if hour < 15:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


class TestTimeOfDay:
    @pytest.mark.parametrize("hour", range(24))
    def test_every_hour_maps_to_expected_bucket(self, hour):
        assert EmailDateService.time_of_day(hour) == expected_bucket(hour)

    @pytest.mark.parametrize("hour,bucket", [
        (20, TimeOfDay.EVENING),
        (21, TimeOfDay.MORNING),
        (0, TimeOfDay.MORNING),
        (9, TimeOfDay.MORNING),
        (10, TimeOfDay.AFTERNOON),
        (14, TimeOfDay.AFTERNOON),
        (15, TimeOfDay.EVENING),
    ])
    def test_band_boundaries(self, hour, bucket):
        """Morning wraps around midnight from 21:00 to 09:59."""
        assert EmailDateService.time_of_day(hour) == bucket

    @pytest.mark.parametrize("hour", [-1, 24, 99])
    def test_out_of_range_hour_rejected(self, hour):
        with pytest.raises(ValueError):
            EmailDateService.time_of_day(hour)

    def test_timestamp_bucketed_in_given_timezone(self):
        # 2025-03-04 16:30 UTC
        ts = int(datetime(2025, 3, 4, 16, 30, tzinfo=timezone.utc).timestamp() * 1000)
        assert EmailDateService.time_of_day_for_timestamp(ts, timezone.utc) == TimeOfDay.EVENING


class TestDateParsing:
    def test_rfc2822_header(self):
        parsed, ok = EmailDateService.parse_email_date("Tue, 04 Mar 2025 12:00:00 +0000")
        assert ok is True
        assert parsed == datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc)

    def test_iso_string(self):
        parsed, ok = EmailDateService.parse_email_date("2025-03-04T12:00:00+00:00")
        assert ok is True
        assert parsed.hour == 12

    def test_empty_string_reports_failure(self):
        _, ok = EmailDateService.parse_email_date("")
        assert ok is False

    def test_to_epoch_millis_uses_header(self):
        ms = EmailDateService.to_epoch_millis("Tue, 04 Mar 2025 12:00:00 +0000", fallback_ms=1)
        assert ms == int(datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc).timestamp() * 1000)

    def test_to_epoch_millis_falls_back_on_garbage(self):
        assert EmailDateService.to_epoch_millis("not a date at all", fallback_ms=1234) == 1234
