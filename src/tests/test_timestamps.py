"""Unit tests for compact timestamp conversion."""

from datetime import datetime, timedelta, timezone

import pytest

from tiddlynet.core.errors import ParseError
from tiddlynet.core.timestamps import datetime_to_timestamp, timestamp_to_datetime


# ============================================================
# Decoding
# ============================================================


class TestTimestampToDatetime:
    def test_full_timestamp_with_milliseconds(self):
        dt = timestamp_to_datetime("20210615143022500")
        assert dt == datetime(2021, 6, 15, 14, 30, 22, 500000, tzinfo=timezone.utc)

    def test_without_seconds_or_milliseconds(self):
        dt = timestamp_to_datetime("202106151430")
        assert dt == datetime(2021, 6, 15, 14, 30, 0, 0, tzinfo=timezone.utc)

    def test_without_milliseconds(self):
        dt = timestamp_to_datetime("20091107135846")
        assert dt == datetime(2009, 11, 7, 13, 58, 46, tzinfo=timezone.utc)

    def test_result_is_utc(self):
        dt = timestamp_to_datetime("20210615143022")
        assert dt.tzinfo is not None
        assert dt.utcoffset() == timedelta(0)

    def test_month_is_one_based(self):
        assert timestamp_to_datetime("20210101000000").month == 1
        assert timestamp_to_datetime("20211231000000").month == 12

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "2021",
            "20210615",
            "2021061514302250000",
            "2021-06-15T14:30",
            "abcdefghijklmn",
            "20211315143022",
            "20210231120000",
            "20210615250000",
        ],
    )
    def test_malformed_raises(self, value):
        with pytest.raises(ParseError):
            timestamp_to_datetime(value)

    def test_non_string_raises(self):
        with pytest.raises(ParseError):
            timestamp_to_datetime(20210615143022)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            timestamp_to_datetime("nope")


# ============================================================
# Encoding
# ============================================================


class TestDatetimeToTimestamp:
    def test_aware_datetime(self):
        dt = datetime(2021, 6, 15, 14, 30, 22, 500000, tzinfo=timezone.utc)
        assert datetime_to_timestamp(dt) == "20210615143022500"

    def test_naive_datetime_taken_as_utc(self):
        assert datetime_to_timestamp(datetime(2021, 6, 15, 9, 5, 1)) == "20210615090501000"

    def test_other_timezone_converted_to_utc(self):
        tz = timezone(timedelta(hours=2))
        dt = datetime(2021, 6, 15, 16, 30, 0, tzinfo=tz)
        assert datetime_to_timestamp(dt) == "20210615143000000"

    def test_decodes_back(self):
        dt = datetime(2024, 2, 29, 23, 59, 59, 999000, tzinfo=timezone.utc)
        assert timestamp_to_datetime(datetime_to_timestamp(dt)) == dt
