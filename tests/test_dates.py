"""
Tests for date normalisation.
"""

from datetime import date, datetime, timezone
from types import SimpleNamespace

from core.dates import UNAVAILABLE_LABEL, format_date, sort_key, to_date


class TestToDate:
    """Tests for to_date."""

    def test_none_and_bool_unavailable(self):
        """None and booleans are not dates."""
        assert to_date(None) is None
        assert to_date(True) is None

    def test_datetime_passthrough(self):
        """Datetimes come back unchanged."""
        value = datetime(2026, 2, 10, 9, 30)
        assert to_date(value) is value

    def test_date_becomes_midnight(self):
        """Plain dates become midnight datetimes."""
        assert to_date(date(2026, 2, 10)) == datetime(2026, 2, 10)

    def test_timestamp_mapping(self):
        """Store timestamps use seconds and nanoseconds."""
        result = to_date({"seconds": 86400, "nanoseconds": 500_000_000})
        assert result == datetime(1970, 1, 2, 0, 0, 0, 500000, tzinfo=timezone.utc)

    def test_timestamp_object(self):
        """Objects with a seconds attribute are timestamps too."""
        assert to_date(SimpleNamespace(seconds=0, nanoseconds=0)) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_numbers_are_epoch_milliseconds(self):
        """Numbers are read as milliseconds."""
        assert to_date(86_400_000) == datetime(1970, 1, 2, tzinfo=timezone.utc)

    def test_iso_string_with_z(self):
        """A trailing Z is UTC."""
        assert to_date("2026-02-10T09:30:00Z") == datetime(2026, 2, 10, 9, 30, tzinfo=timezone.utc)

    def test_uk_style_string(self):
        """Day-first strings are accepted."""
        assert to_date("10/02/2026") == datetime(2026, 2, 10)

    def test_unparseable_values(self):
        """Garbage gives None rather than raising."""
        assert to_date("not a date") is None
        assert to_date("") is None
        assert to_date({"seconds": "soon"}) is None
        assert to_date(object()) is None


class TestFormatDate:
    """Tests for format_date."""

    def test_default_format(self):
        assert format_date("2026-02-10") == "10 Feb 2026"

    def test_custom_format(self):
        assert format_date("2026-02-10", "%d %b") == "10 Feb"

    def test_unavailable(self):
        assert format_date(None) == UNAVAILABLE_LABEL
        assert format_date("garbage", default="") == ""


class TestSortKey:
    """Tests for sort_key."""

    def test_mixed_shapes_order(self):
        """Different date shapes compare on one scale."""
        values = ["2026-03-01T00:00:00+00:00", {"seconds": 0}, None, datetime(2026, 1, 1)]
        ordered = sorted(values, key=sort_key)
        assert ordered == [None, {"seconds": 0}, datetime(2026, 1, 1), "2026-03-01T00:00:00+00:00"]

    def test_unavailable_sorts_first(self):
        assert sort_key(None) == float("-inf")
