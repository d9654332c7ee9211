"""Unit tests for flexible date/time parsing."""

from datetime import datetime, timezone

import pytest

from gwcli.errors import UnparseableDateTimeError
from gwcli.utils.datetime_parser import default_end, parse_datetime, to_utc_iso

# Naive reference time, read as local time like user input
NOW = datetime(2025, 1, 15, 9, 0)


def local_utc(*args: int) -> str:
    """UTC ISO string for a local wall-clock time."""
    return datetime(*args).astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@pytest.mark.unit
class TestIsoInput:
    """Tests for ISO 8601 input."""

    def test_should_pass_through_utc(self) -> None:
        """Verify Z-suffixed input comes back unchanged."""
        assert parse_datetime("2025-01-15T10:00:00Z", now=NOW) == "2025-01-15T10:00:00Z"

    def test_should_convert_offsets_to_utc(self) -> None:
        """Verify explicit offsets are normalized to UTC."""
        assert parse_datetime("2025-01-15T10:00:00+02:00", now=NOW) == "2025-01-15T08:00:00Z"

    def test_should_read_naive_iso_as_local(self) -> None:
        """Verify ISO input without an offset is local time."""
        assert parse_datetime("2025-01-15T10:00", now=NOW) == local_utc(2025, 1, 15, 10, 0)


@pytest.mark.unit
class TestLooseInput:
    """Tests for the forms people type."""

    def test_should_parse_date_and_time(self) -> None:
        """Verify "YYYY-MM-DD HH:MM" is local time."""
        assert parse_datetime("2025-01-15 10:00", now=NOW) == local_utc(2025, 1, 15, 10, 0)

    def test_should_parse_today_with_time(self) -> None:
        """Verify "today 3:30pm" lands on the reference day."""
        assert parse_datetime("today 3:30pm", now=NOW) == local_utc(2025, 1, 15, 15, 30)

    def test_should_parse_tomorrow_with_time(self) -> None:
        """Verify "tomorrow 2pm" lands on the next day."""
        assert parse_datetime("tomorrow 2pm", now=NOW) == local_utc(2025, 1, 16, 14, 0)

    def test_should_parse_tomorrow_case_insensitively(self) -> None:
        """Verify relative words ignore case."""
        assert parse_datetime("Tomorrow 9AM", now=NOW) == local_utc(2025, 1, 16, 9, 0)

    def test_should_parse_24_hour_time(self) -> None:
        """Verify a bare "14:00" means today."""
        assert parse_datetime("14:00", now=NOW) == local_utc(2025, 1, 15, 14, 0)

    def test_should_parse_bare_hour_with_meridian(self) -> None:
        """Verify "9am" means today at nine."""
        assert parse_datetime("9am", now=NOW) == local_utc(2025, 1, 15, 9, 0)

    @pytest.mark.parametrize(
        ("value", "hour"),
        [("12am", 0), ("12pm", 12), ("12:30 am", 0), ("11pm", 23)],
    )
    def test_should_handle_noon_and_midnight(self, value: str, hour: int) -> None:
        """Verify 12am is midnight and 12pm is noon."""
        minute = 30 if ":30" in value else 0
        assert parse_datetime(value, now=NOW) == local_utc(2025, 1, 15, hour, minute)

    def test_should_fall_back_to_free_form(self) -> None:
        """Verify other human formats are understood."""
        assert parse_datetime("Jan 20 2025 10am", now=NOW) == local_utc(2025, 1, 20, 10, 0)

    def test_should_accept_aware_reference_time(self) -> None:
        """Verify an aware "now" is converted to local time first."""
        aware_now = NOW.astimezone(timezone.utc)
        assert parse_datetime("tomorrow 2pm", now=aware_now) == local_utc(2025, 1, 16, 14, 0)


@pytest.mark.unit
class TestInvalidInput:
    """Tests for rejected input."""

    @pytest.mark.parametrize(
        "value",
        ["13pm", "0am", "25:00", "9:75", "2025-02-30 10:00", "not a date", "", "2025-13-45T10:00"],
    )
    def test_should_raise_unparseable(self, value: str) -> None:
        """Verify nonsense and out-of-range values are rejected."""
        with pytest.raises(UnparseableDateTimeError) as exc_info:
            parse_datetime(value, now=NOW)
        assert exc_info.value.value == value

    def test_should_be_a_value_error(self) -> None:
        """Verify callers catching ValueError also catch parse failures."""
        with pytest.raises(ValueError, match="Unable to parse date/time: 13pm"):
            parse_datetime("13pm", now=NOW)


@pytest.mark.unit
class TestHelpers:
    """Tests for formatting helpers."""

    def test_should_format_aware_datetime(self) -> None:
        """Verify UTC output uses a Z suffix and whole seconds."""
        dt = datetime(2025, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert to_utc_iso(dt) == "2025-01-15T10:00:00Z"

    def test_should_default_end_one_hour_later(self) -> None:
        """Verify events without an end run for an hour."""
        assert default_end("2025-01-15T10:00:00Z") == "2025-01-15T11:00:00Z"

    def test_should_default_end_across_midnight(self) -> None:
        """Verify the default end rolls over to the next day."""
        assert default_end("2025-01-15T23:30:00Z", minutes=45) == "2025-01-16T00:15:00Z"
