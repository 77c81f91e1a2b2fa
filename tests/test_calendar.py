"""Tests for the economic calendar guard."""

import json
from datetime import datetime, timezone

import pytest

from quantsignal.strategy.economic_calendar import (
    CRITICAL,
    HIGH,
    LOW,
    MEDIUM,
    ScheduledEvent,
    get_economic_calendar_risks,
    load_scheduled_events,
)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _events(assessment) -> dict[str, str]:
    return {r.event: r.risk for r in assessment.risks}


class TestScheduledEvents:
    def test_fomc_within_window_is_critical(self):
        # Default calendar: FOMC 2026-03-18 18:00 UTC
        assessment = get_economic_calendar_risks(_utc(2026, 3, 18, 10, 0))
        assert _events(assessment)["FOMC rate decision"] == CRITICAL
        assert assessment.critical is True
        assert assessment.should_pause is True

    def test_event_outside_window_is_ignored(self):
        assessment = get_economic_calendar_risks(_utc(2026, 3, 16, 10, 0))
        assert "FOMC rate decision" not in _events(assessment)

    def test_custom_event_list(self):
        event = ScheduledEvent("ECB decision", _utc(2026, 2, 10, 12, 0))
        assessment = get_economic_calendar_risks(_utc(2026, 2, 10, 3, 0), (event,))
        assert _events(assessment)["ECB decision"] == CRITICAL

    def test_no_events(self):
        assessment = get_economic_calendar_risks(_utc(2026, 3, 18, 10, 0), ())
        assert assessment.critical is False


class TestRecurringWindows:
    def test_weekend(self):
        assessment = get_economic_calendar_risks(_utc(2026, 2, 7, 10, 0))  # Saturday
        weekend = [r for r in assessment.risks if r.event == "Weekend"]
        assert weekend and weekend[0].risk == HIGH
        assert weekend[0].tradeable == {"crypto": True, "forex": False, "stocks": False}
        assert assessment.high_risk is True
        assert assessment.should_pause is False

    def test_payrolls_during_release_hours_pauses(self):
        assessment = get_economic_calendar_risks(_utc(2026, 2, 6, 13, 0))  # first Friday
        events = _events(assessment)
        assert events["Non-Farm Payrolls (probable)"] == HIGH
        assert events["US Market Open Window"] == MEDIUM
        assert events["London/New York Overlap"] == MEDIUM
        assert assessment.should_pause is True

    def test_payrolls_outside_release_hours_does_not_pause(self):
        assessment = get_economic_calendar_risks(_utc(2026, 2, 6, 9, 0))
        assert "Non-Farm Payrolls (probable)" in _events(assessment)
        assert assessment.should_pause is False

    def test_cpi_window(self):
        noon = get_economic_calendar_risks(_utc(2026, 2, 11, 12, 0))
        assert _events(noon)["CPI Release Window (probable)"] == HIGH
        assert noon.should_pause is False
        release = get_economic_calendar_risks(_utc(2026, 2, 11, 13, 0))
        assert release.should_pause is True

    def test_quarterly_expiry(self):
        assessment = get_economic_calendar_risks(_utc(2026, 3, 20, 10, 0))  # third Friday
        assert _events(assessment)["Quarterly Expiry"] == HIGH

    def test_month_end(self):
        # 2026-01-31 is a Saturday → last business day is the 30th
        assessment = get_economic_calendar_risks(_utc(2026, 1, 30, 10, 0))
        assert _events(assessment)["Month-End Rebalancing"] == MEDIUM

    def test_quiet_asian_hours(self):
        assessment = get_economic_calendar_risks(_utc(2026, 2, 10, 3, 0))
        assert _events(assessment) == {"Asian Session": LOW}
        assert assessment.high_risk is False
        assert assessment.should_pause is False

    def test_european_open(self):
        assessment = get_economic_calendar_risks(_utc(2026, 2, 10, 7, 0))
        assert _events(assessment) == {"Asian Session": LOW, "European Session Open": LOW}

    def test_naive_time_read_as_utc(self):
        aware = get_economic_calendar_risks(_utc(2026, 2, 10, 3, 0))
        naive = get_economic_calendar_risks(datetime(2026, 2, 10, 3, 0))
        assert _events(aware) == _events(naive)


class TestLoadScheduledEvents:
    def test_loads_json(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(json.dumps([
            {"name": "FOMC rate decision", "time": "2027-01-27T19:00:00Z"},
            {"name": "BoE decision", "time": "2027-02-04T12:00:00"},
        ]), encoding="utf-8")
        events = load_scheduled_events(str(path))
        assert len(events) == 2
        assert events[0].time == _utc(2027, 1, 27, 19, 0)
        assert events[1].time.tzinfo is not None

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(json.dumps([{"name": "No time"}]), encoding="utf-8")
        with pytest.raises(ValueError, match="name"):
            load_scheduled_events(str(path))
