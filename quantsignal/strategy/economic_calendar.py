"""Economic calendar guard — deterministic risk windows from UTC time.

Scheduled macro announcements (±24 h) are CRITICAL.  The remaining
windows are rule-of-thumb release and liquidity periods: first-Friday
payrolls, mid-month CPI, weekend closure, trading sessions, month-end and
quarterly expiry.
"""

import calendar
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from quantsignal.strategy.session_filter import (
    ASIAN_SESSION,
    EUROPEAN_SESSION,
    LONDON_NY_OVERLAP,
    US_OPEN_WINDOW,
    is_in_session,
)

logger = logging.getLogger("quantsignal")

LOW = "LOW"
MEDIUM = "MEDIUM"
HIGH = "HIGH"
CRITICAL = "CRITICAL"

# Scheduled releases land between 13:00 and 14:59 UTC.
RELEASE_HOURS = (13, 14)
EVENT_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class ScheduledEvent:
    """A dated macro announcement (e.g. a central-bank rate decision)."""

    name: str
    time: datetime


@dataclass(frozen=True)
class CalendarRisk:
    """One active risk window."""

    event: str
    risk: str  # LOW | MEDIUM | HIGH | CRITICAL
    action: str
    tradeable: Optional[dict[str, bool]] = None


@dataclass(frozen=True)
class CalendarAssessment:
    """All risk windows active at *timestamp*."""

    risks: list[CalendarRisk] = field(default_factory=list)
    high_risk: bool = False
    should_pause: bool = False
    timestamp: str = ""

    @property
    def critical(self) -> bool:
        """``True`` when any CRITICAL window is active."""
        return any(r.risk == CRITICAL for r in self.risks)


def _fomc(month: int, day: int) -> ScheduledEvent:
    return ScheduledEvent(
        "FOMC rate decision", datetime(2026, month, day, 18, 0, tzinfo=timezone.utc)
    )


DEFAULT_SCHEDULED_EVENTS: tuple[ScheduledEvent, ...] = (
    _fomc(1, 28),
    _fomc(3, 18),
    _fomc(4, 29),
    _fomc(6, 17),
    _fomc(7, 29),
    _fomc(9, 16),
    _fomc(10, 28),
    _fomc(12, 9),
)


def _parse_time(raw: str) -> datetime:
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def load_scheduled_events(path: str) -> tuple[ScheduledEvent, ...]:
    """Load scheduled events from a JSON file.

    Expected format::

        [{"name": "FOMC rate decision", "time": "2027-01-27T19:00:00Z"}, ...]

    Naive timestamps are read as UTC.

    Raises:
        ValueError: If an entry is missing ``name`` or ``time``, or a
            timestamp cannot be parsed.
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    events: list[ScheduledEvent] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict) or "name" not in entry or "time" not in entry:
            raise ValueError(f"Scheduled event #{i} in {path} needs 'name' and 'time'")
        events.append(ScheduledEvent(str(entry["name"]), _parse_time(str(entry["time"]))))

    logger.info("Loaded %d scheduled macro events from %s", len(events), path)
    return tuple(events)


# ── Date helpers ─────────────────────────────────────────────────────────


def _last_business_day(year: int, month: int) -> int:
    day = calendar.monthrange(year, month)[1]
    while calendar.weekday(year, month, day) >= 5:
        day -= 1
    return day


def _third_friday(year: int, month: int) -> int:
    first_weekday = calendar.weekday(year, month, 1)
    first_friday = 1 + (calendar.FRIDAY - first_weekday) % 7
    return first_friday + 14


# ── Assessment ───────────────────────────────────────────────────────────


def get_economic_calendar_risks(
    utc_now: Optional[datetime] = None,
    scheduled_events: tuple[ScheduledEvent, ...] = DEFAULT_SCHEDULED_EVENTS,
) -> CalendarAssessment:
    """Classify every risk window active at *utc_now*.

    ``should_pause`` is true when any CRITICAL window is active, or when a
    HIGH window coincides with the 13:00–14:59 UTC release hours.

    Args:
        utc_now: Evaluation time; defaults to the current UTC time.
        scheduled_events: Dated announcements checked with a ±24 h window.
    """
    now = utc_now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    weekday = now.weekday()  # Monday = 0
    hour = now.hour
    risks: list[CalendarRisk] = []

    for event in scheduled_events:
        if abs(now - event.time) <= EVENT_WINDOW:
            risks.append(CalendarRisk(
                event.name, CRITICAL,
                f"Scheduled announcement at {event.time.isoformat()}: no new positions",
            ))

    if weekday >= 5:
        risks.append(CalendarRisk(
            "Weekend", HIGH, "Forex and stock markets closed: crypto only",
            tradeable={"crypto": True, "forex": False, "stocks": False},
        ))

    if is_in_session(hour, *US_OPEN_WINDOW):
        risks.append(CalendarRisk(
            "US Market Open Window", MEDIUM,
            "Volatility spike expected at 14:30 UTC: wider stops recommended",
        ))
    if is_in_session(hour, *LONDON_NY_OVERLAP):
        risks.append(CalendarRisk(
            "London/New York Overlap", MEDIUM, "Peak liquidity: fast moves around releases",
        ))
    if is_in_session(hour, *ASIAN_SESSION):
        risks.append(CalendarRisk(
            "Asian Session", LOW, "Low liquidity for EUR/USD, GBP/USD: spreads wider",
        ))
    if hour == EUROPEAN_SESSION[0]:
        risks.append(CalendarRisk(
            "European Session Open", LOW, "London open: spreads settle within the hour",
        ))

    if weekday == calendar.FRIDAY and now.day <= 7:
        risks.append(CalendarRisk(
            "Non-Farm Payrolls (probable)", HIGH,
            "NFP day: avoid forex 30 min either side of 13:30 UTC",
        ))
    if 10 <= now.day <= 15 and 12 <= hour <= 14:
        risks.append(CalendarRisk(
            "CPI Release Window (probable)", HIGH,
            "Potential CPI release: high volatility for all markets",
        ))

    if weekday < 5 and now.day == _last_business_day(now.year, now.month):
        risks.append(CalendarRisk(
            "Month-End Rebalancing", MEDIUM, "Fund flows distort fixes around 16:00 UTC",
        ))
    if now.month in (3, 6, 9, 12) and now.day == _third_friday(now.year, now.month):
        risks.append(CalendarRisk(
            "Quarterly Expiry", HIGH, "Futures and options expiry: erratic price action",
        ))

    high_risk = any(r.risk in (HIGH, CRITICAL) for r in risks)
    in_release_hours = RELEASE_HOURS[0] <= hour <= RELEASE_HOURS[1]
    should_pause = any(r.risk == CRITICAL for r in risks) or (
        in_release_hours and any(r.risk == HIGH for r in risks)
    )

    return CalendarAssessment(
        risks=risks,
        high_risk=high_risk,
        should_pause=should_pause,
        timestamp=now.isoformat(),
    )
