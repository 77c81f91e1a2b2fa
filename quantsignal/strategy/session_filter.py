"""Session filter — pure functions over the UTC hour."""

# Half-open [start, end) UTC hour windows.
ASIAN_SESSION = (0, 8)
EUROPEAN_SESSION = (7, 16)
US_SESSION = (13, 21)
US_OPEN_WINDOW = (13, 16)
LONDON_NY_OVERLAP = (
    max(EUROPEAN_SESSION[0], US_SESSION[0]),
    min(EUROPEAN_SESSION[1], US_SESSION[1]),
)


def is_in_session(
    utc_hour: int,
    session_start: int = 7,
    session_end: int = 21,
) -> bool:
    """Return True if *utc_hour* falls within ``[session_start, session_end)``.

    Windows that wrap midnight (``session_start > session_end``) are
    supported.

    Args:
        utc_hour: The hour in UTC (0–23).
        session_start: Session start hour (inclusive).
        session_end: Session end hour (exclusive).
    """
    if session_start <= session_end:
        return session_start <= utc_hour < session_end
    return utc_hour >= session_start or utc_hour < session_end


def active_sessions(utc_hour: int) -> list[str]:
    """Names of the liquidity sessions open at *utc_hour*."""
    names = []
    for name, (start, end) in (
        ("asian", ASIAN_SESSION),
        ("european", EUROPEAN_SESSION),
        ("us", US_SESSION),
    ):
        if is_in_session(utc_hour, start, end):
            names.append(name)
    return names


def is_london_ny_overlap(utc_hour: int) -> bool:
    """True while both the European and US sessions are open."""
    return is_in_session(utc_hour, *LONDON_NY_OVERLAP)
