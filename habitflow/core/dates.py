"""Local calendar date utilities.

All dates are ``YYYY-MM-DD`` strings interpreted as local calendar days. They
are never routed through a UTC timestamp, which would shift the weekday for
users near midnight.
"""

from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from habitflow.core.config import settings


def parse_iso(iso: str) -> date:
    """Parse the calendar part of an ISO date or timestamp as a local date."""
    return date.fromisoformat(iso[:10])


def to_iso(d: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return d.isoformat()


def today_local(tz: str | None = None) -> str:
    """Return today's local calendar date.

    Args:
        tz: IANA timezone name; falls back to ``settings.timezone`` and then to
            the process local time.
    """
    zone_name = tz or settings.timezone
    if zone_name:
        return to_iso(datetime.now(ZoneInfo(zone_name)).date())
    return to_iso(date.today())


def local_date_of(timestamp: str, tz: str | None = None) -> str:
    """Return the local calendar day of an ISO timestamp such as createdAt.

    Plain dates and naive timestamps are taken as already local. Aware ones are
    converted to ``tz``, then ``settings.timezone``, then the process local time.
    """
    if len(timestamp) == 10:
        return timestamp
    moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        return to_iso(moment.date())
    zone_name = tz or settings.timezone
    local = moment.astimezone(ZoneInfo(zone_name)) if zone_name else moment.astimezone()
    return to_iso(local.date())


def to_iso_timestamp(now: datetime | None = None) -> str:
    """Return a UTC timestamp in the ``...Z`` form used for createdAt/updatedAt."""
    moment = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def day_of_week(iso: str) -> int:
    """Return the weekday index with 0=Sunday..6=Saturday."""
    # date.weekday() is 0=Monday..6=Sunday
    return (parse_iso(iso).weekday() + 1) % 7


def add_days(iso: str, n: int) -> str:
    """Shift a date by n days (negative moves backwards)."""
    return to_iso(parse_iso(iso) + timedelta(days=n))


def start_of_week(iso: str) -> str:
    """Return the Monday that starts the week containing ``iso``.

    Sunday belongs to the week that started six days earlier.
    """
    d = parse_iso(iso)
    return to_iso(d - timedelta(days=d.weekday()))


def same_week(a: str | None, b: str | None) -> bool:
    """Check whether two dates fall in the same Monday-start week."""
    if not a or not b:
        return False
    return start_of_week(a) == start_of_week(b)


def same_day(a: str | None, b: str | None) -> bool:
    """Check whether two dates are the same calendar day (false if either is empty)."""
    if not a or not b:
        return False
    return a[:10] == b[:10]


def iter_days(start: str, end: str) -> Iterator[str]:
    """Yield every date from start to end inclusive, walking forward only."""
    cursor = parse_iso(start)
    last = parse_iso(end)
    while cursor <= last:
        yield to_iso(cursor)
        cursor += timedelta(days=1)


def weeks_between(earlier: str, later: str) -> int:
    """Whole weeks elapsed between two dates."""
    return (parse_iso(later) - parse_iso(earlier)).days // 7


def months_between(earlier: str, later: str) -> int:
    """Calendar month difference between two dates (day of month ignored)."""
    a = parse_iso(earlier)
    b = parse_iso(later)
    return (b.year - a.year) * 12 + (b.month - a.month)

