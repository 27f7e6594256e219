from datetime import UTC, datetime, timedelta

from pricing.constants import PERIOD_FORMAT


def now() -> datetime:
    return datetime.now(UTC)


def time_diff(dt: timedelta) -> int:
    return max(0, int(round(dt.days * 86400 + dt.seconds)))


def timestamp() -> int:
    return int(now().timestamp())


def current_period() -> str:
    return now().strftime(PERIOD_FORMAT)


def next_period_start(dt: datetime) -> datetime:
    if dt.month == 12:
        return dt.replace(year=dt.year + 1, month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return dt.replace(month=dt.month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


def seconds_until_next_period() -> int:
    current = now()
    # never 0, redis rejects non-positive expiry
    return max(1, time_diff(next_period_start(current) - current))
