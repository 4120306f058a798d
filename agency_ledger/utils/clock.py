"""Injectable clock so services never read the system time directly"""

from datetime import date, datetime, timedelta, timezone


class Clock:
    """Production clock returning timezone-aware UTC time"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Clock frozen at a given instant; advance() moves it forward"""

    def __init__(self, fixed_time: datetime | None = None):
        self._time = fixed_time or datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._time

    def set_time(self, value: datetime) -> None:
        self._time = value

    def advance(self, days: int = 0, seconds: int = 0) -> datetime:
        self._time = self._time + timedelta(days=days, seconds=seconds)
        return self._time
