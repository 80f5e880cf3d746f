import time
from datetime import datetime, timezone
from typing import Final

MICROSECONDS: Final[int] = 1_000_000

class Clock:
    """
    Local clock source.
    Monotonic time drives scheduling, wall time is only for humans.
    """

    @staticmethod
    def now_us() -> int:
        """
        Returns current monotonic time in microseconds (int64).
        WARNING: Not related to wall time, only use for intervals.
        """
        return time.monotonic_ns() // 1000

    @staticmethod
    def now_s() -> float:
        """
        Returns current monotonic time in seconds.
        Used by the scheduler to compute fixed-rate tick deadlines.
        """
        return Clock.now_us() / MICROSECONDS

    @staticmethod
    def iso_now() -> str:
        return datetime.now(timezone.utc).isoformat()
