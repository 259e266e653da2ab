"""Time helpers shared by the services."""
from datetime import datetime, timedelta
from typing import Callable

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Naive datetime on the server's local clock (matches how rows are stamped)."""
    return datetime.now()


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def window_start(moment: datetime, days: int) -> datetime:
    """Beginning of an inclusive look-back window of `days` ending at `moment`."""
    return moment - timedelta(days=days)
