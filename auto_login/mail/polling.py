"""Poll scheduling and winner selection, free of timers and I/O."""

from datetime import datetime
from typing import Iterable, Optional

from auto_login.models.message import ExtractedCode


def next_poll_delay(elapsed: float, max_wait: float, interval: float) -> Optional[float]:
    """
    Decide whether another poll cycle should run.

    Args:
        elapsed: Seconds since the wait started
        max_wait: Total wait budget in seconds
        interval: Fixed delay between cycles in seconds

    Returns:
        Seconds to sleep before the next cycle, or None to stop. The delay is
        clipped so the last cycle starts no later than the deadline.
    """
    remaining = max_wait - elapsed
    if remaining <= 0:
        return None
    return min(interval, remaining)


def is_fresh(received_at: datetime, since_time: Optional[datetime]) -> bool:
    """True unless the message was received strictly before ``since_time``."""
    if since_time is None:
        return True
    return received_at >= since_time


def select_latest(codes: Iterable[ExtractedCode]) -> Optional[ExtractedCode]:
    """
    Pick the code from the most recently received message.

    Equal timestamps go to the candidate that comes last in fetch order.
    """
    winner = None
    for code in codes:
        if winner is None or code.received_at >= winner.received_at:
            winner = code
    return winner
