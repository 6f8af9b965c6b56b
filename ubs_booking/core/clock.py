"""Wall-clock helpers in the clinic timezone."""

from datetime import datetime
from zoneinfo import ZoneInfo

from ubs_booking.config import settings


def clinic_now() -> datetime:
    """Current naive local time in the configured booking timezone."""
    return datetime.now(ZoneInfo(settings.booking_timezone)).replace(tzinfo=None)
