from datetime import datetime
from zoneinfo import ZoneInfo

from reservas.core import config


def local_now(timezone_name: str | None = None) -> datetime:
    """Current wall-clock time in the business's zone, as a naive datetime."""
    zone = ZoneInfo(timezone_name or config.DEFAULT_BUSINESS_TIMEZONE)
    return datetime.now(zone).replace(tzinfo=None, second=0, microsecond=0)
