"""Date parsing and formatting helpers shared by services and pipelines."""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from src.core.config import settings


WEEKDAYS_KO = ["월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일"]


def app_timezone() -> ZoneInfo:
    """Timezone in which calendar days are reckoned for users."""
    return ZoneInfo(settings.app_timezone)


def local_now() -> datetime:
    """Current time in the application timezone."""
    return datetime.now(app_timezone())


def to_local(value: datetime) -> datetime:
    """Convert an aware datetime into the application timezone."""
    return value.astimezone(app_timezone())


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse a stored or client-supplied timestamp into an aware datetime.

    Empty values map to None. Naive values are assumed to be UTC.
    """
    if value is None or value == "":
        return None
    parsed = value if isinstance(value, datetime) else date_parser.isoparse(value.replace(" ", "T"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_dotted(value: date) -> str:
    """Format as `YYYY. M. D.` (ko-KR short date)."""
    return f"{value.year}. {value.month}. {value.day}."


def format_korean_long(value: date) -> str:
    """Format as `YYYY년 M월 D일`."""
    return f"{value.year}년 {value.month}월 {value.day}일"


def weekday_ko(value: date) -> str:
    """Korean weekday name."""
    return WEEKDAYS_KO[value.weekday()]
