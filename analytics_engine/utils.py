"""Small shared helpers"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every stored datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clamp(value: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, value))


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
