"""
Convention horaire de la base : instants en UTC naif, comme les timestamps fitparse.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Instant courant en UTC naif."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Ramene un instant en UTC naif. Un instant sans fuseau est deja considere UTC."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=None)
    return value.astimezone(timezone.utc).replace(tzinfo=None)
