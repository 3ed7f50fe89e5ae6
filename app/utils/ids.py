"""Record id and timestamp utilities."""
import random
import string
from datetime import date, datetime, timezone

_ALPHABET = string.ascii_lowercase + string.digits


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def today_iso() -> str:
    """Today's UTC date as YYYY-MM-DD, the format schedule items use."""
    return utcnow().date().isoformat()


def generate_id(prefix: str, now: datetime | None = None, suffix_length: int = 9) -> str:
    """
    Generate a record id from a prefix, a millisecond timestamp and a random suffix.

    Args:
        prefix: Record kind, e.g. "goal" or "pledge"
        now: Optional timestamp (defaults to now)
        suffix_length: Number of random base36 characters

    Returns:
        Id string

    Examples:
        >>> generate_id("goal").startswith("goal-")
        True
        >>> len(generate_id("pledge", suffix_length=4).split("-"))
        3
    """
    if now is None:
        now = utcnow()
    millis = int(now.timestamp() * 1000)
    suffix = "".join(random.choices(_ALPHABET, k=suffix_length))
    return f"{prefix}-{millis}-{suffix}"


def parse_iso_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the string is not a valid date
    """
    return date.fromisoformat(value)
