from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def local_now() -> datetime:
    """Current time in the process-local timezone, used for date stamps."""
    return datetime.now().astimezone()


def round_money(value: float) -> float:
    return round(value, 2)
