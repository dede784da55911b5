from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC now, matching the DATETIME columns of the store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")
