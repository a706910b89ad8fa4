from datetime import datetime, timezone

def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime, the form every timestamp column stores.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)

def as_naive_utc(value: datetime | None) -> datetime | None:
    """
    Normalizes an aware datetime to naive UTC. Naive values are assumed to be UTC already.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
