# app/core/timeutil.py
import datetime as dt

def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

def as_utc(value: dt.datetime | None) -> dt.datetime | None:
    # SQLite devolve DateTime(timezone=True) sem tzinfo
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)
