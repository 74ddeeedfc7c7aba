from datetime import datetime, timezone

from sqlalchemy import DateTime

# Timestamp column type for every table: timestamptz on PostgreSQL.
# SQLite drops the offset on storage, so reads may come back naive.
UTCDateTime = DateTime(timezone=True)


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive values read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
