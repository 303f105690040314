# utils/clock.py
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
     """Current UTC time as a naive datetime (the database stores naive UTC)."""
     return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
     """Convert an aware datetime to naive UTC. Naive values are taken as UTC already."""
     if value is None or value.tzinfo is None:
          return value
     return value.astimezone(timezone.utc).replace(tzinfo=None)
