from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
	"""Attach UTC to naive datetimes; some drivers (sqlite) drop tzinfo on read."""
	if value is None:
		return None
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
	if value is None:
		return None
	return datetime.fromtimestamp(int(value), tz=timezone.utc)
