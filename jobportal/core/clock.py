"""
Time helpers.

Application-managed timestamps (plan windows, approvals, payments) are stored
as naive UTC so they compare the same way on SQLite and Postgres.
"""
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utcnow().date()
