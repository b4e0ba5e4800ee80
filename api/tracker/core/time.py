"""Central time utilities for the application.

Timestamps are stored in naive DateTime columns (TIMESTAMP WITHOUT TIME ZONE)
and always represent UTC.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as a naive datetime object.

    Replaces datetime.utcnow() while keeping values comparable with the
    naive DateTime columns used by every table in this service.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
