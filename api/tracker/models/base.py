"""Declarative base and shared column helpers."""
import uuid

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    """Generate an opaque primary key."""
    return uuid.uuid4().hex
