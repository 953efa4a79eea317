"""Declarative base shared by all ORM models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.dialects import mysql
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql.functions import FunctionElement

# MySQL DATETIME drops fractional seconds unless fsp is given; read cursors
# compare against message timestamps, so both need microseconds.
Timestamp = DateTime(timezone=True).with_variant(
    mysql.DATETIME(timezone=True, fsp=6), "mysql"
)


class current_timestamp(FunctionElement):
    """Server-side default for ``Timestamp`` columns."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(current_timestamp)
def _compile_current_timestamp(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


@compiles(current_timestamp, "mysql")
def _compile_current_timestamp_mysql(element, compiler, **kw):
    return "CURRENT_TIMESTAMP(6)"


def utcnow() -> datetime:
    """Current UTC time with microsecond precision."""

    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for ORM models."""
