"""
Declarative base shared by every TaskTracker model, plus the UTC calendar
day that due dates, streaks and daily statistics are measured against.
"""

from datetime import date, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utc_today() -> date:
    return datetime.utcnow().date()
