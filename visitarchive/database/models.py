"""
Database Models - Archive Store

Archived records are keyed by site, period type, period start and record name:

- ArchiveNumeric: distinct counts and other numeric records
- ArchiveBlob: serialized report tables
"""

from datetime import date, datetime

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class ArchiveNumeric(Base):
    """
    Numeric Archive Table

    One numeric record per site, period and name.
    """
    __tablename__ = "archive_numeric"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[str] = mapped_column(String(10), nullable=False)
    date1: Mapped[date] = mapped_column(Date, nullable=False)
    date2: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    ts_archived: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("site_id", "period_type", "date1", "name", name="uq_archive_numeric_record"),
        Index("ix_archive_numeric_period", "site_id", "period_type", "date1"),
    )


class ArchiveBlob(Base):
    """
    Blob Archive Table

    Serialized report tables, one per site, period and record name.
    """
    __tablename__ = "archive_blob"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[str] = mapped_column(String(10), nullable=False)
    date1: Mapped[date] = mapped_column(Date, nullable=False)
    date2: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    ts_archived: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("site_id", "period_type", "date1", "name", name="uq_archive_blob_record"),
        Index("ix_archive_blob_period", "site_id", "period_type", "date1"),
    )
