"""
SQLAlchemy database models.
"""
from datetime import datetime
from typing import Optional
import enum

from sqlalchemy import String, Integer, DateTime, Text, JSON, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

# Marker stored in Sample.results until the portal publishes a result
PENDING = "pending"


class SyncStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"


class Sample(Base):
    """A specimen registered for a roster member, keyed by its barcode."""
    __tablename__ = "Samples"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # Not declared unique; the reconciler refuses to update more than one row
    barcode: Mapped[str] = mapped_column(String(100), nullable=False)
    results: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=PENDING)
    created_time: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_time: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    sample_date: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_samples_barcode", "barcode"),
        Index("ix_samples_updated_time", "updated_time"),
    )

    @property
    def is_pending(self) -> bool:
        return self.results is not None and PENDING in self.results

    def __repr__(self) -> str:
        return f"Sample(name={self.name!r}, barcode={self.barcode!r}, results={self.results!r})"


class SyncRun(Base):
    """Log of reconciliation passes."""
    __tablename__ = "sync_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    trigger: Mapped[str] = mapped_column(String(30), nullable=False)  # scheduled, manual, cli
    status: Mapped[SyncStatus] = mapped_column(SQLEnum(SyncStatus), nullable=False)
    samples_checked: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    samples_resolved: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    errors: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
