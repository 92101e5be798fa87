"""
Treatment session record model: one dated occurrence of a treatment plan.

Records are generated in a batch when a plan is created and then updated
one by one as sessions are completed, missed or rescheduled.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.enums import SessionRecordStatus


class TreatmentSessionRecord(Base):
    """Single session of a TreatmentSession plan."""

    __tablename__ = "treatment_session_records"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    treatment_session_id: Mapped[int] = mapped_column(
        ForeignKey("treatment_sessions.id", ondelete="CASCADE")
    )

    attendance_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("attendances.id", ondelete="SET NULL"), nullable=True
    )
    """Attendance booked for this session. Referenced, not owned."""

    session_number: Mapped[int] = mapped_column(Integer)
    """1-based position within the plan."""

    scheduled_date: Mapped[str] = mapped_column(String(10))
    """Date of the session (YYYY-MM-DD)."""

    start_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    """Wall-clock time the session started (HH:MM:SS)."""

    end_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    """Wall-clock time the session ended (HH:MM:SS)."""

    status: Mapped[str] = mapped_column(String(20), default=SessionRecordStatus.SCHEDULED.value)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    missed_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Why the session was missed, when status is 'missed'."""

    performed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    # Relationships
    treatment_session = relationship("TreatmentSession", back_populates="session_records")

    attendance = relationship("Attendance")

    __table_args__ = (
        UniqueConstraint('treatment_session_id', 'session_number', name='uq_session_record_number'),
        Index('idx_session_records_status_date', 'status', 'scheduled_date'),
        Index('idx_session_records_attendance', 'attendance_id'),
    )
