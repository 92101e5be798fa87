"""
Treatment session model representing a multi-session treatment plan.

A plan (for example four weekly light-bath sessions on the same body
location) owns its dated session records. ``completed_sessions`` is derived
from those records and is only written by
TreatmentSessionRecordService.recalculate_session_progress.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.enums import SessionStatus


class TreatmentSession(Base):
    """
    Treatment session plan for a light bath or rod course.

    Light bath plans always carry ``duration_minutes`` and ``color``; rod plans
    never do.
    """

    __tablename__ = "treatment_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    treatment_record_id: Mapped[int] = mapped_column(ForeignKey("treatment_records.id", ondelete="CASCADE"))
    """Treatment record that ordered this course."""

    attendance_id: Mapped[int] = mapped_column(ForeignKey("attendances.id", ondelete="CASCADE"))
    """Attendance in which the course was ordered."""

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"))

    treatment_type: Mapped[str] = mapped_column(String(20))
    """'light_bath' or 'rod'."""

    body_location: Mapped[str] = mapped_column(String(100))

    start_date: Mapped[str] = mapped_column(String(10))
    """Date of the first session (YYYY-MM-DD)."""

    planned_sessions: Mapped[int] = mapped_column(Integer)
    """Number of sessions planned (1-50)."""

    completed_sessions: Mapped[int] = mapped_column(Integer, default=0)
    """Number of child records with status 'completed'. Derived; never edited directly."""

    end_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    """Date the plan was completed (YYYY-MM-DD)."""

    status: Mapped[str] = mapped_column(String(20), default=SessionStatus.SCHEDULED.value)

    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Light bath duration in 7-minute units (1=7min, 2=14min, ...). Light bath only."""

    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    """Light bath color. Light bath only."""

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    # Relationships
    session_records = relationship(
        "TreatmentSessionRecord",
        back_populates="treatment_session",
        cascade="all, delete-orphan",
        order_by="TreatmentSessionRecord.session_number",
    )
    """Dated occurrences of this plan, ordered by session number. Deleted with the plan."""

    patient = relationship("Patient", back_populates="treatment_sessions")

    treatment_record = relationship("TreatmentRecord", back_populates="treatment_sessions")

    attendance = relationship("Attendance")

    __table_args__ = (
        Index('idx_treatment_sessions_patient_type_status', 'patient_id', 'treatment_type', 'status'),
        Index('idx_treatment_sessions_treatment_record', 'treatment_record_id'),
        CheckConstraint('planned_sessions > 0 AND planned_sessions <= 50', name='check_session_planned_range'),
        CheckConstraint(
            'duration_minutes IS NULL OR (duration_minutes > 0 AND duration_minutes <= 10)',
            name='check_session_duration_range'
        ),
        CheckConstraint(
            "(treatment_type = 'light_bath' AND duration_minutes IS NOT NULL AND color IS NOT NULL) OR "
            "(treatment_type = 'rod' AND duration_minutes IS NULL AND color IS NULL)",
            name='check_session_type_fields'
        ),
        CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'cancelled')",
            name='check_session_status'
        ),
    )
