"""
Attendance model representing one scheduled clinic visit for a patient.

Attendances are created directly by clinic staff or generated in batches by
the treatment session planner. Dates and times are stored as plain strings
and compared as strings; no timezone conversion is applied.
"""

from typing import Optional

from sqlalchemy import String, Text, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.enums import AttendanceStatus


class Attendance(Base):
    """
    Attendance entity: one appointment slot of a given type for a patient.

    Status moves scheduled -> checked_in -> in_progress -> completed, or
    scheduled -> cancelled (see AttendanceService for the transition table).
    """

    __tablename__ = "attendances"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"))
    """Reference to the patient attending."""

    type: Mapped[str] = mapped_column(String(20))
    """Attendance type: 'spiritual', 'light_bath' or 'rod'."""

    status: Mapped[str] = mapped_column(String(20), default=AttendanceStatus.SCHEDULED.value)
    """Current status of the attendance."""

    scheduled_date: Mapped[str] = mapped_column(String(10))
    """Scheduled date (YYYY-MM-DD)."""

    scheduled_time: Mapped[str] = mapped_column(String(5))
    """Scheduled wall-clock time (HH:MM)."""

    checked_in_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    """Time the patient checked in (HH:MM:SS), set on entering checked_in."""

    started_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    """Time the attendance started (HH:MM:SS), set on entering in_progress."""

    completed_time: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    """Time the attendance finished (HH:MM:SS), set on entering completed."""

    cancelled_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    """Date the attendance was cancelled (YYYY-MM-DD); may differ from scheduled_date."""

    absence_justified: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    """Set when the patient did not show up: True if the absence was justified. None otherwise."""

    absence_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Justification given for the absence, if any."""

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Free-form notes, e.g. the "Sessão 2 de 4" label on generated attendances."""

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    # Relationships
    patient = relationship("Patient", back_populates="attendances")

    treatment_record = relationship(
        "TreatmentRecord", back_populates="attendance", uselist=False, cascade="all, delete-orphan"
    )
    """Clinical record written for this attendance once completed (one-to-one)."""

    __table_args__ = (
        # Capacity check filters on exactly these columns
        Index('idx_attendances_slot', 'scheduled_date', 'scheduled_time', 'type', 'status'),
        Index('idx_attendances_patient', 'patient_id'),
        CheckConstraint("type IN ('spiritual', 'light_bath', 'rod')", name='check_attendance_type'),
        CheckConstraint(
            "status IN ('scheduled', 'checked_in', 'in_progress', 'completed', 'cancelled')",
            name='check_attendance_status'
        ),
    )
