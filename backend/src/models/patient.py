"""
Patient model representing individuals who receive treatment at the clinic.

Patients are created on intake and referenced by attendances and treatment
session plans. Their treatment status is driven by clinic staff; the
scheduling core only uses the patient as a foreign key.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.enums import PatientPriority, PatientTreatmentStatus


class Patient(Base):
    """
    Patient entity representing an individual who receives treatment.

    Each patient can have many attendances and many treatment session plans.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the patient."""

    name: Mapped[str] = mapped_column(String(100))
    """Full name of the patient."""

    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    """Optional contact phone number."""

    priority: Mapped[str] = mapped_column(String(1), default=PatientPriority.NORMAL.value)
    """Triage priority: '1' emergency, '2' intermediate, '3' normal."""

    treatment_status: Mapped[str] = mapped_column(String(20), default=PatientTreatmentStatus.NEW.value)
    """Treatment status: 'new', 'in_treatment', 'discharged' or 'absent'."""

    birth_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    """Optional birth date (YYYY-MM-DD)."""

    main_complaint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Main complaint reported on intake."""

    start_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    """Date the patient started treatment (YYYY-MM-DD)."""

    discharge_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    """Date the patient was discharged (YYYY-MM-DD), if any."""

    missing_appointments_streak: Mapped[int] = mapped_column(Integer, default=0)
    """Consecutive unjustified absences; reset when an attendance is completed."""

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    # Relationships
    attendances = relationship("Attendance", back_populates="patient", cascade="all, delete-orphan")
    """All attendances scheduled for this patient."""

    treatment_sessions = relationship("TreatmentSession", back_populates="patient", cascade="all, delete-orphan")
    """All multi-session treatment plans for this patient."""

    notes = relationship("PatientNote", back_populates="patient", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_patients_priority_name', 'priority', 'name'),
        CheckConstraint("priority IN ('1', '2', '3')", name='check_patient_priority'),
        CheckConstraint(
            "treatment_status IN ('new', 'in_treatment', 'discharged', 'absent')",
            name='check_patient_treatment_status'
        ),
    )
