"""
Treatment record model: the clinical note written for a completed attendance.

A record carries the modalities ordered (light bath, rod, spiritual) and the
recommended return interval. Ordering light bath or rod is what starts a
multi-session treatment plan.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class TreatmentRecord(Base):
    """Clinical record tied one-to-one to a completed attendance."""

    __tablename__ = "treatment_records"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    attendance_id: Mapped[int] = mapped_column(
        ForeignKey("attendances.id", ondelete="CASCADE"), unique=True
    )
    """The completed attendance this record documents."""

    food: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    water: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ointments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    light_bath: Mapped[bool] = mapped_column(Boolean, default=False)
    """Whether a light bath course was ordered."""

    light_bath_color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    light_bath_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Light bath duration in 7-minute units (1-10)."""

    rod: Mapped[bool] = mapped_column(Boolean, default=False)
    """Whether a rod course was ordered."""

    spiritual_treatment: Mapped[bool] = mapped_column(Boolean, default=False)

    body_location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    """Body location targeted by the ordered light bath/rod course."""

    quantity: Mapped[int] = mapped_column(Integer, default=1)
    """Number of sessions to plan for each ordered light bath/rod course."""

    return_in_weeks: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Recommended weeks until the next spiritual attendance (1-52)."""

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    attendance = relationship("Attendance", back_populates="treatment_record")

    treatment_sessions = relationship(
        "TreatmentSession", back_populates="treatment_record", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            'return_in_weeks IS NULL OR (return_in_weeks > 0 AND return_in_weeks <= 52)',
            name='check_treatment_record_return_weeks'
        ),
        CheckConstraint('quantity > 0 AND quantity <= 50', name='check_treatment_record_quantity'),
    )
