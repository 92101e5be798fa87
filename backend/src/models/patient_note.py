"""
Patient note model for free-text observations kept on a patient's file.
"""

from sqlalchemy import String, Text, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.enums import NoteCategory


class PatientNote(Base):
    """A dated, categorised note about a patient."""

    __tablename__ = "patient_notes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"))

    note_content: Mapped[str] = mapped_column(Text)

    category: Mapped[str] = mapped_column(String(50), default=NoteCategory.GENERAL.value)
    """One of NoteCategory; 'general' when not given."""

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    # Relationships
    patient = relationship("Patient", back_populates="notes")

    __table_args__ = (
        Index('idx_patient_notes_patient', 'patient_id'),
        CheckConstraint(
            "category IN ('general', 'treatment', 'observation', 'behavior', "
            "'medication', 'progress', 'family', 'emergency')",
            name='check_patient_note_category'
        ),
    )
