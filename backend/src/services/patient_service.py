"""
Patient service for patient registry operations.

Patients are referenced by attendances and treatment plans. Nothing in the
scheduling flow changes a patient's treatment status; that is left to
clinic staff through this service.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.enums import PatientPriority, PatientTreatmentStatus
from core.exceptions import BadRequestError, NotFoundError, ValidationError
from core.sentinels import MISSING, is_provided
from models import Patient
from utils.date_string_utils import get_today_string, is_valid_date_string

logger = logging.getLogger(__name__)


class PatientService:
    """
    Service class for patient operations.

    Contains business logic for patient management that is shared
    across the API endpoints.
    """

    @staticmethod
    def _validate_date_field(name: str, value: Optional[str]) -> None:
        if value is not None and not is_valid_date_string(value):
            raise ValidationError(f"{name} must be a valid date (YYYY-MM-DD)", {name: value})

    @staticmethod
    def create_patient(
        db: Session,
        name: str,
        phone: Optional[str] = None,
        priority: str = PatientPriority.NORMAL.value,
        treatment_status: str = PatientTreatmentStatus.NEW.value,
        birth_date: Optional[str] = None,
        main_complaint: Optional[str] = None,
        start_date: Optional[str] = None
    ) -> Patient:
        """
        Create a new patient record.

        Args:
            db: Database session
            name: Patient's full name
            phone: Optional phone number
            priority: '1' emergency, '2' intermediate, '3' normal
            treatment_status: Initial treatment status
            birth_date: Optional birth date (YYYY-MM-DD)
            main_complaint: Main complaint reported on intake
            start_date: Treatment start date, defaults to today

        Returns:
            Created Patient object

        Raises:
            ValidationError: If a date or enum value is invalid
        """
        if not name or not name.strip():
            raise ValidationError("Patient name is required")
        PatientService._validate_date_field("birth_date", birth_date)
        PatientService._validate_date_field("start_date", start_date)

        patient = Patient(
            name=name.strip(),
            phone=phone,
            priority=PatientPriority(priority).value,
            treatment_status=PatientTreatmentStatus(treatment_status).value,
            birth_date=birth_date,
            main_complaint=main_complaint,
            start_date=start_date or get_today_string()
        )
        db.add(patient)
        db.commit()
        db.refresh(patient)

        logger.info(f"Created patient {patient.id}")
        return patient

    @staticmethod
    def get_patient(db: Session, patient_id: int) -> Patient:
        """Get a patient by ID or raise NotFoundError."""
        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient", patient_id)
        return patient

    @staticmethod
    def list_patients(db: Session) -> List[Patient]:
        """List all patients, most urgent priority first, then by name."""
        return db.query(Patient).order_by(Patient.priority, Patient.name).all()

    @staticmethod
    def update_patient(
        db: Session,
        patient_id: int,
        name: Optional[str] = MISSING,  # type: ignore[assignment]
        phone: Optional[str] = MISSING,  # type: ignore[assignment]
        priority: Optional[str] = MISSING,  # type: ignore[assignment]
        treatment_status: Optional[str] = MISSING,  # type: ignore[assignment]
        birth_date: Optional[str] = MISSING,  # type: ignore[assignment]
        main_complaint: Optional[str] = MISSING,  # type: ignore[assignment]
        discharge_date: Optional[str] = MISSING  # type: ignore[assignment]
    ) -> Patient:
        """
        Partially update a patient.

        Raises:
            NotFoundError: If the patient does not exist
            BadRequestError: If no field is provided
            ValidationError: If a value is invalid
        """
        fields = [name, phone, priority, treatment_status, birth_date, main_complaint, discharge_date]
        if not any(is_provided(value) for value in fields):
            raise BadRequestError("At least one field must be provided for update")

        patient = PatientService.get_patient(db, patient_id)

        if is_provided(name):
            if not name or not name.strip():
                raise ValidationError("Patient name is required")
            patient.name = name.strip()
        if is_provided(phone):
            patient.phone = phone
        if is_provided(priority) and priority is not None:
            patient.priority = PatientPriority(priority).value
        if is_provided(treatment_status) and treatment_status is not None:
            patient.treatment_status = PatientTreatmentStatus(treatment_status).value
        if is_provided(birth_date):
            PatientService._validate_date_field("birth_date", birth_date)
            patient.birth_date = birth_date
        if is_provided(main_complaint):
            patient.main_complaint = main_complaint
        if is_provided(discharge_date):
            PatientService._validate_date_field("discharge_date", discharge_date)
            patient.discharge_date = discharge_date

        db.commit()
        db.refresh(patient)

        logger.info(f"Updated patient {patient.id}")
        return patient

    @staticmethod
    def delete_patient(db: Session, patient_id: int) -> None:
        patient = PatientService.get_patient(db, patient_id)
        db.delete(patient)
        db.commit()
        logger.info(f"Deleted patient {patient_id}")
