"""
Treatment record service.

A treatment record documents a completed attendance. When it orders light
bath or rod, one treatment plan per modality is created on the Tuesday
policy, starting from the attendance date.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import MAX_PLANNED_SESSIONS, MAX_RETURN_WEEKS, MIN_PLANNED_SESSIONS, MIN_RETURN_WEEKS
from core.enums import AttendanceStatus, TreatmentType
from core.exceptions import BadRequestError, ConflictError, NotFoundError, ValidationError
from core.sentinels import is_provided
from models import Attendance, TreatmentRecord, TreatmentSession
from services.treatment_session_service import (
    WEEKLY_ON_NEXT_TUESDAY,
    TreatmentSessionPlanData,
    TreatmentSessionService,
)

logger = logging.getLogger(__name__)

# Fields callers may change on an existing record
UPDATABLE_FIELDS = (
    "food",
    "water",
    "ointments",
    "light_bath",
    "light_bath_color",
    "light_bath_duration",
    "rod",
    "spiritual_treatment",
    "body_location",
    "quantity",
    "return_in_weeks",
    "notes",
)


@dataclass
class TreatmentRecordResult:
    """Created record plus the plans it started and any booking failures."""
    record: TreatmentRecord
    sessions: List[TreatmentSession] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _validate_return_weeks(return_in_weeks: Optional[int]) -> None:
    if return_in_weeks is not None and (return_in_weeks < MIN_RETURN_WEEKS or return_in_weeks > MAX_RETURN_WEEKS):
        raise ValidationError(
            f"Invalid return weeks value: {return_in_weeks}. "
            f"Must be between {MIN_RETURN_WEEKS} and {MAX_RETURN_WEEKS} weeks",
            {"return_in_weeks": return_in_weeks}
        )


def _validate_quantity(quantity: int) -> None:
    if quantity < MIN_PLANNED_SESSIONS or quantity > MAX_PLANNED_SESSIONS:
        raise ValidationError(
            f"quantity must be between {MIN_PLANNED_SESSIONS} and {MAX_PLANNED_SESSIONS}",
            {"quantity": quantity}
        )


class TreatmentRecordService:
    """Service for treatment records."""

    @staticmethod
    def create_treatment_record(
        db: Session,
        attendance_id: int,
        food: Optional[str] = None,
        water: Optional[str] = None,
        ointments: Optional[str] = None,
        light_bath: bool = False,
        light_bath_color: Optional[str] = None,
        light_bath_duration: Optional[int] = None,
        rod: bool = False,
        spiritual_treatment: bool = False,
        body_location: Optional[str] = None,
        quantity: int = 1,
        return_in_weeks: Optional[int] = None,
        notes: Optional[str] = None
    ) -> TreatmentRecordResult:
        """
        Create the treatment record of a completed attendance.

        Raises:
            ValidationError: If return_in_weeks, quantity or the plan fields are invalid
            NotFoundError: If the attendance does not exist
            ConflictError: If the attendance already has a record or is not completed
        """
        _validate_return_weeks(return_in_weeks)
        _validate_quantity(quantity)

        existing = db.query(TreatmentRecord).filter(TreatmentRecord.attendance_id == attendance_id).first()
        if existing:
            raise ConflictError(
                f"Treatment record already exists for attendance {attendance_id} (ID: {existing.id})",
                {"attendance_id": attendance_id, "existing_record_id": existing.id}
            )

        attendance = db.query(Attendance).filter(Attendance.id == attendance_id).first()
        if not attendance:
            raise NotFoundError("Attendance", attendance_id)
        if attendance.status != AttendanceStatus.COMPLETED.value:
            raise ConflictError(
                f"Attendance {attendance_id} has status '{attendance.status}'; "
                "treatment records require a completed attendance",
                {"attendance_id": attendance_id, "status": attendance.status}
            )

        ordered_types: List[TreatmentType] = []
        if light_bath:
            ordered_types.append(TreatmentType.LIGHT_BATH)
        if rod:
            ordered_types.append(TreatmentType.ROD)
        if ordered_types and not (body_location and body_location.strip()):
            raise ValidationError("body_location is required when light bath or rod is ordered")
        if light_bath:
            TreatmentSessionService.validate_plan_fields(
                TreatmentType.LIGHT_BATH.value, quantity, light_bath_duration, light_bath_color
            )

        record = TreatmentRecord(
            attendance_id=attendance_id,
            food=food,
            water=water,
            ointments=ointments,
            light_bath=light_bath,
            light_bath_color=light_bath_color,
            light_bath_duration=light_bath_duration,
            rod=rod,
            spiritual_treatment=spiritual_treatment,
            body_location=body_location,
            quantity=quantity,
            return_in_weeks=return_in_weeks,
            notes=notes
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        logger.info(f"Created treatment record {record.id} for attendance {attendance_id}")

        result = TreatmentRecordResult(record=record)
        for treatment_type in ordered_types:
            is_light_bath = treatment_type == TreatmentType.LIGHT_BATH
            data = TreatmentSessionPlanData(
                treatment_record_id=record.id,
                attendance_id=attendance.id,
                patient_id=attendance.patient_id,
                treatment_type=treatment_type.value,
                body_location=body_location or "",
                start_date=attendance.scheduled_date,
                planned_sessions=quantity,
                duration_minutes=light_bath_duration if is_light_bath else None,
                color=light_bath_color if is_light_bath else None
            )
            try:
                plan = TreatmentSessionService.create_treatment_session(db, data, policy=WEEKLY_ON_NEXT_TUESDAY)
            except Exception as e:
                db.rollback()
                message = f"Erro ao criar sessão de tratamento ({treatment_type.value}): {e}"
                logger.warning(f"Treatment record {record.id}: {message}")
                result.errors.append(message)
                continue
            result.sessions.append(plan.session)
            result.errors.extend(plan.errors)

        return result

    @staticmethod
    def get_treatment_record(db: Session, record_id: int) -> TreatmentRecord:
        record = db.query(TreatmentRecord).filter(TreatmentRecord.id == record_id).first()
        if not record:
            raise NotFoundError("Treatment record", record_id)
        return record

    @staticmethod
    def get_by_attendance(db: Session, attendance_id: int) -> TreatmentRecord:
        record = db.query(TreatmentRecord).filter(TreatmentRecord.attendance_id == attendance_id).first()
        if not record:
            raise NotFoundError("Treatment record for attendance", attendance_id)
        return record

    @staticmethod
    def list_treatment_records(db: Session) -> List[TreatmentRecord]:
        return db.query(TreatmentRecord).order_by(TreatmentRecord.id).all()

    @staticmethod
    def update_treatment_record(db: Session, record_id: int, **fields) -> TreatmentRecord:
        """
        Partially update a treatment record.

        Only keys in UPDATABLE_FIELDS are accepted. Existing plans are not
        changed by editing the record.

        Raises:
            NotFoundError: If the record does not exist
            BadRequestError: If no field (or an unknown field) is given
            ValidationError: If return_in_weeks or quantity is out of range
        """
        provided = {name: value for name, value in fields.items() if is_provided(value)}
        if not provided:
            raise BadRequestError("At least one field must be provided for update")
        unknown = sorted(set(provided) - set(UPDATABLE_FIELDS))
        if unknown:
            raise BadRequestError(f"Unknown fields: {', '.join(unknown)}")

        record = TreatmentRecordService.get_treatment_record(db, record_id)

        if "return_in_weeks" in provided:
            _validate_return_weeks(provided["return_in_weeks"])
        if "quantity" in provided:
            if provided["quantity"] is None:
                raise ValidationError("quantity cannot be cleared")
            _validate_quantity(provided["quantity"])

        for name, value in provided.items():
            setattr(record, name, value)

        db.commit()
        db.refresh(record)

        logger.info(f"Updated treatment record {record.id}")
        return record

    @staticmethod
    def delete_treatment_record(db: Session, record_id: int) -> None:
        """Delete a record together with the plans it started and their booked attendances."""
        record = TreatmentRecordService.get_treatment_record(db, record_id)
        TreatmentSessionService.delete_sessions_for_treatment_record(db, record.id, commit=False)
        db.delete(record)
        db.commit()
        logger.info(f"Deleted treatment record {record_id}")

