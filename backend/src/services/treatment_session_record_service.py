"""
Treatment session record service: progress tracking for treatment plans.

Every change to a record's status ends in recalculate_session_progress,
which is the only code that writes TreatmentSession.completed_sessions.
"""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.constants import DEFAULT_UPCOMING_SESSION_DAYS
from core.enums import SessionRecordStatus, SessionStatus
from core.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidStateForRescheduleError,
    NotFoundError,
    ValidationError,
)
from core.sentinels import MISSING, is_provided
from models import Attendance, TreatmentSession, TreatmentSessionRecord
from utils.date_string_utils import (
    add_days_to_date_string,
    get_current_time_string,
    get_today_string,
    is_valid_date_string,
    is_valid_time_string,
)

logger = logging.getLogger(__name__)


class TreatmentSessionRecordService:
    """Service for individual session records and the parent progress counter."""

    @staticmethod
    def recalculate_session_progress(db: Session, session_id: int, commit: bool = True) -> TreatmentSession:
        """
        Recompute ``completed_sessions`` of a plan from its records.

        Locks the plan row while counting so two completions of the same
        plan cannot both write a stale count. A SCHEDULED plan with at least
        one completed record moves to IN_PROGRESS. Completion of the plan is
        left to TreatmentSessionService.update_treatment_session.

        Args:
            db: Database session
            session_id: TreatmentSession to recompute
            commit: When False the change is only flushed

        Returns:
            The updated TreatmentSession
        """
        session = db.query(TreatmentSession).filter(
            TreatmentSession.id == session_id
        ).with_for_update().first()
        if not session:
            raise NotFoundError("Treatment session", session_id)

        # Pending status changes must be visible to the count
        db.flush()
        completed = db.query(func.count(TreatmentSessionRecord.id)).filter(
            TreatmentSessionRecord.treatment_session_id == session_id,
            TreatmentSessionRecord.status == SessionRecordStatus.COMPLETED.value
        ).scalar() or 0

        session.completed_sessions = completed
        if completed > 0 and session.status == SessionStatus.SCHEDULED.value:
            session.status = SessionStatus.IN_PROGRESS.value

        if commit:
            db.commit()
            db.refresh(session)
        else:
            db.flush()

        logger.info(
            f"Treatment session {session_id} progress: {completed}/{session.planned_sessions} ({session.status})"
        )
        return session

    @staticmethod
    def create_session_record(
        db: Session,
        treatment_session_id: int,
        session_number: int,
        scheduled_date: str,
        attendance_id: Optional[int] = None,
        notes: Optional[str] = None
    ) -> TreatmentSessionRecord:
        """
        Add a single record to an existing plan.

        Raises:
            NotFoundError: If the plan or attendance does not exist
            ValidationError: If the date is malformed or the number out of range
            ConflictError: If the plan already has a record with that number
        """
        session = db.query(TreatmentSession).filter(TreatmentSession.id == treatment_session_id).first()
        if not session:
            raise NotFoundError("Treatment session", treatment_session_id)
        if not is_valid_date_string(scheduled_date):
            raise ValidationError("scheduled_date must be a valid date (YYYY-MM-DD)")
        if session_number < 1 or session_number > session.planned_sessions:
            raise ValidationError(
                f"session_number must be between 1 and {session.planned_sessions}",
                {"session_number": session_number}
            )
        existing = db.query(TreatmentSessionRecord).filter(
            TreatmentSessionRecord.treatment_session_id == treatment_session_id,
            TreatmentSessionRecord.session_number == session_number
        ).first()
        if existing:
            raise ConflictError(
                f"Session {session_number} already exists for treatment session {treatment_session_id}",
                {"existing_record_id": existing.id}
            )
        if attendance_id is not None:
            TreatmentSessionRecordService._get_attendance(db, attendance_id)

        record = TreatmentSessionRecord(
            treatment_session_id=treatment_session_id,
            session_number=session_number,
            scheduled_date=scheduled_date,
            attendance_id=attendance_id,
            status=SessionRecordStatus.SCHEDULED.value,
            notes=notes
        )
        db.add(record)
        db.commit()
        db.refresh(record)

        logger.info(f"Created session record {record.id} ({session_number}) for treatment session {treatment_session_id}")
        return record

    @staticmethod
    def get_session_record(db: Session, record_id: int) -> TreatmentSessionRecord:
        record = db.query(TreatmentSessionRecord).filter(TreatmentSessionRecord.id == record_id).first()
        if not record:
            raise NotFoundError("Treatment session record", record_id)
        return record

    @staticmethod
    def list_records_for_session(db: Session, treatment_session_id: int) -> List[TreatmentSessionRecord]:
        return db.query(TreatmentSessionRecord).filter(
            TreatmentSessionRecord.treatment_session_id == treatment_session_id
        ).order_by(TreatmentSessionRecord.session_number).all()

    @staticmethod
    def _get_attendance(db: Session, attendance_id: int) -> Attendance:
        attendance = db.query(Attendance).filter(Attendance.id == attendance_id).first()
        if not attendance:
            raise NotFoundError("Attendance", attendance_id)
        return attendance

    @staticmethod
    def complete_session(
        db: Session,
        record_id: int,
        attendance_id: Optional[int] = None,
        notes: Optional[str] = None,
        performed_by: Optional[str] = None
    ) -> TreatmentSessionRecord:
        """
        Mark a session record as completed and recompute the plan's progress.

        Args:
            db: Database session
            record_id: Record to complete
            attendance_id: Optional attendance to link; must exist
            notes: Optional notes, replacing existing ones
            performed_by: Optional name of who performed the session

        Returns:
            The completed record

        Raises:
            NotFoundError: If the record or attendance does not exist
        """
        record = TreatmentSessionRecordService.get_session_record(db, record_id)

        if attendance_id is not None:
            TreatmentSessionRecordService._get_attendance(db, attendance_id)
            record.attendance_id = attendance_id

        now_time = get_current_time_string()
        record.status = SessionRecordStatus.COMPLETED.value
        if not record.start_time:
            record.start_time = now_time
        record.end_time = now_time
        record.missed_reason = None
        if notes is not None:
            record.notes = notes
        if performed_by is not None:
            record.performed_by = performed_by

        TreatmentSessionRecordService.recalculate_session_progress(db, record.treatment_session_id)
        db.refresh(record)

        logger.info(f"Completed session record {record.id} (session {record.session_number})")
        return record

    @staticmethod
    def mark_session_missed(db: Session, record_id: int, reason: Optional[str] = None) -> TreatmentSessionRecord:
        """
        Mark a session record as missed.

        A record that was completed before stops counting towards the plan.
        """
        record = TreatmentSessionRecordService.get_session_record(db, record_id)
        record.status = SessionRecordStatus.MISSED.value
        record.missed_reason = reason

        TreatmentSessionRecordService.recalculate_session_progress(db, record.treatment_session_id)
        db.refresh(record)

        logger.info(f"Marked session record {record.id} as missed")
        return record

    @staticmethod
    def reschedule_session(db: Session, record_id: int, new_date: str) -> TreatmentSessionRecord:
        """
        Move a session record to a new date and reset it to SCHEDULED.

        Raises:
            NotFoundError: If the record does not exist
            ValidationError: If new_date is malformed
            InvalidStateForRescheduleError: If the record is completed
        """
        if not is_valid_date_string(new_date):
            raise ValidationError("new_date must be a valid date (YYYY-MM-DD)", {"new_date": new_date})

        record = TreatmentSessionRecordService.get_session_record(db, record_id)
        if record.status == SessionRecordStatus.COMPLETED.value:
            logger.warning(f"Rejected reschedule of completed session record {record.id}")
            raise InvalidStateForRescheduleError(record.id, record.status)

        record.scheduled_date = new_date
        record.status = SessionRecordStatus.SCHEDULED.value
        record.missed_reason = None

        TreatmentSessionRecordService.recalculate_session_progress(db, record.treatment_session_id)
        db.refresh(record)

        logger.info(f"Rescheduled session record {record.id} to {new_date}")
        return record

    @staticmethod
    def update_session_record(
        db: Session,
        record_id: int,
        status: Optional[str] = MISSING,  # type: ignore[assignment]
        scheduled_date: Optional[str] = MISSING,  # type: ignore[assignment]
        start_time: Optional[str] = MISSING,  # type: ignore[assignment]
        end_time: Optional[str] = MISSING,  # type: ignore[assignment]
        notes: Optional[str] = MISSING,  # type: ignore[assignment]
        missed_reason: Optional[str] = MISSING,  # type: ignore[assignment]
        performed_by: Optional[str] = MISSING,  # type: ignore[assignment]
        attendance_id: Optional[int] = MISSING  # type: ignore[assignment]
    ) -> TreatmentSessionRecord:
        """
        Partially update a session record.

        A status change is followed by a progress recompute, the same as the
        dedicated complete/missed operations.

        Raises:
            NotFoundError: If the record or a linked attendance does not exist
            BadRequestError: If no field is provided
            ValidationError: If a date or time is malformed
        """
        fields = [status, scheduled_date, start_time, end_time, notes, missed_reason, performed_by, attendance_id]
        if not any(is_provided(value) for value in fields):
            raise BadRequestError("At least one field must be provided for update")

        record = TreatmentSessionRecordService.get_session_record(db, record_id)
        status_changed = False

        if is_provided(status) and status is not None:
            new_status = SessionRecordStatus(status).value
            status_changed = new_status != record.status
            record.status = new_status
        if is_provided(scheduled_date) and scheduled_date is not None:
            if not is_valid_date_string(scheduled_date):
                raise ValidationError("scheduled_date must be a valid date (YYYY-MM-DD)")
            record.scheduled_date = scheduled_date
        for field_name, value in (("start_time", start_time), ("end_time", end_time)):
            if is_provided(value):
                if value is not None and not is_valid_time_string(value):
                    raise ValidationError(f"{field_name} must be a valid time (HH:MM or HH:MM:SS)")
                setattr(record, field_name, value)
        if is_provided(notes):
            record.notes = notes
        if is_provided(missed_reason):
            record.missed_reason = missed_reason
        if is_provided(performed_by):
            record.performed_by = performed_by
        if is_provided(attendance_id):
            if attendance_id is not None:
                TreatmentSessionRecordService._get_attendance(db, attendance_id)
            record.attendance_id = attendance_id

        if status_changed:
            TreatmentSessionRecordService.recalculate_session_progress(db, record.treatment_session_id)
        else:
            db.commit()
        db.refresh(record)

        logger.info(f"Updated session record {record.id}")
        return record

    @staticmethod
    def delete_session_record(db: Session, record_id: int) -> None:
        record = TreatmentSessionRecordService.get_session_record(db, record_id)
        session_id = record.treatment_session_id
        db.delete(record)
        db.flush()
        TreatmentSessionRecordService.recalculate_session_progress(db, session_id)
        logger.info(f"Deleted session record {record_id}")

    @staticmethod
    def get_upcoming_sessions_for_patient(
        db: Session,
        patient_id: int,
        days: int = DEFAULT_UPCOMING_SESSION_DAYS
    ) -> List[TreatmentSessionRecord]:
        """
        Scheduled records of the patient's plans dated from today through
        today + ``days``, earliest first.
        """
        if days < 0:
            raise ValidationError("days must not be negative", {"days": days})
        today = get_today_string()
        until = add_days_to_date_string(today, days)
        return db.query(TreatmentSessionRecord).join(
            TreatmentSession, TreatmentSessionRecord.treatment_session_id == TreatmentSession.id
        ).filter(
            TreatmentSession.patient_id == patient_id,
            TreatmentSessionRecord.status == SessionRecordStatus.SCHEDULED.value,
            TreatmentSessionRecord.scheduled_date >= today,
            TreatmentSessionRecord.scheduled_date <= until
        ).order_by(TreatmentSessionRecord.scheduled_date, TreatmentSessionRecord.session_number).all()

    @staticmethod
    def record_attendance_completion(db: Session, attendance: Attendance) -> Optional[TreatmentSessionRecord]:
        """
        Complete the session record matching a completed light bath/rod attendance.

        Prefers the record already linked to the attendance. Otherwise the
        first scheduled record of the patient's active plan of the same
        type is completed and linked. The plan is then passed through
        update_treatment_session so it completes once all sessions are done.

        Returns:
            The completed record, or None if the attendance belongs to no plan
        """
        # Import here to avoid circular import
        from services.treatment_session_service import TreatmentSessionService

        record = db.query(TreatmentSessionRecord).filter(
            TreatmentSessionRecord.attendance_id == attendance.id,
            TreatmentSessionRecord.status != SessionRecordStatus.COMPLETED.value
        ).first()

        if not record:
            session = TreatmentSessionService.find_active_session_for_patient(db, attendance.patient_id, attendance.type)
            if not session:
                logger.info(f"Attendance {attendance.id} is not part of an active treatment session")
                return None
            record = db.query(TreatmentSessionRecord).filter(
                TreatmentSessionRecord.treatment_session_id == session.id,
                TreatmentSessionRecord.status == SessionRecordStatus.SCHEDULED.value
            ).order_by(TreatmentSessionRecord.session_number).first()
            if not record:
                logger.info(f"Treatment session {session.id} has no scheduled records left")
                return None

        completed = TreatmentSessionRecordService.complete_session(db, record.id, attendance_id=attendance.id)
        TreatmentSessionService.update_treatment_session(db, completed.treatment_session_id)
        return completed
