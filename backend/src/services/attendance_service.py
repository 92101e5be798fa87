"""
Attendance service: admission and status lifecycle of clinic attendances.

New attendances pass through ScheduleValidationService before they are
persisted. Status changes follow a fixed transition table; completing a
light bath or rod attendance also progresses the patient's treatment plan.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.enums import AttendanceStatus, AttendanceType
from core.exceptions import InvalidStatusTransitionError, NotFoundError, ValidationError
from core.sentinels import MISSING, is_provided
from models import Attendance, Patient, TreatmentRecord, TreatmentSessionRecord
from services.schedule_validation_service import ScheduleValidationService
from utils.date_string_utils import (
    get_current_time_string,
    get_today_string,
    is_valid_date_string,
    normalize_time_string,
)

logger = logging.getLogger(__name__)


ALLOWED_STATUS_TRANSITIONS: Dict[AttendanceStatus, FrozenSet[AttendanceStatus]] = {
    AttendanceStatus.SCHEDULED: frozenset({AttendanceStatus.CHECKED_IN, AttendanceStatus.CANCELLED}),
    AttendanceStatus.CHECKED_IN: frozenset({AttendanceStatus.IN_PROGRESS}),
    AttendanceStatus.IN_PROGRESS: frozenset({AttendanceStatus.COMPLETED}),
    AttendanceStatus.COMPLETED: frozenset(),
    AttendanceStatus.CANCELLED: frozenset(),
}

# Attendance types that belong to a multi-session treatment plan
PLAN_ATTENDANCE_TYPES = (AttendanceType.LIGHT_BATH.value, AttendanceType.ROD.value)


def is_valid_transition(current_status: str, target_status: str) -> bool:
    """Check a status change against ALLOWED_STATUS_TRANSITIONS."""
    return AttendanceStatus(target_status) in ALLOWED_STATUS_TRANSITIONS[AttendanceStatus(current_status)]


@dataclass
class AbsenceJustification:
    """Outcome recorded for one attendance the patient did not show up to."""
    attendance_id: int
    justified: bool
    justification: Optional[str] = None


class AttendanceService:
    """
    Service class for attendance operations.

    All write methods commit unless stated otherwise.
    """

    @staticmethod
    def create_attendance(
        db: Session,
        patient_id: int,
        attendance_type: str,
        scheduled_date: str,
        scheduled_time: str,
        notes: Optional[str] = None,
        commit: bool = True
    ) -> Attendance:
        """
        Admit and persist a new attendance with status 'scheduled'.

        Args:
            db: Database session
            patient_id: Patient attending
            attendance_type: 'spiritual', 'light_bath' or 'rod'
            scheduled_date: Date (YYYY-MM-DD)
            scheduled_time: Time (HH:MM or HH:MM:SS, stored as HH:MM)
            notes: Optional notes
            commit: When False the attendance is only flushed, letting the
                caller run it inside a larger transaction or savepoint

        Returns:
            Created Attendance

        Raises:
            ValidationError: If the date, time or type is malformed
            NotFoundError: If the patient does not exist
            NoScheduleConfiguredError, OutsideOperatingHoursError,
            CapacityExceededError: If admission is rejected
        """
        if not is_valid_date_string(scheduled_date):
            raise ValidationError(
                "scheduled_date must be a valid date (YYYY-MM-DD)",
                {"scheduled_date": scheduled_date}
            )
        try:
            time_str = normalize_time_string(scheduled_time)
            type_value = AttendanceType(attendance_type).value
        except ValueError as e:
            raise ValidationError(str(e)) from e

        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient", patient_id)

        ScheduleValidationService.validate_attendance_scheduling(db, scheduled_date, time_str, type_value)

        attendance = Attendance(
            patient_id=patient_id,
            type=type_value,
            status=AttendanceStatus.SCHEDULED.value,
            scheduled_date=scheduled_date,
            scheduled_time=time_str,
            notes=notes
        )
        db.add(attendance)

        if commit:
            db.commit()
            db.refresh(attendance)
        else:
            db.flush()

        logger.info(
            f"Scheduled {type_value} attendance {attendance.id} for patient {patient_id} "
            f"on {scheduled_date} {time_str}"
        )
        return attendance

    @staticmethod
    def get_attendance(db: Session, attendance_id: int) -> Attendance:
        attendance = db.query(Attendance).filter(Attendance.id == attendance_id).first()
        if not attendance:
            raise NotFoundError("Attendance", attendance_id)
        return attendance

    @staticmethod
    def list_attendances(
        db: Session,
        status: Optional[str] = None,
        attendance_type: Optional[str] = None
    ) -> List[Attendance]:
        """List attendances, optionally filtered, ordered by date and time."""
        query = db.query(Attendance)
        if status:
            query = query.filter(Attendance.status == AttendanceStatus(status).value)
        if attendance_type:
            query = query.filter(Attendance.type == AttendanceType(attendance_type).value)
        return query.order_by(Attendance.scheduled_date, Attendance.scheduled_time, Attendance.id).all()

    @staticmethod
    def list_attendances_for_agenda(
        db: Session,
        status: Optional[str] = None,
        attendance_type: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Compact attendance rows for the agenda view, with the patient's name
        and priority, ordered by date and time.

        A ``limit`` of None or 0 returns every matching row.
        """
        query = db.query(
            Attendance.id,
            Attendance.patient_id,
            Attendance.type,
            Attendance.status,
            Attendance.scheduled_date,
            Attendance.scheduled_time,
            Attendance.notes,
            Patient.name.label("patient_name"),
            Patient.priority.label("patient_priority"),
        ).outerjoin(Patient, Attendance.patient_id == Patient.id)

        if status:
            query = query.filter(Attendance.status == AttendanceStatus(status).value)
        if attendance_type:
            query = query.filter(Attendance.type == AttendanceType(attendance_type).value)

        query = query.order_by(Attendance.scheduled_date, Attendance.scheduled_time, Attendance.id)
        if limit is not None:
            if limit < 0:
                raise ValidationError("limit cannot be negative", {"limit": limit})
            if limit > 0:
                query = query.limit(limit)

        return [dict(row._mapping) for row in query.all()]

    @staticmethod
    def list_attendances_by_date(db: Session, scheduled_date: str) -> List[Attendance]:
        """Non-cancelled attendances on a date, ordered by time."""
        if not is_valid_date_string(scheduled_date):
            raise ValidationError("date must be a valid date (YYYY-MM-DD)", {"date": scheduled_date})
        return db.query(Attendance).filter(
            Attendance.scheduled_date == scheduled_date,
            Attendance.status != AttendanceStatus.CANCELLED.value
        ).order_by(Attendance.scheduled_time, Attendance.id).all()

    @staticmethod
    def list_attendances_for_patient(db: Session, patient_id: int) -> List[Attendance]:
        """All attendances of a patient, newest first."""
        return db.query(Attendance).filter(
            Attendance.patient_id == patient_id
        ).order_by(Attendance.scheduled_date.desc(), Attendance.scheduled_time.desc()).all()

    @staticmethod
    def get_next_scheduled_date(db: Session, from_date: Optional[str] = None) -> Optional[str]:
        """
        Earliest date on or after ``from_date`` (default today) that has a
        scheduled attendance, or None.
        """
        start = from_date or get_today_string()
        return db.query(func.min(Attendance.scheduled_date)).filter(
            Attendance.scheduled_date >= start,
            Attendance.status == AttendanceStatus.SCHEDULED.value
        ).scalar()

    @staticmethod
    def _apply_status(attendance: Attendance, target: AttendanceStatus) -> None:
        """Verify the transition and stamp the matching time/date field."""
        if not is_valid_transition(attendance.status, target.value):
            logger.warning(
                f"Rejected status change for attendance {attendance.id}: {attendance.status} -> {target.value}"
            )
            raise InvalidStatusTransitionError(attendance.id, attendance.status, target.value)

        attendance.status = target.value
        if target == AttendanceStatus.CHECKED_IN and not attendance.checked_in_time:
            attendance.checked_in_time = get_current_time_string()
        elif target == AttendanceStatus.IN_PROGRESS and not attendance.started_time:
            attendance.started_time = get_current_time_string()
        elif target == AttendanceStatus.COMPLETED and not attendance.completed_time:
            attendance.completed_time = get_current_time_string()
        elif target == AttendanceStatus.CANCELLED and not attendance.cancelled_date:
            attendance.cancelled_date = get_today_string()

    @staticmethod
    def _progress_treatment_plan(db: Session, attendance: Attendance) -> None:
        """Forward a completed light bath/rod attendance to its treatment plan."""
        # Import here to avoid circular import
        from services.treatment_session_record_service import TreatmentSessionRecordService

        try:
            TreatmentSessionRecordService.record_attendance_completion(db, attendance)
        except Exception as e:
            # The attendance itself is already committed
            db.rollback()
            logger.exception(f"Failed to update treatment progress for attendance {attendance.id}: {e}")

    @staticmethod
    def update_attendance(
        db: Session,
        attendance_id: int,
        status: Optional[str] = MISSING,  # type: ignore[assignment]
        notes: Optional[str] = MISSING  # type: ignore[assignment]
    ) -> Attendance:
        """
        Update an attendance's status and/or notes.

        Args:
            db: Database session
            attendance_id: Attendance to update
            status: New status; must be allowed from the current status
            notes: New notes (None clears them)

        Returns:
            Updated Attendance

        Raises:
            NotFoundError: If the attendance does not exist
            InvalidStatusTransitionError: If the status change is not allowed
        """
        attendance = AttendanceService.get_attendance(db, attendance_id)

        completed_now = False
        if is_provided(status) and status is not None:
            target = AttendanceStatus(status)
            if target.value != attendance.status:
                AttendanceService._apply_status(attendance, target)
                completed_now = target == AttendanceStatus.COMPLETED
        if completed_now:
            attendance.patient.missing_appointments_streak = 0
        if is_provided(notes):
            attendance.notes = notes

        db.commit()
        db.refresh(attendance)
        logger.info(f"Updated attendance {attendance.id} (status={attendance.status})")

        if completed_now and attendance.type in PLAN_ATTENDANCE_TYPES:
            AttendanceService._progress_treatment_plan(db, attendance)
            db.refresh(attendance)

        return attendance

    @staticmethod
    def bulk_update_status(db: Session, attendance_ids: List[int], status: str) -> int:
        """
        Move several attendances to ``status`` in one transaction.

        Every row goes through the transition table; one invalid row aborts
        the whole update.

        Returns:
            Number of attendances updated
        """
        target = AttendanceStatus(status)
        attendances = db.query(Attendance).filter(Attendance.id.in_(attendance_ids)).all()
        found_ids = {a.id for a in attendances}
        missing = [i for i in attendance_ids if i not in found_ids]
        if missing:
            raise NotFoundError("Attendance", missing[0])

        try:
            for attendance in attendances:
                if attendance.status != target.value:
                    AttendanceService._apply_status(attendance, target)
                    if target == AttendanceStatus.COMPLETED:
                        attendance.patient.missing_appointments_streak = 0
        except InvalidStatusTransitionError:
            db.rollback()
            raise

        db.commit()

        if target == AttendanceStatus.COMPLETED:
            for attendance in attendances:
                if attendance.type in PLAN_ATTENDANCE_TYPES:
                    AttendanceService._progress_treatment_plan(db, attendance)

        logger.info(f"Bulk updated {len(attendances)} attendances to {target.value}")
        return len(attendances)

    @staticmethod
    def update_absence_justifications(db: Session, absences: List[AbsenceJustification]) -> int:
        """
        Record no-shows: cancel each attendance and store whether the
        absence was justified.

        Scheduled attendances are cancelled; already cancelled ones only get
        their justification updated. The first time an attendance is recorded
        as an unjustified absence the patient's missing-appointments streak
        grows by one. One invalid row aborts the whole update.

        Returns:
            Number of attendances updated

        Raises:
            NotFoundError: If an attendance does not exist
            InvalidStatusTransitionError: If an attendance is past the scheduled state
        """
        ids = [a.attendance_id for a in absences]
        attendances = {a.id: a for a in db.query(Attendance).filter(Attendance.id.in_(ids)).all()}
        missing = [i for i in ids if i not in attendances]
        if missing:
            raise NotFoundError("Attendance", missing[0])

        try:
            for absence in absences:
                attendance = attendances[absence.attendance_id]
                if attendance.status != AttendanceStatus.CANCELLED.value:
                    AttendanceService._apply_status(attendance, AttendanceStatus.CANCELLED)
                if not absence.justified and attendance.absence_justified is None:
                    patient = attendance.patient
                    patient.missing_appointments_streak = (patient.missing_appointments_streak or 0) + 1
                attendance.absence_justified = absence.justified
                attendance.absence_notes = absence.justification or None
        except InvalidStatusTransitionError:
            db.rollback()
            raise

        db.commit()

        logger.info(f"Recorded {len(absences)} absences")
        return len(absences)

    @staticmethod
    def delete_attendance(db: Session, attendance_id: int) -> None:
        """
        Hard-delete an attendance.

        Session records that referenced it keep existing with no attendance.
        When the attendance owns a treatment record, the plans that record
        started are deleted along with the attendances booked for them.
        """
        # Import here to avoid circular import
        from services.treatment_session_service import TreatmentSessionService

        attendance = AttendanceService.get_attendance(db, attendance_id)

        record = db.query(TreatmentRecord).filter(TreatmentRecord.attendance_id == attendance_id).first()
        if record is not None:
            TreatmentSessionService.delete_sessions_for_treatment_record(db, record.id, commit=False)
            db.delete(record)

        db.query(TreatmentSessionRecord).filter(
            TreatmentSessionRecord.attendance_id == attendance_id
        ).update({"attendance_id": None})
        db.delete(attendance)
        db.commit()

        logger.info(f"Deleted attendance {attendance_id}")

    @staticmethod
    def get_attendance_stats(db: Session, scheduled_date: Optional[str] = None) -> Dict[str, Any]:
        """
        Count attendances by status and by type, optionally for one date.

        Returns:
            {"total": int, "by_status": {status: count}, "by_type": {type: count}}
        """
        query = db.query(Attendance.status, Attendance.type, func.count(Attendance.id))
        if scheduled_date:
            query = query.filter(Attendance.scheduled_date == scheduled_date)
        rows = query.group_by(Attendance.status, Attendance.type).all()

        by_status = {s.value: 0 for s in AttendanceStatus}
        by_type = {t.value: 0 for t in AttendanceType}
        total = 0
        for status_value, type_value, count in rows:
            by_status[status_value] = by_status.get(status_value, 0) + count
            by_type[type_value] = by_type.get(type_value, 0) + count
            total += count

        return {"total": total, "by_status": by_status, "by_type": by_type}
