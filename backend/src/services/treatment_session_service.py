"""
Treatment session service: planning of multi-session light bath/rod courses.

Creating a plan generates one dated record per session on a weekly cadence
and books a companion attendance for each record. Attendance bookings are
made one at a time so every capacity check sees the siblings booked before
it; a rejected booking is reported and does not undo the others.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from core.constants import (
    DEFAULT_SESSION_TIME,
    DEFAULT_TUESDAY_SESSION_TIME,
    LIGHT_BATH_COLORS,
    MAX_LIGHT_BATH_DURATION,
    MAX_PLANNED_SESSIONS,
    MIN_LIGHT_BATH_DURATION,
    MIN_PLANNED_SESSIONS,
    SESSION_INTERVAL_DAYS,
)
from core.enums import (
    TREATMENT_TYPE_TO_ATTENDANCE_TYPE,
    SessionRecordStatus,
    SessionStatus,
    TreatmentType,
)
from core.exceptions import BadRequestError, NotFoundError, ValidationError
from core.sentinels import MISSING, is_provided
from models import Attendance, Patient, TreatmentRecord, TreatmentSession, TreatmentSessionRecord
from services.attendance_service import AttendanceService
from services.treatment_session_record_service import TreatmentSessionRecordService
from utils.date_string_utils import (
    TUESDAY,
    add_days_to_date_string,
    get_next_weekday_string,
    get_today_string,
    is_valid_date_string,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Where a weekly series starts and at what time its attendances are booked.

    With ``align_to_weekday`` set, the first session moves forward to the
    next occurrence of that weekday (or stays, if the start date already
    falls on it).
    """
    name: str
    default_time: str  # HH:MM
    align_to_weekday: Optional[int] = None

    def first_date(self, start_date: str) -> str:
        if self.align_to_weekday is None:
            return start_date
        return get_next_weekday_string(start_date, self.align_to_weekday)

    def session_dates(self, start_date: str, count: int) -> List[str]:
        """Dates of sessions 1..count, SESSION_INTERVAL_DAYS apart."""
        first = self.first_date(start_date)
        return [add_days_to_date_string(first, SESSION_INTERVAL_DAYS * i) for i in range(count)]


# Plans created directly: first session on the start date at 19:30
WEEKLY_FROM_START_DATE = SchedulingPolicy("weekly-from-start-date", DEFAULT_SESSION_TIME)

# Plans created from a treatment record: Tuesdays at 21:00
WEEKLY_ON_NEXT_TUESDAY = SchedulingPolicy("weekly-on-next-tuesday", DEFAULT_TUESDAY_SESSION_TIME, TUESDAY)


@dataclass
class TreatmentSessionPlanData:
    """Input for create_treatment_session."""
    treatment_record_id: int
    attendance_id: int
    patient_id: int
    treatment_type: str
    body_location: str
    start_date: str  # YYYY-MM-DD
    planned_sessions: int
    duration_minutes: Optional[int] = None
    color: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class BatchResult:
    """Outcome of booking a series of attendances."""
    success: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class SessionPlanResult:
    """Created plan plus the outcome of booking its companion attendances."""
    session: TreatmentSession
    success: int
    errors: List[str]


def format_batch_error(index: int, total: int, error: Exception) -> str:
    return f"Erro ao criar agendamento {index}/{total}: {error}"


def format_session_label(index: int, total: int, notes: Optional[str] = None) -> str:
    label = f"Sessão {index} de {total}"
    if notes:
        return f"{notes} - {label}"
    return label


class TreatmentSessionService:
    """Service for treatment session plans."""

    @staticmethod
    def validate_plan_fields(
        treatment_type: str,
        planned_sessions: int,
        duration_minutes: Optional[int],
        color: Optional[str]
    ) -> TreatmentType:
        """
        Check the type-specific fields of a plan.

        Light bath plans need duration and color; rod plans must have neither.

        Raises:
            BadRequestError: If the light bath/rod field rule is broken
            ValidationError: If a value is out of range
        """
        try:
            session_type = TreatmentType(treatment_type)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if planned_sessions < MIN_PLANNED_SESSIONS or planned_sessions > MAX_PLANNED_SESSIONS:
            raise ValidationError(
                f"planned_sessions must be between {MIN_PLANNED_SESSIONS} and {MAX_PLANNED_SESSIONS}",
                {"planned_sessions": planned_sessions}
            )

        if session_type == TreatmentType.LIGHT_BATH:
            if duration_minutes is None or not color:
                raise BadRequestError("Light bath sessions require duration_minutes and color")
            if duration_minutes < MIN_LIGHT_BATH_DURATION or duration_minutes > MAX_LIGHT_BATH_DURATION:
                raise ValidationError(
                    f"duration_minutes must be between {MIN_LIGHT_BATH_DURATION} and {MAX_LIGHT_BATH_DURATION}",
                    {"duration_minutes": duration_minutes}
                )
            if color not in LIGHT_BATH_COLORS:
                raise ValidationError(f"Unknown light bath color '{color}'", {"allowed": LIGHT_BATH_COLORS})
        elif duration_minutes is not None or color is not None:
            raise BadRequestError("Rod sessions must not have duration_minutes or color")

        return session_type

    @staticmethod
    def _book_attendances(
        db: Session,
        patient_id: int,
        attendance_type: str,
        dates: List[str],
        scheduled_time: str,
        labels: List[str],
        records: Optional[List[TreatmentSessionRecord]] = None
    ) -> BatchResult:
        """
        Book one attendance per date, in order, each inside its own SAVEPOINT.

        A failed booking rolls back only its savepoint and is reported in
        the result. When ``records`` is given, each booked attendance is
        linked to the record at the same position.
        """
        result = BatchResult()
        total = len(dates)
        for index, scheduled_date in enumerate(dates, start=1):
            try:
                with db.begin_nested():
                    attendance = AttendanceService.create_attendance(
                        db,
                        patient_id=patient_id,
                        attendance_type=attendance_type,
                        scheduled_date=scheduled_date,
                        scheduled_time=scheduled_time,
                        notes=labels[index - 1],
                        commit=False
                    )
                    if records is not None:
                        records[index - 1].attendance_id = attendance.id
                result.success += 1
            except Exception as e:
                message = format_batch_error(index, total, e)
                logger.warning(f"Patient {patient_id}: {message}")
                result.errors.append(message)
        return result

    @staticmethod
    def create_treatment_session(
        db: Session,
        data: TreatmentSessionPlanData,
        policy: SchedulingPolicy = WEEKLY_FROM_START_DATE
    ) -> SessionPlanResult:
        """
        Create a treatment plan with its session records and companion attendances.

        Args:
            db: Database session
            data: Plan fields
            policy: Where the weekly series starts and the attendance time

        Returns:
            SessionPlanResult with the persisted plan, the number of
            attendances booked and one message per failed booking

        Raises:
            NotFoundError: If the treatment record, attendance or patient does not exist
            BadRequestError: If the light bath/rod field rule is broken
            ValidationError: If a value is out of range
        """
        if not db.query(TreatmentRecord).filter(TreatmentRecord.id == data.treatment_record_id).first():
            raise NotFoundError("Treatment record", data.treatment_record_id)
        if not db.query(Attendance).filter(Attendance.id == data.attendance_id).first():
            raise NotFoundError("Attendance", data.attendance_id)
        if not db.query(Patient).filter(Patient.id == data.patient_id).first():
            raise NotFoundError("Patient", data.patient_id)
        if not is_valid_date_string(data.start_date):
            raise ValidationError("start_date must be a valid date (YYYY-MM-DD)", {"start_date": data.start_date})
        if not data.body_location or not data.body_location.strip():
            raise ValidationError("body_location is required")

        session_type = TreatmentSessionService.validate_plan_fields(
            data.treatment_type, data.planned_sessions, data.duration_minutes, data.color
        )

        dates = policy.session_dates(data.start_date, data.planned_sessions)
        session = TreatmentSession(
            treatment_record_id=data.treatment_record_id,
            attendance_id=data.attendance_id,
            patient_id=data.patient_id,
            treatment_type=session_type.value,
            body_location=data.body_location.strip(),
            start_date=dates[0],
            planned_sessions=data.planned_sessions,
            completed_sessions=0,
            status=SessionStatus.SCHEDULED.value,
            duration_minutes=data.duration_minutes,
            color=data.color,
            notes=data.notes
        )
        for number, scheduled_date in enumerate(dates, start=1):
            session.session_records.append(TreatmentSessionRecord(
                session_number=number,
                scheduled_date=scheduled_date,
                status=SessionRecordStatus.SCHEDULED.value
            ))
        db.add(session)
        db.flush()

        total = data.planned_sessions
        labels = [format_session_label(i, total, data.notes) for i in range(1, total + 1)]
        batch = TreatmentSessionService._book_attendances(
            db,
            patient_id=data.patient_id,
            attendance_type=TREATMENT_TYPE_TO_ATTENDANCE_TYPE[session_type].value,
            dates=dates,
            scheduled_time=policy.default_time,
            labels=labels,
            records=list(session.session_records)
        )

        db.commit()
        db.refresh(session)

        logger.info(
            f"Created {session.treatment_type} treatment session {session.id} for patient {session.patient_id}: "
            f"{total} sessions from {session.start_date} ({policy.name}), "
            f"{batch.success} attendances booked, {len(batch.errors)} failed"
        )
        return SessionPlanResult(session=session, success=batch.success, errors=batch.errors)

    @staticmethod
    def create_attendances_for_treatment_sessions(
        db: Session,
        patient_id: int,
        attendance_type: str,
        start_date: str,
        session_count: int,
        notes: Optional[str] = None
    ) -> BatchResult:
        """
        Book ``session_count`` weekly attendances on the Tuesday policy.

        The first attendance is on the first Tuesday on or after
        ``start_date`` at 21:00, the rest follow weekly. Notes read
        "{notes} - Sessão i de N".

        Returns:
            BatchResult with the number booked and one message per failure
        """
        if not is_valid_date_string(start_date):
            raise ValidationError("start_date must be a valid date (YYYY-MM-DD)", {"start_date": start_date})
        if session_count < MIN_PLANNED_SESSIONS or session_count > MAX_PLANNED_SESSIONS:
            raise ValidationError(
                f"session_count must be between {MIN_PLANNED_SESSIONS} and {MAX_PLANNED_SESSIONS}",
                {"session_count": session_count}
            )

        policy = WEEKLY_ON_NEXT_TUESDAY
        dates = policy.session_dates(start_date, session_count)
        labels = [format_session_label(i, session_count, notes) for i in range(1, session_count + 1)]

        result = TreatmentSessionService._book_attendances(
            db,
            patient_id=patient_id,
            attendance_type=attendance_type,
            dates=dates,
            scheduled_time=policy.default_time,
            labels=labels
        )
        db.commit()

        logger.info(
            f"Booked {result.success}/{session_count} {attendance_type} attendances for patient {patient_id} "
            f"from {dates[0]}"
        )
        return result

    @staticmethod
    def get_treatment_session(db: Session, session_id: int) -> TreatmentSession:
        session = db.query(TreatmentSession).options(
            selectinload(TreatmentSession.session_records)
        ).filter(TreatmentSession.id == session_id).first()
        if not session:
            raise NotFoundError("Treatment session", session_id)
        return session

    @staticmethod
    def list_treatment_sessions(db: Session) -> List[TreatmentSession]:
        """All plans, newest first."""
        return db.query(TreatmentSession).options(
            selectinload(TreatmentSession.session_records)
        ).order_by(TreatmentSession.id.desc()).all()

    @staticmethod
    def list_sessions_for_patient(db: Session, patient_id: int) -> List[TreatmentSession]:
        """Plans of a patient, newest first."""
        return db.query(TreatmentSession).options(
            selectinload(TreatmentSession.session_records)
        ).filter(TreatmentSession.patient_id == patient_id).order_by(TreatmentSession.id.desc()).all()

    @staticmethod
    def list_sessions_for_treatment_record(db: Session, treatment_record_id: int) -> List[TreatmentSession]:
        """Plans ordered by a treatment record, oldest first."""
        return db.query(TreatmentSession).options(
            selectinload(TreatmentSession.session_records)
        ).filter(TreatmentSession.treatment_record_id == treatment_record_id).order_by(TreatmentSession.id).all()

    @staticmethod
    def find_active_session_for_patient(
        db: Session,
        patient_id: int,
        treatment_type: str
    ) -> Optional[TreatmentSession]:
        """Oldest scheduled or in-progress plan of this type for the patient."""
        return db.query(TreatmentSession).filter(
            TreatmentSession.patient_id == patient_id,
            TreatmentSession.treatment_type == treatment_type,
            TreatmentSession.status.in_([SessionStatus.SCHEDULED.value, SessionStatus.IN_PROGRESS.value])
        ).order_by(TreatmentSession.id).first()

    @staticmethod
    def update_treatment_session(
        db: Session,
        session_id: int,
        end_date: Optional[str] = MISSING,  # type: ignore[assignment]
        notes: Optional[str] = MISSING,  # type: ignore[assignment]
        status: Optional[str] = MISSING  # type: ignore[assignment]
    ) -> TreatmentSession:
        """
        Update a plan and re-derive its progress.

        The completed count is recomputed from the records. Once it reaches
        ``planned_sessions`` the plan becomes COMPLETED and ``end_date`` is
        stamped with today if unset. Of the statuses, only 'cancelled' can
        be set by the caller.

        Raises:
            NotFoundError: If the plan does not exist
            ValidationError: If end_date is malformed
            BadRequestError: If a status other than 'cancelled' is requested
        """
        session = TreatmentSessionService.get_treatment_session(db, session_id)

        if is_provided(end_date):
            if end_date is not None and not is_valid_date_string(end_date):
                raise ValidationError("end_date must be a valid date (YYYY-MM-DD)", {"end_date": end_date})
            session.end_date = end_date
        if is_provided(notes):
            session.notes = notes
        if is_provided(status) and status is not None and status != session.status:
            if SessionStatus(status) != SessionStatus.CANCELLED:
                raise BadRequestError(
                    "Only 'cancelled' can be set explicitly; other statuses follow session progress",
                    {"status": status}
                )
            session.status = SessionStatus.CANCELLED.value

        TreatmentSessionRecordService.recalculate_session_progress(db, session_id, commit=False)

        if session.status != SessionStatus.CANCELLED.value and session.completed_sessions >= session.planned_sessions:
            session.status = SessionStatus.COMPLETED.value
            if not session.end_date:
                session.end_date = get_today_string()

        db.commit()
        db.refresh(session)

        logger.info(f"Updated treatment session {session.id} (status={session.status})")
        return session

    @staticmethod
    def _delete_plan(db: Session, session: TreatmentSession) -> int:
        """
        Mark a plan and the attendances booked for its records for deletion.

        The attendances are deleted explicitly because they are not owned by
        the plan; the records go with the plan through the ORM cascade.

        Returns:
            Number of attendances deleted
        """
        attendance_ids = [r.attendance_id for r in session.session_records if r.attendance_id is not None]
        if attendance_ids:
            db.query(Attendance).filter(Attendance.id.in_(attendance_ids)).delete()
        db.delete(session)
        return len(attendance_ids)

    @staticmethod
    def delete_treatment_session(db: Session, session_id: int) -> None:
        """Delete a plan, its records and the attendances booked for them."""
        session = TreatmentSessionService.get_treatment_session(db, session_id)

        deleted_attendances = TreatmentSessionService._delete_plan(db, session)
        db.commit()

        logger.info(f"Deleted treatment session {session_id} and {deleted_attendances} linked attendances")

    @staticmethod
    def delete_sessions_for_treatment_record(db: Session, treatment_record_id: int, commit: bool = True) -> int:
        """
        Delete every plan started by a treatment record, with its booked attendances.

        Used before the record itself (or its attendance) is deleted, since
        the ORM cascade alone would leave the booked attendances scheduled.

        Args:
            db: Database session
            treatment_record_id: Record whose plans are removed
            commit: When False the deletes are only staged in the session

        Returns:
            Number of plans deleted
        """
        sessions = TreatmentSessionService.list_sessions_for_treatment_record(db, treatment_record_id)

        deleted_attendances = 0
        for session in sessions:
            deleted_attendances += TreatmentSessionService._delete_plan(db, session)

        if commit:
            db.commit()

        if sessions:
            logger.info(
                f"Deleted {len(sessions)} treatment sessions of record {treatment_record_id} "
                f"and {deleted_attendances} linked attendances"
            )
        return len(sessions)

    @staticmethod
    def get_treatment_stats(db: Session, patient_id: int) -> Dict[str, Any]:
        """
        Session totals across all plans of a patient.

        ``completion_rate`` is completed over planned, as a percentage
        rounded to 2 decimals.
        """
        sessions = TreatmentSessionService.list_sessions_for_patient(db, patient_id)

        total_sessions = sum(s.planned_sessions for s in sessions)
        completed_sessions = sum(s.completed_sessions for s in sessions)
        records = [r for s in sessions for r in s.session_records]
        missed_sessions = sum(1 for r in records if r.status == SessionRecordStatus.MISSED.value)
        scheduled_sessions = sum(1 for r in records if r.status == SessionRecordStatus.SCHEDULED.value)
        completion_rate = (completed_sessions / total_sessions) * 100 if total_sessions > 0 else 0.0

        return {
            "total_sessions": total_sessions,
            "completed_sessions": completed_sessions,
            "missed_sessions": missed_sessions,
            "scheduled_sessions": scheduled_sessions,
            "completion_rate": round(completion_rate, 2),
        }
