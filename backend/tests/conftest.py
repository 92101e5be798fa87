"""
Test configuration and shared fixtures for the Clinic Scheduler test suite.

Every test gets its own in-memory SQLite database with all tables created
from the models. The SAVEPOINT recipe from the SQLAlchemy pysqlite docs is
applied so nested transactions behave the way they do on PostgreSQL.
"""

import os

# Keep the application engine off any real server configured in the shell
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
from core.enums import AttendanceStatus
from models import Attendance, Patient, ScheduleSetting, TreatmentRecord


@pytest.fixture
def db_engine():
    """Fresh in-memory database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINT works
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    """Session configured like core.database.SessionLocal."""
    TestingSession = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session) -> Generator[TestClient, None, None]:
    """TestClient whose requests run on the test's db_session."""
    from main import app

    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            # Session is closed by the db_session fixture
            pass

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides = {}


@pytest.fixture
def make_patient(db_session):
    """Factory inserting a patient."""
    def _make(name: str = "Maria Silva", **kwargs) -> Patient:
        patient = Patient(name=name, **kwargs)
        db_session.add(patient)
        db_session.commit()
        db_session.refresh(patient)
        return patient
    return _make


@pytest.fixture
def make_schedule_setting(db_session):
    """Factory inserting a schedule setting. Defaults to 18:00-22:00 with room for 10 of each type."""
    def _make(
        day_of_week: int,
        start_time: str = "18:00",
        end_time: str = "22:00",
        max_concurrent_spiritual: int = 10,
        max_concurrent_light_bath: int = 10,
        is_active: bool = True
    ) -> ScheduleSetting:
        setting = ScheduleSetting(
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            max_concurrent_spiritual=max_concurrent_spiritual,
            max_concurrent_light_bath=max_concurrent_light_bath,
            is_active=is_active,
        )
        db_session.add(setting)
        db_session.commit()
        db_session.refresh(setting)
        return setting
    return _make


@pytest.fixture
def make_completed_attendance(db_session):
    """Factory inserting a completed attendance directly, bypassing admission checks."""
    def _make(
        patient: Patient,
        scheduled_date: str = "2024-01-01",
        scheduled_time: str = "19:00",
        attendance_type: str = "spiritual"
    ) -> Attendance:
        attendance = Attendance(
            patient_id=patient.id,
            type=attendance_type,
            status=AttendanceStatus.COMPLETED.value,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            completed_time="19:45:00",
        )
        db_session.add(attendance)
        db_session.commit()
        db_session.refresh(attendance)
        return attendance
    return _make


@pytest.fixture
def patient(make_patient) -> Patient:
    return make_patient()


@pytest.fixture
def completed_attendance(make_completed_attendance, patient) -> Attendance:
    """Completed spiritual attendance on Monday 2024-01-01."""
    return make_completed_attendance(patient)


@pytest.fixture
def treatment_record(db_session, completed_attendance) -> TreatmentRecord:
    """Bare treatment record, inserted without generating plans."""
    record = TreatmentRecord(attendance_id=completed_attendance.id)
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record
