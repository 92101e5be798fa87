"""initial_schema_baseline

Revision ID: a1c3e5f7b9d2
Revises: 
Create Date: 2026-10-19 09:00:00.000000

Baseline migration creating the scheduling schema from the current model
definitions: patients, schedule settings, attendances, treatment records,
treatment sessions and their session records, with all check constraints
and indexes the models declare.
"""
from typing import Sequence, Union
import sys
import os

# Add src directory to path to import models
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from alembic import op

# Import all models to ensure they're registered with Base.metadata
from core.database import Base
from models.patient import Patient  # noqa: F401
from models.schedule_setting import ScheduleSetting  # noqa: F401
from models.attendance import Attendance  # noqa: F401
from models.treatment_record import TreatmentRecord  # noqa: F401
from models.treatment_session import TreatmentSession  # noqa: F401
from models.treatment_session_record import TreatmentSessionRecord  # noqa: F401


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create all database tables from SQLAlchemy models.

    Check constraints come from the models' __table_args__:
    - planned_sessions between 1 and 50
    - light bath plans carry duration and color, rod plans carry neither
    - day_of_week between 0 and 6
    - return_in_weeks between 1 and 52
    """
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    """Drop all database tables created by the baseline migration."""
    Base.metadata.drop_all(bind=op.get_bind())
