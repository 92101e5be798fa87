"""add patient notes and absence tracking

Revision ID: b4d6f8a0c2e1
Revises: a1c3e5f7b9d2
Create Date: 2026-10-19 15:00:00.000000

Adds the patient_notes table, the absence_justified/absence_notes columns
on attendances and missing_appointments_streak on patients.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b4d6f8a0c2e1'
down_revision: Union[str, None] = 'a1c3e5f7b9d2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # The baseline builds tables from the current models, so any of these
    # may already exist
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    tables = inspector.get_table_names()

    if 'patient_notes' not in tables:
        op.create_table(
            'patient_notes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('patient_id', sa.Integer(), nullable=False),
            sa.Column('note_content', sa.Text(), nullable=False),
            sa.Column('category', sa.String(length=50), nullable=False, server_default='general'),
            sa.Column('created_date', sa.String(length=10), nullable=False),
            sa.Column('created_time', sa.String(length=8), nullable=False),
            sa.Column('updated_date', sa.String(length=10), nullable=False),
            sa.Column('updated_time', sa.String(length=8), nullable=False),
            sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.CheckConstraint(
                "category IN ('general', 'treatment', 'observation', 'behavior', "
                "'medication', 'progress', 'family', 'emergency')",
                name='check_patient_note_category'
            )
        )
        op.create_index('ix_patient_notes_id', 'patient_notes', ['id'])
        op.create_index('idx_patient_notes_patient', 'patient_notes', ['patient_id'])

    attendance_columns = [c['name'] for c in inspector.get_columns('attendances')]
    if 'absence_justified' not in attendance_columns:
        op.add_column('attendances', sa.Column('absence_justified', sa.Boolean(), nullable=True))
    if 'absence_notes' not in attendance_columns:
        op.add_column('attendances', sa.Column('absence_notes', sa.Text(), nullable=True))

    patient_columns = [c['name'] for c in inspector.get_columns('patients')]
    if 'missing_appointments_streak' not in patient_columns:
        op.add_column(
            'patients',
            sa.Column('missing_appointments_streak', sa.Integer(), nullable=False, server_default='0')
        )


def downgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)

    patient_columns = [c['name'] for c in inspector.get_columns('patients')]
    if 'missing_appointments_streak' in patient_columns:
        op.drop_column('patients', 'missing_appointments_streak')

    attendance_columns = [c['name'] for c in inspector.get_columns('attendances')]
    if 'absence_notes' in attendance_columns:
        op.drop_column('attendances', 'absence_notes')
    if 'absence_justified' in attendance_columns:
        op.drop_column('attendances', 'absence_justified')

    if 'patient_notes' in inspector.get_table_names():
        op.drop_index('idx_patient_notes_patient', table_name='patient_notes')
        op.drop_index('ix_patient_notes_id', table_name='patient_notes')
        op.drop_table('patient_notes')
