"""
Schedule setting model holding operating hours and capacity per weekday.

There is one row per day of week. At most one row per day may be active;
that rule is enforced by ScheduleSettingService rather than by a database
constraint.
"""

from sqlalchemy import String, Integer, Boolean, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from core.constants import DEFAULT_MAX_CONCURRENT


class ScheduleSetting(Base):
    """
    Operating hours and concurrency ceilings for one day of the week.

    Times are wall-clock "HH:MM" strings compared lexicographically.
    """

    __tablename__ = "schedule_settings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    day_of_week: Mapped[int] = mapped_column(Integer)
    """Day of week, 0=Sunday .. 6=Saturday."""

    start_time: Mapped[str] = mapped_column(String(5))
    """Opening time (HH:MM)."""

    end_time: Mapped[str] = mapped_column(String(5))
    """Closing time (HH:MM). Attendances at exactly this time are still admitted."""

    max_concurrent_spiritual: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_CONCURRENT)
    """Maximum simultaneous spiritual attendances at one date+time."""

    max_concurrent_light_bath: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_CONCURRENT)
    """Maximum simultaneous attendances of each non-spiritual type (light bath and rod) at one date+time."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    """Only active settings are used to validate attendances."""

    created_date: Mapped[str] = mapped_column(String(10))
    created_time: Mapped[str] = mapped_column(String(8))
    updated_date: Mapped[str] = mapped_column(String(10))
    updated_time: Mapped[str] = mapped_column(String(8))

    __table_args__ = (
        Index('idx_schedule_settings_day_active', 'day_of_week', 'is_active'),
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='check_schedule_day_of_week'),
        CheckConstraint('max_concurrent_spiritual >= 1', name='check_schedule_max_spiritual'),
        CheckConstraint('max_concurrent_light_bath >= 1', name='check_schedule_max_light_bath'),
    )
