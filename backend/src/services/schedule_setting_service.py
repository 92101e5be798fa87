"""
Schedule setting service.

Manages the per-weekday operating hours and capacity rows consumed by
ScheduleValidationService. Keeps at most one active setting per day of week.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import DEFAULT_MAX_CONCURRENT, MAX_DAY_OF_WEEK, MIN_DAY_OF_WEEK
from core.exceptions import BadRequestError, NotFoundError, ScheduleConflictError, ValidationError
from core.sentinels import MISSING, is_provided
from models import ScheduleSetting
from utils.date_string_utils import normalize_time_string

logger = logging.getLogger(__name__)


class ScheduleSettingService:
    """CRUD for ScheduleSetting with the one-active-per-day rule."""

    @staticmethod
    def _validate_day_of_week(day_of_week: int) -> None:
        if day_of_week < MIN_DAY_OF_WEEK or day_of_week > MAX_DAY_OF_WEEK:
            raise ValidationError(
                f"day_of_week must be between {MIN_DAY_OF_WEEK} and {MAX_DAY_OF_WEEK}",
                {"day_of_week": day_of_week}
            )

    @staticmethod
    def _validate_hours(start_time: str, end_time: str) -> tuple[str, str]:
        try:
            start = normalize_time_string(start_time)
            end = normalize_time_string(end_time)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if start >= end:
            raise ValidationError(
                "start_time must be before end_time",
                {"start_time": start, "end_time": end}
            )
        return start, end

    @staticmethod
    def _ensure_no_active_duplicate(
        db: Session,
        day_of_week: int,
        exclude_id: Optional[int] = None
    ) -> None:
        query = db.query(ScheduleSetting).filter(
            ScheduleSetting.day_of_week == day_of_week,
            ScheduleSetting.is_active == True  # noqa: E712
        )
        if exclude_id is not None:
            query = query.filter(ScheduleSetting.id != exclude_id)
        existing = query.first()
        if existing:
            raise ScheduleConflictError(day_of_week, existing.id)

    @staticmethod
    def create_setting(
        db: Session,
        day_of_week: int,
        start_time: str,
        end_time: str,
        max_concurrent_spiritual: int = DEFAULT_MAX_CONCURRENT,
        max_concurrent_light_bath: int = DEFAULT_MAX_CONCURRENT,
        is_active: bool = True
    ) -> ScheduleSetting:
        """
        Create a schedule setting for a day of week.

        Raises:
            ValidationError: If the day, hours or capacities are out of range
            ScheduleConflictError: If an active setting already exists for the day
        """
        ScheduleSettingService._validate_day_of_week(day_of_week)
        start, end = ScheduleSettingService._validate_hours(start_time, end_time)
        if max_concurrent_spiritual < 1 or max_concurrent_light_bath < 1:
            raise ValidationError("Capacity values must be at least 1")

        if is_active:
            ScheduleSettingService._ensure_no_active_duplicate(db, day_of_week)

        setting = ScheduleSetting(
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            max_concurrent_spiritual=max_concurrent_spiritual,
            max_concurrent_light_bath=max_concurrent_light_bath,
            is_active=is_active
        )
        db.add(setting)
        db.commit()
        db.refresh(setting)

        logger.info(f"Created schedule setting {setting.id} for day {day_of_week} ({start}-{end})")
        return setting

    @staticmethod
    def get_setting(db: Session, setting_id: int) -> ScheduleSetting:
        setting = db.query(ScheduleSetting).filter(ScheduleSetting.id == setting_id).first()
        if not setting:
            raise NotFoundError("Schedule setting", setting_id)
        return setting

    @staticmethod
    def get_by_day(db: Session, day_of_week: int) -> ScheduleSetting:
        """Get the active setting for a day; NotFoundError if the day is not configured."""
        ScheduleSettingService._validate_day_of_week(day_of_week)
        setting = db.query(ScheduleSetting).filter(
            ScheduleSetting.day_of_week == day_of_week,
            ScheduleSetting.is_active == True  # noqa: E712
        ).first()
        if not setting:
            raise NotFoundError("Schedule setting for day", day_of_week)
        return setting

    @staticmethod
    def list_settings(db: Session, active_only: bool = False) -> List[ScheduleSetting]:
        """List settings ordered by day of week."""
        query = db.query(ScheduleSetting)
        if active_only:
            query = query.filter(ScheduleSetting.is_active == True)  # noqa: E712
        return query.order_by(ScheduleSetting.day_of_week, ScheduleSetting.id).all()

    @staticmethod
    def update_setting(
        db: Session,
        setting_id: int,
        day_of_week: Optional[int] = MISSING,  # type: ignore[assignment]
        start_time: Optional[str] = MISSING,  # type: ignore[assignment]
        end_time: Optional[str] = MISSING,  # type: ignore[assignment]
        max_concurrent_spiritual: Optional[int] = MISSING,  # type: ignore[assignment]
        max_concurrent_light_bath: Optional[int] = MISSING,  # type: ignore[assignment]
        is_active: Optional[bool] = MISSING  # type: ignore[assignment]
    ) -> ScheduleSetting:
        """
        Partially update a schedule setting.

        Only arguments that are passed are applied. Activating a setting or
        moving it to another day re-checks the one-active-per-day rule.

        Raises:
            NotFoundError: If the setting does not exist
            BadRequestError: If no field is provided
            ValidationError: If a value is out of range
            ScheduleConflictError: If the change would leave two active settings for one day
        """
        fields = [day_of_week, start_time, end_time, max_concurrent_spiritual, max_concurrent_light_bath, is_active]
        if not any(is_provided(value) for value in fields):
            raise BadRequestError("At least one field must be provided for update")

        setting = ScheduleSettingService.get_setting(db, setting_id)

        new_day = day_of_week if is_provided(day_of_week) and day_of_week is not None else setting.day_of_week
        new_active = is_active if is_provided(is_active) and is_active is not None else setting.is_active
        ScheduleSettingService._validate_day_of_week(new_day)

        new_start = start_time if is_provided(start_time) and start_time is not None else setting.start_time
        new_end = end_time if is_provided(end_time) and end_time is not None else setting.end_time
        new_start, new_end = ScheduleSettingService._validate_hours(new_start, new_end)

        for value in (max_concurrent_spiritual, max_concurrent_light_bath):
            if is_provided(value) and value is not None and value < 1:
                raise ValidationError("Capacity values must be at least 1")

        if new_active and (new_day != setting.day_of_week or not setting.is_active):
            ScheduleSettingService._ensure_no_active_duplicate(db, new_day, exclude_id=setting.id)

        setting.day_of_week = new_day
        setting.is_active = new_active
        setting.start_time = new_start
        setting.end_time = new_end
        if is_provided(max_concurrent_spiritual) and max_concurrent_spiritual is not None:
            setting.max_concurrent_spiritual = max_concurrent_spiritual
        if is_provided(max_concurrent_light_bath) and max_concurrent_light_bath is not None:
            setting.max_concurrent_light_bath = max_concurrent_light_bath

        db.commit()
        db.refresh(setting)

        logger.info(f"Updated schedule setting {setting.id}")
        return setting

    @staticmethod
    def delete_setting(db: Session, setting_id: int) -> None:
        setting = ScheduleSettingService.get_setting(db, setting_id)
        db.delete(setting)
        db.commit()
        logger.info(f"Deleted schedule setting {setting_id}")
