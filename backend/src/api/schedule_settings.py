# pyright: reportMissingTypeStubs=false
"""
Schedule Settings API endpoints.

Operating hours and per-slot capacity for each day of the week.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from core.constants import DEFAULT_MAX_CONCURRENT
from core.database import get_db
from services import ScheduleSettingService
from api.shared import validate_day_of_week, validate_time_string
from api.responses import ScheduleSettingResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class ScheduleSettingCreateRequest(BaseModel):
    day_of_week: int
    start_time: str
    end_time: str
    max_concurrent_spiritual: int = Field(default=DEFAULT_MAX_CONCURRENT, ge=1)
    max_concurrent_light_bath: int = Field(default=DEFAULT_MAX_CONCURRENT, ge=1)
    is_active: bool = True

    @field_validator('day_of_week')
    @classmethod
    def validate_day(cls, v: int) -> int:
        return validate_day_of_week(v)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, v: str) -> str:
        return validate_time_string(v)

    @model_validator(mode='after')
    def validate_hours(self):
        if self.start_time >= self.end_time:
            raise ValueError('start_time must be before end_time')
        return self


class ScheduleSettingUpdateRequest(BaseModel):
    day_of_week: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    max_concurrent_spiritual: Optional[int] = Field(default=None, ge=1)
    max_concurrent_light_bath: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None

    @field_validator('day_of_week')
    @classmethod
    def validate_day(cls, v: Optional[int]) -> Optional[int]:
        return validate_day_of_week(v) if v is not None else None

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, v: Optional[str]) -> Optional[str]:
        return validate_time_string(v) if v is not None else None

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('At least one field must be provided for update')
        return self


@router.get("/schedule-settings", summary="List schedule settings", response_model=List[ScheduleSettingResponse])
async def list_schedule_settings(
    active_only: bool = Query(False, description="Only return active settings"),
    db: Session = Depends(get_db)
) -> List[ScheduleSettingResponse]:
    settings = ScheduleSettingService.list_settings(db, active_only=active_only)
    return [ScheduleSettingResponse.model_validate(s) for s in settings]


@router.post(
    "/schedule-settings",
    summary="Create schedule setting",
    response_model=ScheduleSettingResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_schedule_setting(
    request: ScheduleSettingCreateRequest,
    db: Session = Depends(get_db)
) -> ScheduleSettingResponse:
    try:
        setting = ScheduleSettingService.create_setting(db, **request.model_dump())
        return ScheduleSettingResponse.model_validate(setting)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Schedule setting creation error: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create schedule setting"
        )


@router.get(
    "/schedule-settings/day/{day_of_week}",
    summary="Get the active setting for a day of week",
    response_model=ScheduleSettingResponse
)
async def get_schedule_setting_by_day(day_of_week: int, db: Session = Depends(get_db)) -> ScheduleSettingResponse:
    return ScheduleSettingResponse.model_validate(ScheduleSettingService.get_by_day(db, day_of_week))


@router.get(
    "/schedule-settings/{setting_id}",
    summary="Get schedule setting",
    response_model=ScheduleSettingResponse
)
async def get_schedule_setting(setting_id: int, db: Session = Depends(get_db)) -> ScheduleSettingResponse:
    return ScheduleSettingResponse.model_validate(ScheduleSettingService.get_setting(db, setting_id))


@router.put(
    "/schedule-settings/{setting_id}",
    summary="Update schedule setting",
    response_model=ScheduleSettingResponse
)
async def update_schedule_setting(
    setting_id: int,
    request: ScheduleSettingUpdateRequest,
    db: Session = Depends(get_db)
) -> ScheduleSettingResponse:
    try:
        setting = ScheduleSettingService.update_setting(db, setting_id, **request.model_dump(exclude_unset=True))
        return ScheduleSettingResponse.model_validate(setting)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error updating schedule setting {setting_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update schedule setting"
        )


@router.delete(
    "/schedule-settings/{setting_id}",
    summary="Delete schedule setting",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_schedule_setting(setting_id: int, db: Session = Depends(get_db)) -> None:
    ScheduleSettingService.delete_setting(db, setting_id)
