from pydantic import BaseModel, Field


class SettingsResponse(BaseModel):
    break_threshold_hours: float
    break_duration_minutes: int
    daily_allowance_rate: float


class SettingsUpdate(BaseModel):
    break_threshold_hours: float | None = Field(default=None, gt=0, le=24)
    break_duration_minutes: int | None = Field(default=None, ge=0, le=24 * 60)
    daily_allowance_rate: float | None = Field(default=None, ge=0)
