from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from worklog.db.models import TourFrequency


class TourFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    frequency: TourFrequency = TourFrequency.DAILY
    employee_ids: list[int] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Tour name must not be empty")
        return v.strip()

    @field_validator("employee_ids")
    @classmethod
    def unique_ids(cls, v: list[int]) -> list[int]:
        return list(dict.fromkeys(v))


class TourResponse(BaseModel):
    id: int
    name: str
    description: str | None
    frequency: TourFrequency
    employee_ids: list[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TourStopCreate(BaseModel):
    customer_id: int
    position: int = Field(default=0, ge=0)


class TourStopResponse(BaseModel):
    customer_id: int
    position: int
    name: str
    street: str | None
    house_number: str | None
    postal_code: str | None
    city: str | None


class TourDetailResponse(TourResponse):
    stops: list[TourStopResponse]
