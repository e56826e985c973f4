from datetime import date, datetime, time

from pydantic import BaseModel, Field, field_validator

from worklog.db.models import Category


class EntryFields(BaseModel):
    """Mutable fields of a time entry; a replacement always sends all of them."""

    date: date
    start_time: time | None = None
    end_time: time | None = None
    category: Category
    is_outside: bool = False
    gratuity: float = Field(default=0.0, ge=0)
    description: str = ""

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def blank_time_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def drop_seconds(cls, v: time | None) -> time | None:
        return v.replace(second=0, microsecond=0) if v is not None else None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: str | None) -> str:
        return (v or "").strip()


class EntryCreate(EntryFields):
    employee_id: int


class EntryUpdate(EntryFields):
    pass


class EntryResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    date: date
    start_time: time | None
    end_time: time | None
    category: Category
    is_outside: bool
    gratuity: float
    description: str | None
    gross_minutes: int
    break_minutes: int
    net_minutes: int
    integrity_hash: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class IntegrityCheckResponse(BaseModel):
    entry_id: int
    valid: bool
