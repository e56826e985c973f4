from datetime import date, time
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from worklog.db.models import Category


class CandidateRecord(BaseModel):
    """One already-normalized row coming from an external spreadsheet reader."""

    date: date
    start_time: time | None = None
    end_time: time | None = None
    category: Category | None = None
    hours: float | None = Field(default=None, ge=0, le=24)
    description: str = ""
    is_outside: bool | None = None
    gratuity: float = Field(default=0.0, ge=0)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def blank_time_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: str | None) -> str:
        return (v or "").strip()


class ImportRequest(BaseModel):
    employee_id: int | None = None
    employee_name: str | None = None
    source: str = Field(default="records", max_length=255)
    records: list[CandidateRecord] = Field(..., min_length=1)

    @model_validator(mode="after")
    def employee_given(self) -> "ImportRequest":
        if self.employee_id is None and not (self.employee_name or "").strip():
            raise ValueError("employee_id or employee_name is required")
        return self


class ImportResultResponse(BaseModel):
    source: str
    employee_id: int
    total: int
    inserted_count: int
    updated_count: int
    error_count: int
    errors: list[str]
    status: Literal["success", "partial", "failed"]
