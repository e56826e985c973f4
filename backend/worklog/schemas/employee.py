from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class EmployeeFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    first_name: str | None = None
    last_name: str | None = None
    birth_date: date | None = None

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name must not be empty")
        return v.strip()

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_optional(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else None


class EmployeeCreate(EmployeeFields):
    is_admin: bool = False


class EmployeeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    first_name: str | None = None
    last_name: str | None = None
    birth_date: date | None = None

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Name must not be empty")
        return v.strip() if v is not None else None


class EmployeeResponse(BaseModel):
    id: int
    name: str
    first_name: str | None
    last_name: str | None
    birth_date: date | None
    is_admin: bool
    created_at: datetime

    model_config = {"from_attributes": True}
