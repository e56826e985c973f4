from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

_TEXT_FIELDS = (
    "customer_number",
    "name",
    "first_name",
    "last_name",
    "street",
    "house_number",
    "postal_code",
    "city",
    "phone",
    "email",
    "notes",
)


class CustomerRecord(BaseModel):
    """Customer fields as they arrive, before the name rule is applied."""

    customer_number: str | None = Field(default=None, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    first_name: str | None = None
    last_name: str | None = None
    street: str | None = None
    house_number: str | None = Field(default=None, max_length=32)
    postal_code: str | None = Field(default=None, max_length=16)
    city: str | None = None
    phone: str | None = None
    email: str | None = None
    notes: str | None = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_is_none(cls, v: object) -> object:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    def display_name(self) -> str | None:
        """``name``, or the last name when only that is given."""
        return self.name or self.last_name


class CustomerFields(CustomerRecord):
    @model_validator(mode="after")
    def name_given(self) -> "CustomerFields":
        if self.display_name() is None:
            raise ValueError("name or last_name is required")
        return self


class CustomerResponse(BaseModel):
    id: int
    customer_number: str | None
    name: str
    first_name: str | None
    last_name: str | None
    street: str | None
    house_number: str | None
    postal_code: str | None
    city: str | None
    phone: str | None
    email: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomerImportRequest(BaseModel):
    records: list[CustomerRecord] = Field(..., min_length=1)
    skip_duplicates: bool = True


class CustomerImportResponse(BaseModel):
    total: int
    imported: int
    skipped: int
    errors: list[str]
