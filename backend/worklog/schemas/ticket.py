from datetime import datetime

from pydantic import BaseModel, Field

from worklog.db.models import TicketStatus, TicketType


class TicketCreate(BaseModel):
    employee_id: int
    entry_id: int | None = None
    tour_id: int | None = None
    customer_id: int | None = None
    event_title: str | None = Field(default=None, max_length=255)
    event_address: str | None = Field(default=None, max_length=255)
    event_at: datetime | None = None
    ticket_type: TicketType
    note: str | None = None


class TicketUpdate(BaseModel):
    """Only the fields present in the request body are changed."""

    ticket_type: TicketType | None = None
    note: str | None = None
    finding: str | None = None
    status: TicketStatus | None = None
    closed_by: int | None = None


class TicketResponse(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    entry_id: int | None
    tour_id: int | None
    tour_name: str | None = None
    customer_id: int | None
    customer_name: str | None = None
    customer_address: str | None = None
    event_title: str | None
    event_address: str | None
    event_at: datetime | None
    ticket_type: TicketType
    note: str | None
    status: TicketStatus
    finding: str | None
    created_at: datetime
    closed_at: datetime | None
    closed_by: int | None

    model_config = {"from_attributes": True}
