import datetime as dt
import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (test databases)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class Category(str, enum.Enum):
    OUTDOOR_ROUND = "outdoor-round"
    OFFICE = "office"
    SICK_LEAVE = "sick-leave"
    VACATION = "vacation"
    COMPANY_CLOSURE = "company-closure"
    TRAINING = "training"
    PUBLIC_HOLIDAY = "public-holiday"


ABSENCE_CATEGORIES = (Category.SICK_LEAVE, Category.VACATION)


class AuditAction(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class TourFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TicketType(str, enum.Enum):
    LEAK_TEST = "leak-test"
    APPOINTMENT_REQUEST = "appointment-request"
    EXTRA_WORK = "extra-work"
    DEFECT = "defect"
    OTHER = "other"


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    DONE = "done"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    birth_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    entries: Mapped[list["TimeEntry"]] = relationship(
        "TimeEntry", back_populates="employee", lazy="raise", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.name}>"


class TimeEntry(Base):
    __tablename__ = "entries"

    __table_args__ = (
        Index("ix_entries_employee_date", "employee_id", "date"),
        Index("ix_entries_date", "date"),
        Index("ix_entries_category", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    category: Mapped[Category] = mapped_column(
        Enum(Category, name="entry_category", values_callable=_enum_values),
        nullable=False,
    )
    is_outside: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    gratuity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    gross_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    integrity_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    # Set by the application, not the server: the value is part of the hash
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    employee: Mapped["Employee"] = relationship(
        "Employee", back_populates="entries", lazy="raise"
    )

    def __repr__(self) -> str:
        return (
            f"<TimeEntry id={self.id} employee_id={self.employee_id} "
            f"date={self.date} category={self.category}>"
        )


class AuditRecord(Base):
    __tablename__ = "audit_log"

    __table_args__ = (
        Index("ix_audit_log_ts", "ts"),
        Index("ix_audit_log_subject", "table_name", "record_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ts: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, name="audit_action", values_callable=_enum_values),
        nullable=False,
    )
    table_name: Mapped[str] = mapped_column(String(64), nullable=False)
    record_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    changed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    before: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    after: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AuditRecord id={self.id} action={self.action} "
            f"table={self.table_name} record_id={self.record_id}>"
        )


class AppSetting(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<AppSetting key={self.key}>"


class ImportHistory(Base):
    __tablename__ = "import_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("employees.id", ondelete="SET NULL"),
        nullable=True,
    )
    source: Mapped[str] = mapped_column(String(255), nullable=False)
    imported_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    status: Mapped[str] = mapped_column(
        Enum("success", "partial", "failed", name="import_status_enum"), nullable=False
    )
    logs: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    def __repr__(self) -> str:
        return f"<ImportHistory id={self.id} source={self.source} status={self.status}>"


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_number: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    house_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} number={self.customer_number} name={self.name}>"


class Tour(Base):
    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[TourFrequency] = mapped_column(
        Enum(TourFrequency, name="tour_frequency", values_callable=_enum_values),
        nullable=False,
        default=TourFrequency.DAILY,
    )
    employee_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Tour id={self.id} name={self.name} frequency={self.frequency}>"


class TourStop(Base):
    """A customer assigned to a tour at a given position."""

    __tablename__ = "tour_customers"

    __table_args__ = (UniqueConstraint("tour_id", "customer_id", name="uq_tour_customer"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tour_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False
    )
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Ticket(Base):
    __tablename__ = "tickets"

    __table_args__ = (
        Index("ix_tickets_status", "status"),
        Index("ix_tickets_employee", "employee_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    entry_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("entries.id", ondelete="SET NULL"), nullable=True
    )
    tour_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tours.id", ondelete="SET NULL"), nullable=True
    )
    customer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True
    )
    event_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ticket_type: Mapped[TicketType] = mapped_column(
        Enum(TicketType, name="ticket_type", values_callable=_enum_values),
        nullable=False,
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TicketStatus] = mapped_column(
        Enum(TicketStatus, name="ticket_status", values_callable=_enum_values),
        nullable=False,
        default=TicketStatus.OPEN,
    )
    finding: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    closed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} type={self.ticket_type} status={self.status}>"
