import uuid
from datetime import date
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Date, ForeignKey, Numeric, UniqueConstraint
from frontdesk.core.base import Base, TimestampedTenantMixin

class Staff(Base, TimestampedTenantMixin):
    __tablename__ = "staff"
    display_name: Mapped[str] = mapped_column(String(160), index=True)
    active: Mapped[bool] = mapped_column(default=True)
    calendar_id: Mapped[str | None] = mapped_column(String(255), nullable=True)  # external calendar, optional

class ClinicService(Base, TimestampedTenantMixin):
    __tablename__ = "clinic_service"
    name: Mapped[str] = mapped_column(String(160))
    price: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    duration_minutes: Mapped[int] = mapped_column(default=30)
    available: Mapped[bool] = mapped_column(default=True)

class StaffService(Base, TimestampedTenantMixin):
    __tablename__ = "staff_service"
    __table_args__ = (UniqueConstraint("staff_id", "service_id", name="uq_staff_service"),)
    staff_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("staff.id"), index=True)
    service_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("clinic_service.id"))

class Patient(Base, TimestampedTenantMixin):
    __tablename__ = "patient"
    name: Mapped[str] = mapped_column(String(200))
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    document_number: Mapped[str] = mapped_column(String(15), index=True)  # CPF (11) or health card (15), digits only
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
