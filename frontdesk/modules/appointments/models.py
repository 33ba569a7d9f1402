import uuid
from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Date, Text, ForeignKey, Index, text
from frontdesk.core.base import Base, TimestampedTenantMixin

_ACTIVE = text("status IN ('scheduled', 'in_progress')")

class Appointment(Base, TimestampedTenantMixin):
    staff_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("staff.id"), index=True)
    service_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("clinic_service.id"), nullable=True)
    patient_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("patient.id"), nullable=True)

    # snapshot of the service at booking time
    service_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(default=30)

    patient_name: Mapped[str] = mapped_column(String(160))
    patient_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    patient_document: Mapped[str | None] = mapped_column(String(15), nullable=True)

    # clinic wall-clock time, no tz
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=False))

    status: Mapped[str] = mapped_column(String(24), default="scheduled")  # scheduled, in_progress, completed, cancelled
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), default="public")  # principal id or "public"

    # obstetric
    lmp_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    gestational_age: Mapped[str | None] = mapped_column(String(32), nullable=True)
    estimated_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index(
            "uq_appointment_active_slot", "staff_id", "scheduled_at",
            unique=True, sqlite_where=_ACTIVE, postgresql_where=_ACTIVE,
        ),
    )
