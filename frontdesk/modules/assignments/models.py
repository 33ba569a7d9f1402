import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, ForeignKey, UniqueConstraint
from frontdesk.core.base import Base, TimestampedTenantMixin

class ScheduleAssignment(Base, TimestampedTenantMixin):
    __tablename__ = "schedule_assignment"
    __table_args__ = (UniqueConstraint("schedule_id", "staff_id", name="uq_schedule_assignment_pair"),)

    schedule_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("schedule_template.id"), index=True)
    staff_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("staff.id"), index=True)

    # display snapshot taken at assignment time, e.g. "Mon to Wed – 09:00 (30 minutes)"
    schedule_info: Mapped[str] = mapped_column(String(200))
    # template version the snapshot was taken from; differs from the live one once the template is edited
    schedule_version: Mapped[int] = mapped_column(default=1)
