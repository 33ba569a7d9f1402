from datetime import time, datetime, timedelta
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import JSON, Time
from frontdesk.core.base import Base, TimestampedTenantMixin

class ScheduleTemplate(Base, TimestampedTenantMixin):
    __tablename__ = "schedule_template"
    weekdays: Mapped[list[int]] = mapped_column(JSON)  # sorted, 0=Sunday..6=Saturday
    start_time: Mapped[time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column()
    available: Mapped[bool] = mapped_column(default=True)

    @property
    def end_time(self) -> time:
        # never stored; always start + duration
        return (datetime.combine(datetime.min, self.start_time) + timedelta(minutes=self.duration_minutes)).time()
