import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, JSON, ForeignKey, Index, text
from frontdesk.core.base import Base, TimestampedTenantMixin

_LIVE = text("deleted_at IS NULL")

class EncounterDraft(Base, TimestampedTenantMixin):
    __tablename__ = "encounter_draft"
    __table_args__ = (
        Index("ix_encounter_draft_pair", "patient_id", "author_id", "updated_at"),
        # one live draft per (patient, author)
        Index(
            "uq_encounter_draft_live_pair", "org_id", "patient_id", "author_id",
            unique=True, sqlite_where=_LIVE, postgresql_where=_LIVE,
        ),
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("patient.id"))
    author_id: Mapped[uuid.UUID] = mapped_column(index=True)  # professional writing the note
    title: Mapped[str] = mapped_column(String(200))
    form_data: Mapped[dict] = mapped_column(JSON, default=dict)  # clinical fields plus "dynamic_fields"
