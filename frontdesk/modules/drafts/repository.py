import uuid
from typing import Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.retry import upstream_read
from frontdesk.modules.directory.models import Patient
from frontdesk.modules.drafts.models import EncounterDraft

class DraftRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> EncounterDraft:
        obj = EncounterDraft(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, draft_id: uuid.UUID) -> EncounterDraft | None:
        async with upstream_read("drafts"):
            res = await self.session.execute(select(EncounterDraft).where(
                EncounterDraft.id == draft_id,
                EncounterDraft.org_id == org_id,
                EncounterDraft.deleted_at.is_(None),
            ))
            return res.scalar_one_or_none()

    async def latest_for_pair(self, org_id: uuid.UUID, patient_id: uuid.UUID, author_id: uuid.UUID) -> EncounterDraft | None:
        async with upstream_read("drafts"):
            q = select(EncounterDraft).where(
                EncounterDraft.org_id == org_id,
                EncounterDraft.patient_id == patient_id,
                EncounterDraft.author_id == author_id,
                EncounterDraft.deleted_at.is_(None),
            ).order_by(EncounterDraft.updated_at.desc()).limit(1)
            res = await self.session.execute(q)
            return res.scalars().first()

    async def list_for_author(self, org_id: uuid.UUID, author_id: uuid.UUID, limit: int = 50) -> Sequence:
        """Lightweight rows for the list view; form_data is left out."""
        async with upstream_read("drafts"):
            q = (
                select(
                    EncounterDraft.id,
                    EncounterDraft.patient_id,
                    Patient.name.label("patient_name"),
                    EncounterDraft.title,
                    EncounterDraft.updated_at,
                )
                .outerjoin(Patient, Patient.id == EncounterDraft.patient_id)
                .where(
                    EncounterDraft.org_id == org_id,
                    EncounterDraft.author_id == author_id,
                    EncounterDraft.deleted_at.is_(None),
                )
                .order_by(EncounterDraft.updated_at.desc())
                .limit(limit)
            )
            res = await self.session.execute(q)
            return res.all()

    async def delete(self, obj: EncounterDraft) -> None:
        await self.session.delete(obj)
        await self.session.flush()
