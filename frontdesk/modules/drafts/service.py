import uuid
import logging
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.base import utcnow
from frontdesk.core.clock import Clock, clinic_now
from frontdesk.core.config import settings
from frontdesk.core.errors import NotFoundError
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.modules.drafts.models import EncounterDraft
from frontdesk.modules.drafts.repository import DraftRepository
from frontdesk.modules.drafts.schemas import DraftSave, DraftSummary, DraftOut

logger = logging.getLogger(__name__)

DYNAMIC_KEY = "dynamic_fields"
_LEGACY_DYNAMIC_KEY = "dynamicFields"

def split_dynamic_fields(form_data: dict | None) -> tuple[dict, dict]:
    """Separate ad hoc key/value fields from the structured form payload."""
    form = dict(form_data or {})
    dynamic = form.pop(DYNAMIC_KEY, None)
    legacy = form.pop(_LEGACY_DYNAMIC_KEY, None)
    return form, dict(dynamic or legacy or {})

def draft_title(patient_name: str, at: datetime) -> str:
    return f"{patient_name} - {at:%d/%m %H:%M}"

def to_out(d: EncounterDraft) -> DraftOut:
    form, dynamic = split_dynamic_fields(d.form_data)
    return DraftOut(
        id=d.id, patient_id=d.patient_id, author_id=d.author_id, title=d.title,
        form_data=form, dynamic_fields=dynamic, created_at=d.created_at, updated_at=d.updated_at,
    )

class DraftService:
    def __init__(self, session: AsyncSession, *, clock: Clock = utcnow, local_clock: Clock = clinic_now):
        self.session = session
        self.clock = clock
        self.local_clock = local_clock
        self.repo = DraftRepository(session)
        self.directory = DirectoryRepository(session)

    async def save(self, org_id: uuid.UUID, author_id: uuid.UUID, payload: DraftSave) -> EncounterDraft:
        """
        Upsert keyed on (patient, author): the most recently touched draft of
        the pair is updated in place; a new record only when none exists.
        """
        form, dynamic = split_dynamic_fields(payload.form_data)
        if payload.dynamic_fields is not None:
            dynamic = dict(payload.dynamic_fields)
        body = {**form, DYNAMIC_KEY: dynamic}

        existing = await self.repo.latest_for_pair(org_id, payload.patient_id, author_id)
        if existing:
            return await self._overwrite(existing, body, payload.title)

        patient = await self.directory.get_patient(org_id, payload.patient_id)
        if not patient:
            raise NotFoundError("patient", payload.patient_id)
        now = self.clock()
        try:
            obj = await self.repo.create(
                org_id,
                patient_id=payload.patient_id,
                author_id=author_id,
                title=payload.title or draft_title(patient.name, self.local_clock()),
                form_data=body,
                created_at=now,
                updated_at=now,
            )
        except IntegrityError:
            # a concurrent first save for the same pair got there first
            await self.session.rollback()
            existing = await self.repo.latest_for_pair(org_id, payload.patient_id, author_id)
            if existing is None:
                raise
            logger.info(f"Draft for patient {payload.patient_id} created concurrently; updating {existing.id}")
            return await self._overwrite(existing, body, payload.title)
        await self.session.commit()
        logger.info(f"Draft {obj.id} created for patient {payload.patient_id}")
        return obj

    async def _overwrite(self, existing: EncounterDraft, body: dict, title: str | None) -> EncounterDraft:
        existing.form_data = body
        if title:
            existing.title = title
        existing.updated_at = self.clock()
        await self.session.flush()
        await self.session.commit()
        logger.info(f"Draft {existing.id} updated")
        return existing

    async def list(self, org_id: uuid.UUID, author_id: uuid.UUID, limit: int | None = None) -> list[DraftSummary]:
        rows = await self.repo.list_for_author(org_id, author_id, limit or settings.DRAFT_LIST_LIMIT)
        return [
            DraftSummary(id=r.id, patient_id=r.patient_id, patient_name=r.patient_name, title=r.title, updated_at=r.updated_at)
            for r in rows
        ]

    async def open(self, org_id: uuid.UUID, author_id: uuid.UUID, draft_id: uuid.UUID) -> EncounterDraft | None:
        obj = await self.repo.get(org_id, draft_id)
        if not obj or obj.author_id != author_id:
            return None
        return obj

    async def delete(self, org_id: uuid.UUID, author_id: uuid.UUID, draft_id: uuid.UUID) -> bool:
        obj = await self.open(org_id, author_id, draft_id)
        if not obj:
            return False
        await self.repo.delete(obj)
        await self.session.commit()
        return True
