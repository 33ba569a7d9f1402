import uuid
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.errors import NotFoundError, ConflictError
from frontdesk.modules.directory.repository import DirectoryRepository
from frontdesk.modules.booking.identity import digits_only, validate_document
from frontdesk.modules.directory.schemas import StaffCreate, ServiceCreate, PatientCreate

class DirectoryService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = DirectoryRepository(session)

    async def add_staff(self, org_id: uuid.UUID, payload: StaffCreate):
        obj = await self.repo.add_staff(org_id, **payload.model_dump(exclude_unset=True))
        await self.session.commit()
        return obj

    async def add_service(self, org_id: uuid.UUID, payload: ServiceCreate):
        obj = await self.repo.add_service(org_id, **payload.model_dump(exclude_unset=True))
        await self.session.commit()
        return obj

    async def offer_service(self, org_id: uuid.UUID, staff_id: uuid.UUID, service_id: uuid.UUID):
        if not await self.repo.get_staff(org_id, staff_id):
            raise NotFoundError("staff", staff_id)
        if not await self.repo.get_service(org_id, service_id):
            raise NotFoundError("service", service_id)
        try:
            obj = await self.repo.offer_service(org_id, staff_id, service_id)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("service already offered by this staff member") from e
        return obj

    async def list_staff(self, org_id: uuid.UUID):
        return await self.repo.list_active_staff(org_id)

    async def list_services_for_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID):
        return await self.repo.list_services_for_staff(org_id, staff_id)

    async def add_patient(self, org_id: uuid.UUID, payload: PatientCreate):
        document = validate_document(payload.document_number)
        if await self.repo.find_patient_by_document(org_id, document):
            raise ConflictError("a patient with this document is already registered")
        data = payload.model_dump(exclude_unset=True)
        data["document_number"] = document
        if data.get("phone"):
            data["phone"] = digits_only(data["phone"])
        obj = await self.repo.add_patient(org_id, **data)
        await self.session.commit()
        return obj
