import uuid
from typing import Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.retry import upstream_read
from frontdesk.modules.directory.models import Staff, ClinicService, StaffService, Patient

class DirectoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_staff(self, org_id: uuid.UUID, **data) -> Staff:
        obj = Staff(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def add_service(self, org_id: uuid.UUID, **data) -> ClinicService:
        obj = ClinicService(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def offer_service(self, org_id: uuid.UUID, staff_id: uuid.UUID, service_id: uuid.UUID) -> StaffService:
        obj = StaffService(org_id=org_id, staff_id=staff_id, service_id=service_id)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def add_patient(self, org_id: uuid.UUID, **data) -> Patient:
        obj = Patient(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID) -> Staff | None:
        async with upstream_read("staff"):
            res = await self.session.execute(select(Staff).where(
                Staff.id == staff_id, Staff.org_id == org_id, Staff.deleted_at.is_(None)
            ))
            return res.scalar_one_or_none()

    async def list_active_staff(self, org_id: uuid.UUID) -> Sequence[Staff]:
        async with upstream_read("staff"):
            res = await self.session.execute(select(Staff).where(
                Staff.org_id == org_id, Staff.active.is_(True), Staff.deleted_at.is_(None)
            ).order_by(Staff.display_name))
            return res.scalars().all()

    async def get_service(self, org_id: uuid.UUID, service_id: uuid.UUID) -> ClinicService | None:
        async with upstream_read("services"):
            res = await self.session.execute(select(ClinicService).where(
                ClinicService.id == service_id, ClinicService.org_id == org_id, ClinicService.deleted_at.is_(None)
            ))
            return res.scalar_one_or_none()

    async def list_services_for_staff(self, org_id: uuid.UUID, staff_id: uuid.UUID) -> Sequence[ClinicService]:
        async with upstream_read("services"):
            q = (
                select(ClinicService)
                .join(StaffService, StaffService.service_id == ClinicService.id)
                .where(
                    StaffService.org_id == org_id,
                    StaffService.staff_id == staff_id,
                    StaffService.deleted_at.is_(None),
                    ClinicService.available.is_(True),
                    ClinicService.deleted_at.is_(None),
                )
                .order_by(ClinicService.name)
            )
            res = await self.session.execute(q)
            return res.scalars().all()

    async def find_patient_by_document(self, org_id: uuid.UUID, document_number: str) -> Patient | None:
        async with upstream_read("patients"):
            res = await self.session.execute(select(Patient).where(
                Patient.org_id == org_id,
                Patient.document_number == document_number,
                Patient.deleted_at.is_(None),
            ))
            return res.scalars().first()

    async def get_patient(self, org_id: uuid.UUID, patient_id: uuid.UUID) -> Patient | None:
        async with upstream_read("patients"):
            res = await self.session.execute(select(Patient).where(
                Patient.id == patient_id, Patient.org_id == org_id, Patient.deleted_at.is_(None)
            ))
            return res.scalar_one_or_none()

    async def update_patient_phone(self, org_id: uuid.UUID, patient_id: uuid.UUID, phone: str) -> Patient | None:
        obj = await self.get_patient(org_id, patient_id)
        if not obj:
            return None
        obj.phone = phone
        await self.session.flush()
        return obj
