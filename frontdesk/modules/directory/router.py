import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.core.security import get_principal, require_scopes, Principal
from frontdesk.modules.directory.schemas import StaffCreate, StaffOut, ServiceCreate, ServiceOut, PatientCreate, PatientOut
from frontdesk.modules.directory.service import DirectoryService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> DirectoryService:
    return DirectoryService(session)

@router.post("/staff", response_model=StaffOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_scopes("directory:write"))])
async def create_staff(
    payload: StaffCreate,
    principal: Principal = Depends(get_principal),
    service: DirectoryService = Depends(svc),
):
    return await service.add_staff(principal.org_id, payload)

@router.get("/staff", response_model=list[StaffOut], dependencies=[Depends(require_scopes("directory:read"))])
async def list_staff(
    principal: Principal = Depends(get_principal),
    service: DirectoryService = Depends(svc),
):
    return await service.list_staff(principal.org_id)

@router.post("/services", response_model=ServiceOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_scopes("directory:write"))])
async def create_service(
    payload: ServiceCreate,
    principal: Principal = Depends(get_principal),
    service: DirectoryService = Depends(svc),
):
    return await service.add_service(principal.org_id, payload)

@router.post("/staff/{staff_id}/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT,
             dependencies=[Depends(require_scopes("directory:write"))])
async def offer_service(
    staff_id: uuid.UUID,
    service_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: DirectoryService = Depends(svc),
):
    await service.offer_service(principal.org_id, staff_id, service_id)

@router.get("/staff/{staff_id}/services", response_model=list[ServiceOut],
            dependencies=[Depends(require_scopes("directory:read"))])
async def list_staff_services(
    staff_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: DirectoryService = Depends(svc),
):
    return await service.list_services_for_staff(principal.org_id, staff_id)

@router.post("/patients", response_model=PatientOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_scopes("directory:write"))])
async def create_patient(
    payload: PatientCreate,
    principal: Principal = Depends(get_principal),
    service: DirectoryService = Depends(svc),
):
    return await service.add_patient(principal.org_id, payload)
