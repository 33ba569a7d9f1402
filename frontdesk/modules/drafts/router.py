import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from frontdesk.core.db import get_session
from frontdesk.core.security import get_principal, require_scopes, Principal
from frontdesk.modules.drafts.schemas import DraftSave, DraftSummary, DraftOut
from frontdesk.modules.drafts.service import DraftService, to_out

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> DraftService:
    return DraftService(session)

@router.get("", response_model=list[DraftSummary], dependencies=[Depends(require_scopes("drafts:read"))])
async def list_drafts(
    principal: Principal = Depends(get_principal),
    service: DraftService = Depends(svc),
):
    return await service.list(principal.org_id, principal.user_id)

@router.put("", response_model=DraftOut, dependencies=[Depends(require_scopes("drafts:write"))])
async def save_draft(
    payload: DraftSave,
    principal: Principal = Depends(get_principal),
    service: DraftService = Depends(svc),
):
    return to_out(await service.save(principal.org_id, principal.user_id, payload))

@router.get("/{draft_id}", response_model=DraftOut, dependencies=[Depends(require_scopes("drafts:read"))])
async def open_draft(
    draft_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: DraftService = Depends(svc),
):
    obj = await service.open(principal.org_id, principal.user_id, draft_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Draft not found")
    return to_out(obj)

@router.delete("/{draft_id}", status_code=204, dependencies=[Depends(require_scopes("drafts:write"))])
async def delete_draft(
    draft_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    service: DraftService = Depends(svc),
):
    ok = await service.delete(principal.org_id, principal.user_id, draft_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Draft not found")
    return
