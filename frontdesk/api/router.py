from fastapi import APIRouter
from frontdesk.modules.directory.router import router as directory_router
from frontdesk.modules.schedules.router import router as schedules_router
from frontdesk.modules.assignments.router import router as assignments_router
from frontdesk.modules.availability.router import router as availability_router
from frontdesk.modules.appointments.router import router as appointments_router
from frontdesk.modules.drafts.router import router as drafts_router
from frontdesk.modules.booking.router import router as booking_router

api_router = APIRouter()
api_router.include_router(directory_router, prefix="/directory", tags=["directory"])
api_router.include_router(schedules_router, prefix="/schedules", tags=["schedules"])
api_router.include_router(assignments_router, prefix="/assignments", tags=["assignments"])
api_router.include_router(availability_router, prefix="/availability", tags=["availability"])
api_router.include_router(appointments_router, prefix="/appointments", tags=["appointments"])
api_router.include_router(drafts_router, prefix="/drafts", tags=["drafts"])
# no auth on the public flow
api_router.include_router(booking_router, prefix="/public/booking", tags=["public booking"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
