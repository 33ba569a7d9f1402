from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import settings
from .base import Base

engine = create_async_engine(settings.DATABASE_DSN, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

def import_models():
    # every model module must be imported before create_all sees the metadata
    from frontdesk.modules.directory import models as _directory  # noqa: F401
    from frontdesk.modules.schedules import models as _schedules  # noqa: F401
    from frontdesk.modules.assignments import models as _assignments  # noqa: F401
    from frontdesk.modules.appointments import models as _appointments  # noqa: F401
    from frontdesk.modules.drafts import models as _drafts  # noqa: F401

async def init_models(bind=None):
    ## In dev-only "create_all" mode build the schema here; otherwise migrations own it.
    if settings.DB_MANAGE != "create_all" and bind is None:
        return
    import_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
