import logging

from fastapi import FastAPI

from .api.routes_status import router as status_router
from .api.routes_assistant import router as assistant_router
from .api.routes_lookup import router as lookup_router
from .api.routes_notifications import router as notifications_router
from .api.routes_preferences import router as preferences_router
from .api.routes_sync import router as sync_router
from .api.routes_words import router as words_router
from .config import settings
from .core.database import Base, engine, SessionLocal
from .core.scheduler import start_sync_tasks, stop_sync_tasks
from .core.seed import seed_initial_data
from .core.sync_service import SyncService
from .integrations.github import build_transport

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("lexi")


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
)
app.state.sync = None
app.state.sync_tasks = []


@app.on_event("startup")
async def startup_event():
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Seed if empty
    if settings.seed_sample_words:
        db = SessionLocal()
        try:
            seed_initial_data(db)
        finally:
            db.close()

    transport = build_transport(settings)
    if transport is None:
        logger.info("No GitHub repository configured; running on local data only")
        return

    # Start pull/push loops and the startup sync
    app.state.sync = SyncService(transport, SessionLocal)
    app.state.sync_tasks = start_sync_tasks(app.state.sync, settings)


@app.on_event("shutdown")
async def shutdown_event():
    await stop_sync_tasks(app.state.sync_tasks)
    if app.state.sync is not None:
        await app.state.sync.flush_on_shutdown()


app.include_router(status_router)
app.include_router(words_router)
app.include_router(lookup_router)
app.include_router(assistant_router)
app.include_router(sync_router)
app.include_router(preferences_router)
app.include_router(notifications_router)
