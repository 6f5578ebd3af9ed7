from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import time
from skyiq.config import settings
from skyiq.db.init_db import init_db
from skyiq.db.unit_of_work import UnitOfWork
from skyiq.logging_config import get_logger, setup_logging
from skyiq.routers import batch_router, call_router, diagnostics_router, events_router, prompt_router
from skyiq.services.batch_dispatcher import BatchDispatcher
from skyiq.services.broadcaster import EventBroadcaster
from skyiq.utils.helper import utcnow_iso
from skyiq.webhooks import elevenlabs_webhook

setup_logging()
logger = get_logger(__name__)

app = FastAPI(title="SkyIQ Dashboard", version="1.0.0")

# CORS middleware for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STARTED_AT = time.monotonic()


@app.on_event("startup")
async def startup_event():
    logger.info(
        "service_starting",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        database=settings.DATABASE_PATH,
        elevenlabs_configured=settings.elevenlabs_configured,
        email_configured=settings.email_configured,
    )

    init_db()

    app.state.broadcaster = EventBroadcaster()
    app.state.dispatcher = BatchDispatcher(app.state.broadcaster)

    # Pick up batches that were queued or running before shutdown
    await app.state.dispatcher.resume_interrupted()


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.broadcaster.close()


@app.get("/health")
def health():
    with UnitOfWork() as uow:
        call_count = uow.calls.count()

    return {
        "status": "healthy",
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "call_count": call_count,
        "timestamp": utcnow_iso()
    }


app.include_router(elevenlabs_webhook.router)
app.include_router(batch_router.router)
app.include_router(call_router.router)
app.include_router(prompt_router.router)
app.include_router(diagnostics_router.router)
app.include_router(events_router.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("skyiq.main:app", host=settings.BACKEND_HOST, port=settings.BACKEND_PORT)
