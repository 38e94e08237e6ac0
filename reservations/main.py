import asyncio
import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager
from reservations.db.init_db import create_database, init_db
from reservations.db.base import Base
from reservations.db.session import engine, SessionLocal
from reservations.core.config import settings
from reservations.api.v1.router import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def _expiry_sweep_loop() -> None:
    """Background task: drop expired seat holds and verification codes."""
    from reservations.utils.expiry import purge_expired_reservations

    while True:
        try:
            db = SessionLocal()
            try:
                count = purge_expired_reservations(db)
                if count:
                    logger.info("Removed %d expired pending reservation(s).", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during pending-reservation sweep.")
        await asyncio.sleep(settings.PENDING_SWEEP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists, create tables, seed policy and first admin
    create_database()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        init_db(db)
    finally:
        db.close()

    sweep_task = asyncio.create_task(_expiry_sweep_loop())
    yield

    # Shutdown: cancel background task
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"status": "ok", "service": settings.PROJECT_NAME}
