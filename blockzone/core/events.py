from contextlib import asynccontextmanager
from fastapi import FastAPI
import asyncio

from ..database import DatabaseManager
from ..logger import get_logger
from .cleanup import CleanupWorker

logger = get_logger(__name__)


async def startup_event(app: FastAPI):
    """Initialize storage and start background tasks"""
    db: DatabaseManager = app.state.db
    try:
        await db.initialize()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    app.state.cleanup_worker = CleanupWorker(db, interval_seconds=app.state.cleanup_interval)
    await app.state.cleanup_worker.start()


async def shutdown_event(app: FastAPI):
    """Stop background tasks and close connections"""
    try:
        # Set a timeout for the shutdown process
        async with asyncio.timeout(5.0):
            await app.state.cleanup_worker.stop()
            await app.state.db.close()
            logger.info("Database connections closed")
    except asyncio.TimeoutError:
        logger.warning("Shutdown timed out, forcing closure")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup_event(app)
    yield
    await shutdown_event(app)
