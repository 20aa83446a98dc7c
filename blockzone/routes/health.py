import time
from fastapi import APIRouter, Depends, HTTPException

from ..core.deps import get_db
from ..database import DatabaseManager
from ..logger import get_logger
from ..models.response import HealthResponse

logger = get_logger(__name__)
router = APIRouter()

# Track application start time
start_time = time.time()


@router.get("/health", response_model=HealthResponse)
@router.head("/health")
async def health_check(db: DatabaseManager = Depends(get_db)):
    """Health check endpoint"""
    try:
        response = HealthResponse(
            uptime=time.time() - start_time,
            storage=db.backend
        )
        logger.debug(f"Health check response: {response.model_dump()}")
        return response
    except Exception as e:
        logger.error(f"Health check error: {e}")
        raise HTTPException(status_code=500, detail="Health check failed")
