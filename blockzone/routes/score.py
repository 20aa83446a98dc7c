from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.responses import ORJSONResponse

from ..config import scoring
from ..core.deps import get_db
from ..database import DatabaseManager
from ..errors import ScoreRejected, StorageUnavailable
from ..logger import get_logger
from ..models.data import ScoreRec
from ..models.response import (RejectionResponse, ScoreRecordResponse, ScoreResponse,
                               ScoreValidationResponse)
from ..models.score import ScoreRequest

logger = get_logger(__name__)
router = APIRouter()


def _public_record(record: ScoreRec) -> ScoreRecordResponse:
    data = record.to_dict()
    data.pop('claimed_at', None)
    data.pop('received_at', None)
    return ScoreRecordResponse(**data)


@router.post("/scores", response_model=ScoreResponse,
             responses={400: {"model": RejectionResponse}})
async def submit_score(data: ScoreRequest, db: DatabaseManager = Depends(get_db)):
    """
    Submit a finished game's score.

    - **player_id**: Unique identifier for the player
    - **score**: Non-negative score value
    - **metrics**: apm, pps and gameTime (ms) of the session
    - **replay_hash**: Unique per play session; computed when omitted
    - **game**: Game identifier (defaults to neon_drop)
    """
    try:
        payload = data.model_dump()
        payload['game'] = data.game or scoring.default_game
        payload['metrics'] = data.metrics.model_dump(by_alias=True)
        result = await db.submit_score(ScoreRec(payload))
        return ScoreResponse(
            score_id=result.score_id,
            rank=result.rank,
            is_high_score=result.is_high_score
        )
    except ScoreRejected as e:
        logger.warning(f"Rejected score from {data.player_id}: {e.reason}")
        return ORJSONResponse(
            status_code=400,
            content=RejectionResponse(reason=e.reason, code=e.code).model_dump()
        )
    except StorageUnavailable as e:
        logger.error(f"Storage error submitting score: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    except Exception as e:
        logger.error(f"Error submitting score: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/scores/{score_id}", response_model=ScoreRecordResponse)
async def get_score(
    score_id: str = Path(..., min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """Look up a verified score record by id"""
    try:
        record = await db.get_score(score_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Score not found")
        return _public_record(record)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting score {score_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to get score")


@router.get("/scores/validate/{replay_hash}", response_model=ScoreValidationResponse)
async def validate_replay(
    replay_hash: str = Path(..., min_length=1, max_length=128),
    db: DatabaseManager = Depends(get_db)
):
    """Whether a replay hash has already been submitted, with the stored record"""
    try:
        record = await db.get_score_by_replay(replay_hash)
        return ScoreValidationResponse(
            exists=record is not None,
            score_data=_public_record(record) if record else None,
            validated_at=datetime.now(timezone.utc).isoformat()
        )
    except Exception as e:
        logger.error(f"Error validating replay {replay_hash}: {e}")
        raise HTTPException(status_code=500, detail="Failed to validate score")
