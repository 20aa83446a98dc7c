from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import scoring
from ..core.deps import get_db
from ..database import DatabaseManager
from ..logger import get_logger
from ..models.data import Period
from ..models.response import (ClearLeaderboardResponse, CrossGameRank, CrossGameRankingsResponse,
                               LargeLeaderboardResponse, LeaderboardEntry, LeaderboardResponse)

logger = get_logger(__name__)
router = APIRouter()


def _entries(rows) -> list:
    return [
        LeaderboardEntry(
            player_id=entry.player_id,
            display_name=entry.display_name,
            score=entry.score,
            timestamp=entry.timestamp,
            rank=rank
        )
        for rank, entry in rows
    ]


async def _ranked_view(db: DatabaseManager, game: str, period: Period, limit: int, max_limit: int):
    rows, total = await db.get_leaderboard(game, period, limit, max_limit)
    entries = _entries(rows)
    return {
        'period': period.value,
        'game': game,
        'scores': entries,
        'total_players': total,
        'updated_at': datetime.now(timezone.utc).isoformat()
    }


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    period: Period = Query(Period.DAILY),
    limit: int = Query(scoring.standard_limit),
    game: str = Query(scoring.default_game, min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """
    Get the ranked leaderboard for a period.

    - **period**: daily, weekly or all
    - **limit**: Number of entries to return, clamped to 1-100
    - **game**: Game identifier
    """
    try:
        view = await _ranked_view(db, game, period, limit, scoring.standard_limit)
        return LeaderboardResponse(**view)
    except Exception as e:
        logger.error(f"Error getting leaderboard: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get leaderboard")


@router.get("/leaderboard/large", response_model=LargeLeaderboardResponse)
async def get_large_leaderboard(
    period: Period = Query(Period.DAILY),
    limit: int = Query(scoring.large_limit),
    game: str = Query(scoring.default_game, min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """Same as /leaderboard with room for up to 1000 entries"""
    try:
        view = await _ranked_view(db, game, period, limit, scoring.large_limit)
        return LargeLeaderboardResponse(page_size=min(max(limit, 1), scoring.large_limit), **view)
    except Exception as e:
        logger.error(f"Error getting large leaderboard: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get leaderboard")


@router.post("/admin/clear-leaderboard", response_model=ClearLeaderboardResponse)
async def clear_leaderboard(
    game: str = Query(scoring.default_game, min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """Reset every period list of a game; player records are kept"""
    try:
        cleared = await db.clear_leaderboards(game)
        return ClearLeaderboardResponse(game=game, cleared=cleared)
    except Exception as e:
        logger.error(f"Failed to clear leaderboard data: {e}")
        raise HTTPException(status_code=500, detail="Failed to clear leaderboard")


@router.get("/rankings/cross-game", response_model=CrossGameRankingsResponse)
async def get_cross_game_rankings(
    player_id: str = Query(None, min_length=1, max_length=100),
    limit: int = Query(scoring.standard_limit),
    db: DatabaseManager = Depends(get_db)
):
    """
    All-time standings across every supported game.

    - **player_id**: When given, only that player's rank and score per game
    - **limit**: Entries per game otherwise, clamped to 1-100
    """
    try:
        rankings = await db.get_cross_game_rankings(player_id, limit)
        updated_at = datetime.now(timezone.utc).isoformat()
        if player_id is None:
            leaders = {game: _entries(rows) for game, rows in rankings.items()}
            return CrossGameRankingsResponse(leaders=leaders, updated_at=updated_at)
        ranks = {
            game: CrossGameRank(rank=rank, score=entry.score)
            for game, (rank, entry) in rankings.items()
        }
        return CrossGameRankingsResponse(player_id=player_id, rankings=ranks, updated_at=updated_at)
    except Exception as e:
        logger.error(f"Error getting cross-game rankings: {e}")
        raise HTTPException(status_code=500, detail="Failed to get rankings")
