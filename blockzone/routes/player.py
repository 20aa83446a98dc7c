from fastapi import APIRouter, Depends, HTTPException, Path, Query

from ..config import scoring
from ..core.deps import get_db
from ..database import DatabaseManager
from ..errors import PlayerExists, PlayerNotFound
from ..logger import get_logger
from ..models.data import PlayerRec
from ..models.response import PlayerResponse, PlayerStatsResponse
from ..models.score import ProfileUpdateRequest, RegisterRequest

logger = get_logger(__name__)
router = APIRouter()


def _public(player: PlayerRec) -> dict:
    data = player.to_dict()
    data.pop('unsettled', None)
    return data


@router.get("/players/{player_id}/stats", response_model=PlayerStatsResponse)
async def get_player_stats(
    player_id: str = Path(..., min_length=1, max_length=100),
    game: str = Query(scoring.default_game, min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """
    Aggregate statistics for a player.

    Unknown players get zeroed stats. The rank is where their high score
    would place on today's leaderboard.
    """
    try:
        player = await db.get_player(player_id) or PlayerRec(player_id)
        rank_info = await db.get_rank(player_id, player.high_score, game)
        return PlayerStatsResponse(
            player_id=player.player_id,
            display_name=player.display_name,
            high_score=player.high_score,
            games_played=player.games_played,
            total_score=player.total_score,
            avg_score=player.avg_score,
            current_rank=rank_info.rank,
            percentile=rank_info.percentile
        )
    except Exception as e:
        logger.error(f"Error getting stats for {player_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to get player stats")


@router.post("/players/register", response_model=PlayerResponse)
async def register_player(data: RegisterRequest, db: DatabaseManager = Depends(get_db)):
    """Create a player record ahead of their first score"""
    try:
        player = await db.register_player(data.player_id, data.display_name)
        return PlayerResponse(player=_public(player))
    except PlayerExists:
        raise HTTPException(status_code=409, detail="Player already exists")
    except Exception as e:
        logger.error(f"Error registering {data.player_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to register player")


@router.put("/players/{player_id}/profile", response_model=PlayerResponse)
async def update_profile(
    data: ProfileUpdateRequest,
    player_id: str = Path(..., min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """Change a player's display name; later leaderboard entries carry the new name"""
    try:
        player = await db.rename_player(player_id, data.display_name)
        return PlayerResponse(player=_public(player))
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="Player not found")
    except Exception as e:
        logger.error(f"Error updating profile for {player_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update profile")
