from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import ORJSONResponse

from ..config import prizes
from ..core.deps import get_db, get_prize_calculator
from ..database import DatabaseManager
from ..errors import (AlreadyJoined, InsufficientParticipants, TournamentFull, TournamentNotFound,
                      UnknownGame)
from ..logger import get_logger
from ..models.data import TournamentRec
from ..models.response import (PrizeAllocationResponse, PrizeScenariosResponse, TournamentJoinResponse,
                               TournamentResponse)
from ..models.score import TournamentCreateRequest, TournamentJoinRequest
from ..scoring.prizes import PrizeCalculator

logger = get_logger(__name__)
router = APIRouter()


def _insufficient(e: InsufficientParticipants, revenue: float) -> ORJSONResponse:
    return ORJSONResponse(status_code=400, content={
        'status': 'insufficient_players',
        'code': e.code,
        'reason': e.reason,
        'current_revenue': round(revenue, 2),
        'needed': e.needed
    })


def _tournament_view(tournament: TournamentRec) -> TournamentResponse:
    data = tournament.to_dict()
    data.pop('entrants')
    data['participants'] = tournament.participants
    return TournamentResponse(**data)


@router.get("/prizes", response_model=PrizeAllocationResponse)
async def get_prize_allocation(
    revenue: float = Query(..., ge=0),
    calculator: PrizeCalculator = Depends(get_prize_calculator)
):
    """Prize split for a total tournament revenue figure"""
    try:
        return PrizeAllocationResponse(**calculator.allocate(revenue).to_dict())
    except Exception as e:
        logger.error(f"Error calculating prizes for revenue {revenue}: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate prizes")


@router.get("/tournament/prizes", response_model=PrizeAllocationResponse)
async def get_tournament_prizes(
    entries: int = Query(..., ge=0),
    entry_fee: float = Query(float(prizes.default_entry_fee), ge=0),
    calculator: PrizeCalculator = Depends(get_prize_calculator)
):
    """
    Current prize preview for a tournament.

    - **entries**: Number of paid entrants (at least 5 for a payout)
    - **entry_fee**: Fee per entry in dollars
    """
    try:
        allocation = calculator.preview_for_entries(entries, entry_fee)
        return PrizeAllocationResponse(entries=entries, entry_fee=entry_fee, **allocation.to_dict())
    except InsufficientParticipants as e:
        return _insufficient(e, entries * entry_fee)
    except Exception as e:
        logger.error(f"Error previewing prizes for {entries} entries: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate prizes")


@router.get("/tournament/prizes/scenarios", response_model=PrizeScenariosResponse)
async def get_prize_scenarios(
    max_players: int = Query(50, ge=5, le=1000),
    entry_fee: float = Query(float(prizes.default_entry_fee), ge=0),
    calculator: PrizeCalculator = Depends(get_prize_calculator)
):
    """Prize splits for 5, 10, 15 ... up to max_players entrants"""
    try:
        scenarios = calculator.preview_scenarios(max_players, entry_fee)
        return PrizeScenariosResponse(entry_fee=entry_fee, scenarios=scenarios)
    except Exception as e:
        logger.error(f"Error building prize scenarios: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate prizes")


@router.post("/tournaments", response_model=TournamentResponse)
async def create_tournament(data: TournamentCreateRequest, db: DatabaseManager = Depends(get_db)):
    """
    Schedule a tournament.

    - **name**: Display name
    - **game_id**: Supported game (defaults to neon_drop)
    - **entry_fee**: Fee per entry in dollars; 90% of each fee accrues to the prize pool
    - **max_participants**: Entry cap (defaults to 1000)
    """
    try:
        tournament = await db.create_tournament(
            data.name,
            game=data.game_id,
            tournament_type=data.type,
            start_time=data.start_time,
            end_time=data.end_time,
            entry_fee=data.entry_fee,
            max_participants=data.max_participants
        )
        return _tournament_view(tournament)
    except UnknownGame as e:
        raise HTTPException(status_code=400, detail=e.reason)
    except Exception as e:
        logger.error(f"Error creating tournament {data.name}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create tournament")


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
async def get_tournament(
    tournament_id: str = Path(..., min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    try:
        tournament = await db.get_tournament(tournament_id)
        if tournament is None:
            raise HTTPException(status_code=404, detail="Tournament not found")
        return _tournament_view(tournament)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting tournament {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tournament")


@router.post("/tournaments/{tournament_id}/join", response_model=TournamentJoinResponse)
async def join_tournament(
    data: TournamentJoinRequest,
    tournament_id: str = Path(..., min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """Enter a player at the tournament's entry fee"""
    try:
        tournament = await db.join_tournament(tournament_id, data.player_id)
        return TournamentJoinResponse(
            tournament_id=tournament.id,
            player_id=data.player_id,
            prize_pool=float(tournament.prize_pool),
            participants=tournament.participants
        )
    except TournamentNotFound:
        raise HTTPException(status_code=404, detail="Tournament not found")
    except TournamentFull:
        raise HTTPException(status_code=400, detail="Tournament is full")
    except AlreadyJoined:
        raise HTTPException(status_code=409, detail="Player already joined this tournament")
    except Exception as e:
        logger.error(f"Error joining tournament {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to join tournament")


@router.get("/tournaments/{tournament_id}/prizes", response_model=PrizeAllocationResponse)
async def get_tournament_allocation(
    tournament_id: str = Path(..., min_length=1, max_length=100),
    db: DatabaseManager = Depends(get_db)
):
    """Prize split from the tournament's current entries"""
    try:
        tournament = await db.get_tournament(tournament_id)
        if tournament is None:
            raise HTTPException(status_code=404, detail="Tournament not found")
        allocation = await db.get_tournament_prizes(tournament_id)
        return PrizeAllocationResponse(
            entries=tournament.participants,
            entry_fee=float(tournament.entry_fee),
            **allocation.to_dict()
        )
    except InsufficientParticipants as e:
        return _insufficient(e, tournament.participants * float(tournament.entry_fee))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating prizes for tournament {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate prizes")
