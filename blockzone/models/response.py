from pydantic import BaseModel
from typing import Dict, List, Literal, Optional


class LeaderboardEntry(BaseModel):
    player_id: str
    display_name: str
    score: int
    timestamp: int
    rank: int


class LeaderboardResponse(BaseModel):
    period: str
    game: str
    scores: List[LeaderboardEntry]
    total_players: int
    updated_at: str


class LargeLeaderboardResponse(LeaderboardResponse):
    page_size: int


class ScoreResponse(BaseModel):
    verified: Literal[True] = True
    score_id: str
    rank: int
    is_high_score: bool


class RejectionResponse(BaseModel):
    verified: Literal[False] = False
    reason: str
    code: str


class MetricsOut(BaseModel):
    apm: float
    pps: float
    gameTime: float


class ScoreRecordResponse(BaseModel):
    id: str
    player_id: str
    game: str
    score: int
    replay_hash: str
    metrics: MetricsOut
    timestamp: int
    verified: bool


class PlayerStatsResponse(BaseModel):
    player_id: str
    display_name: str
    high_score: int
    games_played: int
    total_score: int
    avg_score: int
    current_rank: int
    percentile: float


class PlayerResponse(BaseModel):
    success: Literal[True] = True
    player: dict


class PrizeBreakdown(BaseModel):
    position: str
    amount: float
    percentage: int


class PrizeAllocationResponse(BaseModel):
    total_revenue: float
    prize_pool: float
    platform_revenue: float
    prizes: List[float]
    distribution: List[PrizeBreakdown]
    minimum_guaranteed: bool
    entries: Optional[int] = None
    entry_fee: Optional[float] = None


class PrizeScenariosResponse(BaseModel):
    entry_fee: float
    scenarios: List[PrizeAllocationResponse]


class ClearLeaderboardResponse(BaseModel):
    success: Literal[True] = True
    game: str
    cleared: List[str]


class HealthResponse(BaseModel):
    status: Literal["healthy"] = "healthy"
    uptime: float
    storage: str


class ScoreValidationResponse(BaseModel):
    exists: bool
    score_data: Optional[ScoreRecordResponse] = None
    validated_at: str


class CrossGameRank(BaseModel):
    rank: int
    score: int


class CrossGameRankingsResponse(BaseModel):
    player_id: Optional[str] = None
    rankings: Dict[str, CrossGameRank] = {}
    leaders: Dict[str, List[LeaderboardEntry]] = {}
    updated_at: str


class TournamentResponse(BaseModel):
    id: str
    name: str
    game: str
    type: str
    start_time: int
    end_time: int
    entry_fee: float
    prize_pool: float
    max_participants: int
    participants: int
    status: str
    created_at: int


class TournamentJoinResponse(BaseModel):
    success: Literal[True] = True
    tournament_id: str
    player_id: str
    prize_pool: float
    participants: int
