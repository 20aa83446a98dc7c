from typing import Dict, List, Optional, Tuple

from ..config import scoring, storage
from ..logger import get_logger
from ..models.data import (LeaderEntry, Period, PlayerRec, RankInfo, ScoreRec, SubmissionResult,
                           TournamentRec)
from ..scoring.prizes import PrizeAllocation, PrizeCalculator
from .kafka_manager import ScoreEventPublisher
from .leaderboard_manager import LeaderboardManager
from .player_manager import PlayerManager
from .score_manager import ScoreManager
from .store import KeyValueStore, MemoryStore
from .tournament_manager import TournamentManager

logger = get_logger(__name__)


def create_store(backend: str = None) -> KeyValueStore:
    backend = (backend or storage.backend).lower()
    if backend == 'memory':
        return MemoryStore()
    if backend == 'redis':
        from .redis_store import RedisStore
        return RedisStore()
    if backend == 'postgres':
        from .connection import PostgresStore
        return PostgresStore()
    raise ValueError(f'Unknown storage backend: {backend}')


class DatabaseManager:
    """Wires the store, the record managers and the event publisher together"""

    def __init__(self, store: KeyValueStore = None, publisher: ScoreEventPublisher = None,
                 clock=None, calculator: PrizeCalculator = None):
        self.store = store or create_store()
        self.publisher = publisher or ScoreEventPublisher()
        self.players = PlayerManager(self.store)
        self.leaderboards = LeaderboardManager(self.store)
        clock_kwargs = {'clock': clock} if clock else {}
        self.score_manager = ScoreManager(
            self.store, self.players, self.leaderboards, self.publisher, **clock_kwargs
        )
        self.tournaments = TournamentManager(self.store, calculator, **clock_kwargs)
        self._initialized = False

    async def initialize(self):
        """Initialize all components"""
        if self._initialized:
            return

        try:
            await self.store.initialize()
            await self.publisher.initialize()
            self._initialized = True
            logger.info(f"Database manager initialized with {self.store.name} store")
        except Exception as e:
            logger.error(f"Failed to initialize database manager: {e}")
            await self.close()
            raise

    async def close(self):
        """Close all connections"""
        await self.publisher.close()
        await self.store.close()
        self._initialized = False

    @property
    def backend(self) -> str:
        return self.store.name

    async def submit_score(self, candidate: ScoreRec) -> SubmissionResult:
        return await self.score_manager.submit(candidate)

    async def get_score(self, score_id: str) -> Optional[ScoreRec]:
        return await self.score_manager.get(score_id)

    async def get_score_by_replay(self, replay_hash: str) -> Optional[ScoreRec]:
        return await self.score_manager.get_by_replay(replay_hash)

    async def get_leaderboard(self, game: str, period: Period, limit: int,
                              max_limit: int) -> Tuple[List[Tuple[int, LeaderEntry]], int]:
        return await self.leaderboards.query(game, period, limit, max_limit)

    async def get_player(self, player_id: str) -> Optional[PlayerRec]:
        return await self.players.get(player_id)

    async def get_rank(self, player_id: str, score: int, game: str) -> RankInfo:
        return await self.leaderboards.rank_info(player_id, score, game, Period.DAILY)

    async def register_player(self, player_id: str, display_name: str = None) -> PlayerRec:
        return await self.players.register(player_id, display_name)

    async def rename_player(self, player_id: str, display_name: str) -> PlayerRec:
        return await self.players.rename(player_id, display_name)

    async def clear_leaderboards(self, game: str) -> List[str]:
        return await self.leaderboards.clear(game)

    async def get_cross_game_rankings(self, player_id: str = None, limit: int = None):
        return await self.leaderboards.cross_game(scoring.allowed_games, player_id, limit)

    async def create_tournament(self, name: str, **options) -> TournamentRec:
        return await self.tournaments.create(name, **options)

    async def get_tournament(self, tournament_id: str) -> Optional[TournamentRec]:
        return await self.tournaments.get(tournament_id)

    async def join_tournament(self, tournament_id: str, player_id: str) -> TournamentRec:
        return await self.tournaments.join(tournament_id, player_id)

    async def get_tournament_prizes(self, tournament_id: str) -> PrizeAllocation:
        return await self.tournaments.prize_allocation(tournament_id)

    async def recover_pending(self) -> Dict[str, int]:
        return await self.score_manager.recover_pending()

    async def cleanup(self, now_ms: int) -> Dict[str, int]:
        """Roll forward abandoned submissions, then prune expired leaderboard entries"""
        await self.recover_pending()
        return await self.leaderboards.cleanup(now_ms)
