import secrets
from typing import Callable, List, Optional

from ..config import prizes, scoring, tournaments
from ..errors import AlreadyJoined, InternalError, TournamentFull, TournamentNotFound, UnknownGame
from ..logger import get_logger
from ..models.data import TournamentRec, now_ms
from ..scoring.prizes import PrizeAllocation, PrizeCalculator, to_money
from .keys import tournament_key
from .store import KeyValueStore

logger = get_logger(__name__)


def new_tournament_id(ms: int) -> str:
    return f'tournament_{ms}_{secrets.token_hex(3)}'


class TournamentManager:
    """Tournament records: creation, entry bookkeeping and prize previews"""

    def __init__(self, store: KeyValueStore, calculator: PrizeCalculator = None,
                 clock: Callable[[], int] = now_ms, games: List[str] = None):
        self.store = store
        self.calculator = calculator or PrizeCalculator()
        self.clock = clock
        self.games = set(games or scoring.allowed_games)

    async def create(self, name: str, game: str = None, tournament_type: str = 'daily',
                     start_time: int = None, end_time: int = None, entry_fee=None,
                     max_participants: int = None) -> TournamentRec:
        game = game or scoring.default_game
        if game not in self.games:
            raise UnknownGame(f'Unknown game: {game}')

        now = self.clock()
        start_time = now if start_time is None else start_time
        fee = prizes.default_entry_fee if entry_fee is None else entry_fee
        tournament = TournamentRec({
            'id': new_tournament_id(now),
            'name': name,
            'game': game,
            'type': tournament_type,
            'start_time': start_time,
            'end_time': end_time or start_time + tournaments.default_duration_ms,
            'entry_fee': str(to_money(fee)),
            'prize_pool': '0.00',
            'max_participants': max_participants or tournaments.default_max_participants,
            'created_at': now
        })

        if not await self.store.conditional_put(tournament_key(tournament.id), tournament.to_dict(), None):
            raise InternalError(f'Tournament id collision: {tournament.id}')
        logger.info(f"Created tournament {tournament.id} ({name}) for {game}")
        return tournament

    async def get(self, tournament_id: str) -> Optional[TournamentRec]:
        data = await self.store.get_value(tournament_key(tournament_id))
        if data is None:
            return None
        return TournamentRec(data)

    async def join(self, tournament_id: str, player_id: str) -> TournamentRec:
        """Add a paid entry; the prize pool grows by the entry fee less the platform cut"""
        joined_at = self.clock()

        def mutate(data):
            if data is None:
                raise TournamentNotFound()
            tournament = TournamentRec(data)
            if player_id in tournament.entrants:
                raise AlreadyJoined()
            if tournament.is_full:
                raise TournamentFull()
            tournament.entrants[player_id] = joined_at
            contribution = to_money(to_money(tournament.entry_fee) * self.calculator.prize_pool_rate)
            tournament.prize_pool = str(to_money(tournament.prize_pool) + contribution)
            return tournament.to_dict(), tournament

        tournament = await self.store.update(tournament_key(tournament_id), mutate)
        logger.info(f"Player {player_id} joined tournament {tournament_id} "
                    f"({tournament.participants}/{tournament.max_participants})")
        return tournament

    async def prize_allocation(self, tournament_id: str) -> PrizeAllocation:
        """Current allocation from the tournament's real entry count"""
        tournament = await self.get(tournament_id)
        if tournament is None:
            raise TournamentNotFound()
        return self.calculator.preview_for_entries(tournament.participants, tournament.entry_fee)
