from typing import Dict, List, Tuple

from ..config import cleanup, scoring
from ..logger import get_logger
from ..models.data import LeaderEntry, Period, RankInfo, entries_from_dicts
from ..scoring.ranking import RankedList
from .keys import GAMES_INDEX, leaderboard_key
from .store import KeyValueStore

logger = get_logger(__name__)


def _serialize(game: str, period: Period, ranked: RankedList) -> dict:
    return {
        'game': game,
        'period': period.value,
        'scores': [entry.to_dict() for entry in ranked]
    }


class LeaderboardManager:
    def __init__(self, store: KeyValueStore, cap: int = None):
        self.store = store
        self.cap = cap or scoring.leaderboard_cap

    async def load(self, game: str, period: Period) -> RankedList:
        data = await self.store.get_value(leaderboard_key(game, period.value))
        if not data:
            return RankedList()
        return RankedList(entries_from_dicts(data.get('scores', [])))

    async def record(self, game: str, period: Period, entry: LeaderEntry) -> bool:
        """
        Replace the player's entry in one list.

        Returns False when the list already holds this score or a newer one
        from the same player.
        """
        def mutate(data):
            ranked = RankedList(entries_from_dicts((data or {}).get('scores', [])))
            existing = ranked.find(entry.player_id)
            if existing is not None:
                if entry.score_id and existing.score_id == entry.score_id:
                    return None, False
                if existing.timestamp > entry.timestamp:
                    return None, False
            ranked.upsert(entry, self.cap)
            return _serialize(game, period, ranked), True

        return await self.store.update(leaderboard_key(game, period.value), mutate)

    async def record_all(self, game: str, entry: LeaderEntry):
        await self.register_game(game)
        for period in Period:
            await self.record(game, period, entry)

    async def register_game(self, game: str):
        def mutate(games):
            if game in games:
                return None, None
            return games + [game], None

        await self.store.update(GAMES_INDEX, mutate, default=list)

    async def list_games(self) -> List[str]:
        return await self.store.get_value(GAMES_INDEX, [])

    async def rank_of(self, score: int, game: str, period: Period = Period.DAILY) -> int:
        ranked = await self.load(game, period)
        return ranked.rank_of(score)

    async def rank_info(self, player_id: str, score: int, game: str,
                        period: Period = Period.DAILY) -> RankInfo:
        ranked = await self.load(game, period)
        return RankInfo(player_id, score, ranked.rank_of(score), len(ranked))

    async def query(self, game: str, period: Period, limit: int,
                    max_limit: int = None) -> Tuple[List[Tuple[int, LeaderEntry]], int]:
        """Top entries with positional ranks, plus the list size"""
        max_limit = max_limit or scoring.standard_limit
        limit = min(max(limit, 1), max_limit)
        ranked = await self.load(game, period)
        return ranked.top(limit), len(ranked)

    async def cross_game(self, games: List[str], player_id: str = None,
                         limit: int = None) -> Dict[str, object]:
        """
        All-time standings across games.

        With a player id, maps each game the player is ranked in to their
        rank and score; otherwise maps every game to its top entries.
        """
        limit = min(max(limit or scoring.standard_limit, 1), scoring.standard_limit)
        rankings = {}
        for game in games:
            ranked = await self.load(game, Period.ALL)
            if player_id is None:
                rankings[game] = ranked.top(limit)
                continue
            entry = ranked.find(player_id)
            if entry is not None:
                rankings[game] = (ranked.position_of(entry), entry)
        return rankings

    async def prune(self, game: str, period: Period, cutoff_ms: int) -> int:
        def mutate(data):
            if not data:
                return None, 0
            ranked = RankedList(entries_from_dicts(data.get('scores', [])))
            removed = ranked.prune_older_than(cutoff_ms)
            if not removed:
                return None, 0
            return _serialize(game, period, ranked), removed

        return await self.store.update(leaderboard_key(game, period.value), mutate)

    async def cleanup(self, now_ms: int, daily_window_ms: int = None,
                      weekly_window_ms: int = None) -> Dict[str, int]:
        """Drop entries that fell out of their period's window, for every known game"""
        daily_window_ms = daily_window_ms or cleanup.daily_window_ms
        weekly_window_ms = weekly_window_ms or cleanup.weekly_window_ms
        removed = {}
        for game in await self.list_games():
            for period in Period:
                window = period.retention_ms(daily_window_ms, weekly_window_ms)
                if window is None:
                    continue
                count = await self.prune(game, period, now_ms - window)
                if count:
                    removed[leaderboard_key(game, period.value)] = count
        if removed:
            logger.info(f"Leaderboard cleanup removed {sum(removed.values())} entries: {removed}")
        return removed

    async def clear(self, game: str) -> List[str]:
        cleared = []
        for period in Period:
            key = leaderboard_key(game, period.value)
            await self.store.put(key, _serialize(game, period, RankedList()))
            cleared.append(key)
        logger.warning(f"Cleared leaderboards for {game}")
        return cleared

