from typing import Optional, Tuple

from ..errors import PlayerExists, PlayerNotFound
from ..logger import get_logger
from ..models.data import PlayerRec
from .keys import player_key
from .store import KeyValueStore

logger = get_logger(__name__)


class PlayerManager:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get(self, player_id: str) -> Optional[PlayerRec]:
        data = await self.store.get_value(player_key(player_id))
        if data is None:
            return None
        return PlayerRec.from_dict(data)

    async def record_score(self, player_id: str, score_id: str, score: int) -> Tuple[PlayerRec, bool]:
        """Fold a score into the player's totals; returns (record, beat_prior_high_score)"""
        def mutate(data):
            rec = PlayerRec.from_dict(data) if data else PlayerRec(player_id)
            already = rec.applied(score_id)
            if already is not None:
                return None, (rec, already)
            was_high = rec.apply(score_id, score)
            return rec.to_dict(), (rec, was_high)

        return await self.store.update(player_key(player_id), mutate)

    async def settle(self, player_id: str, score_id: str) -> bool:
        """Drop the idempotency marker of a committed score"""
        def mutate(data):
            if data is None:
                return None, False
            rec = PlayerRec.from_dict(data)
            if not rec.settle(score_id):
                return None, False
            return rec.to_dict(), True

        return await self.store.update(player_key(player_id), mutate)

    async def register(self, player_id: str, display_name: str = None) -> PlayerRec:
        rec = PlayerRec(player_id, display_name or 'Anonymous')
        if not await self.store.conditional_put(player_key(player_id), rec.to_dict(), None):
            raise PlayerExists()
        logger.info(f"Registered player {player_id}")
        return rec

    async def rename(self, player_id: str, display_name: str) -> PlayerRec:
        def mutate(data):
            if data is None:
                raise PlayerNotFound()
            rec = PlayerRec.from_dict(data)
            rec.display_name = display_name
            return rec.to_dict(), rec

        return await self.store.update(player_key(player_id), mutate)
