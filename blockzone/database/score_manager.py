import asyncio
from typing import Callable, Dict, List, Optional

from ..config import scoring, storage
from ..errors import (BlockzoneError, DuplicateSubmission, InternalError, StorageUnavailable,
                      UnknownGame)
from ..logger import get_logger
from ..models.data import LeaderEntry, Period, ScoreRec, SubmissionResult, now_ms
from ..scoring.replay import compute_replay_hash, new_score_id
from ..scoring.validator import validate_score
from .kafka_manager import ScoreEventPublisher
from .keys import PENDING_INDEX, replay_key, score_key
from .leaderboard_manager import LeaderboardManager
from .player_manager import PlayerManager
from .store import KeyValueStore

logger = get_logger(__name__)


class ScoreManager:
    def __init__(self, store: KeyValueStore, players: PlayerManager,
                 leaderboards: LeaderboardManager, publisher: ScoreEventPublisher = None,
                 clock: Callable[[], int] = now_ms, lease_seconds: int = None,
                 games: List[str] = None, apply_attempts: int = None):
        self.store = store
        self.players = players
        self.leaderboards = leaderboards
        self.publisher = publisher
        self.clock = clock
        self.lease_ms = (lease_seconds or scoring.submission_lease_seconds) * 1000
        self.games = set(games or scoring.allowed_games)
        self.apply_attempts = apply_attempts or storage.apply_attempts

    async def get(self, score_id: str) -> Optional[ScoreRec]:
        data = await self.store.get_value(score_key(score_id))
        if data is None:
            return None
        return ScoreRec(data)

    async def get_by_replay(self, replay_hash: str) -> Optional[ScoreRec]:
        data = await self.store.get_value(replay_key(replay_hash))
        if data is None:
            return None
        return ScoreRec(data)

    async def submit(self, candidate: ScoreRec) -> SubmissionResult:
        """
        Validate, deduplicate and persist one score submission.

        The replay key is claimed before any other write. Player and
        leaderboard updates are tagged with the score id, so a claim left
        behind by a storage failure is rolled forward either by a retry
        here or later by `recover_pending`.
        """
        if candidate.game not in self.games:
            raise UnknownGame(f'Unknown game: {candidate.game}')
        validate_score(candidate.score, candidate.metrics)

        now = self.clock()
        if not candidate.replay_hash:
            candidate.replay_hash = compute_replay_hash(
                candidate.player_id, candidate.game, candidate.score,
                candidate.metrics, candidate.timestamp
            )

        record = await self._claim(candidate, now)

        try:
            is_high_score = await self._apply_with_retry(record)
            await self._settle(record)
            rank = await self.leaderboards.rank_of(record.score, record.game, Period.DAILY)
        except StorageUnavailable as e:
            logger.error(f"Storage failure while applying score {record.id}, "
                         f"left pending for recovery: {e}")
            raise
        except BlockzoneError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error applying score {record.id}: {e}")
            raise InternalError() from e

        logger.info(f"Accepted score {record.id}: player={record.player_id} game={record.game} "
                    f"score={record.score} rank={rank}")

        if self.publisher:
            await self.publisher.publish(record.to_dict())

        return SubmissionResult(record.id, rank, is_high_score, record)

    async def recover_pending(self) -> Dict[str, int]:
        """
        Roll forward claims whose submitter gave up.

        Claims still inside their lease are left alone. Returns counts of
        recovered, settled (already committed) and dropped index entries.
        """
        now = self.clock()
        counts = {'recovered': 0, 'settled': 0, 'dropped': 0}
        pending = await self.store.get_value(PENDING_INDEX, {})

        for replay_hash, claimed_at in pending.items():
            if now - claimed_at < self.lease_ms:
                continue
            key = replay_key(replay_hash)
            existing = await self.store.get(key)
            if existing is None:
                await self._unindex(replay_hash)
                counts['dropped'] += 1
                continue

            record = ScoreRec(existing.value)
            if record.verified:
                await self.players.settle(record.player_id, record.id)
                await self._unindex(replay_hash)
                counts['settled'] += 1
                continue

            if now - (record.claimed_at or 0) < self.lease_ms:
                continue
            record.claimed_at = now
            if not await self.store.conditional_put(key, record.to_dict(), existing.version):
                continue

            try:
                await self._apply(record)
            except StorageUnavailable as e:
                logger.error(f"Recovery of score {record.id} failed, will retry: {e}")
                continue
            await self._settle(record)
            logger.info(f"Recovered abandoned submission {record.id}")
            counts['recovered'] += 1
            if self.publisher:
                await self.publisher.publish(record.to_dict())

        if any(counts.values()):
            logger.info(f"Pending submission recovery: {counts}")
        return counts

    async def _apply_with_retry(self, record: ScoreRec) -> bool:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._apply(record)
            except StorageUnavailable as e:
                if attempt >= self.apply_attempts:
                    raise
                logger.warning(f"Retrying score {record.id} after storage error "
                               f"(attempt {attempt}/{self.apply_attempts}): {e}")
                await asyncio.sleep(self.store.retry_delay * attempt)

    async def _apply(self, record: ScoreRec) -> bool:
        """Player, leaderboard and commit writes; each is safe to repeat until settled"""
        player, is_high_score = await self.players.record_score(
            record.player_id, record.id, record.score
        )
        entry = LeaderEntry(record.player_id, player.display_name, record.score,
                            record.received_at or record.claimed_at, record.id)
        await self.leaderboards.record_all(record.game, entry)

        record.verified = True
        record.claimed_at = None
        await self.store.put(score_key(record.id), record.to_dict())
        await self.store.put(replay_key(record.replay_hash), record.to_dict())

        return is_high_score

    async def _settle(self, record: ScoreRec):
        """Drop the markers of a committed score; recovery retries on failure"""
        try:
            await self.players.settle(record.player_id, record.id)
            await self._unindex(record.replay_hash)
        except StorageUnavailable as e:
            logger.warning(f"Could not settle committed score {record.id}: {e}")

    async def _claim(self, candidate: ScoreRec, now: int) -> ScoreRec:
        """Reserve the replay hash, or take over an abandoned claim"""
        key = replay_key(candidate.replay_hash)
        existing = await self.store.get(key)

        if existing is None:
            candidate.id = new_score_id(now)
            candidate.verified = False
            candidate.claimed_at = now
            candidate.received_at = now
            await self._index(candidate.replay_hash, now)
            if not await self.store.conditional_put(key, candidate.to_dict(), None):
                logger.warning(f"Replay hash {candidate.replay_hash} claimed concurrently")
                raise DuplicateSubmission()
            return candidate

        previous = ScoreRec(existing.value)
        if previous.verified or now - (previous.claimed_at or 0) < self.lease_ms:
            logger.warning(f"Duplicate submission for replay hash {candidate.replay_hash}")
            raise DuplicateSubmission()

        previous.claimed_at = now
        if not await self.store.conditional_put(key, previous.to_dict(), existing.version):
            raise DuplicateSubmission()
        logger.info(f"Resuming abandoned submission {previous.id}")
        return previous

    async def _index(self, replay_hash: str, claimed_at: int):
        def mutate(pending):
            if replay_hash in pending:
                return None, None
            pending[replay_hash] = claimed_at
            return pending, None

        await self.store.update(PENDING_INDEX, mutate, default=dict)

    async def _unindex(self, replay_hash: str):
        def mutate(pending):
            if replay_hash not in pending:
                return None, None
            del pending[replay_hash]
            return pending, None

        await self.store.update(PENDING_INDEX, mutate, default=dict)
