import asyncio

import pytest

from blockzone.errors import (DuplicateSubmission, ImplausibleMetrics, ImpossibleScore,
                              StorageUnavailable, UnknownGame)
from blockzone.database.keys import PENDING_INDEX
from blockzone.database.store import MemoryStore
from blockzone.models.data import Period, ScoreRec

from conftest import FakeClock, make_db, score_payload


def candidate(**kwargs) -> ScoreRec:
    payload = score_payload(**kwargs)
    payload.setdefault('game', 'neon_drop')
    return ScoreRec(payload)


class FlakyStore(MemoryStore):
    """Fails leaderboard writes while `fail` is set, or for the next `failures` writes"""

    def __init__(self):
        super().__init__(retry_delay=0)
        self.fail = False
        self.failures = 0

    async def conditional_put(self, key, value, expected_version):
        if key.startswith('leaderboard:'):
            if self.fail:
                raise StorageUnavailable()
            if self.failures > 0:
                self.failures -= 1
                raise StorageUnavailable()
        return await super().conditional_put(key, value, expected_version)


class YieldingStore(MemoryStore):
    """Hands control back to the event loop on every read so writers interleave"""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)


class RecordingPublisher:
    def __init__(self):
        self.events = []

    async def initialize(self):
        pass

    async def publish(self, value):
        self.events.append(value)
        return True

    async def close(self):
        pass


def test_first_score_for_new_player():
    async def scenario():
        db = make_db()
        result = await db.submit_score(candidate(player_id='p1', score=1000, replay_hash='h1'))
        assert result.rank == 1
        assert result.is_high_score is True
        assert result.score_id

        player = await db.get_player('p1')
        assert player.games_played == 1
        assert player.high_score == 1000
        assert player.display_name == 'Player p1'

        stored = await db.get_score(result.score_id)
        assert stored.verified is True
        assert stored.replay_hash == 'h1'

    asyncio.run(scenario())


def test_lower_follow_up_score():
    async def scenario():
        db = make_db()
        await db.submit_score(candidate(score=1000, replay_hash='h1'))
        result = await db.submit_score(candidate(score=500, replay_hash='h2'))
        assert result.is_high_score is False

        player = await db.get_player('p1')
        assert player.games_played == 2
        assert player.high_score == 1000
        assert player.total_score == 1500
        assert player.avg_score == 750

    asyncio.run(scenario())


def test_equal_score_is_not_a_new_high_score():
    async def scenario():
        db = make_db()
        await db.submit_score(candidate(score=800, replay_hash='h1'))
        result = await db.submit_score(candidate(score=800, replay_hash='h2'))
        assert result.is_high_score is False

    asyncio.run(scenario())


def test_aggregates_after_many_submissions():
    async def scenario():
        db = make_db()
        scores = [300, 1200, 50, 900, 1200, 7]
        for idx, score in enumerate(scores):
            await db.submit_score(candidate(score=score, replay_hash=f'h{idx}'))
        player = await db.get_player('p1')
        assert player.games_played == len(scores)
        assert player.high_score == max(scores)
        assert player.total_score == sum(scores)

    asyncio.run(scenario())


def test_replayed_hash_is_rejected():
    async def scenario():
        db = make_db()
        await db.submit_score(candidate(score=1000, replay_hash='same'))
        with pytest.raises(DuplicateSubmission):
            await db.submit_score(candidate(score=1000, replay_hash='same'))
        player = await db.get_player('p1')
        assert player.games_played == 1

    asyncio.run(scenario())


def test_computed_replay_hash_blocks_identical_payload():
    async def scenario():
        db = make_db()
        first = candidate(score=700, timestamp=1234)
        await db.submit_score(first)
        assert len(first.replay_hash) == 64
        with pytest.raises(DuplicateSubmission):
            await db.submit_score(candidate(score=700, timestamp=1234))

    asyncio.run(scenario())


def test_rejected_scores_write_nothing():
    async def scenario():
        store = MemoryStore()
        db = make_db(store=store)
        with pytest.raises(ImplausibleMetrics):
            await db.submit_score(candidate(apm=350, replay_hash='h1'))
        with pytest.raises(ImpossibleScore):
            await db.submit_score(candidate(score=10_000, game_time=1000, replay_hash='h2'))
        assert await db.get_player('p1') is None
        assert store.keys() == []

    asyncio.run(scenario())


def test_leaderboards_updated_for_every_period():
    async def scenario():
        db = make_db()
        await db.submit_score(candidate(player_id='a', score=100, replay_hash='h1'))
        await db.submit_score(candidate(player_id='b', score=300, replay_hash='h2'))
        result = await db.submit_score(candidate(player_id='c', score=200, replay_hash='h3'))
        assert result.rank == 2

        for period in Period:
            rows, total = await db.get_leaderboard('neon_drop', period, 10, 100)
            assert total == 3
            assert [(rank, e.player_id) for rank, e in rows] == [(1, 'b'), (2, 'c'), (3, 'a')]

    asyncio.run(scenario())


def test_one_entry_per_player():
    async def scenario():
        db = make_db()
        await db.submit_score(candidate(score=100, replay_hash='h1'))
        await db.submit_score(candidate(score=900, replay_hash='h2'))
        await db.submit_score(candidate(score=400, replay_hash='h3'))
        rows, total = await db.get_leaderboard('neon_drop', Period.ALL, 10, 100)
        assert total == 1
        assert rows[0][1].score == 400

    asyncio.run(scenario())


def test_games_have_separate_leaderboards():
    async def scenario():
        db = make_db()
        await db.submit_score(candidate(score=100, replay_hash='h1', game='neon_drop'))
        await db.submit_score(candidate(score=900, replay_hash='h2', game='block_puzzle'))
        rows, _ = await db.get_leaderboard('neon_drop', Period.DAILY, 10, 100)
        assert [e.score for _, e in rows] == [100]
        assert await db.leaderboards.list_games() == ['neon_drop', 'block_puzzle']

    asyncio.run(scenario())


def test_concurrent_submissions_for_same_player():
    async def scenario():
        store = YieldingStore(max_retries=20, retry_delay=0)
        db = make_db(store=store)
        results = await asyncio.gather(*[
            db.submit_score(candidate(score=100 * i, replay_hash=f'h{i}')) for i in range(1, 6)
        ])
        assert len({r.score_id for r in results}) == 5

        player = await db.get_player('p1')
        assert player.games_played == 5
        assert player.high_score == 500
        assert player.total_score == 1500
        assert player.unsettled == []

        score_ids = {r.score_id for r in results}
        for period in Period:
            rows, total = await db.get_leaderboard('neon_drop', period, 10, 100)
            assert total == 1
            assert rows[0][1].score_id in score_ids
        assert await store.get_value(PENDING_INDEX) == {}

    asyncio.run(scenario())


def test_failed_submission_is_resumable_after_lease():
    async def scenario():
        clock = FakeClock()
        store = FlakyStore()
        db = make_db(store=store, clock=clock)

        store.fail = True
        with pytest.raises(StorageUnavailable):
            await db.submit_score(candidate(score=1000, replay_hash='h1'))

        # claim is still fresh
        store.fail = False
        with pytest.raises(DuplicateSubmission):
            await db.submit_score(candidate(score=1000, replay_hash='h1'))

        clock.advance(31_000)
        result = await db.submit_score(candidate(score=1000, replay_hash='h1'))
        assert result.is_high_score is True
        assert result.rank == 1

        player = await db.get_player('p1')
        assert player.games_played == 1
        assert player.total_score == 1000

        with pytest.raises(DuplicateSubmission):
            await db.submit_score(candidate(score=1000, replay_hash='h1'))

    asyncio.run(scenario())


def test_verified_scores_are_published():
    async def scenario():
        publisher = RecordingPublisher()
        db = make_db(publisher=publisher)
        result = await db.submit_score(candidate(score=250, replay_hash='h1'))
        with pytest.raises(ImplausibleMetrics):
            await db.submit_score(candidate(pps=9, replay_hash='h2'))
        assert [event['id'] for event in publisher.events] == [result.score_id]
        assert publisher.events[0]['verified'] is True

    asyncio.run(scenario())


def test_transient_storage_errors_are_retried_in_place():
    async def scenario():
        store = FlakyStore()
        db = make_db(store=store)
        store.failures = 2
        result = await db.submit_score(candidate(score=1000))
        assert result.rank == 1

        player = await db.get_player('p1')
        assert player.games_played == 1
        rows, _ = await db.get_leaderboard('neon_drop', Period.DAILY, 10, 100)
        assert [e.score_id for _, e in rows] == [result.score_id]
        assert await store.get_value(PENDING_INDEX) == {}

    asyncio.run(scenario())


def test_abandoned_submission_without_hash_is_recovered():
    async def scenario():
        clock = FakeClock()
        store = FlakyStore()
        db = make_db(store=store, clock=clock)

        store.fail = True
        with pytest.raises(StorageUnavailable):
            await db.submit_score(candidate(score=1000))
        store.fail = False

        # still inside the lease
        await db.cleanup(clock())
        rows, _ = await db.get_leaderboard('neon_drop', Period.DAILY, 10, 100)
        assert rows == []

        clock.advance(10 * 60 * 1000)
        await db.cleanup(clock())

        player = await db.get_player('p1')
        assert player.games_played == 1
        assert player.high_score == 1000
        assert player.unsettled == []

        for period in Period:
            rows, total = await db.get_leaderboard('neon_drop', period, 10, 100)
            assert total == 1
            assert rows[0][1].score == 1000
        stored = await db.get_score(rows[0][1].score_id)
        assert stored.verified is True
        assert await store.get_value(PENDING_INDEX) == {}

        assert await db.recover_pending() == {'recovered': 0, 'settled': 0, 'dropped': 0}

    asyncio.run(scenario())


def test_recovered_score_does_not_replace_newer_entry():
    async def scenario():
        clock = FakeClock()
        store = FlakyStore()
        db = make_db(store=store, clock=clock)

        store.fail = True
        with pytest.raises(StorageUnavailable):
            await db.submit_score(candidate(score=1000, replay_hash='old'))
        store.fail = False

        clock.advance(10_000)
        newer = await db.submit_score(candidate(score=200, replay_hash='new'))

        clock.advance(30_000)
        assert (await db.recover_pending())['recovered'] == 1

        for period in Period:
            rows, _ = await db.get_leaderboard('neon_drop', period, 10, 100)
            assert [e.score_id for _, e in rows] == [newer.score_id]

        player = await db.get_player('p1')
        assert player.games_played == 2
        assert player.total_score == 1200
        assert player.high_score == 1000

    asyncio.run(scenario())


def test_recovery_after_many_later_scores_counts_once():
    async def scenario():
        clock = FakeClock()
        store = FlakyStore()
        db = make_db(store=store, clock=clock)

        store.fail = True
        with pytest.raises(StorageUnavailable):
            await db.submit_score(candidate(score=50, replay_hash='stuck'))
        store.fail = False

        for idx in range(25):
            clock.advance(1000)
            await db.submit_score(candidate(score=10, replay_hash=f'later{idx}'))

        clock.advance(60_000)
        await db.recover_pending()

        player = await db.get_player('p1')
        assert player.games_played == 26
        assert player.total_score == 50 + 25 * 10
        assert player.unsettled == []

    asyncio.run(scenario())


def test_unknown_game_is_rejected_before_any_write():
    async def scenario():
        store = MemoryStore()
        db = make_db(store=store)
        with pytest.raises(UnknownGame):
            await db.submit_score(candidate(replay_hash='h1', game='made_up_game'))
        assert store.keys() == []

    asyncio.run(scenario())
