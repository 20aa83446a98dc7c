import asyncio

from blockzone.database.keys import leaderboard_key
from blockzone.database.leaderboard_manager import LeaderboardManager
from blockzone.database.store import MemoryStore
from blockzone.models.data import LeaderEntry, Period

from conftest import START_MS


def entry(player_id, score, timestamp=START_MS, score_id=None):
    return LeaderEntry(player_id, player_id, score, timestamp, score_id or f's-{player_id}')


async def seed_full_list(store):
    rows = [entry(f'p{i}', i).to_dict() for i in range(1000, 0, -1)]
    await store.put(leaderboard_key('neon_drop', 'all'),
                    {'game': 'neon_drop', 'period': 'all', 'scores': rows})


def test_list_stays_capped_at_one_thousand():
    async def scenario():
        store = MemoryStore(retry_delay=0)
        manager = LeaderboardManager(store)
        await seed_full_list(store)

        await manager.record('neon_drop', Period.ALL, entry('champ', 5000))
        ranked = await manager.load('neon_drop', Period.ALL)
        assert len(ranked) == 1000
        assert ranked.top(1)[0][1].player_id == 'champ'
        assert ranked.find('p1') is None

        await manager.record('neon_drop', Period.ALL, entry('rookie', 0))
        ranked = await manager.load('neon_drop', Period.ALL)
        assert len(ranked) == 1000
        assert ranked.find('rookie') is None

    asyncio.run(scenario())


def test_older_entry_does_not_replace_newer_one():
    async def scenario():
        manager = LeaderboardManager(MemoryStore(retry_delay=0))
        await manager.record('neon_drop', Period.DAILY, entry('p1', 100, START_MS + 5000, 'new'))
        assert await manager.record('neon_drop', Period.DAILY,
                                    entry('p1', 900, START_MS, 'old')) is False
        assert await manager.record('neon_drop', Period.DAILY,
                                    entry('p1', 100, START_MS + 5000, 'new')) is False

        rows, total = await manager.query('neon_drop', Period.DAILY, 10)
        assert total == 1
        assert rows[0][1].score_id == 'new'

    asyncio.run(scenario())


def test_cross_game_positions():
    async def scenario():
        manager = LeaderboardManager(MemoryStore(retry_delay=0))
        for player_id, score in [('a', 10), ('b', 30), ('c', 20)]:
            await manager.record('neon_drop', Period.ALL, entry(player_id, score))

        rankings = await manager.cross_game(['neon_drop', 'block_puzzle'], player_id='c')
        rank, found = rankings['neon_drop']
        assert rank == 2
        assert found.score == 20
        assert 'block_puzzle' not in rankings

        leaders = await manager.cross_game(['neon_drop'], limit=2)
        assert [e.player_id for _, e in leaders['neon_drop']] == ['b', 'c']

    asyncio.run(scenario())
