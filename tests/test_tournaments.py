import asyncio

import pytest

from blockzone.database.store import MemoryStore
from blockzone.database.tournament_manager import TournamentManager
from blockzone.errors import (AlreadyJoined, InsufficientParticipants, TournamentFull,
                              TournamentNotFound, UnknownGame)

from conftest import START_MS, FakeClock


class YieldingStore(MemoryStore):
    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)


def test_create_uses_defaults():
    async def scenario():
        manager = TournamentManager(MemoryStore(retry_delay=0), clock=FakeClock())
        tournament = await manager.create('Daily Drop')
        assert tournament.id.startswith(f'tournament_{START_MS}_')
        assert tournament.game == 'neon_drop'
        assert tournament.entry_fee == '2.50'
        assert tournament.prize_pool == '0.00'
        assert tournament.max_participants == 1000
        assert tournament.end_time - tournament.start_time == 24 * 60 * 60 * 1000

        stored = await manager.get(tournament.id)
        assert stored.name == 'Daily Drop'
        assert await manager.get('missing') is None

        with pytest.raises(UnknownGame):
            await manager.create('Bad', game='made_up_game')

    asyncio.run(scenario())


def test_join_accrues_prize_pool():
    async def scenario():
        manager = TournamentManager(MemoryStore(retry_delay=0), clock=FakeClock())
        tournament = await manager.create('Cup', entry_fee='10', max_participants=2)

        joined = await manager.join(tournament.id, 'p1')
        assert joined.participants == 1
        assert joined.prize_pool == '9.00'

        with pytest.raises(AlreadyJoined):
            await manager.join(tournament.id, 'p1')

        await manager.join(tournament.id, 'p2')
        with pytest.raises(TournamentFull):
            await manager.join(tournament.id, 'p3')
        with pytest.raises(TournamentNotFound):
            await manager.join('missing', 'p1')

        stored = await manager.get(tournament.id)
        assert stored.participants == 2
        assert stored.prize_pool == '18.00'

    asyncio.run(scenario())


def test_concurrent_joins_never_exceed_cap():
    async def scenario():
        store = YieldingStore(max_retries=50, retry_delay=0)
        manager = TournamentManager(store, clock=FakeClock())
        tournament = await manager.create('Rush', entry_fee='1', max_participants=5)

        outcomes = await asyncio.gather(
            *[manager.join(tournament.id, f'p{i}') for i in range(8)],
            return_exceptions=True
        )
        assert sum(isinstance(o, TournamentFull) for o in outcomes) == 3

        stored = await manager.get(tournament.id)
        assert stored.participants == 5
        assert stored.prize_pool == '4.50'

    asyncio.run(scenario())


def test_prize_allocation_uses_real_entries():
    async def scenario():
        manager = TournamentManager(MemoryStore(retry_delay=0), clock=FakeClock())
        tournament = await manager.create('Cup', entry_fee='2.50')
        for idx in range(3):
            await manager.join(tournament.id, f'p{idx}')

        with pytest.raises(InsufficientParticipants) as excinfo:
            await manager.prize_allocation(tournament.id)
        assert excinfo.value.needed == 2

        for idx in range(3, 400):
            await manager.join(tournament.id, f'p{idx}')
        allocation = await manager.prize_allocation(tournament.id)
        assert [float(p) for p in allocation.prizes] == [360.00, 207.60, 140.06, 106.30, 86.04]

    asyncio.run(scenario())
