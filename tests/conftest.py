import pytest
from fastapi.testclient import TestClient

from blockzone.database import DatabaseManager
from blockzone.database.kafka_manager import ScoreEventPublisher
from blockzone.database.store import MemoryStore
from blockzone.main import create_app

START_MS = 1_750_000_000_000


class FakeClock:
    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


def make_db(store=None, clock=None, publisher=None) -> DatabaseManager:
    return DatabaseManager(
        store=store or MemoryStore(retry_delay=0),
        publisher=publisher or ScoreEventPublisher(enabled=False),
        clock=clock or FakeClock()
    )


def score_payload(player_id='p1', score=1000, apm=120, pps=1.5, game_time=60000, **extra):
    payload = {
        'player_id': player_id,
        'score': score,
        'metrics': {'apm': apm, 'pps': pps, 'gameTime': game_time},
    }
    payload.update(extra)
    return payload


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def db(clock):
    return make_db(clock=clock)


@pytest.fixture()
def client(db):
    app = create_app(db=db, cleanup_interval=0)
    with TestClient(app) as test_client:
        yield test_client
