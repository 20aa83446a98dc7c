from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from .config import cleanup, server, storage
from .core.events import lifespan
from .database import DatabaseManager
from .logger import get_logger
from .routes import health, leaderboard, player, score, tournament
from .scoring.prizes import PrizeCalculator

logger = get_logger(__name__)

API_PREFIX = '/api'

# (method, path) -> handler; every public endpoint must be listed here
ROUTE_TABLE = {
    ('POST', '/api/scores'): score.submit_score,
    ('GET', '/api/scores/{score_id}'): score.get_score,
    ('GET', '/api/scores/validate/{replay_hash}'): score.validate_replay,
    ('GET', '/api/leaderboard'): leaderboard.get_leaderboard,
    ('GET', '/api/leaderboard/large'): leaderboard.get_large_leaderboard,
    ('POST', '/api/admin/clear-leaderboard'): leaderboard.clear_leaderboard,
    ('GET', '/api/rankings/cross-game'): leaderboard.get_cross_game_rankings,
    ('GET', '/api/players/{player_id}/stats'): player.get_player_stats,
    ('POST', '/api/players/register'): player.register_player,
    ('PUT', '/api/players/{player_id}/profile'): player.update_profile,
    ('GET', '/api/prizes'): tournament.get_prize_allocation,
    ('GET', '/api/tournament/prizes'): tournament.get_tournament_prizes,
    ('GET', '/api/tournament/prizes/scenarios'): tournament.get_prize_scenarios,
    ('POST', '/api/tournaments'): tournament.create_tournament,
    ('GET', '/api/tournaments/{tournament_id}'): tournament.get_tournament,
    ('POST', '/api/tournaments/{tournament_id}/join'): tournament.join_tournament,
    ('GET', '/api/tournaments/{tournament_id}/prizes'): tournament.get_tournament_allocation,
    ('GET', '/api/health'): health.health_check,
    ('HEAD', '/api/health'): health.health_check,
}


def create_app(db: DatabaseManager = None, prize_calculator: PrizeCalculator = None,
               cleanup_interval: int = None) -> FastAPI:
    app = FastAPI(
        default_response_class=ORJSONResponse,
        title="BlockZone Scores",
        description="Score submission, leaderboards and tournament prizes for BlockZone Lab games",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.prize_calculator = prize_calculator or PrizeCalculator()
    app.state.db = db or DatabaseManager(calculator=app.state.prize_calculator)
    app.state.cleanup_interval = cleanup.interval_seconds if cleanup_interval is None else cleanup_interval

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    for module in (score, leaderboard, player, tournament, health):
        app.include_router(module.router, prefix=API_PREFIX)

    return app


def worker_count(backend: str = None, requested: int = None) -> int:
    """In-process stores are per worker, so the memory backend runs a single worker"""
    backend = (backend or storage.backend).lower()
    requested = requested or server.workers
    if backend == 'memory' and requested > 1:
        logger.warning(f"Memory storage backend is per process; running 1 worker instead of {requested}")
        return 1
    return requested


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blockzone.main:app",
        host=server.host,
        port=server.port,
        workers=worker_count(),
        limit_concurrency=1000,
        backlog=1024,
        log_level="info"
    )
