from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import os


class StorageConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='STORAGE_')

    backend: str = os.getenv('STORAGE_BACKEND', 'memory')
    redis_host: str = os.getenv('REDIS_HOST', 'localhost')
    redis_port: int = int(os.getenv('REDIS_PORT', 6379))
    postgres_host: str = os.getenv('POSTGRES_HOST', 'localhost')
    postgres_port: int = int(os.getenv('POSTGRES_PORT', 5432))
    postgres_db: str = os.getenv('POSTGRES_DB', 'blockzone')
    postgres_user: str = os.getenv('POSTGRES_USER', 'postgres')
    postgres_password: str = os.getenv('POSTGRES_PASSWORD', 'postgres')
    # compare-and-swap retries per key update
    max_retries: int = int(os.getenv('STORAGE_MAX_RETRIES', 8))
    retry_delay: float = float(os.getenv('STORAGE_RETRY_DELAY', 0.01))
    # attempts at applying a claimed submission before leaving it to recovery
    apply_attempts: int = int(os.getenv('STORAGE_APPLY_ATTEMPTS', 3))

storage = StorageConfig()


class ScoringConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='SCORING_')

    max_apm: float = 300
    max_pps: float = 3.5
    max_score_per_second: float = 150
    leaderboard_cap: int = 1000
    standard_limit: int = 100
    large_limit: int = 1000
    default_game: str = os.getenv('DEFAULT_GAME', 'neon_drop')
    allowed_games: List[str] = ['neon_drop', 'block_puzzle', 'crypto_runner']
    submission_lease_seconds: int = 30

scoring = ScoringConfig()


class PrizeConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='PRIZE_')

    platform_fee: str = '0.10'
    winner_share: str = '0.40'
    minimum_prize: str = '5.00'
    payout_positions: int = 5
    fallback_percentages: List[int] = [40, 25, 20, 10, 5]
    minimum_entrants: int = 5
    default_entry_fee: str = '2.50'

prizes = PrizeConfig()


class TournamentConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='TOURNAMENT_')

    default_max_participants: int = 1000
    default_duration_ms: int = 24 * 60 * 60 * 1000

tournaments = TournamentConfig()


class CleanupConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='CLEANUP_')

    interval_seconds: int = int(os.getenv('CLEANUP_INTERVAL_SECONDS', 3600))
    daily_window_ms: int = 24 * 60 * 60 * 1000
    weekly_window_ms: int = 7 * 24 * 60 * 60 * 1000

cleanup = CleanupConfig()


class KafkaConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='KAFKA_')

    enabled: bool = os.getenv('KAFKA_ENABLED', 'false').lower() in ('1', 'true', 'yes')
    bootstrap_servers: str = os.getenv('KAFKA_BOOTSTRAP_SERVERS', 'localhost:9092')
    topic: str = 'scores'
    client_id: str = 'blockzone-score-producer'
    max_retries: int = 3
    retry_delay: int = 1

kafka = KafkaConfig()


class ServerConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='SERVER_')

    host: str = '0.0.0.0'
    port: int = 8000
    workers: int = 4

server = ServerConfig()
