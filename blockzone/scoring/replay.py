import hashlib
import json
import secrets

from ..models.data import Metrics


def compute_replay_hash(player_id: str, game: str, score: int, metrics: Metrics,
                        timestamp: int) -> str:
    """SHA-256 over the canonical JSON of a submission"""
    payload = {
        'player_id': player_id,
        'game': game,
        'score': score,
        'metrics': metrics.to_dict(),
        'timestamp': timestamp
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def new_score_id(timestamp_ms: int) -> str:
    return f'{timestamp_ms}-{secrets.token_hex(5)}'
