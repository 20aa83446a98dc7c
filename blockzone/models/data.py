from enum import Enum
from typing import List, Optional
import time


def now_ms() -> int:
    return int(time.time() * 1000)


def default_display_name(player_id: str) -> str:
    return f'Player {player_id[:6]}'


class Period(str, Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    ALL = 'all'

    def retention_ms(self, daily_ms: int, weekly_ms: int) -> Optional[int]:
        """Age past which entries are pruned; None means never"""
        if self is Period.DAILY:
            return daily_ms
        if self is Period.WEEKLY:
            return weekly_ms
        return None


class Metrics:
    __slots__ = ('apm', 'pps', 'game_time')
    def __init__(self, apm: float, pps: float, game_time: float):
        self.apm = float(apm)
        self.pps = float(pps)
        # milliseconds
        self.game_time = float(game_time)

    @property
    def game_seconds(self) -> float:
        return self.game_time / 1000

    @classmethod
    def from_dict(cls, data: dict):
        game_time = data.get('gameTime', data.get('game_time', 0))
        return cls(data.get('apm', 0), data.get('pps', 0), game_time)

    def to_dict(self):
        return {
            'apm': self.apm,
            'pps': self.pps,
            'gameTime': self.game_time
        }


class ScoreRec:
    __slots__ = ('id', 'player_id', 'game', 'score', 'replay_hash', 'metrics',
                 'timestamp', 'verified', 'claimed_at', 'received_at')
    def __init__(self, data: dict):
        self.id = data.get('id')
        self.player_id = data['player_id']
        self.game = data['game']
        self.score = int(data['score'])
        self.replay_hash = data.get('replay_hash')
        metrics = data.get('metrics') or {}
        self.metrics = metrics if isinstance(metrics, Metrics) else Metrics.from_dict(metrics)
        if data.get('timestamp') is None:
            self.timestamp = now_ms()
        else:
            self.timestamp = int(data['timestamp'])
        self.verified = bool(data.get('verified', False))
        self.claimed_at = data.get('claimed_at')
        # server time of the first claim; stamps the leaderboard entries
        self.received_at = data.get('received_at')

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'game': self.game,
            'score': self.score,
            'replay_hash': self.replay_hash,
            'metrics': self.metrics.to_dict(),
            'timestamp': self.timestamp,
            'verified': self.verified,
            'claimed_at': self.claimed_at,
            'received_at': self.received_at
        }


class PlayerRec:
    __slots__ = ('player_id', 'display_name', 'high_score', 'games_played',
                 'total_score', 'unsettled')
    def __init__(self, player_id: str, display_name: str = None, high_score: int = 0,
                 games_played: int = 0, total_score: int = 0, unsettled: list = None):
        self.player_id = player_id
        self.display_name = display_name or default_display_name(player_id)
        self.high_score = high_score
        self.games_played = games_played
        self.total_score = total_score
        # [score_id, was_high_score] pairs folded into the totals whose
        # submission has not been committed yet
        self.unsettled = unsettled or []

    @property
    def avg_score(self) -> int:
        if self.games_played == 0:
            return 0
        return self.total_score // self.games_played

    def applied(self, score_id: str) -> Optional[bool]:
        """Whether score_id beat the prior high score, or None if not applied yet"""
        for seen_id, was_high in self.unsettled:
            if seen_id == score_id:
                return was_high
        return None

    def apply(self, score_id: str, score: int) -> bool:
        was_high = score > self.high_score
        self.games_played += 1
        self.total_score += score
        if was_high:
            self.high_score = score
        self.unsettled.append([score_id, was_high])
        return was_high

    def settle(self, score_id: str) -> bool:
        """Forget a committed score id; False when it was not tracked"""
        kept = [pair for pair in self.unsettled if pair[0] != score_id]
        if len(kept) == len(self.unsettled):
            return False
        self.unsettled = kept
        return True

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            data['player_id'],
            data.get('display_name'),
            int(data.get('high_score', 0)),
            int(data.get('games_played', 0)),
            int(data.get('total_score', 0)),
            data.get('unsettled') or []
        )

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'display_name': self.display_name,
            'high_score': self.high_score,
            'games_played': self.games_played,
            'total_score': self.total_score,
            'unsettled': self.unsettled
        }


class LeaderEntry:
    __slots__ = ('player_id', 'display_name', 'score', 'timestamp', 'score_id')
    def __init__(self, player_id: str, display_name: str, score: int, timestamp: int,
                 score_id: str = None):
        self.player_id = player_id
        self.display_name = display_name
        self.score = score
        self.timestamp = timestamp
        self.score_id = score_id

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            data['player_id'],
            data.get('display_name') or default_display_name(data['player_id']),
            int(data['score']),
            int(data.get('timestamp', 0)),
            data.get('score_id')
        )

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'display_name': self.display_name,
            'score': self.score,
            'timestamp': self.timestamp,
            'score_id': self.score_id
        }


class RankInfo:
    __slots__ = ('player_id', 'score', 'rank', 'percentile')
    def __init__(self, player_id: str, score: int, rank: int, total: int):
        self.player_id = player_id
        self.score = score
        self.rank = rank
        if total:
            self.percentile = 100 * (1 - (rank - 1) / total)
        else:
            self.percentile = 100.0


class SubmissionResult:
    __slots__ = ('score_id', 'rank', 'is_high_score', 'record')
    def __init__(self, score_id: str, rank: int, is_high_score: bool, record: ScoreRec):
        self.score_id = score_id
        self.rank = rank
        self.is_high_score = is_high_score
        self.record = record

    def to_dict(self):
        return {
            'verified': True,
            'score_id': self.score_id,
            'rank': self.rank,
            'is_high_score': self.is_high_score
        }


def entries_from_dicts(rows: List[dict]) -> List[LeaderEntry]:
    return [LeaderEntry.from_dict(row) for row in rows]


class TournamentRec:
    __slots__ = ('id', 'name', 'game', 'type', 'start_time', 'end_time', 'entry_fee',
                 'prize_pool', 'max_participants', 'entrants', 'status', 'created_at')
    def __init__(self, data: dict):
        self.id = data['id']
        self.name = data['name']
        self.game = data['game']
        self.type = data.get('type', 'daily')
        self.start_time = int(data['start_time'])
        self.end_time = int(data['end_time'])
        # money is kept as decimal strings
        self.entry_fee = str(data.get('entry_fee', '0'))
        self.prize_pool = str(data.get('prize_pool', '0'))
        self.max_participants = int(data['max_participants'])
        # player_id -> joined_at (ms)
        self.entrants = dict(data.get('entrants') or {})
        self.status = data.get('status', 'scheduled')
        self.created_at = int(data['created_at'])

    @property
    def participants(self) -> int:
        return len(self.entrants)

    @property
    def is_full(self) -> bool:
        return self.participants >= self.max_participants

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'game': self.game,
            'type': self.type,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'entry_fee': self.entry_fee,
            'prize_pool': self.prize_pool,
            'max_participants': self.max_participants,
            'entrants': self.entrants,
            'status': self.status,
            'created_at': self.created_at
        }
