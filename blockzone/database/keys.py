GAMES_INDEX = 'games'
# replay hash -> claimed_at for submissions not yet committed
PENDING_INDEX = 'pending'


def score_key(score_id: str) -> str:
    return f'score:{score_id}'


def replay_key(replay_hash: str) -> str:
    return f'replay:{replay_hash}'


def player_key(player_id: str) -> str:
    return f'player:{player_id}'


def leaderboard_key(game: str, period: str) -> str:
    return f'leaderboard:{game}:{period}'


def tournament_key(tournament_id: str) -> str:
    return f'tournament:{tournament_id}'
