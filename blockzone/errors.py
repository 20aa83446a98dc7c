class BlockzoneError(Exception):
    """Base class for service errors"""
    code = 'internal_error'
    default_reason = 'Internal server error'

    def __init__(self, reason: str = None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class ScoreRejected(BlockzoneError):
    """A submission refused on client data; never persisted"""
    code = 'rejected'
    default_reason = 'Score rejected'


class ImplausibleMetrics(ScoreRejected):
    code = 'implausible_metrics'
    default_reason = 'Metrics out of range'


class ImpossibleScore(ScoreRejected):
    code = 'impossible_score'
    default_reason = 'Score impossible for duration'


class DuplicateSubmission(ScoreRejected):
    code = 'duplicate_submission'
    default_reason = 'Duplicate submission'


class UnknownGame(ScoreRejected):
    code = 'unknown_game'
    default_reason = 'Unknown game'


class InsufficientParticipants(BlockzoneError):
    code = 'insufficient_participants'
    default_reason = 'Not enough players for tournament'

    def __init__(self, entries: int, minimum: int, reason: str = None):
        self.entries = entries
        self.minimum = minimum
        self.needed = max(minimum - entries, 0)
        super().__init__(reason or f'Need at least {minimum} players for tournament')


class StorageUnavailable(BlockzoneError):
    code = 'storage_unavailable'
    default_reason = 'Storage unavailable'


class VersionConflict(StorageUnavailable):
    """Compare-and-swap retries exhausted for a key"""
    code = 'version_conflict'

    def __init__(self, key: str, attempts: int):
        self.key = key
        self.attempts = attempts
        super().__init__(f'Too many concurrent updates to {key} ({attempts} attempts)')


class InternalError(BlockzoneError):
    pass


class PlayerExists(BlockzoneError):
    code = 'player_exists'
    default_reason = 'Player already exists'


class PlayerNotFound(BlockzoneError):
    code = 'player_not_found'
    default_reason = 'Player not found'


class TournamentNotFound(BlockzoneError):
    code = 'tournament_not_found'
    default_reason = 'Tournament not found'


class TournamentFull(BlockzoneError):
    code = 'tournament_full'
    default_reason = 'Tournament is full'


class AlreadyJoined(BlockzoneError):
    code = 'already_joined'
    default_reason = 'Player already joined this tournament'
