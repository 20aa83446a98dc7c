from ..config import scoring
from ..errors import ImplausibleMetrics, ImpossibleScore
from ..models.data import Metrics


def max_possible_score(metrics: Metrics, max_score_per_second: float = None) -> float:
    if max_score_per_second is None:
        max_score_per_second = scoring.max_score_per_second
    return metrics.game_seconds * max_score_per_second


def validate_score(score: int, metrics: Metrics, max_apm: float = None,
                   max_pps: float = None, max_score_per_second: float = None) -> bool:
    """
    Reject implausible submissions. Returns True or raises.

    - **ImplausibleMetrics**: actions per minute or pieces per second above the ceiling
    - **ImpossibleScore**: more points than the game duration allows
    """
    max_apm = scoring.max_apm if max_apm is None else max_apm
    max_pps = scoring.max_pps if max_pps is None else max_pps

    if metrics.apm > max_apm:
        raise ImplausibleMetrics('APM too high')

    if metrics.pps > max_pps:
        raise ImplausibleMetrics('PPS too high')

    if score > max_possible_score(metrics, max_score_per_second):
        raise ImpossibleScore('Score impossible for duration')

    return True
