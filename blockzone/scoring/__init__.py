from .prizes import PrizeAllocation, PrizeCalculator
from .ranking import RankedList
from .validator import validate_score
