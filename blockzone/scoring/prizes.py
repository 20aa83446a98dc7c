"""
Tournament prize allocation.

The winner takes a fixed share of the prize pool. Places 2-5 each get a
guaranteed minimum plus a hyperbolic (1/2, 1/3, 1/4, 1/5) share of what
is left. When the pool cannot cover the minimums the whole pool is split
by fixed percentages instead.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Union

from ..config import prizes as prize_config
from ..errors import InsufficientParticipants

CENT = Decimal('0.01')
POSITIONS = ['1st', '2nd', '3rd', '4th', '5th']

Money = Union[Decimal, float, int, str]


def to_money(value: Money) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def ordinal(position: int) -> str:
    if position <= len(POSITIONS):
        return POSITIONS[position - 1]
    return f'{position}th'


class PrizeAllocation:
    __slots__ = ('total_revenue', 'prize_pool', 'platform_revenue', 'prizes',
                 'minimum_guaranteed')
    def __init__(self, total_revenue: Decimal, prize_pool: Decimal, platform_revenue: Decimal,
                 prizes: List[Decimal], minimum_guaranteed: bool):
        self.total_revenue = total_revenue
        self.prize_pool = prize_pool
        self.platform_revenue = platform_revenue
        self.prizes = prizes
        self.minimum_guaranteed = minimum_guaranteed

    def breakdown(self) -> List[dict]:
        paid = sum(self.prizes)
        rows = []
        for idx, amount in enumerate(self.prizes):
            if paid:
                percentage = int((amount / paid * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
            else:
                percentage = 0
            rows.append({
                'position': ordinal(idx + 1),
                'amount': float(amount),
                'percentage': percentage
            })
        return rows

    def to_dict(self):
        return {
            'total_revenue': float(self.total_revenue),
            'prize_pool': float(self.prize_pool),
            'platform_revenue': float(self.platform_revenue),
            'prizes': [float(p) for p in self.prizes],
            'distribution': self.breakdown(),
            'minimum_guaranteed': self.minimum_guaranteed
        }


class PrizeCalculator:
    def __init__(self, platform_fee: Money = None, winner_share: Money = None,
                 minimum_prize: Money = None, fallback_percentages: List[int] = None,
                 minimum_entrants: int = None):
        self.platform_fee = Decimal(str(platform_fee if platform_fee is not None else prize_config.platform_fee))
        self.prize_pool_rate = 1 - self.platform_fee
        self.winner_share = Decimal(str(winner_share if winner_share is not None else prize_config.winner_share))
        self.minimum_prize = Decimal(str(minimum_prize if minimum_prize is not None else prize_config.minimum_prize))
        self.fallback_percentages = [
            Decimal(p) for p in (fallback_percentages or prize_config.fallback_percentages)
        ]
        self.payout_positions = len(self.fallback_percentages)
        self.minimum_entrants = minimum_entrants or prize_config.minimum_entrants
        # 1/2, 1/3, ... for places 2..payout_positions
        self.weights = [Decimal(1) / Decimal(n) for n in range(2, self.payout_positions + 1)]

    def allocate(self, total_revenue: Money) -> PrizeAllocation:
        """Split a tournament's revenue into the platform cut and the paid places"""
        revenue = Decimal(str(total_revenue))
        if revenue < 0:
            raise ValueError('Revenue cannot be negative')

        prize_pool = to_money(revenue * self.prize_pool_rate)
        platform_revenue = to_money(revenue * self.platform_fee)

        first_place = to_money(prize_pool * self.winner_share)
        remaining_pool = prize_pool - first_place
        minimum_total = self.minimum_prize * (self.payout_positions - 1)

        if remaining_pool < minimum_total:
            prizes = self._scaled(prize_pool)
            return PrizeAllocation(revenue, prize_pool, platform_revenue, prizes, False)

        hyperbolic_pool = remaining_pool - minimum_total
        total_weight = sum(self.weights)
        prizes = [first_place]
        for weight in self.weights:
            prizes.append(to_money(self.minimum_prize + hyperbolic_pool * weight / total_weight))

        # rounding residue goes to 2nd place so 1st stays at its exact share
        prizes[1] += prize_pool - sum(prizes)
        return PrizeAllocation(revenue, prize_pool, platform_revenue, prizes, True)

    def _scaled(self, prize_pool: Decimal) -> List[Decimal]:
        prizes = [to_money(prize_pool * pct / 100) for pct in self.fallback_percentages]
        prizes[0] += prize_pool - sum(prizes)
        return prizes

    def preview_for_entries(self, entries: int, entry_fee: Money = None) -> PrizeAllocation:
        """Allocation for a tournament with `entries` paid players"""
        fee = Decimal(str(entry_fee if entry_fee is not None else prize_config.default_entry_fee))
        if entries < self.minimum_entrants:
            raise InsufficientParticipants(entries, self.minimum_entrants)
        return self.allocate(fee * entries)

    def preview_scenarios(self, max_players: int, entry_fee: Money = None, step: int = 5) -> List[dict]:
        fee = Decimal(str(entry_fee if entry_fee is not None else prize_config.default_entry_fee))
        scenarios = []
        for players in range(self.minimum_entrants, max_players + 1, step):
            allocation = self.allocate(fee * players)
            scenario = allocation.to_dict()
            scenario['entries'] = players
            scenario['entry_fee'] = float(fee)
            scenarios.append(scenario)
        return scenarios
