from typing import Iterable, List, Tuple
from sortedcontainers import SortedKeyList

from ..models.data import LeaderEntry


def _score_key(entry: LeaderEntry) -> int:
    return -entry.score


class RankedList:
    """Score-descending entries, one per player; equal scores keep insertion order"""

    def __init__(self, entries: Iterable[LeaderEntry] = ()):
        self._entries = SortedKeyList(entries, key=_score_key)

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def find(self, player_id: str):
        for entry in self._entries:
            if entry.player_id == player_id:
                return entry
        return None

    def remove_player(self, player_id: str) -> bool:
        entry = self.find(player_id)
        if entry is None:
            return False
        self._entries.remove(entry)
        return True

    def upsert(self, entry: LeaderEntry, cap: int):
        """Replace the player's entry and keep the best `cap` entries"""
        self.remove_player(entry.player_id)
        self._entries.add(entry)
        self.truncate(cap)

    def truncate(self, cap: int):
        while len(self._entries) > cap:
            self._entries.pop()

    def position_of(self, entry: LeaderEntry) -> int:
        """1-based list position of an entry that is in the list"""
        return self._entries.index(entry) + 1

    def prune_older_than(self, cutoff_ms: int) -> int:
        """Drop entries stamped at or before cutoff_ms; returns how many went"""
        stale = [entry for entry in self._entries if entry.timestamp <= cutoff_ms]
        for entry in stale:
            self._entries.remove(entry)
        return len(stale)

    def rank_of(self, score: int) -> int:
        """Count of strictly higher scores plus one"""
        return self._entries.bisect_key_left(-score) + 1

    def top(self, limit: int) -> List[Tuple[int, LeaderEntry]]:
        return [(idx + 1, entry) for idx, entry in enumerate(self._entries[:limit])]

    def to_list(self) -> List[LeaderEntry]:
        return list(self._entries)
