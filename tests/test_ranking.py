from blockzone.models.data import LeaderEntry
from blockzone.scoring.ranking import RankedList


def entry(player_id, score, timestamp=0, score_id=None):
    return LeaderEntry(player_id, f'Player {player_id}', score, timestamp, score_id)


def test_upsert_keeps_descending_order():
    ranked = RankedList()
    for player_id, score in [('a', 100), ('b', 300), ('c', 200)]:
        ranked.upsert(entry(player_id, score), cap=10)
    assert [e.player_id for e in ranked] == ['b', 'c', 'a']


def test_upsert_replaces_prior_entry_even_when_lower():
    ranked = RankedList([entry('a', 500), entry('b', 400)])
    ranked.upsert(entry('a', 100), cap=10)
    assert [(e.player_id, e.score) for e in ranked] == [('b', 400), ('a', 100)]
    assert len(ranked) == 2


def test_ties_keep_insertion_order():
    ranked = RankedList()
    for player_id in ['x', 'y', 'z']:
        ranked.upsert(entry(player_id, 50), cap=10)
    assert [rank for rank, _ in ranked.top(3)] == [1, 2, 3]
    assert [e.player_id for _, e in ranked.top(3)] == ['x', 'y', 'z']


def test_truncates_to_cap():
    ranked = RankedList()
    for i in range(15):
        ranked.upsert(entry(f'p{i}', i), cap=10)
    assert len(ranked) == 10
    assert min(e.score for e in ranked) == 5


def test_rank_counts_strictly_higher_scores():
    ranked = RankedList([entry('a', 300), entry('b', 200), entry('c', 200), entry('d', 100)])
    assert ranked.rank_of(300) == 1
    assert ranked.rank_of(200) == 2
    assert ranked.rank_of(100) == 4
    assert ranked.rank_of(50) == 5
    assert ranked.rank_of(1000) == 1
    assert ranked.rank_of(200) == ranked.rank_of(200)


def test_rank_in_empty_list_is_one():
    assert RankedList().rank_of(0) == 1


def test_prune_older_than():
    ranked = RankedList([entry('a', 300, timestamp=10), entry('b', 200, timestamp=50),
                         entry('c', 100, timestamp=5)])
    assert ranked.prune_older_than(10) == 2
    assert [e.player_id for e in ranked] == ['b']


def test_top_limits_results():
    ranked = RankedList([entry(f'p{i}', i) for i in range(5)])
    assert [e.score for _, e in ranked.top(2)] == [4, 3]
    assert ranked.top(0) == []
