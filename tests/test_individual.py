from __future__ import annotations

import random

from padel_round_robin.scheduler import (
    PairLedger,
    Player,
    best_quad,
    generate_individual_round,
    generate_individual_schedule,
    pairing_penalty,
    quad_splits,
    select_resting,
)


def make_players(n):
    return [Player(id=f"p{i}", name=f"Player {i}") for i in range(n)]


def assert_symmetric(ledger):
    for counts in (ledger.teammate_counts, ledger.matchup_counts):
        for a, row in counts.items():
            for b, n in row.items():
                assert counts[b][a] == n


def test_four_players_one_court_scenario():
    a, b, c, d = players = [Player(id=x, name=x) for x in "ABCD"]
    rounds, ledger = generate_individual_schedule(players, 1, 1, PairLedger(), random.Random(1))
    assert len(rounds) == 1
    (match,) = rounds[0].matches
    assert rounds[0].resting == []
    assert match.score_a == 0 and match.score_b == 0 and not match.played
    assert {p.id for p in match.team_a + match.team_b} == {"A", "B", "C", "D"}

    (a1, a2), (b1, b2) = match.team_a, match.team_b
    assert ledger.teammate_weight(a1.id, a2.id) == 1
    assert ledger.teammate_weight(b1.id, b2.id) == 1
    teammate_pairs = sum(ledger.teammate_weight(x.id, y.id) for i, x in enumerate(players) for y in players[i + 1:])
    assert teammate_pairs == 2
    for x in match.team_a:
        for y in match.team_b:
            assert ledger.opponent_weight(x.id, y.id) == 1
            assert ledger.teammate_weight(x.id, y.id) == 0
    assert_symmetric(ledger)


def test_capacity_per_round():
    for n_players, courts in ((11, 3), (9, 2), (16, 2), (7, 4), (23, 5)):
        players = make_players(n_players)
        rounds, _ = generate_individual_schedule(players, 4, courts, rng=random.Random(n_players))
        usable = min(courts, n_players // 4)
        for rnd in rounds:
            assert len(rnd.matches) == usable
            ids = [pid for m in rnd.matches for pid in m.player_ids()]
            assert len(ids) == len(set(ids)) == 4 * len(rnd.matches)
            assert all(len(m.team_a) == 2 and len(m.team_b) == 2 for m in rnd.matches)
            assert len(rnd.resting) == n_players - 4 * len(rnd.matches)
            assert not set(ids) & {p.id for p in rnd.resting}
            if courts >= n_players // 4:
                assert len(rnd.resting) <= 3


def test_ledger_symmetry_across_calls():
    players = make_players(10)
    rng = random.Random(7)
    ledger = PairLedger()
    for _ in range(5):
        _, ledger = generate_individual_schedule(players, 2, 2, ledger, rng)
        assert_symmetric(ledger)


def test_input_ledger_is_not_mutated():
    players = make_players(8)
    ledger = PairLedger()
    ledger.record_teammates("p0", "p1")
    before = ledger.to_dict()
    _, out = generate_individual_schedule(players, 3, 2, ledger, random.Random(3))
    assert ledger.to_dict() == before
    assert out is not ledger
    assert out.teammate_weight("p0", "p1") >= 1


def test_rest_stays_fair_over_many_rounds():
    players = make_players(10)
    rng = random.Random(11)
    ledger = PairLedger()
    for _ in range(60):
        _, ledger = generate_individual_schedule(players, 1, 2, ledger, rng)
        rests = [ledger.rest_count(p.id) for p in players]
        assert max(rests) - min(rests) <= 2


def test_whoever_rested_most_plays():
    players = make_players(5)
    ledger = PairLedger()
    for p in players[:4]:
        ledger.record_rest(p.id)
    playing, resting = select_resting(players, 4, ledger, random.Random(0))
    assert [p.id for p in resting] == ["p4"]
    assert {p.id for p in playing} == {"p0", "p1", "p2", "p3"}


def test_repeat_partners_are_avoided():
    players = make_players(4)
    ledger = PairLedger()
    rng = random.Random(5)
    partners = set()
    for _ in range(3):
        rounds, ledger = generate_individual_schedule(players, 1, 1, ledger, rng)
        m = rounds[0].matches[0]
        for team in (m.team_a, m.team_b):
            partners.add(frozenset(p.id for p in team))
    # three rounds with four players use all six partnerships once
    assert len(partners) == 6


def test_penalty_weights():
    a, b, c, d = make_players(4)
    ledger = PairLedger()
    ledger.record_teammates(a.id, b.id)
    ledger.record_opponents(a.id, c.id)
    ledger.record_opponents(a.id, c.id)
    assert pairing_penalty(((a, b), (c, d)), ledger) == 10 + 2 * 2
    assert pairing_penalty(((a, c), (b, d)), ledger) == 0
    # a still faces c in this split
    assert pairing_penalty(((a, d), (b, c)), ledger) == 2 * 2


def test_best_quad_takes_first_minimum():
    a, b, c, d = make_players(4)
    ledger = PairLedger()
    assert best_quad([a, b, c, d], ledger) == quad_splits([a, b, c, d])[0]
    ledger.record_teammates(a.id, b.id)
    assert best_quad([a, b, c, d], ledger) == ((a, c), (b, d))
    assert best_quad([a, b, c], ledger) is None


def test_not_enough_players_gives_empty_rounds():
    players = make_players(3)
    ledger = PairLedger()
    rounds, out = generate_individual_schedule(players, 2, 2, ledger)
    assert len(rounds) == 2
    assert all(r.matches == [] and len(r.resting) == 3 for r in rounds)
    assert out.to_dict() == ledger.to_dict()

    rnd = generate_individual_round(make_players(8), 0, PairLedger())
    assert rnd.matches == []
