from padel_round_robin.scheduler import Match, PairLedger, Player


def _p(pid):
    return Player(id=pid, name=pid.upper())


def test_counters_are_symmetric_and_default_to_zero():
    ledger = PairLedger()
    assert ledger.teammate_weight("a", "b") == 0
    assert ledger.opponent_weight("x", "y") == 0
    assert ledger.rest_count("a") == 0

    ledger.record_teammates("a", "b")
    ledger.record_teammates("b", "a")
    ledger.record_opponents("a", "c")
    ledger.record_rest("d")

    assert ledger.teammate_weight("a", "b") == 2
    assert ledger.teammate_weight("b", "a") == 2
    assert ledger.opponent_weight("c", "a") == 1
    assert ledger.rest_count("d") == 1


def test_record_and_forget_match_round_trip():
    a, b, c, d = (_p(x) for x in "abcd")
    m = Match(id="m1", team_a=(a, b), team_b=(c, d))
    ledger = PairLedger()
    ledger.record_match(m)
    assert ledger.teammate_weight("a", "b") == 1
    assert ledger.teammate_weight("c", "d") == 1
    for x in "ab":
        for y in "cd":
            assert ledger.opponent_weight(x, y) == 1
            assert ledger.opponent_weight(y, x) == 1

    ledger.forget_match(m)
    assert ledger.teammate_counts == {}
    assert ledger.matchup_counts == {}
    # never below zero
    ledger.forget_match(m)
    ledger.forget_rest("a")
    assert ledger.teammate_weight("a", "b") == 0
    assert ledger.rest_count("a") == 0


def test_copy_is_independent():
    ledger = PairLedger()
    ledger.record_teammates("a", "b")
    clone = ledger.copy()
    clone.record_teammates("a", "b")
    assert ledger.teammate_weight("a", "b") == 1
    assert clone.teammate_weight("a", "b") == 2


def test_from_dict_defaults_malformed_fields():
    ledger = PairLedger.from_dict(
        {
            "teammateCounts": {"a": {"b": 2, "c": "bad"}, "b": {"a": 2}, "z": "nope"},
            "restCounts": {"a": "3", "b": None},
        }
    )
    assert ledger.teammate_weight("a", "b") == 2
    assert ledger.teammate_weight("a", "c") == 0
    assert ledger.matchup_counts == {}
    assert ledger.rest_count("a") == 3
    assert ledger.rest_count("b") == 0

    assert PairLedger.from_dict(None).to_dict() == {"teammateCounts": {}, "matchupCounts": {}, "restCounts": {}}


def test_to_dict_round_trip():
    ledger = PairLedger()
    ledger.record_teammates("a", "b")
    ledger.record_opponents("a", "c")
    ledger.record_rest("d")
    assert PairLedger.from_dict(ledger.to_dict()) == ledger


def test_self_pair_counts_once():
    ledger = PairLedger()
    ledger.record_teammates("a", "a")
    ledger.record_opponents("b", "b")
    assert ledger.teammate_weight("a", "a") == 1
    assert ledger.opponent_weight("b", "b") == 1
    ledger.forget_match(Match(id="m", team_a=(_p("a"), _p("a")), team_b=(_p("b"), _p("b"))))
    assert ledger.teammate_counts == {}
