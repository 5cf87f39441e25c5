from __future__ import annotations

import copy
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


class Mode(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    TEAMS = "TEAMS"


BYE_ID = "BYE"

TEAMMATE_WEIGHT = 10  # repeating a partner is the expensive case
OPPONENT_WEIGHT = 2
PLAYERS_PER_COURT = 4


def generate_id() -> str:
    return uuid.uuid4().hex[:8]


def shuffled(items: Sequence[Any], rng: Optional[random.Random] = None) -> List[Any]:
    """Return a uniformly shuffled copy (Fisher-Yates via random.shuffle)."""
    out = list(items)
    (rng or random).shuffle(out)
    return out


@dataclass
class Player:
    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Player":
        return cls(id=str(d.get("id") or generate_id()), name=str(d.get("name") or ""))


@dataclass
class Team:
    id: str
    name: str
    players: Tuple[Player, ...] = ()

    @property
    def is_bye(self) -> bool:
        return self.id == BYE_ID

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "players": [p.to_dict() for p in self.players]}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Team":
        players = tuple(Player.from_dict(p) for p in (d.get("players") or []) if isinstance(p, dict))
        return cls(id=str(d.get("id") or generate_id()), name=str(d.get("name") or ""), players=players)


BYE = Team(id=BYE_ID, name=BYE_ID, players=())


def team_key(players: Sequence[Player]) -> str:
    """Membership key for a team: sorted player ids joined by '_'."""
    return "_".join(sorted(p.id for p in players))


def team_label(players: Sequence[Player]) -> str:
    return " + ".join(p.name for p in players)


@dataclass
class Match:
    id: str
    team_a: Tuple[Player, ...]
    team_b: Tuple[Player, ...]
    team_name_a: Optional[str] = None
    team_name_b: Optional[str] = None
    team_id_a: Optional[str] = None
    team_id_b: Optional[str] = None
    score_a: int = 0
    score_b: int = 0
    played: bool = False

    @property
    def label_a(self) -> str:
        return self.team_name_a or team_label(self.team_a)

    @property
    def label_b(self) -> str:
        return self.team_name_b or team_label(self.team_b)

    def player_ids(self) -> List[str]:
        return [p.id for p in self.team_a] + [p.id for p in self.team_b]

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "teamA": [p.to_dict() for p in self.team_a],
            "teamB": [p.to_dict() for p in self.team_b],
            "scoreA": self.score_a,
            "scoreB": self.score_b,
            "played": self.played,
        }
        # Optional keys only exist for Teams mode matches.
        for key, value in (
            ("teamNameA", self.team_name_a),
            ("teamNameB", self.team_name_b),
            ("teamIdA", self.team_id_a),
            ("teamIdB", self.team_id_b),
        ):
            if value is not None:
                d[key] = value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Match":
        def _side(key: str) -> Tuple[Player, ...]:
            return tuple(Player.from_dict(p) for p in (d.get(key) or []) if isinstance(p, dict))

        def _score(key: str) -> int:
            try:
                return int(d.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        return cls(
            id=str(d.get("id") or generate_id()),
            team_a=_side("teamA"),
            team_b=_side("teamB"),
            team_name_a=d.get("teamNameA"),
            team_name_b=d.get("teamNameB"),
            team_id_a=d.get("teamIdA"),
            team_id_b=d.get("teamIdB"),
            score_a=_score("scoreA"),
            score_b=_score("scoreB"),
            # snapshots without the flag count every match
            played=bool(d.get("played", True)),
        )


@dataclass
class TeamsRound:
    """Teams mode round: matches bound 1:1 to court index."""

    matches: List[Match] = field(default_factory=list)

    kind = Mode.TEAMS

    def to_dict(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.matches]


@dataclass
class IndividualRound:
    """Individuals mode round: matches plus who sat out."""

    matches: List[Match] = field(default_factory=list)
    resting: List[Player] = field(default_factory=list)

    kind = Mode.INDIVIDUAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "resting": [p.to_dict() for p in self.resting],
        }


Round = Union[TeamsRound, IndividualRound]


def round_from_dict(mode: Mode, raw: Any) -> Round:
    """Rebuild a round from its interchange shape.

    Accepts a bare list of matches (Teams mode and older Individuals
    snapshots) or a ``{matches, resting}`` mapping. Anything else is an
    empty round.
    """

    if isinstance(raw, dict):
        matches_raw = raw.get("matches") or []
        resting_raw = raw.get("resting") or []
    elif isinstance(raw, list):
        matches_raw, resting_raw = raw, []
    else:
        matches_raw, resting_raw = [], []
    matches = [Match.from_dict(m) for m in matches_raw if isinstance(m, dict)]
    if mode == Mode.TEAMS:
        return TeamsRound(matches=matches)
    resting = [Player.from_dict(p) for p in resting_raw if isinstance(p, dict)]
    return IndividualRound(matches=matches, resting=resting)


# --------------------------------------------------------------------------- #
# Pair/matchup ledger
# --------------------------------------------------------------------------- #

Counts = Dict[str, Dict[str, int]]


def _inc_pair(matrix: Counts, a: str, b: str, delta: int = 1) -> None:
    for x, y in ((a, b),) if a == b else ((a, b), (b, a)):
        row = matrix.setdefault(x, {})
        value = row.get(y, 0) + delta
        if value > 0:
            row[y] = value
        else:
            row.pop(y, None)
            if not row:
                del matrix[x]


def _counts_from_dict(raw: Any) -> Counts:
    out: Counts = {}
    if not isinstance(raw, dict):
        return out
    for a, row in raw.items():
        if not isinstance(row, dict):
            continue
        for b, n in row.items():
            try:
                value = int(n)
            except (TypeError, ValueError):
                continue
            if value > 0:
                out.setdefault(str(a), {})[str(b)] = value
    return out


@dataclass
class PairLedger:
    """Symmetric teammate/opponent counters plus per-player rest counts.

    Rows are created lazily, so every lookup and update is total over
    arbitrary ids. ``teammate_counts[a][b] == teammate_counts[b][a]`` holds
    after every operation (likewise for ``matchup_counts``).
    """

    teammate_counts: Counts = field(default_factory=dict)
    matchup_counts: Counts = field(default_factory=dict)
    rest_counts: Dict[str, int] = field(default_factory=dict)

    def record_teammates(self, a: str, b: str) -> None:
        _inc_pair(self.teammate_counts, a, b)

    def record_opponents(self, a: str, b: str) -> None:
        _inc_pair(self.matchup_counts, a, b)

    def record_rest(self, player_id: str) -> None:
        self.rest_counts[player_id] = self.rest_counts.get(player_id, 0) + 1

    def teammate_weight(self, a: str, b: str) -> int:
        return self.teammate_counts.get(a, {}).get(b, 0)

    def opponent_weight(self, a: str, b: str) -> int:
        return self.matchup_counts.get(a, {}).get(b, 0)

    def rest_count(self, player_id: str) -> int:
        return self.rest_counts.get(player_id, 0)

    def record_match(self, match: Match) -> None:
        a1, a2 = match.team_a
        b1, b2 = match.team_b
        self.record_teammates(a1.id, a2.id)
        self.record_teammates(b1.id, b2.id)
        for x in match.team_a:
            for y in match.team_b:
                self.record_opponents(x.id, y.id)

    def forget_match(self, match: Match) -> None:
        """Undo record_match; counters never drop below zero."""
        if len(match.team_a) != 2 or len(match.team_b) != 2:
            return
        a1, a2 = match.team_a
        b1, b2 = match.team_b
        _inc_pair(self.teammate_counts, a1.id, a2.id, -1)
        _inc_pair(self.teammate_counts, b1.id, b2.id, -1)
        for x in match.team_a:
            for y in match.team_b:
                _inc_pair(self.matchup_counts, x.id, y.id, -1)

    def forget_rest(self, player_id: str) -> None:
        value = self.rest_counts.get(player_id, 0) - 1
        if value > 0:
            self.rest_counts[player_id] = value
        else:
            self.rest_counts.pop(player_id, None)

    def copy(self) -> "PairLedger":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teammateCounts": copy.deepcopy(self.teammate_counts),
            "matchupCounts": copy.deepcopy(self.matchup_counts),
            "restCounts": dict(self.rest_counts),
        }

    @classmethod
    def from_dict(cls, d: Any) -> "PairLedger":
        if not isinstance(d, dict):
            return cls()
        rest: Dict[str, int] = {}
        raw_rest = d.get("restCounts")
        if isinstance(raw_rest, dict):
            for k, v in raw_rest.items():
                try:
                    value = int(v)
                except (TypeError, ValueError):
                    continue
                if value > 0:
                    rest[str(k)] = value
        return cls(
            teammate_counts=_counts_from_dict(d.get("teammateCounts")),
            matchup_counts=_counts_from_dict(d.get("matchupCounts")),
            rest_counts=rest,
        )


# --------------------------------------------------------------------------- #
# Teams mode: circle-method round robin + balanced court picker
# --------------------------------------------------------------------------- #

Pairing = Tuple[Team, Team]


def generate_team_round_robin(teams: Sequence[Team], round_limit: Optional[int] = None) -> List[List[Pairing]]:
    """Circle-method round robin.

    With an odd roster a BYE is appended; its pairing is dropped, so that
    team sits the round out. One lap (M-1 rounds for a working list of size
    M) meets every pair exactly once. ``round_limit`` beyond one lap keeps
    rotating; on lap ``k`` each round's pairing list is rotated by ``k`` so
    the court order differs from earlier laps.
    """

    n = len(teams)
    if n < 2:
        return []
    working = list(teams) + ([BYE] if n % 2 == 1 else [])
    m = len(working)
    half = m // 2
    lap_length = m - 1
    total = lap_length if not round_limit or round_limit < 1 else int(round_limit)

    fixed = working[0]
    rot = working[1:]
    rounds: List[List[Pairing]] = []
    for r in range(total):
        circle = [fixed] + rot
        left = circle[:half]
        right = list(reversed(circle[half:]))
        pairings = [(a, b) for a, b in zip(left, right) if not a.is_bye and not b.is_bye]
        lap = r // lap_length
        if lap and pairings:
            shift = lap % len(pairings)
            pairings = pairings[shift:] + pairings[:shift]
        rounds.append(pairings)

        # last element moves to just after the fixed one
        rot = [rot[-1]] + rot[:-1]
    return rounds


def pick_balanced_matches(
    candidates: Sequence[Pairing], courts: int, games_played: Dict[str, int]
) -> List[Pairing]:
    """Greedy court-limited pick that keeps games-played counts close.

    Candidates are visited by ascending sum of both teams' games played
    (stable for ties). A pairing is taken when neither team is already on a
    court this round. ``games_played`` is the running counter and is updated
    in place for every accepted pairing.
    """

    if courts <= 0:
        return []
    ordered = sorted(candidates, key=lambda p: games_played.get(p[0].id, 0) + games_played.get(p[1].id, 0))
    claimed: set[str] = set()
    chosen: List[Pairing] = []
    for a, b in ordered:
        if len(chosen) >= courts:
            break
        if a.is_bye or b.is_bye or a.id == b.id:
            continue
        if a.id in claimed or b.id in claimed:
            continue
        claimed.add(a.id)
        claimed.add(b.id)
        games_played[a.id] = games_played.get(a.id, 0) + 1
        games_played[b.id] = games_played.get(b.id, 0) + 1
        chosen.append((a, b))
    return chosen


def team_match(a: Team, b: Team) -> Match:
    return Match(
        id=generate_id(),
        team_a=tuple(a.players),
        team_b=tuple(b.players),
        team_name_a=a.name,
        team_name_b=b.name,
        team_id_a=a.id,
        team_id_b=b.id,
    )


def games_played_from_schedule(schedule: Sequence[Round]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for rnd in schedule:
        for m in rnd.matches:
            for tid in (m.team_id_a or team_key(m.team_a), m.team_id_b or team_key(m.team_b)):
                counts[tid] = counts.get(tid, 0) + 1
    return counts


def build_team_rounds(
    teams: Sequence[Team],
    round_count: int,
    court_count: int,
    games_played: Optional[Dict[str, int]] = None,
    start_round: int = 0,
) -> List[TeamsRound]:
    """Turn round-robin pairings into court-bound Teams rounds.

    ``start_round`` skips that many rounds of the rotation, so one more round
    can be appended to an existing schedule.
    """

    if round_count <= 0:
        return []
    played = dict(games_played or {})
    pairing_rounds = generate_team_round_robin(teams, start_round + round_count)
    out: List[TeamsRound] = []
    for pairings in pairing_rounds[start_round:]:
        chosen = pick_balanced_matches(pairings, court_count, played)
        out.append(TeamsRound(matches=[team_match(a, b) for a, b in chosen]))
    return out


def resting_teams(rnd: Round, teams: Sequence[Team]) -> List[Team]:
    scheduled: set[str] = set()
    for m in rnd.matches:
        scheduled.add(m.team_id_a or team_key(m.team_a))
        scheduled.add(m.team_id_b or team_key(m.team_b))
    return [t for t in teams if t.id not in scheduled and team_key(t.players) not in scheduled]


def resting_players(rnd: Round, players: Sequence[Player]) -> List[Player]:
    if isinstance(rnd, IndividualRound) and rnd.resting:
        return list(rnd.resting)
    playing = {pid for m in rnd.matches for pid in m.player_ids()}
    return [p for p in players if p.id not in playing]


# --------------------------------------------------------------------------- #
# Individuals mode: rest rotation + exhaustive quad search
# --------------------------------------------------------------------------- #

Split = Tuple[Tuple[Player, Player], Tuple[Player, Player]]


def pairing_penalty(split: Split, ledger: PairLedger) -> int:
    score = 0
    seen: set[Tuple[str, str]] = set()
    for p1, p2 in split:
        key = tuple(sorted((p1.id, p2.id)))
        if key in seen:
            continue
        seen.add(key)  # type: ignore[arg-type]
        score += TEAMMATE_WEIGHT * ledger.teammate_weight(p1.id, p2.id)
    team_a, team_b = split
    for a in team_a:
        for b in team_b:
            score += OPPONENT_WEIGHT * ledger.opponent_weight(a.id, b.id)
    return score


def quad_splits(quad: Sequence[Player]) -> List[Split]:
    c0, c1, c2, c3 = quad
    return [
        ((c0, c1), (c2, c3)),
        ((c0, c2), (c1, c3)),
        ((c0, c3), (c1, c2)),
    ]


def best_quad(available: Sequence[Player], ledger: PairLedger) -> Optional[Split]:
    """Minimum-penalty split over every 4-subset of ``available``.

    Ties go to the first split encountered in subset order.
    """

    best: Optional[Split] = None
    best_score: Optional[int] = None
    for quad in combinations(available, PLAYERS_PER_COURT):
        for split in quad_splits(quad):
            score = pairing_penalty(split, ledger)
            if best_score is None or score < best_score:
                best, best_score = split, score
                if score == 0:
                    # nothing later can beat it under strict '<'
                    return best
    return best


def select_resting(
    players: Sequence[Player], capacity: int, ledger: PairLedger, rng: Optional[random.Random] = None
) -> Tuple[List[Player], List[Player]]:
    """Split the roster into (playing, resting).

    Whoever has rested most plays first; equal rest counts are ordered by a
    random draw.
    """

    draw = rng or random
    keyed = [(p, ledger.rest_count(p.id), draw.random()) for p in players]
    keyed.sort(key=lambda x: (-x[1], x[2]))
    playing = [p for p, _, _ in keyed[:capacity]]
    resting = [p for p, _, _ in keyed[capacity:]]
    return playing, resting


def generate_individual_round(
    players: Sequence[Player], court_count: int, ledger: PairLedger, rng: Optional[random.Random] = None
) -> IndividualRound:
    """Build one round and record it into ``ledger`` (mutated in place)."""

    usable = min(max(0, int(court_count)), len(players) // PLAYERS_PER_COURT)
    if usable < 1:
        return IndividualRound(matches=[], resting=list(players))
    capacity = PLAYERS_PER_COURT * usable

    playing, resting = select_resting(players, capacity, ledger, rng)
    for p in resting:
        ledger.record_rest(p.id)

    available = shuffled(playing, rng)
    matches: List[Match] = []
    while len(available) >= PLAYERS_PER_COURT and len(matches) < usable:
        split = best_quad(available, ledger)
        if split is None:
            break
        team_a, team_b = split
        taken = {p.id for p in team_a + team_b}
        available = [p for p in available if p.id not in taken]
        match = Match(id=generate_id(), team_a=tuple(team_a), team_b=tuple(team_b))
        ledger.record_match(match)
        matches.append(match)
    return IndividualRound(matches=matches, resting=resting)


def generate_individual_schedule(
    players: Sequence[Player],
    round_count: int,
    court_count: int,
    ledger: Optional[PairLedger] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[List[IndividualRound], PairLedger]:
    """Generate ``round_count`` rotating-partner rounds.

    The input ledger is left untouched; the returned ledger carries every
    increment made by the new rounds, so callers can keep or discard it.
    """

    working = ledger.copy() if ledger is not None else PairLedger()
    rounds = [generate_individual_round(players, court_count, working, rng) for _ in range(max(0, int(round_count)))]
    return rounds, working


def forget_round(rnd: Round, ledger: PairLedger, players: Sequence[Player] = ()) -> None:
    """Roll back the ledger increments a generated round caused."""

    if not isinstance(rnd, IndividualRound) or not rnd.matches:
        return
    for m in rnd.matches:
        ledger.forget_match(m)
    for p in resting_players(rnd, players):
        ledger.forget_rest(p.id)
