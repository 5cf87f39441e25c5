from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from padel_round_robin.scheduler import (
    Mode,
    PairLedger,
    Player,
    Round,
    Team,
    build_team_rounds,
    forget_round,
    games_played_from_schedule,
    generate_id,
    generate_individual_schedule,
    resting_players,
    resting_teams,
    round_from_dict,
    shuffled,
)
from padel_round_robin.standings import StandingsRow, compute_standings

DEFAULT_ROUNDS = 5
DEFAULT_COURTS = 2
MIN_ROUNDS, MAX_ROUNDS = 1, 20
MIN_COURTS, MAX_COURTS = 1, 12
MAX_SCORE = 99
TEAM_NAME_MAX = 40


def clamp(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


def _int_or(value: Any, default: int, minimum: int = 1) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= minimum else default


@dataclass
class Tournament:
    mode: Mode = Mode.INDIVIDUAL
    players: List[Player] = field(default_factory=list)
    teams: List[Team] = field(default_factory=list)
    round_count: int = DEFAULT_ROUNDS
    court_count: int = DEFAULT_COURTS
    schedule: List[Round] = field(default_factory=list)
    ledger: PairLedger = field(default_factory=PairLedger)
    tournament_id: str = field(default_factory=generate_id)
    # next round-robin round for Teams mode; survives deletions
    rotation_index: int = 0

    # ----------------------------------------------------------------- roster

    def add_player(self, name: str) -> Optional[Player]:
        n = (name or "").strip()
        if not n:
            return None
        if any(p.name.lower() == n.lower() for p in self.players):
            return None
        player = Player(id=generate_id(), name=n)
        self.players.append(player)
        return player

    def remove_player(self, player_id: str) -> None:
        self.players = [p for p in self.players if p.id != player_id]

    def create_teams_auto(self, rng: Optional[random.Random] = None) -> List[Team]:
        """Pair the roster into random fixed teams; an odd player is left out."""
        even = len(self.players) - (len(self.players) % 2)
        pool = shuffled(self.players[:even], rng)
        teams: List[Team] = []
        for i in range(0, len(pool), 2):
            a, b = pool[i], pool[i + 1]
            teams.append(Team(id=generate_id(), name=f"{a.name} & {b.name}"[:TEAM_NAME_MAX], players=(a, b)))
        self.teams = teams
        return teams

    def set_round_count(self, n: int) -> int:
        self.round_count = clamp(int(n), MIN_ROUNDS, MAX_ROUNDS)
        return self.round_count

    def set_court_count(self, n: int) -> int:
        self.court_count = clamp(int(n), MIN_COURTS, MAX_COURTS)
        return self.court_count

    # --------------------------------------------------------------- schedule

    @property
    def can_generate(self) -> bool:
        if self.court_count < 1 or self.round_count < 1:
            return False
        if self.mode == Mode.INDIVIDUAL:
            return len(self.players) >= 4
        return len(self.teams) >= 2

    def generate_schedule(self, rng: Optional[random.Random] = None) -> List[Round]:
        """Replace the schedule with ``round_count`` fresh rounds."""
        if not self.can_generate:
            return []
        for old in self.schedule:
            forget_round(old, self.ledger, self.players)
        if self.mode == Mode.TEAMS:
            self.schedule = list(build_team_rounds(self.teams, self.round_count, self.court_count))
            self.rotation_index = len(self.schedule)
            return self.schedule
        rounds, ledger = generate_individual_schedule(self.players, self.round_count, self.court_count, self.ledger, rng)
        self.schedule, self.ledger = list(rounds), ledger
        return self.schedule

    def add_round(self, rng: Optional[random.Random] = None) -> Optional[Round]:
        """Append one more round, continuing from the current schedule."""
        if not self.can_generate:
            return None
        if self.mode == Mode.TEAMS:
            rounds = build_team_rounds(
                self.teams,
                1,
                self.court_count,
                games_played=games_played_from_schedule(self.schedule),
                start_round=self.rotation_index,
            )
            self.rotation_index += 1
            self.schedule.append(rounds[0])
            return rounds[0]
        rounds, ledger = generate_individual_schedule(self.players, 1, self.court_count, self.ledger, rng)
        self.schedule.append(rounds[0])
        self.ledger = ledger
        return rounds[0]

    def delete_round(self, index: int) -> Optional[Round]:
        """Drop a round and take its increments back out of the ledger."""
        if not 0 <= index < len(self.schedule):
            return None
        rnd = self.schedule.pop(index)
        forget_round(rnd, self.ledger, self.players)
        return rnd

    def update_score(self, round_index: int, match_index: int, side: str, value: Any) -> bool:
        try:
            match = self.schedule[round_index].matches[match_index]
        except IndexError:
            return False
        try:
            v = clamp(int(value or 0), 0, MAX_SCORE)
        except (TypeError, ValueError):
            v = 0
        side = side.upper()
        if side == "A":
            match.score_a = v
        elif side == "B":
            match.score_b = v
        else:
            raise ValueError(f"side must be 'A' or 'B', got {side!r}")
        match.played = True
        return True

    def resting_for_round(self, index: int) -> List[Any]:
        rnd = self.schedule[index]
        if self.mode == Mode.TEAMS:
            return resting_teams(rnd, self.teams)
        return resting_players(rnd, self.players)

    def standings(self, played_only: bool = True) -> List[StandingsRow]:
        return compute_standings(self.mode, self.schedule, self.players, self.teams, played_only=played_only)

    def new_tournament(self, hard_reset: bool = True) -> str:
        self.tournament_id = generate_id()
        self.schedule = []
        self.ledger = PairLedger()
        self.rotation_index = 0
        if hard_reset:
            self.players = []
            self.teams = []
        return self.tournament_id

    def clear_all(self) -> None:
        self.players = []
        self.teams = []
        self.schedule = []
        self.ledger = PairLedger()
        self.rotation_index = 0

    # --------------------------------------------------------------- snapshot

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "players": [p.to_dict() for p in self.players],
            "teams": [t.to_dict() for t in self.teams],
            "roundCount": self.round_count,
            "courtCount": self.court_count,
            "schedule": [rnd.to_dict() for rnd in self.schedule],
            "ledger": self.ledger.to_dict(),
            "tournamentId": self.tournament_id,
            "rotationIndex": self.rotation_index,
        }

    @classmethod
    def from_snapshot(cls, data: Any) -> "Tournament":
        """Rebuild a session from a snapshot, defaulting field by field.

        Also reads the older snapshot key names
        (``rounds``, ``courts``, ``history``).
        """

        if not isinstance(data, dict):
            data = {}
        try:
            mode = Mode(data.get("mode") or Mode.INDIVIDUAL.value)
        except ValueError:
            mode = Mode.INDIVIDUAL
        players = [Player.from_dict(p) for p in (data.get("players") or []) if isinstance(p, dict)]
        teams = [Team.from_dict(t) for t in (data.get("teams") or []) if isinstance(t, dict)]
        rounds_raw = data.get("roundCount", data.get("rounds"))
        courts_raw = data.get("courtCount", data.get("courts"))
        ledger_raw = data.get("ledger", data.get("history"))
        schedule_raw = data.get("schedule") or []
        schedule = [round_from_dict(mode, r) for r in schedule_raw] if isinstance(schedule_raw, list) else []
        return cls(
            mode=mode,
            players=players,
            teams=teams,
            round_count=_int_or(rounds_raw, DEFAULT_ROUNDS),
            court_count=_int_or(courts_raw, DEFAULT_COURTS),
            schedule=schedule,
            ledger=PairLedger.from_dict(ledger_raw),
            tournament_id=str(data.get("tournamentId") or generate_id()),
            rotation_index=_int_or(data.get("rotationIndex"), len(schedule), minimum=0),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_snapshot(), ensure_ascii=False, indent=2)

    @classmethod
    def from_json(cls, s: str) -> "Tournament":
        return cls.from_snapshot(json.loads(s))

    def save(self, path: str | Path) -> Path:
        p = Path(path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.to_json(), encoding="utf-8")
        return p

    @classmethod
    def load(cls, path: str | Path) -> "Tournament":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"State file not found: {p}")
        try:
            return cls.from_json(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid tournament file {p}: {e}") from e
