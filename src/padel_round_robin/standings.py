from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from padel_round_robin.scheduler import (
    IndividualRound,
    Match,
    Mode,
    Player,
    Round,
    Team,
    TeamsRound,
    team_key,
    team_label,
)

WIN_POINTS = 3
DRAW_POINTS = 1

STANDINGS_COLUMNS = ["Pos", "Name", "P", "W", "D", "L", "GF", "GA", "GD", "Pts"]


@dataclass
class StandingsRow:
    id: str
    name: str
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def apply(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.wins += 1
            self.points += WIN_POINTS
        elif scored < conceded:
            self.losses += 1
        else:
            self.draws += 1
            self.points += DRAW_POINTS


Table = Dict[str, StandingsRow]


def _add_row(table: Table, row_id: str, name: str) -> StandingsRow:
    row = table.get(row_id)
    if row is None:
        row = StandingsRow(id=row_id, name=name)
        table[row_id] = row
    return row


def _round_matches(rnd: Round) -> List[Match]:
    if isinstance(rnd, (TeamsRound, IndividualRound)):
        return rnd.matches
    raise TypeError(f"unknown round type: {type(rnd).__name__}")


def _team_side_id(
    side: Sequence[Player],
    team_id: Optional[str],
    team_name: Optional[str],
    teams: Sequence[Team],
) -> str:
    """Standings identity for one side of a Teams mode match.

    The stored team id wins. Older matches without one are resolved by team
    name, then by membership; the sorted player-id key is the last resort so
    recreated teams with the same players still merge.
    """

    if team_id:
        return team_id
    if team_name:
        for t in teams:
            if t.name == team_name:
                return t.id
    key = team_key(side)
    for t in teams:
        if t.players and team_key(t.players) == key:
            return t.id
    return key


def _team_side_name(row_id: str, side: Sequence[Player], team_name: Optional[str], teams: Sequence[Team]) -> str:
    for t in teams:
        if t.id == row_id:
            return t.name
    return team_name or team_label(side)


def compute_standings(
    mode: Mode,
    schedule: Sequence[Round],
    players: Sequence[Player],
    teams: Sequence[Team],
    played_only: bool = True,
) -> List[StandingsRow]:
    """Fold every (played) match into a ranked table.

    One row per roster entity, plus any entity a match references that is no
    longer on the roster. Order: points, goal difference, goals for (all
    descending); insertion order beyond that.
    """

    table: Table = {}
    if mode == Mode.INDIVIDUAL:
        for p in players:
            _add_row(table, p.id, p.name)
    else:
        for t in teams:
            _add_row(table, t.id, t.name)

    for rnd in schedule:
        for m in _round_matches(rnd):
            if played_only and not m.played:
                continue
            score_a, score_b = int(m.score_a or 0), int(m.score_b or 0)
            if mode == Mode.INDIVIDUAL:
                for p in m.team_a:
                    _add_row(table, p.id, p.name).apply(score_a, score_b)
                for p in m.team_b:
                    _add_row(table, p.id, p.name).apply(score_b, score_a)
            else:
                id_a = _team_side_id(m.team_a, m.team_id_a, m.team_name_a, teams)
                id_b = _team_side_id(m.team_b, m.team_id_b, m.team_name_b, teams)
                _add_row(table, id_a, _team_side_name(id_a, m.team_a, m.team_name_a, teams)).apply(score_a, score_b)
                _add_row(table, id_b, _team_side_name(id_b, m.team_b, m.team_name_b, teams)).apply(score_b, score_a)

    rows = list(table.values())
    # sorted() is stable, so equal keys keep insertion order
    return sorted(rows, key=lambda r: (-r.points, -r.goal_difference, -r.goals_for))


def standings_records(rows: Sequence[StandingsRow]) -> List[Tuple]:
    return [
        (
            pos,
            r.name,
            r.played,
            r.wins,
            r.draws,
            r.losses,
            r.goals_for,
            r.goals_against,
            r.goal_difference,
            r.points,
        )
        for pos, r in enumerate(rows, start=1)
    ]


def standings_frame(rows: Sequence[StandingsRow]) -> pd.DataFrame:
    return pd.DataFrame(standings_records(rows), columns=STANDINGS_COLUMNS)
