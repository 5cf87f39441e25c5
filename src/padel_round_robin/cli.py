from __future__ import annotations

import random
from pathlib import Path
from typing import List, Optional

import typer

from padel_round_robin.export import (
    default_file_stem,
    schedule_csv,
    standings_csv,
    write_workbook,
)
from padel_round_robin.roster import build_roster_template_bytes, load_roster
from padel_round_robin.scheduler import Mode, Round
from padel_round_robin.standings import standings_frame
from padel_round_robin.tournament import (
    DEFAULT_COURTS,
    DEFAULT_ROUNDS,
    MAX_COURTS,
    MAX_ROUNDS,
    Tournament,
)

DEFAULT_STATE_FILE = "padel-rr-v1.json"

app = typer.Typer(help="Padel round robin: rotating-partner and fixed-team schedules.")


def _rng(seed: Optional[int]) -> Optional[random.Random]:
    return random.Random(seed) if seed is not None else None


def _load_state(state_file: str) -> Tournament:
    try:
        return Tournament.load(state_file)
    except (FileNotFoundError, ValueError) as e:
        raise typer.BadParameter(str(e))


def _print_round(t: Tournament, index: int, rnd: Round) -> None:
    print(f"Round {index + 1}")
    if not rnd.matches:
        print("  (no matches)")
    for court, m in enumerate(rnd.matches, start=1):
        score = f"{m.score_a}-{m.score_b}" if m.played else "-"
        print(f"  Court {court}: {m.label_a}  vs  {m.label_b}   [{score}]")
    resting = t.resting_for_round(index)
    if resting:
        print(f"  Resting: {', '.join(x.name for x in resting)}")


@app.command()
def new(
    roster_file: str = typer.Option("", help="Roster (.xlsx/.csv/.txt). 'Name' column, optional 'Team' column"),
    player: List[str] = typer.Option([], "--player", "-p", help="Player name (repeatable), added after the roster file"),
    mode: Mode = typer.Option(Mode.INDIVIDUAL, case_sensitive=False, help="INDIVIDUAL (rotating pairs) or TEAMS (fixed pairs)"),
    rounds: int = typer.Option(DEFAULT_ROUNDS, help=f"Number of rounds (1..{MAX_ROUNDS})"),
    courts: int = typer.Option(DEFAULT_COURTS, help=f"Number of courts (1..{MAX_COURTS})"),
    auto_teams: bool = typer.Option(False, help="TEAMS mode: pair players into random teams instead of using the Team column"),
    seed: Optional[int] = typer.Option(None, help="Random seed for a reproducible schedule"),
    state_file: str = typer.Option(DEFAULT_STATE_FILE, help="Tournament state (JSON) to write"),
):
    """Start a tournament and generate its schedule."""
    if rounds < 1 or courts < 1:
        raise typer.BadParameter("rounds and courts must be at least 1")
    rng = _rng(seed)
    t = Tournament(mode=mode)
    t.set_round_count(rounds)
    t.set_court_count(courts)

    if roster_file:
        try:
            players, teams = load_roster(roster_file)
        except (FileNotFoundError, ValueError) as e:
            raise typer.BadParameter(str(e))
        for p in players:
            t.add_player(p.name)
        if teams and not auto_teams:
            # re-key team members onto the deduplicated roster
            by_name = {p.name.lower(): p for p in t.players}
            for team in teams:
                team.players = tuple(by_name[p.name.lower()] for p in team.players)
            t.teams = teams
    for name in player:
        t.add_player(name)

    if t.mode == Mode.TEAMS and (auto_teams or not t.teams):
        t.create_teams_auto(rng)

    if not t.can_generate:
        need = "4 players" if t.mode == Mode.INDIVIDUAL else "2 teams"
        raise typer.BadParameter(f"Not enough entries to schedule: need at least {need}")

    t.generate_schedule(rng)
    path = t.save(state_file)
    for i, rnd in enumerate(t.schedule):
        _print_round(t, i, rnd)
    print(f"Tournament {t.tournament_id}: {len(t.schedule)} rounds / {t.court_count} courts")
    print(f"State saved: {path}")


@app.command("next-round")
def next_round(
    state_file: str = typer.Option(DEFAULT_STATE_FILE, help="Tournament state (JSON)"),
    seed: Optional[int] = typer.Option(None, help="Random seed"),
):
    """Append one more round to the schedule."""
    t = _load_state(state_file)
    rnd = t.add_round(_rng(seed))
    if rnd is None:
        raise typer.BadParameter("Not enough players/teams to add a round")
    _print_round(t, len(t.schedule) - 1, rnd)
    t.save(state_file)
    print(f"State saved: {state_file}")


@app.command("delete-round")
def delete_round(
    round_num: int = typer.Option(..., "--round", help="Round number (1-based)"),
    state_file: str = typer.Option(DEFAULT_STATE_FILE, help="Tournament state (JSON)"),
):
    """Remove a round (pairing counters are rolled back)."""
    t = _load_state(state_file)
    if t.delete_round(round_num - 1) is None:
        raise typer.BadParameter(f"No round {round_num} (schedule has {len(t.schedule)})")
    t.save(state_file)
    print(f"Round {round_num} deleted. Rounds left: {len(t.schedule)}")


@app.command()
def score(
    round_num: int = typer.Option(..., "--round", help="Round number (1-based)"),
    court: int = typer.Option(..., help="Court number (1-based)"),
    score_a: int = typer.Option(..., "--a", help="Games won by side A"),
    score_b: int = typer.Option(..., "--b", help="Games won by side B"),
    state_file: str = typer.Option(DEFAULT_STATE_FILE, help="Tournament state (JSON)"),
):
    """Record a match result."""
    t = _load_state(state_file)
    if not (t.update_score(round_num - 1, court - 1, "A", score_a) and t.update_score(round_num - 1, court - 1, "B", score_b)):
        raise typer.BadParameter(f"No match on court {court} in round {round_num}")
    t.save(state_file)
    m = t.schedule[round_num - 1].matches[court - 1]
    print(f"Round {round_num} court {court}: {m.label_a} {m.score_a}-{m.score_b} {m.label_b}")


@app.command()
def standings(
    state_file: str = typer.Option(DEFAULT_STATE_FILE, help="Tournament state (JSON)"),
    include_unplayed: bool = typer.Option(False, help="Count matches without a recorded score as 0-0"),
):
    """Print the standings table."""
    t = _load_state(state_file)
    rows = t.standings(played_only=not include_unplayed)
    if not rows:
        print("No standings yet.")
        return
    print(standings_frame(rows).to_string(index=False))


@app.command()
def export(
    state_file: str = typer.Option(DEFAULT_STATE_FILE, help="Tournament state (JSON)"),
    output_dir: str = typer.Option(".", help="Directory for the CSV/xlsx files"),
    include_unplayed: bool = typer.Option(False, help="Count matches without a recorded score as 0-0"),
):
    """Write standings and schedule as CSV plus one xlsx workbook."""
    t = _load_state(state_file)
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = default_file_stem()
    played_only = not include_unplayed

    standings_path = out_dir / f"{stem}_standings.csv"
    standings_path.write_text(standings_csv(t.standings(played_only=played_only)), encoding="utf-8")
    schedule_path = out_dir / f"{stem}_schedule.csv"
    schedule_path.write_text(schedule_csv(t), encoding="utf-8")
    xlsx_path = write_workbook(t, out_dir / f"{stem}.xlsx", played_only=played_only)

    print(f"Standings CSV: {standings_path}")
    print(f"Schedule CSV: {schedule_path}")
    print(f"Excel: {xlsx_path}")


@app.command()
def template(output_file: str = typer.Option("roster_template.xlsx", help="Output path")):
    """Write an empty roster workbook."""
    Path(output_file).write_bytes(build_roster_template_bytes())
    print(f"Created: {output_file}")


if __name__ == "__main__":
    app()
