from __future__ import annotations

import random
from datetime import date
from io import BytesIO

import openpyxl

from padel_round_robin.export import (
    SCHEDULE_COLUMNS,
    default_file_stem,
    schedule_csv,
    schedule_records,
    standings_csv,
    workbook_bytes,
    write_workbook,
)
from padel_round_robin.scheduler import IndividualRound
from padel_round_robin.tournament import Tournament


def make_tournament(n=9, rounds=2, courts=2):
    t = Tournament(round_count=rounds, court_count=courts)
    for i in range(n):
        t.add_player(f"P{i}")
    t.generate_schedule(random.Random(3))
    return t


def test_default_file_stem():
    assert default_file_stem(today=date(2024, 5, 1)) == "padel_rr_2024-05-01"
    assert default_file_stem("cup", date(2024, 12, 31)) == "cup_2024-12-31"


def test_schedule_records_one_row_per_court():
    t = make_tournament()
    t.update_score(0, 1, "A", 6)
    records = schedule_records(t)
    assert len(records) == 4
    assert [(r["Round"], r["Court"]) for r in records] == [(1, 1), (1, 2), (2, 1), (2, 2)]
    first = records[0]
    assert first["Team A"] == t.schedule[0].matches[0].label_a
    assert first["Resting"] == t.schedule[0].resting[0].name
    assert records[1]["Resting"] == ""
    assert records[1]["Score A"] == 6 and records[1]["Played"] is True


def test_empty_round_still_listed():
    t = Tournament()
    for name in ("A", "B", "C"):
        t.add_player(name)
    t.schedule = [IndividualRound(matches=[], resting=list(t.players))]
    (row,) = schedule_records(t)
    assert row["Round"] == 1 and row["Court"] == ""
    assert row["Resting"] == "A, B, C"


def test_csv_headers():
    t = make_tournament()
    assert schedule_csv(t).splitlines()[0] == ",".join(SCHEDULE_COLUMNS)
    lines = standings_csv(t.standings(played_only=False)).splitlines()
    assert lines[0] == "Pos,Name,P,W,D,L,GF,GA,GD,Pts"
    assert len(lines) == 1 + 9


def test_write_workbook(tmp_path):
    t = make_tournament()
    path = write_workbook(t, tmp_path / "out.xlsx")
    wb = openpyxl.load_workbook(path)
    assert wb.sheetnames == ["Standings", "Schedule", "Info"]
    assert wb["Standings"].max_row == 1 + 9
    assert [c.value for c in wb["Schedule"][1]] == SCHEDULE_COLUMNS
    assert wb["Schedule"].max_row == 1 + 4
    info = {row[0]: row[1] for row in wb["Info"].iter_rows(values_only=True)}
    assert info["Tournament"] == t.tournament_id
    assert info["Mode"] == "Individual"
    assert info["Rounds"] == 2


def test_workbook_bytes():
    t = make_tournament()
    wb = openpyxl.load_workbook(BytesIO(workbook_bytes(t, played_only=False)))
    assert wb.sheetnames == ["Standings", "Schedule", "Info"]
    assert wb["Standings"].max_row == 1 + 9
