from __future__ import annotations

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import openpyxl
import pandas as pd

from padel_round_robin.scheduler import Mode
from padel_round_robin.standings import STANDINGS_COLUMNS, StandingsRow, standings_frame, standings_records
from padel_round_robin.tournament import Tournament

SCHEDULE_COLUMNS = ["Round", "Court", "Team A", "Team B", "Score A", "Score B", "Played", "Resting"]


def default_file_stem(prefix: str = "padel_rr", today: Optional[date] = None) -> str:
    return f"{prefix}_{(today or date.today()).isoformat()}"


def standings_csv(rows: Sequence[StandingsRow]) -> str:
    return standings_frame(rows).to_csv(index=False)


def schedule_records(tournament: Tournament) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for r_idx, rnd in enumerate(tournament.schedule, start=1):
        resting = ", ".join(x.name for x in tournament.resting_for_round(r_idx - 1))
        if not rnd.matches:
            records.append({c: "" for c in SCHEDULE_COLUMNS} | {"Round": r_idx, "Resting": resting})
            continue
        for court, m in enumerate(rnd.matches, start=1):
            records.append(
                {
                    "Round": r_idx,
                    "Court": court,
                    "Team A": m.label_a,
                    "Team B": m.label_b,
                    "Score A": m.score_a,
                    "Score B": m.score_b,
                    "Played": m.played,
                    # one line per round is enough
                    "Resting": resting if court == 1 else "",
                }
            )
    return records


def schedule_frame(tournament: Tournament) -> pd.DataFrame:
    return pd.DataFrame(schedule_records(tournament), columns=SCHEDULE_COLUMNS)


def schedule_csv(tournament: Tournament) -> str:
    return schedule_frame(tournament).to_csv(index=False)


def snapshot_json(tournament: Tournament) -> str:
    return tournament.to_json()


def build_workbook(tournament: Tournament, played_only: bool = True) -> openpyxl.Workbook:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Standings"
    ws.append(STANDINGS_COLUMNS)
    for record in standings_records(tournament.standings(played_only=played_only)):
        ws.append(list(record))
    ws.freeze_panes = "A2"

    ws2 = wb.create_sheet("Schedule")
    ws2.append(SCHEDULE_COLUMNS)
    for record in schedule_records(tournament):
        ws2.append([record[c] for c in SCHEDULE_COLUMNS])
    ws2.freeze_panes = "A2"

    ws3 = wb.create_sheet("Info")
    ws3.append(["Tournament", tournament.tournament_id])
    ws3.append(["Mode", "Individual" if tournament.mode == Mode.INDIVIDUAL else "Teams"])
    ws3.append(["Courts", tournament.court_count])
    ws3.append(["Rounds", len(tournament.schedule)])
    return wb


def workbook_bytes(tournament: Tournament, played_only: bool = True) -> bytes:
    with BytesIO() as bio:
        build_workbook(tournament, played_only).save(bio)
        return bio.getvalue()


def write_workbook(tournament: Tournament, output_path: str | Path, played_only: bool = True) -> Path:
    out = Path(output_path)
    build_workbook(tournament, played_only).save(str(out))
    return out
