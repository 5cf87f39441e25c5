from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import openpyxl
import pandas as pd

from padel_round_robin.scheduler import Player, Team, generate_id

ROSTER_TEMPLATE_SHEET_NAME = "Roster"
ROSTER_TEMPLATE_HEADERS = ["Name", "Team"]

NAME_KEYWORDS = ("name", "player", "nombre", "jugador")
TEAM_KEYWORDS = ("team", "pair", "equipo", "pareja")


def build_roster_template_bytes(
    sheet_name: str = ROSTER_TEMPLATE_SHEET_NAME,
    headers: List[str] = ROSTER_TEMPLATE_HEADERS,
) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(list(headers))
    ws.freeze_panes = "A2"
    with BytesIO() as bio:
        wb.save(bio)
        return bio.getvalue()


def _norm_header(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip().replace("\u3000", " ").lower()


def _pick_col(df: pd.DataFrame, include_any: Tuple[str, ...], exclude_any: Tuple[str, ...] = ()) -> Optional[Any]:
    """Pick the first column whose header contains one of the keywords."""
    for c in df.columns:
        h = _norm_header(c)
        if not h:
            continue
        if any(k in h for k in include_any) and not any(k in h for k in exclude_any):
            return c
    return None


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        wb = openpyxl.load_workbook(str(path), read_only=True)
        sheet = wb.active
        data = list(sheet.values)
        wb.close()
        if not data:
            return pd.DataFrame()
        return pd.DataFrame(data[1:], columns=data[0])
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    # plain text: one name per line
    lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    return pd.DataFrame({"Name": [line for line in lines if line]})


def _cell(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def roster_from_frame(df: pd.DataFrame) -> Tuple[List[Player], List[Team]]:
    """Players (and fixed teams, when a team column is filled) from a table."""

    if df.empty:
        return [], []
    col_name = _pick_col(df, NAME_KEYWORDS, exclude_any=TEAM_KEYWORDS)
    if col_name is None:
        if len(df.columns) == 1:
            col_name = df.columns[0]
        else:
            raise ValueError(
                "Roster column 'Name' not found."
                f" Headers: {[_norm_header(c) for c in list(df.columns)[:12]]}"
            )
    col_team = _pick_col(df, TEAM_KEYWORDS)

    players: List[Player] = []
    seen: set[str] = set()
    members: Dict[str, List[Player]] = {}
    for _, row in df.iterrows():
        name = _cell(row.get(col_name))
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        player = Player(id=generate_id(), name=name)
        players.append(player)
        team_name = _cell(row.get(col_team)) if col_team is not None else ""
        if team_name:
            members.setdefault(team_name, []).append(player)

    teams: List[Team] = []
    for team_name, team_players in members.items():
        if len(team_players) != 2:
            raise ValueError(f"Team '{team_name}' has {len(team_players)} players (expected 2)")
        teams.append(Team(id=generate_id(), name=team_name, players=tuple(team_players)))
    return players, teams


def load_roster(file_path: str | Path) -> Tuple[List[Player], List[Team]]:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Roster file not found: {path}")
    return roster_from_frame(_read_frame(path))
