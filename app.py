from __future__ import annotations

import io
import zipfile

import streamlit as st

from padel_round_robin import export
from padel_round_robin.scheduler import Mode
from padel_round_robin.standings import standings_frame
from padel_round_robin.tournament import MAX_COURTS, MAX_ROUNDS, MAX_SCORE, Tournament


st.set_page_config(page_title="Padel Round Robin", layout="wide")

st.title("Padel Round Robin")
st.caption("Individual: partners rotate every round. Teams: fixed pairs, classic round robin.")


def _tournament() -> Tournament:
    if "tournament" not in st.session_state:
        st.session_state.tournament = Tournament()
    return st.session_state.tournament


def _build_zip_bytes(*, files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            if not name or data is None:
                continue
            zf.writestr(name, data)
    return buf.getvalue()


t = _tournament()

with st.sidebar:
    st.header("Settings")

    mode_label = st.radio("Mode", options=["Individual", "Teams"], index=0 if t.mode == Mode.INDIVIDUAL else 1, horizontal=True)
    t.mode = Mode.INDIVIDUAL if mode_label == "Individual" else Mode.TEAMS

    t.set_round_count(st.number_input("Rounds", min_value=1, max_value=MAX_ROUNDS, value=t.round_count, step=1))
    t.set_court_count(st.number_input("Courts", min_value=1, max_value=MAX_COURTS, value=t.court_count, step=1))

    if st.button("New tournament", use_container_width=True):
        t.new_tournament(hard_reset=True)
        st.success("New tournament created")

    st.markdown("### Players")
    with st.form("add_player", clear_on_submit=True):
        name = st.text_input("Add player", value="")
        if st.form_submit_button("Add") and t.add_player(name) is None and name.strip():
            st.warning(f"'{name.strip()}' is already on the roster")
    st.caption(f"Players: {len(t.players)}")
    for p in list(t.players):
        c1, c2 = st.columns([4, 1])
        c1.write(p.name)
        if c2.button("✕", key=f"rm_{p.id}"):
            t.remove_player(p.id)
            st.rerun()
    if st.button("Clear all", use_container_width=True):
        t.clear_all()
        st.rerun()

    if t.mode == Mode.TEAMS:
        st.markdown("### Teams")
        c1, c2 = st.columns(2)
        if c1.button("Form teams", use_container_width=True):
            t.create_teams_auto()
        if c2.button("Reset teams", use_container_width=True):
            t.teams = []
        if not t.teams:
            st.caption("No teams yet.")
        for team in t.teams:
            st.write(f"**{team.name}**  \n{' · '.join(p.name for p in team.players)}")

    c1, c2 = st.columns(2)
    if c1.button("Generate", type="primary", disabled=not t.can_generate, use_container_width=True):
        t.generate_schedule()
    if c2.button("Next round", disabled=not t.can_generate, use_container_width=True):
        t.add_round()

    st.divider()
    uploaded = st.file_uploader("Import tournament (.json)", type=["json"])
    if uploaded is not None and st.button("Load", use_container_width=True):
        try:
            st.session_state.tournament = Tournament.from_json(uploaded.getvalue().decode("utf-8"))
            st.rerun()
        except ValueError as e:
            st.error(f"Invalid file: {e}")


st.subheader("Schedule and scores")
if not t.schedule:
    st.info("Generate the first round to see matches.")

for r_idx, rnd in enumerate(list(t.schedule)):
    with st.container(border=True):
        head, delete = st.columns([6, 1])
        head.markdown(f"**Round {r_idx + 1}**")
        resting = t.resting_for_round(r_idx)
        if resting:
            head.caption("Resting: " + ", ".join(x.name for x in resting))
        if delete.button("Delete", key=f"del_{r_idx}"):
            t.delete_round(r_idx)
            st.rerun()
        if not rnd.matches:
            st.caption("No matches this round.")
        for m_idx, m in enumerate(rnd.matches):
            c0, c1, c2, c3 = st.columns([1, 5, 2, 2])
            c0.caption(f"Court {m_idx + 1}")
            c1.write(f"{m.label_a}  \n{m.label_b}")
            a = c2.number_input("A", min_value=0, max_value=MAX_SCORE, value=m.score_a, key=f"a_{m.id}", label_visibility="collapsed")
            b = c3.number_input("B", min_value=0, max_value=MAX_SCORE, value=m.score_b, key=f"b_{m.id}", label_visibility="collapsed")
            if a != m.score_a:
                t.update_score(r_idx, m_idx, "A", a)
            if b != m.score_b:
                t.update_score(r_idx, m_idx, "B", b)


st.subheader("Standings")
include_unplayed = st.checkbox("Count matches without a score (0-0)", value=False)
rows = t.standings(played_only=not include_unplayed)
if not rows:
    st.info("Play or generate rounds to see the table.")
else:
    st.dataframe(standings_frame(rows), hide_index=True, use_container_width=True)

    stem = export.default_file_stem()
    standings_bytes = export.standings_csv(rows).encode("utf-8")
    schedule_bytes = export.schedule_csv(t).encode("utf-8")
    json_bytes = export.snapshot_json(t).encode("utf-8")
    xlsx_bytes = export.workbook_bytes(t, played_only=not include_unplayed)

    c1, c2, c3, c4 = st.columns(4)
    c1.download_button("Standings CSV", data=standings_bytes, file_name=f"{stem}_standings.csv", mime="text/csv", use_container_width=True)
    c2.download_button("Tournament JSON", data=json_bytes, file_name=f"{stem}.json", mime="application/json", use_container_width=True)
    c3.download_button(
        "Excel",
        data=xlsx_bytes,
        file_name=f"{stem}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True,
    )
    c4.download_button(
        "Everything (ZIP)",
        data=_build_zip_bytes(
            files={
                f"{stem}_standings.csv": standings_bytes,
                f"{stem}_schedule.csv": schedule_bytes,
                f"{stem}.json": json_bytes,
                f"{stem}.xlsx": xlsx_bytes,
            }
        ),
        file_name=f"{stem}.zip",
        mime="application/zip",
        use_container_width=True,
    )
