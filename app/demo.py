"""
Mines Predictor - Interactive Demo

Run with: streamlit run app/demo.py
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from typing import Optional

from mines_predictor import (
    MINE,
    PredictorConfig,
    PredictorSession,
    confidence_level,
    encode_image,
)
from mines_predictor.session import SELECT_CREDENTIALS
from mines_predictor.utils import cell_label


LEVEL_COLORS = {"high": "#34d399", "medium": "#facc15", "low": "#f87171"}


def render_board_html(session: PredictorSession, show_all: bool = False) -> str:
    """Render the board as HTML; show_all only changes what is drawn."""
    state = session.state
    n = state.grid_size
    cell_size = 64 if n <= 5 else 52

    html = '<div style="font-family: monospace; line-height: 1.2;">'
    html += '<table style="border-collapse: separate; border-spacing: 6px; margin: auto;">'

    for r in range(n):
        html += "<tr>"
        for c in range(n):
            is_mine = state.grid[r][c] == MINE
            prediction = session.prediction_at(r, c)

            if state.revealed[r][c]:
                display = "💣" if is_mine else "💎"
                bg = "#b91c1c" if is_mine else "#059669"
                border = "1px solid #999"
            elif show_all:
                display = f'<span style="opacity: 0.4;">{"💣" if is_mine else "💎"}</span>'
                bg = "#3f1d1d" if is_mine else "#0f3b2e"
                border = "1px solid #999"
            else:
                display = ""
                bg = "#1e293b"
                border = "1px solid #334155"

            if prediction is not None:
                border = "3px solid #60a5fa"
                display += (
                    f'<div style="font-size: 10px; color: #60a5fa;">'
                    f"SAFE {prediction.probability:.0f}%</div>"
                )

            html += f'''<td title="{cell_label(r, c)}" style="
                width: {cell_size}px; height: {cell_size}px;
                text-align: center;
                background: {bg};
                border: {border};
                border-radius: 12px;
                color: #ffffff;
                font-weight: bold;
                font-size: 24px;
            ">{display}</td>'''
        html += "</tr>"

    html += "</table></div>"
    return html


def get_session() -> PredictorSession:
    if "session" not in st.session_state:
        st.session_state.session = PredictorSession(config=PredictorConfig.from_env())
    return st.session_state.session


def main():
    st.set_page_config(
        page_title="Mines Predictor",
        page_icon="💎",
        layout="wide",
    )

    st.title("Mines Predictor")
    st.markdown("""
    Play Mines with AI-assisted safe-cell predictions from a screenshot.
    """)

    session = get_session()

    # Sidebar configuration
    st.sidebar.header("Controls")

    size = st.sidebar.radio(
        "Grid",
        list(session.config.grid_sizes),
        index=list(session.config.grid_sizes).index(session.grid_size)
        if session.grid_size in session.config.grid_sizes
        else 0,
        format_func=lambda s: f"{s}x{s}",
        horizontal=True,
    )
    if size != session.grid_size:
        session.change_grid_size(size)
        st.rerun()

    mines = st.sidebar.slider(
        "Mines", 1, session.grid_size * session.grid_size - 1, session.num_mines
    )
    session.set_mine_count(mines)

    if st.sidebar.button("New Round", type="primary"):
        session.start_new_round()
        st.rerun()

    st.sidebar.header("AI Scanner")
    upload = st.sidebar.file_uploader("Scan screenshot", type=["png", "jpg", "jpeg"])
    if upload is not None and st.sidebar.button("Analyze", disabled=session.is_analyzing):
        image = encode_image(upload.getvalue(), upload.type or "image/jpeg")
        with st.spinner("Processing..."):
            asyncio.run(session.request_analysis(image))
        st.rerun()

    if st.sidebar.button("Settings"):
        session.open_settings()

    if session.settings_open:
        with st.sidebar.expander("System Configuration", expanded=True):
            if st.button("Select API Key"):
                asyncio.run(session.select_credentials())
            if session.notification:
                st.warning(session.notification)
            st.checkbox(
                "Developer mode (show all)",
                value=session.show_all,
                on_change=session.toggle_debug_reveal,
            )
            if st.button("Close"):
                session.close_settings()
                st.rerun()

    col1, col2 = st.columns([3, 1])

    with col1:
        confidence = session.confidence
        mcol1, mcol2 = st.columns(2)
        with mcol1:
            level = confidence_level(confidence)
            st.markdown(
                f'**Confidence index** <span style="color: {LEVEL_COLORS[level]}; '
                f'font-size: 24px; font-weight: bold;">{confidence:.1f}%</span>',
                unsafe_allow_html=True,
            )
        with mcol2:
            st.metric("AI points", len(session.predictions))

        state = session.state
        st.markdown(render_board_html(session, session.show_all), unsafe_allow_html=True)

        if not state.is_game_over:
            n = state.grid_size
            for r in range(n):
                cols = st.columns(n)
                for c in range(n):
                    with cols[c]:
                        if st.button(
                            cell_label(r, c),
                            key=f"cell-{state.round_id}-{r}-{c}",
                            disabled=state.revealed[r][c],
                        ):
                            session.reveal_cell(r, c)
                            st.rerun()
        elif state.is_victory:
            st.success("WIN")
        else:
            st.error("LOSS")

        message: Optional[str] = session.error_message or session.analysis_text
        if message:
            if session.error_message:
                st.error(message)
                if session.directive == SELECT_CREDENTIALS:
                    st.info("Open the settings to select an API key.")
            else:
                st.info(message)

        for p in session.predictions.predictions:
            st.text(f"{cell_label(p.r, p.c)}  {p.probability:.0f}%  {p.reason}")

    with col2:
        st.subheader("Logs")
        items = session.history_items()
        if not items:
            st.info("Finished rounds appear here.")
        for item in items:
            st.text(
                f"{item.timestamp}  {item.grid_size}x{item.grid_size} • "
                f"{item.num_mines}M  {item.outcome}"
            )


if __name__ == "__main__":
    main()
