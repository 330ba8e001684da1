"""
Rival Sweeper - Interactive Demo

Run with: streamlit run app/demo.py
"""

import random
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from typing import List, Optional, Set

from rivalsweeper import Board, create_board, format_possibility_flags, registry
from rivalsweeper.analysis import BOARD_PRESETS, reveal_random_ally_tiles
from rivalsweeper.engine import ALLY, HAZARD, NEUTRAL, RIVAL
from rivalsweeper.possibility import analyze_board
from rivalsweeper.signals import generate_hidden_clues
from rivalsweeper.strategies import GameState, ReasoningStrategy, RivalContext
from rivalsweeper.utils import Position, position_to_key

FACTION_COLORS = {
    ALLY: "#2e7d32",
    RIVAL: "#c62828",
    NEUTRAL: "#616161",
    HAZARD: "#ef6c00",
}


def render_board_html(
    board: Board,
    selected: Optional[List[Position]] = None,
    guaranteed: Optional[Set[Position]] = None,
    show_factions: bool = False,
) -> str:
    """Render the board as HTML with styling."""
    # Scale cell size based on board width
    if board.width >= 16:
        cell_size = 20
        font_size = "13px"
    else:
        cell_size = 28
        font_size = "15px"

    order = {pos: i + 1 for i, pos in enumerate(selected or [])}
    guaranteed = guaranteed or set()

    html = '<div style="font-family: monospace; line-height: 1.2;">'
    html += '<table style="border-collapse: collapse; margin: auto;">'

    for y in range(board.height):
        html += "<tr>"
        for x in range(board.width):
            tile = board.tiles.get((x, y))
            if tile is None or tile.faction not in FACTION_COLORS:
                html += f'<td style="width: {cell_size}px; height: {cell_size}px;"></td>'
                continue

            if tile.revealed:
                cell = str(tile.adjacency_count)
                bg = "#e8f5e9" if tile.revealed_by == ALLY else "#ffebee"
                text_color = FACTION_COLORS[tile.faction]
            elif (x, y) in order:
                cell = str(order[(x, y)])
                bg = "#ffeb3b"
                text_color = FACTION_COLORS[tile.faction]
            elif show_factions:
                cell = tile.faction[0].upper()
                bg = "#c0c0c0"
                text_color = FACTION_COLORS[tile.faction]
            else:
                cell = "."
                bg = "#c0c0c0"
                text_color = "#666666"

            border = "2px solid #c62828" if (x, y) in guaranteed else "1px solid #999"

            html += f'''<td style="
                width: {cell_size}px; height: {cell_size}px;
                text-align: center;
                background: {bg};
                border: {border};
                color: {text_color};
                font-weight: bold;
                font-size: {font_size};
            ">{cell}</td>'''
        html += "</tr>"

    html += "</table></div>"
    return html


def main():
    st.set_page_config(
        page_title="Rival Sweeper",
        page_icon="🎯",
        layout="wide",
    )

    st.title("Rival Sweeper")
    st.markdown("""
    Watch a rival strategy reason about a four-faction board and pick its reveals.
    """)

    # Sidebar configuration
    st.sidebar.header("Board Configuration")

    preset = st.sidebar.selectbox("Board Preset", list(BOARD_PRESETS))
    width, height, counts = BOARD_PRESETS[preset]

    ally_reveals = st.sidebar.slider("Ally reveals", 0, counts[ALLY], 6)
    seed = st.sidebar.number_input("Seed", min_value=0, value=7, step=1)

    strategy_name = st.sidebar.selectbox(
        "Rival Strategy",
        registry.available_types(),
        index=registry.available_types().index("reasoning"),
    )
    never_hazards = st.sidebar.checkbox("Rival never targets hazards")
    show_factions = st.sidebar.checkbox("Show hidden factions")

    current_settings = (preset, ally_reveals, int(seed))
    if st.session_state.get("prev_settings") != current_settings:
        rng = random.Random(int(seed))
        board = create_board(width, height, counts, rng)
        st.session_state.board = reveal_random_ally_tiles(board, ally_reveals, rng)
        st.session_state.selection = []
        st.session_state.strategy = None
        st.session_state.prev_settings = current_settings

    board: Board = st.session_state.board
    analysis = analyze_board(board)

    col1, col2 = st.columns([2, 1])

    with col1:
        st.subheader("Board")

        if st.button("Run Rival Turn", type="primary"):
            rng = random.Random(int(seed))
            strategy = registry.create(strategy_name, rng=rng)
            context = RivalContext(never_targets_hazards=never_hazards)
            hidden = generate_hidden_clues(board, rng)
            st.session_state.selection = strategy.select_tiles_to_reveal(
                GameState(board=board), hidden, context
            )
            st.session_state.strategy = strategy
            st.rerun()

        selection = st.session_state.selection
        html = render_board_html(
            board,
            selected=[t.position for t in selection],
            guaranteed=analysis.guaranteed_positions(),
            show_factions=show_factions,
        )
        st.markdown(html, unsafe_allow_html=True)

        st.markdown("""
        <div style="font-size: 12px; margin-top: 10px;">
        <b>Legend:</b>
        <span style="background: #c0c0c0; color: #666666; padding: 2px 6px; margin: 0 4px; font-weight: bold;">.</span> Unrevealed
        <span style="background: #e8f5e9; padding: 2px 6px; margin: 0 4px;">n</span> Revealed by ally
        <span style="background: #ffeb3b; padding: 2px 6px; margin: 0 4px; font-weight: bold;">1</span> Rival pick order
        <span style="border: 2px solid #c62828; padding: 2px 6px; margin: 0 4px;">&nbsp;</span> Guaranteed rival
        </div>
        """, unsafe_allow_html=True)

        st.markdown("**Deduction grid**")
        st.code(format_possibility_flags(board, analysis))

    with col2:
        st.subheader("Rival Turn")

        strategy = st.session_state.strategy
        if strategy is None:
            st.info("Run a rival turn to see its choices.")
            return

        selection = st.session_state.selection
        st.metric("Strategy", f"{strategy.icon} {strategy.name}")
        st.metric("Tiles selected", len(selection))
        st.metric("Rival hits", sum(1 for t in selection if t.faction == RIVAL))

        for i, tile in enumerate(selection, start=1):
            st.text(f"{i}. {position_to_key(tile.position)} -> {tile.faction}")

        if isinstance(strategy, ReasoningStrategy) and strategy.last_priorities:
            st.markdown("---")
            st.markdown("**Last priority breakdown**")
            rows = []
            for tp in strategy.last_priorities[:10]:
                b = tp.breakdown
                rows.append({
                    "tile": position_to_key(tp.tile.position),
                    "total": round(tp.score, 3),
                    "base": round(b.base, 3),
                    "rival": round(b.rival_bonus, 3),
                    "hazard": round(b.hazard_penalty, 3),
                    "no signal": round(b.no_signal_hazard_penalty, 3),
                })
            st.table(rows)


if __name__ == "__main__":
    main()
