"""
OptiSaw - Beam Saw Panel Cutting Optimization
Streamlit web application for 2D guillotine cutting optimization.
"""

import streamlit as st
import io
import logging
import pandas as pd

from data_models import (
    BeamSawConfig, CutOrder, OptimizationStrategy, SortMethod, Trim, DEFAULT_KERF
)
from exceptions import OptimizationError
from optimization_unified import MAX_LOOKAHEAD_DEPTH, UnifiedOptimizer, build_result
from parsers_csv import load_panels
from report_generators import create_excel_report
from simple_reports import (generate_cutting_layout_text, generate_optimized_cutlist_csv,
                            generate_board_summary_csv)
from utils import (setup_logging, validate_file_upload, format_percentage,
                   display_optimization_metrics, display_board_summary)

logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="OptiSaw - Beam Saw Optimization",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)


def create_sample_data() -> str:
    """Sample cut list for trying the tool."""
    return """ID,WIDTH,HEIGHT,QTY,ROTATABLE
SIDE,560,720,4,no
SHELF,560,300,6,yes
DOOR,596,716,2,no
BACK,1180,720,2,yes
TOP,1200,600,1,yes"""


def board_config_sidebar() -> BeamSawConfig:
    """Collect board and saw settings from the sidebar."""
    st.sidebar.header("Board Settings")
    board_width = st.sidebar.number_input("Board Width (mm)", min_value=1, value=2800, step=1)
    board_height = st.sidebar.number_input("Board Height (mm)", min_value=1, value=2070, step=1)
    kerf = st.sidebar.number_input("Kerf (mm)", min_value=0, value=DEFAULT_KERF, step=1)

    with st.sidebar.expander("Trim (mm)"):
        trim_top = st.number_input("Top", min_value=0, value=0, step=1)
        trim_right = st.number_input("Right", min_value=0, value=0, step=1)
        trim_bottom = st.number_input("Bottom", min_value=0, value=0, step=1)
        trim_left = st.number_input("Left", min_value=0, value=0, step=1)

    cut_order = st.sidebar.selectbox(
        "First Cut Direction",
        [CutOrder.HORIZONTAL_FIRST, CutOrder.VERTICAL_FIRST],
        format_func=lambda order: "Horizontal first" if order == CutOrder.HORIZONTAL_FIRST else "Vertical first"
    )
    min_strip = st.sidebar.number_input("Minimum Usable Strip (mm)", min_value=0, value=0, step=1)

    return BeamSawConfig(
        board_width=int(board_width),
        board_height=int(board_height),
        kerf=int(kerf),
        trim=Trim(top=int(trim_top), right=int(trim_right),
                  bottom=int(trim_bottom), left=int(trim_left)),
        cut_order=cut_order,
        min_strip=int(min_strip),
    )


def strategy_selector():
    """Let the user narrow the strategy set; all are tried by default."""
    st.sidebar.header("Strategies")
    methods = st.sidebar.multiselect(
        "Sort Methods",
        list(SortMethod),
        default=list(SortMethod),
        format_func=lambda method: method.value
    )
    try_rotation = st.sidebar.checkbox("Also try rotating the first panel", value=True)
    lookahead_depth = st.sidebar.slider(
        "Look-ahead depth", min_value=0, max_value=MAX_LOOKAHEAD_DEPTH, value=0,
        help="Try every orientation of the first N panels (2^N packings per strategy)"
    )

    strategies = []
    for rotate_first in ([False, True] if try_rotation else [False]):
        for method in methods:
            suffix = "+rotate-first" if rotate_first else ""
            if lookahead_depth:
                suffix += f"+lookahead{lookahead_depth}"
            strategies.append(OptimizationStrategy(f"{method.value}{suffix}", method,
                                                   rotate_first, lookahead_depth))
    return strategies


def show_input_section():
    st.header("📊 Cut List")
    st.download_button("Download Sample Cut List", create_sample_data(), "sample_cutlist.csv", "text/csv")

    uploaded_file = st.file_uploader("Upload Cut List CSV", type=["csv"])
    use_sample = st.checkbox("Use sample data", value=uploaded_file is None)

    source = None
    if uploaded_file is not None and validate_file_upload(uploaded_file, ['.csv']):
        source = uploaded_file
    elif use_sample:
        source = io.StringIO(create_sample_data())

    if source is None:
        st.info("Upload a cut list or use the sample data to continue.")
        return None

    try:
        panels = load_panels(source)
    except ValueError as e:
        st.error(f"Could not read cut list: {e}")
        return None

    st.dataframe(pd.DataFrame([{
        'ID': p.id, 'Width': p.width, 'Height': p.height,
        'Qty': p.quantity, 'Rotatable': 'Yes' if p.rotatable else 'No'
    } for p in panels]), use_container_width=True)
    return panels


def show_results(result, config: BeamSawConfig, outcomes, order_name: str):
    st.header("📋 Results")
    display_optimization_metrics(result)
    st.caption(f"Strategy used: {result.strategy_used}")

    st.subheader("Boards")
    display_board_summary(result)

    st.subheader("Placements")
    rows = []
    for placement in result.placements:
        x, y = placement.to_board_coordinates(config)
        rows.append({
            'Board': placement.board_index + 1,
            'Panel': placement.instance_id,
            'X': x, 'Y': y,
            'Width': placement.width, 'Height': placement.height,
            'Rotated': 'Yes' if placement.rotated else 'No',
        })
    st.dataframe(pd.DataFrame(rows), use_container_width=True)

    if outcomes:
        with st.expander("Strategy comparison"):
            st.dataframe(pd.DataFrame([{
                'Strategy': outcome.strategy.name,
                'Boards': outcome.metrics.total_boards,
                'Efficiency': format_percentage(outcome.metrics.efficiency),
            } for outcome in outcomes]), use_container_width=True)

    st.subheader("📁 Downloads")
    prefix = f"{order_name}_" if order_name else ""
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.download_button("Cutting Layout (TXT)",
                           generate_cutting_layout_text(result, config, order_name),
                           f"{prefix}cutting_layout.txt", "text/plain")
    with col2:
        st.download_button("Cut List (CSV)",
                           generate_optimized_cutlist_csv(result, config, order_name),
                           f"{prefix}optimized_cutlist.csv", "text/csv")
    with col3:
        st.download_button("Board Summary (CSV)", generate_board_summary_csv(result),
                           f"{prefix}board_summary.csv", "text/csv")
    with col4:
        st.download_button("Full Report (XLSX)", create_excel_report(result, config, order_name),
                           f"{prefix}optimization_report.xlsx",
                           "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")


def main():
    """Main application function."""
    setup_logging()
    st.title("⚡ OptiSaw - Beam Saw Panel Optimization")
    st.markdown("**Guillotine cutting plans with kerf, trim and grain direction**")

    config = board_config_sidebar()
    strategies = strategy_selector()

    panels = show_input_section()
    if not panels:
        return

    order_name = st.text_input("Order Name", value="", placeholder="e.g., Kitchen Project 2025-001")

    if st.button("🚀 Optimize", type="primary"):
        if not strategies:
            st.error("Select at least one sort method.")
            return
        optimizer = UnifiedOptimizer(strategies)
        try:
            with st.spinner("Optimizing..."):
                outcomes = optimizer.compare_strategies(panels, config)
                if outcomes:
                    result = build_result(outcomes[0], config)
                else:
                    result = optimizer.optimize(panels, config)
        except OptimizationError as e:
            logger.error(f"Optimization failed: {e}")
            st.error(e.message)
            return
        st.session_state.result = result
        st.session_state.outcomes = outcomes
        st.session_state.config = config

    if 'result' in st.session_state:
        show_results(st.session_state.result, st.session_state.config,
                     st.session_state.outcomes, order_name)


if __name__ == "__main__":
    main()
