"""
Utility functions for OptiSaw beam saw optimization tool.
"""

import logging
import os
from typing import List, Optional

import streamlit as st

from data_models import OptimizationResult

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure root logging for the app and command-line runs.

    Args:
        log_level: Level name, e.g. DEBUG to see per-board packing progress
        log_file: Optional file that receives the same records as the console
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    # Streamlit's own watcher chatter drowns out optimizer output
    logging.getLogger('streamlit').setLevel(logging.WARNING)


def validate_file_upload(uploaded_file, allowed_extensions: List[str]) -> bool:
    """
    Check an uploaded cut list before handing it to the parser.

    Problems are reported to the page with st.error.

    Returns:
        True if the upload can be parsed
    """
    if uploaded_file is None:
        return False

    extension = os.path.splitext(uploaded_file.name)[1].lower()
    if extension not in allowed_extensions:
        st.error(f"Unsupported file {uploaded_file.name}; use {', '.join(allowed_extensions)}")
        return False

    if uploaded_file.size > MAX_UPLOAD_BYTES:
        st.error(f"{uploaded_file.name} is larger than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB")
        return False

    return True


def format_area(area_mm2: float) -> str:
    """Board-scale areas read best in m², offcut slivers in mm²."""
    if area_mm2 >= 10_000:
        return f"{area_mm2 / 1_000_000:.2f} m²"
    return f"{area_mm2:,.0f} mm²"


def format_length(length_mm: float) -> str:
    """Saw travel in metres."""
    return f"{length_mm / 1000:.2f} m"


def format_percentage(fraction: float) -> str:
    """
    Format an efficiency ratio.

    Args:
        fraction: Value between 0 and 1

    Returns:
        Percentage with one decimal, e.g. "87.3%"
    """
    return f"{fraction * 100:.1f}%"


def display_optimization_metrics(result: OptimizationResult):
    """Headline figures of a plan as Streamlit metric tiles."""
    metrics = result.metrics
    boards_col, panels_col, efficiency_col, waste_col, cut_col = st.columns(5)

    boards_col.metric("Boards Used", result.boards_used)
    panels_col.metric("Panels Placed", len(result.placements))
    efficiency_col.metric("Efficiency", format_percentage(metrics.efficiency))
    waste_col.metric("Waste", format_area(metrics.waste_area))
    cut_col.metric("Cut Length", format_length(metrics.total_cut_length))


def display_board_summary(result: OptimizationResult):
    if not result.board_statistics:
        st.info("No boards in this plan.")
        return

    rows = [{
        'Board': stats.board_index + 1,
        'Panels': stats.panel_count,
        'Efficiency': format_percentage(stats.efficiency),
        'Waste': format_area(stats.waste_area),
        'Cut Length': format_length(stats.cut_length),
        'Reusable Offcuts': stats.offcut_count,
        'Largest Offcut': format_area(stats.largest_offcut_area),
    } for stats in result.board_statistics]

    st.dataframe(rows, use_container_width=True)
