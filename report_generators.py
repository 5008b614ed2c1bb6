"""
Excel report generator for optimization results.
"""

import io
import logging
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from data_models import BeamSawConfig, OptimizationResult

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")


def _write_headers(ws, headers: List[str]):
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL


def create_summary_tab(ws, result: OptimizationResult, config: BeamSawConfig, order_name: str):
    """Create summary tab with the aggregate metrics and board settings."""
    title = "OptiSaw Optimization Summary"
    ws['A1'] = f"{title} - {order_name}" if order_name else title
    ws['A1'].font = Font(size=16, bold=True)
    ws.merge_cells('A1:D1')

    metrics = result.metrics
    rows = [
        ("Board Size (mm)", f"{config.board_width}x{config.board_height}"),
        ("Usable Size (mm)", f"{config.usable_width}x{config.usable_height}"),
        ("Kerf (mm)", config.kerf),
        ("Trim T/R/B/L (mm)",
         f"{config.trim.top}/{config.trim.right}/{config.trim.bottom}/{config.trim.left}"),
        ("Cut Order", config.cut_order.value),
        ("Minimum Strip (mm)", config.min_strip),
        ("Strategy Used", result.strategy_used),
        ("Total Boards Used", metrics.total_boards),
        ("Panels Placed", len(result.placements)),
        ("Total Panel Area (mm2)", metrics.total_panel_area),
        ("Total Board Area (mm2)", metrics.total_board_area),
        ("Waste Area (mm2)", metrics.waste_area),
        ("Trim Area (mm2)", metrics.trim_area),
        ("Efficiency (%)", round(metrics.efficiency * 100, 2)),
        ("Average Waste per Board (mm2)", round(metrics.average_waste_per_board, 1)),
        ("Total Cut Length (m)", round(metrics.total_cut_length / 1000, 2)),
    ]

    row = 3
    for label, value in rows:
        ws[f'A{row}'] = label
        ws[f'B{row}'] = value
        ws[f'A{row}'].font = Font(bold=True)
        row += 1


def create_cutlist_tab(ws, result: OptimizationResult, config: BeamSawConfig):
    """One row per placed panel, positions in full-board coordinates."""
    _write_headers(ws, ['Panel ID', 'Instance', 'Board', 'X (mm)', 'Y (mm)',
                        'Width (mm)', 'Height (mm)', 'Rotated'])
    for row, placement in enumerate(result.placements, 2):
        x, y = placement.to_board_coordinates(config)
        values = [placement.id, placement.instance_index, placement.board_index + 1, x, y,
                  placement.width, placement.height, 'Yes' if placement.rotated else 'No']
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)


def create_board_details_tab(ws, result: OptimizationResult):
    """Per-board statistics."""
    _write_headers(ws, ['Board', 'Panels', 'Panel Area (mm2)', 'Waste Area (mm2)',
                        'Efficiency %', 'Cut Length (mm)', 'Reusable Offcuts',
                        'Largest Offcut (mm2)'])
    for row, stats in enumerate(result.board_statistics, 2):
        values = [stats.board_index + 1, stats.panel_count, stats.panel_area, stats.waste_area,
                  round(stats.efficiency * 100, 2), stats.cut_length, stats.offcut_count,
                  stats.largest_offcut_area]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)


def create_offcuts_tab(ws, result: OptimizationResult, config: BeamSawConfig):
    """Reusable offcuts left on each board, in full-board coordinates."""
    _write_headers(ws, ['Board', 'X (mm)', 'Y (mm)', 'Width (mm)', 'Height (mm)', 'Area (mm2)'])
    row = 2
    for board in result.boards:
        for rect in board.free_rectangles:
            values = [board.board_index + 1, rect.x + config.trim.left, rect.y + config.trim.top,
                      rect.width, rect.height, rect.area]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value)
            row += 1


def create_excel_report(result: OptimizationResult, config: BeamSawConfig,
                        order_name: Optional[str] = "") -> bytes:
    """
    Create the Excel workbook for a cutting plan.

    Args:
        result: Optimization result
        config: Board configuration used
        order_name: Order name for the summary title

    Returns:
        XLSX file content
    """
    try:
        wb = Workbook()
        wb.remove(wb.active)

        create_summary_tab(wb.create_sheet("Summary", 0), result, config, order_name or "")
        create_cutlist_tab(wb.create_sheet("Optimised Cutlist", 1), result, config)
        create_board_details_tab(wb.create_sheet("Board Details", 2), result)
        create_offcuts_tab(wb.create_sheet("Offcuts", 3), result, config)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer.getvalue()

    except Exception as e:
        logger.error(f"Excel generation failed: {e}")
        raise
