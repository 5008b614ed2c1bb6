"""
Simple report generation for OptiSaw.
Creates plain text and CSV reports for optimization results.
"""

import csv
import io
from typing import Dict

from data_models import BeamSawConfig, OptimizationResult
from utils import format_area, format_length, format_percentage


def generate_cutting_layout_text(result: OptimizationResult, config: BeamSawConfig,
                                 order_name: str = "") -> str:
    """
    Generate text-based cutting layout report.

    Args:
        result: Optimization result to describe
        config: Board configuration the plan was made for
        order_name: Order name to include in report header

    Returns:
        Formatted text report
    """
    report_lines = []

    if order_name:
        report_lines.append(f"CUTTING LAYOUT REPORT - ORDER: {order_name}")
    else:
        report_lines.append("CUTTING LAYOUT REPORT")

    report_lines.append("=" * 60)
    report_lines.append("")

    metrics = result.metrics
    report_lines.append("SUMMARY:")
    report_lines.append(f"Board: {config.board_width}mm x {config.board_height}mm "
                        f"(usable {config.usable_width}mm x {config.usable_height}mm)")
    report_lines.append(f"Kerf: {config.kerf}mm, Cut order: {config.cut_order.value}")
    report_lines.append(f"Strategy: {result.strategy_used}")
    report_lines.append(f"Total Boards: {metrics.total_boards}")
    report_lines.append(f"Total Panels: {len(result.placements)}")
    report_lines.append(f"Efficiency: {format_percentage(metrics.efficiency)}")
    report_lines.append(f"Waste: {format_area(metrics.waste_area)}")
    report_lines.append(f"Trim: {format_area(metrics.trim_area)}")
    report_lines.append(f"Total Cut Length: {format_length(metrics.total_cut_length)}")
    report_lines.append("")

    stats_by_board = {stats.board_index: stats for stats in result.board_statistics}
    for board_index in range(result.boards_used):
        placements = result.placements_for_board(board_index)
        stats = stats_by_board.get(board_index)

        report_lines.append(f"BOARD {board_index + 1}")
        if stats:
            report_lines.append(f"Efficiency: {format_percentage(stats.efficiency)}")
            report_lines.append(f"Cut Length: {format_length(stats.cut_length)}")
            report_lines.append(f"Reusable Offcuts: {stats.offcut_count}")
        report_lines.append(f"Panels Count: {len(placements)}")
        report_lines.append("")

        report_lines.append("Panel".ljust(20) + "Size".ljust(15) + "Position".ljust(15) + "Notes")
        report_lines.append("-" * 70)
        for placement in placements:
            x, y = placement.to_board_coordinates(config)
            report_lines.append(
                placement.instance_id[:19].ljust(20) +
                f"{placement.width}x{placement.height}".ljust(15) +
                f"({x},{y})".ljust(15) +
                ("Rotated" if placement.rotated else "")
            )

        report_lines.append("")
        report_lines.append("-" * 60)
        report_lines.append("")

    return "\n".join(report_lines)


def generate_optimized_cutlist_csv(result: OptimizationResult, config: BeamSawConfig,
                                   order_name: str = "") -> str:
    """
    Generate CSV cut list with one row per placed panel.

    Positions are given in full-board coordinates (trim included).

    Returns:
        CSV content as string
    """
    output = io.StringIO()

    if order_name:
        output.write(f"# OptiSaw Optimization Report - Order: {order_name}\n")
    else:
        output.write("# OptiSaw Optimization Report\n")
    output.write(f"# Strategy: {result.strategy_used}\n")
    output.write(f"# Total Boards: {result.boards_used}\n")
    output.write(f"# Efficiency: {result.metrics.efficiency * 100:.2f}%\n")
    output.write("#\n")

    writer = csv.writer(output)
    writer.writerow([
        'Panel ID', 'Instance', 'Board', 'X (mm)', 'Y (mm)',
        'Width (mm)', 'Height (mm)', 'Rotated'
    ])
    for placement in result.placements:
        x, y = placement.to_board_coordinates(config)
        writer.writerow([
            placement.id,
            placement.instance_index,
            placement.board_index + 1,
            x,
            y,
            placement.width,
            placement.height,
            'Yes' if placement.rotated else 'No',
        ])

    return output.getvalue()


def generate_board_summary_csv(result: OptimizationResult) -> str:
    """Per-board statistics as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        'Board', 'Panels', 'Panel Area (mm2)', 'Waste Area (mm2)',
        'Efficiency (%)', 'Cut Length (mm)', 'Reusable Offcuts', 'Largest Offcut (mm2)'
    ])
    for stats in result.board_statistics:
        writer.writerow([
            stats.board_index + 1,
            stats.panel_count,
            stats.panel_area,
            stats.waste_area,
            f"{stats.efficiency * 100:.2f}",
            stats.cut_length,
            stats.offcut_count,
            stats.largest_offcut_area,
        ])
    return output.getvalue()


def create_report_package(result: OptimizationResult, config: BeamSawConfig,
                          order_name: str = "") -> Dict[str, str]:
    """
    Bundle all text reports keyed by file name.
    """
    prefix = f"{order_name}_" if order_name else ""
    return {
        f"{prefix}cutting_layout.txt": generate_cutting_layout_text(result, config, order_name),
        f"{prefix}optimized_cutlist.csv": generate_optimized_cutlist_csv(result, config, order_name),
        f"{prefix}board_summary.csv": generate_board_summary_csv(result),
    }
