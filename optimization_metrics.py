"""
Metrics for completed cutting plans: waste, efficiency, cut length and
per-board statistics. All functions are pure.
"""

from typing import List

from data_models import BeamSawConfig, BoardLayout, BoardStatistics, OptimizationMetrics, PanelInstance


def calculate_trim_cut_length(config: BeamSawConfig) -> int:
    """Length of the edge-trimming passes made on every board."""
    trim = config.trim
    length = 0
    if trim.top > 0:
        length += config.board_width
    if trim.bottom > 0:
        length += config.board_width
    if trim.left > 0:
        length += config.board_height
    if trim.right > 0:
        length += config.board_height
    return length


def calculate_cut_length(board: BoardLayout, config: BeamSawConfig) -> int:
    """
    Total saw travel for one board.

    Args:
        board: Packed board layout with its recorded cuts
        config: Board configuration used for trimming

    Returns:
        Cut length in mm, trim passes included
    """
    return sum(cut.length for cut in board.cuts) + calculate_trim_cut_length(config)


def calculate_metrics(boards: List[BoardLayout], config: BeamSawConfig) -> OptimizationMetrics:
    """
    Summarize a solution.

    Board area counts only the usable (trimmed) rectangle; trim is reported
    separately and is not waste.

    Args:
        boards: Board layouts of one solution
        config: Board configuration the solution was packed with

    Returns:
        OptimizationMetrics for the solution
    """
    total_boards = len(boards)
    total_panel_area = sum(board.get_panel_area() for board in boards)
    total_board_area = total_boards * config.usable_area
    waste_area = total_board_area - total_panel_area
    efficiency = total_panel_area / total_board_area if total_board_area > 0 else 0.0
    average_waste = waste_area / total_boards if total_boards > 0 else 0.0

    return OptimizationMetrics(
        total_boards=total_boards,
        total_panel_area=total_panel_area,
        total_board_area=total_board_area,
        waste_area=waste_area,
        efficiency=efficiency,
        average_waste_per_board=average_waste,
        trim_area=total_boards * config.trim_area,
        total_cut_length=sum(calculate_cut_length(board, config) for board in boards),
    )


def board_statistics(boards: List[BoardLayout], config: BeamSawConfig) -> List[BoardStatistics]:
    """Per-board breakdown in board-index order."""
    usable_area = config.usable_area
    stats = []
    for board in boards:
        panel_area = board.get_panel_area()
        largest = board.get_largest_offcut()
        stats.append(BoardStatistics(
            board_index=board.board_index,
            panel_count=len(board.placements),
            panel_area=panel_area,
            waste_area=usable_area - panel_area,
            efficiency=panel_area / usable_area if usable_area > 0 else 0.0,
            cut_length=calculate_cut_length(board, config),
            offcut_count=len(board.free_rectangles),
            largest_offcut_area=largest.area if largest else 0,
        ))
    return stats


def min_boards_bound(instances: List[PanelInstance], config: BeamSawConfig) -> int:
    """
    Lower bound on the boards any guillotine plan needs at ``config.kerf``.

    Growing every panel and the usable board by one kerf turns a kerfed plan
    into a gap-free one, so the grown panel area over the grown board area
    bounds the board count. The bound never decreases as kerf grows.
    """
    if not instances:
        return 0
    kerf = config.kerf
    panel_area = sum((i.width + kerf) * (i.height + kerf) for i in instances)
    board_area = (config.usable_width + kerf) * (config.usable_height + kerf)
    return -(-panel_area // board_area)
