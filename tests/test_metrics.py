"""Tests for plan metrics and per-board statistics."""

import pytest

from data_models import (
    BeamSawConfig, BoardLayout, Cut, FreeRectangle, PanelInstance, PlacementResult, Trim
)
from optimization_metrics import (
    board_statistics, calculate_cut_length, calculate_metrics, calculate_trim_cut_length,
    min_boards_bound
)


@pytest.fixture
def left_trimmed_config():
    return BeamSawConfig(1000, 500, kerf=0, trim=Trim(left=10))


@pytest.fixture
def half_board(left_trimmed_config):
    return BoardLayout(
        board_index=0,
        placements=[PlacementResult("A", 1, 0, 0, 490, 500, False, 0)],
        free_rectangles=[FreeRectangle(490, 0, 500, 500)],
        cuts=[Cut(0, 490, 0, 500, horizontal=False)],
    )


def test_metrics_use_usable_area(left_trimmed_config, half_board):
    metrics = calculate_metrics([half_board], left_trimmed_config)

    assert metrics.total_boards == 1
    assert metrics.total_panel_area == 245000
    assert metrics.total_board_area == 495000
    assert metrics.waste_area == 250000
    assert metrics.efficiency == pytest.approx(245000 / 495000)
    assert metrics.average_waste_per_board == 250000
    assert metrics.trim_area == 5000


def test_cut_length_includes_trim_passes(left_trimmed_config, half_board):
    assert calculate_trim_cut_length(left_trimmed_config) == 500
    assert calculate_cut_length(half_board, left_trimmed_config) == 1000


def test_trim_cut_length_counts_each_trimmed_edge():
    config = BeamSawConfig(2800, 2070, trim=Trim(top=5, right=0, bottom=5, left=10))
    assert calculate_trim_cut_length(config) == 2800 + 2800 + 2070


def test_empty_solution(small_config):
    metrics = calculate_metrics([], small_config)
    assert metrics.total_boards == 0
    assert metrics.total_board_area == 0
    assert metrics.efficiency == 0.0
    assert metrics.average_waste_per_board == 0.0
    assert metrics.total_cut_length == 0


def test_board_statistics(left_trimmed_config, half_board):
    empty = BoardLayout(board_index=1, free_rectangles=[FreeRectangle(0, 0, 990, 500)])
    stats = board_statistics([half_board, empty], left_trimmed_config)

    assert [s.board_index for s in stats] == [0, 1]
    assert stats[0].panel_count == 1
    assert stats[0].panel_area == 245000
    assert stats[0].waste_area == 250000
    assert stats[0].cut_length == 1000
    assert stats[0].offcut_count == 1
    assert stats[0].largest_offcut_area == 250000
    assert stats[1].efficiency == 0.0
    assert stats[1].largest_offcut_area == 495000


class TestMinBoardsBound:

    def test_area_bound_without_kerf(self):
        config = BeamSawConfig(1000, 500, kerf=0)
        instances = [PanelInstance("A", n, 600, 500) for n in range(1, 4)]
        assert min_boards_bound(instances, config) == 2

    def test_kerf_inflates_panels_and_board(self):
        config = BeamSawConfig(1000, 500, kerf=600)
        instances = [PanelInstance("A", n, 600, 500) for n in range(1, 4)]
        # 3 * 1200 * 1100 over 1600 * 1100
        assert min_boards_bound(instances, config) == 3

    def test_never_decreases_with_kerf(self):
        instances = [PanelInstance("A", n, 430 + 17 * n, 210 + 31 * n) for n in range(1, 9)]
        bounds = [min_boards_bound(instances, BeamSawConfig(1000, 500, kerf=kerf))
                  for kerf in range(0, 200, 7)]
        assert bounds == sorted(bounds)

    def test_empty(self, small_config):
        assert min_boards_bound([], small_config) == 0
