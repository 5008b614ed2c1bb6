"""Shared fixtures for the optimizer tests."""

import pytest

from data_models import BeamSawConfig, CutOrder, PanelInput, Trim


def assert_valid_plan(result, panels, config):
    """Check bounds, rotation legality, overlap, kerf gaps and conservation of a plan."""
    usable_width, usable_height = config.usable_width, config.usable_height
    by_id = {panel.id: panel for panel in panels}

    for placement in result.placements:
        assert placement.x >= 0 and placement.y >= 0
        assert placement.x + placement.width <= usable_width
        assert placement.y + placement.height <= usable_height
        assert 0 <= placement.board_index < result.boards_used
        if placement.rotated:
            assert by_id[placement.id].rotatable

        source = by_id[placement.id]
        if placement.rotated:
            assert (placement.width, placement.height) == (source.height, source.width)
        else:
            assert (placement.width, placement.height) == (source.width, source.height)

    kerf = config.kerf
    for i, first in enumerate(result.placements):
        for second in result.placements[i + 1:]:
            assert not first.overlaps(second), f"{first.instance_id} overlaps {second.instance_id}"
            if first.board_index != second.board_index:
                continue
            apart = (first.x + first.width + kerf <= second.x or
                     second.x + second.width + kerf <= first.x or
                     first.y + first.height + kerf <= second.y or
                     second.y + second.height + kerf <= first.y)
            assert apart, f"{first.instance_id} and {second.instance_id} closer than {kerf}mm"

    expected = sorted(f"{panel.id}-{n}" for panel in panels for n in range(1, panel.quantity + 1))
    assert sorted(p.instance_id for p in result.placements) == expected


@pytest.fixture
def standard_config() -> BeamSawConfig:
    """2800x2070 board with a 4mm blade and no trim."""
    return BeamSawConfig(board_width=2800, board_height=2070, kerf=4)


@pytest.fixture
def small_config() -> BeamSawConfig:
    """1000x500 board, 4mm kerf, horizontal first cut."""
    return BeamSawConfig(board_width=1000, board_height=500, kerf=4,
                         cut_order=CutOrder.HORIZONTAL_FIRST)


@pytest.fixture
def trimmed_config() -> BeamSawConfig:
    """2800x2070 board with 10mm trim all round."""
    return BeamSawConfig(board_width=2800, board_height=2070, kerf=4, trim=Trim.uniform(10))


@pytest.fixture
def kitchen_panels():
    """A mixed cabinet cut list."""
    return [
        PanelInput("SIDE", 560, 720, rotatable=False, quantity=4),
        PanelInput("SHELF", 560, 300, rotatable=True, quantity=6),
        PanelInput("DOOR", 596, 716, rotatable=False, quantity=2),
        PanelInput("BACK", 1180, 720, rotatable=True, quantity=2),
        PanelInput("TOP", 1200, 600, rotatable=True, quantity=1),
        PanelInput("PLINTH", 1200, 100, rotatable=True, quantity=3),
        PanelInput("TALL", 600, 2000, rotatable=False, quantity=2),
    ]
