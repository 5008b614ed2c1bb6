"""
Guillotine packer: places panel instances on a single board by recursive
free-rectangle splitting, accounting for saw kerf and minimum usable strips.
"""

import logging
from typing import List, Optional, Tuple

from data_models import (
    BeamSawConfig, BoardLayout, Cut, CutOrder, FreeRectangle, PanelInstance,
    PlacementResult, fits
)
from exceptions import UnplaceablePanelError

logger = logging.getLogger(__name__)


def check_placeable(instances: List[PanelInstance], config: BeamSawConfig) -> None:
    """
    Verify every panel fits an empty usable board in some allowed orientation.

    Args:
        instances: Expanded panel instances
        config: Board configuration

    Raises:
        UnplaceablePanelError: For the first panel that can never be placed
    """
    usable_width, usable_height = config.usable_width, config.usable_height
    checked = set()
    for instance in instances:
        if instance.panel_id in checked:
            continue
        checked.add(instance.panel_id)

        if fits(usable_width, usable_height, instance.width, instance.height):
            continue
        if instance.rotatable and fits(usable_width, usable_height, instance.height, instance.width):
            continue

        logger.error(f"Panel {instance.panel_id} ({instance.width}x{instance.height}) exceeds "
                     f"usable board {usable_width}x{usable_height}")
        raise UnplaceablePanelError(instance.panel_id, instance.width, instance.height,
                                    usable_width, usable_height)


class GuillotinePacker:
    """
    Packs panels onto one board.

    Free space is a list of disjoint rectangles. Each placement consumes one
    of them and splits the remainder into at most two new rectangles with a
    single guillotine cut followed by a second cut inside the strip holding
    the panel, so the resulting layout is always beam-saw cuttable.
    """

    def __init__(self, config: BeamSawConfig, board_index: int = 0):
        """
        Initialize a packer over a fresh board.

        Args:
            config: Board configuration (usable size, kerf, min strip, cut order)
            board_index: Index recorded on every placement and cut
        """
        self.config = config
        self.board_index = board_index
        self.layout = BoardLayout(
            board_index=board_index,
            free_rectangles=[FreeRectangle(0, 0, config.usable_width, config.usable_height)],
        )
        self._first_split_done = False

    def find_position(self, instance: PanelInstance) -> Optional[Tuple[int, int, int, bool]]:
        """
        Pick the free rectangle for a panel using best-area-fit.

        Ties are broken by the smaller leftover short side, then by keeping the
        input orientation, then by the earliest free rectangle.

        Args:
            instance: Panel instance to place

        Returns:
            Tuple of (free rectangle index, placed width, placed height, rotated)
            or None if the panel fits nowhere on this board
        """
        best = None
        best_score = None

        for index, free_rect in enumerate(self.layout.free_rectangles):
            for width, height, rotated in instance.orientations():
                if not fits(free_rect.width, free_rect.height, width, height):
                    continue

                leftover_area = free_rect.area - width * height
                leftover_short_side = min(free_rect.width - width, free_rect.height - height)
                # Pre-rotated pieces have a single orientation, so no preference applies
                rotation_rank = 1 if rotated and not instance.pre_rotated else 0
                score = (leftover_area, leftover_short_side, rotation_rank, index)

                if best_score is None or score < best_score:
                    best_score = score
                    best = (index, width, height, rotated)

        return best

    def insert(self, instance: PanelInstance) -> Optional[PlacementResult]:
        """
        Place a single panel if any free rectangle admits it.

        Returns:
            PlacementResult, or None when the panel does not fit this board
        """
        position = self.find_position(instance)
        if position is None:
            return None

        index, width, height, rotated = position
        free_rect = self.layout.free_rectangles.pop(index)

        placement = PlacementResult(
            id=instance.panel_id,
            instance_index=instance.instance_index,
            x=free_rect.x,
            y=free_rect.y,
            width=width,
            height=height,
            rotated=rotated,
            board_index=self.board_index,
        )
        self.layout.placements.append(placement)
        self._split(free_rect, width, height)

        logger.debug(f"Board {self.board_index}: placed {instance.instance_id} "
                     f"{width}x{height} at ({placement.x},{placement.y}){' rotated' if rotated else ''}")
        return placement

    def pack(self, instances: List[PanelInstance]) -> Tuple[List[PlacementResult], List[PanelInstance]]:
        """
        Place as many instances as possible, in the given order.

        Args:
            instances: Ordered panel instances

        Returns:
            Tuple of (placements made, instances carried over to the next board)
        """
        placed = []
        carry_over = []
        for instance in instances:
            placement = self.insert(instance)
            if placement is None:
                carry_over.append(instance)
            else:
                placed.append(placement)
        return placed, carry_over

    def _horizontal_split_first(self, leftover_width: int, leftover_height: int) -> bool:
        if not self._first_split_done:
            self._first_split_done = True
            return self.config.cut_order == CutOrder.HORIZONTAL_FIRST
        if leftover_width != leftover_height:
            # The strip with more room left gets the full-length cut
            return leftover_height > leftover_width
        return self.config.cut_order == CutOrder.HORIZONTAL_FIRST

    def _split(self, free_rect: FreeRectangle, width: int, height: int) -> None:
        """
        Split the consumed free rectangle around a placed panel.

        Both remainders lose exactly one kerf along the cut edge. Remainders
        thinner than the kerf are turned to dust by the blade; remainders
        narrower than ``min_strip`` on either axis become waste.
        """
        kerf = self.config.kerf
        leftover_width = free_rect.width - width
        leftover_height = free_rect.height - height
        horizontal_first = self._horizontal_split_first(leftover_width, leftover_height)

        right_x = free_rect.x + width
        bottom_y = free_rect.y + height
        if horizontal_first:
            right_height = height
            bottom_width = free_rect.width
            horizontal_cut_length = free_rect.width
            vertical_cut_length = height
        else:
            right_height = free_rect.height
            bottom_width = width
            horizontal_cut_length = width
            vertical_cut_length = free_rect.height

        new_rects = []
        if leftover_height > 0:
            self.layout.cuts.append(Cut(self.board_index, free_rect.x, bottom_y,
                                        horizontal_cut_length, horizontal=True))
            if leftover_height > kerf:
                new_rects.append(FreeRectangle(free_rect.x, bottom_y + kerf,
                                               bottom_width, leftover_height - kerf))
        if leftover_width > 0:
            self.layout.cuts.append(Cut(self.board_index, right_x, free_rect.y,
                                        vertical_cut_length, horizontal=False))
            if leftover_width > kerf:
                new_rects.append(FreeRectangle(right_x + kerf, free_rect.y,
                                               leftover_width - kerf, right_height))

        if not horizontal_first:
            new_rects.reverse()

        min_strip = self.config.min_strip
        for rect in new_rects:
            if rect.width < min_strip or rect.height < min_strip:
                self.layout.waste_rectangles.append(rect)
            else:
                self.layout.free_rectangles.append(rect)
