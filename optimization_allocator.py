"""
Board allocator: drives the guillotine packer across as many boards as a
panel list needs, carrying panels that do not fit over to the next board.
"""

import logging
from typing import List

from data_models import BeamSawConfig, BoardLayout, PanelInstance
from exceptions import InternalDeadlockError
from optimization_packer import GuillotinePacker

logger = logging.getLogger(__name__)


def allocate_boards(instances: List[PanelInstance], config: BeamSawConfig) -> List[BoardLayout]:
    """
    Pack all instances onto successive boards.

    Boards are filled strictly one after another; each board only sees the
    panels the previous boards could not take, in their original order.

    Args:
        instances: Ordered panel instances, all known to fit an empty board
        config: Board configuration

    Returns:
        Board layouts in board-index order

    Raises:
        InternalDeadlockError: If a fresh board accepts none of the pending
            panels or the board count exceeds the panel count
    """
    pending = list(instances)
    max_boards = len(pending)
    boards = []
    board_index = 0

    while pending:
        pending_ids = [instance.instance_id for instance in pending]
        if board_index >= max_boards:
            logger.error(f"Board allocation exceeded {max_boards} boards with "
                         f"{len(pending)} panels pending: {pending_ids}")
            raise InternalDeadlockError(
                board_index, pending_ids, config.usable_width, config.usable_height,
                reason=f"Board allocation exceeded the safety limit of {max_boards} boards")

        packer = GuillotinePacker(config, board_index)
        placed, carry_over = packer.pack(pending)

        if not placed:
            logger.error(f"Board {board_index} placed no panels; pending: {pending_ids}")
            raise InternalDeadlockError(board_index, pending_ids,
                                        config.usable_width, config.usable_height)

        logger.debug(f"Board {board_index}: {len(placed)} placed, {len(carry_over)} carried over")
        boards.append(packer.layout)
        pending = carry_over
        board_index += 1

    return boards
