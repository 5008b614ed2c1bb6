"""
Core data models for OptiSaw beam saw optimization tool.
Defines board configuration, panels, placements, strategies and result types.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple, Dict, Any

from exceptions import InvalidConfigError, InvalidPanelError

logger = logging.getLogger(__name__)

DEFAULT_KERF = 4


def to_mm(value: Any, field_name: str, error_cls=InvalidConfigError) -> int:
    """
    Normalize a measurement to integer millimetres.

    Args:
        value: Incoming value (int, integral float or numeric string)
        field_name: Name used in the error message
        error_cls: Exception class raised on bad input

    Returns:
        Value as int

    Raises:
        error_cls: If value is not numeric or not a whole number of mm
    """
    if isinstance(value, bool):
        raise error_cls(f"{field_name} must be a number, got {value!r}",
                        details={"field": field_name, "value": value})
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise error_cls(f"{field_name} must be a number, got {value!r}",
                        details={"field": field_name, "value": value})
    if not number.is_integer():
        raise error_cls(f"{field_name} must be a whole number of mm, got {value!r}",
                        details={"field": field_name, "value": value})
    return int(number)


class CutOrder(str, Enum):
    """Direction of the first guillotine cut on a fresh board."""
    HORIZONTAL_FIRST = "HORIZONTAL_FIRST"
    VERTICAL_FIRST = "VERTICAL_FIRST"


class SortMethod(str, Enum):
    """Panel ordering used by a strategy (always descending)."""
    AREA = "area"
    MAX_EDGE = "maxEdge"
    PERIMETER = "perimeter"
    ASPECT_RATIO = "aspectRatio"


@dataclass(frozen=True)
class Trim:
    """Material discarded from each board edge before packing."""
    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0

    @classmethod
    def uniform(cls, value: int) -> 'Trim':
        return cls(top=value, right=value, bottom=value, left=value)


@dataclass(frozen=True)
class BeamSawConfig:
    """
    Stock board and saw settings for one optimization run.

    Coordinates of placements are relative to the usable rectangle, i.e.
    the board with the trim removed.
    """
    board_width: int
    board_height: int
    kerf: int = DEFAULT_KERF
    trim: Trim = field(default_factory=Trim)
    cut_order: CutOrder = CutOrder.HORIZONTAL_FIRST
    min_strip: int = 0

    @property
    def usable_width(self) -> int:
        return self.board_width - self.trim.left - self.trim.right

    @property
    def usable_height(self) -> int:
        return self.board_height - self.trim.top - self.trim.bottom

    @property
    def usable_area(self) -> int:
        return self.usable_width * self.usable_height

    @property
    def board_area(self) -> int:
        return self.board_width * self.board_height

    @property
    def trim_area(self) -> int:
        """Area per board lost to trim (not counted as waste)."""
        return self.board_area - self.usable_area

    def validate(self) -> None:
        """
        Check board, kerf and trim invariants.

        Every measurement must be a whole number of millimetres; integral
        floats such as ``2800.0`` pass and are converted by ``normalized()``.

        Raises:
            InvalidConfigError: If the usable board area would be empty or a
                setting is out of range
        """
        board_width = to_mm(self.board_width, 'board_width')
        board_height = to_mm(self.board_height, 'board_height')
        kerf = to_mm(self.kerf, 'kerf')
        min_strip = to_mm(self.min_strip, 'min_strip')
        trim = Trim(
            top=to_mm(self.trim.top, 'trim.top'),
            right=to_mm(self.trim.right, 'trim.right'),
            bottom=to_mm(self.trim.bottom, 'trim.bottom'),
            left=to_mm(self.trim.left, 'trim.left'),
        )
        details = {
            "board_width": board_width,
            "board_height": board_height,
            "kerf": kerf,
            "min_strip": min_strip,
        }
        if board_width <= 0 or board_height <= 0:
            raise InvalidConfigError(
                f"Board dimensions must be positive, got {board_width}x{board_height}",
                details=details)
        if kerf < 0:
            raise InvalidConfigError(f"Kerf must not be negative, got {kerf}", details=details)
        if min_strip < 0:
            raise InvalidConfigError(f"Minimum strip must not be negative, got {min_strip}",
                                     details=details)
        if min(trim.top, trim.right, trim.bottom, trim.left) < 0:
            raise InvalidConfigError(f"Trim values must not be negative, got {trim}", details=details)
        if self.cut_order not in list(CutOrder):
            raise InvalidConfigError(f"Unknown cut order {self.cut_order!r}", details=details)
        if trim.left + trim.right >= board_width:
            raise InvalidConfigError(
                f"Left+right trim ({trim.left}+{trim.right}) leaves no usable width "
                f"on a {board_width}mm board",
                details=details)
        if trim.top + trim.bottom >= board_height:
            raise InvalidConfigError(
                f"Top+bottom trim ({trim.top}+{trim.bottom}) leaves no usable height "
                f"on a {board_height}mm board",
                details=details)

    def normalized(self) -> 'BeamSawConfig':
        """Validated copy with every measurement as int."""
        self.validate()
        return replace(
            self,
            board_width=to_mm(self.board_width, 'board_width'),
            board_height=to_mm(self.board_height, 'board_height'),
            kerf=to_mm(self.kerf, 'kerf'),
            min_strip=to_mm(self.min_strip, 'min_strip'),
            trim=Trim(top=to_mm(self.trim.top, 'trim.top'), right=to_mm(self.trim.right, 'trim.right'),
                      bottom=to_mm(self.trim.bottom, 'trim.bottom'), left=to_mm(self.trim.left, 'trim.left')),
            cut_order=CutOrder(self.cut_order),
        )

    def with_kerf(self, kerf: int) -> 'BeamSawConfig':
        return replace(self, kerf=kerf)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BeamSawConfig':
        """
        Build a config from a settings dictionary.

        Accepts snake_case keys, the camelCase keys used by the web portals
        (``boardWidth``, ``cutOrder``, ``minStrip``) and the ``*_mm`` keys of
        the optimize API (``w_mm``, ``h_mm``, ``kerf_mm``, ``trim_left_mm``).

        Raises:
            InvalidConfigError: If required keys are missing or values are invalid
        """
        def pick(*names, default=None):
            for name in names:
                if name in data and data[name] is not None and data[name] != "":
                    return data[name]
            return default

        width = pick('board_width', 'boardWidth', 'w_mm')
        height = pick('board_height', 'boardHeight', 'h_mm')
        if width is None or height is None:
            raise InvalidConfigError("Board width and height are required",
                                     details={"keys": sorted(data.keys())})

        trim_data = data.get('trim') or {}
        trim = Trim(
            top=to_mm(pick('trim_top', 'trim_top_mm', default=trim_data.get('top', 0)), 'trim.top'),
            right=to_mm(pick('trim_right', 'trim_right_mm', default=trim_data.get('right', 0)), 'trim.right'),
            bottom=to_mm(pick('trim_bottom', 'trim_bottom_mm', default=trim_data.get('bottom', 0)), 'trim.bottom'),
            left=to_mm(pick('trim_left', 'trim_left_mm', default=trim_data.get('left', 0)), 'trim.left'),
        )

        cut_order_value = pick('cut_order', 'cutOrder', default=CutOrder.HORIZONTAL_FIRST.value)
        try:
            cut_order = CutOrder(str(getattr(cut_order_value, 'value', cut_order_value)).upper())
        except ValueError:
            raise InvalidConfigError(f"Unknown cut order {cut_order_value!r}",
                                     details={"cut_order": cut_order_value})

        config = cls(
            board_width=to_mm(width, 'board_width'),
            board_height=to_mm(height, 'board_height'),
            kerf=to_mm(pick('kerf', 'kerf_mm', default=DEFAULT_KERF), 'kerf'),
            trim=trim,
            cut_order=cut_order,
            min_strip=to_mm(pick('min_strip', 'minStrip', 'min_strip_mm', default=0), 'min_strip'),
        )
        config.validate()
        return config


@dataclass(frozen=True)
class PanelInput:
    """
    A panel requested by the customer.

    ``rotatable`` False means the grain direction is fixed and width/height
    may not be swapped.
    """
    id: str
    width: int
    height: int
    rotatable: bool = False
    quantity: int = 1

    def validate(self) -> None:
        if not str(self.id).strip():
            raise InvalidPanelError("Panel id must not be empty", details={"panel": repr(self)})
        width = to_mm(self.width, f"width of {self.id}", InvalidPanelError)
        height = to_mm(self.height, f"height of {self.id}", InvalidPanelError)
        quantity = to_mm(self.quantity, f"quantity of {self.id}", InvalidPanelError)
        if width <= 0 or height <= 0:
            raise InvalidPanelError(
                f"Panel {self.id} has invalid size {width}x{height}",
                details={"panel_id": self.id, "width": width, "height": height})
        if quantity < 1:
            raise InvalidPanelError(
                f"Panel {self.id} has invalid quantity {quantity}",
                details={"panel_id": self.id, "quantity": quantity})

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class PanelInstance:
    """
    One physical piece expanded from a PanelInput.

    ``width``/``height`` always hold the input orientation; ``pre_rotated``
    is set when a strategy forces this piece into the swapped orientation.
    """
    panel_id: str
    instance_index: int
    width: int
    height: int
    rotatable: bool = False
    pre_rotated: bool = False

    @property
    def instance_id(self) -> str:
        return f"{self.panel_id}-{self.instance_index}"

    @property
    def area(self) -> int:
        return self.width * self.height

    def orientations(self) -> List[Tuple[int, int, bool]]:
        """
        Allowed placement orientations, preferred one first.

        Returns:
            List of (width, height, rotated) where rotated is relative to the
            input orientation
        """
        if self.pre_rotated:
            return [(self.height, self.width, True)]
        options = [(self.width, self.height, False)]
        if self.rotatable and self.width != self.height:
            options.append((self.height, self.width, True))
        return options

    def force_rotation(self) -> 'PanelInstance':
        return PanelInstance(self.panel_id, self.instance_index, self.width, self.height,
                             rotatable=self.rotatable, pre_rotated=True)

    def lock_orientation(self, rotated: bool) -> 'PanelInstance':
        """Copy that may only be placed in the given orientation."""
        if rotated:
            return self.force_rotation()
        return replace(self, rotatable=False)


def expand_panels(panels: List[PanelInput]) -> List[PanelInstance]:
    """
    Validate panel inputs and expand them by quantity.

    Args:
        panels: Panel demand list

    Returns:
        Panel instances in input order, instance indexes starting at 1

    Raises:
        InvalidPanelError: On invalid fields or duplicate panel ids
    """
    instances = []
    seen_ids = set()
    for panel in panels:
        panel.validate()
        if panel.id in seen_ids:
            raise InvalidPanelError(f"Duplicate panel id {panel.id}", details={"panel_id": panel.id})
        seen_ids.add(panel.id)
        width = to_mm(panel.width, f"width of {panel.id}", InvalidPanelError)
        height = to_mm(panel.height, f"height of {panel.id}", InvalidPanelError)
        quantity = to_mm(panel.quantity, f"quantity of {panel.id}", InvalidPanelError)
        for index in range(1, quantity + 1):
            instances.append(PanelInstance(
                panel_id=panel.id,
                instance_index=index,
                width=width,
                height=height,
                rotatable=panel.rotatable,
            ))
    logger.debug(f"Expanded {len(panels)} panel rows into {len(instances)} instances")
    return instances


def fits(free_width: int, free_height: int, panel_width: int, panel_height: int) -> bool:
    """Rectangle-fit test for one orientation."""
    return panel_width <= free_width and panel_height <= free_height


@dataclass(frozen=True)
class FreeRectangle:
    """Unallocated region of a board, in usable-board coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Cut:
    """A single straight saw pass on a board."""
    board_index: int
    x: int
    y: int
    length: int
    horizontal: bool


@dataclass(frozen=True)
class PlacementResult:
    """A panel instance placed on a board, size as actually placed."""
    id: str
    instance_index: int
    x: int
    y: int
    width: int
    height: int
    rotated: bool
    board_index: int

    @property
    def instance_id(self) -> str:
        return f"{self.id}-{self.instance_index}"

    @property
    def area(self) -> int:
        return self.width * self.height

    def overlaps(self, other: 'PlacementResult') -> bool:
        if self.board_index != other.board_index:
            return False
        return (self.x < other.x + other.width and other.x < self.x + self.width and
                self.y < other.y + other.height and other.y < self.y + self.height)

    def to_board_coordinates(self, config: BeamSawConfig) -> Tuple[int, int]:
        """Top-left corner on the untrimmed board."""
        return self.x + config.trim.left, self.y + config.trim.top


@dataclass(frozen=True)
class OptimizationStrategy:
    """
    Named heuristic configuration; never mutated during a run.

    ``lookahead_depth`` > 0 tries every orientation combination of the first
    that many sorted panels and keeps the best plan among them.
    """
    name: str
    sort_method: SortMethod
    rotate_first_panel: bool = False
    lookahead_depth: int = 0


def default_strategies(lookahead_depth: int = 0) -> List[OptimizationStrategy]:
    """All sort methods, first without and then with first-panel rotation."""
    strategies = []
    for rotate_first in (False, True):
        for method in SortMethod:
            suffix = "+rotate-first" if rotate_first else ""
            if lookahead_depth:
                suffix += f"+lookahead{lookahead_depth}"
            strategies.append(OptimizationStrategy(
                name=f"{method.value}{suffix}",
                sort_method=method,
                rotate_first_panel=rotate_first,
                lookahead_depth=lookahead_depth,
            ))
    return strategies


@dataclass
class BoardLayout:
    """
    Represents one produced board with its placements and leftover space.
    """
    board_index: int
    placements: List[PlacementResult] = field(default_factory=list)
    free_rectangles: List[FreeRectangle] = field(default_factory=list)
    waste_rectangles: List[FreeRectangle] = field(default_factory=list)
    cuts: List[Cut] = field(default_factory=list)

    def get_panel_area(self) -> int:
        return sum(p.area for p in self.placements)

    def get_largest_offcut(self) -> Optional[FreeRectangle]:
        if not self.free_rectangles:
            return None
        return max(self.free_rectangles, key=lambda r: r.area)

    def __str__(self) -> str:
        return f"Board({self.board_index}, {len(self.placements)} panels)"


@dataclass(frozen=True)
class OptimizationMetrics:
    """Read-only summary of a completed solution."""
    total_boards: int
    total_panel_area: int
    total_board_area: int
    waste_area: int
    efficiency: float
    average_waste_per_board: float
    trim_area: int = 0
    total_cut_length: int = 0


@dataclass(frozen=True)
class BoardStatistics:
    """Per-board figures for display and strategy comparison."""
    board_index: int
    panel_count: int
    panel_area: int
    waste_area: int
    efficiency: float
    cut_length: int
    offcut_count: int
    largest_offcut_area: int


@dataclass
class OptimizationResult:
    """The winning cutting plan."""
    placements: List[PlacementResult]
    boards_used: int
    metrics: OptimizationMetrics
    strategy_used: str
    boards: List[BoardLayout] = field(default_factory=list)
    board_statistics: List[BoardStatistics] = field(default_factory=list)

    def placements_for_board(self, board_index: int) -> List[PlacementResult]:
        return [p for p in self.placements if p.board_index == board_index]


@dataclass
class MaterialJob:
    """Panels of one material together with that material's board settings."""
    material_id: str
    panels: List[PanelInput]
    config: BeamSawConfig
