"""
Unified Optimization Engine
Runs the board allocator under every strategy and keeps the best cutting plan.
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Dict, Optional

from data_models import (
    BeamSawConfig, BoardLayout, MaterialJob, OptimizationMetrics, OptimizationResult,
    OptimizationStrategy, PanelInput, PanelInstance, SortMethod,
    default_strategies, expand_panels, fits
)
from exceptions import InvalidConfigError
from optimization_allocator import allocate_boards
from optimization_metrics import board_statistics, calculate_metrics, min_boards_bound
from optimization_packer import check_placeable

logger = logging.getLogger(__name__)


SORT_KEYS = {
    SortMethod.AREA: lambda p: p.width * p.height,
    SortMethod.MAX_EDGE: lambda p: max(p.width, p.height),
    SortMethod.PERIMETER: lambda p: 2 * (p.width + p.height),
    SortMethod.ASPECT_RATIO: lambda p: max(p.width, p.height) / min(p.width, p.height),
}

MAX_LOOKAHEAD_DEPTH = 5

# Every blade width up to 16mm, then progressively coarser steps
FINE_KERFS = list(range(17)) + [20, 24, 28, 32, 40, 48, 56, 64]


@dataclass
class StrategyOutcome:
    """
    Complete solution produced by one strategy.

    ``packing_kerf`` is the blade width the layout was packed with; it is
    never smaller than the configured kerf.
    """
    strategy_index: int
    strategy: OptimizationStrategy
    boards: List[BoardLayout]
    metrics: OptimizationMetrics
    packing_kerf: int = 0

    def rank_key(self):
        return (self.metrics.total_boards, -self.metrics.efficiency, self.strategy_index)


def packing_kerfs(config: BeamSawConfig) -> List[int]:
    """
    Blade widths a plan for ``config`` is packed at, smallest first.

    A layout packed with a wider blade is still cuttable with a narrower one,
    so a strategy keeps the best layout over all ladder widths at or above
    the configured kerf. The candidate set shrinks as kerf grows, which makes
    the board count of a strategy non-decreasing in kerf. The ladder ends at
    the larger usable dimension, where every board holds a single panel.
    """
    limit = max(config.usable_width, config.usable_height)
    ladder = list(FINE_KERFS)
    while ladder[-1] < limit:
        ladder.append(ladder[-1] * 3 // 2)
    return [kerf for kerf in ladder if kerf >= config.kerf] or [config.kerf]


def order_instances(instances: List[PanelInstance], strategy: OptimizationStrategy,
                    config: BeamSawConfig) -> List[PanelInstance]:
    """
    Sort instances for a strategy, largest key first.

    The sort is stable, so equal keys keep input order. With
    ``rotate_first_panel`` the first panel is locked into its swapped
    orientation when it may rotate and still fits the board that way.
    """
    ordered = sorted(instances, key=SORT_KEYS[strategy.sort_method], reverse=True)
    if strategy.rotate_first_panel and ordered:
        first = ordered[0]
        if (first.rotatable and first.width != first.height and
                fits(config.usable_width, config.usable_height, first.height, first.width)):
            ordered[0] = first.force_rotation()
    return ordered


def _has_orientation_choice(instance: PanelInstance, config: BeamSawConfig) -> bool:
    if instance.pre_rotated or not instance.rotatable or instance.width == instance.height:
        return False
    return (fits(config.usable_width, config.usable_height, instance.width, instance.height) and
            fits(config.usable_width, config.usable_height, instance.height, instance.width))


def orientation_orderings(ordered: List[PanelInstance], strategy: OptimizationStrategy,
                          config: BeamSawConfig) -> List[List[PanelInstance]]:
    """
    Expand a sorted list into one list per look-ahead orientation combination.

    Each of the first ``lookahead_depth`` panels that can go either way is
    locked into one orientation; combination ``i`` rotates the j-th such
    panel when bit ``j`` of ``i`` is set, so combination 0 keeps them all
    unrotated.

    Returns:
        The orderings to pack; just ``[ordered]`` without look-ahead
    """
    depth = min(strategy.lookahead_depth, len(ordered))
    choices = [i for i in range(depth) if _has_orientation_choice(ordered[i], config)]
    if not choices:
        return [ordered]

    orderings = []
    for combo in range(2 ** len(choices)):
        candidate = list(ordered)
        for bit, position in enumerate(choices):
            candidate[position] = ordered[position].lock_orientation(bool(combo & (1 << bit)))
        orderings.append(candidate)
    return orderings


def run_strategy(instances: List[PanelInstance], config: BeamSawConfig,
                 strategy: OptimizationStrategy, strategy_index: int = 0) -> StrategyOutcome:
    """
    Produce a full solution for one strategy.

    Packs every look-ahead ordering at each ladder kerf, stopping once the
    board lower bound for the next kerf cannot beat the best plan so far.
    Module level so worker processes can pickle it.
    """
    ordered = order_instances(instances, strategy, config)
    orderings = orientation_orderings(ordered, strategy, config)

    best = None
    for kerf in packing_kerfs(config):
        packing_config = config.with_kerf(kerf)
        if best is not None and min_boards_bound(ordered, packing_config) >= best.metrics.total_boards:
            break
        for candidate in orderings:
            boards = allocate_boards(candidate, packing_config)
            metrics = calculate_metrics(boards, config)
            if best is None or metrics.total_boards < best.metrics.total_boards:
                best = StrategyOutcome(strategy_index, strategy, boards, metrics, packing_kerf=kerf)

    if best.packing_kerf != config.kerf:
        logger.debug(f"Strategy {strategy.name}: layout packed at kerf {best.packing_kerf}mm "
                     f"beats kerf {config.kerf}mm")
    logger.info(f"Strategy {strategy.name}: {best.metrics.total_boards} boards, "
                f"efficiency {best.metrics.efficiency * 100:.1f}%")
    return best


def select_best(outcomes: List[StrategyOutcome]) -> StrategyOutcome:
    """Fewest boards, then highest efficiency, then earliest strategy."""
    return min(outcomes, key=lambda outcome: outcome.rank_key())


def evaluate_strategies(instances: List[PanelInstance], config: BeamSawConfig,
                        strategies: List[OptimizationStrategy],
                        max_workers: int = 1) -> List[StrategyOutcome]:
    """
    Run every strategy to completion.

    Args:
        instances: Expanded, placeable panel instances
        config: Board configuration
        strategies: Strategies in priority order
        max_workers: Worker processes; 1 runs in-process

    Returns:
        Outcomes in strategy order, regardless of completion order
    """
    if max_workers is None or max_workers <= 1 or len(strategies) == 1:
        return [run_strategy(instances, config, strategy, index)
                for index, strategy in enumerate(strategies)]

    outcomes: List[Optional[StrategyOutcome]] = [None] * len(strategies)
    with ProcessPoolExecutor(max_workers=min(max_workers, len(strategies))) as executor:
        futures = {
            executor.submit(run_strategy, instances, config, strategy, index): index
            for index, strategy in enumerate(strategies)
        }
        for future in as_completed(futures):
            outcomes[futures[future]] = future.result()
    return outcomes


def build_result(outcome: StrategyOutcome, config: BeamSawConfig) -> OptimizationResult:
    placements = [placement for board in outcome.boards for placement in board.placements]
    return OptimizationResult(
        placements=placements,
        boards_used=len(outcome.boards),
        metrics=outcome.metrics,
        strategy_used=outcome.strategy.name,
        boards=outcome.boards,
        board_statistics=board_statistics(outcome.boards, config),
    )


def _prepare(panels: List[PanelInput], config: BeamSawConfig,
             strategies: Optional[List[OptimizationStrategy]]):
    config = config.normalized()
    if strategies is None:
        strategies = default_strategies()
    if not strategies:
        raise InvalidConfigError("At least one optimization strategy is required")
    for strategy in strategies:
        if not 0 <= strategy.lookahead_depth <= MAX_LOOKAHEAD_DEPTH:
            raise InvalidConfigError(
                f"Look-ahead depth of {strategy.name} must be between 0 and {MAX_LOOKAHEAD_DEPTH}",
                details={"strategy": strategy.name, "lookahead_depth": strategy.lookahead_depth})
    instances = expand_panels(panels)
    check_placeable(instances, config)
    return instances, config, list(strategies)


def optimize(panels: List[PanelInput], config: BeamSawConfig,
             strategies: Optional[List[OptimizationStrategy]] = None,
             max_workers: int = 1) -> OptimizationResult:
    """
    Compute the best cutting plan for a panel list.

    Args:
        panels: Panel demand list (quantities are expanded)
        config: Board and saw configuration
        strategies: Strategies to try; None uses default_strategies()
        max_workers: Number of worker processes for strategy evaluation

    Returns:
        OptimizationResult of the winning strategy

    Raises:
        InvalidConfigError: Invalid board settings or empty strategy list
        InvalidPanelError: Invalid panel rows
        UnplaceablePanelError: A panel can never fit the usable board
        InternalDeadlockError: The allocator stopped making progress
    """
    instances, config, strategies = _prepare(panels, config, strategies)

    if not instances:
        logger.info("No panels to optimize")
        empty_metrics = calculate_metrics([], config)
        return OptimizationResult(placements=[], boards_used=0, metrics=empty_metrics,
                                  strategy_used=strategies[0].name)

    logger.info(f"Optimizing {len(instances)} panels on {config.board_width}x{config.board_height} "
                f"boards (usable {config.usable_width}x{config.usable_height}, kerf {config.kerf}) "
                f"with {len(strategies)} strategies")

    outcomes = evaluate_strategies(instances, config, strategies, max_workers)
    best = select_best(outcomes)

    logger.info(f"Selected strategy {best.strategy.name}: {best.metrics.total_boards} boards, "
                f"efficiency {best.metrics.efficiency * 100:.1f}%")
    return build_result(best, config)


def optimize_materials(jobs: List[MaterialJob],
                       strategies: Optional[List[OptimizationStrategy]] = None,
                       max_workers: int = 1) -> Dict[str, OptimizationResult]:
    """
    Optimize several materials independently, one board configuration each.

    Returns:
        Mapping of material id to its OptimizationResult, in job order
    """
    results = {}
    for job in jobs:
        logger.info(f"Processing material {job.material_id} - {len(job.panels)} panel rows")
        results[job.material_id] = optimize(job.panels, job.config, strategies, max_workers)
    return results


class UnifiedOptimizer:
    """Optimizer front end holding a strategy set and worker count."""

    def __init__(self, strategies: Optional[List[OptimizationStrategy]] = None,
                 max_workers: int = 1):
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.max_workers = max_workers

    def optimize(self, panels: List[PanelInput], config: BeamSawConfig) -> OptimizationResult:
        """
        Main optimization entry point; logs the elapsed time.
        """
        start_time = time.time()
        result = optimize(panels, config, self.strategies, self.max_workers)
        optimization_time = time.time() - start_time
        logger.info(f"Unified optimization complete in {optimization_time:.2f}s: "
                    f"{result.boards_used} boards using {result.strategy_used}")
        return result

    def compare_strategies(self, panels: List[PanelInput],
                           config: BeamSawConfig) -> List[StrategyOutcome]:
        """
        Run every strategy and return all outcomes, best first.

        Used to show how each heuristic fared next to the chosen plan.
        """
        instances, config, strategies = _prepare(panels, config, self.strategies)
        if not instances:
            return []
        outcomes = evaluate_strategies(instances, config, strategies, self.max_workers)
        return sorted(outcomes, key=lambda outcome: outcome.rank_key())
