"""
Batch Simulation - many independent runs of one BalanceConfig.

Runs share nothing mutable: each builds its own RunLedger and RngPool
from `{base_seed}-{index}`, so they can be spread over worker processes
freely. Results are re-sorted by run index before anything reads them,
which makes a batch identical for any worker count.

Usage:
    result = run_batch(get_preset("balanced"), runs=500, seed="TUNE", workers=4)
    print(result.success_rate(), len(result.errors))
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple

from ..balance.config import BalanceConfig, DEFAULT_CONFIG
from ..content.world import DEFAULT_TRAVELER
from ..state.rng import validate_seed
from .personas import persona_for_run
from .runner import MAX_ACTIONS, RunOutcome, run_seed, simulate_run


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class BatchConfig:
    """Knobs for how a batch is executed (not what is simulated)."""

    workers: int = 1  # 1 = in-process
    personas: Tuple[str, ...] = ()  # empty = round-robin over all
    traveler: str = DEFAULT_TRAVELER
    max_actions: int = MAX_ACTIONS

    # Progress tracking
    report_interval: int = 100  # DEBUG line every N completed runs


@dataclass
class BatchResult:
    """Outcomes of one batch, in run-index order."""

    seed: str
    total_runs: int
    outcomes: List[RunOutcome] = field(default_factory=list)
    total_time_ms: float = 0.0

    @property
    def errors(self) -> List[Tuple[int, str, str]]:
        """(index, seed, message) for every run that raised."""
        return [(o.index, o.seed, o.error) for o in self.outcomes if o.failed]

    @property
    def completed(self) -> List[RunOutcome]:
        return [o for o in self.outcomes if not o.failed]

    @property
    def runs_per_second(self) -> float:
        if self.total_time_ms <= 0:
            return 0.0
        return self.total_runs / (self.total_time_ms / 1000)

    def success_rate(self) -> float:
        """Percentage of runs that finished without an internal error."""
        if self.total_runs == 0:
            return 0.0
        return len(self.completed) / self.total_runs * 100


# =============================================================================
# Execution
# =============================================================================

def _simulate_task(
    config: BalanceConfig,
    base_seed: str,
    index: int,
    personas: Sequence[str],
    traveler: str,
    max_actions: int,
) -> RunOutcome:
    # Module-level so ProcessPoolExecutor can pickle it
    return simulate_run(
        config,
        run_seed(base_seed, index),
        index,
        persona_for_run(index, personas),
        traveler,
        max_actions=max_actions,
    )


def run_batch(
    config: BalanceConfig = DEFAULT_CONFIG,
    runs: int = 200,
    seed: str = "SIM",
    workers: Optional[int] = None,
    batch_config: Optional[BatchConfig] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> BatchResult:
    """
    Simulate `runs` threads of `config`.

    Args:
        config: Candidate BalanceConfig (read-only, shared by all runs)
        runs: Number of runs
        seed: Base seed; run i uses "{seed}-{i}". Raises InvalidSeedError
            when a derived seed would be invalid
        workers: Overrides batch_config.workers when given
        batch_config: Execution settings
        progress_callback: Called with (completed, total)

    Returns:
        BatchResult with outcomes sorted by run index
    """
    if runs > 0:
        # Longest derived seed; fail before any run starts
        validate_seed(run_seed(seed, runs - 1))
    bc = batch_config or BatchConfig()
    workers = bc.workers if workers is None else workers
    args = (tuple(bc.personas), bc.traveler, bc.max_actions)
    start = time.perf_counter()
    outcomes: List[RunOutcome] = []

    def _done(outcome: RunOutcome) -> None:
        outcomes.append(outcome)
        done = len(outcomes)
        if progress_callback is not None:
            progress_callback(done, runs)
        if bc.report_interval and done % bc.report_interval == 0:
            logger.debug("Batch %s: %d/%d runs", seed, done, runs)

    if workers <= 1 or runs <= 1:
        for i in range(runs):
            _done(_simulate_task(config, seed, i, *args))
    else:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_simulate_task, config, seed, i, *args) for i in range(runs)]
            for future in as_completed(futures):
                _done(future.result())

    # Completion order depends on scheduling; index order does not
    outcomes.sort(key=lambda o: o.index)
    elapsed_ms = (time.perf_counter() - start) * 1000
    result = BatchResult(seed=seed, total_runs=runs, outcomes=outcomes, total_time_ms=elapsed_ms)
    if result.errors:
        logger.warning("Batch %s: %d/%d runs errored", seed, len(result.errors), runs)
    return result
