"""
Batch metrics and the scalar fitness used by the tuner.

Aggregation only uses sums and means over numpy arrays, so the result
does not depend on the order outcomes arrive from workers. Error
outcomes are excluded from every metric except `error_rate`.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from ..balance.config import TargetMetrics
from .runner import RunOutcome


DOMAIN_COUNT = 6

WIN_WEIGHT = 100.0
SURVIVAL_WEIGHT = 20.0
ITEM_WEIGHT = 15.0
ELITE_WEIGHT = 10.0
ERROR_WEIGHT = 50.0


@dataclass(frozen=True)
class BatchMetrics:
    runs: int
    errors: int
    win_rate: float
    domain_survival: Tuple[float, ...]
    avg_items: float
    elite_rate: float
    avg_rooms_cleared: float
    avg_final_gold: float
    avg_score_margin: float

    @property
    def error_rate(self) -> float:
        return self.errors / self.runs if self.runs else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["domain_survival"] = list(self.domain_survival)
        data["error_rate"] = self.error_rate
        return data


def aggregate(outcomes: Sequence[RunOutcome], domain_count: int = DOMAIN_COUNT) -> BatchMetrics:
    completed = [o for o in outcomes if not o.failed]
    errors = len(outcomes) - len(completed)
    if not completed:
        return BatchMetrics(
            runs=len(outcomes),
            errors=errors,
            win_rate=0.0,
            domain_survival=(0.0,) * domain_count,
            avg_items=0.0,
            elite_rate=0.0,
            avg_rooms_cleared=0.0,
            avg_final_gold=0.0,
            avg_score_margin=0.0,
        )

    won = np.array([o.won for o in completed], dtype=float)
    domains = np.array([o.domains_cleared for o in completed])
    items = np.array([o.items for o in completed], dtype=float)
    rooms = np.array([o.rooms_cleared for o in completed], dtype=float)
    gold = np.array([o.final_gold for o in completed], dtype=float)
    door_picks = np.array([o.door_picks for o in completed], dtype=float)
    elite_picks = np.array([o.elite_picks for o in completed], dtype=float)
    margins = np.concatenate([np.asarray(o.score_margins, dtype=float) for o in completed])

    survival = tuple(float(np.mean(domains >= d)) for d in range(1, domain_count + 1))
    total_doors = door_picks.sum()

    return BatchMetrics(
        runs=len(outcomes),
        errors=errors,
        win_rate=float(won.mean()),
        domain_survival=survival,
        avg_items=float(items.mean()),
        elite_rate=float(elite_picks.sum() / total_doors) if total_doors else 0.0,
        avg_rooms_cleared=float(rooms.mean()),
        avg_final_gold=float(gold.mean()),
        avg_score_margin=float(margins.mean()) if margins.size else 0.0,
    )


def fitness(metrics: BatchMetrics, targets: TargetMetrics) -> float:
    """
    Scalar loss, lower is better (0 = on target):

        100 * |win - target|
      +  20 * sum_d |survival[d] - target[d]|
      +  15 * |items - target| / target
      +  10 * |elite - target|
      +  50 * max(0, error_rate - allowed)
    """
    loss = WIN_WEIGHT * abs(metrics.win_rate - targets.win_rate)

    observed = np.asarray(metrics.domain_survival, dtype=float)
    wanted = np.asarray(targets.domain_survival, dtype=float)
    n = min(observed.size, wanted.size)
    loss += SURVIVAL_WEIGHT * float(np.abs(observed[:n] - wanted[:n]).sum())

    if targets.avg_items > 0:
        loss += ITEM_WEIGHT * abs(metrics.avg_items - targets.avg_items) / targets.avg_items
    loss += ELITE_WEIGHT * abs(metrics.elite_rate - targets.elite_rate)
    loss += ERROR_WEIGHT * max(0.0, metrics.error_rate - targets.max_error_rate)
    return float(loss)
