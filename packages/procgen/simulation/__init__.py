"""
Offline simulation: virtual players, batches, fitness and the genetic tuner.
"""

from .personas import Persona, PERSONAS, PERSONA_ORDER, get_persona, persona_for_run
from .runner import RunOutcome, run_seed, room_score, simulate_run
from .batch import BatchConfig, BatchResult, run_batch
from .fitness import BatchMetrics, aggregate, fitness
from .tuner import (
    TunerConfig,
    Candidate,
    GenerationStats,
    TunerResult,
    GeneticTuner,
    crossover,
    mutate,
    tournament,
)

__all__ = [
    "Persona",
    "PERSONAS",
    "PERSONA_ORDER",
    "get_persona",
    "persona_for_run",
    "RunOutcome",
    "run_seed",
    "room_score",
    "simulate_run",
    "BatchConfig",
    "BatchResult",
    "run_batch",
    "BatchMetrics",
    "aggregate",
    "fitness",
    "TunerConfig",
    "Candidate",
    "GenerationStats",
    "TunerResult",
    "GeneticTuner",
    "crossover",
    "mutate",
    "tournament",
]
