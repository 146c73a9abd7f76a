"""
Genetic balance tuner.

Each generation evaluates every candidate BalanceConfig with run_batch
(all candidates see the same run seeds, so differences come from the
config alone), keeps the `elite_count` best, and fills the rest of the
next generation by tournament selection, per-section crossover and
bounded perturbation of the tunable knobs.

The tuner's own choices come from an RngPool keyed by the tuner seed,
so a tuning session is reproducible end to end.

Stops when:
    - the best fitness drops below `target_fitness`
    - `patience` generations pass without improvement
    - `should_stop()` returns True (checked between generations)
    - the generation budget is spent

Usage:
    tuner = GeneticTuner(TunerConfig(generations=5, runs=100), seed="TUNE")
    result = tuner.run()
    print(result.best_fitness, result.best_config.to_dict())
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Callable, Dict, List, Optional

from ..balance.config import (
    BalanceConfig,
    DEFAULT_CONFIG,
    SECTION_NAMES,
    perturb_config,
)
from ..errors import InvalidConfigError
from ..state.rng import RngPool
from .batch import BatchConfig, run_batch
from .fitness import BatchMetrics, aggregate, fitness


logger = logging.getLogger(__name__)

TUNABLE_SECTIONS = tuple(name for name in SECTION_NAMES if name != "targets")


@dataclass
class TunerConfig:
    generations: int = 20
    population: int = 10
    runs: int = 200
    mutation_rate: float = 0.15  # per-section chance of being perturbed
    mutation_intensity: float = 0.1
    initial_spread: float = 0.2
    elite_count: int = 2
    tournament_size: int = 3
    target_fitness: float = 5.0
    patience: int = 5

    def validate(self) -> "TunerConfig":
        problems = []
        if self.generations < 1:
            problems.append("generations must be >= 1")
        if self.population < 2:
            problems.append("population must be >= 2")
        if self.runs < 1:
            problems.append("runs must be >= 1")
        if not 0.0 <= self.mutation_rate <= 1.0:
            problems.append("mutation_rate must be within [0, 1]")
        if self.mutation_intensity < 0 or self.initial_spread < 0:
            problems.append("mutation_intensity and initial_spread must be >= 0")
        if not 0 <= self.elite_count < self.population:
            problems.append("elite_count must be within [0, population)")
        if self.tournament_size < 1:
            problems.append("tournament_size must be >= 1")
        if self.patience < 1:
            problems.append("patience must be >= 1")
        if problems:
            raise InvalidConfigError("; ".join(problems))
        return self


@dataclass
class Candidate:
    config: BalanceConfig
    fitness: Optional[float] = None
    metrics: Optional[BatchMetrics] = None
    errors: int = 0


@dataclass
class GenerationStats:
    generation: int
    best_fitness: float
    mean_fitness: float
    worst_fitness: float
    best_win_rate: float
    errors: int

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class TunerResult:
    best_config: BalanceConfig
    best_fitness: float
    best_metrics: Optional[BatchMetrics]
    generations_run: int
    stop_reason: str
    history: List[GenerationStats] = field(default_factory=list)
    total_errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "best_fitness": self.best_fitness,
            "generations_run": self.generations_run,
            "stop_reason": self.stop_reason,
            "total_errors": self.total_errors,
            "best_metrics": self.best_metrics.to_dict() if self.best_metrics else None,
            "best_config": self.best_config.to_dict(),
            "history": [g.to_dict() for g in self.history],
        }


# =============================================================================
# Operators
# =============================================================================

def crossover(a: BalanceConfig, b: BalanceConfig, next_float: Callable[[], float]) -> BalanceConfig:
    """Child takes each section whole from one parent or the other."""
    changes = {
        name: getattr(a, name) if next_float() < 0.5 else getattr(b, name)
        for name in TUNABLE_SECTIONS
    }
    return replace(a, **changes)


def mutate(
    config: BalanceConfig,
    rate: float,
    intensity: float,
    next_float: Callable[[], float],
) -> BalanceConfig:
    sections = tuple(name for name in TUNABLE_SECTIONS if next_float() < rate)
    if not sections:
        sections = (TUNABLE_SECTIONS[int(next_float() * len(TUNABLE_SECTIONS))],)
    return perturb_config(config, intensity, next_float, sections)


def tournament(population: List[Candidate], size: int, rng: RngPool, namespace: str) -> Candidate:
    contenders = rng.pick_n(namespace, population, min(size, len(population)))
    return min(contenders, key=lambda c: c.fitness)


# =============================================================================
# Tuner
# =============================================================================

class GeneticTuner:
    def __init__(
        self,
        tuner_config: Optional[TunerConfig] = None,
        base_config: BalanceConfig = DEFAULT_CONFIG,
        seed: str = "TUNE",
        workers: int = 1,
        batch_config: Optional[BatchConfig] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        self.tc = (tuner_config or TunerConfig()).validate()
        self.base_config = base_config.validate()
        self.seed = seed
        self.workers = workers
        self.batch_config = batch_config
        self.should_stop = should_stop
        self.rng = RngPool(seed)
        self.evaluations = 0

    def _float(self, namespace: str) -> Callable[[], float]:
        stream = self.rng.stream(namespace)
        return stream.next_float

    def _valid_or(self, child: BalanceConfig, fallback: BalanceConfig) -> BalanceConfig:
        try:
            return child.validate()
        except InvalidConfigError as exc:
            logger.debug("Discarding invalid child: %s", exc)
            return fallback

    def initial_population(self) -> List[Candidate]:
        next_float = self._float("tuner:init")
        population = [Candidate(self.base_config)]
        while len(population) < self.tc.population:
            child = perturb_config(self.base_config, self.tc.initial_spread, next_float)
            child = self._valid_or(child, self.base_config)
            population.append(Candidate(child.replace(name=f"{self.base_config.name}-g0-{len(population)}")))
        return population

    def evaluate(self, candidate: Candidate) -> Candidate:
        if candidate.fitness is not None:
            return candidate
        batch = run_batch(candidate.config, self.tc.runs, self.seed, self.workers, self.batch_config)
        metrics = aggregate(batch.outcomes)
        candidate.metrics = metrics
        candidate.errors = len(batch.errors)
        candidate.fitness = fitness(metrics, self.base_config.targets)
        self.evaluations += 1
        return candidate

    def breed(self, ranked: List[Candidate], generation: int) -> List[Candidate]:
        tc = self.tc
        next_float = self._float(f"tuner:breed:gen:{generation}")
        children = [ranked[i] for i in range(tc.elite_count)]
        while len(children) < tc.population:
            ns = f"tuner:select:gen:{generation}"
            a = tournament(ranked, tc.tournament_size, self.rng, ns)
            b = tournament(ranked, tc.tournament_size, self.rng, ns)
            child = crossover(a.config, b.config, next_float)
            child = mutate(child, tc.mutation_rate, tc.mutation_intensity, next_float)
            child = self._valid_or(child, a.config)
            name = f"{self.base_config.name}-g{generation}-{len(children)}"
            children.append(Candidate(child.replace(name=name)))
        return children

    def run(self) -> TunerResult:
        tc = self.tc
        population = self.initial_population()
        history: List[GenerationStats] = []
        best: Optional[Candidate] = None
        stale = 0
        total_errors = 0
        stop_reason = "generations"
        generation = 0

        for generation in range(1, tc.generations + 1):
            fresh = [c for c in population if c.fitness is None]
            ranked = sorted((self.evaluate(c) for c in population), key=lambda c: c.fitness)
            total_errors += sum(c.errors for c in fresh)
            scores = [c.fitness for c in ranked]
            leader = ranked[0]
            stats = GenerationStats(
                generation=generation,
                best_fitness=leader.fitness,
                mean_fitness=sum(scores) / len(scores),
                worst_fitness=scores[-1],
                best_win_rate=leader.metrics.win_rate if leader.metrics else 0.0,
                errors=sum(c.errors for c in fresh),
            )
            history.append(stats)
            logger.info("Generation %d/%d: best=%.3f mean=%.3f win=%.1f%% errors=%d",
                        generation, tc.generations, stats.best_fitness, stats.mean_fitness,
                        stats.best_win_rate * 100, stats.errors)

            if best is None or leader.fitness < best.fitness:
                best, stale = leader, 0
            else:
                stale += 1

            if best.fitness < tc.target_fitness:
                stop_reason = "target"
                break
            if stale >= tc.patience:
                stop_reason = "stalled"
                break
            if self.should_stop is not None and self.should_stop():
                stop_reason = "cancelled"
                break
            if generation < tc.generations:
                population = self.breed(ranked, generation)

        logger.info("Tuning finished after %d generations (%s): best fitness %.3f",
                    generation, stop_reason, best.fitness)
        return TunerResult(
            best_config=best.config,
            best_fitness=best.fitness,
            best_metrics=best.metrics,
            generations_run=generation,
            stop_reason=stop_reason,
            history=history,
            total_errors=total_errors,
        )
