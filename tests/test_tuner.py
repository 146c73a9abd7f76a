"""
Genetic Tuner Tests

Operators (crossover, mutation, tournament), tuner configuration and a
few tiny end-to-end tuning sessions.
"""

import json

import pytest

from packages.procgen.balance.config import DEFAULT_CONFIG, get_preset
from packages.procgen.errors import InvalidConfigError
from packages.procgen.simulation.tuner import (
    Candidate,
    GeneticTuner,
    TunerConfig,
    crossover,
    mutate,
    tournament,
)
from packages.procgen.state.rng import RngPool


def tiny(**overrides) -> TunerConfig:
    values = dict(generations=2, population=3, runs=3, elite_count=1, tournament_size=2)
    values.update(overrides)
    return TunerConfig(**values)


# =============================================================================
# 1. Configuration
# =============================================================================


class TestTunerConfig:
    """TunerConfig validation."""

    def test_defaults_validate(self):
        tc = TunerConfig()
        assert tc.validate() is tc
        assert (tc.generations, tc.population, tc.runs) == (20, 10, 200)

    @pytest.mark.parametrize("field,value", [
        ("generations", 0),
        ("population", 1),
        ("runs", 0),
        ("mutation_rate", 1.5),
        ("mutation_intensity", -0.1),
        ("elite_count", 3),
        ("tournament_size", 0),
        ("patience", 0),
    ])
    def test_invalid(self, field, value):
        with pytest.raises(InvalidConfigError):
            tiny(**{field: value}).validate()

    def test_tuner_rejects_invalid(self):
        with pytest.raises(InvalidConfigError):
            GeneticTuner(tiny(population=1))


# =============================================================================
# 2. Operators
# =============================================================================


class TestOperators:
    """Crossover, mutation and tournament selection."""

    def test_crossover_takes_whole_sections(self):
        a = get_preset("balanced")
        b = get_preset("brutal")
        all_a = crossover(a, b, lambda: 0.0)
        all_b = crossover(a, b, lambda: 0.99)
        assert all_a == a
        assert all_b.rewards == b.rewards
        assert all_b.difficulty == b.difficulty
        assert all_b.name == a.name
        assert all_b.targets == a.targets

    def test_mutate_changes_at_least_one_section(self):
        child = mutate(DEFAULT_CONFIG, 0.0, 0.1, lambda: 0.0)
        assert child.rewards != DEFAULT_CONFIG.rewards
        assert child.pricing == DEFAULT_CONFIG.pricing
        assert child.rewards.gold_by_tier == (45, 90, 180)

    def test_mutate_stays_valid(self):
        stream = RngPool("MUT").stream("mutate")
        config = DEFAULT_CONFIG
        for _ in range(20):
            config = mutate(config, 0.5, 0.3, stream.next_float)
            config.validate()

    def test_tournament_picks_fittest(self):
        population = [
            Candidate(DEFAULT_CONFIG, fitness=9.0),
            Candidate(DEFAULT_CONFIG, fitness=1.0),
            Candidate(DEFAULT_CONFIG, fitness=5.0),
        ]
        winner = tournament(population, 3, RngPool("T"), "tuner:select:gen:1")
        assert winner.fitness == 1.0


# =============================================================================
# 3. Tuning Sessions
# =============================================================================


class TestGeneticTuner:
    """Small end-to-end sessions."""

    def test_initial_population(self):
        tuner = GeneticTuner(tiny(population=4))
        population = tuner.initial_population()
        assert len(population) == 4
        assert population[0].config == DEFAULT_CONFIG
        assert [c.config.name for c in population[1:]] == ["balanced-g0-1", "balanced-g0-2", "balanced-g0-3"]
        for candidate in population:
            candidate.config.validate()
            assert candidate.fitness is None

    def test_evaluate_caches_fitness(self):
        tuner = GeneticTuner(tiny())
        candidate = tuner.evaluate(Candidate(DEFAULT_CONFIG))
        assert candidate.fitness is not None
        assert candidate.metrics.runs == 3
        tuner.evaluate(candidate)
        assert tuner.evaluations == 1

    def test_breed_keeps_elites(self):
        tuner = GeneticTuner(tiny(elite_count=1))
        ranked = [tuner.evaluate(c) for c in tuner.initial_population()]
        ranked.sort(key=lambda c: c.fitness)
        children = tuner.breed(ranked, 1)
        assert len(children) == 3
        assert children[0] is ranked[0]
        assert all(c.fitness is None for c in children[1:])
        assert children[1].config.name == "balanced-g1-1"

    def test_run(self):
        result = GeneticTuner(tiny(target_fitness=0.0), seed="TUNE").run()
        assert 1 <= result.generations_run <= 2
        assert result.stop_reason in ("stalled", "generations")
        assert len(result.history) == result.generations_run
        assert result.best_fitness == min(g.best_fitness for g in result.history)
        result.best_config.validate()
        json.dumps(result.to_dict())

    def test_reproducible(self):
        a = GeneticTuner(tiny(target_fitness=0.0), seed="REPRO").run()
        b = GeneticTuner(tiny(target_fitness=0.0), seed="REPRO").run()
        assert a.best_fitness == b.best_fitness
        assert [g.to_dict() for g in a.history] == [g.to_dict() for g in b.history]
        assert a.best_config == b.best_config

    def test_should_stop(self):
        tuner = GeneticTuner(tiny(generations=5, target_fitness=0.0), should_stop=lambda: True)
        result = tuner.run()
        assert result.stop_reason == "cancelled"
        assert result.generations_run == 1

    def test_target_reached(self):
        result = GeneticTuner(tiny(target_fitness=1e9)).run()
        assert result.stop_reason == "target"
        assert result.generations_run == 1

    def test_targets_come_from_base_config(self):
        tuner = GeneticTuner(tiny(), base_config=get_preset("easy"))
        assert tuner.base_config.targets.win_rate == 0.50
