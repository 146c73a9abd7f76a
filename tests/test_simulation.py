"""
Simulation Tests

Virtual-player personas, the headless run driver, batch execution and the
metrics/fitness the tuner optimizes.
"""

import pytest

from packages.procgen.balance.config import DEFAULT_CONFIG, TargetMetrics, get_preset
from packages.procgen.content.catalog import Effect, EffectKind, Element, Item, ItemCategory, Rarity
from packages.procgen.errors import InvalidSeedError
from packages.procgen.generation.doors import DoorPreview, DoorPromise, DoorType
from packages.procgen.run import RunLedger
from packages.procgen.simulation.batch import BatchConfig, BatchResult, run_batch
from packages.procgen.simulation.fitness import BatchMetrics, aggregate, fitness
from packages.procgen.simulation.personas import (
    PERSONA_ORDER,
    Persona,
    get_persona,
    persona_for_run,
)
from packages.procgen.simulation.runner import RunOutcome, room_score, run_seed, simulate_run
from packages.procgen.state.ledger import WandererChoice
from packages.procgen.state.rng import RngPool


def _door(kind: DoorType) -> DoorPreview:
    return DoorPreview(kind, (DoorPromise.CREDITS,), 2, None, kind.value)


def _item(slug: str, bonus: float) -> Item:
    return Item(slug, slug, ItemCategory.WEAPON, Rarity.COMMON, Element.NEUTRAL, 10,
                (Effect(EffectKind.SCORE_BONUS, bonus),))


# =============================================================================
# 1. Personas
# =============================================================================


class TestPersonas:
    """Decision rules of the virtual players."""

    def test_builtin_personas(self):
        assert PERSONA_ORDER == ("cautious", "balanced", "aggressive")
        assert get_persona("cautious").safety > get_persona("aggressive").safety
        assert get_persona("aggressive").risk > get_persona("cautious").risk

    def test_unknown_persona(self):
        with pytest.raises(ValueError, match="Unknown persona"):
            get_persona("reckless")

    def test_round_robin(self):
        assert [persona_for_run(i).name for i in range(4)] == [
            "cautious", "balanced", "aggressive", "cautious",
        ]
        assert persona_for_run(5, ["balanced"]).name == "balanced"

    def test_adjusted_at_low_integrity(self):
        persona = get_persona("aggressive")
        assert persona.adjusted(0.5) is persona
        low = persona.adjusted(0.1)
        assert low.risk == pytest.approx(0.30)
        assert low.safety == pytest.approx(0.30)

    def test_choose_door(self):
        doors = [_door(DoorType.STABLE), _door(DoorType.ELITE)]
        rng = RngPool("ABC123")
        daredevil = Persona("daredevil", risk=1.0, safety=0.0)
        coward = Persona("coward", risk=0.0, safety=1.0)
        assert daredevil.choose_door(rng, doors, 1, 1).door_type is DoorType.ELITE
        assert coward.choose_door(rng, doors, 1, 1).door_type is DoorType.STABLE

    def test_choose_only_stable(self):
        doors = [_door(DoorType.STABLE)]
        chosen = Persona("daredevil", risk=1.0, safety=0.0).choose_door(RngPool("ABC123"), doors, 1, 1)
        assert chosen.door_type is DoorType.STABLE

    def test_wanderer_choice_extremes(self):
        rng = RngPool("ABC123")
        assert Persona("a", 1.0, 0.0).wanderer_choice(rng, 1, 1) is WandererChoice.PROVOKE
        assert Persona("b", 0.0, 1.0).wanderer_choice(rng, 1, 1) is WandererChoice.DECLINE
        assert Persona("c", 0.0, 0.0).wanderer_choice(rng, 1, 1) is WandererChoice.ACCEPT

    def test_should_skip_never_without_safety(self):
        rng = RngPool("ABC123")
        persona = Persona("bold", 0.5, 0.0)
        assert not any(persona.should_skip(rng, d, r) for d in range(1, 7) for r in (1, 2))

    def test_shopping_list_strongest_first(self):
        offer = [_item("weak", 50), _item("strong", 300), _item("mid", 100)]
        prices = {"weak": 10, "strong": 40, "mid": 30}
        spender = Persona("spender", 0.5, 0.0)
        assert [i.slug for i in spender.shopping_list(offer, prices, 100, 3)] == ["strong", "mid", "weak"]
        assert [i.slug for i in spender.shopping_list(offer, prices, 100, 1)] == ["strong"]
        assert [i.slug for i in spender.shopping_list(offer, prices, 35, 3)] == ["mid"]

    def test_shopping_list_keeps_reserve(self):
        offer = [_item("strong", 300)]
        prices = {"strong": 40}
        saver = Persona("saver", 0.0, 1.0)
        assert saver.shopping_list(offer, prices, 60, 3) == []

    def test_wants_reroll(self):
        aggressive = get_persona("aggressive")
        assert aggressive.wants_reroll(100, 25, 0)
        assert not aggressive.wants_reroll(100, 25, 1)
        assert not aggressive.wants_reroll(50, 25, 0)
        assert not get_persona("cautious").wants_reroll(1000, 25, 0)


# =============================================================================
# 2. Runner
# =============================================================================


class TestSimulateRun:
    """One headless thread."""

    def test_completes_without_error(self):
        outcome = simulate_run(DEFAULT_CONFIG, "ABC123", index=0)
        assert outcome.error is None
        assert not outcome.failed
        assert outcome.persona == "cautious"
        assert outcome.trace
        assert 0 <= outcome.domains_cleared <= 6
        if outcome.won:
            assert outcome.domains_cleared == 6
            assert outcome.rooms_cleared + outcome.rooms_skipped >= 18

    def test_deterministic(self):
        a = simulate_run(DEFAULT_CONFIG, "ABC123", index=1)
        b = simulate_run(DEFAULT_CONFIG, "ABC123", index=1)
        assert a.to_dict() == b.to_dict()

    @pytest.mark.parametrize("persona", PERSONA_ORDER)
    def test_every_persona_finishes(self, persona):
        for i in range(3):
            outcome = simulate_run(get_preset("balanced"), run_seed("P", i), i, get_persona(persona))
            assert outcome.error is None, outcome.error

    @pytest.mark.parametrize("preset", ["brutal", "easy", "risk_reward"])
    def test_presets_run_cleanly(self, preset):
        outcome = simulate_run(get_preset(preset), "PRESET-1", 1)
        assert outcome.error is None, outcome.error

    def test_runaway_loop_becomes_error(self):
        outcome = simulate_run(DEFAULT_CONFIG, "ABC123", max_actions=0)
        assert outcome.failed
        assert "did not finish" in outcome.error
        assert not outcome.won

    def test_bad_seed_becomes_error(self):
        outcome = simulate_run(DEFAULT_CONFIG, "bad seed")
        assert outcome.failed
        assert outcome.error.startswith("InvalidSeedError")

    def test_gold_curve_tracks_clears(self):
        outcome = simulate_run(DEFAULT_CONFIG, "CURVE", index=2)
        assert len(outcome.gold_curve) == outcome.rooms_cleared
        assert all(m >= 0 for m in outcome.score_margins)

    def test_elite_rate(self):
        outcome = RunOutcome(0, "S", "balanced", door_picks=4, elite_picks=1)
        assert outcome.elite_rate == 0.25
        assert RunOutcome(0, "S", "balanced").elite_rate == 0.0

    def test_room_score_reproducible(self):
        scores = []
        for _ in range(2):
            run = RunLedger()
            run.start_thread("ABC123", "drifter")
            scores.append(room_score(run, get_persona("balanced"), run.room_goal()))
        assert scores[0] == scores[1]
        assert scores[0] >= 0

    def test_run_seed(self):
        assert run_seed("SIM", 3) == "SIM-3"


# =============================================================================
# 3. Batches
# =============================================================================


class TestRunBatch:
    """Many runs of one config."""

    def test_batch_shape(self):
        result = run_batch(DEFAULT_CONFIG, runs=6, seed="BATCH")
        assert result.total_runs == 6
        assert [o.index for o in result.outcomes] == list(range(6))
        assert [o.seed for o in result.outcomes] == [f"BATCH-{i}" for i in range(6)]
        assert result.errors == []
        assert result.success_rate() == 100.0
        assert result.runs_per_second > 0

    def test_batch_deterministic(self):
        a = run_batch(DEFAULT_CONFIG, runs=4, seed="DET")
        b = run_batch(DEFAULT_CONFIG, runs=4, seed="DET")
        assert [o.to_dict() for o in a.outcomes] == [o.to_dict() for o in b.outcomes]

    def test_worker_count_does_not_change_results(self):
        serial = run_batch(DEFAULT_CONFIG, runs=4, seed="PAR", workers=1)
        parallel = run_batch(DEFAULT_CONFIG, runs=4, seed="PAR", workers=2)
        assert [o.to_dict() for o in serial.outcomes] == [o.to_dict() for o in parallel.outcomes]

    def test_persona_restriction(self):
        result = run_batch(DEFAULT_CONFIG, runs=3, seed="ONLY",
                           batch_config=BatchConfig(personas=("aggressive",)))
        assert {o.persona for o in result.outcomes} == {"aggressive"}

    def test_progress_callback(self):
        calls = []
        run_batch(DEFAULT_CONFIG, runs=3, seed="PROG", progress_callback=lambda d, t: calls.append((d, t)))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_errors_listed(self):
        result = run_batch(DEFAULT_CONFIG, runs=2, seed="ERR",
                           batch_config=BatchConfig(max_actions=0))
        assert len(result.errors) == 2
        index, seed, message = result.errors[0]
        assert (index, seed) == (0, "ERR-0")
        assert "did not finish" in message
        assert result.success_rate() == 0.0
        assert result.completed == []

    def test_long_base_seed_rejected_up_front(self):
        seed = "S" * 31
        calls = []
        with pytest.raises(InvalidSeedError, match="S-9"):
            run_batch(DEFAULT_CONFIG, runs=10, seed=seed, progress_callback=lambda d, t: calls.append(d))
        assert calls == []

    def test_longest_seed_that_fits(self):
        result = run_batch(DEFAULT_CONFIG, runs=2, seed="S" * 30)
        assert result.errors == []
        assert result.outcomes[-1].seed == "S" * 30 + "-1"

    def test_empty_batch(self):
        result = BatchResult(seed="NONE", total_runs=0)
        assert result.success_rate() == 0.0
        assert result.runs_per_second == 0.0


# =============================================================================
# 4. Metrics + Fitness
# =============================================================================


def _outcomes():
    return [
        RunOutcome(0, "S-0", "cautious", won=True, domains_cleared=6, items=4,
                   door_picks=12, elite_picks=3, rooms_cleared=18, final_gold=300,
                   score_margins=[1.0, 1.2]),
        RunOutcome(1, "S-1", "balanced", won=False, domains_cleared=2, items=2,
                   door_picks=4, elite_picks=1, rooms_cleared=7, final_gold=100,
                   score_margins=[0.8]),
        RunOutcome(2, "S-2", "aggressive", error="InvariantViolation: boom"),
    ]


class TestAggregate:
    """Batch metrics over outcomes."""

    def test_aggregate(self):
        m = aggregate(_outcomes())
        assert m.runs == 3
        assert m.errors == 1
        assert m.error_rate == pytest.approx(1 / 3)
        assert m.win_rate == 0.5
        assert m.domain_survival == (1.0, 1.0, 0.5, 0.5, 0.5, 0.5)
        assert m.avg_items == 3.0
        assert m.elite_rate == 0.25
        assert m.avg_rooms_cleared == 12.5
        assert m.avg_final_gold == 200.0
        assert m.avg_score_margin == pytest.approx(1.0)

    def test_order_independent(self):
        forward = aggregate(_outcomes())
        backward = aggregate(list(reversed(_outcomes())))
        assert forward.win_rate == backward.win_rate
        assert forward.domain_survival == backward.domain_survival
        assert forward.elite_rate == backward.elite_rate
        assert forward.avg_score_margin == pytest.approx(backward.avg_score_margin)

    def test_all_errors(self):
        m = aggregate([RunOutcome(0, "S", "balanced", error="x")])
        assert m.errors == 1
        assert m.win_rate == 0.0
        assert m.domain_survival == (0.0,) * 6

    def test_to_dict(self):
        data = aggregate(_outcomes()).to_dict()
        assert isinstance(data["domain_survival"], list)
        assert "error_rate" in data


def _on_target(targets: TargetMetrics, **overrides) -> BatchMetrics:
    values = dict(
        runs=10,
        errors=0,
        win_rate=targets.win_rate,
        domain_survival=targets.domain_survival,
        avg_items=targets.avg_items,
        elite_rate=targets.elite_rate,
        avg_rooms_cleared=10.0,
        avg_final_gold=100.0,
        avg_score_margin=1.0,
    )
    values.update(overrides)
    return BatchMetrics(**values)


class TestFitness:
    """Scalar loss against TargetMetrics."""

    def test_on_target_is_zero(self):
        targets = TargetMetrics()
        assert fitness(_on_target(targets), targets) == pytest.approx(0.0)

    def test_win_rate_weight(self):
        targets = TargetMetrics()
        assert fitness(_on_target(targets, win_rate=targets.win_rate + 0.1), targets) == pytest.approx(10.0)

    def test_survival_weight(self):
        targets = TargetMetrics()
        survival = tuple(v - 0.1 for v in targets.domain_survival)
        assert fitness(_on_target(targets, domain_survival=survival), targets) == pytest.approx(12.0)

    def test_items_relative(self):
        targets = TargetMetrics(avg_items=4.0)
        assert fitness(_on_target(targets, avg_items=6.0), targets) == pytest.approx(7.5)

    def test_elite_weight(self):
        targets = TargetMetrics()
        assert fitness(_on_target(targets, elite_rate=targets.elite_rate + 0.5), targets) == pytest.approx(5.0)

    def test_error_penalty(self):
        targets = TargetMetrics()
        assert fitness(_on_target(targets, errors=5), targets) == pytest.approx(25.0)
        lenient = TargetMetrics(max_error_rate=0.5)
        assert fitness(_on_target(lenient, errors=5), lenient) == pytest.approx(0.0)

    def test_lower_is_closer(self):
        targets = TargetMetrics()
        near = fitness(_on_target(targets, win_rate=0.35), targets)
        far = fitness(_on_target(targets, win_rate=0.9), targets)
        assert near < far
