"""
Headless run driver.

simulate_run plays one thread to game_over with a persona making every
decision, and returns a RunOutcome. A run that raises (illegal
transition, fold mismatch, runaway loop) is logged with its seed and
action trace and returned as an error outcome instead of propagating,
so one bad sample never stops a batch.

Usage:
    outcome = simulate_run(get_preset("balanced"), "ABC123-0", index=0)
    print(outcome.won, outcome.rooms_cleared, outcome.trace[-3:])
"""

from dataclasses import dataclass, field, asdict
import logging
import math
from typing import Any, Dict, List, Optional

from ..balance.config import BalanceConfig, DEFAULT_CONFIG
from ..content.catalog import ContentCatalog
from ..content.world import DEFAULT_TRAVELER
from ..errors import InvariantViolation
from ..generation.doors import DoorType
from ..run import SKIPPABLE_ROOMS, RunLedger
from ..state.ledger import RunPhase
from .personas import Persona, persona_for_run


logger = logging.getLogger(__name__)

MAX_ACTIONS = 500
TRACE_TAIL = 20


@dataclass
class RunOutcome:
    """Metrics for one simulated thread."""
    index: int
    seed: str
    persona: str
    won: bool = False
    domains_cleared: int = 0
    rooms_cleared: int = 0
    rooms_skipped: int = 0
    items: int = 0
    door_picks: int = 0
    elite_picks: int = 0
    final_gold: int = 0
    final_heat: int = 0
    gold_curve: List[int] = field(default_factory=list)
    score_margins: List[float] = field(default_factory=list)
    trace: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def elite_rate(self) -> float:
        return self.elite_picks / self.door_picks if self.door_picks else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def run_seed(base_seed: str, index: int) -> str:
    return f"{base_seed}-{index}"


def room_score(ledger: RunLedger, persona: Persona, goal: int) -> int:
    """
    Goal-relative performance of the virtual player:

        goal * (base + power_weight * item_power + synergy_bonus
                + risk bonus + spread * noise)

    noise is the mean of three uniform draws, rescaled to [-1, 1).
    """
    s = ledger.state
    p = ledger.config.player
    ns = f"sim:{persona.name}:score:domain:{s.domain_index}:room:{s.room_index}"
    noise = (sum(ledger.rng.random(ns) for _ in range(3)) / 3 - 0.5) * 2

    power = sum(item.power for item in ledger.owned_items())
    performance = (
        p.base_performance
        + p.power_weight * power
        + ledger.synergy().level * p.synergy_performance_bonus
        + p.performance_spread * noise
    )
    if s.active_door in (DoorType.ELITE.value, DoorType.ANOMALY.value):
        performance += p.risk_reward_bias
    return max(0, math.floor(goal * performance))


def _shop(ledger: RunLedger, persona: Persona, trace: List[str]) -> None:
    slots = ledger.config.player.item_slots
    for _ in range(2):
        s = ledger.state
        offer = ledger.shop_offer()
        prices = {e.slug: e.price for e in offer}
        free = slots - len(s.items)
        for item in persona.shopping_list(offer.values, prices, s.gold, free):
            result = ledger.buy_item(item.slug)
            if not result.ok:
                break
            trace.append(f"buy:{item.slug}:{prices[item.slug]}")

        s = ledger.state
        if len(s.items) >= slots or not persona.wants_reroll(s.gold, ledger.effective_reroll_cost(), s.rerolls):
            return
        if ledger.reroll_shop().ok:
            trace.append("reroll")


def _play(ledger: RunLedger, persona: Persona, outcome: RunOutcome, max_actions: int) -> None:
    trace = outcome.trace
    max_integrity = ledger.config.player.max_integrity or 1

    for _ in range(max_actions):
        if ledger.game_over:
            return
        s = ledger.state
        acting = persona.adjusted(s.integrity / max_integrity)
        phase = s.phase

        if phase is RunPhase.PLAYING:
            if s.room_index in SKIPPABLE_ROOMS and acting.should_skip(ledger.rng, s.domain_index, s.room_index):
                wanderer = ledger.roll_encounter(aggressive=acting.risk >= 0.5)
                ledger.skip_room(wanderer)
                trace.append(f"skip:{s.domain_index}.{s.room_index}:{wanderer or '-'}")
                continue
            goal = ledger.room_goal()
            score = room_score(ledger, acting, goal)
            outcome.score_margins.append(score / goal if goal else 1.0)
            if score >= goal:
                ledger.clear_room(score)
                outcome.gold_curve.append(ledger.state.gold)
                trace.append(f"clear:{s.domain_index}.{s.room_index}:{score}/{goal}")
            else:
                ledger.lose_room()
                trace.append(f"lose:{s.domain_index}.{s.room_index}:{score}/{goal}")

        elif phase is RunPhase.ENCOUNTER:
            choice = acting.wanderer_choice(ledger.rng, s.domain_index, s.room_index)
            ledger.resolve_wanderer_choice(s.pending_wanderer, choice)
            trace.append(f"wanderer:{s.pending_wanderer}:{choice.value}")

        elif phase is RunPhase.SHOP:
            _shop(ledger, acting, trace)
            ledger.shop_continue()
            trace.append("continue")

        elif phase is RunPhase.DOOR_SELECT:
            door = acting.choose_door(ledger.rng, ledger.available_doors(), s.domain_index, s.room_index)
            ledger.pick_door(door)
            outcome.door_picks += 1
            if door.door_type is DoorType.ELITE:
                outcome.elite_picks += 1
            trace.append(f"door:{door.slug}")

        elif phase is RunPhase.AUDIT_WARNING:
            ledger.begin_audit()
            trace.append("audit")

        else:
            raise InvariantViolation(f"Simulator cannot act in phase {phase.value}")

    if not ledger.game_over:
        raise InvariantViolation(f"Run did not finish within {max_actions} actions")


def simulate_run(
    config: BalanceConfig = DEFAULT_CONFIG,
    seed: str = "SIM",
    index: int = 0,
    persona: Optional[Persona] = None,
    traveler: str = DEFAULT_TRAVELER,
    catalog: Optional[ContentCatalog] = None,
    max_actions: int = MAX_ACTIONS,
) -> RunOutcome:
    persona = persona or persona_for_run(index)
    outcome = RunOutcome(index=index, seed=seed, persona=persona.name)
    ledger = RunLedger(config, catalog)
    try:
        ledger.start_thread(seed, traveler)
        _play(ledger, persona, outcome, max_actions)
        ledger.verify()
    except Exception as exc:
        outcome.error = f"{type(exc).__name__}: {exc}"
        logger.warning("Run %d (seed=%s, persona=%s) failed: %s | trace: %s",
                       index, seed, persona.name, outcome.error,
                       " ".join(outcome.trace[-TRACE_TAIL:]))

    s = ledger.state
    outcome.won = bool(s.game_won) and outcome.error is None
    outcome.domains_cleared = s.domains_cleared
    outcome.rooms_cleared = s.rooms_cleared
    outcome.rooms_skipped = s.rooms_skipped
    outcome.items = len(s.items)
    outcome.final_gold = s.gold
    outcome.final_heat = s.heat
    return outcome
