"""
Run Ledger - the authoritative state machine for one thread (run).

RunLedger owns the append-only event list, the cached RunState derived
from it, and the run's RngPool. Every named transition checks the
current phase, rolls whatever pools the next phase needs, then appends
exactly one LedgerEvent and folds it into the cache.

Rolls made by a transition are scoped to the seq of the event it is
about to append (`requisition:...@seq:7`), so what a run rolls next is a
function of the seed and the ledger alone. A restored run continues
exactly as the uninterrupted one would, and asking again at the same
position (re-rolling an encounter check) gives the same answer.

Phase flow per domain:
    playing(room 1) -> shop -> door_select -> playing(room 2) -> shop
        -> audit_warning -> playing(room 3, boss) -> shop -> next domain
    skip_room may detour through `encounter` before the shop.
    lose_room, or integrity reaching 0, ends in game_over(loss);
    clearing domain 6 ends in game_over(win).

Usage:
    run = RunLedger()
    run.start_thread("ABC123", traveler="never-die-guy")
    run.clear_room(score=run.room_goal())
    run.buy_item(run.shop_offer().slugs[0])
    run.shop_continue()
    run.pick_door(run.available_doors()[0])
    run.verify()  # fold agrees with the live cache
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Union

from .balance.config import BalanceConfig, DEFAULT_CONFIG
from .balance.engine import (
    LuckySynergy,
    gold_reward,
    item_price,
    lucky_synergy,
    reroll_cost,
    reward_tier_for_room,
    score_goal,
    synergy_rarity_bump,
)
from .content.catalog import ContentCatalog, Domain, EffectKind, Item, effect_total
from .content.world import DEFAULT_TRAVELER, default_catalog
from .errors import IllegalTransition, InvariantViolation
from .generation.doors import (
    DoorPreview,
    DoorPromise,
    DoorType,
    DOOR_DIFFICULTY,
    DOOR_LABELS,
    PromiseEffects,
    door_preview,
    promise_effects,
)
from .generation import doors as door_gen
from .generation.encounters import encounter_check, encounter_wanderer, duel_roll, sponsor_bias_for
from .generation.pools import PoolEntry, PoolKind, PoolResult, requisition_pool
from .state.ledger import (
    AuditClearPayload,
    DoorPickPayload,
    LedgerEvent,
    LedgerEventType,
    ProtocolRoll,
    RerollPayload,
    RoomClearPayload,
    RoomSkipPayload,
    RunPhase,
    RunState,
    ShopBuyPayload,
    ShopExitPayload,
    ThreadEndPayload,
    ThreadStartPayload,
    WandererChoice,
    WandererChoicePayload,
    apply_event,
    event_counts,
    fold_ledger,
    ledger_from_dicts,
    states_agree,
    ledger_to_dicts,
)
from .state.rng import DEFAULT_MAX_STREAMS, RngPool, generate_thread_id, validate_seed


logger = logging.getLogger(__name__)

DEFAULT_SHOP_SIZE = 3
SKIPPABLE_ROOMS = (1, 2)
BOSS_ROOM = 3
MAX_HEAT_DAMPEN = 0.9


# =============================================================================
# Results + Read Models
# =============================================================================

@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition that may be refused for expected reasons."""
    ok: bool
    state: RunState
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class ThreadSnapshot:
    """Flat, serializable read model for overlays and logs."""
    thread_id: str
    traveler: str
    protocol_roll: Optional[Dict[str, int]]
    phase: str
    domain_index: int
    room_index: int
    tier: int
    rooms_cleared: int
    gold: int
    integrity: int
    favor_tokens: int
    calm_bonus: int
    heat: int
    skip_pressure: int
    items: List[str]
    ledger_length: int
    game_won: Optional[bool]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DoorLike = Union[DoorPreview, DoorType, str]


def _door_key(door: DoorLike) -> str:
    if isinstance(door, DoorPreview):
        return door.door_type.value
    if isinstance(door, DoorType):
        return door.value
    return str(door)


def _preview_from_offer(door_type: str, promises: Iterable[str], domain: Optional[Domain]) -> DoorPreview:
    kind = DoorType(door_type)
    return DoorPreview(
        door_type=kind,
        promises=tuple(DoorPromise(p) for p in promises),
        difficulty=DOOR_DIFFICULTY[kind],
        element=domain.element if domain is not None else None,
        label=DOOR_LABELS[kind],
    )


# =============================================================================
# Run Ledger
# =============================================================================

class RunLedger:
    """
    One thread from THREAD_START to game_over.

    Expected refusals (not enough gold) come back as TransitionResult(ok=False)
    and leave the ledger untouched. Calling a transition from the wrong
    phase, or with an unknown slug, raises IllegalTransition; the ledger is
    left untouched in that case too.
    """

    def __init__(
        self,
        config: BalanceConfig = DEFAULT_CONFIG,
        catalog: Optional[ContentCatalog] = None,
        shop_size: int = DEFAULT_SHOP_SIZE,
        max_streams: Optional[int] = DEFAULT_MAX_STREAMS,
    ):
        self.config = config
        self.catalog = catalog or default_catalog()
        self.shop_size = shop_size
        self.max_streams = max_streams
        self.rng: Optional[RngPool] = None
        self._events: List[LedgerEvent] = []
        self._state = RunState()

    def __repr__(self) -> str:
        s = self._state
        return (f"RunLedger(seed={s.seed!r}, phase={s.phase.value}, "
                f"domain={s.domain_index}, room={s.room_index}, events={len(self._events)})")

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def events(self) -> List[LedgerEvent]:
        return list(self._events)

    @property
    def phase(self) -> RunPhase:
        return self._state.phase

    @property
    def game_over(self) -> bool:
        return self._state.is_over

    @property
    def domain(self) -> Domain:
        return self.catalog.domain(self._state.domain_index)

    @property
    def final_domain(self) -> int:
        return self.catalog.domain_count

    def owned_items(self) -> List[Item]:
        return [self.catalog.item(slug) for slug in self._state.items]

    def item_effect(self, kind: EffectKind) -> float:
        total = 0.0
        for item in self.owned_items():
            total += effect_total(item.effects, kind)
        return total

    def synergy(self) -> LuckySynergy:
        s = self._state
        if s.protocol_roll is None:
            return LuckySynergy.NONE
        traveler = self.catalog.traveler(s.traveler)
        return lucky_synergy(traveler.lucky_number, s.protocol_roll, s.domain_index, self.config)

    def door_effects(self) -> PromiseEffects:
        """Promise effects of the door that led into the current room."""
        s = self._state
        if s.active_door is None:
            return PromiseEffects()
        return promise_effects(
            DoorType(s.active_door),
            [DoorPromise(p) for p in s.active_promises],
            self.config,
        )

    def room_goal(self) -> int:
        s = self._state
        dampen = min(self.item_effect(EffectKind.HEAT_DAMPEN), MAX_HEAT_DAMPEN)
        return score_goal(
            self.domain.base_score_goal,
            s.domain_index,
            s.room_index,
            s.heat,
            dampen,
            self.final_domain,
            self.config,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require(self, action: str, *phases: RunPhase) -> None:
        if self._state.phase not in phases:
            raise IllegalTransition(action, self._state.phase)

    def _append(self, event_type: LedgerEventType, payload) -> RunState:
        event = LedgerEvent(event_type, len(self._events), payload)
        new_state = apply_event(self._state, event, self.config)
        self._events.append(event)
        self._state = new_state
        logger.debug("seq=%d %s -> phase=%s gold=%d heat=%d",
                     event.seq, event_type.value, new_state.phase.value, new_state.gold, new_state.heat)
        return new_state

    def _rolls(self) -> RngPool:
        """Rolls for the event about to be appended, keyed by its ledger seq."""
        return self.rng.scoped(f"seq:{len(self._events)}")

    def _roll_offer(self, reroll: int = 0) -> PoolResult:
        s = self._state
        effects = self.door_effects()
        bump = synergy_rarity_bump(self.synergy(), self.config) + effects.rarity_bump
        # The shop before the boss room always carries one high-rarity pick
        override = effects.override or s.room_index == BOSS_ROOM - 1
        return requisition_pool(
            self._rolls(),
            self.catalog,
            s.tier,
            self.domain,
            count=self.shop_size,
            synergy_bump=bump,
            reroll=reroll,
            include_override=override,
            favor_tokens=s.favor_tokens,
            config=self.config,
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start_thread(
        self,
        seed: Optional[str] = None,
        traveler: str = DEFAULT_TRAVELER,
        protocol_roll: Optional[ProtocolRoll] = None,
    ) -> RunState:
        """Begin a new thread. Allowed before any run and after game_over."""
        self._require("start_thread", RunPhase.EVENT_SELECT, RunPhase.GAME_OVER)
        seed = validate_seed(seed if seed is not None else generate_thread_id())
        try:
            chosen = self.catalog.traveler(traveler)
        except KeyError:
            raise IllegalTransition("start_thread", self._state.phase, f"unknown traveler {traveler!r}")

        rng = RngPool(seed, self.max_streams)
        if protocol_roll is None:
            protocol_roll = ProtocolRoll(
                rng.roll("protocolRoll", 6),
                rng.roll("protocolRoll", 6),
                rng.roll("protocolRoll", 6),
            )

        payload = ThreadStartPayload(seed, protocol_roll, chosen.slug, tuple(chosen.starting_loadout))
        event = LedgerEvent(LedgerEventType.THREAD_START, 0, payload)
        state = apply_event(RunState(), event, self.config)
        self._events, self._state, self.rng = [event], state, rng
        logger.info("Thread %s started (traveler=%s, roll=%s)", seed, chosen.slug, tuple(protocol_roll))
        return state

    def clear_room(self, score: int) -> RunState:
        """Record a cleared room, award gold and open the shop."""
        self._require("clear_room", RunPhase.PLAYING)
        s = self._state
        base = gold_reward(
            reward_tier_for_room(s.room_index),
            s.domain_index,
            s.heat,
            self.synergy(),
            self.config,
        )
        bonus = math.floor(base * self.door_effects().gold_bonus)
        bonus += int(self.item_effect(EffectKind.GOLD_BONUS))
        offer = self._roll_offer()
        payload = RoomClearPayload(
            domain_index=s.domain_index,
            room_index=s.room_index,
            score=int(score),
            score_goal=self.room_goal(),
            gold_awarded=base + bonus,
            offer=tuple(offer.slugs),
        )
        return self._append(LedgerEventType.ROOM_CLEAR, payload)

    def lose_room(self, reason: str = "score below goal") -> RunState:
        """Irreversible loss."""
        self._require("lose_room", RunPhase.PLAYING, RunPhase.ENCOUNTER)
        s = self._state
        payload = ThreadEndPayload(False, reason, s.domain_index, s.room_index)
        logger.info("Thread %s lost in domain %d room %d: %s", s.seed, s.domain_index, s.room_index, reason)
        return self._append(LedgerEventType.THREAD_END, payload)

    def roll_encounter(self, aggressive: bool = False) -> Optional[str]:
        """
        Roll whether skipping the current room meets a wanderer.

        Returns the wanderer slug (pass it to skip_room) or None.
        """
        self._require("roll_encounter", RunPhase.PLAYING)
        s = self._state
        effects = self.door_effects()
        rolls = self._rolls()
        if not encounter_check(rolls, self.domain, s.room_index, s.skip_pressure,
                               effects.encounter_bonus, aggressive, self.config):
            return None
        bias = sponsor_bias_for(s.protocol_roll.sponsor, effects.sponsor_bias)
        pool = encounter_wanderer(rolls, self.catalog, self.domain, bias, self.config)
        if pool.is_empty:
            return None
        return pool.slugs[0]

    def skip_room(self, encounter: Optional[str] = None) -> RunState:
        """Skip a non-boss room; meet `encounter` if given, else go to the shop."""
        self._require("skip_room", RunPhase.PLAYING)
        s = self._state
        if s.room_index not in SKIPPABLE_ROOMS:
            raise IllegalTransition("skip_room", s.phase, f"room {s.room_index} cannot be skipped")
        if encounter is not None:
            try:
                self.catalog.wanderer(encounter)
            except KeyError:
                raise IllegalTransition("skip_room", s.phase, f"unknown wanderer {encounter!r}")
            payload = RoomSkipPayload(s.domain_index, s.room_index, encounter)
        else:
            payload = RoomSkipPayload(s.domain_index, s.room_index, None, tuple(self._roll_offer().slugs))
        return self._append(LedgerEventType.ROOM_SKIP, payload)

    def resolve_wanderer_choice(
        self,
        npc: str,
        choice: Union[WandererChoice, str],
        duel_won: Optional[bool] = None,
    ) -> RunState:
        """
        Apply a wanderer choice. Provoking triggers a duel: pass `duel_won`
        from the presentation layer, or leave None to roll it.
        """
        self._require("resolve_wanderer_choice", RunPhase.ENCOUNTER)
        s = self._state
        if npc != s.pending_wanderer:
            raise IllegalTransition("resolve_wanderer_choice", s.phase,
                                    f"{npc!r} is not the wanderer present ({s.pending_wanderer!r})")
        try:
            choice = WandererChoice(choice)
        except ValueError:
            raise IllegalTransition("resolve_wanderer_choice", s.phase, f"unknown choice {choice!r}")

        w = self.config.wanderers
        favor = calm = heat = gold = integrity = 0
        if choice is WandererChoice.ACCEPT:
            favor = w.favor_per_accept
        elif choice is WandererChoice.DECLINE:
            calm = w.calm_per_decline
        elif choice is WandererChoice.PROVOKE:
            heat = w.heat_per_provoke
            if duel_won is None:
                duel_won = duel_roll(self._rolls(), npc, s.domain_index, s.room_index, s.heat + heat, self.config)
            if duel_won:
                gold = w.duel_win_gold
            else:
                shield = int(self.item_effect(EffectKind.INTEGRITY_SHIELD))
                integrity = -max(0, w.duel_loss_damage - shield)
        if choice is not WandererChoice.PROVOKE:
            duel_won = None

        broken = s.integrity + integrity <= 0
        offer = () if broken else tuple(self._roll_offer().slugs)
        payload = WandererChoicePayload(
            npc_slug=npc,
            choice=choice.value,
            favor_delta=favor,
            calm_delta=calm,
            heat_delta=heat,
            gold_delta=gold,
            integrity_delta=integrity,
            duel_won=duel_won,
            offer=offer,
        )
        return self._append(LedgerEventType.WANDERER_CHOICE, payload)

    def buy_item(self, item: str, cost: Optional[int] = None) -> TransitionResult:
        """Buy from the shop. Without `cost`, the item must be in the current offer."""
        self._require("buy_item", RunPhase.SHOP)
        s = self._state
        try:
            entry = self.catalog.item(item)
        except KeyError:
            raise IllegalTransition("buy_item", s.phase, f"unknown item {item!r}")
        if cost is None:
            if item not in s.offer:
                raise IllegalTransition("buy_item", s.phase, f"{item!r} is not on offer")
            cost = item_price(entry.value, s.tier, s.favor_tokens, self.config)
        if cost < 0:
            raise IllegalTransition("buy_item", s.phase, f"negative cost {cost}")
        if s.gold < cost:
            logger.debug("buy %s refused: gold %d < cost %d", item, s.gold, cost)
            return TransitionResult(False, s, f"insufficient gold ({s.gold} < {cost})")
        state = self._append(LedgerEventType.SHOP_BUY, ShopBuyPayload(item, int(cost), s.tier))
        return TransitionResult(True, state)

    def reroll_shop(self) -> TransitionResult:
        self._require("reroll_shop", RunPhase.SHOP)
        s = self._state
        cost = self.effective_reroll_cost()
        if s.gold < cost:
            return TransitionResult(False, s, f"insufficient gold ({s.gold} < {cost})")
        index = s.rerolls + 1
        offer = self._roll_offer(reroll=index)
        state = self._append(LedgerEventType.REROLL, RerollPayload(cost, index, tuple(offer.slugs)))
        return TransitionResult(True, state)

    def shop_continue(self) -> RunState:
        """
        Leave the shop: door selection after rooms 1, the audit warning
        after room 2, and the next domain (or victory) after the boss.
        """
        self._require("shop_continue", RunPhase.SHOP)
        s = self._state
        if s.room_index >= BOSS_ROOM:
            payload = AuditClearPayload(s.domain_index, boss_defeated=True)
            state = self._append(LedgerEventType.AUDIT_CLEAR, payload)
            if state.is_over:
                logger.info("Thread %s won after %d rooms", s.seed, state.rooms_cleared)
            return state

        if s.room_index == BOSS_ROOM - 1:
            audit = door_preview(self._rolls(), DoorType.AUDIT, self.domain, s.room_index)
            offered = ((audit.door_type.value, tuple(p.value for p in audit.promises)),)
            next_phase = RunPhase.AUDIT_WARNING
        else:
            pool = door_gen.available_doors(self._rolls(), self.domain, s.room_index, s.tier, self.config)
            offered = tuple(
                (d.door_type.value, tuple(p.value for p in d.promises)) for d in pool.values
            )
            next_phase = RunPhase.DOOR_SELECT
        payload = ShopExitPayload(s.domain_index, s.room_index, next_phase.value, offered)
        return self._append(LedgerEventType.SHOP_EXIT, payload)

    def pick_door(self, door: DoorLike) -> RunState:
        self._require("pick_door", RunPhase.DOOR_SELECT)
        return self._enter_door("pick_door", _door_key(door))

    def begin_audit(self) -> RunState:
        """Walk through the audit corridor into the boss room."""
        self._require("begin_audit", RunPhase.AUDIT_WARNING)
        return self._enter_door("begin_audit", DoorType.AUDIT.value)

    def _enter_door(self, action: str, key: str) -> RunState:
        s = self._state
        for door_type, promises in s.doors:
            if door_type == key:
                break
        else:
            raise IllegalTransition(action, s.phase, f"door {key!r} is not offered")
        effects = promise_effects(DoorType(door_type), [DoorPromise(p) for p in promises], self.config)
        payload = DoorPickPayload(door_type, tuple(promises), s.room_index, effects.heat)
        return self._append(LedgerEventType.DOOR_PICK, payload)

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    def snapshot(self) -> ThreadSnapshot:
        s = self._state
        return ThreadSnapshot(
            thread_id=s.seed,
            traveler=s.traveler,
            protocol_roll=s.protocol_roll.to_dict() if s.protocol_roll else None,
            phase=s.phase.value,
            domain_index=s.domain_index,
            room_index=s.room_index,
            tier=s.tier,
            rooms_cleared=s.rooms_cleared,
            gold=s.gold,
            integrity=s.integrity,
            favor_tokens=s.favor_tokens,
            calm_bonus=s.calm_bonus,
            heat=s.heat,
            skip_pressure=s.skip_pressure,
            items=list(s.items),
            ledger_length=len(self._events),
            game_won=s.game_won,
        )

    def event_counts(self) -> Dict[str, int]:
        return event_counts(self._events)

    def wanderer_summary(self) -> Dict[str, Any]:
        met: List[str] = []
        choices = {c.value: 0 for c in WandererChoice}
        duels = {"won": 0, "lost": 0}
        for event in self._events:
            if event.type is LedgerEventType.WANDERER_CHOICE:
                p = event.payload
                met.append(p.npc_slug)
                choices[p.choice] += 1
                if p.duel_won is not None:
                    duels["won" if p.duel_won else "lost"] += 1
        return {
            "met": met,
            "choices": choices,
            "duels": duels,
            "favor_tokens": self._state.favor_tokens,
            "calm_bonus": self._state.calm_bonus,
        }

    def effective_reroll_cost(self) -> int:
        calm = self._state.calm_bonus + int(self.item_effect(EffectKind.REROLL_DISCOUNT))
        return reroll_cost(self.config.pricing.base_reroll_cost, calm, self.config)

    def shop_offer(self) -> PoolResult:
        """Current shop offer with prices at today's tier and favor."""
        s = self._state
        entries = []
        for slug in s.offer:
            item = self.catalog.item(slug)
            entries.append(PoolEntry(item, item_price(item.value, s.tier, s.favor_tokens, self.config)))
        return PoolResult(PoolKind.REQUISITION, tuple(entries), len(entries), tier=s.tier)

    def available_doors(self) -> List[DoorPreview]:
        domain = self.domain if self._state.protocol_roll is not None else None
        return [_preview_from_offer(t, promises, domain) for t, promises in self._state.doors]

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def verify(self) -> RunState:
        """Refold the ledger from scratch and compare with the live cache."""
        folded = fold_ledger(self._events, self.config)
        mismatched = states_agree(self._state, folded)
        if mismatched:
            logger.warning("Ledger fold disagrees with live state on %s", ", ".join(mismatched))
            raise InvariantViolation(f"Ledger fold disagrees with live state on: {', '.join(mismatched)}")
        return folded

    def export(self) -> List[Dict[str, Any]]:
        return ledger_to_dicts(self._events)

    @classmethod
    def restore(
        cls,
        events: Iterable[Union[LedgerEvent, Dict[str, Any]]],
        config: BalanceConfig = DEFAULT_CONFIG,
        catalog: Optional[ContentCatalog] = None,
        **kwargs,
    ) -> "RunLedger":
        """
        Rebuild a run from its ledger. Counters come from the fold only.

        Transition rolls are keyed by ledger seq, so the restored run rolls
        the same offers, doors and duels as the original from here on.
        """
        events = [e if isinstance(e, LedgerEvent) else LedgerEvent.from_dict(e) for e in events]
        ledger = cls(config, catalog, **kwargs)
        state = fold_ledger(events, config)
        ledger._events = events
        ledger._state = state
        if state.seed:
            ledger.rng = RngPool(state.seed, ledger.max_streams)
        return ledger

    @classmethod
    def from_dicts(cls, data: Iterable[Dict[str, Any]], **kwargs) -> "RunLedger":
        return cls.restore(ledger_from_dicts(data), **kwargs)
