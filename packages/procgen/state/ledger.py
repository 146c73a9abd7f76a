"""
Run Ledger - append-only event log and the reducer that folds it.

Every irreversible run milestone is a LedgerEvent with a typed payload.
RunState (gold, tier, heat, favor, calm, phase, ...) is never edited
directly: it is the result of folding events through `apply_event`.
The live runner applies each new event to its cached state, and
`fold_ledger` replays the whole log from scratch; both go through the
same reducer, and `states_agree` compares the two.

Events carry the facts decided at transition time (gold awarded, heat
added, the shop offer that was rolled) so replay never needs an RNG.

Event kinds:
    THREAD_START     seed, protocol roll, traveler, starting items
    DOOR_PICK        door type, promises, room index, heat delta
    ROOM_CLEAR       score, goal, gold awarded, shop offer
    ROOM_SKIP        skipped room, wanderer met (or shop offer)
    SHOP_BUY         item slug, cost, tier
    REROLL           cost, new shop offer
    SHOP_EXIT        next phase and the doors offered
    WANDERER_CHOICE  choice plus favor/calm/heat/gold/integrity deltas
    AUDIT_CLEAR      domain index, boss defeated
    THREAD_END       loss (or abandon) with reason
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..balance.config import BalanceConfig, DEFAULT_CONFIG
from ..balance.engine import tier_for_domain
from ..content.world import FINAL_DOMAIN_INDEX
from ..errors import InvariantViolation


class RunPhase(Enum):
    EVENT_SELECT = "event_select"
    PLAYING = "playing"
    SHOP = "shop"
    DOOR_SELECT = "door_select"
    ENCOUNTER = "encounter"
    AUDIT_WARNING = "audit_warning"
    GAME_OVER = "game_over"


class LedgerEventType(Enum):
    THREAD_START = "THREAD_START"
    DOOR_PICK = "DOOR_PICK"
    ROOM_CLEAR = "ROOM_CLEAR"
    ROOM_SKIP = "ROOM_SKIP"
    SHOP_BUY = "SHOP_BUY"
    REROLL = "REROLL"
    SHOP_EXIT = "SHOP_EXIT"
    WANDERER_CHOICE = "WANDERER_CHOICE"
    AUDIT_CLEAR = "AUDIT_CLEAR"
    THREAD_END = "THREAD_END"


class WandererChoice(Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    PROVOKE = "provoke"


# =============================================================================
# Payloads
# =============================================================================

@dataclass(frozen=True)
class ProtocolRoll:
    """Three d6 rolled at thread start: domain, modifier, sponsor."""
    domain: int
    modifier: int
    sponsor: int

    def __post_init__(self):
        for name in ("domain", "modifier", "sponsor"):
            value = getattr(self, name)
            if not 1 <= value <= 6:
                raise ValueError(f"ProtocolRoll.{name} must be 1-6, got {value}")

    def __iter__(self):
        return iter((self.domain, self.modifier, self.sponsor))

    def to_dict(self) -> Dict[str, int]:
        return {"domain": self.domain, "modifier": self.modifier, "sponsor": self.sponsor}


@dataclass(frozen=True)
class ThreadStartPayload:
    seed: str
    protocol_roll: ProtocolRoll
    traveler: str
    starting_items: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DoorPickPayload:
    door_type: str
    promises: Tuple[str, ...]
    room_index: int  # room being left
    heat_delta: int = 0


@dataclass(frozen=True)
class RoomClearPayload:
    domain_index: int
    room_index: int
    score: int
    score_goal: int
    gold_awarded: int
    offer: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RoomSkipPayload:
    domain_index: int
    room_index: int
    wanderer: Optional[str] = None
    offer: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ShopBuyPayload:
    item_slug: str
    cost: int
    tier: int


@dataclass(frozen=True)
class RerollPayload:
    cost: int
    reroll_index: int
    offer: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ShopExitPayload:
    domain_index: int
    room_index: int
    next_phase: str
    doors: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()  # (door_type, promises)


@dataclass(frozen=True)
class WandererChoicePayload:
    npc_slug: str
    choice: str
    favor_delta: int = 0
    calm_delta: int = 0
    heat_delta: int = 0
    gold_delta: int = 0
    integrity_delta: int = 0
    duel_won: Optional[bool] = None
    offer: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AuditClearPayload:
    domain_index: int
    boss_defeated: bool = True


@dataclass(frozen=True)
class ThreadEndPayload:
    won: bool
    reason: str
    domain_index: int
    room_index: int


PAYLOAD_TYPES: Dict[LedgerEventType, type] = {
    LedgerEventType.THREAD_START: ThreadStartPayload,
    LedgerEventType.DOOR_PICK: DoorPickPayload,
    LedgerEventType.ROOM_CLEAR: RoomClearPayload,
    LedgerEventType.ROOM_SKIP: RoomSkipPayload,
    LedgerEventType.SHOP_BUY: ShopBuyPayload,
    LedgerEventType.REROLL: RerollPayload,
    LedgerEventType.SHOP_EXIT: ShopExitPayload,
    LedgerEventType.WANDERER_CHOICE: WandererChoicePayload,
    LedgerEventType.AUDIT_CLEAR: AuditClearPayload,
    LedgerEventType.THREAD_END: ThreadEndPayload,
}


def _thaw(value):
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def _freeze(value):
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _payload_to_dict(payload) -> Dict[str, Any]:
    data = {}
    for f in fields(payload):
        value = getattr(payload, f.name)
        if isinstance(value, ProtocolRoll):
            value = value.to_dict()
        data[f.name] = _thaw(value)
    return data


def _payload_from_dict(payload_type: type, data: Dict[str, Any]):
    kwargs = {}
    for f in fields(payload_type):
        if f.name not in data:
            continue
        value = data[f.name]
        if payload_type is ThreadStartPayload and f.name == "protocol_roll":
            value = ProtocolRoll(**value)
        else:
            value = _freeze(value)
        kwargs[f.name] = value
    return payload_type(**kwargs)


@dataclass(frozen=True)
class LedgerEvent:
    type: LedgerEventType
    seq: int
    payload: Any

    def __post_init__(self):
        expected = PAYLOAD_TYPES[self.type]
        if not isinstance(self.payload, expected):
            raise TypeError(f"{self.type.value} expects {expected.__name__}, got {type(self.payload).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "seq": self.seq, "payload": _payload_to_dict(self.payload)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerEvent":
        event_type = LedgerEventType(data["type"])
        payload = _payload_from_dict(PAYLOAD_TYPES[event_type], data.get("payload", {}))
        return cls(event_type, int(data["seq"]), payload)


# =============================================================================
# Derived State
# =============================================================================

@dataclass(frozen=True)
class RunState:
    """Everything derivable from the ledger. Immutable; transitions build new ones."""
    seed: str = ""
    traveler: str = ""
    protocol_roll: Optional[ProtocolRoll] = None
    phase: RunPhase = RunPhase.EVENT_SELECT
    domain_index: int = 1
    room_index: int = 1
    tier: int = 1
    gold: int = 0
    integrity: int = 0
    heat: int = 0
    favor_tokens: int = 0
    calm_bonus: int = 0
    skip_pressure: int = 0
    rooms_cleared: int = 0
    rooms_skipped: int = 0
    domains_cleared: int = 0
    items: Tuple[str, ...] = ()
    offer: Tuple[str, ...] = ()
    rerolls: int = 0
    doors: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    active_door: Optional[str] = None
    active_promises: Tuple[str, ...] = ()
    pending_wanderer: Optional[str] = None
    game_won: Optional[bool] = None
    ledger_length: int = 0

    @property
    def is_over(self) -> bool:
        return self.phase is RunPhase.GAME_OVER

    def diff(self, other: "RunState") -> List[str]:
        """Field names whose values differ."""
        return [f.name for f in fields(self) if getattr(self, f.name) != getattr(other, f.name)]


def apply_event(state: RunState, event: LedgerEvent, config: BalanceConfig = DEFAULT_CONFIG) -> RunState:
    """Reduce one event into a new RunState."""
    p = event.payload
    t = event.type
    length = state.ledger_length + 1

    if t is LedgerEventType.THREAD_START:
        return RunState(
            seed=p.seed,
            traveler=p.traveler,
            protocol_roll=p.protocol_roll,
            phase=RunPhase.PLAYING,
            domain_index=1,
            room_index=1,
            tier=tier_for_domain(0, config),
            gold=config.player.starting_gold,
            integrity=config.player.max_integrity,
            items=tuple(p.starting_items),
            ledger_length=length,
        )

    if t is LedgerEventType.DOOR_PICK:
        return replace(
            state,
            phase=RunPhase.PLAYING,
            room_index=p.room_index + 1,
            heat=state.heat + p.heat_delta,
            active_door=p.door_type,
            active_promises=tuple(p.promises),
            doors=(),
            offer=(),
            ledger_length=length,
        )

    if t is LedgerEventType.ROOM_CLEAR:
        return replace(
            state,
            phase=RunPhase.SHOP,
            gold=state.gold + p.gold_awarded,
            rooms_cleared=state.rooms_cleared + 1,
            skip_pressure=0,
            offer=tuple(p.offer),
            rerolls=0,
            ledger_length=length,
        )

    if t is LedgerEventType.ROOM_SKIP:
        meets_wanderer = p.wanderer is not None
        return replace(
            state,
            phase=RunPhase.ENCOUNTER if meets_wanderer else RunPhase.SHOP,
            skip_pressure=state.skip_pressure + 1,
            rooms_skipped=state.rooms_skipped + 1,
            pending_wanderer=p.wanderer,
            offer=() if meets_wanderer else tuple(p.offer),
            rerolls=0,
            ledger_length=length,
        )

    if t is LedgerEventType.SHOP_BUY:
        offer = list(state.offer)
        if p.item_slug in offer:
            offer.remove(p.item_slug)
        return replace(
            state,
            gold=state.gold - p.cost,
            items=state.items + (p.item_slug,),
            offer=tuple(offer),
            ledger_length=length,
        )

    if t is LedgerEventType.REROLL:
        return replace(
            state,
            gold=state.gold - p.cost,
            offer=tuple(p.offer),
            rerolls=state.rerolls + 1,
            ledger_length=length,
        )

    if t is LedgerEventType.SHOP_EXIT:
        return replace(
            state,
            phase=RunPhase(p.next_phase),
            doors=tuple(p.doors),
            offer=(),
            ledger_length=length,
        )

    if t is LedgerEventType.WANDERER_CHOICE:
        integrity = max(0, state.integrity + p.integrity_delta)
        broken = integrity <= 0
        return replace(
            state,
            phase=RunPhase.GAME_OVER if broken else RunPhase.SHOP,
            favor_tokens=max(0, state.favor_tokens + p.favor_delta),
            calm_bonus=max(0, state.calm_bonus + p.calm_delta),
            heat=max(0, state.heat + p.heat_delta),
            gold=state.gold + p.gold_delta,
            integrity=integrity,
            pending_wanderer=None,
            offer=() if broken else tuple(p.offer),
            rerolls=0,
            game_won=False if broken else state.game_won,
            ledger_length=length,
        )

    if t is LedgerEventType.AUDIT_CLEAR:
        cleared = state.domains_cleared + 1
        if p.domain_index >= FINAL_DOMAIN_INDEX:
            return replace(
                state,
                phase=RunPhase.GAME_OVER,
                domains_cleared=cleared,
                game_won=True,
                doors=(),
                ledger_length=length,
            )
        return replace(
            state,
            phase=RunPhase.PLAYING,
            domain_index=p.domain_index + 1,
            room_index=1,
            tier=tier_for_domain(cleared, config),
            domains_cleared=cleared,
            skip_pressure=0,
            active_door=None,
            active_promises=(),
            doors=(),
            ledger_length=length,
        )

    if t is LedgerEventType.THREAD_END:
        return replace(
            state,
            phase=RunPhase.GAME_OVER,
            game_won=p.won,
            pending_wanderer=None,
            offer=(),
            doors=(),
            ledger_length=length,
        )

    raise InvariantViolation(f"Unhandled ledger event type: {t}")


def fold_ledger(events: Iterable[LedgerEvent], config: BalanceConfig = DEFAULT_CONFIG) -> RunState:
    """Rebuild RunState from scratch. Checks that sequence numbers are contiguous."""
    state = RunState()
    for expected_seq, event in enumerate(events):
        if event.seq != expected_seq:
            raise InvariantViolation(f"Ledger gap: expected seq {expected_seq}, got {event.seq}")
        if expected_seq == 0 and event.type is not LedgerEventType.THREAD_START:
            raise InvariantViolation("Ledger must begin with THREAD_START")
        if expected_seq > 0 and event.type is LedgerEventType.THREAD_START:
            raise InvariantViolation("THREAD_START may only appear once")
        state = apply_event(state, event, config)
    return state


def states_agree(live: RunState, folded: RunState) -> List[str]:
    """Names of fields where the live cache and the fold disagree (empty = agree)."""
    return live.diff(folded)


def event_counts(events: Iterable[LedgerEvent]) -> Dict[str, int]:
    counts = {t.value: 0 for t in LedgerEventType}
    for event in events:
        counts[event.type.value] += 1
    return counts


def ledger_to_dicts(events: Iterable[LedgerEvent]) -> List[Dict[str, Any]]:
    return [e.to_dict() for e in events]


def ledger_from_dicts(data: Iterable[Dict[str, Any]]) -> List[LedgerEvent]:
    return [LedgerEvent.from_dict(d) for d in data]
