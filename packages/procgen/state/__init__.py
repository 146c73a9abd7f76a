"""
Run state: seeded RNG streams and the append-only run ledger.
"""

from .rng import (
    MASK32,
    DEFAULT_MAX_STREAMS,
    hash_string,
    Mulberry32,
    RngStream,
    RngPool,
    validate_seed,
    derive,
    generate_thread_id,
    daily_seed,
)
from .ledger import (
    RunPhase,
    LedgerEventType,
    WandererChoice,
    ProtocolRoll,
    LedgerEvent,
    RunState,
    apply_event,
    fold_ledger,
    event_counts,
    ledger_to_dicts,
    ledger_from_dicts,
)

__all__ = [
    "MASK32",
    "DEFAULT_MAX_STREAMS",
    "hash_string",
    "Mulberry32",
    "RngStream",
    "RngPool",
    "validate_seed",
    "derive",
    "generate_thread_id",
    "daily_seed",
    "RunPhase",
    "LedgerEventType",
    "WandererChoice",
    "ProtocolRoll",
    "LedgerEvent",
    "RunState",
    "apply_event",
    "fold_ledger",
    "event_counts",
    "ledger_to_dicts",
    "ledger_from_dicts",
]
