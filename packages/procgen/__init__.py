"""
Thread Procgen Engine

Deterministic procedural generation and economy for a six-domain
roguelike. Given a thread seed, every pool, door, encounter, gold reward
and difficulty step is reproducible, live or headless.

Core subsystems:
- state: namespaced seeded RNG (cyrb53 + Mulberry32), ledger events and fold
- content: items, wanderers, domains, travelers (read-only catalog)
- generation: requisition pools, starter kits, doors, encounters
- balance: BalanceConfig presets and pure economy/difficulty formulas
- run: RunLedger, the phase state machine for one thread
- simulation: virtual players, batch runs, fitness, genetic tuner

Usage:
    from packages.procgen import RunLedger, RngPool, requisition_pool, default_catalog

    run = RunLedger()
    run.start_thread("ABC123")
    run.clear_room(run.room_goal())
    print(run.snapshot().to_dict())

    pool = requisition_pool(RngPool("ABC123"), default_catalog(), tier=1, domain="meadow", count=3)
    print(pool.slugs)

    from packages.procgen import GeneticTuner, TunerConfig
    result = GeneticTuner(TunerConfig(generations=3, runs=50)).run()
"""

__version__ = "0.1.0"

# Errors
from .errors import (
    ProcgenError,
    InvalidSeedError,
    InvalidConfigError,
    CatalogError,
    InvariantViolation,
    IllegalTransition,
)

# RNG
from .state.rng import RngPool, RngStream, derive, hash_string, daily_seed, generate_thread_id

# Ledger
from .state.ledger import (
    RunPhase,
    LedgerEventType,
    LedgerEvent,
    ProtocolRoll,
    RunState,
    WandererChoice,
    fold_ledger,
)

# Content
from .content import (
    Rarity,
    Element,
    ItemCategory,
    EffectKind,
    Item,
    Wanderer,
    Domain,
    Traveler,
    ContentCatalog,
    default_catalog,
)

# Generation
from .generation import (
    PoolKind,
    PoolResult,
    DoorType,
    DoorPromise,
    DoorPreview,
    requisition_pool,
    starter_kits,
    door_preview,
    available_doors,
    encounter_wanderer,
)

# Balance
from .balance import (
    BalanceConfig,
    DEFAULT_CONFIG,
    PRESETS,
    LuckySynergy,
    get_preset,
    load_config,
    gold_reward,
    price_multiplier,
    favor_discount,
    reroll_cost,
    heat_difficulty,
    lucky_synergy,
    tier_for_domain,
)

# Run state machine
from .run import RunLedger, TransitionResult, ThreadSnapshot

# Simulation
from .simulation import (
    RunOutcome,
    simulate_run,
    run_batch,
    BatchMetrics,
    aggregate,
    fitness,
    GeneticTuner,
    TunerConfig,
    TunerResult,
)

__all__ = [
    "__version__",
    "ProcgenError",
    "InvalidSeedError",
    "InvalidConfigError",
    "CatalogError",
    "InvariantViolation",
    "IllegalTransition",
    "RngPool",
    "RngStream",
    "derive",
    "hash_string",
    "daily_seed",
    "generate_thread_id",
    "RunPhase",
    "LedgerEventType",
    "LedgerEvent",
    "ProtocolRoll",
    "RunState",
    "WandererChoice",
    "fold_ledger",
    "Rarity",
    "Element",
    "ItemCategory",
    "EffectKind",
    "Item",
    "Wanderer",
    "Domain",
    "Traveler",
    "ContentCatalog",
    "default_catalog",
    "PoolKind",
    "PoolResult",
    "DoorType",
    "DoorPromise",
    "DoorPreview",
    "requisition_pool",
    "starter_kits",
    "door_preview",
    "available_doors",
    "encounter_wanderer",
    "BalanceConfig",
    "DEFAULT_CONFIG",
    "PRESETS",
    "LuckySynergy",
    "get_preset",
    "load_config",
    "gold_reward",
    "price_multiplier",
    "favor_discount",
    "reroll_cost",
    "heat_difficulty",
    "lucky_synergy",
    "tier_for_domain",
    "RunLedger",
    "TransitionResult",
    "ThreadSnapshot",
    "RunOutcome",
    "simulate_run",
    "run_batch",
    "BatchMetrics",
    "aggregate",
    "fitness",
    "GeneticTuner",
    "TunerConfig",
    "TunerResult",
]
