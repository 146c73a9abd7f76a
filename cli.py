#!/usr/bin/env python3
"""
Thread Procgen - Command Line Interface

Balance simulation, genetic tuning and seeded pool inspection.

Usage:
    procgen tune --runs 200 --generations 20 --population 10 --preset balanced
    procgen simulate --runs 500 --preset brutal --workers 4
    procgen pool --seed ABC123 --tier 1 --domain meadow --count 3
    procgen doors --seed ABC123 --room 1 --tier 2
    procgen daily-seed --date 2025-01-31

tune and simulate print a JSON summary, write a JSON results file, and
exit with status 1 when any simulated run hit an internal error.
"""

import argparse
from datetime import date, datetime
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from packages.procgen.balance.config import BalanceConfig, PRESET_ALIASES, PRESETS, load_config
from packages.procgen.content.world import default_catalog
from packages.procgen.errors import ProcgenError
from packages.procgen.generation.doors import available_doors
from packages.procgen.generation.pools import requisition_pool
from packages.procgen.simulation.batch import BatchConfig, BatchResult, run_batch
from packages.procgen.simulation.fitness import aggregate, fitness
from packages.procgen.simulation.personas import PERSONA_ORDER
from packages.procgen.simulation.tuner import GeneticTuner, TunerConfig
from packages.procgen.state.rng import RngPool, daily_seed


logger = logging.getLogger("procgen.cli")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PRESET_CHOICES = sorted(set(PRESETS) | set(PRESET_ALIASES))


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_batch_summary(batch: BatchResult) -> Dict[str, Any]:
    """Pass/fail counts plus one entry per errored run."""
    errors = [
        {"index": index, "seed": seed, "message": message}
        for index, seed, message in batch.errors
    ]
    return {
        "runs": batch.total_runs,
        "passed": batch.total_runs - len(errors),
        "failed": len(errors),
        "errors": errors,
        "runs_per_second": round(batch.runs_per_second, 2),
    }


def format_pool(pool) -> str:
    lines = [f"Pool {pool.namespace} (tier {pool.tier}, {len(pool)}/{pool.requested})"]
    if pool.is_empty:
        lines.append(f"  {pool.message}")
    for entry in pool:
        item = entry.entry
        lines.append(f"  {item.slug:<22} {item.rarity.value:<10} {item.element.value:<8} {entry.price:>5}g")
    if pool.underfilled and not pool.is_empty:
        lines.append("  (underfilled)")
    return "\n".join(lines)


def format_doors(pool) -> str:
    lines = [f"Doors {pool.namespace}"]
    for door in pool.values:
        promises = ", ".join(p.value for p in door.promises)
        lines.append(f"  {door.label:<18} difficulty {door.difficulty}  [{promises}]")
    return "\n".join(lines)


def write_results(path: Optional[str], data: Dict[str, Any]) -> None:
    if not path:
        return
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.info("Results written to %s", path)


# =============================================================================
# COMMANDS
# =============================================================================

def _load_config(args) -> BalanceConfig:
    overrides = None
    if getattr(args, "config", None):
        with open(args.config) as f:
            overrides = json.load(f)
    return load_config(overrides, args.preset)


def _batch_config(args) -> BatchConfig:
    return BatchConfig(workers=args.workers, personas=tuple(args.persona or ()))


def cmd_simulate(args) -> int:
    """Simulate one config and score it against its targets."""
    config = _load_config(args)
    batch = run_batch(config, args.runs, args.seed, batch_config=_batch_config(args))
    metrics = aggregate(batch.outcomes)

    summary = format_batch_summary(batch)
    summary["preset"] = config.name
    summary["fitness"] = round(fitness(metrics, config.targets), 4)
    summary["metrics"] = metrics.to_dict()
    print(json.dumps(summary, indent=2))

    write_results(args.output, {
        "summary": summary,
        "config": config.to_dict(),
        "outcomes": [o.to_dict() for o in batch.outcomes],
    })
    return 1 if batch.errors else 0


def cmd_tune(args) -> int:
    """Genetic search from a preset, then a validation batch of the winner."""
    config = _load_config(args)
    tuner_config = TunerConfig(
        generations=args.generations,
        population=args.population,
        runs=args.runs,
        mutation_rate=args.mutation_rate,
        mutation_intensity=args.mutation_intensity,
    )
    tuner = GeneticTuner(tuner_config, config, seed=args.seed, batch_config=_batch_config(args))
    result = tuner.run()

    batch = run_batch(result.best_config, args.runs, f"{args.seed}V", batch_config=_batch_config(args))
    summary = format_batch_summary(batch)
    summary["preset"] = config.name
    summary["best_fitness"] = round(result.best_fitness, 4)
    summary["generations_run"] = result.generations_run
    summary["stop_reason"] = result.stop_reason
    summary["tuning_errors"] = result.total_errors
    print(json.dumps(summary, indent=2))

    write_results(args.output, {"summary": summary, "tuning": result.to_dict()})
    return 1 if (batch.errors or result.total_errors) else 0


def cmd_pool(args) -> int:
    """Show a requisition pool for a seed."""
    rng = RngPool(args.seed)
    pool = requisition_pool(
        rng,
        default_catalog(),
        args.tier,
        args.domain,
        count=args.count,
        reroll=args.reroll,
        include_override=args.override,
        favor_tokens=args.favor,
    )
    if args.json:
        print(json.dumps(pool.to_dict(), indent=2))
    else:
        print(format_pool(pool))
    return 0


def cmd_doors(args) -> int:
    """Show the doors offered after a room."""
    catalog = default_catalog()
    domain = catalog.domain(args.domain) if args.domain else None
    pool = available_doors(RngPool(args.seed), domain, args.room, args.tier)
    if args.json:
        print(json.dumps({
            "namespace": pool.namespace,
            "doors": [door.to_dict() for door in pool.values],
        }, indent=2))
    else:
        print(format_doors(pool))
    return 0


def cmd_daily_seed(args) -> int:
    day = datetime.strptime(args.date, "%Y-%m-%d").date() if args.date else date.today()
    print(daily_seed(day))
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procgen",
        description="Thread Procgen - balance simulation and seeded pool inspection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s tune --runs 200 --generations 20 --population 10 --preset balanced
  %(prog)s simulate --runs 500 --preset riskReward --workers 4
  %(prog)s pool --seed ABC123 --tier 1 --domain meadow --count 3
  %(prog)s doors --seed ABC123 --room 1 --tier 2
  %(prog)s daily-seed
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_sim_args(p, output: str) -> None:
        p.add_argument("--runs", "-n", type=int, default=200, help="Simulated runs per config")
        p.add_argument("--preset", "-p", default="balanced", choices=PRESET_CHOICES, help="Base preset")
        p.add_argument("--config", "-c", help="JSON file of section overrides")
        p.add_argument("--seed", "-s", default="SIM", help="Base seed (run i uses SEED-i)")
        p.add_argument("--workers", "-w", type=int, default=1, help="Worker processes")
        p.add_argument("--persona", action="append", choices=PERSONA_ORDER,
                       help="Restrict to persona (repeatable)")
        p.add_argument("--output", "-o", default=output, help="JSON results file ('' to skip)")

    # Tune command
    tune_parser = subparsers.add_parser("tune", help="Genetic search over BalanceConfig")
    add_sim_args(tune_parser, "tuning_results.json")
    tune_parser.add_argument("--generations", "-g", type=int, default=20, help="Generation budget")
    tune_parser.add_argument("--population", type=int, default=10, help="Candidates per generation")
    tune_parser.add_argument("--mutation-rate", type=float, default=0.15, help="Per-section mutation chance")
    tune_parser.add_argument("--mutation-intensity", type=float, default=0.1, help="Relative delta bound")

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Simulate one config")
    add_sim_args(sim_parser, "simulation_results.json")

    # Pool command
    pool_parser = subparsers.add_parser("pool", help="Show a requisition pool")
    pool_parser.add_argument("--seed", "-s", required=True, help="Thread seed")
    pool_parser.add_argument("--tier", "-t", type=int, default=1, help="Tier (1-5)")
    pool_parser.add_argument("--domain", "-d", default="meadow", help="Domain slug")
    pool_parser.add_argument("--count", "-n", type=int, default=3, help="Entries")
    pool_parser.add_argument("--reroll", type=int, default=0, help="Reroll index")
    pool_parser.add_argument("--favor", type=int, default=0, help="Favor tokens for pricing")
    pool_parser.add_argument("--override", action="store_true", help="Guarantee an Epic/Legendary pick")
    pool_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    # Doors command
    doors_parser = subparsers.add_parser("doors", help="Show doors offered after a room")
    doors_parser.add_argument("--seed", "-s", required=True, help="Thread seed")
    doors_parser.add_argument("--room", "-r", type=int, default=1, help="Room index just cleared")
    doors_parser.add_argument("--tier", "-t", type=int, default=1, help="Tier (1-5)")
    doors_parser.add_argument("--domain", "-d", help="Domain slug")
    doors_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    # Daily seed command
    daily_parser = subparsers.add_parser("daily-seed", help="Print the shared seed for a day")
    daily_parser.add_argument("--date", help="YYYY-MM-DD (default: today)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    if not args.command:
        parser.print_help()
        return 1

    # Dispatch to command handler
    commands = {
        "tune": cmd_tune,
        "simulate": cmd_simulate,
        "pool": cmd_pool,
        "doors": cmd_doors,
        "daily-seed": cmd_daily_seed,
    }

    try:
        return commands[args.command](args)
    except (ProcgenError, KeyError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
