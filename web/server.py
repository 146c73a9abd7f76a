#!/usr/bin/env python3
"""
Thread Procgen Dev Overlay

A small JSON API for poking at live threads while developing: start a
thread, drive its transitions, and read the ThreadSnapshot, ledger and
pool previews. Threads live in process memory only.

The balance preset comes from the PROCGEN_PRESET environment variable
(default "balanced").

Usage:
    PROCGEN_PRESET=brutal uv run python web/server.py

Then open http://localhost:8080
"""

import os
import sys
from typing import Any, Dict, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse
import uvicorn

from packages.procgen.balance.config import PRESETS, BalanceConfig, get_preset
from packages.procgen.content.world import DEFAULT_TRAVELER, default_catalog
from packages.procgen.errors import IllegalTransition, InvariantViolation, ProcgenError
from packages.procgen.generation.doors import available_doors
from packages.procgen.generation.pools import requisition_pool
from packages.procgen.run import RunLedger
from packages.procgen.state.rng import RngPool


app = FastAPI(title="Thread Procgen Dev Overlay")

PRESET_ENV = "PROCGEN_PRESET"

# seed -> live thread
THREADS: Dict[str, RunLedger] = {}


def get_config() -> BalanceConfig:
    return get_preset(os.environ.get(PRESET_ENV, "balanced"))


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _find_thread(seed: str) -> Optional[RunLedger]:
    return THREADS.get(seed)


def _state_payload(run: RunLedger) -> Dict[str, Any]:
    return {
        "snapshot": run.snapshot().to_dict(),
        "room_goal": run.room_goal() if not run.game_over else None,
        "shop": run.shop_offer().to_dict(),
        "doors": [door.to_dict() for door in run.available_doors()],
        "reroll_cost": run.effective_reroll_cost(),
    }


# ============================================================================
# PAGES
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def index():
    """Minimal landing page listing the endpoints."""
    rows = "".join(f"<li>{seed}: {run.phase.value}</li>" for seed, run in THREADS.items())
    return (
        "<h1>Thread Procgen Dev Overlay</h1>"
        f"<p>Preset: {os.environ.get(PRESET_ENV, 'balanced')}</p>"
        "<p>See <a href='/docs'>/docs</a> for the API.</p>"
        f"<ul>{rows}</ul>"
    )


@app.get("/api/presets")
async def list_presets():
    return JSONResponse({
        "active": os.environ.get(PRESET_ENV, "balanced"),
        "presets": sorted(PRESETS),
    })


# ============================================================================
# THREADS
# ============================================================================

@app.post("/api/threads")
async def start_thread(seed: Optional[str] = None, traveler: str = DEFAULT_TRAVELER):
    """Start (or restart) a thread and return its state."""
    try:
        run = RunLedger(get_config())
        run.start_thread(seed, traveler)
    except IllegalTransition as e:
        return _error(str(e), 404)
    except ProcgenError as e:
        return _error(str(e), 400)
    THREADS[run.state.seed] = run
    return JSONResponse(_state_payload(run))


@app.get("/api/threads/{seed}")
async def get_thread(seed: str):
    run = _find_thread(seed)
    if run is None:
        return _error(f"No thread {seed}", 404)
    return JSONResponse(_state_payload(run))


@app.get("/api/threads/{seed}/ledger")
async def get_ledger(seed: str):
    run = _find_thread(seed)
    if run is None:
        return _error(f"No thread {seed}", 404)
    return JSONResponse({
        "events": run.export(),
        "counts": run.event_counts(),
        "wanderers": run.wanderer_summary(),
    })


@app.get("/api/threads/{seed}/verify")
async def verify_thread(seed: str):
    """Refold the ledger and compare with the live counters."""
    run = _find_thread(seed)
    if run is None:
        return _error(f"No thread {seed}", 404)
    try:
        run.verify()
    except InvariantViolation as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=500)
    return JSONResponse({"ok": True, "ledger_length": len(run.events)})


@app.post("/api/threads/{seed}/actions/{action}")
async def take_action(
    seed: str,
    action: str,
    score: int = 0,
    item: Optional[str] = None,
    door: Optional[str] = None,
    npc: Optional[str] = None,
    choice: Optional[str] = None,
    wanderer: Optional[str] = None,
):
    """
    Apply one transition. Actions: clear, lose, skip, wanderer, buy,
    reroll, continue, door, audit.

    Rejected purchases/rerolls return 200 with ok=false; illegal
    transitions return 409 and leave the thread untouched.
    """
    run = _find_thread(seed)
    if run is None:
        return _error(f"No thread {seed}", 404)

    ok, reason = True, ""
    try:
        if action == "clear":
            run.clear_room(score)
        elif action == "lose":
            run.lose_room()
        elif action == "skip":
            run.skip_room(wanderer)
        elif action == "wanderer":
            run.resolve_wanderer_choice(npc or run.state.pending_wanderer, choice or "accept")
        elif action == "buy":
            if item is None:
                return _error("buy requires ?item=", 400)
            result = run.buy_item(item)
            ok, reason = result.ok, result.reason
        elif action == "reroll":
            result = run.reroll_shop()
            ok, reason = result.ok, result.reason
        elif action == "continue":
            run.shop_continue()
        elif action == "door":
            if door is None:
                return _error("door requires ?door=", 400)
            run.pick_door(door)
        elif action == "audit":
            run.begin_audit()
        else:
            return _error(f"Unknown action {action}", 404)
    except IllegalTransition as e:
        return _error(str(e), 409)

    payload = _state_payload(run)
    payload["ok"] = ok
    payload["reason"] = reason
    return JSONResponse(payload)


# ============================================================================
# PREVIEWS
# ============================================================================

@app.get("/api/pool")
async def preview_pool(
    seed: str,
    tier: int = 1,
    domain: str = "meadow",
    count: int = 3,
    reroll: int = 0,
    override: bool = False,
):
    """Requisition pool from a fresh RngPool (does not touch live threads)."""
    try:
        pool = requisition_pool(
            RngPool(seed), default_catalog(), tier, domain,
            count=count, reroll=reroll, include_override=override, config=get_config(),
        )
    except ProcgenError as e:
        return _error(str(e), 400)
    return JSONResponse(pool.to_dict())


@app.get("/api/doors")
async def preview_doors(seed: str, room: int = 1, tier: int = 1, domain: Optional[str] = None):
    try:
        resolved = default_catalog().domain(domain) if domain else None
        pool = available_doors(RngPool(seed), resolved, room, tier, get_config())
    except KeyError:
        return _error(f"Unknown domain {domain}", 404)
    except ProcgenError as e:
        return _error(str(e), 400)
    return JSONResponse({
        "namespace": pool.namespace,
        "doors": [d.to_dict() for d in pool.values],
        "message": pool.message,
    })


if __name__ == "__main__":
    print(f"""
    ========================================
    Thread Procgen Dev Overlay
    ========================================

    URL: http://localhost:8080
    Preset: {os.environ.get(PRESET_ENV, 'balanced')}

    Press Ctrl+C to stop.
    ========================================
    """)

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8080,
        log_level="info",
    )
