"""
Error taxonomy for the procgen engine.

Only programmer errors and invariant breaks are exceptions. Expected
conditions (not enough gold, an empty pool) come back as values so
callers can render a "rejected" state without try/except.
"""


class ProcgenError(Exception):
    """Base class for every error raised by the engine."""


class InvalidSeedError(ProcgenError, ValueError):
    """Seed string is empty, too long, or contains illegal characters."""


class InvalidConfigError(ProcgenError, ValueError):
    """BalanceConfig (or a preset name) failed validation."""


class CatalogError(ProcgenError, ValueError):
    """Static content tables are inconsistent (duplicate or dangling slugs)."""


class InvariantViolation(ProcgenError):
    """Live run counters and the ledger fold disagree."""


class IllegalTransition(InvariantViolation):
    """A run action was attempted from a phase that does not allow it."""

    def __init__(self, action: str, phase, detail: str = ""):
        self.action = action
        self.phase = phase
        message = f"{action} not allowed in phase {getattr(phase, 'value', phase)}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
