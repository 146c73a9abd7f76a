"""
Namespaced Seeded RNG - deterministic random streams for a run.

The run seed ("thread id") is the master entropy source. Every random
decision point pulls from its own namespace, e.g.

    requisition:tier:2:domain:forest
    doorSelect:room:1:tier:1:elite
    encounter:domain:caverns:sponsor:3

Each (seed, namespace) pair owns a private Mulberry32 generator seeded
from a cyrb53 hash chain:

    master         = cyrb53(seed)
    namespace_seed = cyrb53(namespace, master)

Two namespaces never share state, and asking the same namespace twice
continues its sequence instead of re-seeding. All arithmetic is masked
to 32 bits so the seed->output mapping is identical on every platform.

Usage:
    pool = RngPool("ABC123")
    items = pool.pick_n("requisition:tier:1:domain:meadow", catalog_items, 3)
    if pool.chance("doorSelect:room:1:tier:1:elite", 25):
        ...
"""

from collections import OrderedDict
from datetime import date
import random as py_random
import re
from typing import List, Optional, Sequence, TypeVar

from ..errors import InvalidSeedError

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
TWO_POW_32 = 4294967296

SEED_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,32}$")
THREAD_ID_CHARS = "0123456789ABCDEF"
THREAD_ID_LENGTH = 6

DEFAULT_MAX_STREAMS = 1024


# =============================================================================
# Hash + Generator
# =============================================================================

def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply (low 32 bits, unsigned view)."""
    return (a * b) & MASK32


def _utf16_units(text: str):
    """Yield UTF-16 code units, so non-BMP characters hash as surrogate pairs."""
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def hash_string(text: str, seed: int = 0) -> int:
    """
    cyrb53 string hash.

    Returns a 53-bit non-negative integer. Only the low 32 bits of
    `seed` participate, matching a 32-bit xor on the salt.
    """
    seed &= MASK32
    h1 = 0xDEADBEEF ^ seed
    h2 = 0x41C6CE57 ^ seed
    for ch in _utf16_units(text):
        h1 = _imul(h1 ^ ch, 2654435761)
        h2 = _imul(h2 ^ ch, 1597334677)
    h1 = _imul(h1 ^ (h1 >> 16), 2246822507)
    h1 ^= _imul(h2 ^ (h2 >> 13), 3266489909)
    h2 = _imul(h2 ^ (h2 >> 16), 2246822507)
    h2 ^= _imul(h1 ^ (h1 >> 13), 3266489909)
    return TWO_POW_32 * (0x1FFFFF & h2) + h1


class Mulberry32:
    """
    Mulberry32 PRNG - single 32-bit word of state.

    The state is the running seed mod 2**32; each step adds the
    golden-ratio-ish increment 0x6D2B79F5 before mixing.
    """

    INCREMENT = 0x6D2B79F5

    def __init__(self, seed: int):
        self.state = seed & MASK32

    def next_uint32(self) -> int:
        self.state = (self.state + self.INCREMENT) & MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return (t ^ (t >> 14)) & MASK32

    def next_float(self) -> float:
        """Random float in [0, 1)."""
        return self.next_uint32() / TWO_POW_32

    def copy(self) -> "Mulberry32":
        clone = Mulberry32(0)
        clone.state = self.state
        return clone


# =============================================================================
# Streams
# =============================================================================

class RngStream:
    """
    One namespace's private random sequence.

    Streams are cheap: the only mutable state is the 32-bit generator word
    plus a draw counter kept for debugging and trace output.
    """

    def __init__(self, seed: str, namespace: str, namespace_seed: int):
        self.seed = seed
        self.namespace = namespace
        self.namespace_seed = namespace_seed
        self._gen = Mulberry32(namespace_seed)
        self.draws = 0

    def __repr__(self) -> str:
        return f"RngStream({self.seed!r}, {self.namespace!r}, draws={self.draws})"

    def next_float(self) -> float:
        self.draws += 1
        return self._gen.next_float()

    def next_int(self, max_value: int) -> int:
        """Random int in [0, max_value). Non-positive bounds yield 0."""
        if max_value <= 0:
            self.next_float()
            return 0
        return int(self.next_float() * max_value)

    def next_range(self, min_value: int, max_value: int) -> int:
        """Random int in [min_value, max_value] (inclusive)."""
        if max_value < min_value:
            min_value, max_value = max_value, min_value
        return int(self.next_float() * (max_value - min_value + 1)) + min_value

    def pick(self, items: Sequence[T]) -> Optional[T]:
        """Pick one element, or None for an empty sequence."""
        if not items:
            return None
        return items[int(self.next_float() * len(items))]

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Fisher-Yates shuffle from the tail. Returns a new list."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.next_float() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result

    def pick_n(self, items: Sequence[T], count: int) -> List[T]:
        """Sample without replacement: shuffle, then take the first `count`."""
        if not items or count <= 0:
            return []
        return self.shuffle(items)[:min(count, len(items))]

    def roll_die(self, sides: int) -> int:
        return self.next_range(1, max(1, sides))

    def roll_sum(self, count: int, sides: int) -> int:
        sides = max(1, sides)
        total = 0
        for _ in range(max(0, count)):
            total += int(self.next_float() * sides) + 1
        return total

    def chance(self, percent: float) -> bool:
        """True with probability percent/100."""
        return self.next_float() * 100 < percent

    def copy(self) -> "RngStream":
        clone = RngStream(self.seed, self.namespace, self.namespace_seed)
        clone._gen = self._gen.copy()
        clone.draws = self.draws
        return clone


def validate_seed(seed: str) -> str:
    """Return `seed` unchanged, or raise InvalidSeedError."""
    if not isinstance(seed, str):
        raise InvalidSeedError(f"Seed must be a string, got {type(seed).__name__}")
    if not SEED_PATTERN.match(seed):
        raise InvalidSeedError(
            f"Invalid seed {seed!r}: expected 1-32 characters of [A-Za-z0-9_-]"
        )
    return seed


def derive(seed: str, namespace: str) -> RngStream:
    """Build a fresh stream for (seed, namespace). Not cached."""
    master = hash_string(validate_seed(seed))
    return RngStream(seed, namespace, hash_string(namespace, master))


class RngPool:
    """
    Per-run cache of namespaced streams.

    Owned by the RunLedger (or a simulator run context) rather than living
    in module state. The cache is an LRU bounded by `max_streams`; an
    evicted namespace restarts its sequence the next time it is asked for.
    Pass max_streams=None for an unbounded pool.

    A non-empty `scope` is appended to every namespace as `@{scope}`, so
    the same decision point rolls independently under different scopes.
    """

    def __init__(
        self,
        seed: str,
        max_streams: Optional[int] = DEFAULT_MAX_STREAMS,
        scope: str = "",
    ):
        self.seed = validate_seed(seed)
        self.scope = scope
        self.master_seed = hash_string(seed)
        if max_streams is not None and max_streams <= 0:
            raise ValueError("max_streams must be positive or None")
        self.max_streams = max_streams
        self._streams: "OrderedDict[str, RngStream]" = OrderedDict()
        self.evictions = 0

    def __repr__(self) -> str:
        scope = f", scope={self.scope!r}" if self.scope else ""
        return f"RngPool({self.seed!r}{scope}, streams={len(self._streams)})"

    def __len__(self) -> int:
        return len(self._streams)

    def stream(self, namespace: str) -> RngStream:
        stream = self._streams.get(namespace)
        if stream is not None:
            self._streams.move_to_end(namespace)
            return stream

        key = f"{namespace}@{self.scope}" if self.scope else namespace
        stream = RngStream(self.seed, key, hash_string(key, self.master_seed))
        self._streams[namespace] = stream
        if self.max_streams is not None and len(self._streams) > self.max_streams:
            self._streams.popitem(last=False)
            self.evictions += 1
        return stream

    def cached_namespaces(self) -> List[str]:
        return list(self._streams.keys())

    def scoped(self, scope: str) -> "RngPool":
        """
        Fresh pool over the same seed with every namespace suffixed by
        `@{scope}`. Draws through it depend only on (seed, scope, namespace)
        and on the draws already made through that same scoped pool.
        """
        return RngPool(self.seed, self.max_streams, scope)

    # Namespaced shorthands

    def random(self, namespace: str) -> float:
        return self.stream(namespace).next_float()

    def int(self, namespace: str, max_value: int) -> int:
        return self.stream(namespace).next_int(max_value)

    def range(self, namespace: str, min_value: int, max_value: int) -> int:
        return self.stream(namespace).next_range(min_value, max_value)

    def pick(self, namespace: str, items: Sequence[T]) -> Optional[T]:
        return self.stream(namespace).pick(items)

    def pick_n(self, namespace: str, items: Sequence[T], count: int) -> List[T]:
        return self.stream(namespace).pick_n(items, count)

    def shuffle(self, namespace: str, items: Sequence[T]) -> List[T]:
        return self.stream(namespace).shuffle(items)

    def roll(self, namespace: str, sides: int) -> int:
        return self.stream(namespace).roll_die(sides)

    def roll_sum(self, namespace: str, count: int, sides: int) -> int:
        return self.stream(namespace).roll_sum(count, sides)

    def chance(self, namespace: str, percent: float) -> bool:
        return self.stream(namespace).chance(percent)


# =============================================================================
# Seed Sources
# =============================================================================

def generate_thread_id(source: Optional[py_random.Random] = None) -> str:
    """New 6-char hex thread id from a non-deterministic source."""
    rand = source if source is not None else py_random.SystemRandom()
    return "".join(rand.choice(THREAD_ID_CHARS) for _ in range(THREAD_ID_LENGTH))


def daily_seed(day: Optional[date] = None) -> str:
    """Shared seed for a calendar day (same day = same seed everywhere)."""
    day = day or date.today()
    date_str = f"{day.year}-{day.month}-{day.day}"
    return format(hash_string(date_str), "X")[:THREAD_ID_LENGTH]
