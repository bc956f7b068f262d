"""Deterministic seeding helpers.

Signals are stabilized per (symbol, hour) and synthetic prices are seeded per
symbol. Both rely on the Park-Miller "minimal standard" Lehmer generator,
``seed = seed * 16807 mod (2**31 - 1)``, computed with Python integers so the
results never depend on overflow behavior.
"""

from __future__ import annotations

from typing import Iterator

LEHMER_MULTIPLIER = 16807
LEHMER_MODULUS = 2_147_483_647
MILLIS_PER_HOUR = 3_600_000
JITTER_ROUNDS = 2


def symbol_hash(symbol: str) -> int:
    """Sum of the code points of ``symbol``."""
    return sum(ord(ch) for ch in symbol)


def hour_bucket(now_millis: int | float) -> int:
    """Wall-clock time in milliseconds truncated to whole hours since epoch."""
    return int(now_millis // MILLIS_PER_HOUR)


def lehmer_next(seed: int) -> int:
    """Advance the Lehmer generator by one step."""
    return (seed * LEHMER_MULTIPLIER) % LEHMER_MODULUS


def hourly_jitter(symbol: str, bucket: int, rounds: int = JITTER_ROUNDS) -> float:
    """Pseudo-random value in ``[0, 1)`` fixed for a symbol and hour bucket.

    The seed ``symbol_hash + bucket`` is advanced ``rounds`` times. A single
    step moves the result by only ``16807 / modulus`` per unit of seed, so
    neighbouring hours and similar symbols stay nearly equal; a second step
    spreads them across the unit interval.

    :param symbol: Symbol whose hash seeds the value.
    :param bucket: Hour bucket, see :func:`hour_bucket`.
    :param rounds: Number of generator steps, at least 1.
    :returns: Final generator state divided by the modulus.
    """
    state = symbol_hash(symbol) + bucket
    for _ in range(max(rounds, 1)):
        state = lehmer_next(state)
    return state / LEHMER_MODULUS


class LehmerRandom:
    """Seeded stream of floats in ``[0, 1)`` from the Lehmer generator.

    Each draw advances the state and maps it to ``(state - 1) / (modulus - 1)``.
    A seed that is a multiple of the modulus would stick at zero, so such seeds
    are replaced by 1.

    :param seed: Initial state.
    """

    def __init__(self, seed: int) -> None:
        seed %= LEHMER_MODULUS
        self.state = seed if seed > 0 else 1

    def random(self) -> float:
        """Draw the next value."""
        self.state = lehmer_next(self.state)
        return (self.state - 1) / (LEHMER_MODULUS - 1)

    def __iter__(self) -> Iterator[float]:
        while True:
            yield self.random()
