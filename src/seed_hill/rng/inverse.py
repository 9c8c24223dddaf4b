"""
Exact backward stepping for the PS2 generator.

The PS2 recurrence is a bijection on [0, 2^31) because its multiplier is odd,
so every state has exactly one predecessor:

    prev = A^-1 * (cur - C) mod 2^31
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from seed_hill.rng.backend import PS2_A, PS2_C, PS2_MOD


def modinv(a: int, m: int) -> Optional[int]:
    """Multiplicative inverse of a modulo m via extended Euclid, or None if gcd(a, m) != 1."""
    t, new_t = 0, 1
    r, new_r = m, a
    while new_r != 0:
        q = r // new_r
        t, new_t = new_t, t - q * new_t
        r, new_r = new_r, r - q * new_r
    if r > 1:
        return None
    if t < 0:
        t += m
    return t


@dataclass(frozen=True, slots=True)
class Ps2Inverse:
    """Read-only constants shared by every backward-stepping call."""

    modulus: int
    multiplier: int
    increment: int
    multiplier_inverse: int


@lru_cache(maxsize=1)
def ps2_inverse() -> Optional[Ps2Inverse]:
    inv_a = modinv(PS2_A % PS2_MOD, PS2_MOD)
    if inv_a is None:
        return None
    return Ps2Inverse(
        modulus=PS2_MOD,
        multiplier=PS2_A,
        increment=PS2_C,
        multiplier_inverse=inv_a,
    )


def previous_state(current: int, inverse: Ps2Inverse) -> int:
    """The unique state that steps to `current`."""
    m = inverse.modulus
    x = (current - inverse.increment) % m
    return (inverse.multiplier_inverse * x) % m


def rewind(state: int, n: int, inverse: Ps2Inverse) -> int:
    """Apply previous_state n times."""
    for _ in range(n):
        state = previous_state(state, inverse)
    return state


def rewind_map(n: int, inverse: Ps2Inverse) -> Tuple[int, int]:
    """
    Compose n backward steps into a single affine map (mult, add) so that
    rewind(s, n) == (mult * s + add) % modulus.

    One backward step is s -> inv*s - inv*C. Composition is done by squaring.
    """
    m = inverse.modulus
    step_mult = inverse.multiplier_inverse
    step_add = (-inverse.multiplier_inverse * inverse.increment) % m

    mult, add = 1, 0
    while n > 0:
        if n & 1:
            # Apply `step` after the accumulated map.
            mult, add = (step_mult * mult) % m, (step_mult * add + step_add) % m
        # step = step o step
        step_mult, step_add = (step_mult * step_mult) % m, (step_mult * step_add + step_add) % m
        n >>= 1
    return mult, add
