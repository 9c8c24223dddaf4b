from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from seed_hill.rng.backend import RngBackend, advance, next31, to_int32

SHAKESPEARE_POOL = (0, 1, 2, 3, 4, 5, 6, 7, 8, 9)
HOSPITAL3F_POOL = (1, 2, 3, 4, 5, 6, 7, 8, 9)
CREMATORIUM_POOL = SHAKESPEARE_POOL

CODE_DRAWS = 4
FORCED_DIGIT = 7


class ClockMode(IntEnum):
    """Mode byte read by the clock puzzle. 2 selects the 24-hour path."""

    TWELVE_HOUR = 0
    TWENTY_FOUR_HOUR = 2

    @classmethod
    def from_flag(cls, twenty_four_hour: bool) -> "ClockMode":
        return cls.TWENTY_FOUR_HOUR if twenty_four_hour else cls.TWELVE_HOUR


@dataclass(frozen=True, slots=True)
class DrawStep:
    """One draw from the digit pool, kept for tracing."""

    output: int
    pool_size: int
    index: int
    digit: int


@dataclass(frozen=True, slots=True)
class ForceStep:
    """The extra call made when the crematorium draw did not contain a 7."""

    output: int
    position: int
    before: int
    after: int


@dataclass(frozen=True, slots=True)
class CrematoriumCode:
    code: int
    forced7: bool
    forced_position: Optional[int]  # LSB-based, 0 = rightmost digit
    calls: int


@dataclass(frozen=True, slots=True)
class ClockReading:
    hour: int
    minute: int
    r_hour: int
    r_min: int
    packed: int


def pool_index(output: int, pool_size: int) -> int:
    """
    Index into the pool as the game computes it: the output is taken as a signed
    32-bit value, the remainder truncates toward zero, and a negative remainder
    is corrected once by adding the pool size.
    """
    value = to_int32(output)
    idx = abs(value) % pool_size
    if value < 0:
        idx = -idx
    if idx < 0:
        idx += pool_size
    return idx


def draw_code(
    state: int,
    backend: RngBackend,
    pool: Sequence[int],
    *,
    draws: int = CODE_DRAWS,
    trace: Optional[List[DrawStep]] = None,
) -> Tuple[int, int]:
    """
    Draw `draws` digits without replacement from `pool`, most significant nibble first.
    Returns (state', packed code).
    """
    remaining = list(pool)
    code = 0
    for _ in range(draws):
        state, r = next31(state, backend)
        size = len(remaining)
        idx = pool_index(r, size)
        digit = remaining.pop(idx)
        code = (code << 4) | digit
        if trace is not None:
            trace.append(DrawStep(output=r, pool_size=size, index=idx, digit=digit))
    return state, code


def code_digits(code: int) -> Tuple[int, int, int, int]:
    return (code >> 12) & 0xF, (code >> 8) & 0xF, (code >> 4) & 0xF, code & 0xF


def shakespeare_code_from_seed(seed_after_warmup: int, backend: RngBackend) -> Tuple[int, int]:
    return draw_code(seed_after_warmup, backend, SHAKESPEARE_POOL)


def hospital3f_code_from_seed(seed_after_warmup: int, backend: RngBackend) -> Tuple[int, int]:
    return draw_code(seed_after_warmup, backend, HOSPITAL3F_POOL)


def crematorium_code_from_seed(
    seed_after_warmup: int,
    backend: RngBackend,
    *,
    trace: Optional[List[DrawStep]] = None,
    force_trace: Optional[List[ForceStep]] = None,
) -> Tuple[int, CrematoriumCode]:
    """
    Draw a 0-9 code, then guarantee a 7: if none was drawn, one more call picks
    a nibble position (r mod 4, LSB-based) and overwrites it with 7.
    """
    state, code = draw_code(seed_after_warmup, backend, CREMATORIUM_POOL, trace=trace)
    if FORCED_DIGIT in code_digits(code):
        return state, CrematoriumCode(code=code, forced7=False, forced_position=None, calls=CODE_DRAWS)

    state, r = next31(state, backend)
    position = r % 4
    shift = position * 4
    forced = (code & ~(0xF << shift)) | (FORCED_DIGIT << shift)
    if force_trace is not None:
        force_trace.append(ForceStep(output=r, position=position, before=code, after=forced))
    return state, CrematoriumCode(code=forced, forced7=True, forced_position=position, calls=CODE_DRAWS + 1)


def gen_shakespeare_code(
    seed: int,
    warmup_after_reset: int,
    backend: RngBackend,
    trace: Optional[List[DrawStep]] = None,
) -> int:
    state = advance(seed, backend, warmup_after_reset)
    _, code = draw_code(state, backend, SHAKESPEARE_POOL, trace=trace)
    return code


def gen_hospital3f_code(
    seed: int,
    warmup_after_reset: int,
    backend: RngBackend,
    trace: Optional[List[DrawStep]] = None,
) -> int:
    state = advance(seed, backend, warmup_after_reset)
    _, code = draw_code(state, backend, HOSPITAL3F_POOL, trace=trace)
    return code


def gen_crematorium_code(
    seed: int,
    warmup_after_reset: int,
    backend: RngBackend,
    trace: Optional[List[DrawStep]] = None,
    force_trace: Optional[List[ForceStep]] = None,
) -> CrematoriumCode:
    state = advance(seed, backend, warmup_after_reset)
    _, result = crematorium_code_from_seed(state, backend, trace=trace, force_trace=force_trace)
    return result


def clock_hour(r_hour: int, mode: int) -> int:
    if mode == ClockMode.TWENTY_FOUR_HOUR:
        return r_hour % 12 + 12
    return r_hour % 12 + 1


def clock_minute(r_min: int) -> int:
    return r_min % 60


def pack_clock(hour: int, minute: int) -> int:
    """Pack HH:MM as four decimal nibbles."""
    return ((hour // 10) << 12) | ((hour % 10) << 8) | ((minute // 10) << 4) | (minute % 10)


def unpack_clock(packed: int) -> Tuple[int, int]:
    h_tens, h_ones, m_tens, m_ones = code_digits(packed)
    return h_tens * 10 + h_ones, m_tens * 10 + m_ones


def clock_from_seed(seed_after_warmup: int, mode: int, backend: RngBackend) -> Tuple[int, ClockReading]:
    """Hour from the first logical call, minute from the second."""
    state, r_hour = next31(seed_after_warmup, backend)
    state, r_min = next31(state, backend)
    hour = clock_hour(r_hour, mode)
    minute = clock_minute(r_min)
    reading = ClockReading(hour=hour, minute=minute, r_hour=r_hour, r_min=r_min, packed=pack_clock(hour, minute))
    return state, reading


def gen_clock_puzzle(seed: int, warmup_after_reset: int, mode: int, backend: RngBackend) -> ClockReading:
    state = advance(seed, backend, warmup_after_reset)
    _, reading = clock_from_seed(state, mode, backend)
    return reading
