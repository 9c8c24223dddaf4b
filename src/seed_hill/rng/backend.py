from enum import Enum
from typing import Tuple

MASK32 = 0xFFFFFFFF

PS2_MOD = 0x80000000  # 2^31
PS2_A = 0x41C64E6D
PS2_C = 0x3039

PC_A = 0x000343FD
PC_C = 0x00269EC3


class RngBackend(str, Enum):
    PS2 = "ps2"
    PC = "pc"

    def __str__(self):
        return self.value


def ps2_rand31_step(state: int) -> int:
    """One PS2 step. The new state is also the 31-bit output."""
    return (state * PS2_A + PS2_C) & (PS2_MOD - 1)


def pc_rand15_step(state: int) -> Tuple[int, int]:
    """One MSVC-style step over the full 32-bit word. Returns (state', 15-bit output)."""
    state = (state * PC_A + PC_C) & MASK32
    return state, (state >> 16) & 0x7FFF


def pc_rand31_from_three(state: int) -> Tuple[int, int]:
    """
    Fold three 15-bit outputs into one 31-bit value:
      bits [14:0]  <- 1st call
      bits [29:15] <- 2nd call
      bit  30      <- bit 0 of the 3rd call
    """
    state, r1 = pc_rand15_step(state)
    state, r2 = pc_rand15_step(state)
    state, r3 = pc_rand15_step(state)
    out31 = (((r3 & 1) << 15) | r2) << 15 | r1
    return state, out31


def next31(state: int, backend: RngBackend) -> Tuple[int, int]:
    """One logical RNG call. Returns (state', output)."""
    match backend:
        case RngBackend.PS2:
            state = ps2_rand31_step(state)
            return state, state
        case RngBackend.PC:
            return pc_rand31_from_three(state)
        case _:
            raise ValueError(f"Invalid backend: {backend}")


def advance(state: int, backend: RngBackend, n: int) -> int:
    """Apply n logical calls and discard their outputs."""
    for _ in range(n):
        state, _ = next31(state, backend)
    return state


def to_int32(value: int) -> int:
    """Interpret value as signed 32-bit."""
    value &= MASK32
    return value - 0x100000000 if value & 0x80000000 else value
