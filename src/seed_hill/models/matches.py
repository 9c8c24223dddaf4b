from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class CodeMatch:
    """A code search hit. `seed_after_warmup` is the cursor state at `advances`."""

    advances: int
    seed_after_warmup: int
    code: int


@dataclass(frozen=True, slots=True)
class CrematoriumMatch:
    advances: int
    seed_after_warmup: int
    code: int
    forced7: bool
    forced_position: Optional[int]


@dataclass(frozen=True, slots=True)
class ClockMatch:
    """A clock search hit. Unused outputs are 0 when the flexible search skips a field."""

    warmup: int
    seed_after_warmup: int
    r_hour: int
    r_min: int
    packed: int


@dataclass(frozen=True, slots=True)
class ClockBaseCandidate:
    """A base seed recovered by walking backward from a minute-stage state."""

    base_seed: int
    seed_after_warmup: int
    r_hour: int
    r_min: int


@dataclass(frozen=True, slots=True)
class DistanceSegment:
    start_seed: int
    target_seed: int
    distance: Optional[int]

    @property
    def found(self) -> bool:
        return self.distance is not None


@dataclass(frozen=True, slots=True)
class SeedChain:
    segments: Tuple[DistanceSegment, ...]

    @property
    def total_advances(self) -> int:
        return sum(s.distance for s in self.segments if s.distance is not None)

    @property
    def final_seed(self) -> Optional[int]:
        found = [s for s in self.segments if s.found]
        return found[-1].target_seed if found else None
