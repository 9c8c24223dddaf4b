from dataclasses import dataclass
from typing import Callable, TypeAlias


@dataclass(frozen=True, slots=True)
class SearchSnapshot:
    """Minimal immutable snapshot of a running search."""

    search: str
    position: int
    lower: int
    upper: int
    matches: int
    complete: bool

    @property
    def fraction(self) -> float:
        span = self.upper - self.lower
        if span <= 0:
            return 1.0
        return min(1.0, (self.position - self.lower) / span)


ProgressFn: TypeAlias = Callable[[SearchSnapshot], None]
