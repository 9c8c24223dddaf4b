"""
Forward searches over the advance count.

Every scan keeps one canonical cursor that moves exactly one logical call per
iteration. Derived values are computed from a copy of the cursor, so what a
match reports as `seed_after_warmup` is the state reached after `advances`
calls from the start seed. Ranges are inclusive on both ends, and results come
back in ascending advance order.
"""
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

import structlog

from seed_hill.models.matches import (
    ClockMatch,
    CodeMatch,
    CrematoriumMatch,
    DistanceSegment,
    SeedChain,
)
from seed_hill.puzzles.codes import (
    clock_from_seed,
    clock_hour,
    clock_minute,
    crematorium_code_from_seed,
    hospital3f_code_from_seed,
    pack_clock,
    shakespeare_code_from_seed,
)
from seed_hill.rng.backend import RngBackend, advance, next31
from seed_hill.search_snapshot import ProgressFn, SearchSnapshot

log = structlog.get_logger()

M = TypeVar("M")
DeriveFn = Callable[[int, int], Optional[M]]

PROGRESS_INTERVAL = 1 << 16

DEFAULT_MAX_FIRST_SEARCH = 2_000_000
DEFAULT_MAX_CODE_ADVANCES = 10_000_000
DEFAULT_MAX_CLOCK_WARMUP = 5_000
DEFAULT_MAX_DISTANCE_STEPS = 5_000_000


def scan_advances(
    search: str,
    start_seed: int,
    backend: RngBackend,
    derive: DeriveFn[M],
    *,
    min_advances: int,
    max_advances: int,
    max_results: int,
    on_progress: Optional[ProgressFn] = None,
) -> List[M]:
    """
    Walk the cursor from `min_advances` to `max_advances` (inclusive) and collect
    every non-None `derive(advances, cursor_state)` until `max_results` are found.
    """
    matches: List[M] = []
    if max_results <= 0 or max_advances < min_advances:
        return matches

    log.debug(
        "scan started",
        search=search,
        backend=str(backend),
        start_seed=f"{start_seed:X}",
        min_advances=min_advances,
        max_advances=max_advances,
        max_results=max_results,
    )

    cursor = advance(start_seed, backend, min_advances)
    position = min_advances
    for position in range(min_advances, max_advances + 1):
        match = derive(position, cursor)
        if match is not None:
            matches.append(match)
            if len(matches) >= max_results:
                break

        if on_progress is not None and (position - min_advances) % PROGRESS_INTERVAL == 0:
            on_progress(SearchSnapshot(
                search=search,
                position=position,
                lower=min_advances,
                upper=max_advances,
                matches=len(matches),
                complete=False,
            ))

        cursor, _ = next31(cursor, backend)

    if on_progress is not None:
        on_progress(SearchSnapshot(
            search=search,
            position=position,
            lower=min_advances,
            upper=max_advances,
            matches=len(matches),
            complete=True,
        ))

    log.info("scan finished", search=search, last_advance=position, matches=len(matches))
    return matches


def find_warmup_for_first(
    base_seed: int,
    r_first: int,
    backend: RngBackend,
    max_search: int = DEFAULT_MAX_FIRST_SEARCH,
) -> Optional[int]:
    """Smallest warmup after which the next logical call returns `r_first`."""
    def derive(warmup: int, seed: int) -> Optional[int]:
        _, r = next31(seed, backend)
        return warmup if r == r_first else None

    found = scan_advances(
        "warmup-for-first",
        base_seed,
        backend,
        derive,
        min_advances=0,
        max_advances=max_search,
        max_results=1,
    )
    return found[0] if found else None


def _find_code(
    search: str,
    code_from_seed: Callable[[int, RngBackend], Tuple[int, int]],
    start_seed: int,
    target_code: int,
    max_results: int,
    backend: RngBackend,
    min_advances: int,
    max_advances: int,
    on_progress: Optional[ProgressFn],
) -> List[CodeMatch]:
    def derive(advances: int, seed: int) -> Optional[CodeMatch]:
        _, code = code_from_seed(seed, backend)
        if code != target_code:
            return None
        return CodeMatch(advances=advances, seed_after_warmup=seed, code=code)

    return scan_advances(
        search,
        start_seed,
        backend,
        derive,
        min_advances=min_advances,
        max_advances=max_advances,
        max_results=max_results,
        on_progress=on_progress,
    )


def find_shakespeare_seeds_for_code(
    start_seed: int,
    target_code: int,
    max_results: int,
    backend: RngBackend,
    min_advances: int = 0,
    max_advances: int = DEFAULT_MAX_CODE_ADVANCES,
    on_progress: Optional[ProgressFn] = None,
) -> List[CodeMatch]:
    return _find_code(
        "shakespeare", shakespeare_code_from_seed, start_seed, target_code,
        max_results, backend, min_advances, max_advances, on_progress,
    )


def find_hospital3f_seeds_for_code(
    start_seed: int,
    target_code: int,
    max_results: int,
    backend: RngBackend,
    min_advances: int = 0,
    max_advances: int = DEFAULT_MAX_CODE_ADVANCES,
    on_progress: Optional[ProgressFn] = None,
) -> List[CodeMatch]:
    return _find_code(
        "hospital3f", hospital3f_code_from_seed, start_seed, target_code,
        max_results, backend, min_advances, max_advances, on_progress,
    )


def find_crematorium_seeds_for_code(
    start_seed: int,
    target_code: int,
    max_results: int,
    backend: RngBackend,
    min_advances: int = 0,
    max_advances: int = DEFAULT_MAX_CODE_ADVANCES,
    on_progress: Optional[ProgressFn] = None,
) -> List[CrematoriumMatch]:
    def derive(advances: int, seed: int) -> Optional[CrematoriumMatch]:
        _, meta = crematorium_code_from_seed(seed, backend)
        if meta.code != target_code:
            return None
        return CrematoriumMatch(
            advances=advances,
            seed_after_warmup=seed,
            code=meta.code,
            forced7=meta.forced7,
            forced_position=meta.forced_position,
        )

    return scan_advances(
        "crematorium",
        start_seed,
        backend,
        derive,
        min_advances=min_advances,
        max_advances=max_advances,
        max_results=max_results,
        on_progress=on_progress,
    )


def find_clock_warmups(
    base_seed: int,
    mode: int,
    target_hour: int,
    target_minute: int,
    backend: RngBackend,
    min_warmup: int = 0,
    max_warmup: int = DEFAULT_MAX_CLOCK_WARMUP,
    max_results: int = 50,
    on_progress: Optional[ProgressFn] = None,
) -> List[ClockMatch]:
    """Warmups after which the clock puzzle shows exactly HH:MM."""
    target_packed = pack_clock(target_hour, target_minute)

    def derive(warmup: int, seed: int) -> Optional[ClockMatch]:
        _, reading = clock_from_seed(seed, mode, backend)
        if reading.packed != target_packed:
            return None
        return ClockMatch(
            warmup=warmup,
            seed_after_warmup=seed,
            r_hour=reading.r_hour,
            r_min=reading.r_min,
            packed=reading.packed,
        )

    return scan_advances(
        "clock",
        base_seed,
        backend,
        derive,
        min_advances=min_warmup,
        max_advances=max_warmup,
        max_results=max_results,
        on_progress=on_progress,
    )


def find_clock_warmups_flexible(
    base_seed: int,
    mode: int,
    backend: RngBackend,
    match_hour: bool,
    match_minute: bool,
    target_hour: int,
    target_minute: int,
    min_warmup: int = 0,
    max_warmup: int = DEFAULT_MAX_CLOCK_WARMUP,
    max_results: int = 50,
    on_progress: Optional[ProgressFn] = None,
) -> List[ClockMatch]:
    """
    Match on the hour only, the minute only, or both.

    Matching a single field consumes a single logical call: with the minute
    alone, the minute is taken from the first call after the warmup.
    """
    hour_only = match_hour and not match_minute
    minute_only = match_minute and not match_hour

    def derive(warmup: int, seed: int) -> Optional[ClockMatch]:
        state = seed
        r_hour = r_min = 0
        hour = minute = 0
        if not minute_only:
            state, r_hour = next31(state, backend)
            hour = clock_hour(r_hour, mode)
        if not hour_only:
            state, r_min = next31(state, backend)
            minute = clock_minute(r_min)

        if match_hour and hour != target_hour:
            return None
        if match_minute and minute != target_minute:
            return None
        return ClockMatch(
            warmup=warmup,
            seed_after_warmup=seed,
            r_hour=r_hour,
            r_min=r_min,
            packed=pack_clock(hour, minute),
        )

    return scan_advances(
        "clock-flexible",
        base_seed,
        backend,
        derive,
        min_advances=min_warmup,
        max_advances=max_warmup,
        max_results=max_results,
        on_progress=on_progress,
    )


def find_seed_distance(
    base_seed: int,
    target_seed: int,
    backend: RngBackend,
    max_steps: int = DEFAULT_MAX_DISTANCE_STEPS,
    on_progress: Optional[ProgressFn] = None,
) -> Optional[int]:
    """Number of logical calls from `base_seed` to `target_seed`, or None past `max_steps`."""
    distance: Optional[int] = None
    n = 0
    if base_seed == target_seed:
        distance = 0
    else:
        seed = base_seed
        for n in range(1, max_steps + 1):
            seed, _ = next31(seed, backend)
            if seed == target_seed:
                distance = n
                break
            if on_progress is not None and n % PROGRESS_INTERVAL == 0:
                on_progress(SearchSnapshot(
                    search="distance", position=n, lower=0, upper=max_steps, matches=0, complete=False,
                ))

    if on_progress is not None:
        on_progress(SearchSnapshot(
            search="distance",
            position=n,
            lower=0,
            upper=max_steps,
            matches=0 if distance is None else 1,
            complete=True,
        ))

    if distance is None:
        log.info("seed distance not found", base_seed=f"{base_seed:X}", target_seed=f"{target_seed:X}", max_steps=max_steps)
    return distance


def walk_seed_chain(
    base_seed: int,
    targets: Iterable[int],
    backend: RngBackend,
    max_steps: int = 10_000_000,
    on_progress: Optional[ProgressFn] = None,
) -> SeedChain:
    """
    Measure base -> t1 -> t2 ... distances. A target that cannot be reached leaves
    the cursor where it was, so the next target is measured from the last hit.
    Each segment reports its own progress.
    """
    segments: List[DistanceSegment] = []
    current = base_seed
    for target in targets:
        distance = find_seed_distance(current, target, backend, max_steps, on_progress)
        segments.append(DistanceSegment(start_seed=current, target_seed=target, distance=distance))
        if distance is not None:
            current = target
    return SeedChain(segments=tuple(segments))
