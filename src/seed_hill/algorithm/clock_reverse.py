"""
Recover clock-puzzle base seeds on the PS2 generator without a 2^31 brute force.

The clock reads two outputs after the warmup: seed1 (hour) then seed2 (minute),
with seed2 = next(seed1). Only seed2 values congruent to the target minute
mod 60 can work, so those are enumerated with stride 60. Each one is stepped
back once to get seed1 and kept if seed1 mod 12 is the wanted hour residue.
One more step back gives the state after the warmup, and the warmup itself is
undone with the inverse map.
"""
from typing import List, Optional

import structlog

from seed_hill.models.matches import ClockBaseCandidate
from seed_hill.puzzles.codes import ClockMode
from seed_hill.rng.inverse import Ps2Inverse, previous_state, ps2_inverse, rewind_map
from seed_hill.search_snapshot import ProgressFn, SearchSnapshot

log = structlog.get_logger()

MINUTE_STRIDE = 60
HOUR_CYCLE = 12
PROGRESS_INTERVAL = 1 << 16


def hour_residue(target_hour: int, mode: int) -> Optional[int]:
    """The value of (seed1 mod 12) that shows `target_hour`, or None if the path cannot show it."""
    if mode == ClockMode.TWENTY_FOUR_HOUR:
        residue = target_hour - 12
    else:
        residue = target_hour - 1
    if residue < 0 or residue > HOUR_CYCLE - 1:
        return None
    return residue


def residues_compatible(minute_start: int, residue: int, inverse: Ps2Inverse) -> bool:
    """
    Low-bit check. A and C are both 1 mod 4 and 4 divides 60, so every seed2 in
    the progression has the same seed1 mod 4. If that disagrees with the hour
    residue mod 4, no candidate exists.
    """
    seed1 = previous_state(minute_start, inverse)
    return seed1 % 4 == residue % 4


def find_clock_base_seeds(
    target_hour: int,
    target_minute: int,
    mode: int,
    warmup_after_reset: int,
    max_results: int = 200,
    candidate_limit: Optional[int] = None,
    on_progress: Optional[ProgressFn] = None,
) -> List[ClockBaseCandidate]:
    """
    Base seeds that show HH:MM after `warmup_after_reset` calls on the PS2 generator.

    Results are ordered by the minute-stage state they were derived from.
    `candidate_limit` caps the minute-stage states visited (default: the full modulus).
    """
    out: List[ClockBaseCandidate] = []
    if max_results <= 0:
        return out

    inverse = ps2_inverse()
    if inverse is None:
        log.warning("no modular inverse for PS2 multiplier")
        return out

    residue = hour_residue(target_hour, mode)
    if residue is None:
        log.info("hour not reachable on clock path", target_hour=target_hour, mode=int(mode))
        return out

    limit = inverse.modulus if candidate_limit is None else min(candidate_limit, inverse.modulus)
    start = target_minute % MINUTE_STRIDE

    if not residues_compatible(start, residue, inverse):
        log.info(
            "hour and minute residues incompatible",
            target_hour=target_hour,
            target_minute=target_minute,
            mode=int(mode),
        )
        return out

    m = inverse.modulus
    rewind_mult, rewind_add = rewind_map(warmup_after_reset, inverse)

    visited = 0
    position = start
    for seed2 in range(start, limit, MINUTE_STRIDE):
        position = seed2
        seed1 = previous_state(seed2, inverse)
        if seed1 % HOUR_CYCLE == residue:
            seed_w = previous_state(seed1, inverse)
            base = (rewind_mult * seed_w + rewind_add) % m
            out.append(ClockBaseCandidate(base_seed=base, seed_after_warmup=seed_w, r_hour=seed1, r_min=seed2))
            if len(out) >= max_results:
                break

        visited += 1
        if on_progress is not None and visited % PROGRESS_INTERVAL == 0:
            on_progress(SearchSnapshot(
                search="clock-base-seeds",
                position=seed2,
                lower=start,
                upper=limit,
                matches=len(out),
                complete=False,
            ))

    if on_progress is not None:
        on_progress(SearchSnapshot(
            search="clock-base-seeds",
            position=position,
            lower=start,
            upper=limit,
            matches=len(out),
            complete=True,
        ))

    log.info(
        "clock base seeds enumerated",
        target_hour=target_hour,
        target_minute=target_minute,
        warmup_after_reset=warmup_after_reset,
        candidates_visited=visited,
        found=len(out),
    )
    return out
