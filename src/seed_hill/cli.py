import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, TypeVar

import click
import structlog
from pydantic import ValidationError
from rich.console import Console

from seed_hill.algorithm.clock_reverse import find_clock_base_seeds
from seed_hill.algorithm.search import (
    find_clock_warmups,
    find_clock_warmups_flexible,
    find_crematorium_seeds_for_code,
    find_hospital3f_seeds_for_code,
    find_shakespeare_seeds_for_code,
    find_warmup_for_first,
    walk_seed_chain,
)
from seed_hill.models.queries import ClockTarget, SearchBounds
from seed_hill.progress_channel import LatestValueChannel
from seed_hill.puzzles.codes import (
    ClockMode,
    DrawStep,
    ForceStep,
    clock_minute,
    gen_clock_puzzle,
    gen_crematorium_code,
    gen_hospital3f_code,
    gen_shakespeare_code,
)
from seed_hill.rng.backend import RngBackend
from seed_hill.search_snapshot import SearchSnapshot
from seed_hill.ui import (
    progress_loop,
    render_base_candidates,
    render_chain,
    render_clock,
    render_clock_matches,
    render_code,
    render_code_matches,
    render_crematorium,
    render_crematorium_matches,
    render_draws,
)
from seed_hill.utils import (
    CodeParseError,
    CodePuzzle,
    SeedParseError,
    format_seed,
    parse_code_input,
    parse_hex_seed,
)

R = TypeVar("R")

log = structlog.get_logger()


class HexSeed(click.ParamType):
    """A 32-bit seed entered in hex, with or without 0x."""

    name = "hex"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return parse_hex_seed(value)
        except SeedParseError as e:
            self.fail(str(e), param, ctx)


class PuzzleCode(click.ParamType):
    """A 4-digit code, either decimal digits or packed hex."""

    name = "code"

    def __init__(self, puzzle: CodePuzzle) -> None:
        self.puzzle = puzzle

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return parse_code_input(value, self.puzzle)
        except CodeParseError as e:
            self.fail(str(e), param, ctx)


HEX_SEED = HexSeed()


def configure_logging(verbose: bool) -> None:
    """Console logs on stderr; debug events only with --verbose."""
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # sys.stderr is looked up each time a logger is built.
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_console() -> Console:
    return Console()


def run_search(title: str, search: Callable[..., R], *args, **kwargs) -> R:
    """Run a core search in a worker thread while rendering its progress."""
    channel: LatestValueChannel[SearchSnapshot] = LatestValueChannel()
    log.debug("search dispatched", title=title, search=search.__name__)

    def worker() -> R:
        try:
            return search(*args, on_progress=channel.publish, **kwargs)
        finally:
            # Always close the channel so the UI can exit
            channel.close()

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(worker)
        try:
            progress_loop(channel, title, get_console())
        except KeyboardInterrupt:
            channel.close()
        result = future.result()
    log.debug("search complete", title=title, snapshots=channel.published)
    return result


def make_bounds(min_advances: int, max_advances: int, max_results: int) -> SearchBounds:
    try:
        return SearchBounds(min_advances=min_advances, max_advances=max_advances, max_results=max_results)
    except ValidationError as e:
        raise click.UsageError(f"Invalid search bounds: {e.errors()[0]['msg']}")


def make_clock_target(hour: int, minute: int, twenty_four_hour: bool) -> ClockTarget:
    try:
        return ClockTarget.from_flag(hour, minute, twenty_four_hour)
    except ValidationError as e:
        raise click.UsageError(f"Invalid clock target: {e.errors()[0]['msg']}")


def bounds_options(default_max: int, default_results: int = 20):
    """Shared --min-advances/--max-advances/--max-results options."""
    def decorator(fn):
        fn = click.option("--max-results", "-n", default=default_results, show_default=True, help="Max matches to show")(fn)
        fn = click.option("--max-advances", default=default_max, show_default=True, help="Max advances to search up to")(fn)
        fn = click.option("--min-advances", default=0, show_default=True, help="Min advances to start searching from")(fn)
        return fn
    return decorator


seed_option = click.option("--seed", "-s", type=HEX_SEED, default="0", show_default=True, help="Seed in hex")
warmup_option = click.option("--warmup", "-w", default=0, show_default=True, help="Warmup rand() calls after the seed")
mode_option = click.option("--24h", "twenty_four_hour", is_flag=True, help="Take the 24-hour clock path (mode byte 2)")


@click.group()
@click.option(
    "--backend",
    "-b",
    type=click.Choice([b.value for b in RngBackend]),
    default=RngBackend.PS2.value,
    show_default=True,
    help="RNG backend",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, backend: str, verbose: bool):
    """Silent Hill 3 puzzle RNG tool."""
    configure_logging(verbose)
    ctx.obj = RngBackend(backend)


@cli.command()
@seed_option
@warmup_option
@click.pass_obj
def shakespeare(backend: RngBackend, seed: int, warmup: int):
    """Generate the Shakespeare code from a base seed and warmup count."""
    console = get_console()
    draws: List[DrawStep] = []
    code = gen_shakespeare_code(seed, warmup, backend, trace=draws)
    console.print(render_draws(draws))
    console.print(render_code("Shakespeare", code))


@cli.command("shakespeare-first")
@seed_option
@click.option("--first", "-r", "r_first", type=HEX_SEED, required=True, help="First Shakespeare rand() return in hex")
@click.option("--max-search", default=2_000_000, show_default=True, help="Max warmup to try")
@click.pass_obj
def shakespeare_first(backend: RngBackend, seed: int, r_first: int, max_search: int):
    """Find the warmup from the first observed rand() return, then generate the code."""
    console = get_console()
    warmup = find_warmup_for_first(seed, r_first, backend, max_search)
    if warmup is None:
        console.print("Warmup not found in search range.")
        return
    console.print(f"Auto-found warmup = {warmup}")
    draws: List[DrawStep] = []
    code = gen_shakespeare_code(seed, warmup, backend, trace=draws)
    console.print(render_draws(draws))
    console.print(render_code("Shakespeare", code))


def _reverse_code(
    backend: RngBackend,
    title: str,
    search: Callable[..., list],
    code: int,
    seed: int,
    bounds: SearchBounds,
    console: Console,
) -> Optional[list]:
    matches = run_search(
        title,
        search,
        seed,
        code,
        bounds.max_results,
        backend,
        bounds.min_advances,
        bounds.max_advances,
    )
    if not matches:
        console.print(
            f"No matches found in [{bounds.min_advances}..{bounds.max_advances}] advances "
            f"from start seed {format_seed(seed)}."
        )
        return None
    return matches


@cli.command("shakespeare-reverse")
@click.option("--code", "-c", type=PuzzleCode("shakespeare"), required=True, help="Target code, e.g. 0123 or 0x0123")
@seed_option
@bounds_options(default_max=5_000_000)
@click.pass_obj
def shakespeare_reverse(backend: RngBackend, code: int, seed: int, min_advances: int, max_advances: int, max_results: int):
    """List advances from a start seed that produce a Shakespeare code."""
    console = get_console()
    bounds = make_bounds(min_advances, max_advances, max_results)
    matches = _reverse_code(backend, "Shakespeare", find_shakespeare_seeds_for_code, code, seed, bounds, console)
    if matches is None:
        return
    console.print(render_code_matches(f"Shakespeare code {code:X} from seed {format_seed(seed)}", matches))
    console.print("Sanity-check first match:")
    console.print(render_code("Shakespeare", gen_shakespeare_code(matches[0].seed_after_warmup, 0, backend)))


@cli.command()
@seed_option
@warmup_option
@click.pass_obj
def hospital(backend: RngBackend, seed: int, warmup: int):
    """Generate the 3F Hospital code from a seed and warmup count."""
    console = get_console()
    draws: List[DrawStep] = []
    code = gen_hospital3f_code(seed, warmup, backend, trace=draws)
    console.print(render_draws(draws))
    console.print(render_code("3F Hospital", code))


@cli.command("hospital-reverse")
@click.option("--code", "-c", type=PuzzleCode("hospital3f"), required=True, help="Target code, digits 1-9, e.g. 2581")
@seed_option
@bounds_options(default_max=5_000_000)
@click.pass_obj
def hospital_reverse(backend: RngBackend, code: int, seed: int, min_advances: int, max_advances: int, max_results: int):
    """List advances from a start seed that produce a 3F Hospital code."""
    console = get_console()
    bounds = make_bounds(min_advances, max_advances, max_results)
    matches = _reverse_code(backend, "3F Hospital", find_hospital3f_seeds_for_code, code, seed, bounds, console)
    if matches is None:
        return
    console.print(render_code_matches(f"3F Hospital code {code:X} from seed {format_seed(seed)}", matches))
    console.print("Sanity-check first match:")
    console.print(render_code("3F Hospital", gen_hospital3f_code(matches[0].seed_after_warmup, 0, backend)))


@cli.command()
@seed_option
@warmup_option
@click.pass_obj
def crematorium(backend: RngBackend, seed: int, warmup: int):
    """Generate the Crematorium Oven code (always contains a 7)."""
    console = get_console()
    draws: List[DrawStep] = []
    forces: List[ForceStep] = []
    result = gen_crematorium_code(seed, warmup, backend, trace=draws, force_trace=forces)
    console.print(render_draws(draws, forces[0] if forces else None))
    console.print(render_crematorium(result))


@cli.command("crematorium-reverse")
@click.option("--code", "-c", type=PuzzleCode("crematorium"), required=True, help="Target code containing a 7, e.g. 7012")
@seed_option
@bounds_options(default_max=5_000_000)
@click.pass_obj
def crematorium_reverse(backend: RngBackend, code: int, seed: int, min_advances: int, max_advances: int, max_results: int):
    """List advances from a start seed that produce a Crematorium Oven code."""
    console = get_console()
    bounds = make_bounds(min_advances, max_advances, max_results)
    matches = _reverse_code(backend, "Crematorium Oven", find_crematorium_seeds_for_code, code, seed, bounds, console)
    if matches is None:
        return
    console.print(render_crematorium_matches(f"Crematorium code {code:X} from seed {format_seed(seed)}", matches))
    console.print("Sanity-check first match:")
    console.print(render_crematorium(gen_crematorium_code(matches[0].seed_after_warmup, 0, backend)))


@cli.command()
@seed_option
@warmup_option
@mode_option
@click.pass_obj
def clock(backend: RngBackend, seed: int, warmup: int, twenty_four_hour: bool):
    """Generate the clock puzzle HH:MM from a seed and warmup count."""
    mode = ClockMode.from_flag(twenty_four_hour)
    get_console().print(render_clock(gen_clock_puzzle(seed, warmup, mode, backend)))


@cli.command("clock-warmups")
@seed_option
@click.option("--hour", type=int, required=True, help="Target hour")
@click.option("--minute", type=int, required=True, help="Target minute (0-59)")
@mode_option
@bounds_options(default_max=5_000)
@click.pass_obj
def clock_warmups(
    backend: RngBackend,
    seed: int,
    hour: int,
    minute: int,
    twenty_four_hour: bool,
    min_advances: int,
    max_advances: int,
    max_results: int,
):
    """Find warmups after a base seed that show a target HH:MM."""
    console = get_console()
    target = make_clock_target(hour, minute, twenty_four_hour)
    bounds = make_bounds(min_advances, max_advances, max_results)
    matches = run_search(
        "Clock",
        find_clock_warmups,
        seed,
        target.mode,
        target.hour,
        target.minute,
        backend,
        bounds.min_advances,
        bounds.max_advances,
        bounds.max_results,
    )
    if not matches:
        console.print(f"No warmups in [{bounds.min_advances}..{bounds.max_advances}] produced that HH:MM.")
        return
    console.print(render_clock_matches(f"Matches for {target.hour}:{target.minute:02d}", matches))


@cli.command("clock-reverse")
@seed_option
@click.option("--hour", type=int, default=None, help="Target hour (omit to match the minute only)")
@click.option("--minute", type=int, default=None, help="Target minute (omit to match the hour only)")
@mode_option
@bounds_options(default_max=500_000)
@click.pass_obj
def clock_reverse(
    backend: RngBackend,
    seed: int,
    hour: Optional[int],
    minute: Optional[int],
    twenty_four_hour: bool,
    min_advances: int,
    max_advances: int,
    max_results: int,
):
    """Find advances matching the hour only, the minute only, or both."""
    if hour is None and minute is None:
        raise click.UsageError("Give --hour, --minute, or both.")
    if twenty_four_hour and hour is None:
        raise click.UsageError("--24h only changes the hour; give --hour or drop --24h.")
    console = get_console()
    match_hour = hour is not None
    match_minute = minute is not None
    target = make_clock_target(hour or 0, minute or 0, twenty_four_hour)
    bounds = make_bounds(min_advances, max_advances, max_results)

    matches = run_search(
        "Clock",
        find_clock_warmups_flexible,
        seed,
        target.mode,
        backend,
        match_hour,
        match_minute,
        target.hour,
        target.minute,
        bounds.min_advances,
        bounds.max_advances,
        bounds.max_results,
    )
    if not matches:
        console.print(f"No advances in [{bounds.min_advances}..{bounds.max_advances}] produced a match.")
        return

    console.print(render_clock_matches(
        f"Matches from base seed {format_seed(seed)} (each advance = 1 rand call)",
        matches,
        match_hour=match_hour,
        match_minute=match_minute,
    ))
    best = matches[0]
    console.print(f"Earliest match: advances={best.warmup}  seed@advance={format_seed(best.seed_after_warmup)}")
    reading = gen_clock_puzzle(best.seed_after_warmup, 0, target.mode, backend)
    if match_hour and not match_minute:
        console.print(f"Sanity-check hour={reading.hour}")
    elif match_minute and not match_hour:
        # The minute-only search reads the minute from the first call.
        console.print(f"Sanity-check minute={clock_minute(reading.r_hour):02d}")
    else:
        console.print(render_clock(reading))


@cli.command("clock-base-seeds")
@click.option("--hour", type=int, required=True, help="Target hour")
@click.option("--minute", type=int, required=True, help="Target minute (0-59)")
@mode_option
@warmup_option
@click.option("--max-results", "-n", default=200, show_default=True, help="Max base seeds to list")
@click.option("--limit", type=int, default=None, help="Only enumerate minute-stage states below this value")
@click.pass_obj
def clock_base_seeds(
    backend: RngBackend,
    hour: int,
    minute: int,
    twenty_four_hour: bool,
    warmup: int,
    max_results: int,
    limit: Optional[int],
):
    """Recover base seeds that show HH:MM after a warmup (PS2 only)."""
    if backend != RngBackend.PS2:
        raise click.UsageError("Base seed recovery needs an invertible generator; use --backend ps2.")
    console = get_console()
    target = make_clock_target(hour, minute, twenty_four_hour)
    candidates = run_search(
        "Clock base seeds",
        find_clock_base_seeds,
        target.hour,
        target.minute,
        target.mode,
        warmup,
        max_results,
        limit,
    )
    if not candidates:
        console.print(f"No base seed can show {target.hour}:{target.minute:02d} on this clock path.")
        return
    console.print(render_base_candidates(f"Base seeds for {target.hour}:{target.minute:02d} (warmup {warmup})", candidates))


@cli.command()
@seed_option
@click.argument("targets", nargs=-1, required=True, type=HEX_SEED)
@click.option("--max-steps", default=10_000_000, show_default=True, help="Max advances per segment")
@click.pass_obj
def distance(backend: RngBackend, seed: int, targets: tuple, max_steps: int):
    """Continuous warmup distances: base -> target1 -> target2 ..."""
    chain = run_search("Seed distance", walk_seed_chain, seed, targets, backend, max_steps)
    get_console().print(render_chain(chain, max_steps))


if __name__ == "__main__":
    cli()
