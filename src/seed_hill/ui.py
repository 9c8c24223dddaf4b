from typing import Optional, Sequence

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table

from seed_hill.models.matches import (
    ClockBaseCandidate,
    ClockMatch,
    CodeMatch,
    CrematoriumMatch,
    SeedChain,
)
from seed_hill.progress_channel import LatestValueChannel
from seed_hill.puzzles.codes import ClockReading, CrematoriumCode, DrawStep, ForceStep, unpack_clock
from seed_hill.search_snapshot import SearchSnapshot
from seed_hill.utils import format_code, format_seed


COLORS = {
    "seed": "cyan",
    "code": "bold spring_green2",
    "forced": "yellow",
    "missing": "dark_red",
}


def _seed(value: int) -> str:
    return f"[{COLORS['seed']}]{format_seed(value)}[/{COLORS['seed']}]"


def render_progress(state: Optional[SearchSnapshot], title: str):
    """Render the latest search snapshot."""
    if state is None:
        return Panel("Waiting for first update…", title=title, border_style="dim")

    span = max(state.upper - state.lower, 1)
    done = span if state.complete else max(0, state.position - state.lower)
    grid = Table.grid(padding=(0, 2))
    grid.add_column(no_wrap=True)
    grid.add_column(no_wrap=True)
    grid.add_row(
        ProgressBar(total=span, completed=done, width=30),
        f"{state.position}/{state.upper}  matches={state.matches}",
    )
    return Panel(grid, title=f"{title} ({state.search})", padding=(0, 1))


def progress_loop(channel: LatestValueChannel[SearchSnapshot], title: str, console: Console) -> None:
    """Render snapshots until the channel is closed."""
    with Live(render_progress(None, title), console=console, refresh_per_second=30, transient=True) as live:
        while True:
            state = channel.next()
            if state is None:
                break
            live.update(render_progress(state, title))


def render_draws(draws: Sequence[DrawStep], force: Optional[ForceStep] = None) -> Table:
    """Per-draw trace of a code generation."""
    table = Table(title="Draws")
    table.add_column("#", justify="right")
    table.add_column("rand", justify="right")
    table.add_column("size", justify="right")
    table.add_column("idx", justify="right")
    table.add_column("digit", justify="right")
    for i, step in enumerate(draws, start=1):
        table.add_row(str(i), f"{step.output:X}", str(step.pool_size), str(step.index), str(step.digit))
    if force is not None:
        table.add_row(
            "force7",
            f"{force.output:X}",
            "4",
            str(force.position),
            f"[{COLORS['forced']}]{format_code(force.before)} -> {format_code(force.after)}[/{COLORS['forced']}]",
        )
    return table


def render_code(title: str, code: int) -> Panel:
    body = f"Packed: {code:X}\nDigits: [{COLORS['code']}]{format_code(code)}[/{COLORS['code']}]"
    return Panel(body, title=title, padding=(0, 1))


def render_crematorium(result: CrematoriumCode) -> Panel:
    lines = [
        f"Packed: {result.code:X}",
        f"Digits: [{COLORS['code']}]{format_code(result.code)}[/{COLORS['code']}]",
        f"Forced 7: {'YES' if result.forced7 else 'NO'}",
    ]
    if result.forced_position is not None:
        lines.append(f"Forced position: {result.forced_position} (0=rightmost digit, 3=leftmost digit)")
    lines.append(f"Logical calls: {result.calls}")
    return Panel("\n".join(lines), title="Crematorium Oven", padding=(0, 1))


def render_clock(reading: ClockReading) -> Panel:
    lines = [
        f"Hour rand:   {reading.r_hour:X} -> {reading.hour}",
        f"Minute rand: {reading.r_min:X} -> {reading.minute}",
        f"Packed: {reading.packed:X}",
        f"Time: [{COLORS['code']}]{reading.hour}:{reading.minute:02d}[/{COLORS['code']}]",
    ]
    return Panel("\n".join(lines), title="Clock", padding=(0, 1))


def render_code_matches(title: str, matches: Sequence[CodeMatch]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("advances", justify="right")
    table.add_column("seed@advance")
    table.add_column("code")
    for i, m in enumerate(matches):
        table.add_row(str(i), str(m.advances), _seed(m.seed_after_warmup), format_code(m.code))
    return table


def render_crematorium_matches(title: str, matches: Sequence[CrematoriumMatch]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("advances", justify="right")
    table.add_column("seed@advance")
    table.add_column("code")
    table.add_column("forced7")
    table.add_column("posLSB", justify="right")
    for i, m in enumerate(matches):
        table.add_row(
            str(i),
            str(m.advances),
            _seed(m.seed_after_warmup),
            format_code(m.code),
            "yes" if m.forced7 else "no",
            "" if m.forced_position is None else str(m.forced_position),
        )
    return table


def render_clock_matches(title: str, matches: Sequence[ClockMatch], match_hour: bool = True, match_minute: bool = True) -> Table:
    """Only the fields that were searched on are shown."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("advances", justify="right")
    table.add_column("seed@advance")
    if match_hour:
        table.add_column("hour", justify="right")
        table.add_column("rHour")
    if match_minute:
        table.add_column("minute", justify="right")
        table.add_column("rMin")
    for i, m in enumerate(matches):
        hour, minute = unpack_clock(m.packed)
        row = [str(i), str(m.warmup), _seed(m.seed_after_warmup)]
        if match_hour:
            row += [str(hour), f"{m.r_hour:X}"]
        if match_minute:
            row += [f"{minute:02d}", f"{m.r_min:X}"]
        table.add_row(*row)
    return table


def render_base_candidates(title: str, candidates: Sequence[ClockBaseCandidate]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("base seed")
    table.add_column("seed@warmup")
    table.add_column("rHour")
    table.add_column("rMin")
    for i, c in enumerate(candidates):
        table.add_row(str(i), _seed(c.base_seed), format_seed(c.seed_after_warmup), f"{c.r_hour:X}", f"{c.r_min:X}")
    return table


def render_chain(chain: SeedChain, max_steps: int) -> Group:
    table = Table(title="Seed distances")
    table.add_column("from")
    table.add_column("to")
    table.add_column("advances", justify="right")
    for segment in chain.segments:
        if segment.found:
            distance = str(segment.distance)
        else:
            distance = f"[{COLORS['missing']}]not within {max_steps}[/{COLORS['missing']}]"
        table.add_row(_seed(segment.start_seed), _seed(segment.target_seed), distance)
    return Group(table, f"Total advances across all segments: {chain.total_advances}")
