#!/usr/bin/env python3
"""
  L I F E
  Conway's Game of Life on a bounded grid.

  The world is a fixed width x height rectangle with hard edges: cells
  outside it simply do not exist, so edge cells see five neighbours and
  corner cells see three. Every generation is computed into a fresh,
  read-only grid that replaces the previous one wholesale, so anything
  holding an older grid keeps an unchanging snapshot.

  The engine knows nothing about time or terminals. A Scheduler drives
  it at a fixed cadence and hands each new grid to a display sink; the
  bundled sink paints cells into a curses window.

  Controls:
    q         quit               SPACE     pause / resume
    r         reseed the world

  Stats are logged to life_stats.csv beside this script (--log '' disables).
"""

from __future__ import annotations

import argparse
import curses
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO, ClassVar, Protocol

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import convolve

# ── Defaults ────────────────────────────────────────────────────────────
DEFAULT_WIDTH: int = 100
DEFAULT_HEIGHT: int = 100
DEFAULT_INTERVAL_MS: int = 100
DEFAULT_DENSITY: float = 0.25

# ── Convolution kernel (reused every step) ────────────────────────────
NEIGHBOR_KERNEL: NDArray = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int16)

# Moore neighbourhood as (dx, dy)
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)

# ── Palette (curses 256-colour indices) ──────────────────────────────
ALIVE_COLOR: int = 71    # green, close to #3AC150
DEAD_COLOR: int = 231    # white
ALIVE_GLYPH = "\u2588"  # █  full block
DEAD_GLYPH = " "

# ── Pattern library, (x, y) offsets from the anchor ─────────────────────
PATTERNS: dict[str, list[tuple[int, int]]] = {
    "block": [(0, 0), (1, 0), (0, 1), (1, 1)],
    "beehive": [(1, 0), (2, 0), (0, 1), (3, 1), (1, 2), (2, 2)],
    "blinker": [(0, 0), (1, 0), (2, 0)],
    "toad": [(1, 0), (2, 0), (3, 0), (0, 1), (1, 1), (2, 1)],
    "beacon": [
        (0, 0), (1, 0), (0, 1), (1, 1),
        (2, 2), (3, 2), (2, 3), (3, 3),
    ],
    "glider": [(1, 0), (2, 1), (0, 2), (1, 2), (2, 2)],
    "lwss": [
        (1, 0), (4, 0), (0, 1), (0, 2), (4, 2),
        (0, 3), (1, 3), (2, 3), (3, 3),
    ],
    "r_pentomino": [(1, 0), (2, 0), (0, 1), (1, 1), (1, 2)],
}

STILL_LIFES = ["block", "beehive"]
OSCILLATORS = ["blinker", "toad", "beacon"]
TRAVELLERS = ["glider", "lwss"]

LOG_PATH = Path(__file__).resolve().parent / "life_stats.csv"


class InvalidDimension(ValueError):
    """Raised when a world is requested with a non-positive width or height."""

    def __init__(self, width: object, height: object) -> None:
        super().__init__(
            f"grid dimensions must be positive integers, got {width!r} x {height!r}"
        )
        self.width = width
        self.height = height


# ═══════════════════════════════════════════════════════════════════════
#  Rule
# ═══════════════════════════════════════════════════════════════════════

def neighbor_counts(grid: NDArray[np.bool_]) -> NDArray[np.int16]:
    """Live Moore-neighbour count for every cell.

    Positions beyond the edge are padded with zeros, so they never count
    as alive and nothing wraps around.
    """
    return convolve(
        grid.astype(np.int16), NEIGHBOR_KERNEL, mode="constant", cval=0
    )


def next_generation(grid: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """Apply B3/S23 to ``grid`` and return a new read-only grid."""
    n = neighbor_counts(grid)
    alive = grid.astype(np.bool_, copy=False)
    n_is_3 = n == 3
    birth = ~alive & n_is_3
    survive = alive & (n_is_3 | (n == 2))
    nxt = birth | survive
    nxt.flags.writeable = False
    return nxt


# ═══════════════════════════════════════════════════════════════════════
#  The world
# ═══════════════════════════════════════════════════════════════════════

class LifeEngine:
    """
    Owns the current grid and produces successive generations.

    Grids are numpy bool arrays of shape (height, width), indexed
    ``grid[y, x]``. The engine never mutates a grid once it has been
    made current; every change allocates a new one and swaps it in.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        randomize: bool = True,
        density: float = DEFAULT_DENSITY,
        seed: int | None = None,
    ) -> None:
        if not 0.0 <= density <= 1.0:
            raise ValueError(f"density must be within [0, 1], got {density!r}")
        self.density: float = density
        self._rng: np.random.Generator = np.random.default_rng(seed)
        self.generation: int = 0
        self.initialize(width, height, randomize)

    # ── Seeding ─────────────────────────────────────────────────────

    def initialize(
        self, width: int, height: int, randomize: bool
    ) -> NDArray[np.bool_]:
        """Allocate a fresh width x height world and make it current."""
        for v in (width, height):
            if isinstance(v, bool) or not isinstance(v, (int, np.integer)) or v < 1:
                raise InvalidDimension(width, height)

        self.width: int = int(width)
        self.height: int = int(height)
        self.randomize: bool = randomize

        if randomize:
            grid = self._rng.random((self.height, self.width)) < self.density
        else:
            grid = np.zeros((self.height, self.width), dtype=np.bool_)
        self.generation = 0
        self._swap(grid)
        return self.current_grid()

    def restart(self) -> NDArray[np.bool_]:
        return self.initialize(self.width, self.height, self.randomize)

    def clear(self) -> None:
        self._swap(np.zeros((self.height, self.width), dtype=np.bool_))

    def place(
        self, pattern: str | Iterable[tuple[int, int]], x: int, y: int
    ) -> None:
        """Stamp a named pattern (or explicit offsets) with its origin at (x, y).

        Cells that land outside the world are dropped.
        """
        cells = PATTERNS[pattern] if isinstance(pattern, str) else pattern
        grid = self._grid.copy()
        for dx, dy in cells:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.width and 0 <= ny < self.height:
                grid[ny, nx] = True
        self._swap(grid)

    def set_cells(self, cells: Iterable[tuple[int, int]], alive: bool = True) -> None:
        grid = self._grid.copy()
        for x, y in cells:
            self._check(x, y)
            grid[y, x] = alive
        self._swap(grid)

    def _swap(self, grid: NDArray[np.bool_]) -> None:
        grid.flags.writeable = False
        self._grid: NDArray[np.bool_] = grid

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"cell ({x}, {y}) outside {self.width}x{self.height} grid"
            )

    # ── Simulation ──────────────────────────────────────────────────

    def step(self) -> NDArray[np.bool_]:
        """Advance one generation and return the new current grid."""
        self._swap(next_generation(self._grid))
        self.generation += 1
        return self.current_grid()

    def current_grid(self) -> NDArray[np.bool_]:
        """The current generation as a read-only array.

        A view of a read-only buffer cannot be made writeable again, so
        callers never get a handle on the engine's own storage.
        """
        return self._grid.view()

    # ── Queries ─────────────────────────────────────────────────────

    def is_alive(self, x: int, y: int) -> bool:
        self._check(x, y)
        return bool(self._grid[y, x])

    def neighbors(self, x: int, y: int) -> Iterator[tuple[int, int]]:
        """In-bounds Moore neighbours of (x, y)."""
        self._check(x, y)
        return (
            (x + dx, y + dy)
            for dx, dy in NEIGHBOR_OFFSETS
            if 0 <= x + dx < self.width and 0 <= y + dy < self.height
        )

    def neighbor_count(self, x: int, y: int) -> int:
        return sum(1 for nx, ny in self.neighbors(x, y) if self._grid[ny, nx])

    def population(self) -> int:
        return int(np.count_nonzero(self._grid))


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes engine telemetry to CSV for post-hoc inspection."""

    HEADER: ClassVar[str] = "gen,time_s,population,interval_ms,event\n"

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    def open(self) -> None:
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(self, gen: int, pop: int, interval: int, event: str = "") -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        try:
            self._fh.write(f"{gen},{t:.1f},{pop},{interval},{event}\n")
            # Flush on events or periodically
            if event or gen % 50 == 0:
                self._fh.flush()
        except OSError:
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Scheduling
# ═══════════════════════════════════════════════════════════════════════

class DisplaySink(Protocol):
    def render(self, grid: NDArray[np.bool_]) -> None: ...


class Scheduler:
    """
    Drives an engine at a fixed cadence: step, then render.

    Ticks are strictly sequential. ``stop()`` only cancels future ticks,
    so a generation that is already being computed always completes and
    the engine is left holding a whole grid even if the sink raises.
    """

    def __init__(
        self,
        engine: LifeEngine,
        sink: DisplaySink,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        logger: StatsLogger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.sink = sink
        self.interval_ms = interval_ms
        self.logger = logger
        self.paused: bool = False
        self._running: bool = False
        self._sleep = sleep
        self._clock = clock

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @interval_ms.setter
    def interval_ms(self, value: int) -> None:
        if value <= 0:
            raise ValueError(f"interval must be positive, got {value!r} ms")
        self._interval_ms = value

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True
        self.sink.render(self.engine.current_grid())
        self._log("start")

    def stop(self) -> None:
        self._running = False

    def restart(self) -> None:
        self.engine.restart()
        self.sink.render(self.engine.current_grid())
        self._log("restart")

    def tick(self) -> bool:
        """Produce and render one generation. False if stopped or paused."""
        if not self._running or self.paused:
            return False
        self.engine.step()
        self.sink.render(self.engine.current_grid())
        if self.engine.generation % 10 == 0:
            self._log()
        return True

    def run(
        self,
        max_generations: int | None = None,
        on_frame: Callable[[Scheduler], None] | None = None,
    ) -> int:
        """Tick until stopped (or ``max_generations`` produced).

        ``on_frame`` is called before every tick and may stop, pause or
        retune the scheduler. Returns the number of generations produced.
        """
        produced = 0
        try:
            self.start()
            while self._running:
                if max_generations is not None and produced >= max_generations:
                    break
                frame_t0 = self._clock()
                if on_frame is not None:
                    on_frame(self)
                    if not self._running:
                        break
                if self.tick():
                    produced += 1
                remaining = self._interval_ms / 1000.0 - (self._clock() - frame_t0)
                if remaining > 0:
                    self._sleep(remaining)
        finally:
            self._running = False
        return produced

    def _log(self, event: str = "") -> None:
        if self.logger is not None:
            self.logger.log(
                gen=self.engine.generation,
                pop=self.engine.population(),
                interval=self._interval_ms,
                event=event,
            )


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

class CursesDisplay:
    """Paints each cell as a cell_size x cell_size block of characters.

    Cell (x, y) lands at terminal row ``y * cell_size``, column
    ``x * cell_size``. The bottom line of the window is a status bar.
    """

    ALIVE_PAIR: ClassVar[int] = 1
    DEAD_PAIR: ClassVar[int] = 2

    def __init__(
        self,
        window: curses.window,
        cell_size: int = 1,
        alive_color: int = ALIVE_COLOR,
        dead_color: int = DEAD_COLOR,
    ) -> None:
        if cell_size < 1:
            raise ValueError(f"cell_size must be at least 1, got {cell_size!r}")
        self._window = window
        self.cell_size = cell_size
        self.alive_color = alive_color
        self.dead_color = dead_color
        self.status: str = ""
        # Replaced by colour pairs in setup(); plain attributes work headless
        self._alive_attr: int = curses.A_BOLD
        self._dead_attr: int = curses.A_NORMAL

    def setup(self) -> None:
        curses.start_color()
        curses.use_default_colors()
        if curses.COLORS <= max(self.alive_color, self.dead_color):
            return
        curses.init_pair(self.ALIVE_PAIR, self.alive_color, self.alive_color)
        curses.init_pair(self.DEAD_PAIR, self.dead_color, self.dead_color)
        self._alive_attr = curses.color_pair(self.ALIVE_PAIR)
        self._dead_attr = curses.color_pair(self.DEAD_PAIR)

    def render(self, grid: NDArray[np.bool_]) -> None:
        max_y, max_x = self._window.getmaxyx()
        cs = self.cell_size
        draw_rows = max_y - 1
        g_rows, g_cols = grid.shape
        vis_rows = min(g_rows, -(-draw_rows // cs))
        vis_cols = min(g_cols, -(-max_x // cs))
        if vis_cols <= 0:
            vis_rows = 0
        _addstr = self._window.addstr

        for y in range(vis_rows):
            row = grid[y, :vis_cols]
            # Paint runs of equal state with one call each
            edges = (np.flatnonzero(row[1:] != row[:-1]) + 1).tolist()
            starts = [0, *edges]
            ends = [*edges, vis_cols]
            for sub in range(cs):
                term_y = y * cs + sub
                if term_y >= draw_rows:
                    break
                for s, e in zip(starts, ends):
                    col = s * cs
                    if row[s]:
                        text, attr = ALIVE_GLYPH * ((e - s) * cs), self._alive_attr
                    else:
                        text, attr = DEAD_GLYPH * ((e - s) * cs), self._dead_attr
                    try:
                        _addstr(term_y, col, text[: max_x - col], attr)
                    except curses.error:
                        pass

        pop = int(np.count_nonzero(grid))
        line = f"  pop {pop:,}  {self.status}"
        width = max(max_x - 1, 0)
        try:
            _addstr(max_y - 1, 0, line.ljust(width)[:width], curses.A_DIM)
        except curses.error:
            pass
        self._window.refresh()


# ═══════════════════════════════════════════════════════════════════════
#  Configuration
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class LifeConfig:
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    interval: int = DEFAULT_INTERVAL_MS
    randomize_on_start: bool = True
    density: float = DEFAULT_DENSITY
    seed: int | None = None
    cell_size: int = 1
    alive_color: int = ALIVE_COLOR
    dead_color: int = DEAD_COLOR
    log_path: Path | None = LOG_PATH

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval!r} ms")
        if self.cell_size < 1:
            raise ValueError(f"cell_size must be at least 1, got {self.cell_size!r}")

    def engine(self) -> LifeEngine:
        return LifeEngine(
            self.width,
            self.height,
            randomize=self.randomize_on_start,
            density=self.density,
            seed=self.seed,
        )

    @classmethod
    def from_args(
        cls,
        argv: list[str] | None = None,
        parser: argparse.ArgumentParser | None = None,
    ) -> LifeConfig:
        args = (parser or build_parser()).parse_args(argv)
        return cls(
            width=args.width,
            height=args.height,
            interval=args.interval,
            randomize_on_start=args.randomize,
            density=args.density,
            seed=args.seed,
            cell_size=args.cell_size,
            alive_color=args.alive_color,
            dead_color=args.dead_color,
            log_path=Path(args.log) if args.log else None,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Conway's Game of Life on a bounded grid")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH,
                        help=f"Grid columns (default: {DEFAULT_WIDTH})")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT,
                        help=f"Grid rows (default: {DEFAULT_HEIGHT})")
    parser.add_argument("--interval", type=int, default=DEFAULT_INTERVAL_MS,
                        help=f"Milliseconds between generations (default: {DEFAULT_INTERVAL_MS})")
    parser.add_argument("--no-randomize", dest="randomize", action="store_false",
                        help="Start from an empty world")
    parser.add_argument("--density", type=float, default=DEFAULT_DENSITY,
                        help=f"Live-cell probability when randomizing (default: {DEFAULT_DENSITY})")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for a reproducible start")
    parser.add_argument("--cell-size", type=int, default=1,
                        help="Terminal characters per cell side (default: 1)")
    parser.add_argument("--alive-color", type=int, default=ALIVE_COLOR,
                        help=f"256-colour index for live cells (default: {ALIVE_COLOR})")
    parser.add_argument("--dead-color", type=int, default=DEAD_COLOR,
                        help=f"256-colour index for dead cells (default: {DEAD_COLOR})")
    parser.add_argument("--log", type=str, default=str(LOG_PATH),
                        help="Stats CSV path, empty to disable (default: beside this script)")
    return parser


# ═══════════════════════════════════════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════════════════════════════════════

def main(stdscr: curses.window, config: LifeConfig, engine: LifeEngine) -> None:
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.timeout(0)

    display = CursesDisplay(
        stdscr,
        cell_size=config.cell_size,
        alive_color=config.alive_color,
        dead_color=config.dead_color,
    )
    display.setup()

    logger: StatsLogger | None = None
    if config.log_path is not None:
        logger = StatsLogger(config.log_path)
        logger.open()

    scheduler = Scheduler(engine, display, config.interval, logger=logger)

    def poll(sched: Scheduler) -> None:
        try:
            key = stdscr.getch()
        except curses.error:
            key = -1

        if key in (ord("q"), ord("Q")):
            sched.stop()
        elif key in (ord("r"), ord("R")):
            sched.restart()
        elif key == ord(" "):
            sched.paused = not sched.paused

        paused = "  paused" if sched.paused else ""
        display.status = (
            f"gen {engine.generation:,}  {sched.interval_ms}ms{paused}  q r spc"
        )

    try:
        scheduler.run(on_frame=poll)
    finally:
        if logger is not None:
            logger.close()


def cli(argv: list[str] | None = None) -> None:
    parser = build_parser()
    try:
        config = LifeConfig.from_args(argv, parser)
        engine = config.engine()
    except ValueError as exc:
        parser.error(str(exc))
    try:
        curses.wrapper(main, config, engine)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
