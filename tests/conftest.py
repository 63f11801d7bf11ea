from __future__ import annotations

import curses

import numpy as np
import pytest


class RecordingWindow:
    """curses.window stand-in that keeps a character canvas."""

    def __init__(self, rows: int, cols: int) -> None:
        self.rows = rows
        self.cols = cols
        self.canvas: dict[tuple[int, int], tuple[str, int]] = {}
        self.out_of_bounds = 0
        self.refreshes = 0

    def getmaxyx(self) -> tuple[int, int]:
        return self.rows, self.cols

    def addstr(self, y: int, x: int, text: str, attr: int = 0) -> None:
        if not (0 <= y < self.rows and 0 <= x < self.cols) or x + len(text) > self.cols:
            self.out_of_bounds += 1
            raise curses.error("addstr out of bounds")
        for i, ch in enumerate(text):
            self.canvas[(y, x + i)] = (ch, attr)

    def refresh(self) -> None:
        self.refreshes += 1

    def row_text(self, y: int) -> str:
        return "".join(self.canvas.get((y, x), (" ", 0))[0] for x in range(self.cols))


class RecordingSink:
    def __init__(self, fail_after: int | None = None) -> None:
        self.frames: list[np.ndarray] = []
        self._fail_after = fail_after

    def render(self, grid: np.ndarray) -> None:
        if self._fail_after is not None and len(self.frames) >= self._fail_after:
            raise RuntimeError("display went away")
        self.frames.append(grid)


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def alive_cells(grid: np.ndarray) -> set[tuple[int, int]]:
    """Live cells of a (height, width) grid as (x, y) pairs."""
    ys, xs = np.nonzero(grid)
    return {(int(x), int(y)) for y, x in zip(ys, xs)}


@pytest.fixture
def window() -> RecordingWindow:
    return RecordingWindow(12, 20)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
