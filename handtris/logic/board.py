# ===== logic/board.py =====
from __future__ import annotations
import logging
from typing import Iterable, List, Tuple

import numpy as np

from .exceptions import InvalidStateError
from .piece import PIECE_COLORS, Piece

log = logging.getLogger("handtris.board")

EMPTY = 0
VALID_CELLS = frozenset([EMPTY, *PIECE_COLORS.values()])

# Rows cleared at once -> points
SCORE_TABLE = {1: 100, 2: 300, 3: 500, 4: 800}


def score_for_rows(count: int) -> int:
    return SCORE_TABLE.get(count, count * 100)


class Board:
    """
    Occupancy grid of locked cells.

    Cells hold EMPTY or the color of the piece that locked there. Row 0 is the
    top of the playfield; pieces may overhang above it while spawning or
    rotating, those cells are only checked against the side walls.
    """

    def __init__(self, rows: int = 20, cols: int = 10):
        self.rows = rows
        self.cols = cols
        self._grid = np.zeros((rows, cols), dtype=np.int32)

    @property
    def grid(self) -> np.ndarray:
        view = self._grid.view()
        view.flags.writeable = False
        return view

    def cell(self, row: int, col: int) -> int:
        return int(self._grid[row, col])

    def clear(self):
        self._grid.fill(EMPTY)

    # ----- Collision -----
    def can_move(self, piece: Piece, dx: int, dy: int) -> bool:
        for r, c in piece.cells():
            nr, nc = r + dy, c + dx
            if nc < 0 or nc >= self.cols or nr >= self.rows:
                return False
            if nr >= 0 and self._grid[nr, nc] != EMPTY:
                return False
        return True

    def is_collision(self, piece: Piece) -> bool:
        return not self.can_move(piece, 0, 0)

    def find_drop_position(self, piece: Piece) -> int:
        drop_y = piece.y
        while self.can_move(piece, 0, drop_y - piece.y + 1):
            drop_y += 1
        return drop_y

    def spawn_position(self, piece: Piece) -> Tuple[int, int]:
        width = len(piece.current_shape()[0])
        return (self.cols - width) // 2, 0

    # ----- Lock piece -----
    def lock_piece(self, piece: Piece):
        for r, c in piece.cells():
            if 0 <= r < self.rows and 0 <= c < self.cols:
                self._grid[r, c] = piece.color
        log.debug("locked %s at x=%d y=%d rot=%d", piece.type.value, piece.x, piece.y, piece.rotation)

    def completed_rows(self) -> List[int]:
        full = np.all(self._grid != EMPTY, axis=1)
        return [int(i) for i in np.flatnonzero(full)]

    def check_completed_rows(self) -> Tuple[List[int], int]:
        """
        Clear every complete row in one pass.

        All complete rows are found before anything moves, then the surviving
        rows keep their order and settle at the bottom while empty rows refill
        the top. Returns (cleared row indices, score delta).
        """
        cleared = self.completed_rows()
        if not cleared:
            return [], 0
        keep = self._grid[np.any(self._grid == EMPTY, axis=1)]
        self._grid = np.vstack([
            np.zeros((len(cleared), self.cols), dtype=self._grid.dtype),
            keep,
        ])
        delta = score_for_rows(len(cleared))
        log.debug("cleared rows %s (+%d)", cleared, delta)
        return cleared, delta

    # ----- Snapshot helpers -----
    def to_flat(self) -> List[int]:
        return [int(v) for v in self._grid.ravel()]

    def load_flat(self, values: Iterable[int]):
        values = [int(v) for v in values]
        self.validate_flat(values, self.rows, self.cols)
        self._grid = np.array(values, dtype=np.int32).reshape(self.rows, self.cols)

    @staticmethod
    def validate_flat(values: List[int], rows: int, cols: int):
        if len(values) != rows * cols:
            raise InvalidStateError(f"grid has {len(values)} cells, expected {rows * cols}")
        unknown = set(values) - VALID_CELLS
        if unknown:
            raise InvalidStateError(f"unknown cell colors: {sorted(unknown)}")

    def copy(self) -> Board:
        other = Board(self.rows, self.cols)
        other._grid = self._grid.copy()
        return other
