# ===== logic/piece.py =====
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
import random
from typing import List, Optional, Tuple

Shape = Tuple[Tuple[int, ...], ...]


class PieceType(Enum):
    I = "I"
    J = "J"
    L = "L"
    O = "O"
    S = "S"
    T = "T"
    Z = "Z"


# ===== Shapes (spawn orientation, NxN) =====
SHAPES = MappingProxyType({
    PieceType.I: (
        (0, 0, 0, 0),
        (1, 1, 1, 1),
        (0, 0, 0, 0),
        (0, 0, 0, 0),
    ),
    PieceType.J: (
        (1, 0, 0),
        (1, 1, 1),
        (0, 0, 0),
    ),
    PieceType.L: (
        (0, 0, 1),
        (1, 1, 1),
        (0, 0, 0),
    ),
    PieceType.O: (
        (0, 0, 0),
        (0, 1, 1),
        (0, 1, 1),
    ),
    PieceType.S: (
        (0, 1, 1),
        (1, 1, 0),
        (0, 0, 0),
    ),
    PieceType.T: (
        (0, 1, 0),
        (1, 1, 1),
        (0, 0, 0),
    ),
    PieceType.Z: (
        (1, 1, 0),
        (0, 1, 1),
        (0, 0, 0),
    ),
})

# Packed 0xRRGGBB; never 0, which the board uses for empty cells.
PIECE_COLORS = MappingProxyType({
    PieceType.I: 0x00B7B7,
    PieceType.J: 0x0000B7,
    PieceType.L: 0xB75B00,
    PieceType.O: 0xFFBF00,
    PieceType.S: 0x00B700,
    PieceType.T: 0x8E44AD,
    PieceType.Z: 0xB70000,
})


def rotate_clockwise(shape: Shape) -> Shape:
    """result[j][n-1-i] = shape[i][j]"""
    return tuple(zip(*shape[::-1]))


def color_to_rgb(color: int) -> Tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


@dataclass
class Piece:
    type: PieceType
    x: int = 0
    y: int = 0
    rotation: int = 0

    @classmethod
    def random(cls, rng: Optional[random.Random] = None) -> Piece:
        rng = rng or random.Random()
        return cls(rng.choice(list(PieceType)))

    @property
    def shape_definition(self) -> Shape:
        return SHAPES[self.type]

    @property
    def color(self) -> int:
        return PIECE_COLORS[self.type]

    def current_shape(self) -> Shape:
        shape = self.shape_definition
        for _ in range(self.rotation % 4):
            shape = rotate_clockwise(shape)
        return shape

    def cells(self) -> List[Tuple[int, int]]:
        """(row, col) of every filled cell in board coordinates."""
        out = []
        for rr, row in enumerate(self.current_shape()):
            for cc, filled in enumerate(row):
                if filled:
                    out.append((self.y + rr, self.x + cc))
        return out

    # ----- Unchecked movement; the board decides legality -----
    def rotate(self):
        self.rotation = (self.rotation + 1) % 4

    def move_left(self):
        self.x -= 1

    def move_right(self):
        self.x += 1

    def move_down(self):
        self.y += 1
