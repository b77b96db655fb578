# ===== logic/state.py =====
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .board import Board
from .exceptions import InvalidStateError
from .piece import PieceType


def _piece_type(name: Any) -> PieceType:
    if isinstance(name, PieceType):
        return name
    try:
        return PieceType(name)
    except ValueError:
        raise InvalidStateError(f"unknown piece type: {name!r}") from None


@dataclass(frozen=True)
class CurrentPieceState:
    type: PieceType
    rotation: int
    x: int
    y: int


@dataclass(frozen=True)
class GameState:
    """Everything needed to resume a game after an interruption."""
    rows: int
    cols: int
    grid: Tuple[int, ...]
    score: int
    high_score: int
    is_game_over: bool
    is_paused: bool
    current_piece: Optional[CurrentPieceState]
    next_piece_type: PieceType
    lines_cleared: int = 0

    def validate(self):
        Board.validate_flat(list(self.grid), self.rows, self.cols)
        if self.score < 0 or self.high_score < 0 or self.lines_cleared < 0:
            raise InvalidStateError("scores must be non-negative")
        if not isinstance(self.next_piece_type, PieceType):
            raise InvalidStateError(f"next piece is not a PieceType: {self.next_piece_type!r}")
        if self.current_piece is not None:
            if not isinstance(self.current_piece.type, PieceType):
                raise InvalidStateError(
                    f"current piece is not a PieceType: {self.current_piece.type!r}")
            if not 0 <= self.current_piece.rotation < 4:
                raise InvalidStateError(f"rotation out of range: {self.current_piece.rotation}")

    def to_dict(self) -> Dict[str, Any]:
        piece = None
        if self.current_piece is not None:
            piece = {
                "type": self.current_piece.type.value,
                "rotation": self.current_piece.rotation,
                "x": self.current_piece.x,
                "y": self.current_piece.y,
            }
        return {
            "rows": self.rows,
            "cols": self.cols,
            "grid": list(self.grid),
            "score": self.score,
            "high_score": self.high_score,
            "is_game_over": self.is_game_over,
            "is_paused": self.is_paused,
            "current_piece": piece,
            "next_piece_type": self.next_piece_type.value,
            "lines_cleared": self.lines_cleared,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GameState:
        try:
            piece = data.get("current_piece")
            current = None
            if piece is not None:
                current = CurrentPieceState(
                    type=_piece_type(piece["type"]),
                    rotation=int(piece["rotation"]),
                    x=int(piece["x"]),
                    y=int(piece["y"]),
                )
            state = cls(
                rows=int(data["rows"]),
                cols=int(data["cols"]),
                grid=tuple(int(v) for v in data["grid"]),
                score=int(data["score"]),
                high_score=int(data["high_score"]),
                is_game_over=bool(data["is_game_over"]),
                is_paused=bool(data["is_paused"]),
                current_piece=current,
                next_piece_type=_piece_type(data["next_piece_type"]),
                lines_cleared=int(data.get("lines_cleared", 0)),
            )
        except InvalidStateError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidStateError(f"malformed game state: {e}") from e
        state.validate()
        return state
