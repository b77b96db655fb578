# ===== logic/game.py =====
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
import logging
import random
from typing import Callable, List, Optional, Tuple

from .. import config
from .board import Board
from .clock import now_ms
from .exceptions import InvalidStateError
from .piece import Piece, Shape
from .state import CurrentPieceState, GameState

log = logging.getLogger("handtris.game")


class Action(Enum):
    MOVE_LEFT = auto()
    MOVE_RIGHT = auto()
    ROTATE = auto()
    HARD_DROP = auto()


class Phase(Enum):
    PAUSED = auto()
    RUNNING = auto()
    GAME_OVER = auto()


def _elapsed(now: int, since: Optional[int], window: int) -> bool:
    return since is None or now - since >= window


@dataclass
class GameController:
    """
    Game state machine.

    Every handler checks ``is_paused`` and ``is_game_over`` on its own; the
    ``phase`` property is only a summary of the two flags. All timing goes
    through ``clock`` (milliseconds) so cooldowns can be driven by tests.
    """
    rows: int = config.BOARD_ROWS
    cols: int = config.BOARD_COLS
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], int] = now_ms
    on_high_score: Optional[Callable[[int], None]] = None

    gravity_interval_ms: int = config.GRAVITY_INTERVAL_MS
    drop_cooldown_ms: int = config.PIECE_DROP_COOLDOWN_MS
    hard_drop_cooldown_ms: int = config.HARD_DROP_COOLDOWN_MS
    rotation_cooldown_ms: int = config.ROTATION_COOLDOWN_MS
    move_delay_ms: int = config.MOVE_DELAY_MS
    left_zone: float = config.LEFT_ZONE
    right_zone: float = config.RIGHT_ZONE

    board: Board = field(init=False)
    current_piece: Optional[Piece] = field(default=None, init=False)
    next_piece: Piece = field(init=False)
    is_game_over: bool = field(default=False, init=False)
    is_paused: bool = field(default=False, init=False)
    lines_cleared: int = field(default=0, init=False)

    last_gravity_tick: Optional[int] = field(default=None, init=False)
    last_lock: Optional[int] = field(default=None, init=False)
    last_hard_drop: Optional[int] = field(default=None, init=False)
    last_rotate: Optional[int] = field(default=None, init=False)
    last_move: Optional[int] = field(default=None, init=False)

    _score: int = field(default=0, init=False, repr=False)
    _high_score: int = field(default=0, init=False, repr=False)
    _gravity_enabled: bool = field(default=False, init=False, repr=False)
    _next_tick_at: Optional[int] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.board = Board(self.rows, self.cols)
        self.next_piece = Piece.random(self.rng)

    # ----- Score -----
    @property
    def score(self) -> int:
        return self._score

    @score.setter
    def score(self, value: int):
        self._score = value
        if value > self._high_score:
            self._high_score = value
            log.debug("new high score: %d", value)
            if self.on_high_score is not None:
                self.on_high_score(value)

    @property
    def high_score(self) -> int:
        return self._high_score

    def set_high_score(self, value: int):
        """Raise the high score from persistence; never lowers it."""
        if value > self._high_score:
            self._high_score = value
            log.debug("high score set to %d", value)

    @property
    def phase(self) -> Phase:
        if self.is_game_over:
            return Phase.GAME_OVER
        if self.is_paused or not self._gravity_enabled:
            return Phase.PAUSED
        return Phase.RUNNING

    @property
    def gravity_enabled(self) -> bool:
        return self._gravity_enabled

    # ----- Lifecycle -----
    def start(self):
        if self.current_piece is None:
            self._spawn_next()
        self.is_paused = False
        self._enable_gravity()

    def pause(self):
        self.is_paused = True
        self._gravity_enabled = False
        self._next_tick_at = None

    def reset(self):
        self.board.clear()
        self.is_game_over = False
        self.is_paused = True
        self.score = 0
        self.lines_cleared = 0
        self.current_piece = None
        self.next_piece = Piece.random(self.rng)
        self.last_gravity_tick = None
        self.last_lock = None
        self.last_hard_drop = None
        self.last_rotate = None
        self.last_move = None
        self._gravity_enabled = False
        self._next_tick_at = None
        log.debug("game reset, high score preserved: %d", self._high_score)

    def _enable_gravity(self):
        self._gravity_enabled = True
        self._next_tick_at = self.clock()

    # ----- Gravity -----
    def pump(self) -> bool:
        """Fire the gravity tick if it is due. Returns True when a tick ran."""
        if not self._gravity_enabled or self.is_paused or self.is_game_over:
            return False
        now = self.clock()
        if self._next_tick_at is not None and now < self._next_tick_at:
            return False
        self.tick()
        if self.is_game_over:
            self._gravity_enabled = False
            self._next_tick_at = None
        else:
            self._next_tick_at = now + self.gravity_interval_ms
        return True

    def tick(self):
        if self.is_paused or self.is_game_over:
            return
        now = self.clock()
        self.last_gravity_tick = now
        if self.current_piece is None:
            self._spawn_next()
            return
        # Slow fall: after a lock the new piece hovers for drop_cooldown_ms.
        if not _elapsed(now, self.last_lock, self.drop_cooldown_ms):
            return
        if self.board.can_move(self.current_piece, 0, 1):
            self.current_piece.move_down()
        else:
            self._lock_and_respawn(now)

    # ----- Spawning / locking -----
    def _spawn_next(self) -> bool:
        """Promote the next piece; True when it collides at its spawn pose."""
        piece = self.next_piece
        self.next_piece = Piece.random(self.rng)
        piece.rotation = 0
        piece.x, piece.y = self.board.spawn_position(piece)
        self.current_piece = piece
        return self.board.is_collision(piece)

    def _lock_and_respawn(self, now: int):
        assert self.current_piece is not None
        self.board.lock_piece(self.current_piece)
        cleared, delta = self.board.check_completed_rows()
        if cleared:
            self.lines_cleared += len(cleared)
            self.score = self.score + delta
            log.debug("rows cleared: %d, score +%d -> %d", len(cleared), delta, self.score)
        if self._spawn_next():
            self.is_game_over = True
            self._gravity_enabled = False
            self._next_tick_at = None
            log.info("game over, final score %d", self.score)
        self.last_lock = now

    # ----- Input -----
    def _accepts_input(self) -> bool:
        return not self.is_paused and not self.is_game_over and self.current_piece is not None

    def move(self, dx: int) -> bool:
        if not self._accepts_input() or dx == 0:
            return False
        if not self.board.can_move(self.current_piece, dx, 0):
            return False
        if dx < 0:
            self.current_piece.move_left()
        else:
            self.current_piece.move_right()
        return True

    def handle_pointer(self, x: float, is_pointing: bool) -> bool:
        """Zone-based lateral move from a normalized pointer position."""
        if not self._accepts_input() or not is_pointing:
            return False
        now = self.clock()
        if not _elapsed(now, self.last_move, self.move_delay_ms):
            return False
        if x < self.left_zone:
            moved = self.move(-1)
        elif x > self.right_zone:
            moved = self.move(1)
        else:
            moved = False
        if moved:
            self.last_move = now
        return moved

    def rotate(self) -> bool:
        if not self._accepts_input():
            return False
        now = self.clock()
        if not _elapsed(now, self.last_rotate, self.rotation_cooldown_ms):
            return False
        piece = self.current_piece
        original = piece.rotation
        piece.rotate()
        if self.board.is_collision(piece):
            piece.rotation = original
            return False
        self.last_rotate = now
        return True

    def hard_drop(self) -> bool:
        if not self._accepts_input():
            return False
        now = self.clock()
        if not _elapsed(now, self.last_hard_drop, self.hard_drop_cooldown_ms):
            return False
        piece = self.current_piece
        drop_y = self.board.find_drop_position(piece)
        while piece.y < drop_y:
            piece.move_down()
        self._lock_and_respawn(now)
        self.last_hard_drop = now
        return True

    def step(self, action: Action):
        if action == Action.MOVE_LEFT:
            self.move(-1)
        elif action == Action.MOVE_RIGHT:
            self.move(1)
        elif action == Action.ROTATE:
            self.rotate()
        elif action == Action.HARD_DROP:
            self.hard_drop()

    # ----- Queries for rendering -----
    def ghost_row(self) -> Optional[int]:
        if self.current_piece is None:
            return None
        return self.board.find_drop_position(self.current_piece)

    def get_cells(self) -> List[Tuple[int, int, int]]:
        out = []
        grid = self.board.grid
        for r in range(self.rows):
            for c in range(self.cols):
                color = int(grid[r, c])
                if color:
                    out.append((r, c, color))
        if self.current_piece is not None:
            color = self.current_piece.color
            for r, c in self.current_piece.cells():
                if r >= 0:
                    out.append((r, c, color))
        return out

    def get_ghost_cells(self) -> List[Tuple[int, int]]:
        if self.current_piece is None:
            return []
        dy = self.ghost_row() - self.current_piece.y
        return [(r + dy, c) for r, c in self.current_piece.cells() if r + dy >= 0]

    def next_shape(self) -> Shape:
        return self.next_piece.shape_definition

    # ----- Snapshot -----
    def save_state(self) -> GameState:
        piece = None
        if self.current_piece is not None:
            p = self.current_piece
            piece = CurrentPieceState(p.type, p.rotation, p.x, p.y)
        return GameState(
            rows=self.rows,
            cols=self.cols,
            grid=tuple(self.board.to_flat()),
            score=self._score,
            high_score=self._high_score,
            is_game_over=self.is_game_over,
            is_paused=self.is_paused,
            current_piece=piece,
            next_piece_type=self.next_piece.type,
            lines_cleared=self.lines_cleared,
        )

    def restore_state(self, state: GameState):
        """Apply a snapshot; nothing changes unless the whole snapshot is valid."""
        if (state.rows, state.cols) != (self.rows, self.cols):
            raise InvalidStateError(
                f"snapshot is {state.rows}x{state.cols}, board is {self.rows}x{self.cols}")
        try:
            state.validate()
        except InvalidStateError as e:
            log.warning("rejected game state: %s", e)
            raise

        self.board.load_flat(state.grid)
        self._score = state.score
        self._high_score = state.high_score
        self.lines_cleared = state.lines_cleared
        self.is_game_over = state.is_game_over
        self.is_paused = state.is_paused
        self.current_piece = None
        if state.current_piece is not None:
            cp = state.current_piece
            self.current_piece = Piece(cp.type, x=cp.x, y=cp.y, rotation=cp.rotation)
        self.next_piece = Piece(state.next_piece_type)
        self.last_gravity_tick = None
        self.last_lock = None
        self.last_hard_drop = None
        self.last_rotate = None
        self.last_move = None
        self._gravity_enabled = False
        self._next_tick_at = None
        if not self.is_paused and not self.is_game_over:
            self._enable_gravity()
        log.debug("game state restored (score %d, paused=%s, over=%s)",
                  self._score, self.is_paused, self.is_game_over)
