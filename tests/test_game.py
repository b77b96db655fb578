import random
import unittest

import numpy as np

from handtris.logic.board import EMPTY
from handtris.logic.exceptions import InvalidStateError
from handtris.logic.game import Action, GameController, Phase
from handtris.logic.piece import PIECE_COLORS, Piece, PieceType
from handtris.logic.state import CurrentPieceState, GameState


class FakeClock:
    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


def load_cells(game: GameController, cells, color=PIECE_COLORS[PieceType.T]):
    values = game.board.to_flat()
    for r, c in cells:
        values[r * game.cols + c] = color
    game.board.load_flat(values)


class GameTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock(10_000)
        self.game = GameController(rng=random.Random(7), clock=self.clock)
        self.game.next_piece = Piece(PieceType.O)
        self.game.start()

    def locked_cells(self) -> int:
        return int(np.count_nonzero(self.game.board.grid))


class TestLifecycle(GameTestCase):

    def test_start_spawns_first_piece(self):
        piece = self.game.current_piece
        self.assertEqual(piece.type, PieceType.O)
        self.assertEqual((piece.x, piece.y, piece.rotation), (3, 0, 0))
        self.assertIsNotNone(self.game.next_piece)
        self.assertFalse(self.game.is_paused)
        self.assertEqual(self.game.phase, Phase.RUNNING)

    def test_fresh_controller_has_no_piece(self):
        game = GameController(clock=self.clock)
        self.assertIsNone(game.current_piece)
        self.assertIsNotNone(game.next_piece)
        self.assertEqual(game.phase, Phase.PAUSED)

    def test_first_tick_spawns_when_no_piece(self):
        game = GameController(clock=self.clock)
        game.tick()
        self.assertIsNotNone(game.current_piece)
        self.assertEqual(game.current_piece.y, 0)

    def test_pause_and_resume(self):
        self.game.pause()
        self.assertTrue(self.game.is_paused)
        self.assertEqual(self.game.phase, Phase.PAUSED)
        self.assertFalse(self.game.gravity_enabled)
        self.game.start()
        self.assertFalse(self.game.is_paused)
        self.assertEqual(self.game.current_piece.type, PieceType.O)

    def test_reset_keeps_high_score(self):
        self.game.score = 1200
        self.game.reset()
        self.assertEqual(self.game.score, 0)
        self.assertEqual(self.game.high_score, 1200)
        self.assertTrue(self.game.is_paused)
        self.assertFalse(self.game.is_game_over)
        self.assertIsNone(self.game.current_piece)
        self.assertIsNotNone(self.game.next_piece)
        self.assertFalse(self.game.gravity_enabled)
        self.assertIsNone(self.game.last_hard_drop)
        self.assertEqual(self.locked_cells(), 0)

    def test_set_high_score_never_lowers(self):
        self.game.set_high_score(500)
        self.game.set_high_score(300)
        self.assertEqual(self.game.high_score, 500)

    def test_high_score_hook(self):
        seen = []
        game = GameController(clock=self.clock, on_high_score=seen.append)
        game.set_high_score(200)
        game.score = 100
        game.score = 300
        self.assertEqual(seen, [300])
        self.assertEqual(game.high_score, 300)


class TestGravity(GameTestCase):

    def test_tick_moves_piece_down(self):
        self.game.tick()
        self.assertEqual(self.game.current_piece.y, 1)

    def test_tick_waits_for_drop_cooldown_after_lock(self):
        self.game.hard_drop()
        piece = self.game.current_piece
        self.clock.advance(4999)
        self.game.tick()
        self.assertEqual(piece.y, 0)
        self.clock.advance(1)
        self.game.tick()
        self.assertEqual(piece.y, 1)

    def test_tick_locks_resting_piece(self):
        self.game.current_piece.y = 17
        self.game.tick()
        self.assertEqual(self.locked_cells(), 4)
        self.assertEqual(self.game.last_lock, self.clock.now)
        self.assertEqual(self.game.current_piece.y, 0)

    def test_tick_ignored_while_paused(self):
        self.game.pause()
        self.game.tick()
        self.assertEqual(self.game.current_piece.y, 0)

    def test_pump_follows_interval(self):
        self.assertTrue(self.game.pump())  # first tick due at start
        self.assertEqual(self.game.current_piece.y, 1)
        self.clock.advance(499)
        self.assertFalse(self.game.pump())
        self.clock.advance(1)
        self.assertTrue(self.game.pump())
        self.assertEqual(self.game.current_piece.y, 2)

    def test_no_tick_after_pause(self):
        self.game.pause()
        for _ in range(10):
            self.clock.advance(1000)
            self.assertFalse(self.game.pump())
        self.assertEqual(self.game.current_piece.y, 0)
        self.game.start()
        self.assertTrue(self.game.pump())

    def test_step_never_applies_gravity(self):
        self.assertNotIn("TICK", Action.__members__)
        self.assertTrue(self.game.pump())
        for action in (Action.MOVE_LEFT, Action.MOVE_RIGHT, Action.ROTATE):
            self.game.step(action)
        self.assertEqual(self.game.current_piece.y, 1)
        self.assertFalse(self.game.pump())


class TestLateralMove(GameTestCase):

    def test_zone_boundaries(self):
        x = self.game.current_piece.x
        self.assertFalse(self.game.handle_pointer(0.4, True))
        self.assertEqual(self.game.current_piece.x, x)
        self.assertTrue(self.game.handle_pointer(0.3999, True))
        self.assertEqual(self.game.current_piece.x, x - 1)
        self.clock.advance(150)
        self.assertFalse(self.game.handle_pointer(0.6, True))
        self.assertTrue(self.game.handle_pointer(0.6001, True))
        self.assertEqual(self.game.current_piece.x, x)

    def test_move_delay(self):
        x = self.game.current_piece.x
        self.assertTrue(self.game.handle_pointer(0.1, True))
        self.clock.advance(149)
        self.assertFalse(self.game.handle_pointer(0.1, True))
        self.clock.advance(1)
        self.assertTrue(self.game.handle_pointer(0.1, True))
        self.assertEqual(self.game.current_piece.x, x - 2)

    def test_not_pointing_is_ignored(self):
        x = self.game.current_piece.x
        self.assertFalse(self.game.handle_pointer(0.0, False))
        self.assertEqual(self.game.current_piece.x, x)

    def test_wall_blocks_move(self):
        self.game.current_piece.x = -1  # O occupies columns 0 and 1
        self.assertFalse(self.game.handle_pointer(0.0, True))
        self.assertEqual(self.game.current_piece.x, -1)
        self.assertIsNone(self.game.last_move)

    def test_keyboard_move_has_no_delay(self):
        x = self.game.current_piece.x
        self.game.step(Action.MOVE_RIGHT)
        self.game.step(Action.MOVE_RIGHT)
        self.assertEqual(self.game.current_piece.x, x + 2)
        self.game.step(Action.MOVE_LEFT)
        self.assertEqual(self.game.current_piece.x, x + 1)


class TestRotate(GameTestCase):

    def setUp(self):
        super().setUp()
        self.game.current_piece = Piece(PieceType.T, x=3, y=5)

    def test_rotation_cooldown(self):
        self.assertTrue(self.game.rotate())
        self.assertFalse(self.game.rotate())
        self.assertEqual(self.game.current_piece.rotation, 1)
        self.clock.advance(800)
        self.assertTrue(self.game.rotate())
        self.assertEqual(self.game.current_piece.rotation, 2)

    def test_blocked_rotation_is_reverted_without_cooldown(self):
        # horizontal I on the floor cannot turn vertical
        self.game.current_piece = Piece(PieceType.I, x=3, y=18)
        self.assertFalse(self.game.rotate())
        self.assertEqual(self.game.current_piece.rotation, 0)
        self.assertIsNone(self.game.last_rotate)
        # the retry is not held back by a cooldown
        self.game.current_piece.y = 5
        self.assertTrue(self.game.rotate())
        self.assertEqual(self.game.current_piece.rotation, 1)

    def test_rotate_ignored_when_paused(self):
        self.game.pause()
        self.assertFalse(self.game.rotate())
        self.assertEqual(self.game.current_piece.rotation, 0)

    def test_step_rotate(self):
        self.game.step(Action.ROTATE)
        self.assertEqual(self.game.current_piece.rotation, 1)


class TestHardDrop(GameTestCase):

    def test_hard_drop_locks_at_bottom(self):
        o_color = PIECE_COLORS[PieceType.O]
        self.assertTrue(self.game.hard_drop())
        for r, c in ((18, 4), (18, 5), (19, 4), (19, 5)):
            self.assertEqual(self.game.board.cell(r, c), o_color)
        self.assertEqual(self.game.last_hard_drop, self.clock.now)
        self.assertEqual(self.game.last_lock, self.clock.now)
        self.assertEqual(self.game.current_piece.y, 0)

    def test_hard_drop_cooldown(self):
        self.assertTrue(self.game.hard_drop())
        self.clock.advance(100)
        self.assertFalse(self.game.hard_drop())
        self.assertEqual(self.locked_cells(), 4)
        self.clock.advance(1400)
        self.assertTrue(self.game.hard_drop())
        self.assertEqual(self.locked_cells(), 8)

    def test_tetris_scores_800(self):
        cells = [(r, c) for r in range(16, 20) for c in range(1, 10)]
        load_cells(self.game, cells)
        # vertical I in column 0
        self.game.current_piece = Piece(PieceType.I, x=-2, y=0, rotation=1)
        self.game.hard_drop()
        self.assertEqual(self.game.score, 800)
        self.assertEqual(self.game.high_score, 800)
        self.assertEqual(self.game.lines_cleared, 4)
        self.assertEqual(self.locked_cells(), 0)

    def test_hard_drop_ignored_when_paused(self):
        self.game.pause()
        self.assertFalse(self.game.hard_drop())
        self.assertEqual(self.locked_cells(), 0)

    def test_ghost_matches_drop(self):
        self.assertEqual(self.game.ghost_row(), 17)
        self.assertEqual(sorted(self.game.get_ghost_cells()), [(18, 4), (18, 5), (19, 4), (19, 5)])
        cells = self.game.get_cells()
        self.assertEqual(len(cells), 4)


class TestGameOver(GameTestCase):

    def setUp(self):
        super().setUp()
        load_cells(self.game, [(1, 4)])  # blocks the O spawn pose
        self.game.current_piece = Piece(PieceType.O, x=-1, y=0)
        self.game.next_piece = Piece(PieceType.O)

    def test_spawn_collision_ends_game(self):
        self.game.hard_drop()
        self.assertTrue(self.game.is_game_over)
        self.assertEqual(self.game.phase, Phase.GAME_OVER)
        self.assertFalse(self.game.gravity_enabled)
        # blocker plus the locked O; the colliding spawn is not written
        self.assertEqual(self.locked_cells(), 5)
        self.assertEqual(self.game.current_piece.type, PieceType.O)
        self.assertEqual((self.game.current_piece.x, self.game.current_piece.y), (3, 0))


    def test_gravity_lock_ends_game(self):
        self.game.current_piece.y = 17  # resting on the floor
        self.game.last_lock = self.clock.now
        self.clock.advance(5000)
        self.assertTrue(self.game.pump())
        self.assertTrue(self.game.is_game_over)
        self.assertFalse(self.game.gravity_enabled)
        self.assertEqual(self.locked_cells(), 5)
        self.clock.advance(500)
        self.assertFalse(self.game.pump())
    def test_nothing_moves_after_game_over(self):
        self.game.hard_drop()
        before = self.game.board.to_flat()
        self.clock.advance(10_000)
        self.game.tick()
        self.assertFalse(self.game.pump())
        self.assertFalse(self.game.hard_drop())
        self.assertFalse(self.game.rotate())
        self.assertFalse(self.game.handle_pointer(0.0, True))
        self.assertEqual(self.game.board.to_flat(), before)

    def test_reset_recovers(self):
        self.game.hard_drop()
        self.game.reset()
        self.game.start()
        self.assertFalse(self.game.is_game_over)
        self.assertEqual(self.locked_cells(), 0)


class TestSnapshot(GameTestCase):

    def play_a_little(self):
        self.game.handle_pointer(0.1, True)
        self.game.rotate()
        self.game.hard_drop()
        self.game.tick()
        self.game.score = 300

    def test_round_trip(self):
        self.play_a_little()
        saved = self.game.save_state()

        other = GameController(clock=FakeClock())
        other.restore_state(saved)
        self.assertEqual(other.save_state(), saved)
        self.assertEqual(other.board.to_flat(), self.game.board.to_flat())
        self.assertEqual(other.current_piece, self.game.current_piece)
        self.assertEqual(other.next_piece.type, self.game.next_piece.type)
        self.assertEqual(other.high_score, 300)

    def test_round_trip_without_piece(self):
        self.game.reset()
        saved = self.game.save_state()
        self.assertIsNone(saved.current_piece)
        other = GameController(clock=FakeClock())
        other.restore_state(saved)
        self.assertIsNone(other.current_piece)
        self.assertEqual(other.save_state(), saved)

    def test_restore_resumes_gravity(self):
        saved = self.game.save_state()
        other = GameController(clock=FakeClock())
        other.restore_state(saved)
        self.assertTrue(other.gravity_enabled)
        self.assertTrue(other.pump())

    def test_restore_paused_keeps_clock_stopped(self):
        self.game.pause()
        other = GameController(clock=FakeClock())
        other.restore_state(self.game.save_state())
        self.assertFalse(other.gravity_enabled)
        self.assertFalse(other.pump())

    def test_restore_rejects_wrong_dimensions(self):
        before = self.game.save_state()
        small = GameController(rows=10, cols=10, clock=FakeClock()).save_state()
        with self.assertRaises(InvalidStateError):
            self.game.restore_state(small)
        self.assertEqual(self.game.save_state(), before)

    def test_restore_rejects_unknown_color(self):
        before = self.game.save_state()
        grid = list(before.grid)
        grid[0] = 12345
        bad = GameState(
            rows=before.rows, cols=before.cols, grid=tuple(grid), score=0, high_score=0,
            is_game_over=False, is_paused=False, current_piece=None,
            next_piece_type=PieceType.T,
        )
        with self.assertRaises(InvalidStateError):
            self.game.restore_state(bad)
        self.assertEqual(self.game.save_state(), before)
        self.assertEqual(self.game.board.cell(0, 0), EMPTY)

    def test_restore_rejects_piece_type_names(self):
        before = self.game.save_state()
        bad = GameState(
            rows=before.rows, cols=before.cols, grid=before.grid, score=0, high_score=0,
            is_game_over=False, is_paused=False,
            current_piece=CurrentPieceState("T", 0, 3, 0), next_piece_type="I",
        )
        with self.assertRaises(InvalidStateError):
            self.game.restore_state(bad)
        self.assertEqual(self.game.save_state(), before)


if __name__ == '__main__':
    unittest.main()
