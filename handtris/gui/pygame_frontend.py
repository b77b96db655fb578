import argparse
import logging
from typing import Optional, Tuple

import cv2
import pygame

from ..config import BOARD_COLS, BOARD_ROWS, CELL_SIZE, MARGIN, FPS, COLORS
from ..input.gesture_adapter import GestureAdapter
from ..logic.exceptions import InvalidStateError
from ..logic.game import Action, GameController
from ..logic.piece import Shape, color_to_rgb
from ..storage import HighScoreStore, SessionStore

try:
    from ..input.hand_tracker import HandTracker
    HAND_AVAILABLE = True
except (ImportError, AttributeError) as e:  # mediapipe builds without mp.solutions
    HandTracker = None
    HAND_AVAILABLE = False
    _HAND_IMPORT_ERROR = e

FONT_NAME = "arial"

log = logging.getLogger("handtris.gui")

KEY_ACTIONS = {
    pygame.K_LEFT: Action.MOVE_LEFT,
    pygame.K_RIGHT: Action.MOVE_RIGHT,
    pygame.K_UP: Action.ROTATE,
    pygame.K_SPACE: Action.HARD_DROP,
}


def run(use_hand: bool = True, hand_draw_preview: bool = False, camera: int = 0, fresh: bool = False):
    pygame.init()
    pygame.display.set_caption("Hand-Tetris")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont(FONT_NAME, 20)
    big = pygame.font.SysFont(FONT_NAME, 24, bold=True)

    # Layout: playfield + right panel (NEXT + score) + camera below
    play_w = BOARD_COLS * CELL_SIZE
    play_h = BOARD_ROWS * CELL_SIZE
    side_w = 9 * CELL_SIZE

    screen = pygame.display.set_mode((play_w + side_w + 3*MARGIN, play_h + 2*MARGIN))

    high_scores = HighScoreStore()
    sessions = SessionStore()

    game = GameController(rows=BOARD_ROWS, cols=BOARD_COLS, on_high_score=high_scores.save)
    adapter = GestureAdapter(game)
    _load_session(game, sessions, fresh)
    game.set_high_score(high_scores.load())

    hand = None
    if use_hand and HAND_AVAILABLE:
        try:
            hand = HandTracker(camera=camera, draw=hand_draw_preview)
        except RuntimeError as e:
            log.error("hand tracking disabled: %s", e)
    elif use_hand:
        log.error("hand tracking unavailable: %s", _HAND_IMPORT_ERROR)

    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in KEY_ACTIONS:
                        game.step(KEY_ACTIONS[event.key])
                    elif event.key == pygame.K_RETURN:
                        if game.is_game_over:
                            game.reset()
                        game.start()
                    elif event.key == pygame.K_p:
                        if game.is_paused:
                            game.start()
                        else:
                            game.pause()
                    elif event.key == pygame.K_r:
                        game.reset()

            if hand is not None:
                for gesture in hand.poll():
                    adapter.dispatch(gesture)

            game.pump()

            # --- Render ---
            screen.fill(COLORS["bg"])

            field_rect = pygame.Rect(MARGIN, MARGIN, play_w, play_h)
            pygame.draw.rect(screen, COLORS["frame"], field_rect, width=2)

            for r in range(BOARD_ROWS):
                y = MARGIN + r*CELL_SIZE
                pygame.draw.line(screen, COLORS["grid"], (MARGIN, y), (MARGIN+play_w, y))
            for c in range(BOARD_COLS):
                x = MARGIN + c*CELL_SIZE
                pygame.draw.line(screen, COLORS["grid"], (x, MARGIN), (x, MARGIN+play_h))

            if game.current_piece is not None:
                ghost_color = color_to_rgb(game.current_piece.color)
                for r, c in game.get_ghost_cells():
                    draw_cell(screen, r, c, ghost_color, alpha=80)

            for r, c, color in game.get_cells():
                draw_cell(screen, r, c, color_to_rgb(color))

            panel_x = MARGIN*2 + play_w
            panel_y = MARGIN

            # NEXT panel
            title = big.render("NEXT", True, COLORS["text"])
            screen.blit(title, (panel_x, panel_y))
            panel_y += 28
            draw_mini_piece(screen, game.next_shape(), color_to_rgb(game.next_piece.color), panel_x, panel_y)

            info_y = panel_y + CELL_SIZE*3 + 10
            lines = (
                f"Score: {game.score}",
                f"High: {game.high_score}",
                f"Lines: {game.lines_cleared}",
            )
            for i, text in enumerate(lines):
                screen.blit(font.render(text, True, COLORS["text"]), (panel_x, info_y + i*22))

            # Camera preview (below the info)
            cam_frame = hand.get_last_frame() if hand is not None else None
            if cam_frame is not None:
                cam_h = int(CELL_SIZE * 6)
                cam_w = CELL_SIZE * 8
                preview = cv2.cvtColor(cam_frame, cv2.COLOR_BGR2RGB)
                preview = cv2.resize(preview, (cam_w, cam_h))
                surf = pygame.image.frombuffer(preview.tobytes(), (cam_w, cam_h), 'RGB')
                screen.blit(surf, (panel_x, info_y + len(lines)*22 + 10))

            if game.is_game_over:
                draw_banner(screen, big, "GAME OVER — Enter to restart", play_w)
            elif game.is_paused or not game.gravity_enabled:
                draw_banner(screen, big, "PAUSED — Enter to start", play_w)

            pygame.display.flip()
            clock.tick(FPS)
    finally:
        _save_session(game, sessions)
        high_scores.save(game.high_score)
        if hand is not None:
            hand.release()
        pygame.quit()


def _load_session(game: GameController, sessions: SessionStore, fresh: bool):
    state = None if fresh else sessions.load()
    sessions.clear()
    if state is not None:
        try:
            game.restore_state(state)
            log.info("resumed saved game (score %d)", game.score)
            return
        except InvalidStateError as e:
            log.warning("discarding saved game: %s", e)
    game.reset()


def _save_session(game: GameController, sessions: SessionStore):
    if game.is_game_over or game.current_piece is None:
        return
    game.pause()
    sessions.save(game.save_state())


def draw_cell(screen, r: int, c: int, color: Tuple[int,int,int], alpha: int = 255):
    x = MARGIN + c*CELL_SIZE
    y = MARGIN + r*CELL_SIZE
    rect = pygame.Rect(x+1, y+1, CELL_SIZE-2, CELL_SIZE-2)
    if alpha >= 255:
        pygame.draw.rect(screen, color, rect, border_radius=6)
    else:
        surface = pygame.Surface(rect.size, pygame.SRCALPHA)
        surface.fill((*color, alpha))
        screen.blit(surface, rect)


def draw_mini_piece(screen, shape: Shape, color: Tuple[int,int,int], x: int, y: int):
    for rr, row in enumerate(shape):
        for cc, filled in enumerate(row):
            if filled:
                cx = x + cc* (CELL_SIZE//2) + CELL_SIZE
                cy = y + rr* (CELL_SIZE//2) + CELL_SIZE//2
                rect = pygame.Rect(cx, cy, CELL_SIZE//2 - 2, CELL_SIZE//2 - 2)
                pygame.draw.rect(screen, color, rect, border_radius=4)


def draw_banner(screen, font, text: str, width: int):
    shade = pygame.Surface((width, 40), pygame.SRCALPHA)
    shade.fill((*COLORS["overlay"], 160))
    screen.blit(shade, (MARGIN, MARGIN + 12))
    screen.blit(font.render(text, True, COLORS["text"]), (MARGIN + 12, MARGIN + 20))


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(prog="handtris", description="Tetris played with hand gestures")
    parser.add_argument("--no-hand", action="store_true", help="keyboard only, no camera")
    parser.add_argument("--camera", type=int, default=0, help="camera index")
    parser.add_argument("--draw", action="store_true", help="show the landmark debug window")
    parser.add_argument("--fresh", action="store_true", help="ignore a suspended game")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    run(use_hand=not args.no_hand, hand_draw_preview=args.draw, camera=args.camera, fresh=args.fresh)


if __name__ == "__main__":
    main()
