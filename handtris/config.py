# Global configuration for Hand-Tetris

import os

BOARD_COLS = 10
BOARD_ROWS = 20
CELL_SIZE = 32  # px
MARGIN = 4      # px between playfield and panels
FPS = 60

# Gravity and cooldowns (milliseconds)
GRAVITY_INTERVAL_MS = 500      # gravity tick period
PIECE_DROP_COOLDOWN_MS = 5000  # pause after a lock before gravity acts again
HARD_DROP_COOLDOWN_MS = 1500
ROTATION_COOLDOWN_MS = 800
MOVE_DELAY_MS = 150            # between two lateral moves

# Pointer zones (normalized 0..1 horizontal position)
LEFT_ZONE = 0.4   # x < LEFT_ZONE  -> move left
RIGHT_ZONE = 0.6  # x > RIGHT_ZONE -> move right

# Gesture recognition
GESTURE_COOLDOWN_MS = 1000     # per-trigger debounce (fist / two fingers)
CAMERA_INDEX = 0
CAMERA_WIDTH = 1280
CAMERA_HEIGHT = 720

# Persistence
HOME_DIR = os.environ.get("HANDTRIS_HOME", os.path.join(os.path.expanduser("~"), ".handtris"))
HIGH_SCORE_FILE = os.path.join(HOME_DIR, "high_score.json")
SESSION_FILE = os.path.join(HOME_DIR, "session.json")

# Colors (R, G, B)
COLORS = {
    "bg": (18, 18, 22),
    "grid": (40, 40, 48),
    "frame": (80, 80, 95),
    "text": (230, 230, 240),
    "zone": (255, 255, 255),
    "overlay": (0, 0, 0),
}
