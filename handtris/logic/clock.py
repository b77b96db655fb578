# ===== logic/clock.py =====
import time


def now_ms() -> int:
    """Monotonic milliseconds; only differences between readings are meaningful."""
    return time.monotonic_ns() // 1_000_000
