from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Union

# MediaPipe hand landmark indices
WRIST = 0
THUMB_IP = 3
THUMB_TIP = 4
INDEX_PIP = 6
INDEX_TIP = 8
MIDDLE_PIP = 10
MIDDLE_TIP = 12
RING_PIP = 14
RING_TIP = 16
PINKY_PIP = 18
PINKY_TIP = 20


# ===== Events handed to the game =====
@dataclass(frozen=True)
class PointerMoved:
    x: float
    is_pointing: bool


@dataclass(frozen=True)
class FistGesture:
    pass


@dataclass(frozen=True)
class TwoFingerGesture:
    pass


GestureEvent = Union[PointerMoved, FistGesture, TwoFingerGesture]


@dataclass(frozen=True)
class HandReading:
    pointer_x: float
    is_pointing: bool
    is_fist: bool
    is_two_finger: bool
    finger_count: int


def is_finger_extended(tip, pip) -> bool:
    # image y grows downward: an upright extended finger has its tip above the pip joint
    return tip.y < pip.y


def read_hand(landmarks: Sequence) -> HandReading:
    """Classify one hand from its 21 normalized landmarks (mirrored frame)."""
    index = is_finger_extended(landmarks[INDEX_TIP], landmarks[INDEX_PIP])
    middle = is_finger_extended(landmarks[MIDDLE_TIP], landmarks[MIDDLE_PIP])
    ring = is_finger_extended(landmarks[RING_TIP], landmarks[RING_PIP])
    pinky = is_finger_extended(landmarks[PINKY_TIP], landmarks[PINKY_PIP])
    thumb = is_finger_extended(landmarks[THUMB_TIP], landmarks[THUMB_IP])

    pointer_x = min(1.0, max(0.0, float(landmarks[INDEX_TIP].x)))
    return HandReading(
        pointer_x=pointer_x if index else 0.0,
        is_pointing=index,
        # thumb is ignored for both triggers
        is_fist=not (index or middle or ring or pinky),
        is_two_finger=index and middle and not ring and not pinky,
        finger_count=sum((thumb, index, middle, ring, pinky)),
    )


class TriggerDebouncer:
    """Lets a trigger through at most once per cooldown window."""

    def __init__(self, cooldown_ms: int):
        self.cooldown_ms = cooldown_ms
        self.last_fired: Optional[int] = None

    def fire(self, now: int) -> bool:
        if self.last_fired is not None and now - self.last_fired <= self.cooldown_ms:
            return False
        self.last_fired = now
        return True
