from __future__ import annotations
import logging
from typing import List, Optional

import cv2
import numpy as np
try:
    import mediapipe as mp
except ImportError as e:
    raise ImportError("`pip install handtris[hand]` 후 다시 시도하세요.") from e

from .. import config
from ..logic.clock import now_ms
from .gestures import (
    FistGesture, GestureEvent, PointerMoved, TwoFingerGesture, TriggerDebouncer,
    INDEX_PIP, INDEX_TIP, read_hand,
)

log = logging.getLogger("handtris.input")

mp_hands = mp.solutions.hands
mp_draw = mp.solutions.drawing_utils
mp_styles = mp.solutions.drawing_styles


class HandTracker:
    """Webcam + MediaPipe Hands; turns each frame into gesture events."""

    def __init__(self, camera: int = config.CAMERA_INDEX, width: int = config.CAMERA_WIDTH,
                 height: int = config.CAMERA_HEIGHT, draw: bool = False):
        self.cap = cv2.VideoCapture(camera)
        if not self.cap.isOpened():
            self.cap.release()
            raise RuntimeError(f"cannot open camera {camera}")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self.draw = draw

        self.fist = TriggerDebouncer(config.GESTURE_COOLDOWN_MS)
        self.two_finger = TriggerDebouncer(config.GESTURE_COOLDOWN_MS)

        self.hands = mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            model_complexity=1,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )

        # 카메라 프리뷰용 마지막 프레임 (BGR)
        self.last_frame: Optional[np.ndarray] = None
        self.finger_count = 0

    def poll(self) -> List[GestureEvent]:
        events: List[GestureEvent] = []

        ok, frame = self.cap.read()
        if not ok:
            return events

        frame = cv2.flip(frame, 1)
        h, w = frame.shape[:2]
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        result = self.hands.process(rgb)

        if not result.multi_hand_landmarks:
            self.finger_count = 0
            events.append(PointerMoved(0.0, False))
        else:
            lm = result.multi_hand_landmarks[0]
            reading = read_hand(lm.landmark)
            self.finger_count = reading.finger_count
            events.append(PointerMoved(reading.pointer_x, reading.is_pointing))

            now = now_ms()
            if reading.is_fist and self.fist.fire(now):
                log.debug("fist detected")
                events.append(FistGesture())
            if reading.is_two_finger and self.two_finger.fire(now):
                log.debug("two-finger gesture detected")
                events.append(TwoFingerGesture())

            if self.draw:
                mp_draw.draw_landmarks(
                    frame, lm, mp_hands.HAND_CONNECTIONS,
                    mp_styles.get_default_hand_landmarks_style(),
                    mp_styles.get_default_hand_connections_style(),
                )
                tip = lm.landmark[INDEX_TIP]
                pip = lm.landmark[INDEX_PIP]
                cv2.line(frame, (int(pip.x * w), int(pip.y * h)), (int(tip.x * w), int(tip.y * h)),
                         (60, 200, 255), 2)

        draw_zones(frame)
        self.last_frame = frame

        if self.draw:
            cv2.putText(frame, f"fingers {self.finger_count}", (10, 30),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1, cv2.LINE_AA)
            cv2.imshow("Hand Input", frame)
            cv2.waitKey(1)

        return events

    def get_last_frame(self) -> Optional[np.ndarray]:
        return self.last_frame

    def release(self):
        self.hands.close()
        self.cap.release()
        cv2.destroyAllWindows()


def draw_zones(frame: np.ndarray):
    """Mark the left / right movement zone boundaries on a BGR frame."""
    h, w = frame.shape[:2]
    for frac in (config.LEFT_ZONE, config.RIGHT_ZONE):
        x = int(frac * w)
        cv2.line(frame, (x, 0), (x, h), (255, 255, 255), 1)
