from __future__ import annotations
import logging

from ..logic.game import GameController
from .gestures import FistGesture, GestureEvent, PointerMoved, TwoFingerGesture

log = logging.getLogger("handtris.input")


class GestureAdapter:
    """
    Routes hand-tracker events to the controller.

    Fixed mapping: fist rotates the piece, two extended fingers hard-drop it.
    Pointer events drive the zone-based lateral movement.
    """

    def __init__(self, game: GameController):
        self.game = game

    def pointer_moved(self, x: float, is_pointing: bool) -> bool:
        return self.game.handle_pointer(x, is_pointing)

    def fist_gesture(self) -> bool:
        log.debug("fist -> rotate")
        return self.game.rotate()

    def two_finger_gesture(self) -> bool:
        log.debug("two fingers -> hard drop")
        return self.game.hard_drop()

    def dispatch(self, event: GestureEvent) -> bool:
        if isinstance(event, PointerMoved):
            return self.pointer_moved(event.x, event.is_pointing)
        if isinstance(event, FistGesture):
            return self.fist_gesture()
        if isinstance(event, TwoFingerGesture):
            return self.two_finger_gesture()
        raise TypeError(f"unknown gesture event: {event!r}")
