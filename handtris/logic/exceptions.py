# ===== logic/exceptions.py =====


class InvalidStateError(ValueError):
    """A game snapshot that cannot be applied to the controller."""
