class DartsSyncError(Exception):
    pass


class InvalidActionError(DartsSyncError, ValueError):
    """Action violates its contract (negative amount, bad player index, ...)."""


class StateFormatError(DartsSyncError, ValueError):
    """Serialized match state cannot be decoded."""
