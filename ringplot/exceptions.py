"""
Error taxonomy for ringplot

Every error is raised at the call that caused it, before any layout state
is committed, so a failed call leaves the session exactly as it was.
"""


class RingplotError(Exception):
    """Base class for all ringplot errors"""


class ConfigurationError(RingplotError, ValueError):
    """Invalid sector/track parameters or an over-budget angle/radius request"""


class CapacityError(ConfigurationError):
    """Radial or angular budget exhausted"""


class StateError(RingplotError, RuntimeError):
    """Operation needs an open (or closed) session and doesn't have one"""


class CellLookupError(RingplotError, LookupError):
    """Unknown sector, track or layer in a query"""


class PointsOverflowWarning(UserWarning):
    """Data coordinates fall outside the cell they are projected into"""
