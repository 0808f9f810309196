# globe_flight/exceptions.py

class GlobeFlightError(Exception):
    """Base exception for globe flight errors."""
    pass

class InvalidCoordinateError(GlobeFlightError, ValueError):
    """Raised when geographic or Cartesian input is out of range."""
    pass

class DegenerateCoordinateError(InvalidCoordinateError):
    """Raised when a conversion has no defined result, e.g. a zero-length vector."""
    pass

class InvalidSpeedError(GlobeFlightError, ValueError):
    """Raised when the per-tick speed is not a positive number."""
    pass

class InvalidConfigError(GlobeFlightError, ValueError):
    """Raised when flight configuration values are unusable."""
    pass
