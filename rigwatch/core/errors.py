"""Domain-specific errors for rigwatch."""


class RigwatchError(Exception):
    """Base error for rigwatch."""


class ValidationError(RigwatchError):
    """Raised when a report field descriptor violates its layout constraints."""


class ConfigLoadError(RigwatchError):
    """Raised when reading a rig configuration file fails."""


class ConfigValidationError(RigwatchError):
    """Raised when a rig configuration does not conform to schema or semantics."""


class DeviceNotFoundError(RigwatchError):
    """Raised when no binary-report device matches the configured identifiers."""


class DeviceIOError(RigwatchError):
    """Raised when a matched binary-report device cannot be opened or read."""


class TransportError(RigwatchError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when the serial transport cannot be opened."""


class SensorInitError(RigwatchError):
    """Raised when a serial sensor does not acknowledge initialization."""
