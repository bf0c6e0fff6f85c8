"""Error kinds surfaced at the request boundary as ``{success: false, message}``."""


class ServiceError(Exception):
    """Base class for failures reported back to the caller."""


class MissingFieldError(ServiceError):
    """A required request field is absent or empty."""


class DeviceNotFoundError(ServiceError):
    """No source file matches the requested device identifier."""


class FolderNotFoundError(ServiceError):
    """The configured sensor data folder does not exist in the store."""


class EmptySourceError(ServiceError):
    """The source file holds a header only, or nothing at all."""


class UnresolvedTimestampError(ServiceError):
    """A time-windowed query was asked of a file with no timestamp column."""


class UnexpectedError(ServiceError):
    """Malformed input or a failure reported by the file store."""
