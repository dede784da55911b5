class WorkerError(Exception):
    """Base class for failures raised by the telemetry worker."""


class ConfigError(WorkerError):
    """Required credentials or settings are missing; fatal for a whole tick."""


class DeviceCloudError(WorkerError):
    pass


class NetworkError(DeviceCloudError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApiError(DeviceCloudError):
    """The vendor answered with a non-zero envelope code."""

    def __init__(self, code: str, message: str):
        super().__init__(f"{message} (code: {code})")
        self.code = code
        self.message = message


class NormalizationError(WorkerError):
    """The quota payload was empty; the device simply has no reading this tick."""


class PersistenceError(WorkerError):
    pass


class MailError(WorkerError):
    """The mail provider rejected or failed to take a message."""
