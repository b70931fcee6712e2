"""Fatal error hierarchy. Each error carries the process exit status it maps to."""


class KlogcatError(Exception):
    """Base class for conditions that stop the read loop."""

    exit_status = 1

    def __init__(self, message: str, exit_status: int | None = None):
        super().__init__(message)
        if exit_status is not None:
            self.exit_status = exit_status


class UnsupportedDeviceError(KlogcatError):
    """Raised when the kernel rejects reads from /dev/kmsg (pre-3.5 kernels)."""

    exit_status = 2


class DeviceReadError(KlogcatError):
    """Raised on any other terminal read failure; exit status is the raw read result."""

    exit_status = -1


class RotationPermissionError(KlogcatError):
    """Raised when a rotation rename is denied and the strict policy is enabled."""

    exit_status = 4


class OutputOpenError(KlogcatError):
    """Raised when the output log file cannot be opened for append."""

    exit_status = 1


class OutputWriteError(KlogcatError):
    """Raised when a formatted line cannot be written (closed pipe, full disk, ...)."""

    exit_status = 5
