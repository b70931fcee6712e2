"""KmsgReader: blocking, one-record-per-read access to /dev/kmsg.

The /dev/kmsg interface is described at Documentation/ABI/testing/dev-kmsg in the
kernel source tree. Each read() returns exactly one record and blocks while no
record is pending.
"""

import errno
import logging
import os

from klogcat.errors import DeviceReadError, UnsupportedDeviceError
from klogcat.models import KernelRecord
from klogcat.parser import parse_frame

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "/dev/kmsg"

# See linux/printk.h
CONSOLE_EXT_LOG_MAX = 8192


class KmsgReader:
    def __init__(self, device_path: str = DEFAULT_DEVICE, frame_size: int = CONSOLE_EXT_LOG_MAX,
                 read_func=None):
        self._device_path = device_path
        self._frame_size = frame_size
        self._read = read_func or os.read
        self._fd = None
        self.frames_read = 0
        self.frames_ignored = 0
        self.overruns = 0

    def open(self):
        """Open the device read-only in blocking mode."""
        if self._fd is not None:
            return
        try:
            self._fd = os.open(self._device_path, os.O_RDONLY)
        except OSError as e:
            logger.error("open %s failed: %s", self._device_path, e.strerror)
            raise DeviceReadError(f"cannot open {self._device_path}: {e.strerror}") from e
        logger.debug("Opened %s (fd=%d)", self._device_path, self._fd)

    def close(self):
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def read_frame(self) -> bytes:
        """Read one raw frame. Raises a KlogcatError subclass on terminal failures."""
        if self._fd is None:
            self.open()
        while True:
            try:
                frame = self._read(self._fd, self._frame_size)
            except BrokenPipeError:
                # EPIPE: the ring buffer wrapped under us. The next read returns
                # the oldest record still available.
                self.overruns += 1
                logger.debug("%s overrun, some kernel messages were missed", self._device_path)
                continue
            except OSError as e:
                if e.errno == errno.EINVAL:
                    logger.error("read %s: %s (not supported on pre-3.5 kernels)",
                                 self._device_path, e.strerror)
                    raise UnsupportedDeviceError(
                        f"{self._device_path} is not supported by this kernel"
                    ) from e
                logger.error("read %s failed: %s", self._device_path, e.strerror)
                raise DeviceReadError(f"read {self._device_path} failed: {e.strerror}", -1) from e

            if not frame:
                logger.error("read %s returned end of stream", self._device_path)
                raise DeviceReadError(f"{self._device_path} reached end of stream", 0)

            self.frames_read += 1
            return frame

    def next_record(self) -> KernelRecord:
        """Block until the next well-formed record. Malformed frames are skipped."""
        while True:
            record = parse_frame(self.read_frame())
            if record is not None:
                return record
            self.frames_ignored += 1

    def __iter__(self):
        while True:
            yield self.next_record()
