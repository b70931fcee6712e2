"""Output sinks: standard output passthrough and a size-capped rotating log file.

Rotation keeps a fixed-depth chain of numbered generations:

    kmsg.log -> kmsg.log.1 -> ... -> kmsg.log.N   (kmsg.log.N is overwritten)
"""

import logging
import os
import sys

from klogcat.config import Config
from klogcat.errors import OutputOpenError, OutputWriteError, RotationPermissionError

logger = logging.getLogger(__name__)

FILE_MODE = 0o644

# fdatasync is missing on some platforms (macOS)
_datasync = getattr(os, "fdatasync", os.fsync)


def generation_path(path: str, index: int) -> str:
    """Generation 0 is the base path itself, generation i is 'path.i'."""
    return path if index == 0 else f"{path}.{index}"


def rotate_generations(path: str, depth: int, abort_on_permission_error: bool = True) -> list[str]:
    """Shift path -> path.1 -> ... -> path.depth. Returns the generations that were moved.

    Generations are renamed highest index first so nothing is overwritten before it
    has been moved. Each rename is attempted independently; failures are logged and
    the pass continues, unless a PermissionError hits and abort_on_permission_error is set.
    """
    moved = []
    for i in range(depth - 1, -1, -1):
        src = generation_path(path, i)
        dst = generation_path(path, i + 1)
        try:
            os.replace(src, dst)
        except FileNotFoundError:
            logger.debug("rotate: %s does not exist, skipping", src)
            continue
        except PermissionError as e:
            logger.error("rename %s failed: %s", src, e.strerror)
            if abort_on_permission_error:
                raise RotationPermissionError(
                    f"no permission to rotate {src} -> {dst}: {e.strerror}"
                ) from e
            continue
        except OSError as e:
            logger.error("rename %s failed: %s", src, e.strerror)
            continue
        moved.append(src)
    return moved


def _append_opener(path, flags):
    return os.open(path, flags | os.O_CREAT | os.O_APPEND, FILE_MODE)


class StreamSink:
    """Unbounded passthrough to a binary stream (stdout by default). Never rotates."""

    def __init__(self, stream=None):
        self._stream = stream if stream is not None else sys.stdout.buffer
        self.bytes_written = 0
        self.rotation_count = 0

    def open(self):
        pass

    def _silence(self):
        """Point the stream's fd at devnull so later flushes of the dead pipe succeed."""
        try:
            fd = self._stream.fileno()
        except (AttributeError, OSError):
            return
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, fd)
        os.close(devnull)

    def write(self, line: bytes) -> int:
        try:
            self._stream.write(line)
            self._stream.flush()
        except BrokenPipeError as e:
            # Reader went away (e.g. `klogcat | head`).
            logger.info("Output pipe closed by reader, stopping")
            self._silence()
            raise OutputWriteError("output pipe closed") from e
        except OSError as e:
            logger.error("write to output failed: %s", e.strerror)
            raise OutputWriteError(f"write to output failed: {e.strerror}") from e
        self.bytes_written += len(line)
        return len(line)

    def rotate(self):
        pass

    def close(self):
        try:
            self._stream.flush()
        except OSError as e:
            logger.warning("flush of output on close failed: %s", e)


class RotatingFileSink:
    """Append-only log file with size-based rotation into numbered generations."""

    def __init__(self, path: str, max_bytes: int, max_generations: int = 10,
                 abort_on_permission_error: bool = True):
        self._path = path
        self._max_bytes = max_bytes
        self._max_generations = max_generations
        self._abort_on_permission_error = abort_on_permission_error
        self._file = None
        # Every run starts a fresh generation 0; this flips once the startup pass ran.
        self._rotated_at_startup = False
        self.bytes_written = 0
        self.rotation_count = 0

    @property
    def path(self) -> str:
        return self._path

    def _open_file(self):
        try:
            self._file = open(self._path, "ab", opener=_append_opener)
        except OSError as e:
            logger.error("open %s failed: %s", self._path, e.strerror)
            raise OutputOpenError(f"cannot open {self._path}: {e.strerror}") from e
        self.bytes_written = 0

    def _close_file(self):
        if self._file and not self._file.closed:
            self._file.close()
        self._file = None

    def _rotate_chain(self):
        rotate_generations(self._path, self._max_generations, self._abort_on_permission_error)

    def open(self):
        """Run the unconditional startup rotation once, then open the base file."""
        if not self._rotated_at_startup:
            self._rotate_chain()
            self._rotated_at_startup = True
        if self._file is None:
            self._open_file()

    def rotate(self):
        """Sync, close, shift generations, reopen a fresh base file."""
        if self._file is not None:
            try:
                self._file.flush()
                _datasync(self._file.fileno())
            except OSError as e:
                logger.error("sync %s failed: %s", self._path, e.strerror)
                raise OutputWriteError(f"sync {self._path} failed: {e.strerror}") from e
        self._close_file()
        self._rotate_chain()
        self.rotation_count += 1
        self._open_file()
        logger.info("Rotated %s (rotation #%d)", self._path, self.rotation_count)

    def write(self, line: bytes) -> int:
        """Append a formatted line; rotate afterwards once the size cap is reached."""
        if self._file is None:
            self.open()
        try:
            self._file.write(line)
            self._file.flush()
        except OSError as e:
            logger.error("write %s failed: %s", self._path, e.strerror)
            raise OutputWriteError(f"write {self._path} failed: {e.strerror}") from e
        self.bytes_written += len(line)

        if self.bytes_written >= self._max_bytes:
            self.rotate()
        return len(line)

    def close(self):
        try:
            self._close_file()
        except OSError as e:
            # Buffered bytes are lost; the write that failed was already reported.
            logger.warning("close %s failed: %s", self._path, e.strerror)
            self._file = None


def build_sink(config: Config):
    """RotatingFileSink when an output path is configured, otherwise stdout."""
    if config.output_path:
        return RotatingFileSink(
            config.output_path,
            max_bytes=config.max_file_size_bytes,
            max_generations=config.max_file_count,
            abort_on_permission_error=config.abort_on_permission_error,
        )
    return StreamSink()
