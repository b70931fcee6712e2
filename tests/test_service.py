"""End-to-end tests for the read loop: frames in, formatted lines out."""

import errno
import io

from klogcat.errors import KlogcatError
from klogcat.models import KernelRecord
from klogcat.reader import KmsgReader
from klogcat.service import run
from klogcat.sink import RotatingFileSink, StreamSink


def _scripted_read(items):
    it = iter(items)

    def read(fd, size):
        item = next(it)
        if isinstance(item, BaseException):
            raise item
        return item

    return read


def _reader(tmp_path, items):
    device = tmp_path / "kmsg"
    device.write_bytes(b"")
    return KmsgReader(str(device), read_func=_scripted_read(items))


class TestRun:
    def test_boot_scenario_to_stdout(self, tmp_path):
        reader = _reader(tmp_path, [
            b"5,1,1000000,-;kernel: boot ok",
            b"3,2,2500000,-;oops",
            OSError(errno.EIO, "Input/output error"),
        ])
        out = io.BytesIO()
        with reader:
            status = run(reader, StreamSink(out))

        assert status == -1
        assert out.getvalue() == b"<5>[    1.000000] kernel: boot ok\n<3>[    2.500000] oops\n"

    def test_unsupported_kernel_status(self, tmp_path):
        reader = _reader(tmp_path, [OSError(errno.EINVAL, "Invalid argument")])
        out = io.BytesIO()
        with reader:
            assert run(reader, StreamSink(out)) == 2
        assert out.getvalue() == b""

    def test_end_of_stream_status(self, tmp_path):
        reader = _reader(tmp_path, [b"6,1,1,-;last words", b""])
        out = io.BytesIO()
        with reader:
            assert run(reader, StreamSink(out)) == 0
        assert out.getvalue() == b"<6>[    0.000001] last words\n"

    def test_malformed_frames_do_not_touch_byte_counter(self, tmp_path):
        reader = _reader(tmp_path, [
            b"no delimiter here",
            b"6,1,5,-;kept",
            b"6;missing integers",
            BrokenPipeError(errno.EPIPE, "Broken pipe"),
            b"",
        ])
        sink = RotatingFileSink(str(tmp_path / "kmsg.log"), max_bytes=1024)
        with reader:
            run(reader, sink)
        sink.close()

        expected = b"<6>[    0.000005] kept\n"
        assert sink.bytes_written == len(expected)
        assert (tmp_path / "kmsg.log").read_bytes() == expected
        assert reader.frames_ignored == 2
        assert reader.overruns == 1

    def test_rotation_mid_stream(self, tmp_path):
        frames = [f"6,{i},{i * 1000000},-;msg {i:02d}".encode() for i in range(6)]
        reader = _reader(tmp_path, frames + [b""])
        base = tmp_path / "kmsg.log"
        # each line is 25 bytes; rotate after every second line
        sink = RotatingFileSink(str(base), max_bytes=50, max_generations=2)
        with reader:
            run(reader, sink)
        sink.close()

        assert sink.rotation_count == 3
        assert base.read_bytes() == b""
        assert (tmp_path / "kmsg.log.1").read_bytes() == (
            b"<6>[    4.000000] msg 04\n<6>[    5.000000] msg 05\n"
        )
        assert (tmp_path / "kmsg.log.2").read_bytes() == (
            b"<6>[    2.000000] msg 02\n<6>[    3.000000] msg 03\n"
        )
        assert not (tmp_path / "kmsg.log.3").exists()

    def test_accepts_any_record_iterable(self):
        out = io.BytesIO()
        records = [KernelRecord(6, 7, "a", subsystem="b"), KernelRecord(4, 8, "c")]
        assert run(records, StreamSink(out)) == 0
        assert out.getvalue() == b"<6>[    0.000007] b: a\n<4>[    0.000008] c\n"

    def test_error_from_sink_ends_loop(self, tmp_path):
        class FailingSink:
            def write(self, line):
                raise KlogcatError("disk vanished", 7)

        reader = _reader(tmp_path, [b"6,1,1,-;x"])
        with reader:
            assert run(reader, FailingSink()) == 7
