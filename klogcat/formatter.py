"""Render KernelRecords as dmesg-style lines.

    <5>[    1.000000] kernel: boot ok
"""

from klogcat.models import KernelRecord
from klogcat.parser import FRAME_ENCODING, FRAME_ERRORS


def format_prefix(record: KernelRecord) -> str:
    """'<facpri>[sssss.uuuuuu] ' with seconds right-aligned to keep columns lined up."""
    return f"<{record.facility_priority}>[{record.seconds:5d}.{record.microseconds:06d}] "


def format_record(record: KernelRecord) -> bytes:
    """Return the full output line, newline-terminated, as bytes.

    The length of the returned value is what a sink adds to its byte counter.
    """
    line = format_prefix(record) + record.text + "\n"
    return line.encode(FRAME_ENCODING, FRAME_ERRORS)
