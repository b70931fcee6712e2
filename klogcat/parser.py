"""Parser for raw /dev/kmsg frames.

A frame looks like:

    6,339,5140900,-;NET: Registered protocol family 10
    7,492,1207557,-;ahci 0000:00:0d.0: version 3.0\n SUBSYSTEM=pci\n DEVICE=+pci:0000:00:0d.0

i.e. ``<facility/priority>,<sequence>,<timestamp>,<flags>;<text>`` followed by
optional continuation lines. Only facility/priority and timestamp are kept;
the sequence number and flags are ignored.
"""

import logging
import re

from klogcat.models import KernelRecord

logger = logging.getLogger(__name__)

# Kernel frames are mostly ASCII, but printk may pass raw bytes through.
# surrogateescape lets the formatter reproduce them byte-for-byte.
FRAME_ENCODING = "utf-8"
FRAME_ERRORS = "surrogateescape"

# ASCII digits only, as sscanf("%u") would accept.
_PREFIX_RE = re.compile(r"(?P<facpri>\d+),\d+,(?P<timestamp>\d+),[^;]+;", re.ASCII)

SUBSYSTEM_DELIMITER = ": "


def split_subsystem(text: str) -> tuple[str | None, str]:
    """Split 'foo: bar baz' → ('foo', 'bar baz'). No tag when ': ' is absent or leads."""
    idx = text.find(SUBSYSTEM_DELIMITER)
    if idx <= 0:
        return None, text
    return text[:idx], text[idx + len(SUBSYSTEM_DELIMITER):]


def parse_frame(frame: bytes) -> KernelRecord | None:
    """Parse one raw frame into a KernelRecord. Returns None when the frame does not match."""
    raw = frame.decode(FRAME_ENCODING, FRAME_ERRORS)
    match = _PREFIX_RE.match(raw)
    if match is None:
        logger.debug("Ignoring malformed kmsg frame: %r", raw[:80])
        return None

    # Drop continuation lines (SUBSYSTEM=, DEVICE=, ...) after the message text.
    text = raw[match.end():].split("\n", 1)[0]
    subsystem, message = split_subsystem(text)

    return KernelRecord(
        facility_priority=int(match.group("facpri")),
        timestamp_us=int(match.group("timestamp")),
        message=message,
        subsystem=subsystem,
    )
