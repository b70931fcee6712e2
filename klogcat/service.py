"""Read loop: kmsg records in, formatted lines out."""

import logging

from klogcat.errors import KlogcatError
from klogcat.formatter import format_record

logger = logging.getLogger(__name__)


def run(reader, sink) -> int:
    """Pump records from reader to sink until a fatal condition. Returns the exit status.

    Never returns in normal operation: the device read blocks until the kernel
    logs something, and only a fatal read, open or rotation error ends the loop.
    """
    try:
        for record in reader:
            sink.write(format_record(record))
    except KlogcatError as e:
        logger.error("Stopping: %s (exit status %d)", e, e.exit_status)
        return e.exit_status
    return 0
