#!/usr/bin/env python3
"""klogcat — tail /dev/kmsg to stdout or to a size-capped rotating log file.

usage: klogcat [-f LOG_PATH]

Without -f, kernel messages go to stdout. With -f, they are appended to LOG_PATH;
any previous LOG_PATH is shifted to LOG_PATH.1, LOG_PATH.1 to LOG_PATH.2 and so on,
keeping at most MAX_FILE_COUNT (default 10) older generations. Reuse the same
LOG_PATH across runs and let klogcat number the older files.
"""

import argparse
import logging
import os
import signal
import sys

from klogcat.config import load_config
from klogcat.errors import KlogcatError
from klogcat.reader import KmsgReader
from klogcat.service import run
from klogcat.sink import build_sink

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [klogcat] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# Group/other may read the logs but never write them.
UMASK = 0o022


def _signal_handler(sig, _frame):
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    # Raising is the only way out of the blocking device read.
    raise KeyboardInterrupt


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="klogcat",
        description="Tail the kernel log (/dev/kmsg) to stdout or a rotating log file",
    )
    parser.add_argument(
        "-f", "--file", dest="log_file", metavar="LOG_PATH", default=None,
        help="Write to LOG_PATH with size/count-bounded rotation (default: stdout)",
    )
    parser.add_argument(
        "--device", default=None,
        help="Kernel log device to read (default: /dev/kmsg)",
    )
    return parser


def main(argv=None) -> int:
    os.umask(UMASK)

    parser = build_cli_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args)
    except ValueError as e:
        parser.error(str(e))

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    if config.output_path:
        logger.info(
            "Config: device=%s, log_path=%s, max_size=%d bytes, max_count=%d, abort_on_eacces=%s",
            config.device_path, config.output_path, config.max_file_size_bytes,
            config.max_file_count, config.abort_on_permission_error,
        )
    else:
        logger.info("Config: device=%s, output=stdout", config.device_path)

    reader = KmsgReader(config.device_path)
    sink = build_sink(config)
    status = 0

    try:
        sink.open()
        reader.open()
        status = run(reader, sink)
    except KlogcatError as e:
        logger.error("Stopping: %s (exit status %d)", e, e.exit_status)
        status = e.exit_status
    except KeyboardInterrupt:
        pass
    finally:
        reader.close()
        sink.close()

    logger.info(
        "Stats: %d frames read, %d ignored, %d overruns, %d rotations",
        reader.frames_read, reader.frames_ignored, reader.overruns, sink.rotation_count,
    )
    return status


if __name__ == "__main__":
    sys.exit(main())
