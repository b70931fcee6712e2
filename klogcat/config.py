"""Configuration module — frozen dataclass built from CLI arguments and environment variables."""

import os
from dataclasses import dataclass

from klogcat.reader import DEFAULT_DEVICE


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    device_path: str = DEFAULT_DEVICE
    output_path: str | None = None  # None → stdout, no rotation
    max_file_size_bytes: int = 80 * 1024 * 1024  # 80 MB
    max_file_count: int = 10
    abort_on_permission_error: bool = True


def load_config(cli_args=None) -> Config:
    """Build Config from CLI args (highest priority), env vars, then defaults."""
    # MAX_FILE_SIZE_BYTES takes precedence over MAX_FILE_SIZE_MB
    raw_bytes = os.environ.get("MAX_FILE_SIZE_BYTES")
    raw_mb = os.environ.get("MAX_FILE_SIZE_MB")
    if raw_bytes is not None:
        max_size = int(raw_bytes)
    elif raw_mb is not None:
        try:
            max_size = int(float(raw_mb) * 1024 * 1024)
        except OverflowError as e:
            raise ValueError(f"MAX_FILE_SIZE_MB out of range: {raw_mb!r}") from e
    else:
        max_size = Config.max_file_size_bytes

    output_path = getattr(cli_args, "log_file", None) or os.environ.get("LOG_FILE") or None
    device_path = getattr(cli_args, "device", None) or os.environ.get("KMSG_DEVICE", Config.device_path)

    config = Config(
        device_path=device_path,
        output_path=output_path,
        max_file_size_bytes=max_size,
        max_file_count=int(os.environ.get("MAX_FILE_COUNT", Config.max_file_count)),
        abort_on_permission_error=_parse_bool(
            os.environ.get("ABORT_ON_PERMISSION_ERROR", "true")
        ),
    )
    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    if config.max_file_size_bytes <= 0:
        raise ValueError("max file size must be > 0 bytes")
    if config.max_file_count < 1:
        raise ValueError("max file count must be >= 1")
