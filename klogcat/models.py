"""KernelRecord dataclass — one parsed /dev/kmsg record."""

from dataclasses import dataclass

USEC_PER_SEC = 1_000_000


@dataclass(frozen=True)
class KernelRecord:
    facility_priority: int
    timestamp_us: int          # kernel clock, microseconds since boot
    message: str               # text after the subsystem delimiter, newline-stripped
    subsystem: str | None = None

    @property
    def seconds(self) -> int:
        return self.timestamp_us // USEC_PER_SEC

    @property
    def microseconds(self) -> int:
        return self.timestamp_us % USEC_PER_SEC

    @property
    def text(self) -> str:
        """Reassemble the original message text, tag included."""
        if self.subsystem is None:
            return self.message
        return f"{self.subsystem}: {self.message}"
