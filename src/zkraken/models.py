"""
zkraken models - plain data classes decoded from or sent to the device.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple

from .constants import BUCKET_MEMORY_STRIDE, MEMORY_SLOT_SIZE


class VisualMode(IntEnum):
    """LCD display state (byte 2 of the visual mode command)."""
    BLANK = 0
    LIQUID_TEMP = 2
    DUAL_INFOGRAPHIC = 4
    BUCKET = 4  # same value, byte 3 selects the bucket


@dataclass(frozen=True)
class DeviceStatus:
    """Telemetry from one status response."""
    liquid_temp: int     # °C, whole degrees
    pump_rpm: int
    pump_duty: int       # percent
    fan_rpm: int
    fan_duty: int        # percent


class FirmwareVersion(NamedTuple):
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class Bucket:
    """One of the 15 on-device image buckets and its memory window.

    ``memory_slot_count`` truncates: a payload that is not a multiple of
    1 KiB under-provisions by one slot, and anything under 1 KiB gets zero.
    That is what the device has always been sent, so it is kept as is.
    """
    index: int
    memory_slot: int
    memory_slot_count: int

    @property
    def id(self) -> int:
        return self.index + 1

    @classmethod
    def for_payload(cls, index: int, payload_size: int) -> 'Bucket':
        return cls(
            index=index,
            memory_slot=BUCKET_MEMORY_STRIDE * index,
            memory_slot_count=payload_size // MEMORY_SLOT_SIZE,
        )
