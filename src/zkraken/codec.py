"""
Frame codec for the Kraken Z interrupt and bulk channels.

Every command is a single 64-byte interrupt frame, zero padded::

    [opcode, sub-op, arg, arg, ...]  + zeros to 64 bytes

The only bulk-channel frame the protocol defines is the 512-byte info frame
announcing an upload::

    12 FA 01 E8 AB CD EF 98 76 54 32 10   # magic (offsets 0-11)
    mode                                  # offset 12
    00 00 00 00                           # offsets 13-16
    40 96                                 # offsets 17-18
    + zeros to 512 bytes

Responses are 64-byte interrupt reads decoded at fixed offsets.
"""

import logging

from .constants import (
    BRIGHTNESS_SUB_OP,
    BULK_INFO_MAGIC,
    BULK_INFO_TRAILER,
    BULK_INFO_TRAILER_OFFSET,
    BULK_WRITE_LENGTH,
    DELETE_BUCKET,
    DUTY_VALUE_END,
    DUTY_VALUE_START,
    FIRMWARE_MIN_LENGTH,
    FIRMWARE_REQUEST,
    QUERY_BUCKET,
    QUERY_BUCKET_SUB_OP,
    REQUEST_SUB_OP,
    SET_BUCKET,
    SET_DUTY,
    SET_LCD,
    SETUP_BUCKET,
    STATUS_MIN_LENGTH,
    STATUS_REQUEST,
    SWITCH_BUCKET,
    VISUAL_MODE_SUB_OP,
    WRITE_FINISH,
    WRITE_LENGTH,
    WRITE_SETUP,
    WRITE_START,
)
from .errors import ProtocolError, ValidationError
from .models import Bucket, DeviceStatus, FirmwareVersion

log = logging.getLogger(__name__)


# =========================================================================
# Encoders
# =========================================================================

def encode_command(*fields: int) -> bytes:
    """Build a 64-byte command frame from *fields*, starting at byte 0.

    A payload longer than the frame is not truncated: the frame is sent
    all-zero instead, which the device ignores.

    Raises:
        ValidationError: A field is not an integer in 0-255.
    """
    buf = bytearray(WRITE_LENGTH)
    for value in fields:
        if not isinstance(value, int) or not 0 <= value <= 0xFF:
            raise ValidationError(f"Frame field {value!r} is not a byte (0-255)")
    if len(fields) <= WRITE_LENGTH:
        buf[:len(fields)] = bytes(fields)
    else:
        log.warning("Command payload of %d bytes exceeds %d-byte frame, sending zeros",
                    len(fields), WRITE_LENGTH)
    return bytes(buf)


def encode_bulk_info(mode: int) -> bytes:
    """Build the 512-byte bulk info frame for *mode*."""
    buf = bytearray(BULK_WRITE_LENGTH)
    buf[:len(BULK_INFO_MAGIC)] = BULK_INFO_MAGIC
    buf[len(BULK_INFO_MAGIC)] = mode
    end = BULK_INFO_TRAILER_OFFSET + len(BULK_INFO_TRAILER)
    buf[BULK_INFO_TRAILER_OFFSET:end] = BULK_INFO_TRAILER
    return bytes(buf)


# -- Command builders --------------------------------------------------

def build_status_request() -> bytes:
    return encode_command(STATUS_REQUEST, REQUEST_SUB_OP)


def build_firmware_request() -> bytes:
    return encode_command(FIRMWARE_REQUEST, REQUEST_SUB_OP)


def build_duty(address: int, duty: int) -> bytes:
    """SET_DUTY frame: byte 1 = channel address, bytes 4..43 = duty."""
    fields = [0] * DUTY_VALUE_END
    fields[0] = SET_DUTY
    fields[1] = address
    for i in range(DUTY_VALUE_START, DUTY_VALUE_END):
        fields[i] = duty
    return encode_command(*fields)


def build_brightness(brightness: int) -> bytes:
    return encode_command(SET_LCD, BRIGHTNESS_SUB_OP, 0x01, brightness)


def build_visual_mode(mode: int, index: int) -> bytes:
    return encode_command(SWITCH_BUCKET, VISUAL_MODE_SUB_OP, mode, index)


def build_query_bucket(index: int) -> bytes:
    return encode_command(QUERY_BUCKET, QUERY_BUCKET_SUB_OP, 0x00, index)


def build_delete_bucket(index: int) -> bytes:
    return encode_command(SETUP_BUCKET, DELETE_BUCKET, index)


def build_setup_bucket(bucket: Bucket) -> bytes:
    """Bucket configuration frame.

    The memory slot goes high byte first, the slot count low byte first.
    The device expects exactly this mix.
    """
    return encode_command(
        SETUP_BUCKET,
        SET_BUCKET,
        bucket.index,
        bucket.id,
        (bucket.memory_slot >> 8) & 0xFF,
        bucket.memory_slot & 0xFF,
        bucket.memory_slot_count & 0xFF,
        (bucket.memory_slot_count >> 8) & 0xFF,
        1,
    )


def build_write_start(index: int) -> bytes:
    return encode_command(WRITE_SETUP, WRITE_START, index)


def build_write_finish(index: int) -> bytes:
    return encode_command(WRITE_SETUP, WRITE_FINISH, index)


# =========================================================================
# Decoders
# =========================================================================

def decode_status(response: bytes) -> DeviceStatus:
    """Decode a status response.

    Layout::

        [15]     liquid temp, whole degrees
        [16]     liquid temp, tenths (only whole degrees survive // 10)
        [17:19]  pump rpm, little-endian
        [19]     pump duty %
        [23:25]  fan rpm, little-endian
        [25]     fan duty %
    """
    if len(response) < STATUS_MIN_LENGTH:
        raise ProtocolError(
            f"Status response too short: {len(response)} bytes "
            f"(need {STATUS_MIN_LENGTH})"
        )
    return DeviceStatus(
        liquid_temp=response[15] + response[16] // 10,
        pump_rpm=response[17] | (response[18] << 8),
        pump_duty=response[19],
        fan_rpm=response[23] | (response[24] << 8),
        fan_duty=response[25],
    )


def decode_firmware_version(response: bytes) -> FirmwareVersion:
    """Decode the firmware-info response (major/minor/patch at 0x11..0x13)."""
    if len(response) < FIRMWARE_MIN_LENGTH:
        raise ProtocolError(
            f"Firmware response too short: {len(response)} bytes "
            f"(need {FIRMWARE_MIN_LENGTH})"
        )
    return FirmwareVersion(response[0x11], response[0x12], response[0x13])
