"""Tests for codec: exact frame layouts and response decoding."""

import pytest

from conftest import FIRMWARE_RESPONSE, STATUS_RESPONSE
from zkraken.codec import (
    build_brightness,
    build_delete_bucket,
    build_duty,
    build_firmware_request,
    build_query_bucket,
    build_setup_bucket,
    build_status_request,
    build_visual_mode,
    build_write_finish,
    build_write_start,
    decode_firmware_version,
    decode_status,
    encode_bulk_info,
    encode_command,
)
from zkraken.constants import BULK_WRITE_LENGTH, WRITE_LENGTH
from zkraken.errors import KrakenError, ProtocolError, ValidationError
from zkraken.models import Bucket, DeviceStatus, FirmwareVersion


# =========================================================================
# encode_command
# =========================================================================

class TestEncodeCommand:

    def test_length_is_64(self):
        assert len(encode_command(0x74, 0x01)) == WRITE_LENGTH

    def test_fields_then_zeros(self):
        frame = encode_command(0x32, 0x02, 7)
        assert frame[:3] == bytes([0x32, 0x02, 7])
        assert frame[3:] == b'\x00' * 61

    def test_no_fields(self):
        assert encode_command() == bytes(WRITE_LENGTH)

    def test_exactly_64_fields(self):
        frame = encode_command(*range(64))
        assert frame == bytes(range(64))

    def test_oversized_payload_is_all_zero(self):
        frame = encode_command(*([0xFF] * 65))
        assert frame == bytes(WRITE_LENGTH)

    @pytest.mark.parametrize("count", [0, 1, 2, 9, 44, 63, 64])
    def test_always_64_and_zero_padded(self, count):
        frame = encode_command(*([0xAA] * count))
        assert len(frame) == WRITE_LENGTH
        assert frame[count:] == b'\x00' * (WRITE_LENGTH - count)

    @pytest.mark.parametrize("value", [-1, 256, 50.0, "7", None])
    def test_non_byte_field_rejected(self, value):
        with pytest.raises(ValidationError, match="not a byte"):
            encode_command(0x72, value)

    def test_non_byte_field_is_kraken_error(self):
        with pytest.raises(KrakenError):
            encode_command(0x30, 0x01, 256)


# =========================================================================
# encode_bulk_info
# =========================================================================

class TestEncodeBulkInfo:

    def test_length_is_512(self):
        assert len(encode_bulk_info(2)) == BULK_WRITE_LENGTH

    def test_byte_by_byte_header(self):
        expected = bytes([
            0x12, 0xFA, 0x01, 0xE8, 0xAB, 0xCD, 0xEF, 0x98,
            0x76, 0x54, 0x32, 0x10,        # magic
            0x02,                          # mode
            0x00, 0x00, 0x00, 0x00,        # zeros
            0x40, 0x96,                    # trailer
        ])
        assert encode_bulk_info(2)[:19] == expected

    def test_remainder_zero(self):
        assert encode_bulk_info(2)[19:] == b'\x00' * (BULK_WRITE_LENGTH - 19)

    def test_mode_byte(self):
        assert encode_bulk_info(7)[12] == 7


# =========================================================================
# Command builders
# =========================================================================

class TestCommandBuilders:

    def test_status_request(self):
        assert build_status_request()[:2] == bytes([0x74, 0x01])

    def test_firmware_request(self):
        assert build_firmware_request()[:2] == bytes([0x10, 0x01])

    def test_duty_pump(self):
        frame = build_duty(0x01, 80)
        assert frame[0] == 0x72
        assert frame[1] == 0x01
        assert frame[2:4] == b'\x00\x00'
        assert frame[4:44] == bytes([80]) * 40
        assert frame[44:] == b'\x00' * 20

    def test_duty_fan_address(self):
        assert build_duty(0x02, 50)[1] == 0x02

    def test_brightness(self):
        assert build_brightness(55)[:4] == bytes([0x30, 0x02, 0x01, 55])

    def test_visual_mode(self):
        assert build_visual_mode(4, 3)[:4] == bytes([0x38, 0x01, 4, 3])

    def test_query_bucket(self):
        assert build_query_bucket(9)[:4] == bytes([0x30, 0x04, 0x00, 9])

    def test_delete_bucket(self):
        frame = build_delete_bucket(5)
        assert frame[:3] == bytes([0x32, 0x02, 5])
        assert frame[3:] == b'\x00' * 61

    def test_write_start_finish(self):
        assert build_write_start(2)[:3] == bytes([0x36, 0x01, 2])
        assert build_write_finish(2)[:3] == bytes([0x36, 0x02, 2])

    def test_setup_bucket_layout(self):
        # index 3 -> slot 2400 (0x0960); 409600-byte frame -> 400 slots (0x0190)
        bucket = Bucket.for_payload(3, 320 * 320 * 4)
        frame = build_setup_bucket(bucket)
        assert frame[:9] == bytes([
            0x32, 0x01,     # SETUP_BUCKET, SET
            3, 4,           # index, id
            0x09, 0x60,     # memory slot, high byte first
            0x90, 0x01,     # slot count, low byte first
            1,
        ])
        assert frame[9:] == b'\x00' * 55


# =========================================================================
# decode_status
# =========================================================================

class TestDecodeStatus:

    def test_real_device_response(self):
        status = decode_status(STATUS_RESPONSE)
        assert status == DeviceStatus(
            liquid_temp=30, pump_rpm=2362, pump_duty=80, fan_rpm=1729, fan_duty=80,
        )

    def test_fraction_contributes_whole_degrees_only(self):
        resp = bytearray(64)
        resp[15] = 30
        resp[16] = 9
        assert decode_status(bytes(resp)).liquid_temp == 30
        resp[16] = 15
        assert decode_status(bytes(resp)).liquid_temp == 31

    def test_minimum_length(self):
        status = decode_status(STATUS_RESPONSE[:26])
        assert status.fan_duty == 80

    def test_short_response(self):
        with pytest.raises(ProtocolError):
            decode_status(STATUS_RESPONSE[:25])

    def test_empty_response(self):
        with pytest.raises(ProtocolError):
            decode_status(b'')

    def test_pure(self):
        assert decode_status(STATUS_RESPONSE) == decode_status(STATUS_RESPONSE)


# =========================================================================
# decode_firmware_version
# =========================================================================

class TestDecodeFirmwareVersion:

    def test_real_device_response(self):
        version = decode_firmware_version(FIRMWARE_RESPONSE)
        assert version == FirmwareVersion(5, 7, 0)
        assert str(version) == "5.7.0"

    def test_minimum_length(self):
        assert decode_firmware_version(FIRMWARE_RESPONSE[:0x14]) == (5, 7, 0)

    def test_short_response(self):
        with pytest.raises(ProtocolError):
            decode_firmware_version(FIRMWARE_RESPONSE[:0x13])
