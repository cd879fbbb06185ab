"""
Kraken Z device session.

A ``KrakenDevice`` owns one ``UsbTransport`` for its whole lifetime::

    with KrakenDevice.open(transport, rotation_degrees=270) as dev:
        print(dev.get_firmware_version())
        dev.set_pump_duty(80)
        dev.set_image(rgba_bytes, index=3, activate_after_upload=True)

Opening claims interface 0 (auxiliary control) and interface 1 (commands),
then discards one pending response.  Closing releases the interfaces and
resets the device.  Every teardown step is attempted even when an earlier
one fails; failures are logged and passed to ``on_error`` but never raised.
"""

import logging
from typing import Callable, List, Optional

from . import codec
from .constants import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    BUCKET_COUNT,
    BULK_WRITE_ENDPOINT,
    COMMAND_INTERFACE,
    CONTROL_INTERFACE,
    DUTY_MAX,
    DUTY_MIN,
    FAN_ADDRESS,
    INTERRUPT_READ_ENDPOINT,
    INTERRUPT_WRITE_ENDPOINT,
    PUMP_ADDRESS,
    READ_LENGTH,
    READ_TIMEOUT_MS,
    WRITE_TIMEOUT_MS,
)
from .errors import KrakenError, LifecycleError, ValidationError
from .models import Bucket, DeviceStatus, FirmwareVersion, VisualMode
from .transport import UsbTransport
from .upload import UploadSequencer

log = logging.getLogger(__name__)


def _check_bucket_index(index: int) -> None:
    if not 0 <= index < BUCKET_COUNT:
        raise ValidationError(
            f"Bucket index {index} out of range (0-{BUCKET_COUNT - 1})"
        )


class KrakenDevice:
    """Session over a claimed Kraken Z.  Use ``KrakenDevice.open()``.

    A session built directly by the constructor has no interfaces claimed
    and reports ``is_open`` as False until ``open()`` has claimed them.
    """

    def __init__(self, transport: UsbTransport, rotation_degrees: int = 0,
                 on_error: Optional[Callable[[str], None]] = None):
        self.transport = transport
        # Consumed by the image codec; uploads expect pre-rotated pixels.
        self.rotation_degrees = rotation_degrees
        self.on_error = on_error
        self._claimed: List[int] = []
        self._closed = True
        self._uploader = UploadSequencer(transport)

    @classmethod
    def open(cls, transport: UsbTransport, rotation_degrees: int = 0,
             claim_control_interface: bool = True,
             on_error: Optional[Callable[[str], None]] = None) -> 'KrakenDevice':
        """Claim the interfaces and flush any stale response.

        Raises:
            LifecycleError: An interface could not be claimed.
            TransportError: The flush read failed (the session is torn
                down before the error propagates).
        """
        device = cls(transport, rotation_degrees, on_error)

        interfaces = [COMMAND_INTERFACE]
        if claim_control_interface:
            interfaces.insert(0, CONTROL_INTERFACE)

        for interface in interfaces:
            try:
                transport.claim_interface(interface)
            except KrakenError as e:
                device._release_claimed()
                raise LifecycleError(f"Could not claim interface {interface}: {e}") from e
            device._claimed.append(interface)
        device._closed = False

        try:
            # Throw away whatever response is still queued
            device._read()
        except Exception:
            device.close()
            raise

        log.info("Kraken session opened (interfaces %s)", device._claimed)
        return device

    # -- Lifecycle --------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return not self._closed

    def _report(self, message: str) -> None:
        log.error(message)
        if self.on_error:
            try:
                self.on_error(message)
            except Exception:
                log.exception("on_error callback failed")

    def _release_claimed(self) -> None:
        for interface in list(self._claimed):
            try:
                self.transport.release_interface(interface)
            except Exception as e:
                self._report(f"Error releasing interface {interface}: {e}")
            self._claimed.remove(interface)

    def close(self) -> None:
        """Release interfaces, then reset the device.  Runs once."""
        if self._closed:
            return
        self._closed = True
        self._release_claimed()
        try:
            self.transport.reset()
        except Exception as e:
            self._report(f"Error resetting device: {e}")
        log.info("Kraken session closed")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # -- Channel I/O ------------------------------------------------------

    def _require_open(self) -> None:
        if self._closed:
            raise LifecycleError("Kraken session is closed")

    def _write(self, frame: bytes) -> None:
        self._require_open()
        log.debug("-> %s", frame[:12].hex(' '))
        self.transport.write_interrupt(INTERRUPT_WRITE_ENDPOINT, frame, WRITE_TIMEOUT_MS)

    def _write_bulk(self, frame: bytes) -> None:
        self._require_open()
        self.transport.write_bulk(BULK_WRITE_ENDPOINT, frame, WRITE_TIMEOUT_MS)

    def _read(self) -> bytes:
        self._require_open()
        data = self.transport.read_interrupt(INTERRUPT_READ_ENDPOINT, READ_LENGTH,
                                             READ_TIMEOUT_MS)
        log.debug("<- %s", data[:32].hex(' '))
        return data

    # -- Telemetry --------------------------------------------------------

    def get_status(self) -> DeviceStatus:
        """Liquid temperature, pump and fan speed/duty."""
        self._write(codec.build_status_request())
        return codec.decode_status(self._read())

    def get_firmware_version(self) -> FirmwareVersion:
        self._write(codec.build_firmware_request())
        return codec.decode_firmware_version(self._read())

    # -- Cooling ----------------------------------------------------------

    def set_pump_duty(self, duty: int) -> None:
        self._set_duty(duty, PUMP_ADDRESS)

    def set_fan_duty(self, duty: int) -> None:
        self._set_duty(duty, FAN_ADDRESS)

    def _set_duty(self, duty: int, address: int) -> None:
        if not DUTY_MIN <= duty <= DUTY_MAX:
            raise ValidationError(
                f"Duty {duty} out of range ({DUTY_MIN}-{DUTY_MAX})"
            )
        self._write(codec.build_duty(address, duty))

    # -- LCD --------------------------------------------------------------

    def set_brightness(self, brightness: int) -> None:
        if not BRIGHTNESS_MIN <= brightness <= BRIGHTNESS_MAX:
            raise ValidationError(
                f"Brightness {brightness} out of range ({BRIGHTNESS_MIN}-{BRIGHTNESS_MAX})"
            )
        self._write(codec.build_brightness(brightness))

    def set_visual_mode(self, mode: int, index: int) -> None:
        self._write(codec.build_visual_mode(mode, index))

    def set_liquid_temp_mode(self) -> None:
        self.set_visual_mode(VisualMode.LIQUID_TEMP, 0)

    def set_blank_screen(self) -> None:
        self.set_visual_mode(VisualMode.BLANK, 0)

    def set_dual_infographic_mode(self) -> None:
        """CPU and GPU temperature side by side."""
        self.set_visual_mode(VisualMode.DUAL_INFOGRAPHIC, 0)

    # -- Buckets ----------------------------------------------------------

    def switch_bucket(self, index: int) -> None:
        """Show the image stored in bucket *index*."""
        _check_bucket_index(index)
        self.set_visual_mode(VisualMode.BUCKET, index)

    def delete_bucket(self, index: int) -> None:
        _check_bucket_index(index)
        self._write(codec.build_delete_bucket(index))

    def delete_all_buckets(self) -> None:
        for index in range(BUCKET_COUNT):
            self.delete_bucket(index)

    def send_query_bucket(self, index: int) -> None:
        _check_bucket_index(index)
        self._write(codec.build_query_bucket(index))

    def setup_bucket(self, bucket: Bucket) -> None:
        _check_bucket_index(bucket.index)
        self._write(codec.build_setup_bucket(bucket))

    def write_start_bucket(self, index: int) -> None:
        _check_bucket_index(index)
        self._write(codec.build_write_start(index))

    def write_finish_bucket(self, index: int) -> None:
        _check_bucket_index(index)
        self._write(codec.build_write_finish(index))

    def send_bulk_data_info(self, mode: int) -> None:
        self._write_bulk(codec.encode_bulk_info(mode))

    # -- Image upload -----------------------------------------------------

    def set_image(self, payload: bytes, index: int,
                  activate_after_upload: bool = False) -> Bucket:
        """Upload raw pixels into bucket *index*.

        *payload* must already be 320x320 and rotated by
        ``rotation_degrees``; nothing here resizes or rotates.
        """
        _check_bucket_index(index)
        self._require_open()
        return self._uploader.upload(payload, index, activate_after_upload)
