"""
USB transport layer for the Kraken Z.

The ``UsbTransport`` ABC abstracts the raw USB I/O so that:
  * Tests can inject a mock transport (no real hardware needed).
  * ``PyUsbTransport`` drives both channels through pyusb (libusb backend).
  * ``HybridTransport`` sends interrupt frames through HIDAPI and bulk
    frames through pyusb, for systems where the kernel HID driver keeps
    the command interface.

Every backend failure (pyusb ``USBError``, hidapi ``OSError``, timeouts)
surfaces as ``TransportError``.  Nothing is retried here.

Linux dependencies:
  * pyusb:  ``pip install pyusb``  (needs libusb1, ``apt install libusb-1.0-0``)
  * hidapi: ``pip install zkraken[hid]`` (needs libhidapi, ``apt install libhidapi-dev``)
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import usb.core
import usb.util

from .constants import (
    COMMAND_INTERFACE,
    PID,
    READ_TIMEOUT_MS,
    VID,
    WRITE_TIMEOUT_MS,
)
from .errors import TransportError

# hidapi is optional ([hid] extra)
try:
    import hid as hidapi
    HIDAPI_AVAILABLE = True
except ImportError:
    HIDAPI_AVAILABLE = False

log = logging.getLogger(__name__)


@contextmanager
def _usb_errors(action: str) -> Iterator[None]:
    """Re-raise pyusb / OS errors from *action* as TransportError."""
    try:
        yield
    except (usb.core.USBError, OSError, ValueError) as e:
        raise TransportError(f"{action} failed: {e}") from e


# =========================================================================
# Abstract USB transport
# =========================================================================

class UsbTransport(ABC):
    """Abstract interrupt + bulk transport, mockable for testing."""

    @abstractmethod
    def claim_interface(self, interface: int) -> None:
        """Claim *interface* for exclusive use."""

    @abstractmethod
    def release_interface(self, interface: int) -> None:
        """Release a previously claimed *interface*."""

    @abstractmethod
    def reset(self) -> None:
        """Reset the USB device."""

    @abstractmethod
    def write_interrupt(self, endpoint: int, data: bytes,
                        timeout: int = WRITE_TIMEOUT_MS) -> int:
        """Interrupt write to endpoint.  Returns bytes transferred."""

    @abstractmethod
    def write_bulk(self, endpoint: int, data: bytes,
                   timeout: int = WRITE_TIMEOUT_MS) -> int:
        """Bulk write to endpoint.  Returns bytes transferred."""

    @abstractmethod
    def read_interrupt(self, endpoint: int, length: int,
                       timeout: int = READ_TIMEOUT_MS) -> bytes:
        """Interrupt read from endpoint.  Returns data read."""


# =========================================================================
# Real transport: PyUSB  (libusb backend)
# =========================================================================

class PyUsbTransport(UsbTransport):
    """Real USB transport using pyusb (libusb backend).

    ``open()`` only locates the device.  Interfaces are claimed by the
    session, which detaches any active kernel driver first.

    Requires: ``pip install pyusb`` + ``apt install libusb-1.0-0``
    """

    def __init__(self, vid: int = VID, pid: int = PID, serial: Optional[str] = None):
        self._vid = vid
        self._pid = pid
        self._serial = serial
        self._device: Any = None

    def open(self) -> None:
        """Find the USB device by VID/PID (and serial, if given)."""
        kwargs: dict[str, Any] = {'idVendor': self._vid, 'idProduct': self._pid}
        if self._serial:
            kwargs['serial_number'] = self._serial

        with _usb_errors("USB lookup"):
            self._device = usb.core.find(**kwargs)
        if self._device is None:
            raise TransportError(
                f"USB device not found: VID={self._vid:#06x} PID={self._pid:#06x}"
            )
        log.debug("Found USB device %04x:%04x", self._vid, self._pid)

    def close(self) -> None:
        """Dispose pyusb resources."""
        if self._device is not None:
            try:
                usb.util.dispose_resources(self._device)
            except usb.core.USBError as e:
                log.debug("dispose_resources: %s", e)
            self._device = None

    @property
    def is_open(self) -> bool:
        return self._device is not None

    @property
    def device(self) -> Any:
        """Raw pyusb device handle (for diagnostics)."""
        return self._device

    def _require_device(self) -> Any:
        if self._device is None:
            raise TransportError("Transport not open")
        return self._device

    def claim_interface(self, interface: int) -> None:
        dev = self._require_device()
        # Linux only; other platforms raise NotImplementedError here
        try:
            if dev.is_kernel_driver_active(interface):
                dev.detach_kernel_driver(interface)
                log.debug("Detached kernel driver from interface %d", interface)
        except (NotImplementedError, usb.core.USBError) as e:
            log.debug("Kernel driver detach on interface %d: %s", interface, e)

        with _usb_errors(f"Claim interface {interface}"):
            usb.util.claim_interface(dev, interface)

    def release_interface(self, interface: int) -> None:
        dev = self._require_device()
        with _usb_errors(f"Release interface {interface}"):
            usb.util.release_interface(dev, interface)

    def reset(self) -> None:
        dev = self._require_device()
        with _usb_errors("Device reset"):
            dev.reset()

    def write_interrupt(self, endpoint: int, data: bytes,
                        timeout: int = WRITE_TIMEOUT_MS) -> int:
        dev = self._require_device()
        with _usb_errors(f"Interrupt write to 0x{endpoint:02x}"):
            return dev.write(endpoint, data, timeout=timeout)

    def write_bulk(self, endpoint: int, data: bytes,
                   timeout: int = WRITE_TIMEOUT_MS) -> int:
        # libusb picks the transfer type from the endpoint descriptor
        dev = self._require_device()
        with _usb_errors(f"Bulk write to 0x{endpoint:02x}"):
            return dev.write(endpoint, data, timeout=timeout)

    def read_interrupt(self, endpoint: int, length: int,
                       timeout: int = READ_TIMEOUT_MS) -> bytes:
        dev = self._require_device()
        with _usb_errors(f"Interrupt read from 0x{endpoint:02x}"):
            return bytes(dev.read(endpoint, length, timeout=timeout))

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()


# =========================================================================
# Hybrid transport: HIDAPI for interrupt frames, pyusb for bulk
# =========================================================================

class HybridTransport(UsbTransport):
    """Interrupt frames via HIDAPI, bulk frames via pyusb.

    HIDAPI cannot write to a bulk endpoint, so the bulk channel stays on
    pyusb.  The command interface is "claimed" by opening the HID device,
    which leaves the kernel HID driver attached; every other interface is
    claimed through pyusb.

    Note: endpoint arguments are ignored on the HID side, HIDAPI routes
    to the device's single interrupt IN/OUT pair.

    Requires: ``pip install zkraken[hid]`` + ``apt install libhidapi-dev``
    """

    def __init__(self, vid: int = VID, pid: int = PID, serial: Optional[str] = None):
        if not HIDAPI_AVAILABLE:
            raise ImportError(
                "hidapi is not installed. Install with: pip install zkraken[hid]\n"
                "Also need libhidapi: apt install libhidapi-dev (Debian/Ubuntu) "
                "or dnf install hidapi-devel (Fedora)"
            )
        self._vid = vid
        self._pid = pid
        self._serial = serial
        self._hid: Any = None
        self._usb = PyUsbTransport(vid, pid, serial)

    def open(self) -> None:
        self._usb.open()

    def close(self) -> None:
        self._close_hid()
        self._usb.close()

    def _close_hid(self) -> None:
        if self._hid is not None:
            self._hid.close()
            self._hid = None

    def _require_hid(self) -> Any:
        if self._hid is None:
            raise TransportError("HID interface not open")
        return self._hid

    def claim_interface(self, interface: int) -> None:
        if interface != COMMAND_INTERFACE:
            self._usb.claim_interface(interface)
            return
        dev = hidapi.device()
        with _usb_errors("HID open"):
            if self._serial:
                dev.open(self._vid, self._pid, self._serial)
            else:
                dev.open(self._vid, self._pid)
            dev.set_nonblocking(0)  # blocking reads
        self._hid = dev
        log.debug("Opened HID interface %04x:%04x", self._vid, self._pid)

    def release_interface(self, interface: int) -> None:
        if interface != COMMAND_INTERFACE:
            self._usb.release_interface(interface)
            return
        with _usb_errors("HID close"):
            self._close_hid()

    def reset(self) -> None:
        self._usb.reset()

    def write_interrupt(self, endpoint: int, data: bytes,
                        timeout: int = WRITE_TIMEOUT_MS) -> int:
        """Write one output report (report ID 0 prepended)."""
        dev = self._require_hid()
        with _usb_errors("HID write"):
            written = dev.write(bytes([0x00]) + bytes(data))
        if written < 0:
            raise TransportError(f"HID write failed: {dev.error()}")
        return written

    def write_bulk(self, endpoint: int, data: bytes,
                   timeout: int = WRITE_TIMEOUT_MS) -> int:
        return self._usb.write_bulk(endpoint, data, timeout)

    def read_interrupt(self, endpoint: int, length: int,
                       timeout: int = READ_TIMEOUT_MS) -> bytes:
        dev = self._require_hid()
        with _usb_errors("HID read"):
            data = dev.read(length, timeout)
        if not data:
            raise TransportError(f"HID read timed out after {timeout} ms")
        return bytes(data)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()
