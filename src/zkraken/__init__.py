"""
zkraken - host-side control for NZXT Kraken Z liquid coolers

Encodes commands into the device's fixed 64-byte frames, decodes telemetry
and drives the bucket upload handshake for the 320x320 LCD.

Usage:
    # As a library
    from zkraken import KrakenDevice, PyUsbTransport

    with PyUsbTransport() as transport:
        with KrakenDevice.open(transport) as dev:
            print(dev.get_status())

    # Command line
    zkraken status        Show liquid temperature, pump and fan
    zkraken pump 80       Set pump duty
"""

from zkraken.__version__ import __version__
from zkraken.device import KrakenDevice
from zkraken.errors import (
    KrakenError,
    LifecycleError,
    ProtocolError,
    TransportError,
    ValidationError,
)
from zkraken.models import Bucket, DeviceStatus, FirmwareVersion, VisualMode
from zkraken.transport import HybridTransport, PyUsbTransport, UsbTransport
from zkraken.upload import UploadSequencer

__all__ = [
    # Version
    "__version__",
    # Session
    "KrakenDevice",
    "UploadSequencer",
    # Transport
    "UsbTransport",
    "PyUsbTransport",
    "HybridTransport",
    # Models
    "Bucket",
    "DeviceStatus",
    "FirmwareVersion",
    "VisualMode",
    # Errors
    "KrakenError",
    "TransportError",
    "ValidationError",
    "ProtocolError",
    "LifecycleError",
]
