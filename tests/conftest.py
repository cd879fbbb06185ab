"""Shared fixtures: a mocked transport standing in for the Kraken Z."""

from unittest.mock import MagicMock

import pytest

from zkraken.constants import READ_LENGTH
from zkraken.transport import UsbTransport

# Status response captured from a real device
STATUS_RESPONSE = bytes([
    117, 1, 57, 0, 42, 0, 24, 81, 57, 48, 51, 54, 50, 56, 1, 30, 9, 58, 9, 80, 80,
    1, 2, 193, 6, 80, 80,
]).ljust(READ_LENGTH, b'\x00')

# Firmware response reporting version 5.7.0
FIRMWARE_RESPONSE = bytes([
    17, 1, 57, 0, 42, 0, 24, 81, 57, 48, 51, 54, 50, 56, 8, 48, 1, 5, 7, 0,
]).ljust(READ_LENGTH, b'\x00')


def make_mock_transport(response: bytes = bytes(READ_LENGTH)) -> MagicMock:
    """Create a MagicMock that satisfies the UsbTransport interface."""
    t = MagicMock(spec=UsbTransport)
    t.read_interrupt.return_value = response
    t.write_interrupt.side_effect = lambda ep, data, timeout=0: len(data)
    t.write_bulk.side_effect = lambda ep, data, timeout=0: len(data)
    return t


def call_names(mock: MagicMock) -> list:
    """Method names called on *mock*, in order."""
    return [c[0] for c in mock.mock_calls]


@pytest.fixture
def transport():
    return make_mock_transport()
