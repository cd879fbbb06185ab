#!/usr/bin/env python3
"""
zkraken - Command Line Interface

Entry point for the zkraken package.
"""

import argparse
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from zkraken.__version__ import __version__
from zkraken.device import KrakenDevice
from zkraken.errors import KrakenError
from zkraken.transport import HybridTransport, PyUsbTransport

MODES = {
    "blank": "set_blank_screen",
    "liquid": "set_liquid_temp_mode",
    "dual": "set_dual_infographic_mode",
}


def _setup_logging(verbose: int) -> None:
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
        logging.getLogger('usb').setLevel(logging.WARNING)
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING)


@contextmanager
def _open_session(hybrid: bool = False, rotation: int = 0) -> Iterator[KrakenDevice]:
    """Open the first Kraken Z found and yield a claimed session."""
    transport = HybridTransport() if hybrid else PyUsbTransport()
    with transport:
        with KrakenDevice.open(transport, rotation_degrees=rotation) as dev:
            yield dev


def _run(action: Callable[[KrakenDevice], None], hybrid: bool = False,
         rotation: int = 0) -> int:
    try:
        with _open_session(hybrid, rotation) as dev:
            action(dev)
        return 0
    except (KrakenError, ImportError) as e:
        print(f"Error: {e}")
        return 1


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="zkraken",
        description="NZXT Kraken Z cooler control",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    zkraken status                        Liquid temp, pump and fan
    zkraken pump 80                       Pump duty to 80%
    zkraken mode liquid                   Show liquid temperature
    zkraken upload frame.rgba --index 3 --activate
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)"
    )
    parser.add_argument(
        "--hybrid",
        action="store_true",
        help="Send commands through hidapi, bulk data through libusb"
    )
    parser.add_argument(
        "--rotation",
        type=int,
        default=0,
        choices=(0, 90, 180, 270),
        help="Rotation the image payloads were prepared with"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("status", help="Show liquid temperature, pump and fan")
    subparsers.add_parser("firmware", help="Show firmware version")

    pump_parser = subparsers.add_parser("pump", help="Set pump duty (20-100)")
    pump_parser.add_argument("duty", type=int)

    fan_parser = subparsers.add_parser("fan", help="Set fan duty (20-100)")
    fan_parser.add_argument("duty", type=int)

    brightness_parser = subparsers.add_parser("brightness", help="Set LCD brightness (0-100)")
    brightness_parser.add_argument("percent", type=int)

    mode_parser = subparsers.add_parser("mode", help="Set LCD visual mode")
    mode_parser.add_argument("mode", choices=sorted(MODES))

    switch_parser = subparsers.add_parser("switch", help="Show the image in a bucket")
    switch_parser.add_argument("index", type=int)

    delete_parser = subparsers.add_parser("delete", help="Delete one bucket, or all of them")
    delete_parser.add_argument("--index", "-i", type=int, help="Bucket index (default: all)")

    upload_parser = subparsers.add_parser("upload", help="Upload raw 320x320 pixels to a bucket")
    upload_parser.add_argument("file", help="File of raw, pre-rotated RGBA pixels")
    upload_parser.add_argument("--index", "-i", type=int, required=True, help="Bucket index (0-14)")
    upload_parser.add_argument("--activate", "-a", action="store_true",
                               help="Switch to the bucket after upload")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)
    session = {"hybrid": args.hybrid, "rotation": args.rotation}

    if args.command == "status":
        return show_status(**session)
    elif args.command == "firmware":
        return show_firmware(**session)
    elif args.command == "pump":
        return set_duty("pump", args.duty, **session)
    elif args.command == "fan":
        return set_duty("fan", args.duty, **session)
    elif args.command == "brightness":
        return set_brightness(args.percent, **session)
    elif args.command == "mode":
        return set_mode(args.mode, **session)
    elif args.command == "switch":
        return switch_bucket(args.index, **session)
    elif args.command == "delete":
        return delete_buckets(args.index, **session)
    elif args.command == "upload":
        return upload_image(args.file, args.index, args.activate, **session)

    return 0


def show_status(hybrid=False, rotation=0):
    """Print liquid temperature, pump and fan readings."""
    def action(dev):
        status = dev.get_status()
        print(f"Liquid: {status.liquid_temp} °C")
        print(f"Pump:   {status.pump_rpm} rpm ({status.pump_duty}%)")
        print(f"Fan:    {status.fan_rpm} rpm ({status.fan_duty}%)")
    return _run(action, hybrid, rotation)


def show_firmware(hybrid=False, rotation=0):
    def action(dev):
        print(f"Firmware version: {dev.get_firmware_version()}")
    return _run(action, hybrid, rotation)


def set_duty(channel, duty, hybrid=False, rotation=0):
    """Set pump or fan duty."""
    def action(dev):
        if channel == "pump":
            dev.set_pump_duty(duty)
        else:
            dev.set_fan_duty(duty)
        print(f"{channel.capitalize()} duty set to {duty}%")
    return _run(action, hybrid, rotation)


def set_brightness(percent, hybrid=False, rotation=0):
    def action(dev):
        dev.set_brightness(percent)
        print(f"Brightness set to {percent}%")
    return _run(action, hybrid, rotation)


def set_mode(mode, hybrid=False, rotation=0):
    def action(dev):
        getattr(dev, MODES[mode])()
        print(f"Visual mode: {mode}")
    return _run(action, hybrid, rotation)


def switch_bucket(index, hybrid=False, rotation=0):
    def action(dev):
        dev.switch_bucket(index)
        print(f"Switched to bucket {index}")
    return _run(action, hybrid, rotation)


def delete_buckets(index=None, hybrid=False, rotation=0):
    """Delete bucket *index*, or all 15 when *index* is None."""
    def action(dev):
        if index is None:
            dev.delete_all_buckets()
            print("Deleted all buckets")
        else:
            dev.delete_bucket(index)
            print(f"Deleted bucket {index}")
    return _run(action, hybrid, rotation)


def upload_image(path, index, activate=False, hybrid=False, rotation=0):
    """Upload a raw pixel file into bucket *index*."""
    image = Path(path)
    if not image.is_file():
        print(f"Error: File not found: {path}")
        return 1
    payload = image.read_bytes()

    def action(dev):
        bucket = dev.set_image(payload, index, activate_after_upload=activate)
        print(f"Uploaded {len(payload)} bytes to bucket {bucket.index} "
              f"({bucket.memory_slot_count} memory slots)")
    return _run(action, hybrid, rotation)


if __name__ == "__main__":
    sys.exit(main())
