"""
Bucket upload handshake.

Placing an image into one of the 15 on-device buckets takes eight ordered
steps, each of which must succeed before the next one starts::

    1. blank the screen           (avoids artifacts while overwriting)
    2. delete the bucket
    3. configure the bucket       (id, memory slot, memory slot count)
    4. write-start
    5. bulk info frame, mode 2    (announces the bulk transfer)
    6. raw payload, one bulk transfer
    7. write-finish
    8. switch to the bucket       (only when activation was requested)

The first failing step aborts the upload and its error propagates.  There
is no rollback: the bucket may be left half configured, and a retry has to
start again from step 1.
"""

import logging
from typing import Callable, List, Tuple

from . import codec
from .constants import (
    BULK_INFO_IMAGE_MODE,
    BULK_WRITE_ENDPOINT,
    DISPLAY_BYTES,
    INTERRUPT_WRITE_ENDPOINT,
    MEMORY_SLOT_SIZE,
    WRITE_TIMEOUT_MS,
)
from .models import Bucket, VisualMode
from .transport import UsbTransport

log = logging.getLogger(__name__)


class UploadSequencer:
    """Drives the bucket upload handshake over a transport.

    The transport must already have its interfaces claimed; the sequencer
    only writes.
    """

    def __init__(self, transport: UsbTransport):
        self.transport = transport

    # -- Channel writes --------------------------------------------------

    def _write(self, frame: bytes) -> None:
        log.debug("-> %s", frame[:12].hex(' '))
        self.transport.write_interrupt(INTERRUPT_WRITE_ENDPOINT, frame, WRITE_TIMEOUT_MS)

    def _write_bulk(self, data: bytes) -> None:
        log.debug("=> %d bytes", len(data))
        self.transport.write_bulk(BULK_WRITE_ENDPOINT, data, WRITE_TIMEOUT_MS)

    # -- Handshake -------------------------------------------------------

    def plan(self, payload: bytes, index: int,
             activate: bool) -> List[Tuple[str, Callable[[], None]]]:
        """Return the ordered (name, action) steps for one upload."""
        bucket = Bucket.for_payload(index, len(payload))

        steps: List[Tuple[str, Callable[[], None]]] = [
            ("blank screen",
             lambda: self._write(codec.build_visual_mode(VisualMode.BLANK, 0))),
            ("delete bucket",
             lambda: self._write(codec.build_delete_bucket(index))),
            ("setup bucket",
             lambda: self._write(codec.build_setup_bucket(bucket))),
            ("write start",
             lambda: self._write(codec.build_write_start(index))),
            ("bulk info",
             lambda: self._write_bulk(codec.encode_bulk_info(BULK_INFO_IMAGE_MODE))),
            ("bulk payload",
             lambda: self._write_bulk(payload)),
            ("write finish",
             lambda: self._write(codec.build_write_finish(index))),
        ]
        if activate:
            steps.append(
                ("switch bucket",
                 lambda: self._write(codec.build_visual_mode(VisualMode.BUCKET, index))),
            )
        return steps

    def upload(self, payload: bytes, index: int, activate: bool = False) -> Bucket:
        """Upload *payload* into bucket *index*, optionally switching to it.

        Returns the bucket layout that was configured.
        """
        size = len(payload)
        if size < MEMORY_SLOT_SIZE:
            log.warning("Payload of %d bytes is under one memory slot; "
                        "bucket %d will be configured with 0 slots", size, index)
        elif size != DISPLAY_BYTES:
            log.warning("Payload is %d bytes, expected %d for a 320x320 RGBA frame",
                        size, DISPLAY_BYTES)

        bucket = Bucket.for_payload(index, size)
        for name, action in self.plan(payload, index, activate):
            log.debug("Upload bucket %d: %s", index, name)
            try:
                action()
            except Exception:
                log.error("Upload to bucket %d aborted at step '%s'", index, name)
                raise

        log.info("Uploaded %d bytes to bucket %d (slot %d, %d slots)%s",
                 size, index, bucket.memory_slot, bucket.memory_slot_count,
                 ", activated" if activate else "")
        return bucket
