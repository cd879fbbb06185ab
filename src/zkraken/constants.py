"""Shared constants for the Kraken Z protocol.

USB ids, endpoint addresses, frame sizes, timeouts and the opcode table.
Byte values were captured from the device with a USB sniffer; nothing here
is documented by the vendor.
"""

# =========================================================================
# USB identity (Kraken Z series)
# =========================================================================

VID = 0x1E71
PID = 0x3008

# Interface 0 is the auxiliary control interface, interface 1 carries commands.
CONTROL_INTERFACE = 0
COMMAND_INTERFACE = 1

# Endpoint addresses
INTERRUPT_WRITE_ENDPOINT = 0x01
INTERRUPT_READ_ENDPOINT = 0x81
BULK_WRITE_ENDPOINT = 0x02

# =========================================================================
# Frame sizes / timeouts
# =========================================================================

WRITE_LENGTH = 64
READ_LENGTH = 64
BULK_WRITE_LENGTH = 512

WRITE_TIMEOUT_MS = 10_000   # interrupt and bulk writes
READ_TIMEOUT_MS = 3_000

# =========================================================================
# Display / bucket memory
# =========================================================================

DISPLAY_WIDTH = 320
DISPLAY_HEIGHT = 320
DISPLAY_BYTES = DISPLAY_WIDTH * DISPLAY_HEIGHT * 4  # RGBA8

BUCKET_COUNT = 15
BUCKET_MEMORY_STRIDE = 800   # memory slots reserved per bucket
MEMORY_SLOT_SIZE = 1024      # bytes per memory slot

# =========================================================================
# Opcodes (byte 0) and sub-ops (byte 1)
# =========================================================================

STATUS_REQUEST = 0x74
FIRMWARE_REQUEST = 0x10
SET_DUTY = 0x72
SET_LCD = 0x30               # shared by brightness and bucket query

SWITCH_BUCKET = 0x38         # visual mode
SETUP_BUCKET = 0x32
SET_BUCKET = 0x01
DELETE_BUCKET = 0x02
QUERY_BUCKET = 0x30

WRITE_SETUP = 0x36
WRITE_START = 0x01
WRITE_FINISH = 0x02

# Sub-op bytes that are not part of a named group
REQUEST_SUB_OP = 0x01
VISUAL_MODE_SUB_OP = 0x01
BRIGHTNESS_SUB_OP = 0x02
QUERY_BUCKET_SUB_OP = 0x04

# Duty channel addresses (byte 1 of SET_DUTY)
PUMP_ADDRESS = 0x01
FAN_ADDRESS = 0x02

# SET_DUTY repeats the duty value over bytes 4..43
DUTY_VALUE_START = 4
DUTY_VALUE_END = 44

DUTY_MIN = 20
DUTY_MAX = 100
BRIGHTNESS_MIN = 0
BRIGHTNESS_MAX = 100

# =========================================================================
# Bulk info frame
# =========================================================================

BULK_INFO_MAGIC = bytes([
    0x12, 0xFA, 0x01, 0xE8, 0xAB, 0xCD, 0xEF, 0x98, 0x76, 0x54, 0x32, 0x10,
])
BULK_INFO_TRAILER = bytes([0x40, 0x96])
BULK_INFO_TRAILER_OFFSET = 17
BULK_INFO_IMAGE_MODE = 2

# =========================================================================
# Response layouts
# =========================================================================

STATUS_MIN_LENGTH = 26
FIRMWARE_MIN_LENGTH = 0x14
