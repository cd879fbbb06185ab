"""zkraken version information."""

__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Status, firmware version, pump/fan duty, brightness, visual modes
# 0.2.0 - Bucket upload handshake (blank, delete, setup, write start/finish,
#         bulk info + payload), switch/query/delete-all buckets
# 0.3.0 - Transport ABC with pyusb and hybrid hidapi backends, typed errors,
#         best-effort session teardown, zkraken CLI
