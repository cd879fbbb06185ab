"""Exceptions raised by the Kraken protocol engine."""


class KrakenError(Exception):
    """Base error for everything raised by zkraken."""


class TransportError(KrakenError):
    """USB read or write failed or timed out."""


class ValidationError(KrakenError, ValueError):
    """Caller-supplied value outside its allowed range. Raised before any I/O."""


class ProtocolError(KrakenError):
    """Response frame too short to decode a known field."""


class LifecycleError(KrakenError):
    """Interface claim failed, or the session was used after close."""
