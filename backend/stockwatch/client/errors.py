"""Consumer-side transport failures."""


class StreamError(Exception):
    """Base class for ClientStream transport failures."""


class TransportClosed(StreamError):
    """The server or network closed an established connection."""


class TransportError(StreamError):
    """The handshake failed or the transport broke mid-stream."""
