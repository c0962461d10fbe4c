"""Exception hierarchy for the multicopter link."""

from __future__ import annotations


class LinkError(RuntimeError):
    """Base class for every error raised by the link."""


class ResolveError(LinkError):
    """The peer host name could not be resolved to an address."""


class BindError(LinkError):
    """A local socket could not be created or bound."""


class FramingError(LinkError, ValueError):
    """A datagram payload does not hold a whole number of doubles."""


class TransportError(LinkError):
    """Hard socket fault; ends the current link session."""


class SendError(TransportError):
    """A motor datagram could not be sent."""


class ReceiveError(TransportError):
    """The telemetry socket failed while waiting for a datagram."""


class LinkStateError(LinkError):
    """Operation not allowed in the current link state."""
