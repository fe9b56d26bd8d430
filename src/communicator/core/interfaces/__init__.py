"""
Core Protocol Interfaces

Contracts for the external collaborators of the correlation engine and the
tool dispatcher. Concrete implementations live in
``communicator.infrastructure``; tests substitute fakes.
"""

from communicator.core.interfaces.channel import (
    ArchiverProtocol,
    ChannelAdapterProtocol,
    InboundHandler,
)

__all__ = [
    "ArchiverProtocol",
    "ChannelAdapterProtocol",
    "InboundHandler",
]
