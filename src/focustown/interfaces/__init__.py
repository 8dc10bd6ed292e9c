"""Protocol-based interfaces for Focustown services.

This module exports the service protocol interfaces, providing a clear
contract for implementations and enabling dependency injection and testing.
"""

from focustown.interfaces.server_adapter import IServerAdapter

__all__ = [
    "IServerAdapter",
]
