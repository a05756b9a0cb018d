from __future__ import annotations

from typing import Optional


class ClientError(Exception):
    """
    Base exception raised by remote lifecycle policy clients.
    """

    pass


class TransportFailure(ClientError):
    """
    The request did not complete: network error, timeout, authentication
    failure, or a truncated/undecodable response.
    """

    pass


class RemoteRejection(ClientError):
    """
    The remote service answered with an error response.
    """

    def __init__(self, message: str, *, status: int = 0, error_code: Optional[str] = None):
        self.status = int(status)
        self.error_code = error_code
        self.message = message
        label = error_code or f"HTTP {self.status}"
        super().__init__(f"{label}: {message}" if message else label)
