"""Remote clients for the lifecycle policy read API.

Notes:
- Treat every remote response as untrusted input.
- Clients raise only TransportFailure or RemoteRejection; classification into
  lookup errors happens in the resolver.
"""

from .errors import ClientError, RemoteRejection, TransportFailure
from .http import ClientConfig, OpenSearchServerlessHttpClient
from .memory import InMemoryLifecyclePolicyClient
from .protocol import BatchGetLifecyclePolicyOutput, LifecyclePolicyClient

__all__ = [
    "BatchGetLifecyclePolicyOutput",
    "ClientConfig",
    "ClientError",
    "InMemoryLifecyclePolicyClient",
    "LifecyclePolicyClient",
    "OpenSearchServerlessHttpClient",
    "RemoteRejection",
    "TransportFailure",
]
