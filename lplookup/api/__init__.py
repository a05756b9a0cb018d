"""Lifecycle policy lookup API package.

Optional FastAPI read surface over the lookup core.
"""

from .server import create_app  # noqa: F401
