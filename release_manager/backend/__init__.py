"""Storage backends for exported releases.

Backends are addressed by slash separated paths relative to a root and
only support listing, reading, writing and deleting whole objects.
"""

from .backend import Backend
from .in_memory import InMemoryBackend
from .local import LocalBackend

__all__ = ["Backend", "InMemoryBackend", "LocalBackend"]
