"""Library for saving the helm releases of a cluster and restoring them.

Releases are exported to a storage backend, one file per release, along
with a state file naming the release manager release that owns the path.
Stored releases can later be installed on another cluster.
"""

__all__ = [
    "backend",
    "config",
    "conflict",
    "deploy",
    "exceptions",
    "helm",
    "release",
    "state",
    "store",
    "workflow",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
