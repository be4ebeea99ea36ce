"""Safety checks run before installing stored releases.

If a state file exists but no new storage path was given, the imported
release manager release would be installed writing to the same storage path
as the release manager that exported it. Two release managers in different
clusters writing to the same path overwrite each other's releases and state,
so this is refused unless forced. A dry-run only reports the conflict.
"""

from dataclasses import dataclass, field
import logging

from .exceptions import StateConflict
from .state import Info

_LOGGER = logging.getLogger(__name__)

__all__ = ["Resolution", "resolve_state_conflict"]


CONFLICT_ADVICE = (
    "This can lead to unexpected results and is probably a mistake. "
    "If you really wish to continue, use --force or specify --new-path"
)


@dataclass
class Resolution:
    """The outcome of a state conflict check that allows the operation."""

    conflict: bool = False
    """True when existing state conflicts with the operation."""

    warnings: list[str] = field(default_factory=list)
    """Warnings reported while resolving the check."""


def resolve_state_conflict(
    info: Info | None,
    state_path: str,
    new_storage_path: str | None,
    force: bool = False,
    dry_run: bool = False,
) -> Resolution:
    """Decide whether releases may be installed given the remote state.

    Raises:
        StateConflict: If state exists, no new path was specified and
            neither force nor dry-run is set.
    """
    if info is None:
        if new_storage_path:
            msg = f"--new-path specified but no remote state found at {state_path}"
            _LOGGER.warning(msg)
            return Resolution(warnings=[msg])
        return Resolution()
    if new_storage_path:
        return Resolution()

    msg = (
        f"Existing state for release {info.release_name} exists at {state_path} "
        "but --new-path wasn't specified."
    )
    if force:
        warning = f"{msg} --force specified. Proceeding..."
        _LOGGER.warning(warning)
        return Resolution(conflict=True, warnings=[warning])
    if dry_run:
        print(f"{msg}\n{CONFLICT_ADVICE}")
        return Resolution(conflict=True, warnings=[msg])
    raise StateConflict(state_path, f"{msg}\n{CONFLICT_ADVICE}")
