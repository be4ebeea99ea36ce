"""Representation of a deployed helm release and its stored file format.

A release is exported from a cluster into a single YAML document, one file
per release, and read back later to install the release on another cluster.

```python
from release_manager import release

content = release.encode(rel)
assert release.decode(content) == rel
print(release.filename(rel))
```
"""

import copy
from dataclasses import dataclass, field, replace
import logging
import re
from typing import Any

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue
import yaml

from .exceptions import InputException, ValueOverrideError

__all__ = [
    "Release",
    "Chart",
    "RELEASE_EXTENSION",
    "filename",
    "is_release_filename",
    "filename_namespace",
    "encode",
    "decode",
    "render",
    "update_value",
    "with_namespace",
]

_LOGGER = logging.getLogger(__name__)


RELEASE_EXTENSION = ".release.yaml"

_RELEASE_FILE_RE = re.compile(
    f"^(?P<namespace>[^.]+)\\.(?P<name>.+){re.escape(RELEASE_EXTENSION)}$"
)


@dataclass
class Chart(DataClassDictMixin):
    """The chart a release was installed from."""

    name: str
    """The name of the chart within its repository."""

    version: str | None = None
    """The version of the chart."""

    repo_url: str | None = None
    """The URL of the chart repository."""

    @property
    def chart_name(self) -> str:
        """Identifier for the chart including the version."""
        if self.version:
            return f"{self.name}-{self.version}"
        return self.name

    class Config(BaseConfig):
        omit_none = True


@dataclass
class Release(DataClassDictMixin):
    """A deployed instance of a helm chart."""

    name: str
    """The release name, unique within its namespace."""

    namespace: str
    """The namespace the release is installed in."""

    version: int
    """The revision of the release, increasing on every upgrade."""

    chart: Chart
    """The chart the release was installed from."""

    values: dict[str, Any] = field(default_factory=dict)
    """The user supplied values of the release."""

    status: str | None = None
    """The last known deployment status."""

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        return f"{self.namespace}/{self.name}"

    class Config(BaseConfig):
        omit_none = True


def filename(release: Release) -> str:
    """Return the name of the file the release is stored in.

    Release names are only unique within a namespace, so the namespace is
    part of the file name. Namespaces can't contain dots.
    """
    return f"{release.namespace}.{release.name}{RELEASE_EXTENSION}"


def is_release_filename(name: str) -> bool:
    """Return True if the stored object name looks like a release file."""
    return _RELEASE_FILE_RE.match(name) is not None


def filename_namespace(name: str) -> str | None:
    """Return the namespace of the release stored in the file, if it is one."""
    if match := _RELEASE_FILE_RE.match(name):
        return match.group("namespace")
    return None


def encode(release: Release) -> bytes:
    """Serialize the release for storage."""
    return yaml.dump(release.to_dict(), sort_keys=False).encode("utf-8")


def decode(content: bytes) -> Release:
    """Parse a stored release."""
    try:
        doc = yaml.load(content, Loader=yaml.SafeLoader)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse stored release: {err}") from err
    if not isinstance(doc, dict):
        raise InputException(f"Invalid stored release, expected a mapping: {doc}")
    try:
        return Release.from_dict(doc)
    except (MissingField, InvalidFieldValue) as err:
        raise InputException(f"Invalid stored release: {err}") from err


def render(release: Release, verbose: bool = False) -> str:
    """Render a release for display to the user."""
    if not verbose:
        return (
            f"{release.name} (namespace={release.namespace} "
            f"revision={release.version} chart={release.chart.chart_name})"
        )
    return encode(release).decode("utf-8")


def _split_key(key: str) -> list[str]:
    """Split a dotted value path, allowing escaped dots in a key."""
    raw_parts = re.split(r"(?<!\\)\.", key)
    return [re.sub(r"\\(.)", r"\1", raw_part) for raw_part in raw_parts]


def update_value(release: Release, key: str, value: Any) -> Release:
    """Return a copy of the release with the value at the dotted key replaced."""
    parts = _split_key(key)
    if not all(parts):
        raise ValueOverrideError(release.name, key, "empty key")
    values = copy.deepcopy(release.values)
    inner_values = values
    for part in parts[:-1]:
        if part not in inner_values or inner_values[part] is None:
            inner_values[part] = {}
        elif not isinstance(inner_values[part], dict):
            raise ValueOverrideError(
                release.name,
                key,
                f"expected '{part}' to be a map, found {type(inner_values[part]).__name__}",
            )
        inner_values = inner_values[part]
    inner_values[parts[-1]] = value
    _LOGGER.debug("Updated value %s on release %s", key, release.name)
    return replace(release, values=values)


def with_namespace(release: Release, namespace: str) -> Release:
    """Return a copy of the release targeting a different namespace."""
    return replace(release, namespace=namespace)
