"""Library for running `helm` to list and install releases in a cluster.

This is an example that lists releases in the current cluster:
```python
from release_manager.helm import Helm

helm = Helm(Path("/tmp/path/helm"))
for release in await helm.list_releases(["default"]):
    print(f"Found release {release.namespaced_name} revision {release.version}")
```

Then to install a release on another cluster:
```python
result = await helm.install(release)
if result.status == InstallStatus.ALREADY_EXISTS:
    print(f"Release {release.name} already exists")
```
"""

import json
import logging
from pathlib import Path
import re
from typing import Any

import aiofiles
import yaml

from . import command
from .config import HelmConfig
from .exceptions import HelmException
from .installer import Installer, InstallResult, ReleaseLister
from .release import Chart, Release

__all__ = [
    "Helm",
]

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm"

# Extra time allowed for the helm process beyond its own --timeout
_COMMAND_GRACE_SECONDS = 30

_ALREADY_EXISTS_ERRORS = (
    "cannot re-use a name that is still in use",
    "already exists",
)

_CHART_RE = re.compile(r"^(?P<name>.+)-(?P<version>v?\d+(\.\d+)*([-+].*)?)$")


def parse_chart(chart: str) -> Chart:
    """Split the chart column of `helm list` into a chart name and version."""
    if match := _CHART_RE.match(chart):
        return Chart(name=match.group("name"), version=match.group("version"))
    return Chart(name=chart)


def is_already_exists(err: HelmException) -> bool:
    """Return True if the helm error reports that the release already exists."""
    message = str(err)
    return any(text in message for text in _ALREADY_EXISTS_ERRORS)


class Helm(Installer, ReleaseLister):
    """Manages releases in the cluster of the current kube context."""

    def __init__(self, tmp_dir: Path, config: HelmConfig | None = None) -> None:
        """Initialize Helm."""
        self._tmp_dir = tmp_dir
        self._config = config or HelmConfig()
        self._flags: list[str] = []
        if self._config.kube_context:
            self._flags.extend(["--kube-context", self._config.kube_context])

    @property
    def _command_timeout(self) -> float:
        return float(self._config.release_timeout + _COMMAND_GRACE_SECONDS)

    async def _run_json(self, args: list[str]) -> Any:
        cmd = command.Command([HELM_BIN] + args + self._flags, exc=HelmException)
        out = await command.run(cmd)
        try:
            return json.loads(out) if out.strip() else None
        except ValueError as err:
            raise HelmException(f"Unable to parse output of '{cmd}': {err}") from err

    async def _values(self, name: str, namespace: str) -> dict[str, Any]:
        values = await self._run_json(
            ["get", "values", name, "--namespace", namespace, "--output", "json"]
        )
        return values or {}

    async def list_releases(self, namespaces: list[str] | None = None) -> list[Release]:
        """Return the releases deployed in the cluster."""
        scopes: list[list[str]] = [["--all-namespaces"]]
        if namespaces:
            scopes = [["--namespace", namespace] for namespace in namespaces]
        releases: list[Release] = []
        for scope in scopes:
            # --max 0 lists every release instead of the first page
            args = ["list", "--output", "json", "--max", "0"] + scope
            items = await self._run_json(args) or []
            for item in items:
                name = item["name"]
                namespace = item["namespace"]
                releases.append(
                    Release(
                        name=name,
                        namespace=namespace,
                        version=int(item["revision"]),
                        chart=parse_chart(item["chart"]),
                        values=await self._values(name, namespace),
                        status=item.get("status"),
                    )
                )
        _LOGGER.debug("Found %d releases", len(releases))
        return releases

    async def install(self, release: Release) -> InstallResult:
        """Install the release, reporting an existing release separately."""
        args: list[str] = [
            HELM_BIN,
            "install",
            release.name,
            release.chart.name,
            "--namespace",
            release.namespace,
            "--create-namespace",
            "--timeout",
            f"{self._config.release_timeout}s",
        ]
        if release.chart.version:
            args.extend(["--version", release.chart.version])
        if release.chart.repo_url:
            args.extend(["--repo", release.chart.repo_url])
        if release.values:
            values_path = self._tmp_dir / f"{release.namespace}-{release.name}-values.yaml"
            async with aiofiles.open(values_path, mode="w") as values_file:
                await values_file.write(yaml.dump(release.values, sort_keys=False))
            args.extend(["--values", str(values_path)])
        args.extend(self._flags)
        try:
            await command.run(
                command.Command(args, exc=HelmException), self._command_timeout
            )
        except HelmException as err:
            if is_already_exists(err):
                return InstallResult.already_exists(str(err))
            return InstallResult.failed(str(err))
        return InstallResult.installed()
