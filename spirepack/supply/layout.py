"""Filesystem layout for one supply run.

Build-time paths (where files are written)::

    {deps_dir}/{deps_idx}/bin/spire-agent
    {deps_dir}/{deps_idx}/bin/plugins/...
    {deps_dir}/{deps_idx}/bin/agent.conf
    {deps_dir}/{deps_idx}/bin/envoy            (proxy only)
    {deps_dir}/{deps_idx}/bin/envoy.yaml       (proxy only)
    {deps_dir}/{deps_idx}/certificates/...
    {deps_dir}/{deps_idx}/launch.yml
    {build_dir}/logs/

Buildpack (dependency cache) paths (where files are read)::

    {buildpack_dir}/binaries/spire-agent
    {buildpack_dir}/binaries/plugins/...
    {buildpack_dir}/certificates/...
    {buildpack_dir}/templates/*.j2
    {buildpack_dir}/manifest.yml

Runtime paths are what the running container sees: the deps directory is
mounted at ``runtime_deps_dir`` (``/home/vcap/deps`` on Cloud Foundry), so
rendered configuration must reference ``{runtime_deps_dir}/{deps_idx}/...``
rather than the build-time location.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from spirepack.supply.settings import SupplySettings

AGENT_BINARY = "spire-agent"
PROXY_BINARY = "envoy"
AGENT_CONF = "agent.conf"
PROXY_CONF = "envoy.yaml"
LAUNCH_FILE = "launch.yml"
OVERRIDE_FILE = "buildpack.yml"
MANIFEST_FILE = "manifest.yml"


class BuildLayout:
    """Resolved build, dependency and buildpack paths for a supply run."""

    def __init__(
        self,
        *,
        build_dir: Path,
        cache_dir: Path,
        deps_dir: Path,
        deps_idx: str,
        buildpack_dir: Path,
        runtime_deps_dir: str = "/home/vcap/deps",
    ) -> None:
        self.build_dir = build_dir
        self.cache_dir = cache_dir
        self.deps_dir = deps_dir
        self.deps_idx = deps_idx
        self.buildpack_dir = buildpack_dir
        self.runtime_dep_dir = PurePosixPath(runtime_deps_dir) / deps_idx

    @classmethod
    def from_settings(
        cls,
        settings: SupplySettings,
        *,
        build_dir: Path,
        cache_dir: Path,
        deps_dir: Path,
        deps_idx: str,
    ) -> BuildLayout:
        return cls(
            build_dir=build_dir,
            cache_dir=cache_dir,
            deps_dir=deps_dir,
            deps_idx=deps_idx,
            buildpack_dir=settings.resolve_buildpack_dir(),
            runtime_deps_dir=settings.runtime_deps_dir,
        )

    # -- Output tree -----------------------------------------------------------

    @property
    def dep_dir(self) -> Path:
        """This buildpack's own layer: ``{deps_dir}/{deps_idx}``."""
        return self.deps_dir / self.deps_idx

    @property
    def bin_dir(self) -> Path:
        return self.dep_dir / "bin"

    @property
    def plugins_dir(self) -> Path:
        return self.bin_dir / "plugins"

    @property
    def certificates_dir(self) -> Path:
        return self.dep_dir / "certificates"

    @property
    def agent_conf_path(self) -> Path:
        return self.bin_dir / AGENT_CONF

    @property
    def proxy_conf_path(self) -> Path:
        return self.bin_dir / PROXY_CONF

    @property
    def launch_path(self) -> Path:
        return self.dep_dir / LAUNCH_FILE

    @property
    def logs_dir(self) -> Path:
        return self.build_dir / "logs"

    @property
    def override_path(self) -> Path:
        """Optional user override document in the application directory."""
        return self.build_dir / OVERRIDE_FILE

    def binary_path(self, name: str) -> Path:
        return self.bin_dir / name

    # -- Buildpack (dependency cache) ------------------------------------------

    @property
    def binaries_dir(self) -> Path:
        return self.buildpack_dir / "binaries"

    @property
    def source_plugins_dir(self) -> Path:
        return self.binaries_dir / "plugins"

    @property
    def source_certificates_dir(self) -> Path:
        return self.buildpack_dir / "certificates"

    @property
    def templates_dir(self) -> Path:
        return self.buildpack_dir / "templates"

    @property
    def manifest_path(self) -> Path:
        return self.buildpack_dir / MANIFEST_FILE

    def source_binary_path(self, name: str) -> Path:
        return self.binaries_dir / name

    # -- Runtime (inside the container) ----------------------------------------

    def runtime_path(self, build_path: Path) -> PurePosixPath:
        """Translate a path under ``dep_dir`` to where the container sees it."""
        return self.runtime_dep_dir / build_path.relative_to(self.dep_dir).as_posix()
