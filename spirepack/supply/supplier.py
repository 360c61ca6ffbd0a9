"""Supplier -- runs the supply pipeline for one build.

Stages, in order:

1. **install-certificates**: trust bundles -> ``certificates/``
2. **render-agent-conf**: ``bin/agent.conf`` from the resolved parameters
3. **install-agent**: ``bin/spire-agent`` (skipped if already present)
4. **install-plugins**: agent plugins -> ``bin/plugins/``
5. **assemble-launch**: ``launch.yml``; with the proxy enabled, also
   ``bin/envoy.yaml`` and ``bin/envoy``
6. **setup**: optional ``buildpack.yml`` override, manifest version lines,
   ``logs/`` directory

The first failing stage aborts the run with ``StageFailedError``.  Nothing
already written is rolled back; running the pipeline again is the recovery
path.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError

from spirepack.supply.errors import SetupError, StageFailedError, SupplyError
from spirepack.supply.installer import ArtifactInstaller
from spirepack.supply.launch import LaunchDescriptorAssembler
from spirepack.supply.layout import AGENT_BINARY, PROXY_BINARY
from spirepack.supply.log import begin_step
from spirepack.supply.models.buildpack import BuildpackConfig, ManifestDocument
from spirepack.supply.models.enums import Parameter, Stage
from spirepack.supply.renderer import ConfigRenderer, render_agent_conf, render_proxy_conf

if TYPE_CHECKING:
    from spirepack.supply.layout import BuildLayout
    from spirepack.supply.models.launch import LaunchDescriptor
    from spirepack.supply.resolver import ParameterResolver
    from spirepack.supply.settings import SupplySettings

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class SupplyResult:
    """Outcome of a completed supply run."""

    agent_conf: Path | None = None
    proxy_conf: Path | None = None
    launch: LaunchDescriptor | None = None
    proxy_enabled: bool = False
    agent_installed: bool = False
    certificates: list[Path] = field(default_factory=list)
    plugins: list[Path] = field(default_factory=list)
    config: BuildpackConfig = field(default_factory=BuildpackConfig)
    manifest: ManifestDocument = field(default_factory=ManifestDocument)


# ---------------------------------------------------------------------------
# Supplier
# ---------------------------------------------------------------------------


class Supplier:
    """Supplies the SPIRE agent (and optional Envoy proxy) into one layer."""

    def __init__(
        self,
        layout: BuildLayout,
        resolver: ParameterResolver,
        settings: SupplySettings,
        *,
        installer: ArtifactInstaller | None = None,
        renderer: ConfigRenderer | None = None,
        assembler: LaunchDescriptorAssembler | None = None,
    ) -> None:
        self.layout = layout
        self.resolver = resolver
        self.settings = settings
        self.installer = installer or ArtifactInstaller(layout)
        self.renderer = renderer or ConfigRenderer(layout.templates_dir)
        self.assembler = assembler or LaunchDescriptorAssembler(
            self.renderer,
            layout,
            base_id_limit=settings.proxy_base_id_limit,
        )

    def run(self) -> SupplyResult:
        begin_step("Supplying spire")
        result = SupplyResult()

        result.certificates = self._run_stage(Stage.INSTALL_CERTIFICATES, self.installer.install_certificates)
        result.agent_conf = self._run_stage(
            Stage.RENDER_AGENT_CONF,
            lambda: render_agent_conf(self.renderer, self.resolver, self.layout, self.settings),
        )
        result.agent_installed = self._run_stage(Stage.INSTALL_AGENT, lambda: self.installer.install_binary(AGENT_BINARY))
        result.plugins = self._run_stage(Stage.INSTALL_PLUGINS, self.installer.install_plugins)
        self._run_stage(Stage.ASSEMBLE_LAUNCH, lambda: self.assemble_launch(result))
        self._run_stage(Stage.SETUP, lambda: self.setup(result))

        return result

    def _run_stage(self, stage: Stage, step: Callable[[], T]) -> T:
        logger.debug("Stage {} started", stage)
        try:
            value = step()
        except SupplyError as e:
            logger.error("Failed to {}: {}", stage, e)
            raise StageFailedError(stage, e) from e
        logger.debug("Stage {} finished", stage)
        return value

    # -- Launch ----------------------------------------------------------------

    def assemble_launch(self, result: SupplyResult) -> LaunchDescriptor:
        """Write ``launch.yml``, preparing the proxy first when it is enabled."""
        result.proxy_enabled = self.resolver.resolve_flag(Parameter.PROXY_ENABLED)
        if result.proxy_enabled:
            result.proxy_conf = render_proxy_conf(self.renderer, self.resolver, self.layout, self.settings)
            self.installer.install_binary(PROXY_BINARY)

        result.launch = self.assembler.assemble(proxy_enabled=result.proxy_enabled)
        return result.launch

    # -- Setup -----------------------------------------------------------------

    def setup(self, result: SupplyResult) -> None:
        """Load the user override and manifest, and create ``logs/``."""
        if self.layout.override_path.exists():
            result.config = _load_yaml(self.layout.override_path, BuildpackConfig)

        result.manifest = _load_yaml(self.layout.manifest_path, ManifestDocument)
        self._report_pinned_version(result)

        logs_dir = self.layout.logs_dir
        try:
            logs_dir.mkdir()
        except FileExistsError:
            if not logs_dir.is_dir():
                raise SetupError(f"Could not create 'logs' directory: {logs_dir} exists and is not a directory")
        except OSError as e:
            raise SetupError(f"Could not create 'logs' directory: {e}") from e

    def _report_pinned_version(self, result: SupplyResult) -> None:
        line = result.config.spire_agent.version
        if line is None:
            return
        version = result.manifest.resolve_version(AGENT_BINARY, line)
        if version is None:
            logger.warning("buildpack.yml requests spire-agent {} which is not a known version line", line)
        else:
            logger.info("buildpack.yml requests spire-agent {} ({})", line, version)


def _load_yaml(path: Path, model: type[M]) -> M:
    """Load a YAML document into ``model``.  Raises ``SetupError``."""
    try:
        with path.open(encoding="utf-8") as fp:
            data = yaml.safe_load(fp)
    except OSError as e:
        raise SetupError(f"Could not read {path.name}: {e}") from e
    except yaml.YAMLError as e:
        raise SetupError(f"Could not parse {path.name}: {e}") from e

    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        raise SetupError(f"Invalid {path.name}: {e}") from e
