"""Configuration rendering with Jinja2 templates.

Templates ship with the buildpack under ``templates/``.  A missing or
unparsable template is a packaging defect and raises ``TemplateError``;
failing to write the destination raises ``RenderError``.

Rendered files are always rewritten in full, so configuration reflects the
parameters resolved for the current build.

Templates rendered here:

- ``spire-agent.conf.j2`` -> ``bin/agent.conf`` (always)
- ``envoy.yaml.j2``       -> ``bin/envoy.yaml`` (proxy enabled only)

Variables available to ``spire-agent.conf.j2``:

- ``server_address``, ``server_port``, ``trust_domain`` : required
- ``log_level``          : agent log level, ``INFO`` unless overridden
- ``data_dir``, ``socket_path``, ``trust_bundle_path``, ``plugin_dir`` :
  container-side paths
- ``credential_store``   : present (and true) only when the SVID store block
  should be emitted
- ``credential_store_region`` : optional, SVID store region
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, TYPE_CHECKING

import jinja2
from loguru import logger

from spirepack.supply.errors import RenderError, TemplateError
from spirepack.supply.models.context import AgentConfContext, ProxyConfContext, TemplateContext
from spirepack.supply.models.enums import Parameter

if TYPE_CHECKING:
    from spirepack.supply.layout import BuildLayout
    from spirepack.supply.resolver import ParameterResolver
    from spirepack.supply.settings import SupplySettings

AGENT_CONF_TEMPLATE = "spire-agent.conf.j2"
PROXY_CONF_TEMPLATE = "envoy.yaml.j2"


class ConfigRenderer:
    """Renders buildpack templates straight into destination files."""

    def __init__(self, templates_dir: Path) -> None:
        self.templates_dir = templates_dir
        self._env = jinja2.Environment(  # noqa: S701
            loader=jinja2.FileSystemLoader(str(templates_dir)),
            autoescape=False,
            keep_trailing_newline=True,
        )

    def get_template(self, name: str) -> jinja2.Template:
        try:
            return self._env.get_template(name)
        except jinja2.TemplateNotFound as e:
            raise TemplateError(name, f"not found in {self.templates_dir}") from e
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(name, f"line {e.lineno}: {e.message}") from e

    def stream(self, name: str, context: TemplateContext, fp: IO[str]) -> None:
        """Render ``name`` into an already open text stream."""
        template = self.get_template(name)
        try:
            template.stream(**context.template_context()).dump(fp)
        except jinja2.TemplateError as e:
            raise TemplateError(name, str(e)) from e

    def render(self, name: str, context: TemplateContext, destination: Path) -> Path:
        """Render ``name`` into ``destination``, replacing any previous content."""
        # Load first so a packaging defect never truncates an existing file.
        self.get_template(name)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with destination.open("w", encoding="utf-8") as fp:
                self.stream(name, context, fp)
        except OSError as e:
            raise RenderError(destination, e.strerror or str(e)) from e
        return destination


# ---------------------------------------------------------------------------
# Concrete documents
# ---------------------------------------------------------------------------


def build_agent_context(
    resolver: ParameterResolver,
    layout: BuildLayout,
    settings: SupplySettings,
) -> AgentConfContext:
    """Resolve everything ``spire-agent.conf.j2`` needs.

    Raises ``MissingParameterError`` if the server address, port or trust
    domain cannot be resolved.
    """
    context = AgentConfContext(
        server_address=resolver.resolve_required(Parameter.SERVER_ADDRESS),
        server_port=resolver.resolve_required(Parameter.SERVER_PORT),
        trust_domain=resolver.resolve_required(Parameter.TRUST_DOMAIN),
        log_level=resolver.resolve_or_default(Parameter.AGENT_LOG_LEVEL, "INFO").upper(),
        data_dir=str(layout.runtime_path(layout.dep_dir / "data")),
        socket_path=settings.agent_socket_path,
        trust_bundle_path=str(layout.runtime_path(layout.certificates_dir / settings.trust_bundle_name)),
        plugin_dir=str(layout.runtime_path(layout.plugins_dir)),
    )
    if resolver.resolve_flag(Parameter.CREDENTIAL_STORE_ENABLED):
        context.credential_store = True
        context.credential_store_region = resolver.resolve(Parameter.CREDENTIAL_STORE_REGION)
    return context


def render_agent_conf(
    renderer: ConfigRenderer,
    resolver: ParameterResolver,
    layout: BuildLayout,
    settings: SupplySettings,
) -> Path:
    context = build_agent_context(resolver, layout, settings)
    path = renderer.render(AGENT_CONF_TEMPLATE, context, layout.agent_conf_path)
    logger.info("Spire agent conf: {}", path)
    logger.opt(lazy=True).debug("Spire conf [{}]", lambda: path.read_text(encoding="utf-8"))
    return path


def build_proxy_context(
    resolver: ParameterResolver,
    settings: SupplySettings,
) -> ProxyConfContext:
    """Raises ``MissingParameterError`` without an app identity or trust domain."""
    return ProxyConfContext(
        spiffe_id=resolver.resolve_required(Parameter.APP_SPIFFE_ID),
        trust_domain=resolver.resolve_required(Parameter.TRUST_DOMAIN),
        agent_socket_path=settings.agent_socket_path,
    )


def render_proxy_conf(
    renderer: ConfigRenderer,
    resolver: ParameterResolver,
    layout: BuildLayout,
    settings: SupplySettings,
) -> Path:
    context = build_proxy_context(resolver, settings)
    path = renderer.render(PROXY_CONF_TEMPLATE, context, layout.proxy_conf_path)
    logger.info("Envoy conf: {}", path)
    return path
