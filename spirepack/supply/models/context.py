"""Template contexts and installation targets.

Each context is built right before a render call and dumped with
``exclude_none=True``: an optional field that was never set is absent from
the template namespace, so any ``{% if ... %}`` block guarded by it is left
out of the output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel


class TemplateContext(BaseModel):
    def template_context(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AgentConfContext(TemplateContext):
    """Values substituted into ``spire-agent.conf.j2``."""

    server_address: str
    server_port: str
    trust_domain: str
    log_level: str = "INFO"
    data_dir: str
    socket_path: str
    trust_bundle_path: str
    plugin_dir: str

    # Optional SVID store block
    credential_store: bool | None = None
    credential_store_region: str | None = None


class ProxyConfContext(TemplateContext):
    """Values substituted into ``envoy.yaml.j2``."""

    spiffe_id: str
    trust_domain: str
    agent_socket_path: str
    admin_port: int = 9901
    listener_port: int = 8443


class ProcessContext(TemplateContext):
    """Values substituted into a process block template."""

    command: str


class InstallationTarget(BaseModel):
    """A single file copy from the dependency cache into the output tree."""

    source: Path
    destination: Path
