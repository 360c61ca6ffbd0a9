"""Shared enumerations used across the supply pipeline."""

from __future__ import annotations

from enum import StrEnum

# -- Parameters --------------------------------------------------------------


class Parameter(StrEnum):
    """Names resolvable from the service binding or the environment."""

    SERVER_ADDRESS = "SPIRE_SERVER_ADDRESS"
    SERVER_PORT = "SPIRE_SERVER_PORT"
    TRUST_DOMAIN = "SPIRE_TRUST_DOMAIN"
    APP_SPIFFE_ID = "SPIRE_APP_SPIFFE_ID"
    PROXY_ENABLED = "SPIRE_PROXY_ENABLED"
    CREDENTIAL_STORE_ENABLED = "SPIRE_CREDENTIAL_STORE_ENABLED"
    CREDENTIAL_STORE_REGION = "SPIRE_CREDENTIAL_STORE_REGION"
    AGENT_LOG_LEVEL = "SPIRE_AGENT_LOG_LEVEL"


# -- Pipeline ----------------------------------------------------------------


class Stage(StrEnum):
    """Supply stages, declared in execution order."""

    INSTALL_CERTIFICATES = "install-certificates"
    RENDER_AGENT_CONF = "render-agent-conf"
    INSTALL_AGENT = "install-agent"
    INSTALL_PLUGINS = "install-plugins"
    ASSEMBLE_LAUNCH = "assemble-launch"
    SETUP = "setup"


# -- Processes ---------------------------------------------------------------


class ProcessType(StrEnum):
    """Sidecar process types written to the launch descriptor."""

    AGENT = "spire-agent"
    PROXY = "envoy"
