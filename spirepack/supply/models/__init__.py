"""Data models for the supply pipeline."""

from spirepack.supply.models.binding import ServiceBinding, UserProvidedEntry
from spirepack.supply.models.buildpack import BuildpackConfig, ManifestDocument, SpireAgentConfig
from spirepack.supply.models.context import (
    AgentConfContext,
    InstallationTarget,
    ProcessContext,
    ProxyConfContext,
    TemplateContext,
)
from spirepack.supply.models.enums import Parameter, ProcessType, Stage
from spirepack.supply.models.launch import LaunchDescriptor, LaunchDocument, LaunchProcess, ProcessEntry

__all__ = [
    # Contexts
    "AgentConfContext",
    # Buildpack documents
    "BuildpackConfig",
    "InstallationTarget",
    # Launch
    "LaunchDescriptor",
    "LaunchDocument",
    "LaunchProcess",
    "ManifestDocument",
    # Enums
    "Parameter",
    "ProcessContext",
    "ProcessEntry",
    "ProcessType",
    "ProxyConfContext",
    # Binding
    "ServiceBinding",
    "SpireAgentConfig",
    "Stage",
    "TemplateContext",
    "UserProvidedEntry",
]
