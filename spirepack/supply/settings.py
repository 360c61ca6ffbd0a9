"""Pipeline configuration loaded from SPIREPACK_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent


def default_buildpack_dir() -> Path:
    """Locate the buildpack root holding ``manifest.yml`` and ``templates/``.

    An installed wheel carries them under ``spirepack/_buildpack``; a source
    checkout keeps them at the repository root.
    """
    bundled = _PACKAGE_ROOT / "_buildpack"
    if (bundled / "manifest.yml").is_file():
        return bundled
    return _PACKAGE_ROOT.parent


class SupplySettings(BaseSettings):
    """spirepack settings.

    All fields are read from environment variables with the ``SPIREPACK_``
    prefix.  For example, ``SPIREPACK_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    SPIRE parameters (server address, trust domain, ...) are **not** managed
    here -- they come from the service binding or the plain environment via
    the parameter resolver.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPIREPACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Inputs ----------------------------------------------------------------
    binding_variable: str = "VCAP_SERVICES"
    """Environment variable carrying the service binding JSON document."""

    buildpack_dir: Path | None = None
    """Buildpack root (manifest, templates, binaries).  Auto-detected if unset."""

    # -- Runtime layout --------------------------------------------------------
    runtime_deps_dir: str = "/home/vcap/deps"
    """Where the deps directory is mounted inside the running container."""

    agent_socket_path: str = "/tmp/spire-agent/public/api.sock"  # noqa: S108
    trust_bundle_name: str = "bootstrap.crt"

    # -- Proxy -----------------------------------------------------------------
    proxy_base_id_limit: int = Field(default=65000, gt=1)
    """Exclusive upper bound for the randomly chosen proxy base id."""

    def resolve_buildpack_dir(self) -> Path:
        return self.buildpack_dir if self.buildpack_dir is not None else default_buildpack_dir()


@lru_cache(maxsize=1)
def get_settings() -> SupplySettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests after overriding env vars.
    """
    return SupplySettings()
