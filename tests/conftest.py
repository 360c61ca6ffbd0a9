"""Shared test fixtures: a fake buildpack tree and a fresh output tree.

The buildpack fixture copies the real ``templates/`` and ``manifest.yml``
from the repository root and adds stand-in binaries, plugins and
certificates, so every test exercises the shipped templates.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from spirepack.supply.layout import BuildLayout
from spirepack.supply.resolver import EnvironmentSnapshot, ParameterResolver
from spirepack.supply.settings import SupplySettings

REPO_ROOT = Path(__file__).resolve().parent.parent

BINDING = (
    '{"user_provided":[{"credentials":{'
    '"SPIRE_SERVER_ADDRESS":"10.0.0.5",'
    '"SPIRE_SERVER_PORT":"8081",'
    '"SPIRE_TRUST_DOMAIN":"example.org"}}]}'
)


def _write(path: Path, content: str | bytes, mode: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    if mode is not None:
        path.chmod(mode)
    return path


@pytest.fixture
def buildpack_dir(tmp_path: Path) -> Path:
    """A buildpack root with real templates and fake artifacts."""
    root = tmp_path / "buildpack"
    shutil.copytree(REPO_ROOT / "templates", root / "templates")
    shutil.copy(REPO_ROOT / "manifest.yml", root / "manifest.yml")

    _write(root / "binaries" / "spire-agent", b"\x7fELF spire-agent", mode=0o755)
    _write(root / "binaries" / "envoy", b"\x7fELF envoy", mode=0o755)
    _write(root / "binaries" / "plugins" / "unix-attestor", b"plugin-a", mode=0o755)
    _write(root / "binaries" / "plugins" / "svidstore" / "svidstore-aws", b"plugin-b", mode=0o755)

    _write(root / "certificates" / "bootstrap.crt", "-----BEGIN CERTIFICATE-----\nroot\n")
    _write(root / "certificates" / "intermediate" / "ca.pem", "-----BEGIN CERTIFICATE-----\nint\n")
    return root


@pytest.fixture
def settings(buildpack_dir: Path) -> SupplySettings:
    return SupplySettings(_env_file=None, buildpack_dir=buildpack_dir)


@pytest.fixture
def layout(tmp_path: Path, settings: SupplySettings) -> BuildLayout:
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    return BuildLayout.from_settings(
        settings,
        build_dir=build_dir,
        cache_dir=tmp_path / "cache",
        deps_dir=tmp_path / "deps",
        deps_idx="0",
    )


@pytest.fixture
def make_resolver() -> Callable[..., ParameterResolver]:
    """Build a resolver over an explicit environment (never ``os.environ``)."""

    def _make(env: dict[str, str] | None = None, binding: str | None = None) -> ParameterResolver:
        variables = dict(env or {})
        if binding is not None:
            variables["VCAP_SERVICES"] = binding
        return ParameterResolver.from_snapshot(EnvironmentSnapshot(variables))

    return _make


@pytest.fixture
def binding() -> str:
    """Binding carrying the server address, port and trust domain."""
    return BINDING
