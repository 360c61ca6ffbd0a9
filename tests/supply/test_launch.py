"""Unit tests for launch descriptor assembly."""

from __future__ import annotations

import random
import re
from pathlib import Path

import pytest
from pydantic import ValidationError

from spirepack.supply.errors import RenderError, TemplateError
from spirepack.supply.launch import (
    LAUNCH_HEADER,
    LaunchDescriptorAssembler,
    read_launch_descriptor,
)
from spirepack.supply.layout import BuildLayout
from spirepack.supply.models.enums import ProcessType
from spirepack.supply.renderer import ConfigRenderer
from spirepack.supply.settings import SupplySettings


@pytest.fixture
def assembler(layout: BuildLayout) -> LaunchDescriptorAssembler:
    return LaunchDescriptorAssembler(ConfigRenderer(layout.templates_dir), layout, rng=random.Random(1234))


def test_agent_only(assembler: LaunchDescriptorAssembler, layout: BuildLayout) -> None:
    descriptor = assembler.assemble(proxy_enabled=False)

    assert descriptor.path == layout.dep_dir / "launch.yml"
    assert descriptor.names == ["spire-agent"]
    agent = descriptor.processes[0]
    assert agent.index == "0"
    assert agent.base_id is None
    assert agent.command == "/home/vcap/deps/0/bin/spire-agent run -config /home/vcap/deps/0/bin/agent.conf"

    document = read_launch_descriptor(descriptor.path)
    assert [p.type for p in document.processes] == ["spire-agent"]
    assert document.processes[0].command == agent.command
    assert document.processes[0].platforms == {"cloudfoundry": {"sidecar_for": ["web"]}}


def test_agent_then_proxy(assembler: LaunchDescriptorAssembler) -> None:
    descriptor = assembler.assemble(proxy_enabled=True)

    assert descriptor.names == ["spire-agent", "envoy"]
    proxy = descriptor.get(ProcessType.PROXY)
    assert proxy is not None
    assert proxy.index == "0"
    assert proxy.base_id is not None
    assert 0 < proxy.base_id < 65000
    assert proxy.command.endswith(f"--base-id {proxy.base_id}")
    assert "-c /home/vcap/deps/0/bin/envoy.yaml" in proxy.command

    document = read_launch_descriptor(descriptor.path)
    assert [p.type for p in document.processes] == ["spire-agent", "envoy"]
    written = re.search(r"--base-id (\d+)", document.processes[1].command)
    assert written is not None
    assert int(written.group(1)) == proxy.base_id


def test_header_is_literal(assembler: LaunchDescriptorAssembler) -> None:
    descriptor = assembler.assemble(proxy_enabled=True)
    text = descriptor.path.read_text()

    assert text.startswith(LAUNCH_HEADER)
    assert text.count("processes:") == 1
    assert text.count("- type:") == 2


def test_dependency_index_in_commands(tmp_path: Path, settings) -> None:
    layout = BuildLayout.from_settings(
        settings,
        build_dir=tmp_path / "build",
        cache_dir=tmp_path / "cache",
        deps_dir=tmp_path / "deps",
        deps_idx="3",
    )
    assembler = LaunchDescriptorAssembler(ConfigRenderer(layout.templates_dir), layout)

    descriptor = assembler.assemble(proxy_enabled=True)

    assert descriptor.path == tmp_path / "deps" / "3" / "launch.yml"
    for process in descriptor.processes:
        assert process.index == "3"
        assert "/home/vcap/deps/3/bin/" in process.command


def test_rewrite_replaces_previous_descriptor(assembler: LaunchDescriptorAssembler) -> None:
    assembler.assemble(proxy_enabled=True)
    descriptor = assembler.assemble(proxy_enabled=False)

    document = read_launch_descriptor(descriptor.path)
    assert [p.type for p in document.processes] == ["spire-agent"]


def test_base_id_range() -> None:
    class _Edges(random.Random):
        def __init__(self) -> None:
            super().__init__(0)
            self.bounds: list[tuple[int, int]] = []

        def randrange(self, start, stop=None, step=1):
            self.bounds.append((start, stop))
            return super().randrange(start, stop, step)

    rng = _Edges()
    layout = BuildLayout(
        build_dir=Path("/b"),
        cache_dir=Path("/c"),
        deps_dir=Path("/d"),
        deps_idx="0",
        buildpack_dir=Path("/bp"),
    )
    assembler = LaunchDescriptorAssembler(ConfigRenderer(Path("/bp/templates")), layout, rng=rng)

    values = {assembler.choose_base_id() for _ in range(200)}

    assert rng.bounds[0] == (1, 65000)
    assert all(0 < v < 65000 for v in values)
    assert len(values) > 1


def test_custom_base_id_limit() -> None:
    layout = BuildLayout(
        build_dir=Path("/b"),
        cache_dir=Path("/c"),
        deps_dir=Path("/d"),
        deps_idx="0",
        buildpack_dir=Path("/bp"),
    )
    assembler = LaunchDescriptorAssembler(ConfigRenderer(Path("/bp/templates")), layout, base_id_limit=10)

    assert all(1 <= assembler.choose_base_id() < 10 for _ in range(50))


@pytest.mark.parametrize("limit", [0, 1])
def test_base_id_limit_must_leave_a_choice(limit: int) -> None:
    with pytest.raises(ValidationError):
        SupplySettings(_env_file=None, proxy_base_id_limit=limit)

    layout = BuildLayout(
        build_dir=Path("/b"),
        cache_dir=Path("/c"),
        deps_dir=Path("/d"),
        deps_idx="0",
        buildpack_dir=Path("/bp"),
    )
    with pytest.raises(ValueError, match="base_id_limit"):
        LaunchDescriptorAssembler(ConfigRenderer(Path("/bp/templates")), layout, base_id_limit=limit)


def test_missing_process_template(layout: BuildLayout) -> None:
    (layout.templates_dir / "envoy-process.yml.j2").unlink()
    assembler = LaunchDescriptorAssembler(ConfigRenderer(layout.templates_dir), layout)

    with pytest.raises(TemplateError):
        assembler.assemble(proxy_enabled=True)

    # Nothing half-written.
    assert not layout.launch_path.exists()

    # The agent-only descriptor does not need the proxy template.
    assert assembler.assemble(proxy_enabled=False).names == ["spire-agent"]


def test_unwritable_descriptor(layout: BuildLayout) -> None:
    layout.deps_dir.mkdir(parents=True)
    layout.dep_dir.write_text("not a directory")
    assembler = LaunchDescriptorAssembler(ConfigRenderer(layout.templates_dir), layout)

    with pytest.raises(RenderError):
        assembler.assemble(proxy_enabled=False)
