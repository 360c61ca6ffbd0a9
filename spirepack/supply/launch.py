"""Launch descriptor assembly.

``launch.yml`` tells the platform which sidecar processes to start next to
the application.  It is written once per build, entry by entry, straight
into the open file: a literal header, then one block per process rendered
from its own template.

    ---
    processes:
    - type: "spire-agent"
      command: "/home/vcap/deps/0/bin/spire-agent run -config ..."
      ...
    - type: "envoy"                      (proxy enabled only)
      command: "/home/vcap/deps/0/bin/envoy -c ... --base-id 4242"
      ...

The agent entry is always first.  The proxy entry carries a random base id
so Envoy instances on a shared host do not collide; the choice is
best-effort and not coordinated with other instances.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from loguru import logger

from spirepack.supply.errors import RenderError
from spirepack.supply.layout import AGENT_BINARY, PROXY_BINARY
from spirepack.supply.models.context import ProcessContext
from spirepack.supply.models.enums import ProcessType
from spirepack.supply.models.launch import LaunchDescriptor, LaunchDocument, ProcessEntry

if TYPE_CHECKING:
    from typing import IO

    from spirepack.supply.layout import BuildLayout
    from spirepack.supply.renderer import ConfigRenderer

LAUNCH_HEADER = "---\nprocesses:\n"
DEFAULT_BASE_ID_LIMIT = 65000

PROCESS_TEMPLATES: dict[ProcessType, str] = {
    ProcessType.AGENT: "spire-agent-process.yml.j2",
    ProcessType.PROXY: "envoy-process.yml.j2",
}


class LaunchDescriptorAssembler:
    """Writes ``launch.yml`` for one ``BuildLayout``."""

    def __init__(
        self,
        renderer: ConfigRenderer,
        layout: BuildLayout,
        *,
        rng: random.Random | None = None,
        base_id_limit: int = DEFAULT_BASE_ID_LIMIT,
    ) -> None:
        if base_id_limit < 2:
            raise ValueError(f"base_id_limit must be at least 2, got {base_id_limit}")
        self._renderer = renderer
        self._layout = layout
        self._rng = rng or random.Random()  # noqa: S311
        self._base_id_limit = base_id_limit

    def assemble(self, *, proxy_enabled: bool) -> LaunchDescriptor:
        """Write ``launch.yml`` and describe what was written."""
        path = self._layout.launch_path
        descriptor = LaunchDescriptor(path=path)

        # Templates load before the file opens; a missing one writes nothing.
        entries = [self.agent_entry()]
        if proxy_enabled:
            entries.append(self.proxy_entry())
        for entry in entries:
            self._renderer.get_template(PROCESS_TEMPLATES[entry.name])

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as fp:
                fp.write(LAUNCH_HEADER)
                for entry in entries:
                    self._write_entry(entry, fp)
                    descriptor.processes.append(entry)
        except OSError as e:
            raise RenderError(path, e.strerror or str(e)) from e

        logger.info("Launch descriptor {}: {}", path, ", ".join(descriptor.names))
        return descriptor

    # -- Entries ---------------------------------------------------------------

    def agent_entry(self) -> ProcessEntry:
        binary = self._layout.runtime_path(self._layout.binary_path(AGENT_BINARY))
        conf = self._layout.runtime_path(self._layout.agent_conf_path)
        return ProcessEntry(
            name=ProcessType.AGENT,
            index=self._layout.deps_idx,
            command=f"{binary} run -config {conf}",
        )

    def proxy_entry(self) -> ProcessEntry:
        base_id = self.choose_base_id()
        binary = self._layout.runtime_path(self._layout.binary_path(PROXY_BINARY))
        conf = self._layout.runtime_path(self._layout.proxy_conf_path)
        return ProcessEntry(
            name=ProcessType.PROXY,
            index=self._layout.deps_idx,
            command=f"{binary} -c {conf} --base-id {base_id}",
            base_id=base_id,
        )

    def choose_base_id(self) -> int:
        """Pick a base id in ``[1, limit)`` -- never zero, Envoy's default."""
        return self._rng.randrange(1, self._base_id_limit)

    def _write_entry(self, entry: ProcessEntry, fp: IO[str]) -> None:
        self._renderer.stream(PROCESS_TEMPLATES[entry.name], ProcessContext(command=entry.command), fp)


def read_launch_descriptor(path: Path) -> LaunchDocument:
    """Parse a written ``launch.yml``."""
    with path.open(encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    return LaunchDocument.model_validate(data)
