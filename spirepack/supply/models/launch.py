"""Launch descriptor models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from spirepack.supply.models.enums import ProcessType


class ProcessEntry(BaseModel):
    """One sidecar process the platform must start next to the app."""

    name: ProcessType
    index: str = Field(description="Dependency index of this buildpack layer")
    command: str
    base_id: int | None = Field(default=None, description="Proxy base id (proxy entries only)")


class LaunchDescriptor(BaseModel):
    """What was written to ``launch.yml``, in file order."""

    path: Path
    processes: list[ProcessEntry] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [p.name.value for p in self.processes]

    def get(self, name: ProcessType) -> ProcessEntry | None:
        for process in self.processes:
            if process.name == name:
                return process
        return None


class LaunchProcess(BaseModel):
    """A process block as read back from a written ``launch.yml``."""

    type: str
    command: str
    limits: dict[str, str] = Field(default_factory=dict)
    platforms: dict[str, dict[str, list[str]]] = Field(default_factory=dict)


class LaunchDocument(BaseModel):
    processes: list[LaunchProcess] = Field(default_factory=list)
