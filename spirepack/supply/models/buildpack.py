"""Buildpack-level documents: the user override and the manifest."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SpireAgentConfig(BaseModel):
    version: str | None = None

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_number(cls, value: object) -> object:
        # YAML reads `version: 1.9` as a float
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


class BuildpackConfig(BaseModel):
    """Optional ``buildpack.yml`` supplied in the application directory."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    spire_agent: SpireAgentConfig = Field(default_factory=SpireAgentConfig, alias="spire-agent")
    dist: str | None = None


class ManifestDocument(BaseModel):
    """The subset of ``manifest.yml`` the pipeline reads."""

    model_config = ConfigDict(extra="ignore")

    version_lines: dict[str, dict[str, str]] = Field(default_factory=dict)

    def resolve_version(self, dependency: str, line: str) -> str | None:
        """Map a version line such as ``1.9.x`` to the concrete version.

        A concrete version already listed in the lines maps to itself.
        """
        lines = self.version_lines.get(dependency, {})
        if line in lines:
            return lines[line]
        if line in lines.values():
            return line
        return None
