"""Supply pipeline error taxonomy.

Every failure the pipeline can report derives from ``SupplyError``.
``BindingUnavailableError`` is the only one recovered internally (the
resolver falls back to the environment); everything else propagates to the
supplier, which tags it with the failing stage and aborts the run.
"""

from __future__ import annotations

from pathlib import Path

from spirepack.supply.models.enums import Stage


class SupplyError(Exception):
    """Base class for all supply pipeline failures."""


class MissingParameterError(SupplyError, LookupError):
    """A required parameter was found in neither the binding nor the environment."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Required parameter '{key}' not found in service binding or environment")


class BindingUnavailableError(SupplyError, LookupError):
    """The service binding document is missing or malformed."""

    def __init__(self, variable: str, reason: str) -> None:
        self.variable = variable
        self.reason = reason
        super().__init__(f"Service binding '{variable}' unavailable: {reason}")


class InstallFailedError(SupplyError):
    """Copying an artifact into the output tree failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not install '{path}': {reason}")


class TemplateError(SupplyError):
    """A template is missing or malformed.  Indicates a packaging defect."""

    def __init__(self, template: str, reason: str) -> None:
        self.template = template
        super().__init__(f"Template '{template}' is unusable: {reason}")


class RenderError(SupplyError):
    """A rendered document could not be written to its destination."""

    def __init__(self, destination: Path, reason: str) -> None:
        self.destination = destination
        super().__init__(f"Could not write '{destination}': {reason}")


class SetupError(SupplyError):
    """Auxiliary setup (override document, manifest, logs directory) failed."""


class StageFailedError(SupplyError):
    """A pipeline stage failed; ``__cause__`` holds the underlying error."""

    def __init__(self, stage: Stage, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")
