"""Parameter resolver -- looks up SPIRE parameters from an ordered chain of
sources.

Resolution order:

1. The service binding document (``VCAP_SERVICES``): the first
   ``user_provided`` entry whose credentials carry the key wins; the exact
   key is tried before its lower-cased form.
2. The process environment: the value is trimmed, blank counts as absent.

Both sources read from an ``EnvironmentSnapshot`` captured once when the
pipeline starts, never from ``os.environ`` directly.  The binding document
is parsed again on every lookup, so a malformed document never leaves
cached state behind.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from spirepack.supply.errors import BindingUnavailableError, MissingParameterError
from spirepack.supply.models.binding import ServiceBinding

logger = logging.getLogger(__name__)

DEFAULT_BINDING_VARIABLE = "VCAP_SERVICES"


# ---------------------------------------------------------------------------
# Environment snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Read-only copy of the process environment."""

    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @classmethod
    def capture(cls) -> EnvironmentSnapshot:
        return cls(dict(os.environ))

    def get(self, key: str) -> str | None:
        return self.variables.get(key)


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


@runtime_checkable
class ParameterSource(Protocol):
    """A place parameters can be looked up from."""

    name: str

    def try_resolve(self, key: str) -> str | None:
        """Return the value for ``key``, or ``None`` if this source lacks it."""
        ...


class ServiceBindingSource:
    """Looks parameters up in the service binding JSON document."""

    name = "service-binding"

    def __init__(self, snapshot: EnvironmentSnapshot, variable: str = DEFAULT_BINDING_VARIABLE) -> None:
        self._snapshot = snapshot
        self._variable = variable

    def load(self) -> ServiceBinding:
        """Parse the binding document.  Raises ``BindingUnavailableError``."""
        raw = (self._snapshot.get(self._variable) or "").strip()
        if not raw:
            raise BindingUnavailableError(self._variable, "variable is not set")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise BindingUnavailableError(self._variable, f"invalid JSON ({e.msg})") from e
        if not isinstance(data, dict):
            raise BindingUnavailableError(self._variable, "document is not a JSON object")
        try:
            return ServiceBinding.model_validate(data)
        except ValidationError as e:
            raise BindingUnavailableError(self._variable, f"unexpected structure ({e.error_count()} errors)") from e

    def try_resolve(self, key: str) -> str | None:
        try:
            binding = self.load()
        except BindingUnavailableError as e:
            logger.debug("%s; falling back for %s", e, key)
            return None
        return binding.lookup(key)


class EnvironmentSource:
    """Looks parameters up in plain environment variables."""

    name = "environment"

    def __init__(self, snapshot: EnvironmentSnapshot) -> None:
        self._snapshot = snapshot

    def try_resolve(self, key: str) -> str | None:
        value = (self._snapshot.get(key) or "").strip()
        return value or None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class ParameterResolver:
    """Ordered chain of ``ParameterSource``; the first hit wins."""

    def __init__(self, sources: Sequence[ParameterSource]) -> None:
        self.sources = list(sources)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: EnvironmentSnapshot,
        binding_variable: str = DEFAULT_BINDING_VARIABLE,
    ) -> ParameterResolver:
        """Default chain: service binding, then environment."""
        return cls([ServiceBindingSource(snapshot, binding_variable), EnvironmentSource(snapshot)])

    def resolve(self, key: str) -> str | None:
        for source in self.sources:
            value = source.try_resolve(key)
            if value is not None:
                logger.debug("Resolved %s from %s", key, source.name)
                return value
        return None

    def resolve_or_default(self, key: str, default: str) -> str:
        value = self.resolve(key)
        return default if value is None else value

    def resolve_required(self, key: str) -> str:
        """Resolve ``key`` or raise ``MissingParameterError``."""
        value = self.resolve(key)
        if value is None:
            raise MissingParameterError(key)
        return value

    def resolve_flag(self, key: str) -> bool:
        """``True`` only when the value is ``"true"`` in any letter case."""
        value = self.resolve(key)
        return value is not None and value.lower() == "true"
