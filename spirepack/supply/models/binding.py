"""Service binding document models.

The hosting platform exposes bound services as a JSON document in a single
environment variable.  Only the ``user_provided`` collection is consulted::

    {"user_provided": [{"credentials": {"SPIRE_SERVER_ADDRESS": "10.0.0.5"}}]}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProvidedEntry(BaseModel):
    """A single user-provided service instance."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    credentials: dict[str, Any] = Field(default_factory=dict)

    @field_validator("credentials", mode="before")
    @classmethod
    def _null_credentials(cls, value: object) -> object:
        return {} if value is None else value

    def lookup(self, key: str) -> str | None:
        """Exact key, then the lower-cased key, then any key equal ignoring case.

        Blank and non-scalar values do not match.
        """
        folded = key.lower()
        candidates = [key, folded]
        candidates += [k for k in self.credentials if k.lower() == folded and k not in candidates]
        for candidate in candidates:
            if candidate not in self.credentials:
                continue
            value = self.credentials[candidate]
            if not isinstance(value, str | int | float):
                continue
            text = str(value).strip()
            if text:
                return text
        return None


class ServiceBinding(BaseModel):
    """Parsed service binding document."""

    model_config = ConfigDict(extra="ignore")

    user_provided: list[UserProvidedEntry] = Field(default_factory=list)

    @field_validator("user_provided", mode="before")
    @classmethod
    def _wrap_single_entry(cls, value: object) -> object:
        # Some platforms emit a bare object instead of a list.
        if isinstance(value, dict):
            return [value]
        if value is None:
            return []
        return value

    def lookup(self, key: str) -> str | None:
        """Return the value from the first entry that carries ``key``."""
        for entry in self.user_provided:
            value = entry.lookup(key)
            if value is not None:
                return value
        return None
