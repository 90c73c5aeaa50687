"""Pydantic models describing declarative mapping configuration.

Hook fields (``validSource``, ``correlationQuery``, ``onCreate``, ...) hold opaque
expressions. They are handed to the configured script evaluator once, when the
mapping is built, and never interpreted here.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from linksync.domain.model import Action, Situation

from .errors import SynchronizationError

# string hooks are "module:attribute" references
_HOOK_REFERENCE = re.compile(r"[^\s:]+:[^\s:]+")


class MappingConfigError(SynchronizationError):
    """Raised when a mapping document cannot be loaded."""


class MappingBaseModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


class PropertyConfig(MappingBaseModel):
    target: str = Field(min_length=1)
    source: str | None = None
    script: Any = None
    default: Any = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


class PolicyConfig(MappingBaseModel):
    situation: Situation
    action: Any

    @field_validator("situation", mode="before")
    @classmethod
    def _normalize_situation(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("action", mode="before")
    @classmethod
    def _parse_fixed_action(cls, value: object) -> object:
        if isinstance(value, str):
            name = value.strip().upper()
            if name in Action.__members__:
                return Action(name)
            if not _HOOK_REFERENCE.fullmatch(value):
                raise ValueError(f"unknown policy action {value!r}")
        if value is None:
            raise ValueError("policy action is required")
        return value


class MappingConfig(MappingBaseModel):
    name: str = Field(min_length=1)
    links: str | None = None
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    valid_source: Any = Field(default=None, alias="validSource")
    valid_target: Any = Field(default=None, alias="validTarget")
    correlation_query: Any = Field(default=None, alias="correlationQuery")
    properties: tuple[PropertyConfig, ...] = ()
    policies: tuple[PolicyConfig, ...] = ()
    on_create: Any = Field(default=None, alias="onCreate")
    on_update: Any = Field(default=None, alias="onUpdate")
    on_delete: Any = Field(default=None, alias="onDelete")
    on_link: Any = Field(default=None, alias="onLink")
    on_unlink: Any = Field(default=None, alias="onUnlink")
    result: Any = None

    @field_validator("source", "target")
    @classmethod
    def _strip_collection(cls, value: str) -> str:
        stripped = value.strip().strip("/")
        if not stripped:
            raise ValueError("collection name must not be blank")
        return stripped

    @property
    def link_set(self) -> str:
        return self.links or self.name


class SyncDocument(MappingBaseModel):
    mappings: tuple[MappingConfig, ...] = ()

    @model_validator(mode="after")
    def _unique_names(self) -> SyncDocument:
        seen: set[str] = set()
        for mapping in self.mappings:
            if mapping.name in seen:
                raise ValueError(f"duplicate mapping name: {mapping.name}")
            seen.add(mapping.name)
        return self


def load_sync_document(path: Path) -> SyncDocument:
    """Parse a JSON mapping document such as ``{"mappings": [...]}``."""

    try:
        payload = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MappingConfigError(f"Cannot read mapping document {path}") from exc
    try:
        return SyncDocument.model_validate_json(payload)
    except ValidationError as exc:
        raise MappingConfigError(f"Invalid mapping document {path}") from exc
