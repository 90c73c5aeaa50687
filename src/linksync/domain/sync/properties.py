"""Attribute mappings applied from a source record onto a target record."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from .errors import HookError

if TYPE_CHECKING:
    from linksync.domain.ports import Hook

PATH_SEPARATOR: Final[str] = "/"

_UNSET: Final[Any] = object()


def parse_path(path: str) -> tuple[str, ...]:
    """Split ``"a/b"`` or ``"/a/b"`` into its segments."""

    segments = tuple(segment for segment in path.split(PATH_SEPARATOR) if segment)
    if not segments:
        raise ValueError(f"Empty attribute path: {path!r}")
    return segments


def get_path(record: Mapping[str, Any], segments: tuple[str, ...]) -> Any:
    current: Any = record
    for segment in segments:
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current


def set_path(record: MutableMapping[str, Any], segments: tuple[str, ...], value: Any) -> None:
    current: MutableMapping[str, Any] = record
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


@dataclass(frozen=True, slots=True)
class PropertyMapping:
    """Copy or compute one target attribute from the source record.

    Without ``source`` the whole source record is the input value. ``transform``
    receives the input as ``{"source": value}``; ``default`` replaces a ``None``
    result when configured.
    """

    target: str
    source: str | None = None
    transform: Hook | None = None
    default: Any = _UNSET

    def __post_init__(self) -> None:
        parse_path(self.target)
        if self.source is not None:
            parse_path(self.source)

    @property
    def has_default(self) -> bool:
        return self.default is not _UNSET

    def apply(self, source: Mapping[str, Any], target: MutableMapping[str, Any]) -> None:
        value: Any = source if self.source is None else get_path(source, parse_path(self.source))
        if self.transform is not None:
            try:
                value = self.transform({"source": value})
            except Exception as exc:
                raise HookError(f"Transform for property {self.target!r} failed") from exc
        if value is None and self.has_default:
            value = self.default
        set_path(target, parse_path(self.target), value)


def apply_mappings(
    properties: tuple[PropertyMapping, ...],
    source: Mapping[str, Any],
    target: MutableMapping[str, Any],
) -> None:
    for property_mapping in properties:
        property_mapping.apply(source, target)
