"""Record helpers.

Records are plain attribute maps shared with the object store. Two attributes are
reserved: ``_id`` identifies the record within its collection and ``_rev`` carries
the opaque revision token used for optimistic updates.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

type Record = dict[str, Any]

ID_ATTRIBUTE: Final[str] = "_id"
REVISION_ATTRIBUTE: Final[str] = "_rev"
RESERVED_PREFIX: Final[str] = "_"


def optional_record_id(record: Mapping[str, Any] | None) -> str | None:
    if record is None:
        return None
    value = record.get(ID_ATTRIBUTE)
    return value if isinstance(value, str) else None


def record_revision(record: Mapping[str, Any]) -> str | None:
    value = record.get(REVISION_ATTRIBUTE)
    return None if value is None else str(value)


def has_non_reserved_attribute(record: Mapping[str, Any]) -> bool:
    """Return whether ``record`` carries anything besides reserved metadata."""

    return any(not key.startswith(RESERVED_PREFIX) for key in record)


def qualified_id(collection: str, local_id: str | None) -> str:
    if local_id is None:
        return collection
    return f"{collection}/{local_id}"


def local_id_in(collection: str, object_id: str) -> str | None:
    """Return the id local to ``collection`` or ``None`` if ``object_id`` lies elsewhere."""

    prefix = f"{collection}/"
    if object_id.startswith(prefix) and len(object_id) > len(prefix):
        return object_id[len(prefix) :]
    return None
