"""Counters and timestamps for one reconciliation pass."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from linksync.domain.model import Situation


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _millis(start: datetime | None, end: datetime | None) -> int | None:
    if start is None or end is None:
        return None
    return int((end - start).total_seconds() * 1000)


@dataclass(slots=True)
class ReconStats:
    """Statistics for one side (or the whole mapping) of a reconciliation pass."""

    recon_id: str | None
    name: str
    entries: int = 0
    not_valid: int = 0
    situations: Counter[Situation] = field(default_factory=Counter["Situation"])
    started: datetime = field(default_factory=_now)
    ended: datetime | None = None
    all_ids_started: datetime | None = None
    all_ids_ended: datetime | None = None

    def start_all_ids(self) -> None:
        self.all_ids_started = _now()

    def end_all_ids(self) -> None:
        self.all_ids_ended = _now()

    def add_entry(self) -> None:
        self.entries += 1

    def add_situation(self, object_id: str | None, situation: Situation | None) -> None:
        _ = object_id
        if situation is not None:
            self.situations[situation] += 1

    def add_not_valid(self, object_id: str | None) -> None:
        _ = object_id
        self.not_valid += 1

    def end(self) -> None:
        if self.ended is None:
            self.ended = _now()

    @property
    def finished(self) -> bool:
        return self.ended is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "reconId": self.recon_id,
            "name": self.name,
            "entries": self.entries,
            "notValid": self.not_valid,
            "situations": {str(situation): count for situation, count in self.situations.items()},
            "started": self.started.isoformat(),
            "ended": None if self.ended is None else self.ended.isoformat(),
            "duration": _millis(self.started, self.ended),
            "allIdsStarted": None if self.all_ids_started is None else self.all_ids_started.isoformat(),
            "allIdsEnded": None if self.all_ids_ended is None else self.all_ids_ended.isoformat(),
            "allIdsDuration": _millis(self.all_ids_started, self.all_ids_ended),
        }
