from __future__ import annotations

from linksync.domain.model import Situation
from linksync.domain.sync import ReconStats


def test_counts_entries_situations_and_invalid_records() -> None:
    stats = ReconStats("r1", "system/users")

    stats.add_entry()
    stats.add_entry()
    stats.add_situation("1", Situation.ABSENT)
    stats.add_situation("2", None)
    stats.add_not_valid("2")

    assert stats.entries == 2
    assert stats.not_valid == 1
    assert stats.situations == {Situation.ABSENT: 1}


def test_end_is_recorded_once() -> None:
    stats = ReconStats("r1", "system/users")
    assert not stats.finished

    stats.end()
    first = stats.ended
    stats.end()

    assert stats.finished
    assert stats.ended == first


def test_as_dict_reports_durations() -> None:
    stats = ReconStats("r1", "system/users")
    stats.start_all_ids()
    stats.end_all_ids()
    stats.add_situation("1", Situation.CONFIRMED)
    stats.end()

    summary = stats.as_dict()

    assert summary["reconId"] == "r1"
    assert summary["situations"] == {"CONFIRMED": 1}
    assert summary["duration"] >= 0
    assert summary["allIdsDuration"] >= 0


def test_as_dict_of_running_pass_has_no_duration() -> None:
    summary = ReconStats(None, "global").as_dict()

    assert summary["ended"] is None
    assert summary["duration"] is None
    assert summary["allIdsStarted"] is None
