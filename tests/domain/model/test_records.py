from __future__ import annotations

from linksync.domain.model import (
    has_non_reserved_attribute,
    local_id_in,
    optional_record_id,
    qualified_id,
    record_revision,
)


def test_optional_record_id_requires_string_id() -> None:
    assert optional_record_id({"_id": "a"}) == "a"
    assert optional_record_id({"_id": 3}) is None
    assert optional_record_id(None) is None


def test_record_revision_is_stringified() -> None:
    assert record_revision({"_rev": 4}) == "4"
    assert record_revision({}) is None


def test_reserved_attributes_do_not_count_as_content() -> None:
    assert not has_non_reserved_attribute({"_id": "a", "_rev": "0"})
    assert has_non_reserved_attribute({"_id": "a", "email": "ada@example.org"})


def test_qualified_ids() -> None:
    assert qualified_id("managed/accounts", "a") == "managed/accounts/a"
    assert qualified_id("managed/accounts", None) == "managed/accounts"


def test_local_id_in_requires_collection_prefix() -> None:
    assert local_id_in("system/users", "system/users/1") == "1"
    assert local_id_in("system/users", "system/users/") is None
    assert local_id_in("system/users", "system/usersx/1") is None
    assert local_id_in("system/users", "managed/accounts/1") is None
