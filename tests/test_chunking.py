import pytest

from plenpilot_api.app.core.db import MAX_IN_QUERY_SIZE, chunked, fetch_in_chunks, select_by_ids
from plenpilot_api.app.services.user_service import UserService


def test_chunked_splits_into_groups_of_ten():
    assert [len(c) for c in chunked(list(range(23)))] == [10, 10, 3]
    assert chunked([]) == []


def test_twenty_three_ids_issue_three_lookups(run):
    calls = []

    async def fetch(ids):
        calls.append(list(ids))
        return [i * 10 for i in ids]

    ids = list(range(1, 24))
    result = run(fetch_in_chunks(ids + ids[:5], fetch))
    assert [len(c) for c in calls] == [10, 10, 3]
    assert all(len(c) <= MAX_IN_QUERY_SIZE for c in calls)
    assert result == [i * 10 for i in ids]


def test_no_ids_no_lookups(run):
    async def fetch(ids):
        raise AssertionError("should not be called")

    assert run(fetch_in_chunks([], fetch)) == []


def test_single_lookup_rejects_oversized_chunk():
    with pytest.raises(ValueError):
        select_by_ids("users", "id", list(range(11)))


def test_users_fetched_in_chunks_are_merged(run, make_user, monkeypatch):
    users = [make_user() for _ in range(23)]
    chunk_sizes = []
    original = UserService._fetch_users_chunk.__func__

    async def spy(cls, ids):
        chunk_sizes.append(len(ids))
        return await original(cls, ids)

    monkeypatch.setattr(UserService, "_fetch_users_chunk", classmethod(spy))
    found = run(UserService.get_users_map([u.id for u in users] + [9999]))
    assert chunk_sizes == [10, 10, 4]
    assert set(found) == {u.id for u in users}
