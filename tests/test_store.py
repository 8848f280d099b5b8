import pytest
from sqlalchemy.exc import OperationalError

from lessonbook.errors import StoreConflict, StoreUnavailable
from lessonbook.store import LESSONS


def test_unwritten_collection_is_empty(store):
    assert store.get(LESSONS) == ([], 0)


def test_set_bumps_version(store):
    assert store.set(LESSONS, [{"id": "a"}], 0) == 1
    assert store.set(LESSONS, [{"id": "a"}, {"id": "b"}], 1) == 2
    assert store.get(LESSONS) == ([{"id": "a"}, {"id": "b"}], 2)


def test_stale_version_is_rejected(store):
    store.set(LESSONS, [{"id": "a"}], 0)
    store.set(LESSONS, [{"id": "b"}], 1)

    with pytest.raises(StoreConflict):
        store.set(LESSONS, [{"id": "stale"}], 1)
    assert store.read(LESSONS) == [{"id": "b"}]


def test_concurrent_create_is_rejected(store):
    store.set(LESSONS, [{"id": "first"}], 0)
    with pytest.raises(StoreConflict):
        store.set(LESSONS, [{"id": "second"}], 0)
    assert store.read(LESSONS) == [{"id": "first"}]


def test_mutate_rereads_after_conflict(store):
    store.set(LESSONS, [{"id": "a"}], 0)
    calls = []

    def compute(current):
        calls.append(list(current))
        if len(calls) == 1:
            # another request commits between our read and our write
            store.set(LESSONS, current + [{"id": "other"}], 1)
        return "done", current + [{"id": "mine"}]

    assert store.mutate(LESSONS, compute) == "done"
    assert len(calls) == 2
    assert calls[1] == [{"id": "a"}, {"id": "other"}]
    assert store.read(LESSONS) == [{"id": "a"}, {"id": "other"}, {"id": "mine"}]


def test_mutate_gives_up_after_attempts(store):
    store.set(LESSONS, [], 0)

    def compute(current):
        _, version = store.get(LESSONS)
        store.set(LESSONS, current, version)
        return None, current + [{"id": "x"}]

    with pytest.raises(StoreConflict):
        store.mutate(LESSONS, compute, attempts=2)


def test_mutate_without_changes_does_not_write(store):
    store.set(LESSONS, [{"id": "a"}], 0)
    assert store.mutate(LESSONS, lambda current: (len(current), None)) == 1
    assert store.get(LESSONS)[1] == 1


def test_errors_in_compute_abort_before_write(store):
    store.set(LESSONS, [{"id": "a"}], 0)

    def compute(current):
        raise LookupError("nope")

    with pytest.raises(LookupError):
        store.mutate(LESSONS, compute)
    assert store.get(LESSONS) == ([{"id": "a"}], 1)


def test_database_failure_surfaces_as_unavailable(store, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(store.db, "execute", broken)
    with pytest.raises(StoreUnavailable):
        store.get(LESSONS)
