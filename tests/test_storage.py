import pytest

from montepi.core import AccumulatorState, Geometry, estimate
from montepi.storage_orm import Storage


@pytest.fixture
def storage(tmp_path):
    s = Storage(str(tmp_path / "db" / "runs.db"))
    yield s
    s.close()


def record(storage, total, inside):
    state = AccumulatorState(total, inside)
    return storage.record_run(state, estimate(state), Geometry())


def test_creates_parent_directory(tmp_path, storage):
    assert (tmp_path / "db").is_dir()


def test_record_and_fetch(storage):
    first = record(storage, 10, 8)
    second = record(storage, 100, 79)
    assert second != first

    runs = storage.fetch_runs()
    assert [r["total"] for r in runs] == [100, 10]
    latest = runs[0]
    assert latest["inside"] == 79
    assert latest["pi_estimate"] == pytest.approx(3.16)
    assert latest["z_score"] == pytest.approx(estimate(AccumulatorState(100, 79)).z_score)
    assert latest["square_size"] == 500
    assert latest["offset"] == 50
    assert latest["ts"].endswith("+00:00")

    earliest = storage.fetch_runs(order="earliest", n=1)
    assert [r["total"] for r in earliest] == [10]


def test_delete_runs(storage):
    record(storage, 5, 4)
    record(storage, 6, 5)
    assert storage.delete_runs() == 2
    assert storage.fetch_runs() == []
    assert storage.delete_runs() == 0


def test_reopen_keeps_history(tmp_path):
    path = str(tmp_path / "runs.db")
    s = Storage(path)
    record(s, 3, 2)
    s.close()

    s = Storage(path)
    try:
        assert [r["total"] for r in s.fetch_runs()] == [3]
    finally:
        s.close()
