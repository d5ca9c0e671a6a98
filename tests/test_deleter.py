"""Tests for the batched concurrent deleter."""

import threading
import time

import pytest

from refsweep.cleanup import BatchedConcurrentDeleter, delete_refs
from refsweep.cleanup.deleter import CANCELLED_MESSAGE, chunked
from refsweep.errors import GitUnavailableError
from refsweep.models import DeletionPolicy, RefItem, RefKind


def make_items(count: int, prefix: str = "feature") -> list[RefItem]:
    return [
        RefItem(
            name=f"{prefix}-{i:04d}",
            timestamp_unix=1_500_000_000 + i,
            timestamp_display="2017-07-14 02:40:00 +0000",
            author="Test User",
            subject=f"commit {i}",
        )
        for i in range(count)
    ]


class FakeExecutor:
    """In-memory executor that records calls and concurrent entries."""

    def __init__(self, fail_names=None, batch_fails=False, latency=0.0, raise_for=None):
        self.fail_names = set(fail_names or ())
        self.batch_fails = batch_fails
        self.latency = latency
        self.raise_for = raise_for or {}
        self.one_calls: list[str] = []
        self.batch_calls: list[list[str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def _enter(self):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

    def _exit(self):
        with self._lock:
            self.in_flight -= 1

    def delete_one(self, name):
        self._enter()
        try:
            with self._lock:
                self.one_calls.append(name)
            if self.latency:
                time.sleep(self.latency)
            if name in self.raise_for:
                raise self.raise_for[name]
            if name in self.fail_names:
                return f"error: unable to delete '{name}'"
            return None
        finally:
            self._exit()

    def delete_batch(self, names):
        self._enter()
        try:
            self.batch_calls.append(list(names))
            if self.latency:
                time.sleep(self.latency)
            if self.batch_fails or self.fail_names.intersection(names):
                return "error: failed to push some refs"
            return None
        finally:
            self._exit()


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds):
        self.calls.append(seconds)


class TestChunked:
    """Tests for splitting items into chunks."""

    def test_preserves_order_and_sizes(self):
        """Test that chunks are consecutive and the last one may be short."""
        chunks = chunked(list(range(7)), 3)
        assert chunks == [[0, 1, 2], [3, 4, 5], [6]]

    def test_empty(self):
        """Test that an empty sequence has no chunks."""
        assert chunked([], 5) == []


class TestBatchedConcurrentDeleter:
    """Tests for the deletion engine."""

    def test_empty_input(self):
        """Test that no items means no calls and no delay."""
        executor = FakeExecutor()
        sleep = RecordingSleep()
        deleter = BatchedConcurrentDeleter(
            executor,
            DeletionPolicy(inter_batch_delay=1.0),
            sleep=sleep,
        )

        result = deleter.run([], RefKind.REMOTE_BRANCH)

        assert result.success_count == 0
        assert result.failed_count == 0
        assert result.failed_items == []
        assert executor.one_calls == []
        assert executor.batch_calls == []
        assert sleep.calls == []

    @pytest.mark.parametrize("strategy", ["batch", "individual"])
    def test_completeness(self, strategy):
        """Test that every submitted item is counted exactly once."""
        items = make_items(237)
        failing = {items[i].name for i in (0, 19, 20, 150, 236)}
        executor = FakeExecutor(fail_names=failing)
        policy = DeletionPolicy(batch_size=20, max_concurrency=4, strategy=strategy)

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

        assert result.success_count + result.failed_count == len(items)
        assert len(result.failed_items) == result.failed_count
        assert {f.name for f in result.failed_items} == failing

    def test_failing_sibling_does_not_flip_success(self):
        """Test that one failure leaves the other refs in its wave successful."""
        items = make_items(6)
        executor = FakeExecutor(fail_names={items[2].name})
        policy = DeletionPolicy(batch_size=6, max_concurrency=3, strategy="individual")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_TAG)

        assert result.success_count == 5
        assert result.failed_count == 1
        assert result.failed_items[0].name == items[2].name
        assert result.failed_items[0].kind == "local"

    def test_batch_fallback_attributes_single_failure(self):
        """Test that a failed batch is verified ref by ref."""
        items = make_items(10)
        poisoned = items[4].name
        executor = FakeExecutor(fail_names={poisoned}, batch_fails=True)
        policy = DeletionPolicy(batch_size=10, max_concurrency=3, strategy="batch")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.REMOTE_BRANCH)

        assert result.success_count == 9
        assert result.failed_count == 1
        assert [f.name for f in result.failed_items] == [poisoned]
        assert result.failed_items[0].kind == "remote"
        assert len(executor.batch_calls) == 1
        assert sorted(executor.one_calls) == sorted(i.name for i in items)

    def test_successful_batches_skip_individual_calls(self):
        """Test that the all-success path uses one call per chunk."""
        items = make_items(45)
        executor = FakeExecutor()
        policy = DeletionPolicy(batch_size=20, max_concurrency=3, strategy="batch")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

        assert result.success_count == 45
        assert executor.one_calls == []
        assert [len(c) for c in executor.batch_calls] == [20, 20, 5]

    def test_only_failing_chunk_falls_back(self):
        """Test that healthy chunks are not retried individually."""
        items = make_items(30)
        executor = FakeExecutor(fail_names={items[25].name})
        policy = DeletionPolicy(batch_size=10, max_concurrency=5, strategy="batch")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

        assert result.success_count == 29
        assert sorted(executor.one_calls) == [i.name for i in items[20:30]]

    def test_concurrency_bound(self):
        """Test that no more than max_concurrency deletions run at once."""
        items = make_items(40)
        executor = FakeExecutor(latency=0.01)
        policy = DeletionPolicy(batch_size=40, max_concurrency=3, strategy="individual")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.REMOTE_TAG)

        assert result.success_count == 40
        assert 1 <= executor.max_in_flight <= 3

    def test_delay_between_chunks_only(self):
        """Test that the throttle runs between chunks but not after the last."""
        items = make_items(50)
        sleep = RecordingSleep()
        policy = DeletionPolicy(batch_size=10, max_concurrency=2, inter_batch_delay=0.5)

        BatchedConcurrentDeleter(FakeExecutor(), policy, sleep=sleep).run(
            items, RefKind.REMOTE_BRANCH
        )

        assert sleep.calls == [0.5, 0.5, 0.5, 0.5]

    def test_zero_delay_never_sleeps(self):
        """Test that a zero delay skips sleeping entirely."""
        sleep = RecordingSleep()
        policy = DeletionPolicy(batch_size=5, inter_batch_delay=0.0)

        BatchedConcurrentDeleter(FakeExecutor(), policy, sleep=sleep).run(
            make_items(20), RefKind.LOCAL_BRANCH
        )

        assert sleep.calls == []

    def test_chunk_order_is_preserved(self):
        """Test that failures from earlier chunks are reported first."""
        items = make_items(6)
        executor = FakeExecutor(fail_names={i.name for i in items})
        policy = DeletionPolicy(batch_size=2, max_concurrency=2, strategy="individual")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

        names = [f.name for f in result.failed_items]
        for start in (0, 2, 4):
            assert set(names[start:start + 2]) == {items[start].name, items[start + 1].name}

    def test_progress_callback(self):
        """Test that progress is reported up to the total."""
        updates = []
        policy = DeletionPolicy(batch_size=4, max_concurrency=2, strategy="individual")
        deleter = BatchedConcurrentDeleter(
            FakeExecutor(),
            policy,
            progress_callback=lambda current, total: updates.append((current, total)),
        )

        deleter.run(make_items(10), RefKind.LOCAL_BRANCH)

        assert updates[-1] == (10, 10)
        assert [u[0] for u in updates] == sorted(u[0] for u in updates)

    def test_cancel_stops_new_chunks(self):
        """Test that cancellation records untouched refs as failures."""
        items = make_items(30)
        cancel = threading.Event()
        executor = FakeExecutor()
        policy = DeletionPolicy(batch_size=10, max_concurrency=2)

        def on_progress(current, total):
            if current >= 10:
                cancel.set()

        deleter = BatchedConcurrentDeleter(
            executor,
            policy,
            progress_callback=on_progress,
            cancel_event=cancel,
        )
        result = deleter.run(items, RefKind.REMOTE_BRANCH)

        assert result.success_count == 10
        assert result.failed_count == 20
        assert result.total == 30
        assert all(f.error == CANCELLED_MESSAGE for f in result.failed_items)
        assert len(executor.batch_calls) == 1

    def test_unavailable_git_is_fatal(self):
        """Test that a structural executor error aborts the run."""
        items = make_items(3)
        executor = FakeExecutor(
            raise_for={items[1].name: GitUnavailableError("git executable not found")}
        )
        policy = DeletionPolicy(strategy="individual", max_concurrency=1)

        with pytest.raises(GitUnavailableError):
            BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

    def test_unexpected_exception_is_item_failure(self):
        """Test that other executor exceptions are recorded for that ref only."""
        items = make_items(3)
        executor = FakeExecutor(raise_for={items[0].name: RuntimeError("boom")})
        policy = DeletionPolicy(strategy="individual")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

        assert result.success_count == 2
        assert result.failed_items[0].name == items[0].name
        assert result.failed_items[0].error == "boom"

    def test_large_run_all_succeed(self):
        """Test a thousand refs in chunks of 20 with three workers."""
        items = make_items(1000)
        executor = FakeExecutor()
        policy = DeletionPolicy(batch_size=20, max_concurrency=3, strategy="individual")

        result = BatchedConcurrentDeleter(executor, policy).run(items, RefKind.LOCAL_BRANCH)

        assert result.to_dict() == {"success_count": 1000, "failed_count": 0, "failed_items": []}
        assert len(executor.one_calls) == 1000
        assert executor.max_in_flight <= 3


class TestDeleteRefs:
    """Tests for the function-style wrapper."""

    def test_delete_refs(self):
        """Test that the wrapper runs the deleter with the given policy."""
        items = make_items(5)
        executor = FakeExecutor(fail_names={items[0].name})

        result = delete_refs(
            items,
            RefKind.LOCAL_TAG,
            executor,
            policy=DeletionPolicy(batch_size=5),
        )

        assert result.success_count == 4
        assert result.failed_count == 1
