"""Batched, concurrent bulk deletion of refs."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Sequence, TypeVar

from refsweep.errors import GitUnavailableError
from refsweep.models import AggregateResult, DeletionOutcome, DeletionPolicy, RefItem, RefKind

from .executor import RefDeletionExecutor

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Cancelled before deletion was attempted"

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split a sequence into consecutive lists of at most `size` items."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchedConcurrentDeleter:
    """
    Delete a list of refs in chunks with bounded parallelism.

    Each chunk of `policy.batch_size` refs is first sent to the executor as a
    single atomic batch (with the "batch" strategy). If the batch fails, or the
    "individual" strategy is used, every ref in the chunk is deleted on its
    own in waves of at most `policy.max_concurrency` concurrent calls, so one
    bad ref never marks its siblings as failed.

    Per-ref failures are returned as data. Only GitUnavailableError, which
    means no deletion can work at all, escapes from run().
    """

    def __init__(
        self,
        executor: RefDeletionExecutor,
        policy: DeletionPolicy | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the deleter.

        Args:
            executor: Performs the actual deletions.
            policy: Batch size, concurrency and throttling settings.
            progress_callback: Called with (processed, total) after each
                batch or wave.
            cancel_event: When set, no further chunks are started.
            sleep: Used for the pause between chunks.
        """
        self.executor = executor
        self.policy = policy or DeletionPolicy()
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.sleep = sleep

    def run(self, items: Sequence[RefItem], kind: RefKind) -> AggregateResult:
        """
        Delete all items and return the aggregate outcome.

        Args:
            items: Refs to delete, all of the same kind.
            kind: Namespace of the refs, used to tag failures local/remote.

        Returns:
            AggregateResult covering every submitted item.

        Raises:
            GitUnavailableError: If the executor cannot run at all.
        """
        result = AggregateResult()
        if not items:
            return result

        total = len(items)
        chunks = chunked(items, self.policy.batch_size)
        processed = 0

        logger.info(
            "Deleting %d %s refs in %d chunks (batch=%d, concurrency=%d)",
            total,
            kind.value,
            len(chunks),
            self.policy.batch_size,
            self.policy.max_concurrency,
        )

        with ThreadPoolExecutor(
            max_workers=self.policy.max_concurrency,
            thread_name_prefix="refsweep-delete",
        ) as pool:
            for index, chunk in enumerate(chunks):
                if self.cancel_event is not None and self.cancel_event.is_set():
                    remaining = [item for rest in chunks[index:] for item in rest]
                    logger.warning(
                        "Cancelled with %d %s refs not attempted", len(remaining), kind.value
                    )
                    result.record_all(
                        [DeletionOutcome.failed(item.name, CANCELLED_MESSAGE) for item in remaining],
                        kind,
                    )
                    processed += len(remaining)
                    self._report(processed, total)
                    break

                processed = self._process_chunk(pool, chunk, kind, result, processed, total)

                if index < len(chunks) - 1 and self.policy.inter_batch_delay > 0:
                    self.sleep(self.policy.inter_batch_delay)

        logger.info(
            "Finished %s: %d deleted, %d failed",
            kind.value,
            result.success_count,
            result.failed_count,
        )
        return result

    def _process_chunk(
        self,
        pool: ThreadPoolExecutor,
        chunk: list[RefItem],
        kind: RefKind,
        result: AggregateResult,
        processed: int,
        total: int,
    ) -> int:
        names = [item.name for item in chunk]

        if self.policy.strategy == "batch":
            error = self._try_batch(names)
            if error is None:
                result.record_all([DeletionOutcome.ok(name) for name in names], kind)
                processed += len(names)
                self._report(processed, total)
                return processed

            logger.info(
                "Batch of %d %s refs failed, deleting one by one: %s",
                len(names),
                kind.value,
                error.splitlines()[-1] if error else "",
            )

        for wave in chunked(names, self.policy.max_concurrency):
            outcomes = self._run_wave(pool, wave)
            result.record_all(outcomes, kind)
            processed += len(wave)
            self._report(processed, total)

        return processed

    def _try_batch(self, names: list[str]) -> str | None:
        try:
            return self.executor.delete_batch(names)
        except GitUnavailableError:
            raise
        except Exception as e:
            logger.exception("Batch deletion raised unexpectedly")
            return str(e) or type(e).__name__

    def _run_wave(self, pool: ThreadPoolExecutor, names: list[str]) -> list[DeletionOutcome]:
        futures = {pool.submit(self.executor.delete_one, name): name for name in names}
        outcomes = []

        for future in as_completed(futures):
            name = futures[future]
            try:
                error = future.result()
            except GitUnavailableError:
                raise
            except Exception as e:
                logger.exception("Deleting %s raised unexpectedly", name)
                error = str(e) or type(e).__name__

            if error is None:
                outcomes.append(DeletionOutcome.ok(name))
            else:
                outcomes.append(DeletionOutcome.failed(name, error))

        return outcomes

    def _report(self, processed: int, total: int) -> None:
        if self.progress_callback:
            self.progress_callback(processed, total)


def delete_refs(
    items: Sequence[RefItem],
    kind: RefKind,
    executor: RefDeletionExecutor,
    policy: DeletionPolicy | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> AggregateResult:
    """
    Delete refs of one kind.

    Args:
        items: Refs to delete.
        kind: Namespace of the refs.
        executor: Performs the deletions.
        policy: Batching settings. Uses defaults if not provided.
        progress_callback: Optional callback for progress updates.
        cancel_event: Optional event that stops scheduling new chunks.

    Returns:
        AggregateResult with counts and failed refs.
    """
    deleter = BatchedConcurrentDeleter(
        executor,
        policy=policy,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
    )
    return deleter.run(items, kind)
