"""
Sequential, cancellable batch runner.

Drives the items of a Batch through ``PENDING -> PROCESSING -> COMPLETED |
FAILED`` one at a time. Cancellation is cooperative: ``cancel()`` bumps the
runner's epoch, and every state write of a run first checks that the epoch it
started with is still current. An in-flight transform is never interrupted;
its result is simply discarded.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import numpy as np

from .models import Batch, ItemStatus, WorkItem
from ..errors import ServiceError

logger = logging.getLogger(__name__)

# Item-level transform: receives the item's current snapshot, returns the result image
Transform = Callable[[WorkItem], Union[Awaitable[np.ndarray], np.ndarray]]
ImageTransform = Callable[[np.ndarray], Union[Awaitable[np.ndarray], np.ndarray]]


class EventKind(str, Enum):
    """Kinds of events published by the runner."""
    ITEM_UPDATED = "item_updated"
    RUN_STARTED = "run_started"
    RUN_FINISHED = "run_finished"
    RUN_CANCELLED = "run_cancelled"


@dataclass(frozen=True)
class RunReport:
    """Outcome of one run_batch call."""
    processed: int
    completed: int
    failed: int
    skipped: int
    cancelled: bool
    elapsed_ms: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "processed": self.processed,
            "completed": self.completed,
            "failed": self.failed,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
            "elapsed_ms": self.elapsed_ms,
        }


@dataclass(frozen=True)
class BatchEvent:
    """
    Notification sent to runner subscribers.

    Attributes:
        kind: What happened
        epoch: Runner epoch the event belongs to
        item: New item snapshot (ITEM_UPDATED only)
        report: Run outcome (RUN_FINISHED only)
    """
    kind: EventKind
    epoch: int
    item: Optional[WorkItem] = None
    report: Optional[RunReport] = None


Subscriber = Callable[[BatchEvent], None]


def on_source(transform: ImageTransform) -> Transform:
    """Adapt an image-level transform to the item-level signature."""
    def item_transform(item: WorkItem):
        return transform(item.source_image)
    return item_transform


def with_timeout(transform: Transform, seconds: float) -> Transform:
    """
    Bound a transform by a timeout.

    A timeout surfaces as ServiceError, so the item is marked failed and the
    batch moves on.
    """
    if seconds is None or seconds <= 0:
        raise ValueError(f"timeout must be > 0, got {seconds}")

    async def timed_transform(item: WorkItem):
        result = transform(item)
        if not inspect.isawaitable(result):
            return result
        try:
            return await asyncio.wait_for(result, timeout=seconds)
        except asyncio.TimeoutError:
            raise ServiceError(f"Transform timed out after {seconds:g}s") from None

    return timed_transform


def describe_error(error: BaseException) -> str:
    """Short user-facing message for a failed item."""
    message = str(error)
    return message if message else type(error).__name__


class BatchJobRunner:
    """
    Runs a transform over the items of one Batch.

    Each runner owns its own epoch, so independent batches cancel
    independently.

    Example:
        >>> runner = BatchJobRunner(batch)
        >>> unsubscribe = runner.subscribe(lambda event: print(event.kind))
        >>> report = await runner.run_batch(on_source(enhancer.enhance))
        >>> print(f"{report.completed} completed, {report.failed} failed")
    """

    def __init__(
        self,
        batch: Batch,
        transform_timeout: Optional[float] = None,
    ):
        """
        Initialize runner.

        Args:
            batch: Batch whose items this runner updates
            transform_timeout: Optional per-item timeout in seconds
        """
        self.batch = batch
        self.transform_timeout = transform_timeout
        self._epoch = 0
        self._active_epoch: Optional[int] = None
        self._subscribers: List[Subscriber] = []

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_running(self) -> bool:
        """True while a run_batch started in the current epoch is active."""
        return self._active_epoch is not None and self._active_epoch == self._epoch

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register an event callback.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def cancel(self) -> int:
        """
        Invalidate every run in progress.

        Returns:
            The new epoch
        """
        self._epoch += 1
        was_running = self._active_epoch is not None
        self._active_epoch = None
        if was_running:
            logger.info(f"Batch run cancelled (epoch -> {self._epoch})")
        self._publish(BatchEvent(kind=EventKind.RUN_CANCELLED, epoch=self._epoch))
        return self._epoch

    async def run_batch(
        self,
        transform: Transform,
        skip_completed: bool = True,
    ) -> RunReport:
        """
        Process every item present in the batch at call time, in order.

        Args:
            transform: Item-level transform (sync or async)
            skip_completed: Leave COMPLETED items untouched

        Returns:
            RunReport; ``cancelled`` is True when the epoch changed mid-run
        """
        start_time = time.time()
        epoch = self._epoch
        self._active_epoch = epoch
        snapshot = self.batch.ids()

        processed = completed = failed = skipped = 0
        cancelled = False

        logger.info(f"Starting batch run over {len(snapshot)} item(s) (epoch {epoch})")
        self._publish(BatchEvent(kind=EventKind.RUN_STARTED, epoch=epoch))

        for item_id in snapshot:
            if self._epoch != epoch:
                cancelled = True
                break

            item = self.batch.get(item_id)
            if item is None:
                # Removed since the snapshot was taken
                skipped += 1
                continue
            if skip_completed and item.status is ItemStatus.COMPLETED:
                skipped += 1
                continue

            processed += 1
            outcome = await self._process(item, transform, epoch)
            if outcome is None:
                cancelled = True
                break
            if outcome.status is ItemStatus.COMPLETED:
                completed += 1
            elif outcome.status is ItemStatus.FAILED:
                failed += 1

        if self._epoch != epoch:
            cancelled = True

        report = RunReport(
            processed=processed,
            completed=completed,
            failed=failed,
            skipped=skipped,
            cancelled=cancelled,
            elapsed_ms=(time.time() - start_time) * 1000,
        )

        if not cancelled:
            self._active_epoch = None
            logger.info(
                f"Batch run finished: {completed} completed, {failed} failed, "
                f"{skipped} skipped in {report.elapsed_ms:.1f}ms"
            )
            self._publish(BatchEvent(kind=EventKind.RUN_FINISHED, epoch=epoch, report=report))
        else:
            logger.debug(f"Batch run from epoch {epoch} stopped after cancel")

        return report

    async def run_one(self, item_id: str, transform: Transform) -> Optional[WorkItem]:
        """
        Process a single item, gated by the same epoch as whole-batch runs.

        Args:
            item_id: Item to process
            transform: Item-level transform (sync or async)

        Returns:
            The item's final snapshot, or None if it is missing or the run
            was cancelled
        """
        item = self.batch.get(item_id)
        if item is None:
            logger.warning(f"Item {item_id} not found in batch")
            return None
        return await self._process(item, transform, self._epoch)

    async def _process(
        self,
        item: WorkItem,
        transform: Transform,
        epoch: int,
    ) -> Optional[WorkItem]:
        """Run one item through the state machine. Returns None when stale."""
        current = self._write(item.id, epoch, status=ItemStatus.PROCESSING, error=None)
        if current is None:
            return None

        try:
            result = await self._invoke(transform, current)
        except Exception as e:
            if self._epoch != epoch:
                return None
            logger.error(f"Error processing {current.name or current.id}: {e}")
            failed = self._write(
                current.id, epoch, status=ItemStatus.FAILED, error=describe_error(e)
            )
            # An item removed mid-flight counts as failed for the report
            return failed or current.evolve(status=ItemStatus.FAILED)

        if self._epoch != epoch:
            logger.debug(f"Dropping stale result for {current.id}")
            return None

        done = self._write(
            current.id, epoch, status=ItemStatus.COMPLETED, result_image=result, error=None
        )
        return done or current.evolve(status=ItemStatus.COMPLETED, result_image=result)

    async def _invoke(self, transform: Transform, item: WorkItem) -> np.ndarray:
        if self.transform_timeout is not None:
            transform = with_timeout(transform, self.transform_timeout)
        result = transform(item)
        if inspect.isawaitable(result):
            result = await result
        if result is None:
            raise ServiceError("Transform returned no image")
        return result

    def _write(self, item_id: str, epoch: int, **changes) -> Optional[WorkItem]:
        """Apply a state change if the epoch is current and the item still exists."""
        if self._epoch != epoch:
            return None
        updated = self.batch.update(item_id, **changes)
        if updated is not None:
            self._publish(BatchEvent(kind=EventKind.ITEM_UPDATED, epoch=epoch, item=updated))
        return updated

    def _publish(self, event: BatchEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber failed while handling {event.kind.value}")
