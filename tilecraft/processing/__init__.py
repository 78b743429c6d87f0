"""
Batch Job Runner

Work items, batches and the sequential cancellable runner shared by every
batch workflow.
"""

from .models import ItemStatus, WorkItem, Batch, new_item_id
from .runner import (
    BatchJobRunner,
    BatchEvent,
    EventKind,
    RunReport,
    Transform,
    ImageTransform,
    on_source,
    with_timeout,
    describe_error,
)

__all__ = [
    # Models
    "ItemStatus",
    "WorkItem",
    "Batch",
    "new_item_id",
    # Runner
    "BatchJobRunner",
    "BatchEvent",
    "EventKind",
    "RunReport",
    "Transform",
    "ImageTransform",
    "on_source",
    "with_timeout",
    "describe_error",
]
