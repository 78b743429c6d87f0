"""
Work items and batches shared by every workflow.

WorkItem is an immutable snapshot: every status or result change produces a
new WorkItem that replaces the old one inside the Batch, so a snapshot handed
to an observer never changes underneath it.
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Any, List, Optional, Iterator, Iterable

import numpy as np

logger = logging.getLogger(__name__)


class ItemStatus(str, Enum):
    """Per-item lifecycle state."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def new_item_id() -> str:
    """Short random id, unique within any realistic batch."""
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True, eq=False)
class WorkItem:
    """
    One unit of batch work.

    Attributes:
        id: Unique identifier within the batch
        source_image: Decoded input image
        name: Display / file name
        result_image: Output of the last successful transform
        status: Lifecycle state
        params: Per-item workflow parameters (e.g. crop pan)
        error: Message of the last failure
    """
    id: str
    source_image: np.ndarray
    name: str = ""
    result_image: Optional[np.ndarray] = None
    status: ItemStatus = ItemStatus.PENDING
    params: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def create(cls, image: np.ndarray, name: str = "", **params) -> "WorkItem":
        """Create a pending item with a fresh id."""
        return cls(id=new_item_id(), source_image=image, name=name, params=dict(params))

    @property
    def output_image(self) -> np.ndarray:
        """Result when available, otherwise the source."""
        return self.result_image if self.result_image is not None else self.source_image

    @property
    def width(self) -> int:
        return int(self.source_image.shape[1])

    @property
    def height(self) -> int:
        return int(self.source_image.shape[0])

    @property
    def is_terminal(self) -> bool:
        """Completed or failed for the current run."""
        return self.status in (ItemStatus.COMPLETED, ItemStatus.FAILED)

    def evolve(self, **changes) -> "WorkItem":
        """Return a copy with ``changes`` applied. The params dict is copied."""
        params = dict(changes.pop("params", self.params))
        return replace(self, params=params, **changes)

    def with_params(self, **params) -> "WorkItem":
        """Return a copy with ``params`` merged into the item parameters."""
        merged = dict(self.params)
        merged.update(params)
        return replace(self, params=merged)

    def reset(self, **params) -> "WorkItem":
        """Return a pending copy with the result and error cleared."""
        item = replace(self, status=ItemStatus.PENDING, result_image=None, error=None)
        return item.with_params(**params) if params else item

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (without image data)."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "width": self.width,
            "height": self.height,
            "has_result": self.result_image is not None,
            "params": dict(self.params),
            "error": self.error,
        }


class Batch:
    """
    Ordered collection of WorkItems keyed by id.

    Insertion order is the display and processing order. Items are replaced,
    never mutated in place.

    Example:
        >>> batch = Batch(max_items=20)
        >>> item = batch.add(WorkItem.create(image, name="photo.png"))
        >>> batch.update(item.id, status=ItemStatus.PROCESSING).status
        <ItemStatus.PROCESSING: 'processing'>
    """

    def __init__(self, max_items: Optional[int] = None):
        """
        Initialize an empty batch.

        Args:
            max_items: Capacity limit (None = unlimited)
        """
        if max_items is not None and max_items < 1:
            raise ValueError(f"max_items must be >= 1, got {max_items}")
        self.max_items = max_items
        self._items: "OrderedDict[str, WorkItem]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[WorkItem]:
        return iter(list(self._items.values()))

    @property
    def remaining_capacity(self) -> Optional[int]:
        if self.max_items is None:
            return None
        return max(0, self.max_items - len(self._items))

    def add(self, item: WorkItem) -> WorkItem:
        """
        Append an item.

        Raises:
            ValueError: Duplicate id or batch full
        """
        if item.id in self._items:
            raise ValueError(f"Duplicate item id: {item.id}")
        if self.max_items is not None and len(self._items) >= self.max_items:
            raise ValueError(f"Batch is full ({self.max_items} items)")
        self._items[item.id] = item
        return item

    def extend(self, items: Iterable[WorkItem]) -> List[WorkItem]:
        """
        Append as many items as capacity allows.

        Returns:
            The items actually added
        """
        items = list(items)
        capacity = self.remaining_capacity
        accepted = items if capacity is None else items[:capacity]
        if len(accepted) < len(items):
            logger.warning(
                f"Batch limit of {self.max_items} items reached, "
                f"keeping the first {len(accepted)} of {len(items)} new item(s)"
            )
        for item in accepted:
            self.add(item)
        return accepted

    def get(self, item_id: str) -> Optional[WorkItem]:
        return self._items.get(item_id)

    def replace(self, item: WorkItem) -> Optional[WorkItem]:
        """Store a new snapshot of an existing item; ignored if the id is gone."""
        if item.id not in self._items:
            return None
        self._items[item.id] = item
        return item

    def update(self, item_id: str, **changes) -> Optional[WorkItem]:
        """
        Replace an item with a copy carrying ``changes``.

        Returns:
            The new snapshot, or None if the item was removed
        """
        current = self._items.get(item_id)
        if current is None:
            return None
        updated = current.evolve(**changes)
        self._items[item_id] = updated
        return updated

    def remove(self, item_id: str) -> bool:
        """Remove an item. Returns False if it was not present."""
        return self._items.pop(item_id, None) is not None

    def clear(self) -> None:
        self._items.clear()

    def ids(self) -> List[str]:
        return list(self._items.keys())

    def items(self) -> List[WorkItem]:
        """Snapshot of all items in order."""
        return list(self._items.values())

    def with_status(self, status: ItemStatus) -> List[WorkItem]:
        return [item for item in self._items.values() if item.status is status]

    def counts(self) -> Dict[str, int]:
        """Number of items per status."""
        counts = {status.value: 0 for status in ItemStatus}
        for item in self._items.values():
            counts[item.status.value] += 1
        return counts
