"""Viewport-windowed rendering for long log lists.

Only rows that intersect the viewport (plus a few overscan rows) are ever
rendered, so scrolling costs the same for ten rows as for a hundred thousand.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ViewportConfig(BaseModel):
    """Viewport geometry in pixels."""

    model_config = ConfigDict(frozen=True)

    height: int = Field(default=400, gt=0)
    row_height: int = Field(default=40, gt=0)
    overscan: int = Field(default=2, ge=1)

    @property
    def max_rows(self) -> int:
        """Upper bound on materialized rows, independent of list length."""
        return math.ceil(self.height / self.row_height) + self.overscan


class RenderedRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    top: int
    content: Any


class RangeChange(BaseModel):
    """Indices that entered or left the materialized window."""

    model_config = ConfigDict(frozen=True)

    entered: tuple[int, ...] = ()
    left: tuple[int, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.entered or self.left)


class WindowedList(Generic[T]):
    """Materializes the rows of ``items`` that intersect a fixed-height viewport.

    ``render_row`` is called once per row when it enters the window; rows
    that stay in the window across scrolls are not re-rendered.
    """

    def __init__(
        self,
        items: Sequence[T],
        render_row: Callable[[T], Any],
        config: ViewportConfig | None = None,
    ) -> None:
        self.config = config or ViewportConfig()
        self._items = items
        self._render_row = render_row
        self._scroll_offset = 0
        self._scrolling_backward = False
        self._rows: dict[int, RenderedRow] = {}
        self._rematerialize()

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to show; callers render an empty state."""
        return not self._items

    @property
    def total_height(self) -> int:
        return len(self._items) * self.config.row_height

    @property
    def max_scroll_offset(self) -> int:
        return max(0, self.total_height - self.config.height)

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @property
    def materialized_count(self) -> int:
        return len(self._rows)

    def visible_range(self) -> range:
        """Indices of rows intersecting the viewport at the current offset."""
        count = len(self._items)
        if count == 0:
            return range(0)
        row_height = self.config.row_height
        start = min(self._scroll_offset // row_height, count - 1)
        stop = min(math.ceil((self._scroll_offset + self.config.height) / row_height), count)
        return range(start, stop)

    def materialized_range(self) -> range:
        """Visible range extended by overscan in the scroll direction."""
        visible = self.visible_range()
        if not visible:
            return visible
        # A partially visible row at each edge eats into the overscan budget
        extra = max(0, self.config.max_rows - len(visible))
        if self._scrolling_backward:
            return range(max(0, visible.start - extra), visible.stop)
        return range(visible.start, min(len(self._items), visible.stop + extra))

    def scroll_to(self, offset: float) -> RangeChange:
        """Move the viewport and materialize only the rows that changed."""
        offset = max(0, min(int(offset), self.max_scroll_offset))
        if offset != self._scroll_offset:
            self._scrolling_backward = offset < self._scroll_offset
        self._scroll_offset = offset
        return self._rematerialize()

    def scroll_by(self, delta: float) -> RangeChange:
        return self.scroll_to(self._scroll_offset + delta)

    def set_items(self, items: Sequence[T]) -> RangeChange:
        """Swap in a new list. Passing the same object again is a no-op."""
        if items is self._items:
            return RangeChange()
        left = tuple(sorted(self._rows))
        self._items = items
        self._rows.clear()
        self._scroll_offset = min(self._scroll_offset, self.max_scroll_offset)
        change = self._rematerialize()
        return RangeChange(entered=change.entered, left=left)

    def rendered(self) -> list[RenderedRow]:
        """Materialized rows in index order."""
        return [self._rows[index] for index in sorted(self._rows)]

    def _rematerialize(self) -> RangeChange:
        wanted = self.materialized_range()
        left = tuple(sorted(index for index in self._rows if index not in wanted))
        entered = tuple(index for index in wanted if index not in self._rows)

        for index in left:
            del self._rows[index]
        for index in entered:
            self._rows[index] = RenderedRow(
                index=index,
                top=index * self.config.row_height,
                content=self._render_row(self._items[index]),
            )

        if entered or left:
            logger.debug(
                "Window %d-%d of %d: %d entered, %d left",
                wanted.start,
                wanted.stop,
                len(self._items),
                len(entered),
                len(left),
            )
        return RangeChange(entered=entered, left=left)
