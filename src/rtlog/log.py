"""Merged, filtered activity log over a snapshot of pageviews, sessions and events."""

from __future__ import annotations

import logging
from datetime import tzinfo

from rtlog.colors import session_uuids
from rtlog.events import BaseEvent, EventType, FilterSelection, Snapshot
from rtlog.format import DEFAULT_LOCALE, Labels, LogRow, format_row
from rtlog.window import ViewportConfig, WindowedList

logger = logging.getLogger(__name__)

# Labels offered to a filter control, in display order
FILTER_OPTIONS: tuple[tuple[FilterSelection, str], ...] = (
    (FilterSelection.ALL, "All"),
    (FilterSelection.PAGEVIEW, "Views"),
    (FilterSelection.SESSION, "Sessions"),
    (FilterSelection.EVENT, "Events"),
)


def merge_logs(snapshot: Snapshot) -> tuple[BaseEvent, ...]:
    """Merge the three collections, most recent first.

    Ties keep their concatenation order (pageviews, sessions, events) since
    ``sorted`` is stable even with ``reverse=True``.
    """
    combined = [*snapshot.pageviews, *snapshot.sessions, *snapshot.events]
    return tuple(sorted(combined, key=lambda event: event.created_at, reverse=True))


def filter_logs(
    merged: tuple[BaseEvent, ...], selection: FilterSelection
) -> tuple[BaseEvent, ...]:
    """Keep only events of the selected type, preserving order.

    ``ALL`` returns ``merged`` itself rather than a copy.
    """
    if selection is FilterSelection.ALL:
        return merged
    wanted = EventType(selection.value)
    return tuple(event for event in merged if event.type is wanted)


class RealtimeLog:
    """View state for one viewer: the latest snapshot plus a filter selection.

    Derived values are cached against the identity of their inputs, so
    reading them repeatedly without a new snapshot or selection returns the
    very same objects.
    """

    def __init__(
        self,
        snapshot: Snapshot | None = None,
        *,
        website_domain: str = "",
        labels: Labels | None = None,
        locale: str = DEFAULT_LOCALE,
        tz: tzinfo | None = None,
    ) -> None:
        self.website_domain = website_domain
        self.labels = labels if labels is not None else Labels()
        self.locale = locale
        self.tz = tz
        self._snapshot = snapshot if snapshot is not None else Snapshot()
        self._selection = FilterSelection.ALL

        self._merged_key: Snapshot | None = None
        self._merged: tuple[BaseEvent, ...] = ()
        self._uuids_key: Snapshot | None = None
        self._uuids: dict[str, str] = {}
        self._filtered_key: tuple[tuple[BaseEvent, ...], FilterSelection] | None = None
        self._filtered: tuple[BaseEvent, ...] = ()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def selection(self) -> FilterSelection:
        return self._selection

    def update(self, snapshot: Snapshot) -> None:
        """Replace the snapshot; derived values recompute on next access."""
        self._snapshot = snapshot

    def select(self, selection: FilterSelection | str) -> None:
        self._selection = FilterSelection(selection)

    @property
    def merged(self) -> tuple[BaseEvent, ...]:
        if self._merged_key is not self._snapshot:
            self._merged = merge_logs(self._snapshot)
            self._merged_key = self._snapshot
            logger.debug("Merged %d events", len(self._merged))
        return self._merged

    @property
    def uuids(self) -> dict[str, str]:
        if self._uuids_key is not self._snapshot:
            self._uuids = session_uuids(self._snapshot)
            self._uuids_key = self._snapshot
        return self._uuids

    @property
    def filtered(self) -> tuple[BaseEvent, ...]:
        merged = self.merged
        key = self._filtered_key
        if key is None or key[0] is not merged or key[1] is not self._selection:
            self._filtered = filter_logs(merged, self._selection)
            self._filtered_key = (merged, self._selection)
            logger.debug(
                "Filtered %d of %d events by %s",
                len(self._filtered),
                len(merged),
                self._selection.value,
            )
        return self._filtered

    @property
    def is_empty(self) -> bool:
        return not self.filtered

    def format_row(self, event: BaseEvent) -> LogRow:
        return format_row(
            event,
            website_domain=self.website_domain,
            uuids=self.uuids,
            labels=self.labels,
            locale=self.locale,
            tz=self.tz,
        )

    def rows(self) -> list[LogRow]:
        """Format every row of the filtered log."""
        return [self.format_row(event) for event in self.filtered]

    def window(self, config: ViewportConfig | None = None) -> WindowedList[BaseEvent]:
        """A windowed view over the filtered log that renders rows lazily."""
        return WindowedList(self.filtered, self.format_row, config)
