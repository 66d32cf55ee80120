"""Client-side playlist state: selection, favorites filter and next/previous navigation.

A PlaylistViewModel is created when a player view mounts and discarded when it
unmounts. It consumes live catalog snapshots through a CatalogClient.
"""
from __future__ import annotations
from typing import Callable, List, Optional

from .catalog import Catalog
from .errors import CatalogError, ErrorKind, Outcome
from .logging_setup import get_logger, log_with_fields
from .models import Identity, Selection, TrackView

logger = get_logger(__name__)

SnapshotCallback = Callable[[Outcome], None]


class CatalogClient:
    """Catalog operations bound to a single caller."""

    def __init__(self, catalog: Catalog, identity: Optional[Identity]):
        self.catalog = catalog
        self.identity = identity

    def register_caller(self) -> Outcome:
        return self.catalog.register_caller(self.identity)

    def list_tracks(self) -> Outcome:
        return self.catalog.list_tracks(self.identity)

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Deliver the current snapshot now and a fresh one after every catalog write."""
        unsubscribe = self.catalog.store.subscribe(lambda: callback(self.list_tracks()))
        callback(self.list_tracks())
        return unsubscribe


class PlaylistViewModel:
    def __init__(self, client: CatalogClient):
        self.client = client
        self.catalog: Optional[List[TrackView]] = None
        self.favorites_only = False
        self.selection = Selection()
        self.error: Optional[ErrorKind] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # lifecycle

    def mount(self) -> None:
        """Register the caller, then subscribe to the catalog."""
        registered = self.client.register_caller()
        if not registered.ok:
            self.error = registered.error
            log_with_fields(logger, "WARNING", "Caller registration failed", error=registered.error.value)
            return
        self.error = None
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = self.client.subscribe(self.on_snapshot)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def status(self) -> str:
        if self.error == ErrorKind.UNAUTHORIZED:
            return "unauthorized"
        if self.error is not None:
            return "error"
        if self.catalog is None:
            return "loading"
        return "ready"

    def raise_for_error(self) -> None:
        """Surface a consistency failure as fatal to the host UI."""
        if self.error is not None:
            raise CatalogError(self.error)

    # derived state

    @property
    def filtered_view(self) -> List[TrackView]:
        if self.catalog is None:
            return []
        if self.favorites_only:
            return [t for t in self.catalog if t.favorite]
        return list(self.catalog)

    def _index_of(self, track_id: Optional[str], view: List[TrackView]) -> int:
        if track_id is None:
            return -1
        for i, t in enumerate(view):
            if t.id == track_id:
                return i
        return -1

    # operations

    def select(self, track: TrackView) -> None:
        if self.catalog is None:
            return
        self._play(track, self._index_of(track.id, self.filtered_view))

    def _play(self, track: TrackView, index: int) -> None:
        self.selection = Selection(
            track_id=track.id,
            audio_url=track.audio_url,
            title=track.title,
            artist=track.owner.display_name,
            cover_url=track.cover_url,
            index=index,
        )

    def next(self) -> Optional[TrackView]:
        view = self.filtered_view
        n = len(view)
        if n == 0:
            return None
        i = self.selection.index
        target = i + 1 if i < n - 1 else 0
        self._play(view[target], target)
        return view[target]

    def previous(self) -> Optional[TrackView]:
        view = self.filtered_view
        n = len(view)
        if n == 0:
            return None
        i = self.selection.index
        target = i - 1 if i > 0 else n - 1
        self._play(view[target], target)
        return view[target]

    def toggle_favorites_only(self) -> None:
        self.favorites_only = not self.favorites_only
        # the playing track keeps playing; only its position is recomputed
        self.selection.index = self._index_of(self.selection.track_id, self.filtered_view)

    def on_snapshot(self, outcome: Outcome) -> None:
        if not outcome.ok:
            self.error = outcome.error
            log_with_fields(logger, "WARNING", "Catalog snapshot failed", error=outcome.error.value)
            return
        self.error = None
        self.catalog = list(outcome.value)

        if self.selection.is_empty:
            return
        current = next((t for t in self.catalog if t.id == self.selection.track_id), None)
        if current is None:
            log_with_fields(logger, "INFO", "Selected track left the catalog", file_id=self.selection.track_id)
            self.selection = Selection()
            return
        self._play(current, self._index_of(current.id, self.filtered_view))
