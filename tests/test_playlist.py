import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from backend.app.catalog import Catalog
from backend.app.config import Settings
from backend.app.errors import CatalogError, ErrorKind, Outcome
from backend.app.models import Identity, Owner, TrackView
from backend.app.playlist import CatalogClient, PlaylistViewModel
from backend.app.store import CatalogStore

ME = Identity("auth|me", "me@example.com", "Me")


def _track(tid, favorite=False):
    return TrackView(
        id=tid,
        title=f"Title {tid}",
        audio_url=f"http://test/api/storage/{tid}",
        owner=Owner(id="users_1", display_name="Artist"),
        favorite=favorite,
    )


def _loaded(tracks):
    vm = PlaylistViewModel(client=None)
    vm.on_snapshot(Outcome.success(tracks))
    return vm


def _abc():
    return [_track("A"), _track("B", favorite=True), _track("C", favorite=True)]


def test_not_loaded_is_loading_and_navigation_is_noop():
    vm = PlaylistViewModel(client=None)
    assert vm.status == "loading"
    assert vm.filtered_view == []
    assert vm.next() is None
    assert vm.previous() is None
    assert vm.selection.index == -1
    assert vm.selection.is_empty


@pytest.mark.parametrize("start", [0, 1, 2, 3, 4])
def test_next_is_cyclic(start):
    vm = _loaded([_track(str(i)) for i in range(5)])
    vm.select(vm.filtered_view[start])
    for _ in range(5):
        vm.next()
    assert vm.selection.index == start
    assert vm.selection.track_id == str(start)


@pytest.mark.parametrize("start", [0, 1, 2, 3, 4])
def test_previous_is_cyclic(start):
    vm = _loaded([_track(str(i)) for i in range(5)])
    vm.select(vm.filtered_view[start])
    for _ in range(5):
        vm.previous()
    assert vm.selection.index == start


@pytest.mark.parametrize("start", [0, 1, 2])
def test_next_then_previous_returns_to_start(start):
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[start])
    vm.next()
    vm.previous()
    assert vm.selection.index == start
    assert vm.selection.track_id == vm.filtered_view[start].id


def test_wraparound_scenario():
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[2])
    assert vm.selection.index == 2

    assert vm.next().id == "A"
    assert vm.selection.index == 0

    assert vm.previous().id == "C"
    assert vm.selection.index == 2


def test_next_without_selection_starts_at_first_track():
    vm = _loaded(_abc())
    assert vm.next().id == "A"
    assert vm.selection.index == 0


def test_previous_without_selection_starts_at_last_track():
    vm = _loaded(_abc())
    assert vm.previous().id == "C"
    assert vm.selection.index == 2


def test_select_fills_selection():
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[1])
    sel = vm.selection
    assert sel.track_id == "B"
    assert sel.title == "Title B"
    assert sel.artist == "Artist"
    assert sel.audio_url == "http://test/api/storage/B"
    assert sel.cover_url is None
    assert sel.index == 1


def test_favorites_filter_preserves_order():
    vm = _loaded(_abc())
    vm.toggle_favorites_only()
    assert [t.id for t in vm.filtered_view] == ["B", "C"]


def test_toggle_twice_restores_view():
    vm = _loaded(_abc())
    before = [t.id for t in vm.filtered_view]
    vm.toggle_favorites_only()
    vm.toggle_favorites_only()
    assert [t.id for t in vm.filtered_view] == before


def test_empty_filtered_view_navigation_is_noop():
    vm = _loaded([_track("A"), _track("B")])
    vm.select(vm.filtered_view[1])
    vm.toggle_favorites_only()
    assert vm.filtered_view == []

    before = (vm.selection.track_id, vm.selection.index)
    assert vm.next() is None
    assert vm.previous() is None
    assert (vm.selection.track_id, vm.selection.index) == before


def test_toggle_recomputes_index_of_selected_track():
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[2])  # C
    vm.toggle_favorites_only()
    assert vm.selection.track_id == "C"
    assert vm.selection.index == 1


def test_toggle_keeps_playing_track_outside_view():
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[0])  # A is not a favorite
    vm.toggle_favorites_only()
    assert vm.selection.track_id == "A"
    assert vm.selection.index == -1

    assert vm.next().id == "B"
    assert vm.selection.index == 0


def test_snapshot_keeps_selection_and_reindexes():
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[1])  # B
    vm.on_snapshot(Outcome.success([_track("Z")] + _abc()))
    assert vm.selection.track_id == "B"
    assert vm.selection.index == 2


def test_snapshot_without_selected_track_clears_selection():
    vm = _loaded(_abc())
    vm.select(vm.filtered_view[1])
    vm.on_snapshot(Outcome.success([_track("A"), _track("C")]))
    assert vm.selection.is_empty
    assert vm.selection.index == -1
    assert vm.selection.audio_url == ""


def test_error_snapshot_keeps_last_catalog():
    vm = _loaded(_abc())
    vm.on_snapshot(Outcome.failure(ErrorKind.USER_NOT_REGISTERED))
    assert vm.status == "error"
    assert len(vm.catalog) == 3
    with pytest.raises(CatalogError):
        vm.raise_for_error()


def _client():
    store = CatalogStore()
    catalog = Catalog(store, Settings(public_base_url="http://test"))
    return catalog, CatalogClient(catalog, ME)


def _add_song(catalog, identity, title):
    target = catalog.request_upload_target(identity).unwrap()
    storage_id = catalog.complete_upload(target.upload_id, b"audio", "audio/mpeg").unwrap()
    return catalog.register_uploaded_track(identity, storage_id, title).unwrap()


def test_mount_registers_then_receives_live_snapshots():
    catalog, client = _client()
    vm = PlaylistViewModel(client)
    vm.mount()
    assert vm.status == "ready"
    assert vm.catalog == []
    assert len(catalog.store.users) == 1

    other = Identity("auth|other", name="Other")
    catalog.register_caller(other)
    file_id = _add_song(catalog, other, "Live")
    assert [t.id for t in vm.catalog] == [file_id]
    assert vm.catalog[0].owner.display_name == "Other"

    vm.select(vm.catalog[0])
    catalog.set_favorite(ME, file_id, True)
    assert vm.catalog[0].favorite is True
    assert vm.selection.index == 0


def test_remount_does_not_duplicate_user_or_subscription():
    catalog, client = _client()
    vm = PlaylistViewModel(client)
    vm.mount()
    vm.mount()
    assert len(catalog.store.users) == 1

    deliveries = []
    original = vm.on_snapshot
    vm.on_snapshot = lambda outcome: (deliveries.append(outcome), original(outcome))
    vm.mount()
    deliveries.clear()
    _add_song(catalog, ME, "Once")
    assert len(deliveries) == 1


def test_unmount_stops_updates():
    catalog, client = _client()
    vm = PlaylistViewModel(client)
    vm.mount()
    vm.unmount()
    _add_song(catalog, ME, "Unseen")
    assert vm.catalog == []


def test_mount_without_identity_is_unauthorized():
    store = CatalogStore()
    vm = PlaylistViewModel(CatalogClient(Catalog(store, Settings()), None))
    vm.mount()
    assert vm.status == "unauthorized"
    assert vm.catalog is None
    assert vm.next() is None


def test_select_while_loading_is_noop():
    vm = PlaylistViewModel(client=None)
    vm.select(_track("A"))
    assert vm.selection.is_empty
    assert vm.selection.index == -1
    assert vm.selection.audio_url == ""
