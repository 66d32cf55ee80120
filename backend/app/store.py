from __future__ import annotations
import threading
from typing import Callable, Dict, List, Optional, Set, Tuple

from .logging_setup import get_logger
from .models import StoredObject, Track, UploadTarget, User

logger = get_logger(__name__)

Listener = Callable[[], None]


class CatalogStore:
    """In-memory tables backing the catalog.

    Files keep insertion order, which is the catalog order clients see.
    Every write notifies subscribers after it has been applied.
    """

    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.files: Dict[str, Track] = {}
        self.storage: Dict[str, StoredObject] = {}
        self.upload_targets: Dict[str, UploadTarget] = {}
        self._users_by_token: Dict[str, str] = {}
        self._favorites: Set[Tuple[str, str]] = set()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def reset(self) -> None:
        self.users.clear()
        self.files.clear()
        self.storage.clear()
        self.upload_targets.clear()
        self._users_by_token.clear()
        self._favorites.clear()
        self._listeners.clear()

    # users

    def user_by_token(self, token_identifier: str) -> Optional[User]:
        uid = self._users_by_token.get(token_identifier)
        return self.users.get(uid) if uid else None

    def get_or_insert_user(self, token_identifier: str, factory: Callable[[], User]) -> Tuple[User, bool]:
        """Look up a user by token, inserting `factory()` if absent. Returns (user, created)."""
        with self._lock:
            existing = self.user_by_token(token_identifier)
            if existing is not None:
                return existing, False
            user = factory()
            self.users[user.id] = user
            self._users_by_token[user.token_identifier] = user.id
        self._notify()
        return user, True

    # files

    def list_files(self) -> List[Track]:
        return list(self.files.values())

    def insert_file(self, track: Track) -> str:
        self.files[track.id] = track
        self._notify()
        return track.id

    def patch_file(self, file_id: str, **changes) -> Track:
        track = self.files[file_id]
        for name, value in changes.items():
            setattr(track, name, value)
        self._notify()
        return track

    # favorites

    def is_favorite(self, user_id: str, file_id: str) -> bool:
        return (user_id, file_id) in self._favorites

    def add_favorite(self, user_id: str, file_id: str) -> None:
        if (user_id, file_id) in self._favorites:
            return
        self._favorites.add((user_id, file_id))
        self._notify()

    def remove_favorite(self, user_id: str, file_id: str) -> None:
        if (user_id, file_id) not in self._favorites:
            return
        self._favorites.discard((user_id, file_id))
        self._notify()

    # storage

    def put_object(self, obj: StoredObject) -> str:
        self.storage[obj.storage_id] = obj
        return obj.storage_id

    def add_upload_target(self, target: UploadTarget) -> None:
        self.upload_targets[target.upload_id] = target

    def pop_upload_target(self, upload_id: str) -> Optional[UploadTarget]:
        return self.upload_targets.pop(upload_id, None)

    # subscriptions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("catalog listener failed")


STORE = CatalogStore()
