"""Track catalog operations.

Every operation returns an Outcome; authorization and consistency failures are
reported as error kinds instead of being raised.
"""
from __future__ import annotations
from typing import List, Optional

from .config import Settings
from .errors import ErrorKind, Outcome
from .logging_setup import get_logger, log_with_fields
from .models import Identity, Owner, StoredObject, Track, TrackView, UploadTarget, User, new_id
from .store import CatalogStore

logger = get_logger(__name__)


class Catalog:
    def __init__(self, store: CatalogStore, settings: Settings):
        self.store = store
        self.settings = settings

    def _caller(self, identity: Optional[Identity]) -> Outcome:
        if identity is None:
            log_with_fields(logger, "WARNING", "Unauthenticated catalog access")
            return Outcome.failure(ErrorKind.UNAUTHORIZED, "Unauthorized")
        user = self.store.user_by_token(identity.token_identifier)
        if user is None:
            log_with_fields(logger, "WARNING", "Caller is not registered",
                            token_identifier=identity.token_identifier)
            return Outcome.failure(ErrorKind.USER_NOT_REGISTERED, "User doesn't exist in the database!")
        return Outcome.success(user)

    def register_caller(self, identity: Optional[Identity]) -> Outcome:
        if identity is None:
            log_with_fields(logger, "WARNING", "Registration without an authenticated caller")
            return Outcome.failure(ErrorKind.UNAUTHORIZED, "Called store without an authenticated user")

        user, created = self.store.get_or_insert_user(
            identity.token_identifier,
            lambda: User(
                id=new_id("users"),
                token_identifier=identity.token_identifier,
                email=identity.email or "",
                full_name=identity.name or "",
                image_url=identity.profile_url,
            ),
        )
        if created:
            log_with_fields(logger, "INFO", "User registered", user_id=user.id)
        return Outcome.success(user.id)

    def list_tracks(self, identity: Optional[Identity]) -> Outcome:
        caller = self._caller(identity)
        if not caller.ok:
            return caller
        user: User = caller.value

        rows: List[TrackView] = []
        for track in self.store.list_files():
            owner = self.store.users.get(track.owner_id)
            rows.append(
                TrackView(
                    id=track.id,
                    title=track.title,
                    audio_url=self.settings.storage_url(track.song),
                    cover_url=self.settings.storage_url(track.image) if track.image else None,
                    owner=Owner(
                        id=track.owner_id,
                        display_name=owner.full_name if owner else "",
                        avatar_url=owner.image_url if owner else None,
                    ),
                    # keyed by the requesting caller, not the track owner
                    favorite=self.store.is_favorite(user.id, track.id),
                )
            )
        return Outcome.success(rows)

    def request_upload_target(self, identity: Optional[Identity]) -> Outcome:
        if identity is None:
            return Outcome.failure(ErrorKind.UNAUTHORIZED, "Unauthorized")
        upload_id = new_id("upload")
        target = UploadTarget(upload_id=upload_id, url=self.settings.upload_url(upload_id))
        self.store.add_upload_target(target)
        return Outcome.success(target)

    def complete_upload(self, upload_id: str, data: bytes, content_type: Optional[str]) -> Outcome:
        if upload_id not in self.store.upload_targets:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Upload target not found or already used")
        if len(data) > self.settings.max_upload_bytes:
            return Outcome.failure(
                ErrorKind.INVALID,
                f"Upload exceeds {self.settings.max_upload_bytes} bytes",
            )
        self.store.pop_upload_target(upload_id)
        obj = StoredObject(
            storage_id=new_id("storage"),
            content_type=content_type or "application/octet-stream",
            data=data,
        )
        self.store.put_object(obj)
        log_with_fields(logger, "INFO", "Upload stored", storage_id=obj.storage_id,
                        content_type=obj.content_type, size=obj.size)
        return Outcome.success(obj.storage_id)

    def get_stored_object(self, storage_id: str) -> Outcome:
        obj = self.store.storage.get(storage_id)
        if obj is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Storage object not found")
        return Outcome.success(obj)

    def _typed_object(self, storage_id: str, prefix: str) -> Outcome:
        found = self.get_stored_object(storage_id)
        if not found.ok:
            return found
        if not found.value.content_type.startswith(prefix):
            return Outcome.failure(
                ErrorKind.INVALID,
                f"Expected {prefix}* content, got {found.value.content_type}",
            )
        return found

    def register_uploaded_track(self, identity: Optional[Identity], storage_id: str, title: str) -> Outcome:
        caller = self._caller(identity)
        if not caller.ok:
            return caller
        title = (title or "").strip()
        if not title:
            return Outcome.failure(ErrorKind.INVALID, "Title must not be empty")
        song = self._typed_object(storage_id, "audio/")
        if not song.ok:
            return song

        track = Track(id=new_id("files"), title=title, song=storage_id, owner_id=caller.value.id)
        self.store.insert_file(track)
        log_with_fields(logger, "INFO", "Track registered", file_id=track.id, owner_id=track.owner_id)
        return Outcome.success(track.id)

    def _owned_track(self, identity: Optional[Identity], track_id: str) -> Outcome:
        caller = self._caller(identity)
        if not caller.ok:
            return caller
        track = self.store.files.get(track_id)
        if track is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Track not found")
        if track.owner_id != caller.value.id:
            return Outcome.failure(ErrorKind.FORBIDDEN, "Only the owner can change this track")
        return Outcome.success(track)

    def attach_cover_image(self, identity: Optional[Identity], track_id: str, image_storage_id: str) -> Outcome:
        owned = self._owned_track(identity, track_id)
        if not owned.ok:
            return owned
        image = self._typed_object(image_storage_id, "image/")
        if not image.ok:
            return image
        self.store.patch_file(track_id, image=image_storage_id)
        log_with_fields(logger, "INFO", "Cover attached", file_id=track_id, storage_id=image_storage_id)
        return Outcome.success(None)

    def set_favorite(self, identity: Optional[Identity], track_id: str, favorite: bool) -> Outcome:
        caller = self._caller(identity)
        if not caller.ok:
            return caller
        if track_id not in self.store.files:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Track not found")
        user_id = caller.value.id
        if favorite:
            self.store.add_favorite(user_id, track_id)
        else:
            self.store.remove_favorite(user_id, track_id)
        return Outcome.success(favorite)
