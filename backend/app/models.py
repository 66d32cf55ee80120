from __future__ import annotations
import uuid
from dataclasses import dataclass
from typing import Optional


def new_id(table: str) -> str:
    return f"{table}_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class Identity:
    """Caller identity as asserted by the external auth provider."""

    token_identifier: str
    email: Optional[str] = None
    name: Optional[str] = None
    profile_url: Optional[str] = None


@dataclass
class User:
    id: str
    token_identifier: str
    email: str = ""
    full_name: str = ""
    image_url: Optional[str] = None


@dataclass
class Track:
    """A registered upload. `song` and `image` are storage ids, not URLs."""

    id: str
    title: str
    song: str
    owner_id: str
    image: Optional[str] = None


@dataclass(frozen=True)
class Favorite:
    user_id: str
    file_id: str


@dataclass
class StoredObject:
    storage_id: str
    content_type: str
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadTarget:
    upload_id: str
    url: str


@dataclass(frozen=True)
class Owner:
    id: str
    display_name: str
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class TrackView:
    """One row of the catalog projection, resolved for a specific caller."""

    id: str
    title: str
    audio_url: str
    owner: Owner
    cover_url: Optional[str] = None
    favorite: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "audio_url": self.audio_url,
            "cover_url": self.cover_url,
            "owner": {
                "id": self.owner.id,
                "display_name": self.owner.display_name,
                "avatar_url": self.owner.avatar_url,
            },
            "favorite": self.favorite,
        }


@dataclass
class Selection:
    track_id: Optional[str] = None
    audio_url: str = ""
    title: str = ""
    artist: str = ""
    cover_url: Optional[str] = None
    index: int = -1

    @property
    def is_empty(self) -> bool:
        return self.track_id is None

