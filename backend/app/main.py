from __future__ import annotations
from typing import Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .catalog import Catalog
from .config import load_settings
from .errors import HTTP_STATUS, Outcome
from .logging_setup import setup_logging
from .models import Identity
from .store import STORE

SETTINGS = load_settings()
setup_logging(SETTINGS.log_level, SETTINGS.log_file)

app = FastAPI(title="mus-clone v0.1")

CATALOG = Catalog(STORE, SETTINGS)


def get_identity(
    x_token_identifier: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_image: Optional[str] = Header(None),
) -> Optional[Identity]:
    """Identity forwarded by the auth provider, or None for anonymous calls."""
    if not x_token_identifier or not x_token_identifier.strip():
        return None
    return Identity(
        token_identifier=x_token_identifier.strip(),
        email=x_user_email,
        name=x_user_name,
        profile_url=x_user_image,
    )


def raise_for_outcome(outcome: Outcome):
    if not outcome.ok:
        raise HTTPException(status_code=HTTP_STATUS[outcome.error], detail=outcome.message)
    return outcome.value


@app.get("/")
def root():
    return {"service": "mus-clone", "files": "/api/files"}


@app.get("/api/health")
def health():
    return {"status": "ok"}


class StoreUserResponse(BaseModel):
    user_id: str


@app.post("/api/users/store", response_model=StoreUserResponse)
def store_user(identity: Optional[Identity] = Depends(get_identity)):
    return StoreUserResponse(user_id=raise_for_outcome(CATALOG.register_caller(identity)))


@app.get("/api/files")
def list_files(identity: Optional[Identity] = Depends(get_identity)):
    tracks = raise_for_outcome(CATALOG.list_tracks(identity))
    return [t.to_dict() for t in tracks]


class UploadTargetResponse(BaseModel):
    upload_id: str
    url: str


@app.post("/api/files/upload_url", response_model=UploadTargetResponse)
def generate_upload_url(identity: Optional[Identity] = Depends(get_identity)):
    target = raise_for_outcome(CATALOG.request_upload_target(identity))
    return UploadTargetResponse(upload_id=target.upload_id, url=target.url)


@app.post("/api/storage/upload/{upload_id}")
async def upload_to_target(upload_id: str, file: UploadFile = File(...)):
    # one byte past the limit is enough for the catalog to reject the payload
    content = await file.read(CATALOG.settings.max_upload_bytes + 1)
    storage_id = raise_for_outcome(CATALOG.complete_upload(upload_id, content, file.content_type))
    return {"storage_id": storage_id}


@app.get("/api/storage/{storage_id}")
def get_storage_object(storage_id: str):
    obj = raise_for_outcome(CATALOG.get_stored_object(storage_id))
    return Response(content=obj.data, media_type=obj.content_type)


class RegisterTrackRequest(BaseModel):
    storage_id: str
    title: str = Field(..., min_length=1, max_length=200)


@app.post("/api/files")
def register_track(body: RegisterTrackRequest, identity: Optional[Identity] = Depends(get_identity)):
    file_id = raise_for_outcome(CATALOG.register_uploaded_track(identity, body.storage_id, body.title))
    return {"file_id": file_id}


class AttachImageRequest(BaseModel):
    storage_id: str


@app.post("/api/files/{file_id}/image")
def attach_image(file_id: str, body: AttachImageRequest, identity: Optional[Identity] = Depends(get_identity)):
    raise_for_outcome(CATALOG.attach_cover_image(identity, file_id, body.storage_id))
    return {"file_id": file_id, "image": body.storage_id}


@app.put("/api/files/{file_id}/favorite")
def add_favorite(file_id: str, identity: Optional[Identity] = Depends(get_identity)):
    return {"favorite": raise_for_outcome(CATALOG.set_favorite(identity, file_id, True))}


@app.delete("/api/files/{file_id}/favorite")
def remove_favorite(file_id: str, identity: Optional[Identity] = Depends(get_identity)):
    return {"favorite": raise_for_outcome(CATALOG.set_favorite(identity, file_id, False))}
