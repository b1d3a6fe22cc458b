import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..core.auth import get_session_user
from ..core.config import get_settings
from ..schemas.auth import UploadResponse
from ..services.object_store import (
    ALLOWED_FOLDERS,
    ObjectNotFound,
    ObjectStoreError,
    S3ObjectStore,
    get_object_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=UploadResponse, summary="이미지 업로드 (S3)")
def upload_image(
    folder: str = Query("books", pattern="^(books|authors)$"),
    file: UploadFile = File(...),
    _: Dict[str, Any] = Depends(get_session_user),
    store: S3ObjectStore = Depends(get_object_store),
):
    settings = get_settings()
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail="Only image uploads are allowed")

    data = file.file.read(settings.upload_max_bytes + 1)
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if len(data) > settings.upload_max_bytes:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large")

    try:
        url = store.upload(data, file.filename or "file", file.content_type, folder=folder)
    except ObjectStoreError:
        raise HTTPException(status_code=500, detail="Failed to upload file")
    return {"url": url}


@router.get("/uploads/{folder}/{filename}", summary="업로드 이미지 프록시")
def read_upload(folder: str, filename: str, store: S3ObjectStore = Depends(get_object_store)):
    if folder not in ALLOWED_FOLDERS:
        raise HTTPException(status_code=404, detail="File not found")
    try:
        obj = store.retrieve(f"{folder}/{filename}")
    except ObjectNotFound:
        raise HTTPException(status_code=404, detail="File not found")
    except ObjectStoreError:
        raise HTTPException(status_code=500, detail="Failed to retrieve file")

    headers = {"Cache-Control": "public, max-age=86400"}
    if obj.content_length is not None:
        headers["Content-Length"] = str(obj.content_length)
    # 클라이언트가 중간에 끊어도 S3 응답 본문은 닫아야 함
    return StreamingResponse(
        obj.body,
        media_type=obj.content_type or "application/octet-stream",
        headers=headers,
        background=BackgroundTask(obj.close) if obj.close else None,
    )
