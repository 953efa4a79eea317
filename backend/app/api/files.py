"""Upload and download of message attachments."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_read_access
from app.core import build_file_url, resolve_path, store_upload
from app.core.errors import NotFoundError
from app.database import get_db
from app.models import User
from app.schemas import UploadRead
from app.services import messages as message_store
from app.services.messages import MessageTarget

router = APIRouter(prefix="/files", tags=["files"])


@router.post("", response_model=UploadRead, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
) -> UploadRead:
    """Store an upload for subsequent inclusion in a message."""

    stored = await store_upload(current_user.id, file)
    return UploadRead(
        url=stored.url,
        file_name=stored.file_name,
        mime_type=stored.mime_type,
        size=stored.size,
    )


@router.get("/{user_id}/{file_name}")
def download_file(
    user_id: int,
    file_name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> FileResponse:
    """Serve an upload to its owner, or to anyone who can read a message carrying it."""

    file_path = resolve_path(f"user_{user_id}/{file_name}")
    if user_id != current_user.id:
        message = message_store.find_attachment_message(db, build_file_url(user_id, file_name))
        if message is None:
            raise NotFoundError("File not found")
        require_read_access(
            MessageTarget(channel_id=message.channel_id, conversation_id=message.conversation_id),
            current_user.id,
            db,
        )
    return FileResponse(file_path)
